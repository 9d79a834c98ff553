"""Serialization codec between entity collections and JSON text.

Encoding is deterministic: fields are written in declaration order with
their defaults, so equal collections always produce identical text.
Decoding ignores unknown keys and fills in defaults for missing optional
fields; missing or mis-shaped required fields are a type mismatch.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from saison_backup.exceptions import DecodeError, UnreadableArtifactError
from saison_backup.models.backup import (
    CATEGORIES_FILE_NAME,
    MANIFEST_FILE_NAME,
    BackupContent,
    DataType,
    DecodedBundle,
)
from saison_backup.models.entities import BackupRecord, Category

logger = logging.getLogger(__name__)

JSON_INDENT = 2

_RECORD_ADAPTERS: dict[DataType, TypeAdapter] = {
    data_type: TypeAdapter(list[data_type.model])
    for data_type in DataType
    if data_type.model is not None
}
_CATEGORIES_ADAPTER: TypeAdapter[list[Category]] = TypeAdapter(list[Category])
_PREFERENCES_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])

# Keys of the first record that identify an unnamed single-type file
_DETECTION_KEYS: tuple[tuple[DataType, frozenset[str]], ...] = (
    (DataType.TASKS, frozenset({"dueDate", "isCompleted", "priority"})),
    (DataType.COURSES, frozenset({"dayOfWeek", "startTime", "semesterId"})),
    (DataType.EVENTS, frozenset({"eventDate", "category", "reminderEnabled"})),
    (DataType.ROUTINES, frozenset({"cycleType", "cycleConfig", "isActive"})),
    (DataType.SUBSCRIPTIONS, frozenset({"billingCycle", "nextBillingDate", "price"})),
    (DataType.POMODORO_SESSIONS, frozenset({"isBreak", "isLongBreak", "duration"})),
    (DataType.SEMESTERS, frozenset({"totalWeeks", "isArchived", "isDefault"})),
)


def encode(data_type: DataType, collection: Sequence[BackupRecord] | dict[str, Any]) -> str:
    """Encode a collection of one data type as JSON text.

    Args:
        data_type: Data type of the collection
        collection: Records, or the key/value mapping for PREFERENCES

    Returns:
        UTF-8 JSON text

    Raises:
        TypeError: If preference values are not JSON serializable
    """
    if data_type is DataType.PREFERENCES:
        return encode_preferences(collection)  # type: ignore[arg-type]
    adapter = _RECORD_ADAPTERS[data_type]
    return adapter.dump_json(list(collection), by_alias=True, indent=JSON_INDENT).decode("utf-8")


def decode(
    data_type: DataType, text: str | bytes, file_name: str | None = None
) -> list[BackupRecord] | dict[str, Any]:
    """Decode JSON text into a collection of one data type.

    Args:
        data_type: Expected data type
        text: JSON text
        file_name: Source file name, reported in errors

    Returns:
        List of records, or a mapping for PREFERENCES

    Raises:
        DecodeError: If the text is malformed or does not match the schema
    """
    if data_type is DataType.PREFERENCES:
        return decode_preferences(text, file_name)
    return _validate(_RECORD_ADAPTERS[data_type], text, file_name or data_type.file_name)


def encode_categories(categories: Sequence[Category]) -> str:
    return _CATEGORIES_ADAPTER.dump_json(
        list(categories), by_alias=True, indent=JSON_INDENT
    ).decode("utf-8")


def decode_categories(text: str | bytes, file_name: str | None = None) -> list[Category]:
    return _validate(_CATEGORIES_ADAPTER, text, file_name or CATEGORIES_FILE_NAME)


def encode_preferences(preferences: dict[str, Any]) -> str:
    return json.dumps(preferences, indent=JSON_INDENT, ensure_ascii=False)


def decode_preferences(text: str | bytes, file_name: str | None = None) -> dict[str, Any]:
    return _validate(_PREFERENCES_ADAPTER, text, file_name or DataType.PREFERENCES.file_name)


def decode_bundle(files: dict[str, bytes]) -> DecodedBundle:
    """Decode every recognized file of an unpacked artifact.

    All files are decoded before anything is returned, so a malformed file
    fails the whole artifact.

    Args:
        files: Raw file contents keyed by file name

    Returns:
        Decoded bundle

    Raises:
        UnreadableArtifactError: If no file has a recognized name
        DecodeError: If a recognized file does not decode
    """
    collections: dict[str, Any] = {}
    present: set[DataType] = set()
    has_categories = False

    for name, data in files.items():
        if name == CATEGORIES_FILE_NAME:
            collections["categories"] = decode_categories(data, name)
            has_categories = True
            continue
        if name == MANIFEST_FILE_NAME:
            continue
        data_type = DataType.from_file_name(name)
        if data_type is None:
            logger.warning(f"Ignoring unrecognized artifact entry: {name}")
            continue
        collections[data_type.value] = decode(data_type, data, name)
        present.add(data_type)

    if not present and not has_categories:
        raise UnreadableArtifactError(
            "Artifact contains no recognized backup files "
            f"(found: {', '.join(sorted(files)) or 'nothing'})"
        )

    return DecodedBundle(
        content=BackupContent(**collections),
        present_types=[dt for dt in DataType if dt in present],
        has_categories=has_categories,
    )


def detect_data_type(text: str | bytes) -> DataType | None:
    """Guess the data type of an unnamed single-type document.

    A JSON object is a preferences mapping. A JSON array is classified by
    the keys of its first element.

    Returns:
        The detected data type, or None if the content is not recognizable
    """
    try:
        parsed = json.loads(text)
    except (ValueError, UnicodeDecodeError):
        return None

    if isinstance(parsed, dict):
        return DataType.PREFERENCES
    if not isinstance(parsed, list) or not parsed or not isinstance(parsed[0], dict):
        return None

    keys = parsed[0].keys()
    for data_type, required in _DETECTION_KEYS:
        if required <= keys:
            return data_type
    return None


def _validate(adapter: TypeAdapter, text: str | bytes, file_name: str) -> Any:
    try:
        return adapter.validate_json(text)
    except PydanticValidationError as e:
        errors = e.errors()
        if any(err["type"] == "json_invalid" for err in errors):
            reason = DecodeError.MALFORMED
            message = f"{file_name} is not valid JSON"
        else:
            reason = DecodeError.TYPE_MISMATCH
            first = errors[0]
            location = ".".join(str(part) for part in first["loc"])
            message = (
                f"{file_name} does not match its schema "
                f"({e.error_count()} errors, first at '{location}': {first['msg']})"
            )
        logger.debug(f"Decode of {file_name} failed: {reason}")
        raise DecodeError(message, reason, file_name) from e
