"""File naming for export artifacts."""

import re
from datetime import datetime

from saison_backup.models.backup import DataType

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')
_SINGLE_FILE_NAME = re.compile(r"saison_([a-z_]+)_\d{8}_\d{6}\.json")


def backup_file_name(now: datetime | None = None) -> str:
    """Name for a multi-type backup archive."""
    now = now or datetime.now()
    return f"saison_backup_{now:%Y%m%d_%H%M%S}.zip"


def single_file_name(data_type: DataType, now: datetime | None = None) -> str:
    """Name for a single data type export file."""
    now = now or datetime.now()
    return f"saison_{data_type.display_key}_{now:%Y%m%d_%H%M%S}.json"


def data_type_from_single_file_name(file_name: str) -> DataType | None:
    """Recover the data type from a name written by ``single_file_name``."""
    match = _SINGLE_FILE_NAME.fullmatch(file_name)
    if match is None:
        return None
    try:
        return DataType(match.group(1))
    except ValueError:
        return None


def suggested_course_file_name(semester_name: str, now: datetime | None = None) -> str:
    """Name for a course export document.

    Characters that are not allowed in file names are replaced by ``_``.
    """
    now = now or datetime.now()
    safe_name = _UNSAFE_CHARS.sub("_", semester_name).strip() or "semester"
    return f"{safe_name}_{now:%Y%m%d}.json"
