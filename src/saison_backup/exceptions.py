"""Custom exceptions for saison-backup."""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure category."""

    NO_CONTENT_SELECTED = "no_content_selected"
    REMOTE_NOT_CONFIGURED = "remote_not_configured"
    UNREADABLE_ARTIFACT = "unreadable_artifact"
    SCHEMA_VERSION_UNSUPPORTED = "schema_version_unsupported"
    MALFORMED_ARTIFACT = "malformed_artifact"
    VALIDATION_FAILED = "validation_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    TRANSPORT_FAILED = "transport_failed"
    NOT_FOUND = "not_found"


class InterchangeError(Exception):
    """Base class for all export/import failures."""

    kind: ErrorKind = ErrorKind.MALFORMED_ARTIFACT

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ConfigurationError(InterchangeError):
    """Raised before an operation starts when it cannot run as configured."""

    kind = ErrorKind.NO_CONTENT_SELECTED


class ArtifactError(InterchangeError):
    """Raised when an export artifact cannot be read."""

    kind = ErrorKind.MALFORMED_ARTIFACT


class UnreadableArtifactError(ArtifactError):
    """Raised when an artifact contains nothing this package recognizes."""

    kind = ErrorKind.UNREADABLE_ARTIFACT


class SchemaVersionUnsupportedError(ArtifactError):
    """Raised when an artifact declares an incompatible format version."""

    kind = ErrorKind.SCHEMA_VERSION_UNSUPPORTED

    def __init__(self, version: str, supported: list[str]) -> None:
        super().__init__(
            f"Unsupported format version: {version}. "
            f"Supported: {', '.join(supported)}"
        )
        self.version = version
        self.supported = supported


class DecodeError(ArtifactError):
    """Raised when a serialized collection does not match its schema.

    ``reason`` is ``"malformed"`` for unparsable text and ``"type-mismatch"``
    when required fields are missing or have the wrong shape.
    """

    MALFORMED = "malformed"
    TYPE_MISMATCH = "type-mismatch"

    def __init__(self, message: str, reason: str, file_name: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.file_name = file_name


class ValidationError(InterchangeError):
    """Raised when imported data fails semantic validation."""

    kind = ErrorKind.VALIDATION_FAILED


class PersistenceError(InterchangeError):
    """Raised when the receiving store rejects a write."""

    kind = ErrorKind.PERSISTENCE_FAILED


class TransportError(InterchangeError):
    """Raised when the remote backup store fails to upload or download."""

    kind = ErrorKind.TRANSPORT_FAILED


class NotFoundError(InterchangeError):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND
