"""Application settings management using Pydantic Settings."""

import platform
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from saison_backup import __version__


def _get_default_db_path() -> str:
    """Get default database path in the working directory."""
    return str(Path.cwd() / "data" / "saison.db")


def _get_default_device_info() -> str:
    """Describe the producing device for export metadata."""
    return f"{platform.system()} {platform.release()} (Python {platform.python_version()})"


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be configured via environment variables with the
    prefix `SAISON_BACKUP_`. For example, `SAISON_BACKUP_DATABASE_PATH`.
    """

    # Database
    database_path: str = Field(
        default_factory=_get_default_db_path,
        description="SQLite database file path",
    )

    # Local delivery
    export_dir: str = Field(
        default="./exports",
        description="Base directory for local export files",
    )

    # Remote delivery (None = not configured)
    remote_backup_dir: str | None = Field(
        default=None,
        description="Directory used as the remote backup store",
    )

    # Export metadata
    app_version: str = Field(
        default=__version__, description="Producing application version"
    )
    device_info: str = Field(
        default_factory=_get_default_device_info,
        description="Producing device descriptor",
    )

    # Format versions
    course_export_version: str = Field(
        default="1.0", description="Version written into course export documents"
    )
    supported_course_export_versions: list[str] = Field(
        default_factory=lambda: ["1.0"],
        min_length=1,
        description="Course export versions accepted on import",
    )
    backup_manifest_version: str = Field(
        default="1.0", description="Version written into remote backup manifests"
    )
    supported_backup_manifest_versions: list[str] = Field(
        default_factory=lambda: ["1.0"],
        min_length=1,
        description="Remote backup manifest versions accepted on restore",
    )

    # Course import
    imported_semester_suffix: str = Field(
        default=" (Imported)",
        min_length=1,
        description="Suffix for the suggested semester name on a name conflict",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="SAISON_BACKUP_", env_file=".env", env_file_encoding="utf-8"
    )

    @model_validator(mode="after")
    def validate_versions(self) -> Self:
        """Validate that written versions are also readable."""
        if self.course_export_version not in self.supported_course_export_versions:
            raise ValueError(
                f"course_export_version ({self.course_export_version}) must be one of "
                f"supported_course_export_versions ({self.supported_course_export_versions})"
            )
        if self.backup_manifest_version not in self.supported_backup_manifest_versions:
            raise ValueError(
                f"backup_manifest_version ({self.backup_manifest_version}) must be one of "
                f"supported_backup_manifest_versions ({self.supported_backup_manifest_versions})"
            )
        return self
