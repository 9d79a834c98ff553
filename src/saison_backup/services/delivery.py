"""Delivery targets for export artifacts: local files and remote backup stores."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from saison_backup.exceptions import (
    ConfigurationError,
    ErrorKind,
    NotFoundError,
    SchemaVersionUnsupportedError,
    TransportError,
    UnreadableArtifactError,
)
from saison_backup.models.backup import (
    MANIFEST_FILE_NAME,
    BackupContent,
    BackupManifest,
    BackupPreferences,
)
from saison_backup.models.entities import now_millis
from saison_backup.services.archive import ArchivePackager, Blob
from saison_backup.services.codec import decode_bundle
from saison_backup.utils.naming import backup_file_name
from saison_backup.utils.versions import is_supported_version

logger = logging.getLogger(__name__)


class LocalFileTarget:
    """Reads and writes artifacts under a base directory."""

    def __init__(self, base_dir: str, allowed_paths: list[Path] | None = None) -> None:
        """Initialize the target.

        Args:
            base_dir: Directory that relative names are resolved against
            allowed_paths: Additional allowed base directories for path validation
        """
        self.base_dir = Path(base_dir).resolve()
        self.allowed_paths = [p.resolve() for p in (allowed_paths or [])]

    def resolve(self, file_path: str) -> Path:
        """Validate that a path is safe and within an allowed directory.

        Args:
            file_path: Absolute path, or a name relative to the base directory

        Returns:
            Resolved absolute Path

        Raises:
            ValueError: If the path escapes the allowed directories
        """
        if ".." in Path(file_path).parts:
            raise ValueError(f"Path traversal detected in {file_path}")

        path = Path(file_path)
        if not path.is_absolute():
            path = self.base_dir / path
        path_resolved = path.resolve()

        for base_resolved in [self.base_dir, *self.allowed_paths]:
            try:
                path_resolved.relative_to(base_resolved)
                return path_resolved
            except ValueError:
                continue

        raise ValueError(
            f"Path {file_path} is outside allowed directories: {self.base_dir}"
        )

    def write(self, name: str, data: bytes) -> Path:
        """Write artifact bytes, creating parent directories.

        Returns:
            Absolute path of the written file
        """
        path = self.resolve(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Wrote {len(data)} bytes to {path}")
        return path

    def read_all(self, file_path: str) -> bytes:
        """Read a whole artifact.

        Raises:
            NotFoundError: If the file does not exist
        """
        path = self.resolve(file_path)
        if not path.is_file():
            raise NotFoundError(f"File not found: {file_path}")
        return path.read_bytes()


def read_manifest(data: bytes, supported_versions: list[str]) -> BackupManifest:
    """Parse a backup manifest and check its version.

    Raises:
        UnreadableArtifactError: If the manifest cannot be parsed
        SchemaVersionUnsupportedError: If the version is incompatible
    """
    try:
        manifest = BackupManifest.model_validate_json(data)
    except PydanticValidationError as e:
        raise UnreadableArtifactError("Backup manifest is invalid") from e
    if not is_supported_version(manifest.version, supported_versions):
        raise SchemaVersionUnsupportedError(manifest.version, supported_versions)
    return manifest


class RemoteBackupStore(ABC):
    """Remote object store holding whole-store backups."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the store can be used."""

    @abstractmethod
    async def create_and_upload(
        self, preferences: BackupPreferences, files: list[Blob]
    ) -> str:
        """Upload a backup and return its locator."""

    @abstractmethod
    async def download(self, locator: str) -> BackupContent:
        """Download and decode a backup."""

    @abstractmethod
    async def list_backups(self) -> list[str]:
        """Locators of stored backups, newest first."""


class DirectoryBackupStore(RemoteBackupStore):
    """Remote store backed by a directory (a mounted share or synced folder).

    Each backup is one zip holding the blobs plus ``manifest.json``.
    """

    def __init__(
        self,
        directory: str | None,
        manifest_version: str = "1.0",
        supported_versions: list[str] | None = None,
        packager: ArchivePackager | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            directory: Backup directory; None leaves the store unconfigured
            manifest_version: Version written into new manifests
            supported_versions: Manifest versions accepted on download
            packager: Archive packager
        """
        self.directory = Path(directory) if directory else None
        self.manifest_version = manifest_version
        self.supported_versions = supported_versions or [manifest_version]
        self.packager = packager or ArchivePackager()

    def is_configured(self) -> bool:
        return self.directory is not None

    def _require_directory(self) -> Path:
        if self.directory is None:
            raise ConfigurationError(
                "Remote backup store is not configured",
                kind=ErrorKind.REMOTE_NOT_CONFIGURED,
            )
        return self.directory

    async def create_and_upload(
        self, preferences: BackupPreferences, files: list[Blob]
    ) -> str:
        """Store blobs and their manifest as a new backup.

        Args:
            preferences: Selection the backup was made with
            files: Encoded blobs

        Returns:
            Locator (file name) of the new backup

        Raises:
            TransportError: If the backup cannot be written
        """
        directory = self._require_directory()
        manifest = BackupManifest(
            version=self.manifest_version,
            created_at=now_millis(),
            preferences=preferences,
            files={blob.name: blob.item_count for blob in files},
        )
        manifest_blob = Blob(
            name=MANIFEST_FILE_NAME,
            text=json.dumps(manifest.model_dump(by_alias=True, mode="json"), indent=2),
        )
        artifact = self.packager.package_archive([*files, manifest_blob])

        try:
            directory.mkdir(parents=True, exist_ok=True)
            locator = self._unique_name(directory)
            (directory / locator).write_bytes(artifact.data)
        except OSError as e:
            raise TransportError(f"Failed to upload backup: {e}") from e

        logger.info(f"Uploaded backup {locator} ({artifact.file_size} bytes)")
        return locator

    async def download(self, locator: str) -> BackupContent:
        """Fetch a backup and decode its blobs.

        Raises:
            NotFoundError: If no backup has this locator
            SchemaVersionUnsupportedError: If the manifest version is incompatible
            TransportError: If the backup cannot be read
        """
        directory = self._require_directory()
        if Path(locator).name != locator or not locator:
            raise NotFoundError(f"Invalid backup locator: {locator}")

        path = directory / locator
        if not path.is_file():
            raise NotFoundError(f"Backup not found: {locator}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise TransportError(f"Failed to download backup {locator}: {e}") from e

        unpacked = self.packager.unpack(data, locator)
        manifest_data = unpacked.files.get(MANIFEST_FILE_NAME)
        if manifest_data is None:
            raise UnreadableArtifactError(f"Backup {locator} has no manifest")

        manifest = read_manifest(manifest_data, self.supported_versions)
        logger.info(f"Downloaded backup {locator} created at {manifest.created_at}")
        return decode_bundle(unpacked.files).content

    async def list_backups(self) -> list[str]:
        directory = self._require_directory()
        if not directory.is_dir():
            return []
        try:
            paths = [p for p in directory.glob("saison_backup_*.zip") if p.is_file()]
        except OSError as e:
            raise TransportError(f"Failed to list backups: {e}") from e
        return [p.name for p in sorted(paths, key=lambda p: p.name, reverse=True)]

    @staticmethod
    def _unique_name(directory: Path) -> str:
        name = backup_file_name()
        stem = name.removesuffix(".zip")
        counter = 1
        while (directory / name).exists():
            name = f"{stem}_{counter}.zip"
            counter += 1
        return name
