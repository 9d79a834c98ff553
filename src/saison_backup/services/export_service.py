"""Export pipeline: aggregate, encode, package and deliver."""

import logging

from saison_backup.db.repositories.entity_repository import EntityStore
from saison_backup.db.repositories.settings_repository import SettingsRepository
from saison_backup.exceptions import ConfigurationError, ErrorKind
from saison_backup.models.backup import (
    CATEGORIES_FILE_NAME,
    RECORD_TYPES,
    BackupContent,
    BackupPreferences,
    DataType,
    ExportSummary,
)
from saison_backup.services import codec
from saison_backup.services.aggregator import BackupContentAggregator
from saison_backup.services.archive import ArchivePackager, Blob
from saison_backup.services.delivery import LocalFileTarget, RemoteBackupStore
from saison_backup.utils.naming import backup_file_name, single_file_name

logger = logging.getLogger(__name__)


class ExportService:
    """Service for exporting collections to local files and remote backups."""

    def __init__(
        self,
        store: EntityStore,
        settings_repo: SettingsRepository,
        packager: ArchivePackager | None = None,
        remote_store: RemoteBackupStore | None = None,
    ) -> None:
        """Initialize export service.

        Args:
            store: Entity repositories
            settings_repo: Settings repository
            packager: Archive packager
            remote_store: Remote backup store (optional)
        """
        self.store = store
        self.settings_repo = settings_repo
        self.aggregator = BackupContentAggregator(store, settings_repo)
        self.packager = packager or ArchivePackager()
        self.remote_store = remote_store

    async def export_single_type(
        self,
        target: LocalFileTarget,
        data_type: DataType,
        file_name: str | None = None,
    ) -> ExportSummary:
        """Export one data type to a single JSON file.

        Args:
            target: Local file target
            data_type: Data type to export
            file_name: Output name (default: generated from the type and time)

        Returns:
            Export summary
        """
        logger.info(f"Exporting {data_type.value} to a single file")
        content = await self.aggregator.collect(BackupPreferences.only(data_type))

        if data_type is DataType.PREFERENCES:
            text = codec.encode_preferences(content.preferences)
            total_items = 0
        else:
            text = codec.encode(data_type, content.records(data_type))
            total_items = content.count(data_type)

        artifact = self.packager.package_single(
            Blob(name=data_type.file_name, text=text, item_count=total_items)
        )
        path = target.write(file_name or single_file_name(data_type), artifact.data)

        logger.info(f"Exported {total_items} {data_type.value} records to {path}")
        return ExportSummary(
            total_items=total_items,
            exported_types=[data_type],
            file_path=str(path),
            file_size=artifact.file_size,
        )

    async def export_selection(
        self,
        target: LocalFileTarget,
        preferences: BackupPreferences,
        file_name: str | None = None,
    ) -> ExportSummary:
        """Export the selected data types to one archive.

        Args:
            target: Local file target
            preferences: Data types to include
            file_name: Output name (default: ``saison_backup_<timestamp>.zip``)

        Returns:
            Export summary

        Raises:
            ConfigurationError: If no data type is selected
        """
        self._check_selection(preferences)
        enabled = ", ".join(dt.value for dt in preferences.enabled_types())
        logger.info(f"Exporting selection: {enabled}")

        content = await self.aggregator.collect(preferences)
        blobs, exported_types = self.build_blobs(content, preferences)

        artifact = self.packager.package_archive(blobs)
        path = target.write(file_name or backup_file_name(), artifact.data)

        total_items = self._record_total(content, exported_types)
        logger.info(
            f"Exported {total_items} records in {len(artifact.file_names)} files "
            f"({artifact.file_size} bytes) to {path}"
        )
        return ExportSummary(
            total_items=total_items,
            exported_types=exported_types,
            file_path=str(path),
            file_size=artifact.file_size,
        )

    async def export_to_remote(self, preferences: BackupPreferences) -> ExportSummary:
        """Export the selected data types as a new remote backup.

        Returns:
            Export summary whose ``file_path`` is the remote locator and whose
            ``file_size`` is the uncompressed size of the uploaded blobs

        Raises:
            ConfigurationError: If nothing is selected or the remote store is
                not configured
            TransportError: If the upload fails
        """
        self._check_selection(preferences)
        if self.remote_store is None or not self.remote_store.is_configured():
            raise ConfigurationError(
                "Remote backup store is not configured",
                kind=ErrorKind.REMOTE_NOT_CONFIGURED,
            )

        logger.info("Creating remote backup")
        content = await self.aggregator.collect(preferences)
        blobs, exported_types = self.build_blobs(content, preferences)

        locator = await self.remote_store.create_and_upload(preferences, blobs)

        total_items = self._record_total(content, exported_types)
        logger.info(f"Remote backup {locator} created with {total_items} records")
        return ExportSummary(
            total_items=total_items,
            exported_types=exported_types,
            file_path=locator,
            file_size=sum(len(blob.data) for blob in blobs),
        )

    def build_blobs(
        self, content: BackupContent, preferences: BackupPreferences
    ) -> tuple[list[Blob], list[DataType]]:
        """Encode every enabled non-empty type, plus categories when present.

        Every blob is encoded before any is delivered, so an encoding
        failure leaves no partial artifact. Empty collections are skipped,
        so the result may hold categories only, or nothing at all.

        Returns:
            Blobs in archive order and the data types they carry
        """
        blobs: list[Blob] = []
        exported_types: list[DataType] = []

        for data_type in preferences.enabled_types():
            count = content.count(data_type)
            if count == 0:
                continue
            if data_type is DataType.PREFERENCES:
                text = codec.encode_preferences(content.preferences)
            else:
                text = codec.encode(data_type, content.records(data_type))
            blobs.append(Blob(name=data_type.file_name, text=text, item_count=count))
            exported_types.append(data_type)

        # Categories are not a selectable type; they accompany every
        # backup whenever any exist.
        if content.categories:
            blobs.append(
                Blob(
                    name=CATEGORIES_FILE_NAME,
                    text=codec.encode_categories(content.categories),
                    item_count=len(content.categories),
                )
            )

        return blobs, exported_types

    async def get_export_preferences(self) -> BackupPreferences:
        return await self.settings_repo.get_backup_preferences()

    async def save_export_preferences(self, preferences: BackupPreferences) -> None:
        await self.settings_repo.save_backup_preferences(preferences)

    async def get_data_counts(self) -> dict[DataType, int]:
        """Current size of every data type's collection.

        PREFERENCES counts the keys of the preference mapping.
        """
        counts = {dt: await self.store.repository(dt).count() for dt in RECORD_TYPES}
        counts[DataType.PREFERENCES] = len(await self.settings_repo.get_user_preferences())
        return counts

    @staticmethod
    def _check_selection(preferences: BackupPreferences) -> None:
        if not preferences.has_any_enabled():
            raise ConfigurationError("No data type selected for export")

    @staticmethod
    def _record_total(content: BackupContent, exported_types: list[DataType]) -> int:
        return sum(
            content.count(dt) for dt in exported_types if dt is not DataType.PREFERENCES
        )
