"""Import pipeline: unpack, decode, detect duplicates and merge into the store."""

import logging
from collections.abc import Collection

from saison_backup.db.repositories.entity_repository import EntityRepository, EntityStore
from saison_backup.exceptions import (
    ConfigurationError,
    ErrorKind,
    NotFoundError,
    PersistenceError,
    UnreadableArtifactError,
)
from saison_backup.models.backup import (
    CATEGORIES_FILE_NAME,
    IMPORT_ORDER,
    MANIFEST_FILE_NAME,
    BackupContent,
    DataType,
    DecodedBundle,
    ImportPreview,
    RestoreSummary,
)
from saison_backup.models.entities import BackupRecord
from saison_backup.services import codec
from saison_backup.services.archive import ArchivePackager
from saison_backup.services.delivery import (
    LocalFileTarget,
    RemoteBackupStore,
    read_manifest,
)
from saison_backup.utils.naming import data_type_from_single_file_name

logger = logging.getLogger(__name__)


class ImportService:
    """Service for previewing and importing backup artifacts."""

    def __init__(
        self,
        store: EntityStore,
        packager: ArchivePackager | None = None,
        remote_store: RemoteBackupStore | None = None,
        supported_manifest_versions: list[str] | None = None,
    ) -> None:
        """Initialize import service.

        Args:
            store: Entity repositories
            packager: Archive packager
            remote_store: Remote backup store (optional)
            supported_manifest_versions: Manifest versions accepted in archives
        """
        self.store = store
        self.packager = packager or ArchivePackager()
        self.remote_store = remote_store
        self.supported_manifest_versions = supported_manifest_versions or ["1.0"]

    def read_artifact(
        self, data: bytes, file_name: str | None = None
    ) -> tuple[DecodedBundle, bool]:
        """Unpack and decode an artifact without touching the store.

        A single file is identified by its canonical name or the default
        export name when it has one, otherwise by its content.

        Args:
            data: Artifact bytes
            file_name: Name of the artifact, if known

        Returns:
            Decoded bundle and whether the artifact was an archive

        Raises:
            UnreadableArtifactError: If nothing in the artifact is recognized
            SchemaVersionUnsupportedError: If an archive manifest is incompatible
            DecodeError: If a recognized file does not decode
        """
        unpacked = self.packager.unpack(data, file_name)

        if unpacked.is_archive:
            manifest_data = unpacked.files.get(MANIFEST_FILE_NAME)
            if manifest_data is not None:
                read_manifest(manifest_data, self.supported_manifest_versions)
            return codec.decode_bundle(unpacked.files), True

        ((name, raw),) = unpacked.files.items()
        if name != CATEGORIES_FILE_NAME:
            data_type = (
                DataType.from_file_name(name)
                or data_type_from_single_file_name(name)
                or codec.detect_data_type(raw)
            )
            if data_type is None:
                raise UnreadableArtifactError(
                    f"Cannot determine the data type of {name or 'the artifact'}"
                )
            name = data_type.file_name
        return codec.decode_bundle({name: raw}), False

    async def preview_import(
        self, data: bytes, file_name: str | None = None
    ) -> ImportPreview:
        """Describe what importing an artifact would do. Never writes.

        Args:
            data: Artifact bytes
            file_name: Name of the artifact, if known

        Returns:
            Import preview
        """
        bundle, is_archive = self.read_artifact(data, file_name)
        content = bundle.content

        data_types: dict[DataType, int] = {}
        total_items = 0
        duplicate_items = 0
        for data_type in bundle.present_types:
            data_types[data_type] = content.count(data_type)
            if data_type is DataType.PREFERENCES:
                continue
            repository = self.store.repository(data_type)
            for record in content.records(data_type):
                total_items += 1
                if await repository.exists(record.id):
                    duplicate_items += 1

        return ImportPreview(
            data_types=data_types,
            total_items=total_items,
            new_items=total_items - duplicate_items,
            duplicate_items=duplicate_items,
            is_archive=is_archive,
        )

    async def execute_import(
        self,
        data: bytes,
        file_name: str | None = None,
        type_filter: Collection[DataType] | None = None,
    ) -> RestoreSummary:
        """Import an artifact.

        The whole artifact is decoded before the first write.

        Args:
            data: Artifact bytes
            file_name: Name of the artifact, if known
            type_filter: Data types to import (default: all present)

        Returns:
            Restore summary
        """
        bundle, _ = self.read_artifact(data, file_name)
        return await self.import_content(
            bundle.content, type_filter=type_filter, present_types=bundle.present_types
        )

    async def import_selection(
        self,
        target: LocalFileTarget,
        file_path: str,
        type_filter: Collection[DataType] | None = None,
    ) -> RestoreSummary:
        """Read an artifact from a local target and import it."""
        data = target.read_all(file_path)
        return await self.execute_import(data, file_path, type_filter)

    async def restore_from_remote(
        self,
        locator: str | None = None,
        type_filter: Collection[DataType] | None = None,
    ) -> tuple[str, RestoreSummary]:
        """Download a remote backup and import it.

        Args:
            locator: Backup locator (default: the newest backup)
            type_filter: Data types to import (default: all)

        Returns:
            Locator that was restored and the restore summary

        Raises:
            ConfigurationError: If the remote store is not configured
            NotFoundError: If the store holds no backup
            TransportError: If the download fails
        """
        if self.remote_store is None or not self.remote_store.is_configured():
            raise ConfigurationError(
                "Remote backup store is not configured",
                kind=ErrorKind.REMOTE_NOT_CONFIGURED,
            )
        if locator is None:
            backups = await self.remote_store.list_backups()
            if not backups:
                raise NotFoundError("The remote backup store holds no backups")
            locator = backups[0]

        logger.info(f"Restoring remote backup {locator}")
        content = await self.remote_store.download(locator)
        return locator, await self.import_content(content, type_filter=type_filter)

    async def import_content(
        self,
        content: BackupContent,
        type_filter: Collection[DataType] | None = None,
        present_types: Collection[DataType] | None = None,
    ) -> RestoreSummary:
        """Merge decoded content into the store.

        Each record is inserted under its own id unless that id already
        exists. A failing data type is logged and abandoned; types already
        imported stay imported.

        Args:
            content: Decoded backup content
            type_filter: Data types to import (default: all)
            present_types: Data types the source actually carried

        Returns:
            Restore summary
        """
        imported: dict[DataType, int] = {}
        failed: dict[DataType, int] = {}
        skipped_duplicates = 0

        imported_categories = await self._import_categories(content)

        for data_type in IMPORT_ORDER:
            if type_filter is not None and data_type not in type_filter:
                continue
            if present_types is not None and data_type not in present_types:
                continue

            records = content.records(data_type)
            repository = self.store.repository(data_type)
            inserted = 0
            skipped = 0
            try:
                for record in records:
                    if await self._insert_if_absent(repository, record):
                        inserted += 1
                    else:
                        skipped += 1
            except Exception as e:
                failed[data_type] = len(records) - inserted - skipped
                logger.error(
                    f"Import of {data_type.value} abandoned after {inserted} records: {e}",
                    exc_info=True,
                )
            imported[data_type] = inserted
            skipped_duplicates += skipped
            logger.info(
                f"Imported {inserted} {data_type.value}, skipped {skipped} duplicates"
            )

        if content.preferences:
            logger.info("Preferences in the artifact are not restored")

        summary = RestoreSummary.from_counts(
            imported,
            skipped_duplicates=skipped_duplicates,
            imported_categories=imported_categories,
            failed_by_type=failed,
        )
        logger.info(
            f"Import finished: {summary.total_imported} imported, "
            f"{summary.skipped_duplicates} skipped, {summary.total_failed} failed"
        )
        return summary

    async def _import_categories(self, content: BackupContent) -> int:
        """Import categories ahead of the records that reference them.

        Categories are not a selectable type, so they are imported whatever
        the filter and reported separately.
        """
        inserted = 0
        try:
            for category in content.categories:
                if await self._insert_if_absent(self.store.categories, category):
                    inserted += 1
        except Exception as e:
            logger.error(f"Import of categories abandoned: {e}", exc_info=True)
        return inserted

    @staticmethod
    async def _insert_if_absent(repository: EntityRepository, record: BackupRecord) -> bool:
        """Insert a record unless its id is taken.

        Returns:
            True if inserted, False if it was a duplicate
        """
        if await repository.exists(record.id):
            return False
        try:
            await repository.insert(record)
        except PersistenceError:
            # Inserted concurrently since the existence check
            if await repository.exists(record.id):
                return False
            raise
        return True
