"""Pytest configuration and fixtures for saison-backup tests."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from saison_backup.config.settings import Settings
from saison_backup.db.database import Database
from saison_backup.db.repositories.entity_repository import EntityStore
from saison_backup.db.repositories.settings_repository import SettingsRepository
from saison_backup.services.archive import ArchivePackager
from saison_backup.services.course_export_service import CourseExportService
from saison_backup.services.course_import_service import CourseImportService
from saison_backup.services.delivery import DirectoryBackupStore, LocalFileTarget
from saison_backup.services.export_service import ExportService
from saison_backup.services.import_service import ImportService


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Test configuration settings."""
    return Settings(
        database_path=":memory:",
        export_dir=str(tmp_path / "exports"),
        remote_backup_dir=str(tmp_path / "remote"),
        app_version="1.0.0",
        device_info="pytest",
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def memory_db() -> AsyncIterator[Database]:
    """In-memory database for fast tests."""
    db = Database(database_path=":memory:")
    await db.connect()
    await db.migrate()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def other_db() -> AsyncIterator[Database]:
    """Second in-memory database, used as a fresh receiving store."""
    db = Database(database_path=":memory:")
    await db.connect()
    await db.migrate()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def entity_store(memory_db: Database) -> EntityStore:
    """Entity repositories."""
    return EntityStore(memory_db)


@pytest_asyncio.fixture
async def settings_repo(memory_db: Database) -> SettingsRepository:
    """Settings repository."""
    return SettingsRepository(memory_db)


@pytest_asyncio.fixture
async def other_store(other_db: Database) -> EntityStore:
    """Entity repositories of the fresh receiving store."""
    return EntityStore(other_db)


@pytest.fixture
def packager() -> ArchivePackager:
    """Archive packager."""
    return ArchivePackager()


@pytest.fixture
def local_target(test_settings: Settings) -> LocalFileTarget:
    """Local file target rooted at the test export directory."""
    return LocalFileTarget(test_settings.export_dir)


@pytest.fixture
def remote_store(test_settings: Settings, packager: ArchivePackager) -> DirectoryBackupStore:
    """Directory-backed remote backup store."""
    return DirectoryBackupStore(
        test_settings.remote_backup_dir,
        manifest_version=test_settings.backup_manifest_version,
        supported_versions=test_settings.supported_backup_manifest_versions,
        packager=packager,
    )


@pytest_asyncio.fixture
async def export_service(
    entity_store: EntityStore,
    settings_repo: SettingsRepository,
    packager: ArchivePackager,
    remote_store: DirectoryBackupStore,
) -> ExportService:
    """Export service."""
    return ExportService(entity_store, settings_repo, packager, remote_store)


@pytest_asyncio.fixture
async def import_service(
    entity_store: EntityStore,
    packager: ArchivePackager,
    remote_store: DirectoryBackupStore,
) -> ImportService:
    """Import service writing into the primary store."""
    return ImportService(entity_store, packager, remote_store)


@pytest_asyncio.fixture
async def other_import_service(
    other_store: EntityStore,
    packager: ArchivePackager,
    remote_store: DirectoryBackupStore,
) -> ImportService:
    """Import service writing into the fresh receiving store."""
    return ImportService(other_store, packager, remote_store)


@pytest_asyncio.fixture
async def course_export_service(
    entity_store: EntityStore,
    settings_repo: SettingsRepository,
    test_settings: Settings,
) -> CourseExportService:
    """Course export service."""
    return CourseExportService(entity_store, settings_repo, test_settings)


@pytest_asyncio.fixture
async def course_import_service(
    entity_store: EntityStore,
    settings_repo: SettingsRepository,
    test_settings: Settings,
) -> CourseImportService:
    """Course import service."""
    return CourseImportService(entity_store, settings_repo, test_settings)
