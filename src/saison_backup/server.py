"""MCP server implementation for saison-backup."""

from typing import Any

from mcp.server.fastmcp import FastMCP

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
from saison_backup.tools import backup_tools, course_tools

# Initialize FastMCP server
mcp = FastMCP("saison-backup")

# Global service instances (initialized in main)
export_service: ExportService | None = None
import_service: ImportService | None = None
course_export_service: CourseExportService | None = None
course_import_service: CourseImportService | None = None
local_target: LocalFileTarget | None = None
db: Database | None = None


async def initialize_services(settings: Settings) -> None:
    """Initialize all services and database.

    Args:
        settings: Application settings
    """
    global export_service, import_service, course_export_service
    global course_import_service, local_target, db

    # Initialize database
    db = Database(settings.database_path)
    await db.connect()
    await db.migrate()

    store = EntityStore(db)
    settings_repo = SettingsRepository(db)
    packager = ArchivePackager()
    remote_store = DirectoryBackupStore(
        settings.remote_backup_dir,
        manifest_version=settings.backup_manifest_version,
        supported_versions=settings.supported_backup_manifest_versions,
        packager=packager,
    )

    local_target = LocalFileTarget(settings.export_dir)
    export_service = ExportService(store, settings_repo, packager, remote_store)
    import_service = ImportService(
        store, packager, remote_store, settings.supported_backup_manifest_versions
    )
    course_export_service = CourseExportService(store, settings_repo, settings)
    course_import_service = CourseImportService(store, settings_repo, settings)


async def shutdown_services() -> None:
    """Shutdown all services and close database."""
    global db
    if db:
        await db.close()
        db = None


# Backup Tools
@mcp.tool()
async def backup_export_type(data_type: str, file_name: str | None = None) -> dict[str, Any]:
    """Export one data type to a single JSON file.

    Args:
        data_type: tasks/courses/events/routines/subscriptions/pomodoro_sessions/
            semesters/preferences
        file_name: Output file name relative to the export directory

    Returns:
        Export summary with file path, size and item count
    """
    if not export_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_export_type(
        export_service, local_target, data_type, file_name
    )


@mcp.tool()
async def backup_export_selection(
    data_types: list[str] | None = None,
    file_name: str | None = None,
    remember_selection: bool = False,
) -> dict[str, Any]:
    """Export several data types to one zip archive.

    Categories are always included when any exist.

    Args:
        data_types: Data types to include (default: the saved selection)
        file_name: Output file name relative to the export directory
        remember_selection: Save the selection as the new default

    Returns:
        Export summary with file path, size and item count
    """
    if not export_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_export_selection(
        export_service, local_target, data_types, file_name, remember_selection
    )


@mcp.tool()
async def backup_export_remote(data_types: list[str] | None = None) -> dict[str, Any]:
    """Create a backup in the remote backup store.

    Args:
        data_types: Data types to include (default: the saved selection)

    Returns:
        Export summary whose file_path is the backup locator
    """
    if not export_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_export_remote(export_service, data_types)


@mcp.tool()
async def backup_preview_import(file_path: str) -> dict[str, Any]:
    """Preview an import: per-type counts, new and duplicate records.

    Args:
        file_path: Artifact path relative to the export directory

    Returns:
        Import preview
    """
    if not import_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_preview_import(import_service, local_target, file_path)


@mcp.tool()
async def backup_import(
    file_path: str, data_types: list[str] | None = None
) -> dict[str, Any]:
    """Import a single-type file or backup archive.

    Records whose id already exists are skipped.

    Args:
        file_path: Artifact path relative to the export directory
        data_types: Data types to import (default: all present)

    Returns:
        Restore summary
    """
    if not import_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_import(import_service, local_target, file_path, data_types)


@mcp.tool()
async def backup_restore_remote(
    locator: str | None = None, data_types: list[str] | None = None
) -> dict[str, Any]:
    """Restore a backup from the remote backup store.

    Args:
        locator: Backup locator (default: the newest backup)
        data_types: Data types to import (default: all)

    Returns:
        Restore summary with the locator used
    """
    if not import_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_restore_remote(import_service, locator, data_types)


@mcp.tool()
async def backup_data_counts() -> dict[str, Any]:
    """Current number of records per data type.

    Returns:
        Counts keyed by data type
    """
    if not export_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_data_counts(export_service)


# Course Tools
@mcp.tool()
async def course_export_semesters(
    semester_ids: list[int], file_name: str | None = None
) -> dict[str, Any]:
    """Export semesters with their courses and schedule settings.

    Args:
        semester_ids: Semesters to export
        file_name: Output file name relative to the export directory

    Returns:
        Export summary
    """
    if not course_export_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await course_tools.course_export_semesters(
        course_export_service, local_target, semester_ids, file_name
    )


@mcp.tool()
async def course_preview_import(file_path: str) -> dict[str, Any]:
    """Preview a course import: conflicts and suggested semester names.

    Args:
        file_path: Document path relative to the export directory

    Returns:
        Per-semester preview
    """
    if not course_import_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await course_tools.course_preview_import(
        course_import_service, local_target, file_path
    )


@mcp.tool()
async def course_import_semester(
    file_path: str,
    semester_index: int = 0,
    semester_name: str | None = None,
    apply_period_settings: bool = False,
    apply_display_settings: bool = False,
) -> dict[str, Any]:
    """Import one semester of a course export as a new semester.

    Args:
        file_path: Document path relative to the export directory
        semester_index: Which semester of the document to import
        semester_name: Name for the new semester (default: suggested name)
        apply_period_settings: Overwrite the current period settings
        apply_display_settings: Overwrite the current display settings

    Returns:
        New semester id, name and imported course count
    """
    if not course_import_service or not local_target:
        raise RuntimeError("Services not initialized")
    return await course_tools.course_import_semester(
        course_import_service,
        local_target,
        file_path,
        semester_index,
        semester_name,
        apply_period_settings,
        apply_display_settings,
    )


def create_server() -> FastMCP:
    """Create and return MCP server instance.

    Returns:
        FastMCP server instance
    """
    return mcp
