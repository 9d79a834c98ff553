"""Whole-store backup MCP tools."""

from typing import Any

from saison_backup.models.backup import (
    BackupPreferences,
    DataType,
    ExportSummary,
    ImportPreview,
    RestoreSummary,
)
from saison_backup.services.delivery import LocalFileTarget
from saison_backup.services.export_service import ExportService
from saison_backup.services.import_service import ImportService
from saison_backup.tools import error_response_for, parse_data_types


def _export_summary_dict(summary: ExportSummary) -> dict[str, Any]:
    return {
        "total_items": summary.total_items,
        "exported_types": [dt.value for dt in summary.exported_types],
        "file_path": summary.file_path,
        "file_size": summary.file_size,
    }


def _preview_dict(preview: ImportPreview) -> dict[str, Any]:
    return {
        "data_types": {dt.value: count for dt, count in preview.data_types.items()},
        "total_items": preview.total_items,
        "new_items": preview.new_items,
        "duplicate_items": preview.duplicate_items,
        "is_archive": preview.is_archive,
    }


def _restore_summary_dict(summary: RestoreSummary) -> dict[str, Any]:
    return {
        "imported": {
            dt.value: summary.imported(dt)
            for dt in DataType
            if dt is not DataType.PREFERENCES
        },
        "imported_categories": summary.imported_categories,
        "skipped_duplicates": summary.skipped_duplicates,
        "total_imported": summary.total_imported,
        "failed_by_type": {dt.value: count for dt, count in summary.failed_by_type.items()},
        "total_failed": summary.total_failed,
    }


def _preferences_from(data_types: list[str] | None, stored: BackupPreferences) -> BackupPreferences:
    parsed = parse_data_types(data_types)
    if parsed is None:
        return stored
    return BackupPreferences.only(*parsed)


async def backup_export_type(
    service: ExportService,
    target: LocalFileTarget,
    data_type: str,
    file_name: str | None = None,
) -> dict[str, Any]:
    """Export one data type to a single JSON file.

    Args:
        service: Export service instance
        target: Local file target
        data_type: Data type display key (e.g. "tasks")
        file_name: Output file name relative to the export directory

    Returns:
        Export summary
    """
    try:
        parsed = parse_data_types([data_type])[0]
        summary = await service.export_single_type(target, parsed, file_name)
    except Exception as e:
        return error_response_for(e, "backup_export_type")
    return _export_summary_dict(summary)


async def backup_export_selection(
    service: ExportService,
    target: LocalFileTarget,
    data_types: list[str] | None = None,
    file_name: str | None = None,
    remember_selection: bool = False,
) -> dict[str, Any]:
    """Export several data types to one archive.

    Args:
        service: Export service instance
        target: Local file target
        data_types: Data types to include (default: the saved selection)
        file_name: Output file name relative to the export directory
        remember_selection: Save the selection as the new default

    Returns:
        Export summary
    """
    try:
        preferences = _preferences_from(data_types, await service.get_export_preferences())
        if remember_selection:
            await service.save_export_preferences(preferences)
        summary = await service.export_selection(target, preferences, file_name)
    except Exception as e:
        return error_response_for(e, "backup_export_selection")
    return _export_summary_dict(summary)


async def backup_export_remote(
    service: ExportService,
    data_types: list[str] | None = None,
) -> dict[str, Any]:
    """Create a backup in the remote backup store.

    Args:
        service: Export service instance
        data_types: Data types to include (default: the saved selection)

    Returns:
        Export summary; ``file_path`` is the backup locator
    """
    try:
        preferences = _preferences_from(data_types, await service.get_export_preferences())
        summary = await service.export_to_remote(preferences)
    except Exception as e:
        return error_response_for(e, "backup_export_remote")
    return _export_summary_dict(summary)


async def backup_preview_import(
    service: ImportService,
    target: LocalFileTarget,
    file_path: str,
) -> dict[str, Any]:
    """Preview what importing an artifact would do, without writing.

    Args:
        service: Import service instance
        target: Local file target
        file_path: Artifact path relative to the export directory

    Returns:
        Import preview
    """
    try:
        preview = await service.preview_import(target.read_all(file_path), file_path)
    except Exception as e:
        return error_response_for(e, "backup_preview_import")
    return _preview_dict(preview)


async def backup_import(
    service: ImportService,
    target: LocalFileTarget,
    file_path: str,
    data_types: list[str] | None = None,
) -> dict[str, Any]:
    """Import an artifact, skipping records whose id already exists.

    Args:
        service: Import service instance
        target: Local file target
        file_path: Artifact path relative to the export directory
        data_types: Data types to import (default: all present)

    Returns:
        Restore summary
    """
    try:
        summary = await service.import_selection(
            target, file_path, parse_data_types(data_types)
        )
    except Exception as e:
        return error_response_for(e, "backup_import")
    return _restore_summary_dict(summary)


async def backup_restore_remote(
    service: ImportService,
    locator: str | None = None,
    data_types: list[str] | None = None,
) -> dict[str, Any]:
    """Restore a backup from the remote backup store.

    Args:
        service: Import service instance
        locator: Backup locator (default: the newest backup)
        data_types: Data types to import (default: all)

    Returns:
        Restore summary with the locator used
    """
    try:
        locator, summary = await service.restore_from_remote(
            locator, parse_data_types(data_types)
        )
    except Exception as e:
        return error_response_for(e, "backup_restore_remote")
    return {"locator": locator, **_restore_summary_dict(summary)}


async def backup_data_counts(service: ExportService) -> dict[str, Any]:
    """Current number of records per data type.

    Args:
        service: Export service instance

    Returns:
        Counts keyed by data type
    """
    try:
        counts = await service.get_data_counts()
    except Exception as e:
        return error_response_for(e, "backup_data_counts")
    return {"counts": {dt.value: count for dt, count in counts.items()}}
