"""Course export/import MCP tools."""

from typing import Any

from saison_backup.models.course_export import ImportOptions
from saison_backup.services.course_export_service import CourseExportService
from saison_backup.services.course_import_service import CourseImportService
from saison_backup.services.delivery import LocalFileTarget
from saison_backup.tools import create_error_response, error_response_for


async def course_export_semesters(
    service: CourseExportService,
    target: LocalFileTarget,
    semester_ids: list[int],
    file_name: str | None = None,
) -> dict[str, Any]:
    """Export semesters with their courses and schedule settings.

    Args:
        service: Course export service instance
        target: Local file target
        semester_ids: Semesters to export
        file_name: Output file name relative to the export directory

    Returns:
        Export summary
    """
    if not semester_ids:
        return create_error_response(
            message="semester_ids cannot be empty",
            error_type="ValidationError",
        )

    try:
        summary = await service.export_semesters(target, semester_ids, file_name)
    except Exception as e:
        return error_response_for(e, "course_export_semesters")
    return {
        "total_items": summary.total_items,
        "file_path": summary.file_path,
        "file_size": summary.file_size,
    }


async def course_preview_import(
    service: CourseImportService,
    target: LocalFileTarget,
    file_path: str,
) -> dict[str, Any]:
    """Show conflicts and suggested choices for a course export document.

    Args:
        service: Course import service instance
        target: Local file target
        file_path: Document path relative to the export directory

    Returns:
        Per-semester preview
    """
    try:
        preview = await service.preview_import(target.read_all(file_path))
    except Exception as e:
        return error_response_for(e, "course_preview_import")
    return preview.model_dump(mode="json")


async def course_import_semester(
    service: CourseImportService,
    target: LocalFileTarget,
    file_path: str,
    semester_index: int = 0,
    semester_name: str | None = None,
    apply_period_settings: bool = False,
    apply_display_settings: bool = False,
) -> dict[str, Any]:
    """Import one semester as a new semester with its courses.

    Args:
        service: Course import service instance
        target: Local file target
        file_path: Document path relative to the export directory
        semester_index: Which semester of the document to import
        semester_name: Name for the new semester (default: suggested name)
        apply_period_settings: Overwrite the current period settings
        apply_display_settings: Overwrite the current display settings

    Returns:
        New semester id, name and imported course count
    """
    if semester_index < 0:
        return create_error_response(
            message="semester_index must be >= 0",
            error_type="ValidationError",
        )

    try:
        options = ImportOptions(
            semester_name=semester_name,
            apply_period_settings=apply_period_settings,
            apply_display_settings=apply_display_settings,
            semester_index=semester_index,
        )
        result = await service.import_semester(target.read_all(file_path), options)
    except Exception as e:
        return error_response_for(e, "course_import_semester")
    return result.model_dump()
