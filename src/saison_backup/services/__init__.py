"""Service layer for export and import pipelines."""

from saison_backup.services.course_export_service import CourseExportService
from saison_backup.services.course_import_service import CourseImportService
from saison_backup.services.export_service import ExportService
from saison_backup.services.import_service import ImportService

__all__ = ["ExportService", "ImportService", "CourseExportService", "CourseImportService"]
