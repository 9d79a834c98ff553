"""Course export: semesters with their schedule configuration as one document."""

import logging
from datetime import date

from saison_backup.config.settings import Settings
from saison_backup.db.repositories.entity_repository import EntityStore
from saison_backup.db.repositories.settings_repository import SettingsRepository
from saison_backup.exceptions import NotFoundError, ValidationError
from saison_backup.models.backup import DataType, ExportSummary
from saison_backup.models.course_export import CourseExportData, ExportMetadata
from saison_backup.models.entities import now_millis
from saison_backup.services.course_mapping import to_semester_export
from saison_backup.services.delivery import LocalFileTarget
from saison_backup.utils.naming import suggested_course_file_name

logger = logging.getLogger(__name__)


class CourseExportService:
    """Service for exporting semesters and their courses."""

    def __init__(
        self,
        store: EntityStore,
        settings_repo: SettingsRepository,
        settings: Settings,
    ) -> None:
        """Initialize course export service.

        Args:
            store: Entity repositories
            settings_repo: Settings repository holding the course settings
            settings: Application settings (format version and metadata)
        """
        self.store = store
        self.settings_repo = settings_repo
        self.settings = settings

    async def build_document(
        self, semester_ids: list[int], today: date | None = None
    ) -> CourseExportData:
        """Assemble the export document for the given semesters.

        Args:
            semester_ids: Semesters to export, in document order
            today: Reference day for the current week (default: today)

        Returns:
            Course export document

        Raises:
            ValidationError: If no semester is selected
            NotFoundError: If a semester does not exist
        """
        if not semester_ids:
            raise ValidationError("No semester selected for export")

        course_settings = await self.settings_repo.get_course_settings()
        all_courses = await self.store.courses.get_all()

        semesters = []
        for semester_id in semester_ids:
            semester = await self.store.semesters.get_by_id(semester_id)
            if semester is None:
                raise NotFoundError(f"Semester not found: {semester_id}")
            courses = [c for c in all_courses if c.semester_id == semester_id]
            semesters.append(
                to_semester_export(semester, course_settings, courses, today)
            )

        return CourseExportData(
            metadata=ExportMetadata(
                version=self.settings.course_export_version,
                export_time=now_millis(),
                app_version=self.settings.app_version,
                device_info=self.settings.device_info,
            ),
            semesters=semesters,
        )

    @staticmethod
    def encode_document(document: CourseExportData) -> str:
        return document.model_dump_json(by_alias=True, indent=2)

    async def export_semesters(
        self,
        target: LocalFileTarget,
        semester_ids: list[int],
        file_name: str | None = None,
    ) -> ExportSummary:
        """Export semesters to one course export document.

        Args:
            target: Local file target
            semester_ids: Semesters to export
            file_name: Output name (default: derived from the first semester)

        Returns:
            Export summary counting semester blocks and course records
        """
        document = await self.build_document(semester_ids)
        data = self.encode_document(document).encode("utf-8")

        name = file_name or suggested_course_file_name(document.semesters[0].semester_info.name)
        path = target.write(name, data)

        course_count = sum(len(s.courses) for s in document.semesters)
        logger.info(
            f"Exported {len(document.semesters)} semesters with {course_count} courses to {path}"
        )
        return ExportSummary(
            total_items=len(document.semesters) + course_count,
            exported_types=[DataType.SEMESTERS, DataType.COURSES],
            file_path=str(path),
            file_size=len(data),
        )
