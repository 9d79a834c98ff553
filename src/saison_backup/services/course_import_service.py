"""Course import: re-key an exported semester into the receiving store."""

import logging

from pydantic import ValidationError as PydanticValidationError

from saison_backup.config.settings import Settings
from saison_backup.db.repositories.entity_repository import EntityStore
from saison_backup.db.repositories.settings_repository import SettingsRepository
from saison_backup.exceptions import (
    DecodeError,
    SchemaVersionUnsupportedError,
    ValidationError,
)
from saison_backup.models.course_export import (
    ConflictInfo,
    CourseData,
    CourseExportData,
    CourseImportPreview,
    CourseImportResult,
    ImportOptions,
    SemesterExportData,
    SemesterImportPreview,
)
from saison_backup.models.entities import Semester
from saison_backup.services.conflict_detector import detect_conflicts
from saison_backup.services.course_mapping import (
    apply_display_settings,
    apply_period_settings,
    to_course,
    to_semester,
)
from saison_backup.utils.versions import is_supported_version

logger = logging.getLogger(__name__)


def validate_semester(semester: SemesterExportData) -> str | None:
    """Semantic checks on one semester block.

    Returns:
        Reason the semester cannot be imported, or None if it is valid
    """
    info = semester.semester_info
    if not info.name.strip():
        return "Semester name must not be blank"
    if info.total_weeks <= 0:
        return f"Total weeks must be positive (got {info.total_weeks})"
    if info.end_date < info.start_date:
        return "Semester end date is before its start date"
    period = semester.period_settings
    if period.total_periods <= 0:
        return "Periods per day must be positive"
    if period.period_duration_minutes <= 0:
        return f"Period duration must be positive (got {period.period_duration_minutes})"
    if period.break_duration_minutes < 0:
        return f"Break duration must not be negative (got {period.break_duration_minutes})"
    lunch = period.lunch_break_duration_minutes
    if lunch is not None and lunch < 0:
        return "Lunch break duration must not be negative"
    return None


class CourseImportService:
    """Service for previewing and importing course export documents."""

    def __init__(
        self,
        store: EntityStore,
        settings_repo: SettingsRepository,
        settings: Settings,
    ) -> None:
        """Initialize course import service.

        Args:
            store: Entity repositories
            settings_repo: Settings repository holding the course settings
            settings: Application settings (supported versions, name suffix)
        """
        self.store = store
        self.settings_repo = settings_repo
        self.settings = settings

    def parse_document(self, data: str | bytes) -> CourseExportData:
        """Decode a course export document and check its version.

        Raises:
            DecodeError: If the document is malformed or mis-shaped
            SchemaVersionUnsupportedError: If the version is incompatible
            ValidationError: If the document holds no semester
        """
        try:
            document = CourseExportData.model_validate_json(data)
        except PydanticValidationError as e:
            if any(err["type"] == "json_invalid" for err in e.errors()):
                raise DecodeError(
                    "Course export is not valid JSON", DecodeError.MALFORMED
                ) from e
            raise DecodeError(
                f"Course export does not match its schema: {e.errors()[0]['msg']}",
                DecodeError.TYPE_MISMATCH,
            ) from e

        supported = self.settings.supported_course_export_versions
        if not is_supported_version(document.metadata.version, supported):
            raise SchemaVersionUnsupportedError(document.metadata.version, supported)

        if not document.semesters:
            raise ValidationError("Course export contains no semester")
        return document

    async def preview_import(self, data: str | bytes) -> CourseImportPreview:
        """Conflicts, suggested name and default choices for every semester.

        Never writes.
        """
        document = self.parse_document(data)
        existing = await self.store.semesters.get_all()
        current = await self.settings_repo.get_course_settings()

        previews = []
        for index, semester in enumerate(document.semesters):
            conflicts = detect_conflicts(existing, current, semester)
            previews.append(
                SemesterImportPreview(
                    semester_index=index,
                    semester_name=semester.semester_info.name,
                    suggested_name=self._suggested_name(semester, conflicts),
                    course_count=len(semester.courses),
                    conflicts=conflicts,
                    apply_period_settings=conflicts.has_period_settings_conflict,
                    apply_display_settings=conflicts.has_display_settings_conflict,
                    validation_error=validate_semester(semester),
                )
            )
        return CourseImportPreview(metadata=document.metadata, semesters=previews)

    async def import_semester(
        self, data: str | bytes, options: ImportOptions | None = None
    ) -> CourseImportResult:
        """Import one semester of a course export document.

        A new semester is always created; existing semesters and courses are
        never modified. Every course is bound to the new semester and takes
        its date range.

        Args:
            data: Course export document
            options: Semester choice, name and settings to apply

        Returns:
            Import result

        Raises:
            ValidationError: If the chosen semester fails validation
        """
        options = options or ImportOptions()
        document = self.parse_document(data)

        if options.semester_index >= len(document.semesters):
            raise ValidationError(
                f"Semester index {options.semester_index} is out of range "
                f"(document has {len(document.semesters)})"
            )
        incoming = document.semesters[options.semester_index]

        error = validate_semester(incoming)
        if error:
            raise ValidationError(error)

        existing = await self.store.semesters.get_all()
        current = await self.settings_repo.get_course_settings()
        conflicts = detect_conflicts(existing, current, incoming)

        name = (options.semester_name or self._suggested_name(incoming, conflicts)).strip()
        if not name:
            raise ValidationError("Semester name must not be blank")

        settings = current
        if options.apply_period_settings:
            settings = apply_period_settings(settings, incoming.period_settings)
        if options.apply_display_settings:
            settings = apply_display_settings(settings, incoming.display_settings)

        logger.info(f"Importing semester '{name}' with {len(incoming.courses)} courses")
        semester = await self.store.semesters.insert_new(
            to_semester(incoming.semester_info, name)
        )
        await self._insert_courses(semester, incoming.courses)

        if settings != current:
            await self.settings_repo.save_course_settings(settings)

        logger.info(f"Imported semester {semester.id} with {len(incoming.courses)} courses")
        return CourseImportResult(
            semester_id=semester.id,
            semester_name=semester.name,
            course_count=len(incoming.courses),
        )

    async def _insert_courses(self, semester: Semester, courses: list[CourseData]) -> None:
        """Insert the courses of a new semester, or remove the semester again.

        On failure every course inserted so far and the semester itself are
        deleted before the error propagates.
        """
        inserted: list[int] = []
        try:
            for course_data in courses:
                course = await self.store.courses.insert_new(to_course(course_data, semester))
                inserted.append(course.id)
        except Exception:
            logger.error(
                f"Course import into semester {semester.id} failed after "
                f"{len(inserted)} courses; removing the semester"
            )
            for course_id in inserted:
                await self.store.courses.delete(course_id)
            await self.store.semesters.delete(semester.id)
            raise

    def _suggested_name(self, semester: SemesterExportData, conflicts: ConflictInfo) -> str:
        name = semester.semester_info.name
        if conflicts.has_name_conflict:
            return name + self.settings.imported_semester_suffix
        return name
