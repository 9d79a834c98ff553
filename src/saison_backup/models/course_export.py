"""Course export document schema and course import models."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HH_MM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ExportModel(BaseModel):
    """Base for every part of a course export document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ExportMetadata(ExportModel):
    version: str
    export_time: int
    app_version: str = ""
    device_info: str = ""


class SemesterInfo(ExportModel):
    name: str
    start_date: date
    end_date: date
    current_week: int = 1
    total_weeks: int


class PeriodSettingsData(ExportModel):
    total_periods: int
    period_duration_minutes: int
    break_duration_minutes: int
    first_period_start_time: str = Field(default="08:00", pattern=HH_MM_PATTERN)
    lunch_break_after_period: int | None = None
    lunch_break_duration_minutes: int | None = None


class DisplaySettingsData(ExportModel):
    show_weekend: bool = True
    time_format_24_hour: bool = True
    show_period_number: bool = True
    compact_mode: bool = False
    grid_cell_height: int | None = None


class WeekPatternData(ExportModel):
    """Self-contained recurrence description; ``custom_weeks`` only for CUSTOM."""

    type: str = "ALL"
    custom_weeks: list[int] | None = None


class CourseData(ExportModel):
    """Course record without identifiers or semester binding."""

    name: str
    teacher: str | None = None
    location: str | None = None
    day_of_week: int = Field(ge=1, le=7)
    start_period: int = 1
    end_period: int = 1
    start_time: str = Field(pattern=HH_MM_PATTERN)
    end_time: str = Field(pattern=HH_MM_PATTERN)
    week_pattern: WeekPatternData = Field(default_factory=WeekPatternData)
    color: str = "#FF6200EE"
    notes: str | None = None


class SemesterExportData(ExportModel):
    semester_info: SemesterInfo
    period_settings: PeriodSettingsData
    display_settings: DisplaySettingsData = Field(default_factory=DisplaySettingsData)
    courses: list[CourseData] = Field(default_factory=list)


class CourseExportData(ExportModel):
    """Top-level course export document."""

    metadata: ExportMetadata
    semesters: list[SemesterExportData] = Field(default_factory=list)


class ConflictInfo(BaseModel):
    """Differences between an incoming semester and the receiving store."""

    has_name_conflict: bool = False
    has_period_settings_conflict: bool = False
    has_display_settings_conflict: bool = False
    existing_conflicting_name: str | None = None

    @property
    def has_any_conflict(self) -> bool:
        return (
            self.has_name_conflict
            or self.has_period_settings_conflict
            or self.has_display_settings_conflict
        )


class ImportOptions(BaseModel):
    """Caller choices for a semester import.

    ``semester_name`` of None means the suggested name from the preview.
    """

    semester_name: str | None = None
    apply_period_settings: bool = False
    apply_display_settings: bool = False
    semester_index: int = Field(default=0, ge=0)


class SemesterImportPreview(BaseModel):
    semester_index: int
    semester_name: str
    suggested_name: str
    course_count: int
    conflicts: ConflictInfo
    apply_period_settings: bool
    apply_display_settings: bool
    validation_error: str | None = None


class CourseImportPreview(BaseModel):
    metadata: ExportMetadata
    semesters: list[SemesterImportPreview]


class CourseImportResult(BaseModel):
    semester_id: int
    semester_name: str
    course_count: int
