"""Conversions between stored course data and the course export schema."""

from datetime import date

from saison_backup.models.course_export import (
    CourseData,
    DisplaySettingsData,
    PeriodSettingsData,
    SemesterExportData,
    SemesterInfo,
    WeekPatternData,
)
from saison_backup.models.entities import (
    Course,
    CourseSettings,
    Semester,
    WeekPattern,
)
from saison_backup.utils.schedule import (
    current_week,
    format_color,
    format_hhmm,
    parse_color,
    parse_hhmm,
)

DEFAULT_LUNCH_BREAK_DURATION = 90


def to_semester_info(semester: Semester, today: date | None = None) -> SemesterInfo:
    return SemesterInfo(
        name=semester.name,
        start_date=semester.start_date,
        end_date=semester.end_date,
        current_week=current_week(semester.start_date, today),
        total_weeks=semester.total_weeks,
    )


def to_period_settings(settings: CourseSettings) -> PeriodSettingsData:
    return PeriodSettingsData(
        total_periods=settings.total_periods,
        period_duration_minutes=settings.period_duration,
        break_duration_minutes=settings.break_duration,
        first_period_start_time=format_hhmm(settings.first_period_start_time),
        lunch_break_after_period=settings.lunch_break_after_period,
        lunch_break_duration_minutes=settings.lunch_break_duration,
    )


def to_display_settings(settings: CourseSettings) -> DisplaySettingsData:
    return DisplaySettingsData(
        show_weekend=settings.show_weekends,
        grid_cell_height=settings.grid_cell_height,
    )


def to_course_data(course: Course) -> CourseData:
    """Strip identifiers and the semester binding from a course."""
    start_period = course.period_start or 1
    custom_weeks = course.custom_weeks if course.week_pattern is WeekPattern.CUSTOM else None
    return CourseData(
        name=course.name,
        teacher=course.instructor,
        location=course.location,
        day_of_week=course.day_of_week,
        start_period=start_period,
        end_period=course.period_end or start_period,
        start_time=format_hhmm(course.start_time),
        end_time=format_hhmm(course.end_time),
        week_pattern=WeekPatternData(
            type=course.week_pattern.value, custom_weeks=custom_weeks
        ),
        color=format_color(course.color),
    )


def to_semester_export(
    semester: Semester,
    settings: CourseSettings,
    courses: list[Course],
    today: date | None = None,
) -> SemesterExportData:
    return SemesterExportData(
        semester_info=to_semester_info(semester, today),
        period_settings=to_period_settings(settings),
        display_settings=to_display_settings(settings),
        courses=[to_course_data(course) for course in courses],
    )


def to_semester(info: SemesterInfo, name: str) -> Semester:
    """New semester record for an import; the id is assigned on insert."""
    return Semester(
        id=0,
        name=name,
        start_date=info.start_date,
        end_date=info.end_date,
        total_weeks=info.total_weeks,
    )


def to_course(data: CourseData, semester: Semester) -> Course:
    """Bind an exported course to a semester; the id is assigned on insert."""
    week_pattern = WeekPattern.from_string(data.week_pattern.type)
    custom_weeks = (
        data.week_pattern.custom_weeks if week_pattern is WeekPattern.CUSTOM else None
    )
    return Course(
        id=0,
        name=data.name,
        instructor=data.teacher,
        location=data.location,
        color=parse_color(data.color),
        semester_id=semester.id,
        day_of_week=data.day_of_week,
        start_time=parse_hhmm(data.start_time),
        end_time=parse_hhmm(data.end_time),
        week_pattern=week_pattern,
        custom_weeks=custom_weeks,
        start_date=semester.start_date,
        end_date=semester.end_date,
        period_start=data.start_period,
        period_end=data.end_period,
        is_custom_time=False,
    )


def effective_lunch_break_duration(period: PeriodSettingsData) -> int:
    if period.lunch_break_duration_minutes is None:
        return DEFAULT_LUNCH_BREAK_DURATION
    return period.lunch_break_duration_minutes


def apply_period_settings(
    settings: CourseSettings, period: PeriodSettingsData
) -> CourseSettings:
    """Settings with the period block applied.

    Raises:
        pydantic.ValidationError: If a duration is out of range
    """
    return CourseSettings.model_validate(
        {
            **settings.model_dump(),
            "total_periods": period.total_periods,
            "period_duration": period.period_duration_minutes,
            "break_duration": period.break_duration_minutes,
            "first_period_start_time": parse_hhmm(period.first_period_start_time),
            "lunch_break_after_period": period.lunch_break_after_period,
            "lunch_break_duration": effective_lunch_break_duration(period),
        }
    )


def apply_display_settings(
    settings: CourseSettings, display: DisplaySettingsData
) -> CourseSettings:
    update: dict[str, object] = {"show_weekends": display.show_weekend}
    if display.grid_cell_height is not None:
        update["grid_cell_height"] = display.grid_cell_height
    return CourseSettings.model_validate({**settings.model_dump(), **update})
