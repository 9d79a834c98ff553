"""Conflict detection between an incoming semester and the receiving store."""

from saison_backup.models.course_export import ConflictInfo, SemesterExportData
from saison_backup.models.entities import CourseSettings, Semester
from saison_backup.services.course_mapping import effective_lunch_break_duration
from saison_backup.utils.schedule import format_hhmm


def detect_conflicts(
    existing_semesters: list[Semester],
    current_settings: CourseSettings,
    incoming: SemesterExportData,
) -> ConflictInfo:
    """Compare an incoming semester against a snapshot of the store.

    A name conflict is an exact match with an existing semester name.
    Settings conflicts are field-by-field inequality. Nothing is mutated.

    Args:
        existing_semesters: Semesters currently stored
        current_settings: Current timetable configuration
        incoming: Semester block from a course export document

    Returns:
        Conflict information
    """
    name = incoming.semester_info.name
    conflicting = next((s.name for s in existing_semesters if s.name == name), None)

    period = incoming.period_settings
    period_conflict = (
        period.total_periods != current_settings.total_periods
        or period.period_duration_minutes != current_settings.period_duration
        or period.break_duration_minutes != current_settings.break_duration
        or period.first_period_start_time
        != format_hhmm(current_settings.first_period_start_time)
        or period.lunch_break_after_period != current_settings.lunch_break_after_period
        or effective_lunch_break_duration(period) != current_settings.lunch_break_duration
    )

    display = incoming.display_settings
    display_conflict = display.show_weekend != current_settings.show_weekends or (
        display.grid_cell_height is not None
        and display.grid_cell_height != current_settings.grid_cell_height
    )

    return ConflictInfo(
        has_name_conflict=conflicting is not None,
        has_period_settings_conflict=period_conflict,
        has_display_settings_conflict=display_conflict,
        existing_conflicting_name=conflicting,
    )
