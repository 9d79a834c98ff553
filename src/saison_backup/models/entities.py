"""Domain entity models as they appear in backup files.

Every record serializes with camelCase keys. Unknown keys are ignored on
read so that files written by newer versions stay importable, and every
optional field declares a default so older files still decode.
"""

import time as _time
from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_COURSE_COLOR = 0xFF6200EE


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(_time.time() * 1000)


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class WeekPattern(str, Enum):
    """Weeks on which a course meets."""

    ALL = "ALL"
    A = "A"
    B = "B"
    ODD = "ODD"
    EVEN = "EVEN"
    CUSTOM = "CUSTOM"

    @classmethod
    def from_string(cls, value: str | None) -> "WeekPattern":
        """Parse a pattern name, falling back to ALL."""
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.ALL


class CycleType(str, Enum):
    """Recurrence of a routine task."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class BillingCycle(str, Enum):
    """Renewal cycle of a subscription."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"


class SessionType(str, Enum):
    """Pomodoro session type."""

    WORK = "WORK"
    SHORT_BREAK = "SHORT_BREAK"
    LONG_BREAK = "LONG_BREAK"


class BackupRecord(BaseModel):
    """Base model for every record written to a backup file."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: int


class Task(BackupRecord):
    """Task entry."""

    title: str
    description: str | None = None
    due_date: datetime | None = None
    reminder_time: datetime | None = None
    location: str | None = None
    priority: int = 0
    is_completed: bool = False
    completed_at: datetime | None = None
    category_id: int | None = None
    category_name: str | None = None
    pomodoro_count: int = Field(default=0, ge=0)
    estimated_pomodoros: int | None = None
    metronome_bpm: int | None = None
    is_favorite: bool = False
    sort_order: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Course(BackupRecord):
    """Course entry bound to a semester."""

    name: str
    instructor: str | None = None
    location: str | None = None
    color: int = DEFAULT_COURSE_COLOR
    semester_id: int
    day_of_week: int = Field(ge=1, le=7)
    start_time: time
    end_time: time
    week_pattern: WeekPattern = WeekPattern.ALL
    custom_weeks: list[int] | None = None
    start_date: date
    end_date: date
    notification_minutes: int = 10
    auto_silent: bool = True
    period_start: int | None = None
    period_end: int | None = None
    is_custom_time: bool = False
    created_at: int = Field(default_factory=now_millis)
    updated_at: int = Field(default_factory=now_millis)


class Event(BackupRecord):
    """Calendar event entry."""

    title: str
    description: str | None = None
    event_date: datetime
    category: str = "OTHER"
    is_completed: bool = False
    reminder_enabled: bool = False
    reminder_time: datetime | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class RoutineTask(BackupRecord):
    """Recurring routine entry."""

    title: str
    description: str | None = None
    icon: str | None = None
    cycle_type: CycleType = CycleType.DAILY
    cycle_config: str = ""
    duration_minutes: int | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Subscription(BackupRecord):
    """Recurring subscription entry."""

    name: str
    description: str | None = None
    price: float
    currency: str = "CNY"
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    start_date: date
    next_billing_date: date
    reminder_days_before: int = 1
    is_active: bool = True
    category: str | None = None
    icon: str | None = None
    created_at: int = Field(default_factory=now_millis)
    updated_at: int = Field(default_factory=now_millis)


class PomodoroSession(BackupRecord):
    """Focus timer session; may reference a task or routine by id."""

    task_id: int | None = None
    routine_task_id: int | None = None
    start_time: int
    end_time: int | None = None
    duration: int
    actual_duration: int | None = None
    is_completed: bool = False
    is_break: bool = False
    is_long_break: bool = False
    is_early_finish: bool = False
    interruptions: int = 0
    notes: str | None = None
    session_type: SessionType = SessionType.WORK


class Semester(BackupRecord):
    """Semester with its date range."""

    name: str
    start_date: date
    end_date: date
    total_weeks: int
    is_archived: bool = False
    is_default: bool = False
    created_at: int = Field(default_factory=now_millis)
    updated_at: int = Field(default_factory=now_millis)


class Category(BackupRecord):
    """Subscription category, exported with every backup."""

    name: str
    is_default: bool = False
    created_at: int = Field(default_factory=now_millis)
    updated_at: int = Field(default_factory=now_millis)


class CourseSettings(BaseModel):
    """Timetable configuration held by the receiving store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    total_periods: int = Field(default=8, ge=1)
    period_duration: int = Field(default=45, ge=1)
    break_duration: int = Field(default=10, ge=0)
    first_period_start_time: time = time(8, 0)
    lunch_break_after_period: int | None = 4
    lunch_break_duration: int = Field(default=90, ge=0)
    total_weeks: int = 18
    grid_cell_height: int = 80
    show_weekends: bool = True
    auto_scroll_to_current_time: bool = True
    highlight_current_period: bool = True
