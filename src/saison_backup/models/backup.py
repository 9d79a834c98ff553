"""Whole-store backup models: data types, preferences, content and summaries."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from saison_backup.models.entities import (
    BackupRecord,
    Category,
    Course,
    Event,
    PomodoroSession,
    RoutineTask,
    Semester,
    Subscription,
    Task,
)

CATEGORIES_FILE_NAME = "categories.json"
MANIFEST_FILE_NAME = "manifest.json"


class DataType(str, Enum):
    """Exportable data type. The value is the stable display key."""

    TASKS = "tasks"
    COURSES = "courses"
    EVENTS = "events"
    ROUTINES = "routines"
    SUBSCRIPTIONS = "subscriptions"
    POMODORO_SESSIONS = "pomodoro_sessions"
    SEMESTERS = "semesters"
    PREFERENCES = "preferences"

    @property
    def display_key(self) -> str:
        return self.value

    @property
    def file_name(self) -> str:
        return _FILE_NAMES[self]

    @property
    def model(self) -> type[BackupRecord] | None:
        """Record model for this type; None for the preferences mapping."""
        return _MODELS[self]

    @classmethod
    def from_file_name(cls, file_name: str) -> "DataType | None":
        """Look up a data type by its canonical file name."""
        return _BY_FILE_NAME.get(file_name)


_FILE_NAMES: dict[DataType, str] = {
    DataType.TASKS: "tasks.json",
    DataType.COURSES: "courses.json",
    DataType.EVENTS: "events.json",
    DataType.ROUTINES: "routines.json",
    DataType.SUBSCRIPTIONS: "subscriptions.json",
    DataType.POMODORO_SESSIONS: "pomodoro_sessions.json",
    DataType.SEMESTERS: "semesters.json",
    DataType.PREFERENCES: "preferences.json",
}

_BY_FILE_NAME: dict[str, DataType] = {name: dt for dt, name in _FILE_NAMES.items()}

_MODELS: dict[DataType, type[BackupRecord] | None] = {
    DataType.TASKS: Task,
    DataType.COURSES: Course,
    DataType.EVENTS: Event,
    DataType.ROUTINES: RoutineTask,
    DataType.SUBSCRIPTIONS: Subscription,
    DataType.POMODORO_SESSIONS: PomodoroSession,
    DataType.SEMESTERS: Semester,
    DataType.PREFERENCES: None,
}

# Semesters and categories first so that courses and subscriptions find them.
IMPORT_ORDER: tuple[DataType, ...] = (
    DataType.SEMESTERS,
    DataType.TASKS,
    DataType.COURSES,
    DataType.EVENTS,
    DataType.ROUTINES,
    DataType.SUBSCRIPTIONS,
    DataType.POMODORO_SESSIONS,
)

RECORD_TYPES: tuple[DataType, ...] = tuple(
    dt for dt in DataType if dt is not DataType.PREFERENCES
)


class BackupPreferences(BaseModel):
    """Which data types a backup includes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    include_tasks: bool = True
    include_courses: bool = True
    include_events: bool = True
    include_routines: bool = True
    include_subscriptions: bool = True
    include_pomodoro_sessions: bool = True
    include_semesters: bool = True
    include_preferences: bool = True

    def is_enabled(self, data_type: DataType) -> bool:
        return getattr(self, f"include_{data_type.value}")

    def has_any_enabled(self) -> bool:
        return any(self.is_enabled(dt) for dt in DataType)

    def enabled_types(self) -> list[DataType]:
        """Enabled data types in declaration order."""
        return [dt for dt in DataType if self.is_enabled(dt)]

    @classmethod
    def only(cls, *data_types: DataType) -> "BackupPreferences":
        """Preferences with exactly the given types enabled."""
        return cls(**{f"include_{dt.value}": dt in data_types for dt in DataType})


class BackupContent(BaseModel):
    """In-memory bundle of collections gathered for one export or restore."""

    model_config = ConfigDict(frozen=True)

    tasks: list[Task] = Field(default_factory=list)
    courses: list[Course] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    routines: list[RoutineTask] = Field(default_factory=list)
    subscriptions: list[Subscription] = Field(default_factory=list)
    pomodoro_sessions: list[PomodoroSession] = Field(default_factory=list)
    semesters: list[Semester] = Field(default_factory=list)
    preferences: dict[str, Any] = Field(default_factory=dict)
    categories: list[Category] = Field(default_factory=list)

    def records(self, data_type: DataType) -> list[BackupRecord]:
        """Records held for a record data type."""
        if data_type is DataType.PREFERENCES:
            raise ValueError("Preferences are a mapping, not a record collection")
        return getattr(self, data_type.value)

    def count(self, data_type: DataType) -> int:
        if data_type is DataType.PREFERENCES:
            return len(self.preferences)
        return len(self.records(data_type))

    @property
    def total_items(self) -> int:
        return sum(len(self.records(dt)) for dt in RECORD_TYPES)


class DecodedBundle(BaseModel):
    """Decoded artifact files and which data types they contained."""

    content: BackupContent
    present_types: list[DataType]
    has_categories: bool = False


class BackupManifest(BaseModel):
    """Descriptor stored next to the blobs of a remote backup."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    version: str
    created_at: int
    preferences: BackupPreferences = Field(default_factory=BackupPreferences)
    files: dict[str, int] = Field(default_factory=dict)


class ExportSummary(BaseModel):
    """Result of a finished export."""

    model_config = ConfigDict(frozen=True)

    total_items: int
    exported_types: list[DataType]
    file_path: str
    file_size: int


class ImportPreview(BaseModel):
    """Side-effect free description of what an import would do."""

    model_config = ConfigDict(frozen=True)

    data_types: dict[DataType, int]
    total_items: int
    new_items: int
    duplicate_items: int
    is_archive: bool


class RestoreSummary(BaseModel):
    """Result of an import or restore.

    ``total_imported`` sums the per-type record counts. Categories are
    reported separately and do not contribute to it.
    """

    model_config = ConfigDict(frozen=True)

    imported_tasks: int = 0
    imported_courses: int = 0
    imported_events: int = 0
    imported_routines: int = 0
    imported_subscriptions: int = 0
    imported_pomodoro_sessions: int = 0
    imported_semesters: int = 0
    skipped_duplicates: int = 0
    imported_categories: int = 0
    failed_by_type: dict[DataType, int] = Field(default_factory=dict)

    @property
    def total_imported(self) -> int:
        return (
            self.imported_tasks
            + self.imported_courses
            + self.imported_events
            + self.imported_routines
            + self.imported_subscriptions
            + self.imported_pomodoro_sessions
            + self.imported_semesters
        )

    @property
    def total_failed(self) -> int:
        return sum(self.failed_by_type.values())

    def imported(self, data_type: DataType) -> int:
        return getattr(self, f"imported_{data_type.value}")

    @classmethod
    def from_counts(
        cls,
        imported: dict[DataType, int],
        skipped_duplicates: int,
        imported_categories: int = 0,
        failed_by_type: dict[DataType, int] | None = None,
    ) -> "RestoreSummary":
        """Build a summary from per-type imported counts."""
        return cls(
            **{f"imported_{dt.value}": imported.get(dt, 0) for dt in RECORD_TYPES},
            skipped_duplicates=skipped_duplicates,
            imported_categories=imported_categories,
            failed_by_type=failed_by_type or {},
        )
