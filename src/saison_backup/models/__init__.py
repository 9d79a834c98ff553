"""Data models for saison-backup."""

from saison_backup.models.backup import (
    CATEGORIES_FILE_NAME,
    MANIFEST_FILE_NAME,
    BackupManifest,
    BackupContent,
    BackupPreferences,
    DecodedBundle,
    DataType,
    ExportSummary,
    ImportPreview,
    RestoreSummary,
)
from saison_backup.models.course_export import (
    ConflictInfo,
    CourseData,
    CourseExportData,
    CourseImportPreview,
    CourseImportResult,
    DisplaySettingsData,
    ExportMetadata,
    ImportOptions,
    PeriodSettingsData,
    SemesterExportData,
    SemesterImportPreview,
    SemesterInfo,
    WeekPatternData,
)
from saison_backup.models.entities import (
    BackupRecord,
    BillingCycle,
    Category,
    Course,
    CourseSettings,
    CycleType,
    Event,
    PomodoroSession,
    RoutineTask,
    Semester,
    SessionType,
    Subscription,
    Task,
    WeekPattern,
)

__all__ = [
    # Backup
    "CATEGORIES_FILE_NAME",
    "MANIFEST_FILE_NAME",
    "BackupManifest",
    "BackupContent",
    "BackupPreferences",
    "DecodedBundle",
    "DataType",
    "ExportSummary",
    "ImportPreview",
    "RestoreSummary",
    # Course export
    "ConflictInfo",
    "CourseData",
    "CourseExportData",
    "CourseImportPreview",
    "CourseImportResult",
    "DisplaySettingsData",
    "ExportMetadata",
    "ImportOptions",
    "PeriodSettingsData",
    "SemesterExportData",
    "SemesterImportPreview",
    "SemesterInfo",
    "WeekPatternData",
    # Entities
    "BackupRecord",
    "BillingCycle",
    "Category",
    "Course",
    "CourseSettings",
    "CycleType",
    "Event",
    "PomodoroSession",
    "RoutineTask",
    "Semester",
    "SessionType",
    "Subscription",
    "Task",
    "WeekPattern",
]
