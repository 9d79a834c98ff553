"""Settings repository for stored configuration documents."""

from datetime import datetime, timezone
from typing import Any

from saison_backup.db.database import Database
from saison_backup.models.backup import BackupPreferences
from saison_backup.models.entities import CourseSettings

COURSE_SETTINGS_KEY = "course_settings"
BACKUP_PREFERENCES_KEY = "backup_preferences"
USER_PREFERENCES_KEY = "user_preferences"


class SettingsRepository:
    """Repository for key/value configuration documents."""

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def get_value(self, key: str) -> Any | None:
        """Get a stored JSON value.

        Args:
            key: Settings key

        Returns:
            Deserialized value or None if not set
        """
        cursor = await self.db.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self.db.deserialize_json(row["value"])

    async def set_value(self, key: str, value: Any) -> None:
        """Store a JSON value, replacing any previous one.

        Args:
            key: Settings key
            value: JSON-serializable value
        """
        await self.db.execute(
            """
            INSERT INTO app_settings (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (
                key,
                self.db.serialize_json(value),
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        await self.db.commit()

    async def get_course_settings(self) -> CourseSettings:
        data = await self.get_value(COURSE_SETTINGS_KEY)
        return CourseSettings.model_validate(data) if data else CourseSettings()

    async def save_course_settings(self, settings: CourseSettings) -> None:
        await self.set_value(
            COURSE_SETTINGS_KEY, settings.model_dump(by_alias=True, mode="json")
        )

    async def get_backup_preferences(self) -> BackupPreferences:
        data = await self.get_value(BACKUP_PREFERENCES_KEY)
        return BackupPreferences.model_validate(data) if data else BackupPreferences()

    async def save_backup_preferences(self, preferences: BackupPreferences) -> None:
        await self.set_value(BACKUP_PREFERENCES_KEY, preferences.model_dump())

    async def get_user_preferences(self) -> dict[str, Any]:
        """Get the application preference mapping exported with backups."""
        data = await self.get_value(USER_PREFERENCES_KEY)
        return data if isinstance(data, dict) else {}

    async def save_user_preferences(self, preferences: dict[str, Any]) -> None:
        await self.set_value(USER_PREFERENCES_KEY, preferences)
