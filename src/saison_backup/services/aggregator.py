"""Backup content aggregation from the entity store."""

import logging
import sqlite3
from typing import Any

from saison_backup.db.repositories.entity_repository import EntityStore
from saison_backup.db.repositories.settings_repository import SettingsRepository
from saison_backup.models.backup import (
    RECORD_TYPES,
    BackupContent,
    BackupPreferences,
    DataType,
)

logger = logging.getLogger(__name__)


class BackupContentAggregator:
    """Collects the collections selected for a backup into one bundle."""

    def __init__(self, store: EntityStore, settings_repo: SettingsRepository) -> None:
        """Initialize the aggregator.

        Args:
            store: Entity repositories to read from
            settings_repo: Source of the application preference mapping
        """
        self.store = store
        self.settings_repo = settings_repo

    async def collect(self, preferences: BackupPreferences) -> BackupContent:
        """Read every enabled collection exactly once.

        Args:
            preferences: Which data types to include

        Returns:
            Backup content; disabled types are empty
        """
        collections: dict[str, Any] = {}
        for data_type in RECORD_TYPES:
            if preferences.is_enabled(data_type):
                collections[data_type.value] = await self.store.repository(data_type).get_all()

        if preferences.is_enabled(DataType.PREFERENCES):
            collections["preferences"] = await self._collect_preferences()

        # Subscriptions reference categories, so categories travel with
        # every backup whatever the selection.
        collections["categories"] = await self.store.categories.get_all()

        content = BackupContent(**collections)
        counts = {dt.value: content.count(dt) for dt in preferences.enabled_types()}
        logger.debug(f"Collected backup content: {counts}")
        return content

    async def _collect_preferences(self) -> dict[str, Any]:
        """Preference export is best effort; failures yield an empty mapping."""
        try:
            return await self.settings_repo.get_user_preferences()
        except (sqlite3.Error, ValueError) as e:
            logger.warning(f"Preferences could not be read, exporting none: {e}")
            return {}
