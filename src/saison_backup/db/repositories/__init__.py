"""Repository modules for data access."""

from saison_backup.db.repositories.entity_repository import (
    EntityRepository,
    EntityStore,
)
from saison_backup.db.repositories.settings_repository import SettingsRepository

__all__ = ["EntityRepository", "EntityStore", "SettingsRepository"]
