"""Entity repositories backing the export/import pipelines."""

import sqlite3
from datetime import datetime, timezone
from typing import Generic, TypeVar

from saison_backup.db.database import Database
from saison_backup.exceptions import PersistenceError
from saison_backup.models.backup import RECORD_TYPES, DataType
from saison_backup.models.entities import BackupRecord, Category

RecordT = TypeVar("RecordT", bound=BackupRecord)

CATEGORIES_COLLECTION = "categories"


class EntityRepository(Generic[RecordT]):
    """Repository for one entity collection.

    Records are stored by id as their camelCase JSON form.
    """

    def __init__(self, db: Database, collection: str, model: type[RecordT]) -> None:
        """Initialize repository.

        Args:
            db: Database instance
            collection: Collection name the records are stored under
            model: Record model used to rebuild rows
        """
        self.db = db
        self.collection = collection
        self.model = model

    async def get_all(self) -> list[RecordT]:
        """Get every record of the collection ordered by id.

        Returns:
            List of records
        """
        cursor = await self.db.execute(
            "SELECT data FROM entity_records WHERE collection = ? ORDER BY id",
            (self.collection,),
        )
        rows = await cursor.fetchall()
        return [self.model.model_validate_json(row["data"]) for row in rows]

    async def get_by_id(self, record_id: int) -> RecordT | None:
        """Find a record by id.

        Args:
            record_id: Record id

        Returns:
            Record or None if not found
        """
        cursor = await self.db.execute(
            "SELECT data FROM entity_records WHERE collection = ? AND id = ?",
            (self.collection, record_id),
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self.model.model_validate_json(row["data"])

    async def exists(self, record_id: int) -> bool:
        cursor = await self.db.execute(
            "SELECT 1 FROM entity_records WHERE collection = ? AND id = ?",
            (self.collection, record_id),
        )
        return await cursor.fetchone() is not None

    async def count(self) -> int:
        cursor = await self.db.execute(
            "SELECT COUNT(*) FROM entity_records WHERE collection = ?",
            (self.collection,),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def next_id(self) -> int:
        """Smallest id greater than every stored id."""
        cursor = await self.db.execute(
            "SELECT MAX(id) FROM entity_records WHERE collection = ?",
            (self.collection,),
        )
        row = await cursor.fetchone()
        return (row[0] or 0) + 1 if row else 1

    async def insert(self, record: RecordT) -> RecordT:
        """Insert a record keeping its id.

        Args:
            record: Record to insert

        Returns:
            The inserted record

        Raises:
            PersistenceError: If the store rejects the write
        """
        try:
            await self.db.execute(
                """
                INSERT INTO entity_records (collection, id, data, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    self.collection,
                    record.id,
                    record.model_dump_json(by_alias=True),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            await self.db.commit()
        except sqlite3.Error as e:
            await self.db.rollback()
            raise PersistenceError(
                f"Failed to insert {self.collection} record {record.id}: {e}"
            ) from e
        return record

    async def insert_new(self, record: RecordT) -> RecordT:
        """Insert a record under a freshly allocated id.

        Args:
            record: Record whose id is replaced

        Returns:
            The inserted record carrying its new id
        """
        new_id = await self.next_id()
        return await self.insert(record.model_copy(update={"id": new_id}))

    async def delete(self, record_id: int) -> bool:
        """Delete a record by id.

        Args:
            record_id: Record id

        Returns:
            True if a record was deleted
        """
        cursor = await self.db.execute(
            "DELETE FROM entity_records WHERE collection = ? AND id = ?",
            (self.collection, record_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0


class EntityStore:
    """All entity repositories of one database, keyed by data type."""

    def __init__(self, db: Database) -> None:
        """Initialize the store.

        Args:
            db: Database instance shared by every repository
        """
        self.db = db
        self._repositories: dict[DataType, EntityRepository] = {
            data_type: EntityRepository(db, data_type.value, data_type.model)
            for data_type in RECORD_TYPES
        }
        self.categories: EntityRepository[Category] = EntityRepository(
            db, CATEGORIES_COLLECTION, Category
        )

    def repository(self, data_type: DataType) -> EntityRepository:
        """Repository for a record data type.

        Raises:
            ValueError: For PREFERENCES, which is not a record collection
        """
        if data_type not in self._repositories:
            raise ValueError(f"{data_type.value} has no entity repository")
        return self._repositories[data_type]

    @property
    def tasks(self) -> EntityRepository:
        return self._repositories[DataType.TASKS]

    @property
    def courses(self) -> EntityRepository:
        return self._repositories[DataType.COURSES]

    @property
    def semesters(self) -> EntityRepository:
        return self._repositories[DataType.SEMESTERS]
