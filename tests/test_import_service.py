"""Tests for the import pipeline."""

import io
import json
import zipfile
from pathlib import Path

import pytest

from factories import (
    SEEDED_COUNTS,
    SEEDED_TOTAL,
    make_category,
    make_course,
    make_task,
    seed_store,
)
from saison_backup.db.repositories.entity_repository import EntityStore
from saison_backup.exceptions import (
    DecodeError,
    PersistenceError,
    SchemaVersionUnsupportedError,
    UnreadableArtifactError,
)
from saison_backup.models.backup import BackupPreferences, DataType
from saison_backup.services import codec
from saison_backup.services.delivery import LocalFileTarget
from saison_backup.services.export_service import ExportService
from saison_backup.services.import_service import ImportService


def _zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, text in files.items():
            zf.writestr(name, text)
    return buffer.getvalue()


async def _full_backup(
    export_service: ExportService, local_target: LocalFileTarget
) -> bytes:
    summary = await export_service.export_selection(local_target, BackupPreferences())
    return Path(summary.file_path).read_bytes()


async def _store_counts(store: EntityStore) -> dict[DataType, int]:
    return {dt: await store.repository(dt).count() for dt in SEEDED_COUNTS}


class TestPreview:
    """Side-effect free previews."""

    @pytest.mark.asyncio
    async def test_preview_into_empty_store(
        self,
        export_service: ExportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
        other_import_service: ImportService,
        other_store: EntityStore,
    ) -> None:
        await seed_store(entity_store)
        artifact = await _full_backup(export_service, local_target)

        preview = await other_import_service.preview_import(artifact)

        assert preview.is_archive is True
        assert preview.total_items == SEEDED_TOTAL
        assert preview.new_items == SEEDED_TOTAL
        assert preview.duplicate_items == 0
        for data_type, count in SEEDED_COUNTS.items():
            assert preview.data_types[data_type] == count
        assert await _store_counts(other_store) == {dt: 0 for dt in SEEDED_COUNTS}

    @pytest.mark.asyncio
    async def test_preview_is_idempotent(
        self,
        export_service: ExportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
        import_service: ImportService,
    ) -> None:
        """Test that previewing twice gives equal results and writes nothing."""
        await seed_store(entity_store)
        artifact = await _full_backup(export_service, local_target)

        first = await import_service.preview_import(artifact)
        second = await import_service.preview_import(artifact)

        assert first == second
        assert first.duplicate_items == SEEDED_TOTAL
        assert first.new_items == 0
        assert await _store_counts(entity_store) == SEEDED_COUNTS

    @pytest.mark.asyncio
    async def test_preview_single_file_by_content(
        self, import_service: ImportService, entity_store: EntityStore
    ) -> None:
        """Test that an unnamed single file is classified by its content."""
        await entity_store.tasks.insert(make_task(2))
        text = codec.encode(DataType.TASKS, [make_task(1), make_task(2), make_task(3)])

        preview = await import_service.preview_import(text.encode(), "download (1).json")

        assert preview.is_archive is False
        assert preview.data_types == {DataType.TASKS: 3}
        assert preview.new_items == 2
        assert preview.duplicate_items == 1

    @pytest.mark.asyncio
    async def test_preview_own_export_of_empty_type(
        self,
        export_service: ExportService,
        import_service: ImportService,
        local_target: LocalFileTarget,
    ) -> None:
        """Test that an exported empty collection is recognized by its name."""
        summary = await export_service.export_single_type(local_target, DataType.POMODORO_SESSIONS)

        preview = await import_service.preview_import(
            local_target.read_all(summary.file_path), summary.file_path
        )

        assert preview.is_archive is False
        assert preview.data_types == {DataType.POMODORO_SESSIONS: 0}
        assert preview.total_items == 0

    @pytest.mark.asyncio
    async def test_canonical_name_wins_over_content(self, import_service: ImportService) -> None:
        text = codec.encode(DataType.TASKS, [make_task(1)])
        with pytest.raises(DecodeError):
            # Canonical name says courses; task records do not fit that schema
            await import_service.preview_import(text.encode(), "courses.json")

    @pytest.mark.asyncio
    async def test_subset_archive(self, import_service: ImportService) -> None:
        artifact = _zip({"events.json": "[]", "notes.md": "# hi"})

        preview = await import_service.preview_import(artifact)

        assert preview.data_types == {DataType.EVENTS: 0}
        assert preview.total_items == 0

    @pytest.mark.asyncio
    async def test_unreadable_archive(self, import_service: ImportService) -> None:
        with pytest.raises(UnreadableArtifactError):
            await import_service.preview_import(_zip({"photo.jpg": "xx"}))

    @pytest.mark.asyncio
    async def test_undetectable_single_file(self, import_service: ImportService) -> None:
        with pytest.raises(UnreadableArtifactError):
            await import_service.preview_import(b'[{"what": "is this"}]', "data.json")

    @pytest.mark.asyncio
    async def test_unsupported_manifest_version(self, import_service: ImportService) -> None:
        manifest = json.dumps({"version": "2.0", "createdAt": 0, "files": {}})
        artifact = _zip({"manifest.json": manifest, "tasks.json": "[]"})

        with pytest.raises(SchemaVersionUnsupportedError) as exc_info:
            await import_service.preview_import(artifact)
        assert exc_info.value.version == "2.0"


class TestExecuteImport:
    """Merging artifacts into the store."""

    @pytest.mark.asyncio
    async def test_round_trip_into_fresh_store(
        self,
        export_service: ExportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
        other_import_service: ImportService,
        other_store: EntityStore,
    ) -> None:
        """Test that a full backup restores equal records under the same ids."""
        await seed_store(entity_store)
        artifact = await _full_backup(export_service, local_target)

        summary = await other_import_service.execute_import(artifact)

        assert summary.total_imported == SEEDED_TOTAL
        assert summary.skipped_duplicates == 0
        assert summary.imported_categories == 2
        assert summary.total_failed == 0
        for data_type in SEEDED_COUNTS:
            assert await other_store.repository(data_type).get_all() == await (
                entity_store.repository(data_type).get_all()
            )
        assert await other_store.categories.get_all() == await entity_store.categories.get_all()

    @pytest.mark.asyncio
    async def test_no_duplication(
        self,
        import_service: ImportService,
        entity_store: EntityStore,
    ) -> None:
        """Test N records with K present insert N-K, then a re-run inserts 0."""
        await entity_store.tasks.insert(make_task(2))
        await entity_store.tasks.insert(make_task(4))
        incoming = [make_task(i) for i in range(1, 6)]
        artifact = codec.encode(DataType.TASKS, incoming).encode()

        first = await import_service.execute_import(artifact, "tasks.json")
        second = await import_service.execute_import(artifact, "tasks.json")

        assert first.imported_tasks == 3
        assert first.skipped_duplicates == 2
        assert second.imported_tasks == 0
        assert second.skipped_duplicates == 5
        assert await entity_store.tasks.count() == 5

    @pytest.mark.asyncio
    async def test_existing_records_untouched(
        self, import_service: ImportService, entity_store: EntityStore
    ) -> None:
        """Test that a duplicate id never overwrites the stored record."""
        await entity_store.tasks.insert(make_task(1, title="Local edit"))
        artifact = codec.encode(DataType.TASKS, [make_task(1, title="From backup")]).encode()

        await import_service.execute_import(artifact, "tasks.json")

        stored = await entity_store.tasks.get_by_id(1)
        assert stored.title == "Local edit"

    @pytest.mark.asyncio
    async def test_conservation(
        self,
        export_service: ExportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
        other_import_service: ImportService,
        other_store: EntityStore,
    ) -> None:
        await seed_store(entity_store)
        artifact = await _full_backup(export_service, local_target)
        await other_store.tasks.insert(make_task(1))

        preview = await other_import_service.preview_import(artifact)
        summary = await other_import_service.execute_import(artifact)

        assert summary.total_imported <= preview.total_items
        assert summary.total_imported == preview.new_items
        assert summary.skipped_duplicates == preview.duplicate_items

    @pytest.mark.asyncio
    async def test_partial_failure_isolation(
        self,
        export_service: ExportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
        other_import_service: ImportService,
        other_store: EntityStore,
        monkeypatch,
    ) -> None:
        """Test that a failing type is abandoned while the others import."""
        await seed_store(entity_store)
        artifact = await _full_backup(export_service, local_target)

        async def failing_insert(record):
            raise PersistenceError("disk full")

        monkeypatch.setattr(other_store.courses, "insert", failing_insert)

        summary = await other_import_service.execute_import(artifact)

        assert summary.imported_courses == 0
        assert summary.failed_by_type == {DataType.COURSES: SEEDED_COUNTS[DataType.COURSES]}
        assert summary.total_failed == SEEDED_COUNTS[DataType.COURSES]
        assert summary.imported_tasks == SEEDED_COUNTS[DataType.TASKS]
        assert summary.imported_semesters == SEEDED_COUNTS[DataType.SEMESTERS]
        assert summary.imported_pomodoro_sessions == SEEDED_COUNTS[DataType.POMODORO_SESSIONS]
        assert summary.total_imported == SEEDED_TOTAL - SEEDED_COUNTS[DataType.COURSES]

    @pytest.mark.asyncio
    async def test_failure_midway_keeps_inserted_records(
        self,
        import_service: ImportService,
        entity_store: EntityStore,
        monkeypatch,
    ) -> None:
        original = entity_store.tasks.insert

        async def flaky_insert(record):
            if record.id == 3:
                raise PersistenceError("constraint failed")
            return await original(record)

        monkeypatch.setattr(entity_store.tasks, "insert", flaky_insert)
        artifact = codec.encode(DataType.TASKS, [make_task(i) for i in range(1, 5)]).encode()

        summary = await import_service.execute_import(artifact, "tasks.json")

        assert summary.imported_tasks == 2
        assert summary.failed_by_type == {DataType.TASKS: 2}
        assert await entity_store.tasks.count() == 2

    @pytest.mark.asyncio
    async def test_type_filter(
        self,
        export_service: ExportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
        other_import_service: ImportService,
        other_store: EntityStore,
    ) -> None:
        await seed_store(entity_store)
        artifact = await _full_backup(export_service, local_target)

        summary = await other_import_service.execute_import(
            artifact, type_filter=[DataType.SEMESTERS, DataType.COURSES]
        )

        assert summary.imported_semesters == 1
        assert summary.imported_courses == 3
        assert summary.imported_tasks == 0
        assert await other_store.tasks.count() == 0
        # Categories are not selectable and always come along
        assert summary.imported_categories == 2

    @pytest.mark.asyncio
    async def test_malformed_entry_writes_nothing(
        self, import_service: ImportService, entity_store: EntityStore
    ) -> None:
        """Test that a broken file fails the artifact before any write."""
        artifact = _zip(
            {
                "tasks.json": codec.encode(DataType.TASKS, [make_task(1)]),
                "courses.json": '[{"id": 1, "name": "Broken"}]',
            }
        )

        with pytest.raises(DecodeError) as exc_info:
            await import_service.execute_import(artifact)

        assert exc_info.value.reason == DecodeError.TYPE_MISMATCH
        assert await entity_store.tasks.count() == 0

    @pytest.mark.asyncio
    async def test_categories_reported_separately(
        self, import_service: ImportService, entity_store: EntityStore
    ) -> None:
        artifact = _zip(
            {
                "courses.json": codec.encode(DataType.COURSES, [make_course(1, semester_id=1)]),
                "categories.json": codec.encode_categories([make_category(1)]),
            }
        )

        summary = await import_service.execute_import(artifact)

        assert summary.imported_courses == 1
        assert summary.imported_categories == 1
        assert summary.total_imported == 1

    @pytest.mark.asyncio
    async def test_preferences_not_restored(
        self, import_service: ImportService, settings_repo
    ) -> None:
        artifact = _zip({"preferences.json": '{"theme": "light"}'})

        summary = await import_service.execute_import(artifact)

        assert summary.total_imported == 0
        assert await settings_repo.get_user_preferences() == {}

    @pytest.mark.asyncio
    async def test_import_selection_reads_local_file(
        self,
        import_service: ImportService,
        entity_store: EntityStore,
        local_target: LocalFileTarget,
    ) -> None:
        local_target.write(
            "tasks.json", codec.encode(DataType.TASKS, [make_task(1)]).encode()
        )

        summary = await import_service.import_selection(local_target, "tasks.json")

        assert summary.imported_tasks == 1
        assert await entity_store.tasks.get_by_id(1) == make_task(1)
