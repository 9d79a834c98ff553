"""Tests for the serialization codec."""

import json
from datetime import date, datetime, time

import pytest

from factories import (
    make_category,
    make_course,
    make_event,
    make_routine,
    make_semester,
    make_session,
    make_subscription,
    make_task,
)
from saison_backup.exceptions import DecodeError, UnreadableArtifactError
from saison_backup.models.backup import CATEGORIES_FILE_NAME, DataType
from saison_backup.models.entities import (
    BillingCycle,
    CycleType,
    SessionType,
    Task,
    WeekPattern,
)
from saison_backup.services import codec

SAMPLES = {
    DataType.TASKS: [make_task(1), make_task(2, is_completed=True, description="Réviser")],
    DataType.COURSES: [
        make_course(1),
        make_course(2, week_pattern=WeekPattern.CUSTOM, custom_weeks=[2, 4, 6]),
    ],
    DataType.EVENTS: [make_event(1)],
    DataType.ROUTINES: [make_routine(1)],
    DataType.SUBSCRIPTIONS: [make_subscription(1, billing_cycle=BillingCycle.YEARLY)],
    DataType.POMODORO_SESSIONS: [make_session(1, session_type=SessionType.LONG_BREAK)],
    DataType.SEMESTERS: [make_semester(1)],
}


class TestRoundTrip:
    """Encoding then decoding reproduces the collection."""

    @pytest.mark.parametrize("data_type", list(SAMPLES))
    def test_round_trip(self, data_type):
        collection = SAMPLES[data_type]
        assert codec.decode(data_type, codec.encode(data_type, collection)) == collection

    def test_preferences_round_trip(self):
        prefs = {"theme": "dark", "pomodoroMinutes": 25, "weekStartsMonday": True}
        text = codec.encode(DataType.PREFERENCES, prefs)
        assert codec.decode(DataType.PREFERENCES, text) == prefs

    def test_categories_round_trip(self):
        categories = [make_category(1), make_category(2, "Utilities")]
        assert codec.decode_categories(codec.encode_categories(categories)) == categories

    def test_values_survive_exactly(self):
        subscription = make_subscription(7, price=12.345678)
        session = make_session(3, start_time=1712345678901)
        decoded_sub = codec.decode(
            DataType.SUBSCRIPTIONS, codec.encode(DataType.SUBSCRIPTIONS, [subscription])
        )[0]
        decoded_session = codec.decode(
            DataType.POMODORO_SESSIONS, codec.encode(DataType.POMODORO_SESSIONS, [session])
        )[0]

        assert decoded_sub.price == 12.345678
        assert decoded_sub.next_billing_date == date(2024, 2, 1)
        assert decoded_session.start_time == 1712345678901
        assert decoded_session.session_type is SessionType.WORK


class TestEncoding:
    """Encoded text layout."""

    def test_deterministic(self):
        tasks = [make_task(1), make_task(2)]
        assert codec.encode(DataType.TASKS, tasks) == codec.encode(DataType.TASKS, list(tasks))

    def test_camel_case_keys_and_explicit_defaults(self):
        data = json.loads(codec.encode(DataType.TASKS, [make_task(1)]))

        record = data[0]
        assert list(record)[:3] == ["id", "title", "description"]
        assert record["dueDate"] == "2024-03-01T09:30:00"
        assert record["isCompleted"] is False
        assert record["pomodoroCount"] == 0
        assert record["description"] is None

    def test_course_wire_format(self):
        record = json.loads(codec.encode(DataType.COURSES, [make_course(1)]))[0]

        assert record["semesterId"] == 1
        assert record["dayOfWeek"] == 1
        assert record["startTime"] == "08:00:00"
        assert record["startDate"] == "2024-02-26"
        assert record["weekPattern"] == "ALL"
        assert record["color"] == 0xFF3366CC

    def test_non_ascii_kept(self):
        text = codec.encode(DataType.TASKS, [make_task(1, title="复习高数")])
        assert "复习高数" in text

    def test_empty_collection(self):
        assert json.loads(codec.encode(DataType.EVENTS, [])) == []


class TestDecoding:
    """Tolerant decoding and failure reasons."""

    def test_unknown_fields_ignored(self):
        text = json.dumps(
            [{"id": 5, "title": "Read", "futureField": {"nested": True}, "colour": "red"}]
        )
        (task,) = codec.decode(DataType.TASKS, text)
        assert task.id == 5
        assert task.title == "Read"

    def test_missing_optional_fields_get_defaults(self):
        text = json.dumps([{"id": 9, "title": "Minimal"}])
        (task,) = codec.decode(DataType.TASKS, text)

        assert task.priority == 0
        assert task.is_completed is False
        assert task.due_date is None
        assert isinstance(task.created_at, datetime)

    def test_routine_defaults(self):
        (routine,) = codec.decode(DataType.ROUTINES, json.dumps([{"id": 1, "title": "Run"}]))
        assert routine.cycle_type is CycleType.DAILY
        assert routine.is_active is True

    def test_missing_required_field_is_type_mismatch(self):
        text = json.dumps([{"id": 1, "description": "no title"}])
        with pytest.raises(DecodeError) as exc_info:
            codec.decode(DataType.TASKS, text)
        assert exc_info.value.reason == DecodeError.TYPE_MISMATCH
        assert exc_info.value.file_name == "tasks.json"

    def test_wrong_shape_is_type_mismatch(self):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode(DataType.TASKS, json.dumps({"id": 1, "title": "object"}))
        assert exc_info.value.reason == DecodeError.TYPE_MISMATCH

    def test_invalid_enum_is_type_mismatch(self):
        record = json.loads(codec.encode(DataType.SUBSCRIPTIONS, [make_subscription(1)]))[0]
        record["billingCycle"] = "FORTNIGHTLY"
        with pytest.raises(DecodeError) as exc_info:
            codec.decode(DataType.SUBSCRIPTIONS, json.dumps([record]))
        assert exc_info.value.reason == DecodeError.TYPE_MISMATCH

    def test_malformed_json(self):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode(DataType.EVENTS, '[{"id": 1, "title": ')
        assert exc_info.value.reason == DecodeError.MALFORMED

    def test_decodes_bytes(self):
        data = codec.encode(DataType.TASKS, [make_task(1)]).encode("utf-8")
        assert codec.decode(DataType.TASKS, data) == [make_task(1)]

    def test_course_time_parsing(self):
        record = json.loads(codec.encode(DataType.COURSES, [make_course(1)]))[0]
        record["startTime"] = "10:05"
        (course,) = codec.decode(DataType.COURSES, json.dumps([record]))
        assert course.start_time == time(10, 5)


class TestDetection:
    """Data type detection for unnamed single files."""

    @pytest.mark.parametrize("data_type", list(SAMPLES))
    def test_detects_every_record_type(self, data_type):
        text = codec.encode(data_type, SAMPLES[data_type])
        assert codec.detect_data_type(text) is data_type

    def test_object_is_preferences(self):
        assert codec.detect_data_type('{"theme": "dark"}') is DataType.PREFERENCES

    def test_undetectable(self):
        assert codec.detect_data_type("[]") is None
        assert codec.detect_data_type('[{"foo": 1}]') is None
        assert codec.detect_data_type("not json") is None
        assert codec.detect_data_type("42") is None


class TestDecodeBundle:
    """Decoding a set of artifact files."""

    def test_decodes_known_files(self):
        files = {
            "tasks.json": codec.encode(DataType.TASKS, [make_task(1)]).encode(),
            CATEGORIES_FILE_NAME: codec.encode_categories([make_category(1)]).encode(),
            "readme.txt": b"hello",
        }
        bundle = codec.decode_bundle(files)

        assert bundle.present_types == [DataType.TASKS]
        assert bundle.has_categories is True
        assert bundle.content.tasks == [make_task(1)]
        assert bundle.content.categories == [make_category(1)]
        assert bundle.content.courses == []

    def test_nothing_recognized(self):
        with pytest.raises(UnreadableArtifactError):
            codec.decode_bundle({"notes.json": b"[]"})

    def test_bad_file_fails_whole_bundle(self):
        files = {
            "tasks.json": codec.encode(DataType.TASKS, [make_task(1)]).encode(),
            "events.json": b"{broken",
        }
        with pytest.raises(DecodeError) as exc_info:
            codec.decode_bundle(files)
        assert exc_info.value.file_name == "events.json"

    def test_task_model_lookup(self):
        assert DataType.TASKS.model is Task
        assert DataType.PREFERENCES.model is None
