"""Unit tests for the event/label repositories and JSON storage."""
import json
import typing

import pytest

from schedule_core.errors import StorageError, ValidationError
from schedule_core.models import Event, Label
from schedule_core.repository import EventRepository, LabelRepository
from schedule_core.storage import (
    COLLECTION_EVENTS, JsonStorage, create_storage_backend,
)


def make_event(title, day=15, **kwargs):
    return Event(title=title, date=f"2024-01-{day:02d}T09:00:00.000Z", **kwargs)


class TestEventRepository:
    """Test cases for EventRepository."""

    def test_add_assigns_new_id(self, event_repository):
        event = make_event("Standup", id="ignored")

        event_id = event_repository.add(event)

        assert event_id and event_id != "ignored"
        stored = event_repository.get(event_id)
        assert stored.id == event_id
        assert stored.title == "Standup"

    def test_add_invalid_event_is_rejected(self, event_repository):
        with pytest.raises(ValidationError):
            event_repository.add(Event(title="", date="2024-01-15T09:00:00.000Z"))

        assert event_repository.list() == []

    def test_snapshot_is_sorted(self, event_repository):
        event_repository.add(make_event("Later", day=20))
        event_repository.add(make_event("Sooner", day=10))

        assert [e.title for e in event_repository.snapshot()] == ["Sooner", "Later"]

    def test_list_annotations_resolve_to_builtin_list(self):
        """The list() method must not shadow the list type in signatures."""
        hints = typing.get_type_hints(EventRepository.snapshot)

        assert hints["return"] == list[Event]
        assert typing.get_type_hints(LabelRepository.list)["return"] == list[Label]

    def test_get_missing(self, event_repository):
        assert event_repository.get("nope") is None

    def test_update(self, event_repository):
        event_id = event_repository.add(make_event("Draft"))
        event = event_repository.get(event_id)
        event.title = "Final"

        event_repository.update(event)

        assert event_repository.get(event_id).title == "Final"

    def test_update_missing_event(self, event_repository):
        with pytest.raises(StorageError):
            event_repository.update(make_event("Ghost", id="does-not-exist"))

    def test_update_without_id(self, event_repository):
        with pytest.raises(ValidationError):
            event_repository.update(make_event("No id"))

    def test_remove(self, event_repository):
        event_id = event_repository.add(make_event("Gone"))

        event_repository.remove(event_id)

        assert event_repository.get(event_id) is None
        with pytest.raises(StorageError):
            event_repository.remove(event_id)

    def test_set_completed_keeps_date(self, event_repository):
        event_id = event_repository.add(make_event("Task"))

        event_repository.set_completed(event_id)

        event = event_repository.get(event_id)
        assert event.is_completed is True
        assert event.date == "2024-01-15T09:00:00.000Z"

        event_repository.set_completed(event_id, False)
        assert event_repository.get(event_id).is_completed is False

    def test_remove_all_completed(self, event_repository):
        event_repository.add(make_event("Done 1", is_completed=True))
        event_repository.add(make_event("Done 2", is_completed=True))
        keep_id = event_repository.add(make_event("Open"))

        assert event_repository.remove_all_completed() == 2
        assert [e.id for e in event_repository.list()] == [keep_id]
        assert event_repository.remove_all_completed() == 0


class TestLabelRepository:
    """Test cases for LabelRepository."""

    def test_defaults_are_seeded_once(self, label_repository):
        first = label_repository.list()
        second = label_repository.list()

        assert [label.name for label in first] == ["Work", "Personal", "Urgent"]
        assert [label.hex_color for label in first] == ["#3B82F6", "#22C55E", "#EF4444"]
        assert [label.id for label in first] == [label.id for label in second]

    def test_custom_seed(self, storage, event_repository):
        labels = LabelRepository(storage, event_repository, seed_labels=[Label(name="Home", color="#123456")])

        assert [label.name for label in labels.list()] == ["Home"]

    def test_add_and_find_by_name(self, label_repository):
        label_id = label_repository.add(Label(name="Family", color="#ABCDEF"))

        found = label_repository.find_by_name("  family ")

        assert found is not None
        assert found.id == label_id
        assert label_repository.find_by_name("Nobody") is None

    @pytest.mark.parametrize("label", [
        Label(name="", color="#ABCDEF"),
        Label(name="x" * 31, color="#ABCDEF"),
        Label(name="Bad", color="blue"),
    ])
    def test_add_invalid_label(self, label_repository, label):
        with pytest.raises(ValidationError):
            label_repository.add(label)

    def test_update(self, label_repository):
        label = label_repository.list()[0]
        label.color = "#000000"

        label_repository.update(label)

        assert label_repository.get(label.id).hex_color == "#000000"

    def test_remove_cascades_to_events(self, storage, event_repository, label_repository):
        """Deleting a label used by three events strips it from all three; a lone label leaves no labelIds."""
        work, personal, urgent = label_repository.list()
        only_work = event_repository.add(make_event("A", label_ids=[work.id]))
        both = event_repository.add(make_event("B", label_ids=[work.id, personal.id]))
        work_first = event_repository.add(make_event("C", label_ids=[work.id, urgent.id]))
        untouched = event_repository.add(make_event("D", label_ids=[personal.id]))

        changed = label_repository.remove(work.id)

        assert changed == 3
        assert label_repository.get(work.id) is None
        assert event_repository.get(only_work).label_ids == []
        assert "labelIds" not in storage.load(COLLECTION_EVENTS)[only_work]
        assert event_repository.get(both).label_ids == [personal.id]
        assert event_repository.get(work_first).label_ids == [urgent.id]
        assert event_repository.get(untouched).label_ids == [personal.id]

    def test_remove_missing_label(self, label_repository):
        with pytest.raises(StorageError):
            label_repository.remove("missing")


class TestJsonStorage:
    """Test cases for JsonStorage."""

    def test_persists_across_instances(self, tmp_path):
        events = EventRepository(JsonStorage(tmp_path, "alice"))
        event_id = events.add(make_event("Persisted", repeat="weekly"))

        reopened = EventRepository(create_storage_backend(tmp_path, "alice"))

        event = reopened.get(event_id)
        assert event.title == "Persisted"
        assert event.repeat == "weekly"

        document = json.loads((tmp_path / "users" / "alice" / "events.json").read_text())
        assert document["collection"] == "events"
        assert document["user_id"] == "alice"
        assert event_id in document["records"]

    def test_users_are_separate(self, tmp_path):
        EventRepository(JsonStorage(tmp_path, "alice")).add(make_event("Mine"))

        assert EventRepository(JsonStorage(tmp_path, "bob")).list() == []

    def test_no_temp_files_left(self, tmp_path):
        storage = JsonStorage(tmp_path, "alice")
        EventRepository(storage).add(make_event("One"))

        assert sorted(p.name for p in storage.user_dir.iterdir()) == ["events.json"]

    def test_corrupt_file(self, tmp_path):
        storage = JsonStorage(tmp_path, "alice")
        (storage.user_dir / "events.json").write_text("{not json")

        with pytest.raises(StorageError):
            EventRepository(storage).list()
