"""
Event and label repositories.

Local implementation of the repository contracts the core consumes:
events and labels are stored per user through a StorageBackend.
Every call reads and writes the store; nothing is cached between calls,
so each operation stands alone and can fail on its own.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from .errors import StorageError, ValidationError
from .models import Event, Label, DEFAULT_LABELS
from .storage import StorageBackend, COLLECTION_EVENTS, COLLECTION_LABELS

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class EventRepository:
    """
    Repository for Event objects.

    Supplies snapshot lists to the classifier and the codecs, and
    accepts mutations.
    """

    def __init__(self, storage: StorageBackend):
        self._storage = storage

    def _load(self) -> dict[str, dict]:
        return self._storage.load(COLLECTION_EVENTS)

    def list(self) -> list[Event]:
        """All events in storage order."""
        return [Event.from_dict(data, id=event_id) for event_id, data in self._load().items()]

    def snapshot(self) -> list[Event]:
        """All events sorted by date, as a fresh list."""
        return sorted(self.list(), key=lambda e: e.start)

    def get(self, event_id: str) -> Optional[Event]:
        data = self._storage.get(COLLECTION_EVENTS, event_id)
        return Event.from_dict(data, id=event_id) if data is not None else None

    def add(self, event: Event) -> str:
        """
        Store a new event.

        Any id already on the event is ignored; a new one is assigned.

        Returns:
            The new event id.
        """
        event.validate()
        event_id = _new_id()
        self._storage.put(COLLECTION_EVENTS, event_id, event.to_dict(include_id=False))
        logger.debug(f"Added event {event_id} '{event.title}'")
        return event_id

    def update(self, event: Event) -> None:
        """Replace a stored event (matched by id)."""
        if not event.id:
            raise ValidationError("Cannot update an event without an id.")
        event.validate()
        if self._storage.get(COLLECTION_EVENTS, event.id) is None:
            raise StorageError(f"Event {event.id} does not exist.")
        self._storage.put(COLLECTION_EVENTS, event.id, event.to_dict(include_id=False))
        logger.debug(f"Updated event {event.id}")

    def remove(self, event_id: str) -> None:
        if not self._storage.delete(COLLECTION_EVENTS, event_id):
            raise StorageError(f"Event {event_id} does not exist.")
        logger.debug(f"Removed event {event_id}")

    def set_completed(self, event_id: str, completed: bool = True) -> Event:
        """Toggle the completed flag, leaving the date alone."""
        event = self.get(event_id)
        if event is None:
            raise StorageError(f"Event {event_id} does not exist.")
        event.is_completed = completed
        self.update(event)
        return event

    def remove_all_completed(self) -> int:
        """
        Delete every completed event in one write.

        Returns:
            Number of events removed.
        """
        records = self._load()
        remaining = {k: v for k, v in records.items() if not v.get("isCompleted")}
        removed = len(records) - len(remaining)
        if removed:
            self._storage.save(COLLECTION_EVENTS, remaining)
        logger.info(f"Removed {removed} completed events")
        return removed

    def remove_label_references(self, label_id: str) -> int:
        """
        Strip a label id from every event that carries it.

        Events left without labels end up with no labelIds at all.

        Returns:
            Number of events changed.
        """
        records = self._load()
        changed = 0
        for data in records.values():
            label_ids = data.get("labelIds") or []
            if label_id not in label_ids:
                continue
            remaining = [lid for lid in label_ids if lid != label_id]
            if remaining:
                data["labelIds"] = remaining
            else:
                data.pop("labelIds", None)
            changed += 1

        if changed:
            self._storage.save(COLLECTION_EVENTS, records)
        return changed


class LabelRepository:
    """
    Repository for Label objects.

    Removing a label cascades into the events that reference it.
    """

    def __init__(self, storage: StorageBackend, events: EventRepository, seed_labels: Optional[list[Label]] = None):
        self._storage = storage
        self._events = events
        self._seed_labels = seed_labels if seed_labels is not None else DEFAULT_LABELS

    def list(self) -> list[Label]:
        """
        All labels. A user without any labels gets the default set first.
        """
        records = self._storage.load(COLLECTION_LABELS)
        if not records:
            records = self._seed_defaults()
        return [Label.from_dict(data, id=label_id) for label_id, data in records.items()]

    def _seed_defaults(self) -> dict[str, dict]:
        records = {_new_id(): label.to_dict() for label in self._seed_labels}
        if records:
            self._storage.save(COLLECTION_LABELS, records)
            logger.info(f"Created {len(records)} default labels")
        return records

    def get(self, label_id: str) -> Optional[Label]:
        data = self._storage.get(COLLECTION_LABELS, label_id)
        return Label.from_dict(data, id=label_id) if data is not None else None

    def find_by_name(self, name: str) -> Optional[Label]:
        """Case-insensitive lookup by name."""
        wanted = name.strip().lower()
        for label in self.list():
            if label.name.strip().lower() == wanted:
                return label
        return None

    def add(self, label: Label) -> str:
        label.validate()
        label_id = _new_id()
        self._storage.put(COLLECTION_LABELS, label_id, label.to_dict())
        logger.debug(f"Added label {label_id} '{label.name}'")
        return label_id

    def update(self, label: Label) -> None:
        if not label.id:
            raise ValidationError("Cannot update a label without an id.")
        label.validate()
        if self._storage.get(COLLECTION_LABELS, label.id) is None:
            raise StorageError(f"Label {label.id} does not exist.")
        self._storage.put(COLLECTION_LABELS, label.id, label.to_dict())

    def remove(self, label_id: str) -> int:
        """
        Delete a label and remove its id from every event.

        Returns:
            Number of events whose labels changed.
        """
        if not self._storage.delete(COLLECTION_LABELS, label_id):
            raise StorageError(f"Label {label_id} does not exist.")
        changed = self._events.remove_label_references(label_id)
        logger.info(f"Removed label {label_id}, updated {changed} events")
        return changed
