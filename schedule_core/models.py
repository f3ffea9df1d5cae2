"""
Event and Label models.

Attributes are snake_case on the Python side; to_dict()/from_dict() use
the camelCase field names of the stored and exported schema
(reminderEnabled, labelIds, ...).
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .errors import ValidationError
from .timezone_utils import parse_instant


REPEAT_NONE = "none"
REPEAT_DAILY = "daily"
REPEAT_WEEKLY = "weekly"
REPEAT_MONTHLY = "monthly"
REPEAT_YEARLY = "yearly"
REPEAT_ABOUT = "about"  # Custom interval in minutes, see repeat_about

REPEAT_VALUES = (
    REPEAT_NONE, REPEAT_DAILY, REPEAT_WEEKLY,
    REPEAT_MONTHLY, REPEAT_YEARLY, REPEAT_ABOUT,
)

REMINDER_UNITS = ("minutes", "hours", "days", "weeks", "months")

LABEL_NAME_MAX_LENGTH = 30

_COLOR_RE = re.compile(r'#?[0-9a-fA-F]{6}')


@dataclass
class Event:
    """
    A single scheduled occurrence.

    Recurrence is metadata only: one instance is stored and `repeat`
    describes how it repeats.
    """
    title: str
    date: str  # ISO-8601 instant
    description: str = ""
    repeat: str = REPEAT_NONE
    repeat_about: Optional[str] = None
    reminder_enabled: bool = False
    reminder_value: Optional[int] = None
    reminder_unit: Optional[str] = None
    alarm: bool = False
    is_birthday: bool = False
    label_ids: list[str] = field(default_factory=list)
    is_completed: bool = False
    id: Optional[str] = None

    @property
    def start(self) -> datetime:
        """The event instant as an aware UTC datetime."""
        parsed = parse_instant(self.date)
        if parsed is None:
            raise ValidationError(f"Event '{self.title}' has an invalid date: {self.date!r}")
        return parsed

    @property
    def has_reminder_offset(self) -> bool:
        """True if a reminder fires at a time offset before the event."""
        return bool(self.reminder_enabled and self.reminder_value and self.reminder_unit)

    def validate(self) -> 'Event':
        """
        Check the data-model invariants.

        Returns:
            self, to allow chaining.

        Raises:
            ValidationError: with a readable description of the first violation.
        """
        if not self.title or not self.title.strip():
            raise ValidationError("Event title is required.")

        if parse_instant(self.date) is None:
            raise ValidationError(f"Event '{self.title}' has an invalid date: {self.date!r}")

        if self.repeat not in REPEAT_VALUES:
            raise ValidationError(f"Unknown repeat value: {self.repeat!r}")

        if self.repeat == REPEAT_ABOUT:
            try:
                minutes = int(str(self.repeat_about).strip())
            except (TypeError, ValueError):
                minutes = 0
            if minutes <= 0:
                raise ValidationError(
                    f"Event '{self.title}' repeats about every N minutes but N is not a positive number."
                )

        # An at-time-of-event reminder carries neither value nor unit
        if self.reminder_enabled and (self.reminder_value is not None or self.reminder_unit is not None):
            if self.reminder_value is None or self.reminder_value <= 0:
                raise ValidationError(f"Event '{self.title}' has a reminder without a positive value.")
            if self.reminder_unit not in REMINDER_UNITS:
                raise ValidationError(f"Event '{self.title}' has an unknown reminder unit: {self.reminder_unit!r}")

        return self

    def to_dict(self, include_id: bool = True) -> dict:
        """Serialize using the stored schema. None values and empty label lists are left out."""
        data = {
            "id": self.id if include_id else None,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "repeat": self.repeat,
            "repeatAbout": self.repeat_about,
            "reminderEnabled": self.reminder_enabled,
            "reminderValue": self.reminder_value,
            "reminderUnit": self.reminder_unit,
            "alarm": self.alarm,
            "isBirthday": self.is_birthday,
            "labelIds": list(self.label_ids) or None,
            "isCompleted": self.is_completed,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict, id: Optional[str] = None) -> 'Event':
        return cls(
            id=id if id is not None else data.get("id"),
            title=data.get("title", ""),
            description=data.get("description") or "",
            date=data.get("date", ""),
            repeat=data.get("repeat") or REPEAT_NONE,
            repeat_about=data.get("repeatAbout"),
            reminder_enabled=bool(data.get("reminderEnabled", False)),
            reminder_value=data.get("reminderValue"),
            reminder_unit=data.get("reminderUnit"),
            alarm=bool(data.get("alarm", False)),
            is_birthday=bool(data.get("isBirthday", False)),
            label_ids=list(data.get("labelIds") or []),
            is_completed=bool(data.get("isCompleted", False)),
        )

    def __repr__(self):
        return f"Event(id={self.id!r}, title={self.title!r}, date={self.date!r}, repeat={self.repeat!r})"


@dataclass
class Label:
    """A user-defined tag referenced by events through Event.label_ids."""
    name: str
    color: str
    id: Optional[str] = None

    def validate(self) -> 'Label':
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("Label name is required.")
        if len(name) > LABEL_NAME_MAX_LENGTH:
            raise ValidationError(f"Label name must be at most {LABEL_NAME_MAX_LENGTH} characters.")
        if not _COLOR_RE.fullmatch(self.color or ""):
            raise ValidationError(f"Label color must be a 6-digit hex value, got {self.color!r}.")
        return self

    @property
    def hex_color(self) -> str:
        """Color normalized to '#RRGGBB' upper case."""
        return "#" + self.color.lstrip("#").upper()

    def to_dict(self) -> dict:
        return {"name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: dict, id: Optional[str] = None) -> 'Label':
        return cls(
            id=id if id is not None else data.get("id"),
            name=data.get("name", ""),
            color=data.get("color", ""),
        )


DEFAULT_LABELS = [
    Label(name="Work", color="#3B82F6"),
    Label(name="Personal", color="#22C55E"),
    Label(name="Urgent", color="#EF4444"),
]
