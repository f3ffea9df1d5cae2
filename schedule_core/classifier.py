"""
Temporal classification of events into display groups.

One pure function, classify_events(), buckets pending events into
"In Day" (today or tomorrow), "This Week" and "Later". The view
builders below reuse it for every screen that lists events, so the
bucket rules live in exactly one place.

All functions take a snapshot list and return new lists; the input is
never mutated.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytz

from .models import (
    Event, Label, REPEAT_DAILY, REPEAT_WEEKLY, REPEAT_MONTHLY, REPEAT_YEARLY,
)
from .timezone_utils import get_local_timezone, local_date


GROUP_IN_DAY = "in_day"
GROUP_THIS_WEEK = "this_week"
GROUP_LATER = "later"

GROUP_NAMES = {
    GROUP_IN_DAY: "In Day",
    GROUP_THIS_WEEK: "This Week",
    GROUP_LATER: "Later",
}

MONDAY = 0


@dataclass
class EventGroup:
    """A classifier bucket with its members in display order."""
    key: str
    events: list[Event] = field(default_factory=list)

    @property
    def name(self) -> str:
        return GROUP_NAMES.get(self.key, self.key)

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def title(self) -> str:
        """Display label, e.g. 'In Day (3)'."""
        return f"{self.name} ({self.count})"

    def __iter__(self):
        return iter(self.events)

    def __len__(self):
        return self.count


def sort_by_date(events: Iterable[Event], descending: bool = False) -> list[Event]:
    """Sort events by instant. Stable for equal instants."""
    return sorted(events, key=lambda e: e.start, reverse=descending)


def split_completed(events: Iterable[Event]) -> tuple[list[Event], list[Event]]:
    """
    Separate pending from completed events.

    Returns:
        (pending in input order, completed sorted newest first)
    """
    pending = []
    completed = []
    for event in events:
        (completed if event.is_completed else pending).append(event)
    return pending, sort_by_date(completed, descending=True)


def classify_events(
    events: Iterable[Event],
    now: Optional[datetime] = None,
    tz=None,
    week_start: int = MONDAY,
) -> list[EventGroup]:
    """
    Partition events into In Day, This Week and Later.

    Args:
        events: Events to classify. Completed events should be removed
            beforehand (see split_completed()).
        now: Reference instant (default: current time).
        tz: Timezone whose calendar days are used (default: configured local).
        week_start: First weekday of a week, 0=Monday.

    Returns:
        Always three groups in that order, each sorted ascending by instant.
        An event dated today or tomorrow is In Day; any other day of the
        current week (past days included) is This Week; everything else,
        past or future, is Later.
    """
    tz = tz or get_local_timezone()
    now = now or datetime.now(pytz.UTC)

    today = local_date(now, tz)
    tomorrow = today + timedelta(days=1)
    week_first = today - timedelta(days=(today.weekday() - week_start) % 7)
    week_last = week_first + timedelta(days=6)

    groups = {key: EventGroup(key) for key in GROUP_NAMES}

    for event in sort_by_date(events):
        day = local_date(event.start, tz)
        if day == today or day == tomorrow:
            key = GROUP_IN_DAY
        elif week_first <= day <= week_last:
            key = GROUP_THIS_WEEK
        else:
            key = GROUP_LATER
        groups[key].events.append(event)

    return [groups[GROUP_IN_DAY], groups[GROUP_THIS_WEEK], groups[GROUP_LATER]]


def filter_events(events: Iterable[Event], query: Optional[str]) -> list[Event]:
    """Case-insensitive search over title and description."""
    events = list(events)
    if not query:
        return events
    needle = query.lower()
    return [
        e for e in events
        if needle in e.title.lower() or needle in (e.description or "").lower()
    ]


def events_on_day(events: Iterable[Event], day: date, tz=None) -> list[Event]:
    """Events whose instant falls on a local calendar day, sorted ascending."""
    tz = tz or get_local_timezone()
    return sort_by_date(e for e in events if local_date(e.start, tz) == day)


def days_with_events(events: Iterable[Event], tz=None) -> set[date]:
    """Local calendar days that have at least one event."""
    tz = tz or get_local_timezone()
    return {local_date(e.start, tz) for e in events}


def build_schedule_view(
    events: Iterable[Event],
    now: Optional[datetime] = None,
    tz=None,
    query: Optional[str] = None,
) -> dict:
    """
    Shape the main schedule screen.

    Keys: 'all' and 'birthdays' hold classified groups; 'daily', 'weekly',
    'monthly' and 'yearly' hold pending events of that repeat sorted
    ascending; 'completed' holds completed events newest first.
    """
    pending, completed = split_completed(filter_events(events, query))

    view = {
        "all": classify_events(pending, now=now, tz=tz),
        "birthdays": classify_events([e for e in pending if e.is_birthday], now=now, tz=tz),
        "completed": completed,
    }
    for repeat in (REPEAT_DAILY, REPEAT_WEEKLY, REPEAT_MONTHLY, REPEAT_YEARLY):
        view[repeat] = sort_by_date(e for e in pending if e.repeat == repeat)
    return view


def build_label_view(
    events: Iterable[Event],
    labels: Iterable[Label],
    now: Optional[datetime] = None,
    tz=None,
    query: Optional[str] = None,
) -> dict:
    """
    Shape the labels screen.

    Returns:
        Dict with 'all' (classified pending events carrying any label) and
        'by_label' mapping each label id to its classified pending events.
    """
    pending, _ = split_completed(filter_events(events, query))

    by_label = {}
    for label in labels:
        tagged = [e for e in pending if label.id in e.label_ids]
        by_label[label.id] = classify_events(tagged, now=now, tz=tz)

    return {
        "all": classify_events([e for e in pending if e.label_ids], now=now, tz=tz),
        "by_label": by_label,
    }
