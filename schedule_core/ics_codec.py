"""
iCalendar import/export of events.

Export writes one VEVENT per event with a fixed one hour duration (events
have no end time), an optional RRULE and at most one display VALARM with
an absolute trigger. Import reads every VEVENT back; alarm offsets always
come back in minutes, whatever unit they were exported with.
"""

import logging
import uuid
from datetime import datetime, date, timedelta
from typing import Iterable, Optional

import pytz
from dateutil.relativedelta import relativedelta
from icalendar import Calendar as ICalCalendar, Event as ICalEvent, Alarm as ICalAlarm

from .errors import IcsExportError, IcsImportError, ScheduleError
from .models import Event
from .recurrence import repeat_to_vrecur, rule_to_repeat
from .timezone_utils import (
    format_instant, to_local_datetime, to_utc_datetime,
)

logger = logging.getLogger(__name__)


PRODID = '-//Schedule Events//schedule-events//EN'
DEFAULT_CALENDAR_NAME = 'Schedule Events'
DEFAULT_PLACEHOLDER_TITLE = 'Untitled Event'
EVENT_DURATION = timedelta(hours=1)


# ==================== Export ====================

def reminder_trigger(event: Event, tz=None) -> Optional[datetime]:
    """
    Compute the absolute instant at which the event's alarm fires.

    A reminder offset wins over the at-time-of-event alarm flag; the two
    never produce two alarms. Minute and hour offsets are exact durations,
    day, week and month offsets step back on the local calendar.

    Returns:
        Aware UTC datetime, or None if the event has no alarm.
    """
    start = event.start
    if event.has_reminder_offset:
        value = int(event.reminder_value)
        unit = event.reminder_unit
        if unit in ('minutes', 'hours'):
            return start - timedelta(**{unit: value})
        wall = to_local_datetime(start, tz).replace(tzinfo=None)
        return to_utc_datetime(wall - relativedelta(**{unit: value}), tz)
    if event.alarm:
        return start
    return None


def _build_vevent(event: Event, dtstamp: datetime, tz=None) -> ICalEvent:
    vevent = ICalEvent()
    vevent.add('uid', event.id or str(uuid.uuid4()))
    vevent.add('dtstamp', dtstamp)
    vevent.add('dtstart', event.start)
    vevent.add('duration', EVENT_DURATION)
    vevent.add('summary', event.title)
    if event.description:
        vevent.add('description', event.description)

    rrule = repeat_to_vrecur(event.repeat)
    if rrule is not None:
        vevent.add('rrule', rrule)

    trigger = reminder_trigger(event, tz)
    if trigger is not None:
        alarm = ICalAlarm()
        alarm.add('action', 'DISPLAY')
        alarm.add('description', 'Reminder')
        alarm.add('trigger', trigger, parameters={'VALUE': 'DATE-TIME'})
        vevent.add_component(alarm)

    return vevent


def export_events_to_ics(
    events: Iterable[Event],
    calendar_name: str = DEFAULT_CALENDAR_NAME,
    now: Optional[datetime] = None,
    tz=None,
) -> str:
    """
    Render events as an iCalendar document.

    The whole document is built before anything is returned, so a failure
    never yields a partial calendar.

    Raises:
        IcsExportError: if any event cannot be rendered.
    """
    dtstamp = to_utc_datetime(now) if now else datetime.now(pytz.UTC)

    calendar = ICalCalendar()
    calendar.add('prodid', PRODID)
    calendar.add('version', '2.0')
    calendar.add('calscale', 'GREGORIAN')
    calendar.add('x-wr-calname', calendar_name)

    count = 0
    for event in events:
        try:
            calendar.add_component(_build_vevent(event, dtstamp, tz))
        except (ScheduleError, ValueError, TypeError) as e:
            logger.error(f"Failed to create ICS entry for '{event.title}': {e}")
            raise IcsExportError(f"Could not generate ICS file: {e}") from e
        count += 1

    try:
        text = calendar.to_ical().decode('utf-8')
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to serialize ICS file: {e}")
        raise IcsExportError() from e

    logger.info(f"Exported {count} events to ICS")
    return text


# ==================== Import ====================

def _to_instant(value, tz=None) -> datetime:
    """Convert a DATE or DATE-TIME value to an aware UTC datetime."""
    if isinstance(value, datetime):
        return to_utc_datetime(value, tz)
    if isinstance(value, date):
        # All-day: midnight on the local calendar
        return to_utc_datetime(datetime.combine(value, datetime.min.time()), tz)
    raise IcsImportError(f"Unsupported date value: {value!r}")


def _component_end(component, start: datetime, tz=None) -> datetime:
    dtend = component.get('DTEND')
    if dtend is not None:
        return _to_instant(dtend.dt, tz)
    duration = component.get('DURATION')
    if duration is not None and isinstance(duration.dt, timedelta):
        return start + duration.dt
    return start


def _trigger_instant(alarm, component, start: datetime, tz=None) -> Optional[datetime]:
    trigger = alarm.get('TRIGGER')
    if trigger is None:
        return None

    value = trigger.dt
    if isinstance(value, timedelta):
        related = str(trigger.params.get('RELATED', 'START')).upper()
        base = _component_end(component, start, tz) if related == 'END' else start
        return base + value
    return _to_instant(value, tz)


def _apply_alarm(event: Event, component, start: datetime, tz=None) -> None:
    alarm = next((c for c in component.subcomponents if c.name == 'VALARM'), None)
    if alarm is None:
        return

    trigger = _trigger_instant(alarm, component, start, tz)
    if trigger is None:
        logger.warning(f"Ignoring VALARM without TRIGGER on '{event.title}'")
        return

    minutes = round((start - trigger).total_seconds() / 60)
    if trigger == start or minutes <= 0:
        event.alarm = True
    else:
        event.reminder_enabled = True
        event.reminder_value = minutes
        event.reminder_unit = 'minutes'


def _vevent_to_event(component, placeholder_title: str, tz=None) -> Event:
    summary = component.get('SUMMARY')
    summary_text = str(summary) if summary else ''

    dtstart = component.get('DTSTART')
    if dtstart is None:
        raise IcsImportError(f"Event '{summary_text or placeholder_title}' has no start time.")
    start = _to_instant(dtstart.dt, tz)

    description = component.get('DESCRIPTION')

    event = Event(
        title=summary_text or placeholder_title,
        description=str(description) if description else '',
        date=format_instant(start),
        repeat=rule_to_repeat(component.get('RRULE')),
        is_birthday='birthday' in summary_text.lower(),
        label_ids=[],
    )
    _apply_alarm(event, component, start, tz)
    return event


def parse_ics(text: str) -> ICalCalendar:
    """
    Parse iCalendar text into an icalendar.Calendar object.

    Raises:
        IcsImportError: if the text is not a VCALENDAR document.
    """
    try:
        calendar = ICalCalendar.from_ical(text)
    except Exception as e:
        logger.error(f"ICS parsing error: {e}")
        raise IcsImportError() from e

    if getattr(calendar, 'name', None) != 'VCALENDAR':
        raise IcsImportError()
    return calendar


def import_events_from_ics(
    text: str,
    placeholder_title: str = DEFAULT_PLACEHOLDER_TITLE,
    tz=None,
) -> list[Event]:
    """
    Parse an iCalendar document into events.

    Recurrence is kept as metadata (no expansion); labels start empty.

    Raises:
        IcsImportError: if the document (or any VEVENT in it) is broken;
            no partial list is ever returned.
    """
    calendar = parse_ics(text)

    events = []
    for component in calendar.walk('VEVENT'):
        try:
            events.append(_vevent_to_event(component, placeholder_title, tz))
        except IcsImportError:
            raise
        except Exception as e:
            logger.error(f"ICS event parsing error: {e}")
            raise IcsImportError() from e

    logger.info(f"Imported {len(events)} events from ICS")
    return events

