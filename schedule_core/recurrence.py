"""
Mapping between the simplified repeat values and iCalendar RRULEs.

The mapping is lossy by nature. Only daily/weekly/monthly/yearly have a
standard RRULE form; 'about' (a custom interval in minutes) produces no
rule at all, and any rule coming back from another calendar tool without
one of the four plain frequencies maps to 'none'.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from icalendar import vRecur

from .models import (
    Event, REPEAT_NONE, REPEAT_DAILY, REPEAT_WEEKLY, REPEAT_MONTHLY, REPEAT_YEARLY,
)

logger = logging.getLogger(__name__)


_REPEAT_TO_FREQ = {
    REPEAT_DAILY: "DAILY",
    REPEAT_WEEKLY: "WEEKLY",
    REPEAT_MONTHLY: "MONTHLY",
    REPEAT_YEARLY: "YEARLY",
}

_FREQ_TO_REPEAT = {freq: repeat for repeat, freq in _REPEAT_TO_FREQ.items()}

_FREQ_RE = re.compile(r'FREQ=(DAILY|WEEKLY|MONTHLY|YEARLY)(?![A-Z])', re.IGNORECASE)


def repeat_to_rule(repeat: Optional[str]) -> Optional[str]:
    """
    Get the RRULE value for a repeat setting.

    Returns:
        e.g. 'FREQ=DAILY', or None for 'none', 'about' and unknown values.
    """
    freq = _REPEAT_TO_FREQ.get(repeat or REPEAT_NONE)
    return f"FREQ={freq}" if freq else None


def repeat_to_vrecur(repeat: Optional[str]) -> Optional[vRecur]:
    """Same as repeat_to_rule() but as an icalendar vRecur value."""
    freq = _REPEAT_TO_FREQ.get(repeat or REPEAT_NONE)
    return vRecur(freq=freq) if freq else None


def build_rrule(event: Event) -> Optional[str]:
    """
    Build a full recurrence rule for an event, anchored at its start.

    Example:
        DTSTART:20240115T090000Z
        RRULE:FREQ=DAILY
    """
    rule = repeat_to_rule(event.repeat)
    if rule is None:
        return None
    dtstart = event.start.strftime('%Y%m%dT%H%M%SZ')
    return f"DTSTART:{dtstart}\nRRULE:{rule}"


def _rule_text(rule: Any) -> str:
    if isinstance(rule, vRecur):
        return rule.to_ical().decode('utf-8')
    if isinstance(rule, bytes):
        return rule.decode('utf-8', errors='ignore')
    if isinstance(rule, Mapping):
        freq = rule.get('FREQ') or rule.get('freq')
        if isinstance(freq, (list, tuple)):
            freq = freq[0] if freq else None
        return f"FREQ={freq}" if freq else ""
    if hasattr(rule, 'to_ical'):
        return rule.to_ical().decode('utf-8')
    return str(rule)


def rule_to_repeat(rule: Any) -> str:
    """
    Map a recurrence rule back to a repeat value.

    Accepts rule text (with or without DTSTART/RRULE: prefixes), bytes,
    a vRecur, a mapping or None. Never raises: anything without a
    recognized frequency maps to 'none'.
    """
    if rule is None:
        return REPEAT_NONE

    try:
        text = _rule_text(rule)
    except (AttributeError, TypeError, ValueError, UnicodeError) as e:
        logger.debug(f"Unreadable recurrence rule {rule!r}: {e}")
        return REPEAT_NONE

    match = _FREQ_RE.search(text)
    if not match:
        return REPEAT_NONE
    return _FREQ_TO_REPEAT[match.group(1).upper()]
