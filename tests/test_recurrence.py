"""Unit tests for the repeat <-> RRULE mapping."""
import pytest
from icalendar import vRecur

from schedule_core.models import Event
from schedule_core.recurrence import (
    repeat_to_rule, repeat_to_vrecur, rule_to_repeat, build_rrule,
)


class TestRepeatToRule:
    """Test cases for the export direction."""

    @pytest.mark.parametrize("repeat,rule", [
        ("daily", "FREQ=DAILY"),
        ("weekly", "FREQ=WEEKLY"),
        ("monthly", "FREQ=MONTHLY"),
        ("yearly", "FREQ=YEARLY"),
    ])
    def test_standard_frequencies(self, repeat, rule):
        assert repeat_to_rule(repeat) == rule

    @pytest.mark.parametrize("repeat", ["none", "about", None, "fortnightly"])
    def test_no_rule(self, repeat):
        """none, about and unknown values produce no rule at all."""
        assert repeat_to_rule(repeat) is None
        assert repeat_to_vrecur(repeat) is None

    def test_build_rrule_anchors_start(self, standup):
        assert build_rrule(standup) == "DTSTART:20240115T090000Z\nRRULE:FREQ=DAILY"

    def test_build_rrule_about(self):
        event = Event(title="Stretch", date="2024-01-15T09:00:00.000Z", repeat="about", repeat_about="90")
        assert build_rrule(event) is None


class TestRuleToRepeat:
    """Test cases for the import direction."""

    @pytest.mark.parametrize("repeat", ["daily", "weekly", "monthly", "yearly"])
    def test_round_trip(self, repeat):
        assert rule_to_repeat(repeat_to_rule(repeat)) == repeat
        assert rule_to_repeat(repeat_to_vrecur(repeat)) == repeat

    def test_about_does_not_round_trip(self):
        """The custom-minute repeat is lost: it comes back as none."""
        assert rule_to_repeat(repeat_to_rule("about")) == "none"
        assert rule_to_repeat(repeat_to_rule("about")) != "about"

    @pytest.mark.parametrize("rule,expected", [
        ("RRULE:FREQ=WEEKLY;INTERVAL=2", "weekly"),
        ("DTSTART:20240115T090000Z\nRRULE:FREQ=MONTHLY;BYMONTHDAY=15", "monthly"),
        ("freq=yearly", "yearly"),
        (b"FREQ=DAILY;COUNT=3", "daily"),
        ({"FREQ": ["WEEKLY"]}, "weekly"),
        (vRecur(freq="YEARLY", interval=2), "yearly"),
    ])
    def test_accepted_forms(self, rule, expected):
        assert rule_to_repeat(rule) == expected

    @pytest.mark.parametrize("rule", [
        None,
        "",
        "FREQ=HOURLY",
        "FREQ=MINUTELY;INTERVAL=90",
        "complete garbage ;;; ===",
        "FREQ=DAILYISH",
        {},
        12345,
    ])
    def test_unrecognized_is_none(self, rule):
        """Malformed or non-standard rules map to none and never raise."""
        assert rule_to_repeat(rule) == "none"
