"""Unit tests for the CSV codec."""
import pytest

from schedule_core.csv_codec import CSV_HEADERS, export_events_to_csv, import_events_from_csv
from schedule_core.errors import CsvImportError
from schedule_core.models import Event


HEADER = "title,description,date,repeat,repeatAbout,reminderEnabled,reminderValue,reminderUnit,alarm,isBirthday"


def well_formed_events():
    return [
        Event(
            id="id-1",
            title="Standup",
            description="Daily sync, room 4",
            date="2024-01-15T09:00:00.000Z",
            repeat="daily",
            label_ids=["work"],
        ),
        Event(
            title="Dentist",
            description='Bring the "blue" card',
            date="2024-02-03T14:30:00.000Z",
            reminder_enabled=True,
            reminder_value=2,
            reminder_unit="hours",
            alarm=True,
        ),
        Event(
            title="Anna's birthday",
            date="2024-05-20T00:00:00.000Z",
            repeat="yearly",
            is_birthday=True,
        ),
        Event(
            title="Stretch",
            date="2024-01-16T10:00:00.000Z",
            repeat="about",
            repeat_about="90",
        ),
    ]


class TestExport:
    """Test cases for export_events_to_csv()."""

    def test_header_row(self):
        text = export_events_to_csv([])
        assert text == HEADER + "\r\n"
        assert ",".join(CSV_HEADERS) == HEADER

    def test_row_values(self, standup):
        text = export_events_to_csv([standup])
        rows = text.split("\r\n")

        assert rows[1] == "Standup,,2024-01-15T09:00:00.000Z,daily,,false,,,false,false"

    def test_missing_values_are_empty_not_none(self):
        text = export_events_to_csv(well_formed_events())

        assert "None" not in text
        assert "undefined" not in text

    def test_id_and_labels_not_exported(self):
        text = export_events_to_csv(well_formed_events())

        assert "id-1" not in text
        assert "work" not in text

    def test_quoting(self):
        text = export_events_to_csv(well_formed_events())

        assert '"Daily sync, room 4"' in text
        assert '"Bring the ""blue"" card"' in text


class TestImport:
    """Test cases for import_events_from_csv()."""

    def test_round_trip(self):
        """Exported events import back with the same fields (no id, no labels)."""
        originals = well_formed_events()

        imported = import_events_from_csv(export_events_to_csv(originals))

        assert len(imported) == len(originals)
        for original, event in zip(originals, imported):
            assert event.id is None
            assert event.label_ids == []
            for attr in ("title", "description", "date", "repeat", "repeat_about",
                         "reminder_enabled", "reminder_value", "reminder_unit",
                         "alarm", "is_birthday"):
                assert getattr(event, attr) == getattr(original, attr), attr

    def test_invalid_date_row_is_excluded(self):
        """A bad date drops that row only; later rows still import."""
        text = "\r\n".join([
            HEADER,
            "Meeting,,2024-13-40,none,,false,,,false,false",
            "Lunch,,2024-01-16T12:00:00.000Z,none,,false,,,false,false",
        ])

        events = import_events_from_csv(text)

        assert [e.title for e in events] == ["Lunch"]

    def test_missing_title_row_is_excluded(self):
        text = "\n".join([
            HEADER,
            ",no title,2024-01-16T12:00:00.000Z,none,,false,,,false,false",
            "Lunch,,2024-01-16T12:00:00.000Z,none,,false,,,false,false",
        ])

        assert [e.title for e in import_events_from_csv(text)] == ["Lunch"]

    def test_all_rows_invalid_fails(self):
        text = "\n".join([
            HEADER,
            "Meeting,,2024-13-40,none,,false,,,false,false",
            ",,,,,,,,,",
            "Call,,,none,,false,,,false,false",
        ])

        with pytest.raises(CsvImportError) as exc_info:
            import_events_from_csv(text)

        assert "'title' and 'date' are required" in str(exc_info.value)

    def test_only_blank_cell_rows_fails(self):
        text = HEADER + "\r\n,,,,,,,,,\r\n,,,,,,,,,\r\n"

        with pytest.raises(CsvImportError) as exc_info:
            import_events_from_csv(text)

        assert "'title' and 'date' are required" in str(exc_info.value)

    def test_header_only_is_empty(self):
        assert import_events_from_csv(HEADER + "\r\n") == []
        assert import_events_from_csv("") == []

    def test_blank_lines_skipped(self):
        text = HEADER + "\n\nLunch,,2024-01-16T12:00:00.000Z,none,,false,,,false,false\n\n"

        assert len(import_events_from_csv(text)) == 1

    def test_too_many_fields_fails_with_row(self):
        text = "\n".join([
            HEADER,
            "Lunch,,2024-01-16T12:00:00.000Z,none,,false,,,false,false",
            "Dinner,,2024-01-16T19:00:00.000Z,none,,false,,,false,false,extra",
        ])

        with pytest.raises(CsvImportError) as exc_info:
            import_events_from_csv(text)

        assert "row 2" in str(exc_info.value)

    def test_unterminated_quote_fails(self):
        text = HEADER + '\n"Lunch,,2024-01-16T12:00:00.000Z,none,,false,,,false,false\n'

        with pytest.raises(CsvImportError) as exc_info:
            import_events_from_csv(text)

        assert "row 1" in str(exc_info.value)

    def test_boolean_coercion(self):
        text = "\n".join([
            HEADER,
            "A,,2024-01-16T12:00:00.000Z,none,,TRUE,5,minutes,True,yes",
        ])

        event = import_events_from_csv(text)[0]

        assert event.reminder_enabled is True
        assert event.alarm is True
        assert event.is_birthday is False

    @pytest.mark.parametrize("cell,expected", [
        ("15", 15),
        ("15min", 15),
        ("", None),
        ("abc", None),
    ])
    def test_reminder_value_coercion(self, cell, expected):
        text = HEADER + f"\nA,,2024-01-16T12:00:00.000Z,none,,true,{cell},minutes,false,false"

        assert import_events_from_csv(text)[0].reminder_value == expected

    def test_date_is_normalized(self):
        text = HEADER + '\nA,,"January 15, 2024 9:00 AM",none,,false,,,false,false'

        assert import_events_from_csv(text)[0].date == "2024-01-15T09:00:00.000Z"

    def test_date_with_offset(self):
        text = HEADER + "\nA,,2024-01-15T10:00:00+01:00,none,,false,,,false,false"

        assert import_events_from_csv(text)[0].date == "2024-01-15T09:00:00.000Z"

    def test_unknown_repeat_falls_back(self):
        text = HEADER + "\nA,,2024-01-15T09:00:00.000Z,hourly,,false,,,false,false"

        assert import_events_from_csv(text)[0].repeat == "none"

    def test_byte_order_mark(self):
        text = "\ufeff" + HEADER + "\nA,,2024-01-15T09:00:00.000Z,none,,false,,,false,false"

        assert import_events_from_csv(text)[0].title == "A"
