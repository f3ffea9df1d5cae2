"""
CSV import/export of events.

The column order is fixed. `id` and `labelIds` are never exported:
ids belong to the store and labels are not portable between accounts.
"""

import csv
import io
import logging
from typing import Iterable, Optional

from .errors import CsvImportError
from .models import Event, REPEAT_NONE, REPEAT_VALUES
from .timezone_utils import normalize_instant

logger = logging.getLogger(__name__)


CSV_HEADERS = [
    'title',
    'description',
    'date',
    'repeat',
    'repeatAbout',
    'reminderEnabled',
    'reminderValue',
    'reminderUnit',
    'alarm',
    'isBirthday',
]

BOOLEAN_FIELDS = ('reminderEnabled', 'alarm', 'isBirthday')


def _cell(value) -> str:
    """Render one value; None becomes an empty cell."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def export_events_to_csv(events: Iterable[Event]) -> str:
    """
    Serialize events to CSV text with a header row.

    Args:
        events: Events in the order they should appear.

    Returns:
        CSV text (CRLF line endings).
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\r\n')
    writer.writerow(CSV_HEADERS)

    count = 0
    for event in events:
        data = event.to_dict(include_id=False)
        writer.writerow([_cell(data.get(header)) for header in CSV_HEADERS])
        count += 1

    logger.info(f"Exported {count} events to CSV")
    return buffer.getvalue()


def _parse_int(value: str) -> Optional[int]:
    """Leading-integer parse: '15' -> 15, '15min' -> 15, 'abc' -> None."""
    digits = ''
    for i, ch in enumerate(value.strip()):
        if ch.isdigit() or (i == 0 and ch in '+-'):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return None


def _coerce_row(row: dict[str, str]) -> dict:
    """Apply per-field type coercion. Empty cells are left out."""
    data = {}
    for name, raw in row.items():
        if name is None or raw is None:
            continue
        value = raw.strip() if name != 'description' else raw
        if value == '':
            continue

        if name in BOOLEAN_FIELDS:
            data[name] = value.lower() == 'true'
        elif name == 'reminderValue':
            number = _parse_int(value)
            if number is not None:
                data[name] = number
        elif name == 'date':
            normalized = normalize_instant(value)
            if normalized is not None:
                data[name] = normalized
        else:
            data[name] = value
    return data


def import_events_from_csv(text: str) -> list[Event]:
    """
    Parse CSV text produced by export_events_to_csv() (or edited by hand).

    Rows without a non-empty title or a usable date are dropped. Empty
    lines are skipped; rows of blank cells count as data rows.

    Raises:
        CsvImportError: if the delimiter structure is broken (the message
            names the offending data row, counting from 1), or if rows were
            present but none of them had a title and a date.
    """
    if text.startswith('\ufeff'):
        text = text[1:]

    reader = csv.reader(io.StringIO(text), strict=True)
    header = None
    rows = []

    try:
        for fields in reader:
            if not fields:
                continue
            if header is None:
                header = [f.strip() for f in fields]
                continue
            row_number = len(rows) + 1
            if len(fields) != len(header):
                problem = "Too many fields" if len(fields) > len(header) else "Too few fields"
                raise CsvImportError(
                    f"Error parsing row {row_number}: {problem}: expected {len(header)} fields "
                    f"but parsed {len(fields)}"
                )
            rows.append(dict(zip(header, fields)))
    except csv.Error as e:
        raise CsvImportError(f"Error parsing row {len(rows) + 1}: {e}") from e

    events = []
    for row_number, row in enumerate(rows, start=1):
        data = _coerce_row(row)
        if not data.get('title') or not data.get('date'):
            logger.warning(f"Skipping CSV row {row_number}: 'title' and 'date' are required")
            continue
        if data.get('repeat', REPEAT_NONE) not in REPEAT_VALUES:
            logger.warning(f"CSV row {row_number}: unknown repeat {data['repeat']!r}, using 'none'")
            data['repeat'] = REPEAT_NONE
        events.append(Event.from_dict(data))

    if not events and rows:
        raise CsvImportError()

    logger.info(f"Imported {len(events)} events out of {len(rows)} CSV rows")
    return events
