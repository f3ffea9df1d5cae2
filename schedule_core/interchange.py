"""
File-level import and export.

Wraps the CSV and ICS codecs with the file conventions of the app:
Schedule_Events_<YYYY-MM-DD>.<csv|ics> on export, local files or
http(s) feeds on import.
"""

import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

import requests

from .csv_codec import export_events_to_csv, import_events_from_csv
from .errors import FileReadError, ScheduleError
from .ics_codec import (
    DEFAULT_CALENDAR_NAME, DEFAULT_PLACEHOLDER_TITLE,
    export_events_to_ics, import_events_from_ics,
)
from .models import Event

logger = logging.getLogger(__name__)


KIND_CSV = 'csv'
KIND_ICS = 'ics'
KINDS = (KIND_CSV, KIND_ICS)

DEFAULT_FILENAME_PREFIX = 'Schedule_Events'

_SUFFIX_KINDS = {
    '.csv': KIND_CSV,
    '.ics': KIND_ICS,
    '.ical': KIND_ICS,
    '.ifb': KIND_ICS,
}


def export_filename(kind: str, today: Optional[date] = None, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    """Get the export file name, e.g. Schedule_Events_2024-01-15.csv."""
    if kind not in KINDS:
        raise ValueError(f"Unknown export format: {kind}")
    today = today or date.today()
    return f"{prefix}_{today.strftime('%Y-%m-%d')}.{kind}"


def render_export(
    events: Iterable[Event],
    kind: str,
    calendar_name: str = DEFAULT_CALENDAR_NAME,
) -> str:
    """Render the whole export document in memory."""
    if kind == KIND_CSV:
        return export_events_to_csv(events)
    if kind == KIND_ICS:
        return export_events_to_ics(events, calendar_name=calendar_name)
    raise ValueError(f"Unknown export format: {kind}")


def write_export(
    events: Iterable[Event],
    kind: str,
    directory: Union[str, Path] = '.',
    today: Optional[date] = None,
    prefix: str = DEFAULT_FILENAME_PREFIX,
    calendar_name: str = DEFAULT_CALENDAR_NAME,
) -> Path:
    """
    Export events to a file in directory.

    The document is rendered completely before anything touches the disk,
    and then written through a temporary file, so a failed export leaves
    no file behind.

    Returns:
        Path of the written file.
    """
    text = render_export(events, kind, calendar_name=calendar_name)

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / export_filename(kind, today, prefix)

    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix='.export-', suffix=f'.{kind}')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
        os.replace(tmp_name, target)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(f"Wrote export to {target}")
    return target


def is_url(source: str) -> bool:
    return str(source).lower().startswith(('http://', 'https://', 'webcal://'))


def fetch_text(url: str, timeout: int = 30) -> str:
    """
    Fetch a remote calendar feed.

    Raises:
        FileReadError: on any network or HTTP error.
    """
    if url.lower().startswith('webcal://'):
        url = 'https://' + url[len('webcal://'):]

    try:
        response = requests.get(
            url,
            timeout=timeout,
            headers={
                'User-Agent': 'Schedule-Events/1.0',
                'Accept': 'text/calendar, text/csv',
            }
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Network error fetching {url}: {e}")
        raise FileReadError(f"Failed to read the file: network error: {e}") from e

    # Ensure proper UTF-8 decoding
    response.encoding = 'utf-8'
    return response.text


def read_text(path: Union[str, Path]) -> str:
    """
    Read a local import file as UTF-8.

    Raises:
        FileReadError: if the file is missing or unreadable.
    """
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read {path}: {e}")
        raise FileReadError() from e


def detect_kind(source: Union[str, Path], text: Optional[str] = None) -> str:
    """Infer the import format from the file suffix, then from the content."""
    suffix = Path(str(source).split('?', 1)[0]).suffix.lower()
    if suffix in _SUFFIX_KINDS:
        return _SUFFIX_KINDS[suffix]
    if text is not None and text.lstrip().upper().startswith('BEGIN:VCALENDAR'):
        return KIND_ICS
    return KIND_CSV


def decode_import(
    text: str,
    kind: str,
    placeholder_title: str = DEFAULT_PLACEHOLDER_TITLE,
) -> list[Event]:
    if kind == KIND_CSV:
        return import_events_from_csv(text)
    if kind == KIND_ICS:
        return import_events_from_ics(text, placeholder_title=placeholder_title)
    raise ValueError(f"Unknown import format: {kind}")


def read_import(
    source: Union[str, Path],
    kind: Optional[str] = None,
    placeholder_title: str = DEFAULT_PLACEHOLDER_TITLE,
    timeout: int = 30,
) -> list[Event]:
    """
    Read and decode an import source (local path or http(s)/webcal URL).

    Returns:
        Events without ids, ready to be added to a repository.
    """
    if is_url(str(source)):
        text = fetch_text(str(source), timeout=timeout)
    else:
        text = read_text(source)

    kind = kind or detect_kind(source, text)
    logger.debug(f"Importing {source} as {kind}")
    return decode_import(text, kind, placeholder_title=placeholder_title)


def import_into(repository, events: Iterable[Event]) -> list[str]:
    """
    Add imported events to a repository one at a time.

    Each add stands alone; an add that fails stops the import, and the
    events already added stay in the store.

    Returns:
        Ids of the added events, in order.
    """
    ids = []
    for event in events:
        try:
            ids.append(repository.add(event))
        except ScheduleError as e:
            logger.error(f"Import stopped after {len(ids)} events: {e}")
            raise
    logger.info(f"Added {len(ids)} imported events")
    return ids
