"""
Schedule Events Core Module

This module provides the data shaping logic of the schedule app:
- Event and label models (models.py)
- Temporal classification into In Day / This Week / Later (classifier.py)
- Repeat <-> RRULE mapping (recurrence.py)
- CSV and ICS codecs (csv_codec.py, ics_codec.py) and file handling (interchange.py)
- Local event and label repositories (repository.py, storage.py)
- Configuration parsing (config.py)
"""

from .config import Config
from .errors import (
    ScheduleError, ValidationError, CsvImportError, IcsImportError,
    IcsExportError, FileReadError, StorageError,
)
from .models import Event, Label
from .classifier import (
    EventGroup, classify_events, split_completed, filter_events,
    build_schedule_view, build_label_view,
)
from .recurrence import repeat_to_rule, rule_to_repeat, build_rrule
from .csv_codec import export_events_to_csv, import_events_from_csv
from .ics_codec import export_events_to_ics, import_events_from_ics
from .repository import EventRepository, LabelRepository

__all__ = [
    'Config',
    'ScheduleError',
    'ValidationError',
    'CsvImportError',
    'IcsImportError',
    'IcsExportError',
    'FileReadError',
    'StorageError',
    'Event',
    'Label',
    'EventGroup',
    'classify_events',
    'split_completed',
    'filter_events',
    'build_schedule_view',
    'build_label_view',
    'repeat_to_rule',
    'rule_to_repeat',
    'build_rrule',
    'export_events_to_csv',
    'import_events_from_csv',
    'export_events_to_ics',
    'import_events_from_ics',
    'EventRepository',
    'LabelRepository',
]
