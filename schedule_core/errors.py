"""
Error types raised by the Schedule Events core.

Every error carries a human-readable message that callers can show
directly to the user.
"""


class ScheduleError(Exception):
    """Base class for all Schedule Events errors."""

    default_message = "Something went wrong."

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ScheduleError, ValueError):
    """An event or label violates a data-model invariant."""
    default_message = "Invalid data."


class CsvImportError(ScheduleError):
    """A CSV document could not be imported."""
    default_message = "CSV file seems to be invalid or empty. 'title' and 'date' are required."


class IcsImportError(ScheduleError):
    """An iCalendar document could not be imported."""
    default_message = "Failed to parse ICS file. It might be invalid or corrupted."


class IcsExportError(ScheduleError):
    """An iCalendar document could not be generated."""
    default_message = "Could not generate ICS file."


class FileReadError(ScheduleError):
    """An import source could not be read."""
    default_message = "Failed to read the file."


class StorageError(ScheduleError):
    """The local event or label store could not be read or written."""
    default_message = "Failed to access the event store."
