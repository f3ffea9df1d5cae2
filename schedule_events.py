#!/usr/bin/env python3
"""
Schedule Events - a command line front end for the schedule core.

This is the main entry point for the application.
"""

import sys
import argparse
import logging
from pathlib import Path

from schedule_core.classifier import build_schedule_view, build_label_view
from schedule_core.config import Config
from schedule_core.errors import ScheduleError
from schedule_core.interchange import KINDS, write_export, read_import, import_into
from schedule_core.models import Event, Label, REPEAT_VALUES, REMINDER_UNITS
from schedule_core.repository import EventRepository, LabelRepository
from schedule_core.storage import create_storage_backend
from schedule_core.timezone_utils import set_timezone, normalize_instant, to_local_datetime


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging to stderr with a timestamped format.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('[%(asctime)s] %(name)s: %(message)s', datefmt='%H:%M:%S'))
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Schedule Events - personal events grouped by day, week and label"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="Show pending events grouped by time")
    list_cmd.add_argument("-q", "--query", help="Only events whose title or description contains this text")
    list_cmd.add_argument("-l", "--label", help="Only events with this label (name)")

    add_cmd = commands.add_parser("add", help="Add an event")
    add_cmd.add_argument("title")
    add_cmd.add_argument("date", help="Date and time, e.g. 2024-01-15T09:00")
    add_cmd.add_argument("-d", "--description", default="")
    add_cmd.add_argument("--repeat", choices=REPEAT_VALUES, default="none")
    add_cmd.add_argument("--repeat-about", help="Minutes between repeats for --repeat about")
    add_cmd.add_argument("--reminder", nargs=2, metavar=("VALUE", "UNIT"),
                         help=f"Reminder offset, UNIT one of {', '.join(REMINDER_UNITS)}")
    add_cmd.add_argument("--alarm", action="store_true", help="Alarm at the time of the event")
    add_cmd.add_argument("--birthday", action="store_true")
    add_cmd.add_argument("--label", action="append", default=[], help="Label name (repeatable)")

    complete_cmd = commands.add_parser("complete", help="Mark an event as completed")
    complete_cmd.add_argument("id")
    complete_cmd.add_argument("--undo", action="store_true", help="Mark as pending again")

    remove_cmd = commands.add_parser("remove", help="Delete an event")
    remove_cmd.add_argument("id")

    commands.add_parser("purge-completed", help="Delete all completed events")

    labels_cmd = commands.add_parser("labels", help="List, add or remove labels")
    labels_sub = labels_cmd.add_subparsers(dest="labels_command")
    labels_add = labels_sub.add_parser("add")
    labels_add.add_argument("name")
    labels_add.add_argument("color", help="6-digit hex color, e.g. #3B82F6")
    labels_remove = labels_sub.add_parser("remove")
    labels_remove.add_argument("id")

    export_cmd = commands.add_parser("export", help="Export all events")
    export_cmd.add_argument("format", choices=KINDS)
    export_cmd.add_argument("-o", "--output-dir", type=Path)

    import_cmd = commands.add_parser("import", help="Import events from a CSV/ICS file or URL")
    import_cmd.add_argument("source")
    import_cmd.add_argument("--format", choices=KINDS)

    return parser.parse_args(argv)


def _print_groups(heading: str, groups) -> None:
    print(f"== {heading}")
    for group in groups:
        print(f"  {group.title}")
        for event in group.events:
            print(f"    {_describe(event)}")


def _describe(event: Event) -> str:
    when = to_local_datetime(event.start).strftime('%a %Y-%m-%d %H:%M')
    flags = []
    if event.repeat != "none":
        flags.append(event.repeat)
    if event.has_reminder_offset:
        flags.append(f"reminder {event.reminder_value} {event.reminder_unit}")
    elif event.alarm:
        flags.append("alarm")
    if event.is_birthday:
        flags.append("birthday")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return f"{when}  {event.title}{suffix}  ({event.id})"


def _resolve_labels(labels: LabelRepository, names: list[str]) -> list[str]:
    ids = []
    for name in names:
        label = labels.find_by_name(name)
        if label is None:
            raise ScheduleError(f"Unknown label: {name}")
        ids.append(label.id)
    return ids


def run(args, config: Config) -> int:
    storage = create_storage_backend(config.storage_dir, config.user)
    events = EventRepository(storage)
    labels = LabelRepository(storage, events, seed_labels=config.default_labels)

    if args.command == "list":
        snapshot = events.snapshot()
        if args.label:
            label = labels.find_by_name(args.label)
            if label is None:
                raise ScheduleError(f"Unknown label: {args.label}")
            view = build_label_view(snapshot, [label], query=args.query)
            _print_groups(label.name, view["by_label"][label.id])
        else:
            view = build_schedule_view(snapshot, query=args.query)
            _print_groups("All", view["all"])
            if view["completed"]:
                print(f"== Completed ({len(view['completed'])})")
                for event in view["completed"]:
                    print(f"    {_describe(event)}")

    elif args.command == "add":
        date = normalize_instant(args.date)
        if date is None:
            raise ScheduleError(f"Cannot understand the date: {args.date}")
        event = Event(
            title=args.title,
            date=date,
            description=args.description,
            repeat=args.repeat,
            repeat_about=args.repeat_about,
            alarm=args.alarm,
            is_birthday=args.birthday,
            label_ids=_resolve_labels(labels, args.label),
        )
        if args.reminder:
            value, unit = args.reminder
            try:
                event.reminder_value = int(value)
            except ValueError:
                raise ScheduleError(f"Reminder value must be a number, got {value!r}") from None
            event.reminder_unit = unit
            event.reminder_enabled = True
        print(events.add(event))

    elif args.command == "complete":
        events.set_completed(args.id, not args.undo)

    elif args.command == "remove":
        events.remove(args.id)

    elif args.command == "purge-completed":
        print(f"Removed {events.remove_all_completed()} completed events")

    elif args.command == "labels":
        if args.labels_command == "add":
            print(labels.add(Label(name=args.name, color=args.color)))
        elif args.labels_command == "remove":
            changed = labels.remove(args.id)
            print(f"Label removed from {changed} events")
        else:
            for label in labels.list():
                print(f"{label.id}  {label.hex_color}  {label.name}")

    elif args.command == "export":
        path = write_export(
            events.list(),
            args.format,
            directory=args.output_dir or config.export.output_dir,
            prefix=config.export.filename_prefix,
            calendar_name=config.export.calendar_name,
        )
        print(path)

    elif args.command == "import":
        imported = read_import(
            args.source,
            kind=args.format,
            placeholder_title=config.imports.placeholder_title,
            timeout=config.imports.timeout,
        )
        ids = import_into(events, imported)
        print(f"Imported {len(ids)} events")

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"\nDefault configuration location: {Config.get_default_config_path()}", file=sys.stderr)
        print("""
Example configuration:

[General]
timezone = "Europe/Amsterdam"
user = "me"

[Export]
output_dir = "~/Documents"
""", file=sys.stderr)
        return 1
    except (ValueError, ScheduleError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging('DEBUG' if args.debug else config.log_level)
    set_timezone(config.timezone)

    try:
        return run(args, config)
    except ScheduleError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
