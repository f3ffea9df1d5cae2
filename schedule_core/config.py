"""
Configuration parser for Schedule Events.

Handles TOML file parsing. Every setting has a default, so a missing
default config file simply means defaults.
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ValidationError
from .models import Label, DEFAULT_LABELS

logger = logging.getLogger(__name__)


@dataclass
class ExportConfig:
    """Configuration for CSV/ICS export."""
    calendar_name: str = "Schedule Events"
    filename_prefix: str = "Schedule_Events"
    output_dir: Path = field(default_factory=Path.cwd)


@dataclass
class ImportConfig:
    """Configuration for CSV/ICS import."""
    placeholder_title: str = "Untitled Event"  # Title for VEVENTs without SUMMARY
    timeout: int = 30  # Seconds, for http(s) feeds


@dataclass
class Config:
    """Main configuration container for Schedule Events."""

    timezone: str = "UTC"
    user: str = "local"
    storage_dir: Optional[Path] = None  # None: XDG data dir
    log_level: str = "INFO"
    export: ExportConfig = field(default_factory=ExportConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    default_labels: list[Label] = field(default_factory=lambda: list(DEFAULT_LABELS))

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'schedule-events' / 'schedule-events.toml'

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a TOML file.

        Args:
            config_path: Explicit file; must exist. If None, the default
                location is used when present, defaults otherwise.
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
            if not config_path.exists():
                logger.debug(f"No configuration at {config_path}, using defaults")
                return cls()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        logger.debug(f"Loaded configuration from {config_path}: sections {list(data.keys())}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        # Parse General section
        general = data.get('General', {})
        storage_dir_str = general.get('storage_dir')
        storage_dir = Path(os.path.expanduser(storage_dir_str)) if storage_dir_str else None

        # Parse Export section
        export_data = data.get('Export', {})
        output_dir_str = export_data.get('output_dir')
        export = ExportConfig(
            calendar_name=export_data.get('calendar_name', ExportConfig.calendar_name),
            filename_prefix=export_data.get('filename_prefix', ExportConfig.filename_prefix),
            output_dir=Path(os.path.expanduser(output_dir_str)) if output_dir_str else Path.cwd(),
        )

        # Parse Import section
        import_data = data.get('Import', {})
        imports = ImportConfig(
            placeholder_title=import_data.get('placeholder_title', ImportConfig.placeholder_title),
            timeout=import_data.get('timeout', ImportConfig.timeout),
        )

        # Parse [[Labels]] array of tables
        default_labels = list(DEFAULT_LABELS)
        if 'Labels' in data:
            default_labels = []
            for entry in data['Labels']:
                label = Label(name=entry.get('name', ''), color=entry.get('color', ''))
                try:
                    label.validate()
                except ValidationError as e:
                    raise ValidationError(f"Invalid default label in configuration: {e}") from e
                default_labels.append(label)

        return cls(
            timezone=general.get('timezone', cls.timezone),
            user=general.get('user', cls.user),
            storage_dir=storage_dir,
            log_level=general.get('log_level', cls.log_level),
            export=export,
            imports=imports,
            default_labels=default_labels,
        )
