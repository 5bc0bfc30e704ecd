"""
Configuration parser for jtx Board.

Handles TOML file parsing for the database location, the identity used in
generated UIDs and exported calendars, local collections and import
subscriptions.
"""

import tomllib
import os
import sys
from datetime import datetime
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .collection import parse_color
from .ical_entity import DEFAULT_PRODID, set_prodid
from .ical_object import DEFAULT_UID_DOMAIN, set_uid_domain
from .timezone_utils import set_timezone


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] CONFIG: {msg}", file=sys.stderr)


@dataclass
class CollectionConfig:
    """A local collection that should exist in the database."""
    name: str
    display_name: str
    description: Optional[str] = None
    color: Optional[int] = None
    supports_vtodo: bool = True
    supports_vjournal: bool = True


@dataclass
class SubscriptionConfig:
    """A remote or local .ics source imported into a collection."""
    name: str
    url: str
    collection: Optional[str] = None  # CollectionConfig.name, local collection if unset


@dataclass
class Config:
    """Main configuration container for jtx Board."""

    database_file: Path
    uid_domain: str = DEFAULT_UID_DOMAIN
    timezone: str = "UTC"
    prodid: str = DEFAULT_PRODID
    collections: list[CollectionConfig] = field(default_factory=list)
    subscriptions: list[SubscriptionConfig] = field(default_factory=list)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'jtx-board' / 'jtx-board.toml'

    @classmethod
    def get_default_database_path(cls) -> Path:
        xdg_data = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))
        return Path(xdg_data) / 'jtx-board' / 'jtx.db'

    @classmethod
    def default(cls) -> 'Config':
        return cls(database_file=cls.get_default_database_path())

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        # Parse General section
        general = data.get('General', {})
        database_str = general.get('database_file', str(cls.get_default_database_path()))
        database_file = Path(os.path.expanduser(database_str))

        collections = [
            CollectionConfig(
                name=name,
                display_name=value.get('display_name', name),
                description=value.get('description'),
                color=parse_color(value.get('color')),
                supports_vtodo=value.get('supports_vtodo', True),
                supports_vjournal=value.get('supports_vjournal', True),
            )
            for name, value in _named_sections(data, 'Collection')
        ]
        _debug_print(f"Total collections found: {len(collections)}")

        subscriptions = [
            SubscriptionConfig(
                name=name,
                url=value.get('url', ''),
                collection=value.get('collection'),
            )
            for name, value in _named_sections(data, 'Subscription')
        ]
        _debug_print(f"Total subscriptions found: {len(subscriptions)}")

        return cls(
            database_file=database_file,
            uid_domain=general.get('uid_domain', DEFAULT_UID_DOMAIN),
            timezone=general.get('timezone', 'UTC'),
            prodid=general.get('prodid', DEFAULT_PRODID),
            collections=collections,
            subscriptions=subscriptions,
        )

    def apply(self) -> None:
        """Push the identity and timezone settings into the record modules."""
        set_timezone(self.timezone)
        set_uid_domain(self.uid_domain)
        set_prodid(self.prodid)

    def get_collection_config(self, name: str) -> Optional[CollectionConfig]:
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None


def _named_sections(data: dict, prefix: str) -> list[tuple[str, dict]]:
    """
    Collect named sub-tables of a section.

    Supports both [Prefix.Name] (parsed by TOML as nested tables) and a
    literal "Prefix.Name" key.
    """
    sections = []
    for key, value in data.items():
        if not isinstance(value, dict):
            continue
        # Format 1: ["Prefix.Name"]
        if key.startswith(prefix + '.'):
            sections.append((key.split('.', 1)[1], value))
        # Format 2: [Prefix] with nested [Prefix.Name] sub-tables
        elif key == prefix:
            for sub_key, sub_value in value.items():
                if isinstance(sub_value, dict):
                    sections.append((sub_key, sub_value))
    return sections
