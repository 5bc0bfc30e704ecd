"""
ICS import and export for jtx Board collections.

Export writes one VCALENDAR with every record of a collection. Import
reads VTODO/VJOURNAL components from a local file or a remote URL and
stores them in a collection.
"""

import hashlib
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import pytz
import requests

from .database import ICalDatabase
from .ical_entity import new_calendar, parse_ical_entities
from .ical_object import InvalidArgumentError


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] ICS: {msg}", file=sys.stderr)


def export_collection(db: ICalDatabase, collection_id: int) -> str:
    """Render every non-deleted record of a collection as one VCALENDAR."""
    collection = db.get_collection_by_id_sync(collection_id)
    if collection is None:
        raise InvalidArgumentError(f"Unknown collection: {collection_id}")

    vcal = new_calendar()
    if collection.display_name:
        vcal.add('x-wr-calname', collection.display_name)

    entities = db.get_entities_by_collection_sync(collection_id)
    for entity in entities:
        vcal.add_component(entity.to_component())

    vcal.add_missing_timezones()
    _debug_print(f"Exported {len(entities)} records from collection {collection_id}")
    return vcal.to_ical(sorted=False).decode('utf-8')


def import_ical_text(db: ICalDatabase, ical_text: str, collection_id: int) -> list[int]:
    """
    Store every VTODO/VJOURNAL of the text in a collection.

    Records whose UID already exists are skipped. RELATED-TO links are
    resolved to local ids once all records are stored.

    Returns:
        The ids of the inserted records.
    """
    collection = db.get_collection_by_id_sync(collection_id)
    if collection is None:
        raise InvalidArgumentError(f"Unknown collection: {collection_id}")
    if collection.readonly:
        raise InvalidArgumentError(f"Collection {collection_id} is read-only")

    inserted = []
    for entity in parse_ical_entities(ical_text, collection_id):
        obj = entity.icalobject
        if not collection.supports(obj.component_kind.ical_name):
            _debug_print(f"Collection {collection_id} does not accept {obj.component}, skipping {obj.uid}")
            continue
        if db.get_icalobject_by_uid_sync(obj.uid) is not None:
            _debug_print(f"Skipping existing record {obj.uid}")
            continue
        try:
            inserted.append((db.insert_entity_sync(entity), entity))
        except sqlite3.IntegrityError as e:
            _debug_print(f"Could not import {obj.uid}: {e}")

    for icalobject_id, entity in inserted:
        for relatedto in entity.relatedto:
            linked = db.get_icalobject_by_uid_sync(relatedto.text)
            if linked is not None:
                db.set_relatedto_link_sync(relatedto.id, linked.id)

    _debug_print(f"Imported {len(inserted)} records into collection {collection_id}")
    return [icalobject_id for icalobject_id, _ in inserted]


class ICSSource:
    """
    A local .ics file or a remote calendar URL to import from.

    fetch() keeps the raw VCALENDAR text and remembers the last error.
    """

    def __init__(self, location: str, name: Optional[str] = None):
        self.location = location
        self.name = name or location
        self.id = self._generate_id(location)

        self._raw_data: Optional[str] = None
        self._last_fetch: Optional[datetime] = None
        self._error: Optional[str] = None

    @staticmethod
    def _generate_id(location: str) -> str:
        """Generate a stable ID from the location."""
        return hashlib.md5(location.encode()).hexdigest()[:12]

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://", "webcal://"))

    def fetch(self, timeout: int = 30) -> bool:
        """
        Read the calendar text from the file or the URL.

        Returns:
            True if successful, False otherwise.
        """
        try:
            if self.is_remote:
                url = self.location
                if url.startswith("webcal://"):
                    url = "https://" + url[len("webcal://"):]
                response = requests.get(
                    url,
                    timeout=timeout,
                    headers={
                        'User-Agent': 'jtx-Board/1.0',
                        'Accept': 'text/calendar'
                    }
                )
                response.raise_for_status()
                response.encoding = 'utf-8'
                self._raw_data = response.text
            else:
                self._raw_data = Path(self.location).expanduser().read_text(encoding='utf-8')

            self._last_fetch = datetime.now(pytz.UTC)
            self._error = None
            return True

        except requests.RequestException as e:
            self._error = f"Network error: {e}"
        except OSError as e:
            self._error = f"File error: {e}"
        _debug_print(f"Fetching {self.name} failed: {self._error}")
        return False

    def import_into(self, db: ICalDatabase, collection_id: int) -> list[int]:
        """Fetch (if needed) and import into a collection."""
        if self._raw_data is None and not self.fetch():
            return []
        return import_ical_text(db, self._raw_data, collection_id)

    @property
    def raw_data(self) -> Optional[str]:
        return self._raw_data

    @property
    def last_fetch(self) -> Optional[datetime]:
        return self._last_fetch

    @property
    def error(self) -> Optional[str]:
        return self._error
