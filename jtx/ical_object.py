"""
The ICalObject record: one row per journal, note or to-do.

The record is a plain in-memory object. Mutation methods change it in
place and return it so the caller can hand it to the database; nothing in
here performs I/O.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional
import uuid

from .timezone_utils import now_millis, TZ_ALLDAY
from .vocabulary import Component, StatusJournal, StatusTodo, Classification


TABLE_NAME_ICALOBJECT = "icalobject"

COLUMN_ID = "_id"
COLUMN_COMPONENT = "component"
COLUMN_SUMMARY = "summary"
COLUMN_DESCRIPTION = "description"
COLUMN_DTSTART = "dtstart"
COLUMN_DTSTART_TIMEZONE = "dtstarttimezone"
COLUMN_DTEND = "dtend"
COLUMN_DTEND_TIMEZONE = "dtendtimezone"
COLUMN_STATUS = "status"
COLUMN_CLASSIFICATION = "classification"
COLUMN_URL = "url"
COLUMN_CONTACT = "contact"
COLUMN_GEO_LAT = "geolat"
COLUMN_GEO_LONG = "geolong"
COLUMN_LOCATION = "location"
COLUMN_PERCENT = "percent"
COLUMN_PRIORITY = "priority"
COLUMN_DUE = "due"
COLUMN_DUE_TIMEZONE = "duetimezone"
COLUMN_COMPLETED = "completed"
COLUMN_COMPLETED_TIMEZONE = "completedtimezone"
COLUMN_DURATION = "duration"
COLUMN_UID = "uid"
COLUMN_CREATED = "created"
COLUMN_DTSTAMP = "dtstamp"
COLUMN_LAST_MODIFIED = "lastmodified"
COLUMN_SEQUENCE = "sequence"
COLUMN_COLOR = "color"
COLUMN_OTHER = "other"
COLUMN_ICALOBJECT_COLLECTIONID = "collectionId"
COLUMN_DIRTY = "dirty"
COLUMN_DELETED = "deleted"

DEFAULT_UID_DOMAIN = "at.techbee.jtx"

# Can be overridden by config
_uid_domain: str = DEFAULT_UID_DOMAIN


class InvalidArgumentError(ValueError):
    """Raised for input that would leave a record in an invalid state."""


def set_uid_domain(domain: str):
    """Set the domain suffix used for newly generated UIDs."""
    global _uid_domain
    _uid_domain = domain


def generate_uid() -> str:
    """Generate a globally unique UID: <millis>-<random>@<domain>."""
    return f"{now_millis()}-{uuid.uuid4()}@{_uid_domain}"


# attribute name -> (column name, python type)
_COLUMN_MAP: dict[str, tuple[str, type]] = {
    'component': (COLUMN_COMPONENT, str),
    'summary': (COLUMN_SUMMARY, str),
    'description': (COLUMN_DESCRIPTION, str),
    'dtstart': (COLUMN_DTSTART, int),
    'dtstart_timezone': (COLUMN_DTSTART_TIMEZONE, str),
    'dtend': (COLUMN_DTEND, int),
    'dtend_timezone': (COLUMN_DTEND_TIMEZONE, str),
    'status': (COLUMN_STATUS, str),
    'classification': (COLUMN_CLASSIFICATION, str),
    'url': (COLUMN_URL, str),
    'contact': (COLUMN_CONTACT, str),
    'geo_lat': (COLUMN_GEO_LAT, float),
    'geo_long': (COLUMN_GEO_LONG, float),
    'location': (COLUMN_LOCATION, str),
    'percent': (COLUMN_PERCENT, int),
    'priority': (COLUMN_PRIORITY, int),
    'due': (COLUMN_DUE, int),
    'due_timezone': (COLUMN_DUE_TIMEZONE, str),
    'completed': (COLUMN_COMPLETED, int),
    'completed_timezone': (COLUMN_COMPLETED_TIMEZONE, str),
    'duration': (COLUMN_DURATION, str),
    'uid': (COLUMN_UID, str),
    'created': (COLUMN_CREATED, int),
    'dtstamp': (COLUMN_DTSTAMP, int),
    'last_modified': (COLUMN_LAST_MODIFIED, int),
    'sequence': (COLUMN_SEQUENCE, int),
    'color': (COLUMN_COLOR, int),
    'other': (COLUMN_OTHER, str),
    'collection_id': (COLUMN_ICALOBJECT_COLLECTIONID, int),
    'dirty': (COLUMN_DIRTY, bool),
    'deleted': (COLUMN_DELETED, bool),
}


def _coerce(column: str, value: Any, target: type) -> Any:
    """Convert a loosely typed value to the column's type."""
    if isinstance(value, target) and not (target is int and isinstance(value, bool)):
        return value
    try:
        if target is bool:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in ("1", "true", "yes"):
                    return True
                if lowered in ("0", "false", "no"):
                    return False
                raise ValueError(value)
            if isinstance(value, (int, float)):
                return bool(value)
            raise ValueError(value)
        if target is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if target is float:
            return float(value)
        return str(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"Cannot convert {value!r} for column '{column}' to {target.__name__}"
        )


@dataclass
class ICalObjectPatch:
    """
    Sparse update for an ICalObject.

    Every field left at None is absent and leaves the record untouched.
    """
    component: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    dtstart: Optional[int] = None
    dtstart_timezone: Optional[str] = None
    dtend: Optional[int] = None
    dtend_timezone: Optional[str] = None
    status: Optional[str] = None
    classification: Optional[str] = None
    url: Optional[str] = None
    contact: Optional[str] = None
    geo_lat: Optional[float] = None
    geo_long: Optional[float] = None
    location: Optional[str] = None
    percent: Optional[int] = None
    priority: Optional[int] = None
    due: Optional[int] = None
    due_timezone: Optional[str] = None
    completed: Optional[int] = None
    completed_timezone: Optional[str] = None
    duration: Optional[str] = None
    uid: Optional[str] = None
    created: Optional[int] = None
    dtstamp: Optional[int] = None
    last_modified: Optional[int] = None
    sequence: Optional[int] = None
    color: Optional[int] = None
    other: Optional[str] = None
    collection_id: Optional[int] = None
    dirty: Optional[bool] = None
    deleted: Optional[bool] = None

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> 'ICalObjectPatch':
        """
        Build a patch from a mapping keyed by column name.

        Values are coerced to the column type; unknown keys are ignored and
        None values count as absent.
        """
        patch = cls()
        for attr, (column, target) in _COLUMN_MAP.items():
            value = values.get(column)
            if value is None:
                continue
            setattr(patch, attr, _coerce(column, value, target))
        return patch

    def present_fields(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class ICalObject:
    """General purpose record for journals, notes and to-dos."""
    id: int = 0
    component: str = Component.NOTE.value
    summary: Optional[str] = None
    description: Optional[str] = None
    dtstart: Optional[int] = None
    dtstart_timezone: Optional[str] = None
    dtend: Optional[int] = None
    dtend_timezone: Optional[str] = None
    status: str = StatusJournal.FINAL.param
    classification: str = Classification.PUBLIC.param
    url: Optional[str] = None
    contact: Optional[str] = None
    geo_lat: Optional[float] = None
    geo_long: Optional[float] = None
    location: Optional[str] = None
    percent: Optional[int] = None     # VTODO only
    priority: Optional[int] = None
    due: Optional[int] = None         # VTODO only
    due_timezone: Optional[str] = None
    completed: Optional[int] = None   # VTODO only
    completed_timezone: Optional[str] = None
    duration: Optional[str] = None
    uid: str = field(default_factory=generate_uid)
    created: int = field(default_factory=now_millis)
    dtstamp: int = field(default_factory=now_millis)
    last_modified: int = field(default_factory=now_millis)
    sequence: int = 0
    color: Optional[int] = None
    other: Optional[str] = None
    collection_id: int = 1
    dirty: bool = True
    deleted: bool = False

    # ==================== Factories ====================

    @classmethod
    def create_journal(cls) -> 'ICalObject':
        return cls(component=Component.JOURNAL.value, dtstart=now_millis(),
                   status=StatusJournal.FINAL.param)

    @classmethod
    def create_note(cls, summary: Optional[str] = None) -> 'ICalObject':
        return cls(component=Component.NOTE.value, status=StatusJournal.FINAL.param,
                   summary=summary)

    @classmethod
    def create_todo(cls) -> 'ICalObject':
        return cls(component=Component.TODO.value, status=StatusTodo.NEEDSACTION.param,
                   percent=0, priority=0, due_timezone=TZ_ALLDAY)

    @classmethod
    def create_subtask(cls, summary: str) -> 'ICalObject':
        return cls(component=Component.TODO.value, summary=summary,
                   status=StatusTodo.NEEDSACTION.param, percent=0, due_timezone=TZ_ALLDAY)

    @classmethod
    def create(cls, component: Component) -> 'ICalObject':
        """Create a record of the given kind with its defaults."""
        if component is Component.JOURNAL:
            return cls.create_journal()
        if component is Component.TODO:
            return cls.create_todo()
        return cls.create_note()

    @classmethod
    def from_patch(cls, patch: ICalObjectPatch) -> 'ICalObject':
        """
        Create a new record from a patch.

        The patch must name the owning collection. Defaults follow the
        component given in the patch (a note when absent).
        """
        if patch.collection_id is None:
            raise InvalidArgumentError("CollectionId cannot be null.")
        component = Component.NOTE
        if patch.component is not None:
            component = Component.from_name(patch.component)
            if component is None:
                raise InvalidArgumentError(f"Unknown component: {patch.component}")
        icalobject = cls.create(component)
        if patch.uid is not None:
            icalobject.uid = patch.uid
        return icalobject.apply_fields(patch)

    # ==================== Mutation ====================

    def apply_fields(self, patch: ICalObjectPatch) -> 'ICalObject':
        """Overwrite only the fields present in the patch."""
        values = patch.present_fields()

        # a record keeps its kind for its whole lifetime
        if values.get('component', self.component) != self.component:
            raise InvalidArgumentError(
                f"Cannot change component of {self.uid} from {self.component} to {values['component']}"
            )
        if values.get('uid', self.uid) != self.uid:
            raise InvalidArgumentError(f"Cannot change uid of {self.uid} to {values['uid']}")
        sequence = values.get('sequence')
        if sequence is not None and sequence < self.sequence:
            raise InvalidArgumentError(
                f"Sequence of {self.uid} cannot go back from {self.sequence} to {sequence}"
            )
        percent = values.get('percent')
        if percent is not None and not 0 <= percent <= 100:
            raise InvalidArgumentError(f"Percent must be within 0..100, got {percent}")

        component = self.component_kind
        status = values.get('status')
        if status is not None and component.status_vocabulary.from_param(status) is None:
            raise InvalidArgumentError(f"Status '{status}' is not valid for {component.value}")
        classification = values.get('classification')
        if classification is not None and Classification.from_param(classification) is None:
            raise InvalidArgumentError(f"Unknown classification: {classification}")

        for name, value in values.items():
            setattr(self, name, value)
        return self

    def set_progress(self, new_percent: int) -> 'ICalObject':
        """
        Update the progress of a to-do and derive its status.

        Calling it again with the same value changes nothing.
        Journals and notes carry no progress.
        """
        if self.component_kind is not Component.TODO:
            raise InvalidArgumentError(
                f"Progress only applies to to-dos, {self.uid} is a {self.component}"
            )
        if self.percent == new_percent:
            return self
        if not 0 <= new_percent <= 100:
            raise InvalidArgumentError(f"Percent must be within 0..100, got {new_percent}")

        now = now_millis()
        self.percent = new_percent
        if new_percent == 100:
            self.status = StatusTodo.COMPLETED.param
        elif new_percent > 0:
            self.status = StatusTodo.INPROCESS.param
        else:
            self.status = StatusTodo.NEEDSACTION.param
        self.last_modified = now
        if self.dtstart is None and new_percent > 0:
            self.dtstart = now
        if self.dtend is None and new_percent == 100:
            self.dtend = now
        if self.completed is None and new_percent == 100:
            self.completed = now
        self.sequence += 1
        self.dirty = True
        return self

    def mark_modified(self) -> 'ICalObject':
        """Flag a local change that has to reach the sync peers."""
        self.last_modified = now_millis()
        self.sequence += 1
        self.dirty = True
        return self

    def mark_deleted(self) -> 'ICalObject':
        """Turn the record into a tombstone until the deletion is synced."""
        self.deleted = True
        return self.mark_modified()

    # ==================== Helpers ====================

    @property
    def component_kind(self) -> Component:
        return Component(self.component)

    def is_status_valid(self) -> bool:
        return self.component_kind.status_vocabulary.from_param(self.status) is not None

    def to_row(self) -> dict[str, Any]:
        """Column-name keyed values for the database (id excluded)."""
        return {column: getattr(self, attr) for attr, (column, _) in _COLUMN_MAP.items()}

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'ICalObject':
        kwargs = {'id': row[COLUMN_ID]}
        for attr, (column, target) in _COLUMN_MAP.items():
            value = row[column]
            if value is not None and target is bool:
                value = bool(value)
            kwargs[attr] = value
        return cls(**kwargs)
