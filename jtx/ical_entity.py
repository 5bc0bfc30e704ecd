"""
ICalEntity: an ICalObject together with its property records.

The aggregate is assembled by the database on read and rendered to
iCalendar text for export. Rendering delegates escaping and line folding
to icalendar; properties are emitted in insertion order so that the
blocks always appear as head, body, attendees, categories, comments,
organizer, related-to, attachments, tail.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional
import sys

from icalendar import Calendar as ICalCalendar, Todo as ICalTodo, Journal as ICalJournal
from icalendar import vCategory, vDDDTypes, vDuration, vText
from icalendar.cal import Component as ICalComponent

from .collection import ICalCollection, format_color, parse_color
from .ical_object import ICalObject, InvalidArgumentError
from .properties import Attendee, Attachment, Comment, Category, Organizer, Relatedto
from .timezone_utils import (
    TZ_ALLDAY, get_timezone, millis_to_ical_value, millis_to_utc_datetime, ical_value_to_millis,
    datetime_to_millis
)
from .vocabulary import Component, Classification, StatusJournal, StatusTodo


DEFAULT_PRODID = "-//Techbee//jtx Board//EN"

# Extension property carrying ICalObject.other unchanged
X_PROP_OTHER = "X-JTX-OTHER"
# VTODO and VJOURNAL have no DTEND in RFC 5545, so the end date goes here
X_PROP_DTEND = "X-JTX-DTEND"

# Can be overridden by config
_prodid: str = DEFAULT_PRODID


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] ENTITY: {msg}", file=sys.stderr)


def set_prodid(prodid: str):
    """Set the PRODID written into exported calendars."""
    global _prodid
    _prodid = prodid


def new_calendar() -> ICalCalendar:
    """Create an empty VCALENDAR carrying the fixed head metadata."""
    vcal = ICalCalendar()
    vcal.add('version', '2.0')
    vcal.add('prodid', _prodid)
    return vcal


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _read_x_datetime(prop) -> Optional[date]:
    """Read a DATE or DATE-TIME held by an extension property, honouring its TZID."""
    try:
        value = vDDDTypes.from_ical(prop.to_ical().decode('utf-8'))
    except ValueError:
        return None
    if not isinstance(value, date):
        return None
    tzid = prop.params.get('TZID')
    if isinstance(value, datetime) and value.tzinfo is None and tzid:
        value = get_timezone(tzid).localize(value)
    return value


@dataclass
class ICalEntity:
    """A record plus its loaded children and its collection."""
    icalobject: ICalObject = field(default_factory=ICalObject)
    comments: list[Comment] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    attendees: list[Attendee] = field(default_factory=list)
    organizer: Optional[Organizer] = None
    relatedto: list[Relatedto] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    collection: Optional[ICalCollection] = None

    # ==================== Rendering ====================

    def to_component(self) -> ICalComponent:
        """Build the VTODO/VJOURNAL component for this entity."""
        obj = self.icalobject
        component = ICalTodo() if obj.component_kind is Component.TODO else ICalJournal()

        self._add_body(component)

        for attendee in self.attendees:
            attendee.add_to_component(component)
        if self.categories:
            component.add('categories', vCategory([c.text for c in self.categories]))
        for comment in self.comments:
            comment.add_to_component(component)
        if self.organizer is not None:
            self.organizer.add_to_component(component)
        for relatedto in self.relatedto:
            relatedto.add_to_component(component)
        for attachment in self.attachments:
            attachment.add_to_component(component)

        return component

    def _add_body(self, component: ICalComponent) -> None:
        obj = self.icalobject

        component.add('uid', obj.uid)
        component.add('dtstamp', millis_to_utc_datetime(obj.dtstamp))
        component.add('created', millis_to_utc_datetime(obj.created))
        component.add('last-modified', millis_to_utc_datetime(obj.last_modified))
        component.add('sequence', obj.sequence)

        if obj.summary is not None:
            component.add('summary', obj.summary)
        if obj.description is not None:
            component.add('description', obj.description)

        # NOTE records are journals without a start date
        if obj.dtstart is not None and obj.component_kind is not Component.NOTE:
            component.add('dtstart', millis_to_ical_value(obj.dtstart, obj.dtstart_timezone))
        if obj.dtend is not None and obj.component_kind is not Component.NOTE:
            params = {} if obj.dtend_timezone == TZ_ALLDAY else {'VALUE': 'DATE-TIME'}
            value = millis_to_ical_value(obj.dtend, obj.dtend_timezone)
            component.add(X_PROP_DTEND, vDDDTypes(value, params))
        if obj.component_kind is Component.TODO:
            if obj.due is not None:
                component.add('due', millis_to_ical_value(obj.due, obj.due_timezone))
            if obj.completed is not None:
                component.add('completed', millis_to_ical_value(obj.completed, obj.completed_timezone))
        if obj.duration is not None:
            try:
                component.add('duration', vDuration.from_ical(obj.duration))
            except ValueError:
                _debug_print(f"Skipping invalid duration '{obj.duration}' of {obj.uid}")

        if obj.status is not None:
            component.add('status', obj.status)
        if obj.classification is not None:
            component.add('class', obj.classification)
        if obj.url is not None:
            component.add('url', obj.url)
        if obj.contact is not None:
            component.add('contact', obj.contact)
        if obj.location is not None:
            component.add('location', obj.location)
        if obj.geo_lat is not None and obj.geo_long is not None:
            component.add('geo', (obj.geo_lat, obj.geo_long))
        if obj.percent is not None and obj.component_kind is Component.TODO:
            component.add('percent-complete', obj.percent)
        if obj.priority is not None:
            component.add('priority', obj.priority)
        if obj.color is not None:
            component.add('color', format_color(obj.color))
        if obj.other is not None:
            # VALUE=TEXT makes parsers unescape the otherwise unknown property
            component.add(X_PROP_OTHER, vText(obj.other), parameters={'VALUE': 'TEXT'})

    def get_ical_string(self) -> str:
        """Render this entity as a complete VCALENDAR text block."""
        vcal = new_calendar()
        vcal.add_component(self.to_component())
        vcal.add_missing_timezones()
        return vcal.to_ical(sorted=False).decode('utf-8')

    # ==================== Parsing ====================

    @classmethod
    def from_component(cls, component: ICalComponent, collection_id: int = 1) -> 'ICalEntity':
        """Read a parsed VTODO/VJOURNAL back into an entity."""
        if component.name == "VTODO":
            kind = Component.TODO
        elif component.get('DTSTART') is not None:
            kind = Component.JOURNAL
        else:
            kind = Component.NOTE

        obj = ICalObject(component=kind.value, collection_id=collection_id)
        obj.status = StatusTodo.NEEDSACTION.param if kind is Component.TODO else StatusJournal.FINAL.param

        uid = component.get('UID')
        if uid is not None:
            obj.uid = str(uid)
        for prop, attr in (('DTSTAMP', 'dtstamp'), ('CREATED', 'created'),
                           ('LAST-MODIFIED', 'last_modified')):
            value = component.get(prop)
            if value is not None and isinstance(value.dt, datetime):
                setattr(obj, attr, datetime_to_millis(value.dt))
        sequence = component.get('SEQUENCE')
        if sequence is not None:
            obj.sequence = int(sequence)

        for prop, attr in (('SUMMARY', 'summary'), ('DESCRIPTION', 'description'),
                           ('URL', 'url'), ('CONTACT', 'contact'), ('LOCATION', 'location'),
                           (X_PROP_OTHER, 'other')):
            value = component.get(prop)
            if value is not None:
                setattr(obj, attr, str(value))

        for prop, attr in (('DTSTART', 'dtstart'), ('DTEND', 'dtend'),
                           ('DUE', 'due'), ('COMPLETED', 'completed')):
            value = component.get(prop)
            if value is not None:
                millis, tz_label = ical_value_to_millis(value.dt)
                setattr(obj, attr, millis)
                setattr(obj, f"{attr}_timezone", tz_label)
        if component.get(X_PROP_DTEND) is not None:
            dtend = _read_x_datetime(_as_list(component.get(X_PROP_DTEND))[0])
            if dtend is not None:
                obj.dtend, obj.dtend_timezone = ical_value_to_millis(dtend)
            else:
                _debug_print(f"Skipping invalid {X_PROP_DTEND} of {obj.uid}")

        duration = component.get('DURATION')
        if duration is not None:
            obj.duration = vDuration(duration.dt).to_ical().decode('utf-8')

        status = component.get('STATUS')
        if status is not None:
            if kind.status_vocabulary.from_param(str(status)) is not None:
                obj.status = str(status)
            else:
                _debug_print(f"Unknown status '{status}' for {kind.value} {obj.uid}, using {obj.status}")
        classification = component.get('CLASS')
        if classification is not None:
            if Classification.from_param(str(classification)) is not None:
                obj.classification = str(classification)
            else:
                _debug_print(f"Unknown classification '{classification}' for {obj.uid}, using PUBLIC")

        geo = component.get('GEO')
        if geo is not None:
            obj.geo_lat = float(geo.latitude)
            obj.geo_long = float(geo.longitude)
        percent = component.get('PERCENT-COMPLETE')
        if percent is not None and kind is Component.TODO:
            obj.percent = min(max(int(percent), 0), 100)
        priority = component.get('PRIORITY')
        if priority is not None:
            obj.priority = int(priority)
        color = component.get('COLOR')
        if color is not None:
            obj.color = parse_color(str(color))

        # freshly parsed data mirrors the peer and has nothing to upload
        obj.dirty = False

        categories = []
        for value in _as_list(component.get('CATEGORIES')):
            for cat in getattr(value, 'cats', [value]):
                categories.append(Category(text=str(cat)))

        organizer = component.get('ORGANIZER')
        if isinstance(organizer, list):
            organizer = organizer[0]

        return cls(
            icalobject=obj,
            attendees=[Attendee.from_ical(v) for v in _as_list(component.get('ATTENDEE'))],
            categories=categories,
            comments=[Comment.from_ical(v) for v in _as_list(component.get('COMMENT'))],
            organizer=Organizer.from_ical(organizer) if organizer is not None else None,
            relatedto=[Relatedto.from_ical(v) for v in _as_list(component.get('RELATED-TO'))],
            attachments=[Attachment.from_ical(v) for v in _as_list(component.get('ATTACH'))],
        )

    @classmethod
    def from_ical_string(cls, ical_text: str, collection_id: int = 1) -> Optional['ICalEntity']:
        """Parse the first VTODO/VJOURNAL of an iCalendar text block."""
        entities = parse_ical_entities(ical_text, collection_id)
        return entities[0] if entities else None


def parse_ical_entities(ical_text: str, collection_id: int = 1) -> list[ICalEntity]:
    """
    Parse every VTODO and VJOURNAL in iCalendar text (CRLF or LF).

    Other components (VEVENT, VTIMEZONE, ...) are ignored.
    """
    try:
        vcal = ICalCalendar.from_ical(ical_text)
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid iCalendar data: {e}") from e
    entities = []
    for component in vcal.walk():
        if component.name in ("VTODO", "VJOURNAL"):
            entities.append(ICalEntity.from_component(component, collection_id))
    return entities
