"""
Property records attached to an ICalObject.

Every record points to its parent through icalobject_id and is deleted
together with it. Each one knows how to add itself to an icalendar
component and how to read itself back from a parsed property value.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from icalendar import vCalAddress, vText, vUri
from icalendar.cal import Component as ICalComponent

from .vocabulary import Reltype


TABLE_NAME_ATTENDEE = "attendee"
TABLE_NAME_ATTACHMENT = "attachment"
TABLE_NAME_COMMENT = "comment"
TABLE_NAME_CATEGORY = "category"
TABLE_NAME_ORGANIZER = "organizer"
TABLE_NAME_RELATEDTO = "relatedto"

COLUMN_PROPERTY_ID = "_id"
COLUMN_PROPERTY_ICALOBJECT_ID = "icalObjectId"


def _params(**kwargs) -> dict[str, str]:
    """Drop unset parameters and upper-case the names."""
    return {key.upper(): str(value) for key, value in kwargs.items() if value is not None}


def _param(value: Any, name: str) -> Optional[str]:
    params = getattr(value, 'params', None) or {}
    result = params.get(name)
    return str(result) if result is not None else None


@dataclass
class Attendee:
    caladdress: str = ""
    cn: Optional[str] = None
    role: Optional[str] = None
    partstat: Optional[str] = None
    rsvp: Optional[bool] = None
    icalobject_id: int = 0
    id: int = 0

    table_name = TABLE_NAME_ATTENDEE
    columns = ('caladdress', 'cn', 'role', 'partstat', 'rsvp')

    def add_to_component(self, component: ICalComponent) -> None:
        rsvp = None if self.rsvp is None else ("TRUE" if self.rsvp else "FALSE")
        component.add('attendee', vCalAddress(self.caladdress),
                      parameters=_params(cn=self.cn, role=self.role,
                                         partstat=self.partstat, rsvp=rsvp))

    @classmethod
    def from_ical(cls, value: Any) -> 'Attendee':
        rsvp = _param(value, 'RSVP')
        return cls(
            caladdress=str(value),
            cn=_param(value, 'CN'),
            role=_param(value, 'ROLE'),
            partstat=_param(value, 'PARTSTAT'),
            rsvp=None if rsvp is None else rsvp.upper() == "TRUE",
        )


@dataclass
class Attachment:
    uri: str = ""
    filename: Optional[str] = None
    fmttype: Optional[str] = None
    icalobject_id: int = 0
    id: int = 0

    table_name = TABLE_NAME_ATTACHMENT
    columns = ('uri', 'filename', 'fmttype')

    def add_to_component(self, component: ICalComponent) -> None:
        component.add('attach', vUri(self.uri),
                      parameters=_params(fmttype=self.fmttype, filename=self.filename))

    @classmethod
    def from_ical(cls, value: Any) -> 'Attachment':
        return cls(uri=str(value), filename=_param(value, 'FILENAME'),
                   fmttype=_param(value, 'FMTTYPE'))


@dataclass
class Comment:
    text: str = ""
    language: Optional[str] = None
    icalobject_id: int = 0
    id: int = 0

    table_name = TABLE_NAME_COMMENT
    columns = ('text', 'language')

    def add_to_component(self, component: ICalComponent) -> None:
        component.add('comment', vText(self.text), parameters=_params(language=self.language))

    @classmethod
    def from_ical(cls, value: Any) -> 'Comment':
        return cls(text=str(value), language=_param(value, 'LANGUAGE'))


@dataclass
class Category:
    """A single tag. All categories of a record share one CATEGORIES line."""
    text: str = ""
    language: Optional[str] = None
    icalobject_id: int = 0
    id: int = 0

    table_name = TABLE_NAME_CATEGORY
    columns = ('text', 'language')


@dataclass
class Organizer:
    caladdress: str = ""
    cn: Optional[str] = None
    icalobject_id: int = 0
    id: int = 0

    table_name = TABLE_NAME_ORGANIZER
    columns = ('caladdress', 'cn')

    def add_to_component(self, component: ICalComponent) -> None:
        component.add('organizer', vCalAddress(self.caladdress), parameters=_params(cn=self.cn))

    @classmethod
    def from_ical(cls, value: Any) -> 'Organizer':
        return cls(caladdress=str(value), cn=_param(value, 'CN'))


@dataclass
class Relatedto:
    """Link to another record by its UID (parent/child/sibling)."""
    text: str = ""
    reltype: str = Reltype.PARENT.param
    linked_icalobject_id: Optional[int] = None
    icalobject_id: int = 0
    id: int = 0

    table_name = TABLE_NAME_RELATEDTO
    columns = ('text', 'reltype', 'linked_icalobject_id')

    def add_to_component(self, component: ICalComponent) -> None:
        component.add('related-to', vText(self.text), parameters=_params(reltype=self.reltype))

    @classmethod
    def from_ical(cls, value: Any) -> 'Relatedto':
        # RFC 5545: RELTYPE defaults to PARENT
        reltype = _param(value, 'RELTYPE') or Reltype.PARENT.param
        return cls(text=str(value), reltype=reltype.upper())


def property_to_row(record) -> dict[str, Any]:
    row = {column: getattr(record, column) for column in record.columns}
    row[COLUMN_PROPERTY_ICALOBJECT_ID] = record.icalobject_id
    return row


def property_from_row(record_type, row: Mapping[str, Any]):
    kwargs = {column: row[column] for column in record_type.columns}
    if 'rsvp' in kwargs and kwargs['rsvp'] is not None:
        kwargs['rsvp'] = bool(kwargs['rsvp'])
    return record_type(id=row[COLUMN_PROPERTY_ID],
                       icalobject_id=row[COLUMN_PROPERTY_ICALOBJECT_ID], **kwargs)
