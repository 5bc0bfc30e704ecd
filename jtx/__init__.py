"""
jtx Board data core

This module provides the record model and storage for journals, notes and
to-dos:
- Vocabulary (vocabulary.py) - status, classification, component, reltype
- Records (ical_object.py, properties.py, collection.py)
- Entity aggregate (ical_entity.py) - iCalendar rendering and parsing
- Storage (schema.py, database.py) - SQLite, blocking and non-blocking
- Import/export (ics_transfer.py)
- Configuration parsing (config.py)
"""

from .vocabulary import Component, StatusJournal, StatusTodo, Classification, Reltype
from .ical_object import ICalObject, ICalObjectPatch, InvalidArgumentError
from .properties import Attendee, Attachment, Comment, Category, Organizer, Relatedto
from .collection import ICalCollection
from .ical_entity import ICalEntity, parse_ical_entities
from .database import ICalDatabase
from .ics_transfer import ICSSource, export_collection, import_ical_text
from .config import Config

__all__ = [
    'Component',
    'StatusJournal',
    'StatusTodo',
    'Classification',
    'Reltype',
    'ICalObject',
    'ICalObjectPatch',
    'InvalidArgumentError',
    'Attendee',
    'Attachment',
    'Comment',
    'Category',
    'Organizer',
    'Relatedto',
    'ICalCollection',
    'ICalEntity',
    'parse_ical_entities',
    'ICalDatabase',
    'ICSSource',
    'export_collection',
    'import_ical_text',
    'Config',
]
