"""
Collection records: the owning container of ICalObjects.

A collection is the local counterpart of a CalDAV calendar or of the
local-only store. Deleting it deletes all of its records.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional


TABLE_NAME_COLLECTION = "collection"

COLUMN_COLLECTION_ID = "_id"
COLUMN_COLLECTION_URL = "url"
COLUMN_COLLECTION_DISPLAYNAME = "displayname"
COLUMN_COLLECTION_DESCRIPTION = "description"
COLUMN_COLLECTION_OWNER = "owner"
COLUMN_COLLECTION_COLOR = "color"
COLUMN_COLLECTION_SUPPORTSVJOURNAL = "supportsVJOURNAL"
COLUMN_COLLECTION_SUPPORTSVTODO = "supportsVTODO"
COLUMN_COLLECTION_ACCOUNT_NAME = "accountname"
COLUMN_COLLECTION_ACCOUNT_TYPE = "accounttype"
COLUMN_COLLECTION_READONLY = "readonly"

LOCAL_ACCOUNT_TYPE = "LOCAL"

_COLUMN_MAP: dict[str, str] = {
    'url': COLUMN_COLLECTION_URL,
    'display_name': COLUMN_COLLECTION_DISPLAYNAME,
    'description': COLUMN_COLLECTION_DESCRIPTION,
    'owner': COLUMN_COLLECTION_OWNER,
    'color': COLUMN_COLLECTION_COLOR,
    'supports_vjournal': COLUMN_COLLECTION_SUPPORTSVJOURNAL,
    'supports_vtodo': COLUMN_COLLECTION_SUPPORTSVTODO,
    'account_name': COLUMN_COLLECTION_ACCOUNT_NAME,
    'account_type': COLUMN_COLLECTION_ACCOUNT_TYPE,
    'readonly': COLUMN_COLLECTION_READONLY,
}


@dataclass
class ICalCollection:
    """
    Display and sync metadata of a collection.

    collection_id is 0 until the collection is inserted, unless a fixed id
    is given (the local collection always has id 1).
    """
    collection_id: int = 0
    url: str = "LOCAL"
    display_name: Optional[str] = None
    description: Optional[str] = None
    owner: Optional[str] = None
    color: Optional[int] = None
    supports_vjournal: bool = True
    supports_vtodo: bool = True
    account_name: Optional[str] = None
    account_type: str = LOCAL_ACCOUNT_TYPE
    readonly: bool = False

    @classmethod
    def create_local(cls) -> 'ICalCollection':
        return cls(collection_id=1, url="LOCAL", display_name="Local",
                   account_name="LOCAL", account_type=LOCAL_ACCOUNT_TYPE)

    @property
    def title(self) -> str:
        """Display string "<name> (<account>)" as shown in detail views."""
        return f"{self.display_name} ({self.account_name})"

    def supports(self, ical_name: str) -> bool:
        """Check whether VTODO / VJOURNAL records can be stored here."""
        if ical_name == "VTODO":
            return self.supports_vtodo
        if ical_name == "VJOURNAL":
            return self.supports_vjournal
        return False

    def to_row(self) -> dict[str, Any]:
        return {column: getattr(self, attr) for attr, column in _COLUMN_MAP.items()}

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'ICalCollection':
        kwargs = {attr: row[column] for attr, column in _COLUMN_MAP.items()}
        for flag in ('supports_vjournal', 'supports_vtodo', 'readonly'):
            kwargs[flag] = bool(kwargs[flag])
        return cls(collection_id=row[COLUMN_COLLECTION_ID], **kwargs)


def parse_color(value: Optional[str]) -> Optional[int]:
    """Parse a '#rrggbb' color string to its RGB integer."""
    if not value:
        return None
    text = value.strip().lstrip('#')
    if len(text) != 6:
        return None
    try:
        return int(text, 16)
    except ValueError:
        return None


def format_color(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return f"#{value & 0xFFFFFF:06x}"
