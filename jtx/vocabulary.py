"""
Enumerated vocabulary for jtx Board records.

Each member maps a stable integer id to the token used on the wire
(RFC 5545 spelling) and a display label. Lookups are total: an unknown id
or token yields None, since sync peers may send values this version
does not know.
"""

from enum import Enum
from typing import Optional


class _ParamEnum(Enum):
    """Base for enums whose value is (id, param, label)."""

    def __init__(self, id_: int, param: str, label: str):
        self.id = id_
        self.param = param
        self.label = label

    @classmethod
    def from_param(cls, param: Optional[str]):
        """Get the member for a wire token, or None."""
        for member in cls:
            if member.param == param:
                return member
        return None

    @classmethod
    def from_id(cls, id_: Optional[int]):
        for member in cls:
            if member.id == id_:
                return member
        return None

    @classmethod
    def get_param_by_id(cls, id_: Optional[int]) -> Optional[str]:
        member = cls.from_id(id_)
        return member.param if member else None

    @classmethod
    def get_label_by_param(cls, param: Optional[str]) -> Optional[str]:
        member = cls.from_param(param)
        return member.label if member else None

    @classmethod
    def param_values(cls) -> list[str]:
        """All wire tokens in declaration order (used for UI ordering)."""
        return [member.param for member in cls]


class StatusJournal(_ParamEnum):
    """Status values for journals and notes."""
    DRAFT = (0, "DRAFT", "Draft")
    FINAL = (1, "FINAL", "Final")
    CANCELLED = (2, "CANCELLED", "Cancelled")


class StatusTodo(_ParamEnum):
    """Status values for to-dos."""
    NEEDSACTION = (0, "NEEDS-ACTION", "Needs action")
    COMPLETED = (1, "COMPLETED", "Completed")
    INPROCESS = (2, "IN-PROCESS", "In process")
    CANCELLED = (3, "CANCELLED", "Cancelled")


class Classification(_ParamEnum):
    """Access classification (CLASS property)."""
    PUBLIC = (0, "PUBLIC", "Public")
    PRIVATE = (1, "PRIVATE", "Private")
    CONFIDENTIAL = (2, "CONFIDENTIAL", "Confidential")


class Reltype(_ParamEnum):
    """RELTYPE parameter of RELATED-TO."""
    PARENT = (0, "PARENT", "Parent")
    CHILD = (1, "CHILD", "Child")
    SIBLING = (2, "SIBLING", "Sibling")


class Component(Enum):
    """Kind of a record. Notes are journals without a start date."""
    JOURNAL = "JOURNAL"
    NOTE = "NOTE"
    TODO = "TODO"

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional['Component']:
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def ical_name(self) -> str:
        """Name of the iCalendar component used for this kind."""
        return "VTODO" if self is Component.TODO else "VJOURNAL"

    @property
    def status_vocabulary(self) -> type[_ParamEnum]:
        return StatusTodo if self is Component.TODO else StatusJournal
