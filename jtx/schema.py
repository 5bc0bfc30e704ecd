"""
Declarative schema for the jtx Board database.

Every table, column, foreign key and index lives here; ICalDatabase
creates the tables from these definitions. Column names are shared with
the record modules so rows map onto records without translation.

Format: TABLES[name] = {"columns": [(col_name, col_ddl), ...],
                        "foreign_keys": [(column, parent_table, parent_column), ...],
                        "indices": [(index_name, [columns])]}

All foreign keys cascade on delete.
"""

from collections import OrderedDict

from .collection import (
    TABLE_NAME_COLLECTION, COLUMN_COLLECTION_ID, COLUMN_COLLECTION_URL,
    COLUMN_COLLECTION_DISPLAYNAME, COLUMN_COLLECTION_DESCRIPTION, COLUMN_COLLECTION_OWNER,
    COLUMN_COLLECTION_COLOR, COLUMN_COLLECTION_SUPPORTSVJOURNAL, COLUMN_COLLECTION_SUPPORTSVTODO,
    COLUMN_COLLECTION_ACCOUNT_NAME, COLUMN_COLLECTION_ACCOUNT_TYPE, COLUMN_COLLECTION_READONLY,
)
from .ical_object import (
    TABLE_NAME_ICALOBJECT, COLUMN_ID, COLUMN_COMPONENT, COLUMN_SUMMARY, COLUMN_DESCRIPTION,
    COLUMN_DTSTART, COLUMN_DTSTART_TIMEZONE, COLUMN_DTEND, COLUMN_DTEND_TIMEZONE, COLUMN_STATUS,
    COLUMN_CLASSIFICATION, COLUMN_URL, COLUMN_CONTACT, COLUMN_GEO_LAT, COLUMN_GEO_LONG,
    COLUMN_LOCATION, COLUMN_PERCENT, COLUMN_PRIORITY, COLUMN_DUE, COLUMN_DUE_TIMEZONE,
    COLUMN_COMPLETED, COLUMN_COMPLETED_TIMEZONE, COLUMN_DURATION, COLUMN_UID, COLUMN_CREATED,
    COLUMN_DTSTAMP, COLUMN_LAST_MODIFIED, COLUMN_SEQUENCE, COLUMN_COLOR, COLUMN_OTHER,
    COLUMN_ICALOBJECT_COLLECTIONID, COLUMN_DIRTY, COLUMN_DELETED,
)
from .properties import (
    TABLE_NAME_ATTENDEE, TABLE_NAME_ATTACHMENT, TABLE_NAME_COMMENT, TABLE_NAME_CATEGORY,
    TABLE_NAME_ORGANIZER, TABLE_NAME_RELATEDTO, COLUMN_PROPERTY_ID, COLUMN_PROPERTY_ICALOBJECT_ID,
)


# Bump when this file changes
SCHEMA_VERSION = 1

TABLES: dict[str, dict] = OrderedDict()

TABLES[TABLE_NAME_COLLECTION] = {
    "columns": [
        (COLUMN_COLLECTION_ID, "INTEGER PRIMARY KEY AUTOINCREMENT"),
        (COLUMN_COLLECTION_URL, "TEXT NOT NULL"),
        (COLUMN_COLLECTION_DISPLAYNAME, "TEXT"),
        (COLUMN_COLLECTION_DESCRIPTION, "TEXT"),
        (COLUMN_COLLECTION_OWNER, "TEXT"),
        (COLUMN_COLLECTION_COLOR, "INTEGER"),
        (COLUMN_COLLECTION_SUPPORTSVJOURNAL, "INTEGER NOT NULL DEFAULT 1"),
        (COLUMN_COLLECTION_SUPPORTSVTODO, "INTEGER NOT NULL DEFAULT 1"),
        (COLUMN_COLLECTION_ACCOUNT_NAME, "TEXT"),
        (COLUMN_COLLECTION_ACCOUNT_TYPE, "TEXT"),
        (COLUMN_COLLECTION_READONLY, "INTEGER NOT NULL DEFAULT 0"),
    ],
    "foreign_keys": [],
    "indices": [],
}

TABLES[TABLE_NAME_ICALOBJECT] = {
    "columns": [
        (COLUMN_ID, "INTEGER PRIMARY KEY AUTOINCREMENT"),
        (COLUMN_COMPONENT, "TEXT NOT NULL"),
        (COLUMN_SUMMARY, "TEXT"),
        (COLUMN_DESCRIPTION, "TEXT"),
        (COLUMN_DTSTART, "INTEGER"),
        (COLUMN_DTSTART_TIMEZONE, "TEXT"),
        (COLUMN_DTEND, "INTEGER"),
        (COLUMN_DTEND_TIMEZONE, "TEXT"),
        (COLUMN_STATUS, "TEXT"),
        (COLUMN_CLASSIFICATION, "TEXT"),
        (COLUMN_URL, "TEXT"),
        (COLUMN_CONTACT, "TEXT"),
        (COLUMN_GEO_LAT, "REAL"),
        (COLUMN_GEO_LONG, "REAL"),
        (COLUMN_LOCATION, "TEXT"),
        (COLUMN_PERCENT, "INTEGER CHECK (percent IS NULL OR percent BETWEEN 0 AND 100)"),
        (COLUMN_PRIORITY, "INTEGER"),
        (COLUMN_DUE, "INTEGER"),
        (COLUMN_DUE_TIMEZONE, "TEXT"),
        (COLUMN_COMPLETED, "INTEGER"),
        (COLUMN_COMPLETED_TIMEZONE, "TEXT"),
        (COLUMN_DURATION, "TEXT"),
        (COLUMN_UID, "TEXT NOT NULL UNIQUE"),
        (COLUMN_CREATED, "INTEGER NOT NULL"),
        (COLUMN_DTSTAMP, "INTEGER NOT NULL"),
        (COLUMN_LAST_MODIFIED, "INTEGER NOT NULL"),
        (COLUMN_SEQUENCE, "INTEGER NOT NULL DEFAULT 0"),
        (COLUMN_COLOR, "INTEGER"),
        (COLUMN_OTHER, "TEXT"),
        (COLUMN_ICALOBJECT_COLLECTIONID, "INTEGER NOT NULL"),
        (COLUMN_DIRTY, "INTEGER NOT NULL DEFAULT 1"),
        (COLUMN_DELETED, "INTEGER NOT NULL DEFAULT 0"),
    ],
    "foreign_keys": [
        (COLUMN_ICALOBJECT_COLLECTIONID, TABLE_NAME_COLLECTION, COLUMN_COLLECTION_ID),
    ],
    "indices": [
        ("index_icalobject_search", [COLUMN_ID, COLUMN_SUMMARY, COLUMN_DESCRIPTION]),
        ("index_icalobject_collectionId", [COLUMN_ICALOBJECT_COLLECTIONID]),
    ],
}


def _property_table(extra_columns: list[tuple[str, str]]) -> dict:
    """Property tables share the id / parent columns and the cascade key."""
    return {
        "columns": [
            (COLUMN_PROPERTY_ID, "INTEGER PRIMARY KEY AUTOINCREMENT"),
            (COLUMN_PROPERTY_ICALOBJECT_ID, "INTEGER NOT NULL"),
        ] + extra_columns,
        "foreign_keys": [
            (COLUMN_PROPERTY_ICALOBJECT_ID, TABLE_NAME_ICALOBJECT, COLUMN_ID),
        ],
        "indices": [],
    }


TABLES[TABLE_NAME_ATTENDEE] = _property_table([
    ("caladdress", "TEXT NOT NULL"),
    ("cn", "TEXT"),
    ("role", "TEXT"),
    ("partstat", "TEXT"),
    ("rsvp", "INTEGER"),
])

TABLES[TABLE_NAME_ATTACHMENT] = _property_table([
    ("uri", "TEXT NOT NULL"),
    ("filename", "TEXT"),
    ("fmttype", "TEXT"),
])

TABLES[TABLE_NAME_COMMENT] = _property_table([
    ("text", "TEXT NOT NULL"),
    ("language", "TEXT"),
])

TABLES[TABLE_NAME_CATEGORY] = _property_table([
    ("text", "TEXT NOT NULL"),
    ("language", "TEXT"),
])

TABLES[TABLE_NAME_ORGANIZER] = _property_table([
    ("caladdress", "TEXT NOT NULL"),
    ("cn", "TEXT"),
])

TABLES[TABLE_NAME_RELATEDTO] = _property_table([
    ("text", "TEXT NOT NULL"),
    ("reltype", "TEXT"),
    ("linked_icalobject_id", "INTEGER"),
])

# at most one organizer per record
TABLES[TABLE_NAME_ORGANIZER]["indices"].append(
    ("index_organizer_icalObjectId", [COLUMN_PROPERTY_ICALOBJECT_ID], True)
)

for _name in (TABLE_NAME_ATTENDEE, TABLE_NAME_ATTACHMENT, TABLE_NAME_COMMENT,
              TABLE_NAME_CATEGORY, TABLE_NAME_RELATEDTO):
    TABLES[_name]["indices"].append((f"index_{_name}_icalObjectId", [COLUMN_PROPERTY_ICALOBJECT_ID]))


def _quote(identifier: str) -> str:
    return f'"{identifier}"'


def create_table_sql(name: str) -> str:
    """CREATE TABLE statement for one table of TABLES."""
    table = TABLES[name]
    parts = [f"{_quote(col)} {ddl}" for col, ddl in table["columns"]]
    for column, parent_table, parent_column in table["foreign_keys"]:
        parts.append(
            f"FOREIGN KEY ({_quote(column)}) REFERENCES {_quote(parent_table)}"
            f"({_quote(parent_column)}) ON DELETE CASCADE"
        )
    return f"CREATE TABLE IF NOT EXISTS {_quote(name)} ({', '.join(parts)})"


def create_index_sql(name: str) -> list[str]:
    statements = []
    for index in TABLES[name]["indices"]:
        index_name, columns = index[0], index[1]
        unique = "UNIQUE " if len(index) > 2 and index[2] else ""
        cols = ", ".join(_quote(c) for c in columns)
        statements.append(
            f"CREATE {unique}INDEX IF NOT EXISTS {_quote(index_name)} ON {_quote(name)} ({cols})"
        )
    return statements


def all_schema_sql() -> list[str]:
    """Every statement needed to create the schema, parents first."""
    statements = []
    for name in TABLES:
        statements.append(create_table_sql(name))
        statements.extend(create_index_sql(name))
    return statements
