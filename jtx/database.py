"""
Persistent storage for jtx Board.

SQLite database built from the declarative schema. Every operation has a
blocking form (suffix _sync) and a non-blocking twin returning a Future
from the task dispatcher. One connection, guarded by a lock, serializes
all access so a record never has two concurrent writers.
"""

import sqlite3
import sys
import threading
from concurrent.futures import Future
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .collection import ICalCollection, TABLE_NAME_COLLECTION, COLUMN_COLLECTION_ID
from .ical_entity import ICalEntity
from .ical_object import (
    ICalObject, InvalidArgumentError, TABLE_NAME_ICALOBJECT, COLUMN_ID, COLUMN_UID,
    COLUMN_ICALOBJECT_COLLECTIONID, COLUMN_DELETED, COLUMN_DIRTY,
)
from .properties import (
    Attendee, Attachment, Comment, Category, Organizer, Relatedto,
    COLUMN_PROPERTY_ID, COLUMN_PROPERTY_ICALOBJECT_ID, property_to_row, property_from_row,
)
from .schema import all_schema_sql, SCHEMA_VERSION
from .task_dispatch import submit_task


PropertyRecord = Union[Attendee, Attachment, Comment, Category, Organizer, Relatedto]


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] DB: {msg}", file=sys.stderr)


def _quote(identifier: str) -> str:
    return f'"{identifier}"'


class ICalDatabase:
    """
    Access layer for collections, records and their properties.

    Use ":memory:" as path for a throwaway database.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._create_schema()

        _debug_print(f"Initialized database at {self.db_path}")

    def _create_schema(self) -> None:
        with self._lock, self._conn:
            for statement in all_schema_sql():
                self._conn.execute(statement)
            self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _insert(self, table: str, row: dict) -> int:
        columns = ", ".join(_quote(c) for c in row)
        placeholders = ", ".join("?" for _ in row)
        cursor = self._conn.execute(
            f"INSERT INTO {_quote(table)} ({columns}) VALUES ({placeholders})",
            list(row.values()),
        )
        return cursor.lastrowid

    # ==================== Collections ====================

    def insert_collection_sync(self, collection: ICalCollection) -> int:
        """Insert a collection; a preset collection_id is kept."""
        row = collection.to_row()
        if collection.collection_id:
            row = {COLUMN_COLLECTION_ID: collection.collection_id, **row}
        with self._lock, self._conn:
            collection.collection_id = self._insert(TABLE_NAME_COLLECTION, row)
        _debug_print(f"Inserted collection {collection.collection_id} ({collection.display_name})")
        return collection.collection_id

    def get_collection_by_id_sync(self, collection_id: int) -> Optional[ICalCollection]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT * FROM {_quote(TABLE_NAME_COLLECTION)} WHERE {_quote(COLUMN_COLLECTION_ID)} = ?",
                (collection_id,),
            ).fetchone()
        return ICalCollection.from_row(row) if row else None

    def get_all_collections_sync(self) -> list[ICalCollection]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT * FROM {_quote(TABLE_NAME_COLLECTION)} ORDER BY {_quote(COLUMN_COLLECTION_ID)}"
            ).fetchall()
        return [ICalCollection.from_row(row) for row in rows]

    def ensure_local_collection_sync(self) -> ICalCollection:
        """Create the local collection (id 1) if it does not exist yet."""
        existing = self.get_collection_by_id_sync(1)
        if existing is not None:
            return existing
        local = ICalCollection.create_local()
        self.insert_collection_sync(local)
        return local

    def delete_collection_sync(self, collection_id: int) -> bool:
        """Delete a collection with all its records and their properties."""
        with self._lock, self._conn:
            cursor = self._conn.execute(
                f"DELETE FROM {_quote(TABLE_NAME_COLLECTION)} WHERE {_quote(COLUMN_COLLECTION_ID)} = ?",
                (collection_id,),
            )
        _debug_print(f"Deleted collection {collection_id}: {cursor.rowcount > 0}")
        return cursor.rowcount > 0

    # ==================== Records ====================

    def insert_icalobject_sync(self, icalobject: ICalObject) -> int:
        """
        Insert a record and assign its id.

        Raises InvalidArgumentError if the owning collection does not exist
        and sqlite3.IntegrityError if the uid is already taken.
        """
        with self._lock, self._conn:
            return self._insert_icalobject(icalobject)

    def _insert_icalobject(self, icalobject: ICalObject) -> int:
        if self.get_collection_by_id_sync(icalobject.collection_id) is None:
            raise InvalidArgumentError(f"Unknown collection: {icalobject.collection_id}")
        icalobject.id = self._insert(TABLE_NAME_ICALOBJECT, icalobject.to_row())
        return icalobject.id

    def update_icalobject_sync(self, icalobject: ICalObject) -> None:
        row = icalobject.to_row()
        assignments = ", ".join(f"{_quote(c)} = ?" for c in row)
        with self._lock, self._conn:
            self._conn.execute(
                f"UPDATE {_quote(TABLE_NAME_ICALOBJECT)} SET {assignments} WHERE {_quote(COLUMN_ID)} = ?",
                list(row.values()) + [icalobject.id],
            )

    def get_icalobject_by_id_sync(self, icalobject_id: int) -> Optional[ICalObject]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT * FROM {_quote(TABLE_NAME_ICALOBJECT)} WHERE {_quote(COLUMN_ID)} = ?",
                (icalobject_id,),
            ).fetchone()
        return ICalObject.from_row(row) if row else None

    def get_icalobject_by_uid_sync(self, uid: str) -> Optional[ICalObject]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT * FROM {_quote(TABLE_NAME_ICALOBJECT)} WHERE {_quote(COLUMN_UID)} = ?",
                (uid,),
            ).fetchone()
        return ICalObject.from_row(row) if row else None

    def get_icalobjects_by_collection_sync(self, collection_id: int,
                                           include_deleted: bool = False) -> list[ICalObject]:
        query = (f"SELECT * FROM {_quote(TABLE_NAME_ICALOBJECT)} "
                 f"WHERE {_quote(COLUMN_ICALOBJECT_COLLECTIONID)} = ?")
        if not include_deleted:
            query += f" AND {_quote(COLUMN_DELETED)} = 0"
        query += f" ORDER BY {_quote(COLUMN_ID)}"
        with self._lock:
            rows = self._conn.execute(query, (collection_id,)).fetchall()
        return [ICalObject.from_row(row) for row in rows]

    def get_dirty_icalobjects_sync(self) -> list[ICalObject]:
        """Records with local changes a sync adapter still has to upload."""
        with self._lock:
            rows = self._conn.execute(
                f"SELECT * FROM {_quote(TABLE_NAME_ICALOBJECT)} WHERE {_quote(COLUMN_DIRTY)} = 1 "
                f"ORDER BY {_quote(COLUMN_ID)}"
            ).fetchall()
        return [ICalObject.from_row(row) for row in rows]

    def delete_icalobject_sync(self, icalobject_id: int) -> bool:
        """Remove a record and its properties for good (no tombstone)."""
        with self._lock, self._conn:
            cursor = self._conn.execute(
                f"DELETE FROM {_quote(TABLE_NAME_ICALOBJECT)} WHERE {_quote(COLUMN_ID)} = ?",
                (icalobject_id,),
            )
        return cursor.rowcount > 0

    # ==================== Properties ====================

    def insert_property_sync(self, record: PropertyRecord) -> int:
        """Insert any property record and assign its id."""
        with self._lock, self._conn:
            record.id = self._insert(record.table_name, property_to_row(record))
        return record.id

    def set_relatedto_link_sync(self, relatedto_id: int, linked_icalobject_id: int) -> None:
        """Point a RELATED-TO row at the local record carrying its uid."""
        with self._lock, self._conn:
            self._conn.execute(
                f"UPDATE {_quote(Relatedto.table_name)} SET \"linked_icalobject_id\" = ? "
                f"WHERE {_quote(COLUMN_PROPERTY_ID)} = ?",
                (linked_icalobject_id, relatedto_id),
            )

    def _load_properties(self, record_type, icalobject_id: int) -> list:
        rows = self._conn.execute(
            f"SELECT * FROM {_quote(record_type.table_name)} "
            f"WHERE {_quote(COLUMN_PROPERTY_ICALOBJECT_ID)} = ? ORDER BY {_quote(COLUMN_PROPERTY_ID)}",
            (icalobject_id,),
        ).fetchall()
        return [property_from_row(record_type, row) for row in rows]

    def count_properties_sync(self, record_type, icalobject_id: int) -> int:
        with self._lock:
            row = self._conn.execute(
                f"SELECT COUNT(*) FROM {_quote(record_type.table_name)} "
                f"WHERE {_quote(COLUMN_PROPERTY_ICALOBJECT_ID)} = ?",
                (icalobject_id,),
            ).fetchone()
        return row[0]

    # ==================== Entities ====================

    def get_entity_by_id_sync(self, icalobject_id: int) -> Optional[ICalEntity]:
        """Assemble the record with all its properties and its collection."""
        with self._lock:
            icalobject = self.get_icalobject_by_id_sync(icalobject_id)
            if icalobject is None:
                return None
            organizers = self._load_properties(Organizer, icalobject_id)
            return ICalEntity(
                icalobject=icalobject,
                comments=self._load_properties(Comment, icalobject_id),
                categories=self._load_properties(Category, icalobject_id),
                attendees=self._load_properties(Attendee, icalobject_id),
                organizer=organizers[0] if organizers else None,
                relatedto=self._load_properties(Relatedto, icalobject_id),
                attachments=self._load_properties(Attachment, icalobject_id),
                collection=self.get_collection_by_id_sync(icalobject.collection_id),
            )

    def get_entities_by_collection_sync(self, collection_id: int) -> list[ICalEntity]:
        with self._lock:
            return [
                self.get_entity_by_id_sync(obj.id)
                for obj in self.get_icalobjects_by_collection_sync(collection_id)
            ]

    def insert_entity_sync(self, entity: ICalEntity) -> int:
        """Insert a record together with all its property records."""
        with self._lock, self._conn:
            icalobject_id = self._insert_icalobject(entity.icalobject)
            records = (entity.comments + entity.categories + entity.attendees
                       + entity.relatedto + entity.attachments)
            if entity.organizer is not None:
                records.append(entity.organizer)
            for record in records:
                record.icalobject_id = icalobject_id
                record.id = self._insert(record.table_name, property_to_row(record))
        return icalobject_id

    # ==================== Non-blocking forms ====================

    def insert_collection(self, collection: ICalCollection) -> Future:
        return submit_task(self.insert_collection_sync, collection)

    def get_collection_by_id(self, collection_id: int) -> Future:
        return submit_task(self.get_collection_by_id_sync, collection_id)

    def delete_collection(self, collection_id: int) -> Future:
        return submit_task(self.delete_collection_sync, collection_id)

    def insert_icalobject(self, icalobject: ICalObject) -> Future:
        return submit_task(self.insert_icalobject_sync, icalobject)

    def update_icalobject(self, icalobject: ICalObject) -> Future:
        return submit_task(self.update_icalobject_sync, icalobject)

    def get_icalobject_by_uid(self, uid: str) -> Future:
        return submit_task(self.get_icalobject_by_uid_sync, uid)

    def delete_icalobject(self, icalobject_id: int) -> Future:
        return submit_task(self.delete_icalobject_sync, icalobject_id)

    def insert_property(self, record: PropertyRecord) -> Future:
        return submit_task(self.insert_property_sync, record)

    def get_entity_by_id(self, icalobject_id: int) -> Future:
        return submit_task(self.get_entity_by_id_sync, icalobject_id)

    def get_entities_by_collection(self, collection_id: int) -> Future:
        return submit_task(self.get_entities_by_collection_sync, collection_id)

    def insert_entity(self, entity: ICalEntity) -> Future:
        return submit_task(self.insert_entity_sync, entity)

