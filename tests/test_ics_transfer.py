"""
ICS import/export tests using pytest.
"""

import pytest
import requests

from jtx.collection import ICalCollection
from jtx.ical_entity import parse_ical_entities
from jtx.ical_object import ICalObject, InvalidArgumentError
from jtx.ics_transfer import ICSSource, export_collection, import_ical_text


PEER_CALENDAR = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Example//Peer//EN\r\n"
    "BEGIN:VTODO\r\n"
    "UID:parent@example.com\r\n"
    "DTSTAMP:20210926T060027Z\r\n"
    "SUMMARY:Parent task\r\n"
    "STATUS:IN-PROCESS\r\n"
    "PERCENT-COMPLETE:40\r\n"
    "END:VTODO\r\n"
    "BEGIN:VTODO\r\n"
    "UID:child@example.com\r\n"
    "DTSTAMP:20210926T060027Z\r\n"
    "SUMMARY:Child task\r\n"
    "RELATED-TO;RELTYPE=PARENT:parent@example.com\r\n"
    "CATEGORIES:home,garden\r\n"
    "END:VTODO\r\n"
    "BEGIN:VJOURNAL\r\n"
    "UID:note@example.com\r\n"
    "DTSTAMP:20210926T060027Z\r\n"
    "SUMMARY:Loose note\r\n"
    "END:VJOURNAL\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:event@example.com\r\n"
    "DTSTAMP:20210926T060027Z\r\n"
    "DTSTART:20210926T060027Z\r\n"
    "SUMMARY:Not stored\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


class _FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code
        self.encoding = None

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


# ==================== Import ====================

def test_import_stores_todos_and_journals(db) -> None:
    ids = import_ical_text(db, PEER_CALENDAR, 1)

    assert len(ids) == 3
    records = db.get_icalobjects_by_collection_sync(1)
    assert [r.uid for r in records] == ["parent@example.com", "child@example.com", "note@example.com"]
    assert [r.component for r in records] == ["TODO", "TODO", "NOTE"]
    assert records[0].percent == 40
    assert records[0].status == "IN-PROCESS"
    assert all(r.dirty is False for r in records)
    assert db.get_icalobject_by_uid_sync("event@example.com") is None


def test_import_resolves_related_records(db) -> None:
    import_ical_text(db, PEER_CALENDAR, 1)
    parent = db.get_icalobject_by_uid_sync("parent@example.com")
    child = db.get_icalobject_by_uid_sync("child@example.com")

    entity = db.get_entity_by_id_sync(child.id)
    assert entity.relatedto[0].text == "parent@example.com"
    assert entity.relatedto[0].linked_icalobject_id == parent.id
    assert [c.text for c in entity.categories] == ["home", "garden"]


def test_import_skips_existing_uids(db) -> None:
    assert len(import_ical_text(db, PEER_CALENDAR, 1)) == 3
    assert import_ical_text(db, PEER_CALENDAR, 1) == []
    assert len(db.get_icalobjects_by_collection_sync(1)) == 3


def test_import_respects_supported_components(db) -> None:
    collection_id = db.insert_collection_sync(
        ICalCollection(display_name="Tasks only", supports_vjournal=False))

    import_ical_text(db, PEER_CALENDAR, collection_id)

    assert [r.component for r in db.get_icalobjects_by_collection_sync(collection_id)] == ["TODO", "TODO"]


def test_import_into_read_only_collection_fails(db) -> None:
    collection_id = db.insert_collection_sync(ICalCollection(display_name="Shared", readonly=True))
    with pytest.raises(InvalidArgumentError):
        import_ical_text(db, PEER_CALENDAR, collection_id)


def test_import_into_unknown_collection_fails(db) -> None:
    with pytest.raises(InvalidArgumentError):
        import_ical_text(db, PEER_CALENDAR, 77)


def test_import_of_garbage_fails(db) -> None:
    with pytest.raises(InvalidArgumentError):
        import_ical_text(db, "BEGIN:VCALENDAR\r\nthis is not ical\r\n", 1)


# ==================== Export ====================

def test_export_contains_every_live_record(db, full_entity) -> None:
    db.insert_entity_sync(full_entity)
    journal = ICalObject.create_journal()
    journal.summary = "Journal entry"
    db.insert_icalobject_sync(journal)
    gone = ICalObject.create_note("deleted note")
    db.insert_icalobject_sync(gone)
    db.update_icalobject_sync(gone.mark_deleted())

    text = export_collection(db, 1)

    assert text.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:")
    assert "X-WR-CALNAME:Local\r\n" in text
    assert text.count("BEGIN:VTODO") == 1
    assert text.count("BEGIN:VJOURNAL") == 1
    assert "deleted note" not in text
    assert text.count("BEGIN:VTIMEZONE") == 1
    assert "TZID:Europe/Vienna\r\n" in text
    assert text.index("BEGIN:VTIMEZONE") < text.index("BEGIN:VTODO")
    uids = {e.icalobject.uid for e in parse_ical_entities(text)}
    assert uids == {full_entity.icalobject.uid, journal.uid}


def test_export_then_import_into_other_database(db, full_entity) -> None:
    from jtx.database import ICalDatabase

    db.insert_entity_sync(full_entity)
    text = export_collection(db, 1)

    other = ICalDatabase(":memory:")
    try:
        other.ensure_local_collection_sync()
        [icalobject_id] = import_ical_text(other, text, 1)
        copied = other.get_entity_by_id_sync(icalobject_id)
    finally:
        other.close()

    assert copied.icalobject.uid == full_entity.icalobject.uid
    assert copied.icalobject.summary == full_entity.icalobject.summary
    assert copied.icalobject.percent == 42
    assert len(copied.attendees) == 1
    assert len(copied.categories) == 2


def test_export_of_unknown_collection_fails(db) -> None:
    with pytest.raises(InvalidArgumentError):
        export_collection(db, 5)


# ==================== ICSSource ====================

def test_remote_source_fetches_with_requests(db, monkeypatch) -> None:
    calls = []

    def fake_get(url, timeout=None, headers=None):
        calls.append((url, timeout, headers))
        return _FakeResponse(PEER_CALENDAR)

    monkeypatch.setattr(requests, "get", fake_get)
    source = ICSSource("webcal://example.com/tasks.ics", name="Tasks")

    ids = source.import_into(db, 1)

    assert len(ids) == 3
    assert source.is_remote
    assert source.error is None
    assert source.last_fetch is not None
    assert calls[0][0] == "https://example.com/tasks.ics"
    assert calls[0][1] == 30
    assert calls[0][2]["Accept"] == "text/calendar"


def test_remote_source_reports_network_errors(db, monkeypatch) -> None:
    def fake_get(url, timeout=None, headers=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", fake_get)
    source = ICSSource("https://example.com/tasks.ics")

    assert source.fetch() is False
    assert source.error.startswith("Network error:")
    assert source.raw_data is None
    assert source.import_into(db, 1) == []


def test_remote_source_reports_http_errors(monkeypatch) -> None:
    monkeypatch.setattr(requests, "get", lambda url, timeout=None, headers=None: _FakeResponse("", 404))
    source = ICSSource("https://example.com/missing.ics")

    assert source.fetch() is False
    assert "404" in source.error


def test_local_file_source(db, tmp_path) -> None:
    path = tmp_path / "tasks.ics"
    path.write_text(PEER_CALENDAR, encoding="utf-8")
    source = ICSSource(str(path))

    assert not source.is_remote
    assert len(source.import_into(db, 1)) == 3
    assert source.name == str(path)


def test_missing_local_file(tmp_path) -> None:
    source = ICSSource(str(tmp_path / "nope.ics"))
    assert source.fetch() is False
    assert source.error.startswith("File error:")


def test_source_ids_are_stable() -> None:
    assert ICSSource("https://a.example/x.ics").id == ICSSource("https://a.example/x.ics").id
    assert ICSSource("https://a.example/x.ics").id != ICSSource("https://b.example/x.ics").id
    assert len(ICSSource("anything").id) == 12
