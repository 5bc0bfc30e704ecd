"""Top-level pytest configuration for jtx Board."""

import pytest

from jtx.collection import ICalCollection
from jtx.database import ICalDatabase
from jtx.ical_entity import ICalEntity
from jtx.ical_object import ICalObject
from jtx.properties import Attendee, Attachment, Comment, Category, Organizer, Relatedto
from jtx.task_dispatch import shutdown_tasks


# Sun Sep 26 2021 06:00:27 UTC
SAMPLE_DATE = 1632636027000
# Sun Sep 26 2021 00:00:00 UTC
SAMPLE_DAY = 1632614400000


@pytest.fixture(scope="session", autouse=True)
def _stop_task_workers():
    yield
    shutdown_tasks(wait=True)


@pytest.fixture(autouse=True)
def _restore_module_settings(monkeypatch):
    """Config.apply() changes module globals; undo it after every test."""
    monkeypatch.setattr("jtx.ical_object._uid_domain", "at.techbee.jtx")
    monkeypatch.setattr("jtx.ical_entity._prodid", "-//Techbee//jtx Board//EN")
    monkeypatch.setattr("jtx.timezone_utils._local_timezone_name", "UTC")


@pytest.fixture
def db():
    """In-memory database holding the local collection (id 1)."""
    database = ICalDatabase(":memory:")
    database.ensure_local_collection_sync()
    yield database
    database.close()


@pytest.fixture
def sample_collection():
    return ICalCollection(collection_id=1, display_name="testcollection automated tests",
                          account_name="LOCAL")


@pytest.fixture
def full_entity(sample_collection):
    """A to-do with every field and every property type populated."""
    todo = ICalObject.create_todo()
    todo.summary = "Todo4Test, with comma; and semicolon"
    todo.description = "Description4TodoTest\nsecond line"
    todo.dtstart = SAMPLE_DATE
    todo.dtstart_timezone = "Europe/Vienna"
    todo.due = SAMPLE_DAY
    todo.due_timezone = "ALLDAY"
    todo.completed = SAMPLE_DATE
    todo.duration = "PT1H"
    todo.status = "IN-PROCESS"
    todo.classification = "CONFIDENTIAL"
    todo.url = "https://techbee.at"
    todo.contact = "Patrick"
    todo.location = "Vienna"
    todo.geo_lat = 48.2
    todo.geo_long = 16.37
    todo.percent = 42
    todo.priority = 3
    todo.color = 0x3366CC
    todo.other = "X-SOMETHING:value"
    todo.created = SAMPLE_DATE
    todo.dtstamp = SAMPLE_DATE
    todo.last_modified = SAMPLE_DATE
    todo.sequence = 7

    return ICalEntity(
        icalobject=todo,
        attendees=[Attendee(caladdress="mailto:contact@techbee.at", cn="Contact",
                            role="REQ-PARTICIPANT", rsvp=True)],
        categories=[Category(text="cat1"), Category(text="cat2")],
        comments=[Comment(text="my comment"), Comment(text="second comment")],
        organizer=Organizer(caladdress="mailto:organizer@techbee.at", cn="Organizer"),
        relatedto=[Relatedto(text="parent-uid@at.techbee.jtx", reltype="PARENT")],
        attachments=[Attachment(uri="https://techbee.at/test.pdf", filename="test.pdf",
                                fmttype="application/pdf")],
        collection=sample_collection,
    )
