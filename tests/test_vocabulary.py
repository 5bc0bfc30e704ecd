"""
Vocabulary tests using pytest.
"""

import pytest

from jtx.vocabulary import Classification, Component, Reltype, StatusJournal, StatusTodo


def test_param_values_keep_declaration_order() -> None:
    assert StatusJournal.param_values() == ["DRAFT", "FINAL", "CANCELLED"]
    assert StatusTodo.param_values() == ["NEEDS-ACTION", "COMPLETED", "IN-PROCESS", "CANCELLED"]
    assert Classification.param_values() == ["PUBLIC", "PRIVATE", "CONFIDENTIAL"]


def test_lookup_by_id() -> None:
    assert StatusTodo.get_param_by_id(2) == "IN-PROCESS"
    assert StatusJournal.get_param_by_id(0) == "DRAFT"
    assert Classification.get_param_by_id(2) == "CONFIDENTIAL"
    assert Reltype.get_param_by_id(1) == "CHILD"


def test_lookup_by_param() -> None:
    assert StatusTodo.from_param("NEEDS-ACTION") is StatusTodo.NEEDSACTION
    assert StatusTodo.get_label_by_param("COMPLETED") == "Completed"
    assert Classification.from_param("PRIVATE") is Classification.PRIVATE


@pytest.mark.parametrize("vocabulary", [StatusJournal, StatusTodo, Classification, Reltype])
def test_unknown_values_return_none(vocabulary) -> None:
    """Tokens from newer sync peers must not crash the lookups."""
    assert vocabulary.get_param_by_id(99) is None
    assert vocabulary.get_param_by_id(None) is None
    assert vocabulary.from_param("X-UNKNOWN") is None
    assert vocabulary.get_label_by_param("X-UNKNOWN") is None
    assert vocabulary.from_param(None) is None


def test_status_vocabulary_depends_on_component() -> None:
    assert Component.TODO.status_vocabulary is StatusTodo
    assert Component.JOURNAL.status_vocabulary is StatusJournal
    assert Component.NOTE.status_vocabulary is StatusJournal
    # DRAFT is a journal status only
    assert StatusTodo.from_param("DRAFT") is None


def test_component_ical_names() -> None:
    assert Component.TODO.ical_name == "VTODO"
    assert Component.JOURNAL.ical_name == "VJOURNAL"
    assert Component.NOTE.ical_name == "VJOURNAL"
    assert Component.from_name("EVENT") is None
