"""Tests for the interactive participant picker helpers."""

from prompt_toolkit.document import Document

from split_ledger.models import Participant
from split_ledger.ui import ParticipantCompleter, display_label, fuzzy_match

PARTICIPANTS = [
    Participant(id="a1b2c3d4", name="Alice"),
    Participant(id="e5f6a7b8", name="Alan"),
    Participant(id="c9d0e1f2", name="Bob"),
]


def completions(text: str) -> list[str]:
    completer = ParticipantCompleter(PARTICIPANTS)
    return [c.text for c in completer.get_completions(Document(text), None)]


def test_fuzzy_match():
    assert fuzzy_match("aln", "alan")
    assert fuzzy_match("", "anything")
    assert not fuzzy_match("bx", "bob")


def test_empty_query_lists_everyone():
    assert completions("") == [display_label(p) for p in PARTICIPANTS]


def test_query_filters_participants():
    assert completions("aln") == ["Alan (e5f6a7)"]
    assert completions("bo") == ["Bob (c9d0e1)"]


def test_resolve_accepts_label_name_or_id():
    completer = ParticipantCompleter(PARTICIPANTS)

    assert completer.resolve("Alice (a1b2c3)") == "a1b2c3d4"
    assert completer.resolve("bob") == "c9d0e1f2"
    assert completer.resolve("e5f6a7b8") == "e5f6a7b8"
    assert completer.resolve("Nobody") is None
