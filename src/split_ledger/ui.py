"""Interactive UI components for picking participants."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Participant

logger = logging.getLogger(__name__)

ALL_PARTICIPANTS = "*"


def display_label(participant: Participant) -> str:
    """Unique label for a participant; the id suffix disambiguates equal names."""
    return f"{participant.name} ({participant.id[:6]})"


class ParticipantCompleter(Completer):
    """Fuzzy search completer for participants."""

    def __init__(self, participants: list[Participant]):
        """Initialize the completer with available participants."""
        self.participants = participants

        # Build searchable strings and label-to-id mapping
        self.searchable = []
        self.label_to_id = {}
        for participant in participants:
            label = display_label(participant)
            self.searchable.append((participant.id, label))
            self.label_to_id[label] = participant.id

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for _participant_id, label in self.searchable:
            if not query or fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )

    def resolve(self, text: str) -> str | None:
        """Map typed text to a participant id (label, exact name, or id)."""
        text = text.strip()
        if text in self.label_to_id:
            return self.label_to_id[text]

        matches = [
            p.id for p in self.participants if text.lower() in (p.name.lower(), p.id)
        ]
        return matches[0] if len(matches) == 1 else None


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="aln" matches "Alan"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


def select_participant_interactive(
    participants: list[Participant], prompt: str = "Paid by: "
) -> str | None:
    """
    Interactive participant selection with fuzzy search.

    Returns:
        Selected participant id, or None to cancel
    """
    completer = ParticipantCompleter(participants)
    session: PromptSession[str] = PromptSession(completer=completer)

    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    try:
        while True:
            result = session.prompt(prompt, complete_while_typing=True)
            if not result:
                return None

            participant_id = completer.resolve(result)
            if participant_id:
                logger.debug(f"User selected participant {participant_id}")
                return participant_id

            print("❌ Unknown participant. Press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None


def select_participants_interactive(participants: list[Participant]) -> list[str]:
    """
    Pick the participants an expense is split among.

    Enter one participant per line and an empty line to finish.
    Entering "*" selects everyone.

    Returns:
        Selected participant ids (empty if cancelled)
    """
    completer = ParticipantCompleter(participants)
    session: PromptSession[str] = PromptSession(completer=completer)

    print(
        f"   Add participants one per line, '{ALL_PARTICIPANTS}' for everyone, "
        "empty line to finish\n"
    )

    selected: list[str] = []
    try:
        while True:
            result = session.prompt("Split among: ", complete_while_typing=True)
            if not result:
                return selected

            if result.strip() == ALL_PARTICIPANTS:
                return [p.id for p in participants]

            participant_id = completer.resolve(result)
            if participant_id is None:
                print("❌ Unknown participant. Press Tab to complete.")
            elif participant_id not in selected:
                selected.append(participant_id)

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return []
    except EOFError:
        return selected
