"""
Ports (interfaces) for the note store.

Application services depend on this abstraction, not on the AnkiConnect adapter.
"""

from abc import ABC, abstractmethod

from .models import CardRecord


class NoteStore(ABC):
    """
    Port for reading and updating cards.

    Implementations:
        - AnkiConnectAdapter: Uses the AnkiConnect HTTP API.
    """

    @abstractmethod
    async def find_cards(self, query: str) -> list[int]:
        """
        Run an Anki search and return matching card ids in Anki's order.

        Args:
            query: Anki search syntax, e.g. '"deck:RTK"'.
        """
        pass

    @abstractmethod
    async def get_card(self, card_id: int) -> CardRecord:
        """Fetch the current fields of one card."""
        pass

    @abstractmethod
    async def update_note_fields(self, note_id: int, fields: dict[str, str]) -> None:
        """Overwrite the given fields of a note in a single call."""
        pass
