"""
Deck Index: ordered view of a deck's cards.

A snapshot is taken at the start of every request and handed down the
call chain; it is never kept between requests.
"""

import logging

from rtk_stories.domain.models import DeckSnapshot
from rtk_stories.domain.ports import NoteStore

logger = logging.getLogger(__name__)


def deck_query(deck_name: str) -> str:
    return f'"deck:{deck_name}"'


class DeckIndex:
    def __init__(self, store: NoteStore):
        self._store = store

    async def snapshot(self, deck_name: str) -> DeckSnapshot:
        """Capture the deck's card ids in Anki's order (first occurrence wins on duplicates)."""
        refs = await self._store.find_cards(deck_query(deck_name))
        unique = tuple(dict.fromkeys(refs))
        logger.debug(f"[deck] snapshot of '{deck_name}': {len(unique)} cards")
        return DeckSnapshot(deck_name=deck_name, refs=unique)

    @staticmethod
    def position_of(snapshot: DeckSnapshot, ref: int) -> int | None:
        """1-based position of a card in the snapshot, or None."""
        try:
            return snapshot.refs.index(ref) + 1
        except ValueError:
            return None

    async def first_unstoried_position(self, snapshot: DeckSnapshot) -> int:
        """
        Position of the first new card with an empty Story field.

        Falls back to 1 when every new card already has a story.
        """
        query = f'{deck_query(snapshot.deck_name)} AND "story:" AND "is:new"'
        hits = await self._store.find_cards(query)
        if not hits:
            return 1
        return self.position_of(snapshot, hits[0]) or 1
