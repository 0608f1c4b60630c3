"""
Legacy-link resolver.

Old bookmarks point at RTKv4 page ids (`/v4/1234.html`). The legacy page links
to the kanji's current page; that kanji is then looked up in the deck.
"""

import logging

from rtk_stories.domain.constants import FIELD_KANJI
from rtk_stories.domain.errors import NotFoundError
from rtk_stories.domain.models import DeckSnapshot
from rtk_stories.domain.ports import NoteStore
from rtk_stories.infrastructure.scraping.rtk_site import RtkSite

from .deck_index import DeckIndex, deck_query

logger = logging.getLogger(__name__)


class LegacyLinkResolver:
    def __init__(self, store: NoteStore, site: RtkSite, deck_index: DeckIndex):
        self._store = store
        self._site = site
        self._deck_index = deck_index

    async def resolve(self, legacy_id: int, snapshot: DeckSnapshot) -> int:
        """
        Map a legacy page id to a position in the snapshot.

        Raises:
            NotFoundError: Unknown legacy id, or no card for the kanji in this deck
        """
        kanji = await self._site.fetch_legacy_key(legacy_id)
        query = f'{deck_query(snapshot.deck_name)} "{FIELD_KANJI}:{kanji}"'
        card_ids = await self._store.find_cards(query)
        if not card_ids:
            raise NotFoundError(f"No card for {kanji} in deck '{snapshot.deck_name}'")

        position = self._deck_index.position_of(snapshot, card_ids[0])
        if position is None:
            raise NotFoundError(f"Card for {kanji} is not in the current deck snapshot")
        logger.debug(f"[legacy] v4/{legacy_id} -> {kanji} -> position {position}")
        return position
