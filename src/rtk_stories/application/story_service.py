"""
Story Service: application layer orchestrator.

Builds the card page view model from Anki and the story cache, and turns a
submitted story choice into the value written back to the note.
"""

import logging

from rtk_stories.domain.constants import FIELD_STORY, SELECT_CUSTOM, SELECT_HEISIG
from rtk_stories.domain.errors import ConflictError
from rtk_stories.domain.models import CardView, DeckSnapshot, StoryBundle, StorySubmission
from rtk_stories.domain.ports import NoteStore
from rtk_stories.infrastructure.story_cache import StoryCache

logger = logging.getLogger(__name__)


def resolve_selection(bundle: StoryBundle, story: str, content: str = "") -> str:
    """
    Pick the story text for a form choice.

    "heisig" and "custom" select Heisig's story and the free text; anything
    else is read as an index into the Koohii stories. Missing stories and
    out-of-range or malformed indices resolve to "".
    """
    if story == SELECT_HEISIG:
        return bundle.heisig or ""
    if story == SELECT_CUSTOM:
        return content
    if not story.isdecimal():
        return ""
    index = int(story)
    if index >= len(bundle.koohii):
        return ""
    return bundle.koohii[index].story


class StoryService:
    """
    Application service for viewing a card and saving its story.

    Depends on the NoteStore port and the story cache, not on concrete HTTP clients.
    """

    def __init__(self, store: NoteStore, cache: StoryCache):
        self._store = store
        self._cache = cache

    async def view(self, snapshot: DeckSnapshot, position: int) -> CardView:
        """
        Assemble the card at `position` with its neighbours and stories.

        Raises:
            NotFoundError: If the position is outside the snapshot
        """
        card = await self._store.get_card(snapshot.ref_at(position))

        prev_card = None
        if snapshot.has_position(position - 1):
            prev_card = await self._store.get_card(snapshot.ref_at(position - 1))
        next_card = None
        if snapshot.has_position(position + 1):
            next_card = await self._store.get_card(snapshot.ref_at(position + 1))

        bundle = await self._cache.fetch(card.kanji)
        return CardView(
            position=position,
            total=len(snapshot),
            card=card,
            bundle=bundle,
            prev_card=prev_card,
            next_card=next_card,
        )

    async def submit(
        self, snapshot: DeckSnapshot, position: int, submission: StorySubmission
    ) -> CardView:
        """
        Save the chosen story and return the re-read card view.

        Raises:
            NotFoundError: If the position is outside the snapshot
            ConflictError: If the card's kanji changed since the form was rendered
        """
        card = await self._store.get_card(snapshot.ref_at(position))
        if card.kanji != submission.kanji:
            raise ConflictError("Kanji mismatch. Go back, refresh and try again.")

        bundle = await self._cache.fetch(card.kanji)
        outcome = resolve_selection(bundle, submission.story, submission.content)
        logger.info(
            f"[story] {card.kanji} (position {position}): "
            f"selected '{submission.story}', {len(outcome)} chars"
        )
        await self._store.update_note_fields(card.note_id, {FIELD_STORY: outcome})

        return await self.view(snapshot, position)
