"""
Domain models for deck navigation and story selection.

These are pure data structures with no I/O. StoryBundle is a pydantic
model because it is also the on-disk cache format.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .constants import FIELD_ALTERNATIVE_KANJI, FIELD_KANJI, FIELD_KEYWORD, FIELD_STORY
from .errors import NotFoundError


@dataclass(frozen=True)
class DeckSnapshot:
    """
    Ordered card ids of a deck, captured once per request.

    Attributes:
        deck_name: The deck the snapshot was taken from.
        refs: Card ids in the order AnkiConnect returned them. Position p
            (1-based) maps to refs[p - 1].
    """

    deck_name: str
    refs: tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.refs)

    def has_position(self, position: int) -> bool:
        return 1 <= position <= len(self.refs)

    def ref_at(self, position: int) -> int:
        if not self.has_position(position):
            raise NotFoundError(f"Card not found: position {position}")
        return self.refs[position - 1]


@dataclass(frozen=True)
class CardRecord:
    """
    A card as AnkiConnect reports it right now.

    Attributes:
        card_id: The card id (a Note Reference in the deck snapshot).
        note_id: The owning note; updates are addressed to it.
        fields: Field name -> current value.
    """

    card_id: int
    note_id: int
    fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_cards_info(cls, info: dict[str, Any]) -> "CardRecord":
        """Build from a single `cardsInfo` entry."""
        fields = {
            name: (value or {}).get("value", "")
            for name, value in info.get("fields", {}).items()
        }
        return cls(card_id=info["cardId"], note_id=info["note"], fields=fields)

    def value(self, name: str) -> str:
        return self.fields.get(name, "")

    @property
    def kanji(self) -> str:
        return self.value(FIELD_KANJI)

    @property
    def keyword(self) -> str:
        return self.value(FIELD_KEYWORD)

    @property
    def alternative_kanji(self) -> str:
        return self.value(FIELD_ALTERNATIVE_KANJI)

    @property
    def story(self) -> str:
        return self.value(FIELD_STORY)


class KoohiiStory(BaseModel):
    """One community story: author, vote score and the story body (HTML)."""

    model_config = ConfigDict(frozen=True)

    author: str
    score: int
    story: str


class StoryBundle(BaseModel):
    """
    Parsed story content for one kanji.

    Optional sections are None when the page has no such heading. The
    koohii list keeps page order.
    """

    model_config = ConfigDict(frozen=True)

    koohii: list[KoohiiStory] = Field(default_factory=list)
    heisig: str | None = None
    comment: str | None = None
    primitive: str | None = None


@dataclass(frozen=True)
class StorySubmission:
    """
    A posted story form.

    Attributes:
        kanji: Echo of the kanji the form was rendered for.
        story: "heisig", "custom", or a decimal index into the koohii list.
        content: Free text, used when story == "custom".
    """

    kanji: str
    story: str
    content: str = ""


@dataclass
class CardView:
    """Everything the card page needs: the card, its neighbours and its stories."""

    position: int
    total: int
    card: CardRecord
    bundle: StoryBundle
    prev_card: CardRecord | None = None
    next_card: CardRecord | None = None

    @property
    def prev_position(self) -> int | None:
        return self.position - 1 if self.prev_card is not None else None

    @property
    def next_position(self) -> int | None:
        return self.position + 1 if self.next_card is not None else None
