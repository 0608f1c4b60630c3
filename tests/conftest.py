from unittest.mock import AsyncMock, MagicMock

import pytest

from rtk_stories.application.deck_index import DeckIndex
from rtk_stories.application.factory import AppContext
from rtk_stories.application.legacy_resolver import LegacyLinkResolver
from rtk_stories.application.story_service import StoryService
from rtk_stories.domain.models import KoohiiStory, StoryBundle
from rtk_stories.infrastructure.adapters.anki_connect import AnkiConnectAdapter
from rtk_stories.infrastructure.story_cache import StoryCache

STORY_PAGE = """<!DOCTYPE html>
<html><body>
<h1>浮</h1>
<h2>Heisig story:</h2>
<p>The <em>child</em> floats on the water.</p>
<h2>Heisig comment:</h2>
<p>Compare with the kanji for milk.</p>
<h2>Primitive:</h2>
<p>As a primitive, this means float.</p>
<h2>Koohii stories:</h2>
<p>1) [<a href="http://kanji.koohii.com/profile/alice">alice</a>] 10-8-2008(42): A <b>child</b> floating in a pool.</p>
<p>2) [<a href="http://kanji.koohii.com/profile/bob">bob</a>] 3-2-2009(7): Bob's story.</p>
<p>This paragraph is not a story entry.</p>
<hr>
<p>Footer</p>
</body></html>
"""

MINIMAL_PAGE = """<html><body>
<h2>Koohii stories:</h2>
<p>1) [<a href="/profile/x">x</a>] 1-1-2010(5): s</p>
<hr>
</body></html>
"""


def make_card_info(card_id, note_id, kanji, keyword="", story="", alternative=""):
    """A cardsInfo entry as AnkiConnect returns it."""
    return {
        "cardId": card_id,
        "note": note_id,
        "deckName": "RTK",
        "fields": {
            "Kanji": {"value": kanji, "order": 0},
            "Keyword": {"value": keyword, "order": 1},
            "Alternative Kanji": {"value": alternative, "order": 2},
            "Story": {"value": story, "order": 3},
        },
    }


class FakeDeck:
    """In-memory stand-in for what AnkiConnect would answer for one deck."""

    def __init__(self, cards):
        self.cards = {c["cardId"]: c for c in cards}
        self.order = [c["cardId"] for c in cards]
        self.unstoried_new: list[int] = []
        self.updates: list[dict] = []

    async def invoke(self, action, **params):
        if action == "findCards":
            query = params["query"]
            if '"is:new"' in query:
                return list(self.unstoried_new)
            if '"Kanji:' in query:
                kanji = query.split('"Kanji:')[1].rstrip('"')
                return [cid for cid in self.order if self.cards[cid]["fields"]["Kanji"]["value"] == kanji]
            return list(self.order)
        if action == "cardsInfo":
            return [self.cards.get(cid, {}) for cid in params["cards"]]
        if action == "updateNoteFields":
            note = params["note"]
            self.updates.append(note)
            for card in self.cards.values():
                if card["note"] == note["id"]:
                    for name, value in note["fields"].items():
                        card["fields"][name]["value"] = value
            return None
        raise AssertionError(f"unexpected action {action}")


@pytest.fixture
def deck():
    return FakeDeck(
        [
            make_card_info(101, 1001, "A", keyword="alpha"),
            make_card_info(102, 1002, "B", keyword="beta", story="old story"),
            make_card_info(103, 1003, "C", keyword="gamma", alternative="c"),
        ]
    )


@pytest.fixture
def adapter(deck):
    a = AnkiConnectAdapter("http://localhost:8765")
    setattr(a, "_invoke", AsyncMock(side_effect=deck.invoke))  # noqa: B010
    setattr(a, "is_responsive", AsyncMock(return_value=True))  # noqa: B010
    return a


@pytest.fixture
def bundle():
    return StoryBundle(
        koohii=[
            KoohiiStory(author="alice", score=42, story="alice's story"),
            KoohiiStory(author="bob", score=7, story="bob's story"),
        ],
        heisig="heisig's story",
        comment=None,
        primitive="a primitive",
    )


@pytest.fixture
def site(bundle):
    s = MagicMock()
    s.base_url = "http://hochanh.github.io/rtk"
    s.fetch_stories = AsyncMock(return_value=bundle)
    s.fetch_legacy_key = AsyncMock(return_value="B")
    s.close = AsyncMock()
    return s


@pytest.fixture
def cache(tmp_path, site):
    return StoryCache(tmp_path / "cache", site)


@pytest.fixture
def context(adapter, site, cache):
    deck_index = DeckIndex(adapter)
    return AppContext(
        deck_name="RTK",
        anki=adapter,
        site=site,
        cache=cache,
        deck_index=deck_index,
        legacy_resolver=LegacyLinkResolver(adapter, site, deck_index),
        stories=StoryService(adapter, cache),
    )


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home
