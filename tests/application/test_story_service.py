"""Tests for story viewing, selection and saving."""

import pytest

from rtk_stories.application.story_service import StoryService, resolve_selection
from rtk_stories.domain.errors import ConflictError, NotFoundError
from rtk_stories.domain.models import DeckSnapshot, StoryBundle, StorySubmission


@pytest.fixture
def service(adapter, cache):
    return StoryService(adapter, cache)


@pytest.fixture
def snapshot():
    return DeckSnapshot("RTK", (101, 102, 103))


def _update_calls(adapter):
    return [c for c in adapter._invoke.await_args_list if c.args[0] == "updateNoteFields"]


class TestResolveSelection:
    def test_heisig(self, bundle):
        assert resolve_selection(bundle, "heisig") == "heisig's story"

    def test_heisig_missing_is_empty(self):
        assert resolve_selection(StoryBundle(), "heisig") == ""

    def test_custom_is_exact(self, bundle):
        assert resolve_selection(bundle, "custom", "X") == "X"
        assert resolve_selection(bundle, "custom", "  keep <b>spacing</b> ") == "  keep <b>spacing</b> "

    def test_index(self, bundle):
        assert resolve_selection(bundle, "0") == "alice's story"
        assert resolve_selection(bundle, "1") == "bob's story"

    @pytest.mark.parametrize("story", ["2", "99", "-1", "", "abc", "1.5"])
    def test_invalid_index_is_empty(self, bundle, story):
        assert resolve_selection(bundle, story) == ""


class TestView:
    @pytest.mark.asyncio
    async def test_middle_card_has_both_neighbours(self, service, snapshot, site):
        view = await service.view(snapshot, 2)

        assert view.card.kanji == "B"
        assert view.card.story == "old story"
        assert view.prev_card.kanji == "A"
        assert view.next_card.kanji == "C"
        assert view.total == 3
        site.fetch_stories.assert_awaited_once_with("B")

    @pytest.mark.asyncio
    async def test_first_and_last_have_one_neighbour(self, service, snapshot):
        first = await service.view(snapshot, 1)
        last = await service.view(snapshot, 3)

        assert first.prev_card is None and first.next_position == 2
        assert last.next_card is None and last.prev_position == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [0, 4])
    async def test_unknown_position(self, service, snapshot, position):
        with pytest.raises(NotFoundError):
            await service.view(snapshot, position)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_stale_form_is_rejected_without_update(self, service, snapshot, adapter):
        with pytest.raises(ConflictError):
            await service.submit(snapshot, 2, StorySubmission(kanji="A", story="custom", content="X"))
        assert _update_calls(adapter) == []

    @pytest.mark.asyncio
    async def test_custom_story_is_written_and_reread(self, service, snapshot, adapter, deck):
        view = await service.submit(snapshot, 2, StorySubmission(kanji="B", story="custom", content="X"))

        assert deck.updates == [{"id": 1002, "fields": {"Story": "X"}}]
        assert view.card.story == "X"
        # the card is read again after the update
        card_reads = [
            c for c in adapter._invoke.await_args_list
            if c.args[0] == "cardsInfo" and c.kwargs["cards"] == [102]
        ]
        assert len(card_reads) == 2

    @pytest.mark.asyncio
    async def test_koohii_index(self, service, snapshot, deck):
        await service.submit(snapshot, 1, StorySubmission(kanji="A", story="1"))
        assert deck.updates[-1]["fields"]["Story"] == "bob's story"

    @pytest.mark.asyncio
    async def test_heisig(self, service, snapshot, deck):
        await service.submit(snapshot, 3, StorySubmission(kanji="C", story="heisig"))
        assert deck.updates[-1] == {"id": 1003, "fields": {"Story": "heisig's story"}}

    @pytest.mark.asyncio
    async def test_out_of_range_index_writes_empty_story(self, service, snapshot, deck):
        view = await service.submit(snapshot, 2, StorySubmission(kanji="B", story="2"))

        assert deck.updates == [{"id": 1002, "fields": {"Story": ""}}]
        assert view.card.story == ""

    @pytest.mark.asyncio
    async def test_unknown_position(self, service, snapshot, adapter):
        with pytest.raises(NotFoundError):
            await service.submit(snapshot, 9, StorySubmission(kanji="A", story="custom"))
        assert _update_calls(adapter) == []
