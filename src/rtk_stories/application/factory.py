"""
Service Factory
Wires the adapters and services for one deck from an AppConfig.
"""

from dataclasses import dataclass

from rtk_stories.application.config import AppConfig
from rtk_stories.application.deck_index import DeckIndex
from rtk_stories.application.legacy_resolver import LegacyLinkResolver
from rtk_stories.application.story_service import StoryService
from rtk_stories.infrastructure.adapters.anki_connect import AnkiConnectAdapter
from rtk_stories.infrastructure.scraping.rtk_site import RtkSite
from rtk_stories.infrastructure.story_cache import StoryCache


@dataclass
class AppContext:
    """Long-lived collaborators shared by all requests. Holds no per-request state."""

    deck_name: str
    anki: AnkiConnectAdapter
    site: RtkSite
    cache: StoryCache
    deck_index: DeckIndex
    legacy_resolver: LegacyLinkResolver
    stories: StoryService

    async def close(self) -> None:
        await self.anki.close()
        await self.site.close()


def build_site(config: AppConfig) -> RtkSite:
    return RtkSite(base_url=config.site_base_url, timeout=config.request_timeout)


def build_story_cache(config: AppConfig, site: RtkSite | None = None) -> StoryCache:
    return StoryCache(config.cache_dir, site or build_site(config))


def build_context(config: AppConfig) -> AppContext:
    """
    Returns a fully wired AppContext for `config.deck`.
    """
    if not config.deck:
        raise ValueError("No deck configured. Pass a deck name or set RTK_STORIES_DECK.")

    anki = AnkiConnectAdapter(url=config.anki_connect_url, timeout=config.request_timeout)
    site = build_site(config)
    cache = build_story_cache(config, site)
    deck_index = DeckIndex(anki)
    return AppContext(
        deck_name=config.deck,
        anki=anki,
        site=site,
        cache=cache,
        deck_index=deck_index,
        legacy_resolver=LegacyLinkResolver(anki, site, deck_index),
        stories=StoryService(anki, cache),
    )
