"""
Durable per-kanji story cache.

One JSON file per kanji under the cache directory. A present, parseable file
is final: it is returned without touching the network and never revalidated.
Entries only go away through `invalidate`.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from rtk_stories.domain.errors import NotFoundError
from rtk_stories.domain.models import StoryBundle
from rtk_stories.infrastructure.scraping.rtk_site import RtkSite

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".json"


class StoryCache:
    def __init__(self, cache_dir: Path, site: RtkSite):
        self.cache_dir = Path(cache_dir)
        self.site = site

    def path_for(self, key: str) -> Path:
        """
        Cache file for a kanji. The raw key is the file name.

        Raises:
            NotFoundError: If the key is empty or could escape the cache directory
        """
        if not key or key in (".", "..") or "/" in key or os.sep in key:
            raise NotFoundError(f"No stories for key {key!r}")
        return self.cache_dir / f"{key}{CACHE_SUFFIX}"

    async def fetch(self, key: str) -> StoryBundle:
        """
        Return the bundle for a kanji, scraping and caching it on a miss.

        Raises:
            TransportError: If the site can't be reached
            ScrapeFormatError: If the page lacks the Koohii section. Nothing is cached.
        """
        path = self.path_for(key)
        cached = await asyncio.to_thread(self._read, path)
        if cached is not None:
            logger.debug(f"[cache] hit {key}")
            return cached

        logger.debug(f"[cache] miss {key}")
        bundle = await self.site.fetch_stories(key)
        await asyncio.to_thread(self._write, path, bundle)
        return bundle

    async def invalidate(self, key: str) -> bool:
        """Drop a cached entry. Returns False if there was nothing to drop."""
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        logger.info(f"[cache] invalidated {key}")
        return True

    def cached_keys(self) -> list[str]:
        if not self.cache_dir.is_dir():
            return []
        return sorted(p.stem for p in self.cache_dir.glob(f"*{CACHE_SUFFIX}"))

    @staticmethod
    def _read(path: Path) -> StoryBundle | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[cache] ignoring unreadable entry {path.name}: {e}")
            return None
        try:
            return StoryBundle.model_validate_json(raw)
        except ValidationError as e:
            # Includes a literal `null`; treat as not cached and refetch.
            logger.warning(f"[cache] ignoring unreadable entry {path.name}: {e}")
            return None

    def _write(self, path: Path, bundle: StoryBundle) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(bundle.model_dump_json())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
