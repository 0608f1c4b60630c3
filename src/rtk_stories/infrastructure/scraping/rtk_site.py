"""
Reference site scraper (hochanh.github.io/rtk).

Fetches per-kanji story pages and legacy RTKv4 pages, and parses the
heading-delimited sections out of their HTML.

Note: Web scraping is inherently fragile. The Koohii section is treated as
mandatory so that a change in page shape fails loudly instead of caching
empty bundles; the Heisig sections are optional.
"""

import logging
import re
from urllib.parse import quote, unquote

import httpx

from rtk_stories.domain.constants import REQUEST_TIMEOUT, SITE_BASE_URL, USER_AGENT
from rtk_stories.domain.errors import NotFoundError, ScrapeFormatError, TransportError
from rtk_stories.domain.models import KoohiiStory, StoryBundle

logger = logging.getLogger(__name__)

KOOHII_SECTION_RE = re.compile(r"<h2>Koohii stories:</h2>([\s\S]*?)<hr>")
PARAGRAPH_RE = re.compile(r"<p>[\s\S]*?</p>")
# Example: <p>1) [<a href="...">author</a>] 12-5-2010(42): story body</p>
KOOHII_ENTRY_RE = re.compile(
    r"<p>[0-9]+\) \[<a.*?>([^<]*?)</a>\] "  # index and author link
    r".*?\(([0-9]+)\): "  # date and score
    r"([\s\S]*?)</p>"  # story body
)
# Skips dot-segment links such as the site's own `../../index.html`
LEGACY_LINK_RE = re.compile(r'href="\.\./([^/.][^/]*)/index\.html"')

HEISIG_STORY = "Heisig story"
HEISIG_COMMENT = "Heisig comment"
PRIMITIVE = "Primitive"


def parse_koohii_stories(html: str) -> list[KoohiiStory]:
    """
    Parse the community stories section.

    Args:
        html: Raw HTML of a kanji page

    Returns:
        Stories in page order. Paragraphs that don't look like a story entry
        are skipped.

    Raises:
        ScrapeFormatError: If the page has no Koohii stories section
    """
    section = KOOHII_SECTION_RE.search(html)
    if section is None:
        raise ScrapeFormatError("Page has no 'Koohii stories' section")

    stories = []
    for paragraph in PARAGRAPH_RE.findall(section.group(1)):
        match = KOOHII_ENTRY_RE.match(paragraph)
        if match is None:
            logger.debug(f"Skipping unrecognized Koohii entry: {paragraph[:80]!r}")
            continue
        author, score, body = match.groups()
        stories.append(KoohiiStory(author=author, score=int(score), story=body))
    return stories


def parse_section(html: str, header: str) -> str | None:
    """Return the first paragraph following `<h2>{header}:</h2>`, or None."""
    pattern = re.compile(rf"<h2>{re.escape(header)}:</h2>[^<]*?<p>([\s\S]*?)</p>")
    match = pattern.search(html)
    return match.group(1) if match else None


def parse_story_page(html: str) -> StoryBundle:
    """
    Parse a kanji page into a StoryBundle.

    Raises:
        ScrapeFormatError: If the mandatory Koohii section is missing
    """
    return StoryBundle(
        koohii=parse_koohii_stories(html),
        heisig=parse_section(html, HEISIG_STORY),
        comment=parse_section(html, HEISIG_COMMENT),
        primitive=parse_section(html, PRIMITIVE),
    )


def extract_legacy_key(html: str) -> str | None:
    """
    Extract the current kanji from a legacy RTKv4 page.

    The page links to its RTKv6 counterpart as `../<kanji>/index.html`.
    """
    for match in LEGACY_LINK_RE.finditer(html):
        key = unquote(match.group(1))
        # percent-encoded dot segments and separators are not kanji either
        if key not in (".", "..") and "/" not in key:
            return key
    return None


class RtkSite:
    """Async client for the reference site."""

    def __init__(
        self,
        base_url: str = SITE_BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
        return self._client

    def story_url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='')}/index.html"

    def legacy_url(self, legacy_id: int) -> str:
        return f"{self.base_url}/v4/{legacy_id}.html"

    async def _get(self, url: str) -> httpx.Response:
        try:
            return await self._get_client().get(url)
        except httpx.HTTPError as e:
            logger.error(f"GET {url} failed: {e}")
            raise TransportError(f"Failed to fetch {url}\n\n{e}") from e

    async def fetch_stories(self, key: str) -> StoryBundle:
        """
        Download and parse the story page for a kanji.

        Raises:
            TransportError: If the request fails or the site answers non-2xx
            ScrapeFormatError: If the page lacks the Koohii section
        """
        url = self.story_url(key)
        logger.info(f"Fetching stories for {key} from {url}")
        resp = await self._get(url)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"Failed to fetch {url}\n\n{e}") from e
        try:
            return parse_story_page(resp.text)
        except ScrapeFormatError as e:
            raise ScrapeFormatError(f"{e} ({url})") from e

    async def fetch_legacy_key(self, legacy_id: int) -> str:
        """
        Resolve a legacy RTKv4 page id to the kanji it now lives under.

        Raises:
            NotFoundError: If the page does not exist or has no RTKv6 link
            TransportError: On network failure
        """
        url = self.legacy_url(legacy_id)
        resp = await self._get(url)
        if resp.status_code == 404:
            raise NotFoundError("RTKv6 Card Not Found")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"Failed to fetch {url}\n\n{e}") from e
        key = extract_legacy_key(resp.text)
        if key is None:
            raise NotFoundError("RTKv6 Card Not Found")
        return key

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
