"""
Error taxonomy for rtk-stories.

Every failure raised by the adapters and services derives from
RtkStoriesError so the HTTP layer can map it to a response in one place.
"""


class RtkStoriesError(Exception):
    """Base class for all rtk-stories failures."""


class TransportError(RtkStoriesError):
    """Network or connection failure talking to AnkiConnect or the reference site."""


class UpstreamRpcError(RtkStoriesError):
    """AnkiConnect answered, but reported an error (or a malformed envelope)."""


class ScrapeFormatError(RtkStoriesError):
    """A page from the reference site is missing a section we depend on."""


class NotFoundError(RtkStoriesError):
    """Unknown deck position, legacy id, or deck-scoped note."""


class ConflictError(RtkStoriesError):
    """A submitted form no longer matches the card it was rendered for."""
