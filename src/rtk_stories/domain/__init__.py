# Domain Package
from .errors import (
    ConflictError,
    NotFoundError,
    RtkStoriesError,
    ScrapeFormatError,
    TransportError,
    UpstreamRpcError,
)
from .models import CardRecord, CardView, DeckSnapshot, KoohiiStory, StoryBundle, StorySubmission

__all__ = [
    "RtkStoriesError",
    "TransportError",
    "UpstreamRpcError",
    "ScrapeFormatError",
    "NotFoundError",
    "ConflictError",
    "CardRecord",
    "CardView",
    "DeckSnapshot",
    "KoohiiStory",
    "StoryBundle",
    "StorySubmission",
]
