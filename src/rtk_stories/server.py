import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from rtk_stories.application.config import AppConfig, resolve_config
from rtk_stories.application.factory import AppContext, build_context
from rtk_stories.consts import VERSION
from rtk_stories.domain.errors import (
    ConflictError,
    NotFoundError,
    RtkStoriesError,
    ScrapeFormatError,
    TransportError,
    UpstreamRpcError,
)
from rtk_stories.domain.models import DeckSnapshot, StorySubmission
from rtk_stories.interface.render import render_card_page

logger = logging.getLogger("rtk_stories.server")

STATIC_DIR = Path(__file__).parent / "static"
ASCII_DIGITS_RE = re.compile(r"[0-9]+")

ERROR_STATUS: dict[type[RtkStoriesError], int] = {
    NotFoundError: 404,
    ConflictError: 400,
    TransportError: 500,
    UpstreamRpcError: 500,
    ScrapeFormatError: 500,
}


class HealthResponse(BaseModel):
    status: str
    version: str
    deck: str
    anki_connected: bool


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_snapshot(
    ctx: Annotated[AppContext, Depends(get_context)],
) -> DeckSnapshot:
    """Fresh deck snapshot for this request only."""
    return await ctx.deck_index.snapshot(ctx.deck_name)


Context = Annotated[AppContext, Depends(get_context)]
Snapshot = Annotated[DeckSnapshot, Depends(get_snapshot)]


def create_app(config: AppConfig | None = None, context: AppContext | None = None) -> FastAPI:
    """
    Build the web app for one deck.

    Pass `context` to reuse already wired services; otherwise they are built
    from `config` on startup and closed on shutdown.
    """
    config = config or resolve_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "context", None) is None:
            owned = app.state.context = build_context(config)
        ctx = app.state.context
        logger.info(f"rtk-stories v{VERSION} serving deck '{ctx.deck_name}'")
        if not await ctx.anki.is_responsive():
            logger.warning(f"AnkiConnect is not reachable at {ctx.anki.url}; is Anki running?")
        yield
        if owned is not None:
            await owned.close()
        logger.info("rtk-stories shutting down...")

    app = FastAPI(
        title="rtk-stories",
        description="Pick mnemonic stories for RTK kanji cards in Anki.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.site_base_url = config.site_base_url
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.exception_handler(RtkStoriesError)
    async def handle_domain_error(request: Request, exc: RtkStoriesError):
        status = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
        )
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return PlainTextResponse(str(exc), status_code=status)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(ctx: Context):
        return HealthResponse(
            status="ok",
            version=VERSION,
            deck=ctx.deck_name,
            anki_connected=await ctx.anki.is_responsive(),
        )

    @app.get("/")
    async def first_unstoried(ctx: Context, snapshot: Snapshot):
        position = await ctx.deck_index.first_unstoried_position(snapshot)
        return RedirectResponse(f"/card/{position}", status_code=302)

    @app.get("/v4/{legacy_id:int}.html")
    async def legacy_card(legacy_id: int, ctx: Context, snapshot: Snapshot):
        position = await ctx.legacy_resolver.resolve(legacy_id, snapshot)
        return RedirectResponse(f"/card/{position}", status_code=302)

    @app.get("/card/{position}", response_class=HTMLResponse)
    async def show_card(position: str, ctx: Context, snapshot: Snapshot):
        if not ASCII_DIGITS_RE.fullmatch(position):
            return RedirectResponse("/", status_code=302)
        view = await ctx.stories.view(snapshot, int(position))
        return HTMLResponse(render_card_page(view, app.state.site_base_url))

    @app.post("/card/{position}", response_class=HTMLResponse)
    async def save_story(
        position: str,
        ctx: Context,
        snapshot: Snapshot,
        kanji: Annotated[str, Form()] = "",
        story: Annotated[str, Form()] = "",
        content: Annotated[str, Form()] = "",
    ):
        if not ASCII_DIGITS_RE.fullmatch(position):
            return RedirectResponse("/", status_code=302)
        submission = StorySubmission(kanji=kanji, story=story, content=content)
        view = await ctx.stories.submit(snapshot, int(position), submission)
        return HTMLResponse(render_card_page(view, app.state.site_base_url))

    return app
