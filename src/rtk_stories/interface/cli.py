"""rtk-stories CLI: serve the story picker and manage the story cache."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from rtk_stories.application.config import resolve_config
from rtk_stories.domain.errors import RtkStoriesError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="rtk-stories: pick Koohii and Heisig stories for your RTK Anki deck.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage rtk-stories configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for rtk-stories."""
    logging.getLogger().setLevel(LOG_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    deck: Annotated[str | None, typer.Argument(help="Anki deck holding the RTK cards.")] = None,
    host: Annotated[str | None, typer.Option(help="Interface to bind.")] = None,
    port: Annotated[int | None, typer.Option(help="Port to listen on.")] = None,
    anki_connect_url: Annotated[
        str | None, typer.Option(help="Custom AnkiConnect endpoint.")
    ] = None,
    cache_dir: Annotated[
        Path | None, typer.Option(help="Directory for cached story pages.")
    ] = None,
):
    """[bold green]Serve[/bold green] the story picker for a deck."""
    import uvicorn

    from rtk_stories.server import create_app

    config = resolve_config(
        {
            "deck": deck,
            "host": host,
            "port": port,
            "anki_connect_url": anki_connect_url,
            "cache_dir": cache_dir,
        }
    )
    if not config.deck:
        typer.secho("No deck given. Pass DECK or set RTK_STORIES_DECK.", fg="red", err=True)
        raise typer.Exit(1)

    typer.echo(f"Listening on http://{config.host}:{config.port}")
    uvicorn.run(create_app(config), host=config.host, port=config.port)


@app.command()
def fetch(
    kanji: Annotated[list[str], typer.Argument(help="Kanji to download stories for.")],
    cache_dir: Annotated[
        Path | None, typer.Option(help="Directory for cached story pages.")
    ] = None,
):
    """Download and cache stories ahead of time. Cached kanji are left alone."""
    from rtk_stories.application.factory import build_story_cache

    config = resolve_config({"cache_dir": cache_dir})
    cache = build_story_cache(config)

    async def run() -> int:
        failures = 0
        try:
            for key in kanji:
                try:
                    bundle = await cache.fetch(key)
                except RtkStoriesError as e:
                    failures += 1
                    typer.secho(f"{key}: {e}", fg="red", err=True)
                    continue
                heisig = "yes" if bundle.heisig else "no"
                typer.echo(f"{key}: {len(bundle.koohii)} Koohii stories, Heisig story: {heisig}")
        finally:
            await cache.site.close()
        return failures

    if asyncio.run(run()):
        raise typer.Exit(1)


@app.command()
def forget(
    kanji: Annotated[list[str], typer.Argument(help="Kanji to drop from the cache.")],
    cache_dir: Annotated[
        Path | None, typer.Option(help="Directory for cached story pages.")
    ] = None,
):
    """Remove cached stories so the next view downloads them again."""
    from rtk_stories.application.factory import build_story_cache

    cache = build_story_cache(resolve_config({"cache_dir": cache_dir}))

    async def run():
        for key in kanji:
            try:
                removed = await cache.invalidate(key)
            except RtkStoriesError as e:
                typer.secho(f"{key}: {e}", fg="red", err=True)
                continue
            if removed:
                typer.echo(f"{key}: removed")
            else:
                typer.secho(f"{key}: not cached", fg="yellow")

    asyncio.run(run())


@app.command()
def cached(
    cache_dir: Annotated[
        Path | None, typer.Option(help="Directory for cached story pages.")
    ] = None,
):
    """List kanji whose stories are already cached."""
    from rtk_stories.application.factory import build_story_cache

    cache = build_story_cache(resolve_config({"cache_dir": cache_dir}))
    keys = cache.cached_keys()
    for key in keys:
        typer.echo(key)
    typer.secho(f"{len(keys)} kanji cached in {cache.cache_dir}", fg="green", err=True)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
