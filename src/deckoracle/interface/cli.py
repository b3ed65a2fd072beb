"""DeckOracle CLI — root commands and subgroup registration."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from deckoracle.application.config import resolve_config
from deckoracle.domain.errors import InvalidStatus
from deckoracle.interface._common import _resolve_with_overrides, load_deck_file

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="deckoracle: flashcard study sessions and progress analytics.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

from deckoracle.interface.progress_commands import progress_app  # noqa: E402

app.add_typer(progress_app, name="progress")

config_app = typer.Typer(help="Manage deckoracle configuration.")
app.add_typer(config_app, name="config")

RATING_KEYS = {"e": "easy", "m": "medium", "h": "hard", "f": "forgot"}


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for deckoracle."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def study(
    deck_file: Annotated[
        Path,
        typer.Argument(
            exists=True, dir_okay=False, help="YAML file with deck_id, name and cards."
        ),
    ],
    user: Annotated[str, typer.Option("--user", "-u", help="Who is studying.")],
    mode: Annotated[str | None, typer.Option(help="Study mode tag.")] = None,
    backend: Annotated[str | None, typer.Option(help="Storage backend: json, memory.")] = None,
    data_file: Annotated[
        Path | None, typer.Option(help="History file for the json backend.")
    ] = None,
):
    """[bold green]Study[/bold green] a deck: one pass over its cards in order.

    Press Enter to flip a card, 's' to skip it (recorded as forgot), 'q' to
    stop early. After flipping, rate the card (e)asy, (m)edium, (h)ard or
    (f)orgot.
    """
    from deckoracle.application.factory import build_services

    config = _resolve_with_overrides(backend=backend, data_file=data_file)
    deck = load_deck_file(deck_file)

    async def run():
        study_service, _ = build_services(config)
        seq = await study_service.open_sequencer(
            user, deck.deck_id, deck.cards, study_mode=mode, deck_name=deck.name
        )
        session_id = seq.session.session_id

        if seq.is_complete:
            typer.secho("Nothing to study: this deck has no cards.", fg="yellow")
            await study_service.complete(session_id)
            return

        while not seq.is_complete:
            card = seq.current_card
            typer.echo(f"\n[{seq.index + 1}/{seq.total_cards}] {card.front}")
            action = typer.prompt(
                "Enter to flip, s to skip, q to quit", default="", show_default=False
            ).strip().lower()

            if action == "q":
                typer.secho("Stopped early; progress so far is saved.", fg="yellow")
                break
            if action == "s":
                await study_service.save_outcome(seq.skip())
                continue

            seq.flip()
            typer.echo(f"    {card.back}")
            while True:
                choice = typer.prompt("Rate (e)asy (m)edium (h)ard (f)orgot").strip().lower()
                try:
                    outcome = seq.answer(RATING_KEYS.get(choice, choice))
                    break
                except InvalidStatus as e:
                    typer.secho(str(e), fg="red")
            await study_service.save_outcome(outcome)

        if seq.is_complete:
            await study_service.complete(session_id)

        summary = seq.summary
        typer.secho(
            f"\nStudied {summary.total} card(s): easy {summary.easy}, medium {summary.medium}, "
            f"hard {summary.hard}, forgot {summary.forgot}",
            fg="green",
        )

    asyncio.run(run())


@app.command()
def serve(
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API server."""
    import uvicorn

    config = _resolve_with_overrides(host=host, port=port)
    uvicorn.run("deckoracle.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))

