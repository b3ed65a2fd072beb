"""`deckoracle progress` subgroup: analytics reports."""

import asyncio
from datetime import datetime
from typing import Annotated

import typer

from deckoracle.application.factory import build_services
from deckoracle.domain.progress.models import ProgressQuery
from deckoracle.interface._common import _resolve_with_overrides, to_json

progress_app = typer.Typer(help="Progress analytics reports.", no_args_is_help=True)

UserOpt = Annotated[str, typer.Option("--user", "-u", help="User whose history to report.")]
DeckOpt = Annotated[str | None, typer.Option("--deck", help="Restrict to one deck.")]
StartOpt = Annotated[
    datetime | None,
    typer.Option("--start", formats=["%Y-%m-%d"], help="First day (inclusive)."),
]
EndOpt = Annotated[
    datetime | None,
    typer.Option("--end", formats=["%Y-%m-%d"], help="Last day (inclusive)."),
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


def _query(deck: str | None, start: datetime | None, end: datetime | None) -> ProgressQuery:
    return ProgressQuery(
        deck_id=deck,
        start_date=start.date() if start else None,
        end_date=end.date() if end else None,
    )


def _progress_service():
    _, progress = build_services(_resolve_with_overrides())
    return progress


@progress_app.command("overview")
def overview(
    user: UserOpt,
    deck: DeckOpt = None,
    start: StartOpt = None,
    end: EndOpt = None,
    json_output: JsonOpt = False,
):
    """Totals, accuracy and current streak."""
    result = asyncio.run(_progress_service().overview(user, _query(deck, start, end)))
    if json_output:
        typer.echo(to_json(result))
        return
    typer.echo(f"Cards studied:  {result.total_cards_studied}")
    typer.echo(f"Study time:     {result.total_study_time_minutes:.1f} min")
    typer.echo(f"Accuracy:       {result.average_accuracy:.2f}%")
    typer.echo(f"Sessions:       {result.total_sessions}")
    typer.echo(f"Decks:          {result.decks_in_progress}")
    typer.echo(f"Current streak: {result.streak_days} day(s)")


@progress_app.command("decks")
def decks(
    user: UserOpt,
    deck: DeckOpt = None,
    start: StartOpt = None,
    end: EndOpt = None,
    json_output: JsonOpt = False,
):
    """Mastery per deck (learned / reviewing / new)."""
    rows = asyncio.run(_progress_service().all_deck_progress(user, _query(deck, start, end)))
    if json_output:
        typer.echo(to_json(rows))
        return
    if not rows:
        typer.secho("No decks studied yet.", fg="yellow")
        return
    for row in rows:
        name = row.deck_name or row.deck_id
        typer.echo(
            f"{name}: {row.mastery_percentage:.2f}% mastered "
            f"(learned {row.cards_learned}, reviewing {row.cards_reviewing}, "
            f"new {row.cards_new} of {row.total_cards}), accuracy {row.average_accuracy:.2f}%"
        )


@progress_app.command("cards")
def cards(
    user: UserOpt,
    deck: DeckOpt = None,
    start: StartOpt = None,
    end: EndOpt = None,
    limit: Annotated[int | None, typer.Option(min=1, help="Maximum rows.")] = None,
    json_output: JsonOpt = False,
):
    """Cards needing review, worst accuracy first."""
    rows = asyncio.run(
        _progress_service().card_performance(user, _query(deck, start, end), limit=limit)
    )
    if json_output:
        typer.echo(to_json(rows))
        return
    for row in rows:
        label = row.front or row.card_id
        typer.echo(
            f"{row.accuracy_rate * 100:6.2f}%  {row.total_reviews:3d} reviews  {label}"
        )


@progress_app.command("curve")
def curve(
    user: UserOpt,
    deck: DeckOpt = None,
    start: StartOpt = None,
    end: EndOpt = None,
    dense: Annotated[
        bool | None, typer.Option("--dense/--sparse", help="Fill days without study.")
    ] = None,
    json_output: JsonOpt = False,
):
    """Daily learning curve."""
    points = asyncio.run(
        _progress_service().learning_curve(user, _query(deck, start, end), dense=dense)
    )
    if json_output:
        typer.echo(to_json(points))
        return
    for point in points:
        typer.echo(
            f"{point.date.isoformat()}  {point.cards_studied:4d} cards  "
            f"{point.accuracy:6.2f}%  {point.study_time_minutes:.1f} min"
        )


@progress_app.command("streaks")
def streaks(user: UserOpt, deck: DeckOpt = None, json_output: JsonOpt = False):
    """Current and longest study streaks."""
    info = asyncio.run(_progress_service().streaks(user, ProgressQuery(deck_id=deck)))
    if json_output:
        typer.echo(to_json(info))
        return
    typer.echo(f"Current streak: {info.current_streak}")
    typer.echo(f"Longest streak: {info.longest_streak}")
    if info.last_study_date:
        typer.echo(f"Last studied:   {info.last_study_date.isoformat()}")


@progress_app.command("weekly")
def weekly(
    user: UserOpt,
    deck: DeckOpt = None,
    start: StartOpt = None,
    end: EndOpt = None,
    json_output: JsonOpt = False,
):
    """ISO-week rollups."""
    rows = asyncio.run(_progress_service().weekly_progress(user, _query(deck, start, end)))
    if json_output:
        typer.echo(to_json(rows))
        return
    for row in rows:
        typer.echo(
            f"Week of {row.week_start.isoformat()}: {row.total_cards_studied} cards, "
            f"{row.average_accuracy:.2f}% accuracy, {row.total_study_time_minutes:.1f} min, "
            f"{row.sessions_completed} sessions completed, {row.new_cards_learned} new"
        )
