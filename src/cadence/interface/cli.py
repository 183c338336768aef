"""cadence CLI: study commands over a JSON card store."""

import json
import logging
import random
import sys
import time
from pathlib import Path
from typing import Annotated

import typer

from cadence.application.config import AppConfig, load_settings_report, resolve_config
from cadence.application.preview import format_interval
from cadence.application.study_service import StudyService
from cadence.domain.errors import CadenceError
from cadence.domain.models import Rating
from cadence.infrastructure.json_store import JsonCardRepository

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: SM-2 spaced-repetition scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

config_app = typer.Typer(help="Inspect cadence configuration.")
app.add_typer(config_app, name="config")

settings_app = typer.Typer(help="Scheduler settings diagnostics.", no_args_is_help=True)
app.add_typer(settings_app, name="settings")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> int:
    return int(time.time() * 1000)


def parse_rating(value: str) -> Rating:
    """Accept a rating name (again/hard/good/easy) or its digit (0-3)."""
    text = value.strip()
    if text.isdigit():
        try:
            return Rating(int(text))
        except ValueError:
            pass
    else:
        try:
            return Rating[text.upper()]
        except KeyError:
            pass
    raise typer.BadParameter(f"'{value}' is not one of again, hard, good, easy or 0-3")


def _config(ctx: typer.Context) -> AppConfig:
    return resolve_config(ctx.obj.get("overrides") if ctx.obj else None)


def _service(ctx: typer.Context) -> StudyService:
    config = _config(ctx)
    report = load_settings_report(config.settings_file)
    rng = random.Random(config.seed) if config.seed is not None else None
    logger.debug(f"Using store {config.store_path} (timezone {config.timezone})")
    repo = JsonCardRepository(config.store_path, report.settings)
    return StudyService(repo, report.settings, timezone=config.timezone, rng=rng)


def _fail(error: CadenceError) -> typer.Exit:
    typer.secho(f"Error: {error}", fg="red", err=True)
    return typer.Exit(1)


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
    store: Annotated[
        Path | None, typer.Option("--store", help="Card store JSON file.")
    ] = None,
    settings_file: Annotated[
        Path | None, typer.Option("--settings", help="Scheduler settings YAML/JSON file.")
    ] = None,
    timezone: Annotated[
        str | None, typer.Option(help="IANA timezone for the daily reset.")
    ] = None,
    seed: Annotated[int | None, typer.Option(help="Seed for random new-card order.")] = None,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "store_path": store,
        "settings_file": settings_file,
        "timezone": timezone,
        "seed": seed,
        "verbose": verbose,
    }
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@app.command("next")
def next_card(ctx: typer.Context):
    """Show the id of the next card to study."""
    try:
        card_id = _service(ctx).next_card(_now())
    except CadenceError as e:
        raise _fail(e) from e

    if card_id is None:
        typer.secho("Nothing left to study today.", fg="green")
        return
    typer.echo(card_id)


@app.command()
def rate(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to rate.")],
    rating: Annotated[str, typer.Argument(help="again|hard|good|easy or 0-3.")],
):
    """[bold green]Rate[/bold green] a card and show what comes next."""
    value = parse_rating(rating)
    try:
        result = _service(ctx).answer(card_id, value, _now())
    except CadenceError as e:
        raise _fail(e) from e

    card = result.card
    typer.echo(f"{card.id}: {card.state.value}, next in {format_interval(card)}")
    if card.is_leech:
        typer.secho(f"{card.id} is a leech ({card.lapses} lapses)", fg="yellow")
    if result.next_card_id:
        typer.echo(f"Next: {result.next_card_id}")
    else:
        typer.secho("Nothing left to study today.", fg="green")


@app.command()
def undo(ctx: typer.Context):
    """Undo the most recent rating."""
    try:
        restored = _service(ctx).undo(_now())
    except CadenceError as e:
        raise _fail(e) from e

    if restored is None:
        typer.secho("Nothing to undo.", fg="yellow")
        return
    typer.echo(f"Restored {restored.id} ({restored.state.value})")


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show today's progress and what is left."""
    try:
        overview = _service(ctx).stats(_now())
    except CadenceError as e:
        raise _fail(e) from e

    s, summary, daily = overview.stats, overview.summary, overview.daily
    if json_output:
        payload = {
            "new_available": s.available_new,
            "learning": s.due_learning,
            "reviews_due": s.due_reviews,
            "total_cards": s.total_cards,
            "new_studied": daily.new_cards_studied,
            "reviews_completed": daily.reviews_completed,
            "lapses": daily.lapses,
            "accuracy": round(daily.accuracy, 1),
            "estimated_seconds": daily.estimated_seconds,
            "complete": summary.is_complete,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Cards: {s.total_cards}")
    typer.echo(f"New available: {s.available_new}")
    typer.echo(f"Learning: {s.due_learning}")
    typer.echo(f"Reviews due: {s.due_reviews}")
    typer.echo(f"Studied today: {daily.new_cards_studied} new, {daily.reviews_completed} reviews")
    typer.echo(f"Accuracy: {daily.accuracy:.1f}%")
    if summary.is_complete:
        typer.secho("Session complete.", fg="green")


@app.command()
def preview(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to preview.")],
):
    """Show the interval each rating would give a card."""
    try:
        previews = _service(ctx).preview(card_id, _now())
    except CadenceError as e:
        raise _fail(e) from e

    for rating, item in previews.items():
        typer.echo(f"{rating.name.capitalize():<6} {item.label}")


# ---------------------------------------------------------------------------
# Card commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    card_ids: Annotated[list[str], typer.Argument(help="Ids of the cards to add.")],
    note: Annotated[
        str | None, typer.Option("--note", help="Note id shared by these cards.")
    ] = None,
):
    """Add new cards to the store."""
    try:
        created = _service(ctx).add_cards(card_ids, _now(), note_id=note)
    except CadenceError as e:
        raise _fail(e) from e

    skipped = len(set(card_ids)) - len(created)
    typer.secho(f"Added {len(created)} card(s).", fg="green")
    if skipped:
        typer.secho(f"Skipped {skipped} existing card(s).", fg="yellow")


@app.command()
def suspend(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to suspend.")],
):
    """Suspend a card so it is never selected."""
    try:
        _service(ctx).suspend(card_id)
    except CadenceError as e:
        raise _fail(e) from e
    typer.echo(f"Suspended {card_id}")


@app.command()
def unsuspend(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to unsuspend.")],
):
    """Return a suspended card to rotation."""
    try:
        _service(ctx).unsuspend(card_id)
    except CadenceError as e:
        raise _fail(e) from e
    typer.echo(f"Unsuspended {card_id}")


@app.command()
def reset(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to reset.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Skip the confirmation prompt.")
    ] = False,
):
    """Forget all progress on a card."""
    if not force:
        typer.confirm(f"Reset all progress for {card_id}?", abort=True)
    try:
        _service(ctx).reset(card_id, _now())
    except CadenceError as e:
        raise _fail(e) from e
    typer.echo(f"Reset {card_id}")


# ---------------------------------------------------------------------------
# Settings subgroup
# ---------------------------------------------------------------------------


@settings_app.command("check")
def settings_check(
    ctx: typer.Context,
    path: Annotated[
        Path | None, typer.Argument(help="Settings file. Defaults to 'settings_file' in config.")
    ] = None,
):
    """Validate a scheduler settings file and show the effective values."""
    target = path or _config(ctx).settings_file
    report = load_settings_report(target)

    for warning in report.warnings:
        typer.secho(f"WARNING: {warning}", fg="yellow")
    typer.echo(report.settings.model_dump_json(indent=2))

    if not report.ok:
        raise typer.Exit(1)
    typer.secho("Settings OK.", fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
