"""Repaso CLI: card management, reviews, study sessions and stats."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from repaso.application.config import AppConfig, resolve_config
from repaso.domain.errors import (
    AccessDenied,
    CardNotFound,
    CardValidationError,
    ConcurrentUpdateError,
    InvalidGrade,
    InvalidSessionLimit,
    RepasoError,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="repaso: spaced-repetition scheduling for bilingual flashcards.",
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

card_app = typer.Typer(help="Create, list, edit and delete cards.", no_args_is_help=True)
app.add_typer(card_app, name="card")

config_app = typer.Typer(help="Inspect repaso configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")

# Exit codes: 2 for bad input, 1 for everything else.
USAGE_ERRORS = (InvalidGrade, InvalidSessionLimit, CardValidationError)


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
    """Global settings for repaso."""
    # Each -v adds to the configured verbosity.
    level = resolve_config().verbose + verbose
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = level
    logging.getLogger("repaso").setLevel(log_level(level))


def log_level(verbose: int) -> int:
    """0 = errors only, 1 = warnings (default), 2 = info, 3+ = debug."""
    if verbose <= 0:
        return logging.ERROR
    if verbose == 1:
        return logging.WARNING
    if verbose == 2:
        return logging.INFO
    return logging.DEBUG


def _services(config: AppConfig):
    from repaso.application.factory import (
        get_card_repository,
        get_card_service,
        get_stats_service,
    )

    repo = get_card_repository(config)
    return get_card_service(config, repo), get_stats_service(repo)


def _run(coro):
    """Run a coroutine, turning domain errors into a message and exit code."""
    try:
        return asyncio.run(coro)
    except RepasoError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(2 if isinstance(e, USAGE_ERRORS) else 1) from e


def _echo_json(payload) -> None:
    typer.echo(payload.model_dump_json(indent=2))


def _card_line(card) -> str:
    due = card.next_review_at.strftime("%Y-%m-%d %H:%M") if card.next_review_at else "new"
    return (
        f"{card.id}  {card.front} -> {card.back}  "
        f"[ease {card.ease_factor:.2f}, every {card.interval_days}d, next {due}]"
    )


# ---------------------------------------------------------------------------
# Card subgroup
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    front: Annotated[str, typer.Argument(help="Source-language text.")],
    back: Annotated[str, typer.Argument(help="Target-language text.")],
):
    """[bold green]Create[/bold green] a new card."""
    card_service, _ = _services(resolve_config())
    card = _run(card_service.create_card(owner, front, back))
    typer.secho(f"Created {card.id}", fg="green")


@card_app.command("migrate")
def card_migrate(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    front: Annotated[str, typer.Argument(help="Source-language text.")],
    back: Annotated[str, typer.Argument(help="Target-language text.")],
    level: Annotated[int, typer.Option(help="Legacy difficulty level (0-5).")] = 0,
    last_reviewed: Annotated[
        datetime | None,
        typer.Option(help="Last legacy review (UTC). Omit for a never-reviewed card."),
    ] = None,
    reviews: Annotated[int, typer.Option(help="Legacy review count.")] = 0,
):
    """Import a card from the legacy fixed-interval scheduler."""
    card_service, _ = _services(resolve_config())
    card = _run(
        card_service.import_legacy_card(
            owner,
            front,
            back,
            level=level,
            last_reviewed_at=last_reviewed,
            review_count=reviews,
        )
    )
    typer.secho(f"Imported {card.id}", fg="green")
    typer.echo(_card_line(card))


@card_app.command("list")
def card_list(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """List every card owned by OWNER."""
    from repaso.interface.schemas import CardOut

    card_service, _ = _services(resolve_config())
    cards = _run(card_service.list_cards(owner))

    if as_json:
        payload = [CardOut.model_validate(c).model_dump(mode="json") for c in cards]
        typer.echo(json.dumps(payload, indent=2))
        return
    if not cards:
        typer.secho("No cards found.", fg="yellow")
        return
    for card in cards:
        typer.echo(_card_line(card))


@card_app.command("edit")
def card_edit(
    card_id: Annotated[str, typer.Argument(help="Card id.")],
    owner: Annotated[str, typer.Option("--owner", help="Owning user id.")],
    front: Annotated[str | None, typer.Option(help="New front text.")] = None,
    back: Annotated[str | None, typer.Option(help="New back text.")] = None,
):
    """Edit a card's text. Scheduling is left untouched."""
    if front is None and back is None:
        typer.secho("Nothing to change: pass --front and/or --back.", fg="yellow")
        raise typer.Exit(2)

    card_service, _ = _services(resolve_config())
    card = _run(card_service.update_content(card_id, owner, front=front, back=back))
    typer.echo(_card_line(card))


@card_app.command("delete")
def card_delete(
    card_id: Annotated[str, typer.Argument(help="Card id.")],
    owner: Annotated[str, typer.Option("--owner", help="Owning user id.")],
):
    """Delete a card."""
    card_service, _ = _services(resolve_config())
    _run(card_service.delete_card(card_id, owner))
    typer.secho(f"Deleted {card_id}", fg="green")


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    card_id: Annotated[str, typer.Argument(help="Card id.")],
    grade: Annotated[int, typer.Argument(help="Recall quality, 0 (blackout) to 5 (perfect).")],
):
    """[bold green]Review[/bold green] a card and reschedule it."""
    card_service, _ = _services(resolve_config())
    card = _run(card_service.review_card(card_id, owner, grade))
    typer.echo(
        f"Next review in {card.interval_days} day(s) "
        f"({card.next_review_at:%Y-%m-%d}), ease {card.ease_factor:.2f}"
    )


@app.command()
def session(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    limit: Annotated[int | None, typer.Option(help="Session size (max 50).")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Build a prioritized study session.

    New cards come first, then reviewed cards ordered by difficulty and
    time since their last review. Cards not yet due are left out.
    """
    from repaso.interface.schemas import StudySessionOut

    config = resolve_config()
    _, stats_service = _services(config)
    requested = config.default_session_limit if limit is None else limit
    if requested > config.max_session_limit:
        requested = config.max_session_limit
    result = _run(stats_service.plan_session(owner, requested))

    if as_json:
        _echo_json(StudySessionOut.from_domain(result))
        return
    if not result.entries:
        typer.secho("Nothing to study right now.", fg="yellow")
        return

    meta = result.metadata
    typer.echo(
        f"Session: {len(result)} cards "
        f"({meta.new_count} new, {meta.review_count} review, {meta.overdue_count} overdue)"
    )
    for i, entry in enumerate(result.entries, 1):
        typer.echo(
            f"{i:>3}. [{entry.classification.value:<7}] {entry.priority:6.1f}  "
            f"{entry.card.id}  {entry.card.front}"
        )


@app.command()
def due(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    limit: Annotated[int | None, typer.Option(help="Maximum cards listed (max 100).")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Show new, due and overdue cards."""
    from repaso.interface.schemas import DueOut

    _, stats_service = _services(resolve_config())
    result = _run(stats_service.get_due(owner, limit))

    if as_json:
        _echo_json(DueOut.from_domain(result))
        return

    typer.echo(f"New: {len(result.new_cards)}")
    typer.echo(f"Due: {len(result.due_cards)}")
    if result.overdue_cards:
        typer.secho(f"Overdue: {len(result.overdue_cards)}", fg="red")
    else:
        typer.secho("Overdue: 0", fg="green")
    typer.echo(f"Total: {result.total_due}")


@app.command()
def stats(
    owner: Annotated[str, typer.Argument(help="Owning user id.")],
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Show collection statistics and recommendations."""
    from repaso.interface.schemas import UserStatsOut

    _, stats_service = _services(resolve_config())
    result = _run(stats_service.get_user_stats(owner))

    if as_json:
        _echo_json(UserStatsOut.from_domain(result))
        return

    typer.echo(f"Cards: {result.total_cards} ({result.reviewed_cards} reviewed)")
    typer.echo(f"Reviews: {result.total_reviews}")
    typer.echo(f"Average ease: {result.average_ease:.2f}")
    typer.echo(f"Average difficulty: {result.average_difficulty:.2f}")
    typer.echo(
        "Difficulty: "
        + " ".join(f"{k}:{v}" for k, v in sorted(result.difficulty_distribution.items()))
    )
    typer.echo(
        f"Due: {result.due_cards}  Overdue: {result.overdue_cards}  New: {result.new_cards}"
    )
    for rec in result.recommendations:
        color = {"high": "red", "medium": "yellow"}.get(rec.priority.value, "cyan")
        typer.secho(f"[{rec.priority.value}] {rec.message}", fg=color)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option(help="Port.")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes.")] = False,
):
    """Start the HTTP server."""
    import uvicorn

    config = resolve_config({"host": host, "port": port})
    typer.secho(f"Starting repaso server on {config.host}:{config.port}", fg="green")
    uvicorn.run("repaso.server:app", host=config.host, port=config.port, reload=reload)


if __name__ == "__main__":
    app()
