"""mneme CLI: card generation, due listing, dashboard and interactive practice."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from mneme.application.config import AppConfig, resolve_config
from mneme.application.practice_service import PracticeService
from mneme.application.scheduler import Scheduler
from mneme.application.session import SessionController
from mneme.application.utils.formatting import (
    format_due_date,
    format_interval,
    format_timestamp,
)
from mneme.domain.models import Flashcard, Rating, SessionEntry
from mneme.infrastructure.adapters.markdown_source import MarkdownItemSource
from mneme.infrastructure.adapters.yaml_store import YamlCardStore

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mneme: spaced-repetition practice for flashcards in your notes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mneme configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_LEVELS = {0: logging.ERROR, 1: logging.WARNING, 2: logging.INFO}
DEFAULT_VERBOSITY = 1

RATING_KEYS = {"1": Rating.AGAIN, "2": Rating.HARD, "3": Rating.GOOD, "4": Rating.EASY}


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
    """Global settings for mneme."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _set_log_level(DEFAULT_VERBOSITY + verbose)


def _set_log_level(verbosity: int) -> None:
    logging.getLogger("mneme").setLevel(_LEVELS.get(verbosity, logging.DEBUG))


def _resolve(ctx: typer.Context, path: Path | None) -> AppConfig:
    count = ctx.obj.get("verbose", 0) if ctx.obj else 0
    # Without -v flags the configured verbosity applies.
    verbose = DEFAULT_VERBOSITY + count if count else None
    config = resolve_config({"vault_root": path, "verbose": verbose})
    _set_log_level(config.verbose)
    return config


def _service(config: AppConfig) -> PracticeService:
    assert config.vault_root is not None and config.store_path is not None
    return PracticeService(
        source=MarkdownItemSource(config.vault_root),
        store=YamlCardStore(config.store_path),
        scheduler=Scheduler(config.scheduler),
    )


def _payload(entry_payload: Any) -> tuple[str, str, str | None]:
    if isinstance(entry_payload, Flashcard):
        return entry_payload.question, entry_payload.answer, entry_payload.source
    return str(entry_payload), "", None


PathArg = Annotated[
    Path | None,
    typer.Argument(help="Notes directory. Defaults to 'vault_root' in config, or CWD."),
]
FileOpt = Annotated[
    list[str] | None,
    typer.Option("--file", "-f", help="Limit to these files or folders (relative to the root)."),
]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def generate(ctx: typer.Context, path: PathArg = None):
    """[bold green]Track[/bold green] every `question :: answer` line that has no card yet."""
    config = _resolve(ctx, path)
    report = asyncio.run(_service(config).generate())
    typer.echo(
        f"Found {report.scanned} flashcards: {report.created} new, "
        f"{report.existing} already tracked."
    )
    if report.failed:
        typer.secho(f"Failed to save {len(report.failed)} cards.", fg="red")
        raise typer.Exit(1)


@app.command()
def due(
    ctx: typer.Context,
    path: PathArg = None,
    files: FileOpt = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List cards due for review, oldest first."""
    config = _resolve(ctx, path)
    entries = asyncio.run(_service(config).collect_entries(files))

    if json_output:
        rows = []
        for entry in entries:
            question, answer, source = _payload(entry.payload)
            rows.append(
                {
                    "key": entry.key,
                    "question": question,
                    "source": source,
                    "state": entry.card.state.value,
                    "due": entry.card.due.isoformat(),
                }
            )
        typer.echo(json.dumps(rows, indent=2))
        return

    if not entries:
        typer.secho("No flashcards due.", fg="green")
        return
    typer.echo(f"Due: {len(entries)}")
    for entry in entries:
        question, _, _ = _payload(entry.payload)
        typer.echo(f"  [{entry.card.state.value}] {question}")


@app.command()
def dashboard(
    ctx: typer.Context,
    path: PathArg = None,
    files: FileOpt = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Overview of every tracked card: state, due date, reps, lapses, recall odds."""
    config = _resolve(ctx, path)
    rows = asyncio.run(_service(config).overview(files))

    if json_output:
        out = []
        for row in rows:
            question, _, source = _payload(row.payload)
            out.append(
                {
                    "key": row.key,
                    "question": question,
                    "source": source,
                    "state": row.state.value,
                    "due": row.due.isoformat(),
                    "last_review": row.last_review.isoformat() if row.last_review else None,
                    "reps": row.reps,
                    "lapses": row.lapses,
                    "stability": row.stability,
                    "difficulty": row.difficulty,
                    "retrievability": row.retrievability,
                    "is_due": row.is_due,
                }
            )
        typer.echo(json.dumps(out, indent=2))
        return

    if not rows:
        typer.secho("No tracked flashcards. Run 'mneme generate' first.", fg="yellow")
        return

    due_now = sum(1 for row in rows if row.is_due)
    typer.echo(f"Cards: {len(rows)}  Due now: {due_now}")
    for row in rows:
        question, _, _ = _payload(row.payload)
        last = format_timestamp(row.last_review) if row.last_review else "never"
        marker = "*" if row.is_due else " "
        typer.echo(
            f"{marker} {format_due_date(row.due):<13} {row.state.value:<10} "
            f"reps={row.reps:<3} lapses={row.lapses:<2} R={row.retrievability:.0%} "
            f"last={last}  {question}"
        )


async def _run_practice(controller: SessionController) -> None:
    while not controller.is_complete():
        entry = controller.current()
        assert isinstance(entry, SessionEntry)
        index, total = controller.position()
        question, answer, source = _payload(entry.payload)

        typer.echo("")
        typer.secho(f"[{index + 1}/{total}] {question}", bold=True)
        if source:
            typer.echo(f"  ({source})")
        key = typer.prompt("Enter to reveal, q to quit", default="", show_default=False)
        if key.strip().lower() == "q":
            controller.cancel()
            return

        controller.reveal()
        typer.echo(f"  -> {answer}")
        preview = controller.preview()
        typer.echo(
            "  "
            + "  ".join(
                f"{num}) {rating.name.title()} {format_interval(preview[rating])}"
                for num, rating in RATING_KEYS.items()
            )
        )

        while True:
            choice = typer.prompt("Rating 1-4, q to quit", default="", show_default=False)
            choice = choice.strip().lower()
            if choice == "q":
                controller.cancel()
                return
            if choice in RATING_KEYS:
                break
            typer.secho("Please enter 1, 2, 3 or 4.", fg="yellow")

        result = await controller.rate(RATING_KEYS[choice])
        if not result.persisted:
            typer.secho(f"  Could not save progress: {result.save.error}", fg="red")


@app.command()
def practice(ctx: typer.Context, path: PathArg = None, files: FileOpt = None):
    """[bold green]Practice[/bold green] the flashcards that are due."""
    config = _resolve(ctx, path)
    service = _service(config)

    async def run() -> SessionController:
        controller = await service.start(files)
        if controller.is_complete():
            return controller
        await _run_practice(controller)
        return controller

    controller = asyncio.run(run())

    if controller.total == 0 and controller.is_complete():
        typer.secho("All caught up! No flashcards due.", fg="green")
        return
    if not controller.is_complete():
        typer.secho("Session cancelled.", fg="yellow")
    else:
        stats = controller.stats()
        typer.secho(f"\nSession complete: {controller.total_reviewed} reviewed", fg="green")
        typer.echo(
            f"Again: {stats.again}  Hard: {stats.hard}  Good: {stats.good}  Easy: {stats.easy}"
        )
    if controller.failed_saves:
        typer.secho(f"{len(controller.failed_saves)} ratings could not be saved:", fg="red")
        for outcome in controller.failed_saves:
            typer.echo(f"  {outcome.key}: {outcome.error}")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = config.model_dump(mode="json")
    typer.echo(json.dumps(d, indent=2))


def main() -> None:
    app()
