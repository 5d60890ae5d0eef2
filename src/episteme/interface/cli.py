"""episteme CLI: simulator, card queries, configuration and server commands."""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError as PydanticValidationError

from episteme.application.config import AppConfig, config_files, resolve_config
from episteme.domain.errors import EpistemeError
from episteme.domain.simulation.models import MetricType

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="episteme: FSRS scheduling rules and what-if simulator.",
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

config_app = typer.Typer(help="Manage episteme configuration.")
app.add_typer(config_app, name="config")

cards_app = typer.Typer(
    help="Due, maturity, queue and preview queries over card records.", no_args_is_help=True
)
app.add_typer(cards_app, name="cards")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    try:
        return resolve_config(overrides)
    except PydanticValidationError as e:
        typer.secho(f"Invalid configuration:\n{e}", fg="red", err=True)
        raise typer.Exit(2) from e


def _parse_floats(raw: str) -> list[float]:
    try:
        return [float(part) for part in raw.replace(";", ",").split(",") if part.strip()]
    except ValueError as e:
        raise typer.BadParameter(f"Expected comma-separated numbers: {e}") from e


def _read_request(path: Path, model: type, wrap_key: str):
    """Parse a JSON request file; a bare list or card object is wrapped under *wrap_key*."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict) or wrap_key not in payload:
            payload = {wrap_key: payload}
        return model.model_validate(payload)
    except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
        typer.secho(f"Could not read {wrap_key} from {path}: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _evaluation_time(*candidates: datetime | None) -> datetime:
    at = next((c for c in candidates if c is not None), None) or datetime.now()
    return at if at.tzinfo is not None else at.astimezone()


def _echo_table(header: list[str], rows: list[list[str]]) -> None:
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    typer.echo("  ".join(h.ljust(w) for h, w in zip(header, widths)))
    for row in rows:
        typer.echo("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))


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
    ] = 1,
):
    """Global settings for episteme."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    if verbose >= 2:
        logging.getLogger("episteme").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def simulate(
    ctx: typer.Context,
    sequences: Annotated[
        list[str] | None,
        typer.Argument(help="Rating sequences over 1-4, e.g. 3332. Defaults to the standard set."),
    ] = None,
    metric: Annotated[
        MetricType, typer.Option(help="Series to print per sequence.")
    ] = MetricType.INTERVAL,
    retention: Annotated[
        float | None, typer.Option("--retention", help="Desired retention (0.7-0.99).")
    ] = None,
    weights: Annotated[
        str | None, typer.Option(help="21 comma-separated FSRS weights.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Simulate[/bold green] what-if rating sequences with FSRS."""
    from episteme.interface.schemas import SimulateRequest, handle_simulate

    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))

    request_args: dict[str, Any] = {"metric": metric, "desired_retention": retention}
    if sequences:
        request_args["sequences"] = sequences
    if weights is not None:
        request_args["weights"] = _parse_floats(weights)

    try:
        result = handle_simulate(config, SimulateRequest(**request_args))
    except EpistemeError as e:
        typer.secho(f"Simulation failed: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    if result.discarded:
        typer.secho(f"Discarded malformed sequences: {result.discarded}", fg="yellow", err=True)

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    if not result.simulations:
        typer.secho("No sequences to simulate.", fg="yellow")
        return

    typer.echo(f"Desired retention: {result.desired_retention}")
    typer.echo("Intervals (days):")
    _echo_table(result.table.header, result.table.rows)
    typer.echo(f"\n{metric.value}:")
    for sim in result.simulations:
        typer.echo(f"  {sim.sequence}: " + ", ".join(f"{v:.2f}" for v in sim.series))


@app.command()
def params(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List the tunable parameters with their ranges and configured values."""
    from episteme.application.factory import get_seed_weights
    from episteme.domain.scheduling.weights import ALL_SPECS, RETENTION_INDEX

    config = _resolve_with_overrides()
    try:
        seed = get_seed_weights(config)
    except EpistemeError as e:
        typer.secho(f"Configured weights are invalid: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    entries = []
    for spec in ALL_SPECS:
        current = seed.desired_retention if spec.index == RETENTION_INDEX else seed[spec.index]
        entries.append(
            {
                "index": spec.index,
                "name": spec.name,
                "min": spec.min,
                "max": spec.max,
                "default": spec.default,
                "current": current,
                "description": spec.description,
            }
        )

    if json_output:
        typer.echo(json.dumps(entries, indent=2))
        return

    _echo_table(
        ["Name", "Current", "Default", "Range"],
        [
            [e["name"], f"{e['current']:g}", f"{e['default']:g}", f"[{e['min']:g}, {e['max']:g}]"]
            for e in entries
        ],
    )


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8777,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP server the plugin talks to."""
    import uvicorn

    uvicorn.run("episteme.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Cards subgroup
# ---------------------------------------------------------------------------


@cards_app.command("classify")
def cards_classify(
    path: Annotated[Path, typer.Argument(help="JSON file: a list of cards or {'cards': [...]}.")],
    now: Annotated[
        datetime | None, typer.Option(help="Evaluate at this time instead of the current time.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Report due-ness, availability and maturity for stored card records."""
    from episteme.application.factory import get_classifier
    from episteme.interface.schemas import ClassifyRequest, classify_cards

    config = _resolve_with_overrides()

    request = _read_request(path, ClassifyRequest, "cards")
    at = _evaluation_time(now, request.now)

    try:
        result = classify_cards(
            get_classifier(config), [c.to_card() for c in request.cards], at
        )
    except EpistemeError as e:
        logger.warning(f"Card data integrity error: {e}")
        typer.secho(f"Card data integrity error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    typer.echo(f"Review day: {result.today}   Due: {result.due_count}")
    _echo_table(
        ["Card", "State", "Due", "Available", "Maturity"],
        [
            [
                str(c.card_id),
                c.state,
                "yes" if c.due else "no",
                "yes" if c.available else "no",
                c.maturity or "-",
            ]
            for c in result.cards
        ],
    )
    b = result.breakdown
    typer.echo(
        f"\nNew: {b.new}  Learning: {b.learning}  Young: {b.young}  Mature: {b.mature}"
        f"  Suspended: {b.suspended}  Buried: {b.buried}"
    )


@cards_app.command("queue")
def cards_queue(
    path: Annotated[Path, typer.Argument(help="JSON file: a list of cards or a queue request.")],
    now: Annotated[
        datetime | None, typer.Option(help="Build the queue at this time instead of now.")
    ] = None,
    new_studied: Annotated[
        int, typer.Option("--new-studied", min=0, help="New cards already studied today.")
    ] = 0,
    reviews_done: Annotated[
        int, typer.Option("--reviews-done", min=0, help="Reviews already done today.")
    ] = 0,
    ignore_limits: Annotated[
        bool, typer.Option("--ignore-limits", help="Ignore the daily new and review limits.")
    ] = False,
    seed: Annotated[int | None, typer.Option(help="Seed for the random orders.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Print today's study order within the daily limits."""
    from episteme.interface.schemas import QueueRequest, handle_queue

    config = _resolve_with_overrides()
    request = _read_request(path, QueueRequest, "cards")
    overrides: dict[str, Any] = {"ignore_daily_limits": ignore_limits or request.ignore_daily_limits}
    if new_studied:
        overrides["new_studied_today"] = new_studied
    if reviews_done:
        overrides["reviews_done_today"] = reviews_done
    if seed is not None:
        overrides["seed"] = seed
    request = request.model_copy(update=overrides)

    try:
        result = handle_queue(config, request, _evaluation_time(now, request.now))
    except EpistemeError as e:
        logger.warning(f"Card data integrity error: {e}")
        typer.secho(f"Card data integrity error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    typer.echo(
        f"Review day: {result.today}   Learning: {result.learning_count}"
        f"  Review: {result.review_count}  New: {result.new_count}"
        f"  Later today: {result.pending_count}"
    )
    if not result.cards:
        typer.secho("Nothing to study.", fg="yellow")
        return
    _echo_table(
        ["#", "Card", "State", "Queue"],
        [[str(i), str(c.card_id), c.state, c.section] for i, c in enumerate(result.cards, 1)],
    )


@cards_app.command("preview")
def cards_preview(
    path: Annotated[Path, typer.Argument(help="JSON file holding one card record.")],
    now: Annotated[
        datetime | None, typer.Option(help="Preview at this time instead of the current time.")
    ] = None,
    retention: Annotated[
        float | None, typer.Option("--retention", help="Desired retention (0.7-0.99).")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the next due date and interval for each answer button."""
    from episteme.interface.schemas import PreviewRequest, handle_preview

    config = _resolve_with_overrides()
    request = _read_request(path, PreviewRequest, "card")
    if retention is not None:
        request = request.model_copy(update={"desired_retention": retention})

    try:
        result = handle_preview(config, request, _evaluation_time(now, request.now))
    except EpistemeError as e:
        typer.secho(f"Preview failed: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    _echo_table(
        ["Rating", "Interval", "Due", "State"],
        [[o.name, o.label, o.due.isoformat(timespec="minutes"), o.state] for o in result.options],
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@config_app.command("open")
def config_open():
    """Open the config file in your default editor."""
    import subprocess

    cfg_path = config_files()[0]
    if not cfg_path.exists():
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        cfg_path.touch()

    if sys.platform == "darwin":
        subprocess.run(["open", str(cfg_path)])
    elif sys.platform == "win32":
        os.startfile(str(cfg_path))
    else:
        subprocess.run(["xdg-open", str(cfg_path)])
