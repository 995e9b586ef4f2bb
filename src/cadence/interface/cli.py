"""cadence CLI: root app, subgroup registration, and JSON reporting commands."""

import asyncio
import dataclasses
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import BaseModel, Field, ValidationError, field_validator

from cadence.application.config import resolve_config
from cadence.application.scheduling.deck_config import CONFIG_PRESETS, DeckConfigManager
from cadence.application.scheduling.engine import (
    estimate_time_to_mastery,
    predict_next_due,
    retention_probability,
)
from cadence.application.scheduling.service import ReviewService
from cadence.application.session.baseline import compute_baseline
from cadence.application.session.fatigue import (
    fatigue_indicators,
    ingest_all,
    new_session,
    session_duration_minutes,
    session_summary,
)
from cadence.application.session.regulator import (
    adaptive_regulator_config,
    break_suggestion,
    session_optimization,
    workload_balance,
)
from cadence.domain.errors import (
    CadenceError,
    InvalidConfigError,
    InvalidRatingError,
    StoreError,
)
from cadence.domain.scheduling.models import DeckConfig, DeckPerformance, Rating, SchedulingState
from cadence.domain.scheduling.ports import DeckConfigStore
from cadence.domain.session.models import ReviewRecord
from cadence.infrastructure.adapters.memory import InMemoryCardStore, InMemoryDeckConfigStore
from cadence.infrastructure.adapters.yaml_decks import (
    YamlDeckConfigStore,
    dump_deck_config,
    load_deck_file,
)
from cadence.infrastructure.serialization import (
    as_utc,
    config_to_dict,
    state_from_dict,
    state_to_dict,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition scheduling and study-session regulation.",
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
# Register subgroups
# ---------------------------------------------------------------------------

deck_app = typer.Typer(help="Validate, inspect and tune deck configs.", no_args_is_help=True)
app.add_typer(deck_app, name="deck")

schedule_app = typer.Typer(help="Preview and apply ratings to a card.", no_args_is_help=True)
app.add_typer(schedule_app, name="schedule")

session_app = typer.Typer(help="Study-session fatigue analysis.", no_args_is_help=True)
app.add_typer(session_app, name="session")

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")


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
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    if verbose >= 2:
        logging.getLogger("cadence").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=_json_default))


def _parse_now(now: str | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    try:
        return as_utc(datetime.fromisoformat(now))
    except ValueError:
        typer.secho(f"Invalid --now timestamp: {now}", fg="red", err=True)
        raise typer.Exit(2) from None


def _load_deck(path: Path | None, manager: DeckConfigManager) -> DeckConfig:
    """Read, validate and complete a YAML deck config. Exits 1 when invalid."""
    if path is None:
        return manager.merge_with_defaults()

    try:
        values = load_deck_file(path)
    except (OSError, ValueError) as e:
        typer.secho(f"Cannot read deck config: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    result = manager.validate(values)
    if not result.is_valid:
        for error in result.errors:
            typer.secho(f"  - {error}", fg="red", err=True)
        raise typer.Exit(1)

    values.setdefault("deck_id", path.stem)
    return manager.merge_with_defaults(values)


def _load_state(path: Path | None, now: datetime) -> SchedulingState:
    if path is None:
        return SchedulingState.new_card(now)

    try:
        return state_from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, KeyError, CadenceError) as e:
        typer.secho(f"Cannot read card state from {path}: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


# ---------------------------------------------------------------------------
# Deck subgroup
# ---------------------------------------------------------------------------


@deck_app.command("validate")
def deck_validate(
    file: Annotated[Path, typer.Argument(help="YAML deck config file.")],
):
    """Check a deck config and list every violation."""
    try:
        values = load_deck_file(file)
    except (OSError, ValueError) as e:
        typer.secho(f"Cannot read deck config: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    result = DeckConfigManager().validate(values)
    if result.is_valid:
        typer.secho(f"{file.name}: valid", fg="green")
        return

    typer.secho(f"{file.name}: {len(result.errors)} problem(s)", fg="red")
    for error in result.errors:
        typer.echo(f"  - {error}")
    raise typer.Exit(1)


@deck_app.command("show")
def deck_show(
    file: Annotated[Path | None, typer.Argument(help="YAML deck config file.")] = None,
    preset: Annotated[
        str | None, typer.Option(help="Start from a named preset instead of a file.")
    ] = None,
    as_yaml: Annotated[
        bool, typer.Option("--yaml", help="Print a deck file instead of JSON.")
    ] = False,
):
    """Print the complete config (defaults filled in) as JSON or as a deck file."""
    manager = DeckConfigManager()
    if preset is not None:
        try:
            config = manager.from_preset(preset)
        except KeyError:
            names = ", ".join(p.name for p in CONFIG_PRESETS)
            typer.secho(f"Unknown preset '{preset}'. Available: {names}", fg="red", err=True)
            raise typer.Exit(2) from None
    else:
        config = _load_deck(file, manager)

    data = config_to_dict(config)
    if as_yaml:
        for key in ("id", "created_at", "updated_at"):
            data.pop(key)
        typer.echo(dump_deck_config(data), nl=False)
        return
    _echo_json(data)


@deck_app.command("presets")
def deck_presets():
    """List the built-in config presets."""
    for preset in CONFIG_PRESETS:
        typer.echo(f"{preset.name}: {preset.description}")


@deck_app.command("optimize")
def deck_optimize(
    file: Annotated[Path, typer.Argument(help="YAML deck config file.")],
    retention: Annotated[
        float, typer.Option(min=0.0, max=1.0, help="Observed retention (0-1).")
    ],
    lapse_rate: Annotated[
        float, typer.Option(min=0.0, max=1.0, help="Observed lapses per review (0-1).")
    ],
    response_time: Annotated[
        float, typer.Option(min=0.0, help="Average response time in ms.")
    ] = 0.0,
):
    """Suggest a tuned config from observed deck performance."""
    manager = DeckConfigManager()
    config = _load_deck(file, manager)
    optimized = manager.optimize(
        config,
        DeckPerformance(
            average_retention=retention,
            lapse_rate=lapse_rate,
            average_response_time_ms=response_time,
        ),
    )

    before = config_to_dict(config)
    after = config_to_dict(optimized)
    changes = {
        key: {"from": before[key], "to": after[key]}
        for key in after
        if before[key] != after[key]
    }
    _echo_json({"config": after, "changes": changes})


# ---------------------------------------------------------------------------
# Schedule subgroup
# ---------------------------------------------------------------------------


@schedule_app.command("preview")
def schedule_preview(
    state: Annotated[
        Path | None, typer.Option(help="JSON card state. Omit for a new card.")
    ] = None,
    deck: Annotated[Path | None, typer.Option(help="YAML deck config.")] = None,
    now: Annotated[str | None, typer.Option(help="ISO timestamp of the review.")] = None,
):
    """Show what each rating would do to a card."""
    manager = DeckConfigManager()
    moment = _parse_now(now)
    config = _load_deck(deck, manager)
    card = _load_state(state, moment)

    predictions = predict_next_due(card, config, now=moment)
    mastery = estimate_time_to_mastery(card, config)
    _echo_json(
        {
            "state": card.state_name,
            "retention_probability": retention_probability(card, now=moment),
            "mastery": dataclasses.asdict(mastery),
            "predictions": {
                rating.name.lower(): {
                    "next_due": p.next_due,
                    "interval_days": p.interval_days,
                    "state": p.state_name,
                }
                for rating, p in predictions.items()
            },
        }
    )


@schedule_app.command("apply")
def schedule_apply(
    rating: Annotated[str, typer.Option(help="again, hard, good, easy (or 0-3).")],
    state: Annotated[
        Path | None, typer.Option(help="JSON card state. Omit for a new card.")
    ] = None,
    deck: Annotated[Path | None, typer.Option(help="YAML deck config.")] = None,
    deck_id: Annotated[
        str | None, typer.Option(help="Deck to load from the configured deck_dir.")
    ] = None,
    now: Annotated[str | None, typer.Option(help="ISO timestamp of the review.")] = None,
    write: Annotated[
        bool, typer.Option("--write", help="Overwrite the state file with the result.")
    ] = False,
):
    """Rate a card and print its next scheduling state."""
    try:
        parsed = Rating.parse(rating)
    except InvalidRatingError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(2) from e

    manager = DeckConfigManager()
    moment = _parse_now(now)
    card = _load_state(state, moment)
    card_id = state.stem if state else "card"

    decks: DeckConfigStore
    deck_dir = resolve_config().deck_dir
    if deck is None and deck_id and deck_dir:
        decks = YamlDeckConfigStore(deck_dir, manager)
    else:
        config = _load_deck(deck, manager)
        deck_id = config.deck_id
        decks = InMemoryDeckConfigStore({deck_id: config})

    async def run():
        cards = InMemoryCardStore({card_id: card})
        service = ReviewService(cards, decks, config_manager=manager)
        return await service.submit_review(card_id, deck_id, parsed, now=moment)

    try:
        outcome = asyncio.run(run())
    except (InvalidConfigError, StoreError, ValueError) as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e

    data = state_to_dict(outcome.state)
    if write and state is not None:
        state.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        logger.info(f"Updated {state}")
    _echo_json(data)


# ---------------------------------------------------------------------------
# Session subgroup
# ---------------------------------------------------------------------------


class ReviewEntry(BaseModel):
    card_id: str
    rating: int | str
    time_to_show_answer_ms: float = Field(ge=0)
    time_to_rate_ms: float = Field(ge=0)
    timestamp: datetime
    difficulty: float = 3.0

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ReviewLog(BaseModel):
    user_id: str = "local"
    started_at: datetime | None = None
    cards_studied_today: int | None = None
    records: list[ReviewEntry] = []

    @field_validator("started_at")
    @classmethod
    def started_at_as_utc(cls, value: datetime | None) -> datetime | None:
        return None if value is None else as_utc(value)


@session_app.command("analyze")
def session_analyze(
    log: Annotated[Path, typer.Argument(help="JSON review log of one session.")],
    now: Annotated[
        str | None,
        typer.Option(help="ISO timestamp to evaluate at. Defaults to the last review."),
    ] = None,
):
    """Replay a session through the fatigue engine and regulator."""
    try:
        parsed = ReviewLog.model_validate_json(log.read_text(encoding="utf-8"))
        records = [
            ReviewRecord(
                card_id=e.card_id,
                rating=Rating.parse(e.rating),
                time_to_show_answer_ms=e.time_to_show_answer_ms,
                time_to_rate_ms=e.time_to_rate_ms,
                timestamp=e.timestamp,
                difficulty=e.difficulty,
            )
            for e in parsed.records
        ]
    except (OSError, ValidationError, InvalidRatingError) as e:
        typer.secho(f"Invalid review log {log}: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    if not records and parsed.started_at is None:
        typer.secho("Review log has no records and no started_at.", fg="red", err=True)
        raise typer.Exit(1)

    started_at = parsed.started_at or records[0].timestamp
    moment = _parse_now(now) if now else (records[-1].timestamp if records else started_at)

    app_config = resolve_config()
    baseline = compute_baseline(
        parsed.user_id, records, app_config.baseline_params(), now=moment
    )
    config = adaptive_regulator_config(baseline=baseline, base=app_config.regulator_config())

    history = ingest_all(new_session(started_at=started_at), records, config)
    fatigue = fatigue_indicators(history, config)
    duration = session_duration_minutes(history, moment)
    cards_today = (
        parsed.cards_studied_today if parsed.cards_studied_today is not None else len(records)
    )

    _echo_json(
        {
            "baseline": dataclasses.asdict(baseline) if baseline else None,
            "fatigue": dataclasses.asdict(fatigue),
            "break_suggestion": dataclasses.asdict(
                break_suggestion(fatigue, duration, history.windows, config)
            ),
            "optimization": dataclasses.asdict(
                session_optimization(fatigue, duration, history.windows, config, now=moment)
            ),
            "workload": dataclasses.asdict(
                workload_balance(
                    cards_today,
                    fatigue,
                    config,
                    session_cards=len(records),
                    session_duration_min=duration,
                )
            ),
            "summary": dataclasses.asdict(session_summary(history, config, now=moment)),
        }
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()
