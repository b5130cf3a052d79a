# ABOUTME: Provides the Typer CLI for scoring recorded game sessions.
# ABOUTME: Prints mini reports, domain profiles and behavior alerts, and exports batch scoring tables.

import json
import logging
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.common.config import ScoringConfig, default_config, load_scoring_config
from src.common.errors import ConfigError, InsufficientDataError, ScoringError

from .behavior import generate_behavior_report
from .domains import build_domain_profile
from .report import compute_mini_report, format_mini_report, mini_reports_frame, score_sessions

console = Console()
app = typer.Typer(help="Score children's mini-game sessions into reports and domain profiles.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(config: Optional[Path]) -> ScoringConfig:
    if config is None:
        return default_config()
    try:
        return load_scoring_config(config)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _read_json(path: Path, param_hint: str) -> Any:
    if not path.exists():
        console.print(f"[red]Missing input file at {path}[/red]")
        raise typer.Exit(code=1)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}", param_hint=param_hint) from exc


@app.command()
def score(
    events: Path = typer.Option(..., "--events", help="JSON file with the session's raw events."),
    game: str = typer.Option(..., "--game", help="Game type, e.g. memory or attention."),
    age: int = typer.Option(..., "--age", min=0, help="Child's age in years."),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional scoring config YAML."),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """
    Score one recorded session and print its mini report.
    """
    cfg = _load_config(config)
    payload = _read_json(events, "--events")
    raw_events = payload.get("events", []) if isinstance(payload, dict) else payload

    try:
        report = compute_mini_report(raw_events, game, age, cfg)
    except InsufficientDataError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1)
    except ScoringError as exc:
        raise typer.BadParameter(str(exc), param_hint="--events") from exc

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return
    console.print(format_mini_report(report))


@app.command()
def domains(
    reports: Path = typer.Option(..., "--reports", help="JSON list of {game, score} records."),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional scoring config YAML."),
) -> None:
    """
    Aggregate game scores from one assessment path into domain scores.
    """
    cfg = _load_config(config)
    records = _read_json(reports, "--reports")
    try:
        profile = build_domain_profile(records, cfg)
    except (KeyError, TypeError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid report record: {exc}", param_hint="--reports") from exc

    if not profile.scores:
        console.print("[yellow]No domain could be scored from these games.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Domain")
    table.add_column("Score")
    table.add_column("Level")
    for domain, value in profile.scores.items():
        table.add_row(domain, str(value), profile.levels[domain])
    console.print(table)
    console.print(f"[bold]Overall:[/] {profile.overall_score}")
    console.print(f"[bold]Strongest:[/] {profile.strongest}  [bold]Weakest:[/] {profile.weakest}")


@app.command()
def batch(
    sessions: Path = typer.Option(..., "--sessions", help="JSON list of {session_id, game, age, events}."),
    output: Path = typer.Option(Path("reports/mini_reports.parquet"), "--output", help="Parquet or CSV output path."),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional scoring config YAML."),
) -> None:
    """
    Score many sessions and write one row per session.
    """
    cfg = _load_config(config)
    records = _read_json(sessions, "--sessions")
    if not isinstance(records, list):
        raise typer.BadParameter(
            f"Expected a JSON list of sessions, got {type(records).__name__}.", param_hint="--sessions"
        )
    typer.echo(f"[score] Scoring {len(records)} sessions from {sessions}")

    results = score_sessions(records, cfg)
    frame = mini_reports_frame(results)

    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".csv":
        frame.to_csv(output, index=False)
    else:
        frame.to_parquet(output, index=False)

    failed = int(frame["error"].notna().sum())
    typer.echo(f"[score] Wrote {len(frame)} rows to {output} ({failed} sessions need a replay)")


@app.command()
def behavior(
    sessions: Path = typer.Option(
        ..., "--sessions", help="JSON list of {child_id, game, completed, score, created_at}."
    ),
    logs: Optional[Path] = typer.Option(None, "--logs", help="JSON list of {child_id, game, event_type, created_at}."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference time for the early-exit window (ISO 8601)."),
) -> None:
    """
    Detect behavior patterns across a child's recent sessions.
    """
    inputs = {"--sessions": _read_json(sessions, "--sessions")}
    inputs["--logs"] = _read_json(logs, "--logs") if logs is not None else []
    for hint, records in inputs.items():
        if not isinstance(records, list):
            raise typer.BadParameter(f"Expected a JSON list, got {type(records).__name__}.", param_hint=hint)

    try:
        report = generate_behavior_report(
            pd.DataFrame(inputs["--sessions"]), pd.DataFrame(inputs["--logs"]), as_of=as_of
        )
    except ScoringError as exc:
        raise typer.BadParameter(str(exc), param_hint="--sessions") from exc

    if report.empty:
        console.print("[green]No behavior patterns detected.[/green]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Child", "Game", "Pattern", "Severity", "Recommendation"):
        table.add_column(column)
    for row in report.itertuples(index=False):
        table.add_row(row.child_id, row.game, row.pattern, row.severity, row.recommendation)
    console.print(table)


if __name__ == "__main__":
    app()
