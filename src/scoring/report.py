# ABOUTME: Runs the full single-session pipeline and produces MiniReport records.
# ABOUTME: Also scores session batches into DataFrames and renders reports as text.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from src.common.config import ScoringConfig, default_config
from src.common.errors import EventPayloadError, ScoringError
from src.common.schemas import MiniReport, game_name, unique_in_order

from .aggregate import compute_game_score
from .classify import detect_flags, status_for_score
from .feedback import generate_reasons, select_tip
from .metrics import extract_metrics
from .subscores import compute_sub_scores

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "session_id",
    "game",
    "age",
    "score",
    "status",
    "accuracy",
    "latency",
    "hesitation",
    "stability",
    "impulsivity",
    "attempts",
    "avg_latency_ms",
    "hesitations",
    "reasons",
    "tip",
    "flags",
    "error",
]


def compute_mini_report(
    raw_events: Sequence[Any],
    game_type,
    age: int,
    config: Optional[ScoringConfig] = None,
) -> MiniReport:
    """
    Score one completed session.

    Raises InsufficientDataError when fewer than ``min_events`` raw events
    were recorded. Everything else degrades to a lower but valid score.
    """

    config = config or default_config()
    game = game_name(game_type)

    metrics = extract_metrics(raw_events, game, config)
    sub_scores = compute_sub_scores(metrics, game, age, config)
    score = compute_game_score(sub_scores, game, config)
    logger.debug(
        "Scored %s session: attempts=%d accuracy=%.2f score=%d",
        game,
        metrics.attempts,
        metrics.accuracy,
        score,
    )

    return MiniReport(
        game=game,
        score=score,
        status=status_for_score(score, config),
        sub_scores=sub_scores,
        reasons=tuple(generate_reasons(sub_scores, metrics, game, config)),
        tip=select_tip(score, sub_scores, game, config),
        flags=tuple(unique_in_order(detect_flags(metrics, sub_scores, game, config))),
        metrics=metrics,
    )


@dataclass(frozen=True)
class SessionResult:
    session_id: str
    game: str
    age: Optional[int]
    report: Optional[MiniReport]
    error: Optional[str] = None


def _session_age(value: Any) -> int:
    if isinstance(value, bool):
        raise EventPayloadError(f"Session 'age' must be a number, got {value!r}.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise EventPayloadError(f"Session 'age' must be a number, got {value!r}.") from exc


def score_sessions(
    sessions: Iterable[Any],
    config: Optional[ScoringConfig] = None,
) -> List[SessionResult]:
    """
    Score a batch of ``{session_id, game, age, events}`` records.

    Sessions that cannot be scored, including malformed records, are kept
    with ``error`` set so one bad session does not abort the batch.
    """

    config = config or default_config()
    results: List[SessionResult] = []
    for idx, session in enumerate(sessions):
        session_id, game, age = str(idx), "", None
        try:
            if not isinstance(session, Mapping):
                raise EventPayloadError(f"Session must be a mapping, got {type(session).__name__}.")
            session_id = str(session.get("session_id", idx))
            game = game_name(session.get("game", ""))
            age = _session_age(session.get("age", 0))
            report = compute_mini_report(session.get("events") or [], game, age, config)
        except ScoringError as exc:
            logger.info("Session %s not scored: %s", session_id, exc)
            results.append(SessionResult(session_id=session_id, game=game, age=age, report=None, error=str(exc)))
            continue
        results.append(SessionResult(session_id=session_id, game=game, age=age, report=report))
    return results


def mini_reports_frame(results: Iterable[SessionResult]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for result in results:
        row: Dict[str, Any] = {column: None for column in REPORT_COLUMNS}
        row.update({"session_id": result.session_id, "game": result.game, "age": result.age, "error": result.error})
        report = result.report
        if report is not None:
            row.update(report.sub_scores.as_dict())
            row.update(
                {
                    "score": report.score,
                    "status": report.status,
                    "reasons": " | ".join(report.reasons),
                    "tip": report.tip,
                    "flags": ",".join(report.flags),
                }
            )
            if report.metrics is not None:
                row.update(
                    {
                        "attempts": report.metrics.attempts,
                        "avg_latency_ms": round(report.metrics.avg_latency_ms, 1),
                        "hesitations": report.metrics.hesitations,
                    }
                )
        rows.append(row)
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def format_mini_report(report: MiniReport) -> str:
    """Render a MiniReport as a human-readable block."""
    lines = [
        "━" * 60,
        f"Game: {report.game}",
        f"Score: {report.score}/100 ({report.status})",
        "",
        "SUB-SCORES:",
    ]
    for name, value in report.sub_scores.as_dict().items():
        lines.append(f"  {name:<12}{value:>4}")

    lines.extend(["", "WHY:"])
    lines.extend(f"  - {reason}" for reason in report.reasons)
    lines.extend(["", "TIP:", f"  {report.tip}"])
    if report.flags:
        lines.extend(["", f"FLAGS: {', '.join(report.flags)}"])
    lines.append("━" * 60)
    return "\n".join(lines)
