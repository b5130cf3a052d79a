# ABOUTME: Detects cross-session behavior patterns from a child's session history and activity logs.
# ABOUTME: Provides threshold heuristics for avoidance, stable performance, early exits and repeated restarts.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from src.common.errors import EventPayloadError
from src.common.schemas import game_name

logger = logging.getLogger(__name__)

GAME_START = "game_start"
GAME_COMPLETE = "game_complete"
GAME_QUIT = "game_quit"

SESSION_COLUMNS = ("child_id", "game", "completed", "score", "created_at")
LOG_COLUMNS = ("child_id", "game", "event_type", "created_at")
BEHAVIOR_COLUMNS = ["child_id", "game", "pattern", "severity", "evidence", "recommendation"]


@dataclass
class BehaviorAlert:
    child_id: str
    game: str
    pattern: str
    severity: str
    evidence: Dict
    recommendation: str


class BehaviorThresholds:
    RECENT_SESSIONS = 5
    MIN_SESSIONS = 3
    AVOIDANT_COMPLETION_RATE = 0.5
    AVOIDANT_HIGH_COMPLETION_RATE = 0.3
    STABLE_SCORE_VARIANCE = 100.0
    EARLY_EXIT_WINDOW = pd.Timedelta(days=7)
    EARLY_EXIT_MIN_QUITS = 3
    EARLY_EXIT_HIGH_QUITS = 5
    RECENT_LOGS = 10
    REPETITION_MIN_STARTS = 5
    REPETITION_MAX_COMPLETIONS = 2


def _prepare(df: Optional[pd.DataFrame], columns: Sequence[str], label: str) -> pd.DataFrame:
    if df is None or df.empty:
        df = pd.DataFrame(columns=list(columns))
    missing = [column for column in columns if column not in df.columns]
    if missing:
        raise EventPayloadError(f"{label} records are missing columns {missing}.")

    df = df.reset_index(drop=True)
    df["child_id"] = df["child_id"].astype(str)
    df["game"] = df["game"].map(game_name)
    try:
        df["created_at"] = pd.to_datetime(df["created_at"])
    except (TypeError, ValueError) as exc:
        raise EventPayloadError(f"{label} records have an unreadable 'created_at': {exc}") from exc
    return df


def prepare_sessions(sessions_df: Optional[pd.DataFrame]) -> pd.DataFrame:
    return _prepare(sessions_df, SESSION_COLUMNS, "Session")


def prepare_logs(logs_df: Optional[pd.DataFrame]) -> pd.DataFrame:
    return _prepare(logs_df, LOG_COLUMNS, "Behavior log")


def _newest_first(df: pd.DataFrame, limit: int) -> pd.DataFrame:
    return df.sort_values("created_at", ascending=False, kind="stable").head(limit)


def _recent_sessions(sessions_df: pd.DataFrame, child_id: str, game: str) -> pd.DataFrame:
    rows = sessions_df[(sessions_df["child_id"] == str(child_id)) & (sessions_df["game"] == game_name(game))]
    return _newest_first(rows, BehaviorThresholds.RECENT_SESSIONS)


def _child_logs(logs_df: pd.DataFrame, child_id: str, game: str) -> pd.DataFrame:
    return logs_df[(logs_df["child_id"] == str(child_id)) & (logs_df["game"] == game_name(game))]


def detect_avoidance(sessions_df: pd.DataFrame, child_id: str, game) -> Optional[BehaviorAlert]:
    """Flag a game the child starts but rarely finishes over the last few sessions."""

    recent = _recent_sessions(prepare_sessions(sessions_df), child_id, game)
    if len(recent) < BehaviorThresholds.MIN_SESSIONS:
        return None

    completed = recent["completed"].eq(True)
    completion_rate = float(completed.mean())
    if completion_rate >= BehaviorThresholds.AVOIDANT_COMPLETION_RATE:
        return None

    severity = "high" if completion_rate < BehaviorThresholds.AVOIDANT_HIGH_COMPLETION_RATE else "medium"
    return BehaviorAlert(
        child_id=str(child_id),
        game=game_name(game),
        pattern="avoidant",
        severity=severity,
        evidence={
            "sessions": int(len(recent)),
            "completed": int(completed.sum()),
            "completion_rate_pct": round(completion_rate * 100, 1),
        },
        recommendation="Present the game in a more engaging way or lower its difficulty.",
    )


def detect_stable_performance(sessions_df: pd.DataFrame, child_id: str, game) -> Optional[BehaviorAlert]:
    """Flag consistent recent scores (population variance below the threshold)."""

    recent = _recent_sessions(prepare_sessions(sessions_df), child_id, game)
    if len(recent) < BehaviorThresholds.MIN_SESSIONS:
        return None

    # Sessions without a score count as zero.
    scores = pd.to_numeric(recent["score"], errors="coerce").fillna(0.0).astype(float)
    variance = float(scores.var(ddof=0))
    if variance >= BehaviorThresholds.STABLE_SCORE_VARIANCE:
        return None

    return BehaviorAlert(
        child_id=str(child_id),
        game=game_name(game),
        pattern="stable",
        severity="low",
        evidence={
            "sessions": int(len(recent)),
            "avg_score": round(float(scores.mean()), 1),
            "score_variance": round(variance, 1),
        },
        recommendation="Performance is steady. Move on to a harder challenge level.",
    )


def _reference_time(logs_df: pd.DataFrame, as_of: Any) -> Optional[pd.Timestamp]:
    if as_of is not None:
        try:
            return pd.Timestamp(as_of)
        except (TypeError, ValueError) as exc:
            raise EventPayloadError(f"Invalid reference time {as_of!r}: {exc}") from exc
    if logs_df.empty:
        return None
    return logs_df["created_at"].max()


def detect_early_exit(
    logs_df: pd.DataFrame,
    child_id: str,
    game,
    as_of: Any = None,
) -> Optional[BehaviorAlert]:
    """
    Flag repeated quits within the last week.

    ``as_of`` anchors the window. When omitted, the newest log timestamp in
    the whole frame is used so results do not depend on the wall clock.
    """

    logs = prepare_logs(logs_df)
    now = _reference_time(logs, as_of)
    if now is None:
        return None

    rows = _child_logs(logs, child_id, game)
    quits = rows[
        (rows["event_type"] == GAME_QUIT)
        & (rows["created_at"] >= now - BehaviorThresholds.EARLY_EXIT_WINDOW)
        & (rows["created_at"] <= now)
    ]
    if len(quits) < BehaviorThresholds.EARLY_EXIT_MIN_QUITS:
        return None

    severity = "high" if len(quits) > BehaviorThresholds.EARLY_EXIT_HIGH_QUITS else "medium"
    return BehaviorAlert(
        child_id=str(child_id),
        game=game_name(game),
        pattern="early_exit",
        severity=severity,
        evidence={
            "quits_last_7_days": int(len(quits)),
            "possible_triggers": ["difficulty", "frustration", "distraction"],
        },
        recommendation="Check the game's difficulty or offer a reward for finishing.",
    )


def detect_repetition(logs_df: pd.DataFrame, child_id: str, game) -> Optional[BehaviorAlert]:
    """Flag many restarts with almost no completions among the latest log entries."""

    rows = _child_logs(prepare_logs(logs_df), child_id, game)
    recent = _newest_first(rows, BehaviorThresholds.RECENT_LOGS)
    starts = int((recent["event_type"] == GAME_START).sum())
    completions = int((recent["event_type"] == GAME_COMPLETE).sum())
    if starts < BehaviorThresholds.REPETITION_MIN_STARTS:
        return None
    if completions >= BehaviorThresholds.REPETITION_MAX_COMPLETIONS:
        return None

    return BehaviorAlert(
        child_id=str(child_id),
        game=game_name(game),
        pattern="repetitive",
        severity="medium",
        evidence={"starts": starts, "completions": completions},
        recommendation="The child may struggle to understand or finish the game. Offer help or simplify it.",
    )


def analyze_child(
    sessions_df: Optional[pd.DataFrame],
    logs_df: Optional[pd.DataFrame],
    child_id: str,
    as_of: Any = None,
) -> List[BehaviorAlert]:
    sessions = prepare_sessions(sessions_df)
    logs = prepare_logs(logs_df)
    now = _reference_time(logs, as_of)

    child = str(child_id)
    games = sorted(
        set(sessions.loc[sessions["child_id"] == child, "game"]) | set(logs.loc[logs["child_id"] == child, "game"])
    )

    alerts: List[BehaviorAlert] = []
    for game in games:
        candidates = (
            detect_avoidance(sessions, child, game),
            detect_stable_performance(sessions, child, game),
            detect_early_exit(logs, child, game, as_of=now),
            detect_repetition(logs, child, game),
        )
        alerts.extend(alert for alert in candidates if alert)
    logger.debug("Child %s: %d behavior alerts across %d games", child, len(alerts), len(games))
    return alerts


def generate_behavior_report(
    sessions_df: Optional[pd.DataFrame],
    logs_df: Optional[pd.DataFrame] = None,
    as_of: Any = None,
) -> pd.DataFrame:
    sessions = prepare_sessions(sessions_df)
    logs = prepare_logs(logs_df)
    now = _reference_time(logs, as_of)

    rows: List[Dict] = []
    for child_id in pd.unique(pd.concat([sessions["child_id"], logs["child_id"]], ignore_index=True)):
        for alert in analyze_child(sessions, logs, child_id, as_of=now):
            rows.append(
                {
                    "child_id": alert.child_id,
                    "game": alert.game,
                    "pattern": alert.pattern,
                    "severity": alert.severity,
                    "evidence": alert.evidence,
                    "recommendation": alert.recommendation,
                }
            )
    return pd.DataFrame(rows, columns=BEHAVIOR_COLUMNS)
