# ABOUTME: Defines canonical value types shared by the scoring pipeline.
# ABOUTME: Centralizes game, event, metrics, sub-score and report schema definitions.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class GameType(str, Enum):
    """Closed set of mini-games the engine knows how to score."""

    MEMORY = "memory"
    ATTENTION = "attention"
    LOGIC = "logic"
    VISUAL = "visual"
    PATTERN = "pattern"
    CREATIVE = "creative"

    @classmethod
    def resolve(cls, value) -> Optional["GameType"]:
        """Return the matching member, or None for names the engine does not know."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


ATTEMPT_EVENT_TYPES = frozenset({"click", "select", "match"})
LEVEL_COMPLETE_EVENT = "level_complete"

EMPTY_MAPPING: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class EventValue:
    """Typed payload carried by a game event."""

    correct: bool = False
    is_target: Optional[bool] = None
    response_time_ms: Optional[int] = None
    extra: Mapping[str, Any] = field(default_factory=lambda: EMPTY_MAPPING)


@dataclass(frozen=True)
class RawEvent:
    """One interaction record emitted by a game UI."""

    timestamp: int
    type: str
    value: EventValue = field(default_factory=EventValue)

    @property
    def is_attempt(self) -> bool:
        return self.type in ATTEMPT_EVENT_TYPES


@dataclass(frozen=True)
class GameMetrics:
    """Aggregates derived from one denoised session."""

    accuracy: float
    avg_latency_ms: float
    attempts: int
    hesitations: int
    latency_samples: Tuple[int, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=lambda: EMPTY_MAPPING)

    @property
    def false_positive_rate(self) -> float:
        return float(self.extra.get("false_positive_rate", 0.0))


@dataclass(frozen=True)
class SubScores:
    """Orthogonal 0-100 performance dimensions for one session."""

    accuracy: int
    latency: int
    hesitation: int
    stability: int
    impulsivity: Optional[int] = None

    def as_dict(self) -> Dict[str, int]:
        values = {
            "accuracy": self.accuracy,
            "latency": self.latency,
            "hesitation": self.hesitation,
            "stability": self.stability,
        }
        if self.impulsivity is not None:
            values["impulsivity"] = self.impulsivity
        return values


@dataclass(frozen=True)
class MiniReport:
    """Terminal output of scoring a single session."""

    game: str
    score: int
    status: str
    sub_scores: SubScores
    reasons: Tuple[str, ...]
    tip: str
    flags: Tuple[str, ...]
    metrics: Optional[GameMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain record handed to the persistence and narrative layers."""
        return {
            "game": self.game,
            "score": self.score,
            "status": self.status,
            "sub_scores": self.sub_scores.as_dict(),
            "reasons": list(self.reasons),
            "tip": self.tip,
            "flags": list(self.flags),
        }


@dataclass(frozen=True)
class GameScore:
    """Minimal (game, score) pair consumed by the domain aggregator."""

    game: str
    score: float


@dataclass(frozen=True)
class DomainProfile:
    """Cross-game profile built from one assessment path."""

    scores: Mapping[str, int]
    levels: Mapping[str, str]
    overall_score: Optional[int]
    strongest: Optional[str]
    weakest: Optional[str]
    flags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scores": dict(self.scores),
            "levels": dict(self.levels),
            "overall_score": self.overall_score,
            "strongest": self.strongest,
            "weakest": self.weakest,
            "flags": list(self.flags),
        }


def game_name(game) -> str:
    """Normalize a GameType or free-form game name to its string form."""
    if isinstance(game, GameType):
        return game.value
    return str(game).strip().lower()


def unique_in_order(items) -> List[str]:
    seen = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered
