# ABOUTME: Holds the immutable scoring tables (age norms, weights, tips, domains).
# ABOUTME: Builds the default configuration once and overlays optional YAML files.

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .schemas import GameType

DEFAULT_TABLE = "default"
SUB_SCORE_DIMENSIONS = ("accuracy", "latency", "hesitation", "stability", "impulsivity")


@dataclass(frozen=True)
class AgeNorm:
    """Reference values for one age band."""

    acc_ref: float
    lat_ref_ms: int
    hes_ref: int


@dataclass(frozen=True)
class AgeBand:
    label: str
    max_age: Optional[int]
    norm: AgeNorm


@dataclass(frozen=True)
class Thresholds:
    """Event-stream and classification cut-offs."""

    min_events: int = 5
    spam_threshold_ms: int = 100
    hesitation_threshold_ms: int = 1500
    max_latency_ms: int = 10000
    fallback_latency_ms: float = 1000.0
    high_hesitation_count: int = 10
    impulsive_error_rate: float = 0.3
    low_accuracy_score: int = 40
    slow_response_ms: int = 1500
    hesitation_reason_count: int = 5
    impulsive_reason_rate: float = 0.2
    impulsivity_max_penalty: float = 30.0
    stability_cv_scale: float = 100.0
    stability_max_penalty: float = 100.0


@dataclass(frozen=True)
class TipTable:
    encouragement: str
    excellent_score: int
    per_game: Mapping[str, Tuple[str, ...]]
    fallback: str
    remedial_latency_below: int = 50


@dataclass(frozen=True)
class DomainRule:
    primary: Tuple[str, ...]
    secondary: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoringConfig:
    """Every fixed table the pure scoring functions read from."""

    thresholds: Thresholds
    age_bands: Tuple[AgeBand, ...]
    weights: Mapping[str, Mapping[str, float]]
    status_bands: Tuple[Tuple[int, str], ...]
    fallback_status: str
    tips: TipTable
    domains: Mapping[str, DomainRule]
    primary_weight: float = 0.7
    domain_levels: Tuple[Tuple[int, str], ...] = field(default_factory=tuple)
    top_domain_level: str = "above typical"

    def weights_for(self, game) -> Mapping[str, float]:
        key = game.value if isinstance(game, GameType) else str(game)
        return self.weights.get(key, self.weights[DEFAULT_TABLE])


_DEFAULT_AGE_BANDS = (
    AgeBand("3-4", 4, AgeNorm(acc_ref=0.60, lat_ref_ms=2000, hes_ref=5)),
    AgeBand("5-6", 6, AgeNorm(acc_ref=0.70, lat_ref_ms=1500, hes_ref=4)),
    AgeBand("7-8", 8, AgeNorm(acc_ref=0.80, lat_ref_ms=1200, hes_ref=3)),
    AgeBand("9-10", 10, AgeNorm(acc_ref=0.85, lat_ref_ms=1000, hes_ref=2)),
    AgeBand("11-12", None, AgeNorm(acc_ref=0.90, lat_ref_ms=900, hes_ref=1)),
)

_DEFAULT_WEIGHTS = {
    "attention": {"accuracy": 0.45, "latency": 0.35, "impulsivity": 0.15, "stability": 0.05},
    "memory": {"accuracy": 0.50, "latency": 0.30, "hesitation": 0.20},
    "logic": {"accuracy": 0.40, "latency": 0.35, "stability": 0.25},
    "visual": {"accuracy": 0.45, "latency": 0.35, "stability": 0.20},
    "pattern": {"accuracy": 0.50, "latency": 0.30, "hesitation": 0.20},
    "creative": {"accuracy": 0.60, "latency": 0.20, "stability": 0.20},
    DEFAULT_TABLE: {"accuracy": 0.40, "latency": 0.35, "stability": 0.25},
}

_DEFAULT_STATUS_BANDS = (
    (85, "excellent"),
    (70, "good"),
    (50, "acceptable, needs support"),
)

_DEFAULT_TIPS = {
    "memory": (
        "Play 'find the object' for 10 minutes, 3 times a week.",
        "Practice a picture-recall game for 5 minutes every day.",
    ),
    "attention": (
        "Play 'tap the star' for 3 minutes every day.",
        "Count down slowly while watching for one chosen number.",
    ),
    "logic": (
        "Solve a simple age-appropriate puzzle every day.",
        "Sort shapes together using simple logical rules.",
    ),
    "visual": (
        "Try spot-the-difference pictures together.",
        "Build shapes out of puzzle pieces.",
    ),
    "pattern": (
        "Complete a colored pattern every day.",
        "Guess the next shape in a sequence together.",
    ),
    "creative": (
        "Draw freely for 10 minutes every day.",
        "Imagine a short story together, then draw it.",
    ),
}

_DEFAULT_DOMAINS = {
    "memory": DomainRule(primary=("memory",), secondary=("attention",)),
    "attention": DomainRule(primary=("attention",)),
    "reasoning": DomainRule(primary=("logic",), secondary=("pattern", "visual")),
    "visual": DomainRule(primary=("visual",), secondary=("pattern",)),
    "pattern": DomainRule(primary=("pattern",), secondary=("logic",)),
    "creativity": DomainRule(primary=("creative",)),
}

_DEFAULT_DOMAIN_LEVELS = (
    (40, "below typical"),
    (60, "near typical"),
    (80, "typical"),
)


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@lru_cache(maxsize=1)
def default_config() -> ScoringConfig:
    """Build the built-in tables once per process."""

    config = ScoringConfig(
        thresholds=Thresholds(),
        age_bands=_DEFAULT_AGE_BANDS,
        weights=_freeze({game: _freeze(w) for game, w in _DEFAULT_WEIGHTS.items()}),
        status_bands=_DEFAULT_STATUS_BANDS,
        fallback_status="needs clear support",
        tips=TipTable(
            encouragement="Keep up the daily practice to hold on to this great level!",
            excellent_score=85,
            per_game=_freeze(_DEFAULT_TIPS),
            fallback="Keep practicing and improving!",
        ),
        domains=_freeze(_DEFAULT_DOMAINS),
        domain_levels=_DEFAULT_DOMAIN_LEVELS,
    )
    validate_config(config)
    return config


def load_scoring_config(path: Path, base: Optional[ScoringConfig] = None) -> ScoringConfig:
    """
    Load a YAML overlay on top of the default tables.

    Recognized top-level keys: thresholds, age_norms, weights, status_bands,
    tips, domains, primary_weight. Keys that are absent keep their defaults.
    """

    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Scoring config {path} must be a mapping, got {type(raw).__name__}.")
    return config_from_dict(raw, base=base)


def config_from_dict(raw: Mapping[str, Any], base: Optional[ScoringConfig] = None) -> ScoringConfig:
    config = base or default_config()
    updates: Dict[str, Any] = {}

    if "thresholds" in raw:
        updates["thresholds"] = _parse_thresholds(raw["thresholds"], config.thresholds)

    if "age_norms" in raw:
        updates["age_bands"] = tuple(_parse_age_band(entry) for entry in raw["age_norms"])

    if "weights" in raw:
        merged = {game: dict(w) for game, w in config.weights.items()}
        for game, table in raw["weights"].items():
            merged[str(game)] = {str(k): float(v) for k, v in table.items()}
        updates["weights"] = _freeze({game: _freeze(w) for game, w in merged.items()})

    if "status_bands" in raw:
        bands = sorted(
            ((int(entry["min_score"]), str(entry["label"])) for entry in raw["status_bands"]),
            reverse=True,
        )
        updates["status_bands"] = tuple(bands)
    if "fallback_status" in raw:
        updates["fallback_status"] = str(raw["fallback_status"])

    if "tips" in raw:
        tips_raw = raw["tips"]
        per_game = dict(config.tips.per_game)
        for game, entries in (tips_raw.get("per_game") or {}).items():
            per_game[str(game)] = tuple(str(e) for e in entries)
        updates["tips"] = replace(
            config.tips,
            encouragement=str(tips_raw.get("encouragement", config.tips.encouragement)),
            excellent_score=int(tips_raw.get("excellent_score", config.tips.excellent_score)),
            fallback=str(tips_raw.get("fallback", config.tips.fallback)),
            remedial_latency_below=int(tips_raw.get("remedial_latency_below", config.tips.remedial_latency_below)),
            per_game=_freeze(per_game),
        )

    if "domains" in raw:
        updates["domains"] = _freeze(
            {
                str(domain): DomainRule(
                    primary=tuple(rule.get("primary") or ()),
                    secondary=tuple(rule.get("secondary") or ()),
                )
                for domain, rule in raw["domains"].items()
            }
        )
    if "primary_weight" in raw:
        updates["primary_weight"] = float(raw["primary_weight"])

    result = replace(config, **updates)
    validate_config(result)
    return result


def _parse_thresholds(section: Any, current: Thresholds) -> Thresholds:
    if not isinstance(section, Mapping):
        raise ConfigError(f"'thresholds' must be a mapping, got {type(section).__name__}.")
    unknown = set(section) - set(Thresholds.__dataclass_fields__)
    if unknown:
        raise ConfigError(f"Unknown threshold keys: {sorted(unknown)}")

    defaults = Thresholds()
    values: Dict[str, Any] = {}
    for key, value in section.items():
        # Int fields stay int and float fields stay float.
        caster = type(getattr(defaults, key))
        if value is None or isinstance(value, bool):
            raise ConfigError(f"Threshold '{key}' must be a number, got {value!r}.")
        try:
            coerced = caster(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Threshold '{key}' must be a number, got {value!r}.") from exc
        if caster is int and float(value) != coerced:
            raise ConfigError(f"Threshold '{key}' must be a whole number, got {value!r}.")
        values[key] = coerced
    return replace(current, **values)


def validate_config(config: ScoringConfig) -> None:
    """Reject tables that would break the scoring invariants."""

    for game in list(GameType) + [DEFAULT_TABLE]:
        key = game.value if isinstance(game, GameType) else game
        if key not in config.weights:
            raise ConfigError(f"Missing weight table for '{key}'.")

    for game, table in config.weights.items():
        unknown = set(table) - set(SUB_SCORE_DIMENSIONS)
        if unknown:
            raise ConfigError(f"Weight table '{game}' uses unknown dimensions {sorted(unknown)}.")
        total = sum(table.values())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ConfigError(f"Weights for '{game}' sum to {total:.4f}, expected 1.0.")

    if not config.age_bands:
        raise ConfigError("At least one age band is required.")
    if config.age_bands[-1].max_age is not None:
        raise ConfigError("The last age band must be open-ended (max_age: null).")
    bounds = [band.max_age for band in config.age_bands[:-1]]
    if any(b is None for b in bounds) or bounds != sorted(bounds):
        raise ConfigError("Age band upper bounds must be increasing.")
    for band in config.age_bands:
        if band.norm.lat_ref_ms <= 0:
            raise ConfigError(f"Age band '{band.label}' needs a positive lat_ref_ms.")

    if not 0.0 <= config.primary_weight <= 1.0:
        raise ConfigError("primary_weight must be within [0, 1].")


def _parse_age_band(entry: Mapping[str, Any]) -> AgeBand:
    try:
        max_age = entry.get("max_age")
        return AgeBand(
            label=str(entry["band"]),
            max_age=None if max_age is None else int(max_age),
            norm=AgeNorm(
                acc_ref=float(entry["acc_ref"]),
                lat_ref_ms=int(entry["lat_ref_ms"]),
                hes_ref=int(entry["hes_ref"]),
            ),
        )
    except (KeyError, TypeError) as exc:
        raise ConfigError(f"Invalid age norm entry {entry!r}: {exc}") from exc
