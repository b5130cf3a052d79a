# ABOUTME: Aggregates per-game scores into cross-game cognitive domain scores.
# ABOUTME: Uses a primary/secondary game mapping and derives levels and an overall profile.

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from src.common.config import ScoringConfig, default_config
from src.common.schemas import DomainProfile, GameScore, MiniReport, game_name, unique_in_order

from .normalize import round_half_up


def _as_game_score(item: Any) -> GameScore:
    if isinstance(item, GameScore):
        return item
    if isinstance(item, MiniReport):
        return GameScore(game=item.game, score=item.score)
    if isinstance(item, Mapping):
        return GameScore(game=game_name(item["game"]), score=float(item["score"]))
    raise TypeError(f"Expected MiniReport, GameScore or mapping, got {type(item).__name__}")


def compute_domain_scores(
    game_reports: Iterable[Any],
    config: Optional[ScoringConfig] = None,
) -> Dict[str, int]:
    """
    Combine game scores into domain scores.

    A domain is scored only when at least one of its primary games is
    present; without secondary data the primary average stands in for it.
    """

    config = config or default_config()
    scores = [_as_game_score(item) for item in game_reports]
    primary_weight = config.primary_weight

    domain_scores: Dict[str, int] = {}
    for domain, rule in config.domains.items():
        primary = [s.score for s in scores if s.game in rule.primary]
        if not primary:
            continue
        secondary = [s.score for s in scores if s.game in rule.secondary]
        primary_avg = float(np.mean(primary))
        secondary_avg = float(np.mean(secondary)) if secondary else primary_avg
        domain_scores[domain] = round_half_up(primary_weight * primary_avg + (1 - primary_weight) * secondary_avg)
    return domain_scores


def domain_level(score: int, config: Optional[ScoringConfig] = None) -> str:
    config = config or default_config()
    for upper, label in config.domain_levels:
        if score < upper:
            return label
    return config.top_domain_level


def _extremes(scores: Mapping[str, int]) -> Tuple[Optional[str], Optional[str]]:
    if not scores:
        return None, None
    # Ties resolve to the domain listed first in the mapping.
    ordered: List[Tuple[str, int]] = list(scores.items())
    strongest = max(ordered, key=lambda kv: kv[1])[0]
    weakest = min(ordered, key=lambda kv: kv[1])[0]
    return strongest, weakest


def build_domain_profile(
    game_reports: Iterable[Any],
    config: Optional[ScoringConfig] = None,
) -> DomainProfile:
    """Domain scores plus levels, overall score, extremes and collected flags."""

    config = config or default_config()
    reports = list(game_reports)
    scores = compute_domain_scores(reports, config)
    levels = {domain: domain_level(score, config) for domain, score in scores.items()}
    overall = round_half_up(float(np.mean(list(scores.values())))) if scores else None
    strongest, weakest = _extremes(scores)
    flags = unique_in_order(flag for r in reports if isinstance(r, MiniReport) for flag in r.flags)
    return DomainProfile(
        scores=scores,
        levels=levels,
        overall_score=overall,
        strongest=strongest,
        weakest=weakest,
        flags=tuple(flags),
    )
