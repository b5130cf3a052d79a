# ABOUTME: Combines sub-scores into one game score using fixed per-game weights.
# ABOUTME: Unknown game types fall back to the default weighting table.

from __future__ import annotations

import logging
from typing import Mapping, Optional

from src.common.config import ScoringConfig, default_config
from src.common.schemas import SubScores, game_name

from .normalize import SCORE_MAX, clamp_score

logger = logging.getLogger(__name__)


def _dimension_value(sub_scores: SubScores, dimension: str) -> float:
    value = getattr(sub_scores, dimension)
    # Games without an impulsivity measure are not penalized on it.
    return float(SCORE_MAX) if value is None else float(value)


def weighted_score(sub_scores: SubScores, weights: Mapping[str, float]) -> int:
    total = sum(weight * _dimension_value(sub_scores, dim) for dim, weight in weights.items())
    return clamp_score(total)


def compute_game_score(
    sub_scores: SubScores,
    game_type,
    config: Optional[ScoringConfig] = None,
) -> int:
    config = config or default_config()
    key = game_name(game_type)
    if key not in config.weights:
        logger.warning("No weight table for game %r; using default weights", key)
    return weighted_score(sub_scores, config.weights_for(key))
