# ABOUTME: Maps final scores to qualitative status bands and derives behavioral flags.
# ABOUTME: Flags are independent checks on raw metrics and sub-scores.

from __future__ import annotations

from typing import List, Optional

from src.common.config import ScoringConfig, default_config
from src.common.schemas import GameMetrics, GameType, SubScores

AVOIDED_GAME = "AVOIDED_GAME"
HIGH_HESITATION = "HIGH_HESITATION"
IMPULSIVE_ERRORS = "IMPULSIVE_ERRORS"
LOW_ACCURACY = "LOW_ACCURACY"


def status_for_score(score: int, config: Optional[ScoringConfig] = None) -> str:
    config = config or default_config()
    for min_score, label in config.status_bands:
        if score >= min_score:
            return label
    return config.fallback_status


def detect_flags(
    metrics: GameMetrics,
    sub_scores: SubScores,
    game_type,
    config: Optional[ScoringConfig] = None,
) -> List[str]:
    config = config or default_config()
    thresholds = config.thresholds

    flags: List[str] = []
    if metrics.attempts < thresholds.min_events:
        flags.append(AVOIDED_GAME)
    if metrics.hesitations > thresholds.high_hesitation_count:
        flags.append(HIGH_HESITATION)
    if (
        GameType.resolve(game_type) is GameType.ATTENTION
        and metrics.false_positive_rate > thresholds.impulsive_error_rate
    ):
        flags.append(IMPULSIVE_ERRORS)
    if sub_scores.accuracy < thresholds.low_accuracy_score:
        flags.append(LOW_ACCURACY)
    return flags
