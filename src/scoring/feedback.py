# ABOUTME: Generates short human-readable reasons and an improvement tip for a session.
# ABOUTME: Deterministic rule tables keyed by sub-score thresholds; no language model involved.

from __future__ import annotations

from typing import List, Optional

from src.common.config import ScoringConfig, default_config
from src.common.schemas import GameMetrics, GameType, SubScores, game_name

MAX_REASONS = 2

REASON_ACCURATE_AND_FAST = "high accuracy and good speed"
REASON_DELIBERATE = "deliberate thinker; needs gentle speed drills"
REASON_SLOW_RESPONSE = "response time above age reference"
REASON_HESITATION = "noticeable hesitation before choosing"
REASON_IMPULSIVE = "impulsive errors"
REASON_NEEDS_PRACTICE = "needs more focus and practice"
REASON_BALANCED = "generally balanced performance"


def generate_reasons(
    sub_scores: SubScores,
    metrics: GameMetrics,
    game_type,
    config: Optional[ScoringConfig] = None,
) -> List[str]:
    """
    Collect explanation strings in priority order and keep the first two.

    The check order below is the priority order.
    """

    thresholds = (config or default_config()).thresholds
    reasons: List[str] = []

    if sub_scores.accuracy >= 80 and sub_scores.latency >= 70:
        reasons.append(REASON_ACCURATE_AND_FAST)
    elif sub_scores.accuracy >= 70 and sub_scores.latency < 60:
        reasons.append(REASON_DELIBERATE)

    if metrics.avg_latency_ms > thresholds.slow_response_ms:
        reasons.append(REASON_SLOW_RESPONSE)

    if metrics.hesitations > thresholds.hesitation_reason_count:
        reasons.append(REASON_HESITATION)

    if (
        GameType.resolve(game_type) is GameType.ATTENTION
        and metrics.false_positive_rate > thresholds.impulsive_reason_rate
    ):
        reasons.append(REASON_IMPULSIVE)

    if sub_scores.accuracy < 60:
        reasons.append(REASON_NEEDS_PRACTICE)

    if not reasons:
        reasons.append(REASON_BALANCED)

    return reasons[:MAX_REASONS]


def select_tip(score: int, sub_scores: SubScores, game_type, config: Optional[ScoringConfig] = None) -> str:
    """Encouragement for excellent scores, otherwise the game's tip (remedial when slow)."""

    tips = (config or default_config()).tips
    if score >= tips.excellent_score:
        return tips.encouragement

    entries = tips.per_game.get(game_name(game_type))
    if not entries:
        return tips.fallback
    if sub_scores.latency < tips.remedial_latency_below and len(entries) > 1:
        return entries[1]
    return entries[0]
