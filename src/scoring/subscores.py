# ABOUTME: Converts session metrics into age-normalized 0-100 sub-scores.
# ABOUTME: Covers accuracy, latency, hesitation, stability and attention impulsivity.

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from src.common.config import ScoringConfig, default_config
from src.common.schemas import GameMetrics, GameType, SubScores

from .normalize import clamp_score, norms_for_age


def latency_variation_penalty(samples: Sequence[float], scale: float = 100.0, cap: float = 100.0) -> float:
    """
    Penalty derived from the coefficient of variation of latency samples.

    CV = population std / mean, multiplied by ``scale`` and capped at ``cap``.
    With fewer than two samples there is no dispersion to measure.
    """

    if len(samples) < 2:
        return 0.0
    values = np.asarray(samples, dtype=float)
    mean = float(values.mean())
    if mean <= 0:
        return 0.0
    cv = float(values.std(ddof=0)) / mean
    return min(cap, cv * scale)


def compute_sub_scores(
    metrics: GameMetrics,
    game_type,
    age: int,
    config: Optional[ScoringConfig] = None,
) -> SubScores:
    """Pure arithmetic over metrics and age norms; each value is clamped to [0, 100]."""

    config = config or default_config()
    thresholds = config.thresholds
    norms = norms_for_age(age, config)

    accuracy = clamp_score(metrics.accuracy * 100)
    latency = clamp_score(norms.lat_ref_ms / metrics.avg_latency_ms * 100) if metrics.avg_latency_ms > 0 else 100
    # The +1 keeps zero hesitations finite; with hes_ref >= 1 it still reaches 100.
    hesitation = clamp_score(norms.hes_ref / (metrics.hesitations + 1) * 100)
    stability = clamp_score(
        100
        - latency_variation_penalty(
            metrics.latency_samples,
            scale=thresholds.stability_cv_scale,
            cap=thresholds.stability_max_penalty,
        )
    )

    impulsivity = None
    if GameType.resolve(game_type) is GameType.ATTENTION and "false_positive_rate" in metrics.extra:
        penalty = min(thresholds.impulsivity_max_penalty, metrics.false_positive_rate * 100)
        impulsivity = clamp_score(100 - penalty)

    return SubScores(
        accuracy=accuracy,
        latency=latency,
        hesitation=hesitation,
        stability=stability,
        impulsivity=impulsivity,
    )
