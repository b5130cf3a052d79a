# ABOUTME: Maps a child's age onto its reference band and clamps scores into range.
# ABOUTME: Shared numeric helpers for the sub-score and aggregation stages.

from __future__ import annotations

import math
from typing import Optional

from src.common.config import AgeBand, AgeNorm, ScoringConfig, default_config

SCORE_MIN = 0
SCORE_MAX = 100


def age_band_for(age: int, config: Optional[ScoringConfig] = None) -> AgeBand:
    """
    Pick the reference band for ``age`` using the configured breakpoints.

    Ages are expected to be non-negative; negative values fall into the
    youngest band without complaint.
    """

    config = config or default_config()
    for band in config.age_bands:
        if band.max_age is None or age <= band.max_age:
            return band
    return config.age_bands[-1]


def age_band(age: int, config: Optional[ScoringConfig] = None) -> str:
    return age_band_for(age, config).label


def norms_for_age(age: int, config: Optional[ScoringConfig] = None) -> AgeNorm:
    return age_band_for(age, config).norm


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round to the nearest integer and clamp into [0, 100]."""
    if math.isnan(value):
        return SCORE_MIN
    return round_half_up(max(float(SCORE_MIN), min(float(SCORE_MAX), value)))
