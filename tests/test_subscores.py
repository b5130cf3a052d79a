# ABOUTME: Tests age-band normalization and the sub-score calculator.
# ABOUTME: Verifies clamping, monotonic latency scoring and the dispersion-based stability score.

import math

import pytest

from src.common.schemas import GameMetrics
from src.scoring.normalize import age_band, clamp_score, norms_for_age, round_half_up
from src.scoring.subscores import compute_sub_scores, latency_variation_penalty


def _metrics(accuracy=0.5, avg_latency_ms=600.0, hesitations=0, samples=(), **extra):
    return GameMetrics(
        accuracy=accuracy,
        avg_latency_ms=avg_latency_ms,
        attempts=10,
        hesitations=hesitations,
        latency_samples=tuple(samples),
        extra=extra,
    )


@pytest.mark.parametrize(
    "age,band",
    [(3, "3-4"), (4, "3-4"), (5, "5-6"), (6, "5-6"), (7, "7-8"), (8, "7-8"), (9, "9-10"), (10, "9-10"), (11, "11-12"), (15, "11-12")],
)
def test_age_band_breakpoints(age, band):
    assert age_band(age) == band


def test_norms_for_age_returns_band_reference_values():
    norms = norms_for_age(7)
    assert norms.acc_ref == pytest.approx(0.80)
    assert norms.lat_ref_ms == 1200
    assert norms.hes_ref == 3


def test_clamp_score_bounds_and_rounding():
    assert clamp_score(100.4) == 100
    assert clamp_score(250.0) == 100
    assert clamp_score(-3.0) == 0
    assert clamp_score(49.5) == 50
    assert clamp_score(math.inf) == 100
    assert clamp_score(math.nan) == 0
    assert round_half_up(2.5) == 3


def test_latency_score_relative_to_age_reference():
    assert compute_sub_scores(_metrics(avg_latency_ms=2400.0), "memory", 7).latency == 50
    assert compute_sub_scores(_metrics(avg_latency_ms=4800.0), "memory", 7).latency == 25
    # Faster than the reference is clamped.
    assert compute_sub_scores(_metrics(avg_latency_ms=1.0), "memory", 7).latency == 100


def test_latency_score_never_increases_when_slower():
    previous = 101
    for latency in range(200, 12000, 350):
        current = compute_sub_scores(_metrics(avg_latency_ms=float(latency)), "logic", 9).latency
        assert current <= previous
        previous = current


def test_hesitation_score_uses_plus_one_calibration():
    assert compute_sub_scores(_metrics(hesitations=5), "memory", 7).hesitation == 50
    assert compute_sub_scores(_metrics(hesitations=0), "memory", 7).hesitation == 100
    assert compute_sub_scores(_metrics(hesitations=0), "memory", 12).hesitation == 100
    assert compute_sub_scores(_metrics(hesitations=1), "memory", 12).hesitation == 50


def test_stability_from_latency_dispersion():
    assert compute_sub_scores(_metrics(samples=[600] * 9), "visual", 7).stability == 100
    assert compute_sub_scores(_metrics(samples=[500, 1500]), "visual", 7).stability == 50
    assert compute_sub_scores(_metrics(samples=[]), "visual", 7).stability == 100


def test_latency_variation_penalty_is_capped():
    assert latency_variation_penalty([700]) == 0.0
    assert latency_variation_penalty([500, 1500]) == pytest.approx(50.0)
    assert latency_variation_penalty([100, 9000, 150], scale=1000.0, cap=100.0) == 100.0


def test_impulsivity_only_for_attention():
    attention = compute_sub_scores(_metrics(false_positive_rate=0.4), "attention", 7)
    mild = compute_sub_scores(_metrics(false_positive_rate=0.1), "attention", 7)
    memory = compute_sub_scores(_metrics(false_positive_rate=0.4), "memory", 7)

    assert attention.impulsivity == 70
    assert mild.impulsivity == 90
    assert memory.impulsivity is None
    assert "impulsivity" not in memory.as_dict()


def test_accuracy_sub_score():
    assert compute_sub_scores(_metrics(accuracy=0.5), "memory", 7).accuracy == 50
    assert compute_sub_scores(_metrics(accuracy=1.0), "memory", 7).accuracy == 100
    assert compute_sub_scores(_metrics(accuracy=0.0), "memory", 7).accuracy == 0
