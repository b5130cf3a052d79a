# ABOUTME: Tests cross-game domain aggregation and the derived domain profile.
# ABOUTME: Checks primary/secondary weighting, absent domains, levels and extremes.

import pytest

from src.common.schemas import GameScore, MiniReport, SubScores
from src.scoring.domains import build_domain_profile, compute_domain_scores, domain_level

FULL_PATH = [
    {"game": "memory", "score": 80},
    {"game": "attention", "score": 60},
    {"game": "logic", "score": 70},
    {"game": "visual", "score": 50},
    {"game": "pattern", "score": 90},
    {"game": "creative", "score": 40},
]


def _report(game, score, flags=()):
    return MiniReport(
        game=game,
        score=score,
        status="good",
        sub_scores=SubScores(accuracy=score, latency=score, hesitation=score, stability=score),
        reasons=("generally balanced performance",),
        tip="",
        flags=tuple(flags),
    )


def test_full_assessment_path():
    scores = compute_domain_scores(FULL_PATH)

    assert scores == {
        "memory": 74,
        "attention": 60,
        "reasoning": 70,
        "visual": 62,
        "pattern": 84,
        "creativity": 40,
    }


def test_secondary_falls_back_to_primary_average():
    assert compute_domain_scores([{"game": "memory", "score": 80}]) == {"memory": 80}


def test_domain_without_primary_is_absent():
    scores = compute_domain_scores([{"game": "attention", "score": 60}])
    assert scores == {"attention": 60}
    assert "memory" not in scores


def test_multiple_sessions_of_a_primary_game_are_averaged():
    scores = compute_domain_scores([GameScore("creative", 70), GameScore("creative", 90)])
    assert scores == {"creativity": 80}


def test_accepts_mini_reports():
    scores = compute_domain_scores([_report("logic", 60), _report("pattern", 80)])
    # reasoning: 0.7*60 + 0.3*80; pattern: 0.7*80 + 0.3*60
    assert scores == {"reasoning": 66, "pattern": 74}


def test_empty_input_yields_empty_map():
    assert compute_domain_scores([]) == {}


def test_rejects_unknown_record_types():
    with pytest.raises(TypeError):
        compute_domain_scores([("memory", 80)])


@pytest.mark.parametrize(
    "score,level",
    [(0, "below typical"), (39, "below typical"), (40, "near typical"), (59, "near typical"), (60, "typical"), (79, "typical"), (80, "above typical"), (100, "above typical")],
)
def test_domain_levels(score, level):
    assert domain_level(score) == level


def test_domain_profile_summarizes_path():
    reports = [_report(r["game"], r["score"]) for r in FULL_PATH]
    reports[1] = _report("attention", 60, flags=("IMPULSIVE_ERRORS",))
    reports[5] = _report("creative", 40, flags=("LOW_ACCURACY", "IMPULSIVE_ERRORS"))

    profile = build_domain_profile(reports)

    assert profile.overall_score == 65
    assert profile.strongest == "pattern"
    assert profile.weakest == "creativity"
    assert profile.levels["pattern"] == "above typical"
    assert profile.flags == ("IMPULSIVE_ERRORS", "LOW_ACCURACY")
    assert profile.to_dict()["scores"]["memory"] == 74


def test_domain_profile_for_empty_path():
    profile = build_domain_profile([])
    assert profile.scores == {}
    assert profile.overall_score is None
    assert profile.strongest is None


def test_fractional_scores_are_averaged_before_rounding():
    assert compute_domain_scores([{"game": "memory", "score": 72.9}]) == {"memory": 73}
    assert compute_domain_scores([GameScore("creative", 72.5), GameScore("creative", 72.4)]) == {"creativity": 72}
