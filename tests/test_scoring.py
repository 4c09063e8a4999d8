from __future__ import annotations

import math

import pytest

from armada_mcp.core.phases import KEY_PHASES, ROUTE_PHASES
from armada_mcp.core.scoring import (
    ARM_WEIGHTS,
    DEFAULT_PROFILE,
    ROUTE_WEIGHTS,
    calculate_arm_score,
    calculate_corridor_score,
    calculate_emotional_score,
    calculate_novelty_score,
    clamp_score,
    get_profile,
)


def test_novelty_short_text_is_neutral():
    assert calculate_novelty_score("Hi there") == 0.5
    assert calculate_novelty_score("") == 0.5


def test_novelty_unique_words_scores_full():
    text = "Fire lyrics burning bright, energy taking flight, power in the night"
    assert calculate_novelty_score(text) == 1.0


def test_novelty_repetition_is_penalised_to_zero():
    assert calculate_novelty_score("la la la la la la la la") == 0.0


def test_corridor_score_counts_keywords():
    assert calculate_corridor_score("stay lit, slay and bet on it", "usa") == pytest.approx(0.9)
    assert calculate_corridor_score("nothing relevant here", "usa") == pytest.approx(0.3)


def test_corridor_score_unknown_corridor_is_neutral():
    assert calculate_corridor_score("anything", "atlantis") == 0.5
    assert calculate_corridor_score("anything", None) == 0.5


def test_emotional_score_balances_positive_and_negative():
    assert calculate_emotional_score("fire and energy", "hype") == pytest.approx(4 / 9 + 0.5)
    assert calculate_emotional_score("slow calm sleep", "hype") == pytest.approx(0.5 - 3 / 9)
    assert calculate_emotional_score("whatever", "unknown-state") == 0.5


def test_clamp_score():
    assert clamp_score(1.5) == 1.0
    assert clamp_score(-0.2) == 0.0
    assert clamp_score(0.42) == 0.42
    assert clamp_score(float("nan")) == 0.0
    assert clamp_score(float("inf")) == 0.0
    assert clamp_score("0.9") == 0.0
    assert clamp_score(None) == 0.0
    assert clamp_score(True) == 0.0


def test_arm_uses_only_present_keys():
    assert calculate_arm_score({"corridor": 1.0}) == 1.0
    assert calculate_arm_score({"corridor": 1.0, "novelty": 0.0}) == pytest.approx(0.25 / 0.45)
    assert calculate_arm_score({"corridor": None, "novelty": 0.6}) == pytest.approx(0.6)


def test_arm_non_finite_contribution_counts_as_zero():
    score = calculate_arm_score({"corridor": float("nan"), "novelty": 1.0})
    assert math.isfinite(score)
    assert score == pytest.approx(0.20 / 0.45)
    assert calculate_arm_score({"novelty": float("inf")}) == 0.0


def test_arm_empty_scores_is_zero():
    assert calculate_arm_score({}) == 0.0
    assert calculate_arm_score({"unrelated": 1.0}) == 0.0


def test_arm_route_weights_include_phase_level_arm():
    assert calculate_arm_score({"arm": 1.0, "shadow": 0.0}, ROUTE_WEIGHTS) == pytest.approx(0.30 / 0.35)
    assert calculate_arm_score({"arm": 1.0}, ARM_WEIGHTS) == 0.0


def test_profiles():
    assert get_profile(None) is DEFAULT_PROFILE
    assert get_profile("server").phases == KEY_PHASES
    assert get_profile("route").phases == ROUTE_PHASES
    assert get_profile("route").weights is ROUTE_WEIGHTS
    with pytest.raises(ValueError, match="Unknown scoring profile"):
        get_profile("nope")
