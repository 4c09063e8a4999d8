from __future__ import annotations

import asyncio

from armada_mcp.core.checks import PHASE_CHECKS, run_phase
from armada_mcp.core.models import FlagType, PhaseOutcome, Severity


def run(phase_id, ctx) -> PhaseOutcome:
    return asyncio.run(run_phase(phase_id, ctx))


def test_phrase_matrix_unknown_corridor_is_validation_failure(make_context):
    outcome = run(6, make_context("Test content here", corridor="not_a_real_corridor"))
    assert not outcome.ok
    assert len(outcome.flags) == 1
    flag = outcome.flags[0]
    assert flag.type == FlagType.VALIDATION
    assert flag.severity == Severity.CRITICAL
    assert "not_a_real_corridor" in flag.message


def test_strict_unknown_corridor_is_validation_failure(make_context):
    outcome = run(8, make_context("Test content here", corridor="nowhere"))
    assert not outcome.ok
    assert outcome.flags[0].type == FlagType.VALIDATION


def test_novelty_short_content_fails(make_context):
    outcome = run(1, make_context("Hi there"))
    assert not outcome.ok
    assert outcome.scores == {"novelty": 0.5}
    assert outcome.flags[0].type == FlagType.NOVELTY


def test_forbidden_check_returns_cleaned_line(make_context):
    outcome = run(2, make_context("this is shit and it keeps going for a long long while"))
    assert not outcome.ok
    assert "shit" not in outcome.line
    assert outcome.modifications == ["Forbidden terms redacted"]


def test_corridor_check(make_context):
    passing = run(3, make_context("stay lit, slay and bet on the vibe"))
    assert passing.ok
    assert passing.scores["corridor"] == 1.0

    failing = run(3, make_context("nothing relevant here"))
    assert not failing.ok
    assert failing.flags[0].severity == Severity.HIGH


def test_mutation_check_reports_shadow(make_context):
    outcome = run(4, make_context("go go go go go go go go go go"))
    assert not outcome.ok
    assert outcome.scores["shadow"] == 0.1


def test_emotional_defaults_to_hype(make_context):
    outcome = run(5, make_context("fire energy power everywhere"))
    assert outcome.ok
    assert outcome.scores["mythos"] == 0.6


def test_emotional_falls_back_to_profile_fields(make_context):
    outcome = run(5, make_context("a story of heritage and honor", emotional_state="pride"))
    assert outcome.ok
    assert outcome.scores["mythos"] == 0.5


def test_governance_check(make_context):
    outcome = run(7, make_context("the terrorist came at dawn"))
    assert not outcome.ok
    assert outcome.flags[0].type == FlagType.GOVERNANCE
    assert outcome.flags[0].severity == Severity.CRITICAL
    assert run(7, make_context("a calm morning")).ok


def test_strict_check_flags_corridor_words(make_context):
    outcome = run(8, make_context("please pass the salt"))
    assert not outcome.ok
    assert outcome.score == 0.3
    assert outcome.flags[0].severity == Severity.HIGH


def test_advanced_phases(make_context):
    assert run(23, make_context("lorem ipsum dolor")).scores == {"shadow": 0.1}
    economic = run(24, make_context("plain words"))
    assert economic.ok and economic.score == 0.5 and economic.scores == {"economic": 0.0}
    assert run(25, make_context('she said "rise up"')).scores == {"mythos": 0.85}
    assert run(26, make_context("we dance tonight")).score == 0.9
    assert run(27, make_context("nothing relevant here")).scores == {"corridor": 0.3}


def test_unregistered_phase_is_neutral_pass(make_context):
    outcome = run(29, make_context("anything"))
    assert outcome.ok
    assert outcome.score == 1.0
    assert outcome.scores == {}


def test_async_check_is_awaited_and_scores_sanitised(make_context, monkeypatch):
    async def custom(ctx):
        await asyncio.sleep(0)
        return PhaseOutcome(ok=True, score=0.4, line=ctx.content, scores={"novelty": float("nan"), "economic": 2.0})

    monkeypatch.setitem(PHASE_CHECKS, 9, custom)
    outcome = run(9, make_context("anything"))
    assert outcome.score == 0.4
    assert outcome.scores == {"novelty": 0.0, "economic": 1.0}


def test_non_finite_phase_score_becomes_zero(make_context, monkeypatch):
    def custom(ctx):
        return PhaseOutcome(ok=True, score=float("nan"), line=ctx.content, scores={"novelty": float("inf")})

    monkeypatch.setitem(PHASE_CHECKS, 9, custom)
    outcome = run(9, make_context("anything"))
    assert outcome.ok
    assert outcome.score == 0.0
    assert outcome.scores == {"novelty": 0.0}

    monkeypatch.setitem(PHASE_CHECKS, 9, lambda ctx: PhaseOutcome(ok=True, score=-3.0, line=ctx.content))
    assert run(9, make_context("anything")).score == 0.0
    monkeypatch.setitem(PHASE_CHECKS, 9, lambda ctx: PhaseOutcome(ok=True, score=7.5, line=ctx.content))
    assert run(9, make_context("anything")).score == 1.0
