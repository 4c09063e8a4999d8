"""Phase checks — one concrete heuristic per implemented phase id.

Checks are registered in ``PHASE_CHECKS`` with the ``phase_check`` decorator.
A check takes a ``PhaseContext`` and returns a ``PhaseOutcome``; it may be a
coroutine function when it needs to suspend. Ids without a registered check
(catalogued or not) run as a neutral pass.
"""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Union

from .corridors import get_corridor, get_emotional_profile, require_corridor
from .errors import ValidationInputError
from .forbidden import ForbiddenScanner, word_pattern
from .models import FlagType, PhaseOutcome, Severity, ValidationFlag
from .scoring import calculate_corridor_score, calculate_novelty_score, clamp_score

logger = logging.getLogger(__name__)

NOVELTY_PASS = 0.7
CORRIDOR_PASS = 0.8
MUTATION_PASS = 0.3
EMOTIONAL_PASS = 0.3
PHRASE_MATRIX_PASS = 0.2

EMOTIONAL_KEYWORDS: dict[str, tuple[str, ...]] = {
    "hype": ("fire", "energy", "power", "rise", "dominate"),
    "swagger": ("king", "boss", "top", "best", "legend"),
    "grief": ("lost", "tears", "pain", "miss", "gone"),
    "romantic": ("love", "heart", "baby", "kiss", "together"),
    "rage": ("fight", "war", "destroy", "hate", "anger"),
    "defiance": ("stand", "rise", "unbreakable", "resist", "fight"),
    "spiritual": ("god", "faith", "pray", "soul", "divine"),
    "joy": ("happy", "celebrate", "dance", "smile", "light"),
}
DEFAULT_EMOTION = "hype"

GOVERNANCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(terrorist|massacre|genocide)\b", re.IGNORECASE),
    re.compile(r"\b(child.*abuse|pedophile)\b", re.IGNORECASE),
    re.compile(r"\b(weapon.*manufacture|explosive.*recipe)\b", re.IGNORECASE),
)

SHADOW_PATTERN = re.compile(r"\b(lorem ipsum|test content|dummy text)\b", re.IGNORECASE)
ENGAGEMENT_KEYWORDS = ("viral", "trending", "hit", "banger", "classic")
QUOTATION_PATTERN = re.compile(r"[\"']([^\"']+)[\"']")
TIME_REFERENCE_PATTERN = re.compile(r"\b(today|tonight|yesterday|forever|always)\b", re.IGNORECASE)


@dataclass
class PhaseContext:
    """Inputs shared by every check of one validation request."""

    content: str
    corridor: Optional[str] = None
    emotional_state: Optional[str] = None
    scanner: ForbiddenScanner = field(default_factory=ForbiddenScanner)


PhaseCheck = Callable[[PhaseContext], Union[PhaseOutcome, Awaitable[PhaseOutcome]]]

PHASE_CHECKS: dict[int, PhaseCheck] = {}


def phase_check(phase_id: int) -> Callable[[PhaseCheck], PhaseCheck]:
    """Register ``fn`` as the check for ``phase_id``."""

    def decorator(fn: PhaseCheck) -> PhaseCheck:
        PHASE_CHECKS[phase_id] = fn
        return fn

    return decorator


def neutral_outcome(content: str) -> PhaseOutcome:
    return PhaseOutcome(ok=True, score=1.0, line=content)


def _validation_failure(content: str, message: str) -> PhaseOutcome:
    return PhaseOutcome(
        ok=False,
        score=0.0,
        line=content,
        flags=[ValidationFlag(severity=Severity.CRITICAL, type=FlagType.VALIDATION, message=message)],
        error=message,
    )


async def run_phase(phase_id: int, context: PhaseContext) -> PhaseOutcome:
    """Run the check registered for ``phase_id`` and sanitise its scores."""
    check = PHASE_CHECKS.get(phase_id)
    if check is None:
        return neutral_outcome(context.content)

    outcome = check(context)
    if inspect.isawaitable(outcome):
        outcome = await outcome

    return outcome.model_copy(update={
        "score": clamp_score(outcome.score),
        "scores": {k: clamp_score(v) for k, v in outcome.scores.items()},
    })


# ─── Core phases ──────────────────────────────────────────────────────────────


@phase_check(1)
def check_novelty(ctx: PhaseContext) -> PhaseOutcome:
    novelty = calculate_novelty_score(ctx.content)
    ok = novelty >= NOVELTY_PASS
    flags = [] if ok else [ValidationFlag(
        severity=Severity.MEDIUM,
        type=FlagType.NOVELTY,
        message="Content may lack sufficient originality",
    )]
    return PhaseOutcome(
        ok=ok,
        score=novelty,
        line=ctx.content,
        scores={"novelty": novelty},
        flags=flags,
        error=None if ok else f"Novelty score {novelty:.2f} below {NOVELTY_PASS}",
    )


@phase_check(2)
def check_forbidden(ctx: PhaseContext) -> PhaseOutcome:
    result = ctx.scanner.scan(ctx.content, ctx.corridor)
    modifications = ["Forbidden terms redacted"] if result.cleaned_content is not None else None
    return PhaseOutcome(
        ok=result.clean,
        score=1.0 if result.clean else 0.5,
        line=result.cleaned_content or ctx.content,
        flags=result.flags,
        modifications=modifications,
        error=None if result.clean else "Universal forbidden content detected",
    )


@phase_check(3)
def check_corridor(ctx: PhaseContext) -> PhaseOutcome:
    """Corridor authenticity; also backs the continental engine (phase 27)."""
    score = calculate_corridor_score(ctx.content, ctx.corridor)
    ok = score >= CORRIDOR_PASS
    flags = [] if ok else [ValidationFlag(
        severity=Severity.HIGH,
        type=FlagType.CORRIDOR,
        message=f"Content may not authentically represent {ctx.corridor} corridor",
    )]
    return PhaseOutcome(
        ok=ok,
        score=score,
        line=ctx.content,
        scores={"corridor": score},
        flags=flags,
        error=None if ok else f"Corridor score {score:.2f} below {CORRIDOR_PASS}",
    )


@phase_check(4)
def check_mutation(ctx: PhaseContext) -> PhaseOutcome:
    words = ctx.content.lower().split()
    ratio = len(set(words)) / len(words) if words else 0.0
    ok = ratio >= MUTATION_PASS
    flags = [] if ok else [ValidationFlag(
        severity=Severity.MEDIUM,
        type=FlagType.MUTATION,
        message="High word repetition detected - possible pattern mutation",
    )]
    return PhaseOutcome(ok=ok, score=ratio, line=ctx.content, scores={"shadow": ratio}, flags=flags)


@phase_check(5)
def check_emotional(ctx: PhaseContext) -> PhaseOutcome:
    state = (ctx.emotional_state or DEFAULT_EMOTION).lower()
    keywords = EMOTIONAL_KEYWORDS.get(state)
    if keywords is None:
        profile = get_emotional_profile(state)
        keywords = tuple(sorted(profile.fields)) if profile else EMOTIONAL_KEYWORDS[DEFAULT_EMOTION]

    lowered = ctx.content.lower()
    found = [kw for kw in keywords if kw in lowered]
    score = len(found) / len(keywords)
    ok = score >= EMOTIONAL_PASS
    flags = [] if ok else [ValidationFlag(
        severity=Severity.LOW,
        type=FlagType.EMOTIONAL,
        message=f"Content may not align with {state} emotional state",
    )]
    return PhaseOutcome(ok=ok, score=score, line=ctx.content, scores={"mythos": score}, flags=flags)


@phase_check(6)
def check_phrase_matrix(ctx: PhaseContext) -> PhaseOutcome:
    try:
        config = require_corridor(ctx.corridor)
    except ValidationInputError as exc:
        return _validation_failure(ctx.content, exc.message)

    lowered = ctx.content.lower()
    found = [p for p in config.key_phrases if p.lower() in lowered]
    score = len(found) / len(config.key_phrases) if config.key_phrases else 1.0
    ok = score >= PHRASE_MATRIX_PASS
    flags = [] if ok else [ValidationFlag(
        severity=Severity.MEDIUM,
        type=FlagType.CORRIDOR,
        message=f"Low usage of {ctx.corridor} key phrases",
    )]
    return PhaseOutcome(ok=ok, score=score, line=ctx.content, scores={"continental": score}, flags=flags)


@phase_check(7)
def check_governance(ctx: PhaseContext) -> PhaseOutcome:
    """Fixed sensitive patterns; corridor-independent."""
    flags = [
        ValidationFlag(severity=Severity.CRITICAL, type=FlagType.GOVERNANCE, message="Content violates governance policies")
        for pattern in GOVERNANCE_PATTERNS
        if pattern.search(ctx.content)
    ]
    ok = not flags
    return PhaseOutcome(
        ok=ok,
        score=1.0 if ok else 0.0,
        line=ctx.content,
        flags=flags,
        error=None if ok else "Content violates governance policies",
    )


@phase_check(8)
def check_strict(ctx: PhaseContext) -> PhaseOutcome:
    try:
        config = require_corridor(ctx.corridor)
    except ValidationInputError as exc:
        return _validation_failure(ctx.content, exc.message)

    found = [w for w in sorted(config.forbidden_words) if word_pattern(w).search(ctx.content)]
    ok = not found
    flags = [] if ok else [ValidationFlag(
        severity=Severity.HIGH,
        type=FlagType.FORBIDDEN,
        message=f"Forbidden words for {ctx.corridor}: {', '.join(found)}",
    )]
    return PhaseOutcome(ok=ok, score=1.0 if ok else 0.3, line=ctx.content, flags=flags)


# ─── Advanced phases ──────────────────────────────────────────────────────────


@phase_check(23)
def check_shadow(ctx: PhaseContext) -> PhaseOutcome:
    placeholder = bool(SHADOW_PATTERN.search(ctx.content))
    score = 0.1 if placeholder else 0.95
    flags = [ValidationFlag(
        severity=Severity.MEDIUM,
        type=FlagType.MUTATION,
        message="Shadow/placeholder content detected",
    )] if placeholder else []
    return PhaseOutcome(ok=not placeholder, score=score, line=ctx.content, scores={"shadow": score}, flags=flags)


@phase_check(24)
def check_economic(ctx: PhaseContext) -> PhaseOutcome:
    lowered = ctx.content.lower()
    found = [kw for kw in ENGAGEMENT_KEYWORDS if kw in lowered]
    score = len(found) / len(ENGAGEMENT_KEYWORDS)
    return PhaseOutcome(ok=True, score=max(score, 0.5), line=ctx.content, scores={"economic": score})


@phase_check(25)
def check_perspectives(ctx: PhaseContext) -> PhaseOutcome:
    score = 0.85 if QUOTATION_PATTERN.search(ctx.content) else 0.7
    return PhaseOutcome(ok=True, score=score, line=ctx.content, scores={"mythos": score})


@phase_check(26)
def check_temporal(ctx: PhaseContext) -> PhaseOutcome:
    score = 0.9 if TIME_REFERENCE_PATTERN.search(ctx.content) else 0.7
    return PhaseOutcome(ok=True, score=score, line=ctx.content)


@phase_check(27)
def check_continental(ctx: PhaseContext) -> PhaseOutcome:
    if get_corridor(ctx.corridor) is None:
        logger.debug("Continental engine running without corridor data for %r", ctx.corridor)
    return check_corridor(ctx)
