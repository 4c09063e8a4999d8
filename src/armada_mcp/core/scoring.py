"""ARM scoring engine.

Pure functions that turn text into sub-scores in [0, 1] and fold sub-scores
into the weighted composite "ARM" score. Everything here is deterministic
keyword/regex heuristics; there is no model behind it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .phases import KEY_PHASES, ROUTE_PHASES

logger = logging.getLogger(__name__)

ARM_THRESHOLD = 0.85
NEUTRAL_SCORE = 0.5
MIN_NOVELTY_TOKENS = 5

# Composite weights used by the connection server.
ARM_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "corridor": 0.25,
    "novelty": 0.20,
    "mythos": 0.15,
    "shadow": 0.15,
    "economic": 0.10,
    "continental": 0.15,
})

# Composite weights of the request/response route. Includes a phase-level
# "arm" input and favours corridor over shadow/continental.
ROUTE_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "arm": 0.30,
    "corridor": 0.25,
    "novelty": 0.15,
    "economic": 0.10,
    "mythos": 0.10,
    "shadow": 0.05,
    "continental": 0.05,
})

AUTHENTICITY_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "jamaica": ("reggae", "dancehall", "yard", "bwoy", "gal", "mi", "yuh", "di"),
    "stlucia": ("kweyol", "piton", "fete", "annou", "mwen"),
    "uganda": ("kampala", "matoke", "boda", "muziki", "bulungi"),
    "southafrica": ("ubuntu", "mzansi", "amanzi", "yebo", "township"),
    "nigeria": ("naija", "lagos", "wahala", "chop", "oga"),
    "senegal": ("dakar", "mbalax", "teranga", "serigne", "youssou"),
    "london": ("blud", "ends", "roadman", "peng", "mandem"),
    "paris": ("verlan", "meuf", "keuf", "banlieue", "chateau"),
    "seoul": ("oppa", "aegyo", "hongdae", "k-pop", "fighting"),
    "tokyo": ("sugoi", "kawaii", "senpai", "arigatou", "gambatte"),
    "mumbai": ("bhai", "yaar", "bollywood", "chai", "paisa"),
    "usa": ("lit", "slay", "no cap", "bet", "vibe"),
    "colombia": ("salsa", "parce", "uana", "rumba", "farra"),
})

# state -> (positive keywords, negative keywords)
EMOTIONAL_PATTERNS: Mapping[str, tuple[tuple[str, ...], tuple[str, ...]]] = MappingProxyType({
    "hype": (("fire", "energy", "power", "rise", "dominate", "boost"), ("slow", "calm", "sleep")),
    "swagger": (("king", "boss", "top", "best", "legend", "royal"), ("fail", "lose", "weak")),
    "grief": (("lost", "tears", "pain", "miss", "gone", "alone"), ("happy", "joy", "celebrate")),
    "romantic": (("love", "heart", "baby", "kiss", "together", "forever"), ("hate", "break", "alone")),
    "rage": (("fight", "war", "destroy", "hate", "anger", "fury"), ("peace", "calm", "forgive")),
    "defiance": (("stand", "rise", "unbreakable", "resist", "fight", "strong"), ("surrender", "give up", "weak")),
    "spiritual": (("god", "faith", "pray", "soul", "divine", "heaven"), ("doubt", "sin", "hell")),
    "joy": (("happy", "celebrate", "dance", "smile", "light", "fun"), ("sad", "cry", "pain")),
})


@dataclass(frozen=True)
class ScoringProfile:
    """A default phase list bound to the composite weights used to score it."""

    name: str
    phases: tuple[int, ...]
    weights: Mapping[str, float]


SCORING_PROFILES: Mapping[str, ScoringProfile] = MappingProxyType({
    "server": ScoringProfile("server", KEY_PHASES, ARM_WEIGHTS),
    "route": ScoringProfile("route", ROUTE_PHASES, ROUTE_WEIGHTS),
})
DEFAULT_PROFILE = SCORING_PROFILES["server"]


def get_profile(name: Optional[str]) -> ScoringProfile:
    """Look up a scoring profile by name; ``None`` means the default."""
    if name is None:
        return DEFAULT_PROFILE
    try:
        return SCORING_PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown scoring profile: {name}. Valid options: {', '.join(SCORING_PROFILES)}") from None


def clamp_score(value: Any) -> float:
    """Coerce to a float in [0, 1]. Non-numeric and non-finite values become 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _tokens(text: str) -> list[str]:
    return text.lower().split()


def calculate_novelty_score(text: str) -> float:
    """Score lexical originality.

    Lexical diversity (unique tokens / tokens) minus a repetition penalty.
    A 4-token window is repeated when it reappears in the token stream that
    starts one token later; the penalty is ``min(repeats / 10, 0.3)``.
    Fewer than five tokens is too short to judge and scores a neutral 0.5.
    """
    words = _tokens(text)
    if len(words) < MIN_NOVELTY_TOKENS:
        return NEUTRAL_SCORE

    diversity = len(set(words)) / len(words)

    repeated = 0
    for i in range(len(words) - 3):
        phrase = " ".join(words[i:i + 4])
        remaining = " ".join(words[i + 1:])
        if phrase in remaining:
            repeated += 1

    penalty = min(repeated / 10, 0.3)
    return clamp_score(max(diversity - penalty, 0.0))


def calculate_corridor_score(text: str, corridor: Optional[str]) -> float:
    """Score corridor authenticity from the share of corridor keywords present.

    ``min(matched / total + 0.3, 1.0)``; 0.5 when the corridor has no list.
    """
    patterns = AUTHENTICITY_KEYWORDS.get(corridor or "", ())
    if not patterns:
        return NEUTRAL_SCORE

    lowered = text.lower()
    found = [p for p in patterns if p.lower() in lowered]
    return clamp_score(min(len(found) / len(patterns) + 0.3, 1.0))


def calculate_emotional_score(text: str, emotional_state: Optional[str]) -> float:
    """Balance of positive against negative keywords for an emotional state."""
    patterns = EMOTIONAL_PATTERNS.get((emotional_state or "").lower())
    if not patterns:
        return NEUTRAL_SCORE

    positive, negative = patterns
    lowered = text.lower()
    positive_count = sum(1 for w in positive if w in lowered)
    negative_count = sum(1 for w in negative if w in lowered)
    total = len(positive) + len(negative)
    return clamp_score((positive_count * 2 - negative_count) / total + 0.5)


def calculate_arm_score(scores: Mapping[str, Any], weights: Mapping[str, float] = ARM_WEIGHTS) -> float:
    """Weighted average over the weight keys present in ``scores``.

    Missing (or ``None``) keys drop out of both numerator and denominator.
    Each contribution is sanitised, so a NaN under one key counts as 0 for
    that key instead of poisoning the whole score.
    """
    total = 0.0
    total_weight = 0.0
    for key, weight in weights.items():
        value = scores.get(key)
        if value is None:
            continue
        total += clamp_score(value) * weight
        total_weight += weight

    if total_weight <= 0:
        return 0.0
    return clamp_score(total / total_weight)
