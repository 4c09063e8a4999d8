"""Corridor registry and emotional profiles.

Static, read-only lookup tables built once at import. Unknown ids are a
caller-visible condition: lookups return ``None`` and ``require_corridor``
raises ``ValidationInputError``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .errors import ValidationInputError
from .models import CorridorConfig, EmotionalProfile, Pacing


def _corridor(corridor_id: str, name: str, language: str, tone: str, key_phrases: list[str], forbidden: list[str], anchors: list[str]) -> CorridorConfig:
    return CorridorConfig(
        corridor_id=corridor_id,
        name=name,
        language=language,
        emotional_tone=tone,
        key_phrases=tuple(key_phrases),
        forbidden_words=frozenset(forbidden),
        arm_threshold=0.85,
        cultural_anchors=frozenset(anchors),
    )


_CORRIDOR_LIST = [
    _corridor(
        "jamaica", "Jamaica", "Jamaican Patois", "Bold and rhythmic, defiance with humor",
        ["mi", "yuh", "di", "inna", "yard", "bwoy", "gal", "pickney", "ungry", "wah"],
        ["me", "you", "the", "in", "is", "are"],
        ["zinc roof", "duppy", "lion", "chain-break", "reggae", "dancehall", "streets of Kingston", "sea", "sun"],
    ),
    _corridor(
        "stlucia", "St. Lucia", "Kwéyòl-English", "Celebratory yet introspective",
        ["mwen", "woy", "fete", "kay", "lajan", "piton", "annou", "si", "tjen", "dlo"],
        ["I", "party", "house", "money"],
        ["pitons", "carnival", "sea-salt", "plantation houses", "French colonial heritage", "jounen kweyol"],
    ),
    _corridor(
        "uganda", "Uganda", "Luganda-English", "Resilient and communal",
        ["ndi", "boda", "matoke", "muziki", "mabasa", "ekiboneza", "ensonga", "museveni", "kampala", "bulungi"],
        ["I am", "bike", "banana"],
        ["kampala streets", "boda boda", "matoke market", "traditional drums", "church community", "hospitality"],
    ),
    _corridor(
        "southafrica", "South Africa", "Mixed (Zulu/Xhosa/English)", "Unity in diversity, struggle and triumph",
        ["yebo", "mzansi", "amanzi", "ubuntu", "gqom", "tsotsi", "letho", "sies", "hai"],
        ["yes", "south africa", "water"],
        ["ubuntu philosophy", "township energy", "struggle history", "rainbow nation", "shosholoza", "soweto"],
    ),
    _corridor(
        "nigeria", "Nigeria", "Nigerian Pidgin-English", "Ambitious, vibrant, hustler mentality",
        ["wahala", "oga", "baba", "chop", "money", "billionaire", "naija", "jam", "palava", "toto"],
        ["sorry", "please", "thank you"],
        ["lagos streets", "afrobeats", "hustle culture", "oil wealth", "Nollywood", "marketplaces"],
    ),
    _corridor(
        "senegal", "Senegal", "Wolof-French", "Mbalax rhythm, spiritual depth",
        ["dara", "xam sa", "ngi", "tay", "jamm", "serigne", "marabout", "touba", "youssou"],
        ["hello", "goodbye"],
        ["mbalax rhythm", "sufi spirituality", "teranga hospitality", "dakar streets", "youssou ndour"],
    ),
    _corridor(
        "london", "London", "Multicultural London English", "Streetwise, diverse, grime-influenced",
        ["blud", "peng", "ends", "roadman", "mandem", "safe", "wha", "g", "braps", "p"],
        ["please", "thank you", "sorry"],
        ["east london", "grime scene", "multicultural melting pot", "tube", "estate life", "postcode wars"],
    ),
    _corridor(
        "paris", "Paris", "French with verlan", "Chic, revolutionary, poetic",
        ["meuf", "keuf", "mektoub", "bijour", "keum", "daron", "reuf", "frerot", "familia"],
        ["hello", "goodbye"],
        ["banlieue", "verlan slang", "chateau", "metro", "cafe culture", "revolutionary spirit"],
    ),
    _corridor(
        "seoul", "Seoul", "Korean with Konglish", "K-pop energy, competitive, passionate",
        ["fighting", "oppa", "sunbaenim", "aegyo", "dope", "sasaeng", "bias", "stan", "fancam"],
        ["hello", "goodbye"],
        ["hongdae", "k-pop industry", "han river", "pc bang", "skincare", "instant noodles"],
    ),
    _corridor(
        "tokyo", "Tokyo", "Japanese with English borrowings", "Hyper-modern, otaku culture, detail-obsessed",
        ["sugoi", "kawaii", "yamete", "gambatte", "senpai", "kouhai", "baka", "arigatou", "yatta"],
        ["please", "thank you"],
        ["shibuya crossing", "akihabara", "harajuku", "train stations", "convenience stores", "anime culture"],
    ),
    _corridor(
        "mumbai", "Mumbai", "Hinglish", "Film-star glamour, hustle, spiritual contrast",
        ["bhai", "yaar", "paisa", "dil", "zonak", "masti", "jhol", "tapri", "chai", "poha"],
        ["please", "thank you", "excuse me"],
        ["bollywood", "dharavi", "marine drive", "vada pav", "local train", "film city", "ganesh chaturthi"],
    ),
    _corridor(
        "usa", "USA", "American English", "Confident, diverse, aspirational",
        ["lit", "slay", "no cap", "bet", "fr", "tea", "vibe", "goated", "W", "ratio"],
        ["please", "thank you", "sorry"],
        ["highway", "suburbs", "hip-hop culture", "social media", "entrepreneurship", "american dream"],
    ),
    _corridor(
        "colombia", "Colombia", "Colombian Spanish-English", "Warm, rhythmic, proud",
        ["parce", "uana", "chimba", "dar la pela", "rumba", "parcero", "la caneca", "farra"],
        ["please", "thank you", "excuse me"],
        ["salsa", "coffee region", "cartagena", "bogota", "paisa culture", "football passion"],
    ),
]

CORRIDORS: Mapping[str, CorridorConfig] = MappingProxyType({c.corridor_id: c for c in _CORRIDOR_LIST})


# Compound pacings from the delivery guide ("medium-fast", "variable", ...)
# are folded into the nearest of slow/moderate/fast.
_EMOTION_ROWS = [
    ("hype", "4-8 bursts", Pacing.FAST, "short/clipped", ["fire", "body", "energy surges", "adrenaline"]),
    ("swagger", "5-9 deliberate", Pacing.MODERATE, "rich/emphasized", ["confidence", "style", "dominance", "cool"]),
    ("grief", "8-12 sustained pours", Pacing.SLOW, "long/open", ["night", "water (tears)", "ancestors", "loss"]),
    ("romantic", "6-10 flowing", Pacing.MODERATE, "soft/musical", ["love", "heart", "moonlight", "passion"]),
    ("rage", "5-9 punches", Pacing.FAST, "hard/sharp", ["anger", "fight", "destruction", "revenge"]),
    ("defiance", "6-10 strong statements", Pacing.FAST, "mixed", ["stand", "rise", "unbreakable", "resistance"]),
    ("spiritual", "7-11 transcendent", Pacing.SLOW, "open/expansive", ["divine", "ancestors", "cosmic", "prayer"]),
    ("joy", "5-9 celebrations", Pacing.FAST, "bright/open", ["celebration", "dance", "light", "happiness"]),
    ("pride", "6-10 declarations", Pacing.MODERATE, "full/strong", ["heritage", "triumph", "identity", "honor"]),
    ("resilience", "7-12 endurance", Pacing.MODERATE, "sustained", ["survival", "strength", "persistence", "growth"]),
    ("melancholy", "8-12 reflective", Pacing.SLOW, "warm/sad", ["nostalgia", "what if", "memory", "soft pain"]),
    ("nostalgia", "7-11 memory-focused", Pacing.MODERATE, "warm/faded", ["past", "memories", "childhood", "golden days"]),
    ("euphoria", "4-8 peaks", Pacing.FAST, "bright/expansive", ["peak", "rush", "pure joy", "transcendence"]),
    ("sorrow", "8-12 deep", Pacing.SLOW, "dark/hollow", ["pain", "void", "absence", "grief"]),
    ("anger", "5-9 intense", Pacing.FAST, "hard/staccato", ["rage", "injustice", "burst", "heat"]),
    ("fear", "6-10 uncertain", Pacing.MODERATE, "tight/restricted", ["darkness", "uncertainty", "threat", "vulnerability"]),
    ("tenderness", "6-10 gentle", Pacing.SLOW, "soft/round", ["touch", "care", "warmth", "softness"]),
    ("excitement", "4-8 rapid", Pacing.FAST, "short/bright", ["anticipation", "energy", "thrill", "rush"]),
    ("relaxation", "7-11 calm", Pacing.SLOW, "smooth/flowing", ["peace", "ease", "comfort", "serenity"]),
    ("energy", "4-8 dynamic", Pacing.FAST, "powerful/varied", ["power", "movement", "drive", "vitality"]),
    ("contemplation", "8-12 meditative", Pacing.SLOW, "open/reflective", ["thought", "depth", "question", "insight"]),
    ("triumph", "5-9 victorious", Pacing.FAST, "full/announcing", ["victory", "conquest", "glory", "success"]),
    ("introspection", "8-12 inner-focused", Pacing.SLOW, "intimate/deep", ["self", "inner world", "reflection", "identity"]),
    ("rebellion", "5-9 challenging", Pacing.FAST, "sharp/declaring", ["against", "change", "authority", "freedom"]),
    ("serenity", "7-11 peaceful", Pacing.SLOW, "pure/clear", ["tranquility", "balance", "harmony", "peace"]),
    ("vibrancy", "5-9 alive", Pacing.MODERATE, "colorful/rich", ["color", "life", "richness", "vitality"]),
    ("darkness", "6-10 shadow", Pacing.SLOW, "deep/obscure", ["shadow", "void", "mystery", "depth"]),
    ("passion", "5-9 intense", Pacing.FAST, "burning/strong", ["fire", "desire", "intensity", "commitment"]),
    ("somberness", "8-12 subdued", Pacing.SLOW, "muted/quiet", ["gloom", "reverence", "solemnity", "reflection"]),
    ("suspense", "6-10 tension", Pacing.MODERATE, "tight/anticipating", ["tension", "unknown", "build", "anticipation"]),
]

EMOTIONAL_PROFILES: Mapping[str, EmotionalProfile] = MappingProxyType({
    state: EmotionalProfile(state_id=state, syllable_pattern=pattern, pacing=pacing, vowels=vowels, fields=frozenset(fields))
    for state, pattern, pacing, vowels, fields in _EMOTION_ROWS
})


def list_corridors() -> list[str]:
    return list(CORRIDORS)


def get_corridor(corridor_id: Optional[str]) -> Optional[CorridorConfig]:
    if not corridor_id:
        return None
    return CORRIDORS.get(corridor_id)


def require_corridor(corridor_id: Optional[str]) -> CorridorConfig:
    """Return the corridor config or raise ``ValidationInputError``."""
    if not corridor_id or not isinstance(corridor_id, str):
        raise ValidationInputError("Corridor parameter is required and must be a string")
    config = CORRIDORS.get(corridor_id)
    if config is None:
        raise ValidationInputError(f"Invalid corridor: {corridor_id}. Valid options: {', '.join(CORRIDORS)}")
    return config


def get_emotional_profile(state_id: Optional[str]) -> Optional[EmotionalProfile]:
    if not state_id:
        return None
    return EMOTIONAL_PROFILES.get(state_id.lower())
