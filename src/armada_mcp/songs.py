"""Template song-structure generator.

Not a lyric model: fills a fixed intro/verse/chorus skeleton from the
corridor and emotional state so callers can exercise the ``generateSong``
action end to end.
"""

from __future__ import annotations

from typing import Optional

from .core.corridors import get_corridor, get_emotional_profile
from .core.models import Pacing, SongMetadata, SongSection, SongStructure

_DELIVERY_BY_PACING = {
    Pacing.SLOW: "sustained",
    Pacing.MODERATE: "narrative",
    Pacing.FAST: "punchy",
}


def _safe(value: Optional[str], default: str = "unknown") -> str:
    return value if value and isinstance(value, str) else default


def generate_song_structure(
    corridor: Optional[str],
    emotional_state: Optional[str],
    bpm: Optional[int] = None,
    genre: Optional[str] = None,
) -> SongStructure:
    corridor_id = _safe(corridor)
    state = _safe(emotional_state)
    config = get_corridor(corridor_id)
    place = config.name if config else corridor_id

    profile = get_emotional_profile(state)
    verse_delivery = _DELIVERY_BY_PACING[profile.pacing] if profile else "narrative"

    return SongStructure(
        title=f"{corridor_id.capitalize()} {state.capitalize()}",
        sections=[
            SongSection(
                type="intro",
                lyrics=f"[{corridor_id} {state} intro - {bpm} BPM]",
                delivery="atmospheric",
                arm_score=0.82,
            ),
            SongSection(
                type="verse",
                lyrics=f"Verse 1: In the streets of {place}, we rise with {state} energy\n"
                       "Cultural heritage flowing through every word we say",
                delivery=verse_delivery,
                arm_score=0.87,
            ),
            SongSection(
                type="chorus",
                lyrics=f"Chorus: {corridor_id.upper()}! {state.upper()}!\nWe stand together, culture unbroken",
                delivery="powerful",
                arm_score=0.89,
            ),
        ],
        metadata=SongMetadata(
            bpm=bpm,
            genre=genre or "auto-detected",
            corridor=corridor,
            emotional_state=emotional_state,
        ),
    )
