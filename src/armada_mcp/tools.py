"""ARMADA Validation MCP Server.

FastMCP server exposing the validation pipeline as read-only tools. Runs the
same orchestrator as the WebSocket server, in-process.
Run: armada-mcp
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .core.corridors import CORRIDORS
from .core.models import ValidationRequest
from .core.phases import list_phases
from .core.scoring import ARM_THRESHOLD, SCORING_PROFILES
from .orchestrator import PhaseCompleted, ValidationComplete, ValidationOrchestrator
from .settings import Settings, configure_logging
from .songs import generate_song_structure

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)

orchestrator = ValidationOrchestrator()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Configure logging and pick the scoring profile from the environment."""
    global orchestrator
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    orchestrator = ValidationOrchestrator(profile=settings.scoring_profile)
    logger.info("ARMADA tools ready (profile=%s)", settings.scoring_profile)
    yield


mcp = FastMCP(
    "ARMADA Validation",
    instructions="Validate lyrics and text against cultural corridors: novelty, forbidden words, corridor authenticity, emotional fit and an aggregate ARM score.",
    lifespan=lifespan,
)


# ─── Tool 1: Full validation ─────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def armada_validate(
    content: str,
    corridor: str,
    emotional_state: Optional[str] = None,
    run_phases: Optional[list[int]] = None,
    profile: Optional[str] = None,
) -> dict:
    """Run the multi-phase validation pipeline on a piece of text.

    Args:
        content: Text to validate (1 to 100000 characters).
        corridor: Corridor id, e.g. 'nigeria', 'london', 'seoul'. See armada_corridors.
        emotional_state: Optional target emotion, e.g. 'hype', 'grief', 'romantic'.
        run_phases: Optional explicit phase ids. Default is the profile's key phases.
        profile: 'server' (default) or 'route' scoring profile.
    """
    request = ValidationRequest.from_params({
        "content": content,
        "corridor": corridor,
        "emotionalState": emotional_state,
        "runPhases": run_phases,
    })

    trace = []
    result = None
    async for event in orchestrator.stream(request, profile):
        if isinstance(event, PhaseCompleted):
            trace.append({"phase": event.phase, "name": event.result.name, "status": event.result.status.value})
        elif isinstance(event, ValidationComplete):
            result = event.result

    arm = result.scores.arm or 0.0
    verdict = "valid" if result.is_valid else "invalid"
    summary = f"ARM {arm:.2f} (threshold {ARM_THRESHOLD}) — {verdict}; {len(trace)} phase(s) run, {len(result.flags)} flag(s)."
    if result.error:
        summary += f" {result.error}."

    return {
        "title": "ARMADA Validation",
        "corridor": corridor,
        "result": result.to_wire(),
        "phases": trace,
        "summary": summary,
    }


# ─── Tool 2: Single line ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def armada_validate_line(line: str, corridor: str, emotional_state: Optional[str] = None) -> dict:
    """Quick check of one line: forbidden words plus corridor and novelty scores.

    Args:
        line: The line of text to check.
        corridor: Corridor id. Unknown ids are rejected.
        emotional_state: Optional emotion; adds an 'emotional' score.
    """
    result = orchestrator.validate_line(line, corridor, emotional_state)
    return {
        "title": "Line Check",
        "result": result.to_wire(),
        "summary": f"{len(result.flags)} flag(s); corridor {result.scores['corridor']:.2f}, novelty {result.scores['novelty']:.2f}.",
    }


# ─── Tool 3: Corridors ───────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def armada_corridors() -> dict:
    """List the supported corridors with their language, tone and key phrases."""
    corridors = [
        {
            "corridor_id": c.corridor_id,
            "name": c.name,
            "language": c.language,
            "emotional_tone": c.emotional_tone,
            "key_phrases": list(c.key_phrases),
            "forbidden_words": sorted(c.forbidden_words),
            "arm_threshold": c.arm_threshold,
        }
        for c in CORRIDORS.values()
    ]
    return {"title": "Corridors", "total": len(corridors), "corridors": corridors}


# ─── Tool 4: Phase catalog ───────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def armada_phases() -> dict:
    """The phase catalog and which phases each scoring profile runs by default."""
    return {
        "title": "Validation Phases",
        "phases": [p.to_wire() for p in list_phases()],
        "profiles": {
            name: {"phases": list(p.phases), "weights": dict(p.weights)}
            for name, p in SCORING_PROFILES.items()
        },
    }


# ─── Tool 5: Song skeleton ───────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def armada_generate_song(
    corridor: str,
    emotional_state: str,
    bpm: Optional[int] = None,
    genre: Optional[str] = None,
) -> dict:
    """Template song structure (intro, verse, chorus) for a corridor and emotion.

    Args:
        corridor: Corridor id.
        emotional_state: Emotion id; sets the verse delivery.
        bpm: Optional tempo.
        genre: Optional genre label.
    """
    song = generate_song_structure(corridor, emotional_state, bpm, genre)
    return {"title": song.title, "song": song.to_wire()}


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
