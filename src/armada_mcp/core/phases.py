"""Phase catalog — ordered metadata for the 31 validation phases.

Ids are stable and sparse by tier: 1-8 core, 9-22 extended, 23-31 advanced.
Only some ids have a concrete check (see ``core.checks``); the rest run as
neutral passes.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .models import PhaseDescriptor

_PHASE_ROWS = [
    # Core
    (1, "Novelty Check", "Ensure content originality", True),
    (2, "Forbidden Scanner", "Detect prohibited content", True),
    (3, "Corridor Validator", "Verify cultural authenticity", True),
    (4, "Mutation Detector", "Identify pattern mutations", False),
    (5, "Emotional Scorer", "Measure emotional alignment", False),
    (6, "Phrase Matrix", "Analyze phrase structures", False),
    (7, "Governance Check", "Validate governance compliance", True),
    (8, "Strict Enforcer", "Enforce strict mode rules", False),
    # Extended
    (9, "Linguistic Coherence", "Check language structure", False),
    (10, "Semantic Depth", "Analyze meaning complexity", False),
    (11, "Rhythmic Analysis", "Evaluate rhythmic patterns", False),
    (12, "Cultural Sensitivity", "Cross-cultural appropriateness", True),
    (13, "Historical Accuracy", "Verify historical references", False),
    (14, "Geographic Resonance", "Geographic authenticity", False),
    (15, "Demographic Alignment", "Target audience alignment", False),
    (16, "Sentiment Analysis", "Emotional sentiment check", False),
    (17, "Tone Consistency", "Maintain tonal consistency", False),
    (18, "Narrative Flow", "Story progression check", False),
    (19, "Character Development", "Character arc validation", False),
    (20, "Thematic Coherence", "Theme consistency", False),
    (21, "Symbolic Analysis", "Symbolic content check", False),
    (22, "Metaphor Validation", "Metaphor authenticity", False),
    # Advanced
    (23, "Shadow Mode", "Anti-detection patterns", False),
    (24, "Economic Engine", "Revenue optimization", False),
    (25, "Legion Engine", "Multi-personality generation", False),
    (26, "Sphere Engine", "Temporal alignment", False),
    (27, "Continental Engine", "Geographic resonance", False),
    (28, "Neural Bridge", "AI model compatibility", False),
    (29, "Quantum Validation", "Pattern probability analysis", False),
    (30, "Cosmic Resonance", "Universal pattern alignment", False),
    (31, "Final Gate", "Final quality gate", True),
]

PHASE_CATALOG: Mapping[int, PhaseDescriptor] = MappingProxyType({
    pid: PhaseDescriptor(id=pid, name=name, description=desc, critical=critical)
    for pid, name, desc, critical in _PHASE_ROWS
})

# Default run list of the WebSocket server.
KEY_PHASES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8, 23, 24, 25, 26, 27)

# Default run list of the request/response route; omits 6-8.
ROUTE_PHASES: tuple[int, ...] = (1, 2, 3, 4, 5, 23, 24, 25, 26, 27)


def get_phase(phase_id: int) -> Optional[PhaseDescriptor]:
    return PHASE_CATALOG.get(phase_id)


def phase_name(phase_id: int) -> str:
    descriptor = PHASE_CATALOG.get(phase_id)
    return descriptor.name if descriptor else f"Phase {phase_id}"


def is_critical(phase_id: int) -> bool:
    descriptor = PHASE_CATALOG.get(phase_id)
    return bool(descriptor and descriptor.critical)


def list_phases() -> list[PhaseDescriptor]:
    return [PHASE_CATALOG[pid] for pid in sorted(PHASE_CATALOG)]
