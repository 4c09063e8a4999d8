from __future__ import annotations

import pytest

from armada_mcp.core.checks import PhaseContext
from armada_mcp.core.forbidden import ForbiddenScanner


@pytest.fixture
def scanner() -> ForbiddenScanner:
    return ForbiddenScanner()


@pytest.fixture
def make_context(scanner):
    def _make(content: str, corridor: str = "usa", emotional_state: str | None = None) -> PhaseContext:
        return PhaseContext(content=content, corridor=corridor, emotional_state=emotional_state, scanner=scanner)

    return _make
