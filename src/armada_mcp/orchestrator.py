"""Validation orchestrator — sequences phases for one request.

``ValidationOrchestrator.stream`` is an async generator that yields a
``PhaseStarted``/``PhaseCompleted`` pair per executed phase followed by
exactly one ``ValidationComplete``. Closing the generator (or cancelling the
task consuming it) stops further phase execution. Both the WebSocket server
and the MCP tools drive this same class.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Literal, Optional, Union

from .core.checks import PhaseContext, run_phase
from .core.corridors import require_corridor
from .core.errors import CriticalPhaseFailure, PhaseExecutionError, ValidationInputError
from .core.forbidden import ForbiddenScanner
from .core.models import (
    MAX_CONTENT_SIZE,
    LineValidationResult,
    PhaseResult,
    PhaseStatus,
    ResultStatus,
    ScoreMap,
    ValidationRequest,
    ValidationResult,
    WireModel,
)
from .core.phases import is_critical, phase_name
from .core.scoring import (
    ARM_THRESHOLD,
    ScoringProfile,
    calculate_arm_score,
    calculate_corridor_score,
    calculate_emotional_score,
    calculate_novelty_score,
    get_profile,
)

logger = logging.getLogger(__name__)


class ValidationEvent(WireModel):
    def to_message(self, request_id: Optional[str]) -> dict:
        message = self.to_wire()
        message["id"] = request_id
        return message


class PhaseStarted(ValidationEvent):
    type: Literal["phaseStarted"] = "phaseStarted"
    phase: int
    phase_name: str


class PhaseCompleted(ValidationEvent):
    type: Literal["phaseCompleted"] = "phaseCompleted"
    phase: int
    result: PhaseResult


class ValidationComplete(ValidationEvent):
    type: Literal["validationComplete"] = "validationComplete"
    result: ValidationResult


Event = Union[PhaseStarted, PhaseCompleted, ValidationComplete]


class ValidationOrchestrator:
    """Runs the phase pipeline and aggregates scores and flags."""

    def __init__(
        self,
        scanner: Optional[ForbiddenScanner] = None,
        phase_delay: float = 0.0,
        profile: Union[str, ScoringProfile, None] = None,
    ):
        self.scanner = scanner or ForbiddenScanner()
        self.phase_delay = phase_delay
        self.profile = profile if isinstance(profile, ScoringProfile) else get_profile(profile)

    async def stream(
        self,
        request: ValidationRequest,
        profile: Union[str, ScoringProfile, None] = None,
    ) -> AsyncIterator[Event]:
        """Yield phase events for ``request``, then the final result."""
        if profile is None:
            profile = self.profile
        elif not isinstance(profile, ScoringProfile):
            profile = get_profile(profile)

        phases = list(request.run_phases or profile.phases)
        content = request.content
        context = PhaseContext(
            content=content,
            corridor=request.corridor,
            emotional_state=request.emotional_state,
            scanner=self.scanner,
        )
        result = ValidationResult(line=content, original=content, profile=profile.name)
        aggregate: dict[str, float] = {}

        logger.info(
            "Starting validation %s: corridor=%s, phases=%d, profile=%s",
            result.validation_id, request.corridor, len(phases), profile.name,
        )

        for phase_id in phases:
            name = phase_name(phase_id)
            critical = is_critical(phase_id)
            yield PhaseStarted(phase=phase_id, phase_name=name)

            started = time.perf_counter()
            failure: Optional[CriticalPhaseFailure] = None
            try:
                outcome = await run_phase(phase_id, context)
            except Exception as exc:
                error = PhaseExecutionError(phase_id, str(exc))
                logger.error("%s", error.message, exc_info=True)
                phase_result = PhaseResult(phase=phase_id, name=name, status=PhaseStatus.FAILED, error=str(exc))
                if critical:
                    failure = CriticalPhaseFailure(phase_id, name, f"error: {exc}")
            else:
                if outcome.line != content:
                    result.line = outcome.line
                aggregate.update(outcome.scores)
                result.flags.extend(f.model_copy(update={"phase": phase_id}) for f in outcome.flags)
                phase_result = PhaseResult(
                    phase=phase_id,
                    name=name,
                    status=PhaseStatus.PASSED if outcome.ok else PhaseStatus.FAILED,
                    score=outcome.score,
                    modifications=outcome.modifications,
                    error=None if outcome.ok else outcome.error,
                )
                if critical and not outcome.ok:
                    failure = CriticalPhaseFailure(phase_id, name, outcome.error or "Validation failed")

            phase_result.duration = round((time.perf_counter() - started) * 1000, 3)
            result.phase_results.append(phase_result)
            yield PhaseCompleted(phase=phase_id, result=phase_result)

            if failure is not None:
                logger.warning("%s - stopping execution", failure.message)
                result.status = ResultStatus.FAILED
                result.error = failure.message
                break

            await asyncio.sleep(self.phase_delay)

        present = {k: v for k, v in aggregate.items() if k in ScoreMap.model_fields and k != "arm"}
        arm = calculate_arm_score(present, profile.weights)
        result.scores = ScoreMap(**present, arm=arm)
        result.critical_phases_failed = sum(
            1 for pr in result.phase_results if pr.status == PhaseStatus.FAILED and is_critical(pr.phase)
        )
        result.is_valid = result.critical_phases_failed == 0 and arm >= ARM_THRESHOLD

        logger.info(
            "Validation complete %s: armScore=%.2f, valid=%s",
            result.validation_id, arm, result.is_valid,
        )
        yield ValidationComplete(result=result)

    async def run(self, request: ValidationRequest, profile: Union[str, ScoringProfile, None] = None) -> ValidationResult:
        """Drain ``stream`` and return the final result."""
        async for event in self.stream(request, profile):
            if isinstance(event, ValidationComplete):
                return event.result
        raise RuntimeError("Validation stream ended without a result")

    def validate_line(self, line: str, corridor: str, emotional_state: Optional[str] = None) -> LineValidationResult:
        """Forbidden scan plus corridor and novelty scores, without phase sequencing."""
        if not line or not isinstance(line, str):
            raise ValidationInputError("line is required and must be a string")
        if len(line) > MAX_CONTENT_SIZE:
            raise ValidationInputError(f"Content exceeds maximum size of {MAX_CONTENT_SIZE} characters")
        require_corridor(corridor)

        scan = self.scanner.scan(line, corridor)
        scores = {
            "corridor": calculate_corridor_score(line, corridor),
            "novelty": calculate_novelty_score(line),
        }
        if emotional_state:
            scores["emotional"] = calculate_emotional_score(line, emotional_state)

        return LineValidationResult(
            line=line,
            scores=scores,
            flags=scan.flags,
            suggestions=scan.suggestions,
            cleaned_content=scan.cleaned_content,
        )
