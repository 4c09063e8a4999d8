"""Error taxonomy shared by the server, the orchestrator and the client.

Every error carries a stable ``code`` that is copied into ``type: "error"``
responses so callers can branch without parsing messages.
"""

from __future__ import annotations

from typing import Optional


class ArmadaError(Exception):
    """Base class for all validation-service errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id


class ParseError(ArmadaError):
    """Inbound frame is not valid JSON. The connection stays open."""

    code = "PARSE_ERROR"


class InvalidMessageError(ArmadaError):
    """Envelope is missing an action, an id, or has non-object params."""

    code = "INVALID_MESSAGE"


class UnknownActionError(ArmadaError):
    code = "UNKNOWN_ACTION"


class ValidationInputError(ArmadaError, ValueError):
    """Missing or invalid request fields, unknown corridor, oversized content."""

    code = "INVALID_INPUT"


class RateLimitError(ArmadaError):
    code = "RATE_LIMITED"


class PhaseExecutionError(ArmadaError):
    """A phase check raised. Recorded as that phase's failure."""

    code = "PHASE_ERROR"

    def __init__(self, phase_id: int, message: str):
        super().__init__(f"Phase {phase_id} error: {message}")
        self.phase_id = phase_id


class CriticalPhaseFailure(ArmadaError):
    """A critical phase failed and the remaining phases were skipped."""

    code = "CRITICAL_PHASE_FAILED"

    def __init__(self, phase_id: int, phase_name: str, reason: str):
        super().__init__(f"Critical phase {phase_id} ({phase_name}) failed: {reason}")
        self.phase_id = phase_id
        self.phase_name = phase_name
        self.reason = reason


class RequestTimeoutError(ArmadaError, TimeoutError):
    """No response arrived within the requester's timeout."""

    code = "TIMEOUT"


class ConnectionLostError(ArmadaError, ConnectionError):
    """The connection closed while a request was still pending."""

    code = "DISCONNECTED"


class ServerError(ArmadaError):
    """Client-side wrapper for an ``error`` response from the server."""

    def __init__(self, message: str, code: Optional[str] = None, request_id: Optional[str] = None):
        super().__init__(message, request_id)
        if code:
            self.code = code
