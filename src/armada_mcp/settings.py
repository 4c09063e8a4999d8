"""Runtime configuration from environment variables.

Read once at startup. Protocol limits (request rate, content size, ARM
threshold) are fixed constants elsewhere and are not configurable here.
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

from .core.scoring import SCORING_PROFILES

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_SHUTDOWN_GRACE_SECONDS = 5.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_WS_URL = "ws://localhost:8080"

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    port: int = Field(DEFAULT_PORT, ge=0, le=65535)
    shutdown_grace_seconds: float = Field(DEFAULT_SHUTDOWN_GRACE_SECONDS, ge=0)
    phase_delay_seconds: float = Field(0.0, ge=0)
    scoring_profile: str = "server"
    log_level: str = "INFO"
    ws_url: str = DEFAULT_WS_URL
    request_timeout_seconds: float = Field(DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        profile = os.environ.get("ARMADA_SCORING_PROFILE", "server")
        if profile not in SCORING_PROFILES:
            raise ValueError(f"ARMADA_SCORING_PROFILE must be one of: {', '.join(SCORING_PROFILES)}")

        try:
            return cls(
                host=os.environ.get("ARMADA_HOST", DEFAULT_HOST),
                port=int(os.environ.get("MCP_PORT") or os.environ.get("PORT") or DEFAULT_PORT),
                shutdown_grace_seconds=float(os.environ.get("ARMADA_SHUTDOWN_GRACE_SECONDS", DEFAULT_SHUTDOWN_GRACE_SECONDS)),
                phase_delay_seconds=float(os.environ.get("ARMADA_PHASE_DELAY_MS", "0")) / 1000,
                scoring_profile=profile,
                log_level=os.environ.get("ARMADA_LOG_LEVEL", "INFO").upper(),
                ws_url=os.environ.get("MCP_WS_URL", DEFAULT_WS_URL),
                request_timeout_seconds=float(os.environ.get("ARMADA_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS)),
            )
        except ValueError as exc:
            raise ValueError(f"Invalid ARMADA configuration: {exc}") from exc


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
