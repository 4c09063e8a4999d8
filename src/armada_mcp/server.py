"""ARMADA validation server.

aiohttp application that accepts persistent WebSocket connections and serves
an HTTP health surface on the same port. Each inbound JSON message names an
``action`` and carries an ``id`` that every response and event echoes back.
Run: armada-server
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from aiohttp import WSCloseCode, WSMsgType, web

from . import __version__
from .core.corridors import list_corridors
from .core.errors import (
    ArmadaError,
    InvalidMessageError,
    ParseError,
    UnknownActionError,
    ValidationInputError,
)
from .core.models import ValidationRequest
from .orchestrator import ValidationOrchestrator
from .sessions import ClientSession
from .settings import Settings, configure_logging
from .songs import generate_song_structure

logger = logging.getLogger(__name__)

SERVER_NAME = "ARMADA MCP Server"
HEARTBEAT_SECONDS = 30.0

Handler = Callable[[ClientSession, Any, dict], Awaitable[None]]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ArmadaServer:
    """Connection server: lifecycle, message parsing, dispatch, rate limiting."""

    def __init__(self, settings: Optional[Settings] = None, orchestrator: Optional[ValidationOrchestrator] = None):
        self.settings = settings or Settings.from_env()
        self.orchestrator = orchestrator or ValidationOrchestrator(
            phase_delay=self.settings.phase_delay_seconds,
            profile=self.settings.scoring_profile,
        )
        self.sessions: dict[str, ClientSession] = {}
        self.port: Optional[int] = None
        self.accepting = False
        self._started_at = time.monotonic()
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._shutdown_event: Optional[asyncio.Event] = None
        self._shutdown_started = False
        self._handlers: dict[str, Handler] = {
            "validate": self.handle_validate,
            "validateLine": self.handle_validate_line,
            "generateSong": self.handle_generate_song,
            "getCorridors": self.handle_get_corridors,
            "ping": self.handle_ping,
        }

    # ─── HTTP surface ────────────────────────────────────────────────────────

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self.handle_root)
        app.router.add_get("/ws", self.handle_root)
        app.router.add_get("/health", self.handle_health)
        return app

    @property
    def uptime(self) -> float:
        return time.monotonic() - self._started_at

    async def handle_health(self, request: web.Request) -> web.Response:
        healthy = self.accepting and not self._shutdown_started
        return web.json_response(
            {
                "status": "healthy" if healthy else "unhealthy",
                "uptime": round(self.uptime, 3),
                "connections": len(self.sessions),
            },
            status=200 if healthy else 503,
        )

    async def handle_root(self, request: web.Request) -> web.StreamResponse:
        ws = web.WebSocketResponse(heartbeat=HEARTBEAT_SECONDS)
        if not ws.can_prepare(request).ok:
            return web.json_response({
                "name": SERVER_NAME,
                "version": __version__,
                "status": "running" if self.accepting else "shutting-down",
                "endpoints": ["/health", "/ws"],
            })
        if not self.accepting:
            return web.json_response({"error": "Server is shutting down"}, status=503)

        await ws.prepare(request)
        session = ClientSession(ws)
        self.sessions[session.id] = session
        logger.info("Client connected: %s", session.id)
        await session.send({"type": "connected", "clientId": session.id, "message": f"{SERVER_NAME} ready"})

        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    session.track(asyncio.create_task(self.handle_frame(session, msg.data)))
                elif msg.type == WSMsgType.BINARY:
                    await self.send_error(session, ParseError("Binary frames are not supported"))
                elif msg.type == WSMsgType.ERROR:
                    logger.error("Client error %s: %s", session.id, ws.exception())
        finally:
            self.sessions.pop(session.id, None)
            cancelled = session.cancel_tasks()
            if cancelled:
                logger.info("Client %s disconnected with %d request(s) in flight; cancelled", session.id, cancelled)
            else:
                logger.info("Client disconnected: %s", session.id)
        return ws

    # ─── Message handling ────────────────────────────────────────────────────

    async def send_error(self, session: ClientSession, error: BaseException, request_id: Any = None) -> None:
        payload = {
            "type": "error",
            "timestamp": _now_iso(),
            "error": getattr(error, "message", None) or str(error) or type(error).__name__,
            "code": getattr(error, "code", "INTERNAL_ERROR"),
        }
        if request_id is not None:
            payload["id"] = request_id
        await session.send(payload)

    async def handle_frame(self, session: ClientSession, raw: str) -> None:
        """Parse one text frame and dispatch it. Errors are reported, never raised."""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON received from %s: %s", session.id, exc)
            await self.send_error(session, ParseError("Invalid JSON format"))
            return

        request_id = message.get("id") if isinstance(message, dict) else None
        try:
            await self.handle_message(session, message)
        except ArmadaError as exc:
            logger.info("Request %s from %s rejected: %s", request_id, session.id, exc.message)
            await self.send_error(session, exc, request_id)
        except Exception as exc:
            logger.error("Error processing message from %s: %s", session.id, exc, exc_info=True)
            await self.send_error(session, exc, request_id)

    async def handle_message(self, session: ClientSession, message: Any) -> None:
        if not isinstance(message, dict):
            raise InvalidMessageError("Invalid message format: message must be an object")

        action = message.get("action")
        if not action or not isinstance(action, str):
            raise InvalidMessageError("Message must include valid action string")

        request_id = message.get("id")
        if request_id is None or request_id == "":
            raise InvalidMessageError("Message must include an id")

        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidMessageError("Message params must be an object")

        handler = self._handlers.get(action)
        if handler is None:
            raise UnknownActionError(f"Unknown action: {action}")

        logger.info("Received %s from %s", action, session.id)
        await handler(session, request_id, params)

    async def handle_validate(self, session: ClientSession, request_id: Any, params: dict) -> None:
        request = ValidationRequest.from_params(params)
        session.rate_limiter.hit()

        events = self.orchestrator.stream(request)
        async with contextlib.aclosing(events):
            async for event in events:
                if not await session.send(event.to_message(request_id)):
                    logger.info("Client %s went away; abandoning validation %s", session.id, request_id)
                    break

    async def handle_validate_line(self, session: ClientSession, request_id: Any, params: dict) -> None:
        result = self.orchestrator.validate_line(
            params.get("line"),
            params.get("corridor"),
            params.get("emotionalState"),
        )
        await session.send({"type": "lineValidationComplete", "id": request_id, "result": result.to_wire()})

    async def handle_generate_song(self, session: ClientSession, request_id: Any, params: dict) -> None:
        bpm = params.get("bpm")
        if bpm is not None:
            try:
                bpm = int(bpm)
            except (TypeError, ValueError):
                raise ValidationInputError("bpm must be a number") from None

        logger.info("Generating song: corridor=%s, emotion=%s", params.get("corridor"), params.get("emotionalState"))
        await session.send({"type": "songGenerationStarted", "id": request_id, "message": "Song generation started"})
        song = generate_song_structure(params.get("corridor"), params.get("emotionalState"), bpm, params.get("genre"))
        await session.send({"type": "songGenerationComplete", "id": request_id, "song": song.to_wire()})

    async def handle_get_corridors(self, session: ClientSession, request_id: Any, params: dict) -> None:
        await session.send({"type": "corridors", "id": request_id, "corridors": list_corridors()})

    async def handle_ping(self, session: ClientSession, request_id: Any, params: dict) -> None:
        await session.send({"type": "pong", "id": request_id})

    # ─── Lifecycle ───────────────────────────────────────────────────────────

    async def start(self) -> int:
        """Bind and start listening. Tries ``port + 1`` once if the port is taken."""
        self._shutdown_event = asyncio.Event()
        self._runner = web.AppRunner(self.build_app(), handle_signals=False)
        await self._runner.setup()

        host, port = self.settings.host, self.settings.port
        site = web.TCPSite(self._runner, host, port)
        try:
            await site.start()
        except OSError as exc:
            await site.stop()
            if port == 0:
                raise
            logger.error("Port %d already in use (%s); trying %d", port, exc, port + 1)
            site = web.TCPSite(self._runner, host, port + 1)
            await site.start()

        self._site = site
        self.port = self._runner.addresses[0][1]
        self.accepting = True
        self._started_at = time.monotonic()
        logger.info("Server listening on %s:%d (ws://%s:%d, health http://%s:%d/health)", host, self.port, host, self.port, host, self.port)
        return self.port

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def serve(self) -> None:
        """Run until SIGINT/SIGTERM, then shut down gracefully."""
        await self.start()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handler for %s unavailable on this platform", sig)
        await self._shutdown_event.wait()
        await self.shutdown()

    def in_flight(self) -> list[asyncio.Task]:
        return [t for s in self.sessions.values() for t in s.tasks if not t.done()]

    async def broadcast(self, payload: dict) -> None:
        await asyncio.gather(*(s.send(payload) for s in list(self.sessions.values())))

    async def shutdown(self) -> None:
        """Stop accepting, notify clients, drain in-flight work, close everything."""
        if self._shutdown_started:
            return
        self._shutdown_started = True
        self.accepting = False
        logger.info("Initiating graceful shutdown...")

        if self._site is not None:
            await self._site.stop()

        await self.broadcast({"type": "server-shutdown", "message": "Server is shutting down gracefully"})

        pending = self.in_flight()
        if pending:
            logger.info("Waiting for %d operation(s) to complete...", len(pending))
            _, still_running = await asyncio.wait(pending, timeout=self.settings.shutdown_grace_seconds)
            if still_running:
                logger.warning("%d operation(s) did not complete within timeout", len(still_running))
                for task in still_running:
                    task.cancel()

        for session in list(self.sessions.values()):
            if not session.closed:
                await session.ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")
        self.sessions.clear()

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Shutdown complete")


def main():
    """Entry point for the CLI command."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    server = ArmadaServer(settings)
    try:
        asyncio.run(server.serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
