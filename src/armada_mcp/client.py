"""Requester client for the ARMADA validation server.

Correlates each request with its response by ``id``. A request resolves on
its terminal message (``validationComplete``, ``lineValidationComplete``,
``pong``, ``corridors``, ``songGenerationComplete``) or rejects on an
``error`` carrying its id. Intermediate events go to listeners registered
with ``on``.

A connection that drops without ``close()`` being called is reopened with
exponential backoff. Listeners hear ``reconnected`` on success and
``reconnect-failed`` once every attempt is used up.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import os
import uuid
from collections import defaultdict
from typing import Any, Callable, Optional

import aiohttp
import httpx
from aiohttp import WSMsgType

from .core.errors import ConnectionLostError, RequestTimeoutError, ServerError
from .core.models import LineValidationResult, SongStructure, ValidationResult
from .settings import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_WS_URL

logger = logging.getLogger(__name__)

TERMINAL_TYPES = frozenset({
    "validationComplete",
    "lineValidationComplete",
    "pong",
    "corridors",
    "songGenerationComplete",
})

Listener = Callable[[dict], Any]


class ArmadaClient:
    """WebSocket client with request/response correlation and event listeners."""

    def __init__(
        self,
        url: Optional[str] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        max_reconnect_attempts: int = 5,
        reconnect_delay: float = 1.0,
    ):
        self.url = url or os.environ.get("MCP_WS_URL", DEFAULT_WS_URL)
        self.request_timeout = request_timeout
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self.client_id: Optional[str] = None
        self._http: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._closing = False
        self._pending: dict[str, asyncio.Future] = {}
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._listener_tasks: set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def __aenter__(self) -> "ArmadaClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ─── Connection ──────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the socket, retrying with exponential backoff."""
        if self.connected:
            return
        await self._stop_reconnect()
        self._closing = False
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession()

        attempt = 0
        while True:
            try:
                self._ws = await self._http.ws_connect(self.url)
                break
            except (aiohttp.ClientError, OSError) as exc:
                attempt += 1
                if attempt > self.max_reconnect_attempts:
                    await self._http.close()
                    self._http = None
                    raise ConnectionLostError(f"Could not connect to {self.url}: {exc}") from exc
                delay = self.reconnect_delay * 2 ** (attempt - 1)
                logger.warning(
                    "Connect to %s failed (%s); retry %d/%d in %.2fs",
                    self.url, exc, attempt, self.max_reconnect_attempts, delay,
                )
                await asyncio.sleep(delay)

        logger.info("Connected to %s", self.url)
        self._reader = asyncio.create_task(self._read_loop(self._ws))

    async def close(self) -> None:
        """Close the socket without reconnecting. Pending requests reject with ``ConnectionLostError``."""
        self._closing = True
        await self._stop_reconnect()
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._reader is not None:
            await self._reader
            self._reader = None
        if self._http is not None:
            await self._http.close()
            self._http = None

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    try:
                        data = json.loads(msg.data)
                    except json.JSONDecodeError as exc:
                        logger.error("Failed to parse server message: %s", exc)
                        continue
                    if isinstance(data, dict):
                        self._dispatch(data)
                elif msg.type == WSMsgType.ERROR:
                    logger.error("WebSocket error: %s", ws.exception())
        finally:
            logger.info("Disconnected from %s", self.url)
            self._fail_pending(ConnectionLostError("Connection closed"))
            self._emit("disconnected", {"type": "disconnected", "code": ws.close_code})

        # not reached when the reader itself is cancelled
        if not self._closing and self.max_reconnect_attempts > 0:
            self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        """Reopen a dropped connection with the same backoff ``connect`` uses."""
        for attempt in range(1, self.max_reconnect_attempts + 1):
            delay = self.reconnect_delay * 2 ** (attempt - 1)
            logger.info(
                "Reconnecting to %s in %.2fs (attempt %d/%d)",
                self.url, delay, attempt, self.max_reconnect_attempts,
            )
            await asyncio.sleep(delay)
            try:
                self._ws = await self._http.ws_connect(self.url)
            except (aiohttp.ClientError, OSError) as exc:
                logger.warning("Reconnect attempt %d to %s failed: %s", attempt, self.url, exc)
                continue
            logger.info("Reconnected to %s", self.url)
            self._reader = asyncio.create_task(self._read_loop(self._ws))
            self._emit("reconnected", {"type": "reconnected", "attempts": attempt})
            return

        logger.error("Giving up on %s after %d reconnect attempts", self.url, self.max_reconnect_attempts)
        self._emit("reconnect-failed", {"type": "reconnect-failed", "attempts": self.max_reconnect_attempts})

    async def _stop_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _dispatch(self, data: dict) -> None:
        msg_type = data.get("type")
        request_id = data.get("id")
        if msg_type == "connected":
            self.client_id = data.get("clientId")

        future = self._pending.get(request_id) if request_id is not None else None
        if future is not None and not future.done():
            if msg_type == "error":
                future.set_exception(ServerError(data.get("error") or "Unknown error", data.get("code"), request_id))
            elif msg_type in TERMINAL_TYPES:
                future.set_result(data)

        if msg_type:
            self._emit(msg_type, data)

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    # ─── Listeners ───────────────────────────────────────────────────────────

    def on(self, event: str, callback: Listener) -> None:
        self._listeners[event].append(callback)

    def off(self, event: str, callback: Optional[Listener] = None) -> None:
        if callback is None:
            self._listeners.pop(event, None)
        elif callback in self._listeners.get(event, ()):
            self._listeners[event].remove(callback)

    def _emit(self, event: str, data: dict) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                result = callback(data)
            except Exception:
                logger.exception("Listener for %s failed", event)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._listener_tasks.add(task)
                task.add_done_callback(self._listener_tasks.discard)

    # ─── Requests ────────────────────────────────────────────────────────────

    async def send(self, action: str, params: Optional[dict] = None, timeout: Optional[float] = None) -> dict:
        """Send one request and wait for its terminal response message."""
        if not self.connected:
            raise ConnectionLostError("Not connected to server")

        request_id = str(uuid.uuid4())
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._ws.send_json({"action": action, "id": request_id, "params": params or {}})
            return await asyncio.wait_for(future, timeout or self.request_timeout)
        except asyncio.TimeoutError:
            raise RequestTimeoutError(f"Request timeout: {action}", request_id) from None
        except ConnectionLostError:
            raise
        except (ConnectionError, RuntimeError) as exc:
            raise ConnectionLostError(f"Send failed: {exc}", request_id) from exc
        finally:
            self._pending.pop(request_id, None)

    async def validate(
        self,
        content: str,
        corridor: str,
        emotional_state: Optional[str] = None,
        run_phases: Optional[list[int]] = None,
    ) -> ValidationResult:
        params: dict[str, Any] = {"content": content, "corridor": corridor}
        if emotional_state:
            params["emotionalState"] = emotional_state
        if run_phases:
            params["runPhases"] = run_phases
        response = await self.send("validate", params)
        return ValidationResult.model_validate(response["result"])

    async def validate_line(self, line: str, corridor: str, emotional_state: Optional[str] = None) -> LineValidationResult:
        params: dict[str, Any] = {"line": line, "corridor": corridor}
        if emotional_state:
            params["emotionalState"] = emotional_state
        response = await self.send("validateLine", params)
        return LineValidationResult.model_validate(response["result"])

    async def generate_song(
        self,
        corridor: str,
        emotional_state: str,
        bpm: Optional[int] = None,
        genre: Optional[str] = None,
    ) -> SongStructure:
        params: dict[str, Any] = {"corridor": corridor, "emotionalState": emotional_state}
        if bpm is not None:
            params["bpm"] = bpm
        if genre:
            params["genre"] = genre
        response = await self.send("generateSong", params)
        return SongStructure.model_validate(response["song"])

    async def get_corridors(self) -> list[str]:
        response = await self.send("getCorridors")
        return response["corridors"]

    async def ping(self) -> dict:
        return await self.send("ping")


async def fetch_health(base_url: str) -> dict:
    """GET ``/health``. 503 is returned as a body with ``status: unhealthy``."""
    async with httpx.AsyncClient(timeout=httpx.Timeout(10.0, connect=5.0)) as client:
        response = await client.get(f"{base_url.rstrip('/')}/health")
        if response.status_code != 503:
            response.raise_for_status()
        return response.json()
