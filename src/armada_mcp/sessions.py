"""Per-connection state owned by the connection handler.

Nothing here is shared between connections, so no locking across sessions
is needed. The send lock only serialises frames written by concurrent tasks
of the same connection.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .core.errors import RateLimitError

logger = logging.getLogger(__name__)

MAX_REQUESTS_PER_WINDOW = 10
RATE_WINDOW_SECONDS = 60.0


class RateLimiter:
    """Sliding-window counter: at most ``limit`` hits per ``window`` seconds."""

    def __init__(
        self,
        limit: int = MAX_REQUESTS_PER_WINDOW,
        window: float = RATE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._hits: deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._hits and now - self._hits[0] >= self.window:
            self._hits.popleft()

    @property
    def remaining(self) -> int:
        self._prune(self._clock())
        return max(self.limit - len(self._hits), 0)

    def hit(self) -> None:
        """Record one request or raise ``RateLimitError`` if the window is full."""
        now = self._clock()
        self._prune(now)
        if len(self._hits) >= self.limit:
            raise RateLimitError("Rate limit exceeded. Please slow down.")
        self._hits.append(now)


class ClientSession:
    """State of one WebSocket connection."""

    def __init__(self, ws: Any, rate_limiter: Optional[RateLimiter] = None):
        self.id = str(uuid.uuid4())
        self.ws = ws
        self.connected_at = datetime.now(timezone.utc)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.tasks: set[asyncio.Task] = set()
        self._send_lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return bool(getattr(self.ws, "closed", True))

    async def send(self, payload: dict) -> bool:
        """Send a JSON frame; returns False if the socket is already closed."""
        if self.closed:
            return False
        async with self._send_lock:
            try:
                await self.ws.send_json(payload)
            except (ConnectionError, RuntimeError) as exc:
                logger.warning("Send to client %s failed: %s", self.id, exc)
                return False
        return True

    def track(self, task: asyncio.Task) -> None:
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    def cancel_tasks(self) -> int:
        pending = [t for t in self.tasks if not t.done()]
        for task in pending:
            task.cancel()
        return len(pending)
