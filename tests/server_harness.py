"""Runs a real ArmadaServer on an ephemeral loopback port for tests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from armada_mcp.server import ArmadaServer
from armada_mcp.settings import Settings


@asynccontextmanager
async def running_server(**overrides) -> AsyncIterator[ArmadaServer]:
    options = {"host": "127.0.0.1", "port": 0, "shutdown_grace_seconds": 0.5}
    options.update(overrides)
    server = ArmadaServer(Settings(**options))
    await server.start()
    try:
        yield server
    finally:
        await server.shutdown()


def ws_url(server: ArmadaServer) -> str:
    return f"ws://127.0.0.1:{server.port}/"


def http_url(server: ArmadaServer) -> str:
    return f"http://127.0.0.1:{server.port}"
