from __future__ import annotations

import asyncio
import socket

import aiohttp
import httpx
import pytest

from armada_mcp.client import ArmadaClient, fetch_health
from armada_mcp.core.errors import ConnectionLostError, RequestTimeoutError, ServerError
from armada_mcp.core.models import ResultStatus
from server_harness import http_url, running_server, ws_url

GOOD_USA = "we stay lit and slay every stage, you can bet the vibe is real tonight"


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch):
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)


def test_ping_and_corridors():
    async def scenario():
        async with running_server() as server:
            async with ArmadaClient(ws_url(server)) as client:
                return await client.ping(), await client.get_corridors(), client.client_id

    pong, corridors, client_id = asyncio.run(scenario())
    assert pong["type"] == "pong"
    assert "usa" in corridors and len(corridors) == 13
    assert client_id


def test_validate_streams_phase_events():
    content = "Fire lyrics burning bright, energy taking flight, power in the night"

    async def scenario():
        events = []
        async with running_server() as server:
            async with ArmadaClient(ws_url(server)) as client:
                client.on("phaseStarted", events.append)
                client.on("phaseCompleted", events.append)
                result = await client.validate(content, "usa", "hype", run_phases=[1, 2, 3])
        return events, result

    events, result = asyncio.run(scenario())
    assert [e["type"] for e in events] == ["phaseStarted", "phaseCompleted"] * 3
    assert len({e["id"] for e in events}) == 1
    assert [pr.phase for pr in result.phase_results] == [1, 2, 3]
    assert result.scores.novelty > 0.7
    assert result.status == ResultStatus.FAILED
    assert not [f for f in result.flags if f.severity.value == "critical"]


def test_line_and_song_actions():
    async def scenario():
        started = []
        async with running_server() as server:
            async with ArmadaClient(ws_url(server)) as client:
                client.on("songGenerationStarted", started.append)
                line = await client.validate_line("this is shit", "usa")
                song = await client.generate_song("usa", "hype", bpm=128)
                with pytest.raises(ServerError) as excinfo:
                    await client.validate_line("hello there", "atlantis")
        return line, song, started, excinfo.value

    line, song, started, error = asyncio.run(scenario())
    assert "shit" not in line.cleaned_content
    assert song.metadata.bpm == 128
    assert song.sections[1].delivery == "punchy"
    assert len(started) == 1
    assert error.code == "INVALID_INPUT"
    assert "Invalid corridor" in error.message


def test_protocol_errors_keep_connection_open():
    async def scenario():
        replies = {}
        async with running_server() as server:
            async with aiohttp.ClientSession() as http:
                async with http.ws_connect(ws_url(server)) as ws:
                    replies["hello"] = await ws.receive_json()
                    await ws.send_str("{not json")
                    replies["parse"] = await ws.receive_json()
                    await ws.send_json({"action": "ping"})
                    replies["missing_id"] = await ws.receive_json()
                    await ws.send_json({"action": "dance", "id": "x1"})
                    replies["unknown"] = await ws.receive_json()
                    await ws.send_json({"action": "ping", "id": "x2", "params": [1]})
                    replies["bad_params"] = await ws.receive_json()
                    await ws.send_json({"action": "validate", "id": "x3", "params": {"content": "hi"}})
                    replies["bad_input"] = await ws.receive_json()
                    await ws.send_json({"action": "generateSong", "id": "x4", "params": {"bpm": "fast"}})
                    replies["bad_bpm"] = await ws.receive_json()
                    await ws.send_json({"action": "ping", "id": "x5"})
                    replies["pong"] = await ws.receive_json()
        return replies

    replies = asyncio.run(scenario())
    assert replies["hello"]["type"] == "connected"
    assert replies["parse"]["code"] == "PARSE_ERROR"
    assert "id" not in replies["parse"]
    assert replies["missing_id"]["code"] == "INVALID_MESSAGE"
    assert replies["unknown"] == {**replies["unknown"], "type": "error", "code": "UNKNOWN_ACTION", "id": "x1"}
    assert replies["bad_params"]["code"] == "INVALID_MESSAGE"
    assert replies["bad_input"]["code"] == "INVALID_INPUT"
    assert replies["bad_input"]["id"] == "x3"
    assert replies["bad_bpm"]["code"] == "INVALID_INPUT"
    assert replies["pong"] == {"type": "pong", "id": "x5"}
    assert all("timestamp" in r for k, r in replies.items() if r.get("type") == "error")


def test_rate_limit_is_per_connection():
    async def scenario():
        async with running_server() as server:
            async with ArmadaClient(ws_url(server)) as first, ArmadaClient(ws_url(server)) as second:
                flooded = await asyncio.gather(
                    *(first.validate("Hi there", "usa", run_phases=[1]) for _ in range(11)),
                    return_exceptions=True,
                )
                unaffected = await asyncio.gather(
                    *(second.validate("Hi there", "usa", run_phases=[1]) for _ in range(10))
                )
        return flooded, unaffected

    flooded, unaffected = asyncio.run(scenario())
    errors = [r for r in flooded if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], ServerError)
    assert errors[0].code == "RATE_LIMITED"
    assert len(unaffected) == 10


def test_disconnect_rejects_pending_request():
    async def scenario():
        async with running_server(phase_delay_seconds=0.5) as server:
            client = ArmadaClient(ws_url(server))
            await client.connect()
            pending = asyncio.create_task(client.validate(GOOD_USA, "usa", run_phases=[24, 25, 26]))
            await asyncio.sleep(0.1)
            await client.close()
            with pytest.raises(ConnectionLostError):
                await pending
            assert client.pending_count == 0
            with pytest.raises(ConnectionLostError):
                await client.ping()

    asyncio.run(scenario())


def test_request_timeout_drops_pending_entry():
    async def scenario():
        async with running_server(phase_delay_seconds=0.3) as server:
            async with ArmadaClient(ws_url(server), request_timeout=0.05) as client:
                with pytest.raises(RequestTimeoutError):
                    await client.validate(GOOD_USA, "usa", run_phases=[24, 25])
                assert client.pending_count == 0
                pong = await client.send("ping", timeout=5.0)
        return pong

    assert asyncio.run(scenario())["type"] == "pong"


def test_health_and_info_endpoints():
    async def scenario():
        async with running_server() as server:
            healthy = await fetch_health(http_url(server))
            async with httpx.AsyncClient() as http:
                info = (await http.get(http_url(server) + "/")).json()
            server.accepting = False
            unhealthy = await fetch_health(http_url(server))
        return healthy, info, unhealthy

    healthy, info, unhealthy = asyncio.run(scenario())
    assert healthy["status"] == "healthy"
    assert healthy["uptime"] >= 0
    assert info["name"] == "ARMADA MCP Server"
    assert "/health" in info["endpoints"]
    assert unhealthy["status"] == "unhealthy"


def test_shutdown_notifies_and_drains_in_flight_work():
    async def scenario():
        async with running_server(phase_delay_seconds=0.05, shutdown_grace_seconds=5.0) as server:
            client = ArmadaClient(ws_url(server))
            await client.connect()
            notices = []
            started = asyncio.Event()
            disconnected = asyncio.Event()
            client.on("server-shutdown", notices.append)
            client.on("phaseStarted", lambda data: started.set())
            client.on("disconnected", lambda data: disconnected.set())

            pending = asyncio.create_task(client.validate(GOOD_USA, "usa", run_phases=[24, 25, 26]))
            await asyncio.wait_for(started.wait(), 5)
            await server.shutdown()
            result = await pending
            await asyncio.wait_for(disconnected.wait(), 5)
            connected_after = client.connected
            await client.close()
        return notices, result, connected_after

    notices, result, connected_after = asyncio.run(scenario())
    assert len(notices) == 1
    assert len(result.phase_results) == 3
    assert not connected_after


def test_client_reconnects_after_server_restart():
    async def scenario():
        reconnected = asyncio.Event()
        async with running_server() as server:
            port = server.port
            client = ArmadaClient(ws_url(server), max_reconnect_attempts=10, reconnect_delay=0.05)
            await client.connect()
            first_id = client.client_id
            client.on("reconnected", lambda data: reconnected.set())

        try:
            async with running_server(port=port) as restarted:
                await asyncio.wait_for(reconnected.wait(), 10)
                pong = await client.ping()
                return first_id, client.client_id, pong, restarted.port == port
        finally:
            await client.close()

    first_id, second_id, pong, same_port = asyncio.run(scenario())
    assert same_port
    assert pong["type"] == "pong"
    assert second_id and second_id != first_id


def test_client_reports_reconnect_failed_when_attempts_run_out():
    async def scenario():
        failed = asyncio.Event()
        reports, reconnects = [], []
        async with running_server() as server:
            client = ArmadaClient(ws_url(server), max_reconnect_attempts=2, reconnect_delay=0.01)
            await client.connect()
            client.on("reconnect-failed", reports.append)
            client.on("reconnect-failed", lambda data: failed.set())
            client.on("reconnected", reconnects.append)

        await asyncio.wait_for(failed.wait(), 5)
        connected = client.connected
        await client.close()
        return reports, reconnects, connected

    reports, reconnects, connected = asyncio.run(scenario())
    assert reports == [{"type": "reconnect-failed", "attempts": 2}]
    assert reconnects == []
    assert not connected


def test_close_does_not_reconnect():
    async def scenario():
        async with running_server() as server:
            client = ArmadaClient(ws_url(server), reconnect_delay=0.01)
            await client.connect()
            events = []
            client.on("reconnected", events.append)
            client.on("reconnect-failed", events.append)
            await client.close()
            await asyncio.sleep(0.2)
            return events, client.connected, client._reconnect_task

    events, connected, reconnect_task = asyncio.run(scenario())
    assert events == []
    assert not connected
    assert reconnect_task is None


def test_port_in_use_falls_back_to_next_port():
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen()
    taken = blocker.getsockname()[1]

    async def scenario():
        async with running_server(port=taken) as server:
            return server.port

    try:
        assert asyncio.run(scenario()) == taken + 1
    finally:
        blocker.close()


def test_listeners_can_be_removed():
    client = ArmadaClient("ws://127.0.0.1:1/")
    seen = []
    client.on("phaseStarted", seen.append)
    client._dispatch({"type": "phaseStarted", "id": "a"})
    client.off("phaseStarted", seen.append)
    client._dispatch({"type": "phaseStarted", "id": "b"})
    assert [e["id"] for e in seen] == ["a"]
