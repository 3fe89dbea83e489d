"""
Tests for the /queue/stream Server-Sent Events feed.

The SSE generator is driven directly for event-level behaviour. The wire
format is checked over a real socket, where a client can read lines as they
arrive and then disconnect.
"""

import asyncio
import json
import socket

import pytest
from httpx import ASGITransport, AsyncClient

from songqueue.config import Settings
from songqueue.core.commands import QueueService
from songqueue.web.routes.stream import snapshot_events
from songqueue.web.server import WebServer


@pytest.fixture
def service() -> QueueService:
    return QueueService()


class TestSnapshotEvents:
    """Tests for the snapshot_events generator."""

    async def test_retry_hint_then_snapshot(self, service: QueueService) -> None:
        await service.add({"title": "Song A", "artist": "Artist A"})
        events = snapshot_events(service, retry_ms=5000)

        assert await events.__anext__() == {"retry": 5000}
        first = await events.__anext__()
        assert json.loads(first["data"])["next"]["title"] == "Song A"

        await events.aclose()

    async def test_pushes_one_event_per_change(self, service: QueueService) -> None:
        events = snapshot_events(service, retry_ms=5000)
        await events.__anext__()
        initial = json.loads((await events.__anext__())["data"])
        assert initial == {"current": None, "next": None, "queue": []}

        await service.add({"title": "Song A", "artist": "Artist A"})
        await service.advance()

        added = json.loads((await events.__anext__())["data"])
        advanced = json.loads((await events.__anext__())["data"])
        assert [i["title"] for i in added["queue"]] == ["Song A"]
        assert advanced["current"]["title"] == "Song A"
        assert advanced["queue"] == []

        await events.aclose()

    async def test_close_unsubscribes(self, service: QueueService) -> None:
        events = snapshot_events(service, retry_ms=5000)
        await events.__anext__()
        assert len(service.notifier) == 1

        await events.aclose()

        assert len(service.notifier) == 0

    async def test_cancelled_consumer_unsubscribes(self, service: QueueService) -> None:
        """A disconnect cancels the pending read; cleanup still runs."""
        events = snapshot_events(service, retry_ms=5000)
        await events.__anext__()
        await events.__anext__()

        reader = asyncio.create_task(events.__anext__())
        await asyncio.sleep(0)
        reader.cancel()
        with pytest.raises(asyncio.CancelledError):
            await reader

        assert len(service.notifier) == 0

    async def test_stream_ends_when_observer_dropped(self, service: QueueService) -> None:
        events = snapshot_events(service, retry_ms=5000)
        await events.__anext__()
        await events.__anext__()

        service.notifier.close_all()

        with pytest.raises(StopAsyncIteration):
            await events.__anext__()

    async def test_non_ascii_titles(self, service: QueueService) -> None:
        await service.add({"title": "밤양갱", "artist": "비비"})
        events = snapshot_events(service, retry_ms=5000)
        await events.__anext__()
        data = (await events.__anext__())["data"]
        assert "밤양갱" in data
        await events.aclose()


class TestStreamRoute:
    """Tests for the route registration."""

    @pytest.mark.parametrize("path", ["/queue/stream", "/api/queue/stream"])
    def test_route_registered(self, path: str) -> None:
        server = WebServer(settings=Settings(admin_key="k"))
        paths = {route.path for route in server.app.routes}
        assert path in paths


# =============================================================================
# Wire format
# =============================================================================

ADMIN = {"X-Admin-Key": "k"}


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def wait_for_observers(service: QueueService, count: int) -> None:
    async def poll() -> None:
        while len(service.notifier) != count:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout=5)


async def next_data(lines) -> dict:
    """Read lines until the next `data:` line and decode it."""
    async for line in lines:
        if line.startswith("data: "):
            return json.loads(line[len("data: "):])
    raise AssertionError("stream ended before a data line")


@pytest.fixture
async def live_server():
    """A WebServer listening on a loopback port."""
    server = WebServer(settings=Settings(admin_key="k"))
    await server.start("127.0.0.1", free_port())

    async def started() -> None:
        while not server._server.started:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(started(), timeout=5)
    yield server
    await server.stop()


class TestStreamWire:
    """Tests for the bytes an EventSource client receives."""

    async def test_retry_line_then_snapshots(self, live_server: WebServer) -> None:
        base_url = f"http://127.0.0.1:{live_server.port}"
        service = live_server.queue_service

        async with AsyncClient(base_url=base_url, timeout=5) as client:
            await client.post(
                "/queue/add", json={"title": "A", "artist": "X"}, headers=ADMIN
            )
            async with client.stream("GET", "/queue/stream") as response:
                assert response.status_code == 200
                assert response.headers["content-type"].startswith("text/event-stream")
                lines = response.aiter_lines()

                assert await lines.__anext__() == "retry: 5000"
                assert await lines.__anext__() == ""
                first = await next_data(lines)
                assert [item["title"] for item in first["queue"]] == ["A"]
                assert first["next"]["title"] == "A"

                await client.post("/queue/advance", headers=ADMIN)
                advanced = await next_data(lines)
                assert advanced["current"]["title"] == "A"
                assert advanced["next"] is None
                assert advanced["queue"] == []

                assert len(service.notifier) == 1

        await wait_for_observers(service, 0)

    async def test_api_alias_streams(self, live_server: WebServer) -> None:
        base_url = f"http://127.0.0.1:{live_server.port}"
        async with AsyncClient(base_url=base_url, timeout=5) as client:
            async with client.stream("GET", "/api/queue/stream") as response:
                lines = response.aiter_lines()
                assert await lines.__anext__() == "retry: 5000"
                assert await next_data(lines) == {"current": None, "next": None, "queue": []}

        await wait_for_observers(live_server.queue_service, 0)


class TestStreamAsgi:
    """The stream read through ASGITransport, ended by closing all observers."""

    async def test_body_after_close_all(self) -> None:
        server = WebServer(settings=Settings(admin_key="k"))
        service = server.queue_service
        await service.add({"title": "밤양갱", "artist": "비비"})

        transport = ASGITransport(app=server.app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            request = asyncio.create_task(client.get("/queue/stream"))
            await wait_for_observers(service, 1)
            service.notifier.close_all()
            response = await asyncio.wait_for(request, timeout=5)

        assert response.status_code == 200
        lines = response.text.splitlines()
        assert lines[0] == "retry: 5000"
        data = [json.loads(line[len("data: "):]) for line in lines if line.startswith("data: ")]
        assert len(data) == 1
        assert data[0]["next"]["artist"] == "비비"
        assert len(service.notifier) == 0
