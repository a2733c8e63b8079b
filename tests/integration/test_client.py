"""Integration tests for PRCClient and PrivateServer against a mocked API."""

import json
import time

import httpx
import pytest
import pytest_asyncio

from prcapi.client.app import PRCClient
from prcapi.client.server import PrivateServer
from prcapi.core.config import ApiSettings, QueueSettings, Settings
from prcapi.core.models import DeepLinkFormat, ServerInfo
from prcapi.observability.events import EventType
from prcapi.queue.scheduler import QueueFullError, RemovedFromQueueError
from prcapi.transport.base import ResponseNotOKError, ResponseNotValidError
from prcapi.transport.http import HttpTransport

BASE_URL = "https://api.policeroleplay.community"

SERVER_PAYLOAD = {
    "Name": "Liberty County RP",
    "OwnerId": 1234,
    "CoOwnerIds": [5678],
    "CurrentPlayers": 12,
    "MaxPlayers": 40,
    "JoinKey": "LCRP",
    "AccVerifiedReq": "Disabled",
    "TeamBalance": False,
}


class FakeAPI:
    """A tiny stand-in for the PRC API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.timestamps: list[float] = []
        self.rate_limit_next = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.timestamps.append(time.monotonic())

        if self.rate_limit_next:
            self.rate_limit_next -= 1
            return httpx.Response(
                429,
                json={"code": 4001, "message": "You are being rate limited!"},
                headers={"Retry-After": "0.1"},
            )
        if request.headers.get("Server-Key") != "good-key":
            return httpx.Response(403, json={"code": 2002, "message": "Invalid server key"})

        if request.url.path == "/v1/server" and request.method == "GET":
            return httpx.Response(200, json=SERVER_PAYLOAD)
        if request.url.path == "/v1/server/command" and request.method == "POST":
            return httpx.Response(200, json={"message": "Success"})
        if request.url.path == "/v1/broken":
            return httpx.Response(200, text="<html></html>")
        return httpx.Response(404, json={"code": 0, "message": "Not found"})


@pytest.fixture
def api():
    return FakeAPI()


@pytest.fixture
def settings():
    return Settings(
        api=ApiSettings(base_url=BASE_URL),
        queue=QueueSettings(pace_interval_ms=20),
    )


@pytest_asyncio.fixture
async def client(api, settings):
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(api))
    transport = HttpTransport(BASE_URL, client=http_client)
    client = PRCClient(authorization_key="app-key", settings=settings, transport=transport)
    client.start_queue()
    yield client
    await client.aclose()
    await http_client.aclose()


class TestClientSetup:
    """Tests for client construction."""

    def test_headers_with_authorization(self, settings):
        client = PRCClient(authorization_key="app-key", settings=settings)
        assert client.get_headers("server-key") == {
            "Server-Key": "server-key",
            "Authorization": "app-key",
            "Content-Type": "application/json",
            "Accept": "*/*",
        }

    def test_headers_without_authorization(self, settings):
        client = PRCClient(settings=settings)
        assert "Authorization" not in client.get_headers("server-key")

    def test_authorization_from_settings(self):
        settings = Settings(api=ApiSettings(authorization_key="from-env"))
        client = PRCClient(settings=settings)
        assert client.authorization_key == "from-env"

    def test_queue_defaults_from_settings(self):
        settings = Settings(queue=QueueSettings(pace_interval_ms=1000, capacity=3))
        client = PRCClient(settings=settings)
        queue = client.queues.get_queue("main")
        assert queue.pace_interval_ms == 1000
        assert queue.capacity == 3

    def test_get_private_server(self, settings):
        client = PRCClient(settings=settings)
        server = client.get_private_server("server-key")
        assert isinstance(server, PrivateServer)
        assert server.server_key == "server-key"
        assert server.default_queue == "main"

    def test_get_private_server_requires_string(self, settings):
        client = PRCClient(settings=settings)
        with pytest.raises(TypeError):
            client.get_private_server(1234)

    def test_create_request(self, settings):
        client = PRCClient(settings=settings)
        request = client.create_request("k", "v1/server/command", method="post", body={"a": 1}, queue="cmd")
        assert request.method == "POST"
        assert request.queue == "cmd"
        assert request.headers["Server-Key"] == "k"


class TestPrivateServer:
    """Tests for PrivateServer endpoints."""

    @pytest.mark.asyncio
    async def test_get_info(self, client, api):
        info = await client.get_private_server("good-key").get_info()

        assert isinstance(info, ServerInfo)
        assert info.name == "Liberty County RP"
        assert info.join_code == "LCRP"
        assert api.requests[0].headers["Authorization"] == "app-key"

    @pytest.mark.asyncio
    async def test_send_command_adds_prefix(self, client, api):
        server = client.get_private_server("good-key")
        await server.send_command("h Hello")
        await server.send_command(":m Already prefixed")

        bodies = [json.loads(r.content) for r in api.requests]
        assert bodies == [{"command": ":h Hello"}, {"command": ":m Already prefixed"}]

    @pytest.mark.asyncio
    async def test_get_deep_link(self, client):
        link = await client.get_private_server("good-key").get_deep_link(
            DeepLinkFormat.VIA_PRC_WEBSITE
        )
        assert link == "https://policeroleplay.community/join/LCRP"

    @pytest.mark.asyncio
    async def test_invalid_server_key(self, client):
        with pytest.raises(ResponseNotOKError) as exc_info:
            await client.get_private_server("bad-key").get_info()
        assert exc_info.value.status == 403
        assert exc_info.value.error_code == 2002
        assert exc_info.value.error_text == "Invalid server key"

    @pytest.mark.asyncio
    async def test_unexpected_info_shape(self, client, api, monkeypatch):
        monkeypatch.setitem(SERVER_PAYLOAD, "JoinKey", None)
        with pytest.raises(ResponseNotValidError):
            await client.get_private_server("good-key").get_info()

    @pytest.mark.asyncio
    async def test_non_json_body(self, client):
        server = client.get_private_server("good-key")
        with pytest.raises(ResponseNotValidError):
            await server.queue_request(server.create_request("v1/broken"))

    @pytest.mark.asyncio
    async def test_send_request_bypasses_queue(self, client, api):
        client.stop_queue()
        server = client.get_private_server("good-key")
        data = await server.send_request(server.create_request("v1/server"))
        assert data["Name"] == "Liberty County RP"


class TestQueuedTraffic:
    """Tests for queue behaviour seen through the client."""

    @pytest.mark.asyncio
    async def test_requests_are_paced(self, client, api):
        server = client.get_private_server("good-key")
        for _ in range(3):
            await server.send_command("h hi")

        gaps = [b - a for a, b in zip(api.timestamps, api.timestamps[1:])]
        assert all(gap >= 0.02 - 0.01 for gap in gaps)

    @pytest.mark.asyncio
    async def test_rate_limit_backoff_and_event(self, client, api):
        failures = []

        @client.on(EventType.DISPATCH_FAILED)
        async def on_failure(event):
            failures.append(event)

        api.rate_limit_next = 1
        server = client.get_private_server("good-key")

        first = client.enqueue(server.create_request("v1/server"))
        second = client.enqueue(server.create_request("v1/server"))

        with pytest.raises(ResponseNotOKError) as exc_info:
            await first
        assert exc_info.value.status == 429
        assert (await second)["JoinKey"] == "LCRP"

        assert api.timestamps[1] - api.timestamps[0] >= 0.12 - 0.01
        await client.events.flush()
        assert len(failures) == 1
        assert client.get_queue_stats().rate_limit_hits == 1

    @pytest.mark.asyncio
    async def test_separate_queue_for_commands(self, client, api):
        client.add_queue("commands", pace_interval_ms=50, capacity=1)
        client.start_queue("commands")
        server = client.get_private_server("good-key")

        first = client.enqueue(server.create_request("v1/server/command", "POST", {"command": ":h 1"}, "commands"))
        with pytest.raises(QueueFullError) as exc_info:
            await client.enqueue(
                server.create_request("v1/server/command", "POST", {"command": ":h 2"}, "commands")
            )
        assert exc_info.value.queue_name == "commands"
        await first

    @pytest.mark.asyncio
    async def test_stop_and_clear_through_client(self, client, api):
        client.stop_queue()
        server = client.get_private_server("good-key")
        futures = [client.enqueue(server.create_request("v1/server")) for _ in range(3)]

        assert client.remove_from_queue("main", 0) is True
        assert client.stop_and_clear_queue() == 2

        for future in futures:
            with pytest.raises(RemovedFromQueueError):
                await future
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_remove_queue_through_client(self, client):
        client.add_queue("temp", pace_interval_ms=10)
        server = client.get_private_server("good-key")
        future = client.enqueue(server.create_request("v1/server", queue="temp"))

        client.remove_queue("temp")

        with pytest.raises(RemovedFromQueueError) as exc_info:
            await future
        assert exc_info.value.was_queue_cleared is True
        assert "temp" not in client.queues
