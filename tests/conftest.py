"""Shared fakes: an in-memory WebSocket and a connector that hands them out."""

import asyncio
import json
import uuid

import httpx
import pytest

from chatrelay.identity import IdentityResolver
from chatrelay.transport.http import HttpClient

TOKEN = uuid.UUID("00000000-0000-4000-8000-000000000001")

_CLOSE = object()


class FakeSocket:
    def __init__(self, url: str):
        self.url = url
        self.sent: list[str] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    def push(self, frame) -> None:
        self._inbox.put_nowait(frame)

    def push_json(self, **data) -> None:
        self.push(json.dumps(data))

    def drop(self) -> None:
        """Server-side close."""
        self._inbox.put_nowait(_CLOSE)

    async def send(self, raw: str) -> None:
        self.sent.append(raw)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._inbox.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        return item


class FakeConnector:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []

    async def __call__(self, url: str) -> FakeSocket:
        self.urls.append(url)
        if self.failures:
            self.failures -= 1
            raise OSError("Connect call failed")
        ws = FakeSocket(url)
        self.sockets.append(ws)
        return ws

    @property
    def socket(self) -> FakeSocket:
        return self.sockets[-1]


class GatewayStub:
    """httpx.MockTransport handler recording requests to /start and /send."""

    def __init__(self, start_status: int = 200, send_response=None, send_status: int = 200):
        self.requests: list[httpx.Request] = []
        self.start_status = start_status
        self.send_status = send_status
        self.send_response = send_response if send_response is not None else {"status": "success"}

    def bodies(self, path: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/start":
            if self.start_status >= 400:
                return httpx.Response(self.start_status, json={"error": "Failed to start client"})
            body = json.loads(request.content)
            return httpx.Response(200, json={"clientId": f"{body['userId']}_{body['agentId']}"})
        if request.url.path == "/send":
            return httpx.Response(self.send_status, json=self.send_response)
        return httpx.Response(404, json={"error": "not found"})


async def settle(seconds: float = 0.02) -> None:
    await asyncio.sleep(seconds)


@pytest.fixture
def resolver() -> IdentityResolver:
    return IdentityResolver(connection_token=TOKEN)


@pytest.fixture
def identity(resolver):
    return resolver.resolve("U", "A")


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def gateway_stub() -> GatewayStub:
    return GatewayStub()


@pytest.fixture
def http(gateway_stub) -> HttpClient:
    return HttpClient(base_url="http://relay.test", transport=httpx.MockTransport(gateway_stub))
