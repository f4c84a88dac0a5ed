"""Pytest configuration and fixtures for faucet tests."""

import asyncio
import os
from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from qhfaucet.rpc.client import RpcClient

# Well-formed SS58-shaped test addresses (DO NOT fund these)
FAUCET_ADDRESS = "5HDjAbVHMuJzezSccj6eFrEA6nKjonrFRm8h7aTiJXSHP5Qi"
RECIPIENT = "5CiPPseXPECbkjWCa6MnjNokrgYjMqmKndv2rSnekmSK2DjL"
OTHER_RECIPIENT = "5DAAnrj7VHTznn2AWBemMuyBwZWs6FNFjdyVXUeYum3PTXFy"
TEST_SECRET = "ab" * 48
GENESIS_HASH = "0x" + "12" * 32

# Nothing listens on port 1; connections are refused immediately
UNREACHABLE = "http://127.0.0.1:1"


def make_address(n: int) -> str:
    """Build a distinct valid-shaped address for index ``n``."""
    suffix = str(n)
    return "5" + "A" * (47 - len(suffix)) + suffix


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear faucet-related environment variables before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("QH_FAUCET_"):
            monkeypatch.delenv(key, raising=False)


class FakeClock:
    """Controllable epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """A fake clock starting at a fixed epoch."""
    return FakeClock()


Responder = Callable[[dict], Awaitable[dict[str, Any]]]


class StubValidator:
    """In-process JSON-RPC validator.

    ``responses`` maps an RPC method to either a response dict (merged into
    the envelope, e.g. ``{"result": ...}`` or ``{"error": {...}}``) or an
    async callable receiving the request body.
    """

    def __init__(self):
        self.responses: dict[str, dict | Responder] = {
            "system_health": {"result": {"peers": 3, "isSyncing": False, "shouldHavePeers": True}},
            "chain_getHeader": {"result": {"number": "0x1a2b"}},
            "gateway_genesisHash": {"result": GENESIS_HASH},
            "gateway_nonce": {"result": 7},
            "gateway_submit": {"result": {"hash": "0xfeed", "status": "submitted"}},
        }
        self.calls: list[dict] = []
        self.http_status = 200
        self.submit_delay = 0.0
        self.url = ""

    def methods(self) -> list[str]:
        """Methods received so far, in order."""
        return [call["method"] for call in self.calls]

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.calls.append(body)
        if self.http_status != 200:
            return web.Response(status=self.http_status, text="unavailable")

        method = body["method"]
        if method == "gateway_submit" and self.submit_delay:
            await asyncio.sleep(self.submit_delay)

        response = self.responses.get(method, {"error": {"code": -32601, "message": "Method not found"}})
        if callable(response):
            response = await response(body)
        return web.json_response({"jsonrpc": "2.0", "id": body.get("id"), **response})

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/", self.handle)
        return app


@pytest.fixture
async def stub_validator():
    """A running stub validator; its URL is ``stub_validator.url``."""
    stub = StubValidator()
    server = TestServer(stub.app())
    await server.start_server()
    stub.url = str(server.make_url("/"))
    yield stub
    await server.close()


@pytest.fixture
async def second_validator():
    """Another independent stub validator."""
    stub = StubValidator()
    server = TestServer(stub.app())
    await server.start_server()
    stub.url = str(server.make_url("/"))
    yield stub
    await server.close()


@pytest.fixture
async def rpc_client():
    """An RpcClient with its own session."""
    async with RpcClient(default_timeout=5.0) as client:
        yield client
