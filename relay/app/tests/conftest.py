"""
Shared fixtures for relay tests.
"""

import json
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from relay.app.config import Settings
from relay.app.main import create_app
from relay.app.realtime.connection import Peer

TEST_IP = "192.168.1.50"


class FakeWebSocket:
    """Stands in for an accepted Starlette WebSocket."""

    def __init__(self):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self.sent: List[str] = []
        self.close_code = None

    async def send_text(self, data: str) -> None:
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED

    def drop(self) -> None:
        """Simulate the client going away without a close handshake."""
        self.client_state = WebSocketState.DISCONNECTED


def make_peer(ip: str = TEST_IP) -> Peer:
    return Peer(FakeWebSocket(), ip)


def drain(peer: Peer) -> List[Dict[str, Any]]:
    """Pop every queued message off a peer's outbox without a writer task."""
    messages = []
    while not peer._outbox.empty():
        item = peer._outbox.get_nowait()
        if isinstance(item, str):
            messages.append(json.loads(item))
    return messages


@pytest.fixture
def test_settings():
    """Settings with a fixed advertised address and a fast timer"""
    return Settings(
        ADVERTISED_IP=TEST_IP,
        TICK_INTERVAL_SECONDS=0.05,
        ALLOWED_ORIGINS="http://localhost:5174",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def client(test_settings):
    """Test client with lifespan running (required for the relay session)"""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client
