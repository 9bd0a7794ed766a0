"""
Realtime Package

This package contains the session relay: WebSocket connection handling,
participant presence, the shared timer and command fan-out.

Modules:
- ws: WebSocket router and relay status endpoint
- session: RelaySession, the owner of all coordination state
- registry: Bidirectional connection <-> participant index
- timer: Shared running/stopped stopwatch with a 1-second tick
- dispatcher: Inbound frame parsing and routing
- connection, broadcast, presence, relay: Outbound delivery and fan-out
"""

from .session import RelaySession
from .ws import realtime_router

__all__ = [
    "RelaySession",
    "realtime_router",
]
