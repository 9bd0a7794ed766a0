"""
Presence broadcasting: pushes the participant list after membership changes
and as part of each new connection's handshake.
"""

from typing import Iterable

from ..models import users_message
from .broadcast import broadcast
from .connection import Peer
from .registry import ConnectionRegistry


def broadcast_presence(registry: ConnectionRegistry, peers: Iterable[Peer]) -> int:
    """Send the current ``users`` snapshot to every open peer."""
    return broadcast(peers, users_message(registry.snapshot()))


def send_presence(registry: ConnectionRegistry, peer: Peer) -> bool:
    """Send the current ``users`` snapshot to one peer."""
    return peer.send(users_message(registry.snapshot()))
