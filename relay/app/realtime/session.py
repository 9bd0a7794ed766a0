"""
Relay Session
=============

``RelaySession`` owns all coordination state of one relay instance:

- the connection set (every accepted peer, registered or not)
- the participant registry (dual index, see ``registry.py``)
- the shared session timer

Each FastAPI application creates its own session in the lifespan handler, so
independent instances can be built side by side in tests.

All mutators are synchronous. On a single event loop no two of them overlap,
which is what keeps the registry and timer consistent without locks.
"""

import logging
from typing import Dict, List

from fastapi import status

from ..models import ParticipantProfile, SynthMessage, start_message, stop_message, time_message
from .broadcast import broadcast
from .connection import Peer
from .presence import broadcast_presence, send_presence
from .registry import ConnectionRegistry
from .relay import relay_command
from .timer import SessionTimer

logger = logging.getLogger("relay.realtime.session")


class RelaySession:
    """
    Session manager shared by every connection of one relay.

    Args:
        advertised_ip: Address stamped on every participant profile
        tick_interval: Seconds between timer ticks
    """

    def __init__(self, advertised_ip: str, tick_interval: float = 1.0):
        self.advertised_ip = advertised_ip
        self.registry: ConnectionRegistry[Peer] = ConnectionRegistry()
        self.timer = SessionTimer(on_tick=self.broadcast_time, interval=tick_interval)
        # Insertion-ordered set of accepted peers
        self._peers: Dict[Peer, None] = {}

    @property
    def peers(self) -> List[Peer]:
        return list(self._peers)

    def broadcast(self, event) -> int:
        return broadcast(self._peers, event)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, peer: Peer) -> None:
        """
        Add an accepted peer and queue its handshake: time, users, and start
        if the timer is running. Nothing else can be queued ahead of these.
        """
        self._peers[peer] = None

        peer.send(time_message(self.timer.formatted))
        send_presence(self.registry, peer)
        if self.timer.running:
            peer.send(start_message())

        logger.info(
            "Client connected",
            extra={"peer_id": peer.peer_id, "ip": peer.ip, "total_connections": len(self._peers)}
        )

    def disconnect(self, peer: Peer) -> None:
        """Drop a peer whose transport has ended; same effect as ``leave``."""
        self._peers.pop(peer, None)
        self.leave(peer)
        logger.info(
            "Client disconnected",
            extra={"peer_id": peer.peer_id, "total_connections": len(self._peers)}
        )

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def join(self, peer: Peer, profile: ParticipantProfile) -> None:
        evicted = self.registry.join(peer, profile, peer.ip)
        if evicted is not None:
            evicted.close(code=status.WS_1000_NORMAL_CLOSURE, reason="Replaced by a new connection")

        logger.info(
            "Participant joined",
            extra={"participant_id": profile.id, "peer_id": peer.peer_id, "evicted": evicted is not None}
        )
        broadcast_presence(self.registry, self._peers)

    def update(self, peer: Peer, profile: ParticipantProfile) -> None:
        if peer not in self.registry:
            logger.debug("Ignoring update from unregistered connection", extra={"peer_id": peer.peer_id})
            return

        evicted = self.registry.update(peer, profile)
        if evicted is not None:
            evicted.close(code=status.WS_1000_NORMAL_CLOSURE, reason="Replaced by a new connection")
        broadcast_presence(self.registry, self._peers)

    def leave(self, peer: Peer) -> None:
        entry = self.registry.leave(peer)
        if entry is None:
            return

        logger.info("Participant left", extra={"participant_id": entry.id, "peer_id": peer.peer_id})
        broadcast_presence(self.registry, self._peers)

    # ------------------------------------------------------------------
    # Command relay
    # ------------------------------------------------------------------

    def relay(self, message: SynthMessage) -> int:
        return relay_command(self._peers, message)

    # ------------------------------------------------------------------
    # Shared timer
    # ------------------------------------------------------------------

    def start_timer(self) -> None:
        if self.timer.start():
            self.broadcast(start_message())

    def stop_timer(self) -> None:
        if self.timer.stop():
            self.broadcast(stop_message())

    def reset_timer(self) -> None:
        self.timer.reset()
        self.broadcast_time()

    def broadcast_time(self) -> None:
        self.broadcast(time_message(self.timer.formatted))

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Stop the timer and close every open connection."""
        await self.timer.aclose()

        for peer in list(self._peers):
            peer.close(code=status.WS_1001_GOING_AWAY, reason="Server shutdown")

        logger.info("All relay connections closed")

    def status(self) -> Dict[str, object]:
        return {
            "connections": len(self._peers),
            "participants": len(self.registry),
            "timer": {
                "running": self.timer.running,
                "elapsed_seconds": self.timer.elapsed_seconds,
                "time": self.timer.formatted,
            },
        }
