"""
Relay Connection
================

Wraps one accepted WebSocket as a ``Peer``: the transport handle, the address
stamped on its participant profile, and an unbounded outbound queue.

Every outbound message is enqueued synchronously and written by the peer's own
writer task, so each connection observes messages in exactly the order the
server issued them, and a slow peer never blocks a broadcast.
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Dict

from fastapi import WebSocket, status
from starlette.websockets import WebSocketState

logger = logging.getLogger("relay.realtime.connection")

# Marks the end of a peer's outbox; the writer closes the socket when it sees it.
_CLOSE = object()

_peer_ids = itertools.count(1)


class Peer:
    """
    One live relay connection.

    Attributes:
        websocket: Accepted WebSocket (anything with send_text/close and the
                   Starlette state attributes works)
        ip: Server-assigned address reported in this peer's profile
        peer_id: Process-unique number, used only for logging
    """

    def __init__(self, websocket: WebSocket, ip: str):
        self.websocket = websocket
        self.ip = ip
        self.peer_id = next(_peer_ids)
        self._outbox: "asyncio.Queue[Any]" = asyncio.Queue()
        self._closing = False

    def __repr__(self) -> str:
        return f"<Peer #{self.peer_id} ip={self.ip}>"

    @property
    def is_open(self) -> bool:
        """True while messages enqueued now can still reach the client."""
        if self._closing:
            return False
        return (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    def send(self, event: Dict[str, Any]) -> bool:
        """
        Queue one message for this peer.

        Returns:
            bool: False if the peer is no longer open and the message was dropped
        """
        if not self.is_open:
            return False
        self._outbox.put_nowait(json.dumps(event))
        return True

    def close(self, code: int = status.WS_1000_NORMAL_CLOSURE, reason: str = "") -> None:
        """
        Close after everything already queued has been written.

        Closing twice, or closing a peer whose transport is gone, does nothing.
        """
        if self._closing:
            return
        self._closing = True
        self._outbox.put_nowait((_CLOSE, code, reason))

    async def run_writer(self) -> None:
        """
        Drain the outbox onto the WebSocket until closed or the transport fails.

        Runs as one task per peer for the lifetime of the connection.
        """
        try:
            while True:
                item = await self._outbox.get()

                if isinstance(item, tuple) and item and item[0] is _CLOSE:
                    _, code, reason = item
                    await self._close_transport(code, reason)
                    break

                await self.websocket.send_text(item)
        except Exception as e:
            # Transport already failed; the receive loop will see the disconnect.
            self._closing = True
            logger.debug(
                f"Stopped writing to peer: {str(e)}",
                extra={"peer_id": self.peer_id}
            )

    async def _close_transport(self, code: int, reason: str) -> None:
        if (
            self.websocket.application_state != WebSocketState.CONNECTED
            or self.websocket.client_state != WebSocketState.CONNECTED
        ):
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.debug(
                f"Error closing WebSocket: {str(e)}",
                extra={"peer_id": self.peer_id}
            )

