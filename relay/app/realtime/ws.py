"""
WebSocket Endpoint for the Session Relay
========================================

Every participant holds one WebSocket to the relay. There is no
authentication: any client that connects receives the handshake and every
broadcast from then on.

Handshake (Server -> Client, unsolicited, in this order):
    - {"type": "time", "time": "HH:MM:SS"}
    - {"type": "users", "users": [{"id": ..., "name": ..., "color": ..., "ip": ...}]}
    - {"type": "start"}                      # only while the timer is running

Client Messages:
    - {"type": "join", "user": {"id": ..., "name": "...", "color": "..."}}
    - {"type": "update", "user": {"id": ..., "name": "...", "color": "..."}}
    - {"type": "synth", "command": <any>, "source": <any>}
    - {"type": "start"} / {"type": "stop"} / {"type": "reset"}

Server Events:
    - users, time, start, stop, synth (see ``models.py``)
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.requests import HTTPConnection

from .connection import Peer
from .dispatcher import dispatch
from .session import RelaySession

logger = logging.getLogger("relay.realtime.ws")

realtime_router = APIRouter()

# Upper bound on flushing a peer's outbox once its receive loop has ended
CLOSE_TIMEOUT_SECONDS = 5.0


def get_session(connection: HTTPConnection) -> RelaySession:
    """Dependency returning the session owned by the running application."""
    return connection.app.state.session


@realtime_router.websocket("/ws")
@realtime_router.websocket("/")
async def websocket_endpoint(
        websocket: WebSocket,
        session: RelaySession = Depends(get_session)
):
    """
    Relay WebSocket endpoint, served at both ``/`` and ``/ws``.

    The handshake is queued before the first receive, so the client gets it
    without sending anything. A closed or failed transport counts as leave.
    """
    await websocket.accept()

    peer = Peer(websocket, session.advertised_ip)
    session.connect(peer)

    writer_task = asyncio.create_task(peer.run_writer())

    try:
        while True:
            message = await websocket.receive()

            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            if data is None:
                continue

            dispatch(session, peer, data)

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected by client", extra={"peer_id": peer.peer_id})

    except Exception as e:
        logger.error(f"WebSocket error: {str(e)}", exc_info=True)

    finally:
        session.disconnect(peer)
        peer.close()

        # Let the writer flush and send the close frame, then give up on it.
        try:
            await asyncio.wait_for(writer_task, timeout=CLOSE_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.debug("Writer did not finish before close timeout", extra={"peer_id": peer.peer_id})
        except asyncio.CancelledError:
            writer_task.cancel()
            raise


@realtime_router.get("/realtime/status")
async def realtime_status(session: RelaySession = Depends(get_session)) -> Dict[str, Any]:
    """
    Get relay connection and timer statistics.

    Returns:
        dict: Connection, participant and timer state
    """
    return {"status": "ok", **session.status()}


__all__ = ["realtime_router", "get_session"]
