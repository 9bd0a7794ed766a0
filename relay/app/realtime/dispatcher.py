"""
Inbound frame dispatcher.

One entry point per received frame: parse, then route by message type to the
session. Malformed frames and unknown types are dropped without replying and
without touching the connection.
"""

import logging
from typing import Union

from ..models import (
    FrameError,
    JoinMessage,
    SynthMessage,
    TimerControlMessage,
    UpdateMessage,
    parse_frame,
)
from .connection import Peer
from .session import RelaySession

logger = logging.getLogger("relay.realtime.dispatcher")


def dispatch(session: RelaySession, peer: Peer, raw: Union[str, bytes]) -> None:
    """
    Handle one inbound frame from ``peer``.

    Args:
        session: Session the peer belongs to
        peer: Connection the frame arrived on
        raw: Frame text
    """
    try:
        message = parse_frame(raw)
    except FrameError as e:
        logger.warning(f"Dropping malformed frame: {str(e)}", extra={"peer_id": peer.peer_id})
        return

    if message is None:
        logger.debug("Ignoring frame with unknown type", extra={"peer_id": peer.peer_id})
        return

    if isinstance(message, JoinMessage):
        session.join(peer, message.user)

    elif isinstance(message, UpdateMessage):
        session.update(peer, message.user)

    elif isinstance(message, SynthMessage):
        session.relay(message)

    elif isinstance(message, TimerControlMessage):
        if message.type == "start":
            session.start_timer()
        elif message.type == "stop":
            session.stop_timer()
        else:
            session.reset_timer()
