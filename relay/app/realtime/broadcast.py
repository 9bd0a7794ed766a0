"""
Fan-out broadcast primitive shared by the presence, timer and relay paths.
"""

import logging
from typing import Any, Dict, Iterable

from .connection import Peer

logger = logging.getLogger("relay.realtime.broadcast")


def broadcast(peers: Iterable[Peer], event: Dict[str, Any]) -> int:
    """
    Send one event to every peer that is open right now.

    The peer set is snapshotted at call time. A peer that closes concurrently
    simply misses the event.

    Args:
        peers: Current connection set
        event: Message envelope to send

    Returns:
        int: Number of peers the event was queued for
    """
    recipients = 0
    for peer in list(peers):
        if peer.send(event):
            recipients += 1

    logger.debug(
        "Broadcast event",
        extra={"event_type": event.get("type"), "recipients": recipients}
    )
    return recipients
