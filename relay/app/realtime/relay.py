"""
Command relay: re-broadcasts ``synth`` payloads to every connection,
the sender included. Payload contents are never inspected.
"""

from typing import Iterable

from ..models import SynthMessage, synth_message
from .broadcast import broadcast
from .connection import Peer


def relay_command(peers: Iterable[Peer], message: SynthMessage) -> int:
    return broadcast(peers, synth_message(message.command, message.source))
