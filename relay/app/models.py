"""
Data Models Module

This module defines the Pydantic models for the relay wire protocol and the
fallible parse step that turns one inbound WebSocket text frame into a typed
message.

Models are organized by functional area:
- Participant models (profile sent by clients)
- Inbound message models (client -> server envelopes)
- Outbound message builders (server -> client envelopes)
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)


class FrameError(Exception):
    """Raised when an inbound frame is not a valid message envelope."""
    pass


# ============================================================================
# Participant Models
# ============================================================================

ParticipantId = Union[StrictInt, StrictStr]


class ParticipantProfile(BaseModel):
    """Client-supplied participant profile. The ip is never taken from here."""
    model_config = ConfigDict(extra="ignore")

    id: ParticipantId = Field(..., description="Stable participant identity key")
    name: Optional[str] = Field(None, description="Display name")
    color: Optional[str] = Field(None, description="Display color")


# ============================================================================
# Inbound Message Models
# ============================================================================

class JoinMessage(BaseModel):
    """Register the sending connection as a participant."""
    type: Literal["join"]
    user: ParticipantProfile


class UpdateMessage(BaseModel):
    """Replace the sending connection's profile fields."""
    type: Literal["update"]
    user: ParticipantProfile


class SynthMessage(BaseModel):
    """Opaque command relayed verbatim to every connection."""
    type: Literal["synth"]
    command: Any = None
    source: Any = None


class TimerControlMessage(BaseModel):
    """Shared timer control request."""
    type: Literal["reset", "start", "stop"]


InboundMessage = Annotated[
    Union[JoinMessage, UpdateMessage, SynthMessage, TimerControlMessage],
    Field(discriminator="type"),
]

_inbound_adapter = TypeAdapter(InboundMessage)

KNOWN_MESSAGE_TYPES = frozenset({"join", "update", "synth", "reset", "start", "stop"})


def parse_frame(raw: Union[str, bytes]) -> Optional[BaseModel]:
    """
    Parse one inbound frame into a typed message.

    Args:
        raw: UTF-8 JSON text of the frame

    Returns:
        The parsed message, or None when the envelope is well formed but its
        type is not one the relay handles.

    Raises:
        FrameError: If the frame is not JSON, not an object, has no string
                    type, or a known type carries invalid fields.
    """
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors; oversized
        # integer literals raise a bare ValueError, deep nesting RecursionError.
        raise FrameError(f"Invalid JSON: {type(exc).__name__}") from exc

    if not isinstance(data, dict):
        raise FrameError("Envelope must be a JSON object")

    message_type = data.get("type")
    if not isinstance(message_type, str):
        raise FrameError("Envelope has no string 'type' field")

    if message_type not in KNOWN_MESSAGE_TYPES:
        return None

    try:
        return _inbound_adapter.validate_python(data)
    except ValidationError as exc:
        raise FrameError(
            f"Invalid '{message_type}' message: {exc.error_count()} error(s)"
        ) from exc


# ============================================================================
# Outbound Message Builders
# ============================================================================

def users_message(users: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "users", "users": users}


def time_message(formatted: str) -> Dict[str, Any]:
    return {"type": "time", "time": formatted}


def start_message() -> Dict[str, Any]:
    return {"type": "start"}


def stop_message() -> Dict[str, Any]:
    return {"type": "stop"}


def synth_message(command: Any, source: Any) -> Dict[str, Any]:
    return {"type": "synth", "command": command, "source": source}
