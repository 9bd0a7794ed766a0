"""
Connection Registry
===================

Bidirectional index between live connections and participant identity.

Both directions live behind one object and are only ever changed together by
``join``, ``update`` and ``leave``, so for every participant id ``p``:

    registry.connection_for(p) is c  <=>  registry.get(c).id == p

and at most one connection is registered per participant id.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

from ..models import ParticipantId, ParticipantProfile

logger = logging.getLogger("relay.realtime.registry")

C = TypeVar("C", bound=Hashable)


@dataclass(frozen=True)
class RegistryEntry:
    """Public profile of one registered participant."""
    id: ParticipantId
    name: Optional[str]
    color: Optional[str]
    ip: str

    def public_fields(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color, "ip": self.ip}


class ConnectionRegistry(Generic[C]):
    """
    Dual index: connection -> entry and participant id -> connection.

    Iteration order is registration order; an update keeps its slot.
    """

    def __init__(self):
        self._by_connection: Dict[C, RegistryEntry] = {}
        self._by_participant: Dict[ParticipantId, C] = {}

    def __len__(self) -> int:
        return len(self._by_connection)

    def __contains__(self, connection: C) -> bool:
        return connection in self._by_connection

    def __iter__(self) -> Iterator[C]:
        return iter(list(self._by_connection))

    def get(self, connection: C) -> Optional[RegistryEntry]:
        return self._by_connection.get(connection)

    def connection_for(self, participant_id: ParticipantId) -> Optional[C]:
        return self._by_participant.get(participant_id)

    def entries(self) -> List[RegistryEntry]:
        return list(self._by_connection.values())

    def join(self, connection: C, profile: ParticipantProfile, ip: str) -> Optional[C]:
        """
        Register ``connection`` as ``profile.id``.

        Any connection already holding that id is unregistered. If the joining
        connection was registered under a different id, that id is released.

        Args:
            connection: Connection claiming the identity
            profile: Client-supplied profile
            ip: Server-assigned address for the entry

        Returns:
            The evicted connection if it differs from ``connection``, else None.
            The caller is responsible for closing it.
        """
        evicted = self._release_id(profile.id, keep=connection)

        previous = self._by_connection.pop(connection, None)
        if previous is not None and previous.id != profile.id:
            self._by_participant.pop(previous.id, None)

        self._by_connection[connection] = RegistryEntry(
            id=profile.id, name=profile.name, color=profile.color, ip=ip
        )
        self._by_participant[profile.id] = connection
        return evicted

    def update(self, connection: C, profile: ParticipantProfile) -> Optional[C]:
        """
        Replace the profile fields of a registered connection, keeping its ip.

        A changed id re-keys the participant index; another connection holding
        the new id is unregistered exactly as on ``join``.

        Returns:
            The evicted connection, if any.

        Raises:
            KeyError: If ``connection`` is not registered
        """
        current = self._by_connection[connection]

        evicted = None
        if profile.id != current.id:
            evicted = self._release_id(profile.id, keep=connection)
            self._by_participant.pop(current.id, None)
            self._by_participant[profile.id] = connection

        self._by_connection[connection] = replace(
            current, id=profile.id, name=profile.name, color=profile.color
        )
        return evicted

    def leave(self, connection: C) -> Optional[RegistryEntry]:
        """
        Unregister ``connection``.

        Returns:
            The removed entry, or None if the connection was not registered.
        """
        entry = self._by_connection.pop(connection, None)
        if entry is not None and self._by_participant.get(entry.id) is connection:
            del self._by_participant[entry.id]
        return entry

    def snapshot(self) -> List[Dict[str, Any]]:
        """Public fields of every entry, in registry order."""
        return [entry.public_fields() for entry in self._by_connection.values()]

    def _release_id(self, participant_id: ParticipantId, keep: C) -> Optional[C]:
        holder = self._by_participant.pop(participant_id, None)
        if holder is None:
            return None

        self._by_connection.pop(holder, None)
        if holder is keep:
            return None

        logger.info(
            "Evicting previous connection for participant",
            extra={"participant_id": participant_id}
        )
        return holder
