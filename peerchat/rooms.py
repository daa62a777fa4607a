"""Room bookkeeping for a peerchat node.

Two disjoint maps are kept, both keyed by room id:

- owned rooms: created locally, authoritative, live for the whole process
- remote rooms: a soft cache of metadata learned from peer RoomInfo replies;
  entries may go stale and are overwritten by newer replies
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .constants import DEFAULT_ROOM_SHORT_ABOUT, OWNED_ROOM_SUFFIX
from .records import RoomInfo, RoomList


class DuplicateRoomError(ValueError):
    pass


@dataclass
class Room:
    info: RoomInfo

    @property
    def id(self) -> str:
        return self.info.id


def default_room_info(username: str) -> RoomInfo:
    """The room every node creates for itself at startup."""
    return RoomInfo(
        id=f"{username}{OWNED_ROOM_SUFFIX}",
        title=f"{username}'s Owned Room",
        short_about=DEFAULT_ROOM_SHORT_ABOUT,
        long_about="",
    )


class RoomManager:
    """Owns the local room catalog and the cache of rooms advertised by the peer."""

    def __init__(self) -> None:
        self.log = logging.getLogger("peerchat.rooms")
        self.owned: dict[str, Room] = {}
        self.remote: dict[str, Room] = {}

    def add_owned(self, info: RoomInfo) -> Room:
        if info.id in self.owned:
            raise DuplicateRoomError(f"owned room {info.id!r} already exists")

        # A room we own is never also a cached remote entry.
        if self.remote.pop(info.id, None) is not None:
            self.log.info("Evicted remote room %r shadowed by owned room", info.id)

        room = Room(info)
        self.owned[info.id] = room
        self.log.info("Owned room created id=%r title=%r", info.id, info.title)
        return room

    def get_owned(self, room_id: str) -> Room | None:
        return self.owned.get(room_id)

    def cache_remote(self, info: RoomInfo) -> bool:
        """Insert or overwrite a remote room. Returns False if the id is one we own."""
        if info.id in self.owned:
            self.log.warning(
                "Ignoring remote RoomInfo for id=%r which collides with an owned room",
                info.id,
            )
            return False

        replaced = info.id in self.remote
        self.remote[info.id] = Room(info)
        self.log.info(
            "Remote room %s id=%r title=%r",
            "updated" if replaced else "cached",
            info.id,
            info.title,
        )
        return True

    def get_room(self, room_id: str) -> Room | None:
        """Look up a room in either map, owned first."""
        return self.owned.get(room_id) or self.remote.get(room_id)

    def build_room_list(self) -> RoomList:
        return RoomList(room_ids=list(self.owned.keys()))

    def clear_remote(self) -> None:
        self.remote.clear()

    def get_stats(self) -> dict[str, Any]:
        return {
            "owned": len(self.owned),
            "remote": len(self.remote),
        }
