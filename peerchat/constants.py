# peerchat wire constants (opcodes and size limits)

from __future__ import annotations

from enum import IntEnum


class PacketKind(IntEnum):
    """Opcode carried as a VarU16 at the start of every datagram."""

    Ping = 0
    Pong = 1
    RequestUserInfo = 2
    RequestRoomInfo = 3
    RequestRoomList = 4
    UserInfo = 5
    RoomInfo = 6
    RoomList = 7
    Message = 8


# Largest UDP payload over IPv4 (65535 - 8 byte UDP header - 20 byte IP header).
MAX_DATAGRAM_SIZE = 65507

OWNED_ROOM_SUFFIX = "_owned_room"
DEFAULT_ROOM_SHORT_ABOUT = "An automatically-created room for testing."

USERNAME_MAX_CHARS = 32
