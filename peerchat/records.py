from __future__ import annotations

from dataclasses import dataclass

from .codec import Record, Sequence, String, wire


@dataclass
class UserInfo(Record):
    id: str = wire(String)
    username: str = wire(String)
    about: str = wire(String)


@dataclass
class RoomInfo(Record):
    id: str = wire(String)
    title: str = wire(String)
    short_about: str = wire(String)
    long_about: str = wire(String)


@dataclass
class RoomList(Record):
    room_ids: list[str] = wire(Sequence(String))


@dataclass
class Message(Record):
    sender: str = wire(String)
    contents: str = wire(String)
