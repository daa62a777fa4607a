import pytest

from peerchat.codec import DecodeError, String
from peerchat.constants import PacketKind
from peerchat.packet import UnknownPacketKind, make_packet, parse_packet, remaining
from peerchat.records import Message, RoomInfo, RoomList


def test_packet_kind_opcodes_are_fixed() -> None:
    assert [(k.name, int(k)) for k in PacketKind] == [
        ("Ping", 0),
        ("Pong", 1),
        ("RequestUserInfo", 2),
        ("RequestRoomInfo", 3),
        ("RequestRoomList", 4),
        ("UserInfo", 5),
        ("RoomInfo", 6),
        ("RoomList", 7),
        ("Message", 8),
    ]


def test_empty_packet_is_bare_opcode() -> None:
    assert make_packet(PacketKind.Ping) == b"\x00"
    assert make_packet(PacketKind.Pong) == b"\x01"
    assert make_packet(PacketKind.RequestRoomList) == b"\x04"


def test_record_body_follows_opcode() -> None:
    data = make_packet(PacketKind.Message, Message(sender="a", contents="hi"))
    assert data == b"\x08\x01a\x02hi"

    kind, reader = parse_packet(data)
    assert kind is PacketKind.Message
    assert Message.decode(reader) == Message(sender="a", contents="hi")
    assert remaining(reader) == 0


def test_plain_body_needs_codec() -> None:
    data = make_packet(PacketKind.RequestRoomInfo, "room", String)
    assert data == b"\x03\x04room"

    with pytest.raises(TypeError):
        make_packet(PacketKind.RequestRoomInfo, "room")


def test_room_list_packet() -> None:
    data = make_packet(PacketKind.RoomList, RoomList(room_ids=["alice_owned_room"]))
    kind, reader = parse_packet(data)
    assert kind is PacketKind.RoomList
    assert RoomList.decode(reader).room_ids == ["alice_owned_room"]


def test_parse_reports_unknown_kind() -> None:
    with pytest.raises(UnknownPacketKind) as exc:
        parse_packet(b"\x09")
    assert exc.value.value == 9
    assert isinstance(exc.value, DecodeError)

    # 300 as a two-byte opcode
    with pytest.raises(UnknownPacketKind):
        parse_packet(b"\xac\x02payload")


def test_parse_rejects_empty_and_overlong_opcodes() -> None:
    with pytest.raises(DecodeError):
        parse_packet(b"")
    with pytest.raises(DecodeError):
        parse_packet(b"\x80" * 20)


def test_trailing_bytes_are_left_in_reader() -> None:
    info = RoomInfo(id="r", title="t", short_about="", long_about="")
    data = make_packet(PacketKind.RoomInfo, info) + b"junk"
    kind, reader = parse_packet(data)
    assert RoomInfo.decode(reader) == info
    assert remaining(reader) == 4


def test_non_minimal_opcode_is_accepted() -> None:
    kind, _ = parse_packet(b"\x80\x00")
    assert kind is PacketKind.Ping
