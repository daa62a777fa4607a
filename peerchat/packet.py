from __future__ import annotations

import io
from typing import Any

from .codec import DecodeError, Record, VarU16, as_codec
from .constants import PacketKind


class UnknownPacketKind(DecodeError):
    def __init__(self, value: int) -> None:
        super().__init__(f"unrecognized packet kind {value}")
        self.value = value


def make_packet(kind: PacketKind, body: Any = None, codec: Any = None) -> bytes:
    """Build a datagram: VarU16 opcode followed directly by the body encoding.

    ``body`` is either a record (encoded with its own fields) or a plain value
    paired with an explicit ``codec``. There is no length envelope; the UDP
    datagram boundary is the only framing.
    """

    buf = io.BytesIO()
    VarU16.encode(int(kind), buf)
    if body is not None:
        if codec is not None:
            as_codec(codec).encode(body, buf)
        elif isinstance(body, Record):
            body.encode(buf)
        else:
            raise TypeError(f"a codec is required for {type(body).__name__} bodies")
    return buf.getvalue()


def parse_packet(data: bytes) -> tuple[PacketKind, io.BytesIO]:
    """Split a datagram into its kind and a reader positioned at the payload.

    Raises DecodeError if the opcode is truncated or overlong, and
    UnknownPacketKind if it is outside the known catalog.
    """

    reader = io.BytesIO(data)
    raw = VarU16.decode(reader)
    try:
        kind = PacketKind(raw)
    except ValueError:
        raise UnknownPacketKind(raw) from None
    return kind, reader


def remaining(reader: io.BytesIO) -> int:
    with reader.getbuffer() as view:
        return len(view) - reader.tell()
