"""Binary codec for the peerchat wire format.

Every value on the wire is produced by a codec object with two methods:

- ``encode(value, sink)`` writes the value to a writable binary stream
- ``decode(source)`` reads one value back from a readable binary stream

Fixed-width integers are little-endian, booleans are a single byte, and
lengths/counts are LEB128-style variable-length integers. Composite records
are dataclasses deriving from :class:`Record`; their wire form is the
concatenation of their fields in declaration order, with no framing,
versioning or optional fields.
"""

from __future__ import annotations

import dataclasses
import io
from typing import IO, Any, Generic, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R", bound="Record")


class CodecError(Exception):
    """Base class for wire encoding failures."""


class EncodeError(CodecError, ValueError):
    """A value cannot be represented by the requested codec."""


class DecodeError(CodecError, ValueError):
    """Input bytes do not form a valid value (truncated, malformed, bad UTF-8)."""


def read_exact(source: IO[bytes], n: int) -> bytes:
    if n == 0:
        return b""
    data = source.read(n)
    got = len(data) if data else 0
    if got != n:
        raise DecodeError(f"truncated input: needed {n} bytes, got {got}")
    return data


def _check_int(value: Any, lo: int, hi: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"{what} expects an int, got {type(value).__name__}")
    if value < lo or value > hi:
        raise EncodeError(f"{value} out of range for {what} [{lo}, {hi}]")
    return int(value)


class Codec(Generic[T]):
    name = "codec"

    def encode(self, value: T, sink: IO[bytes]) -> None:
        raise NotImplementedError

    def decode(self, source: IO[bytes]) -> T:
        raise NotImplementedError

    def __repr__(self) -> str:
        return self.name


class BoolCodec(Codec[bool]):
    # TODO: pack runs of bools into a bitset instead of one byte each.
    name = "bool"

    def encode(self, value: bool, sink: IO[bytes]) -> None:
        if not isinstance(value, bool):
            raise EncodeError(f"bool expects a bool, got {type(value).__name__}")
        sink.write(b"\x01" if value else b"\x00")

    def decode(self, source: IO[bytes]) -> bool:
        return read_exact(source, 1) != b"\x00"


class FixedInt(Codec[int]):
    """Little-endian integer occupying exactly ``bits // 8`` bytes."""

    def __init__(self, bits: int, *, signed: bool) -> None:
        if bits % 8 or bits <= 0:
            raise ValueError("bits must be a positive multiple of 8")
        self.bits = bits
        self.signed = signed
        self.size = bits // 8
        if signed:
            self.min = -(1 << (bits - 1))
            self.max = (1 << (bits - 1)) - 1
        else:
            self.min = 0
            self.max = (1 << bits) - 1
        self.name = f"{'i' if signed else 'u'}{bits}"

    def encode(self, value: int, sink: IO[bytes]) -> None:
        v = _check_int(value, self.min, self.max, self.name)
        sink.write(v.to_bytes(self.size, "little", signed=self.signed))

    def decode(self, source: IO[bytes]) -> int:
        return int.from_bytes(read_exact(source, self.size), "little", signed=self.signed)


class VarInt(Codec[int]):
    """Unsigned LEB128 integer bounded to ``bits`` bits.

    Each byte carries seven value bits, least significant group first; the
    high bit is set on every byte except the last. Encoding is always
    minimal, so the width maximum takes exactly ``ceil(bits / 7)`` bytes.
    """

    def __init__(self, bits: int) -> None:
        self.bits = bits
        self.max = (1 << bits) - 1
        self.max_len = -(-bits // 7)
        self.name = f"var_u{bits}"

    def encode(self, value: int, sink: IO[bytes]) -> None:
        v = _check_int(value, 0, self.max, self.name)
        out = bytearray()
        while v & ~0x7F:
            out.append((v & 0x7F) | 0x80)
            v >>= 7
        out.append(v)
        sink.write(bytes(out))

    def decode(self, source: IO[bytes]) -> int:
        value = 0
        shift = 0
        while shift < self.bits:
            b = read_exact(source, 1)[0]
            value |= (b & 0x7F) << shift
            if not b & 0x80:
                return value & self.max
            shift += 7
        raise DecodeError(f"{self.name} too long: continuation past {self.max_len} bytes")

    def encoded_len(self, value: int) -> int:
        v = _check_int(value, 0, self.max, self.name)
        return max(1, -(-v.bit_length() // 7))


Bool = BoolCodec()
U8 = FixedInt(8, signed=False)
U16 = FixedInt(16, signed=False)
U32 = FixedInt(32, signed=False)
U64 = FixedInt(64, signed=False)
U128 = FixedInt(128, signed=False)
I8 = FixedInt(8, signed=True)
I16 = FixedInt(16, signed=True)
I32 = FixedInt(32, signed=True)
I64 = FixedInt(64, signed=True)
I128 = FixedInt(128, signed=True)

VarU16 = VarInt(16)
VarU32 = VarInt(32)
VarU64 = VarInt(64)
VarU128 = VarInt(128)


class StringCodec(Codec[str]):
    """UTF-8 text prefixed with its byte length as a VarU32."""

    name = "string"

    def encode(self, value: str, sink: IO[bytes]) -> None:
        if not isinstance(value, str):
            raise EncodeError(f"string expects a str, got {type(value).__name__}")
        try:
            data = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError(f"string is not encodable as UTF-8: {e}") from e
        VarU32.encode(len(data), sink)
        sink.write(data)

    def decode(self, source: IO[bytes]) -> str:
        length = VarU32.decode(source)
        data = read_exact(source, length)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid UTF-8 in string: {e}") from e


String = StringCodec()


class Sequence(Codec[list]):
    """Homogeneous list prefixed with its element count as a VarU32."""

    def __init__(self, item: Any) -> None:
        self.item = as_codec(item)
        self.name = f"sequence[{self.item!r}]"

    def encode(self, value: Iterable[Any], sink: IO[bytes]) -> None:
        if isinstance(value, (str, bytes, bytearray)):
            raise EncodeError(f"{self.name} expects a list, got {type(value).__name__}")
        items = list(value)
        VarU32.encode(len(items), sink)
        for item in items:
            self.item.encode(item, sink)

    def decode(self, source: IO[bytes]) -> list:
        count = VarU32.decode(source)
        items = []
        for _ in range(count):
            items.append(self.item.decode(source))
        return items


def wire(codec: Any, **kwargs: Any) -> Any:
    """Declare a dataclass field together with the codec that carries it."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata["codec"] = as_codec(codec)
    return dataclasses.field(metadata=metadata, **kwargs)


class Record:
    """Mixin for dataclasses serialised field by field in declaration order.

    Every field must be declared with :func:`wire`, e.g.::

        @dataclass
        class Message(Record):
            sender: str = wire(String)
            contents: str = wire(String)
    """

    @classmethod
    def wire_fields(cls) -> tuple[tuple[str, Codec[Any]], ...]:
        cached = cls.__dict__.get("_wire_fields")
        if cached is not None:
            return cached

        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{cls.__name__} must be a dataclass")

        fields = []
        for f in dataclasses.fields(cls):
            codec = f.metadata.get("codec")
            if codec is None:
                raise TypeError(f"{cls.__name__}.{f.name} has no wire codec")
            fields.append((f.name, codec))

        cached = tuple(fields)
        setattr(cls, "_wire_fields", cached)
        return cached

    def encode(self, sink: IO[bytes]) -> None:
        for name, codec in self.wire_fields():
            codec.encode(getattr(self, name), sink)

    @classmethod
    def decode(cls: type[R], source: IO[bytes]) -> R:
        values = {name: codec.decode(source) for name, codec in cls.wire_fields()}
        return cls(**values)

    def to_bytes(self) -> bytes:
        return encode(self)

    @classmethod
    def from_bytes(cls: type[R], data: bytes) -> R:
        return cls.decode(io.BytesIO(data))


class RecordCodec(Codec[Any]):
    def __init__(self, record: type[Record]) -> None:
        self.record = record
        self.name = record.__name__

    def encode(self, value: Any, sink: IO[bytes]) -> None:
        if not isinstance(value, self.record):
            raise EncodeError(f"{self.name} expects a {self.name}, got {type(value).__name__}")
        value.encode(sink)

    def decode(self, source: IO[bytes]) -> Any:
        return self.record.decode(source)


def as_codec(obj: Any) -> Codec[Any]:
    if isinstance(obj, Codec):
        return obj
    if isinstance(obj, type) and issubclass(obj, Record):
        return RecordCodec(obj)
    raise TypeError(f"not a codec or record type: {obj!r}")


def encode(value: Any, codec: Any = None) -> bytes:
    buf = io.BytesIO()
    if codec is None:
        if not isinstance(value, Record):
            raise TypeError("a codec is required to encode non-record values")
        value.encode(buf)
    else:
        as_codec(codec).encode(value, buf)
    return buf.getvalue()


def decode(data: bytes, codec: Any) -> Any:
    return as_codec(codec).decode(io.BytesIO(data))
