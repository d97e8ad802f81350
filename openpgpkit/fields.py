"""Packet field encodings: multiprecision integers, OIDs and packet headers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

__all__ = [
    "OpenPGPError",
    "UnsupportedError",
    "StructuralError",
    "InvalidArgumentError",
    "AEADError",
    "MPI",
    "OID",
    "serialize_header",
]


class OpenPGPError(Exception):
    """Base class for errors raised by this package."""


class UnsupportedError(OpenPGPError):
    """The input uses a feature that is not supported."""


class StructuralError(OpenPGPError):
    """The input is malformed."""


class InvalidArgumentError(OpenPGPError):
    """A caller supplied an invalid argument."""


class AEADError(OpenPGPError):
    """An AEAD operation failed, usually through an authentication failure."""


_MAX_OID = 254
_RESERVED_OID_LENGTHS = (0, 0xFF)


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    data = stream.read(n) if n else b""
    if data is None or len(data) < n:
        raise EOFError("unexpected EOF")
    return bytes(data)


@dataclass(frozen=True)
class MPI:
    """A big integer together with the bit length it was encoded with."""

    data: bytes
    bit_length: int

    @classmethod
    def new(cls, data: bytes) -> "MPI":
        """Build an MPI from big-endian bytes, dropping leading zero bytes."""
        stripped = bytes(data).lstrip(b"\x00")
        if not stripped:
            return cls(b"", 0)
        return cls(stripped, 8 * (len(stripped) - 1) + stripped[0].bit_length())

    @classmethod
    def from_int(cls, value: int) -> "MPI":
        """Build an MPI holding a non-negative integer."""
        if value < 0:
            raise InvalidArgumentError("MPI value must not be negative")
        length = value.bit_length()
        return cls(value.to_bytes((length + 7) // 8, "big"), length)

    @classmethod
    def read_from(cls, stream: BinaryIO) -> "MPI":
        """Read the next MPI from a binary stream, exactly as encoded."""
        header = _read_exact(stream, 2)
        bit_length = int.from_bytes(header, "big")
        data = _read_exact(stream, (bit_length + 7) // 8)
        return cls(data, bit_length)

    def __int__(self) -> int:
        return int.from_bytes(self.data, "big")

    def encoded_bytes(self) -> bytes:
        return self.bit_length.to_bytes(2, "big") + self.data

    def encoded_length(self) -> int:
        return 2 + len(self.data)


@dataclass(frozen=True)
class OID:
    """A variable-length field with a one-octet length prefix."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) in _RESERVED_OID_LENGTHS:
            raise InvalidArgumentError("OID length is reserved")
        if len(self.data) > _MAX_OID:
            raise InvalidArgumentError("OID too large")

    @classmethod
    def read_from(cls, stream: BinaryIO) -> "OID":
        """Read the next OID from a binary stream."""
        length = _read_exact(stream, 1)[0]
        if length in _RESERVED_OID_LENGTHS:
            raise UnsupportedError("reserved for future extensions")
        return cls(_read_exact(stream, length))

    def bit_length(self) -> int:
        return 8 * len(self.data)

    def encoded_bytes(self) -> bytes:
        return bytes([len(self.data)]) + self.data

    def encoded_length(self) -> int:
        return 1 + len(self.data)


def serialize_header(writer, tag: int, length: int) -> None:
    """Write a new-format packet header for a packet of known length."""
    if not 0 <= tag <= 63:
        raise InvalidArgumentError(f"invalid packet tag {tag}")
    if length < 0:
        raise InvalidArgumentError("packet length must not be negative")
    first = 0xC0 | tag
    if length < 192:
        header = bytes([first, length])
    elif length < 8384:
        rest = length - 192
        header = bytes([first, 192 + (rest >> 8), rest & 0xFF])
    else:
        header = bytes([first, 0xFF]) + length.to_bytes(4, "big")
    writer.write(header)