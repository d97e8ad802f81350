"""Literal data packets (RFC 4880, section 5.9)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

__all__ = ["LiteralData", "serialize_literal"]

_PACKET_TYPE_LITERAL_DATA = 11
_MIN_FIRST_PARTIAL = 512
_MAX_PARTIAL_EXPONENT = 30


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    data = stream.read(n) if n else b""
    if data is None or len(data) < n:
        raise EOFError("unexpected EOF")
    return bytes(data)


def _encode_length(length: int) -> bytes:
    if length < 192:
        return bytes([length])
    if length < 8384:
        rest = length - 192
        return bytes([192 + (rest >> 8), rest & 0xFF])
    return b"\xff" + length.to_bytes(4, "big")


class _PartialLengthWriter:
    """Writes a packet body of unknown length using partial body lengths."""

    def __init__(self, writer, tag: int) -> None:
        self._writer = writer
        self._buffer = bytearray()
        self._closed = False
        writer.write(bytes([0xC0 | tag]))

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed packet writer")
        self._buffer += data
        while len(self._buffer) >= _MIN_FIRST_PARTIAL:
            exponent = min(len(self._buffer).bit_length() - 1, _MAX_PARTIAL_EXPONENT)
            size = 1 << exponent
            self._writer.write(bytes([0xE0 | exponent]) + bytes(self._buffer[:size]))
            del self._buffer[:size]
        return len(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.write(_encode_length(len(self._buffer)) + bytes(self._buffer))
        self._buffer.clear()
        close = getattr(self._writer, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "_PartialLengthWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class LiteralData:
    """The header of a literal data packet and a stream of its contents."""

    format: int
    is_binary: bool
    file_name: str
    time: int
    body: BinaryIO

    @classmethod
    def parse(cls, stream: BinaryIO) -> "LiteralData":
        """Parse a literal data packet body; the rest of the stream is the data."""
        fmt, name_length = _read_exact(stream, 2)
        file_name = _read_exact(stream, name_length).decode("utf-8", "surrogateescape")
        time = int.from_bytes(_read_exact(stream, 4), "big")
        return cls(fmt, fmt == ord("b"), file_name, time, stream)

    def for_eyes_only(self) -> bool:
        """Whether the contents are marked as especially sensitive."""
        return self.file_name == "_CONSOLE"


def serialize_literal(writer, is_binary: bool, file_name: str, time: int) -> _PartialLengthWriter:
    """Start a literal data packet on writer and return a writer for its data.

    The file name is truncated to 255 bytes. The returned writer must be
    closed, which also closes the underlying writer.
    """
    name = file_name.encode("utf-8", "surrogateescape")[:255]
    inner = _PartialLengthWriter(writer, _PACKET_TYPE_LITERAL_DATA)
    inner.write(bytes([ord("b") if is_binary else ord("t"), len(name)]))
    inner.write(name)
    inner.write((time & 0xFFFFFFFF).to_bytes(4, "big"))
    return inner