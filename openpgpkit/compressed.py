"""Compressed data packets (RFC 4880, section 5.6)."""

from __future__ import annotations

import bz2
import zlib
from dataclasses import dataclass
from typing import BinaryIO

from .config import CompressionAlgo
from .fields import InvalidArgumentError, StructuralError, UnsupportedError
from .literal import _PartialLengthWriter

__all__ = [
    "NO_COMPRESSION",
    "BEST_SPEED",
    "BEST_COMPRESSION",
    "DEFAULT_COMPRESSION",
    "CompressionConfig",
    "Compressed",
    "CompressedWriter",
    "serialize_compressed",
]

NO_COMPRESSION = 0
BEST_SPEED = 1
BEST_COMPRESSION = 9
DEFAULT_COMPRESSION = -1

_PACKET_TYPE_COMPRESSED = 8
_READ_SIZE = 8192


@dataclass
class CompressionConfig:
    """Compressor settings.

    level runs from -1 (the library default) through 0 (no compression)
    to 9 (best compression); anything else is rejected.
    """

    level: int = DEFAULT_COMPRESSION


class _DecompressingReader:
    """A readable stream yielding the decompressed form of another stream."""

    def __init__(self, source: BinaryIO, decompressor) -> None:
        self._source = source
        self._decompressor = decompressor
        self._buffer = bytearray()

    def _fill(self) -> bool:
        if self._decompressor.eof:
            return False
        chunk = self._source.read(_READ_SIZE)
        if not chunk:
            raise EOFError("unexpected EOF in compressed data")
        try:
            self._buffer += self._decompressor.decompress(chunk)
        except (zlib.error, OSError, ValueError) as exc:
            raise StructuralError(f"corrupt compressed data: {exc}") from exc
        return True

    def read(self, size: int = -1) -> bytes:
        while size is None or size < 0 or len(self._buffer) < size:
            if not self._fill():
                break
        n = len(self._buffer) if size is None or size < 0 else min(size, len(self._buffer))
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data


@dataclass
class Compressed:
    """A compressed packet; body yields the packets it contains."""

    body: _DecompressingReader

    @classmethod
    def parse(cls, stream: BinaryIO) -> "Compressed":
        """Parse a compressed packet body."""
        head = stream.read(1)
        if not head:
            raise EOFError("unexpected EOF")
        algo = head[0]
        if algo == CompressionAlgo.ZIP:
            decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
        elif algo == CompressionAlgo.ZLIB:
            decompressor = zlib.decompressobj()
        elif algo == CompressionAlgo.BZIP2:
            decompressor = bz2.BZ2Decompressor()
        else:
            raise UnsupportedError(f"unknown compression algorithm: {algo}")
        return cls(_DecompressingReader(stream, decompressor))


class CompressedWriter:
    """Compresses written data into a compressed packet; must be closed."""

    def __init__(self, stream_header: _PartialLengthWriter, compressor) -> None:
        self._header = stream_header
        self._compressor = compressor
        self._closed = False

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed compressed writer")
        out = self._compressor.compress(bytes(data))
        if out:
            self._header.write(out)
        return len(data)

    def close(self) -> None:
        """Flush the compressor and close the packet and the underlying writer."""
        if self._closed:
            return
        self._closed = True
        tail = self._compressor.flush()
        if tail:
            self._header.write(tail)
        self._header.close()

    def __enter__(self) -> "CompressedWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def serialize_compressed(writer, algo, cc=None) -> CompressedWriter:
    """Start a compressed data packet on writer and return a writer for its contents."""
    level = DEFAULT_COMPRESSION if cc is None else cc.level
    if not DEFAULT_COMPRESSION <= level <= BEST_COMPRESSION:
        raise InvalidArgumentError(f"invalid compression level {level}")
    algo = int(algo)
    if algo == CompressionAlgo.ZIP:
        compressor = zlib.compressobj(level, zlib.DEFLATED, -zlib.MAX_WBITS)
    elif algo == CompressionAlgo.ZLIB:
        compressor = zlib.compressobj(level)
    else:
        raise UnsupportedError(f"Unsupported compression algorithm: {algo}")
    header = _PartialLengthWriter(writer, _PACKET_TYPE_COMPRESSED)
    header.write(bytes([algo]))
    return CompressedWriter(header, compressor)