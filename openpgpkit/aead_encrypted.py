"""AEAD encrypted data packets (tag 20, RFC 4880bis, section 5.16)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional

from .algorithm import AEADMode, CipherFunction
from .config import AEADConfig, Config, decode_aead_chunk_size
from .fields import AEADError, UnsupportedError
from .literal import _PartialLengthWriter

__all__ = [
    "AEADEncrypted",
    "AEADDecrypter",
    "AEADEncrypter",
    "serialize_aead_encrypted",
]

_PACKET_TYPE_AEAD_ENCRYPTED = 20
_PACKET_TAG_OCTET = 0xD4
_VERSION = 1
_INDEX_LIMIT = 1 << 64


def _read_up_to(stream: BinaryIO, n: int) -> bytes:
    """Read n bytes, or fewer if the stream ends first."""
    parts = []
    remaining = n
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        parts.append(bytes(chunk))
        remaining -= len(chunk)
    return b"".join(parts)


class _NoCloseWriter:
    def __init__(self, writer) -> None:
        self._writer = writer

    def write(self, data: bytes):
        return self._writer.write(data)


class _AEADCrypter:
    """Chunk bookkeeping shared by the encrypter and the decrypter."""

    def __init__(self, aead, chunk_size: int, initial_nonce: bytes, associated_data: bytes) -> None:
        self._aead = aead
        self._chunk_size = chunk_size
        self._initial_nonce = bytes(initial_nonce)
        self._associated_data = bytes(associated_data)
        self._chunk_index = 0
        self._bytes_processed = 0

    def _index_bytes(self) -> bytes:
        return self._chunk_index.to_bytes(8, "big")

    def _next_nonce(self) -> bytes:
        nonce = bytearray(self._initial_nonce)
        offset = len(nonce) - 8
        for i, b in enumerate(self._index_bytes()):
            nonce[offset + i] ^= b
        return bytes(nonce)

    def _increment_index(self) -> None:
        if self._chunk_index + 1 >= _INDEX_LIMIT:
            raise AEADError("cannot further increment index")
        self._chunk_index += 1

    def _final_adata(self) -> bytes:
        return (
            self._associated_data
            + self._index_bytes()
            + self._bytes_processed.to_bytes(8, "big")
        )


class AEADDecrypter(_AEADCrypter):
    """Reads and authenticates the plaintext of an AEAD encrypted packet."""

    def __init__(self, aead, chunk_size, initial_nonce, associated_data, reader, peeked) -> None:
        super().__init__(aead, chunk_size, initial_nonce, associated_data)
        self._reader = reader
        self._peeked = bytes(peeked)
        self._buffer = bytearray()
        self._eof = False

    def _open_chunk(self, data: bytes) -> bytes:
        tag_len = self._aead.overhead
        combined = self._peeked + data
        chunk, self._peeked = combined[:-tag_len], combined[-tag_len:]
        plain = self._aead.open(self._next_nonce(), chunk, self._associated_data + self._index_bytes())
        self._bytes_processed += len(plain)
        self._increment_index()
        return plain

    def _validate_final_tag(self) -> None:
        self._aead.open(self._next_nonce(), self._peeked, self._final_adata())
        self._eof = True

    def _process_chunk(self) -> None:
        wanted = self._chunk_size + self._aead.overhead
        data = _read_up_to(self._reader, wanted)
        if not data and self._chunk_index > 0:
            # The previous chunk ended exactly on a chunk boundary.
            self._validate_final_tag()
            return
        self._buffer += self._open_chunk(data)
        if len(data) < wanted:
            self._validate_final_tag()

    def read(self, size: int = -1) -> bytes:
        """Return up to size decrypted bytes (all when size is negative).

        Raises AEADError if any chunk or the final tag fails to authenticate.
        """
        unlimited = size is None or size < 0
        while (unlimited or len(self._buffer) < size) and not self._eof:
            self._process_chunk()
        n = len(self._buffer) if unlimited else min(size, len(self._buffer))
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data

    def close(self) -> None:
        """Nothing to release; the final tag is checked while reading."""

    def __enter__(self) -> "AEADDecrypter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AEADEncrypter(_AEADCrypter):
    """Encrypts written plaintext chunk by chunk; must be closed."""

    def __init__(self, aead, chunk_size, initial_nonce, associated_data, writer) -> None:
        super().__init__(aead, chunk_size, initial_nonce, associated_data)
        self._writer = writer
        self._buffer = bytearray()
        self._closed = False

    def _seal_chunk(self, data: bytes) -> bytes:
        if len(data) > self._chunk_size:
            raise AEADError("chunk exceeds maximum length")
        sealed = self._aead.seal(self._next_nonce(), data, self._associated_data + self._index_bytes())
        self._bytes_processed += len(data)
        self._increment_index()
        return sealed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed AEAD writer")
        self._buffer += data
        while len(self._buffer) >= self._chunk_size:
            chunk = bytes(self._buffer[:self._chunk_size])
            del self._buffer[:self._chunk_size]
            self._writer.write(self._seal_chunk(chunk))
        return len(data)

    def close(self) -> None:
        """Encrypt what is left, append the final tag and end the packet."""
        if self._closed:
            return
        self._closed = True
        if self._buffer or self._bytes_processed == 0:
            self._writer.write(self._seal_chunk(bytes(self._buffer)))
            self._buffer.clear()
        final_tag = self._aead.seal(self._next_nonce(), b"", self._final_adata())
        self._writer.write(final_tag)
        self._writer.close()

    def __enter__(self) -> "AEADEncrypter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class AEADEncrypted:
    """The header of an AEAD encrypted packet and its encrypted contents."""

    cipher: CipherFunction
    mode: AEADMode
    chunk_size_byte: int
    initial_nonce: bytes
    contents: BinaryIO

    @classmethod
    def parse(cls, stream: BinaryIO) -> "AEADEncrypted":
        """Parse the packet body header; the rest of the stream is ciphertext."""
        header = _read_up_to(stream, 4)
        if len(header) < 4:
            raise AEADError("could not read aead header")
        try:
            mode = AEADMode(header[2])
        except ValueError:
            raise AEADError("unknown mode") from None
        nonce = _read_up_to(stream, mode.nonce_length())
        if len(nonce) < mode.nonce_length():
            raise AEADError("could not read aead nonce")
        try:
            cipher = CipherFunction(header[1])
        except ValueError:
            raise UnsupportedError(f"unknown cipher: {header[1]}") from None
        return cls(cipher, mode, header[3], nonce, stream)

    def associated_data(self) -> bytes:
        """Chunk-independent associated data: tag, version, cipher, mode, chunk size."""
        return bytes([_PACKET_TAG_OCTET, _VERSION, self.cipher, self.mode, self.chunk_size_byte])

    def decrypt(self, cipher, key: bytes) -> AEADDecrypter:
        """Return a reader of the plaintext.

        The packet names its own cipher, which is the one used; the cipher
        argument is accepted for symmetry with other encrypted packets.
        """
        aead = self.mode.new(self.cipher, key)
        tag_len = self.mode.tag_length()
        peeked = _read_up_to(self.contents, tag_len)
        if len(peeked) < tag_len:
            raise AEADError("not enough data to decrypt")
        return AEADDecrypter(
            aead,
            decode_aead_chunk_size(self.chunk_size_byte),
            self.initial_nonce,
            self.associated_data(),
            self.contents,
            peeked,
        )


def serialize_aead_encrypted(writer, key: bytes, cipher=None, mode=None,
                             config: Optional[Config] = None) -> AEADEncrypter:
    """Start an AEAD encrypted packet on writer and return a writer for plaintext.

    A cipher or mode of None is taken from config. The returned writer must
    be closed to append the final tag; writer itself is left open.
    """
    config = config if config is not None else Config()
    aead_conf = config.aead() or AEADConfig()
    cipher = CipherFunction(cipher if cipher is not None else config.cipher())
    mode = AEADMode(mode if mode is not None else aead_conf.mode())
    chunk_byte = aead_conf.chunk_size_byte()
    aead = mode.new(cipher, key)

    prefix = bytes([_PACKET_TAG_OCTET, _VERSION, cipher, mode, chunk_byte])
    inner = _PartialLengthWriter(_NoCloseWriter(writer), _PACKET_TYPE_AEAD_ENCRYPTED)
    inner.write(prefix[1:])
    nonce = config.random_bytes(mode.nonce_length())
    inner.write(nonce)
    return AEADEncrypter(aead, decode_aead_chunk_size(chunk_byte), nonce, prefix, inner)