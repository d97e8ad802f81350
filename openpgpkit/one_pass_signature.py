"""One-pass signature packets (RFC 4880, section 5.4)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

from .algorithm import HashAlgorithm, hash_by_id
from .fields import UnsupportedError, serialize_header

__all__ = ["OnePassSignature"]

_VERSION = 3
_PACKET_TYPE_ONE_PASS_SIGNATURE = 4
_BODY_LENGTH = 13


@dataclass
class OnePassSignature:
    """Announces a signature that follows the signed data."""

    sig_type: int
    hash: HashAlgorithm
    pub_key_algo: int
    key_id: int
    is_last: bool

    @classmethod
    def parse(cls, stream: BinaryIO) -> "OnePassSignature":
        """Parse a one-pass signature packet body."""
        buf = stream.read(_BODY_LENGTH)
        if buf is None or len(buf) < _BODY_LENGTH:
            raise EOFError("unexpected EOF")
        if buf[0] != _VERSION:
            raise UnsupportedError(f"one-pass-signature packet version {buf[0]}")
        return cls(
            sig_type=buf[1],
            hash=hash_by_id(buf[2]),
            pub_key_algo=buf[3],
            key_id=int.from_bytes(buf[4:12], "big"),
            is_last=buf[12] != 0,
        )

    def serialize(self, writer) -> None:
        """Write the packet, header included, to writer."""
        try:
            hash_id = HashAlgorithm(self.hash)
        except ValueError:
            raise UnsupportedError(f"hash type: {self.hash}") from None
        body = (
            bytes([_VERSION, self.sig_type & 0xFF, hash_id, self.pub_key_algo & 0xFF])
            + (self.key_id & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "big")
            + bytes([1 if self.is_last else 0])
        )
        serialize_header(writer, _PACKET_TYPE_ONE_PASS_SIGNATURE, len(body))
        writer.write(body)