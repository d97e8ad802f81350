"""Public-key encrypted session key packets (RFC 4880, section 5.1)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple, Union

from Crypto.Cipher import PKCS1_v1_5

from .algorithm import CipherFunction
from .config import Config, PublicKeyAlgorithm
from .fields import (
    MPI,
    OID,
    InvalidArgumentError,
    StructuralError,
    UnsupportedError,
    serialize_header,
)

__all__ = ["EncryptedKey", "checksum_key_material", "serialize_encrypted_key"]

_VERSION = 3
_PACKET_TYPE_ENCRYPTED_KEY = 1
_HEADER_LENGTH = 10
_RSA_ALGOS = (PublicKeyAlgorithm.RSA, PublicKeyAlgorithm.RSA_ENCRYPT_ONLY)
_TWO_FIELD_ALGOS = (PublicKeyAlgorithm.ELGAMAL, PublicKeyAlgorithm.ECDH)


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    data = stream.read(n)
    if data is None or len(data) < n:
        raise EOFError("unexpected EOF")
    return bytes(data)


def _as_algo(value: int) -> Union[PublicKeyAlgorithm, int]:
    try:
        return PublicKeyAlgorithm(value)
    except ValueError:
        return value


def checksum_key_material(key: bytes) -> int:
    """Return the 16-bit sum of the key octets."""
    return sum(key) & 0xFFFF


def _pad_to_key_size(n: int, data: bytes) -> bytes:
    size = (n.bit_length() + 7) // 8
    if len(data) >= size:
        return data
    return bytes(size - len(data)) + data


@dataclass
class EncryptedKey:
    """A session key encrypted to a public key.

    cipher_func and key are only set after a successful decrypt.
    """

    key_id: int
    algo: Union[PublicKeyAlgorithm, int]
    encrypted_mpi1: Optional[MPI] = None
    encrypted_mpi2: Optional[Union[MPI, OID]] = None
    cipher_func: Optional[Union[CipherFunction, int]] = None
    key: Optional[bytes] = None

    @classmethod
    def parse(cls, stream: BinaryIO) -> "EncryptedKey":
        """Parse a packet body, consuming the whole of the stream."""
        buf = _read_exact(stream, _HEADER_LENGTH)
        if buf[0] != _VERSION:
            raise UnsupportedError(f"unknown EncryptedKey version {buf[0]}")
        packet = cls(int.from_bytes(buf[1:9], "big"), _as_algo(buf[9]))
        if packet.algo in _RSA_ALGOS:
            packet.encrypted_mpi1 = MPI.read_from(stream)
        elif packet.algo == PublicKeyAlgorithm.ELGAMAL:
            packet.encrypted_mpi1 = MPI.read_from(stream)
            packet.encrypted_mpi2 = MPI.read_from(stream)
        elif packet.algo == PublicKeyAlgorithm.ECDH:
            packet.encrypted_mpi1 = MPI.read_from(stream)
            packet.encrypted_mpi2 = OID.read_from(stream)
        stream.read()
        return packet

    def decrypt(self, key_id: int, algo, rsa_private_key, config: Optional[Config] = None
                ) -> Tuple[Union[CipherFunction, int], bytes]:
        """Recover the session key with a decrypted RSA private key.

        Returns the cipher and the session key, which are also stored on
        the packet.
        """
        if self.key_id != 0 and self.key_id != key_id:
            raise InvalidArgumentError(
                f"cannot decrypt encrypted session key for key id {self.key_id:x} "
                f"with private key id {key_id:x}"
            )
        if int(self.algo) != int(algo):
            raise InvalidArgumentError(
                f"cannot decrypt encrypted session key of type {int(self.algo)} "
                f"with private key of type {int(algo)}"
            )
        if self.algo in _RSA_ALGOS:
            block = self._decrypt_rsa(rsa_private_key)
        elif self.algo in _TWO_FIELD_ALGOS:
            raise UnsupportedError(f"decrypting a session key of type {int(self.algo)}")
        else:
            raise InvalidArgumentError(
                f"cannot decrypt encrypted session key with private key of type {int(algo)}"
            )

        if len(block) < 3:
            raise StructuralError("EncryptedKey too short")
        try:
            cipher_func: Union[CipherFunction, int] = CipherFunction(block[0])
        except ValueError:
            cipher_func = block[0]
        key = block[1:-2]
        expected = int.from_bytes(block[-2:], "big")
        self.cipher_func = cipher_func
        self.key = key
        if checksum_key_material(key) != expected:
            raise StructuralError("EncryptedKey checksum incorrect")
        return cipher_func, key

    def _decrypt_rsa(self, rsa_private_key) -> bytes:
        if self.encrypted_mpi1 is None:
            raise StructuralError("EncryptedKey has no ciphertext")
        ciphertext = _pad_to_key_size(rsa_private_key.n, self.encrypted_mpi1.data)
        sentinel = object()
        try:
            block = PKCS1_v1_5.new(rsa_private_key).decrypt(ciphertext, sentinel)
        except (ValueError, TypeError) as exc:
            raise StructuralError(f"RSA decryption failed: {exc}") from exc
        if block is sentinel:
            raise StructuralError("RSA decryption failed")
        return bytes(block)

    def serialize(self, writer) -> None:
        """Write the packet, header included, to writer."""
        if self.algo in _RSA_ALGOS:
            fields = [self.encrypted_mpi1]
        elif self.algo in _TWO_FIELD_ALGOS:
            fields = [self.encrypted_mpi1, self.encrypted_mpi2]
        else:
            raise InvalidArgumentError(
                f"don't know how to serialize encrypted key type {int(self.algo)}"
            )
        if any(f is None for f in fields):
            raise InvalidArgumentError("encrypted key is missing its encrypted fields")
        body = b"".join(f.encoded_bytes() for f in fields)
        serialize_header(writer, _PACKET_TYPE_ENCRYPTED_KEY, _HEADER_LENGTH + len(body))
        writer.write(
            bytes([_VERSION])
            + (self.key_id & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "big")
            + bytes([int(self.algo)])
            + body
        )


def serialize_encrypted_key(writer, key_id: int, algo, rsa_public_key, cipher_func,
                            key: bytes, config: Optional[Config] = None) -> None:
    """Write a packet holding key, for cipher_func, encrypted to an RSA public key."""
    config = config if config is not None else Config()
    key = bytes(key)
    header = (
        bytes([_VERSION])
        + (key_id & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "big")
        + bytes([int(algo)])
    )
    key_block = (
        bytes([int(cipher_func)]) + key + checksum_key_material(key).to_bytes(2, "big")
    )

    algo = _as_algo(int(algo))
    if algo in _RSA_ALGOS:
        try:
            ciphertext = PKCS1_v1_5.new(rsa_public_key, randfunc=config.random_bytes).encrypt(key_block)
        except (ValueError, TypeError) as exc:
            raise InvalidArgumentError(f"RSA encryption failed: {exc}") from exc
        cipher_mpi = MPI.new(ciphertext)
        serialize_header(
            writer, _PACKET_TYPE_ENCRYPTED_KEY, _HEADER_LENGTH + cipher_mpi.encoded_length()
        )
        writer.write(header + cipher_mpi.encoded_bytes())
        return
    if algo in (PublicKeyAlgorithm.DSA, PublicKeyAlgorithm.RSA_SIGN_ONLY):
        raise InvalidArgumentError(f"cannot encrypt to public key of type {int(algo)}")
    raise UnsupportedError(f"encrypting a key to public key of type {int(algo)}")