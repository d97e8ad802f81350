"""Configuration for key generation and message encryption, with defaults."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Callable, List, Optional, Union

from .algorithm import AEADMode, CipherFunction, HashAlgorithm
from .fields import UnsupportedError

__all__ = [
    "CompressionAlgo",
    "PublicKeyAlgorithm",
    "AEADConfig",
    "decode_aead_chunk_size",
    "Config",
]


class CompressionAlgo(IntEnum):
    """Compression algorithms identified by their OpenPGP id."""

    NONE = 0
    ZIP = 1
    ZLIB = 2
    BZIP2 = 3


class PublicKeyAlgorithm(IntEnum):
    """Public key algorithms identified by their OpenPGP id."""

    RSA = 1
    RSA_ENCRYPT_ONLY = 2
    RSA_SIGN_ONLY = 3
    ELGAMAL = 16
    DSA = 17
    ECDH = 18
    ECDSA = 19
    EDDSA = 22


_SUPPORTED_AEAD_MODES = (AEADMode.EAX, AEADMode.OCB, AEADMode.GCM)
_DEFAULT_CHUNK_SIZE_BYTE = 12
_MIN_CHUNK_EXPONENT = 6
_MAX_CHUNK_EXPONENT = 27


@dataclass
class AEADConfig:
    """AEAD parameters; zero values select the defaults."""

    default_mode: int = 0
    chunk_size: int = 0

    def mode(self) -> AEADMode:
        """Return the AEAD mode, EAX when none is set."""
        if not self.default_mode:
            return AEADMode.EAX
        if self.default_mode not in _SUPPORTED_AEAD_MODES:
            raise UnsupportedError("AEAD mode unsupported")
        return AEADMode(self.default_mode)

    def chunk_size_byte(self) -> int:
        """Return the octet encoding the chunk size as 1 << (octet + 6)."""
        if not self.chunk_size:
            return _DEFAULT_CHUNK_SIZE_BYTE
        exponent = self.chunk_size.bit_length() - 1
        exponent = max(_MIN_CHUNK_EXPONENT, min(exponent, _MAX_CHUNK_EXPONENT))
        return exponent - _MIN_CHUNK_EXPONENT


def decode_aead_chunk_size(c: int) -> int:
    """Return the effective chunk size for a chunk size octet."""
    shift = (c + _MIN_CHUNK_EXPONENT) & 0xFF
    if shift >= 63:
        return 1 << 30
    return 1 << shift


RandomSource = Union[Callable[[int], bytes], Any]


@dataclass
class Config:
    """Parameters for OpenPGP operations; unset fields fall back to defaults."""

    rand: Optional[RandomSource] = None
    default_hash: Optional[int] = None
    default_cipher: Optional[int] = None
    time: Optional[Callable[[], datetime]] = None
    default_compression_algo: int = CompressionAlgo.NONE
    compression_config: Any = None
    s2k_count: int = 0
    rsa_bits: int = 0
    algorithm: int = 0
    rsa_primes: List[int] = field(default_factory=list)
    aead_config: Optional[AEADConfig] = None
    v5_keys: bool = False
    key_lifetime_secs: int = 0
    sig_lifetime_secs: int = 0
    signing_key_id: int = 0

    def random_bytes(self, n: int) -> bytes:
        """Return n bytes from the configured source, or the system's CSPRNG."""
        if self.rand is None:
            return secrets.token_bytes(n)
        reader = getattr(self.rand, "read", None)
        data = reader(n) if reader is not None else self.rand(n)
        data = bytes(data)
        if len(data) != n:
            raise EOFError("random source returned too few bytes")
        return data

    def hash(self) -> HashAlgorithm:
        if not self.default_hash:
            return HashAlgorithm.SHA256
        return HashAlgorithm(self.default_hash)

    def cipher(self) -> CipherFunction:
        if not self.default_cipher:
            return CipherFunction.AES128
        return CipherFunction(self.default_cipher)

    def now(self) -> datetime:
        if self.time is None:
            return datetime.now(timezone.utc)
        return self.time()

    def key_lifetime(self) -> int:
        """Seconds after creation that a key expires; 0 means never."""
        return self.key_lifetime_secs

    def sig_lifetime(self) -> int:
        """Seconds after creation that a signature expires; 0 means never."""
        return self.sig_lifetime_secs

    def compression(self) -> CompressionAlgo:
        return CompressionAlgo(self.default_compression_algo)

    def password_hash_iterations(self) -> int:
        return self.s2k_count or 0

    def rsa_modulus_bits(self) -> int:
        return self.rsa_bits or 2048

    def public_key_algorithm(self) -> PublicKeyAlgorithm:
        if not self.algorithm:
            return PublicKeyAlgorithm.RSA
        return PublicKeyAlgorithm(self.algorithm)

    def aead(self) -> Optional[AEADConfig]:
        return self.aead_config

    def signing_key(self) -> int:
        return self.signing_key_id