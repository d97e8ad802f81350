"""Symmetric ciphers, AEAD modes and hash functions used by OpenPGP."""

from __future__ import annotations

from enum import IntEnum

from Crypto.Cipher import AES, CAST, DES, DES3
from Crypto.Hash import MD5, RIPEMD160, SHA1, SHA224, SHA256, SHA384, SHA512

from .fields import AEADError, InvalidArgumentError, UnsupportedError

__all__ = ["CipherFunction", "AEADMode", "HashAlgorithm", "hash_by_id"]


class _TripleDES:
    """Three-key EDE triple DES on raw blocks."""

    block_size = 8

    def __init__(self, key: bytes) -> None:
        self._stages = [DES.new(key[offset:offset + 8], DES.MODE_ECB) for offset in (0, 8, 16)]

    def encrypt(self, data: bytes) -> bytes:
        first, second, third = self._stages
        return third.encrypt(second.decrypt(first.encrypt(data)))

    def decrypt(self, data: bytes) -> bytes:
        first, second, third = self._stages
        return first.decrypt(second.encrypt(third.decrypt(data)))


class CipherFunction(IntEnum):
    """A symmetric block cipher identified by its OpenPGP id."""

    TRIPLE_DES = 2
    CAST5 = 3
    AES128 = 7
    AES192 = 8
    AES256 = 9

    def key_size(self) -> int:
        return _KEY_SIZES[self]

    def block_size(self) -> int:
        return _BLOCK_SIZES[self]

    def new(self, key: bytes):
        """Return a raw block cipher object with encrypt and decrypt methods."""
        key = bytes(key)
        if self is CipherFunction.TRIPLE_DES:
            if len(key) != 24:
                raise ValueError("triple DES key must be 24 bytes")
            return _TripleDES(key)
        if self is CipherFunction.CAST5:
            if len(key) != 16:
                raise ValueError("CAST5 key must be 16 bytes")
            return CAST.new(key, CAST.MODE_ECB)
        return AES.new(key, AES.MODE_ECB)

    def _module(self):
        return _CIPHER_MODULES[self]


_KEY_SIZES = {
    CipherFunction.TRIPLE_DES: 24,
    CipherFunction.CAST5: 16,
    CipherFunction.AES128: 16,
    CipherFunction.AES192: 24,
    CipherFunction.AES256: 32,
}

_BLOCK_SIZES = {
    CipherFunction.TRIPLE_DES: 8,
    CipherFunction.CAST5: 8,
    CipherFunction.AES128: 16,
    CipherFunction.AES192: 16,
    CipherFunction.AES256: 16,
}

_CIPHER_MODULES = {
    CipherFunction.TRIPLE_DES: DES3,
    CipherFunction.CAST5: CAST,
    CipherFunction.AES128: AES,
    CipherFunction.AES192: AES,
    CipherFunction.AES256: AES,
}


class _ModeCipher:
    """An AEAD instance bound to one cipher and key."""

    def __init__(self, mode: "AEADMode", cipher: CipherFunction, key: bytes) -> None:
        self.mode = mode
        self._module = cipher._module()
        self._mode_id = getattr(self._module, _PYCRYPTO_MODES[mode])
        self._key = bytes(key)
        self.overhead = mode.tag_length()
        self.nonce_size = mode.nonce_length()

    def _make(self, nonce: bytes):
        return self._module.new(self._key, self._mode_id, nonce=bytes(nonce), mac_len=self.overhead)

    def seal(self, nonce: bytes, plaintext: bytes, adata: bytes = b"") -> bytes:
        """Encrypt and authenticate, returning ciphertext followed by the tag."""
        engine = self._make(nonce)
        engine.update(bytes(adata))
        ciphertext, tag = engine.encrypt_and_digest(bytes(plaintext))
        return ciphertext + tag

    def open(self, nonce: bytes, data: bytes, adata: bytes = b"") -> bytes:
        """Check the tag and decrypt; raise AEADError on failure."""
        data = bytes(data)
        if len(data) < self.overhead:
            raise AEADError("ciphertext shorter than authentication tag")
        engine = self._make(nonce)
        engine.update(bytes(adata))
        body, tag = data[:-self.overhead], data[-self.overhead:]
        try:
            return engine.decrypt_and_verify(body, tag)
        except ValueError as exc:
            raise AEADError("message authentication failed") from exc


class AEADMode(IntEnum):
    """An authenticated encryption mode identified by its OpenPGP id."""

    EAX = 1
    OCB = 2
    GCM = 100

    def tag_length(self) -> int:
        return 16

    def nonce_length(self) -> int:
        return _NONCE_LENGTHS[self]

    def new(self, cipher: CipherFunction, key: bytes) -> _ModeCipher:
        """Return an AEAD instance for the given cipher and key."""
        cipher = CipherFunction(cipher)
        if self is not AEADMode.EAX and cipher.block_size() != 16:
            raise InvalidArgumentError(f"{self.name} requires a 128-bit block cipher")
        cipher.new(key)
        return _ModeCipher(self, cipher, key)


_NONCE_LENGTHS = {AEADMode.EAX: 16, AEADMode.OCB: 15, AEADMode.GCM: 12}
_PYCRYPTO_MODES = {AEADMode.EAX: "MODE_EAX", AEADMode.OCB: "MODE_OCB", AEADMode.GCM: "MODE_GCM"}


class HashAlgorithm(IntEnum):
    """A hash function identified by its OpenPGP id."""

    MD5 = 1
    SHA1 = 2
    RIPEMD160 = 3
    SHA256 = 8
    SHA384 = 9
    SHA512 = 10
    SHA224 = 11

    def new(self):
        """Return a fresh hash object."""
        return _HASH_MODULES[self].new()

    def size(self) -> int:
        return _HASH_MODULES[self].digest_size

    def __str__(self) -> str:
        return self.name


_HASH_MODULES = {
    HashAlgorithm.MD5: MD5,
    HashAlgorithm.SHA1: SHA1,
    HashAlgorithm.RIPEMD160: RIPEMD160,
    HashAlgorithm.SHA256: SHA256,
    HashAlgorithm.SHA384: SHA384,
    HashAlgorithm.SHA512: SHA512,
    HashAlgorithm.SHA224: SHA224,
}


def hash_by_id(hash_id: int) -> HashAlgorithm:
    """Look up a hash function by OpenPGP id."""
    try:
        return HashAlgorithm(hash_id)
    except ValueError:
        raise UnsupportedError(f"hash function: {hash_id}") from None