"""OpenPGP's cipher feedback mode (RFC 4880, section 13.9)."""

from __future__ import annotations

from typing import Tuple

from .fields import InvalidArgumentError

__all__ = ["OCFBEncrypter", "OCFBDecrypter", "new_ocfb_encrypter", "new_ocfb_decrypter"]


class _OCFBState:
    def __init__(self, block, fre: bytes, out_used: int) -> None:
        self._block = block
        self._fre = bytearray(fre)
        self._out_used = out_used

    def _refill(self) -> None:
        if self._out_used == len(self._fre):
            self._fre = bytearray(self._block.encrypt(bytes(self._fre)))
            self._out_used = 0


class OCFBEncrypter(_OCFBState):
    """Encrypts a stream in OpenPGP CFB mode."""

    def xor_key_stream(self, src: bytes) -> bytes:
        out = bytearray()
        for byte in src:
            self._refill()
            self._fre[self._out_used] ^= byte
            out.append(self._fre[self._out_used])
            self._out_used += 1
        return bytes(out)


class OCFBDecrypter(_OCFBState):
    """Decrypts a stream in OpenPGP CFB mode."""

    def xor_key_stream(self, src: bytes) -> bytes:
        out = bytearray()
        for byte in src:
            self._refill()
            out.append(self._fre[self._out_used] ^ byte)
            self._fre[self._out_used] = byte
            self._out_used += 1
        return bytes(out)


def _resync_state(block, fre: bytes, prefix: bytes, resync: bool) -> Tuple[bytes, int]:
    block_size = block.block_size
    if resync:
        return block.encrypt(bytes(prefix[2:block_size + 2])), 0
    state = bytearray(fre)
    state[0] = prefix[block_size]
    state[1] = prefix[block_size + 1]
    return bytes(state), 2


def new_ocfb_encrypter(block, rand_data: bytes, resync: bool) -> Tuple[OCFBEncrypter, bytes]:
    """Start encryption; return the encrypter and the block_size + 2 byte prefix.

    rand_data must be block_size random bytes. With resync, the
    resynchronisation step of RFC 4880, 13.9 step 7 is performed.
    """
    block_size = block.block_size
    rand_data = bytes(rand_data)
    if len(rand_data) != block_size:
        raise InvalidArgumentError("random data must be one block long")

    fre = block.encrypt(bytes(block_size))
    prefix = bytearray(r ^ f for r, f in zip(rand_data, fre))
    fre = block.encrypt(bytes(prefix))
    prefix.append(fre[0] ^ rand_data[block_size - 2])
    prefix.append(fre[1] ^ rand_data[block_size - 1])

    state, out_used = _resync_state(block, fre, prefix, resync)
    return OCFBEncrypter(block, state, out_used), bytes(prefix)


def new_ocfb_decrypter(block, prefix: bytes, resync: bool) -> Tuple[OCFBDecrypter, bytes]:
    """Start decryption from the first block_size + 2 ciphertext bytes.

    Return the decrypter and the decrypted prefix.
    """
    block_size = block.block_size
    prefix = bytes(prefix)
    if len(prefix) != block_size + 2:
        raise InvalidArgumentError("prefix must be one block plus two bytes long")

    fre = block.encrypt(bytes(block_size))
    plain = bytearray(p ^ f for p, f in zip(prefix[:block_size], fre))
    fre = block.encrypt(prefix[:block_size])
    plain.append(prefix[block_size] ^ fre[0])
    plain.append(prefix[block_size + 1] ^ fre[1])

    state, out_used = _resync_state(block, fre, prefix, resync)
    return OCFBDecrypter(block, state, out_used), bytes(plain)