import io
import os
import random

import pytest

from openpgpkit.aead_encrypted import AEADEncrypted, serialize_aead_encrypted
from openpgpkit.algorithm import AEADMode, CipherFunction
from openpgpkit.config import AEADConfig, Config
from openpgpkit.fields import AEADError, UnsupportedError

CIPHERS = [CipherFunction.AES128, CipherFunction.AES192, CipherFunction.AES256]
MODES = [AEADMode.EAX, AEADMode.OCB, AEADMode.GCM]


def read_packet(data):
    stream = io.BytesIO(data)
    first = stream.read(1)[0]
    assert first & 0xC0 == 0xC0
    tag = first & 0x3F
    body = bytearray()
    while True:
        lb = stream.read(1)
        if not lb:
            break
        b = lb[0]
        if b < 192:
            body += stream.read(b)
            break
        if b < 224:
            second = stream.read(1)[0]
            body += stream.read(((b - 192) << 8) + second + 192)
            break
        if b == 255:
            body += stream.read(int.from_bytes(stream.read(4), "big"))
            break
        body += stream.read(1 << (b & 0x1F))
    return tag, io.BytesIO(bytes(body))


def encrypt(key, plaintext, cipher, mode, chunk_size=0, config=None):
    if config is None:
        config = Config(
            default_cipher=cipher,
            aead_config=AEADConfig(default_mode=mode, chunk_size=chunk_size),
        )
    out = io.BytesIO()
    writer = serialize_aead_encrypted(out, key, cipher, mode, config)
    writer.write(plaintext)
    writer.close()
    return out.getvalue()


def decrypt(key, raw, read_size=-1):
    tag, body = read_packet(raw)
    assert tag == 20
    packet = AEADEncrypted.parse(body)
    reader = packet.decrypt(packet.cipher, key)
    if read_size < 0:
        return reader.read()
    pieces = []
    while True:
        piece = reader.read(read_size)
        if not piece:
            return b"".join(pieces)
        pieces.append(piece)


@pytest.mark.parametrize("cipher", CIPHERS)
@pytest.mark.parametrize("mode", MODES)
@pytest.mark.parametrize("length", [0, 1, 63, 64, 128, 1000])
def test_round_trip(cipher, mode, length):
    key = os.urandom(cipher.key_size())
    plaintext = os.urandom(length)
    raw = encrypt(key, plaintext, cipher, mode, chunk_size=64)
    assert decrypt(key, raw) == plaintext


def test_round_trip_random_config_and_reads():
    rng = random.Random(1234)
    for _ in range(5):
        cipher = rng.choice(CIPHERS)
        mode = rng.choice(MODES)
        chunk_size = 1 << rng.randint(6, 20)
        plaintext = os.urandom(rng.randint(1, 1 << 16))
        key = os.urandom(cipher.key_size())
        raw = encrypt(key, plaintext, cipher, mode, chunk_size=chunk_size)
        assert decrypt(key, raw, read_size=rng.randint(1, 199)) == plaintext


def test_nil_config_stream():
    key = os.urandom(16)
    plaintext = os.urandom(5000)
    out = io.BytesIO()
    writer = serialize_aead_encrypted(out, key, None, None, None)
    writer.write(plaintext)
    writer.close()
    raw = out.getvalue()
    _, body = read_packet(raw)
    assert body.read(4) == bytes([1, CipherFunction.AES128, AEADMode.EAX, 12])
    assert decrypt(key, raw) == plaintext


def test_nonce_comes_from_config_random_source():
    key = os.urandom(16)
    config = Config(rand=lambda n: b"\x00" * n)
    out = io.BytesIO()
    with serialize_aead_encrypted(out, key, CipherFunction.AES128, AEADMode.OCB, config) as writer:
        writer.write(b"data")
    _, body = read_packet(out.getvalue())
    header = body.read(4)
    assert header[2] == AEADMode.OCB
    assert body.read(15) == b"\x00" * 15
    assert decrypt(key, out.getvalue()) == b"data"


def test_empty_stream_and_its_corruption():
    key = os.urandom(16)
    raw = encrypt(key, b"", CipherFunction.AES128, AEADMode.EAX)
    assert decrypt(key, raw) == b""
    corrupt = bytearray(raw)
    corrupt[-1] ^= 0x01
    with pytest.raises(AEADError):
        decrypt(key, bytes(corrupt))


@pytest.mark.parametrize("mode", MODES)
def test_corrupt_stream(mode):
    key = os.urandom(16)
    plaintext = os.urandom(300)
    raw = bytearray(encrypt(key, plaintext, CipherFunction.AES128, mode, chunk_size=64))
    raw[40] = 255 - raw[40]
    with pytest.raises(AEADError):
        decrypt(key, bytes(raw))


def test_corrupt_final_tag():
    key = os.urandom(16)
    raw = bytearray(encrypt(key, os.urandom(300), CipherFunction.AES128, AEADMode.EAX, chunk_size=64))
    raw[-3] ^= 0x80
    with pytest.raises(AEADError):
        decrypt(key, bytes(raw))


@pytest.mark.parametrize("cut", [1, 10, 16, 70])
def test_truncated_stream(cut):
    key = os.urandom(16)
    plaintext = os.urandom(300)
    raw = encrypt(key, plaintext, CipherFunction.AES128, AEADMode.EAX, chunk_size=64)
    with pytest.raises(AEADError):
        decrypt(key, raw[:-cut])


def test_unclosed_stream():
    key = os.urandom(16)
    plaintext = os.urandom(1000)
    config = Config(aead_config=AEADConfig(default_mode=AEADMode.EAX, chunk_size=64))
    out = io.BytesIO()
    writer = serialize_aead_encrypted(out, key, CipherFunction.AES128, AEADMode.EAX, config)
    writer.write(plaintext)
    with pytest.raises(AEADError):
        decrypt(key, out.getvalue())


def test_wrong_key_fails():
    key = os.urandom(16)
    raw = encrypt(key, b"secret data", CipherFunction.AES128, AEADMode.GCM)
    with pytest.raises(AEADError):
        decrypt(os.urandom(16), raw)


def test_parse_fields_and_associated_data():
    nonce = bytes(range(16))
    body = io.BytesIO(bytes([1, 9, 1, 5]) + nonce + b"rest")
    packet = AEADEncrypted.parse(body)
    assert packet.cipher == CipherFunction.AES256
    assert packet.mode == AEADMode.EAX
    assert packet.chunk_size_byte == 5
    assert packet.initial_nonce == nonce
    assert packet.associated_data() == bytes([0xD4, 1, 9, 1, 5])
    assert packet.contents.read() == b"rest"


def test_parse_short_header():
    with pytest.raises(AEADError):
        AEADEncrypted.parse(io.BytesIO(b"\x01\x07"))


def test_parse_unknown_mode():
    with pytest.raises(AEADError, match="unknown mode"):
        AEADEncrypted.parse(io.BytesIO(bytes([1, 7, 42, 12]) + bytes(16)))


def test_parse_short_nonce():
    with pytest.raises(AEADError):
        AEADEncrypted.parse(io.BytesIO(bytes([1, 7, 1, 12]) + bytes(5)))


def test_parse_unknown_cipher():
    with pytest.raises(UnsupportedError, match="unknown cipher: 42"):
        AEADEncrypted.parse(io.BytesIO(bytes([1, 42, 1, 12]) + bytes(16)))


def test_decrypt_without_enough_data():
    packet = AEADEncrypted.parse(io.BytesIO(bytes([1, 7, 1, 12]) + bytes(16) + b"short"))
    with pytest.raises(AEADError):
        packet.decrypt(CipherFunction.AES128, os.urandom(16))


def test_write_after_close_fails():
    writer = serialize_aead_encrypted(io.BytesIO(), os.urandom(16), None, None, None)
    writer.close()
    with pytest.raises(ValueError):
        writer.write(b"late")


def test_output_starts_with_new_format_tag():
    key = os.urandom(16)
    raw = encrypt(key, b"abc", CipherFunction.AES128, AEADMode.EAX)
    assert raw[0] == 0xD4