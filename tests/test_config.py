import io
from datetime import datetime, timezone

import pytest

from openpgpkit.algorithm import AEADMode, CipherFunction, HashAlgorithm
from openpgpkit.config import (
    AEADConfig,
    CompressionAlgo,
    Config,
    PublicKeyAlgorithm,
    decode_aead_chunk_size,
)
from openpgpkit.fields import UnsupportedError


def test_defaults():
    config = Config()
    assert config.hash() is HashAlgorithm.SHA256
    assert config.cipher() is CipherFunction.AES128
    assert config.rsa_modulus_bits() == 2048
    assert config.public_key_algorithm() is PublicKeyAlgorithm.RSA
    assert config.compression() is CompressionAlgo.NONE
    assert config.key_lifetime() == 0
    assert config.sig_lifetime() == 0
    assert config.password_hash_iterations() == 0
    assert config.signing_key() == 0
    assert config.aead() is None


def test_explicit_values_are_used():
    aead = AEADConfig(default_mode=AEADMode.OCB)
    config = Config(
        default_hash=HashAlgorithm.SHA512,
        default_cipher=CipherFunction.AES256,
        rsa_bits=3072,
        algorithm=PublicKeyAlgorithm.EDDSA,
        default_compression_algo=CompressionAlgo.ZLIB,
        key_lifetime_secs=86400,
        sig_lifetime_secs=3600,
        s2k_count=65536,
        signing_key_id=0x1234,
        aead_config=aead,
    )
    assert config.hash() is HashAlgorithm.SHA512
    assert config.cipher() is CipherFunction.AES256
    assert config.rsa_modulus_bits() == 3072
    assert config.public_key_algorithm() is PublicKeyAlgorithm.EDDSA
    assert config.compression() is CompressionAlgo.ZLIB
    assert config.key_lifetime() == 86400
    assert config.sig_lifetime() == 3600
    assert config.password_hash_iterations() == 65536
    assert config.signing_key() == 0x1234
    assert config.aead() is aead


def test_now_uses_time_source():
    fixed = datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert Config(time=lambda: fixed).now() == fixed


def test_now_defaults_to_current_time():
    before = datetime.now(timezone.utc)
    now = Config().now()
    after = datetime.now(timezone.utc)
    assert before <= now <= after


def test_random_bytes_from_callable_and_reader():
    assert Config(rand=lambda n: b"\x07" * n).random_bytes(4) == b"\x07\x07\x07\x07"
    assert Config(rand=io.BytesIO(b"abcdef")).random_bytes(3) == b"abc"
    assert len(Config().random_bytes(32)) == 32


def test_random_bytes_short_source_raises():
    with pytest.raises(EOFError):
        Config(rand=io.BytesIO(b"ab")).random_bytes(3)


def test_aead_mode_default_and_explicit():
    assert AEADConfig().mode() is AEADMode.EAX
    assert AEADConfig(default_mode=AEADMode.GCM).mode() is AEADMode.GCM


def test_aead_mode_unsupported():
    with pytest.raises(UnsupportedError):
        AEADConfig(default_mode=5).mode()


def test_default_chunk_size_byte():
    assert AEADConfig().chunk_size_byte() == 12
    assert decode_aead_chunk_size(12) == 262144


@pytest.mark.parametrize("exponent", [6, 10, 18, 27])
def test_chunk_size_round_trip(exponent):
    size = 1 << exponent
    assert decode_aead_chunk_size(AEADConfig(chunk_size=size).chunk_size_byte()) == size


def test_chunk_size_clamped():
    assert decode_aead_chunk_size(AEADConfig(chunk_size=1).chunk_size_byte()) == 1 << 6
    assert decode_aead_chunk_size(AEADConfig(chunk_size=1 << 40).chunk_size_byte()) == 1 << 27


def test_chunk_size_rounds_down_to_power_of_two():
    decoded = decode_aead_chunk_size(AEADConfig(chunk_size=3000).chunk_size_byte())
    assert decoded <= 3000 < 2 * decoded