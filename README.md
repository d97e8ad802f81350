# openpgpkit

Building blocks for reading and writing OpenPGP (RFC 4880 and its AEAD
draft) packets in Python.

## Modules

- `openpgpkit.fields`: the `MPI` and `OID` field encodings,
  `serialize_header` for packets of known length, and the error classes
  `OpenPGPError`, `UnsupportedError`, `StructuralError`,
  `InvalidArgumentError` and `AEADError`.
- `openpgpkit.algorithm`: `CipherFunction` (3DES, CAST5, AES-128/192/256),
  `AEADMode` (EAX, OCB, GCM) and `HashAlgorithm`, with their OpenPGP ids,
  sizes and constructors, plus `hash_by_id`.
- `openpgpkit.ecc`: `CurveInfo` records for the known elliptic curves, looked
  up with `find_by_oid` or `find_by_name`.
- `openpgpkit.config`: `Config` and `AEADConfig`; unset fields fall back to
  defaults (SHA-256, AES-128, EAX, 2048-bit RSA, 256 KiB AEAD chunks).
  Also `CompressionAlgo`, `PublicKeyAlgorithm` and `decode_aead_chunk_size`.
- `openpgpkit.ocfb`: OpenPGP's CFB mode through `new_ocfb_encrypter` and
  `new_ocfb_decrypter`, with or without the resynchronisation step.
- `openpgpkit.literal`: `LiteralData.parse` and `serialize_literal`.
- `openpgpkit.one_pass_signature`: `OnePassSignature.parse` and
  `OnePassSignature.serialize`.
- `openpgpkit.compressed`: `Compressed.parse` (ZIP, ZLIB, BZip2) and
  `serialize_compressed` (ZIP, ZLIB) with a `CompressionConfig` level.
- `openpgpkit.aead_encrypted`: `serialize_aead_encrypted` returns an
  `AEADEncrypter`; `AEADEncrypted.parse` and `AEADEncrypted.decrypt` give an
  `AEADDecrypter` that checks every chunk tag and the final tag.
- `openpgpkit.encrypted_key`: `EncryptedKey` packets and
  `serialize_encrypted_key`; session keys can be encrypted and decrypted
  with RSA keys.
- `openpgpkit.keygen`: `new_rsa_key` and `generate_rsa_key_with_primes`,
  which can build a key from known primes.

Errors are raised as subclasses of `OpenPGPError`; a field or header cut
short raises `EOFError`.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Field encodings round-trip exactly:

```python
import io
from openpgpkit.fields import MPI

mpi = MPI.read_from(io.BytesIO(b"\x00\x09\x01\xff"))
assert mpi.bit_length == 9
assert mpi.encoded_bytes() == b"\x00\x09\x01\xff"
```

Encrypt a short message with AEAD and read it back. The writer emits a
packet tag octet and, for a body under 192 octets, a one-octet length before
the body; `AEADEncrypted.parse` takes the body alone.

```python
import io

from openpgpkit.aead_encrypted import AEADEncrypted, serialize_aead_encrypted
from openpgpkit.config import AEADConfig, Config

key = bytes(16)
config = Config(aead_config=AEADConfig())

out = io.BytesIO()
writer = serialize_aead_encrypted(out, key, config=config)
writer.write(b"hello, world")
writer.close()

packet = AEADEncrypted.parse(io.BytesIO(out.getvalue()[2:]))
assert packet.decrypt(packet.cipher, key).read() == b"hello, world"
```

OpenPGP CFB mode:

```python
from openpgpkit.algorithm import CipherFunction
from openpgpkit.ocfb import new_ocfb_decrypter, new_ocfb_encrypter

block = CipherFunction.AES128.new(bytes(16))
encrypter, prefix = new_ocfb_encrypter(block, bytes(range(16)), resync=True)
ciphertext = encrypter.xor_key_stream(b"some plaintext")

decrypter, _ = new_ocfb_decrypter(block, prefix, resync=True)
assert decrypter.xor_key_stream(ciphertext) == b"some plaintext"
```

## What it does not do

- There is no general packet reader: packet headers and partial body
  lengths are written but not decoded; the `parse` methods take a packet
  body.
- There are no keys, keyrings, identities, signatures, ASCII armor or
  passphrase-protected key handling, and no command-line tool.
- Session keys can only be encrypted and decrypted with RSA; ElGamal and
  ECDH session key packets can be parsed and serialized but not decrypted,
  and not produced.
- Key generation produces RSA keys only.