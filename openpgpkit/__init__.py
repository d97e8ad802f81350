"""Building blocks for OpenPGP packets: field encodings, algorithms, streams and RSA keys."""

__version__ = "0.1.0"

__all__ = [
    "fields",
    "algorithm",
    "ecc",
    "config",
    "ocfb",
    "literal",
    "one_pass_signature",
    "compressed",
    "aead_encrypted",
    "encrypted_key",
    "keygen",
]