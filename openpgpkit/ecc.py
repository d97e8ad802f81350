"""Elliptic curves known to OpenPGP, looked up by name or OID."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .fields import OID

__all__ = ["CurveType", "SignatureAlgorithm", "CurveInfo", "CURVES", "find_by_oid", "find_by_name"]


class CurveType(IntEnum):
    NIST_CURVE = 1
    CURVE25519 = 2
    BIT_CURVE = 3
    BRAINPOOL_CURVE = 4


class SignatureAlgorithm(IntEnum):
    ECDSA = 1
    EDDSA = 2


@dataclass(frozen=True)
class CurveInfo:
    """Name, OID and classification of a supported curve."""

    name: str
    oid: OID
    sig_algorithm: SignatureAlgorithm
    curve_type: CurveType


CURVES = (
    CurveInfo(
        "NIST curve P-256",
        OID(bytes([0x2A, 0x86, 0x48, 0xCE, 0x3D, 0x03, 0x01, 0x07])),
        SignatureAlgorithm.ECDSA,
        CurveType.NIST_CURVE,
    ),
    CurveInfo(
        "NIST curve P-384",
        OID(bytes([0x2B, 0x81, 0x04, 0x00, 0x22])),
        SignatureAlgorithm.ECDSA,
        CurveType.NIST_CURVE,
    ),
    CurveInfo(
        "NIST curve P-521",
        OID(bytes([0x2B, 0x81, 0x04, 0x00, 0x23])),
        SignatureAlgorithm.ECDSA,
        CurveType.NIST_CURVE,
    ),
    CurveInfo(
        "SecP256k1",
        OID(bytes([0x2B, 0x81, 0x04, 0x00, 0x0A])),
        SignatureAlgorithm.ECDSA,
        CurveType.BIT_CURVE,
    ),
    CurveInfo(
        "Curve25519",
        OID(bytes([0x2B, 0x06, 0x01, 0x04, 0x01, 0x97, 0x55, 0x01, 0x05, 0x01])),
        SignatureAlgorithm.ECDSA,
        CurveType.CURVE25519,
    ),
    CurveInfo(
        "Ed25519",
        OID(bytes([0x2B, 0x06, 0x01, 0x04, 0x01, 0xDA, 0x47, 0x0F, 0x01])),
        SignatureAlgorithm.EDDSA,
        CurveType.NIST_CURVE,
    ),
    CurveInfo(
        "Brainpool P256r1",
        OID(bytes([0x2B, 0x24, 0x03, 0x03, 0x02, 0x08, 0x01, 0x01, 0x07])),
        SignatureAlgorithm.ECDSA,
        CurveType.BRAINPOOL_CURVE,
    ),
    CurveInfo(
        "BrainpoolP384r1",
        OID(bytes([0x2B, 0x24, 0x03, 0x03, 0x02, 0x08, 0x01, 0x01, 0x0B])),
        SignatureAlgorithm.ECDSA,
        CurveType.BRAINPOOL_CURVE,
    ),
    CurveInfo(
        "BrainpoolP512r1",
        OID(bytes([0x2B, 0x24, 0x03, 0x03, 0x02, 0x08, 0x01, 0x01, 0x0D])),
        SignatureAlgorithm.ECDSA,
        CurveType.BRAINPOOL_CURVE,
    ),
)


def find_by_oid(oid: Union[OID, bytes]) -> Optional[CurveInfo]:
    """Return the curve with the given OID (object or raw bytes), or None."""
    raw = oid.data if isinstance(oid, OID) else bytes(oid)
    return next((curve for curve in CURVES if curve.oid.data == raw), None)


def find_by_name(name: str) -> Optional[CurveInfo]:
    """Return the curve with the given name, or None."""
    return next((curve for curve in CURVES if curve.name == name), None)