"""RSA key generation, optionally from caller-supplied primes."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from math import prod
from typing import Callable, List, Optional, Sequence, Tuple

from Crypto.PublicKey import RSA
from Crypto.Util.number import isPrime

from .config import Config, PublicKeyAlgorithm
from .fields import InvalidArgumentError

__all__ = ["RSAKeyParameters", "generate_rsa_key_with_primes", "new_rsa_key"]

_PUBLIC_EXPONENT = 65537
_MIN_BITS = 1024


@dataclass(frozen=True)
class RSAKeyParameters:
    """A (possibly multi-prime) RSA private key with CRT values precomputed."""

    n: int
    e: int
    d: int
    primes: Tuple[int, ...]
    d_p: int = field(init=False)
    d_q: int = field(init=False)
    q_inv: int = field(init=False)

    def __post_init__(self) -> None:
        p, q = self.primes[0], self.primes[1]
        object.__setattr__(self, "d_p", self.d % (p - 1))
        object.__setattr__(self, "d_q", self.d % (q - 1))
        object.__setattr__(self, "q_inv", pow(q, -1, p))


def _random_reader(random) -> Callable[[int], bytes]:
    if random is None:
        return secrets.token_bytes
    reader = getattr(random, "read", None)
    return reader if reader is not None else random


def _random_prime(bits: int, read: Callable[[int], bytes]) -> int:
    """Return a random prime of exactly bits bits with its top two bits set."""
    if bits < 2:
        raise InvalidArgumentError("prime size must be at least 2-bit")
    mask = (1 << bits) - 1
    top = 3 << (bits - 2)
    n_bytes = (bits + 7) // 8
    while True:
        candidate = (int.from_bytes(bytes(read(n_bytes)), "big") & mask) | top | 1
        if isPrime(candidate):
            return candidate


def generate_rsa_key_with_primes(nprimes: int, bits: int, prepopulated_primes: Sequence[int],
                                 random=None) -> RSAKeyParameters:
    """Generate an nprimes-prime RSA key of the given modulus size.

    Primes are taken from prepopulated_primes first and drawn from random
    (a callable or readable object, the system CSPRNG when None) after.
    """
    if nprimes < 2:
        raise InvalidArgumentError("generateRSAKeyWithPrimes: nprimes must be >= 2")
    if bits < _MIN_BITS:
        raise InvalidArgumentError("generateRSAKeyWithPrimes: bits must be >= 1024")

    read = _random_reader(random)
    queue: List[int] = list(prepopulated_primes)
    while True:
        todo = bits
        if nprimes >= 7:
            todo += (nprimes - 2) // 5
        primes = []
        for i in range(nprimes):
            prime = queue.pop(0) if queue else _random_prime(todo // (nprimes - i), read)
            primes.append(prime)
            todo -= prime.bit_length()

        if len(set(primes)) != nprimes:
            continue
        n = prod(primes)
        if n.bit_length() != bits:
            continue
        totient = prod(p - 1 for p in primes)
        try:
            d = pow(_PUBLIC_EXPONENT, -1, totient)
        except ValueError:
            continue
        return RSAKeyParameters(n, _PUBLIC_EXPONENT, d, tuple(primes))


def new_rsa_key(config: Optional[Config] = None):
    """Generate an RSA private key as configured.

    Two primes are taken from config.rsa_primes when at least two are
    present, and removed from it.
    """
    config = config if config is not None else Config()
    if config.public_key_algorithm() != PublicKeyAlgorithm.RSA:
        raise InvalidArgumentError("unsupported public key algorithm")
    bits = config.rsa_modulus_bits()
    if bits < _MIN_BITS:
        raise InvalidArgumentError("bits must be >= 1024")
    if len(config.rsa_primes) >= 2:
        primes = config.rsa_primes[:2]
        config.rsa_primes = config.rsa_primes[2:]
        params = generate_rsa_key_with_primes(2, bits, primes, config.random_bytes)
        p, q = params.primes
        return RSA.construct((params.n, params.e, params.d, p, q))
    return RSA.generate(bits, randfunc=config.random_bytes, e=_PUBLIC_EXPONENT)