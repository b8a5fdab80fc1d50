"""RSA key material derivation on top of the concurrent prime search.

Two primes of half the key size become the modulus and totient; a small prime found by the same search becomes the
public exponent, and the private exponent is its inverse modulo the totient. Exponents that turn out not to be
invertible are resampled.

Typical usage example:

    km = KeyMaterialBuilder().build(2048)
    record = km.public_record("alice@example.com")
    (n, e), (n, d) = generate_key_pair(1024)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import warnings

from rsakeygen import codec
from rsakeygen import search
from rsakeygen.entropy import RandomSource
from rsakeygen.errors import InvalidArgument
from rsakeygen.errors import KeyDerivationError
from rsakeygen.primality import DEFAULT_WITNESSES
from rsakeygen.records import PrivateKeyRecord
from rsakeygen.records import PublicKeyRecord

logger = logging.getLogger(__name__)

EXPONENT_BITS: int = 16
SECURE_KEY_BITS: int = 1024


def eea(a: int, b: int) -> tuple[int, int, int]:
    """Implements the Extended Euclidean Algorithm.

    Such that a*s0 + b*t0 = r0 = gcd(a, b).

    Args:
        a: The first natural number.
        b: The second natural number.

    Returns:
        Greatest common divisor of two integers.
        As well as the Bezout coefficients.
    """
    r0, r1 = a, b
    s0, s1, t0, t1 = 1, 0, 0, 1
    while r1 != 0:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    return r0, s0, t0


def mod_inverse(a: int, m: int) -> int:
    """Computes the inverse of `a` modulo `m`.

    Args:
        a: The value to invert.
        m: The modulus. Must be > 1.

    Returns:
        The inverse, normalized into `[0, m)`.

    Raises:
        KeyDerivationError: If `a` and `m` are not coprime.
    """
    g, s, _ = eea(a % m, m)
    if g != 1:
        raise KeyDerivationError(f"{a} is not invertible modulo the totient (gcd {g}).")
    return s % m


class KeyMaterial:
    """A freshly derived RSA key pair.

    Attributes:
        e: The public exponent.
        d: The private exponent.
        n: The modulus.
        p: Private prime 1.
        q: Private prime 2.
    """

    def __init__(self, e: int, d: int, n: int, p: int, q: int) -> None:
        self.e = e
        self.d = d
        self.n = n
        self.p = p
        self.q = q

    def __iter__(self):
        return iter((self.e, self.d, self.n, self.p, self.q))

    @property
    def totient(self) -> int:
        return (self.p - 1) * (self.q - 1)

    def public_bytes(self) -> bytes:
        return codec.encode(self.e, self.n)

    def private_bytes(self) -> bytes:
        return codec.encode(self.d, self.n)

    def public_record(self, identity: str | None = None) -> PublicKeyRecord:
        return PublicKeyRecord.from_parameters(self.e, self.n, identity)

    def private_record(self, identities: list[str] | None = None) -> PrivateKeyRecord:
        return PrivateKeyRecord.from_parameters(self.d, self.n, identities)


class KeyMaterialBuilder:
    """Derives RSA key material from concurrently searched primes.

    Attributes:
        source: Random source shared by every search.
        witnesses: Miller-Rabin rounds per candidate.
        workers: Worker pool size for the searches.
        exact_length: Whether the primes are forced to their full bit length.
        exponent_bits: Size of the public exponent prime.
        max_exponent_attempts: How many exponents to try before giving up.
    """

    def __init__(self,
                 source: RandomSource | None = None,
                 witnesses: int = DEFAULT_WITNESSES,
                 workers: int | None = None,
                 exact_length: bool = False,
                 exponent_bits: int = EXPONENT_BITS,
                 max_exponent_attempts: int = 64) -> None:
        if max_exponent_attempts <= 0:
            raise InvalidArgument("max_exponent_attempts must be positive.")
        self.source = source if source is not None else RandomSource()
        self.witnesses = witnesses
        self.workers = workers
        self.exact_length = exact_length
        self.exponent_bits = exponent_bits
        self.max_exponent_attempts = max_exponent_attempts

    def _primes(self, bits: int, count: int) -> list[int]:
        return search.find_primes(bits,
                                  count,
                                  witnesses=self.witnesses,
                                  workers=self.workers,
                                  exact_length=self.exact_length,
                                  source=self.source)

    def build(self, bits: int) -> KeyMaterial:
        """Generates an RSA key pair of `bits` bits.

        Args:
            bits: The key size. Must be a positive multiple of 16, so each prime is a whole number of bytes.

        Returns:
            The derived key material.

        Raises:
            InvalidArgument: If `bits` is not a usable key size.
            KeyDerivationError: If no invertible exponent was found within `max_exponent_attempts` tries.
        """
        if bits <= 0 or bits % 16 != 0:
            raise InvalidArgument(f"Key size must be a positive multiple of 16 bits, got {bits}.")
        if bits < SECURE_KEY_BITS:
            warnings.warn(f"{bits}-bit keys are only suitable for testing.", RuntimeWarning)
        p, q = self._primes(bits // 2, 2)
        n = p * q
        totient = (p - 1) * (q - 1)
        last = None
        for _ in range(self.max_exponent_attempts):
            e, = self._primes(self.exponent_bits, 1)
            try:
                d = mod_inverse(e, totient)
            except KeyDerivationError as err:
                logger.warning("Exponent %d shares a factor with the totient, resampling.", e)
                last = err
                continue
            logger.info("Generated %d-bit key (modulus has %d bits).", bits, n.bit_length())
            return KeyMaterial(e, d, n, p, q)
        raise KeyDerivationError(f"No invertible exponent after {self.max_exponent_attempts} attempts.") from last


def generate_key_pair(bits: int, **kwargs) -> tuple[tuple[int, int], tuple[int, int]]:
    """Generates an RSA key pair.

    Args:
        bits: The key size. Must be a positive multiple of 16.
        **kwargs: Passed on to `KeyMaterialBuilder`.

    Returns:
        A tuple of (public, private) sub-tuples (modulus, exponent).
    """
    km = KeyMaterialBuilder(**kwargs).build(bits)
    return (km.n, km.e), (km.n, km.d)
