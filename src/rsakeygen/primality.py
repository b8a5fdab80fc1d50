"""Primality testing: small-prime tables, the small factor pre-filter and the Miller-Rabin test.

The small factor filter is a cheap first pass for large candidates, knocking out most composites before the (much
more expensive) Miller-Rabin rounds run.

Typical usage example:

    get_pre_primes(100)
    sff = SmallFactorFilter.for_byte_length(128)
    sff.reject(candidate)
    is_probably_prime(candidate, 10)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsakeygen.entropy import RandomSource

DEFAULT_WITNESSES: int = 10
FILTER_MIN_BYTES: int = 16
WIDE_FILTER_BYTES: int = 512

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0


def _sieve(n: int = 200) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Only odd numbers are stored and sieving stops at the integer square root.

    Args:
        n: The number up to which to generate primes. Defaults to 200. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 200, change: bool = False) -> list[int]:
    """Get the small primes up to `n`, automatically generating if necessary.

    The module level cache is reused if it already covers `n`. Regeneration occurs if the requested range is greater,
    forced by `change` or the cache is empty.

    Args:
        n: The number up to which to generate primes. Defaults to 200. Must be >= 0.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes up to `n`, in ascending order.

    Raises:
        ValueError: If `n` is negative.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    if n == _SMALL_PRIMES_CAP:
        return _SMALL_PRIMES
    return [p for p in _SMALL_PRIMES if p <= n]


class SmallFactorFilter:
    """Trial division of candidates against a fixed table of small primes.

    Attributes:
        table: The primes candidates are divided by.
    """

    def __init__(self, limit: int) -> None:
        self.table: tuple[int, ...] = tuple(get_pre_primes(limit))

    @classmethod
    def for_byte_length(cls, byte_length: int) -> "SmallFactorFilter":
        """Build the filter used for candidates of `byte_length` bytes.

        Candidates of 512 bytes and more get the primes up to 200, anything smaller the primes up to 100.
        """
        return cls(200 if byte_length >= WIDE_FILTER_BYTES else 100)

    @staticmethod
    def applies(byte_length: int) -> bool:
        """Whether candidates of `byte_length` bytes are worth pre-filtering."""
        return byte_length >= FILTER_MIN_BYTES

    def reject(self, candidate: int) -> bool:
        """Check the candidate for a small factor.

        Args:
            candidate: The number to check.

        Returns:
            True if `candidate` is definitely composite, False if undetermined.
        """
        for prime in self.table:
            if candidate % prime == 0:
                return candidate != prime
        return False


def is_probably_prime(n: int, witnesses: int = DEFAULT_WITNESSES, source: RandomSource | None = None) -> bool:
    """Perform the Miller-Rabin primality test.

    Writes `n - 1` as `2**s * d` and runs `witnesses` rounds, each with a fresh random base. A composite survives a
    single round with probability at most 1/4, so false positives are bounded by `4**-witnesses`. Primes always pass.

    Args:
        n: The integer to be tested.
        witnesses: Number of rounds. Values <= 0 fall back to the default of 10.
        source: Where the bases are drawn from. Defaults to a new secure source.

    Returns:
        True if `n` is probably prime, False if it is certainly composite.
    """
    if n <= 3:
        return n >= 2
    if n % 2 == 0:
        return False
    if witnesses <= 0:
        witnesses = DEFAULT_WITNESSES
    if source is None:
        source = RandomSource()
    tw = n - 1
    s = (tw & -tw).bit_length() - 1
    d = tw >> s
    for _ in range(witnesses):
        x = pow(source.witness(n), d, n)
        if x == 1 or x == tw:
            continue
        for _ in range(1, s):
            x = pow(x, 2, n)
            if x == 1:
                return False
            if x == tw:
                break
        if x != tw:
            return False
    return True


class PrimalityTester:
    """Miller-Rabin bound to a witness count and a random source.

    Attributes:
        witnesses: Rounds per test.
        source: The random source bases are drawn from.
    """

    def __init__(self, witnesses: int = DEFAULT_WITNESSES, source: RandomSource | None = None) -> None:
        self.witnesses = witnesses if witnesses > 0 else DEFAULT_WITNESSES
        self.source = source if source is not None else RandomSource()

    def __call__(self, n: int) -> bool:
        return is_probably_prime(n, self.witnesses, self.source)
