"""Random sources for candidate generation and Miller-Rabin witnesses.

All randomness in the package flows through a `RandomSource` handed explicitly to each component. By default it is
backed by the operating system CSPRNG; a seeded source can be requested for reproducible tests.

Typical usage example:

    src = RandomSource()
    c = src.candidate(64)
    a = src.witness(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import random
import secrets

from rsakeygen.errors import InvalidArgument


class RandomSource:
    """Wrapper around a `random.Random` compatible generator.

    Attributes:
        rng: The underlying generator. `secrets.SystemRandom` unless seeded.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else secrets.SystemRandom()

    @classmethod
    def seeded(cls, seed: int | str | bytes) -> "RandomSource":
        """Create a deterministic source.

        Not cryptographically secure. Intended for reproducible tests only.

        Args:
            seed: Seed handed to `random.Random`.

        Returns:
            A new RandomSource.
        """
        return cls(random.Random(seed))

    @property
    def secure(self) -> bool:
        return isinstance(self.rng, random.SystemRandom)

    def candidate(self, byte_length: int, exact_length: bool = False) -> int:
        """Draw a random odd candidate of at most `byte_length` bytes.

        The drawn bytes are read little-endian, with a trailing zero byte appended so the two's-complement reading is
        never negative. Only the lowest bit is forced, so the candidate may be shorter than `8 * byte_length` bits
        unless `exact_length` is set.

        Args:
            byte_length: Number of random bytes to draw. Must be positive.
            exact_length: Whether to force the top bit, guaranteeing exactly `8 * byte_length` bits.

        Returns:
            An odd, non-negative candidate.

        Raises:
            InvalidArgument: If `byte_length` is not positive.
        """
        if byte_length <= 0:
            raise InvalidArgument("Candidate byte length must be positive.")
        data = self.rng.randbytes(byte_length) + b"\x00"
        value = int.from_bytes(data, byteorder="little", signed=True) | 1
        if exact_length:
            value |= 1 << (8 * byte_length - 1)
        return value

    def witness(self, n: int) -> int:
        """Draw a Miller-Rabin base uniformly from `[2, n - 2)`.

        Args:
            n: The number under test. Must be at least 5.

        Returns:
            The random base.
        """
        return self.rng.randrange(2, n - 2)
