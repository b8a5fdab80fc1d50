"""Exceptions raised by the key generation pipeline.

Each exception also derives from the builtin a caller would reasonably expect (ValueError, RuntimeError), so existing
``except ValueError`` handlers keep working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class KeyGenError(Exception):
    """Base class for all rsakeygen errors."""


class InvalidArgument(KeyGenError, ValueError):
    """A requested size, quota or value cannot be used."""


class PrimalityExhaustion(KeyGenError, RuntimeError):
    """A prime search cannot (or did not) reach its quota."""


class KeyDerivationError(KeyGenError, ValueError):
    """The public exponent is not invertible modulo the totient."""


class DecodeError(KeyGenError, ValueError):
    """A binary key envelope or key record is malformed."""
