"""Concurrent probable-prime search and RSA key material generation.

Searches large probable primes on a pool of worker threads until a quota is met, derives RSA key parameters from
them and encodes each key half into a compact, length-prefixed binary envelope.

Typical usage example:

    p, q = find_primes(1024, 2)
    km = KeyMaterialBuilder().build(2048)
    e, n = decode(km.public_bytes())
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsakeygen.codec import decode
from rsakeygen.codec import encode
from rsakeygen.entropy import RandomSource
from rsakeygen.errors import DecodeError
from rsakeygen.errors import InvalidArgument
from rsakeygen.errors import KeyDerivationError
from rsakeygen.errors import KeyGenError
from rsakeygen.errors import PrimalityExhaustion
from rsakeygen.keygen import generate_key_pair
from rsakeygen.keygen import KeyMaterial
from rsakeygen.keygen import KeyMaterialBuilder
from rsakeygen.primality import is_probably_prime
from rsakeygen.records import PrivateKeyRecord
from rsakeygen.records import PublicKeyRecord
from rsakeygen.search import find_primes
from rsakeygen.search import SearchConfig
from rsakeygen.search import SearchCoordinator

__version__ = "0.0.1"
__all__ = [
    "RandomSource",
    "is_probably_prime",
    "find_primes",
    "SearchConfig",
    "SearchCoordinator",
    "KeyMaterial",
    "KeyMaterialBuilder",
    "generate_key_pair",
    "encode",
    "decode",
    "PublicKeyRecord",
    "PrivateKeyRecord",
    "KeyGenError",
    "InvalidArgument",
    "PrimalityExhaustion",
    "KeyDerivationError",
    "DecodeError",
]
