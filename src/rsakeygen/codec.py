"""Binary encodings of RSA key parameters.

The native envelope stores one key half, an exponent followed by the modulus, each as a 4-byte big-endian length and
the value's minimal little-endian two's-complement bytes:

    [len(P)][P][len(N)][N]

PKCS#1 DER encodings are provided alongside for interoperability with standard tooling.

Typical usage example:

    blob = encode(e, n)
    e, n = decode(blob)
    der = to_pkcs1_public(e, n)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from typing import TYPE_CHECKING

from pyasn1 import error
from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1_modules import rfc8017

from rsakeygen.errors import DecodeError
from rsakeygen.errors import InvalidArgument

if TYPE_CHECKING:
    from rsakeygen.keygen import KeyMaterial

LENGTH_PREFIX: int = 4


def integer_to_bytes(value: int) -> bytes:
    """Serializes a non-negative integer to its minimal little-endian two's-complement form.

    A zero pad byte is appended whenever the top magnitude byte would otherwise read as negative.

    Args:
        value: The integer to serialize.

    Returns:
        The bytes, at least one.
    """
    return value.to_bytes(value.bit_length() // 8 + 1, byteorder="little", signed=True)


def bytes_to_integer(data: bytes) -> int:
    """Reads little-endian two's-complement bytes back into an integer."""
    return int.from_bytes(data, byteorder="little", signed=True)


def encode(expo: int, mod: int) -> bytes:
    """Encodes one key half into the binary envelope.

    Args:
        expo: The exponent, E for a public key or D for a private key.
        mod: The modulus.

    Returns:
        The envelope bytes.

    Raises:
        InvalidArgument: If either value is negative.
    """
    if expo < 0 or mod < 0:
        raise InvalidArgument("Key parameters must be non-negative.")
    out = bytearray()
    for value in (expo, mod):
        raw = integer_to_bytes(value)
        out += len(raw).to_bytes(LENGTH_PREFIX, byteorder="big")
        out += raw
    return bytes(out)


def decode(data: bytes) -> tuple[int, int]:
    """Decodes a binary envelope.

    Args:
        data: The envelope bytes.

    Returns:
        Tuple of (exponent, modulus).

    Raises:
        DecodeError: If a header or field is truncated, a value is negative or trailing bytes remain.
    """
    values = []
    pos = 0
    for field in ("exponent", "modulus"):
        if len(data) - pos < LENGTH_PREFIX:
            raise DecodeError(f"Envelope too short for the {field} length prefix.")
        size = int.from_bytes(data[pos:pos + LENGTH_PREFIX], byteorder="big")
        pos += LENGTH_PREFIX
        if size > len(data) - pos:
            raise DecodeError(f"Declared {field} length {size} exceeds the remaining {len(data) - pos} bytes.")
        value = bytes_to_integer(data[pos:pos + size])
        if value < 0:
            raise DecodeError(f"Decoded {field} is negative.")
        values.append(value)
        pos += size
    if pos != len(data):
        raise DecodeError(f"{len(data) - pos} trailing bytes after the modulus.")
    return values[0], values[1]


def to_pkcs1_public(expo: int, mod: int) -> bytes:
    """DER-encodes a public key as a PKCS#1 RSAPublicKey.

    Args:
        expo: The public exponent.
        mod: The modulus.

    Returns:
        The DER bytes.
    """
    keydata = rfc8017.RSAPublicKey()
    keydata["modulus"] = mod
    keydata["publicExponent"] = expo
    return encoder.encode(keydata)


def from_pkcs1_public(der: bytes) -> tuple[int, int]:
    """Reads a PKCS#1 RSAPublicKey.

    Args:
        der: The DER bytes.

    Returns:
        Tuple of (exponent, modulus), the same order `decode` uses.

    Raises:
        DecodeError: If the DER is not an RSAPublicKey.
    """
    try:
        keydata, rest = decoder.decode(der, asn1Spec=rfc8017.RSAPublicKey())
    except error.PyAsn1Error as err:
        raise DecodeError("Not a PKCS#1 RSAPublicKey.") from err
    if rest:
        raise DecodeError("Trailing data after RSAPublicKey.")
    pykeyd = localize.encode(keydata)
    return pykeyd["publicExponent"], pykeyd["modulus"]


def to_pkcs1_private(material: "KeyMaterial") -> bytes:
    """DER-encodes full key material as a PKCS#1 RSAPrivateKey, including the CRT components.

    Args:
        material: The key material to export.

    Returns:
        The DER bytes.
    """
    interkey = rfc8017.RSAPrivateKey()
    interkey["version"] = 0
    interkey["modulus"] = material.n
    interkey["publicExponent"] = material.e
    interkey["privateExponent"] = material.d
    interkey["prime1"] = material.p
    interkey["prime2"] = material.q
    interkey["exponent1"] = material.d % (material.p - 1)
    interkey["exponent2"] = material.d % (material.q - 1)
    interkey["coefficient"] = pow(material.q, -1, material.p)
    return encoder.encode(interkey)
