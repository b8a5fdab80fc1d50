"""Key records: a base64 encoded key envelope plus the identities it belongs to.

A public record names the single identity whose messages it encrypts, a private record lists every identity it can
decrypt for. Persisting and transporting records is left to the caller.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii

from rsakeygen import codec
from rsakeygen.errors import DecodeError


def b64_enc(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64_dec(key: str) -> bytes:
    """Decodes base64 key text.

    Raises:
        DecodeError: If `key` is not valid base64.
    """
    try:
        return base64.b64decode(key.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as err:
        raise DecodeError("Key is not valid base64.") from err


class KeyRecord:
    """Common part of public and private key records.

    Attributes:
        key: Base64 text of the binary key envelope.
    """

    def __init__(self, key: str) -> None:
        self.key = key

    def parameters(self) -> tuple[int, int]:
        """Decode the stored key.

        Returns:
            Tuple of (exponent, modulus).
        """
        return codec.decode(b64_dec(self.key))


class PublicKeyRecord(KeyRecord):
    """Public key record.

    Attributes:
        key: Base64 text of the (E, N) envelope.
        identity: The identity the key belongs to, if known.
    """

    def __init__(self, key: str, identity: str | None = None) -> None:
        super().__init__(key)
        self.identity = identity

    @classmethod
    def from_parameters(cls, expo: int, mod: int, identity: str | None = None) -> "PublicKeyRecord":
        return cls(b64_enc(codec.encode(expo, mod)), identity)


class PrivateKeyRecord(KeyRecord):
    """Private key record.

    Attributes:
        key: Base64 text of the (D, N) envelope.
        identities: Identities this key decrypts for, in the order they were added.
    """

    def __init__(self, key: str, identities: list[str] | None = None) -> None:
        super().__init__(key)
        self.identities: list[str] = list(identities) if identities else []

    @classmethod
    def from_parameters(cls, expo: int, mod: int, identities: list[str] | None = None) -> "PrivateKeyRecord":
        return cls(b64_enc(codec.encode(expo, mod)), identities)

    def add_identity(self, identity: str) -> bool:
        """Register another identity with this key.

        Args:
            identity: The identity to add.

        Returns:
            True if it was added, False if it was already present.
        """
        if identity in self.identities:
            return False
        self.identities.append(identity)
        return True
