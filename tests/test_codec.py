# pylint: disable=missing-module-docstring,redefined-outer-name
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import warnings

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

from rsakeygen import codec
from rsakeygen import keygen
from rsakeygen import records
from rsakeygen.errors import DecodeError
from rsakeygen.errors import InvalidArgument

MODULUS = (2**127 - 1) * (2**89 - 1)

boundary_values = [
    0,
    1,
    0x7f,
    0x80,  # Top byte needs a pad to stay positive
    0xff,
    0x100,
    0x7fff,
    0x8000,
    65537,
    2**4095 - 1,  # 512 bytes, top byte 0x7f
    2**4095,  # 512 bytes, top byte 0x80
    2**4096 - 1,  # 512 bytes of 0xff
    2**4088,  # 512 bytes, top byte 0x01
]


def pem_wrap(der: bytes, label: str) -> bytes:
    payload = base64.b64encode(der).decode("ascii")
    body = "\n".join(payload[i:i + 64] for i in range(0, len(payload), 64))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n".encode("ascii")


@pytest.fixture(scope="module")
def material() -> keygen.KeyMaterial:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        return keygen.KeyMaterialBuilder(workers=4, exact_length=True).build(1024)


@pytest.mark.parametrize("value,expected", [
    (0, b"\x00"),
    (1, b"\x01"),
    (0x7f, b"\x7f"),
    (0x80, b"\x80\x00"),
    (0xff, b"\xff\x00"),
    (0x100, b"\x00\x01"),
    (65537, b"\x01\x00\x01"),
    (0x8000, b"\x00\x80\x00"),
])
def test_integer_to_bytes(value, expected):
    assert codec.integer_to_bytes(value) == expected
    assert codec.bytes_to_integer(expected) == value


def test_encode_layout():
    assert codec.encode(3, 15) == b"\x00\x00\x00\x01\x03\x00\x00\x00\x01\x0f"
    assert codec.encode(255, 256) == b"\x00\x00\x00\x02\xff\x00\x00\x00\x00\x02\x00\x01"
    assert codec.encode(0, 1) == b"\x00\x00\x00\x01\x00\x00\x00\x00\x01\x01"


@pytest.mark.parametrize("value", boundary_values)
def test_round_trip(value):
    blob = codec.encode(value, MODULUS)
    assert codec.decode(blob) == (value, MODULUS)


@pytest.mark.parametrize("value", boundary_values)
def test_length_prefix_counts_pad(value):
    blob = codec.encode(value, MODULUS)
    size = int.from_bytes(blob[:4], "big")
    assert size == len(codec.integer_to_bytes(value))
    assert size == value.bit_length() // 8 + 1
    assert blob[4 + size - 1] < 0x80
    n_size = int.from_bytes(blob[4 + size:8 + size], "big")
    assert len(blob) == 8 + size + n_size


def test_round_trip_largest_value():
    value = 2**4096 - 1
    blob = codec.encode(value, value)
    assert blob[:4] == (513).to_bytes(4, "big")
    assert blob[4:516] == b"\xff" * 512
    assert blob[516] == 0
    assert codec.decode(blob) == (value, value)


@pytest.mark.parametrize("expo,mod", [(-1, 15), (3, -15)])
def test_encode_validates(expo, mod):
    with pytest.raises(InvalidArgument):
        codec.encode(expo, mod)


@pytest.mark.parametrize(
    "blob",
    [
        b"",
        b"\x00\x00\x00",  # Short header
        b"\x00\x00\x00\x05\x01\x02",  # Declared length exceeds buffer
        b"\x00\x00\x00\x01\x03",  # Missing modulus header
        b"\x00\x00\x00\x01\x03\x00\x00",  # Short modulus header
        b"\x00\x00\x00\x01\x03\x00\x00\x00\x02\x0f",  # Truncated modulus
        b"\x00\x00\x00\x01\x03\x00\x00\x00\x01\x0f\x00",  # Trailing data
        b"\x00\x00\x00\x01\xff\x00\x00\x00\x01\x0f",  # Negative exponent
        b"\xff\xff\xff\xff\x03\x00\x00\x00\x01\x0f",
    ])
def test_decode_validates(blob):
    with pytest.raises(DecodeError):
        codec.decode(blob)


def test_decode_error_is_value_error():
    with pytest.raises(ValueError):
        codec.decode(b"\x00")


def test_decode_empty_field():
    assert codec.decode(b"\x00\x00\x00\x00\x00\x00\x00\x01\x05") == (0, 5)


def test_key_halves_round_trip(material):
    assert codec.decode(material.public_bytes()) == (material.e, material.n)
    assert codec.decode(material.private_bytes()) == (material.d, material.n)


def test_pkcs1_public_interop(material):
    der = codec.to_pkcs1_public(material.e, material.n)
    loaded = serialization.load_pem_public_key(pem_wrap(der, "RSA PUBLIC KEY"))
    assert loaded.public_numbers() == rsa.RSAPublicNumbers(material.e, material.n)
    assert codec.from_pkcs1_public(der) == (material.e, material.n)


def test_pkcs1_public_foreign_key():
    foreign = rsa.generate_private_key(public_exponent=65537, key_size=1024).public_key()
    der = foreign.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.PKCS1)
    assert codec.from_pkcs1_public(der) == (65537, foreign.public_numbers().n)


@pytest.mark.parametrize("der", [b"", b"\x30\x03\x02\x01", b"garbage!"])
def test_from_pkcs1_public_validates(der):
    with pytest.raises(DecodeError):
        codec.from_pkcs1_public(der)


def test_pkcs1_private_interop(material):
    der = codec.to_pkcs1_private(material)
    loaded = serialization.load_pem_private_key(pem_wrap(der, "RSA PRIVATE KEY"),
                                                None,
                                                unsafe_skip_rsa_key_validation=True)
    privs = loaded.private_numbers()
    assert privs.public_numbers == rsa.RSAPublicNumbers(material.e, material.n)
    assert privs.d == material.d
    assert {privs.p, privs.q} == {material.p, material.q}
    assert privs.dmp1 == material.d % (privs.p - 1)
    assert privs.dmq1 == material.d % (privs.q - 1)
    assert privs.iqmp == pow(privs.q, -1, privs.p)


def test_public_record():
    rec = records.PublicKeyRecord.from_parameters(3, 15, "alice@example.com")
    assert rec.key == "AAAAAQMAAAABDw=="
    assert rec.identity == "alice@example.com"
    assert rec.parameters() == (3, 15)
    assert records.PublicKeyRecord(rec.key).identity is None


def test_private_record_identities():
    seed = ["alice@example.com"]
    rec = records.PrivateKeyRecord.from_parameters(11, 15, seed)
    assert rec.add_identity("bob@example.com")
    assert not rec.add_identity("alice@example.com")
    assert rec.identities == ["alice@example.com", "bob@example.com"]
    assert seed == ["alice@example.com"]
    assert rec.parameters() == (11, 15)


@pytest.mark.parametrize("key", ["not base64!!", "AAAA", "AAAAAQMAAAABDwA=", "ÄÖÜ"])
def test_record_validates(key):
    with pytest.raises(DecodeError):
        records.PublicKeyRecord(key).parameters()
