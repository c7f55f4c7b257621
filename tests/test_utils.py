import pytest

from heliosexec.utils import hex_to_bytes, keccak256, to_hex


def test_keccak_of_empty_input():
    assert keccak256(b"") == bytes.fromhex(
        "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    )


def test_keccak_of_empty_rlp_string():
    assert keccak256(b"\x80") == bytes.fromhex(
        "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"
    )


def test_hex_round_trip():
    data = bytes(range(40))
    assert hex_to_bytes(to_hex(data)) == data


def test_hex_without_prefix_and_odd_length():
    assert hex_to_bytes("abc") == b"\x0a\xbc"
    assert hex_to_bytes("0xff") == b"\xff"


def test_invalid_hex_raises():
    with pytest.raises(ValueError):
        hex_to_bytes("0xzz")