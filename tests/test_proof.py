import pytest

from heliosexec import rlp
from heliosexec.proof import (
    EMPTY_CODE_HASH,
    EMPTY_STORAGE_HASH,
    encode_account,
    get_nibble,
    is_empty_value,
    paths_match,
    shared_prefix_length,
    skip_length,
    verify_proof,
)
from heliosexec.trie import Trie
from heliosexec.types import ProofResponse
from heliosexec.utils import keccak256


def test_shared_prefix_length():
    path = bytes([0x12, 0x13, 0x14, 0x6F, 0x6C, 0x64, 0x21])
    node_path = bytes([0x6F, 0x6C, 0x63, 0x21])
    assert shared_prefix_length(path, 6, node_path) == 5

    node_path = bytes([0x14, 0x6F, 0x6C, 0x64, 0x11])
    assert shared_prefix_length(path, 5, node_path) == 7


def test_get_nibble():
    assert get_nibble(b"\xab", 0) == 0xA
    assert get_nibble(b"\xab", 1) == 0xB


@pytest.mark.parametrize(
    "node, expected",
    [(b"", 0), (b"\x00\x12", 2), (b"\x1a", 1), (b"\x20", 2), (b"\x3f", 1), (b"\x40", 0)],
)
def test_skip_length(node, expected):
    assert skip_length(node) == expected


def test_paths_match():
    assert paths_match(b"\x3a\xbc", 1, b"\xab\xc0", 0) is False
    assert paths_match(b"\x3a\xbc", 1, b"\xfa\xbc", 1) is True
    assert paths_match(b"\x20\xab", 2, b"\x12\xab", 2) is True
    assert paths_match(b"\x20\xab", 2, b"\x12\xac", 2) is False


def test_is_empty_value():
    assert is_empty_value(b"\x80") is True
    assert is_empty_value(b"\x01") is False
    empty = rlp.encode([b"", b"", EMPTY_STORAGE_HASH, EMPTY_CODE_HASH])
    assert is_empty_value(empty) is True


def _proof_response(nonce, balance, storage_hash, code_hash):
    return ProofResponse(
        address=bytes(20),
        balance=balance,
        code_hash=code_hash,
        nonce=nonce,
        storage_hash=storage_hash,
        account_proof=[],
        storage_proof=[],
    )


def test_encode_account_round_trip():
    proof = _proof_response(7, 1000, b"\x11" * 32, b"\x22" * 32)
    decoded = rlp.decode(encode_account(proof))
    assert decoded == [b"\x07", (1000).to_bytes(2, "big"), b"\x11" * 32, b"\x22" * 32]


def test_encode_empty_account_is_empty_value():
    proof = _proof_response(0, 0, EMPTY_STORAGE_HASH, EMPTY_CODE_HASH)
    assert is_empty_value(encode_account(proof)) is True


@pytest.fixture
def trie_data():
    trie = Trie()
    entries = {}
    for name in (b"alpha", b"beta", b"gamma", b"delta", b"epsilon"):
        key = keccak256(name)
        value = rlp.encode([name * 8, keccak256(name)])
        trie.insert(key, value)
        entries[key] = value
    return trie, entries


def test_inclusion_proofs_verify(trie_data):
    trie, entries = trie_data
    root = trie.root_hash()
    for key, value in entries.items():
        assert verify_proof(trie.prove(key), root, key, value) is True


def test_wrong_value_rejected(trie_data):
    trie, entries = trie_data
    key = next(iter(entries))
    assert verify_proof(trie.prove(key), trie.root_hash(), key, b"\x83abc") is False


def test_wrong_root_rejected(trie_data):
    trie, entries = trie_data
    key, value = next(iter(entries.items()))
    assert verify_proof(trie.prove(key), b"\x00" * 32, key, value) is False


def test_exclusion_proof(trie_data):
    trie, _ = trie_data
    missing = keccak256(b"not-in-trie")
    proof = trie.prove(missing)
    assert verify_proof(proof, trie.root_hash(), missing, b"\x80") is True
    assert verify_proof(proof, trie.root_hash(), missing, b"\x05") is False


def test_empty_proof_rejected(trie_data):
    trie, entries = trie_data
    key, value = next(iter(entries.items()))
    assert verify_proof([], trie.root_hash(), key, value) is False


def test_garbage_node_rejected():
    node = b"\xff\x01"
    assert verify_proof([node], keccak256(node), b"\x00" * 32, b"\x80") is False