"""Merkle Patricia proof verification for accounts and storage slots."""

from __future__ import annotations

from itertools import takewhile
from typing import Iterator, Sequence

from . import rlp
from .types import ProofResponse
from .utils import keccak256

EMPTY_STORAGE_HASH = bytes.fromhex(
    "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"
)
EMPTY_CODE_HASH = bytes.fromhex(
    "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
)
_EMPTY_ACCOUNT = rlp.encode([b"", b"", EMPTY_STORAGE_HASH, EMPTY_CODE_HASH])


def verify_proof(proof: Sequence[bytes], root: bytes, path: bytes, value: bytes) -> bool:
    """Check that ``path`` maps to ``value`` (or is absent) under ``root``."""
    expected, offset, last = bytes(root), 0, len(proof) - 1
    try:
        for i, node in enumerate(proof):
            if expected != keccak256(node):
                return False
            items = rlp.decode_list(node)
            if len(items) == 17:
                nibble = get_nibble(path, offset)
                if i < last:
                    expected, offset = items[nibble], offset + 1
                elif not items[nibble] and is_empty_value(value):
                    return True  # exclusion proof
            elif len(items) == 2:
                node_path, node_value = items
                skip = skip_length(node_path)
                if i == last:
                    matches = paths_match(node_path, skip, path, offset)
                    if not matches and is_empty_value(value):
                        return True
                    if node_value == bytes(value):
                        return matches
                else:
                    prefix = shared_prefix_length(path, offset, node_path)
                    if prefix < len(node_path) * 2 - skip:
                        return False  # divergent path before the end of the proof
                    offset, expected = offset + prefix, node_value
            else:
                return False
    except (rlp.RlpDecodeError, IndexError):
        return False
    return False


def _nibbles_from(data: bytes, start: int) -> Iterator[int]:
    return (get_nibble(data, i) for i in range(start, len(data) * 2))


def paths_match(p1: bytes, s1: int, p2: bytes, s2: int) -> bool:
    """True when the nibbles of ``p1`` from ``s1`` equal those of ``p2`` from ``s2``."""
    if len(p1) * 2 - s1 != len(p2) * 2 - s2:
        return False
    return all(a == b for a, b in zip(_nibbles_from(p1, s1), _nibbles_from(p2, s2)))


def is_empty_value(value: bytes) -> bool:
    """True for an empty storage slot or the encoding of an empty account."""
    return bytes(value) in (b"\x80", _EMPTY_ACCOUNT)


def shared_prefix_length(path: bytes, path_offset: int, node_path: bytes) -> int:
    """Number of leading nibbles ``path`` (from ``path_offset``) shares with ``node_path``."""
    pairs = zip(_nibbles_from(path, path_offset), _nibbles_from(node_path, skip_length(node_path)))
    return sum(1 for _ in takewhile(lambda pair: pair[0] == pair[1], pairs))


def skip_length(node: bytes) -> int:
    """Nibbles taken by the hex-prefix flag of an encoded node path."""
    return {0: 2, 1: 1, 2: 2, 3: 1}.get(get_nibble(node, 0), 0) if node else 0


def get_nibble(path: bytes, offset: int) -> int:
    """Return the nibble at ``offset`` (high nibble first)."""
    byte = path[offset // 2]
    return byte >> 4 if offset % 2 == 0 else byte & 0xF


def encode_account(proof: ProofResponse) -> bytes:
    """RLP-encode the account fields of a proof response as stored in the state trie."""
    return rlp.encode([proof.nonce, proof.balance, proof.storage_hash, proof.code_hash])