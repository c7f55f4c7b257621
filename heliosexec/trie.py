"""A Merkle Patricia trie, used to rebuild receipt roots and proofs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from . import rlp
from .utils import keccak256


@dataclass
class _Leaf:
    path: tuple
    value: bytes


@dataclass
class _Extension:
    path: tuple
    child: "_Node"


@dataclass
class _Branch:
    children: list = field(default_factory=lambda: [None] * 16)
    value: Optional[bytes] = None


_Node = Union[_Leaf, _Extension, _Branch]


def _nibbles(key: bytes) -> tuple:
    return tuple(n for byte in key for n in (byte >> 4, byte & 0xF))


def _hex_prefix(path: tuple, leaf: bool) -> bytes:
    flag = 2 if leaf else 0
    if len(path) % 2:
        nibbles = (flag + 1,) + path
    else:
        nibbles = (flag, 0) + path
    return bytes(nibbles[i] << 4 | nibbles[i + 1] for i in range(0, len(nibbles), 2))


def _common_prefix(a: tuple, b: tuple) -> int:
    count = 0
    for x, y in zip(a, b):
        if x != y:
            break
        count += 1
    return count


def _place(branch: _Branch, path: tuple, node_for_rest) -> None:
    if path:
        branch.children[path[0]] = node_for_rest(path[1:])
    else:
        branch.value = node_for_rest(None)


def _split(common: tuple, branch: _Branch) -> _Node:
    return _Extension(common, branch) if common else branch


def _insert(node: Optional[_Node], path: tuple, value: bytes) -> _Node:
    if node is None:
        return _Leaf(path, value)
    if isinstance(node, _Branch):
        children = list(node.children)
        if not path:
            return _Branch(children, value)
        children[path[0]] = _insert(children[path[0]], path[1:], value)
        return _Branch(children, node.value)
    common = _common_prefix(node.path, path)
    if isinstance(node, _Leaf):
        if common == len(node.path) == len(path):
            return _Leaf(path, value)
        branch = _Branch()
        _place(branch, node.path[common:], lambda rest: node.value if rest is None else _Leaf(rest, node.value))
        _place(branch, path[common:], lambda rest: value if rest is None else _Leaf(rest, value))
        return _split(path[:common], branch)
    if common == len(node.path):
        return _Extension(node.path, _insert(node.child, path[common:], value))
    branch = _Branch()
    remainder = node.path[common:]
    branch.children[remainder[0]] = (
        node.child if len(remainder) == 1 else _Extension(remainder[1:], node.child)
    )
    _place(branch, path[common:], lambda rest: value if rest is None else _Leaf(rest, value))
    return _split(path[:common], branch)


def _structure(node: _Node) -> list:
    if isinstance(node, _Leaf):
        return [_hex_prefix(node.path, True), node.value]
    if isinstance(node, _Extension):
        return [_hex_prefix(node.path, False), _reference(node.child)]
    return [_reference(child) if child is not None else b"" for child in node.children] + [
        node.value if node.value is not None else b""
    ]


def _reference(node: _Node):
    structure = _structure(node)
    encoded = rlp.encode(structure)
    return structure if len(encoded) < 32 else keccak256(encoded)


class Trie:
    """An in-memory Merkle Patricia trie over byte keys and values."""

    def __init__(self) -> None:
        self._root: Optional[_Node] = None

    def insert(self, key: bytes, value: bytes) -> None:
        """Set ``key`` to ``value``."""
        self._root = _insert(self._root, _nibbles(bytes(key)), bytes(value))

    def root_hash(self) -> bytes:
        """Return the 32-byte root hash."""
        if self._root is None:
            return keccak256(rlp.encode(b""))
        return keccak256(rlp.encode(_structure(self._root)))

    def prove(self, key: bytes) -> list[bytes]:
        """Return the RLP-encoded hashed nodes on the path to ``key``."""
        proof: list[bytes] = []
        node = self._root
        path = _nibbles(bytes(key))
        first = True
        while node is not None:
            encoded = rlp.encode(_structure(node))
            if first or len(encoded) >= 32:
                proof.append(encoded)
            first = False
            if isinstance(node, _Leaf):
                break
            if isinstance(node, _Extension):
                if path[:len(node.path)] != node.path:
                    break
                path = path[len(node.path):]
                node = node.child
                continue
            if not path:
                break
            node = node.children[path[0]]
            path = path[1:]
        return proof


def ordered_trie_root(items) -> bytes:
    """Root of a trie keyed by the RLP encoding of each item's index."""
    trie = Trie()
    for index, item in enumerate(items):
        trie.insert(rlp.encode(index), item)
    return trie.root_hash()