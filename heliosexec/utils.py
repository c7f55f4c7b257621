"""Small byte and hashing helpers shared across the package."""

from __future__ import annotations

from Crypto.Hash import keccak


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data``."""
    digest = keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return digest.digest()


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex string, with or without a ``0x`` prefix."""
    text = value.strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if len(text) % 2:
        text = "0" + text
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"invalid hex string: {value!r}") from exc


def to_hex(data: bytes) -> str:
    """Encode bytes as a ``0x``-prefixed lower-case hex string."""
    return "0x" + bytes(data).hex()