"""Recursive Length Prefix encoding and decoding."""

from __future__ import annotations

from typing import Union

Item = Union[bytes, list]


class RlpDecodeError(ValueError):
    """Raised when bytes are not valid RLP."""


def _prefix(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    size = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + 55 + len(size)]) + size


def encode(item) -> bytes:
    """Encode bytes, non-negative ints and (nested) lists of them."""
    if isinstance(item, int):
        if item < 0:
            raise ValueError("cannot RLP-encode a negative integer")
        item = item.to_bytes((item.bit_length() + 7) // 8, "big")
    if isinstance(item, (bytes, bytearray)):
        if len(item) == 1 and item[0] < 0x80:
            return bytes(item)
        return _prefix(len(item), 0x80) + bytes(item)
    if isinstance(item, (list, tuple)):
        payload = b"".join(encode(element) for element in item)
        return _prefix(len(payload), 0xC0) + payload
    raise TypeError(f"cannot RLP-encode value of type {type(item).__name__}")


def _decode_at(data: bytes, pos: int) -> tuple[Item, int]:
    if pos >= len(data):
        raise RlpDecodeError("unexpected end of input")
    prefix = data[pos]
    if prefix < 0x80:
        return data[pos:pos + 1], pos + 1
    base = 0x80 if prefix < 0xC0 else 0xC0
    short = prefix - base
    start, length = pos + 1, short
    if short > 55:
        raw = data[pos + 1:pos + short - 54]
        if len(raw) != short - 55 or raw[0] == 0:
            raise RlpDecodeError("bad length")
        length = int.from_bytes(raw, "big")
        if length < 56:
            raise RlpDecodeError("long form used for short length")
        start += len(raw)
    end = start + length
    if end > len(data):
        raise RlpDecodeError("truncated item")
    if base == 0x80:
        if length == 1 and data[start] < 0x80:
            raise RlpDecodeError("single byte should not be prefixed")
        return data[start:end], end
    items = []
    while start < end:
        element, start = _decode_at(data, start)
        items.append(element)
    if start != end:
        raise RlpDecodeError("list payload overrun")
    return items, end


def decode(data: bytes) -> Item:
    """Decode a single RLP item; trailing bytes are an error."""
    data = bytes(data)
    item, end = _decode_at(data, 0)
    if end != len(data):
        raise RlpDecodeError("trailing bytes after RLP item")
    return item


def decode_list(data: bytes) -> list[bytes]:
    """Decode an RLP list whose elements are all byte strings."""
    item = decode(data)
    if not isinstance(item, list) or any(isinstance(e, list) for e in item):
        raise RlpDecodeError("expected a list of byte strings")
    return item