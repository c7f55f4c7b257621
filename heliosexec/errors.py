"""Errors raised by the execution layer."""

from __future__ import annotations

from typing import Optional

from .utils import to_hex


def _fmt(value) -> str:
    return to_hex(value) if isinstance(value, (bytes, bytearray)) else str(value)


class ExecutionError(Exception):
    """Base class for execution verification failures."""

    fields: tuple = ()
    template = ""

    def __init__(self, *values) -> None:
        for name, value in zip(self.fields, values):
            setattr(self, name, value)
        super().__init__(self.template.format(*map(_fmt, values)))


def _error(name: str, template: str, *fields: str) -> type:
    return type(name, (ExecutionError,), {"fields": fields, "template": template})


InvalidAccountProof = _error(
    "InvalidAccountProof", "invalid account proof for address: {}", "address")
InvalidStorageProof = _error(
    "InvalidStorageProof", "invalid storage proof for address: {}, slot: {}", "address", "slot")
CodeHashMismatch = _error(
    "CodeHashMismatch", "code hash mismatch for address: {}, found: {}, expected: {}",
    "address", "found", "expected")
ReceiptRootMismatch = _error("ReceiptRootMismatch", "receipt root mismatch for tx: {}", "tx")
MissingTransaction = _error("MissingTransaction", "missing transaction for tx: {}", "tx")
NoReceiptForTransaction = _error(
    "NoReceiptForTransaction", "could not prove receipt for tx: {}", "tx")
MissingLog = _error(
    "MissingLog", "missing log for transaction: {}, index: {}", "tx", "index")
TooManyLogsToProve = _error(
    "TooManyLogsToProve", "too many logs to prove: {}, current limit is: {}", "count", "limit")
IncorrectRpcNetwork = _error(
    "IncorrectRpcNetwork", "execution rpc is for the incorrect network")
InvalidBaseGasFee = _error(
    "InvalidBaseGasFee", "Invalid base gas fee helios {} vs rpc endpoint {} at block {}",
    "ours", "theirs", "block")
InvalidGasUsedRatio = _error(
    "InvalidGasUsedRatio", "Invalid gas used ratio of helios {} vs rpc endpoint {} at block {}",
    "ours", "theirs", "block")
BlockNotFound = _error("BlockNotFound", "Block {} not found", "block")
EmptyExecutionPayload = _error("EmptyExecutionPayload", "Helios Execution Payload is empty")
InvalidBlockRange = _error(
    "InvalidBlockRange", "User query for block {} but helios oldest block is {}",
    "requested", "oldest")


class RpcError(Exception):
    """A remote procedure call failed."""

    def __init__(self, method: str, error) -> None:
        self.method, self.error = method, error
        super().__init__(f"rpc error on method: {method}, message: {error}")


class EvmError(Exception):
    """A failure while executing a call in the EVM."""


class Revert(EvmError):
    def __init__(self, output: Optional[bytes] = None) -> None:
        self.output = output
        shown = "None" if output is None else to_hex(output)
        super().__init__(f"execution reverted: {shown}")


def decode_revert_reason(data: bytes) -> Optional[str]:
    """Decode an ABI ``Error(string)`` payload, skipping its selector."""
    body = bytes(data)[4:]
    if len(data) < 4 or len(body) < 64:
        return None
    start = int.from_bytes(body[:32], "big") + 32
    length = int.from_bytes(body[start - 32:start], "big")
    if start + length > len(body):
        return None
    try:
        return body[start:start + length].decode("utf-8")
    except UnicodeDecodeError:
        return None