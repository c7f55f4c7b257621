import pytest

from heliosexec.errors import (
    BlockNotFound,
    ExecutionError,
    IncorrectRpcNetwork,
    InvalidAccountProof,
    MissingLog,
    Revert,
    EvmError,
    TooManyLogsToProve,
    decode_revert_reason,
)


def _abi_error(text: bytes) -> bytes:
    padded = text + b"\x00" * (-len(text) % 32)
    return (
        bytes.fromhex("08c379a0")
        + (32).to_bytes(32, "big")
        + len(text).to_bytes(32, "big")
        + padded
    )


def test_decode_revert_reason():
    assert decode_revert_reason(_abi_error(b"not enough funds")) == "not enough funds"


def test_decode_revert_reason_short_data():
    assert decode_revert_reason(b"\x01\x02") is None


def test_decode_revert_reason_truncated():
    assert decode_revert_reason(_abi_error(b"abc")[:40]) is None


def test_messages():
    assert str(TooManyLogsToProve(7, 5)) == "too many logs to prove: 7, current limit is: 5"
    assert str(IncorrectRpcNetwork()) == "execution rpc is for the incorrect network"
    assert str(BlockNotFound(12)) == "Block 12 not found"


def test_hierarchy_and_attributes():
    err = InvalidAccountProof(b"\x11" * 20)
    assert isinstance(err, ExecutionError)
    assert err.address == b"\x11" * 20
    assert ("0x" + "11" * 20) in str(err)
    with pytest.raises(ExecutionError):
        raise MissingLog("0xab", 3)


def test_revert_is_evm_error():
    err = Revert(b"\x01")
    assert isinstance(err, EvmError)
    assert err.output == b"\x01"