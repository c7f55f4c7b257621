"""Data types of the execution layer."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Union

from . import rlp
from .utils import hex_to_bytes, keccak256, to_hex

ZERO_HASH = bytes(32)
ZERO_ADDRESS = bytes(20)


def _int(value) -> Optional[int]:
    if value is None or isinstance(value, int):
        return value
    return int(value, 16) if str(value).startswith(("0x", "0X")) else int(value)


def _bytes(value, size: Optional[int] = None) -> Optional[bytes]:
    if value is None:
        return None
    data = hex_to_bytes(value) if isinstance(value, str) else bytes(value)
    if size is not None:
        if len(data) > size:
            raise ValueError(f"expected at most {size} bytes, got {len(data)}")
        data = data.rjust(size, b"\x00")
    return data


def _hex(value) -> Optional[str]:
    if value is None:
        return None
    return hex(value) if isinstance(value, int) else to_hex(value)


def _be(data: bytes) -> int:
    return int.from_bytes(data, "big")


class TagKind(enum.Enum):
    LATEST = "latest"
    FINALIZED = "finalized"
    NUMBER = "number"


@dataclass(frozen=True)
class BlockTag:
    """Selects a block: latest, finalized, or by number."""

    kind: TagKind
    number: Optional[int] = None

    @classmethod
    def latest(cls) -> "BlockTag":
        return cls(TagKind.LATEST)

    @classmethod
    def finalized(cls) -> "BlockTag":
        return cls(TagKind.FINALIZED)

    @classmethod
    def number_of(cls, number: int) -> "BlockTag":
        if number < 0:
            raise ValueError("block number must be non-negative")
        return cls(TagKind.NUMBER, number)

    @classmethod
    def parse(cls, value) -> "BlockTag":
        """Parse ``"latest"``, ``"finalized"``, an int, or a hex/decimal string."""
        if isinstance(value, BlockTag):
            return value
        text = value if isinstance(value, int) else str(value).strip()
        if text in ("latest", "finalized"):
            return cls(TagKind(text))
        try:
            return cls.number_of(_int(text))
        except ValueError as exc:
            raise ValueError(f"invalid block tag: {value!r}") from exc

    def to_rpc(self) -> str:
        return hex(self.number) if self.kind is TagKind.NUMBER else self.kind.value

    def __str__(self) -> str:
        return str(self.number) if self.kind is TagKind.NUMBER else self.kind.value


@dataclass
class Transaction:
    hash: bytes = ZERO_HASH
    nonce: int = 0
    block_hash: Optional[bytes] = None
    block_number: Optional[int] = None
    transaction_index: Optional[int] = None
    from_address: Optional[bytes] = None
    to: Optional[bytes] = None
    value: int = 0
    gas: int = 0
    gas_price: Optional[int] = None
    input: bytes = b""
    transaction_type: int = 0
    chain_id: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    raw: Optional[bytes] = None

    @classmethod
    def from_raw(cls, raw: bytes) -> "Transaction":
        """Decode a signed legacy or typed (EIP-2718) transaction."""
        raw = bytes(raw)
        if not raw:
            raise rlp.RlpDecodeError("empty transaction")
        tx_type = 0 if raw[0] >= 0xC0 else raw[0]
        fields = rlp.decode(raw if tx_type == 0 else raw[1:])
        tx = cls(hash=keccak256(raw), transaction_type=tx_type, raw=raw)
        if tx_type == 0 and len(fields) == 9:
            nonce, gas_price, gas, to, value, data, v = fields[:7]
            tx.gas_price = _be(gas_price)
            tx.chain_id = (_be(v) - 35) // 2 if _be(v) >= 35 else None
        elif tx_type == 1 and len(fields) == 11:
            chain_id, nonce, gas_price, gas, to, value, data = fields[:7]
            tx.chain_id, tx.gas_price = _be(chain_id), _be(gas_price)
        elif tx_type == 2 and len(fields) == 12:
            chain_id, nonce, priority, max_fee, gas, to, value, data = fields[:8]
            tx.chain_id = _be(chain_id)
            tx.max_priority_fee_per_gas, tx.max_fee_per_gas = _be(priority), _be(max_fee)
        else:
            raise rlp.RlpDecodeError(f"unsupported transaction type {tx_type}")
        tx.nonce, tx.gas, tx.value = _be(nonce), _be(gas), _be(value)
        tx.to, tx.input = to or None, data
        return tx

    @classmethod
    def from_json(cls, data: dict) -> "Transaction":
        return cls(
            hash=_bytes(data["hash"], 32),
            nonce=_int(data.get("nonce")) or 0,
            block_hash=_bytes(data.get("blockHash"), 32),
            block_number=_int(data.get("blockNumber")),
            transaction_index=_int(data.get("transactionIndex")),
            from_address=_bytes(data.get("from"), 20),
            to=_bytes(data.get("to"), 20),
            value=_int(data.get("value")) or 0,
            gas=_int(data.get("gas")) or 0,
            gas_price=_int(data.get("gasPrice")),
            input=_bytes(data.get("input", "0x")),
            transaction_type=_int(data.get("type")) or 0,
            chain_id=_int(data.get("chainId")),
            max_fee_per_gas=_int(data.get("maxFeePerGas")),
            max_priority_fee_per_gas=_int(data.get("maxPriorityFeePerGas")),
        )


@dataclass
class Transactions:
    """A block's transactions, either in full or as hashes only."""

    full: Optional[list] = field(default_factory=list)
    hash_list: Optional[list] = None

    @property
    def is_full(self) -> bool:
        return self.hash_list is None

    def hashes(self) -> list[bytes]:
        if self.hash_list is not None:
            return list(self.hash_list)
        return [tx.hash for tx in self.full]

    def hashes_only(self) -> "Transactions":
        return Transactions(full=None, hash_list=self.hashes())


@dataclass
class Block:
    number: int = 0
    hash: bytes = ZERO_HASH
    parent_hash: bytes = ZERO_HASH
    state_root: bytes = ZERO_HASH
    receipts_root: bytes = ZERO_HASH
    miner: bytes = ZERO_ADDRESS
    timestamp: int = 0
    difficulty: int = 0
    base_fee_per_gas: int = 0
    gas_limit: int = 0
    gas_used: int = 0
    logs_bloom: bytes = bytes(256)
    extra_data: bytes = b""
    transactions: Transactions = field(default_factory=Transactions)


@dataclass
class Log:
    address: bytes = ZERO_ADDRESS
    topics: list = field(default_factory=list)
    data: bytes = b""
    block_hash: Optional[bytes] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[bytes] = None
    transaction_index: Optional[int] = None
    log_index: Optional[int] = None

    @classmethod
    def from_json(cls, data: dict) -> "Log":
        return cls(
            address=_bytes(data["address"], 20),
            topics=[_bytes(topic, 32) for topic in data.get("topics", [])],
            data=_bytes(data.get("data", "0x")),
            block_hash=_bytes(data.get("blockHash"), 32),
            block_number=_int(data.get("blockNumber")),
            transaction_hash=_bytes(data.get("transactionHash"), 32),
            transaction_index=_int(data.get("transactionIndex")),
            log_index=_int(data.get("logIndex")),
        )

    def to_rlp_item(self) -> list:
        return [self.address, list(self.topics), self.data]

    def rlp_bytes(self) -> bytes:
        """RLP of the consensus part of the log: address, topics, data."""
        return rlp.encode(self.to_rlp_item())


@dataclass
class TransactionReceipt:
    transaction_hash: bytes = ZERO_HASH
    transaction_index: int = 0
    block_hash: Optional[bytes] = None
    block_number: Optional[int] = None
    from_address: bytes = ZERO_ADDRESS
    to: Optional[bytes] = None
    cumulative_gas_used: int = 0
    gas_used: Optional[int] = None
    contract_address: Optional[bytes] = None
    logs: list = field(default_factory=list)
    status: Optional[int] = None
    logs_bloom: bytes = bytes(256)
    transaction_type: Optional[int] = None
    effective_gas_price: Optional[int] = None

    @classmethod
    def from_json(cls, data: dict) -> "TransactionReceipt":
        return cls(
            transaction_hash=_bytes(data["transactionHash"], 32),
            transaction_index=_int(data.get("transactionIndex")) or 0,
            block_hash=_bytes(data.get("blockHash"), 32),
            block_number=_int(data.get("blockNumber")),
            from_address=_bytes(data.get("from"), 20) or ZERO_ADDRESS,
            to=_bytes(data.get("to"), 20),
            cumulative_gas_used=_int(data.get("cumulativeGasUsed")) or 0,
            gas_used=_int(data.get("gasUsed")),
            contract_address=_bytes(data.get("contractAddress"), 20),
            logs=[Log.from_json(log) for log in data.get("logs", [])],
            status=_int(data.get("status")),
            logs_bloom=_bytes(data.get("logsBloom"), 256) or bytes(256),
            transaction_type=_int(data.get("type")),
            effective_gas_price=_int(data.get("effectiveGasPrice")),
        )


@dataclass
class StorageProof:
    key: bytes
    value: int
    proof: list


@dataclass
class ProofResponse:
    """An ``eth_getProof`` response."""

    address: bytes
    balance: int
    code_hash: bytes
    nonce: int
    storage_hash: bytes
    account_proof: list
    storage_proof: list

    @classmethod
    def from_json(cls, data: dict) -> "ProofResponse":
        return cls(
            address=_bytes(data["address"], 20),
            balance=_int(data["balance"]),
            code_hash=_bytes(data["codeHash"], 32),
            nonce=_int(data["nonce"]),
            storage_hash=_bytes(data["storageHash"], 32),
            account_proof=[_bytes(node) for node in data.get("accountProof", [])],
            storage_proof=[
                StorageProof(
                    key=_bytes(entry["key"], 32),
                    value=_int(entry["value"]),
                    proof=[_bytes(node) for node in entry.get("proof", [])],
                )
                for entry in data.get("storageProof", [])
            ],
        )


@dataclass
class AccessListItem:
    address: bytes
    storage_keys: list = field(default_factory=list)


@dataclass
class FeeHistory:
    oldest_block: int
    base_fee_per_gas: list
    gas_used_ratio: list
    reward: list = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> "FeeHistory":
        return cls(
            oldest_block=_int(data["oldestBlock"]),
            base_fee_per_gas=[_int(v) for v in data.get("baseFeePerGas", [])],
            gas_used_ratio=[float(v) for v in data.get("gasUsedRatio", [])],
            reward=[[_int(v) for v in row] for row in data.get("reward", [])],
        )


@dataclass
class Filter:
    """A log filter."""

    from_block: Optional[BlockTag] = None
    to_block: Optional[BlockTag] = None
    block_hash: Optional[bytes] = None
    address: Union[bytes, list, None] = None
    topics: list = field(default_factory=list)

    def to_json(self) -> dict:
        out: dict = {}
        if self.block_hash is not None:
            out["blockHash"] = to_hex(self.block_hash)
        else:
            for key, tag in (("fromBlock", self.from_block), ("toBlock", self.to_block)):
                if tag is not None:
                    out[key] = tag.to_rpc()
        if isinstance(self.address, (bytes, bytearray)):
            out["address"] = to_hex(self.address)
        elif self.address:
            out["address"] = [to_hex(a) for a in self.address]
        if self.topics:
            out["topics"] = [
                [to_hex(x) for x in t] if isinstance(t, list) else _hex(t)
                for t in self.topics
            ]
        return out


@dataclass
class Account:
    balance: int = 0
    nonce: int = 0
    code_hash: bytes = ZERO_HASH
    code: bytes = b""
    storage_hash: bytes = ZERO_HASH
    slots: dict = field(default_factory=dict)


_CALL_KEYS = (("from", "from_address"), ("to", "to"), ("gas", "gas"),
              ("gasPrice", "gas_price"), ("value", "value"), ("data", "data"))


@dataclass
class CallOpts:
    from_address: Optional[bytes] = None
    to: Optional[bytes] = None
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    value: Optional[int] = None
    data: Optional[bytes] = None

    @classmethod
    def from_json(cls, data: dict) -> "CallOpts":
        return cls(
            from_address=_bytes(data.get("from"), 20),
            to=_bytes(data.get("to"), 20),
            gas=_int(data.get("gas")),
            gas_price=_int(data.get("gasPrice")),
            value=_int(data.get("value")),
            data=_bytes(data.get("data")),
        )

    def to_json(self) -> dict:
        return {key: _hex(getattr(self, attr)) for key, attr in _CALL_KEYS}

    def __repr__(self) -> str:
        return (
            f"CallOpts(from={self.from_address!r}, to={self.to!r}, "
            f"value={self.value!r}, data={(self.data or b'').hex()})"
        )