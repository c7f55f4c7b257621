"""An execution RPC backend that serves canned JSON files from a directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence, Union

from .errors import RpcError
from .rpc import ExecutionRpc
from .types import (
    AccessListItem,
    BlockTag,
    CallOpts,
    FeeHistory,
    Filter,
    Log,
    ProofResponse,
    Transaction,
    TransactionReceipt,
)
from .utils import hex_to_bytes

_UNSUPPORTED = "unsupported by the mock rpc"


class MockRpc(ExecutionRpc):
    """Answers queries from files such as ``proof.json`` in ``path``."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self, name: str) -> str:
        return (self.path / name).read_text()

    def _load(self, name: str):
        return json.loads(self._read(name))

    async def get_proof(
        self, address: bytes, slots: Sequence[bytes], block: int
    ) -> ProofResponse:
        return ProofResponse.from_json(self._load("proof.json"))

    async def create_access_list(
        self, opts: CallOpts, block: BlockTag
    ) -> list[AccessListItem]:
        raise RpcError("create_access_list", _UNSUPPORTED)

    async def get_code(self, address: bytes, block: int) -> bytes:
        return hex_to_bytes(self._read("code.json").strip())

    async def send_raw_transaction(self, data: bytes) -> bytes:
        raise RpcError("send_raw_transaction", _UNSUPPORTED)

    async def get_transaction_receipt(
        self, tx_hash: bytes
    ) -> Optional[TransactionReceipt]:
        data = self._load("receipt.json")
        return None if data is None else TransactionReceipt.from_json(data)

    async def get_transaction(self, tx_hash: bytes) -> Optional[Transaction]:
        data = self._load("transaction.json")
        return None if data is None else Transaction.from_json(data)

    async def get_logs(self, filter: Filter) -> list[Log]:
        return [Log.from_json(entry) for entry in self._load("logs.json")]

    async def get_filter_changes(self, filter_id: int) -> list[Log]:
        return [Log.from_json(entry) for entry in self._load("logs.json")]

    async def uninstall_filter(self, filter_id: int) -> bool:
        raise RpcError("uninstall_filter", _UNSUPPORTED)

    async def get_new_filter(self, filter: Filter) -> int:
        raise RpcError("get_new_filter", _UNSUPPORTED)

    async def get_new_block_filter(self) -> int:
        raise RpcError("get_new_block_filter", _UNSUPPORTED)

    async def get_new_pending_transaction_filter(self) -> int:
        raise RpcError("get_new_pending_transaction_filter", _UNSUPPORTED)

    async def chain_id(self) -> int:
        raise RpcError("chain_id", _UNSUPPORTED)

    async def get_fee_history(
        self, block_count: int, last_block: int, reward_percentiles: Sequence[float]
    ) -> FeeHistory:
        return FeeHistory.from_json(self._load("fee_history.json"))