"""The interface every execution-layer RPC backend provides."""

from __future__ import annotations

import abc
from typing import Optional, Sequence

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


class ExecutionRpc(abc.ABC):
    """An untrusted execution node the client queries for data to verify."""

    async def __aenter__(self) -> "ExecutionRpc":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release any resources held by the backend."""

    @abc.abstractmethod
    async def get_proof(
        self, address: bytes, slots: Sequence[bytes], block: int
    ) -> ProofResponse:
        """Fetch an account and storage proof at block number ``block``."""

    @abc.abstractmethod
    async def create_access_list(
        self, opts: CallOpts, block: BlockTag
    ) -> list[AccessListItem]:
        """Ask the node which accounts and slots a call would touch."""

    @abc.abstractmethod
    async def get_code(self, address: bytes, block: int) -> bytes:
        """Fetch the code of ``address`` at block number ``block``."""

    @abc.abstractmethod
    async def send_raw_transaction(self, data: bytes) -> bytes:
        """Broadcast a signed transaction and return its hash."""

    @abc.abstractmethod
    async def get_transaction_receipt(
        self, tx_hash: bytes
    ) -> Optional[TransactionReceipt]:
        """Fetch a receipt, or ``None`` if the node has none."""

    @abc.abstractmethod
    async def get_transaction(self, tx_hash: bytes) -> Optional[Transaction]:
        """Fetch a transaction, or ``None`` if the node has none."""

    @abc.abstractmethod
    async def get_logs(self, filter: Filter) -> list[Log]:
        """Fetch the logs matching ``filter``."""

    @abc.abstractmethod
    async def get_filter_changes(self, filter_id: int) -> list[Log]:
        """Fetch the logs recorded by an installed filter since the last poll."""

    @abc.abstractmethod
    async def uninstall_filter(self, filter_id: int) -> bool:
        """Remove an installed filter."""

    @abc.abstractmethod
    async def get_new_filter(self, filter: Filter) -> int:
        """Install a log filter and return its id."""

    @abc.abstractmethod
    async def get_new_block_filter(self) -> int:
        """Install a new-block filter and return its id."""

    @abc.abstractmethod
    async def get_new_pending_transaction_filter(self) -> int:
        """Install a pending-transaction filter and return its id."""

    @abc.abstractmethod
    async def chain_id(self) -> int:
        """Return the chain id the node serves."""

    @abc.abstractmethod
    async def get_fee_history(
        self, block_count: int, last_block: int, reward_percentiles: Sequence[float]
    ) -> FeeHistory:
        """Fetch fee history for ``block_count`` blocks ending at ``last_block``."""