"""Bounded in-memory history of recent execution blocks."""

from __future__ import annotations

import asyncio
import copy
from typing import NamedTuple, Optional

from .types import Block, BlockTag, TagKind, Transaction


class _TxLocation(NamedTuple):
    block: int
    index: int


def _tx_at(block: Optional[Block], index: int) -> Optional[Transaction]:
    if block is None:
        return None
    if not block.transactions.is_full:
        raise RuntimeError("block holds only transaction hashes")
    txs = block.transactions.full
    return copy.deepcopy(txs[index]) if 0 <= index < len(txs) else None


class State:
    """Keeps the last ``history_length`` blocks plus the finalized block."""

    def __init__(self, history_length: int) -> None:
        self._history_length = history_length
        self._blocks: dict[int, Block] = {}
        self._finalized: Optional[Block] = None
        self._hashes: dict[bytes, int] = {}
        self._txs: dict[bytes, _TxLocation] = {}

    async def run(self, blocks: asyncio.Queue, finalized: asyncio.Queue) -> None:
        """Consume new and finalized blocks from two queues until cancelled."""

        async def consume(queue: asyncio.Queue, push) -> None:
            while True:
                block = await queue.get()
                if block is not None:
                    push(block)

        await asyncio.gather(
            consume(blocks, self.push_block),
            consume(finalized, self.push_finalized_block),
        )

    def push_block(self, block: Block) -> None:
        """Record a block, evicting the oldest ones beyond the history length."""
        self._hashes[block.hash] = block.number
        for index, tx_hash in enumerate(block.transactions.hashes()):
            self._txs[tx_hash] = _TxLocation(block.number, index)
        self._blocks[block.number] = block
        while self._blocks and len(self._blocks) > self._history_length:
            self._remove_block(min(self._blocks))

    def push_finalized_block(self, block: Block) -> None:
        """Record the finalized block, replacing a conflicting block at its height."""
        self._finalized = block
        old = self._blocks.get(block.number)
        if old is None or old.hash != block.hash:
            self._remove_block(block.number)
            self.push_block(block)

    def _remove_block(self, number: int) -> None:
        block = self._blocks.pop(number, None)
        if block is not None:
            self._hashes.pop(block.hash, None)
            for tx_hash in block.transactions.hashes():
                self._txs.pop(tx_hash, None)

    def get_block(self, tag: BlockTag) -> Optional[Block]:
        """Return a copy of the block selected by ``tag``."""
        if tag.kind is TagKind.LATEST:
            block = self._blocks[max(self._blocks)] if self._blocks else None
        elif tag.kind is TagKind.FINALIZED:
            block = self._finalized
        else:
            block = self._blocks.get(tag.number)
        return copy.deepcopy(block)

    def _by_hash(self, hash: bytes) -> Optional[Block]:
        number = self._hashes.get(bytes(hash))
        return None if number is None else self._blocks.get(number)

    def get_block_by_hash(self, hash: bytes) -> Optional[Block]:
        return copy.deepcopy(self._by_hash(hash))

    def get_transaction(self, hash: bytes) -> Optional[Transaction]:
        location = self._txs.get(bytes(hash))
        if location is None:
            return None
        return _tx_at(self._blocks.get(location.block), location.index)

    def get_transaction_by_block_and_index(
        self, block_hash: bytes, index: int
    ) -> Optional[Transaction]:
        return _tx_at(self._by_hash(block_hash), index)

    def _field(self, tag: BlockTag, name: str):
        block = self.get_block(tag)
        return None if block is None else getattr(block, name)

    def get_state_root(self, tag: BlockTag) -> Optional[bytes]:
        return self._field(tag, "state_root")

    def get_receipts_root(self, tag: BlockTag) -> Optional[bytes]:
        return self._field(tag, "receipts_root")

    def get_base_fee(self, tag: BlockTag) -> Optional[int]:
        return self._field(tag, "base_fee_per_gas")

    def get_coinbase(self, tag: BlockTag) -> Optional[bytes]:
        return self._field(tag, "miner")

    def latest_block_number(self) -> Optional[int]:
        return max(self._blocks, default=None)

    def oldest_block_number(self) -> Optional[int]:
        return min(self._blocks, default=None)