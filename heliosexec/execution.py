"""A client that verifies execution-layer data served by an untrusted node."""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Optional, Sequence

from . import rlp
from .errors import (
    BlockNotFound,
    CodeHashMismatch,
    ExecutionError,
    IncorrectRpcNetwork,
    InvalidAccountProof,
    InvalidStorageProof,
    MissingLog,
    NoReceiptForTransaction,
    ReceiptRootMismatch,
    TooManyLogsToProve,
)
from .proof import EMPTY_CODE_HASH, encode_account, verify_proof
from .rpc import ExecutionRpc
from .state import State
from .trie import ordered_trie_root
from .types import Account, Block, BlockTag, Filter, Log, Transaction, TransactionReceipt
from .utils import keccak256, to_hex

# Proving each log needs every receipt of its block, so keep the count low.
MAX_SUPPORTED_LOGS_NUMBER = 5


class ExecutionClient:
    """Answers execution queries, checking the node's answers against ``state``."""

    def __init__(self, rpc: ExecutionRpc, state: State) -> None:
        self.rpc = rpc
        self._state = state

    async def check_rpc(self, chain_id: int) -> None:
        """Raise if the node serves a different chain."""
        if await self.rpc.chain_id() != chain_id:
            raise IncorrectRpcNetwork()

    async def get_account(
        self, address: bytes, slots: Optional[Sequence[bytes]], tag: BlockTag
    ) -> Account:
        """Fetch an account and the given storage slots, verifying every proof."""
        address = bytes(address)
        slots = [bytes(slot) for slot in (slots or ())]
        block = self._state.get_block(tag)
        if block is None:
            raise BlockNotFound(tag)

        proof = await self.rpc.get_proof(address, slots, block.number)

        if not verify_proof(
            proof.account_proof, block.state_root, keccak256(address), encode_account(proof)
        ):
            raise InvalidAccountProof(address)

        slot_map = {}
        for storage_proof in proof.storage_proof:
            key = bytes(storage_proof.key)
            if not verify_proof(
                storage_proof.proof,
                proof.storage_hash,
                keccak256(key),
                rlp.encode(storage_proof.value),
            ):
                raise InvalidStorageProof(address, key)
            slot_map[key] = storage_proof.value

        if proof.code_hash == EMPTY_CODE_HASH:
            code = b""
        else:
            code = await self.rpc.get_code(address, block.number)
            code_hash = keccak256(code)
            if code_hash != proof.code_hash:
                raise CodeHashMismatch(address, to_hex(code_hash), to_hex(proof.code_hash))

        return Account(
            balance=proof.balance,
            nonce=proof.nonce,
            code=code,
            code_hash=proof.code_hash,
            storage_hash=proof.storage_hash,
            slots=slot_map,
        )

    async def send_raw_transaction(self, data: bytes) -> bytes:
        return await self.rpc.send_raw_transaction(data)

    async def get_block(self, tag: BlockTag, full_tx: bool) -> Block:
        block = self._state.get_block(tag)
        if block is None:
            raise BlockNotFound(tag)
        if not full_tx:
            block.transactions = block.transactions.hashes_only()
        return block

    async def get_block_by_hash(self, hash: bytes, full_tx: bool) -> Block:
        block = self._state.get_block_by_hash(hash)
        if block is None:
            raise BlockNotFound(to_hex(hash))
        if not full_tx:
            block.transactions = block.transactions.hashes_only()
        return block

    async def get_transaction_by_block_hash_and_index(
        self, block_hash: bytes, index: int
    ) -> Optional[Transaction]:
        return self._state.get_transaction_by_block_and_index(block_hash, index)

    async def get_transaction_receipt(
        self, tx_hash: bytes
    ) -> Optional[TransactionReceipt]:
        """Fetch a receipt and prove it against its block's receipts root."""
        receipt = await self.rpc.get_transaction_receipt(tx_hash)
        if receipt is None:
            return None
        if receipt.block_number is None:
            raise ExecutionError("receipt has no block number")

        block = self._state.get_block(BlockTag.number_of(receipt.block_number))
        if block is None:
            return None

        hashes = block.transactions.hashes()
        receipts = await asyncio.gather(
            *(self.rpc.get_transaction_receipt(h) for h in hashes)
        )
        for h, other in zip(hashes, receipts):
            if other is None:
                raise NoReceiptForTransaction(to_hex(h))

        expected_root = ordered_trie_root([encode_receipt(r) for r in receipts])
        if expected_root != block.receipts_root or receipt not in receipts:
            raise ReceiptRootMismatch(to_hex(tx_hash))

        return receipt

    async def get_transaction(self, hash: bytes) -> Optional[Transaction]:
        return self._state.get_transaction(hash)

    def _bounded(self, filter: Filter) -> Filter:
        # avoid asking about blocks this client has not seen yet
        if filter.to_block is not None or filter.block_hash is not None:
            return dataclasses.replace(filter)
        latest = self._state.latest_block_number()
        if latest is None:
            raise BlockNotFound(BlockTag.latest())
        tag = BlockTag.number_of(latest)
        return dataclasses.replace(
            filter,
            to_block=tag,
            from_block=filter.from_block if filter.from_block is not None else tag,
        )

    async def get_logs(self, filter: Filter) -> list[Log]:
        logs = await self.rpc.get_logs(self._bounded(filter))
        if len(logs) > MAX_SUPPORTED_LOGS_NUMBER:
            raise TooManyLogsToProve(len(logs), MAX_SUPPORTED_LOGS_NUMBER)
        await self._verify_logs(logs)
        return logs

    async def get_filter_changes(self, filter_id: int) -> list[Log]:
        logs = await self.rpc.get_filter_changes(filter_id)
        if len(logs) > MAX_SUPPORTED_LOGS_NUMBER:
            raise TooManyLogsToProve(len(logs), MAX_SUPPORTED_LOGS_NUMBER)
        await self._verify_logs(logs)
        return logs

    async def uninstall_filter(self, filter_id: int) -> bool:
        return await self.rpc.uninstall_filter(filter_id)

    async def get_new_filter(self, filter: Filter) -> int:
        return await self.rpc.get_new_filter(self._bounded(filter))

    async def get_new_block_filter(self) -> int:
        return await self.rpc.get_new_block_filter()

    async def get_new_pending_transaction_filter(self) -> int:
        return await self.rpc.get_new_pending_transaction_filter()

    async def _verify_logs(self, logs: Sequence[Log]) -> None:
        for log in logs:
            if log.transaction_hash is None:
                raise ExecutionError("tx hash not found in log")
            tx_hash = log.transaction_hash
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt is None:
                raise NoReceiptForTransaction(to_hex(tx_hash))
            if log.rlp_bytes() not in {entry.rlp_bytes() for entry in receipt.logs}:
                raise MissingLog(to_hex(tx_hash), log.log_index)


def encode_receipt(receipt: TransactionReceipt) -> bytes:
    """Consensus encoding of a receipt, as stored in the receipts trie."""
    if receipt.status is None:
        raise ValueError("receipt has no status")
    if receipt.transaction_type is None:
        raise ValueError("receipt has no transaction type")
    legacy = rlp.encode(
        [
            receipt.status,
            receipt.cumulative_gas_used,
            receipt.logs_bloom,
            [log.to_rlp_item() for log in receipt.logs],
        ]
    )
    if receipt.transaction_type == 0:
        return legacy
    return bytes([receipt.transaction_type & 0xFF]) + legacy