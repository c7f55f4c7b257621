"""An execution RPC backend speaking JSON-RPC over HTTP."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Optional, Sequence

import httpx

from .errors import RpcError
from .rpc import ExecutionRpc
from .types import (
    ZERO_ADDRESS,
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
from .utils import hex_to_bytes, to_hex

_DEFAULT_CALL_GAS = 100_000_000
_RATE_LIMIT_CODES = (429, -32005)


def _quantity(value: Any) -> int:
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text, 16) if text.startswith(("0x", "0X")) else int(text)


def _is_rate_limited(error: Any) -> bool:
    if not isinstance(error, dict):
        return False
    if error.get("code") in _RATE_LIMIT_CODES:
        return True
    return "rate limit" in str(error.get("message", "")).lower()


class HttpRpc(ExecutionRpc):
    """Queries an execution node at ``url``, retrying when rate limited."""

    MAX_RETRIES = 100
    INITIAL_BACKOFF = 0.05

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid rpc url: {url!r}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError(f"invalid rpc url: {url!r}")
        self.url = url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, label: str, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        for attempt in itertools.count():
            can_retry = attempt < self.MAX_RETRIES
            try:
                response = await self._client.post(self.url, json=payload)
            except httpx.HTTPError as exc:
                raise RpcError(label, exc) from exc

            if response.status_code == 429 and can_retry:
                await asyncio.sleep(self.INITIAL_BACKOFF)
                continue
            if response.is_error:
                raise RpcError(label, f"http status {response.status_code}")

            try:
                body = response.json()
            except ValueError as exc:
                raise RpcError(label, exc) from exc
            if not isinstance(body, dict):
                raise RpcError(label, "malformed json-rpc response")

            error = body.get("error")
            if error is not None:
                if _is_rate_limited(error) and can_retry:
                    await asyncio.sleep(self.INITIAL_BACKOFF)
                    continue
                message = error.get("message", error) if isinstance(error, dict) else error
                raise RpcError(label, message)
            return body.get("result")
        raise RpcError(label, "retries exhausted")  # pragma: no cover

    async def _require(self, label: str, method: str, params: list) -> Any:
        result = await self._request(label, method, params)
        if result is None:
            raise RpcError(label, "empty result")
        return result

    async def get_proof(
        self, address: bytes, slots: Sequence[bytes], block: int
    ) -> ProofResponse:
        result = await self._require(
            "get_proof",
            "eth_getProof",
            [to_hex(address), [to_hex(slot) for slot in slots], hex(block)],
        )
        return ProofResponse.from_json(result)

    async def create_access_list(
        self, opts: CallOpts, block: BlockTag
    ) -> list[AccessListItem]:
        tx: dict = {
            "type": "0x2",
            "to": to_hex(opts.to or ZERO_ADDRESS),
            "gas": hex(opts.gas if opts.gas is not None else _DEFAULT_CALL_GAS),
            "maxFeePerGas": "0x0",
            "maxPriorityFeePerGas": "0x0",
        }
        if opts.from_address is not None:
            tx["from"] = to_hex(opts.from_address)
        if opts.value is not None:
            tx["value"] = hex(opts.value)
        if opts.data is not None:
            tx["data"] = to_hex(opts.data)
        result = await self._require(
            "create_access_list", "eth_createAccessList", [tx, block.to_rpc()]
        )
        return [
            AccessListItem(
                address=hex_to_bytes(entry["address"]),
                storage_keys=[hex_to_bytes(key) for key in entry.get("storageKeys", [])],
            )
            for entry in result.get("accessList", [])
        ]

    async def get_code(self, address: bytes, block: int) -> bytes:
        result = await self._require("get_code", "eth_getCode", [to_hex(address), hex(block)])
        return hex_to_bytes(result)

    async def send_raw_transaction(self, data: bytes) -> bytes:
        result = await self._require(
            "send_raw_transaction", "eth_sendRawTransaction", [to_hex(data)]
        )
        return hex_to_bytes(result)

    async def get_transaction_receipt(
        self, tx_hash: bytes
    ) -> Optional[TransactionReceipt]:
        result = await self._request(
            "get_transaction_receipt", "eth_getTransactionReceipt", [to_hex(tx_hash)]
        )
        return None if result is None else TransactionReceipt.from_json(result)

    async def get_transaction(self, tx_hash: bytes) -> Optional[Transaction]:
        result = await self._request(
            "get_transaction", "eth_getTransactionByHash", [to_hex(tx_hash)]
        )
        return None if result is None else Transaction.from_json(result)

    async def get_logs(self, filter: Filter) -> list[Log]:
        result = await self._require("get_logs", "eth_getLogs", [filter.to_json()])
        return [Log.from_json(entry) for entry in result]

    async def get_filter_changes(self, filter_id: int) -> list[Log]:
        result = await self._require(
            "get_filter_changes", "eth_getFilterChanges", [hex(filter_id)]
        )
        return [Log.from_json(entry) for entry in result]

    async def uninstall_filter(self, filter_id: int) -> bool:
        result = await self._require(
            "uninstall_filter", "eth_uninstallFilter", [hex(filter_id)]
        )
        return bool(result)

    async def get_new_filter(self, filter: Filter) -> int:
        result = await self._require("get_new_filter", "eth_newFilter", [filter.to_json()])
        return _quantity(result)

    async def get_new_block_filter(self) -> int:
        result = await self._require("get_new_block_filter", "eth_newBlockFilter", [])
        return _quantity(result)

    async def get_new_pending_transaction_filter(self) -> int:
        result = await self._require(
            "get_new_pending_transactions", "eth_newPendingTransactionFilter", []
        )
        return _quantity(result)

    async def chain_id(self) -> int:
        result = await self._require("chain_id", "eth_chainId", [])
        return _quantity(result)

    async def get_fee_history(
        self, block_count: int, last_block: int, reward_percentiles: Sequence[float]
    ) -> FeeHistory:
        result = await self._require(
            "fee_history",
            "eth_feeHistory",
            [hex(block_count), hex(last_block), list(reward_percentiles)],
        )
        return FeeHistory.from_json(result)