# heliosexec

Trust-minimised access to Ethereum execution-layer data. `heliosexec` talks
to an ordinary, untrusted JSON-RPC endpoint and checks its answers against
block headers that you supply:

- account balances, nonces, code and storage slots are checked against the
  block's state root with Merkle-Patricia proofs (`eth_getProof`), and code
  against the proven code hash;
- transaction receipts are checked by rebuilding the block's receipts root
  from every receipt in the block;
- logs are checked against their proven receipts.

## Installation

```
pip install heliosexec
```

With the test dependencies (pytest, pytest-asyncio):

```
pip install "heliosexec[test]"
```

## Modules

| Module | Contents |
| --- | --- |
| `heliosexec.execution` | `ExecutionClient`, the verifying front end; `encode_receipt` |
| `heliosexec.state` | `State`, a bounded in-memory history of trusted blocks |
| `heliosexec.http_rpc` | `HttpRpc`, an asynchronous JSON-RPC backend built on httpx |
| `heliosexec.mock_rpc` | `MockRpc`, a backend answering from JSON files in a directory |
| `heliosexec.rpc` | `ExecutionRpc`, the abstract interface every backend implements |
| `heliosexec.proof` | `verify_proof`, `encode_account` and the nibble helpers |
| `heliosexec.rlp` | RLP `encode`, `decode`, `decode_list`, `RlpDecodeError` |
| `heliosexec.trie` | `Trie` (insert, root hash, proofs) and `ordered_trie_root` |
| `heliosexec.types` | `Block`, `BlockTag`, `Transaction`, `Transactions`, `Log`, `TransactionReceipt`, `ProofResponse`, `Filter`, `CallOpts`, `Account`, `FeeHistory`, ... |
| `heliosexec.errors` | `ExecutionError` and its subclasses, `RpcError`, `EvmError`, `Revert`, `decode_revert_reason` |
| `heliosexec.utils` | `keccak256`, `hex_to_bytes`, `to_hex` |

## Usage

Addresses, hashes and slots are passed as `bytes`.

```python
from heliosexec.execution import ExecutionClient
from heliosexec.http_rpc import HttpRpc
from heliosexec.state import State
from heliosexec.types import Block, BlockTag


async def show_account(trusted_block: Block) -> None:
    state = State(history_length=64)
    state.push_block(trusted_block)

    async with HttpRpc("http://localhost:8545") as rpc:
        client = ExecutionClient(rpc, state)
        await client.check_rpc(1)

        address = bytes.fromhex("00000000000000000000000000000000000000aa")
        account = await client.get_account(address, None, BlockTag.latest())
        print(account.balance, account.nonce, len(account.code))
```

`HttpRpc` creates its own `httpx.AsyncClient` unless one is passed in, and
closes only a client it created. It retries requests that are rate limited
(HTTP 429, JSON-RPC code -32005, or a "rate limit" message).

### The trusted blocks

Blocks handed to `State` are the root of trust: they should come from a
source you already trust. `State` keeps at most `history_length` blocks,
dropping the oldest, plus the finalized block; `push_finalized_block`
replaces a block at the same height whose hash differs. `State.run(blocks,
finalized)` consumes two `asyncio.Queue`s, one of new blocks and one of
finalized blocks (`None` items are ignored), until it is cancelled.

`BlockTag` selects a block: `BlockTag.latest()`, `BlockTag.finalized()`,
`BlockTag.number_of(n)`, or `BlockTag.parse("latest" | "finalized" | number)`.

### Logs and filters

`get_logs` and `get_new_filter` bound a filter that has neither `to_block`
nor `block_hash` to the latest block the state holds. At most five logs are
proven per `get_logs` or `get_filter_changes` call; more raise
`TooManyLogsToProve`.

### Errors

Failed verification raises a subclass of `heliosexec.errors.ExecutionError`,
such as `InvalidAccountProof`, `InvalidStorageProof`, `CodeHashMismatch`,
`ReceiptRootMismatch`, `NoReceiptForTransaction`, `MissingLog`,
`TooManyLogsToProve` or `IncorrectRpcNetwork`. Requests for a block that
`State` does not hold raise `BlockNotFound`. Transport and node failures
raise `RpcError`.

### Testing without a node

`MockRpc` reads `proof.json`, `code.json`, `receipt.json`,
`transaction.json`, `logs.json` and `fee_history.json` from a directory and
returns them whatever the arguments. Its other methods (access lists,
sending transactions, filter installation, chain id) raise `RpcError`.

```python
from heliosexec.mock_rpc import MockRpc

rpc = MockRpc("testdata/")
```

## What this package does not do

- It does not follow the consensus layer: it has no way to obtain trusted
  blocks by itself, and relies on you to push them into `State`.
- It does not execute calls or estimate gas. `CallOpts`, `EvmError`,
  `Revert` and `decode_revert_reason` are provided as data types and helpers
  only; there is no EVM.
- It does not serve a local JSON-RPC endpoint and has no command-line tool.
- It stores nothing on disk.