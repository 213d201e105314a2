# ormlkit

Building blocks for keeping financial state in memory: currency routing, a
single-currency adapter, non-fungible tokens, a price oracle, share-based
reward pools and gradual updates of stored integer values. Everything works on
plain Python data, and every failure is raised as an exception derived from
`ormlkit.dispatch.DispatchError` (or `RpcError` for the query front end).

The package has no dependencies beyond the standard library.

## Modules

- `ormlkit.dispatch`: call origins, built with `signed(who)` and `root()`,
  checked with `ensure_signed` and `ensure_root`. Shared errors:
  `DispatchError`, `BadOrigin`, `ArithmeticOverflow`.
- `ormlkit.weights`: the default cost tables `CurrenciesWeightInfo`,
  `GraduallyUpdateWeightInfo` and `OracleWeightInfo`, plus `db_reads(count)`
  and `db_writes(count)`. All weights are integers that saturate at 2**64 - 1.
- `ormlkit.currencies`: `Currencies` sends every operation for the native
  currency id to a native currency and every other id to a multi-currency
  backend. It records `Transferred`, `Deposited`, `Withdrawn` and
  `BalanceUpdated` events in `events`. Transfers and deposits of zero, and
  transfers to oneself, do nothing. The calls `dispatch_transfer` and
  `transfer_native_currency` need a signed origin; `dispatch_update_balance`
  needs root. `transfer_all` moves all free balances of an account and rolls
  both backends back if either step raises. `Currency` ties the same interface
  to one fixed currency id.
- `ormlkit.adapter`: `BasicCurrencyAdapter` wraps a single-currency ledger so
  that it can serve as the native currency of `Currencies`. Its module
  docstring lists the methods the ledger must offer. `deposit` raises
  `DepositFailed` when the ledger credits less than requested, and
  `update_balance` raises `AmountIntoBalanceFailed` when the magnitude exceeds
  `amount_max`.
- `ormlkit.nft`: `NonFungibleTokens` creates and destroys classes, and mints,
  transfers and burns tokens. Metadata lengths are bounded, ids run out at
  `max_class_id` / `max_token_id`, and `build_genesis` sets up classes and
  tokens in bulk.
- `ormlkit.oracle`: `Oracle` accepts feeds from authorised operators (or from
  root, recorded under the root operator), once per operator per block until
  `on_finalize`. `DefaultCombineData` returns the median of the values that
  have not expired, or the previous value if fewer than `minimum_count` remain.
- `ormlkit.oracle_rpc`: `OracleRpc` answers `get_value` and `get_all_values`
  through an `OracleRuntimeApi`, defaulting to the client's `best_hash` and
  wrapping any failure in `RpcError` with code 1.
- `ormlkit.rewards`: `Rewards` keeps share-based reward pools and pays out
  through a handler called as `handler(who, pool, currency_id, amount)`.
- `ormlkit.gradually_update`: `GraduallyUpdater` moves a stored little-endian
  unsigned integer (at most 16 bytes) toward a target value, by
  `per_block * update_frequency` once every `update_frequency` blocks.

## Install

```
pip install .
```

## Examples

Non-fungible tokens:

```python
from ormlkit.nft import NonFungibleTokens, NoPermission

nft = NonFungibleTokens(max_class_metadata=1, max_token_metadata=1)
class_id = nft.create_class("alice", b"\x01", None)
token_id = nft.mint("bob", class_id, b"\x01", None)
nft.transfer("bob", "alice", (class_id, token_id))
assert nft.is_owner("alice", (class_id, token_id))

try:
    nft.burn("bob", (class_id, token_id))
except NoPermission:
    pass
```

Oracle:

```python
from ormlkit.dispatch import signed
from ormlkit.oracle import DefaultCombineData, Oracle, TimestampedValue

oracle = Oracle(
    members=[1, 2, 3],
    root_operator=4,
    clock=lambda: 12345,
    combine_data=DefaultCombineData(minimum_count=3, expires_in=600),
)
oracle.feed_values(signed(1), [(50, 1300)])
oracle.feed_values(signed(2), [(50, 1000)])
oracle.feed_values(signed(3), [(50, 1200)])
assert oracle.get(50) == TimestampedValue(1200, 12345)
oracle.on_finalize(1)  # operators may feed again
```

Reward pools:

```python
from ormlkit.rewards import Rewards

payouts = []
rewards = Rewards(handler=lambda who, pool, currency, amount: payouts.append((who, currency, amount)))
rewards.add_share("alice", 1, 100)
rewards.accumulate_reward(1, "native", 1000)
rewards.add_share("bob", 1, 100)
rewards.claim_rewards("alice", 1)
assert payouts == [("alice", "native", 1000)]
```

Gradual updates:

```python
from ormlkit.dispatch import root
from ormlkit.gradually_update import GraduallyUpdate, GraduallyUpdater

storage = {}
updater = GraduallyUpdater(
    storage,
    update_frequency=10,
    max_gradually_update=3,
    max_storage_key_bytes=100,
    max_storage_value_bytes=100,
)
updater.gradually_update(root(), GraduallyUpdate(key=b"\x01", target_value=b"\x1e", per_block=b"\x01"))
updater.on_finalize(10)
assert storage[b"\x01"] == b"\x0a"
updater.on_finalize(15)  # too early, nothing changes
updater.on_finalize(20)
assert storage[b"\x01"] == b"\x14"
```

## What the package does not do

- It keeps no balances of its own: `Currencies` and `BasicCurrencyAdapter`
  only route calls to ledger objects you supply.
- All state lives in memory; nothing is saved to disk or a database.
- `OracleRpc` is a plain Python front end, not a network server, and there is
  no command-line program.

## Tests

```
pip install .[test]
pytest
```