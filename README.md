# solarb

Building blocks for estimating cross-DEX arbitrage on constant-product
(x·y = k) liquidity pools. The package gives you fee and slippage
breakdowns, two-pool round-trip profit, rough multi-hop estimates,
volatility-adjusted profit thresholds, settings read from the environment,
an async Redis cache for JSON values and a decoder for Orca Whirlpool
account data.

## Installation

```
pip install .
```

To install the test dependencies as well, use `pip install .[test]`.

## Modules

- `solarb.models` holds the value types. `Pubkey` is a 32-byte key shown in
  base58, with `new_unique()`, `from_bytes()` and `from_string()`. `DexType`
  names an exchange. The known ones are `RAYDIUM`, `ORCA`, `WHIRLPOOL`,
  `LIFINITY`, `PHOENIX` and `METEORA`, and any other name is treated as
  unknown. The module also has `PoolToken`, `PoolInfo`, `TokenAmount` (with
  `to_float()`) and `OpportunityCalculationResult`.
- `solarb.fee_manager` estimates fees, slippage and gas:
  - `estimate_pool_swap_with_model` estimates a single swap. It flags a fee
    spike when the current fee is more than 1.5 times the last known fee. It
    flags a stale pool when the last update is more than 60 seconds old.
  - `estimate_pool_swap_integrated` does the same against the recorded fee
    history, using the constant-product slippage model.
  - `estimate_multi_hop_with_model` combines the hops of a route.
  - The module also has `is_fee_abnormal`, `XYKSlippageModel`,
    `get_gas_cost_for_dex`, `FeeHistoryTracker`, `record_fee_observation`,
    `get_last_fee_for_pool`, `estimate_fees` and
    `convert_fee_to_reference_token`. The last one assumes a price of 1.
- `solarb.calculator` works out profit and sizing:
  - `calculate_max_profit` simulates a round trip through two pools and
    returns the profit fraction, never less than 0.
  - `calculate_optimal_input` picks 25 %, 50 % or 75 % of the maximum input.
  - The module also has `calculate_transaction_cost` (in SOL),
    `is_profitable`, `estimate_price_impact`,
    `calculate_multihop_profit_and_slippage`, `calculate_rebate`,
    `calculate_opportunity` and `clear_caches_if_needed`. Results are cached
    in-process, and `clear_caches_if_needed` drops a cache once it grows past
    10,000 entries.
- `solarb.opportunity` has `ArbHop` and `MultiHopArbOpportunity`. The latter
  provides `is_profitable`, `log_summary` and `log_hop_details`. The module
  also has `analyze_arbitrage_opportunity`.
- `solarb.dynamic_threshold` has `VolatilityTracker`, which gives the sample
  standard deviation over a sliding window. It also has
  `recommend_min_profit_threshold`, which adds volatility times a
  non-negative factor to a base threshold, with a floor of 0.0001.
- `solarb.settings` has `Config`, `Config.from_env`, `load_config` and
  `ConfigError`.
- `solarb.cache` has `Cache`, an async Redis cache. It provides
  `Cache.connect`, `get_json`, `set_ex` and `delete`. Keys are joined with
  colons. Failures raise `CacheError`.
- `solarb.whirlpool` has `WhirlpoolState.parse`, `RewardInfo.parse`,
  `parse_pool_data`, `get_program_id` and `get_dex_type`.

## Example

```python
from solarb.models import DexType, PoolInfo, PoolToken, Pubkey, TokenAmount
from solarb.fee_manager import estimate_pool_swap_integrated

pool = PoolInfo(
    address=Pubkey.new_unique(),
    name="SOL-USDC",
    token_a=PoolToken(Pubkey.new_unique(), "SOL", 9, 1000 * 10**9),
    token_b=PoolToken(Pubkey.new_unique(), "USDC", 6, 100_000 * 10**6),
    fee_numerator=25,
    fee_denominator=10_000,
    last_update_timestamp=0,
    dex_type=DexType.RAYDIUM,
)

breakdown = estimate_pool_swap_integrated(pool, TokenAmount(10**9, 9), True)
print(breakdown.expected_fee, breakdown.expected_slippage)
print(breakdown.explanation)
```

## Configuration

`Config.from_env(environ=None)` reads settings from a mapping, or from
`os.environ` when you pass none. It reads variables such as `RPC_URL`,
`REDIS_URL`, `MIN_PROFIT_PCT`, `MAX_SLIPPAGE_PCT` and
`DEFAULT_PRIORITY_FEE_LAMPORTS`. A variable that is unset or cannot be parsed
falls back to its default. For optional settings that default is `None`.

`load_config(environ=None)` also loads a `.env` file when no mapping is given,
and logs the result. It raises `ConfigError` when `RPC_URL` or `REDIS_URL` is
empty.

## What it does not do

This package only estimates and describes opportunities. It has no
command-line program. It does not fetch pools from the network and does not
build, sign or send transactions. It does not scan pools to find
opportunities. `parse_pool_data` reports Whirlpool reserves as zero, because
reserves are held in the token vault accounts, which it does not read.

## Tests

```
pytest
```