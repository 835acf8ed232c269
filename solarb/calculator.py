"""Profit, input sizing and price-impact calculations for arbitrage routes."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .fee_manager import XYKSlippageModel, estimate_multi_hop_with_model
from .models import OpportunityCalculationResult, PoolInfo, Pubkey, TokenAmount

_MAX_CACHE_SIZE = 10_000
_U64_MAX = (1 << 64) - 1

# Share of each hop's input that a DEX pays back; no DEX currently pays any.
_REBATE_RATE = 0.0

_calculation_cache: dict[tuple[Pubkey, Pubkey, int, bool], OpportunityCalculationResult] = {}
_optimal_input_cache: dict[tuple[Pubkey, Pubkey, bool, int], TokenAmount] = {}
_multi_hop_cache: dict[str, tuple[float, float, float]] = {}


def _fee_fraction(pool: PoolInfo) -> float:
    if pool.fee_denominator == 0:
        if pool.fee_numerator == 0:
            return math.nan
        return math.inf
    return pool.fee_numerator / pool.fee_denominator


def _saturating_u64(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def calculate_opportunity(pair) -> OpportunityCalculationResult:
    """Return a fixed sample calculation result."""
    return OpportunityCalculationResult(
        input_amount=1000.0,
        output_amount=1010.0,
        profit=10.0,
        profit_percentage=0.01,
        price_impact=0.005,
    )


def calculate_optimal_input(
    pool_a: PoolInfo, pool_b: PoolInfo, is_a_to_b: bool, max_input_amount: TokenAmount
) -> TokenAmount:
    """Pick a share of the maximum input based on how far the round-trip price exceeds one."""
    key = (pool_a.address, pool_b.address, is_a_to_b, max_input_amount.amount)
    cached = _optimal_input_cache.get(key)
    if cached is not None:
        return cached

    if is_a_to_b:
        a_in, a_in_decimals, b_out = pool_a.token_a.reserve, pool_a.token_a.decimals, pool_a.token_b.reserve
        b_in, a_out = pool_b.token_b.reserve, pool_b.token_a.reserve
    else:
        a_in, a_in_decimals, b_out = pool_a.token_b.reserve, pool_a.token_b.decimals, pool_a.token_a.reserve
        b_in, a_out = pool_b.token_a.reserve, pool_b.token_b.reserve

    price_a = b_out / a_in if a_in > 0 else 0.0
    price_b = a_out / b_in if b_in > 0 else 0.0
    round_trip = price_b * price_a

    if round_trip > 1.01:
        share = 0.75
    elif round_trip > 1.005:
        share = 0.5
    else:
        share = 0.25

    result = TokenAmount(_saturating_u64(max_input_amount.amount * share), a_in_decimals)
    _optimal_input_cache[key] = result
    return result


def _swap_output(amount_in: float, fee: float, reserve_in: float, reserve_out: float) -> float:
    with_fee = amount_in * (1.0 - fee)
    denominator = reserve_in + with_fee
    return with_fee * reserve_out / denominator if denominator != 0.0 else 0.0


def calculate_max_profit(
    pool_a: PoolInfo, pool_b: PoolInfo, is_a_to_b: bool, input_amount: TokenAmount
) -> float:
    """Simulate a round trip through two constant-product pools and return the profit fraction."""
    timestamp = max(pool_a.last_update_timestamp, pool_b.last_update_timestamp)
    key = (pool_a.address, pool_b.address, timestamp, is_a_to_b)
    cached = _calculation_cache.get(key)
    if cached is not None:
        return cached.profit_percentage

    if is_a_to_b:
        a_in, b_out = pool_a.token_a.reserve, pool_a.token_b.reserve
        b_in, a_out = pool_b.token_b.reserve, pool_b.token_a.reserve
    else:
        a_in, b_out = pool_a.token_b.reserve, pool_a.token_a.reserve
        b_in, a_out = pool_b.token_a.reserve, pool_b.token_b.reserve

    amount = float(input_amount.amount)
    b_amount = _swap_output(amount, _fee_fraction(pool_a), float(a_in), float(b_out))
    final_amount = _swap_output(b_amount, _fee_fraction(pool_b), float(b_in), float(a_out))

    profit = final_amount - amount
    profit_percentage = profit / amount if input_amount.amount > 0 else 0.0
    price_impact = estimate_price_impact(pool_a, 0 if is_a_to_b else 1, input_amount)

    _calculation_cache[key] = OpportunityCalculationResult(
        input_amount=amount,
        output_amount=final_amount,
        profit=profit,
        profit_percentage=profit_percentage,
        price_impact=price_impact,
    )
    return profit_percentage if profit_percentage > 0.0 else 0.0


def calculate_transaction_cost(transaction_size: int, priority_fee: int) -> float:
    """Transaction cost in SOL: base fee, two signatures and a flat priority fee in lamports."""
    base_fee_lamports = 5000.0
    lamports_per_signature = 5000.0
    signatures_per_tx = 2
    lamports_per_sol = 1_000_000_000.0
    total = base_fee_lamports + signatures_per_tx * lamports_per_signature + float(priority_fee)
    return total / lamports_per_sol


def is_profitable(
    profit_in_token: float,
    token_price_in_sol: float,
    transaction_cost_in_sol: float,
    min_profit_threshold_sol: float,
) -> bool:
    """True when the profit in SOL, net of transaction cost, exceeds the threshold."""
    net_profit_sol = profit_in_token * token_price_in_sol - transaction_cost_in_sol
    return net_profit_sol > min_profit_threshold_sol


def estimate_price_impact(pool: PoolInfo, input_token_index: int, input_amount: TokenAmount) -> float:
    """Share of the input reserve taken by the input; index 0 is token A, anything else token B."""
    reserve = float(pool.token_a.reserve if input_token_index == 0 else pool.token_b.reserve)
    amount = input_amount.to_float()
    if reserve == 0.0 and amount == 0.0:
        return 0.0
    if reserve + amount == 0.0:
        return 1.0
    return amount / (reserve + amount)


def calculate_multihop_profit_and_slippage(
    pools: Sequence[PoolInfo],
    input_amount: float,
    directions: Sequence[bool],
    last_fee_data: Sequence[tuple[Optional[int], Optional[int], Optional[int]]],
) -> tuple[float, float, float]:
    """Rough (profit, slippage, fee) estimate for a route of pools."""
    key = "".join(
        f"{pool.address}{'t' if (directions[i] if i < len(directions) else True) else 'f'}"
        for i, pool in enumerate(pools)
    ) + f"_{input_amount!r}"
    cached = _multi_hop_cache.get(key)
    if cached is not None:
        return cached

    if len(directions) < len(pools):
        raise IndexError("fewer directions than pools")

    hop_amounts = []
    simulated = input_amount
    for pool, direction in zip(pools, directions):
        decimals = pool.token_a.decimals if direction else pool.token_b.decimals
        hop_amounts.append(TokenAmount(_saturating_u64(simulated * 10.0 ** decimals), decimals))
        simulated = simulated * (1.0 - _fee_fraction(pool)) * 0.99

    breakdown = estimate_multi_hop_with_model(
        pools, hop_amounts, directions, last_fee_data, XYKSlippageModel()
    )

    if not pools:
        result = (0.0, 1.0, 0.0)
        _multi_hop_cache[key] = result
        return result

    final_amount = input_amount * (1.0 - breakdown.expected_slippage) - breakdown.expected_fee
    result = (final_amount - input_amount, breakdown.expected_slippage, breakdown.expected_fee)
    _multi_hop_cache[key] = result
    return result


def calculate_rebate(pools: Sequence[PoolInfo], amounts: Sequence[TokenAmount]) -> float:
    """Total rebate paid back over the hops of a route, at the current DEX rebate rate."""
    total = 0.0
    for _pool, amount in zip(pools, amounts):
        total += _REBATE_RATE * abs(amount.to_float())
    return total


def clear_caches_if_needed() -> None:
    """Drop any calculation cache that has grown past its size limit."""
    for cache in (_calculation_cache, _optimal_input_cache, _multi_hop_cache):
        if len(cache) > _MAX_CACHE_SIZE:
            cache.clear()