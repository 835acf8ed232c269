import pytest

from solarb.calculator import (
    calculate_max_profit,
    calculate_multihop_profit_and_slippage,
    calculate_opportunity,
    calculate_optimal_input,
    calculate_rebate,
    calculate_transaction_cost,
    clear_caches_if_needed,
    estimate_price_impact,
    is_profitable,
)
from solarb.models import DexType, PoolInfo, PoolToken, Pubkey, TokenAmount


def make_pool(reserve_a, reserve_b, fee_numerator=0, fee_denominator=10000, decimals_a=6, decimals_b=6):
    return PoolInfo(
        address=Pubkey.new_unique(),
        name="A/B",
        token_a=PoolToken(Pubkey.new_unique(), "A", decimals_a, reserve_a),
        token_b=PoolToken(Pubkey.new_unique(), "B", decimals_b, reserve_b),
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
        last_update_timestamp=0,
        dex_type=DexType.RAYDIUM,
    )


# Cases from the source's own test file.
def test_is_profitable_true():
    assert is_profitable(2.0, 1.0, 0.5, 0.001)


def test_is_profitable_false():
    assert not is_profitable(0.5, 1.0, 0.5, 0.001)


def test_is_profitable_equal_to_min():
    assert is_profitable(1.0, 1.0, 0.0, 0.0)


def test_is_profitable_large_threshold_argument():
    # Arguments are profit, price in SOL, cost in SOL, threshold in SOL: 1.5 > 0.4.
    assert is_profitable(1.5, 1.0, 0.0, 0.4)


def test_is_profitable_with_tx_cost():
    # 1.5 * 1.0 - 0.6 = 0.9, above a zero threshold.
    assert is_profitable(1.5, 1.0, 0.6, 0.0)


def test_is_profitable_cost_consumes_profit():
    assert not is_profitable(1.0, 1.0, 1.0, 0.0)


def test_calculate_opportunity_sample():
    result = calculate_opportunity((Pubkey.new_unique(), Pubkey.new_unique()))
    assert result.input_amount == 1000.0
    assert result.output_amount == 1010.0
    assert result.profit == 10.0
    assert result.profit_percentage == 0.01
    assert result.price_impact == 0.005


@pytest.mark.parametrize(
    "pool_b_token_a, expected",
    [(1100, 750), (1008, 500), (1000, 250)],
)
def test_optimal_input_shares(pool_b_token_a, expected):
    pool_a = make_pool(1000, 2000, decimals_a=9)
    pool_b = make_pool(pool_b_token_a, 2000)
    result = calculate_optimal_input(pool_a, pool_b, True, TokenAmount(1000, 9))
    assert result == TokenAmount(expected, 9)


def test_optimal_input_zero_reserves_uses_smallest_share():
    pool_a = make_pool(0, 2000)
    pool_b = make_pool(1000, 0)
    assert calculate_optimal_input(pool_a, pool_b, True, TokenAmount(1000, 6)).amount == 250


def test_optimal_input_is_cached():
    pool_a = make_pool(1000, 2000)
    pool_b = make_pool(1000, 2000)
    first = calculate_optimal_input(pool_a, pool_b, True, TokenAmount(1000, 6))
    pool_b.token_a.reserve = 5000
    assert calculate_optimal_input(pool_a, pool_b, True, TokenAmount(1000, 6)) == first


def test_max_profit_fee_free_round_trip():
    pool_a = make_pool(1000, 2000)
    pool_b = make_pool(1000, 1000)
    result = calculate_max_profit(pool_a, pool_b, True, TokenAmount(10, 0))
    assert result == pytest.approx(0.941747572815534, rel=1e-9)


def test_max_profit_loss_is_clamped_to_zero():
    pool_a = make_pool(1000, 1000, fee_numerator=30)
    pool_b = make_pool(1000, 1000, fee_numerator=30)
    assert calculate_max_profit(pool_a, pool_b, True, TokenAmount(10, 0)) == 0.0


def test_max_profit_zero_input():
    pool_a = make_pool(1000, 2000)
    pool_b = make_pool(1000, 1000)
    assert calculate_max_profit(pool_a, pool_b, False, TokenAmount(0, 6)) == 0.0


def test_max_profit_is_cached():
    pool_a = make_pool(1000, 2000)
    pool_b = make_pool(1000, 1000)
    first = calculate_max_profit(pool_a, pool_b, True, TokenAmount(10, 0))
    pool_a.token_b.reserve = 1
    assert calculate_max_profit(pool_a, pool_b, True, TokenAmount(10, 0)) == first


def test_transaction_cost_without_priority_fee():
    assert calculate_transaction_cost(0, 0) == pytest.approx(15000 / 1_000_000_000)


def test_transaction_cost_grows_with_priority_fee():
    assert calculate_transaction_cost(100, 1_000_000) > calculate_transaction_cost(100, 0)


def test_price_impact_token_a():
    pool = make_pool(900, 5)
    assert estimate_price_impact(pool, 0, TokenAmount(100, 0)) == pytest.approx(0.1)


def test_price_impact_token_b():
    pool = make_pool(5, 900)
    assert estimate_price_impact(pool, 1, TokenAmount(100, 0)) == pytest.approx(0.1)


def test_price_impact_empty_pool_and_input():
    pool = make_pool(0, 0)
    assert estimate_price_impact(pool, 0, TokenAmount(0, 6)) == 0.0


def test_multihop_empty_route():
    assert calculate_multihop_profit_and_slippage([], 1.0, [], []) == (0.0, 1.0, 0.0)


def test_multihop_mismatched_fee_data():
    pool = make_pool(10**9, 10**9, fee_numerator=25)
    profit, slippage, fee = calculate_multihop_profit_and_slippage([pool], 2.0, [True], [])
    assert (profit, slippage, fee) == (-2.0, 1.0, 0.0)


def test_multihop_single_hop_loses_value():
    pool = make_pool(10**12, 10**12, fee_numerator=25)
    profit, slippage, fee = calculate_multihop_profit_and_slippage(
        [pool], 1.0, [True], [(None, None, None)]
    )
    assert profit < 0.0
    assert 0.0 < slippage < 1.0
    assert fee == pytest.approx(1.0 * 25 / 10000)


def test_multihop_is_cached():
    pool = make_pool(10**12, 10**12, fee_numerator=25)
    first = calculate_multihop_profit_and_slippage([pool], 3.0, [False], [(None, None, None)])
    pool.fee_numerator = 500
    assert calculate_multihop_profit_and_slippage([pool], 3.0, [False], [(None, None, None)]) == first


def test_multihop_requires_direction_per_pool():
    pools = [make_pool(10**9, 10**9), make_pool(10**9, 10**9)]
    with pytest.raises(IndexError):
        calculate_multihop_profit_and_slippage(pools, 1.0, [True], [(None, None, None)] * 2)


def test_rebate_is_zero():
    assert calculate_rebate([make_pool(1, 1)], [TokenAmount(1, 0)]) == 0.0


def test_clear_caches_drops_oversized_cache():
    pool_a = make_pool(1000, 2000)
    pool_b = make_pool(1000, 2000)
    for amount in range(10_001):
        calculate_optimal_input(pool_a, pool_b, True, TokenAmount(amount, 6))
    pool_b.token_a.reserve = 1100
    assert calculate_optimal_input(pool_a, pool_b, True, TokenAmount(1000, 6)).amount == 250
    clear_caches_if_needed()
    assert calculate_optimal_input(pool_a, pool_b, True, TokenAmount(1000, 6)).amount == 750