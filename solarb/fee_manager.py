"""Fee, slippage and gas estimation across pools and DEXes."""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import DexType, OpportunityCalculationResult, PoolInfo, Pubkey, TokenAmount

log = logging.getLogger(__name__)

_STALE_AFTER_SECS = 60
_SPIKE_MULTIPLIER = 1.5


@dataclass
class FeeBreakdown:
    expected_fee: float
    expected_slippage: float
    gas_cost: int
    sudden_fee_increase: bool
    explanation: str


@dataclass
class FeeEstimationResult:
    swap_fee: float
    transaction_fee: int
    priority_fee: int
    total_cost: float


def _now_secs() -> int:
    return int(time.time())


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def estimate_fees(pair, calc_result: OpportunityCalculationResult) -> FeeEstimationResult:
    """Flat fee estimate: 0.3% swap fee plus a fixed transaction fee."""
    swap_fee = calc_result.input_amount * 0.003
    transaction_fee = 5000
    priority_fee = 200
    total_cost = swap_fee + transaction_fee / 1_000_000_000.0
    return FeeEstimationResult(swap_fee, transaction_fee, priority_fee, total_cost)


def is_fee_abnormal(
    current_fee_numerator: int,
    current_fee_denominator: int,
    historical_fee_numerator: int,
    historical_fee_denominator: int,
    threshold_multiplier: float,
) -> bool:
    """True when the current fee exceeds the historical fee by more than the multiplier."""
    if current_fee_denominator == 0 or historical_fee_denominator == 0:
        return False
    current_fee = current_fee_numerator / current_fee_denominator
    historical_fee = historical_fee_numerator / historical_fee_denominator
    if historical_fee == 0.0:
        return current_fee > 0.0
    return current_fee > historical_fee * threshold_multiplier


class SlippageModel(ABC):
    """Estimates the fraction of value lost to price movement in a swap."""

    @abstractmethod
    def estimate_slippage(self, pool: PoolInfo, input_amount: TokenAmount, is_a_to_b: bool) -> float:
        """Return the slippage as a fraction between 0 and 1."""


class XYKSlippageModel(SlippageModel):
    """Constant-product estimate: input / (input reserve + input)."""

    def estimate_slippage(self, pool: PoolInfo, input_amount: TokenAmount, is_a_to_b: bool) -> float:
        reserve = float(pool.token_a.reserve if is_a_to_b else pool.token_b.reserve)
        amount = input_amount.to_float()
        if reserve + amount == 0.0:
            return 1.0
        return amount / (reserve + amount)


_GAS_COSTS = {
    DexType.RAYDIUM: 500_000,
    DexType.ORCA: 500_000,
    DexType.WHIRLPOOL: 700_000,
    DexType.LIFINITY: 700_000,
    DexType.PHOENIX: 700_000,
    DexType.METEORA: 600_000,
}


def get_gas_cost_for_dex(dex: DexType) -> int:
    return _GAS_COSTS.get(dex, 500_000)


class FeeHistoryTracker:
    """Remembers the last observed fee for each pool."""

    def __init__(self) -> None:
        self._last_fees: dict[Pubkey, tuple[int, int, int]] = {}
        self._lock = threading.Lock()

    def record_fee(self, pool_address: Pubkey, fee_numerator: int, fee_denominator: int) -> None:
        with self._lock:
            self._last_fees[pool_address] = (fee_numerator, fee_denominator, _now_secs())

    def get_last_fee_by_pubkey(self, pool_address: Pubkey) -> Optional[tuple[int, int]]:
        with self._lock:
            entry = self._last_fees.get(pool_address)
        return None if entry is None else (entry[0], entry[1])

    def get_last_fee(self, pool: PoolInfo) -> Optional[tuple[int, int]]:
        return self.get_last_fee_by_pubkey(pool.address)


_DEFAULT_SLIPPAGE_MODEL = XYKSlippageModel()
_FEE_HISTORY_TRACKER = FeeHistoryTracker()


def estimate_pool_swap_with_model(
    pool: PoolInfo,
    input_amount: TokenAmount,
    is_a_to_b: bool,
    last_known_fee_numerator: Optional[int],
    last_known_fee_denominator: Optional[int],
    last_update_timestamp: Optional[int],
    slippage_model: SlippageModel,
) -> FeeBreakdown:
    """Estimate fee, slippage and gas for one swap, flagging fee spikes and stale pools."""
    fee_fraction = _ratio(pool.fee_numerator, pool.fee_denominator)
    expected_fee = input_amount.to_float() * fee_fraction
    slippage = slippage_model.estimate_slippage(pool, input_amount, is_a_to_b)
    gas_cost = get_gas_cost_for_dex(pool.dex_type)

    if last_known_fee_numerator is not None and last_known_fee_denominator is not None:
        sudden_fee_increase = is_fee_abnormal(
            pool.fee_numerator,
            pool.fee_denominator,
            last_known_fee_numerator,
            last_known_fee_denominator,
            _SPIKE_MULTIPLIER,
        )
    else:
        sudden_fee_increase = False

    if last_update_timestamp is not None:
        pool_stale = max(_now_secs() - last_update_timestamp, 0) > _STALE_AFTER_SECS
    else:
        pool_stale = pool.last_update_timestamp == 0

    explanation = (
        f"Pool: {pool.name}, Fee: {fee_fraction * 100.0:.4f}% "
        f"({pool.fee_numerator}/{pool.fee_denominator}), "
        f"Slippage Est: {slippage * 100.0:.4f}%, Gas: {gas_cost}"
    )
    if sudden_fee_increase:
        explanation += " [FEE SPIKE DETECTED!]"
    if pool_stale:
        explanation += " [POOL STALE!]"

    return FeeBreakdown(expected_fee, slippage, gas_cost, sudden_fee_increase, explanation)


def estimate_pool_swap_integrated(pool: PoolInfo, input_amount: TokenAmount, is_a_to_b: bool) -> FeeBreakdown:
    """Estimate a swap against the recorded fee history and the default slippage model."""
    last = _FEE_HISTORY_TRACKER.get_last_fee(pool)
    last_num, last_den = last if last is not None else (pool.fee_numerator, pool.fee_denominator)
    return estimate_pool_swap_with_model(
        pool,
        input_amount,
        is_a_to_b,
        last_num,
        last_den,
        pool.last_update_timestamp,
        _DEFAULT_SLIPPAGE_MODEL,
    )


def estimate_multi_hop_with_model(
    pools: Sequence[PoolInfo],
    amounts: Sequence[TokenAmount],
    directions: Sequence[bool],
    last_fee_data: Sequence[tuple[Optional[int], Optional[int], Optional[int]]],
    slippage_model: SlippageModel,
) -> FeeBreakdown:
    """Combine per-hop estimates; slippage compounds and fees and gas add up."""
    count = len(pools)
    if count != len(amounts) or count != len(directions) or count != len(last_fee_data):
        log.error("estimate_multi_hop_with_model: Mismatched array lengths.")
        return FeeBreakdown(0.0, 1.0, 0, True, "Error: Input array length mismatch")

    total_fee = 0.0
    retained = 1.0
    total_gas = 0
    any_spike = False
    sections = []

    for hop, (pool, amount, direction, (hist_num, hist_den, hist_ts)) in enumerate(
        zip(pools, amounts, directions, last_fee_data), start=1
    ):
        breakdown = estimate_pool_swap_with_model(
            pool,
            amount,
            direction,
            hist_num,
            hist_den,
            hist_ts if hist_ts is not None else pool.last_update_timestamp,
            slippage_model,
        )
        total_fee += breakdown.expected_fee
        retained *= 1.0 - breakdown.expected_slippage
        total_gas += breakdown.gas_cost
        any_spike = any_spike or breakdown.sudden_fee_increase
        sections.append(f"Hop{hop}({pool.name}): {breakdown.explanation}")

    return FeeBreakdown(total_fee, 1.0 - retained, total_gas, any_spike, " | ".join(sections))


def convert_fee_to_reference_token(amount: float, from_symbol: str, to_symbol: str) -> Optional[float]:
    """Convert a fee into another token; a unit price is assumed until prices are wired in."""
    return amount * 1.0


def record_fee_observation(pool: PoolInfo, fee_numerator: int, fee_denominator: int) -> None:
    _FEE_HISTORY_TRACKER.record_fee(pool.address, fee_numerator, fee_denominator)


def get_last_fee_for_pool(pool: PoolInfo) -> Optional[tuple[int, int]]:
    return _FEE_HISTORY_TRACKER.get_last_fee_by_pubkey(pool.address)