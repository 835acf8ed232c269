"""Multi-hop, cross-DEX arbitrage opportunities."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .fee_manager import FeeBreakdown, XYKSlippageModel, estimate_multi_hop_with_model
from .models import DexType, PoolInfo, Pubkey, TokenAmount

log = logging.getLogger(__name__)


@dataclass
class ArbHop:
    """One swap in an arbitrage route."""

    dex: DexType
    pool: Pubkey
    input_token: str
    output_token: str
    input_amount: float
    expected_output: float


@dataclass
class MultiHopArbOpportunity:
    """A full arbitrage route, possibly across several DEXes and hops.

    ``profit_pct`` is a percentage, e.g. 1.5 for 1.5%.
    """

    id: str
    hops: list[ArbHop]
    total_profit: float
    profit_pct: float
    input_token: str
    output_token: str
    input_amount: float
    expected_output: float
    dex_path: list[DexType]
    pool_path: list[Pubkey]
    source_pool: PoolInfo
    target_pool: PoolInfo
    input_token_mint: Pubkey
    output_token_mint: Pubkey
    risk_score: Optional[float] = None
    notes: Optional[str] = None
    estimated_profit_usd: Optional[float] = None
    input_amount_usd: Optional[float] = None
    output_amount_usd: Optional[float] = None
    intermediate_tokens: list[str] = field(default_factory=list)
    intermediate_token_mint: Optional[Pubkey] = None

    def is_profitable(self, min_profit_pct_threshold: float) -> bool:
        """True when the profit percentage meets or exceeds the threshold percentage."""
        return self.profit_pct >= min_profit_pct_threshold

    def log_hop_details(self) -> None:
        """Log one line per hop."""
        for number, hop in enumerate(self.hops, start=1):
            log.info(
                "[OPP ID: %s][HOP %d] DEX: %s, Pool: %s, Input: %s %.6f, Output: %s %.6f",
                self.id,
                number,
                hop.dex,
                hop.pool,
                hop.input_token,
                hop.input_amount,
                hop.output_token,
                hop.expected_output,
            )

    def log_summary(self) -> None:
        """Log a one-line summary, followed by the hop details when there are hops."""
        path = " -> ".join(str(dex) for dex in self.dex_path)
        usd = "N/A" if self.estimated_profit_usd is None else f"{self.estimated_profit_usd:.2f}"
        pools = "[" + ", ".join(str(pool) for pool in self.pool_path) + "]"
        log.info(
            "[ARB OPPORTUNITY ID: %s] Path: %s | Input: %.6f %s (%s) -> Output: %.6f %s (%s) "
            "| Profit: %.6f %s (%.4f%%) | Est. USD Profit: \"%s\" | Pools: %s | Notes: %s",
            self.id,
            path,
            self.input_amount,
            self.input_token,
            self.input_token_mint,
            self.expected_output,
            self.output_token,
            self.output_token_mint,
            self.total_profit,
            self.output_token,
            self.profit_pct,
            usd,
            pools,
            self.notes if self.notes is not None else "N/A",
        )
        if self.hops:
            self.log_hop_details()


def analyze_arbitrage_opportunity(
    pools: Sequence[PoolInfo],
    amounts: Sequence[TokenAmount],
    directions: Sequence[bool],
    last_fee_data: Sequence[tuple[Optional[int], Optional[int], Optional[int]]],
) -> FeeBreakdown:
    """Estimate fees and slippage for a route with the constant-product model."""
    return estimate_multi_hop_with_model(
        pools, amounts, directions, last_fee_data, XYKSlippageModel()
    )