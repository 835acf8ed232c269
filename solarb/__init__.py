"""Fee, slippage and profit estimation, settings, a Redis cache and Whirlpool decoding for AMM arbitrage."""

__version__ = "0.1.0"