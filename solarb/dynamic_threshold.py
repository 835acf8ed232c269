"""Volatility tracking and volatility-adjusted minimum profit thresholds."""

from __future__ import annotations

import statistics
from collections import deque

_MIN_THRESHOLD = 0.0001


class VolatilityTracker:
    """Keeps the most recent prices and reports their sample standard deviation."""

    def __init__(self, max_samples: int) -> None:
        self.max_samples = max_samples
        self._window: deque[float] = deque()

    def __len__(self) -> int:
        return len(self._window)

    @property
    def prices(self) -> list[float]:
        return list(self._window)

    def add_price(self, price: float) -> None:
        """Add a price, dropping the oldest one once the window is full."""
        if self._window and len(self._window) == self.max_samples:
            self._window.popleft()
        self._window.append(price)

    def volatility(self) -> float:
        """Sample standard deviation of the window; 0.0 with fewer than two prices."""
        if len(self._window) < 2:
            return 0.0
        return statistics.stdev(self._window)


def recommend_min_profit_threshold(
    volatility: float, base_threshold: float, volatility_factor: float
) -> float:
    """Raise the base threshold by volatility times a non-negative factor, floored at 0.0001."""
    factor = volatility_factor if volatility_factor > 0.0 else 0.0
    threshold = base_threshold + volatility * factor
    return threshold if threshold > _MIN_THRESHOLD else _MIN_THRESHOLD