"""Key resistance level from the early part of a series and proximity test."""

from __future__ import annotations

from typing import Sequence

from twquant.models.market_models import Candle


def key_level(series: Sequence[Candle], lookback: int = 50) -> float:
    """Max high over the first `lookback` candles.

    Only defined when the series is longer than `lookback`; otherwise 0.0,
    which makes every proximity test fail.
    """
    if len(series) <= lookback:
        return 0.0
    return max(float(c.high) for c in series[:lookback])


def is_near_level(price: float, level: float, near_pct: float = 0.02) -> bool:
    """True if |price - level| / level < near_pct. A non-positive level is never near."""
    if level <= 0:
        return False
    return abs(float(price) - level) / level < near_pct
