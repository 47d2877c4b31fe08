"""Candlestick signals: pin bar, bullish engulfing, resistance flip (long only)."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from twquant.models.market_models import Candle, SignalAnnotation, SignalType
from twquant.services.market.support_resistance import is_near_level, key_level


def is_pin_bar(
    c: Candle,
    lower_wick_min: float = 0.6,
    body_max: float = 0.25,
    upper_wick_max: float = 0.15,
) -> bool:
    """Rejection-of-lows candle; thresholds are fractions of high-low."""
    rng = c.high - c.low
    if rng <= 0:
        return False
    body = abs(c.open - c.close)
    upper_wick = c.high - max(c.open, c.close)
    lower_wick = min(c.open, c.close) - c.low
    return (
        lower_wick > rng * lower_wick_min
        and body < rng * body_max
        and upper_wick < rng * upper_wick_max
    )


def is_engulfing(prev: Candle, curr: Candle) -> bool:
    """Bullish candle whose body contains and inverts the previous bearish body."""
    return (
        prev.close < prev.open
        and curr.close > curr.open
        and curr.open < prev.close
        and curr.close > prev.open
    )


class SignalDetector:
    """
    Pattern rules per candle (compared with its predecessor):
    - Pin bar: long lower wick, small body, minimal upper wick
    - Engulfing: bullish body swallowing the prior bearish body
    - Resistance flip: either pattern printed near the key level
    Only BUY is ever emitted; SELL exists in SignalType with no rule behind it.
    """

    def __init__(
        self,
        *,
        key_level_lookback: int = 50,
        near_level_pct: float = 0.02,
        pin_lower_wick_min: float = 0.6,
        pin_body_max: float = 0.25,
        pin_upper_wick_max: float = 0.15,
    ) -> None:
        self.key_level_lookback = int(key_level_lookback)
        self.near_level_pct = float(near_level_pct)
        self.pin_lower_wick_min = float(pin_lower_wick_min)
        self.pin_body_max = float(pin_body_max)
        self.pin_upper_wick_max = float(pin_upper_wick_max)

    def evaluate(self, prev: Candle, curr: Candle, level: float) -> SignalAnnotation:
        pin = is_pin_bar(curr, self.pin_lower_wick_min, self.pin_body_max, self.pin_upper_wick_max)
        engulf = is_engulfing(prev, curr)
        near = is_near_level(curr.low, level, self.near_level_pct)
        rs_flip = near and (pin or engulf)

        return SignalAnnotation(
            is_pin_bar=pin,
            is_engulfing=engulf,
            is_rs_flip=rs_flip,
            signal=SignalType.BUY if rs_flip else None,
        )

    def detect(self, series: Sequence[Candle]) -> List[Candle]:
        """Return a new series annotated from index 1 on; index 0 is left as-is."""
        if not series:
            return []

        level = key_level(series, self.key_level_lookback)
        out: List[Candle] = [series[0]]
        for i in range(1, len(series)):
            out.append(replace(series[i], signals=self.evaluate(series[i - 1], series[i], level)))
        return out


def latest_signal(series: Sequence[Candle]) -> Optional[Candle]:
    """Most recent candle carrying a directional signal, if any."""
    for c in reversed(series):
        if c.signals is not None and c.signals.signal is not None:
            return c
    return None
