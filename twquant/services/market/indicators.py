"""Incremental simple moving averages (price + volume) with warm-up handling."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from typing import Deque, Dict, List, Optional, Sequence, Tuple

from twquant.models.market_models import Candle, IndicatorSet

PRICE_PERIODS: Tuple[int, ...] = (5, 10, 20, 50, 200)
VOLUME_PERIODS: Tuple[int, ...] = (5,)


class RollingMean:
    """Mean of the last `period` values, None until the window is full.

    Keeps only the trailing window and a running sum: O(1) per update.
    """

    def __init__(self, period: int) -> None:
        if period <= 0:
            raise ValueError("period must be > 0")
        self.period = int(period)
        self._window: Deque[float] = deque(maxlen=self.period)
        self._sum = 0.0

    def update(self, value: float) -> Optional[float]:
        if len(self._window) == self.period:
            self._sum -= self._window[0]
        self._window.append(float(value))
        self._sum += float(value)
        if len(self._window) < self.period:
            return None
        return self._sum / self.period

    def reset(self) -> None:
        self._window.clear()
        self._sum = 0.0


@dataclass
class IndicatorEngine:
    """Walks a series once, yielding an IndicatorSet per candle."""

    price_periods: Tuple[int, ...] = PRICE_PERIODS
    volume_periods: Tuple[int, ...] = VOLUME_PERIODS

    _price: Dict[int, RollingMean] = field(default_factory=dict, init=False, repr=False)
    _volume: Dict[int, RollingMean] = field(default_factory=dict, init=False, repr=False)
    _bars: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        missing = set(PRICE_PERIODS) - set(self.price_periods)
        if missing or set(VOLUME_PERIODS) - set(self.volume_periods):
            raise ValueError(f"price_periods must include {PRICE_PERIODS}, volume_periods {VOLUME_PERIODS}")
        self._price = {p: RollingMean(p) for p in self.price_periods}
        self._volume = {p: RollingMean(p) for p in self.volume_periods}

    def is_ready(self) -> bool:
        """True once the longest price average is defined."""
        return self._bars >= max(self.price_periods)

    def reset(self) -> None:
        self._bars = 0
        for r in (*self._price.values(), *self._volume.values()):
            r.reset()

    def update(self, candle: Candle) -> IndicatorSet:
        self._bars += 1
        price = {p: r.update(candle.close) for p, r in self._price.items()}
        volume = {p: r.update(candle.volume) for p, r in self._volume.items()}

        return IndicatorSet(
            ma5=price[5],
            ma10=price[10],
            ma20=price[20],
            ma50=price[50],
            ma200=price[200],
            vol_ma5=volume[5],
        )


def annotate_indicators(series: Sequence[Candle]) -> List[Candle]:
    """Return a new series where each candle carries its IndicatorSet."""
    engine = IndicatorEngine()
    return [replace(c, indicators=engine.update(c)) for c in series]


def rolling_sma(values: Sequence[float], period: int) -> List[Optional[float]]:
    """Simple moving average aligned to each index (None until enough values)."""
    r = RollingMean(period)
    return [r.update(v) for v in values]
