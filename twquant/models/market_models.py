"""Market domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Tick:
    price: float
    size: int = 0


@dataclass(frozen=True)
class IndicatorSet:
    ma5: Optional[float] = None
    ma10: Optional[float] = None
    ma20: Optional[float] = None
    ma50: Optional[float] = None
    ma200: Optional[float] = None
    vol_ma5: Optional[float] = None


@dataclass(frozen=True)
class SignalAnnotation:
    is_pin_bar: bool = False
    is_engulfing: bool = False
    is_rs_flip: bool = False     # resistance turned support
    signal: Optional[SignalType] = None


@dataclass(frozen=True)
class Candle:
    """One daily session.

    indicators / signals are filled by the analytics stages through
    dataclasses.replace, the OHLCV fields never change after creation.
    """

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int = 0
    indicators: Optional[IndicatorSet] = None
    signals: Optional[SignalAnnotation] = None

    def __post_init__(self) -> None:
        if self.high < self.low:
            raise ValueError(f"high ({self.high}) must be >= low ({self.low})")
        if self.high < max(self.open, self.close) or self.low > min(self.open, self.close):
            raise ValueError(f"open/close ({self.open}, {self.close}) outside [{self.low}, {self.high}]")
        if self.volume < 0:
            raise ValueError(f"volume must be >= 0, got {self.volume}")
