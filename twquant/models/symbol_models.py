from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from twquant.models.market_models import Candle


@dataclass(frozen=True)
class StockSymbol:
    code: str
    name: str
    industry: str = ""


@dataclass(frozen=True)
class SymbolMetrics:
    """Per-symbol summary before the cross-sectional RS rank is known."""

    symbol: StockSymbol
    series: List[Candle]
    last_close: float
    change: float
    change_percent: float
    is_above_200ma: bool
    is_vol_above_5ma: bool
    adr_percent: float
    year_high: float
    performance: float


@dataclass(frozen=True)
class SymbolSnapshot:
    code: str
    name: str
    industry: str
    last_close: float
    change: float
    change_percent: float
    is_above_200ma: bool
    is_vol_above_5ma: bool
    adr_percent: float
    rs_score: int
    year_high: float
    series: List[Candle] = field(default_factory=list, repr=False)
