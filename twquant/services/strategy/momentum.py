"""Momentum quality metrics per symbol (ADR%, RS rank, MA relationship flags)."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from twquant.models.market_models import Candle
from twquant.models.symbol_models import StockSymbol, SymbolMetrics, SymbolSnapshot


def true_range(curr: Candle, prev_close: Optional[float]) -> float:
    if prev_close is None:
        return float(curr.high - curr.low)
    return float(
        max(
            curr.high - curr.low,
            abs(curr.high - prev_close),
            abs(curr.low - prev_close),
        )
    )


def average_daily_range_pct(series: Sequence[Candle], period: int = 20) -> float:
    """Mean of true range / close * 100 over the trailing `period` candles.

    Uses what is available when the series is shorter; 0.0 for an empty series.
    """
    n = len(series)
    if n == 0 or period <= 0:
        return 0.0

    start = max(0, n - period)
    total = 0.0
    count = 0
    for i in range(start, n):
        c = series[i]
        if c.close <= 0:
            continue
        prev_close = series[i - 1].close if i > 0 else None
        total += true_range(c, prev_close) / c.close * 100.0
        count += 1
    return round(total / count, 2) if count else 0.0


def price_performance(series: Sequence[Candle], lookback: int = 63) -> float:
    """Return over the trailing `lookback` sessions (clamped to the history)."""
    if len(series) < 2:
        return 0.0
    base = series[max(0, len(series) - 1 - lookback)].close
    if base <= 0:
        return 0.0
    return series[-1].close / base - 1.0


def rank_relative_strength(performance: Mapping[str, float]) -> Dict[str, int]:
    """Percentile rank (0..99) of each performance within the peer set.

    Ties share the mid rank. A lone symbol has no peers and scores 50.
    """
    n = len(performance)
    if n == 0:
        return {}
    if n == 1:
        return {code: 50 for code in performance}

    values = list(performance.values())
    out: Dict[str, int] = {}
    for code, perf in performance.items():
        below = sum(1 for v in values if v < perf)
        equal = sum(1 for v in values if v == perf) - 1
        pct = (below + 0.5 * equal) / (n - 1)
        out[code] = int(round(max(0.0, min(1.0, pct)) * 99))
    return out


class MomentumScorer:
    """Builds SymbolMetrics from an annotated series, then the final snapshot."""

    def __init__(self, *, adr_period: int = 20, rs_lookback: int = 63) -> None:
        self.adr_period = int(adr_period)
        self.rs_lookback = int(rs_lookback)

    def summarize(self, symbol: StockSymbol, series: Sequence[Candle]) -> SymbolMetrics:
        if not series:
            raise ValueError(f"empty series for {symbol.code}")

        last = series[-1]
        prev = series[-2] if len(series) > 1 else last

        last_close = float(last.close)
        prev_close = float(prev.close)
        change = last_close - prev_close
        change_percent = (change / prev_close) * 100.0 if prev_close else 0.0

        ind = last.indicators
        is_above_200ma = bool(ind is not None and ind.ma200 is not None and last_close > ind.ma200)
        is_vol_above_5ma = bool(ind is not None and ind.vol_ma5 is not None and last.volume > ind.vol_ma5)

        return SymbolMetrics(
            symbol=symbol,
            series=list(series),
            last_close=last_close,
            change=change,
            change_percent=change_percent,
            is_above_200ma=is_above_200ma,
            is_vol_above_5ma=is_vol_above_5ma,
            adr_percent=average_daily_range_pct(series, self.adr_period),
            year_high=max(float(c.high) for c in series),
            performance=price_performance(series, self.rs_lookback),
        )

    @staticmethod
    def build_snapshot(metrics: SymbolMetrics, rs_score: int) -> SymbolSnapshot:
        return SymbolSnapshot(
            code=metrics.symbol.code,
            name=metrics.symbol.name,
            industry=metrics.symbol.industry,
            last_close=metrics.last_close,
            change=metrics.change,
            change_percent=metrics.change_percent,
            is_above_200ma=metrics.is_above_200ma,
            is_vol_above_5ma=metrics.is_vol_above_5ma,
            adr_percent=metrics.adr_percent,
            rs_score=int(rs_score),
            year_high=metrics.year_high,
            series=metrics.series,
        )

    def score_universe(self, metrics: Sequence[SymbolMetrics]) -> List[SymbolSnapshot]:
        """Rank RS across `metrics` and return snapshots in the same order."""
        ranks = rank_relative_strength({m.symbol.code: m.performance for m in metrics})
        return [self.build_snapshot(m, ranks[m.symbol.code]) for m in metrics]
