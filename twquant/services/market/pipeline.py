"""Refresh cycle: fetch -> series -> indicators -> signals -> metrics -> RS rank.

Symbols are processed concurrently and independently. A symbol whose daily
fetch fails or comes back empty is dropped from the result; a failed intraday
fetch only means no synthetic candle for today.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from twquant.infrastructure.logging.logging import get_logger
from twquant.infrastructure.utils.timeutils import EXCHANGE_TZ, exchange_today, utc_now
from twquant.models.market_models import Candle, Tick
from twquant.models.symbol_models import StockSymbol, SymbolMetrics, SymbolSnapshot
from twquant.services.market.indicators import annotate_indicators
from twquant.services.market.provider import MarketDataProvider
from twquant.services.market.series_builder import build_series, needs_intraday
from twquant.services.strategy.momentum import MomentumScorer
from twquant.services.strategy.signal_detector import SignalDetector

log = get_logger("pipeline")


def analyze_series(
    eod: Sequence[Candle],
    ticks: Optional[Sequence[Tick]],
    today: date,
    detector: Optional[SignalDetector] = None,
) -> List[Candle]:
    """Pure analytics chain for one symbol."""
    detector = detector or SignalDetector()
    series = build_series(eod, ticks, today)
    return detector.detect(annotate_indicators(series))


@dataclass(frozen=True)
class RefreshResult:
    snapshots: List[SymbolSnapshot]
    requested: int
    dropped: List[str]
    today: date
    finished_at: datetime


class RefreshPipeline:
    def __init__(
        self,
        provider: MarketDataProvider,
        *,
        lookback_days: int = 300,
        tz_name: str = EXCHANGE_TZ,
        detector: Optional[SignalDetector] = None,
        scorer: Optional[MomentumScorer] = None,
    ) -> None:
        self.provider = provider
        self.lookback_days = int(lookback_days)
        self.tz_name = tz_name
        self.detector = detector or SignalDetector()
        self.scorer = scorer or MomentumScorer()

    async def analyze_symbol(self, symbol: StockSymbol, today: date) -> Optional[SymbolMetrics]:
        """Two sequential fetches, then the analytics chain. None when the symbol is unusable."""
        slog = log.bind(code=symbol.code)
        start_date = today - timedelta(days=self.lookback_days)

        try:
            eod = await self.provider.fetch_daily(symbol.code, start_date)
        except Exception as e:
            slog.warning("daily_fetch_failed", error=str(e))
            return None

        if not eod:
            slog.warning("no_daily_data")
            return None

        ticks: List[Tick] = []
        if needs_intraday(eod, today):
            try:
                ticks = await self.provider.fetch_ticks(symbol.code, today)
            except Exception as e:
                slog.info("intraday_snapshot_failed", error=str(e))
                ticks = []
            if not ticks:
                slog.debug("no_intraday_ticks", last_eod=eod[-1].date.isoformat())

        series = analyze_series(eod, ticks, today, self.detector)
        return self.scorer.summarize(symbol, series)

    async def run_once(self, universe: Sequence[StockSymbol], now: Optional[datetime] = None) -> RefreshResult:
        """One refresh cycle over `universe`; never raises for a single symbol's failure."""
        today = exchange_today(self.tz_name, now)

        results = await asyncio.gather(
            *(self.analyze_symbol(s, today) for s in universe),
            return_exceptions=True,
        )

        ok: List[SymbolMetrics] = []
        dropped: List[str] = []
        for symbol, res in zip(universe, results):
            if isinstance(res, BaseException):
                log.error("symbol_pipeline_error", code=symbol.code, error=str(res))
                dropped.append(symbol.code)
            elif res is None:
                dropped.append(symbol.code)
            else:
                ok.append(res)

        snapshots = self.scorer.score_universe(ok)
        log.info(
            "refresh_done",
            today=today.isoformat(),
            requested=len(universe),
            succeeded=len(snapshots),
            dropped=dropped,
        )
        return RefreshResult(
            snapshots=snapshots,
            requested=len(universe),
            dropped=dropped,
            today=today,
            finished_at=utc_now(),
        )


async def refresh_universe(
    provider: MarketDataProvider,
    universe: Sequence[StockSymbol],
    now: Optional[datetime] = None,
    **kwargs,
) -> List[SymbolSnapshot]:
    """Run once now; returns the snapshots of the symbols that succeeded, in universe order."""
    result = await RefreshPipeline(provider, **kwargs).run_once(universe, now)
    return result.snapshots
