# tests/conftest.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional

import pytest

from twquant.models.market_models import Candle, Tick
from twquant.models.narrative_models import NarrativeResult
from twquant.services.market.provider import MarketDataError, MarketDataProvider


def candle(day: date, o: float, h: float, l: float, c: float, v: int = 1000) -> Candle:
    return Candle(date=day, open=o, high=h, low=l, close=c, volume=v)


def make_series(closes: List[float], start: date = date(2025, 1, 1), volumes: Optional[List[int]] = None) -> List[Candle]:
    """Daily candles with open=close, high/low 1% around close."""
    out = []
    for i, c in enumerate(closes):
        v = volumes[i] if volumes is not None else 1000
        out.append(candle(start + timedelta(days=i), c, c * 1.01, c * 0.99, c, v))
    return out


class FakeProvider(MarketDataProvider):
    """In-memory provider; codes listed in `fail_daily` / `fail_ticks` raise."""

    name = "fake"

    def __init__(
        self,
        daily: Dict[str, List[Candle]],
        ticks: Optional[Dict[str, List[Tick]]] = None,
        *,
        fail_daily: tuple = (),
        fail_ticks: tuple = (),
    ) -> None:
        self.daily = daily
        self.ticks = ticks or {}
        self.fail_daily = set(fail_daily)
        self.fail_ticks = set(fail_ticks)
        self.tick_calls: List[str] = []

    async def fetch_daily(self, code, start_date):
        if code in self.fail_daily:
            raise MarketDataError(f"boom {code}")
        return [c for c in self.daily.get(code, []) if c.date >= start_date]

    async def fetch_ticks(self, code, day):
        self.tick_calls.append(code)
        if code in self.fail_ticks:
            raise MarketDataError(f"tick boom {code}")
        return list(self.ticks.get(code, []))


class FakeNarrator:
    def __init__(self, result=None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls: List[tuple] = []

    async def analyze(self, symbol_name, window):
        self.calls.append((symbol_name, window))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def today() -> date:
    return date(2025, 10, 17)


@pytest.fixture
def long_uptrend(today) -> List[Candle]:
    """260 sessions ending the day before `today`, steadily rising."""
    n = 260
    start = today - timedelta(days=n)
    closes = [100.0 + i * 0.5 for i in range(n)]
    volumes = [1000] * (n - 1) + [5000]
    return make_series(closes, start=start, volumes=volumes)


@pytest.fixture
def bullish_result() -> NarrativeResult:
    return NarrativeResult(sentiment="Bullish", pattern="旗形整理", explanation="沿 20 日均線上行", score=78)


@pytest.fixture
def make_candle():
    return candle


@pytest.fixture
def series_factory():
    return make_series


@pytest.fixture
def provider_factory():
    return FakeProvider


@pytest.fixture
def narrator_factory():
    return FakeNarrator
