from datetime import datetime, timedelta, timezone

import pytest

from twquant.models.market_models import Tick
from twquant.models.symbol_models import StockSymbol
from twquant.services.market.pipeline import RefreshPipeline, analyze_series, refresh_universe

# 2025-10-17 11:00 in Taipei
NOW = datetime(2025, 10, 17, 3, 0, tzinfo=timezone.utc)

UNIVERSE = [StockSymbol("A", "Alpha"), StockSymbol("B", "Beta"), StockSymbol("C", "Gamma")]


def test_analyze_series_is_annotated(long_uptrend, today):
    out = analyze_series(long_uptrend, [Tick(300.0, 10)], today)
    assert len(out) == len(long_uptrend) + 1
    assert out[-1].date == today
    assert out[-1].indicators.ma200 is not None
    assert out[0].signals is None
    assert out[-1].signals is not None


@pytest.mark.asyncio
async def test_failed_symbol_is_dropped_in_order(long_uptrend, provider_factory):
    provider = provider_factory({"A": long_uptrend, "C": long_uptrend}, fail_daily=("B",))
    result = await RefreshPipeline(provider).run_once(UNIVERSE, NOW)
    assert [s.code for s in result.snapshots] == ["A", "C"]
    assert result.dropped == ["B"]
    assert result.requested == 3
    assert result.today.isoformat() == "2025-10-17"


@pytest.mark.asyncio
async def test_empty_daily_data_is_dropped(long_uptrend, provider_factory):
    provider = provider_factory({"A": long_uptrend, "B": []})
    snaps = await refresh_universe(provider, UNIVERSE[:2], NOW)
    assert [s.code for s in snaps] == ["A"]


@pytest.mark.asyncio
async def test_tick_failure_falls_back_to_eod(long_uptrend, provider_factory):
    provider = provider_factory({"A": long_uptrend}, fail_ticks=("A",))
    snaps = await refresh_universe(provider, UNIVERSE[:1], NOW)
    assert len(snaps) == 1
    assert snaps[0].series[-1].date == long_uptrend[-1].date
    assert snaps[0].last_close == long_uptrend[-1].close
    assert provider.tick_calls == ["A"]


@pytest.mark.asyncio
async def test_ticks_become_todays_candle(long_uptrend, provider_factory, today):
    ticks = [Tick(240.0, 100), Tick(245.0, 50), Tick(238.0, 20), Tick(242.0, 30)]
    provider = provider_factory({"A": long_uptrend}, {"A": ticks})
    snaps = await refresh_universe(provider, UNIVERSE[:1], NOW)
    last = snaps[0].series[-1]
    assert last.date == today
    assert (last.open, last.high, last.low, last.close, last.volume) == (240.0, 245.0, 238.0, 242.0, 200)
    assert snaps[0].last_close == 242.0
    assert snaps[0].change == pytest.approx(242.0 - long_uptrend[-1].close)


@pytest.mark.asyncio
async def test_ticks_not_requested_when_eod_has_today(series_factory, provider_factory, today):
    eod = series_factory([100.0] * 10, start=today - timedelta(days=9))
    provider = provider_factory({"A": eod})
    snaps = await refresh_universe(provider, UNIVERSE[:1], NOW)
    assert provider.tick_calls == []
    assert snaps[0].series[-1].date == today


@pytest.mark.asyncio
async def test_rs_is_ranked_across_survivors(series_factory, provider_factory, today):
    start = today - timedelta(days=100)
    provider = provider_factory(
        {
            "A": series_factory([100.0 + i for i in range(90)], start=start),
            "B": series_factory([100.0 - i * 0.5 for i in range(90)], start=start),
        }
    )
    snaps = await refresh_universe(provider, UNIVERSE[:2], NOW)
    assert {s.code: s.rs_score for s in snaps} == {"A": 99, "B": 0}
