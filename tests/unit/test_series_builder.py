from datetime import timedelta

from twquant.models.market_models import Tick
from twquant.services.market.series_builder import build_series, needs_intraday, synthesize_candle


def test_synthesize_candle_from_ticks(today):
    ticks = [Tick(100.0, 5), Tick(103.0, 2), Tick(98.5, 1), Tick(101.0, 4)]
    c = synthesize_candle(ticks, today)
    assert c.date == today
    assert c.open == 100.0
    assert c.high == 103.0
    assert c.low == 98.5
    assert c.close == 101.0
    assert c.volume == 12


def test_synthesize_candle_without_ticks(today):
    assert synthesize_candle([], today) is None


def test_appends_today_when_eod_is_behind(series_factory, today):
    eod = series_factory([10.0, 11.0], start=today - timedelta(days=2))
    out = build_series(eod, [Tick(12.0, 1), Tick(12.5, 3)], today)
    assert len(out) == 3
    assert out[-1].date == today
    assert out[-1].close == 12.5
    assert len(eod) == 2


def test_ticks_ignored_when_today_already_present(series_factory, today):
    eod = series_factory([10.0, 11.0], start=today - timedelta(days=1))
    assert eod[-1].date == today
    out = build_series(eod, [Tick(99.0, 1)], today)
    assert out == eod
    assert not needs_intraday(eod, today)


def test_idempotent(series_factory, today):
    eod = series_factory([10.0, 11.0], start=today - timedelta(days=2))
    ticks = [Tick(12.0, 1)]
    once = build_series(eod, ticks, today)
    twice = build_series(once, ticks, today)
    assert once == twice


def test_empty_inputs(series_factory, today):
    assert build_series([], [Tick(1.0, 1)], today) == []
    eod = series_factory([10.0], start=today - timedelta(days=1))
    assert build_series(eod, None, today) == eod
    assert build_series(eod, [], today) == eod
    assert needs_intraday(eod, today)
    assert not needs_intraday([], today)
