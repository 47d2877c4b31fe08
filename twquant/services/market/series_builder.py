"""Merge end-of-day candles with a candle built from today's ticks."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from twquant.models.market_models import Candle, Tick


def synthesize_candle(ticks: Sequence[Tick], day: date) -> Optional[Candle]:
    """Build one daily candle from intraday ticks, in the order received.

    Returns None when there are no ticks.
    """
    if not ticks:
        return None

    open_ = float(ticks[0].price)
    high = open_
    low = open_
    volume = 0
    for t in ticks:
        p = float(t.price)
        if p > high:
            high = p
        if p < low:
            low = p
        volume += int(t.size)

    return Candle(
        date=day,
        open=open_,
        high=high,
        low=low,
        close=float(ticks[-1].price),
        volume=volume,
    )


def build_series(
    eod: Sequence[Candle],
    ticks: Optional[Sequence[Tick]],
    today: date,
) -> List[Candle]:
    """Return the EOD series, plus today's synthesized candle when applicable.

    - Empty EOD -> empty result (ticks alone never make a series).
    - Last EOD candle already dated today -> ticks ignored.
    - Missing / empty ticks -> EOD series as-is.
    The input sequence is never modified.
    """
    series = list(eod)
    if not series:
        return series

    if series[-1].date >= today:
        return series

    candle = synthesize_candle(ticks or (), today)
    if candle is not None:
        series.append(candle)
    return series


def needs_intraday(eod: Sequence[Candle], today: date) -> bool:
    """True when the EOD series does not yet include today's session."""
    return bool(eod) and eod[-1].date < today
