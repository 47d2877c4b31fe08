"""Abstract market-data provider used by the refresh pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import List

from twquant.models.market_models import Candle, Tick


class MarketDataError(RuntimeError):
    pass


class MarketDataProvider(ABC):
    """Two record shapes per symbol: daily candles and same-day ticks.

    Implementations raise MarketDataError (or a transport error) on failure and
    return an empty list when the provider simply has no rows.
    """

    #: Human-readable provider name used in logs.
    name: str = ""

    @abstractmethod
    async def fetch_daily(self, code: str, start_date: date) -> List[Candle]:
        """Daily candles from `start_date` on, ascending by date."""

    @abstractmethod
    async def fetch_ticks(self, code: str, day: date) -> List[Tick]:
        """Intraday ticks for `day`, in trade order."""
