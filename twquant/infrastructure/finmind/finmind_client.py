"""FinMind v4 REST client (TaiwanStockPrice + TaiwanStockTick).

Blocking `requests` calls run in a worker thread so symbols can be fetched
concurrently from the event loop.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from twquant.infrastructure.logging.logging import get_logger
from twquant.models.market_models import Candle, Tick
from twquant.services.market.provider import MarketDataError, MarketDataProvider

JsonDict = Dict[str, Any]

DAILY_DATASET = "TaiwanStockPrice"
TICK_DATASET = "TaiwanStockTick"


def parse_daily_rows(rows: List[JsonDict]) -> List[Candle]:
    """FinMind daily rows -> candles, ascending by date.

    FinMind labels high/low as max/min. Rows without a positive close (no
    trade that day) or with open/close outside [low, high] are skipped.
    """
    by_date: Dict[date, Candle] = {}
    for r in rows:
        try:
            candle = Candle(
                date=date.fromisoformat(str(r["date"])[:10]),
                open=float(r["open"]),
                high=float(r["max"]),
                low=float(r["min"]),
                close=float(r["close"]),
                volume=int(r.get("Trading_Volume") or 0),
            )
        except (KeyError, TypeError, ValueError):
            continue
        if candle.close <= 0 or candle.open <= 0 or candle.low <= 0:
            continue
        by_date[candle.date] = candle
    return [by_date[d] for d in sorted(by_date)]


def parse_tick_rows(rows: List[JsonDict]) -> List[Tick]:
    ticks: List[Tick] = []
    for r in rows:
        try:
            price = float(r["deal_price"])
            size = int(r.get("deal_trading_volume") or 0)
        except (KeyError, TypeError, ValueError):
            continue
        if price <= 0:
            continue
        ticks.append(Tick(price=price, size=size))
    return ticks


class FinMindClient(MarketDataProvider):
    name = "finmind"

    def __init__(
        self,
        base_url: str = "https://api.finmindtrade.com/api/v4/data",
        api_token: Optional[str] = None,
        *,
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._logger = get_logger("finmind")
        self._url = base_url
        self._token = api_token
        self._timeout = timeout_sec
        self._session = session or requests.Session()

    def _get(self, params: JsonDict) -> List[JsonDict]:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        resp = self._session.get(self._url, params=params, headers=headers, timeout=self._timeout)
        resp.raise_for_status()
        payload = resp.json()
        msg = payload.get("msg")
        if msg != "success":
            raise MarketDataError(f"FinMind {params.get('dataset')} error: {msg or payload.get('status')}")
        data = payload.get("data") or []
        if not isinstance(data, list):
            raise MarketDataError(f"FinMind {params.get('dataset')} returned malformed data")
        return data

    async def fetch_daily(self, code: str, start_date: date) -> List[Candle]:
        params = {"dataset": DAILY_DATASET, "data_id": code, "start_date": start_date.isoformat()}
        rows = await asyncio.to_thread(self._get, params)
        candles = parse_daily_rows(rows)
        self._logger.debug("daily_loaded", code=code, rows=len(rows), candles=len(candles))
        return candles

    async def fetch_ticks(self, code: str, day: date) -> List[Tick]:
        params = {"dataset": TICK_DATASET, "data_id": code, "date": day.isoformat()}
        rows = await asyncio.to_thread(self._get, params)
        ticks = parse_tick_rows(rows)
        self._logger.debug("ticks_loaded", code=code, rows=len(rows), ticks=len(ticks))
        return ticks

    def close(self) -> None:
        self._session.close()
