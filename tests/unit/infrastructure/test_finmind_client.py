from datetime import date

import pytest

from twquant.infrastructure.finmind.finmind_client import (
    FinMindClient,
    parse_daily_rows,
    parse_tick_rows,
)
from twquant.services.market.provider import MarketDataError


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        return FakeResponse(self.payload)

    def close(self):
        pass


def row(d, o, h, l, c, v=1000):
    return {"date": d, "stock_id": "2330", "open": o, "max": h, "min": l, "close": c, "Trading_Volume": v}


def test_parse_daily_rows_sorts_and_maps_fields():
    rows = [
        row("2025-10-02", 11, 12, 10, 11.5, 2000),
        row("2025-10-01", 10, 10.5, 9.5, 10.2),
    ]
    candles = parse_daily_rows(rows)
    assert [c.date for c in candles] == [date(2025, 10, 1), date(2025, 10, 2)]
    assert candles[1].high == 12.0
    assert candles[1].low == 10.0
    assert candles[1].volume == 2000


def test_parse_daily_rows_skips_bad_rows():
    rows = [
        row("2025-10-01", 10, 10.5, 9.5, 10.2),
        row("2025-10-02", 0, 0, 0, 0),          # no trade
        row("2025-10-03", 10, 9, 11, 10),       # high < low
        row("2025-10-05", 12, 11, 9, 10),       # open above high
        {"date": "2025-10-04", "open": 10},     # truncated
        row("2025-10-01", 10, 10.6, 9.5, 10.4),  # duplicate date, last wins
    ]
    candles = parse_daily_rows(rows)
    assert len(candles) == 1
    assert candles[0].close == 10.4


def test_parse_tick_rows():
    rows = [
        {"deal_price": 100.5, "deal_trading_volume": 3},
        {"deal_price": None, "deal_trading_volume": 1},
        {"deal_price": 0, "deal_trading_volume": 1},
        {"deal_price": "101", "deal_trading_volume": 2},
    ]
    ticks = parse_tick_rows(rows)
    assert [(t.price, t.size) for t in ticks] == [(100.5, 3), (101.0, 2)]


@pytest.mark.asyncio
async def test_fetch_daily_sends_dataset_and_token():
    session = FakeSession({"msg": "success", "status": 200, "data": [row("2025-10-01", 10, 10.5, 9.5, 10.2)]})
    client = FinMindClient(api_token="tok", session=session)
    candles = await client.fetch_daily("2330", date(2025, 1, 1))
    assert len(candles) == 1
    call = session.calls[0]
    assert call["params"] == {"dataset": "TaiwanStockPrice", "data_id": "2330", "start_date": "2025-01-01"}
    assert call["headers"] == {"Authorization": "Bearer tok"}


@pytest.mark.asyncio
async def test_fetch_ticks_without_token():
    session = FakeSession({"msg": "success", "data": [{"deal_price": 10.0, "deal_trading_volume": 1}]})
    client = FinMindClient(session=session)
    ticks = await client.fetch_ticks("2330", date(2025, 10, 17))
    assert len(ticks) == 1
    assert session.calls[0]["headers"] == {}
    assert session.calls[0]["params"]["dataset"] == "TaiwanStockTick"


@pytest.mark.asyncio
async def test_error_message_raises():
    client = FinMindClient(session=FakeSession({"msg": "Requests reach the upper limit.", "status": 402}))
    with pytest.raises(MarketDataError):
        await client.fetch_daily("2330", date(2025, 1, 1))
