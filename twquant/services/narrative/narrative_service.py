"""Narrative commentary behind a capability interface with a neutral fallback."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence

from twquant.infrastructure.logging.logging import get_logger
from twquant.models.market_models import Candle
from twquant.models.narrative_models import NarrativeResult

log = get_logger("narrative")

JsonDict = Dict[str, Any]

FALLBACK_PATTERN = "分析服務暫時無法使用"
FALLBACK_HINT = "請確認 API Key 設定或網路連線。"


class Narrator(Protocol):
    async def analyze(self, symbol_name: str, window: List[JsonDict]) -> NarrativeResult: ...


def reduce_window(series: Sequence[Candle], size: int = 30) -> List[JsonDict]:
    """Most recent `size` candles as compact rows (date, OHLCV, ma20, ma200)."""
    rows: List[JsonDict] = []
    for c in list(series)[-size:]:
        ind = c.indicators
        rows.append(
            {
                "d": c.date.isoformat(),
                "o": c.open,
                "h": c.high,
                "l": c.low,
                "c": c.close,
                "v": c.volume,
                "ma20": ind.ma20 if ind else None,
                "ma200": ind.ma200 if ind else None,
            }
        )
    return rows


def fallback_result(error: str) -> NarrativeResult:
    return NarrativeResult(
        sentiment="Neutral",
        pattern=FALLBACK_PATTERN,
        explanation=f"{FALLBACK_HINT} ({error})",
        score=0,
    )


class NarrativeService:
    def __init__(self, narrator: Narrator, *, window_size: int = 30) -> None:
        self.narrator = narrator
        self.window_size = int(window_size)

    async def analyze(self, symbol_name: str, series: Sequence[Candle]) -> NarrativeResult:
        """Never raises: any narrator failure becomes the neutral zero-score result."""
        window = reduce_window(series, self.window_size)
        try:
            result = await self.narrator.analyze(symbol_name, window)
            if not isinstance(result, NarrativeResult):
                result = NarrativeResult.model_validate(result)
            return result
        except Exception as e:
            log.error("narrative_analysis_error", symbol=symbol_name, error=str(e))
            return fallback_result(str(e))
