"""Gemini generateContent REST client returning a structured chart assessment."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from twquant.infrastructure.logging.logging import get_logger
from twquant.models.narrative_models import NarrativeResult

JsonDict = Dict[str, Any]


class NarrativeError(RuntimeError):
    pass


RESPONSE_SCHEMA: JsonDict = {
    "type": "OBJECT",
    "properties": {
        "sentiment": {"type": "STRING", "enum": ["Bullish", "Bearish", "Neutral"]},
        "pattern": {"type": "STRING"},
        "explanation": {"type": "STRING"},
        "score": {"type": "INTEGER", "description": "0-100 rating of the setup quality"},
    },
    "required": ["sentiment", "pattern", "explanation", "score"],
}


def build_prompt(symbol_name: str, window: List[JsonDict]) -> str:
    return (
        f"Analyze the following OHLC stock data for Taiwan Stock {symbol_name}.\n"
        'Focus on the "Kristjan Qullamaggie" breakout strategy.\n\n'
        "Key Criteria to look for:\n"
        "1. Is price surfing above the 10-day or 20-day MA?\n"
        '2. Is there a "Coiling" pattern (tight consolidation with decreasing volume)?\n'
        '3. Is this a "First Pullback" after a major breakout?\n\n'
        f"Data (Last {len(window)} candles):\n"
        f"{json.dumps(window, ensure_ascii=False)}\n\n"
        "Return a structured JSON assessment.\n"
        "The 'pattern' and 'explanation' fields must be in Traditional Chinese (繁體中文).\n"
    )


def parse_response(payload: JsonDict) -> NarrativeResult:
    """Extract the JSON text of the first candidate and validate its shape."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise NarrativeError("Empty response from AI")
    if not text:
        raise NarrativeError("Empty response from AI")

    try:
        return NarrativeResult.model_validate(json.loads(text))
    except json.JSONDecodeError as e:
        raise NarrativeError(f"AI response is not JSON: {e}")
    except ValidationError as e:
        raise NarrativeError(f"AI response has the wrong shape: {e.error_count()} error(s)")


class GeminiNarrator:
    """Calls models/{model}:generateContent with a JSON response schema."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_sec: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._logger = get_logger("gemini")
        self._api_key = api_key or ""
        self._model = model
        self._url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._timeout = timeout_sec
        self._session = session or requests.Session()
        if not self._api_key:
            self._logger.warning("no_api_key", message="AI features will fail")

    def _post(self, prompt: str) -> JsonDict:
        if not self._api_key:
            raise NarrativeError("No API key configured")
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        resp = self._session.post(
            self._url,
            params={"key": self._api_key},
            json=body,
            timeout=self._timeout,
        )
        if resp.status_code >= 400:
            raise NarrativeError(f"Gemini HTTP {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    async def analyze(self, symbol_name: str, window: List[JsonDict]) -> NarrativeResult:
        payload = await asyncio.to_thread(self._post, build_prompt(symbol_name, window))
        return parse_response(payload)
