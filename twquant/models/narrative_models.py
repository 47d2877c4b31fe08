"""Shape of the narrative-AI response."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Sentiment = Literal["Bullish", "Bearish", "Neutral"]


class NarrativeResult(BaseModel):
    sentiment: Sentiment
    pattern: str
    explanation: str
    score: int = Field(..., ge=0, le=100, description="0-100 rating of the setup quality")
