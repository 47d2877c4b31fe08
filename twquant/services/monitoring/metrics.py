"""In-memory refresh statistics for the API + console."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RefreshStats:
    refreshes: int = 0
    requested: int = 0
    succeeded: int = 0
    dropped: List[str] = field(default_factory=list)
    trading_day: Optional[str] = None
    last_refresh_at: Optional[str] = None
    strict_matches: int = 0
