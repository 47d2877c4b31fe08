# twquant/api/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from twquant.infrastructure.utils.config import AppConfig
from twquant.models.symbol_models import SymbolSnapshot
from twquant.services.market.pipeline import RefreshPipeline
from twquant.services.monitoring.metrics import RefreshStats
from twquant.services.narrative.narrative_service import NarrativeService
from twquant.services.risk.position_sizer import RiskSizer
from twquant.services.strategy.screening import ScreeningFilter


@dataclass
class AppState:
    config: AppConfig
    pipeline: RefreshPipeline
    screen: ScreeningFilter
    sizer: RiskSizer
    narrative: NarrativeService
    snapshots: List[SymbolSnapshot] = field(default_factory=list)
    stats: RefreshStats = field(default_factory=RefreshStats)

    def find(self, code: str) -> Optional[SymbolSnapshot]:
        for s in self.snapshots:
            if s.code == code:
                return s
        return None


_state: Optional[AppState] = None


def set_state(state: AppState) -> None:
    global _state
    _state = state


def has_state() -> bool:
    return _state is not None


def get_state() -> AppState:
    if _state is None:
        raise RuntimeError("API state not initialized. Call set_state() or start via twquant.app.main api.")
    return _state
