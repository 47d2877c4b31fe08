"""Strict watch-view filter over symbol snapshots."""

from __future__ import annotations

from typing import List, Optional, Sequence

from twquant.models.symbol_models import SymbolSnapshot


class ScreeningFilter:
    """All clauses must hold; no partial scoring."""

    def __init__(
        self,
        *,
        min_adr_percent: float = 3.5,
        min_rs_score: int = 80,
        min_pct_of_year_high: float = 0.85,
    ) -> None:
        self.min_adr_percent = float(min_adr_percent)
        self.min_rs_score = int(min_rs_score)
        self.min_pct_of_year_high = float(min_pct_of_year_high)

    def failed_criteria(self, s: SymbolSnapshot) -> List[str]:
        """Names of the clauses `s` fails (empty when it passes)."""
        failed: List[str] = []
        if not s.is_above_200ma:
            failed.append("below_200ma")
        if not s.is_vol_above_5ma:
            failed.append("volume_below_5ma")
        if not s.adr_percent > self.min_adr_percent:
            failed.append("adr_too_low")
        if not s.rs_score > self.min_rs_score:
            failed.append("rs_too_low")
        if not s.last_close >= s.year_high * self.min_pct_of_year_high:
            failed.append("too_far_from_year_high")
        return failed

    def passes(self, s: SymbolSnapshot) -> bool:
        return (
            s.is_above_200ma
            and s.is_vol_above_5ma
            and s.adr_percent > self.min_adr_percent
            and s.rs_score > self.min_rs_score
            and s.last_close >= s.year_high * self.min_pct_of_year_high
        )

    def screen(self, snapshots: Sequence[SymbolSnapshot], strict: bool = True) -> List[SymbolSnapshot]:
        if not strict:
            return list(snapshots)
        return [s for s in snapshots if self.passes(s)]


def pick_initial_symbol(snapshots: Sequence[SymbolSnapshot], screen: ScreeningFilter) -> Optional[str]:
    """First strict match, else the first snapshot, else None."""
    for s in snapshots:
        if screen.passes(s):
            return s.code
    return snapshots[0].code if snapshots else None
