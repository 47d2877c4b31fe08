"""Position sizing from capital, risk % and the entry/stop gap (long only)."""

from __future__ import annotations

import math
from typing import Optional

from twquant.models.risk_models import RiskPlan, RiskRequest


class RiskSizer:
    """Turn a RiskRequest into a RiskPlan.

    Notes:
    - Shares are truncated to a whole number, never rounded up.
    - Lots are shares / board_lot (TWSE board lot = 1000 shares), not rounded.
    - over_capital is advisory only: the plan needs margin beyond the capital.
    """

    def __init__(self, *, board_lot: int = 1000) -> None:
        if board_lot <= 0:
            raise ValueError("board_lot must be > 0")
        self.board_lot = int(board_lot)

    def compute(self, req: RiskRequest) -> Optional[RiskPlan]:
        """Return None when no long plan exists (stop not below entry, bad capital/risk)."""
        capital = float(req.total_capital)
        risk_pct = float(req.risk_percent)
        entry = float(req.entry_price)
        stop = float(req.stop_loss_price)

        stop_gap = entry - stop
        if stop_gap <= 0:
            return None
        if capital <= 0 or risk_pct < 0:
            return None

        risk_amount = capital * (risk_pct / 100.0)
        shares = int(math.floor(risk_amount / stop_gap))
        total_cost = shares * entry

        return RiskPlan(
            risk_amount=risk_amount,
            stop_gap=stop_gap,
            shares=shares,
            lots=shares / self.board_lot,
            total_cost=total_cost,
            over_capital=total_cost > capital,
        )


def default_request(
    last_close: float,
    *,
    total_capital: float = 1_000_000.0,
    risk_percent: float = 1.0,
    stop_pct: float = 0.05,
) -> RiskRequest:
    """Entry at the last close, stop `stop_pct` below it (rounded to cents)."""
    entry = float(last_close)
    return RiskRequest(
        total_capital=float(total_capital),
        risk_percent=float(risk_percent),
        entry_price=entry,
        stop_loss_price=round(entry * (1.0 - stop_pct), 2),
    )
