from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RiskRequest:
    total_capital: float
    risk_percent: float     # 1.0 means 1%
    entry_price: float
    stop_loss_price: float


@dataclass(frozen=True)
class RiskPlan:
    risk_amount: float
    stop_gap: float
    shares: int
    lots: float             # shares / board lot, not rounded
    total_cost: float
    over_capital: bool      # needs margin beyond the stated capital
