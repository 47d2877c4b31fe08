# twquant/api/server.py
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from twquant.api.state import get_state, has_state, set_state
from twquant.app.engine import build_state, refresh_state, snapshot_summary
from twquant.infrastructure.logging.logging import configure_logging, get_logger
from twquant.infrastructure.utils.config import get_config
from twquant.models.risk_models import RiskRequest
from twquant.services.risk.position_sizer import default_request
from twquant.services.strategy.screening import pick_initial_symbol

log = get_logger("api")

config = get_config()


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if not has_state():
        configure_logging(config.log_level)
        set_state(build_state(config))
        log.info("api_state_initialized", symbols=len(config.market.universe))
    yield


app = FastAPI(title="TW Quant Momentum API", version="0.1.0", lifespan=_lifespan)

# CORS (frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --------- Schemas ---------
class RiskPlanPayload(BaseModel):
    """Missing fields default from the symbol's last close and the risk config."""

    code: Optional[str] = None
    total_capital: Optional[float] = Field(default=None, gt=0)
    risk_percent: Optional[float] = Field(default=None, ge=0)
    entry_price: Optional[float] = None
    stop_loss_price: Optional[float] = None


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/metrics")
def metrics():
    s = get_state()
    return asdict(s.stats)


@app.post("/refresh")
async def refresh():
    s = get_state()
    await refresh_state(s)
    return asdict(s.stats)


@app.get("/snapshots")
def snapshots(strict: bool = False, include_series: bool = False):
    s = get_state()
    selected = s.screen.screen(s.snapshots, strict=strict)
    if include_series:
        return [asdict(x) for x in selected]
    return [snapshot_summary(x, s.screen) for x in selected]


@app.get("/snapshots/{code}")
def snapshot(code: str):
    s = get_state()
    snap = s.find(code)
    if snap is None:
        raise HTTPException(status_code=404, detail=f"unknown or unavailable symbol: {code}")
    return asdict(snap)


@app.get("/selection")
def selection():
    s = get_state()
    return {"code": pick_initial_symbol(s.snapshots, s.screen)}


@app.post("/risk-plan")
def risk_plan(payload: RiskPlanPayload):
    s = get_state()
    rc = s.config.risk

    capital = payload.total_capital if payload.total_capital is not None else rc.default_capital
    risk_pct = payload.risk_percent if payload.risk_percent is not None else rc.default_risk_percent
    entry = payload.entry_price
    stop = payload.stop_loss_price

    if entry is None or stop is None:
        snap = s.find(payload.code) if payload.code else None
        if snap is None:
            raise HTTPException(
                status_code=422,
                detail="entry_price and stop_loss_price are required unless a refreshed symbol code is given",
            )
        base = default_request(
            snap.last_close,
            total_capital=capital,
            risk_percent=risk_pct,
            stop_pct=rc.default_stop_pct,
        )
        entry = base.entry_price if entry is None else entry
        stop = base.stop_loss_price if stop is None else stop

    req = RiskRequest(
        total_capital=capital,
        risk_percent=risk_pct,
        entry_price=float(entry),
        stop_loss_price=float(stop),
    )
    plan = s.sizer.compute(req)
    if plan is None:
        return {
            "request": asdict(req),
            "plan": None,
            "message": "Stop loss must be below the entry price for a long position.",
        }
    return {"request": asdict(req), "plan": asdict(plan), "message": None}


@app.get("/narrative/{code}")
async def narrative(code: str):
    s = get_state()
    snap = s.find(code)
    if snap is None:
        raise HTTPException(status_code=404, detail=f"unknown or unavailable symbol: {code}")
    result = await s.narrative.analyze(snap.name, snap.series)
    return result.model_dump()
