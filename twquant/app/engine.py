"""Wiring: config -> provider / analytics services -> one refresh cycle."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from twquant.api.state import AppState
from twquant.infrastructure.ai.gemini_client import GeminiNarrator
from twquant.infrastructure.finmind.finmind_client import FinMindClient
from twquant.infrastructure.logging.logging import configure_logging, get_logger
from twquant.infrastructure.utils.config import AppConfig, load_config
from twquant.models.symbol_models import SymbolSnapshot
from twquant.services.market.pipeline import RefreshPipeline, RefreshResult
from twquant.services.market.provider import MarketDataProvider
from twquant.services.narrative.narrative_service import Narrator, NarrativeService
from twquant.services.risk.position_sizer import RiskSizer
from twquant.services.strategy.momentum import MomentumScorer
from twquant.services.strategy.screening import ScreeningFilter
from twquant.services.strategy.signal_detector import SignalDetector


def build_state(
    config: AppConfig,
    *,
    provider: Optional[MarketDataProvider] = None,
    narrator: Optional[Narrator] = None,
) -> AppState:
    """Build every service from config; provider / narrator can be swapped (tests)."""
    if provider is None:
        provider = FinMindClient(
            base_url=config.finmind.base_url,
            api_token=config.finmind.api_token,
            timeout_sec=config.finmind.timeout_sec,
        )

    if narrator is None:
        nc = config.narrative
        narrator = GeminiNarrator(
            nc.api_key if nc.enabled else None,
            model=nc.model,
            base_url=nc.base_url,
            timeout_sec=nc.timeout_sec,
        )

    sc = config.signals
    detector = SignalDetector(
        key_level_lookback=sc.key_level_lookback,
        near_level_pct=sc.near_level_pct,
        pin_lower_wick_min=sc.pin_lower_wick_min,
        pin_body_max=sc.pin_body_max,
        pin_upper_wick_max=sc.pin_upper_wick_max,
    )
    scorer = MomentumScorer(
        adr_period=config.momentum.adr_period,
        rs_lookback=config.momentum.rs_lookback,
    )
    pipeline = RefreshPipeline(
        provider,
        lookback_days=config.finmind.lookback_days,
        tz_name=config.market.timezone,
        detector=detector,
        scorer=scorer,
    )
    screen = ScreeningFilter(
        min_adr_percent=config.screening.min_adr_percent,
        min_rs_score=config.screening.min_rs_score,
        min_pct_of_year_high=config.screening.min_pct_of_year_high,
    )

    return AppState(
        config=config,
        pipeline=pipeline,
        screen=screen,
        sizer=RiskSizer(board_lot=config.risk.board_lot),
        narrative=NarrativeService(narrator, window_size=config.narrative.window_size),
    )


async def refresh_state(state: AppState) -> RefreshResult:
    """Run one cycle and replace the state's snapshot list wholesale."""
    result = await state.pipeline.run_once(state.config.market.symbols())

    state.snapshots = result.snapshots
    st = state.stats
    st.refreshes += 1
    st.requested = result.requested
    st.succeeded = len(result.snapshots)
    st.dropped = list(result.dropped)
    st.trading_day = result.today.isoformat()
    st.last_refresh_at = result.finished_at.isoformat()
    st.strict_matches = len(state.screen.screen(result.snapshots, strict=True))
    return result


async def run_refresh(config_path: Path | None = None, *, json_logs: bool = True) -> AppState:
    config = load_config(config_path)
    configure_logging(config.log_level, json_logs=json_logs)
    log = get_logger("engine")
    log.info(
        "config_loaded",
        symbols=len(config.market.universe),
        finmind_token=bool(config.finmind.api_token),
        narrative_key=bool(config.narrative.api_key),
    )

    state = build_state(config)
    await refresh_state(state)
    log.info("refresh_summary", **state.stats.__dict__)
    return state


def snapshot_summary(s: SymbolSnapshot, screen: ScreeningFilter) -> dict:
    """Snapshot without its series, plus screening verdict."""
    last = s.series[-1] if s.series else None
    sig = last.signals if last is not None else None
    return {
        "code": s.code,
        "name": s.name,
        "industry": s.industry,
        "last_close": s.last_close,
        "change": round(s.change, 4),
        "change_percent": round(s.change_percent, 4),
        "is_above_200ma": s.is_above_200ma,
        "is_vol_above_5ma": s.is_vol_above_5ma,
        "adr_percent": s.adr_percent,
        "rs_score": s.rs_score,
        "year_high": s.year_high,
        "last_date": last.date.isoformat() if last else None,
        "last_signal": sig.signal.value if sig is not None and sig.signal is not None else None,
        "strict_pass": screen.passes(s),
        "failed_criteria": screen.failed_criteria(s),
    }
