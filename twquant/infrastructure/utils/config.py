"""Configuration management for the analytics backend.

Rules:
- YAML provides defaults for non-secret config.
- Secrets (FinMind token, Gemini key) come from .env / environment variables and override YAML.
- We do NOT inject YAML into os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from twquant.models.symbol_models import StockSymbol


class FinMindConfig(BaseModel):
    """FinMind REST API (daily prices + intraday ticks)."""

    base_url: str = Field(default="https://api.finmindtrade.com/api/v4/data")
    api_token: Optional[str] = Field(default=None, description="Optional token, raises the request quota")
    timeout_sec: float = Field(default=10.0, gt=0, le=120)
    lookback_days: int = Field(
        default=300,
        ge=200,
        le=3650,
        description="Calendar days of history; must seat a 200-session moving average",
    )


class SymbolConfig(BaseModel):
    code: str
    name: str
    industry: str = ""

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError("code must not be empty")
        return v

    def to_symbol(self) -> StockSymbol:
        return StockSymbol(code=self.code, name=self.name, industry=self.industry)


def _default_universe() -> List[SymbolConfig]:
    return [
        SymbolConfig(code="2330", name="台積電", industry="半導體"),
        SymbolConfig(code="2317", name="鴻海", industry="電子代工"),
        SymbolConfig(code="2454", name="聯發科", industry="IC設計"),
        SymbolConfig(code="2603", name="長榮", industry="航運"),
        SymbolConfig(code="3231", name="緯創", industry="AI伺服器"),
        SymbolConfig(code="3008", name="大立光", industry="光電"),
        SymbolConfig(code="3661", name="世芯-KY", industry="IC設計"),
        SymbolConfig(code="3035", name="智原", industry="IC設計"),
    ]


class MarketConfig(BaseModel):
    timezone: str = Field(default="Asia/Taipei", description="Exchange local time zone, decides 'today'")
    universe: List[SymbolConfig] = Field(default_factory=_default_universe)

    @field_validator("universe")
    @classmethod
    def validate_universe(cls, v: List[SymbolConfig]) -> List[SymbolConfig]:
        codes = [s.code for s in v]
        if len(codes) != len(set(codes)):
            raise ValueError("universe codes must be unique")
        return v

    def symbols(self) -> List[StockSymbol]:
        return [s.to_symbol() for s in self.universe]


class SignalConfig(BaseModel):
    """Candlestick pattern thresholds (fractions of the candle range)."""

    key_level_lookback: int = Field(default=50, ge=2, le=500)
    near_level_pct: float = Field(default=0.02, gt=0, le=0.2)
    pin_lower_wick_min: float = Field(default=0.6, gt=0, lt=1)
    pin_body_max: float = Field(default=0.25, gt=0, lt=1)
    pin_upper_wick_max: float = Field(default=0.15, gt=0, lt=1)


class MomentumConfig(BaseModel):
    adr_period: int = Field(default=20, ge=1, le=250)
    rs_lookback: int = Field(default=63, ge=1, le=500, description="Sessions of price performance ranked for RS")


class ScreeningConfig(BaseModel):
    """Strict watch view: every clause must hold."""

    min_adr_percent: float = Field(default=3.5, ge=0)
    min_rs_score: int = Field(default=80, ge=0, le=99)
    min_pct_of_year_high: float = Field(default=0.85, gt=0, le=1.0)


class RiskConfig(BaseModel):
    default_capital: float = Field(default=1_000_000.0, gt=0)
    default_risk_percent: float = Field(default=1.0, ge=0, le=100)
    default_stop_pct: float = Field(default=0.05, gt=0, lt=1)
    board_lot: int = Field(default=1000, ge=1, description="Shares per round lot (TWSE = 1000)")


class NarrativeConfig(BaseModel):
    enabled: bool = Field(default=True)
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="gemini-2.5-flash")
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    timeout_sec: float = Field(default=30.0, gt=0, le=300)
    window_size: int = Field(default=30, ge=5, le=250, description="Most recent candles sent to the model")


class APIConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])


class AppConfig(BaseSettings):
    """Main configuration.

    YAML is parsed as base config, env overrides for secrets are re-applied on top.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    finmind: FinMindConfig = Field(default_factory=FinMindConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    signals: SignalConfig = Field(default_factory=SignalConfig)
    momentum: MomentumConfig = Field(default_factory=MomentumConfig)
    screening: ScreeningConfig = Field(default_factory=ScreeningConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    narrative: NarrativeConfig = Field(default_factory=NarrativeConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(v).upper() not in valid:
            raise ValueError(f"Log level must be one of: {sorted(valid)}")
        return str(v).upper()

    def apply_env_overrides(self) -> "AppConfig":
        if os.getenv("FINMIND__API_TOKEN"):
            self.finmind.api_token = os.getenv("FINMIND__API_TOKEN")

        api_key = os.getenv("NARRATIVE__API_KEY") or os.getenv("GEMINI_API_KEY")
        if api_key:
            self.narrative.api_key = api_key

        if os.getenv("LOG_LEVEL"):
            self.log_level = os.getenv("LOG_LEVEL", self.log_level).upper()
        return self

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "AppConfig":
        """Load YAML, validate, then apply env overrides on top."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        return base.apply_env_overrides()


DEFAULT_CONFIG_PATHS = (Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml"))


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration from YAML + .env (env wins for secrets).

    An explicit path must exist; without one the default locations are searched
    and built-in defaults are used when none is present.
    """
    load_dotenv(dotenv_path=Path(".env"))

    if config_path is not None:
        return AppConfig.from_yaml(Path(config_path))

    for path in DEFAULT_CONFIG_PATHS:
        if path.exists():
            return AppConfig.from_yaml(path)

    return AppConfig().apply_env_overrides()


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[Path] = None) -> AppConfig:
    global _config
    _config = load_config(config_path)
    return _config
