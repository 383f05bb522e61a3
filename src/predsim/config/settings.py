"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    config_dir = _find_config_dir(config_dir)
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = config_dir / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        storage: dict[str, Any] | None = None,
        simulator: dict[str, Any] | None = None,
        ledger: dict[str, Any] | None = None,
        trading: dict[str, Any] | None = None,
        sentiment: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.storage = storage or {}
        self.simulator = simulator or {}
        self.ledger = ledger or {}
        self.trading = trading or {}
        self.sentiment = sentiment or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            storage=raw.get("storage"),
            simulator=raw.get("simulator"),
            ledger=raw.get("ledger"),
            trading=raw.get("trading"),
            sentiment=raw.get("sentiment"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/predsim.duckdb")

    @property
    def simulator_interval_sec(self) -> float:
        return float(self.simulator.get("interval_sec", 3.0))

    @property
    def simulator_tick_probability(self) -> float:
        return float(self.simulator.get("tick_probability", 0.3))

    @property
    def simulator_max_price_step(self) -> float:
        return float(self.simulator.get("max_price_step", 0.02))

    @property
    def simulator_max_volume_step(self) -> int:
        return int(self.simulator.get("max_volume_step", 10000))

    @property
    def starting_balance(self) -> float:
        return float(self.ledger.get("starting_balance", 1000.0))

    @property
    def connect_delay_sec(self) -> float:
        return float(self.ledger.get("connect_delay_sec", 0.8))

    @property
    def mock_address(self) -> str:
        return self.ledger.get("mock_address", "0x71C...9A21")

    @property
    def price_impact_per_usd(self) -> float:
        return float(self.trading.get("price_impact_per_usd", 1e-5))

    @property
    def min_price(self) -> float:
        return float(self.trading.get("min_price", 0.01))

    @property
    def max_price(self) -> float:
        return float(self.trading.get("max_price", 0.99))

    @property
    def history_limit(self) -> int:
        return int(self.trading.get("history_limit", 50))

    @property
    def sentiment_api_base(self) -> str:
        return self.sentiment.get("api_base", "https://api.openai.com/v1/chat/completions")

    @property
    def sentiment_model(self) -> str:
        return self.sentiment.get("model", "gpt-4o-mini")

    @property
    def sentiment_api_key(self) -> str | None:
        env_name = self.sentiment.get("api_key_env", "PREDSIM_LLM_API_KEY")
        return os.environ.get(env_name) or None

    @property
    def sentiment_timeout_sec(self) -> float:
        return float(self.sentiment.get("timeout_sec", 20.0))

    @property
    def sentiment_max_retries(self) -> int:
        return int(self.sentiment.get("max_retries", 1))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
