"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from payroll_core.domain.policy import PayrollPolicy

from .enums import NegativeAllowancePolicy
from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class HolidayConfig(BaseModel):
    base_allowance_days: int = Field(default=25, ge=0)
    negative_allowance: NegativeAllowancePolicy = NegativeAllowancePolicy.REJECT


class PayConfig(BaseModel):
    days_in_year: int = Field(default=365, gt=0)
    contractor_working_days: int = Field(default=260, gt=0)
    default_currency: str = "GBP"

    @field_validator("default_currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError(f"Not an ISO 4217 currency code: {v!r}")
        return v


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    event_log_path: str = ""  # JSONL event store when set


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    holidays: HolidayConfig = Field(default_factory=HolidayConfig)
    pay: PayConfig = Field(default_factory=PayConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "PAYROLL_", "env_nested_delimiter": "__"}

    def policy(self) -> PayrollPolicy:
        """Build the immutable policy object the domain model works with."""
        return PayrollPolicy(
            base_holiday_days=self.holidays.base_allowance_days,
            negative_allowance=self.holidays.negative_allowance,
            days_in_year=self.pay.days_in_year,
            contractor_working_days=self.pay.contractor_working_days,
        )


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        import tomli

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    return Settings(**data)
