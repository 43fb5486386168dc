"""
Runtime configuration, read from PAYMENTS_* environment variables or a .env file.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LockedAccountPolicy(str, Enum):
    # Reject every record for a locked account.
    FREEZE = "freeze"
    # Reject only deposits and withdrawals; disputes, resolves and chargebacks still apply.
    BLOCK_FUNDS = "block_funds"


class PaymentsSettings(BaseSettings):
    """Payments engine configuration"""

    log_level: str = "WARNING"
    locked_account_policy: LockedAccountPolicy = LockedAccountPolicy.FREEZE
    report_stats: bool = True

    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


_settings: Optional[PaymentsSettings] = None


def get_settings() -> PaymentsSettings:
    """Get settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = PaymentsSettings()
    return _settings


def reload_settings() -> PaymentsSettings:
    """Reload settings from the environment."""
    global _settings
    _settings = PaymentsSettings()
    return _settings
