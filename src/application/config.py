"""
Application Configuration - Central configuration management.

This module provides configuration management for the ledger application,
including environment variables, ledger limits, access roles and logging.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domain.constants import (
    DEFAULT_FEE_BPS,
    DEFAULT_MAX_OPEN_AMOUNT,
    DEFAULT_MIN_OPEN_AMOUNT,
    DEFAULT_MIN_SELL_AMOUNT,
    MAX_FEE_BPS,
    MAX_PRICE,
)


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class LedgerConfig:
    """Ledger limits. Amounts and prices are fixed-point integers."""

    fee_bps: int = DEFAULT_FEE_BPS
    min_open_amount: int = DEFAULT_MIN_OPEN_AMOUNT
    max_open_amount: int = DEFAULT_MAX_OPEN_AMOUNT
    min_sell_amount: int = DEFAULT_MIN_SELL_AMOUNT
    max_price: int = MAX_PRICE

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create configuration from environment variables."""
        return cls(
            fee_bps=int(os.getenv("LEDGER_FEE_BPS", str(DEFAULT_FEE_BPS))),
            min_open_amount=int(os.getenv("LEDGER_MIN_OPEN_AMOUNT", str(DEFAULT_MIN_OPEN_AMOUNT))),
            max_open_amount=int(os.getenv("LEDGER_MAX_OPEN_AMOUNT", str(DEFAULT_MAX_OPEN_AMOUNT))),
            min_sell_amount=int(os.getenv("LEDGER_MIN_SELL_AMOUNT", str(DEFAULT_MIN_SELL_AMOUNT))),
            max_price=int(os.getenv("LEDGER_MAX_PRICE", str(MAX_PRICE))),
        )


@dataclass
class AccessConfig:
    """Accounts holding the administrative and automation roles."""

    admin_account: str = "admin"
    automation_accounts: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "AccessConfig":
        """Create configuration from environment variables."""
        raw = os.getenv("LEDGER_AUTOMATION_ACCOUNTS", "")
        return cls(
            admin_account=os.getenv("LEDGER_ADMIN_ACCOUNT", "admin"),
            automation_accounts=[a.strip() for a in raw.split(",") if a.strip()],
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format_type: str = "json"  # json or text
    file: str | None = None

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Create configuration from environment variables."""
        file_path = os.getenv("LOG_FILE")
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO"),
            format_type=os.getenv("LOG_FORMAT_TYPE", "json"),
            file=file_path if file_path else None,
        )


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    environment: Environment = Environment.DEVELOPMENT
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    access: AccessConfig = field(default_factory=AccessConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "environment": self.environment.value,
            "ledger": {
                "fee_bps": self.ledger.fee_bps,
                "min_open_amount": self.ledger.min_open_amount,
                "max_open_amount": self.ledger.max_open_amount,
                "min_sell_amount": self.ledger.min_sell_amount,
                "max_price": self.ledger.max_price,
            },
            "access": {
                "admin_account": self.access.admin_account,
                "automation_accounts": list(self.access.automation_accounts),
            },
            "logging": {
                "level": self.logging.level,
                "format_type": self.logging.format_type,
                "file": self.logging.file,
            },
        }

    def validate(self) -> bool:
        """
        Validate the configuration.

        Returns:
            True if valid, raises exception otherwise
        """
        # Validate ledger limits
        if not 0 <= self.ledger.fee_bps <= MAX_FEE_BPS:
            raise ValueError(f"Fee rate must be between 0 and {MAX_FEE_BPS} bps")
        if self.ledger.min_open_amount <= 0 or self.ledger.max_open_amount <= 0:
            raise ValueError("Open bounds must be positive")
        if self.ledger.min_open_amount > self.ledger.max_open_amount:
            raise ValueError("Minimum open amount cannot exceed maximum")
        if self.ledger.min_sell_amount <= 0:
            raise ValueError("Minimum sell amount must be positive")
        if self.ledger.max_price <= 0:
            raise ValueError("Price ceiling must be positive")

        # Validate access config
        if not self.access.admin_account:
            raise ValueError("Admin account is required")
        if self.environment == Environment.PRODUCTION and not self.access.automation_accounts:
            raise ValueError("At least one automation account required for production")

        if self.logging.format_type not in ("json", "text"):
            raise ValueError(f"Invalid log format type: {self.logging.format_type}")

        return True


# Global configuration singleton
_config: ApplicationConfig | None = None


def get_config() -> ApplicationConfig:
    """
    Get the application configuration singleton.

    Returns:
        ApplicationConfig: The application configuration
    """
    global _config
    if _config is None:
        # Imported here, config_loader imports this module
        from src.application.config_loader import ConfigLoader

        _config = ConfigLoader.from_env()
    return _config


def set_config(config: ApplicationConfig) -> None:
    """
    Set the application configuration.

    Args:
        config: The new configuration
    """
    global _config
    _config = config


def reset_config() -> None:
    """Reset the configuration singleton."""
    global _config
    _config = None
