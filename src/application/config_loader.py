"""
Configuration Loader - Handles IO operations for configuration management.

This module is responsible for loading and saving configuration from/to
various sources (YAML files, .env files, environment variables) while keeping
the ApplicationConfig class focused on data representation and validation.
"""

import os

import yaml
from dotenv import load_dotenv

from src.application.config import (
    AccessConfig,
    ApplicationConfig,
    Environment,
    LedgerConfig,
    LoggingConfig,
)


class ConfigLoader:
    """Handles loading and saving of configuration from various sources."""

    @classmethod
    def from_env(cls, env_file: str | None = None) -> ApplicationConfig:
        """
        Create configuration from environment variables.

        Args:
            env_file: Optional .env file loaded first; variables already set win

        Returns:
            ApplicationConfig: Configuration loaded from environment
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)

        env_str = os.getenv("ENVIRONMENT", "development")
        try:
            environment = Environment(env_str)
        except ValueError:
            raise ValueError(f"Invalid environment: {env_str}")

        return ApplicationConfig(
            environment=environment,
            ledger=LedgerConfig.from_env(),
            access=AccessConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_yaml(cls, path: str) -> ApplicationConfig:
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            ApplicationConfig: Configuration loaded from YAML file
        """
        with open(path) as f:
            data = yaml.safe_load(f)

        config = ApplicationConfig()

        # Handle empty or null YAML files
        if not data:
            return config

        if "environment" in data:
            config.environment = Environment(data["environment"])

        if "ledger" in data:
            ledger_data = data["ledger"]
            config.ledger = LedgerConfig(
                fee_bps=int(ledger_data.get("fee_bps", config.ledger.fee_bps)),
                min_open_amount=int(
                    ledger_data.get("min_open_amount", config.ledger.min_open_amount)
                ),
                max_open_amount=int(
                    ledger_data.get("max_open_amount", config.ledger.max_open_amount)
                ),
                min_sell_amount=int(
                    ledger_data.get("min_sell_amount", config.ledger.min_sell_amount)
                ),
                max_price=int(ledger_data.get("max_price", config.ledger.max_price)),
            )

        if "access" in data:
            access_data = data["access"]
            config.access = AccessConfig(
                admin_account=access_data.get("admin_account", config.access.admin_account),
                automation_accounts=list(
                    access_data.get("automation_accounts", config.access.automation_accounts)
                ),
            )

        if "logging" in data:
            log_data = data["logging"]
            config.logging = LoggingConfig(
                level=log_data.get("level", config.logging.level),
                format_type=log_data.get("format_type", config.logging.format_type),
                file=log_data.get("file", config.logging.file),
            )

        return config

    @classmethod
    def to_yaml(cls, config: ApplicationConfig) -> str:
        """
        Convert configuration to YAML string.

        Args:
            config: ApplicationConfig instance to convert

        Returns:
            str: YAML representation of the configuration
        """
        return yaml.dump(config.to_dict(), default_flow_style=False)

    @classmethod
    def save_yaml(cls, config: ApplicationConfig, path: str) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: ApplicationConfig instance to save
            path: Path to save the YAML file to
        """
        yaml_content = cls.to_yaml(config)
        with open(path, "w") as f:
            f.write(yaml_content)
