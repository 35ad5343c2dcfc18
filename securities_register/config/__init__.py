"""Configuration package for runtime settings and startup validation."""

from .settings import (
    AppSettings,
    LedgerConfig,
    SettingsLoadError,
    config_build_ledger_config,
    config_configure_logging,
    config_load_database_url,
    config_load_settings,
)

__all__ = [
    "AppSettings",
    "LedgerConfig",
    "SettingsLoadError",
    "config_build_ledger_config",
    "config_configure_logging",
    "config_load_settings",
    "config_load_database_url",
]
