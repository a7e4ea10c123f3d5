"""Configuration management module."""

from quotewatch.core.config.settings import (
    ConfigManager,
    DisplayConfig,
    HistoryConfig,
    IndicatorConfig,
    LoggingConfig,
    ProviderConfig,
    QuoteWatchConfig,
    RefreshConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "QuoteWatchConfig",
    "ProviderConfig",
    "HistoryConfig",
    "IndicatorConfig",
    "RefreshConfig",
    "LoggingConfig",
    "DisplayConfig",
    "get_default_config",
    "load_config_from_env",
]
