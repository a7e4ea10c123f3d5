"""Configuration management for quotewatch sessions."""

import os
from dataclasses import asdict, dataclass, field
from typing import Any

from quotewatch.core.exceptions import ConfigurationError
from quotewatch.core.models.market import SortOrder

YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart"
FMP_PROFILE_URL = "https://financialmodelingprep.com/api/v3/profile"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

MIN_REFRESH_INTERVAL = 1.0


@dataclass
class ProviderConfig:
    """Provider configuration."""

    timeout: float = 10.0
    valuation_timeout: float = 5.0
    max_concurrency: int = 12
    chart_url: str = YAHOO_CHART_URL
    profile_url: str = FMP_PROFILE_URL
    user_agent: str = BROWSER_USER_AGENT
    fmp_api_key: str = "demo"

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be at least 1, got {self.max_concurrency}",
                setting="providers.max_concurrency",
            )
        if self.timeout <= 0 or self.valuation_timeout <= 0:
            raise ConfigurationError("provider timeouts must be positive", setting="providers.timeout")


@dataclass
class HistoryConfig:
    """Rolling price history configuration."""

    capacity: int = 100

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ConfigurationError(
                f"history capacity must be at least 1, got {self.capacity}",
                setting="history.capacity",
            )


@dataclass
class IndicatorConfig:
    """Indicator periods used for snapshots."""

    sma_period: int = 20
    ema_period: int = 20
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if value < 1:
                raise ConfigurationError(f"{name} must be positive, got {value}", setting=f"indicators.{name}")
        if self.macd_fast >= self.macd_slow:
            raise ConfigurationError("macd_fast must be shorter than macd_slow", setting="indicators.macd_fast")


@dataclass
class RefreshConfig:
    """Refresh loop configuration."""

    interval: float = 5.0
    max_iterations: int = 0

    def __post_init__(self) -> None:
        # sub-second polling is clamped, not rejected
        if self.interval < MIN_REFRESH_INTERVAL:
            self.interval = MIN_REFRESH_INTERVAL
        if self.max_iterations < 0:
            raise ConfigurationError("max_iterations cannot be negative", setting="refresh.max_iterations")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None


@dataclass
class DisplayConfig:
    """Quote ordering applied after every refresh."""

    sort_by: str = "change_percent"
    sort_descending: bool = True

    def __post_init__(self) -> None:
        try:
            SortOrder.parse(self.sort_by)
        except ValueError as exc:
            raise ConfigurationError(str(exc), setting="display.sort_by") from exc


@dataclass
class QuoteWatchConfig:
    """quotewatch main configuration."""

    providers: ProviderConfig = field(default_factory=ProviderConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "QuoteWatchConfig":
        """Build a configuration from a nested dictionary."""
        return cls(
            providers=ProviderConfig(**config_dict.get("providers", {})),
            history=HistoryConfig(**config_dict.get("history", {})),
            indicators=IndicatorConfig(**config_dict.get("indicators", {})),
            refresh=RefreshConfig(**config_dict.get("refresh", {})),
            logging=LoggingConfig(**config_dict.get("logging", {})),
            display=DisplayConfig(**config_dict.get("display", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a nested dictionary."""
        return {
            "providers": asdict(self.providers),
            "history": asdict(self.history),
            "indicators": asdict(self.indicators),
            "refresh": asdict(self.refresh),
            "logging": asdict(self.logging),
            "display": asdict(self.display),
        }


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


class ConfigManager:
    """Layers defaults, explicit overrides and environment variables.

    File loading is left to the caller; pass the parsed mapping as ``overrides``.
    """

    def __init__(self, overrides: dict[str, Any] | None = None, use_env: bool = True):
        config_dict = get_default_config().to_dict()
        if overrides:
            _deep_update(config_dict, overrides)
        if use_env:
            _deep_update(config_dict, load_config_from_env())
        self.config = QuoteWatchConfig.from_dict(config_dict)

    def get_config(self) -> QuoteWatchConfig:
        """Return the current configuration."""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Apply nested updates, e.g. ``update_config(providers={"timeout": 3})``."""
        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = QuoteWatchConfig.from_dict(config_dict)


def get_default_config() -> QuoteWatchConfig:
    """Return the default configuration."""
    return QuoteWatchConfig()


def load_config_from_env() -> dict[str, Any]:
    """Load configuration overrides from environment variables."""
    config: dict[str, Any] = {}

    provider_config: dict[str, Any] = {}
    provider_timeout = os.getenv("QUOTEWATCH_PROVIDER_TIMEOUT")
    if provider_timeout is not None:
        provider_config["timeout"] = float(provider_timeout)
    valuation_timeout = os.getenv("QUOTEWATCH_VALUATION_TIMEOUT")
    if valuation_timeout is not None:
        provider_config["valuation_timeout"] = float(valuation_timeout)
    max_concurrency = os.getenv("QUOTEWATCH_MAX_CONCURRENCY")
    if max_concurrency is not None:
        provider_config["max_concurrency"] = int(max_concurrency)
    fmp_api_key = os.getenv("FMP_API_KEY")
    if fmp_api_key:
        provider_config["fmp_api_key"] = fmp_api_key

    if provider_config:
        config["providers"] = provider_config

    history_capacity = os.getenv("QUOTEWATCH_HISTORY_CAPACITY")
    if history_capacity is not None:
        config["history"] = {"capacity": int(history_capacity)}

    refresh_config: dict[str, Any] = {}
    refresh_interval = os.getenv("QUOTEWATCH_REFRESH_INTERVAL")
    if refresh_interval is not None:
        refresh_config["interval"] = float(refresh_interval)
    max_iterations = os.getenv("QUOTEWATCH_MAX_ITERATIONS")
    if max_iterations is not None:
        refresh_config["max_iterations"] = int(max_iterations)

    if refresh_config:
        config["refresh"] = refresh_config

    logging_config: dict[str, Any] = {}
    logging_level = os.getenv("QUOTEWATCH_LOGGING_LEVEL")
    if logging_level is not None:
        logging_config["level"] = logging_level
    logging_file = os.getenv("QUOTEWATCH_LOGGING_FILE")
    if logging_file is not None:
        logging_config["file"] = logging_file

    if logging_config:
        config["logging"] = logging_config

    display_config: dict[str, Any] = {}
    sort_by = os.getenv("QUOTEWATCH_SORT_BY")
    if sort_by is not None:
        display_config["sort_by"] = sort_by
    sort_descending = os.getenv("QUOTEWATCH_SORT_DESCENDING")
    if sort_descending is not None:
        display_config["sort_descending"] = sort_descending.lower() in ("1", "true", "yes")

    if display_config:
        config["display"] = display_config

    return config
