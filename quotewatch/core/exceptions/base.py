"""quotewatch core exception classes."""

from typing import Any


class QuoteWatchError(Exception):
    """Base exception for quotewatch."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """Initialise the exception.

        Args:
            message: human readable message
            error_code: machine readable code
            details: extra context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(QuoteWatchError):
    """Invalid runtime configuration, fatal at startup."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if setting:
            super_details["setting"] = setting
        super().__init__(message, "CONFIGURATION_ERROR", super_details)
        self.setting = setting


class DataValidationError(QuoteWatchError):
    """Data validation failure."""

    def __init__(
        self,
        message: str,
        validation_errors: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if validation_errors:
            super_details["validation_errors"] = validation_errors
        super().__init__(message, "VALIDATION_ERROR", super_details)
        self.validation_errors = validation_errors or {}


class SymbolValidationError(DataValidationError):
    """A raw symbol failed format validation and never reaches the network."""

    def __init__(self, symbol: str, reason: str = "invalid symbol format"):
        super().__init__(reason, validation_errors={"symbol": symbol})
        self.error_code = "INVALID_SYMBOL"
        self.symbol = symbol


class ProviderError(QuoteWatchError):
    """Data provider failure."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        error_code: str = "PROVIDER_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)
        self.provider_name = provider_name


class TransientProviderError(ProviderError):
    """Timeout, 5xx or connection failure; eligible for the next refresh cycle."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, provider_name, "TRANSIENT_PROVIDER_ERROR", super_details)
        self.status_code = status_code


class RateLimitError(TransientProviderError):
    """Provider answered 429."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if retry_after is not None:
            super_details["retry_after"] = retry_after
        super().__init__(message, provider_name, status_code=429, details=super_details)
        self.error_code = "RATE_LIMIT_ERROR"
        self.retry_after = retry_after


class PermanentProviderError(ProviderError):
    """4xx (other than 429), provider error payload or malformed body."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, provider_name, "PERMANENT_PROVIDER_ERROR", super_details)
        self.status_code = status_code
