"""
Error taxonomy for LogFiend.

Every error raised by the core derives from LogfiendError so the CLI can
report it uniformly. Messages never contain credential values.
"""


class LogfiendError(Exception):
    """Base class for all LogFiend errors."""


class ConfigError(LogfiendError):
    """Configuration document is missing, unreadable, unparseable or at an unsafe path."""


class ConfigValidationError(LogfiendError):
    """Configuration is structurally invalid (missing or unknown fields)."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class SanitizeError(LogfiendError):
    """Configuration violates the security or normalization policy."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class ProviderError(LogfiendError):
    """No provider is registered for the requested type."""

    def __init__(self, provider_type: str, available: list[str]) -> None:
        super().__init__(
            f"unsupported provider type: {provider_type} "
            f"(available: {', '.join(available) or 'none'})"
        )
        self.provider_type = provider_type
        self.available = available


class ProviderConnectionError(LogfiendError):
    """The provider health probe failed."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class FetchError(LogfiendError):
    """Listing data sources from the provider failed."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class OutputError(LogfiendError):
    """The inventory could not be serialized or written."""
