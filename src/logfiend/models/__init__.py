"""
Data models for LogFiend.

These models define:
- The canonical DataSource record and its inventory envelope
- The configuration document (provider, output and logging sections)
- The static capability descriptor of a vendor integration
"""

from logfiend.models.config import (
    AppConfig,
    AuthConfig,
    AuthType,
    LoggingConfig,
    OutputConfig,
    OutputFormat,
    ProviderConfig,
    TLSConfig,
)
from logfiend.models.datasource import (
    GENERATED_BY,
    DataSource,
    DataSourceInventory,
    InventoryMetadata,
)
from logfiend.models.provider import ProviderCapabilities

__all__ = [
    "GENERATED_BY",
    "AppConfig",
    "AuthConfig",
    "AuthType",
    "DataSource",
    "DataSourceInventory",
    "InventoryMetadata",
    "LoggingConfig",
    "OutputConfig",
    "OutputFormat",
    "ProviderCapabilities",
    "ProviderConfig",
    "TLSConfig",
]
