"""
Provider registry.

Maps a lowercase provider type to the factory that builds its integration.
The default registry is built explicitly at startup by
create_default_registry(); new integrations are added by implementing the
Provider protocol and registering a factory.
"""

import logging
import threading
from enum import Enum
from typing import Callable

from logfiend.exceptions import ProviderError
from logfiend.models.config import ProviderConfig
from logfiend.providers.base import Provider
from logfiend.providers.elasticsearch import ElasticsearchProvider
from logfiend.providers.qradar import QRadarProvider
from logfiend.providers.sentinel import SentinelProvider
from logfiend.providers.splunk import SplunkProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderConfig], Provider]


class ProviderType(str, Enum):
    """Built-in vendor integrations, by configured type."""

    ELASTICSEARCH = "elasticsearch"
    SPLUNK = "splunk"
    SENTINEL = "sentinel"
    QRADAR = "qradar"


BUILTIN_FACTORIES: dict[ProviderType, ProviderFactory] = {
    ProviderType.ELASTICSEARCH: ElasticsearchProvider,
    ProviderType.SPLUNK: SplunkProvider,
    ProviderType.SENTINEL: SentinelProvider,
    ProviderType.QRADAR: QRadarProvider,
}


class ProviderRegistry:
    """
    Registry of provider factories.

    Registration is append-only. It is expected to happen before any
    lookup, but is guarded so late registration stays safe.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str | ProviderType, factory: ProviderFactory) -> None:
        """Register a factory under a case-insensitive provider type."""
        key = name.value if isinstance(name, ProviderType) else name.strip().lower()
        with self._lock:
            self._factories[key] = factory
        logger.debug(f"Registered provider type: {key}")

    def available(self) -> list[str]:
        """Names of every registered provider type."""
        return list(self._factories)

    def get_factory(self, provider_type: str) -> ProviderFactory:
        """
        Look up the factory for a provider type.

        Raises:
            ProviderError: if the type is not registered.
        """
        factory = self._factories.get(provider_type.strip().lower())
        if factory is None:
            raise ProviderError(provider_type, self.available())
        return factory

    def create(self, config: ProviderConfig) -> Provider:
        """Construct the provider configured by config.type."""
        return self.get_factory(config.type)(config)

    def __contains__(self, provider_type: object) -> bool:
        return (
            isinstance(provider_type, str)
            and provider_type.strip().lower() in self._factories
        )


def create_default_registry() -> ProviderRegistry:
    """Build a registry with every built-in integration."""
    registry = ProviderRegistry()
    for provider_type, factory in BUILTIN_FACTORIES.items():
        registry.register(provider_type, factory)
    return registry
