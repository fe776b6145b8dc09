"""
Inventory collection.

Runs one provider through its lifecycle (construct, optional connection
probe, fetch) under a single deadline and assembles the inventory.
"""

import asyncio
import logging
import time
from datetime import timedelta

from logfiend import __version__
from logfiend.exceptions import FetchError, ProviderConnectionError
from logfiend.logging_config import LogEventType, get_logger
from logfiend.models.config import ProviderConfig
from logfiend.models.datasource import DataSource, DataSourceInventory
from logfiend.providers.base import Provider
from logfiend.providers.registry import ProviderRegistry
from logfiend.services.inventory import build_inventory

logger = get_logger(__name__)


class InventoryCollector:
    """
    Collects the data source inventory of one configured provider.

    The connection probe and the fetch share one deadline. When it expires
    the in-flight request is cancelled and reported as a connection error
    if the probe was running, otherwise as a fetch error.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        version: str = __version__,
        timeout: timedelta = timedelta(seconds=30),
    ) -> None:
        self._registry = registry
        self._version = version
        self._timeout = timeout

    async def collect(
        self,
        config: ProviderConfig,
        *,
        validate_connection: bool = True,
        airgap: bool = False,
    ) -> DataSourceInventory:
        """
        Build the inventory for a sanitized provider configuration.

        In airgap mode no network call is made and the inventory is empty.

        Raises:
            ProviderError: unknown provider type.
            ProviderConnectionError: the probe failed or ran out of time.
            FetchError: the listing failed or ran out of time.
        """
        provider = self._registry.create(config)
        try:
            if airgap:
                logger.event(
                    LogEventType.PROVIDER_FETCH,
                    "Airgap mode: returning empty results",
                    provider=provider.name,
                )
                data_sources: list[DataSource] = []
            else:
                data_sources = await self._run(provider, validate_connection)
        finally:
            await provider.aclose()

        return build_inventory(provider.name, self._version, data_sources)

    async def _run(self, provider: Provider, validate_connection: bool) -> list[DataSource]:
        probing = validate_connection
        started = time.monotonic()
        try:
            async with asyncio.timeout(self._timeout.total_seconds()):
                if validate_connection:
                    logger.event(
                        LogEventType.PROVIDER_CONNECT,
                        f"Validating connection to {provider.name}",
                        provider=provider.name,
                    )
                    await provider.validate_connection()
                    probing = False

                data_sources = await provider.fetch_data_views()
        except TimeoutError as e:
            seconds = self._timeout.total_seconds()
            if probing:
                error: Exception = ProviderConnectionError(
                    provider.name,
                    f"connection to {provider.name} timed out after {seconds:g}s",
                )
            else:
                error = FetchError(
                    provider.name,
                    f"fetching from {provider.name} timed out after {seconds:g}s",
                )
            logger.provider_error(provider.name, error)
            raise error from e
        except (ProviderConnectionError, FetchError) as e:
            logger.provider_error(provider.name, e)
            raise

        logger.event(
            LogEventType.PROVIDER_FETCH,
            f"Fetched {len(data_sources)} data sources from {provider.name}",
            level=logging.INFO,
            provider=provider.name,
            source_count=len(data_sources),
            duration_ms=(time.monotonic() - started) * 1000,
        )
        return data_sources
