"""
IBM QRadar integration.

Log sources are listed through the log source management API. Every
request, the health probe included, pins the API version header.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import Field

from logfiend.models.config import AuthType, ProviderConfig
from logfiend.models.datasource import DataSource
from logfiend.models.provider import ProviderCapabilities
from logfiend.providers.base import (
    VendorModel,
    check_health,
    create_http_client,
    fetch_payload,
    join_url,
)

logger = logging.getLogger(__name__)

API_VERSION = "15.0"
LOG_SOURCES_PATH = "api/config/event_sources/log_source_management/log_sources"
ABOUT_PATH = "api/system/about"
# QRadar reads API keys from this header rather than Authorization.
API_KEY_HEADER = "SEC"

LOG_SOURCE_FIELDS = ",".join(
    [
        "id",
        "name",
        "description",
        "type_id",
        "protocol_type_id",
        "enabled",
        "gateway",
        "internal",
        "credibility",
        "target_event_rate",
        "creation_date",
        "modified_date",
        "last_event_time",
        "status",
        "auto_discovered",
        "average_eps",
    ]
)


class LogSourceStatus(VendorModel):
    last_seen: int | None = None
    messages: list[Any] = Field(default_factory=list)


class LogSource(VendorModel):
    """A QRadar log source as returned with the projected fields."""

    id: int
    name: str = ""
    description: str | None = None
    type_id: int | None = None
    protocol_type_id: int | None = None
    enabled: bool = False
    gateway: bool = False
    internal: bool = False
    credibility: int | None = None
    target_event_rate: int | None = None
    creation_date: int | None = None
    modified_date: int | None = None
    last_event_time: int | None = None
    status: LogSourceStatus | None = None
    auto_discovered: bool = False
    average_eps: int | None = None


def from_epoch_millis(value: int | None) -> datetime | None:
    """Convert epoch milliseconds to a UTC instant; missing or zero yields None."""
    if not value or value <= 0:
        return None
    return datetime.fromtimestamp(value // 1000, tz=timezone.utc)


def _rfc3339(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def convert_log_source(log_source: LogSource) -> DataSource:
    """Convert a QRadar log source into a DataSource."""
    tags = ["qradar", "internal" if log_source.internal else "external"]
    if log_source.gateway:
        tags.append("gateway")
    if log_source.auto_discovered:
        tags.append("auto-discovered")

    metadata: dict[str, Any] = {
        "typeId": log_source.type_id,
        "protocolTypeId": log_source.protocol_type_id,
        "credibility": log_source.credibility,
        "targetEventRate": log_source.target_event_rate,
        "averageEPS": log_source.average_eps,
        "gateway": log_source.gateway,
        "internal": log_source.internal,
        "autoDiscovered": log_source.auto_discovered,
    }

    last_event = from_epoch_millis(log_source.last_event_time)
    if last_event:
        metadata["lastEventTime"] = _rfc3339(last_event)

    if log_source.status is not None:
        last_seen = from_epoch_millis(log_source.status.last_seen)
        if last_seen:
            metadata["lastSeen"] = _rfc3339(last_seen)
        if log_source.status.messages:
            metadata["statusMessages"] = log_source.status.messages

    return DataSource(
        id=str(log_source.id),
        name=log_source.name,
        title=log_source.name,
        type="qradar-log-source",
        description=log_source.description or None,
        status="enabled" if log_source.enabled else "disabled",
        created_at=from_epoch_millis(log_source.creation_date),
        updated_at=from_epoch_millis(log_source.modified_date),
        tags=tags,
        metadata=metadata,
    )


class QRadarProvider:
    """Inventories QRadar log sources."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        headers, auth = self._auth_settings()
        self._client = create_http_client(
            config,
            headers={"Version": API_VERSION, **headers},
            auth=auth,
        )

    @property
    def name(self) -> str:
        return "qradar"

    def _auth_settings(self) -> tuple[dict[str, str], httpx.Auth | None]:
        """Map the configured auth kind onto QRadar conventions."""
        auth = self._config.auth
        if auth is None:
            return {}, None
        if auth.type == AuthType.BASIC.value:
            return {}, httpx.BasicAuth(auth.username, auth.password.get_secret_value())
        if auth.type == AuthType.API_KEY.value:
            return {API_KEY_HEADER: auth.api_key.get_secret_value()}, None
        if auth.type == AuthType.BEARER.value:
            return {"Authorization": f"Bearer {auth.token.get_secret_value()}"}, None
        return {}, None

    async def validate_connection(self) -> None:
        await check_health(
            self._client,
            self.name,
            "QRadar",
            join_url(self._config.endpoint, ABOUT_PATH),
        )

    async def fetch_data_views(self) -> list[DataSource]:
        log_sources = await fetch_payload(
            self._client,
            self.name,
            "QRadar",
            list[LogSource],
            join_url(self._config.endpoint, LOG_SOURCES_PATH),
            params={"fields": LOG_SOURCE_FIELDS},
        )
        logger.debug(f"QRadar returned {len(log_sources)} log sources")
        return [convert_log_source(log_source) for log_source in log_sources]

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_real_time_queries=True,
            supports_historical_data=True,
            supported_data_types=["qradar-log-source", "qradar-flow-source"],
            requires_authentication=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
