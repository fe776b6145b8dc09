"""
Splunk integration.

Indexes are listed through the splunkd management REST API
(services/data/indexes). Size and path fields are kept in metadata
exactly as Splunk returns them.
"""

import logging
from datetime import datetime
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

INDEXES_PATH = "services/data/indexes"
SERVER_INFO_PATH = "services/server/info"

# minTime as rendered by splunkd, e.g. 2024-01-15T10:30:00.000-05:00
MIN_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

# Splunk content field -> metadata key, copied verbatim.
METADATA_FIELDS = {
    "maxTotalDataSizeMB": "maxSizeMB",
    "currentDBSizeMB": "currentSizeMB",
    "totalEventCount": "totalEventCount",
    "datatype": "dataType",
    "homePath": "homePath",
    "coldPath": "coldPath",
    "thawedPath": "thawedPath",
}


class IndexEntry(VendorModel):
    """One entry of the indexes endpoint."""

    name: str
    content: dict[str, Any] = Field(default_factory=dict)


class IndexListResponse(VendorModel):
    entry: list[IndexEntry] = Field(default_factory=list)


def _is_internal(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true")


def parse_min_time(value: Any) -> datetime | None:
    """Parse minTime; empty, zero or malformed values yield None."""
    if not isinstance(value, str) or value in ("", "0"):
        return None
    try:
        return datetime.strptime(value, MIN_TIME_FORMAT)
    except ValueError:
        return None


def convert_index_entry(entry: IndexEntry) -> DataSource:
    """Convert a Splunk index entry into a DataSource."""
    content = entry.content
    internal = _is_internal(content.get("isInternal"))

    return DataSource(
        id=entry.name,
        name=entry.name,
        title=entry.name,
        type="splunk-index",
        pattern=f"index={entry.name}",
        status="internal" if internal else "active",
        tags=["internal" if internal else "external"],
        created_at=parse_min_time(content.get("minTime")),
        metadata={
            key: content.get(field, "") for field, key in METADATA_FIELDS.items()
        },
    )


class SplunkProvider:
    """Inventories Splunk indexes."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        headers, auth = self._auth_settings()
        self._client = create_http_client(config, headers=headers, auth=auth)

    @property
    def name(self) -> str:
        return "splunk"

    def _auth_settings(self) -> tuple[dict[str, str], httpx.Auth | None]:
        """Map the configured auth kind onto splunkd conventions."""
        auth = self._config.auth
        if auth is None:
            return {}, None
        if auth.type == AuthType.BASIC.value:
            return {}, httpx.BasicAuth(auth.username, auth.password.get_secret_value())
        if auth.type == AuthType.BEARER.value:
            return {"Authorization": f"Bearer {auth.token.get_secret_value()}"}, None
        if auth.type == AuthType.API_KEY.value:
            # splunkd session keys use the "Splunk" scheme
            return {"Authorization": f"Splunk {auth.api_key.get_secret_value()}"}, None
        return {}, None

    async def validate_connection(self) -> None:
        await check_health(
            self._client,
            self.name,
            "Splunk",
            join_url(self._config.endpoint, SERVER_INFO_PATH),
            params={"output_mode": "json"},
        )

    async def fetch_data_views(self) -> list[DataSource]:
        response = await fetch_payload(
            self._client,
            self.name,
            "Splunk",
            IndexListResponse,
            join_url(self._config.endpoint, INDEXES_PATH),
            params={"output_mode": "json", "count": "0"},
        )
        logger.debug(f"Splunk returned {len(response.entry)} indexes")
        return [convert_index_entry(entry) for entry in response.entry]

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_real_time_queries=True,
            supports_historical_data=True,
            supported_data_types=["splunk-index", "summary-index"],
            requires_authentication=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
