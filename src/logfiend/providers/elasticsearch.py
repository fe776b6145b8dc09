"""
Elasticsearch / Kibana integration.

Kibana stores index patterns (older releases) and data views (newer
releases) as saved objects in the .kibana index. Both kinds are queried
concurrently; if one query fails the other's results are still returned.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any

import httpx
from pydantic import Field

from logfiend.exceptions import FetchError
from logfiend.logging_config import LogEventType, get_logger
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

logger = get_logger(__name__)

SAVED_OBJECTS_SEARCH_PATH = ".kibana/_search"
HEALTH_PATH = "_aliases"
SEARCH_SIZE = 1000


class SavedObjectKind(str, Enum):
    """Saved object types that describe a data source."""

    INDEX_PATTERN = "index-pattern"
    DATA_VIEW = "data-view"


class SavedObjectSource(VendorModel):
    """The _source of a saved object document."""

    type: str = ""
    index_pattern: dict[str, Any] | None = Field(default=None, alias="index-pattern")
    data_view: dict[str, Any] | None = Field(default=None, alias="data-view")
    updated_at: str = ""


class SavedObjectHit(VendorModel):
    id: str = Field(alias="_id")
    source: SavedObjectSource = Field(default_factory=SavedObjectSource, alias="_source")


class SearchHits(VendorModel):
    hits: list[SavedObjectHit] = Field(default_factory=list)


class SearchResponse(VendorModel):
    hits: SearchHits = Field(default_factory=SearchHits)


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp; values without a UTC offset yield None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def convert_saved_object(hit: SavedObjectHit, kind: SavedObjectKind) -> DataSource:
    """
    Convert a saved object hit into a DataSource.

    Index patterns keep their attributes under "index-pattern", data views
    under "data-view". The title doubles as name and match pattern.
    """
    if kind is SavedObjectKind.INDEX_PATTERN:
        attributes = hit.source.index_pattern or {}
    else:
        attributes = hit.source.data_view or {}

    title = attributes.get("title")
    title = title if isinstance(title, str) else ""

    metadata: dict[str, Any] = {}
    time_field = attributes.get("timeFieldName")
    if isinstance(time_field, str):
        metadata["timeField"] = time_field

    updated_at = parse_timestamp(hit.source.updated_at)
    if hit.source.updated_at and updated_at is None:
        logger.debug(f"Ignoring unparseable updated_at on {hit.id}")

    return DataSource(
        id=hit.id,
        name=title,
        title=title,
        type=kind.value,
        pattern=title or None,
        updated_at=updated_at,
        tags=["elasticsearch", kind.value],
        metadata=metadata,
    )


class ElasticsearchProvider:
    """Inventories Kibana index patterns and data views."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        headers, auth = self._auth_settings()
        self._client = create_http_client(config, headers=headers, auth=auth)

    @property
    def name(self) -> str:
        return "elasticsearch"

    def _auth_settings(self) -> tuple[dict[str, str], httpx.Auth | None]:
        """Map the configured auth kind onto Elasticsearch conventions."""
        auth = self._config.auth
        if auth is None:
            return {}, None
        if auth.type == AuthType.BASIC.value:
            return {}, httpx.BasicAuth(auth.username, auth.password.get_secret_value())
        if auth.type == AuthType.BEARER.value:
            return {"Authorization": f"Bearer {auth.token.get_secret_value()}"}, None
        if auth.type == AuthType.API_KEY.value:
            return {"Authorization": f"ApiKey {auth.api_key.get_secret_value()}"}, None
        return {}, None

    async def validate_connection(self) -> None:
        await check_health(
            self._client,
            self.name,
            "Elasticsearch",
            join_url(self._config.endpoint, HEALTH_PATH),
        )

    async def fetch_data_views(self) -> list[DataSource]:
        """
        Fetch index patterns and data views.

        Raises:
            FetchError: only when both queries fail, wrapping the last error.
        """
        kinds = (SavedObjectKind.INDEX_PATTERN, SavedObjectKind.DATA_VIEW)
        results = await asyncio.gather(
            *(self._search(kind) for kind in kinds),
            return_exceptions=True,
        )

        data_sources: list[DataSource] = []
        errors: list[FetchError] = []
        for kind, result in zip(kinds, results):
            if isinstance(result, FetchError):
                logger.event(
                    LogEventType.PROVIDER_PARTIAL_FAILURE,
                    f"Elasticsearch {kind.value} query failed: {result}",
                    level=logging.WARNING,
                    provider=self.name,
                )
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                data_sources.extend(result)

        if len(errors) == len(kinds):
            last = errors[-1]
            raise FetchError(
                self.name,
                f"failed to fetch any data sources: {last}",
                status_code=last.status_code,
                body=last.body,
            ) from last

        return data_sources

    async def _search(self, kind: SavedObjectKind) -> list[DataSource]:
        query = {
            "query": {"term": {"type": kind.value}},
            "size": SEARCH_SIZE,
        }
        response = await fetch_payload(
            self._client,
            self.name,
            "Elasticsearch",
            SearchResponse,
            join_url(self._config.endpoint, SAVED_OBJECTS_SEARCH_PATH),
            json=query,
        )
        logger.debug(f"Elasticsearch returned {len(response.hits.hits)} {kind.value} objects")
        return [convert_saved_object(hit, kind) for hit in response.hits.hits]

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_real_time_queries=True,
            supports_historical_data=True,
            supported_data_types=[kind.value for kind in SavedObjectKind],
            requires_authentication=False,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
