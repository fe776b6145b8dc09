"""
Capability contract for vendor integrations.

Every integration implements the Provider protocol: a stable name, a
lightweight connection probe, the data source listing and a static
capability descriptor. There is no shared base class; integrations only
share the request helpers in this module.
"""

import logging
from typing import Any, Protocol, TypeVar, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, model_validator

from logfiend.exceptions import FetchError, ProviderConnectionError
from logfiend.models.config import ProviderConfig
from logfiend.models.datasource import DataSource
from logfiend.models.provider import ProviderCapabilities

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Provider(Protocol):
    """
    A vendor integration.

    Lifecycle per instance: constructed, optionally connection-validated,
    then fetched. A failed call is terminal for that call; integrations do
    not retry.
    """

    @property
    def name(self) -> str:
        """Identifier used in output metadata and log lines."""
        ...

    async def validate_connection(self) -> None:
        """Issue a health/info request. Raises ProviderConnectionError."""
        ...

    async def fetch_data_views(self) -> list[DataSource]:
        """List and convert all data sources. Raises FetchError."""
        ...

    def get_capabilities(self) -> ProviderCapabilities:
        """Describe the integration without any I/O."""
        ...

    async def aclose(self) -> None:
        """Release the underlying HTTP client."""
        ...


class VendorModel(BaseModel):
    """
    Base for decoded vendor payloads.

    Unknown keys are ignored and explicit nulls fall back to the field
    default, so one sparse record does not fail the whole listing.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def create_http_client(
    config: ProviderConfig,
    headers: dict[str, str] | None = None,
    auth: httpx.Auth | None = None,
) -> httpx.AsyncClient:
    """
    Build the isolated HTTP client an integration instance owns.

    Vendor auth headers and pinned version headers are set once here so
    every request, the health probe included, carries them.
    """
    return httpx.AsyncClient(
        timeout=config.timeout.total_seconds(),
        verify=config.verify_tls,
        headers={"Content-Type": "application/json", **(headers or {})},
        auth=auth,
    )


def join_url(endpoint: str, path: str) -> str:
    """Append an API path to the configured endpoint."""
    return endpoint.rstrip("/") + "/" + path.lstrip("/")


async def check_health(
    client: httpx.AsyncClient,
    provider: str,
    label: str,
    url: str,
    **kwargs: Any,
) -> None:
    """
    Issue a health probe and fail on transport errors or non-2xx status.

    Raises:
        ProviderConnectionError
    """
    try:
        response = await client.get(url, **kwargs)
    except httpx.HTTPError as e:
        raise ProviderConnectionError(
            provider, f"failed to connect to {label}: {e}"
        ) from e

    if not response.is_success:
        raise ProviderConnectionError(
            provider,
            f"{label.lower()} health check failed with status: {response.status_code}",
            status_code=response.status_code,
        )
    logger.debug(f"{label} health check succeeded ({response.status_code})")


async def fetch_payload(
    client: httpx.AsyncClient,
    provider: str,
    label: str,
    schema: type[T],
    url: str,
    method: str = "GET",
    **kwargs: Any,
) -> T:
    """
    Request a listing and decode the JSON body into schema.

    Raises:
        FetchError: on transport failure, non-2xx status or undecodable body.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        raise FetchError(provider, f"failed to execute request: {e}") from e

    if not response.is_success:
        raise FetchError(
            provider,
            f"{label.lower()} returned status {response.status_code}: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        return TypeAdapter(schema).validate_json(response.content)
    except ValidationError as e:
        raise FetchError(provider, f"failed to decode response: {e}") from e
