"""
Azure Sentinel integration.

The configured endpoint is the Azure Resource Manager URL of the Log
Analytics workspace backing Sentinel:

    https://management.azure.com/subscriptions/{subscriptionId}/resourceGroups/
    {resourceGroupName}/providers/Microsoft.OperationalInsights/workspaces/{workspaceName}

Tables of that workspace are listed through the management API. Requests
go to the scheme and host of the configured endpoint, not to a fixed
management.azure.com, so sovereign clouds work unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from pydantic import Field

from logfiend.exceptions import FetchError, ProviderConnectionError
from logfiend.models.config import AuthType, ProviderConfig
from logfiend.models.datasource import DataSource
from logfiend.models.provider import ProviderCapabilities
from logfiend.providers.base import VendorModel, check_health, create_http_client, fetch_payload

logger = logging.getLogger(__name__)

API_VERSION = "2022-10-01"
CUSTOM_TABLE_SUFFIX = "_CL"
MIN_PATH_SEGMENTS = 8


@dataclass(frozen=True)
class WorkspaceRef:
    """Identifiers of a Log Analytics workspace."""

    management_url: str
    subscription_id: str
    resource_group: str
    workspace_name: str

    @property
    def resource_url(self) -> str:
        return (
            f"{self.management_url}/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/Microsoft.OperationalInsights/workspaces/{self.workspace_name}"
        )

    @property
    def tables_url(self) -> str:
        return f"{self.resource_url}/tables"


def parse_workspace(endpoint: str) -> WorkspaceRef:
    """
    Derive workspace identifiers from the endpoint path.

    Raises:
        ValueError: if the path has fewer segments than a workspace URL.
    """
    parts = urlsplit(endpoint)
    segments = parts.path.strip("/").split("/")
    if len(segments) < MIN_PATH_SEGMENTS:
        raise ValueError("invalid Azure workspace URL format")

    return WorkspaceRef(
        management_url=f"{parts.scheme}://{parts.netloc}",
        subscription_id=segments[1],
        resource_group=segments[3],
        workspace_name=segments[7],
    )


class TableColumn(VendorModel):
    name: str = ""
    type: str = ""
    description: str = ""


class TableSchema(VendorModel):
    name: str = ""
    displayName: str = ""
    description: str = ""
    columns: list[TableColumn] = Field(default_factory=list)


class TableProperties(VendorModel):
    retentionInDays: int = 0
    totalRetentionInDays: int = 0
    archiveRetentionInDays: int = 0
    plan: str = ""
    schema_: TableSchema = Field(default_factory=TableSchema, alias="schema")


class Table(VendorModel):
    """A Log Analytics table resource."""

    id: str = ""
    name: str = ""
    type: str = ""
    properties: TableProperties = Field(default_factory=TableProperties)


class TableListResponse(VendorModel):
    value: list[Table] = Field(default_factory=list)


def convert_table(table: Table, workspace_name: str) -> DataSource:
    """Convert a Log Analytics table into a DataSource."""
    properties = table.properties
    schema = properties.schema_

    tags = ["azure", "sentinel"]
    if schema.name.endswith(CUSTOM_TABLE_SUFFIX):
        tags.append("custom")
    if properties.plan == "Analytics":
        tags.append("analytics")

    metadata: dict[str, Any] = {
        "workspace": workspace_name,
        "retentionDays": properties.retentionInDays,
        "totalRetention": properties.totalRetentionInDays,
        "archiveRetention": properties.archiveRetentionInDays,
        "plan": properties.plan,
        "columnCount": len(schema.columns),
        "resourceId": table.id,
    }
    if schema.columns:
        metadata["columns"] = [column.model_dump() for column in schema.columns]

    return DataSource(
        id=table.id,
        name=schema.name,
        title=schema.displayName or schema.name,
        type="log-analytics-table",
        pattern=schema.name or None,
        description=schema.description or None,
        status="active",
        tags=tags,
        metadata=metadata,
    )


class SentinelProvider:
    """Inventories Log Analytics tables of a Sentinel workspace."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client = create_http_client(config, headers=self._auth_headers())

    @property
    def name(self) -> str:
        return "azure-sentinel"

    def _auth_headers(self) -> dict[str, str]:
        """
        Azure Resource Manager only accepts bearer tokens.

        A configured token is sent whatever the declared auth type is.
        """
        auth = self._config.auth
        if auth is None:
            return {}
        token = auth.token.get_secret_value()
        if auth.type == AuthType.BEARER.value or token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def validate_connection(self) -> None:
        try:
            workspace = parse_workspace(self._config.endpoint)
        except ValueError as e:
            raise ProviderConnectionError(
                self.name, f"invalid workspace endpoint: {e}"
            ) from e

        await check_health(
            self._client,
            self.name,
            "Azure Sentinel",
            workspace.resource_url,
            params={"api-version": API_VERSION},
        )

    async def fetch_data_views(self) -> list[DataSource]:
        try:
            workspace = parse_workspace(self._config.endpoint)
        except ValueError as e:
            raise FetchError(self.name, f"failed to parse workspace info: {e}") from e

        response = await fetch_payload(
            self._client,
            self.name,
            "Azure Sentinel",
            TableListResponse,
            workspace.tables_url,
            params={"api-version": API_VERSION},
        )
        logger.debug(
            f"Azure Sentinel returned {len(response.value)} tables "
            f"for workspace {workspace.workspace_name}"
        )
        return [convert_table(table, workspace.workspace_name) for table in response.value]

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_real_time_queries=True,
            supports_historical_data=True,
            supported_data_types=["log-analytics-table", "custom-table"],
            requires_authentication=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
