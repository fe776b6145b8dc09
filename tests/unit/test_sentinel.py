"""
Unit tests for the Azure Sentinel integration.
"""

import pytest
import respx

from logfiend.exceptions import FetchError, ProviderConnectionError
from logfiend.models.config import AuthConfig
from logfiend.providers.sentinel import (
    API_VERSION,
    SentinelProvider,
    Table,
    convert_table,
    parse_workspace,
)


@pytest.fixture
def make_provider(make_provider_config, sentinel_endpoint):
    def _make(
        auth: AuthConfig | None = None,
        endpoint: str | None = None,
    ) -> SentinelProvider:
        return SentinelProvider(
            make_provider_config(
                type="sentinel",
                endpoint=endpoint or sentinel_endpoint,
                auth=auth,
            )
        )

    return _make


class TestParseWorkspace:
    """Tests for deriving workspace identifiers from the endpoint."""

    @pytest.mark.unit
    def test_valid_endpoint(self, sentinel_endpoint):
        workspace = parse_workspace(sentinel_endpoint)

        assert workspace.management_url == "https://management.azure.com"
        assert workspace.subscription_id == "sub-123"
        assert workspace.resource_group == "rg-soc"
        assert workspace.workspace_name == "ws-sentinel"
        assert workspace.resource_url == sentinel_endpoint
        assert workspace.tables_url == f"{sentinel_endpoint}/tables"

    @pytest.mark.unit
    def test_trailing_slash_ignored(self, sentinel_endpoint):
        assert parse_workspace(sentinel_endpoint + "/").workspace_name == "ws-sentinel"

    @pytest.mark.unit
    def test_origin_follows_endpoint(self):
        """Test sovereign clouds keep their own management host."""
        workspace = parse_workspace(
            "https://management.usgovcloudapi.net/subscriptions/s/resourceGroups/r"
            "/providers/Microsoft.OperationalInsights/workspaces/w"
        )

        assert workspace.management_url == "https://management.usgovcloudapi.net"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "endpoint",
        [
            "https://management.azure.com",
            "https://management.azure.com/subscriptions/sub-123/resourceGroups/rg-soc",
        ],
    )
    def test_short_path_rejected(self, endpoint):
        with pytest.raises(ValueError, match="invalid Azure workspace URL format"):
            parse_workspace(endpoint)


class TestConvertTable:
    """Tests for table conversion."""

    @pytest.mark.unit
    def test_analytics_table(self, sentinel_tables):
        table = Table.model_validate(sentinel_tables["value"][0])

        source = convert_table(table, "ws-sentinel")

        assert source.id == table.id
        assert source.name == "SecurityEvent"
        assert source.title == "Security Events"
        assert source.type == "log-analytics-table"
        assert source.pattern == "SecurityEvent"
        assert source.description == "Windows security events"
        assert source.status == "active"
        assert source.tags == ["azure", "sentinel", "analytics"]
        assert source.metadata["workspace"] == "ws-sentinel"
        assert source.metadata["retentionDays"] == 90
        assert source.metadata["totalRetention"] == 365
        assert source.metadata["archiveRetention"] == 275
        assert source.metadata["plan"] == "Analytics"
        assert source.metadata["columnCount"] == 2
        assert source.metadata["resourceId"] == table.id
        assert source.metadata["columns"][0] == {
            "name": "TimeGenerated",
            "type": "datetime",
            "description": "Event time",
        }

    @pytest.mark.unit
    def test_custom_table(self, sentinel_tables):
        """Test _CL tables are tagged custom and fall back to name for title."""
        table = Table.model_validate(sentinel_tables["value"][1])

        source = convert_table(table, "ws-sentinel")

        assert source.title == "Firewall_CL"
        assert source.tags == ["azure", "sentinel", "custom"]
        assert source.description is None
        assert source.metadata["columnCount"] == 0
        assert "columns" not in source.metadata


class TestSentinelProvider:
    @pytest.mark.unit
    @respx.mock
    async def test_fetch_tables(self, make_provider, sentinel_endpoint, sentinel_tables):
        route = respx.get(f"{sentinel_endpoint}/tables").respond(200, json=sentinel_tables)
        provider = make_provider(auth=AuthConfig(type="bearer", token="aad-token"))

        sources = await provider.fetch_data_views()
        await provider.aclose()

        assert [source.name for source in sources] == ["SecurityEvent", "Firewall_CL"]
        request = route.calls.last.request
        assert request.url.params["api-version"] == API_VERSION
        assert request.headers["Authorization"] == "Bearer aad-token"

    @pytest.mark.unit
    @respx.mock
    async def test_fetch_tolerates_null_fields(self, make_provider, sentinel_endpoint):
        """Test a sparse table record with nulls does not fail the listing."""
        sparse = {
            "id": f"{sentinel_endpoint}/tables/Heartbeat",
            "name": "Heartbeat",
            "properties": {
                "retentionInDays": None,
                "plan": None,
                "schema": {
                    "name": "Heartbeat",
                    "displayName": None,
                    "description": None,
                    "columns": [{"name": "Computer", "type": "string", "description": None}],
                },
            },
        }
        respx.get(f"{sentinel_endpoint}/tables").respond(200, json={"value": [sparse]})
        provider = make_provider(auth=AuthConfig(type="bearer", token="aad-token"))

        sources = await provider.fetch_data_views()
        await provider.aclose()

        assert len(sources) == 1
        source = sources[0]
        assert source.title == "Heartbeat"
        assert source.description is None
        assert source.tags == ["azure", "sentinel"]
        assert source.metadata["plan"] == ""
        assert source.metadata["retentionDays"] == 0
        assert source.metadata["columns"] == [
            {"name": "Computer", "type": "string", "description": ""}
        ]

    @pytest.mark.unit
    @respx.mock
    async def test_validate_connection(self, make_provider, sentinel_endpoint):
        route = respx.get(sentinel_endpoint).respond(200, json={"name": "ws-sentinel"})
        provider = make_provider()

        await provider.validate_connection()
        await provider.aclose()

        assert route.calls.last.request.url.params["api-version"] == API_VERSION

    @pytest.mark.unit
    async def test_validate_connection_bad_endpoint(self, make_provider):
        provider = make_provider(endpoint="https://management.azure.com/subscriptions/x")

        with pytest.raises(ProviderConnectionError, match="invalid workspace endpoint"):
            await provider.validate_connection()
        await provider.aclose()

    @pytest.mark.unit
    async def test_fetch_bad_endpoint(self, make_provider):
        """Test a malformed endpoint fails before any request is made."""
        provider = make_provider(endpoint="https://management.azure.com/subscriptions/x")

        with pytest.raises(FetchError, match="failed to parse workspace info"):
            await provider.fetch_data_views()
        await provider.aclose()

    @pytest.mark.unit
    @respx.mock
    async def test_fetch_failure(self, make_provider, sentinel_endpoint):
        respx.get(f"{sentinel_endpoint}/tables").respond(401, text="InvalidAuthenticationToken")
        provider = make_provider()

        with pytest.raises(FetchError) as exc_info:
            await provider.fetch_data_views()
        await provider.aclose()

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "azure-sentinel"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "auth,expected",
        [
            (AuthConfig(type="bearer", token="t1"), "Bearer t1"),
            # a token is sent whatever the declared auth kind
            (AuthConfig(type="api_key", api_key="k", token="t2"), "Bearer t2"),
            (AuthConfig(type="api_key", api_key="k"), None),
            (None, None),
        ],
    )
    async def test_auth_header(self, make_provider, sentinel_endpoint, auth, expected):
        provider = make_provider(auth=auth)
        with respx.mock:
            route = respx.get(sentinel_endpoint).respond(200, json={})
            await provider.validate_connection()
        await provider.aclose()

        assert route.calls.last.request.headers.get("Authorization") == expected

    @pytest.mark.unit
    async def test_name_and_capabilities(self, make_provider):
        provider = make_provider()
        capabilities = provider.get_capabilities()
        await provider.aclose()

        assert provider.name == "azure-sentinel"
        assert capabilities.requires_authentication is True
        assert capabilities.supported_data_types == ["log-analytics-table", "custom-table"]
