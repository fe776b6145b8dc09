"""
Global pytest configuration and fixtures for LogFiend.

Tests never touch the network: vendor APIs are mocked with respx and time
is frozen where timestamps matter.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from logfiend.logging_config import HumanReadableFormatter, StructuredLogFormatter
from logfiend.models.config import AuthConfig, ProviderConfig, TLSConfig
from logfiend.providers.registry import ProviderRegistry, create_default_registry


# =============================================================================
# Function-Scoped Fixtures (Fresh per test)
# =============================================================================


@pytest.fixture
def frozen_time():
    """
    Fixture to freeze time at a known point.

    Usage:
        def test_something(frozen_time):
            with frozen_time("2025-01-30 12:00:00"):
                # Time is frozen here
                pass
    """
    from freezegun import freeze_time

    return freeze_time


@pytest.fixture
def fixed_datetime() -> datetime:
    """A fixed datetime for deterministic time-based tests."""
    return datetime(2025, 1, 30, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def registry() -> ProviderRegistry:
    """A registry holding every built-in provider."""
    return create_default_registry()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty working directory (paths must be relative)."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


# =============================================================================
# Factory Fixtures (Deterministic Test Data)
# =============================================================================


@pytest.fixture
def make_auth():
    """Factory for AuthConfig."""

    def _make(type: str = "basic", **kwargs) -> AuthConfig:
        if type == "basic":
            kwargs.setdefault("username", "admin")
            kwargs.setdefault("password", "changeme")
        elif type == "bearer":
            kwargs.setdefault("token", "test-bearer-token")
        elif type == "api_key":
            kwargs.setdefault("api_key", "test-api-key")
        return AuthConfig(type=type, **kwargs)

    return _make


@pytest.fixture
def make_provider_config():
    """Factory for ProviderConfig with defaults."""

    def _make(
        type: str = "splunk",
        endpoint: str = "https://siem.example.com:8089",
        auth: AuthConfig | None = None,
        tls: TLSConfig | None = None,
        **kwargs,
    ) -> ProviderConfig:
        return ProviderConfig(
            type=type,
            endpoint=endpoint,
            auth=auth,
            tls=tls,
            **kwargs,
        )

    return _make


@pytest.fixture
def write_config(workdir: Path):
    """Write a YAML configuration document into the working directory."""

    def _write(content: str, name: str = "config.yml") -> str:
        path = workdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return name

    return _write


# =============================================================================
# Vendor Payload Fixtures
# =============================================================================


@pytest.fixture
def kibana_index_patterns() -> dict[str, Any]:
    return {
        "hits": {
            "total": {"value": 2},
            "hits": [
                {
                    "_id": "index-pattern:logs-star",
                    "_source": {
                        "type": "index-pattern",
                        "index-pattern": {"title": "logs-*", "timeFieldName": "@timestamp"},
                        "updated_at": "2025-01-15T10:30:00.000Z",
                    },
                },
                {
                    "_id": "index-pattern:metrics",
                    "_source": {
                        "type": "index-pattern",
                        "index-pattern": {"title": "metrics-*"},
                    },
                },
            ],
        }
    }


@pytest.fixture
def kibana_data_views() -> dict[str, Any]:
    return {
        "hits": {
            "total": {"value": 1},
            "hits": [
                {
                    "_id": "data-view:auditbeat",
                    "_source": {
                        "type": "data-view",
                        "data-view": {"title": "auditbeat-*", "timeFieldName": "event.created"},
                        "updated_at": "not-a-timestamp",
                    },
                },
            ],
        }
    }


@pytest.fixture
def splunk_indexes() -> dict[str, Any]:
    return {
        "entry": [
            {
                "name": "main",
                "content": {
                    "maxTotalDataSizeMB": "500000",
                    "currentDBSizeMB": "1024",
                    "minTime": "2024-01-15T10:30:00.000-05:00",
                    "maxTime": "2025-01-30T12:00:00.000-05:00",
                    "totalEventCount": "123456",
                    "isInternal": "0",
                    "datatype": "event",
                    "homePath": "$SPLUNK_DB/defaultdb/db",
                    "coldPath": "$SPLUNK_DB/defaultdb/colddb",
                    "thawedPath": "$SPLUNK_DB/defaultdb/thaweddb",
                },
            },
            {
                "name": "_internal",
                "content": {
                    "maxTotalDataSizeMB": "500000",
                    "currentDBSizeMB": "64",
                    "minTime": "0",
                    "totalEventCount": "42",
                    "isInternal": "1",
                    "datatype": "event",
                    "homePath": "$SPLUNK_DB/_internaldb/db",
                    "coldPath": "$SPLUNK_DB/_internaldb/colddb",
                    "thawedPath": "$SPLUNK_DB/_internaldb/thaweddb",
                },
            },
        ]
    }


SENTINEL_WORKSPACE_ENDPOINT = (
    "https://management.azure.com/subscriptions/sub-123/resourceGroups/rg-soc"
    "/providers/Microsoft.OperationalInsights/workspaces/ws-sentinel"
)


@pytest.fixture
def sentinel_endpoint() -> str:
    return SENTINEL_WORKSPACE_ENDPOINT


@pytest.fixture
def sentinel_tables() -> dict[str, Any]:
    return {
        "value": [
            {
                "id": f"{SENTINEL_WORKSPACE_ENDPOINT}/tables/SecurityEvent",
                "name": "SecurityEvent",
                "type": "Microsoft.OperationalInsights/workspaces/tables",
                "properties": {
                    "retentionInDays": 90,
                    "totalRetentionInDays": 365,
                    "archiveRetentionInDays": 275,
                    "plan": "Analytics",
                    "schema": {
                        "name": "SecurityEvent",
                        "displayName": "Security Events",
                        "description": "Windows security events",
                        "columns": [
                            {"name": "TimeGenerated", "type": "datetime", "description": "Event time"},
                            {"name": "Computer", "type": "string", "description": "Host name"},
                        ],
                    },
                },
            },
            {
                "id": f"{SENTINEL_WORKSPACE_ENDPOINT}/tables/Firewall_CL",
                "name": "Firewall_CL",
                "type": "Microsoft.OperationalInsights/workspaces/tables",
                "properties": {
                    "retentionInDays": 30,
                    "totalRetentionInDays": 30,
                    "archiveRetentionInDays": 0,
                    "plan": "Basic",
                    "schema": {"name": "Firewall_CL"},
                },
            },
        ]
    }


@pytest.fixture
def qradar_log_sources() -> list[dict[str, Any]]:
    return [
        {
            "id": 62,
            "name": "Firewall @ 10.0.0.1",
            "description": "Perimeter firewall",
            "type_id": 4,
            "protocol_type_id": 0,
            "enabled": True,
            "gateway": False,
            "internal": False,
            "credibility": 5,
            "target_event_rate": 100,
            "creation_date": 1706616000000,
            "modified_date": 1706702400123,
            "last_event_time": 1738238400000,
            "status": {"last_seen": 1738238400000, "messages": ["Receiving events"]},
            "auto_discovered": False,
            "average_eps": 12,
        },
        {
            "id": 63,
            "name": "System Notification",
            "description": "",
            "type_id": 147,
            "protocol_type_id": 0,
            "enabled": False,
            "gateway": False,
            "internal": True,
            "credibility": 5,
            "target_event_rate": 100,
            "creation_date": 0,
            "modified_date": 0,
            "last_event_time": 0,
            "status": {"last_seen": 0, "messages": []},
            "auto_discovered": True,
            "average_eps": 0,
        },
    ]


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment():
    """Ensure clean environment variables for each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("LOGFIEND_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def restore_logging():
    """Remove handlers installed by configure_logging() and reset levels."""
    root = logging.getLogger()
    level = root.level
    package_level = logging.getLogger("logfiend").level

    yield

    for handler in root.handlers[:]:
        if isinstance(handler.formatter, (StructuredLogFormatter, HumanReadableFormatter)):
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("logfiend").setLevel(package_level)



# =============================================================================
# Markers Registration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast isolated unit tests")
    config.addinivalue_line("markers", "integration: Tests exercising several components with mocked HTTP")
    config.addinivalue_line("markers", "e2e: End-to-end scenarios")
