"""
Vendor integrations for LogFiend.

Each integration implements the Provider protocol:
- Elasticsearch / Kibana (index patterns and data views)
- Splunk (indexes)
- Azure Sentinel (Log Analytics tables)
- IBM QRadar (log sources)
"""

from logfiend.providers.base import Provider
from logfiend.providers.elasticsearch import ElasticsearchProvider
from logfiend.providers.qradar import QRadarProvider
from logfiend.providers.registry import (
    ProviderFactory,
    ProviderRegistry,
    ProviderType,
    create_default_registry,
)
from logfiend.providers.sentinel import SentinelProvider
from logfiend.providers.splunk import SplunkProvider

__all__ = [
    "ElasticsearchProvider",
    "Provider",
    "ProviderFactory",
    "ProviderRegistry",
    "ProviderType",
    "QRadarProvider",
    "SentinelProvider",
    "SplunkProvider",
    "create_default_registry",
]
