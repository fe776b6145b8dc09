"""
LogFiend - Vendor-agnostic SIEM data source inventory.

This package connects to a log-management platform, lists the objects it
exposes as data sources and emits them in one canonical schema:

- Elasticsearch / Kibana index patterns and data views
- Splunk indexes
- Azure Sentinel (Log Analytics) tables
- IBM QRadar log sources

The resulting inventory is meant for audit and reporting.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
