"""
Services for LogFiend.

These services handle:
- Configuration validation and sanitization
- Inventory collection from a provider under one deadline
- Inventory assembly, rendering and safe output
"""

from logfiend.services.collector import InventoryCollector
from logfiend.services.inventory import (
    build_inventory,
    redact_endpoint,
    render_inventory,
    summarize_by_type,
    write_inventory,
)
from logfiend.services.sanitizer import sanitize_config, validate_config

__all__ = [
    "InventoryCollector",
    "build_inventory",
    "redact_endpoint",
    "render_inventory",
    "sanitize_config",
    "summarize_by_type",
    "validate_config",
    "write_inventory",
]
