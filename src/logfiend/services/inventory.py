"""
Inventory assembly and output.

build_inventory() wraps converted data sources in the canonical envelope;
the remaining helpers render it and write the artifact safely.
"""

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

import yaml

from logfiend.config import safe_relative_path
from logfiend.exceptions import OutputError
from logfiend.models.config import OutputFormat
from logfiend.models.datasource import (
    GENERATED_BY,
    DataSource,
    DataSourceInventory,
    InventoryMetadata,
)

logger = logging.getLogger(__name__)

OUTPUT_FILE_MODE = 0o600
OUTPUT_DIR_MODE = 0o755


def build_inventory(
    provider: str,
    version: str,
    data_sources: list[DataSource],
    timestamp: datetime | None = None,
) -> DataSourceInventory:
    """Wrap data sources in the inventory envelope. source_count always matches."""
    return DataSourceInventory(
        metadata=InventoryMetadata(
            timestamp=timestamp or datetime.now(timezone.utc),
            provider=provider,
            version=version,
            source_count=len(data_sources),
            generated_by=GENERATED_BY,
        ),
        data_sources=list(data_sources),
    )


def render_inventory(
    inventory: DataSourceInventory,
    output_format: OutputFormat = OutputFormat.JSON,
    pretty: bool = True,
) -> bytes:
    """
    Serialize the inventory.

    Raises:
        OutputError: if the inventory cannot be encoded.
    """
    try:
        document = inventory.model_dump(mode="json")
        if output_format is OutputFormat.YAML:
            text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(document, indent=2 if pretty else None)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise OutputError(f"error encoding inventory: {e}") from e
    return text.encode("utf-8")


def validate_output_path(path: str, allowed_dir: str = "output") -> Path:
    """
    Check the output path is relative and stays in the working directory.

    Raises:
        OutputError
    """
    try:
        return safe_relative_path(path, allowed_dir)
    except ValueError as e:
        raise OutputError(f"invalid output path: {e}") from e


def timestamped_path(path: Path, now: datetime | None = None) -> Path:
    """Insert a UTC timestamp before the suffix: inventory_20250130T120000Z.json."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return path.with_name(f"{path.stem}_{stamp}{path.suffix}")


def write_inventory(path: Path, data: bytes) -> None:
    """
    Write the artifact readable by its owner only.

    Raises:
        OutputError
    """
    try:
        if path.parent != Path("."):
            path.parent.mkdir(mode=OUTPUT_DIR_MODE, parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OUTPUT_FILE_MODE)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        # An existing file keeps its old mode through os.open
        os.chmod(path, OUTPUT_FILE_MODE)
    except OSError as e:
        raise OutputError(f"error writing to output file: {e}") from e
    logger.info(f"Wrote {len(data)} bytes to {path}")


def summarize_by_type(data_sources: list[DataSource]) -> dict[str, int]:
    """Count data sources per type tag."""
    return dict(Counter(source.type for source in data_sources))


def redact_endpoint(endpoint: str) -> str:
    """Hide credentials embedded in a URL before displaying it."""
    parts = urlsplit(endpoint)
    if "@" not in parts.netloc:
        return endpoint
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit(parts._replace(netloc=f"[REDACTED]@{host}"))
