"""
Canonical data source schema.

Every vendor integration converts its native records into DataSource, and
a run's result is wrapped in a DataSourceInventory envelope. Serialized
field names match the published output format.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer

GENERATED_BY = "logfiend"

# Fields left out of the serialized record when unset or empty.
_OMIT_WHEN_EMPTY = frozenset(
    {
        "pattern",
        "description",
        "created_at",
        "updated_at",
        "status",
        "tags",
        "metadata",
    }
)


class DataSource(BaseModel):
    """
    One inventoried object (index, index pattern, table, log source).

    Built once per vendor record during a fetch and not modified afterwards.
    The metadata map holds vendor-specific facts as received; it must never
    carry authentication material.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Vendor-native identifier")
    name: str = Field(default="", description="Object name")
    title: str = Field(default="", description="Display name, may equal name")
    type: str = Field(description="Vendor-qualified type tag, e.g. splunk-index")
    pattern: str | None = Field(default=None, description="Query or match expression")
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    status: str | None = Field(default=None, description="Free-form state")
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        return {
            key: value
            for key, value in data.items()
            if key not in _OMIT_WHEN_EMPTY or value not in (None, "", [], {})
        }


class InventoryMetadata(BaseModel):
    """Run metadata attached to an inventory."""

    timestamp: datetime
    provider: str
    version: str
    source_count: int = Field(ge=0)
    generated_by: str = GENERATED_BY


class DataSourceInventory(BaseModel):
    """The fetch result plus run metadata, serialized as the output artifact."""

    metadata: InventoryMetadata
    data_sources: list[DataSource] = Field(default_factory=list)
