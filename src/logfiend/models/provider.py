"""Capability descriptor shared by all vendor integrations."""

from pydantic import BaseModel, ConfigDict, Field


class ProviderCapabilities(BaseModel):
    """Static description of what a vendor integration supports."""

    model_config = ConfigDict(frozen=True)

    supports_real_time_queries: bool = False
    supports_historical_data: bool = False
    supported_data_types: list[str] = Field(
        default_factory=list,
        description="Type tags this integration emits",
    )
    requires_authentication: bool = False
