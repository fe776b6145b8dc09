"""
Configuration document models.

The provider section is what the core consumes; the output and logging
sections are read only by the CLI. Secret values are held as SecretStr so
they never show up in reprs, logs or dumps.
"""

import re
from datetime import timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class AuthType(str, Enum):
    """Supported authentication kinds."""

    BASIC = "basic"
    BEARER = "bearer"
    API_KEY = "api_key"


class OutputFormat(str, Enum):
    """Serialization format of the inventory artifact."""

    JSON = "json"
    YAML = "yaml"


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}


def parse_duration(value: Any) -> Any:
    """
    Accept durations written as "30s", "1m30s" or "500ms".

    Numbers are seconds. Anything else is handed to pydantic unchanged.
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text and _DURATION_PART.sub("", text) == "":
            total = timedelta()
            for amount, unit in _DURATION_PART.findall(text):
                total += float(amount) * _DURATION_UNITS[unit]
            return total
    return value


class AuthConfig(BaseModel):
    """Authentication settings for a provider."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    # Kept as a raw string: unknown kinds are reported by validation,
    # not rejected while parsing the document.
    type: str = Field(default="", description="basic, bearer or api_key")
    username: str = Field(default="", description="Username for basic auth")
    password: SecretStr = Field(default=SecretStr(""), description="Password for basic auth")
    token: SecretStr = Field(default=SecretStr(""), description="Token for bearer auth")
    api_key: SecretStr = Field(default=SecretStr(""), description="Key for api_key auth")


class TLSConfig(BaseModel):
    """TLS settings. Only insecure_skip_verify affects the HTTP client."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    insecure_skip_verify: bool = False
    cert_file: str | None = None
    key_file: str | None = None
    ca_file: str | None = None


class ProviderConfig(BaseModel):
    """Configuration for one vendor integration."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    type: str = Field(default="", description="Provider type, case-insensitive")
    endpoint: str = Field(default="", description="Base URL of the vendor API")
    options: dict[str, str] = Field(default_factory=dict)
    auth: AuthConfig | None = None
    tls: TLSConfig | None = None
    timeout: timedelta = Field(
        default=timedelta(seconds=30),
        description="Per-request HTTP timeout",
    )
    # Advisory only, no integration retries on its own.
    retries: int = Field(default=3, ge=0)

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> Any:
        return parse_duration(value)

    @property
    def verify_tls(self) -> bool:
        """Whether the HTTP client should verify server certificates."""
        if self.tls is not None and self.tls.enabled:
            return not self.tls.insecure_skip_verify
        return True


class OutputConfig(BaseModel):
    """Output artifact settings."""

    model_config = ConfigDict(extra="ignore")

    format: OutputFormat = OutputFormat.JSON
    pretty: bool = True
    timestamp: bool = Field(
        default=False,
        description="Insert a timestamp into the output file name",
    )


class LoggingConfig(BaseModel):
    """Logging settings from the configuration document."""

    model_config = ConfigDict(extra="ignore")

    level: str = Field(default="info", description="debug, info, warn or error")
    format: str = Field(default="text", description="text or json")


class AppConfig(BaseModel):
    """The whole configuration document."""

    model_config = ConfigDict(extra="ignore")

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
