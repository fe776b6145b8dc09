"""
Configuration validation and sanitization gate.

Two stages run before any network access:

1. validate_config() checks that the required fields are present.
2. sanitize_config() normalizes the configuration and enforces the
   endpoint security policy, returning a new ProviderConfig.

Neither stage ever logs or echoes password, token or api_key values. They
are read only to check that they are non-empty.
"""

import logging
import re
from urllib.parse import urlsplit

from logfiend.exceptions import ConfigValidationError, SanitizeError
from logfiend.models.config import AuthConfig, AuthType, ProviderConfig

logger = logging.getLogger(__name__)

ENDPOINT_PATTERN = re.compile(r"^https?://[a-zA-Z0-9\-.]+(:[0-9]+)?(/.*)?$")

# Hosts that may be reached over plain HTTP.
LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1"})


def _auth_kind(auth: AuthConfig) -> str:
    return auth.type.strip().lower()


def _missing_credentials(auth: AuthConfig, kind: str, trimmed: bool) -> str | None:
    """Return the name of the first required credential that is empty."""

    def present(value: str) -> bool:
        return bool(value.strip() if trimmed else value)

    if kind == AuthType.BASIC.value:
        if not present(auth.username):
            return "auth.username"
        if not present(auth.password.get_secret_value()):
            return "auth.password"
    elif kind == AuthType.BEARER.value:
        if not present(auth.token.get_secret_value()):
            return "auth.token"
    elif kind == AuthType.API_KEY.value:
        if not present(auth.api_key.get_secret_value()):
            return "auth.api_key"
    return None


def validate_config(config: ProviderConfig) -> None:
    """
    Check that the provider configuration is complete.

    Raises:
        ConfigValidationError: naming the first missing or invalid field.
    """
    if not config.type.strip():
        raise ConfigValidationError("type", "provider type is required")
    if not config.endpoint.strip():
        raise ConfigValidationError("endpoint", "provider endpoint is required")

    if config.auth is None:
        return

    kind = _auth_kind(config.auth)
    if kind not in {member.value for member in AuthType}:
        raise ConfigValidationError(
            "auth.type",
            f"invalid auth config: unsupported auth type: {config.auth.type!r}",
        )

    missing = _missing_credentials(config.auth, kind, trimmed=False)
    if missing:
        raise ConfigValidationError(
            missing,
            f"invalid auth config: {kind} auth requires {missing.split('.', 1)[1]}",
        )


def _sanitize_endpoint(endpoint: str) -> str:
    endpoint = endpoint.strip()
    if not endpoint:
        raise SanitizeError("endpoint", "invalid endpoint: endpoint cannot be empty")

    if not ENDPOINT_PATTERN.match(endpoint):
        raise SanitizeError(
            "endpoint",
            "invalid endpoint: endpoint must be a valid HTTP/HTTPS URL",
        )

    parts = urlsplit(endpoint)
    if parts.scheme == "http" and parts.hostname not in LOOPBACK_HOSTS:
        raise SanitizeError(
            "endpoint",
            "invalid endpoint: HTTP endpoints only allowed for localhost/127.0.0.1, "
            "use HTTPS for remote endpoints",
        )

    return endpoint


def _sanitize_auth(auth: AuthConfig) -> AuthConfig:
    kind = _auth_kind(auth)
    if kind not in {member.value for member in AuthType}:
        raise SanitizeError("auth.type", f"unsupported auth type: {auth.type!r}")

    sanitized = auth.model_copy(
        update={"type": kind, "username": auth.username.strip()}
    )

    missing = _missing_credentials(sanitized, kind, trimmed=True)
    if missing:
        raise SanitizeError(
            missing,
            f"{kind} auth requires non-empty {missing.split('.', 1)[1]}",
        )
    return sanitized


def sanitize_config(config: ProviderConfig) -> ProviderConfig:
    """
    Normalize a validated provider configuration.

    The endpoint is trimmed and must be an http(s) URL; plain HTTP is only
    accepted for loopback hosts. The provider and auth types are lower-cased
    and trimmed, the username is trimmed, and the credentials required by
    the auth type must still be non-empty once whitespace is removed.
    Sanitizing an already sanitized configuration returns an equal value.

    Raises:
        SanitizeError: if the configuration violates the policy.
    """
    update: dict = {
        "endpoint": _sanitize_endpoint(config.endpoint),
        "type": config.type.strip().lower(),
    }
    if config.auth is not None:
        update["auth"] = _sanitize_auth(config.auth)

    sanitized = config.model_copy(update=update, deep=True)
    logger.debug(
        f"Sanitized provider configuration: type={sanitized.type} "
        f"endpoint={sanitized.endpoint} "
        f"auth={sanitized.auth.type if sanitized.auth else 'none'}"
    )
    return sanitized
