"""Client and wire models for the remote authority service."""

from sidecar.authority.client import (
    ALLOWLIST_ENDPOINT,
    AUTHENTICATE_ENDPOINT,
    HEARTBEAT_ENDPOINT,
    AuthorityClient,
    AuthorityError,
)
from sidecar.authority.types import AllowlistPayload, AuthenticatePayload, ServerInfoPayload

__all__ = [
    "ALLOWLIST_ENDPOINT",
    "AUTHENTICATE_ENDPOINT",
    "HEARTBEAT_ENDPOINT",
    "AllowlistPayload",
    "AuthenticatePayload",
    "AuthorityClient",
    "AuthorityError",
    "ServerInfoPayload",
]
