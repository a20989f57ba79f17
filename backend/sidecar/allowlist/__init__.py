"""Allow-list cache for restricted deployments."""

from sidecar.allowlist.cache import AllowlistCache
from sidecar.allowlist.identity import IDENTITY_LENGTH, AllowedIdentity, is_valid_identity, normalize_identity
from sidecar.allowlist.snapshot import AllowlistSnapshot

__all__ = [
    "IDENTITY_LENGTH",
    "AllowedIdentity",
    "AllowlistCache",
    "AllowlistSnapshot",
    "is_valid_identity",
    "normalize_identity",
]
