"""Admission predicate consulted by the host on every identity join."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sidecar.allowlist import AllowlistCache


class AccessGate:
    """Permit everyone on a public deployment, otherwise defer to the allow-list.

    ``restricted`` is fixed at construction from the authentication result.
    A restricted gate without a cache denies everyone, the same answer an
    empty allow-list gives.
    """

    def __init__(self, *, restricted: bool, cache: AllowlistCache | None = None) -> None:
        self._restricted = restricted
        self._cache = cache

    @property
    def restricted(self) -> bool:
        return self._restricted

    def is_allowed(self, identity: str) -> bool:
        if not self._restricted:
            return True
        if self._cache is None:
            return False
        return self._cache.is_allowed(identity)
