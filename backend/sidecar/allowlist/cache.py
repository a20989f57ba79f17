"""In-memory allow-list backed by a persisted snapshot.

The allowed set is an immutable frozenset swapped by reference, so
``is_allowed`` never takes a lock and always sees either the old complete
set or the new complete set. Writers (the periodic refresh, a manual refresh,
a manual reload) are serialized by ``_write_lock``; the network fetch happens
before the lock is taken. Snapshot file I/O runs in a worker thread while the
lock is held.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from sidecar.allowlist.identity import AllowedIdentity, is_valid_identity, normalize_identity
from sidecar.authority import ALLOWLIST_ENDPOINT, AllowlistPayload, AuthorityError
from sidecar.errors import LoadError, RefreshError

if TYPE_CHECKING:
    from sidecar.allowlist.snapshot import AllowlistSnapshot
    from sidecar.authority import AuthorityClient
    from sidecar.session import Session

logger = structlog.get_logger()


class AllowlistCache:
    """Cache of identities permitted on a restricted deployment."""

    def __init__(
        self,
        client: AuthorityClient,
        session: Session,
        snapshot: AllowlistSnapshot,
        *,
        refresh_interval: float = 900.0,
        accept_empty: bool = True,
    ) -> None:
        self._client = client
        self._session = session
        self._snapshot = snapshot
        self._refresh_interval = refresh_interval
        self._accept_empty = accept_empty

        self._allowed: frozenset[str] = frozenset()
        self._restricted = False
        self._write_lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def restricted(self) -> bool:
        return self._restricted

    @property
    def size(self) -> int:
        return len(self._allowed)

    @property
    def snapshot(self) -> AllowlistSnapshot:
        return self._snapshot

    def is_allowed(self, identity: str) -> bool:
        """Check ``identity`` against the allow-list (always True when unrestricted)."""
        if not self._restricted:
            return True
        normalized = normalize_identity(identity)
        allowed = normalized in self._allowed
        logger.debug("access check", identity=identity, normalized=normalized, granted=allowed)
        return allowed

    async def refresh(self) -> int:
        """Replace the allow-list with the authority's current one.

        The new set is persisted and swapped in only after the fetch fully
        succeeded. On failure the current set and snapshot are untouched and
        RefreshError is raised. Returns the number of allowed identities.
        """
        if not self._restricted:
            raise RefreshError("Cannot refresh allowlist on a public server")

        try:
            body = await self._client.get(ALLOWLIST_ENDPOINT, self._session.headers())
        except AuthorityError as e:
            raise RefreshError(f"Failed to refresh allowlist: {e}") from e

        try:
            payload = AllowlistPayload.model_validate(body)
        except ValidationError as e:
            raise RefreshError(f"Failed to refresh allowlist: malformed response ({e.error_count()} errors)") from e

        if not payload.allowed_users and not self._accept_empty:
            raise RefreshError("Authority returned an empty allowlist; keeping the current one")

        allowed = frozenset(normalize_identity(uuid) for uuid in payload.allowed_users)
        for identity in allowed:
            if not is_valid_identity(identity):
                # Kept in memory and in the snapshot, but dropped by the next reload.
                logger.warning("invalid identity in authority allowlist (wrong length)", identity=identity)
        entries = [AllowedIdentity(id=uuid) for uuid in payload.allowed_users]

        async with self._write_lock:
            self._allowed = allowed
            try:
                await asyncio.to_thread(self._snapshot.save, entries)
            except OSError:
                # The atomic write leaves the previous snapshot in place.
                logger.exception("error saving allowlist cache", path=str(self._snapshot.path))

        logger.info("successfully refreshed allowlist cache", allowed_players=len(allowed))
        return len(allowed)

    async def reload_from_persisted(self) -> int:
        """Replace the allow-list with the persisted snapshot. Never touches the network.

        Entries with a malformed identifier or an expiry at or before now are
        dropped. Raises LoadError, leaving the current set untouched, when the
        snapshot cannot be read. Returns the number of allowed identities.
        """
        async with self._write_lock:
            entries = await asyncio.to_thread(self._snapshot.load)
            allowed: set[str] = set()
            for entry in entries:
                identity = normalize_identity(entry.id)
                if not is_valid_identity(identity):
                    logger.warning("invalid identity in allowlist cache (wrong length)", identity=identity)
                    continue
                if entry.is_expired():
                    logger.debug("skipping expired allowlist entry", identity=identity, expires_at=entry.expires_at)
                    continue
                allowed.add(identity)
            self._allowed = frozenset(allowed)

        logger.info("loaded allowed players from cache", allowed_players=len(allowed))
        return len(allowed)

    async def start(self, *, restricted: bool) -> None:
        """Load the snapshot and begin periodic refreshes on a restricted deployment.

        A snapshot that fails to load is logged and the cache starts empty,
        which denies everyone until the first successful refresh.
        """
        if self._refresh_task is not None:
            raise RuntimeError("Allowlist cache is already started")

        self._restricted = restricted
        if not restricted:
            logger.info("public server, allowlist checks disabled")
            return

        try:
            await self.reload_from_persisted()
        except LoadError as e:
            logger.error("failed to load allowlist cache, starting with an empty allowlist", error=str(e))

        self._refresh_task = asyncio.create_task(self._refresh_loop(), name="allowlist-refresh")
        logger.info("allowlist refresh started", interval=self._refresh_interval)

    async def stop(self) -> None:
        """Cancel the periodic refresh. Safe to call more than once."""
        task = self._refresh_task
        self._refresh_task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("allowlist refresh stopped")

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except RefreshError as e:
                logger.error("failed to refresh allowlist", error=str(e))
            except Exception:  # noqa: BLE001 - the refresh loop must outlive any single failure
                logger.exception("unexpected error while refreshing allowlist")
            await asyncio.sleep(self._refresh_interval)
