"""Top-level process context owning the session and both schedulers.

``SidecarContext.start`` runs the whole bootstrap: configuration check,
authentication, server info banner, allow-list cache, heartbeat probe. Any
fatal failure is logged as a framed critical block and re-raised so the
host can exit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.logging import render_banner
from sidecar.allowlist import AllowlistCache, AllowlistSnapshot
from sidecar.authority import AuthorityClient
from sidecar.errors import AuthError, ConfigError, HeartbeatFailure
from sidecar.gate import AccessGate
from sidecar.heartbeat import HeartbeatScheduler
from sidecar.session import authenticate

if TYPE_CHECKING:
    from sidecar.heartbeat import PlayerCountSource
    from sidecar.session import ServerProfile, Session
    from sidecar.settings import SidecarSettings

logger = structlog.get_logger()

_REMEDIATION_HINTS: dict[type[Exception], str] = {
    ConfigError: "Please set your server key (SIDECAR_SERVER_KEY) and restart.",
    AuthError: "Please verify your server key and network connection.",
    HeartbeatFailure: "Please check your network connection and server status.",
}


class SidecarContext:
    """Own the authority client, session, heartbeat scheduler and allow-list cache."""

    def __init__(self, settings: SidecarSettings, *, client: AuthorityClient | None = None) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._session: Session | None = None
        self._profile: ServerProfile | None = None
        self._cache: AllowlistCache | None = None
        self._heartbeat: HeartbeatScheduler | None = None
        self._gate = AccessGate(restricted=False)
        self._player_count_source: PlayerCountSource | None = None

    @property
    def settings(self) -> SidecarSettings:
        return self._settings

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def profile(self) -> ServerProfile | None:
        return self._profile

    @property
    def cache(self) -> AllowlistCache | None:
        return self._cache

    @property
    def heartbeat(self) -> HeartbeatScheduler | None:
        return self._heartbeat

    @property
    def gate(self) -> AccessGate:
        return self._gate

    @property
    def is_restricted(self) -> bool:
        return self._gate.restricted

    def is_allowed(self, identity: str) -> bool:
        return self._gate.is_allowed(identity)

    def set_player_count_source(self, source: PlayerCountSource) -> None:
        """Install the host's player-count callable, now or for the scheduler created later."""
        self._player_count_source = source
        if self._heartbeat is not None:
            self._heartbeat.set_player_count_source(source)

    async def start(self, *, online_mode: bool = True) -> None:
        """Authenticate and start both schedulers.

        Raises ConfigError, AuthError or HeartbeatFailure on a fatal startup
        failure, after logging the critical block. Resources are released
        whatever the failure.
        """
        try:
            await self._start(online_mode=online_mode)
        except (ConfigError, AuthError, HeartbeatFailure) as e:
            self._log_fatal(e)
            await self.stop()
            raise
        except BaseException:
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the allow-list refresh and the heartbeat, then close the client. Idempotent."""
        if self._cache is not None:
            await self._cache.stop()
        if self._heartbeat is not None:
            await self._heartbeat.stop()
        if self._client is not None and self._owns_client:
            client, self._client = self._client, None
            await client.aclose()

    async def refresh_allowlist(self) -> int:
        return await self._require_cache().refresh()

    async def reload_allowlist(self) -> int:
        return await self._require_cache().reload_from_persisted()

    async def _start(self, *, online_mode: bool) -> None:
        server_key = self._settings.server_key.get_secret_value().strip()
        if not server_key:
            raise ConfigError("Server key is not configured!")

        if self._client is None:
            self._client = AuthorityClient(
                self._settings.api_base_url,
                connect_timeout=self._settings.connect_timeout,
                request_timeout=self._settings.request_timeout,
            )

        result = await authenticate(self._client, server_key)
        self._session = result.session
        self._profile = result.profile
        self._log_server_info(result.profile)

        restricted = result.profile.is_private
        if restricted and not online_mode:
            self._log_offline_mode_warning()

        self._cache = AllowlistCache(
            self._client,
            result.session,
            AllowlistSnapshot(self._settings.allowlist_cache_path),
            refresh_interval=self._settings.allowlist_refresh_interval,
            accept_empty=self._settings.accept_empty_allowlist,
        )
        self._gate = AccessGate(restricted=restricted, cache=self._cache)
        await self._cache.start(restricted=restricted)

        self._heartbeat = HeartbeatScheduler(
            self._client,
            result.session,
            result.profile,
            interval=self._settings.heartbeat_interval,
            max_retry_interval=self._settings.max_retry_interval,
            stop_timeout=self._settings.stop_timeout,
            player_count_source=self._player_count_source,
        )
        await self._heartbeat.start()
        logger.info("sidecar services initialized", server_id=result.profile.id, restricted=restricted)

    def _require_cache(self) -> AllowlistCache:
        if self._cache is None:
            raise RuntimeError("Allowlist cache has not been initialized")
        return self._cache

    def _log_server_info(self, profile: ServerProfile) -> None:
        lines = [f"Server Name: {profile.name}"]
        if profile.description:
            lines.append(profile.description)
        lines += [
            f"Owner: {profile.owner_name}",
            f"Language: {profile.language}",
            f"Type: {'Private' if profile.is_private else 'Public'}",
        ]
        logger.info(render_banner("SIDECAR SERVER INFO", lines))

    def _log_offline_mode_warning(self) -> None:
        logger.warning(
            render_banner(
                "SIDECAR WARNING",
                [
                    "Server is running in offline mode!",
                    "The allowlist will not provide effective access control",
                    "as players can join with any identity in offline mode.",
                    "",
                    "Consider enabling online mode for proper player",
                    "authentication and allowlist control.",
                ],
            ),
        )

    def _log_fatal(self, error: Exception) -> None:
        hint = _REMEDIATION_HINTS.get(type(error), "")
        lines = [str(error)]
        if hint:
            lines.append(hint)
        lines += ["", "THE SERVER WILL NOW SHUT DOWN"]
        logger.critical(render_banner("SIDECAR CRITICAL ERROR", lines))
