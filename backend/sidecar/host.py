"""Thin adapter translating host server events into sidecar calls."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sidecar.context import SidecarContext
    from sidecar.heartbeat import PlayerCountSource

logger = structlog.get_logger()


class HostAdapter:
    def __init__(self, context: SidecarContext) -> None:
        self._context = context

    async def on_server_starting(self, player_count_source: PlayerCountSource, *, online_mode: bool = True) -> None:
        self._context.set_player_count_source(player_count_source)
        await self._context.start(online_mode=online_mode)

    async def on_server_stopping(self) -> None:
        await self._context.stop()

    def on_player_join(self, identity: str, name: str) -> str | None:
        """Return the kick message when ``identity`` may not join, else None."""
        if not self._context.is_restricted:
            return None
        if not self._context.is_allowed(identity):
            logger.warning("access denied, not in allowlist", player=name, identity=identity)
            return self._context.settings.kick_message
        logger.info("access granted, in allowlist", player=name, identity=identity)
        return None
