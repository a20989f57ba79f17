"""Operator commands for the allow-list.

Supported commands::

    reload allowlist api    fetch the allow-list from the authority now
    reload allowlist cache  reload the allow-list from the local snapshot
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from sidecar.errors import LoadError, RefreshError

if TYPE_CHECKING:
    from sidecar.context import SidecarContext

logger = structlog.get_logger()

USAGE = "Usage: reload allowlist <api|cache>"


@dataclass
class CommandResult:
    success: bool
    messages: list[str] = field(default_factory=list)


class AdminCommands:
    def __init__(self, context: SidecarContext) -> None:
        self._context = context

    async def execute(self, command: str) -> CommandResult:
        match command.split():
            case ["reload", "allowlist", "api"]:
                return await self._reload_from_api()
            case ["reload", "allowlist", "cache"]:
                return await self._reload_from_cache()
            case _:
                return CommandResult(success=False, messages=[USAGE])

    async def _reload_from_api(self) -> CommandResult:
        messages = ["Warning: Frequent API refreshes may result in rate limits."]
        try:
            count = await self._context.refresh_allowlist()
        except (RefreshError, RuntimeError) as e:
            logger.warning("manual allowlist refresh failed", error=str(e))
            messages.append(f"Failed to refresh allowlist: {e}")
            return CommandResult(success=False, messages=messages)
        messages.append(f"Successfully refreshed the allowlist cache from the authority ({count} players).")
        return CommandResult(success=True, messages=messages)

    async def _reload_from_cache(self) -> CommandResult:
        messages = ["Warning: Cache will be overwritten on next API refresh."]
        try:
            count = await self._context.reload_allowlist()
        except (LoadError, RuntimeError) as e:
            logger.warning("manual allowlist reload failed", error=str(e))
            messages.append(f"Failed to reload allowlist from cache: {e}")
            return CommandResult(success=False, messages=messages)
        path = self._context.settings.allowlist_cache_path
        messages.append(f"Successfully reloaded allowlist from local cache at {path} ({count} players).")
        return CommandResult(success=True, messages=messages)
