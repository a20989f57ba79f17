"""Fixed-period liveness reporting to the authority.

The scheduler moves through IDLE -> PROBING -> STEADY <-> DEGRADED -> STOPPED.
The startup probe is the only heartbeat whose failure is fatal. After that,
failures flip the scheduler into DEGRADED (announced once per episode) and
schedule an independent retry with exponential backoff; the regular tick
keeps running alongside the retries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from shared.logging import render_banner
from sidecar.authority import HEARTBEAT_ENDPOINT, AuthorityError
from sidecar.errors import HeartbeatFailure
from sidecar.heartbeat.backoff import RetryBackoff

if TYPE_CHECKING:
    from sidecar.authority import AuthorityClient
    from sidecar.session import ServerProfile, Session

logger = structlog.get_logger()

# Callable returning the host's current player count. Read at send time
# with no synchronization; the host may swap it at any point.
PlayerCountSource = Callable[[], int]

CONNECTION_LOST_MESSAGE = "Connection to the authority service has been lost!"
CONNECTION_RESTORED_MESSAGE = "Connection to the authority service has been restored!"


class HeartbeatState(StrEnum):
    IDLE = "idle"
    PROBING = "probing"
    STEADY = "steady"
    DEGRADED = "degraded"
    STOPPED = "stopped"


def _no_players() -> int:
    return 0


class HeartbeatScheduler:
    """Send periodic heartbeats carrying the current player count.

    At most one heartbeat is in flight at a time; the periodic tick and the
    backoff retries share a lock around the outbound call.
    """

    def __init__(
        self,
        client: AuthorityClient,
        session: Session,
        profile: ServerProfile,
        *,
        interval: float = 30.0,
        max_retry_interval: float = 300.0,
        stop_timeout: float = 5.0,
        player_count_source: PlayerCountSource | None = None,
    ) -> None:
        self._client = client
        self._session = session
        self._profile = profile
        self._interval = interval
        self._stop_timeout = stop_timeout
        self._player_count_source: PlayerCountSource = player_count_source or _no_players
        self._backoff = RetryBackoff(interval, max_retry_interval)

        self._state = HeartbeatState.IDLE
        self._connection_lost = False  # edge-triggered: set on first failure, cleared on first success
        self._send_lock = asyncio.Lock()
        self._inflight: asyncio.Task[object] | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._retry_tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> HeartbeatState:
        return self._state

    @property
    def backoff(self) -> RetryBackoff:
        return self._backoff

    @property
    def pending_retries(self) -> int:
        return sum(1 for task in self._retry_tasks if not task.done())

    def set_player_count_source(self, source: PlayerCountSource) -> None:
        self._player_count_source = source

    async def start(self, initial_player_count: int | None = None) -> None:
        """Probe the authority once, then arm the periodic heartbeat.

        Without ``initial_player_count`` the probe reads the player-count source.

        Raises HeartbeatFailure if the probe fails: the session is unusable
        and the caller should abort startup.
        """
        if self._state is not HeartbeatState.IDLE:
            raise RuntimeError(f"Heartbeat scheduler cannot start from state {self._state}")

        self._state = HeartbeatState.PROBING
        logger.info("testing connection with heartbeat")
        try:
            await self._send(self._read_player_count() if initial_player_count is None else initial_player_count)
        except HeartbeatFailure as e:
            self._state = HeartbeatState.STOPPED
            raise HeartbeatFailure(f"Initial heartbeat test failed: {e}") from e

        if self._state is HeartbeatState.STOPPED:
            # stop() raced with the probe
            return

        self._state = HeartbeatState.STEADY
        self._loop_task = asyncio.create_task(self._run_loop(), name="heartbeat-loop")
        logger.info("heartbeat scheduler started", interval=self._interval)

    async def stop(self) -> None:
        """Stop all heartbeat activity. Safe to call more than once.

        Pending sleeps and retries are cancelled right away. A heartbeat that
        is already on the wire gets up to ``stop_timeout`` seconds to finish.
        """
        if self._state is HeartbeatState.STOPPED and self._loop_task is None and not self._retry_tasks:
            return
        self._state = HeartbeatState.STOPPED

        tasks = [t for t in (self._loop_task, *self._retry_tasks) if t is not None and not t.done()]
        self._loop_task = None
        self._retry_tasks.clear()

        inflight = self._inflight
        for task in tasks:
            if task is not inflight:
                task.cancel()

        if inflight is not None and inflight in tasks:
            _, pending = await asyncio.wait({inflight}, timeout=self._stop_timeout)
            for task in pending:
                logger.warning("in-flight heartbeat did not finish in time, cancelling")
                task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("heartbeat scheduler stopped")

    async def tick(self) -> None:
        """Run one fixed-period heartbeat cycle."""
        if self._state is HeartbeatState.STOPPED:
            return
        try:
            await self._send(self._read_player_count())
        except HeartbeatFailure as e:
            self._on_failure(e)
        except Exception:  # noqa: BLE001 - the heartbeat loop must outlive any single failure
            logger.exception("unexpected error during heartbeat")
        else:
            self._on_success()

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while self._state is not HeartbeatState.STOPPED:
            next_run += self._interval
            delay = next_run - loop.time()
            if delay < 0:
                # The last tick overran the period: coalesce the missed ticks.
                next_run = loop.time()
                delay = 0
            await asyncio.sleep(delay)
            await self.tick()

    async def _retry(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._state is HeartbeatState.STOPPED:
            return
        try:
            await self._send(self._read_player_count())
        except HeartbeatFailure as e:
            logger.debug("heartbeat retry failed", error=str(e))
        except Exception:  # noqa: BLE001
            logger.exception("unexpected error during heartbeat retry")
        else:
            self._on_success()

    async def _send(self, player_count: int) -> None:
        headers = {**self._session.headers(), "playercount": str(player_count)}
        async with self._send_lock:
            self._inflight = asyncio.current_task()
            try:
                logger.debug("sending heartbeat", player_count=player_count)
                await self._client.post(HEARTBEAT_ENDPOINT, headers)
            except AuthorityError as e:
                raise HeartbeatFailure(f"Failed to send heartbeat: {e}") from e
            finally:
                self._inflight = None
        self._profile.record_heartbeat(player_count)
        logger.debug("heartbeat successful", player_count=player_count)

    def _read_player_count(self) -> int:
        try:
            return int(self._player_count_source())
        except Exception:  # noqa: BLE001 - host callback, must not break the heartbeat
            logger.exception("player count source failed, reusing last known count")
            return self._profile.player_count

    def _on_success(self) -> None:
        self._backoff.reset()
        if self._connection_lost:
            self._connection_lost = False
            logger.info(
                render_banner(
                    "SIDECAR NOTICE",
                    [CONNECTION_RESTORED_MESSAGE, "", "Heartbeat service resumed normal operation."],
                ),
            )
        if self._state is HeartbeatState.DEGRADED:
            self._state = HeartbeatState.STEADY

    def _on_failure(self, error: HeartbeatFailure) -> None:
        logger.debug("heartbeat failed", error=str(error))
        if self._state is HeartbeatState.STOPPED:
            return
        if not self._connection_lost:
            self._connection_lost = True
            logger.warning(
                render_banner(
                    "SIDECAR WARNING",
                    [
                        CONNECTION_LOST_MESSAGE,
                        "",
                        "The server will continue to run, but some features may be",
                        "unavailable until the connection is restored.",
                        "",
                        "Attempting to reconnect...",
                    ],
                ),
                error=str(error),
            )
        if self._state is HeartbeatState.STEADY:
            self._state = HeartbeatState.DEGRADED

        delay = self._backoff.next_interval()
        task = asyncio.create_task(self._retry(delay), name="heartbeat-retry")
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)
        logger.debug("heartbeat retry scheduled", delay=delay)
