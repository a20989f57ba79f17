"""Heartbeat scheduling: liveness reports, backoff retries, recovery detection."""

from sidecar.heartbeat.backoff import RetryBackoff
from sidecar.heartbeat.scheduler import (
    CONNECTION_LOST_MESSAGE,
    CONNECTION_RESTORED_MESSAGE,
    HeartbeatScheduler,
    HeartbeatState,
    PlayerCountSource,
)

__all__ = [
    "CONNECTION_LOST_MESSAGE",
    "CONNECTION_RESTORED_MESSAGE",
    "HeartbeatScheduler",
    "HeartbeatState",
    "PlayerCountSource",
    "RetryBackoff",
]
