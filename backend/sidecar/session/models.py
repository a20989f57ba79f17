"""Session credentials and the server profile returned by authentication."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from sidecar.authority.types import ServerInfoPayload


@dataclass(frozen=True)
class Session:
    """Short-lived credential pair. Lives for the process lifetime, never persisted."""

    session_key: str
    session_id: str

    def headers(self) -> dict[str, str]:
        return {"sessionkey": self.session_key, "sessionid": self.session_id}

    def __repr__(self) -> str:
        return f"Session(session_id={self.session_id!r})"


class ServerProfile(BaseModel):
    """Server metadata owned by the process.

    Created once after authentication. ``player_count`` and
    ``last_heartbeat_at`` are updated in place by the heartbeat scheduler.
    """

    id: str
    name: str
    description: str = ""
    owner_id: str
    owner_name: str
    language: str
    is_private: bool
    player_count: int = 0
    last_heartbeat_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_payload(cls, payload: ServerInfoPayload) -> ServerProfile:
        return cls(
            id=payload.id,
            name=payload.name,
            description=payload.description,
            owner_id=payload.owner_id,
            owner_name=payload.owner_name,
            language=payload.language,
            is_private=payload.is_private,
        )

    def record_heartbeat(self, player_count: int, at: datetime | None = None) -> None:
        self.player_count = player_count
        self.last_heartbeat_at = at or datetime.now(UTC)
