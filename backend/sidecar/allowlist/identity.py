"""Allowed identities and identifier normalization."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

# Length of a normalized identifier (a UUID with its dashes removed).
IDENTITY_LENGTH = 32


def normalize_identity(value: str) -> str:
    """Strip separators and lower-case, so equal identities compare equal as strings."""
    return value.replace("-", "").strip().lower()


def is_valid_identity(normalized: str) -> bool:
    return len(normalized) == IDENTITY_LENGTH


class AllowedIdentity(BaseModel):
    """One allow-list entry as stored in the snapshot file.

    An entry without ``expires_at`` is permanent. Naive expiry timestamps
    are interpreted in local time.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="uuid")
    expires_at: datetime | None = Field(default=None, alias="expiryDate")

    def is_expired(self, now: datetime | None = None) -> bool:
        """True when the entry expired at or before ``now``."""
        if self.expires_at is None:
            return False
        if now is None:
            now = datetime.now(UTC) if self.expires_at.tzinfo is not None else datetime.now()  # noqa: DTZ005
        elif (now.tzinfo is None) != (self.expires_at.tzinfo is None):
            now = now.astimezone(UTC) if self.expires_at.tzinfo is not None else now.astimezone().replace(tzinfo=None)
        return self.expires_at <= now
