"""Shared fixtures for sidecar tests."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from sidecar.allowlist import AllowlistCache, AllowlistSnapshot
from sidecar.authority import AuthorityClient
from sidecar.session import ServerProfile, Session
from sidecar.settings import SidecarSettings

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def session() -> Session:
    return Session(session_key="sess-key", session_id="sess-id")


@pytest.fixture
def profile() -> ServerProfile:
    return ServerProfile(
        id="srv-1",
        name="Test Server",
        owner_id="0f0f0f0f-0000-4000-8000-000000000001",
        owner_name="owner",
        language="en",
        is_private=True,
    )


@pytest.fixture
def authority() -> AsyncMock:
    """An AuthorityClient stand-in; set ``post``/``get`` return values or side effects per test."""
    return AsyncMock(spec=AuthorityClient)


@pytest.fixture
def snapshot(tmp_path: Path) -> AllowlistSnapshot:
    return AllowlistSnapshot(tmp_path / "allowlist-cache.json")


@pytest.fixture
def cache(authority: AsyncMock, session: Session, snapshot: AllowlistSnapshot) -> AllowlistCache:
    return AllowlistCache(authority, session, snapshot, refresh_interval=3600)


@pytest.fixture
def settings(tmp_path: Path) -> SidecarSettings:
    return SidecarSettings(
        server_key="test-server-key",
        api_base_url="http://authority.test",
        data_dir=tmp_path / "data",
        heartbeat_interval=3600,
        max_retry_interval=3600,
        allowlist_refresh_interval=3600,
        stop_timeout=0.1,
    )
