"""Canned authority payloads and identities for sidecar tests."""

from typing import Any

import httpx

ALICE = "abcd1234-0000-4000-8000-00000000a11c"
BOB = "ef567890-0000-4000-8000-000000000b0b"
MALLORY = "ffffffff-ffff-4fff-8fff-ffffffffffff"


def server_info(*, private: bool = True, **overrides: Any) -> dict[str, Any]:
    info = {
        "id": "srv-1",
        "name": "Test Server",
        "description": "A server used in tests",
        "private": private,
        "owner_uuid": "0f0f0f0f-0000-4000-8000-000000000001",
        "owner_name": "owner",
        "lang": "en",
    }
    info.update(overrides)
    return info


def auth_body(*, private: bool = True) -> dict[str, Any]:
    return {"status": "OK", "sessionKey": "sess-key", "sessionId": "sess-id", "server": server_info(private=private)}


def allowlist_body(*identities: str) -> dict[str, Any]:
    return {"status": "OK", "allowedUsers": list(identities)}


def json_response(body: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=body)
