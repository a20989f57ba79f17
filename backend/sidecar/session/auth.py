"""One-shot exchange of the server key for a session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from sidecar.authority import AUTHENTICATE_ENDPOINT, AuthenticatePayload, AuthorityError
from sidecar.errors import AuthError
from sidecar.session.models import ServerProfile, Session

if TYPE_CHECKING:
    from sidecar.authority import AuthorityClient

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthResult:
    session: Session
    profile: ServerProfile


async def authenticate(client: AuthorityClient, server_key: str) -> AuthResult:
    """Exchange ``server_key`` for a session and the server profile.

    The caller is responsible for rejecting an empty key before calling.
    Every failure (network, transport status, application status, missing
    session fields) is raised as AuthError. There is no retry here.
    """
    logger.info("authenticating with authority")
    try:
        body = await client.post(AUTHENTICATE_ENDPOINT, {"serverkey": server_key})
    except AuthorityError as e:
        raise AuthError(f"Authentication failed: {e}") from e

    try:
        payload = AuthenticatePayload.model_validate(body)
    except ValidationError as e:
        raise AuthError(f"Authentication response is missing session credentials or server info: {e}") from e

    session = Session(session_key=payload.session_key, session_id=payload.session_id)
    profile = ServerProfile.from_payload(payload.server)
    logger.info("authenticated", server_id=profile.id, private=profile.is_private)
    return AuthResult(session=session, profile=profile)
