"""Authentication bootstrap: session credentials and server profile."""

from sidecar.session.auth import AuthResult, authenticate
from sidecar.session.models import ServerProfile, Session

__all__ = [
    "AuthResult",
    "ServerProfile",
    "Session",
    "authenticate",
]
