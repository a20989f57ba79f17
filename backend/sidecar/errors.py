"""Error taxonomy for the sidecar.

Fatal errors (ConfigError, AuthError, and a HeartbeatFailure on the startup
probe) abort the process. Everything else is contained by the component
that raised it and only shows up in the logs.
"""


class SidecarError(Exception):
    """Base class for all sidecar failures."""


class ConfigError(SidecarError):
    """Required configuration is missing or invalid."""


class AuthError(SidecarError):
    """The server key could not be exchanged for a session."""


class HeartbeatFailure(SidecarError):
    """A heartbeat was not acknowledged by the authority."""


class RefreshError(SidecarError):
    """The allow-list could not be fetched from the authority."""


class LoadError(SidecarError):
    """The persisted allow-list snapshot could not be loaded."""
