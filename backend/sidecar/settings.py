"""Sidecar configuration via environment variables."""

from pathlib import Path
from typing import Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

DEFAULT_API_BASE_URL = "https://api.visoftware.dev"
DEFAULT_KICK_MESSAGE = "You are not allowed to join this private server"


class SidecarSettings(BaseSettings):
    model_config = {"env_prefix": "SIDECAR_"}

    # Long-lived server key issued by the authority. Left empty by default so
    # a missing key surfaces as a framed ConfigError at startup instead of a
    # pydantic validation traceback.
    server_key: SecretStr = SecretStr("")

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, min_length=1)
    debug: bool = False
    kick_message: str = DEFAULT_KICK_MESSAGE
    data_dir: Path = Path("backend/data/sidecar")
    log_dir: str = Field(default="backend/logs/sidecar", min_length=1)

    connect_timeout: float = Field(default=10.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)

    heartbeat_interval: float = Field(default=30.0, gt=0)
    max_retry_interval: float = Field(default=300.0, gt=0)
    stop_timeout: float = Field(default=5.0, ge=0)

    allowlist_refresh_interval: float = Field(default=900.0, gt=0)  # 15 minutes
    # Trust an empty "OK" allow-list as "allow nobody". When False an empty
    # response is refused and the previous set is kept.
    accept_empty_allowlist: bool = True

    @model_validator(mode="after")
    def _validate_retry_bounds(self) -> Self:
        if self.max_retry_interval < self.heartbeat_interval:
            raise ValueError("max_retry_interval must be greater than or equal to heartbeat_interval")
        return self

    @property
    def allowlist_cache_path(self) -> Path:
        return self.data_dir / "allowlist-cache.json"
