"""Wire models for authority success payloads."""

from pydantic import BaseModel, ConfigDict, Field


class ServerInfoPayload(BaseModel):
    """The ``server`` object returned by the authenticate endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    is_private: bool = Field(alias="private")
    owner_id: str = Field(alias="owner_uuid")
    owner_name: str
    language: str = Field(alias="lang")


class AuthenticatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_key: str = Field(alias="sessionKey", min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)
    server: ServerInfoPayload


class AllowlistPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allowed_users: list[str] = Field(alias="allowedUsers")
