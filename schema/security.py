"""Defines schema of requests and responses related to security"""

from pydantic import BaseModel, ConfigDict, Field

from typing import Annotated


class TokenPair(BaseModel):
    """Model representing both access and refresh tokens."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: Annotated[str, Field(serialization_alias="accessToken")]
    refresh_token: Annotated[str, Field(serialization_alias="refreshToken")]
    token_type: Annotated[str, Field(default="Bearer", serialization_alias="tokenType")]
    expires_in: Annotated[int, Field(serialization_alias="expiresIn")]  # Access token expiry in seconds


class RefreshTokenRequest(BaseModel):
    """Model for refresh token request. Used when the client cannot send cookies."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Annotated[str | None, Field(default=None, alias="refreshToken")]


class TokenPayload(BaseModel):
    """Model representing the verified claims of a token."""

    subject_id: str
    issued_at: int  # Unix timestamp
    expires_at: int  # Unix timestamp
    jti: str | None = None  # Per-token nonce, keeps tokens issued in the same second distinct
