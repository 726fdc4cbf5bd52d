"""Application configuration loaded from the environment.

Token, database and Cloudinary settings are read here. Components receive the
resulting settings objects explicitly instead of calling `os.getenv` themselves.
"""
import os

from datetime import timedelta
from functools import lru_cache

from dotenv import load_dotenv

from pydantic import BaseModel, Field, model_validator
from typing import Annotated, Self

from models.helpers import TokenClass

load_dotenv()


class TokenSettings(BaseModel):
    """Signing secrets and lifetimes for both token classes."""

    access_secret: Annotated[str, Field(min_length=1)]
    refresh_secret: Annotated[str, Field(min_length=1)]
    access_ttl: Annotated[timedelta, Field(default=timedelta(minutes=15))]
    refresh_ttl: Annotated[timedelta, Field(default=timedelta(days=10))]
    algorithm: Annotated[str, Field(default="HS256")]

    # * An access token must never verify as a refresh token
    @model_validator(mode="after")
    def check_secrets_are_distinct(self) -> Self:
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh token secrets must differ")
        return self

    def secret_for(self, token_class: TokenClass) -> str:
        if token_class == TokenClass.ACCESS:
            return self.access_secret
        return self.refresh_secret

    def ttl_for(self, token_class: TokenClass) -> timedelta:
        if token_class == TokenClass.ACCESS:
            return self.access_ttl
        return self.refresh_ttl


class DatabaseSettings(BaseModel):
    connection_string: Annotated[str, Field(default="mongodb://localhost:27017")]
    name: Annotated[str, Field(default="videotube")]


class CloudinarySettings(BaseModel):
    cloud_name: Annotated[str | None, Field(default=None)]
    api_key: Annotated[str | None, Field(default=None)]
    api_secret: Annotated[str | None, Field(default=None)]


class Settings(BaseModel):
    """Top level settings object handed to the application at startup."""

    tokens: TokenSettings
    database: DatabaseSettings
    cloudinary: CloudinarySettings
    cookie_secure: Annotated[bool, Field(default=True)]


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@lru_cache
def get_settings() -> Settings:
    """Build the application settings from environment variables.

    Raises:
        pydantic.ValidationError: Raised when a token secret is missing or both
            token classes share the same secret.

    Returns:
        Settings: The validated settings.
    """
    tokens = TokenSettings(
        access_secret=os.getenv("ACCESS_TOKEN_SECRET", ""),
        refresh_secret=os.getenv("REFRESH_TOKEN_SECRET", ""),
        access_ttl=timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))),
        refresh_ttl=timedelta(days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "10"))),
        algorithm=os.getenv("TOKEN_ALGORITHM", "HS256"),
    )

    return Settings(
        tokens=tokens,
        database=DatabaseSettings(
            connection_string=os.getenv("DATABASE_CONNECTION_STRING", "mongodb://localhost:27017"),
            name=os.getenv("DATABASE_NAME", "videotube"),
        ),
        cloudinary=CloudinarySettings(
            cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            api_key=os.getenv("CLOUDINARY_API_KEY"),
            api_secret=os.getenv("CLOUDINARY_API_SECRET"),
        ),
        cookie_secure=_env_flag("COOKIE_SECURE", True),
    )
