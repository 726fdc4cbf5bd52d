from datetime import datetime, timezone

from pydantic import Field, EmailStr, field_serializer, field_validator
from typing import Annotated, Optional

from beanie import Document, Indexed, PydanticObjectId

from security.helpers import verify_password


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(Document):
    """A registered account.

    `refresh_token` holds the only refresh token that is currently accepted for
    this account. Overwriting it rotates the session, clearing it logs out.
    """
    user_name: Annotated[str, Indexed(unique=True), Field(min_length=3, max_length=50, serialization_alias="userName")]
    email: Annotated[EmailStr, Indexed(unique=True), Field(max_length=254)]
    full_name: Annotated[str, Field(min_length=1, max_length=100, serialization_alias="fullName")]
    avatar: Annotated[str, Field()]  # Cloudinary URL
    cover_image: Annotated[str, Field(default="", serialization_alias="coverImage")]  # Cloudinary URL
    password: Annotated[str, Field()]  # bcrypt hash, never the plain text password
    refresh_token: Annotated[Optional[str], Field(default=None, serialization_alias="refreshToken")]
    created_at: Annotated[datetime, Field(default_factory=_utc_now, serialization_alias="createdAt")]
    updated_at: Annotated[datetime, Field(default_factory=_utc_now, serialization_alias="updatedAt")]

    # * Lookups lower-case identifiers, so both are stored lower-case
    @field_validator("user_name", "email", mode="after")
    @classmethod
    def lowercase_identifier(cls, value: str) -> str:
        return value.lower()

    @field_serializer("id")
    def convert_pydantic_object_id_to_string(self, id: PydanticObjectId):
        return str(id)

    def is_password_correct(self, password: str) -> bool:
        """Checks `password` against the stored hash."""
        return verify_password(password, self.password)

    class Settings:
        name = "users"
