"""Contains the schema definition for requests and responses related to users
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator

from typing import Annotated, Any


class CreateUserRequest(BaseModel):
    """Describes the registration form fields. Mirrors the constraints of the `User` document."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: Annotated[str, Field(min_length=1, max_length=100, alias="fullName")]
    email: Annotated[EmailStr, Field(max_length=254)]
    user_name: Annotated[str, Field(min_length=3, max_length=50, alias="userName")]
    password: Annotated[str, Field(min_length=1)]

    # * Usernames and emails are stored lower-case so lookups can ignore case
    @field_validator("full_name", "user_name", mode="before")
    @classmethod
    def strip_whitespace(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("user_name", mode="after")
    @classmethod
    def lowercase_user_name(cls, value: str) -> str:
        return value.lower()

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(BaseModel):
    """Describes the structure of the login request. Either identifier may be used."""

    model_config = ConfigDict(populate_by_name=True)

    user_name: Annotated[str | None, Field(default=None, alias="userName")]
    email: Annotated[str | None, Field(default=None)]
    password: Annotated[str, Field(min_length=1)]


class ChangePasswordRequest(BaseModel):
    """Describes the structure of the change password request."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: Annotated[str, Field(min_length=1, alias="oldPassword")]
    new_password: Annotated[str, Field(min_length=1, alias="newPassword")]


class UpdateAccountRequest(BaseModel):
    """Describes the structure of the update account details request."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: Annotated[str, Field(alias="fullName", max_length=100)]
    email: Annotated[EmailStr, Field(max_length=254)]

    @field_validator("full_name")
    @classmethod
    def check_full_name_is_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Full name must not be blank")
        return value.strip()

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class UserInDB(BaseModel):
    """Public view of a user. Never carries the password hash or the refresh token."""

    model_config = ConfigDict(from_attributes=True)

    id: Annotated[str, Field(description="Unique identifier for the user")]
    user_name: Annotated[str, Field(serialization_alias="userName")]
    email: Annotated[str, Field()]
    full_name: Annotated[str, Field(serialization_alias="fullName")]
    avatar: Annotated[str, Field()]
    cover_image: Annotated[str, Field(default="", serialization_alias="coverImage")]
    created_at: Annotated[datetime | None, Field(default=None, serialization_alias="createdAt")]
    updated_at: Annotated[datetime | None, Field(default=None, serialization_alias="updatedAt")]

    @field_validator("id", mode="before")
    @classmethod
    def convert_object_id_to_string(cls, value: Any) -> str:
        return str(value)


class CreateUserResponse(BaseModel):
    """Describes the structure of the create user response."""

    message: Annotated[str, Field(default="User registered successfully")]
    user: UserInDB


class UserResponse(BaseModel):
    """Describes the structure of responses that return a single user."""

    message: str
    user: UserInDB


class LoginResponse(BaseModel):
    """Describes the structure of the login response."""

    message: Annotated[str, Field(default="User logged in successfully")]
    user: UserInDB
    access_token: Annotated[str, Field(serialization_alias="accessToken")]
    refresh_token: Annotated[str, Field(serialization_alias="refreshToken")]
    token_type: Annotated[str, Field(default="Bearer", serialization_alias="tokenType")]
    expires_in: Annotated[int, Field(serialization_alias="expiresIn")]


class MessageResponse(BaseModel):
    message: str
