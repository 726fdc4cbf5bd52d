""" User router for registration and profile endpoints.
"""

import logfire

from fastapi import APIRouter, status, Depends, Form, UploadFile, File
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from pydantic import ValidationError

from typing import Annotated

from config import Settings, get_settings

from controllers.file_upload import upload_file_to_cloudinary, validate_image

from models.helpers import ImageKind

from security.dependencies import get_current_user
from security.errors import ServiceError
from security.helpers import get_password_hash

from services.accounts import Account, AccountStore, get_account_store

from schema.users import (
    ChangePasswordRequest,
    CreateUserRequest,
    CreateUserResponse,
    MessageResponse,
    UpdateAccountRequest,
    UserInDB,
    UserResponse,
)

router = APIRouter(
    prefix="/api/v1/users",
    tags=["Users"],
)


def _error_response(error: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


async def _store_image(
    image: UploadFile, kind: ImageKind, settings: Settings
) -> tuple[str | None, JSONResponse | None]:
    """Validates and uploads a profile image, returning its URL or an error response."""
    if error := await validate_image(image):
        return None, error

    status_code, upload = await upload_file_to_cloudinary(image, kind, settings.cloudinary)
    if upload is None:
        logfire.error(f"Upload of {kind.value} failed with status {status_code}")
        return None, JSONResponse(
            status_code=status_code if status_code >= 500 else status.HTTP_502_BAD_GATEWAY,
            content={"detail": f"Error while uploading the {kind.value.replace('_', ' ')} file"},
        )
    return upload.secure_url, None


@router.post("/register", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    full_name: Annotated[str, Form(alias="fullName")] = "",
    email: Annotated[str, Form()] = "",
    user_name: Annotated[str, Form(alias="userName")] = "",
    password: Annotated[str, Form()] = "",
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
):
    """This endpoint creates a new user. An avatar image is required, a cover image is optional.

    ## Possible Errors
    - 400 Bad Request: A field is blank, or the avatar is missing or not an image.
    - 409 Conflict: The username or email is already taken.
    - 422 Unprocessable Entity: The username or email does not fit the account constraints.
    - 413 Content Too Large: An image is larger than 10 MB.
    - 5xx: The image host or the database is unavailable.

    ## Error response structure
    ```json
    {
        "detail": "Sample error message"
    }
    ```
    """
    if any(not field.strip() for field in [full_name, email, user_name, password]):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "All fields are required"},
        )

    try:
        new_account = CreateUserRequest.model_validate(
            {"fullName": full_name, "email": email, "userName": user_name, "password": password}
        )
    except ValidationError as e:
        logfire.warning(f"Invalid registration details for {email}: {e.error_count()} errors")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_encoder(e.errors(include_url=False, include_context=False))},
        )

    try:
        if await account_store.exists(new_account.user_name, new_account.email):
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content={"detail": "Username or email already exists"},
            )
    except ServiceError as e:
        return _error_response(e)

    if avatar is None or not avatar.filename:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Avatar file is required"},
        )

    with logfire.span(f"Registering new user: {new_account.email}"):
        avatar_url, error = await _store_image(avatar, ImageKind.AVATAR, settings)
        if error:
            return error

        cover_image_url = ""
        if cover_image is not None and cover_image.filename:
            cover_image_url, error = await _store_image(cover_image, ImageKind.COVER_IMAGE, settings)
            if error:
                return error

        try:
            new_user = await account_store.create(
                full_name=new_account.full_name,
                email=new_account.email,
                user_name=new_account.user_name,
                password=get_password_hash(new_account.password),
                avatar=avatar_url,
                cover_image=cover_image_url,
            )
        except ServiceError as e:
            return _error_response(e)

        logfire.info(f"User registered: {new_user.id}")
        return CreateUserResponse(user=UserInDB.model_validate(new_user))


@router.get("/me", response_model=UserResponse)
async def get_current_user_details(
    current_user: Annotated[Account, Depends(get_current_user)],
):
    """Get details of the authenticated user."""
    return UserResponse(
        message="Current user fetched successfully",
        user=UserInDB.model_validate(current_user),
    )


@router.post("/me/password", response_model=MessageResponse)
async def change_current_password(
    payload: ChangePasswordRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
):
    """Changes the password of the authenticated user.

    ## Possible Errors
    - 400 Bad Request: The old password is wrong.
    """
    if not current_user.is_password_correct(payload.old_password):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid password"},
        )

    try:
        await account_store.update(str(current_user.id), password=get_password_hash(payload.new_password))
    except ServiceError as e:
        return _error_response(e)

    logfire.info(f"Password updated for user {current_user.id}")
    return MessageResponse(message="Password updated successfully")


@router.patch("/me", response_model=UserResponse)
async def update_account_details(
    payload: UpdateAccountRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
):
    """Updates the full name and email of the authenticated user.

    ## Possible Errors
    - 409 Conflict: The email belongs to another user.
    - 422 Unprocessable Entity: A field is missing or invalid.
    """
    try:
        updated_user = await account_store.update(
            str(current_user.id), full_name=payload.full_name, email=str(payload.email)
        )
    except ServiceError as e:
        return _error_response(e)

    if updated_user is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "User does not exist"},
        )

    return UserResponse(
        message="Account updated successfully",
        user=UserInDB.model_validate(updated_user),
    )


async def _update_image(
    image: UploadFile | None,
    kind: ImageKind,
    field: str,
    current_user: Account,
    account_store: AccountStore,
    settings: Settings,
):
    label = kind.value.replace("_", " ")
    if image is None or not image.filename:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": f"{label.capitalize()} file is missing"},
        )

    url, error = await _store_image(image, kind, settings)
    if error:
        return error

    try:
        updated_user = await account_store.update(str(current_user.id), **{field: url})
    except ServiceError as e:
        return _error_response(e)

    if updated_user is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "User does not exist"},
        )

    return UserResponse(
        message=f"User {label} updated successfully",
        user=UserInDB.model_validate(updated_user),
    )


@router.patch("/me/avatar", response_model=UserResponse)
async def update_user_avatar(
    current_user: Annotated[Account, Depends(get_current_user)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    avatar: Annotated[UploadFile | None, File()] = None,
):
    """Replaces the avatar of the authenticated user."""
    return await _update_image(avatar, ImageKind.AVATAR, "avatar", current_user, account_store, settings)


@router.patch("/me/cover-image", response_model=UserResponse)
async def update_user_cover_image(
    current_user: Annotated[Account, Depends(get_current_user)],
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
):
    """Replaces the cover image of the authenticated user."""
    return await _update_image(cover_image, ImageKind.COVER_IMAGE, "cover_image", current_user, account_store, settings)
