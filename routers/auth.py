"""
Auth router for login, token refresh and logout.

Tokens travel as http-only cookies. They are also returned in the body for
clients that cannot keep cookies, and the refresh endpoint accepts the refresh
token from the body when no cookie is present.
"""

import logfire

from fastapi import APIRouter, Body, Cookie, Depends, Response, status
from fastapi.responses import JSONResponse

from typing import Annotated

from config import Settings, get_settings

from security.dependencies import get_current_user, get_session_manager
from security.errors import ServiceError
from security.helpers import (
    REFRESH_TOKEN_COOKIE,
    clear_session_cookies,
    set_session_cookies,
)
from security.session import SessionManager

from services.accounts import Account

from schema.security import RefreshTokenRequest, TokenPair
from schema.users import LoginRequest, LoginResponse, MessageResponse, UserInDB

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["Auth"],
)


def _error_response(error: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail},
        headers=headers,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Login endpoint that sets both token cookies and returns the tokens.

    Logging in replaces any session already active for the account.

    ## Possible Errors
    - 400 Bad Request: Neither `userName` nor `email` was supplied.
    - 404 Not Found: No user matches `userName` or `email`. When both are sent, a
      user matching either one is accepted.
    - 401 Unauthorized: The password is wrong.
    - 500 Internal Server Error: The database is unavailable.
    """
    identifiers = [value.strip() for value in (payload.user_name, payload.email) if value and value.strip()]
    if not identifiers:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "username or email is required"},
        )

    try:
        account, token_pair = await session_manager.login(identifiers, payload.password)
    except ServiceError as e:
        return _error_response(e)

    set_session_cookies(response, token_pair, secure=settings.cookie_secure)

    return LoginResponse(
        user=UserInDB.model_validate(account),
        access_token=token_pair.access_token,
        refresh_token=token_pair.refresh_token,
        expires_in=token_pair.expires_in,
    )


@router.post("/refresh", response_model=TokenPair)
async def refresh_access_token(
    response: Response,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
    cookie_token: Annotated[str | None, Cookie(alias=REFRESH_TOKEN_COOKIE)] = None,
    payload: Annotated[RefreshTokenRequest | None, Body()] = None,
):
    """Exchanges a refresh token for a new token pair.

    The refresh token is read from the `refreshToken` cookie, or from the
    `refreshToken` body field when the cookie is absent. The presented token
    stops working once this call succeeds.

    ## Possible Errors
    - 401 Unauthorized: The token is missing, invalid, expired, or has already
      been rotated or revoked. The client must log in again.
    """
    incoming_refresh_token = cookie_token or (payload.refresh_token if payload else None)

    try:
        token_pair = await session_manager.refresh(incoming_refresh_token)
    except ServiceError as e:
        if e.status_code == status.HTTP_401_UNAUTHORIZED:
            error_response = _error_response(e)
            clear_session_cookies(error_response, secure=settings.cookie_secure)
            return error_response
        return _error_response(e)

    set_session_cookies(response, token_pair, secure=settings.cookie_secure)
    return token_pair


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current_user: Annotated[Account, Depends(get_current_user)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Logout endpoint that revokes the stored refresh token and clears the cookies."""
    try:
        await session_manager.logout(str(current_user.id))
    except ServiceError as e:
        logfire.error(f"Failed to log out user {current_user.id}: {e.detail}")
        return _error_response(e)

    clear_session_cookies(response, secure=settings.cookie_secure)
    return MessageResponse(message="User logged out successfully")
