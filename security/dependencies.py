"""FastAPI dependencies wiring settings, the token codec and the session manager."""

from fastapi import Cookie, Depends, HTTPException, status

from typing import Annotated

from config import Settings, get_settings
from services.accounts import Account, AccountStore, get_account_store

from .errors import ServiceError, Unauthorized
from .helpers import ACCESS_TOKEN_COOKIE, oauth2_scheme
from .session import SessionManager
from .tokens import TokenCodec


def get_token_codec(settings: Annotated[Settings, Depends(get_settings)]) -> TokenCodec:
    return TokenCodec(settings.tokens)


def get_session_manager(
    account_store: Annotated[AccountStore, Depends(get_account_store)],
    token_codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> SessionManager:
    return SessionManager(account_store, token_codec)


async def get_current_user(
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    bearer_token: Annotated[str | None, Depends(oauth2_scheme)],
    cookie_token: Annotated[str | None, Cookie(alias=ACCESS_TOKEN_COOKIE)] = None,
) -> Account:
    """Get the current user from the access token.

    The `accessToken` cookie is preferred; the `Authorization: Bearer` header is
    the fallback for clients that do not keep cookies.

    Raises:
        HTTPException: 401 when the token is missing, invalid or expired, or the
            user no longer exists. 500 when the database is unavailable.

    Returns:
        Account: The authenticated user.
    """
    try:
        return await session_manager.authenticate(cookie_token or bearer_token)
    except Unauthorized as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
