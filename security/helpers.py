"""Contains all security related helper functions
"""
from fastapi import Response
from fastapi.security import OAuth2PasswordBearer

from passlib.context import CryptContext

from schema.security import TokenPair

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer header transport for clients that do not send cookies
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="api/v1/auth/login",
    auto_error=False,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies that `plain_password` and `hashed_password` are equal.

    Args:
        plain_password (str): The plain text password to verify.
        hashed_password (str): The hashed password to compare against.

    Returns:
        bool: True if the passwords match, False otherwise.
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generates a hash for the given password.

    Args:
        password (str): The plain text password to hash.

    Returns:
        str: The hashed password.
    """
    return pwd_context.hash(password)


def set_session_cookies(response: Response, token_pair: TokenPair, secure: bool = True) -> None:
    """Attaches both tokens to `response` as http-only cookies.

    Args:
        response (Response): The outgoing response.
        token_pair (TokenPair): The tokens to transport.
        secure (bool, optional): Restrict the cookies to HTTPS. Defaults to True.
    """
    response.set_cookie(ACCESS_TOKEN_COOKIE, token_pair.access_token, httponly=True, secure=secure)
    response.set_cookie(REFRESH_TOKEN_COOKIE, token_pair.refresh_token, httponly=True, secure=secure)


def clear_session_cookies(response: Response, secure: bool = True) -> None:
    """Removes both session cookies from the client."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE, httponly=True, secure=secure)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, httponly=True, secure=secure)
