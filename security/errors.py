"""Typed failures raised by the token codec, the session manager and the account store.

Each `ServiceError` carries the HTTP status the routers answer with. Token
errors never reach the routers; the session manager converts them to
`Unauthorized`.
"""

from fastapi import status


class TokenError(Exception):
    """Base class for token verification failures."""

    detail = "Invalid token"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)


class MalformedToken(TokenError):
    detail = "Token could not be parsed"


class InvalidSignature(TokenError):
    detail = "Token signature does not match"


class ExpiredToken(TokenError):
    detail = "Token has expired"


class ServiceError(Exception):
    """Base class for failures surfaced to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Something went wrong"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)


class AccountNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "User does not exist"


class InvalidCredential(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid user credentials"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized request"


class AccountConflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Username or email already exists"


class UpstreamFailure(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Something went wrong while talking to the database"
