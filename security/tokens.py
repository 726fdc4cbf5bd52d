"""Issues and verifies signed, expiring tokens.

Access and refresh tokens share one algorithm and differ only in their
signing secret and lifetime, so a token of one class never verifies as the
other.
"""
import secrets

from datetime import datetime, timezone
from typing import Callable

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from config import TokenSettings
from models.helpers import TokenClass
from schema.security import TokenPayload

from .errors import ExpiredToken, InvalidSignature, MalformedToken


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Produces and verifies JWS tokens for both token classes."""

    def __init__(self, settings: TokenSettings, clock: Callable[[], datetime] = utc_now):
        self.settings = settings
        self.clock = clock

    def issue(self, subject_id: str, token_class: TokenClass) -> str:
        """Creates a signed token for `subject_id`.

        Args:
            subject_id (str): The account identifier embedded as the `sub` claim.
            token_class (TokenClass): Selects the signing secret and lifetime.

        Returns:
            str: The compact JWS token.
        """
        now = self.clock()
        expire = now + self.settings.ttl_for(token_class)

        to_encode = {
            "sub": str(subject_id),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            to_encode,
            self.settings.secret_for(token_class),
            algorithm=self.settings.algorithm,
        )

    def decode(self, token: str, token_class: TokenClass) -> TokenPayload:
        """Verifies `token` and returns its claims.

        Checks run in order: structure, signature, expiry.

        Args:
            token (str): The token to verify.
            token_class (TokenClass): The class the token is expected to belong to.

        Raises:
            MalformedToken: Raised when the token cannot be parsed into a payload.
            InvalidSignature: Raised when the signature does not match the class secret.
            ExpiredToken: Raised when the token is past its expiry time.

        Returns:
            TokenPayload: The verified claims.
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken()

        try:
            unverified = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedToken() from e

        subject_id = unverified.get("sub")
        exp = unverified.get("exp")
        if not isinstance(subject_id, str) or not subject_id:
            raise MalformedToken("Token has no subject")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise MalformedToken("Token has no expiry")

        try:
            #* Expiry is checked below against our own clock
            claims = jwt.decode(
                token,
                self.settings.secret_for(token_class),
                algorithms=[self.settings.algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as e:
            raise MalformedToken(str(e)) from e
        except JWTError as e:
            raise InvalidSignature() from e

        if self.clock().timestamp() > claims["exp"]:
            raise ExpiredToken()

        return TokenPayload(
            subject_id=claims["sub"],
            issued_at=int(claims.get("iat") or 0),
            expires_at=int(claims["exp"]),
            jti=claims.get("jti"),
        )

    def verify(self, token: str, token_class: TokenClass) -> str:
        """Verifies `token` and returns the subject identifier it carries."""
        return self.decode(token, token_class).subject_id

    @property
    def access_token_ttl_seconds(self) -> int:
        return int(self.settings.access_ttl.total_seconds())
