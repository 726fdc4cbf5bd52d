"""
Session lifecycle: login, refresh token rotation and logout.

Each account stores at most one refresh token. A refresh token is accepted only
if it verifies and is identical to the stored value, so overwriting the stored
value (rotation, or a login elsewhere) or clearing it (logout) invalidates every
older refresh token for that account.
"""

import secrets

import logfire

from typing import Sequence

from models.helpers import TokenClass
from schema.security import TokenPair
from services.accounts import Account, AccountStore

from .errors import AccountNotFound, InvalidCredential, TokenError, Unauthorized
from .tokens import TokenCodec


class SessionManager:
    """Issues token pairs and keeps the stored refresh token in sync."""

    def __init__(self, account_store: AccountStore, token_codec: TokenCodec):
        self.accounts = account_store
        self.codec = token_codec

    async def login(self, identifier: str | Sequence[str], password: str) -> tuple[Account, TokenPair]:
        """Checks the credentials and starts a new session.

        Any session already active for the account is replaced.

        Args:
            identifier (str | Sequence[str]): Username or email of the account. When several
                identifiers are given, an account matching any of them is used.
            password (str): Plain text password.

        Raises:
            AccountNotFound: Raised when no account matches `identifier`.
            InvalidCredential: Raised when the password is wrong. Nothing is written.
            UpstreamFailure: Raised when the account store fails.

        Returns:
            tuple[Account, TokenPair]: The account as stored after login and the new tokens.
        """
        identifiers = [identifier] if isinstance(identifier, str) else list(identifier)

        with logfire.span(f"Logging in user: {', '.join(identifiers)}"):
            account = await self.accounts.find_by_identifier(*identifiers)

            if account is None:
                logfire.info(f"Login attempt for unknown user: {', '.join(identifiers)}")
                raise AccountNotFound()

            if not account.is_password_correct(password):
                logfire.warning(f"Invalid password for user: {account.id}")
                raise InvalidCredential()

            updated_account, token_pair = await self._start_session(str(account.id))
            if updated_account is None:
                raise AccountNotFound()

            logfire.info(f"User {account.id} logged in successfully")
            return updated_account, token_pair

    async def refresh(self, incoming_refresh_token: str | None) -> TokenPair:
        """Exchanges a refresh token for a new token pair and rotates the stored token.

        Raises:
            Unauthorized: Raised when the token is missing, does not verify, belongs to
                no account, or is not the account's current refresh token.
            UpstreamFailure: Raised when the account store fails.

        Returns:
            TokenPair: The new tokens.
        """
        if not incoming_refresh_token:
            raise Unauthorized()

        try:
            subject_id = self.codec.verify(incoming_refresh_token, TokenClass.REFRESH)
        except TokenError as e:
            logfire.warning(f"Rejected refresh token: {e.detail}")
            raise Unauthorized("Invalid refresh token") from e

        account = await self.accounts.find_by_id(subject_id)
        if account is None:
            raise Unauthorized("Invalid refresh token")

        if not _same_token(incoming_refresh_token, account.refresh_token):
            # Superseded by a later rotation or cleared by logout
            logfire.warning(f"Stale refresh token presented for user {subject_id}")
            raise Unauthorized("Refresh token is expired or used")

        updated_account, token_pair = await self._start_session(subject_id)
        if updated_account is None:
            raise Unauthorized("Invalid refresh token")

        logfire.info(f"Tokens refreshed for user {subject_id}")
        return token_pair

    async def logout(self, subject_id: str) -> None:
        """Clears the stored refresh token. Calling it again is harmless."""
        await self.accounts.update(subject_id, refresh_token=None)
        logfire.info(f"User {subject_id} logged out")

    async def authenticate(self, access_token: str | None) -> Account:
        """Resolves an access token to its account.

        Raises:
            Unauthorized: Raised when the token is missing, does not verify or
                belongs to no account.
        """
        if not access_token:
            raise Unauthorized()

        try:
            subject_id = self.codec.verify(access_token, TokenClass.ACCESS)
        except TokenError as e:
            raise Unauthorized("Invalid access token") from e

        account = await self.accounts.find_by_id(subject_id)
        if account is None:
            raise Unauthorized("Invalid access token")
        return account

    async def _start_session(self, account_id: str) -> tuple[Account | None, TokenPair]:
        token_pair = TokenPair(
            access_token=self.codec.issue(account_id, TokenClass.ACCESS),
            refresh_token=self.codec.issue(account_id, TokenClass.REFRESH),
            expires_in=self.codec.access_token_ttl_seconds,
        )
        account = await self.accounts.update(account_id, refresh_token=token_pair.refresh_token)
        return account, token_pair


def _same_token(presented: str, stored: str | None) -> bool:
    if not stored:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))
