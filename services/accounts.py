"""Account store backed by the `users` collection."""

import logfire

from contextlib import contextmanager
from datetime import datetime, timezone

from typing import Any, Iterator, Optional, Protocol

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import In, Or, Set
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from models.users import User
from security.errors import AccountConflict, UpstreamFailure


class Account(Protocol):
    """What the session manager needs from an account record."""

    id: Any
    password: str
    refresh_token: Optional[str]

    def is_password_correct(self, password: str) -> bool:
        ...


class AccountStore(Protocol):
    async def find_by_identifier(self, *identifiers: str) -> Account | None:
        ...

    async def find_by_id(self, account_id: str) -> Account | None:
        ...

    async def exists(self, user_name: str, email: str) -> bool:
        ...

    async def create(self, **fields: Any) -> Account:
        ...

    async def update(self, account_id: str, **fields: Any) -> Account | None:
        ...


def to_object_id(account_id: Any) -> PydanticObjectId | None:
    """Parses `account_id`, returning None when it is not a valid ObjectId."""
    # ObjectId(None) would generate a fresh id
    if account_id is None:
        return None
    try:
        return PydanticObjectId(account_id)
    except (InvalidId, TypeError):
        return None


@contextmanager
def _store_call(operation: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as e:
        logfire.warning(f"Duplicate key during account {operation}: {e.details}")
        raise AccountConflict() from e
    except PyMongoError as e:
        logfire.error(f"Database error during account {operation}: {str(e)}")
        raise UpstreamFailure() from e


class BeanieAccountStore:
    """Reads and writes `User` documents. Every write is a single atomic `$set`."""

    async def find_by_identifier(self, *identifiers: str) -> User | None:
        """Fetches the user whose username or email equals any of `identifiers`, ignoring case."""
        lowered = [identifier.strip().lower() for identifier in identifiers if identifier and identifier.strip()]
        if not lowered:
            return None

        with _store_call("lookup"):
            return await User.find_one(
                Or(In(User.user_name, lowered), In(User.email, lowered))
            )

    async def find_by_id(self, account_id: str) -> User | None:
        object_id = to_object_id(account_id)
        if object_id is None:
            return None

        with _store_call("lookup"):
            return await User.get(object_id)

    async def exists(self, user_name: str, email: str) -> bool:
        with _store_call("lookup"):
            existing_user = await User.find_one(
                Or(User.user_name == user_name.strip().lower(), User.email == email.strip().lower())
            )
        return existing_user is not None

    async def create(self, **fields: Any) -> User:
        """Inserts a new user.

        Raises:
            AccountConflict: Raised when the username or email is already taken.
            UpstreamFailure: Raised when the database call fails.
        """
        new_user = User(**fields)
        with _store_call("creation"):
            await new_user.insert()
        logfire.info(f"Saved new user to database: {new_user.email}")
        return new_user

    async def update(self, account_id: str, **fields: Any) -> User | None:
        """Applies `fields` to the user in one `$set` and returns the updated user.

        Returns:
            User | None: The updated user, None if no user has `account_id`.
        """
        object_id = to_object_id(account_id)
        if object_id is None:
            return None

        changes = dict(fields, updated_at=datetime.now(timezone.utc))
        with _store_call("update"):
            return await User.find_one(User.id == object_id).update(
                Set(changes), response_type=UpdateResponse.NEW_DOCUMENT
            )


def get_account_store() -> BeanieAccountStore:
    """Factory function to create the account store.

    Returns:
        BeanieAccountStore: An instance of BeanieAccountStore.
    """
    return BeanieAccountStore()
