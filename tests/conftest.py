import os
import secrets

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from fastapi.testclient import TestClient
from pydantic import BaseModel, EmailStr, Field

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

from config import CloudinarySettings, DatabaseSettings, Settings, TokenSettings, get_settings
from security.dependencies import get_token_codec
from security.errors import UpstreamFailure
from security.helpers import get_password_hash, verify_password
from security.session import SessionManager
from security.tokens import TokenCodec
from services.accounts import get_account_store

PASSWORD = "Sup3r$ecret"
PASSWORD_HASH = get_password_hash(PASSWORD)


class FakeAccount(BaseModel):
    id: str = Field(default_factory=lambda: secrets.token_hex(12))
    user_name: str = Field(min_length=3, max_length=50)
    email: EmailStr
    full_name: str = "Test User"
    avatar: str = "https://res.cloudinary.com/demo/avatar.png"
    cover_image: str = ""
    password: str = PASSWORD_HASH
    refresh_token: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_password_correct(self, password: str) -> bool:
        return verify_password(password, self.password)


class InMemoryAccountStore:
    """Account store double that records how often it was read and written."""

    def __init__(self) -> None:
        self.accounts: dict[str, FakeAccount] = {}
        self.lookups = 0
        self.updates = 0
        self.fail = False

    def add(self, account: FakeAccount) -> FakeAccount:
        self.accounts[account.id] = account
        return account

    def stored(self, account_id: str) -> FakeAccount:
        return self.accounts[account_id]

    def _check(self) -> None:
        if self.fail:
            raise UpstreamFailure()

    async def find_by_identifier(self, *identifiers: str) -> FakeAccount | None:
        self._check()
        self.lookups += 1
        lowered = {identifier.strip().lower() for identifier in identifiers if identifier}
        for account in self.accounts.values():
            if account.user_name.lower() in lowered or account.email.lower() in lowered:
                return account.model_copy()
        return None

    async def find_by_id(self, account_id: str) -> FakeAccount | None:
        self._check()
        self.lookups += 1
        account = self.accounts.get(str(account_id))
        return account.model_copy() if account else None

    async def exists(self, user_name: str, email: str) -> bool:
        self._check()
        return any(
            account.user_name.lower() == user_name.strip().lower()
            or account.email.lower() == email.strip().lower()
            for account in self.accounts.values()
        )

    async def create(self, **fields: Any) -> FakeAccount:
        self._check()
        return self.add(FakeAccount(**fields)).model_copy()

    async def update(self, account_id: str, **fields: Any) -> FakeAccount | None:
        self._check()
        self.updates += 1
        account = self.accounts.get(str(account_id))
        if account is None:
            return None
        updated = account.model_copy(update=dict(fields, updated_at=datetime.now(timezone.utc)))
        self.accounts[updated.id] = updated
        return updated.model_copy()


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(
        access_secret="access-secret-for-tests",
        refresh_secret="refresh-secret-for-tests",
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=10),
    )


@pytest.fixture
def codec(token_settings) -> TokenCodec:
    return TokenCodec(token_settings)


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def account(store) -> FakeAccount:
    return store.add(FakeAccount(user_name="alice", email="alice@example.com"))


@pytest.fixture
def session_manager(store, codec) -> SessionManager:
    return SessionManager(store, codec)


@pytest.fixture
def settings(token_settings) -> Settings:
    return Settings(
        tokens=token_settings,
        database=DatabaseSettings(),
        cloudinary=CloudinarySettings(cloud_name="demo", api_key="key", api_secret="secret"),
        cookie_secure=True,
    )


@pytest.fixture
def client(store, codec, settings):
    from main import app

    app.dependency_overrides[get_account_store] = lambda: store
    app.dependency_overrides[get_token_codec] = lambda: codec
    app.dependency_overrides[get_settings] = lambda: settings

    # Not used as a context manager so the MongoDB lifespan does not run
    yield TestClient(app)

    app.dependency_overrides.clear()


def set_cookies(response) -> dict[str, str]:
    """Maps cookie name to its raw Set-Cookie header."""
    cookies = {}
    for header in response.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0]
        cookies[name] = header
    return cookies
