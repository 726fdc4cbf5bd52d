from datetime import datetime, timedelta, timezone

import pytest

from models.helpers import TokenClass
from security.errors import AccountNotFound, InvalidCredential, Unauthorized, UpstreamFailure
from security.session import SessionManager
from security.tokens import TokenCodec

from conftest import PASSWORD


@pytest.mark.asyncio
async def test_login_persists_refresh_token(session_manager, store, codec, account):
    logged_in, token_pair = await session_manager.login("alice", PASSWORD)

    assert logged_in.id == account.id
    assert store.stored(account.id).refresh_token == token_pair.refresh_token
    assert codec.verify(token_pair.access_token, TokenClass.ACCESS) == account.id
    assert codec.verify(token_pair.refresh_token, TokenClass.REFRESH) == account.id
    assert token_pair.expires_in == 15 * 60


@pytest.mark.asyncio
async def test_login_accepts_email_or_mixed_case_username(session_manager, account):
    _, by_email = await session_manager.login("alice@example.com", PASSWORD)
    _, by_name = await session_manager.login("ALICE", PASSWORD)

    assert by_email.refresh_token != by_name.refresh_token


@pytest.mark.asyncio
async def test_login_matches_any_of_several_identifiers(session_manager, store, account):
    logged_in, token_pair = await session_manager.login(["alicia", "ALICE@example.com"], PASSWORD)

    assert logged_in.id == account.id
    assert store.stored(account.id).refresh_token == token_pair.refresh_token


@pytest.mark.asyncio
async def test_login_unknown_account(session_manager, store, account):
    with pytest.raises(AccountNotFound):
        await session_manager.login("bob", PASSWORD)
    assert store.updates == 0


@pytest.mark.asyncio
async def test_login_wrong_password_writes_nothing(session_manager, store, account):
    with pytest.raises(InvalidCredential):
        await session_manager.login("alice", "wrong-password")

    assert store.updates == 0
    assert store.stored(account.id).refresh_token is None


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, ""])
async def test_refresh_without_token_skips_store(session_manager, store, token):
    with pytest.raises(Unauthorized):
        await session_manager.refresh(token)
    assert store.lookups == 0


@pytest.mark.asyncio
async def test_rotated_refresh_token_cannot_be_reused(session_manager, account):
    _, first = await session_manager.login("alice", PASSWORD)

    second = await session_manager.refresh(first.refresh_token)

    with pytest.raises(Unauthorized):
        await session_manager.refresh(first.refresh_token)

    third = await session_manager.refresh(second.refresh_token)
    assert third.refresh_token != second.refresh_token


@pytest.mark.asyncio
async def test_sequential_refreshes_store_latest_token(session_manager, store, account):
    _, initial = await session_manager.login("alice", PASSWORD)

    first = await session_manager.refresh(initial.refresh_token)
    second = await session_manager.refresh(first.refresh_token)

    assert store.stored(account.id).refresh_token == second.refresh_token
    assert store.stored(account.id).refresh_token != first.refresh_token


@pytest.mark.asyncio
async def test_logout_revokes_unexpired_refresh_token(session_manager, store, account):
    _, token_pair = await session_manager.login("alice", PASSWORD)

    await session_manager.logout(account.id)

    assert store.stored(account.id).refresh_token is None
    with pytest.raises(Unauthorized):
        await session_manager.refresh(token_pair.refresh_token)


@pytest.mark.asyncio
async def test_logout_is_idempotent(session_manager, store, account):
    await session_manager.logout(account.id)
    await session_manager.logout(account.id)

    assert store.stored(account.id).refresh_token is None


@pytest.mark.asyncio
async def test_new_login_replaces_existing_session(session_manager, account):
    _, first_device = await session_manager.login("alice", PASSWORD)
    _, second_device = await session_manager.login("alice@example.com", PASSWORD)

    with pytest.raises(Unauthorized):
        await session_manager.refresh(first_device.refresh_token)

    assert await session_manager.refresh(second_device.refresh_token)


@pytest.mark.asyncio
async def test_access_token_cannot_refresh(session_manager, account):
    _, token_pair = await session_manager.login("alice", PASSWORD)

    with pytest.raises(Unauthorized):
        await session_manager.refresh(token_pair.access_token)


@pytest.mark.asyncio
async def test_expired_refresh_token_is_rejected_even_if_stored(store, token_settings, account):
    long_ago = datetime.now(timezone.utc) - token_settings.refresh_ttl - timedelta(minutes=1)
    past_manager = SessionManager(store, TokenCodec(token_settings, clock=lambda: long_ago))
    _, token_pair = await past_manager.login("alice", PASSWORD)

    assert store.stored(account.id).refresh_token == token_pair.refresh_token

    with pytest.raises(Unauthorized):
        await SessionManager(store, TokenCodec(token_settings)).refresh(token_pair.refresh_token)


@pytest.mark.asyncio
async def test_refresh_for_deleted_account(session_manager, store, account):
    _, token_pair = await session_manager.login("alice", PASSWORD)
    del store.accounts[account.id]

    with pytest.raises(Unauthorized):
        await session_manager.refresh(token_pair.refresh_token)


@pytest.mark.asyncio
async def test_store_failure_is_surfaced(session_manager, store, account):
    store.fail = True

    with pytest.raises(UpstreamFailure):
        await session_manager.login("alice", PASSWORD)


@pytest.mark.asyncio
async def test_authenticate_resolves_access_token(session_manager, account):
    _, token_pair = await session_manager.login("alice", PASSWORD)

    current = await session_manager.authenticate(token_pair.access_token)
    assert current.id == account.id

    with pytest.raises(Unauthorized):
        await session_manager.authenticate(token_pair.refresh_token)
    with pytest.raises(Unauthorized):
        await session_manager.authenticate(None)
