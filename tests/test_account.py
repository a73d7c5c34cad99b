"""
Account registration and password change.
"""

import pytest

from roombook.account import AccountService, check_new_password
from roombook.domain.errors import ValidationError

USERNAME = "alice"
PASSWORD = "secret"


@pytest.fixture
def account(backend, session):
    return AccountService(backend, session)


def test_passwords_must_match():
    with pytest.raises(ValidationError) as info:
        check_new_password("secret1", "secret2")
    assert info.value.message == "The passwords do not match."


def test_password_minimum_length():
    with pytest.raises(ValidationError):
        check_new_password("abc", "abc")
    check_new_password("abcdef", "abcdef")


@pytest.mark.asyncio
async def test_register_then_login(account, backend):
    result = await account.register(" bob@example.com ", " bob ", "hunter22", "hunter22", "  ")

    assert result.action == "registered"
    assert result.identity.username == "bob"
    assert result.identity.email == "bob@example.com"
    assert result.identity.full_name is None
    assert backend.login("bob", "hunter22").access_token


@pytest.mark.asyncio
async def test_register_mismatch_is_local(account, backend):
    result = await account.register("b@x", "bob", "hunter22", "hunter23")
    assert result.action == "invalid"
    assert "register" not in backend.calls


@pytest.mark.asyncio
async def test_register_requires_email_and_username(account):
    result = await account.register("", "bob", "hunter22", "hunter22")
    assert result.message == "Email and username are required."


@pytest.mark.asyncio
async def test_duplicate_username_is_rejected(account):
    result = await account.register("a2@x", USERNAME, "hunter22", "hunter22")
    assert result.action == "rejected"
    assert result.message == "Username already registered"


@pytest.mark.asyncio
async def test_change_password(account, backend):
    result = await account.change_password(PASSWORD, "n3w-secret", "n3w-secret")

    assert result.action == "password_changed"
    assert backend.login(USERNAME, "n3w-secret").access_token


@pytest.mark.asyncio
async def test_wrong_current_password(account, session):
    result = await account.change_password("nope", "n3w-secret", "n3w-secret")
    assert result.action == "rejected"
    assert result.message == "Incorrect password"
    assert session.is_authenticated


@pytest.mark.asyncio
async def test_expired_session_is_invalidated(account, backend, session):
    backend.fail_next("change_password", 401)
    result = await account.change_password(PASSWORD, "n3w-secret", "n3w-secret")
    assert result.action == "rejected"
    assert not session.is_authenticated


@pytest.mark.asyncio
async def test_change_password_requires_login(account, session):
    session.invalidate()
    result = await account.change_password(PASSWORD, "n3w-secret", "n3w-secret")
    assert result.action == "invalid"
    assert result.message == "You must be logged in."


# ---------------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_forgot_password_then_reset(account, backend):
    result = await account.forgot_password("  alice@example.com ")
    assert result.action == "reset_requested"
    assert "alice@example.com" in result.message

    token = backend.reset_token_for("alice@example.com")
    reset = await account.reset_password(token, "brand-new", "brand-new")

    assert reset.action == "password_reset"
    assert backend.login(USERNAME, "brand-new").access_token


@pytest.mark.asyncio
async def test_forgot_password_for_unknown_email_looks_the_same(account, backend):
    result = await account.forgot_password("nobody@example.com")
    assert result.action == "reset_requested"
    assert backend.reset_token_for("nobody@example.com") is None


@pytest.mark.asyncio
async def test_forgot_password_requires_email(account, backend):
    result = await account.forgot_password("   ")
    assert result.action == "invalid"
    assert "forgot_password" not in backend.calls


@pytest.mark.asyncio
async def test_forgot_password_backend_failure_is_classified(account, backend):
    backend.fail_next("forgot_password", 503)
    result = await account.forgot_password("alice@example.com")
    assert result.action == "rejected"
    assert result.message == "Could not reach the reservation service. Please try again."


@pytest.mark.parametrize("token", [None, "", "   "])
@pytest.mark.asyncio
async def test_reset_requires_token(account, backend, token):
    result = await account.reset_password(token, "brand-new", "brand-new")
    assert result.action == "invalid"
    assert result.message == "Recovery token not found. Check the link sent by email."
    assert "reset_password" not in backend.calls


@pytest.mark.asyncio
async def test_reset_checks_new_password_locally(account, backend):
    await account.forgot_password("alice@example.com")
    token = backend.reset_token_for("alice@example.com")

    short = await account.reset_password(token, "abc", "abc")
    mismatch = await account.reset_password(token, "brand-new", "brand-old")

    assert short.action == mismatch.action == "invalid"
    assert mismatch.message == "The passwords do not match."
    assert "reset_password" not in backend.calls


@pytest.mark.asyncio
async def test_reset_with_used_token_is_rejected(account, backend):
    await account.forgot_password("alice@example.com")
    token = backend.reset_token_for("alice@example.com")
    await account.reset_password(token, "brand-new", "brand-new")

    again = await account.reset_password(token, "another1", "another1")

    assert again.action == "rejected"
    assert again.message == "Invalid or expired reset token"


@pytest.mark.asyncio
async def test_forbidden_password_change_invalidates_session(account, backend, session):
    backend.fail_next("change_password", 403)
    result = await account.change_password(PASSWORD, "n3w-secret", "n3w-secret")
    assert result.action == "rejected"
    assert not session.is_authenticated
