from uuid import uuid4

import pytest

from postboard.core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from postboard.core.tokens import combine_token, split_token

EDGE_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0"
)


@pytest.fixture
def registered(auth_service):
    return auth_service.register("a@x.com", "longpass1")


# ── register / verify ──────────────────────────────────────────────────


def test_register_creates_unverified_user_and_sends_verification(auth_service, email, hasher, verification_tokens):
    user = auth_service.register("a@x.com", "longpass1")

    assert user.is_active is True
    assert user.is_verified is False
    assert hasher.verify("longpass1", user.password_hash)

    kind, recipient, token = email.sent[-1]
    assert (kind, recipient) == ("verification", "a@x.com")
    user_id, secret = split_token(token)
    assert user_id == user.id
    row = verification_tokens.find_email_verification_by_user(user.id)
    assert row.token_hash != secret
    assert hasher.verify(secret, row.token_hash)


def test_register_twice_with_the_same_email_conflicts(auth_service, registered):
    with pytest.raises(ConflictError):
        auth_service.register("a@x.com", "longpass1")


def test_register_propagates_mail_failure_after_creating_the_user(auth_service, email, users):
    email.fail = True

    with pytest.raises(InternalError):
        auth_service.register("a@x.com", "longpass1")

    assert users.find_by_email("a@x.com") is not None


def test_verify_email_marks_user_verified_once(auth_service, registered, email, users):
    token = email.last_token("verification")

    auth_service.verify_email(token)

    assert users.find_by_id(registered.id).is_verified is True
    with pytest.raises(UnauthorizedError):
        auth_service.verify_email(token)


def test_verify_email_with_wrong_secret_is_unauthorized(auth_service, registered, users):
    with pytest.raises(UnauthorizedError):
        auth_service.verify_email(combine_token(registered.id, "guess"))

    assert users.find_by_id(registered.id).is_verified is False


def test_verify_email_after_expiry_is_unauthorized(auth_service, registered, email, clock):
    clock.advance(hours=24, seconds=1)

    with pytest.raises(UnauthorizedError) as excinfo:
        auth_service.verify_email(email.last_token("verification"))

    assert excinfo.value.message == "Token expired"


def test_verify_email_rejects_a_token_that_is_already_used(auth_service, registered, email, verification_tokens):
    token = email.last_token("verification")
    verification_tokens.email_tokens[-1].used = True
    # Make the used row visible to the lookup to exercise the flag check itself.
    verification_tokens.find_email_verification_by_user = lambda user_id: verification_tokens.email_tokens[-1]

    with pytest.raises(ValidationError):
        auth_service.verify_email(token)


def test_verify_email_loses_the_race_when_the_claim_fails(auth_service, registered, email, verification_tokens, users):
    token = email.last_token("verification")
    verification_tokens.mark_email_verification_as_used = lambda token_id: False

    with pytest.raises(ValidationError):
        auth_service.verify_email(token)

    assert users.find_by_id(registered.id).is_verified is False


@pytest.mark.parametrize("token", ["nope", "a:b:c", "not-a-uuid:secret"])
def test_verify_email_rejects_malformed_tokens(auth_service, token):
    with pytest.raises(UnauthorizedError) as excinfo:
        auth_service.verify_email(token)

    assert excinfo.value.message == "Invalid token format"


def test_resend_verification_supersedes_the_previous_token(auth_service, registered, email):
    first = email.last_token("verification")
    auth_service.request_email_verification("a@x.com")
    second = email.last_token("verification")

    assert first != second
    with pytest.raises(UnauthorizedError):
        auth_service.verify_email(first)
    auth_service.verify_email(second)


def test_resend_verification_for_unknown_or_verified_user(auth_service, registered, email):
    with pytest.raises(NotFoundError):
        auth_service.request_email_verification("nobody@x.com")

    auth_service.verify_email(email.last_token("verification"))
    with pytest.raises(ForbiddenError):
        auth_service.request_email_verification("a@x.com")


# ── login ──────────────────────────────────────────────────────────────


def test_login_returns_access_token_and_combined_refresh(auth_service, registered, token_service, sessions, users):
    users.add_role(registered.id, "admin")

    pair = auth_service.login("a@x.com", "longpass1", user_agent=EDGE_UA, ip_address="10.0.0.1")

    claims = token_service.verify_access_token(pair.access_token)
    session_id, _ = split_token(pair.refresh_token)
    assert claims.sub == registered.id
    assert claims.session_id == session_id
    assert claims.roles == ["admin"]

    session = sessions.find_by_id(session_id)
    assert session.device_name == "Edge on Windows"
    assert session.ip_address == "10.0.0.1"
    assert users.find_by_id(registered.id).last_login_at is not None


def test_login_without_user_agent_has_no_device_name(auth_service, registered, sessions):
    pair = auth_service.login("a@x.com", "longpass1")

    session_id, _ = split_token(pair.refresh_token)
    assert sessions.find_by_id(session_id).device_name is None


def test_login_unknown_email_and_wrong_password_look_the_same(auth_service, registered):
    with pytest.raises(UnauthorizedError) as wrong_password:
        auth_service.login("a@x.com", "wrongpass1")
    with pytest.raises(UnauthorizedError) as unknown_email:
        auth_service.login("b@x.com", "longpass1")

    assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"


def test_login_to_disabled_account_is_forbidden(auth_service, registered, users):
    users.find_by_id(registered.id).is_active = False

    with pytest.raises(ForbiddenError):
        auth_service.login("a@x.com", "longpass1")


# ── refresh ────────────────────────────────────────────────────────────


def test_refresh_rotates_and_old_secret_is_then_a_theft_signal(auth_service, registered, sessions):
    original = auth_service.login("a@x.com", "longpass1")

    rotated = auth_service.refresh(original.refresh_token)

    assert rotated.refresh_token != original.refresh_token
    assert split_token(rotated.refresh_token)[0] == split_token(original.refresh_token)[0]

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(original.refresh_token)

    session_id, _ = split_token(original.refresh_token)
    assert sessions.find_by_id(session_id).is_revoked is True
    with pytest.raises(UnauthorizedError):
        auth_service.refresh(rotated.refresh_token)


def test_new_refresh_secret_works_until_rotated_again(auth_service, registered):
    pair = auth_service.login("a@x.com", "longpass1")

    second = auth_service.refresh(pair.refresh_token)
    third = auth_service.refresh(second.refresh_token)

    assert len({pair.refresh_token, second.refresh_token, third.refresh_token}) == 3


def test_wrong_secret_burns_the_session(auth_service, registered):
    pair = auth_service.login("a@x.com", "longpass1")
    session_id, _ = split_token(pair.refresh_token)

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(combine_token(session_id, "forged-secret"))

    with pytest.raises(UnauthorizedError) as excinfo:
        auth_service.refresh(pair.refresh_token)
    assert excinfo.value.message == "Session revoked"


def test_refresh_of_expired_session_fails_without_revoking(auth_service, registered, sessions, clock):
    pair = auth_service.login("a@x.com", "longpass1")
    clock.advance(days=7, seconds=1)

    with pytest.raises(UnauthorizedError) as excinfo:
        auth_service.refresh(pair.refresh_token)

    assert excinfo.value.message == "Session expired"
    assert sessions.find_by_id(split_token(pair.refresh_token)[0]).is_revoked is False


def test_refresh_unknown_session_and_bad_format(auth_service):
    with pytest.raises(UnauthorizedError):
        auth_service.refresh(combine_token(uuid4(), "whatever"))
    with pytest.raises(UnauthorizedError) as excinfo:
        auth_service.refresh("not-a-token")
    assert excinfo.value.message == "Invalid token format"


def test_refresh_picks_up_role_changes(auth_service, registered, users, token_service):
    pair = auth_service.login("a@x.com", "longpass1")
    assert token_service.verify_access_token(pair.access_token).roles == []

    users.add_role(registered.id, "admin")

    # The already-issued access token keeps its snapshot.
    assert token_service.verify_access_token(pair.access_token).roles == []
    refreshed = auth_service.refresh(pair.refresh_token)
    assert token_service.verify_access_token(refreshed.access_token).roles == ["admin"]


# ── password reset ─────────────────────────────────────────────────────


def test_password_reset_flow_is_single_use(auth_service, registered, email, users, hasher):
    auth_service.request_password_reset("a@x.com")
    token = email.last_token("reset")

    auth_service.reset_password(token, "brandnew99")

    assert hasher.verify("brandnew99", users.find_by_id(registered.id).password_hash)
    auth_service.login("a@x.com", "brandnew99")
    with pytest.raises(UnauthorizedError):
        auth_service.reset_password(token, "another999")


def test_password_reset_expires_after_fifteen_minutes(auth_service, registered, email, clock):
    auth_service.request_password_reset("a@x.com")
    clock.advance(minutes=15, seconds=1)

    with pytest.raises(ValidationError) as excinfo:
        auth_service.reset_password(email.last_token("reset"), "brandnew99")

    assert excinfo.value.message == "Token expired"


def test_password_reset_with_wrong_secret_keeps_password(auth_service, registered, users, hasher):
    auth_service.request_password_reset("a@x.com")

    with pytest.raises(UnauthorizedError):
        auth_service.reset_password(combine_token(registered.id, "guess"), "brandnew99")

    assert hasher.verify("longpass1", users.find_by_id(registered.id).password_hash)


def test_password_reset_for_unknown_email_is_not_found(auth_service):
    with pytest.raises(NotFoundError):
        auth_service.request_password_reset("nobody@x.com")


def test_password_reset_leaves_existing_sessions_alive(auth_service, registered, email, sessions):
    pair = auth_service.login("a@x.com", "longpass1")
    auth_service.request_password_reset("a@x.com")

    auth_service.reset_password(email.last_token("reset"), "brandnew99")

    assert sessions.find_by_id(split_token(pair.refresh_token)[0]).is_revoked is False


# ── logout ─────────────────────────────────────────────────────────────


def test_logout_revokes_only_that_session(auth_service, registered, sessions):
    first = auth_service.login("a@x.com", "longpass1")
    second = auth_service.login("a@x.com", "longpass1")
    first_id = split_token(first.refresh_token)[0]
    second_id = split_token(second.refresh_token)[0]

    auth_service.logout(first_id)

    assert sessions.find_by_id(first_id).is_revoked is True
    assert sessions.find_by_id(second_id).is_revoked is False
    assert [s.id for s in auth_service.list_active_sessions(registered.id)] == [second_id]


def test_revoke_all_sessions(auth_service, registered):
    pairs = [auth_service.login("a@x.com", "longpass1") for _ in range(3)]

    auth_service.revoke_all_sessions(registered.id)

    assert auth_service.list_active_sessions(registered.id) == []
    for pair in pairs:
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(pair.refresh_token)
