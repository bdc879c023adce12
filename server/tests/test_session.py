"""Tests for typed session access"""

import pytest

from community_portal.auth.session import PROFILE_KEY, TOKEN_KEY, SessionContext

ADMIN = {"id": 7, "email": "admin@example.org", "fullName": "Portal Admin", "role": "admin"}


def test_empty_session():
    session = SessionContext({})

    assert session.token is None
    assert session.profile is None
    assert session.is_authenticated is False
    assert session.is_admin is False
    assert session.owner_id == "anonymous"


def test_login_stores_token_and_profile():
    data = {}
    session = SessionContext(data)

    profile = session.login("token-0123456789", ADMIN)

    assert profile.full_name == "Portal Admin"
    assert data[TOKEN_KEY] == "token-0123456789"
    assert data[PROFILE_KEY]["role"] == "admin"
    assert session.is_admin is True
    assert session.owner_id == "user-7"


def test_member_is_authenticated_but_not_admin():
    session = SessionContext({})

    session.login("token-0123456789", {"id": 3, "email": "m@example.org"})

    assert session.is_authenticated is True
    assert session.is_admin is False


@pytest.mark.parametrize(
    "token, profile",
    [(None, ADMIN), ("short", ADMIN), ("token-0123456789", None), ("token-0123456789", "admin")],
)
def test_login_rejects_unusable_data(token, profile):
    data = {}

    with pytest.raises(ValueError):
        SessionContext(data).login(token, profile)

    assert data == {}


def test_logout_clears_session():
    data = {}
    session = SessionContext(data)
    session.login("token-0123456789", ADMIN)

    session.logout()

    assert data == {}
    assert session.is_authenticated is False


def test_unreadable_profile_is_dropped():
    data = {TOKEN_KEY: "token-0123456789", PROFILE_KEY: {"email": "no-id"}}
    session = SessionContext(data)

    assert session.profile is None
    assert data == {}
