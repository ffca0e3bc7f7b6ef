"""Integration tests for the authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from freezegun import freeze_time

from authapi.services._shared.ports import TokenClass
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.assertions import assert_json_keys, assert_problem
from tests.helpers.http import AUTH_PREFIX, bearer


@pytest.fixture()
def user():
    return UserFactory(email="member@example.com", password=DEFAULT_PASSWORD)


@pytest.fixture()
def tokens(client, user):
    resp = client.post(
        f"{AUTH_PREFIX}/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    assert resp.status_code == 200
    return resp.get_json()


# -------------------------------- Register -------------------------------- #


def test_register_returns_created_token_pair(client):
    resp = client.post(
        f"{AUTH_PREFIX}/register",
        json={"email": "fresh@example.com", "password": "secret123", "name": "Fresh"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert set(body) == {"access_token", "refresh_token"}


def test_register_duplicate_email_is_conflict(client, user):
    resp = client.post(
        f"{AUTH_PREFIX}/register",
        json={"email": user.email, "password": "secret123", "name": "Copy"},
    )
    assert_problem(resp, 409, "Invalid credentials")


def test_register_validates_payload(client):
    resp = client.post(f"{AUTH_PREFIX}/register", json={"email": "not-an-email", "password": "x"})
    body = assert_problem(resp, 422)
    assert body["code"] == "validation_error"
    assert {"email", "password", "name"} <= set(body["details"]["errors"])


# --------------------------------- Login ---------------------------------- #


def test_login_returns_token_pair(client, user):
    resp = client.post(
        f"{AUTH_PREFIX}/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    assert resp.status_code == 200
    assert_json_keys(resp.get_json(), {"access_token", "refresh_token"})


def test_login_failures_are_indistinguishable(client, user):
    wrong = client.post(f"{AUTH_PREFIX}/login", json={"email": user.email, "password": "nope-nope"})
    ghost = client.post(
        f"{AUTH_PREFIX}/login", json={"email": "ghost@example.com", "password": "nope-nope"}
    )
    body_wrong = assert_problem(wrong, 401, "Invalid credentials")
    body_ghost = assert_problem(ghost, 401, "Invalid credentials")
    assert body_wrong["code"] == body_ghost["code"] == "unauthorized"


# ---------------------------------- Me ------------------------------------ #


def test_me_returns_identity_from_access_token(client, user, tokens):
    resp = client.get(f"{AUTH_PREFIX}/me", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200
    assert resp.get_json() == {"id": user.id, "email": user.email, "role": "user"}


def test_me_requires_access_token(client):
    assert_problem(client.get(f"{AUTH_PREFIX}/me"), 401, "Access token not found")


def test_refresh_token_is_not_accepted_as_access_token(client, tokens):
    resp = client.get(f"{AUTH_PREFIX}/me", headers=bearer(tokens["refresh_token"]))
    assert_problem(resp, 401, "Invalid access token")


def test_expired_access_token_is_rejected(app, client, user):
    codec = app.extensions["token_codec"]
    token = codec.encode(
        {"sub": str(user.id), "tokenId": 1, "jti": "expired-jti", "type": "access"},
        token_class=TokenClass.ACCESS,
        expires_in=timedelta(seconds=-30),
    )
    assert_problem(client.get(f"{AUTH_PREFIX}/me", headers=bearer(token)), 401, "Access token expired")


# -------------------------------- Refresh --------------------------------- #


def test_refresh_rotates_the_pair(client, tokens):
    resp = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(tokens["refresh_token"]))
    assert resp.status_code == 200
    rotated = resp.get_json()
    assert rotated["refresh_token"] != tokens["refresh_token"]

    # The new access token works
    assert client.get(f"{AUTH_PREFIX}/me", headers=bearer(rotated["access_token"])).status_code == 200


def test_refresh_token_is_single_use(client, tokens):
    first = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(tokens["refresh_token"]))
    assert first.status_code == 200
    replay = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(tokens["refresh_token"]))
    assert_problem(replay, 401, "Invalid refresh token")


def test_rotated_token_cannot_be_replayed_within_the_same_second(client, user, codec):
    with freeze_time("2030-01-01 12:00:00"):
        login = client.post(
            f"{AUTH_PREFIX}/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        ).get_json()
        rotated = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(login["refresh_token"]))
        replay = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(login["refresh_token"]))
        assert rotated.status_code == 200
        old_id = codec.decode(login["refresh_token"], token_class=TokenClass.REFRESH)["tokenId"]
        new_id = codec.decode(rotated.get_json()["refresh_token"], token_class=TokenClass.REFRESH)["tokenId"]

    assert new_id != old_id
    assert rotated.get_json()["refresh_token"] != login["refresh_token"]
    assert_problem(replay, 401, "Invalid refresh token")


def test_refresh_without_token(client):
    assert_problem(client.post(f"{AUTH_PREFIX}/refresh"), 401, "Refresh token not found")


def test_refresh_rejects_access_token(client, tokens):
    resp = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(tokens["access_token"]))
    assert_problem(resp, 401, "Invalid refresh token")


def test_refresh_rejects_non_bearer_scheme(client, tokens):
    resp = client.post(
        f"{AUTH_PREFIX}/refresh", headers={"Authorization": f"Basic {tokens['refresh_token']}"}
    )
    assert_problem(resp, 401, "Refresh token not found")


# --------------------------------- Logout --------------------------------- #


def test_logout_ends_session_and_revokes_access_token(client, tokens):
    resp = client.post(f"{AUTH_PREFIX}/logout", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Logged out successfully"}

    # The access token is revoked immediately
    me = client.get(f"{AUTH_PREFIX}/me", headers=bearer(tokens["access_token"]))
    assert_problem(me, 401, "Access token revoked")

    # The session's refresh token is dead
    refresh = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(tokens["refresh_token"]))
    assert_problem(refresh, 401, "Invalid refresh token")


def test_logout_of_already_rotated_session_is_not_found(client, tokens):
    rotated = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(tokens["refresh_token"]))
    assert rotated.status_code == 200
    # The old access token still points at the consumed record
    resp = client.post(f"{AUTH_PREFIX}/logout", headers=bearer(tokens["access_token"]))
    assert_problem(resp, 404, "Session not found")


def test_logout_requires_access_token(client):
    assert_problem(client.post(f"{AUTH_PREFIX}/logout"), 401)


def test_logout_leaves_other_sessions_alone(client, user, tokens):
    other = client.post(
        f"{AUTH_PREFIX}/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    ).get_json()

    assert client.post(f"{AUTH_PREFIX}/logout", headers=bearer(tokens["access_token"])).status_code == 200

    resp = client.post(f"{AUTH_PREFIX}/refresh", headers=bearer(other["refresh_token"]))
    assert resp.status_code == 200
