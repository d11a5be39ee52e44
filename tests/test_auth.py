import time
from types import SimpleNamespace

import pytest
from django.contrib.sessions.backends.db import SessionStore
from django.test import RequestFactory
from supabase import AuthApiError

from community import auth
from community.backend import BackendError

from tests.fakes import fake_session, fake_user


@pytest.fixture
def request_with_session(db):
    request = RequestFactory().get("/en")
    request.session = SessionStore()
    return request


def test_sign_in_returns_session_payload(backend, fake_client):
    fake_client.auth.responses["sign_in_with_password"] = SimpleNamespace(
        session=fake_session(expires_at=1_900_000_000), user=fake_user()
    )

    payload = auth.sign_in(backend, "amina@example.com", "secret1")

    assert payload == {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_at": 1_900_000_000,
        "user": {"id": "user-1", "email": "amina@example.com", "full_name": "Amina Khan"},
    }
    name, args = fake_client.auth.calls[0]
    assert name == "sign_in_with_password"
    assert args[0] == {"email": "amina@example.com", "password": "secret1"}


def test_sign_in_wraps_auth_errors(backend, fake_client):
    fake_client.auth.errors["sign_in_with_password"] = AuthApiError(
        "Invalid login credentials", 400, "invalid_credentials"
    )

    with pytest.raises(BackendError) as excinfo:
        auth.sign_in(backend, "amina@example.com", "wrong")

    assert excinfo.value.code == "invalid_credentials"
    assert excinfo.value.status == 400


def test_session_payload_computes_expiry_from_expires_in():
    before = int(time.time())
    payload = auth.session_payload(fake_session(expires_in=120), fake_user())

    assert before + 120 <= payload["expires_at"] <= int(time.time()) + 120


def test_sign_up_passes_full_name_and_redirect(backend, fake_client):
    fake_client.auth.responses["sign_up"] = SimpleNamespace(user=fake_user(), session=None)

    auth.sign_up(backend, "new@example.com", "secret1", "New Member", redirect_to="https://x.test/en/confirm")

    credentials = fake_client.auth.calls[0][1][0]
    assert credentials["options"] == {
        "data": {"full_name": "New Member"},
        "email_redirect_to": "https://x.test/en/confirm",
    }


def test_sign_up_with_no_identities_is_a_duplicate(backend, fake_client):
    fake_client.auth.responses["sign_up"] = SimpleNamespace(user=fake_user(identities=[]), session=None)

    with pytest.raises(BackendError) as excinfo:
        auth.sign_up(backend, "amina@example.com", "secret1", "Amina Khan")

    assert auth.is_duplicate_email_error(excinfo.value)


@pytest.mark.parametrize(
    "error, expected",
    [
        (BackendError("anything", code="user_already_exists"), True),
        (BackendError("anything", code="email_exists"), True),
        (BackendError("User already registered"), True),
        (BackendError("A user with this email address has already been registered"), True),
        (BackendError("Password should be at least 6 characters", code="weak_password"), False),
        (BackendError("Signups not allowed for this instance"), False),
    ],
)
def test_is_duplicate_email_error(error, expected):
    assert auth.is_duplicate_email_error(error) is expected


def test_store_session_and_current_session(request_with_session, backend):
    payload = {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_at": int(time.time()) + 3600,
        "user": {"id": "user-1", "email": "amina@example.com", "full_name": ""},
    }
    auth.store_session(request_with_session, payload)

    assert auth.current_session(request_with_session, backend) == payload


def test_current_session_without_session_is_none(request_with_session, backend):
    assert auth.current_session(request_with_session, backend) is None


def test_current_session_refreshes_expired_token(request_with_session, backend, fake_client):
    request_with_session.session[auth.SESSION_KEY] = {
        "access_token": "old",
        "refresh_token": "refresh-1",
        "expires_at": int(time.time()) - 5,
        "user": {"id": "user-1", "email": "amina@example.com", "full_name": ""},
    }
    fake_client.auth.responses["refresh_session"] = SimpleNamespace(
        session=fake_session(access_token="new"), user=fake_user()
    )

    payload = auth.current_session(request_with_session, backend)

    assert payload["access_token"] == "new"
    assert request_with_session.session[auth.SESSION_KEY]["access_token"] == "new"
    assert fake_client.auth.calls == [("refresh_session", ("refresh-1",))]


def test_current_session_drops_session_when_refresh_fails(request_with_session, backend, fake_client):
    request_with_session.session[auth.SESSION_KEY] = {
        "access_token": "old",
        "refresh_token": "refresh-1",
        "expires_at": int(time.time()) - 5,
        "user": {"id": "user-1", "email": "amina@example.com", "full_name": ""},
    }
    fake_client.auth.errors["refresh_session"] = AuthApiError(
        "Invalid Refresh Token: Already Used", 400, "refresh_token_already_used"
    )

    assert auth.current_session(request_with_session, backend) is None
    assert auth.SESSION_KEY not in request_with_session.session


def test_sign_out_revokes_the_access_token(backend, fake_client):
    auth.sign_out(backend, "access-1")

    assert fake_client.auth.calls == [("sign_out", ("access-1",))]
    assert fake_client.options.headers["Authorization"] == "Bearer access-1"
