import time
from types import SimpleNamespace

import pytest
from django.conf import settings
from django.urls import reverse
from supabase import AuthApiError

from community.auth import SESSION_KEY
from community.middleware import is_exempt_path, locale_from_path, matches_any

from tests.fakes import fake_session, fake_user, store_hosted_session

pytestmark = pytest.mark.django_db


def test_locale_from_path():
    assert locale_from_path("/en") == "en"
    assert locale_from_path("/ps/members") == "ps"
    assert locale_from_path("/english/members") is None, "Only whole segments count"
    assert locale_from_path("/members") is None


def test_exempt_paths():
    assert is_exempt_path("/static/site.css")
    assert is_exempt_path("/api/health")
    assert is_exempt_path("/favicon.ico")
    assert not is_exempt_path("/en/members")


def test_matches_any_uses_substrings():
    assert matches_any("/ps/member/42", ("/member/",))
    assert not matches_any("/en/login", ("/members", "/member/"))


def test_path_without_locale_redirects_to_default_locale(client):
    response = client.get("/members")

    assert response.status_code == 302
    assert response["Location"] == "/en/members"


def test_locale_redirect_keeps_query_string(client):
    response = client.get("/events?q=eid&page=2")

    assert response["Location"] == "/en/events?q=eid&page=2"


def test_root_redirects_to_default_locale(client):
    response = client.get("/")

    assert response.status_code == 302
    assert response["Location"] == "/en/"


def test_protected_path_without_session_redirects_to_login(client):
    response = client.get("/ps/members")

    assert response.status_code == 302
    assert response["Location"] == "/ps/login", "Login redirect keeps the locale"


def test_member_detail_path_is_protected(client):
    response = client.get("/en/member/abc")

    assert response["Location"] == "/en/login"


def test_auth_pages_redirect_home_when_signed_in(client):
    store_hosted_session(client)

    assert client.get("/en/login")["Location"] == "/en"
    assert client.get("/ps/register")["Location"] == "/ps"


def test_public_pages_get_short_private_cache_header(client):
    response = client.get("/en/test")

    assert response.status_code == 200
    cache_control = response["Cache-Control"]
    assert "private" in cache_control
    assert "max-age=60" in cache_control


def test_exempt_paths_are_not_redirected(client):
    response = client.get("/api/health")

    assert response.status_code == 404, "Exempt paths go straight to URL resolution"


def test_expired_session_is_refreshed(client, fake_client):
    store_hosted_session(client, expires_at=int(time.time()) - 60)
    fake_client.auth.responses["refresh_session"] = SimpleNamespace(
        session=fake_session(access_token="access-2"), user=fake_user()
    )

    response = client.get("/en/login")

    assert response["Location"] == "/en", "A refreshed session counts as signed in"
    assert client.session[SESSION_KEY]["access_token"] == "access-2"


def test_failed_refresh_drops_session(client, fake_client):
    store_hosted_session(client, expires_at=int(time.time()) - 60)
    fake_client.auth.errors["refresh_session"] = AuthApiError(
        "Invalid Refresh Token", 400, "refresh_token_not_found"
    )

    response = client.get("/en/members")

    assert response["Location"] == "/en/login"


@pytest.mark.parametrize("name", ["home", "login", "register", "confirm", "logout", "test"])
def test_open_routes_are_not_gated(name):
    path = reverse(name, kwargs={"locale": "en"})

    assert not matches_any(path, settings.COMMUNITY_PROTECTED_PATHS), f"{path} should not need a session"


@pytest.mark.parametrize(
    "name, kwargs",
    [
        ("members", {}),
        ("member", {"member_id": "m1"}),
        ("payments", {}),
        ("reports_csv", {}),
        ("events", {}),
        ("gallery", {}),
        ("family_edit", {"family_member_id": "family_1_abc"}),
        ("like_toggle", {"post_id": 1}),
        ("friends", {}),
        ("message_thread", {"other_id": "m2"}),
        ("notifications_read_all", {}),
    ],
)
def test_members_only_routes_sit_under_protected_prefixes(name, kwargs):
    path = reverse(name, kwargs={"locale": "ps", **kwargs})

    assert matches_any(path, settings.COMMUNITY_PROTECTED_PATHS), f"{path} must require a session"
