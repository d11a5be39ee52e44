import pytest

from community.backend import HostedBackend, configure_backend

from tests.fakes import FakeClient, store_hosted_session

MEMBER = {
    "id": "member-1",
    "name": "Amina Khan",
    "email": "amina@example.com",
    "role": "member",
    "avatar": None,
    "status": "Active",
    "family_members": [],
}

ADMIN = dict(MEMBER, id="admin-1", name="Bilal Ahmadi", email="bilal@example.com", role="admin")


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture(autouse=True)
def backend(fake_client, settings):
    settings.SECURE_SSL_REDIRECT = False
    hosted = HostedBackend(
        "https://project.supabase.test",
        "anon-key",
        client_factory=lambda url, key: fake_client,
    )
    previous = configure_backend(hosted)
    yield hosted
    configure_backend(previous)


@pytest.fixture
def signed_in(client, db, fake_client):
    """Test client holding a valid hosted session for an ordinary member."""
    fake_client.rows["members"] = [dict(MEMBER)]
    store_hosted_session(client)
    return client


@pytest.fixture
def signed_in_admin(client, db, fake_client):
    fake_client.rows["members"] = [dict(ADMIN)]
    store_hosted_session(client, email=ADMIN["email"])
    return client
