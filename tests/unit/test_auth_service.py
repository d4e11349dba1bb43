from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from conftest import SettingsHolder, configured_settings

from nyumbatz.exceptions import (
    AuthenticationFailed, ConfigurationMissing, RemoteRequestFailed, ValidationFailed,
)
from nyumbatz.services.auth import AuthService
from nyumbatz.sources.remote import RemoteSource
from nyumbatz.sources.selector import DataSourceSelector

SIGN_UP = {
    "email": "Juma@Example.com",
    "password": "secret1",
    "full_name": "Juma Hassan",
    "phone_number": "0712345678",
    "user_role": "landlord",
}


def _auth_response(with_session=True):
    return SimpleNamespace(
        user=SimpleNamespace(id="5b6f", email="juma@example.com"),
        session=SimpleNamespace(access_token="access", refresh_token="refresh", expires_at=1900000000)
        if with_session else None,
    )


@pytest.fixture
def client():
    client = MagicMock()
    client.auth.sign_up = AsyncMock(return_value=_auth_response(with_session=False))
    client.auth.sign_in_with_password = AsyncMock(return_value=_auth_response())
    client.auth.admin.sign_out = AsyncMock()
    client.auth.reset_password_for_email = AsyncMock()
    client.auth.get_user = AsyncMock(return_value=SimpleNamespace(user=SimpleNamespace(id="5b6f", email="j@e.co")))
    return client


@pytest.fixture
def data_client():
    return MagicMock()


@pytest.fixture
def auth(client, data_client, fallback):
    async def factory(settings):
        return RemoteSource(data_client, client)

    return AuthService(DataSourceSelector(SettingsHolder(configured_settings()), factory, fallback))


@pytest.mark.asyncio
async def test_sign_up_sends_profile_metadata(auth, client):
    session = await auth.sign_up(SIGN_UP)
    assert session.user_id == "5b6f"
    assert session.access_token is None
    credentials = client.auth.sign_up.await_args.args[0]
    assert credentials["email"] == "juma@example.com"
    assert credentials["options"]["data"] == {
        "full_name": "Juma Hassan", "phone_number": "0712345678", "user_role": "landlord",
    }
    assert credentials["options"]["email_redirect_to"].endswith("/auth/callback")


@pytest.mark.asyncio
async def test_sign_up_validates_before_calling(auth, client):
    with pytest.raises(ValidationFailed):
        await auth.sign_up({**SIGN_UP, "password": "123"})
    client.auth.sign_up.assert_not_awaited()


@pytest.mark.asyncio
async def test_sign_in(auth):
    session = await auth.sign_in({"email": "juma@example.com", "password": "secret1"})
    assert session.access_token == "access"
    assert session.expires_at == 1900000000


@pytest.mark.asyncio
async def test_rejected_credentials(auth, client):
    client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
    with pytest.raises(AuthenticationFailed, match="Invalid login credentials"):
        await auth.sign_in({"email": "juma@example.com", "password": "wrong"})


@pytest.mark.asyncio
async def test_network_failure(auth, client):
    client.auth.sign_in_with_password.side_effect = httpx.ConnectError("unreachable")
    with pytest.raises(RemoteRequestFailed):
        await auth.sign_in({"email": "juma@example.com", "password": "secret1"})


@pytest.mark.asyncio
async def test_reset_password_redirect(auth, client):
    await auth.reset_password({"email": "juma@example.com"})
    email, options = client.auth.reset_password_for_email.await_args.args
    assert email == "juma@example.com"
    assert options["redirect_to"].endswith("/auth/reset-password")


@pytest.mark.asyncio
async def test_resolve_token(auth, client):
    session = await auth.resolve_user("jwt-token")
    assert session.user_id == "5b6f"
    assert session.access_token == "jwt-token"
    client.auth.get_user.assert_awaited_once_with("jwt-token")


@pytest.mark.asyncio
async def test_demo_mode_sign_in_unavailable(demo_selector):
    with pytest.raises(ConfigurationMissing):
        await AuthService(demo_selector).sign_in({"email": "a@b.co", "password": "secret1"})


@pytest.mark.asyncio
async def test_demo_mode_token_is_a_sample_profile(demo_selector):
    auth = AuthService(demo_selector)
    assert (await auth.resolve_user("owner-1")).user_id == "owner-1"
    with pytest.raises(AuthenticationFailed):
        await auth.resolve_user("someone-else")
    with pytest.raises(AuthenticationFailed):
        await auth.resolve_user("")


@pytest.mark.asyncio
async def test_sign_in_keeps_session_off_the_data_client(auth, client, data_client):
    await auth.sign_in({"email": "juma@example.com", "password": "secret1"})
    await auth.resolve_user("jwt-token")
    client.auth.sign_in_with_password.assert_awaited_once()
    data_client.auth.sign_in_with_password.assert_not_called()
    data_client.auth.get_user.assert_not_called()


@pytest.mark.asyncio
async def test_sign_out_revokes_the_callers_session(auth, client):
    await auth.sign_out("jwt-of-tenant")
    client.auth.admin.sign_out.assert_awaited_once_with("jwt-of-tenant")
    client.auth.sign_out.assert_not_called()


@pytest.mark.asyncio
async def test_sign_out_needs_a_token(auth, client):
    with pytest.raises(AuthenticationFailed):
        await auth.sign_out("")
    client.auth.admin.sign_out.assert_not_awaited()
