"""Supabase Auth wrapper and bearer-token resolution.

Without a configured backend there is no real auth: sign-up and sign-in
raise ConfigurationMissing, and ``resolve_user`` accepts a sample
profile id as the token so the sample landlord can be driven end to end.
"""

from __future__ import annotations

import logging

import httpx

from nyumbatz.exceptions import AuthenticationFailed, ConfigurationMissing, RemoteRequestFailed
from nyumbatz.schemas import AuthSession, PasswordResetRequest, SignInRequest, SignUpRequest
from nyumbatz.services.validators import parse_model
from nyumbatz.sources.remote import NETWORK_ERROR, RemoteSource
from nyumbatz.sources.selector import DataSourceSelector

logger = logging.getLogger(__name__)


def _session(response) -> AuthSession | None:
    user = getattr(response, "user", None)
    if user is None:
        return None
    session = getattr(response, "session", None)
    return AuthSession(
        user_id=str(user.id),
        email=user.email or "",
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
        expires_at=session.expires_at if session else None,
    )


class AuthService:
    def __init__(self, selector: DataSourceSelector):
        self.selector = selector

    async def _auth(self):
        source = await self.selector.select()
        if not isinstance(source, RemoteSource):
            raise ConfigurationMissing("Authentication requires a configured Supabase project")
        return source.auth

    async def _call(self, operation: str, coro_factory):
        auth = await self._auth()
        try:
            return await coro_factory(auth)
        except httpx.HTTPError as e:
            logger.error("Supabase auth %s failed (network): %s", operation, e)
            raise RemoteRequestFailed(NETWORK_ERROR, operation, e) from e
        except Exception as e:
            # gotrue raises AuthApiError for rejected credentials and tokens
            logger.info("Supabase auth %s rejected: %s", operation, e)
            raise AuthenticationFailed(str(e) or "Authentication failed") from e

    def _redirect(self, path: str) -> str:
        return f"{self.selector.settings().app_url.rstrip('/')}{path}"

    async def sign_up(self, payload: SignUpRequest | dict) -> AuthSession:
        """Register an account; profile columns travel as user metadata.

        ``access_token`` is None when email confirmation is still pending.
        """
        payload = parse_model(SignUpRequest, payload)
        credentials = {
            "email": payload.email,
            "password": payload.password,
            "options": {
                "email_redirect_to": self._redirect("/auth/callback"),
                "data": {
                    "full_name": payload.full_name,
                    "phone_number": payload.phone_number,
                    "user_role": payload.user_role,
                },
            },
        }
        session = _session(await self._call("sign_up", lambda auth: auth.sign_up(credentials)))
        if session is None:
            raise AuthenticationFailed("Sign up did not return a user")
        logger.info("Signed up %s as %s", session.user_id, payload.user_role)
        return session

    async def sign_in(self, payload: SignInRequest | dict) -> AuthSession:
        payload = parse_model(SignInRequest, payload)
        response = await self._call(
            "sign_in",
            lambda auth: auth.sign_in_with_password({"email": payload.email, "password": payload.password}),
        )
        session = _session(response)
        if session is None or session.access_token is None:
            raise AuthenticationFailed("Invalid email or password")
        return session

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind ``access_token``, not any session the server holds."""
        if not access_token:
            raise AuthenticationFailed("Not authenticated")
        await self._call("sign_out", lambda auth: auth.admin.sign_out(access_token))

    async def reset_password(self, payload: PasswordResetRequest | dict) -> None:
        payload = parse_model(PasswordResetRequest, payload)
        await self._call(
            "reset_password",
            lambda auth: auth.reset_password_for_email(
                payload.email, {"redirect_to": self._redirect("/auth/reset-password")}
            ),
        )

    async def resolve_user(self, token: str) -> AuthSession:
        """Map a bearer token to the signed-in user."""
        if not token:
            raise AuthenticationFailed("Not authenticated")
        if not self.selector.is_ready():
            profile = await self.selector.fallback.get_profile(token)
            if profile is None:
                raise AuthenticationFailed("Unknown demo user")
            return AuthSession(user_id=profile["id"], access_token=token)
        session = _session(await self._call("get_user", lambda auth: auth.get_user(token)))
        if session is None:
            raise AuthenticationFailed("Session expired, please sign in again")
        return session.model_copy(update={"access_token": token})
