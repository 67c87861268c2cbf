"""Google OAuth 2.0: consent redirect, code exchange, userinfo."""
import logging
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from app.config import Settings
from app.schemas.auth import OAuthEmail, OAuthProfile
from app.services.errors import UnauthorizedError

logger = logging.getLogger(__name__)


class OAuthError(UnauthorizedError):
    default_message = "OAuth authentication failed"


class GoogleOAuth:
    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.google_oauth_configured

    def get_authorize_url(self, state: str | None = None) -> str:
        if not self.is_configured:
            raise OAuthError("Google OAuth not configured")
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_callback_url,
            "response_type": "code",
            "scope": "openid email profile",
            "prompt": "select_account",
        }
        if state:
            params["state"] = state
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=10.0, transport=self._transport)

    def exchange_code(self, code: str) -> dict:
        if not self.is_configured:
            raise OAuthError("Google OAuth not configured")
        try:
            with self._client() as client:
                response = client.post(
                    self.TOKEN_URL,
                    data={
                        "client_id": self.settings.google_client_id,
                        "client_secret": self.settings.google_client_secret,
                        "code": code,
                        "redirect_uri": self.settings.google_callback_url,
                        "grant_type": "authorization_code",
                    },
                )
        except httpx.HTTPError as e:
            raise OAuthError(f"Token exchange failed: {type(e).__name__}") from e
        if response.status_code != 200:
            logger.error("Google token exchange failed: status=%s body=%s", response.status_code, response.text[:500])
            raise OAuthError(f"Token exchange failed: {response.status_code}")
        return response.json()

    def get_profile(self, access_token: str) -> OAuthProfile:
        try:
            with self._client() as client:
                response = client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            raise OAuthError(f"Failed to get user info: {type(e).__name__}") from e
        if response.status_code != 200:
            logger.error("Google userinfo failed: status=%s body=%s", response.status_code, response.text[:500])
            raise OAuthError(f"Failed to get user info: {response.status_code}")
        data = response.json()
        emails = []
        if data.get("email"):
            try:
                emails.append(OAuthEmail(value=data["email"], verified=data.get("verified_email")))
            except ValidationError as e:
                raise OAuthError("Provider returned an invalid email address") from e
        return OAuthProfile(id=str(data["id"]), display_name=data.get("name") or None, emails=emails)

    def authenticate(self, code: str) -> OAuthProfile:
        tokens = self.exchange_code(code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthError("Token exchange returned no access token")
        return self.get_profile(access_token)
