# OAuth Manager — Google OAuth 2.0 auth code flow, token refresh, identity lookup.
# Created: 2026-10-03

from __future__ import annotations

import logging
import time
import urllib.parse
from typing import Any

import httpx

from gscli.errors import IdentityLookupError, TokenExchangeFailed, TokenRefreshFailed

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

REDIRECT_HOST = "127.0.0.1"
REDIRECT_PORT = 8080
DEFAULT_EXPIRES_IN = 3600

# Read-only access only; never widen this list.
SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/userinfo.email",
]


def redirect_uri(port: int = REDIRECT_PORT) -> str:
    return f"http://{REDIRECT_HOST}:{port}"


def expiry_from_response(data: dict[str, Any], now: float | None = None) -> int:
    """Absolute expiry (epoch ms) from a token response's ``expires_in``."""
    try:
        expires_in = float(data.get("expires_in", DEFAULT_EXPIRES_IN))
    except (TypeError, ValueError):
        expires_in = DEFAULT_EXPIRES_IN
    return int(((time.time() if now is None else now) + expires_in) * 1000)


class OAuthManager:
    """Google OAuth 2.0 authorization code flow + token refresh.

    Supports:
    - Authorization URL generation (offline access, forced consent)
    - Code exchange for tokens
    - Token refresh
    - "Who am I" email lookup

    Every network call is a single request; nothing here retries.
    """

    def __init__(self, timeout: float = 15):
        self.timeout = timeout

    def get_auth_url(
        self,
        client_id: str,
        redirect_uri: str,
        scopes: list[str] | None = None,
        state: str = "",
    ) -> str:
        """Generate the Google consent URL.

        ``access_type=offline`` plus ``prompt=consent`` makes Google reissue
        a refresh token even when the user authorized gscli before.
        """
        params = {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes or SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state

        return f"{GOOGLE_AUTH_URL}?{urllib.parse.urlencode(params)}"

    async def exchange_code(
        self,
        code: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
    ) -> dict[str, Any]:
        """Exchange an authorization code for the raw token response.

        Raises:
            TokenExchangeFailed: the token endpoint is unreachable or rejects the code.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": client_id,
                        "client_secret": client_secret,
                        "redirect_uri": redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TokenExchangeFailed(f"Token exchange failed: {e}") from e

        if not isinstance(data, dict) or not data.get("access_token"):
            raise TokenExchangeFailed("Token exchange failed: no access_token in response")

        logger.debug("Exchanged authorization code for tokens")
        return data

    async def refresh_access_token(
        self,
        email: str,
        refresh_token: str,
        client_id: str,
        client_secret: str,
    ) -> dict[str, Any]:
        """Trade a refresh token for a new access token (single attempt).

        Raises:
            TokenRefreshFailed: naming ``email``.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "refresh_token": refresh_token,
                        "client_id": client_id,
                        "client_secret": client_secret,
                        "grant_type": "refresh_token",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Token refresh failed for %s: %s", email, e)
            raise TokenRefreshFailed(email, str(e)) from e

        if not isinstance(data, dict) or not data.get("access_token"):
            raise TokenRefreshFailed(email, "no access_token in response")

        logger.info("Refreshed OAuth token for %s", email)
        return data

    async def fetch_user_email(self, access_token: str) -> str:
        """Look up the email address of the token's owner.

        Raises:
            IdentityLookupError: request failed or the response has no email.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IdentityLookupError(f"Failed to fetch user email: {e}") from e

        email = data.get("email") if isinstance(data, dict) else None
        if not email:
            raise IdentityLookupError(
                "Failed to fetch user email: email not found in user info response"
            )
        return email
