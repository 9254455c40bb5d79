# Session Provider — resolve an account to an authenticated Google API client.
# Created: 2026-10-04

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from gscli.integrations.oauth import OAuthManager, expiry_from_response
from gscli.integrations.token_store import AccountCredential, AccountStore

logger = logging.getLogger(__name__)


class GoogleClient:
    """Bearer-token client handle for one account.

    Consumers (the Gmail/Drive/Calendar wrappers) only ever see this object;
    they never touch the store or the OAuth manager.
    """

    def __init__(self, account: AccountCredential, timeout: float = 15):
        self.account = account
        self.timeout = timeout

    @property
    def email(self) -> str:
        return self.account.email

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"{self.account.token_type or 'Bearer'} {self.account.access_token}"}

    def http(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout)

    async def get_json(self, url: str, params: Any = None) -> dict[str, Any]:
        """GET ``url`` with this account's token and return the decoded JSON body."""
        async with self.http() as client:
            resp = await client.get(url, params=params, headers=self.headers)
            resp.raise_for_status()
            return resp.json()


class SessionProvider:
    """Resolve a stored account into a ready-to-use GoogleClient.

    If the stored access token is expired it is refreshed once with the
    account's own client credential, and the updated record is written back.
    A failed refresh leaves the store untouched.
    """

    def __init__(
        self,
        store: AccountStore | None = None,
        oauth: OAuthManager | None = None,
        clock: Callable[[], float] = time.time,
        timeout: float = 15,
    ):
        self.store = store or AccountStore()
        self.oauth = oauth or OAuthManager(timeout=timeout)
        self.clock = clock
        self.timeout = timeout

    async def resolve(self, account_email: str | None = None) -> GoogleClient:
        """Get an authenticated client for ``account_email`` (or the default account).

        Raises:
            AccountNotFound: ``account_email`` is not stored.
            NoAccountsConfigured: no account given and none stored.
            TokenRefreshFailed: the token was expired and could not be refreshed.
        """
        account = self.store.get(account_email)

        now = self.clock()
        if not account.is_expired(now):
            return GoogleClient(account, timeout=self.timeout)

        logger.debug("Access token for %s expired, refreshing", account.email)
        data = await self.oauth.refresh_access_token(
            account.email,
            refresh_token=account.refresh_token,
            client_id=account.client_id,
            client_secret=account.client_secret,
        )

        refreshed = dataclasses.replace(
            account,
            access_token=data["access_token"],
            # Google does not always reissue the refresh token
            refresh_token=data.get("refresh_token") or account.refresh_token,
            scope=data.get("scope") or account.scope,
            token_type=data.get("token_type") or account.token_type,
            expiry_date=expiry_from_response(data, now=now),
        )
        self.store.save(refreshed)
        return GoogleClient(refreshed, timeout=self.timeout)


async def get_client(account_email: str | None = None) -> GoogleClient:
    """Resolve a client using the process-wide settings."""
    from gscli.config import get_config_dir, get_settings

    settings = get_settings()
    provider = SessionProvider(AccountStore(get_config_dir()), timeout=settings.http_timeout)
    return await provider.resolve(account_email)
