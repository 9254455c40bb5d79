# Tests for integrations/session.py
# Created: 2026-10-08

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gscli.errors import AccountNotFound, NoAccountsConfigured, TokenRefreshFailed
from gscli.integrations.oauth import OAuthManager
from gscli.integrations.session import GoogleClient, SessionProvider, get_client


def _oauth(result=None, error=None):
    oauth = OAuthManager()
    if error:
        oauth.refresh_access_token = AsyncMock(side_effect=error)
    else:
        oauth.refresh_access_token = AsyncMock(
            return_value=result or {"access_token": "fresh", "expires_in": 3600}
        )
    return oauth


class TestSessionProvider:
    async def test_valid_token_is_not_refreshed(self, store, make_account):
        acct = make_account()
        store.save(acct)
        oauth = _oauth()

        client = await SessionProvider(store, oauth).resolve()

        assert client.account == acct
        assert client.headers == {"Authorization": "Bearer access-a@x.com"}
        oauth.refresh_access_token.assert_not_awaited()

    async def test_expired_token_refreshed_once(self, store, make_account):
        acct = make_account(expired=True)
        store.save(acct)
        oauth = _oauth()
        now = time.time()

        client = await SessionProvider(store, oauth, clock=lambda: now).resolve("a@x.com")

        oauth.refresh_access_token.assert_awaited_once_with(
            "a@x.com",
            refresh_token="refresh-a@x.com",
            client_id="cid",
            client_secret="csecret",
        )
        assert client.account.access_token == "fresh"
        assert client.account.expiry_date == int((now + 3600) * 1000)
        assert client.account.expiry_date > acct.expiry_date

        stored = store.get("a@x.com")
        assert stored.access_token == "fresh"
        # Google did not send a new refresh token
        assert stored.refresh_token == "refresh-a@x.com"
        assert stored.scope == acct.scope

    async def test_new_refresh_token_is_kept(self, store, make_account):
        store.save(make_account(expired=True))
        oauth = _oauth({"access_token": "fresh", "refresh_token": "rotated", "expires_in": 60})
        await SessionProvider(store, oauth).resolve()
        assert store.get().refresh_token == "rotated"

    async def test_refreshed_token_reused(self, store, make_account):
        store.save(make_account(expired=True))
        oauth = _oauth()
        provider = SessionProvider(store, oauth)

        await provider.resolve()
        client = await provider.resolve()

        assert client.account.access_token == "fresh"
        assert oauth.refresh_access_token.await_count == 1

    async def test_refresh_failure_leaves_store_untouched(self, store, make_account):
        store.save(make_account("a@x.com"))
        store.save(make_account("b@x.com", expired=True))
        before = store.path.read_bytes()
        oauth = _oauth(error=TokenRefreshFailed("b@x.com", "invalid_grant"))

        with pytest.raises(TokenRefreshFailed) as exc_info:
            await SessionProvider(store, oauth).resolve("b@x.com")

        assert exc_info.value.email == "b@x.com"
        assert store.path.read_bytes() == before

    async def test_other_accounts_untouched_by_refresh(self, store, make_account):
        other = make_account("a@x.com")
        store.save(other)
        store.save(make_account("b@x.com", expired=True))

        await SessionProvider(store, _oauth()).resolve("b@x.com")

        assert store.get("a@x.com") == other
        assert store.load().default_account == "a@x.com"

    async def test_default_account_used(self, store, make_account):
        store.save(make_account("a@x.com"))
        store.save(make_account("b@x.com"))
        store.set_default("b@x.com")
        client = await SessionProvider(store, _oauth()).resolve()
        assert client.email == "b@x.com"

    async def test_no_accounts(self, store):
        with pytest.raises(NoAccountsConfigured) as exc_info:
            await SessionProvider(store, _oauth()).resolve()
        assert "gscli auth login" in exc_info.value.hint

    async def test_unknown_account(self, store, make_account):
        store.save(make_account())
        with pytest.raises(AccountNotFound, match="z@x.com"):
            await SessionProvider(store, _oauth()).resolve("z@x.com")


class TestGoogleClient:
    async def test_get_json(self, make_account):
        client = GoogleClient(make_account(), timeout=5)
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_resp = MagicMock()
            mock_resp.json.return_value = {"ok": True}
            mock_resp.raise_for_status = MagicMock()
            mock_client.get = AsyncMock(return_value=mock_resp)
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=False)
            mock_client_cls.return_value = mock_client

            data = await client.get_json("https://example.test/x", params={"a": 1})

        assert data == {"ok": True}
        mock_client_cls.assert_called_once_with(timeout=5)
        mock_client.get.assert_awaited_once_with(
            "https://example.test/x",
            params={"a": 1},
            headers={"Authorization": "Bearer access-a@x.com"},
        )


async def test_get_client_uses_settings(config_env, make_account):
    from gscli.integrations.token_store import AccountStore

    AccountStore(config_env).save(make_account())
    client = await get_client()
    assert client.email == "a@x.com"
