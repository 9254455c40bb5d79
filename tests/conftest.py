# Shared fixtures for gscli tests.

import socket
import time

import pytest

from gscli.integrations.token_store import AccountCredential, AccountStore


@pytest.fixture
def store(tmp_path):
    return AccountStore(tmp_path / "config")


@pytest.fixture
def make_account():
    def _make(email="a@x.com", expired=False, **overrides):
        offset = -3600 if expired else 3600
        fields = {
            "email": email,
            "client_id": "cid",
            "client_secret": "csecret",
            "access_token": f"access-{email}",
            "refresh_token": f"refresh-{email}",
            "scope": "https://www.googleapis.com/auth/gmail.readonly",
            "token_type": "Bearer",
            "expiry_date": int((time.time() + offset) * 1000),
        }
        fields.update(overrides)
        return AccountCredential(**fields)

    return _make


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """Point the process-wide settings at a temporary config directory."""
    from gscli.config import get_settings

    config_dir = tmp_path / "config"
    monkeypatch.setenv("GSCLI_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("GOOGLE_CLIENT_CREDENTIAL_FILE", raising=False)
    get_settings.cache_clear()
    yield config_dir
    get_settings.cache_clear()
