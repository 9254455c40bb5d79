# Tests for integrations/client_credentials.py
# Created: 2026-10-07

import json

import pytest

from gscli.config import Settings
from gscli.errors import ConfigurationError, InvalidCredentialFormat
from gscli.integrations.client_credentials import (
    AppClientCredential,
    ClientCredentialResolver,
    load_client_file,
    parse_client_credential,
)

# ---------------------------------------------------------------------------
# parse_client_credential
# ---------------------------------------------------------------------------


class TestParse:
    def test_flat(self):
        cred = parse_client_credential({"client_id": "id", "client_secret": "secret"})
        assert cred == AppClientCredential("id", "secret")

    def test_installed(self):
        cred = parse_client_credential(
            {"installed": {"client_id": "id", "client_secret": "secret", "redirect_uris": []}}
        )
        assert cred.client_id == "id"

    def test_web(self):
        cred = parse_client_credential({"web": {"client_id": "wid", "client_secret": "ws"}})
        assert cred == AppClientCredential("wid", "ws")

    def test_missing_secret(self):
        with pytest.raises(InvalidCredentialFormat, match="client_secret"):
            parse_client_credential({"installed": {"client_id": "id"}})

    def test_not_an_object(self):
        with pytest.raises(InvalidCredentialFormat):
            parse_client_credential(["client_id", "client_secret"])

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "client.json"
        path.write_text("client_id=abc")
        with pytest.raises(InvalidCredentialFormat):
            load_client_file(path)


# ---------------------------------------------------------------------------
# ClientCredentialResolver
# ---------------------------------------------------------------------------


def _write(path, client_id):
    path.write_text(json.dumps({"installed": {"client_id": client_id, "client_secret": "s"}}))
    return path


@pytest.fixture
def workdir(tmp_path):
    d = tmp_path / "work"
    d.mkdir()
    return d


class TestResolver:
    def test_explicit_path(self, store, workdir, tmp_path):
        path = _write(tmp_path / "mine.json", "explicit")
        _write(workdir / "client.json", "local")
        resolver = ClientCredentialResolver(store, Settings(client_credential_file=None), workdir)
        assert resolver.resolve(path).client_id == "explicit"

    def test_env_path(self, store, workdir, tmp_path):
        path = _write(tmp_path / "env.json", "from-env")
        _write(workdir / "client.json", "local")
        resolver = ClientCredentialResolver(
            store, Settings(client_credential_file=str(path)), workdir
        )
        assert resolver.resolve().client_id == "from-env"

    def test_env_variable_name(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GOOGLE_CLIENT_CREDENTIAL_FILE", str(tmp_path / "env.json"))
        assert Settings().client_credential_file == str(tmp_path / "env.json")

    def test_local_file(self, store, workdir):
        _write(workdir / "client.json", "local")
        resolver = ClientCredentialResolver(store, Settings(client_credential_file=None), workdir)
        assert resolver.resolve().client_id == "local"

    def test_missing_explicit_falls_through(self, store, workdir, tmp_path):
        _write(workdir / "client.json", "local")
        resolver = ClientCredentialResolver(store, Settings(client_credential_file=None), workdir)
        assert resolver.resolve(tmp_path / "nope.json").client_id == "local"

    def test_stored_account_wins(self, store, make_account, workdir, tmp_path):
        store.save(make_account(client_id="stored-id", client_secret="stored-secret"))
        path = _write(tmp_path / "mine.json", "explicit")
        resolver = ClientCredentialResolver(store, Settings(client_credential_file=None), workdir)
        assert resolver.resolve(path) == AppClientCredential("stored-id", "stored-secret")

    def test_invalid_file_is_an_error(self, store, workdir):
        (workdir / "client.json").write_text(json.dumps({"client_id": "only-id"}))
        resolver = ClientCredentialResolver(store, Settings(client_credential_file=None), workdir)
        with pytest.raises(InvalidCredentialFormat):
            resolver.resolve()

    def test_not_found_message(self, store, workdir, tmp_path):
        resolver = ClientCredentialResolver(store, Settings(client_credential_file=None), workdir)
        with pytest.raises(ConfigurationError) as exc_info:
            resolver.resolve(tmp_path / "nope.json")

        message = str(exc_info.value)
        assert "--client" in message
        assert "GOOGLE_CLIENT_CREDENTIAL_FILE" in message
        assert "client.json" in message
        assert "console.cloud.google.com" in message
        assert str(tmp_path / "nope.json") in message
        assert str(workdir / "client.json") in message

    def test_candidate_order(self, store, workdir):
        resolver = ClientCredentialResolver(
            store, Settings(client_credential_file="/env/c.json"), workdir
        )
        paths = resolver.candidate_paths("/flag/c.json")
        assert [str(p) for p in paths] == [
            "/flag/c.json",
            "/env/c.json",
            str(workdir / "client.json"),
        ]
