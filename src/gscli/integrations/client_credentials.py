# Client Credentials — locate the OAuth app registration (client_id / client_secret).
# Created: 2026-10-03

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gscli.config import CLIENT_CREDENTIAL_ENV, Settings, get_settings
from gscli.errors import ConfigurationError, InvalidCredentialFormat
from gscli.integrations.token_store import AccountStore

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_FILE = "client.json"


@dataclass(frozen=True)
class AppClientCredential:
    """OAuth 2.0 client registration, independent of any user."""

    client_id: str
    client_secret: str


def _flat(data: dict[str, Any]) -> dict[str, Any] | None:
    return data


def _installed(data: dict[str, Any]) -> dict[str, Any] | None:
    return data.get("installed")


def _web(data: dict[str, Any]) -> dict[str, Any] | None:
    return data.get("web")


# Google Cloud console downloads wrap the fields under "installed" (Desktop
# app) or "web"; hand-written files are usually flat.
PARSE_STRATEGIES: list[tuple[str, Callable[[dict[str, Any]], dict[str, Any] | None]]] = [
    ("flat", _flat),
    ("installed", _installed),
    ("web", _web),
]


def parse_client_credential(data: Any) -> AppClientCredential:
    """Extract client_id/client_secret from a parsed client JSON document.

    Raises:
        InvalidCredentialFormat: no strategy yields both fields.
    """
    if isinstance(data, dict):
        for name, strategy in PARSE_STRATEGIES:
            section = strategy(data)
            if not isinstance(section, dict):
                continue
            client_id = section.get("client_id")
            client_secret = section.get("client_secret")
            if client_id and client_secret:
                logger.debug("Parsed client credential (%s format)", name)
                return AppClientCredential(client_id=client_id, client_secret=client_secret)

    raise InvalidCredentialFormat(
        "Invalid credentials format: missing client_id or client_secret"
    )


def load_client_file(path: Path) -> AppClientCredential:
    try:
        data = json.loads(path.read_text())
    except ValueError as e:
        raise InvalidCredentialFormat(f"Invalid credentials format in {path}: {e}") from e
    return parse_client_credential(data)


def _not_found_message(searched: list[Path]) -> str:
    tried = "\n".join(f"   - {p}" for p in searched)
    return f"""Google OAuth2 client credentials not found!

Please provide credentials using one of these methods:

1. Command-line flag:
   gscli auth login --client /path/to/your/client.json

2. Environment variable:
   export {CLIENT_CREDENTIAL_ENV}="/path/to/your/client.json"

3. Local file (default):
   Create a file named "{DEFAULT_CLIENT_FILE}" in the current directory
   Format: {{"client_id": "...", "client_secret": "..."}}

To get credentials:
1. Go to https://console.cloud.google.com/apis/credentials
2. Create OAuth 2.0 Client ID (Desktop app)
3. Download the JSON file and save as {DEFAULT_CLIENT_FILE}

Searched paths:
{tried}"""


class ClientCredentialResolver:
    """Resolve the app credential used to start a login.

    Precedence order:
    1. client_id/client_secret saved with any already-stored account
    2. explicit path (``--client``)
    3. path in the GOOGLE_CLIENT_CREDENTIAL_FILE environment variable
    4. ./client.json
    """

    def __init__(
        self,
        store: AccountStore | None = None,
        settings: Settings | None = None,
        cwd: Path | None = None,
    ):
        self.store = store or AccountStore()
        self.settings = settings or get_settings()
        self.cwd = cwd

    def candidate_paths(self, explicit_path: str | Path | None = None) -> list[Path]:
        paths: list[Path] = []
        if explicit_path:
            paths.append(Path(explicit_path).expanduser())
        if self.settings.client_credential_file:
            paths.append(Path(self.settings.client_credential_file).expanduser())
        base = self.cwd if self.cwd is not None else Path.cwd()
        paths.append(base / DEFAULT_CLIENT_FILE)
        return paths

    def resolve(self, explicit_path: str | Path | None = None) -> AppClientCredential:
        for account in self.store.load().accounts.values():
            if account.client_id and account.client_secret:
                logger.debug("Reusing client credential stored with %s", account.email)
                return AppClientCredential(account.client_id, account.client_secret)

        searched = self.candidate_paths(explicit_path)
        for path in searched:
            if path.is_file():
                logger.debug("Loading client credential from %s", path)
                return load_client_file(path)

        raise ConfigurationError(_not_found_message(searched))
