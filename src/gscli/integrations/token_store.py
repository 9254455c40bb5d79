# Account Store — multi-account OAuth credential persistence at ~/.config/gscli/accounts.json.
# Created: 2026-10-03

from __future__ import annotations

import json
import logging
import os
import stat
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from gscli.errors import AccountNotFound, NoAccountsConfigured

logger = logging.getLogger(__name__)

ACCOUNTS_FILENAME = "accounts.json"


@dataclass
class AccountCredential:
    """OAuth 2.0 token set for one Google account, plus the app client that obtained it."""

    email: str
    client_id: str
    client_secret: str
    access_token: str
    refresh_token: str
    scope: str = ""
    token_type: str = "Bearer"
    expiry_date: int = 0  # Unix epoch, milliseconds

    @property
    def scopes(self) -> frozenset[str]:
        return frozenset(self.scope.split())

    def is_expired(self, now: float | None = None) -> bool:
        """True if the access token's expiry instant has passed."""
        now_ms = (time.time() if now is None else now) * 1000
        return self.expiry_date <= now_ms

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountCredential:
        return cls(
            email=data["email"],
            client_id=data["client_id"],
            client_secret=data["client_secret"],
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            scope=data.get("scope", ""),
            token_type=data.get("token_type", "Bearer"),
            expiry_date=int(data.get("expiry_date", 0)),
        )


@dataclass
class AccountSummary:
    email: str
    is_default: bool


@dataclass
class AccountsConfig:
    """Snapshot of the accounts file: accounts keyed by email, in insertion order."""

    accounts: dict[str, AccountCredential] = field(default_factory=dict)
    default_account: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.default_account:
            data["default_account"] = self.default_account
        data["accounts"] = {email: acct.to_dict() for email, acct in self.accounts.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountsConfig:
        raw = data.get("accounts") or {}
        accounts = {email: AccountCredential.from_dict(entry) for email, entry in raw.items()}
        default = data.get("default_account") or None
        if default not in accounts:
            default = None
        return cls(accounts=accounts, default_account=default)


def select_account(config: AccountsConfig, email: str | None = None) -> AccountCredential:
    """Pick an account from a store snapshot.

    An explicit email must match exactly. Otherwise the default account is
    used, then the first account in insertion order.

    Raises:
        AccountNotFound: ``email`` was given and is not stored.
        NoAccountsConfigured: no email given and the store is empty.
    """
    if email:
        account = config.accounts.get(email)
        if account is None:
            raise AccountNotFound(f"Account not found: {email}")
        return account

    if config.default_account and config.default_account in config.accounts:
        return config.accounts[config.default_account]

    for account in config.accounts.values():
        return account

    raise NoAccountsConfigured("No accounts configured.")


class AccountStore:
    """File-based account store at ``{config_dir}/accounts.json``.

    Nothing is cached: every call reads the file, and every mutation rewrites
    it whole. The file is chmod 0600 (owner-only read/write).
    """

    def __init__(self, config_dir: str | Path | None = None):
        if config_dir is None:
            from gscli.config import get_config_dir

            config_dir = get_config_dir()
        self.config_dir = Path(config_dir)

    @property
    def path(self) -> Path:
        return self.config_dir / ACCOUNTS_FILENAME

    def load(self) -> AccountsConfig:
        """Load the accounts file. Missing or unreadable files load as empty."""
        if not self.path.exists():
            return AccountsConfig()

        try:
            data = json.loads(self.path.read_text())
            return AccountsConfig.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable accounts file %s: %s", self.path, e)
            return AccountsConfig()

    def _write(self, config: AccountsConfig) -> None:
        self.config_dir.mkdir(mode=0o700, parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(config.to_dict(), f, indent=2)
        # A leftover temp file keeps the mode it was created with
        temp_path.chmod(stat.S_IRUSR | stat.S_IWUSR)
        temp_path.replace(self.path)

    def save(self, account: AccountCredential) -> None:
        """Add or update an account. The first account saved becomes the default."""
        config = self.load()
        config.accounts[account.email] = account
        if not config.default_account:
            config.default_account = account.email
        self._write(config)
        logger.info("Saved credentials for %s", account.email)

    def get(self, email: str | None = None) -> AccountCredential:
        return select_account(self.load(), email)

    def list(self) -> list[AccountSummary]:
        config = self.load()
        return [
            AccountSummary(email=email, is_default=email == config.default_account)
            for email in config.accounts
        ]

    def set_default(self, email: str) -> None:
        config = self.load()
        if email not in config.accounts:
            raise AccountNotFound(f"Account not found: {email}")
        config.default_account = email
        self._write(config)
        logger.info("Default account set to %s", email)

    def remove(self, email: str) -> None:
        """Remove an account. If it was the default, the next account is promoted."""
        config = self.load()
        if email not in config.accounts:
            raise AccountNotFound(f"Account not found: {email}")

        del config.accounts[email]
        if config.default_account == email:
            config.default_account = next(iter(config.accounts), None)
        self._write(config)
        logger.info("Removed credentials for %s", email)

    def clear(self) -> None:
        """Forget every account."""
        self._write(AccountsConfig())
        logger.info("Cleared all stored accounts")
