# Errors — typed failures for credential resolution, login, and session refresh.
# Created: 2026-10-03

from __future__ import annotations


class GscliError(Exception):
    """Base class for all gscli failures.

    Every error carries a ``hint``: the command the user should run next.
    """

    hint: str = ""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class ConfigurationError(GscliError):
    """No OAuth client credential file could be found."""

    hint = 'Run "gscli auth login --client /path/to/client.json".'


class InvalidCredentialFormat(GscliError):
    """A client credential file is missing client_id or client_secret."""

    hint = "Download a fresh OAuth client JSON (Desktop app) from the Google Cloud console."


class MissingAuthorizationCode(GscliError):
    """The OAuth callback arrived without a ``code`` parameter."""

    hint = 'Run "gscli auth login" again and approve the consent screen.'


class TokenExchangeFailed(GscliError):
    """Exchanging the authorization code for tokens failed."""

    hint = 'Run "gscli auth login" again.'


class MissingRefreshToken(GscliError):
    """The token response contained no refresh token."""

    hint = (
        "Revoke gscli at https://myaccount.google.com/permissions, "
        'then run "gscli auth login" again.'
    )


class AuthenticationTimeout(GscliError):
    """No OAuth callback arrived before the login deadline."""

    hint = 'Run "gscli auth login" again and finish within 5 minutes.'


class IdentityLookupError(GscliError):
    """The authenticated user's email could not be determined."""

    hint = 'Run "gscli auth login" again.'


class AccountNotFound(GscliError):
    """The requested account is not in the credential store."""

    hint = 'Run "gscli accounts list" to see configured accounts.'


class NoAccountsConfigured(GscliError):
    """The credential store holds no accounts."""

    hint = 'Run "gscli auth login" first.'


class TokenRefreshFailed(GscliError):
    """Refreshing an expired access token failed."""

    def __init__(self, email: str, reason: str = ""):
        message = f"Failed to refresh access token for {email}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, hint=f'Run "gscli auth login" again to re-authorize {email}.')
        self.email = email
