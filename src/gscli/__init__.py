"""gscli - read-only Google Workspace access from the command line."""

from gscli.errors import GscliError
from gscli.integrations.session import GoogleClient, SessionProvider, get_client

__all__ = ["GoogleClient", "GscliError", "SessionProvider", "get_client"]
