"""gscli entry point.

Read-only Gmail, Drive and Calendar access from the terminal, with several
Google accounts side by side.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

import httpx

from gscli import formatter
from gscli.config import get_config_dir, get_settings
from gscli.errors import GscliError
from gscli.integrations.client_credentials import ClientCredentialResolver
from gscli.integrations.gcalendar import CalendarClient
from gscli.integrations.gdrive import DriveClient
from gscli.integrations.gmail import GmailClient
from gscli.integrations.login_flow import LoginFlow
from gscli.integrations.oauth import OAuthManager
from gscli.integrations.session import GoogleClient, SessionProvider
from gscli.integrations.token_store import AccountStore
from gscli.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return get_version("gscli")
    except PackageNotFoundError:
        return "0.0.0"


# ---------------------------------------------------------------------------
# auth / accounts
# ---------------------------------------------------------------------------


async def cmd_auth_login(args: argparse.Namespace, store: AccountStore) -> None:
    settings = get_settings()
    app = ClientCredentialResolver(store, settings).resolve(args.client)
    flow = LoginFlow(store, OAuthManager(timeout=settings.http_timeout), console=formatter.console)
    account = await flow.authenticate(app)
    formatter.show_success(f"Authenticated as {account.email}. You can now use gscli commands.")
    if args.client:
        formatter.show_info("Client credentials saved with the account; client.json is no longer needed.")


async def cmd_auth_status(args: argparse.Namespace, store: AccountStore) -> None:
    accounts = store.list()
    if not accounts:
        formatter.show_info('You are not authenticated. Run "gscli auth login" to get started.')
        return
    formatter.show_success("You are authenticated and ready to use gscli.")
    formatter.print_accounts(accounts)


async def cmd_auth_logout(args: argparse.Namespace, store: AccountStore) -> None:
    if args.account:
        store.remove(args.account)
        formatter.show_success(f"Logged out {args.account}.")
    else:
        store.clear()
        formatter.show_success("Successfully logged out. All stored credentials have been removed.")


async def cmd_accounts_list(args: argparse.Namespace, store: AccountStore) -> None:
    formatter.print_accounts(store.list())


async def cmd_accounts_default(args: argparse.Namespace, store: AccountStore) -> None:
    store.set_default(args.email)
    formatter.show_success(f"Default account set to {args.email}.")


async def cmd_accounts_remove(args: argparse.Namespace, store: AccountStore) -> None:
    store.remove(args.email)
    formatter.show_success(f"Removed {args.email}.")


# ---------------------------------------------------------------------------
# gmail / drive / calendar
# ---------------------------------------------------------------------------


async def _session(args: argparse.Namespace, store: AccountStore) -> GoogleClient:
    settings = get_settings()
    provider = SessionProvider(store, timeout=settings.http_timeout)
    return await provider.resolve(args.account)


async def cmd_gmail_list(args: argparse.Namespace, store: AccountStore) -> None:
    gmail = GmailClient(await _session(args, store))
    formatter.print_messages(await gmail.list_messages(label=args.folder, limit=args.limit))


async def cmd_gmail_search(args: argparse.Namespace, store: AccountStore) -> None:
    gmail = GmailClient(await _session(args, store))
    formatter.print_messages(await gmail.search(args.query, limit=args.limit))


async def cmd_gmail_read(args: argparse.Namespace, store: AccountStore) -> None:
    gmail = GmailClient(await _session(args, store))
    formatter.print_message(await gmail.read(args.message_id))


async def cmd_gmail_labels(args: argparse.Namespace, store: AccountStore) -> None:
    gmail = GmailClient(await _session(args, store))
    formatter.print_labels(await gmail.list_labels())


async def cmd_drive_list(args: argparse.Namespace, store: AccountStore) -> None:
    drive = DriveClient(await _session(args, store))
    formatter.print_files(await drive.list_files(folder=args.folder, limit=args.limit))


async def cmd_drive_search(args: argparse.Namespace, store: AccountStore) -> None:
    drive = DriveClient(await _session(args, store))
    formatter.print_files(await drive.search(args.query, limit=args.limit))


async def cmd_drive_info(args: argparse.Namespace, store: AccountStore) -> None:
    drive = DriveClient(await _session(args, store))
    formatter.print_files([await drive.get_metadata(args.file_id)])


async def cmd_drive_download(args: argparse.Namespace, store: AccountStore) -> None:
    drive = DriveClient(await _session(args, store))
    path = await drive.download(args.file_id, output_dir=args.output, fmt=args.format)
    formatter.show_success(f"Downloaded to {path}")


async def cmd_drive_comments(args: argparse.Namespace, store: AccountStore) -> None:
    drive = DriveClient(await _session(args, store))
    meta = await drive.get_metadata(args.file_id)
    comments = await drive.list_comments(args.file_id, include_resolved=args.include_resolved)
    formatter.print_comments(meta["name"], comments, args.include_resolved)


async def cmd_calendar_list(args: argparse.Namespace, store: AccountStore) -> None:
    cal = CalendarClient(await _session(args, store))
    events = await cal.list_events(
        range_spec=args.range, start=args.start, end=args.end, limit=args.limit
    )
    formatter.print_events(events)


async def cmd_calendar_search(args: argparse.Namespace, store: AccountStore) -> None:
    cal = CalendarClient(await _session(args, store))
    formatter.print_events(await cal.search(args.query, days_ahead=args.days, limit=args.limit))


async def cmd_calendar_calendars(args: argparse.Namespace, store: AccountStore) -> None:
    cal = CalendarClient(await _session(args, store))
    formatter.print_calendars(await cal.list_calendars())


# ---------------------------------------------------------------------------
# parser
# ---------------------------------------------------------------------------


def _add_account(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-a",
        "--account",
        metavar="EMAIL",
        help="Google account email to use (uses default if not specified)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gscli",
        description="Google Service CLI - read-only access to Gmail, Drive, and Calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gscli auth login --client client.json   Add a Google account
  gscli accounts list                     Show stored accounts
  gscli gmail search "is:unread"          Search mail (default account)
  gscli drive list -a me@example.com      List Drive root for another account
  gscli calendar list --range 7d          Events for the next 7 days
""",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {_version()}"
    )
    groups = parser.add_subparsers(dest="group", metavar="COMMAND")

    # auth
    auth = groups.add_parser("auth", help="Manage authentication with Google services")
    auth_cmds = auth.add_subparsers(dest="command", required=True)
    p = auth_cmds.add_parser("login", help="Authenticate a Google account with OAuth2")
    p.add_argument("--client", metavar="PATH", help="Path to client credentials JSON file")
    p.set_defaults(func=cmd_auth_login)
    p = auth_cmds.add_parser("status", help="Check authentication status")
    p.set_defaults(func=cmd_auth_status)
    p = auth_cmds.add_parser("logout", help="Remove stored credentials")
    p.add_argument("-a", "--account", metavar="EMAIL", help="Only log out this account")
    p.set_defaults(func=cmd_auth_logout)

    # accounts
    accounts = groups.add_parser("accounts", help="Manage authenticated accounts")
    acct_cmds = accounts.add_subparsers(dest="command", required=True)
    p = acct_cmds.add_parser("list", help="List accounts")
    p.set_defaults(func=cmd_accounts_list)
    p = acct_cmds.add_parser("default", help="Set the default account")
    p.add_argument("email")
    p.set_defaults(func=cmd_accounts_default)
    p = acct_cmds.add_parser("remove", help="Remove an account")
    p.add_argument("email")
    p.set_defaults(func=cmd_accounts_remove)

    # gmail
    gmail = groups.add_parser("gmail", help="Gmail messages (read-only)")
    gmail_cmds = gmail.add_subparsers(dest="command", required=True)
    p = gmail_cmds.add_parser("list", help="List recent emails")
    p.add_argument("-l", "--limit", type=int, default=10)
    p.add_argument("-f", "--folder", default="INBOX", help='Label to list from, e.g. "SENT"')
    p.set_defaults(func=cmd_gmail_list)
    p = gmail_cmds.add_parser("search", help="Search emails using Gmail query syntax")
    p.add_argument("query")
    p.add_argument("-l", "--limit", type=int, default=10)
    p.set_defaults(func=cmd_gmail_search)
    p = gmail_cmds.add_parser("read", help="Show a full message")
    p.add_argument("message_id")
    p.set_defaults(func=cmd_gmail_read)
    p = gmail_cmds.add_parser("labels", help="List folders/labels")
    p.set_defaults(func=cmd_gmail_labels)
    for sub in gmail_cmds.choices.values():
        _add_account(sub)

    # drive
    drive = groups.add_parser("drive", help="Google Drive files (read-only)")
    drive_cmds = drive.add_subparsers(dest="command", required=True)
    p = drive_cmds.add_parser("list", help="List files")
    p.add_argument("-f", "--folder", metavar="NAME_OR_ID")
    p.add_argument("-l", "--limit", type=int, default=100)
    p.set_defaults(func=cmd_drive_list)
    p = drive_cmds.add_parser("search", help="Search files by name")
    p.add_argument("query")
    p.add_argument("-l", "--limit", type=int, default=50)
    p.set_defaults(func=cmd_drive_search)
    p = drive_cmds.add_parser("info", help="Show file metadata")
    p.add_argument("file_id")
    p.set_defaults(func=cmd_drive_info)
    p = drive_cmds.add_parser("download", help="Download or export a file")
    p.add_argument("file_id")
    p.add_argument(
        "--format",
        default="pdf",
        help="Export format: pdf, markdown, txt, docx (Docs) | csv, tsv, xlsx (Sheets) | pptx (Slides)",
    )
    p.add_argument("-o", "--output", metavar="DIR", help="Output directory")
    p.set_defaults(func=cmd_drive_download)
    p = drive_cmds.add_parser("comments", help="List comments on a file")
    p.add_argument("file_id")
    p.add_argument("--include-resolved", action="store_true")
    p.set_defaults(func=cmd_drive_comments)
    for sub in drive_cmds.choices.values():
        _add_account(sub)

    # calendar
    calendar = groups.add_parser("calendar", help="Google Calendar events (read-only)")
    cal_cmds = calendar.add_subparsers(dest="command", required=True)
    p = cal_cmds.add_parser("list", help="List events (default: today)")
    p.add_argument("-r", "--range", help='Relative range, e.g. "7d", "2w", "1m"')
    p.add_argument("-s", "--start", help="Start date (YYYY-MM-DD)")
    p.add_argument("-e", "--end", help="End date (YYYY-MM-DD)")
    p.add_argument("-l", "--limit", type=int, default=50)
    p.set_defaults(func=cmd_calendar_list)
    p = cal_cmds.add_parser("search", help="Search upcoming events")
    p.add_argument("query")
    p.add_argument("-d", "--days", type=int, default=90)
    p.add_argument("-l", "--limit", type=int, default=50)
    p.set_defaults(func=cmd_calendar_search)
    p = cal_cmds.add_parser("calendars", help="List calendars")
    p.set_defaults(func=cmd_calendar_calendars)
    for sub in cal_cmds.choices.values():
        _add_account(sub)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else get_settings().log_level)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    store = AccountStore(get_config_dir())
    try:
        asyncio.run(args.func(args, store))
    except GscliError as e:
        formatter.show_error(str(e), e.hint)
        return 1
    except httpx.HTTPStatusError as e:
        formatter.show_error(
            f"Google API request failed ({e.response.status_code}): {e.response.text[:200]}"
        )
        return 1
    except (httpx.HTTPError, OSError, ValueError) as e:
        formatter.show_error(str(e))
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
