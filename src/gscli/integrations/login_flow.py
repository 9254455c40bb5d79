# Login Flow — interactive OAuth login over a one-shot loopback callback listener.
# Created: 2026-10-04

from __future__ import annotations

import asyncio
import enum
import functools
import logging
import urllib.parse
from dataclasses import dataclass

from rich.console import Console

from gscli.errors import (
    AuthenticationTimeout,
    GscliError,
    MissingAuthorizationCode,
    MissingRefreshToken,
)
from gscli.integrations.client_credentials import AppClientCredential
from gscli.integrations.oauth import (
    REDIRECT_HOST,
    REDIRECT_PORT,
    SCOPES,
    OAuthManager,
    expiry_from_response,
    redirect_uri,
)
from gscli.integrations.token_store import AccountCredential, AccountStore

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """<html>
  <head><title>Authentication Successful</title></head>
  <body style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: #4CAF50;">Authentication Successful!</h1>
    <p>You can now close this window and return to your terminal.</p>
  </body>
</html>
"""

ERROR_PAGE = """<html>
  <head><title>Authentication Failed</title></head>
  <body style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: #dc3545;">Authentication Failed</h1>
    <p>Return to your terminal for details.</p>
  </body>
</html>
"""


class FlowState(enum.StrEnum):
    URL_GENERATED = "url_generated"
    LISTENING = "listening"
    CODE_RECEIVED = "code_received"
    EXCHANGING = "exchanging"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = frozenset({FlowState.COMPLETED, FlowState.FAILED, FlowState.TIMED_OUT})


@dataclass
class _Attempt:
    app: AppClientCredential
    claimed: asyncio.Future[None]
    result: asyncio.Future[AccountCredential]


class LoginFlow:
    """One interactive login attempt.

    The flow owns a single listener on 127.0.0.1:8080. The first callback
    request and the timeout race; whichever comes first decides the outcome,
    and ``_finished`` makes sure the result is set once and the listener is
    torn down once. A flow object is single-use.
    """

    CALLBACK_TIMEOUT = 300  # 5 minutes

    def __init__(
        self,
        store: AccountStore | None = None,
        oauth: OAuthManager | None = None,
        port: int = REDIRECT_PORT,
        timeout: float = CALLBACK_TIMEOUT,
        console: Console | None = None,
    ):
        self.store = store or AccountStore()
        self.oauth = oauth or OAuthManager()
        self.port = port
        self.timeout = timeout
        self.console = console or Console()

        self.state: FlowState | None = None
        self.auth_url = ""
        self._server: asyncio.Server | None = None
        self._connections: set[asyncio.StreamWriter] = set()
        self._finished = False

    @property
    def redirect_uri(self) -> str:
        return redirect_uri(self.port)

    async def authenticate(self, app: AppClientCredential) -> AccountCredential:
        """Run the login and return the stored account.

        Raises:
            MissingAuthorizationCode, TokenExchangeFailed, MissingRefreshToken,
            AuthenticationTimeout, IdentityLookupError.
            OSError if the callback port cannot be bound.
        """
        if self.state is not None:
            raise RuntimeError("LoginFlow instances are single-use")

        self.auth_url = self.oauth.get_auth_url(app.client_id, self.redirect_uri)
        self.state = FlowState.URL_GENERATED

        loop = asyncio.get_running_loop()
        attempt = _Attempt(app, loop.create_future(), loop.create_future())

        self._server = await asyncio.start_server(
            functools.partial(self._handle_request, attempt), REDIRECT_HOST, self.port
        )
        self.state = FlowState.LISTENING
        logger.info("Listening for OAuth callback on %s", self.redirect_uri)

        self.console.print("\nStarting authentication flow...\n")
        self.console.print("Please open this URL in your browser:\n")
        self.console.print(f"  {self.auth_url}\n", soft_wrap=True, markup=False, highlight=False)
        self.console.print("Waiting for authorization...\n")

        try:
            try:
                await asyncio.wait_for(attempt.claimed, timeout=self.timeout)
            except TimeoutError:
                self._finish(
                    attempt,
                    FlowState.TIMED_OUT,
                    AuthenticationTimeout(f"Authentication timeout ({self.timeout:g} seconds)"),
                )
            return await attempt.result
        finally:
            await self._close_server()

    async def _handle_request(
        self,
        attempt: _Attempt,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        self._connections.add(writer)
        try:
            request_line = await reader.readline()
            if not request_line:
                return
            while (await reader.readline()).strip():
                pass

            parts = request_line.decode("latin-1").split()
            target = urllib.parse.urlsplit(parts[1] if len(parts) > 1 else "/")

            if target.path == "/favicon.ico":
                await self._respond(writer, 404, "")
                return

            if self._finished or attempt.claimed.done():
                await self._respond(writer, 409, ERROR_PAGE)
                return
            attempt.claimed.set_result(None)

            outcome: AccountCredential | Exception
            try:
                outcome = await self._complete(attempt.app, urllib.parse.parse_qs(target.query))
            except Exception as e:
                outcome = e
            failed = isinstance(outcome, Exception)

            try:
                await self._respond(writer, 400 if failed else 200, ERROR_PAGE if failed else SUCCESS_PAGE)
            except OSError as e:
                logger.debug("Could not answer OAuth callback: %s", e)
            finally:
                if failed and not isinstance(outcome, GscliError):
                    logger.exception("Unexpected error during login", exc_info=outcome)
                self._finish(attempt, FlowState.FAILED if failed else FlowState.COMPLETED, outcome)
        finally:
            self._connections.discard(writer)
            writer.close()

    async def _complete(
        self, app: AppClientCredential, params: dict[str, list[str]]
    ) -> AccountCredential:
        code = params.get("code", [""])[0]
        if not code:
            reason = params.get("error", [""])[0]
            message = "No authorization code received"
            raise MissingAuthorizationCode(f"{message} ({reason})" if reason else message)

        self.state = FlowState.CODE_RECEIVED
        logger.debug("Authorization code received")

        self.state = FlowState.EXCHANGING
        tokens = await self.oauth.exchange_code(
            code,
            client_id=app.client_id,
            client_secret=app.client_secret,
            redirect_uri=self.redirect_uri,
        )
        if not tokens.get("refresh_token"):
            raise MissingRefreshToken("No refresh token received")

        email = await self.oauth.fetch_user_email(tokens["access_token"])

        account = AccountCredential(
            email=email,
            client_id=app.client_id,
            client_secret=app.client_secret,
            access_token=tokens["access_token"],
            refresh_token=tokens["refresh_token"],
            scope=tokens.get("scope") or " ".join(SCOPES),
            token_type=tokens.get("token_type", "Bearer"),
            expiry_date=expiry_from_response(tokens),
        )
        self.store.save(account)
        return account

    @staticmethod
    async def _respond(writer: asyncio.StreamWriter, status: int, body: str) -> None:
        reason = {200: "OK", 400: "Bad Request", 404: "Not Found", 409: "Conflict"}[status]
        payload = body.encode("utf-8")
        head = (
            f"HTTP/1.1 {status} {reason}\r\n"
            "Content-Type: text/html; charset=utf-8\r\n"
            f"Content-Length: {len(payload)}\r\n"
            "Connection: close\r\n\r\n"
        )
        writer.write(head.encode("latin-1") + payload)
        await writer.drain()

    def _finish(
        self,
        attempt: _Attempt,
        state: FlowState,
        outcome: AccountCredential | BaseException,
    ) -> None:
        if self._finished:
            return
        self._finished = True
        self.state = state
        if isinstance(outcome, BaseException):
            logger.info("Login %s: %s", state.value, outcome)
            attempt.result.set_exception(outcome)
        else:
            logger.info("Login completed for %s", outcome.email)
            attempt.result.set_result(outcome)

    async def _close_server(self) -> None:
        server, self._server = self._server, None
        if server is None:
            return
        server.close()
        for writer in list(self._connections):
            writer.close()
        await server.wait_closed()
        logger.debug("Callback listener on port %d closed", self.port)
