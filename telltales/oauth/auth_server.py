"""
OAuth callback listener for Telldus Live integration.

This module obtains the ``oauth_verifier`` that completes the handshake.
Two sources compete for it:
- A one-shot HTTP listener on the loopback interface that Telldus Live
  redirects the browser to after consent
- Manual entry of the verification code (or the full redirect URL)

The listener is bound before the request token is issued, so the
redirect can never arrive before it is ready. Whichever source delivers
first wins; the loser is simply abandoned.
"""

import logging
import queue
import threading
import webbrowser
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import parse_qs, urlsplit

import click
from flask import Flask, Response, request
from markupsafe import escape
from werkzeug.serving import make_server

from .config import TelldusOAuthConfig
from .exceptions import (
    CallbackListenerError,
    MissingVerifierError,
    VerifierNotFoundError,
)

logger = logging.getLogger(__name__)

_PAGE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1 style="color: {color};">{title}</h1>
    <p>{message}</p>
    <p style="margin-top: 30px; color: #666;">You can close this window and return to the terminal.</p>
</body>
</html>"""


@dataclass
class AuthorizationResult:
    """
    Result delivered by the callback listener.

    Attributes:
        success: Whether a verifier was received
        verifier: oauth_verifier from the redirect (if successful)
        error: Short error code (if failed)
        error_description: Human-readable error description (if failed)
    """

    success: bool
    verifier: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


def extract_verifier(text: str) -> str:
    """
    Extract an oauth_verifier from free-form user input.

    The input is either the bare verification code or the full redirect
    URL the browser landed on.

    Args:
        text: What the user pasted

    Returns:
        The verifier string

    Raises:
        MissingVerifierError: If the input is blank or the verifier value is empty
        VerifierNotFoundError: If a URL carries no oauth_verifier parameter
    """
    trimmed = text.strip()
    if not trimmed:
        raise MissingVerifierError()

    parts = urlsplit(trimmed)
    if not (parts.scheme and parts.netloc):
        return trimmed

    if not parts.query:
        raise VerifierNotFoundError()

    values = parse_qs(parts.query, keep_blank_values=True).get("oauth_verifier")
    if values is None:
        raise VerifierNotFoundError()
    if not values[0]:
        raise MissingVerifierError()
    return values[0]


def prompt_for_verifier() -> str:
    """Ask the user for the verification code or redirect URL (non-empty)."""
    return click.prompt("Verification code or redirect URL", type=str)


class OAuthCallbackServer:
    """
    Local HTTP server that receives exactly one OAuth redirect.

    The server:
    1. Binds 127.0.0.1 on an OS-assigned port when constructed
    2. Serves a single request on a daemon thread
    3. Delivers the verifier (or an error) over a one-shot queue
    4. Closes its socket; it is never reused

    The background thread is not joined. If no browser ever connects it
    stays blocked in accept until the process exits.
    """

    def __init__(self, config: Optional[TelldusOAuthConfig] = None):
        """
        Initialize and bind callback server.

        Args:
            config: OAuth configuration with callback host and path

        Raises:
            CallbackListenerError: If the loopback socket cannot be bound
        """
        self.config = config or TelldusOAuthConfig()
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)
        self.thread: Optional[threading.Thread] = None
        self._channel: "queue.Queue[AuthorizationResult]" = queue.Queue(maxsize=1)
        self._delivered = False

        self.app.add_url_rule(
            self.config.callback_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )
        self.app.register_error_handler(404, self._handle_unknown_path)

        try:
            self._server = make_server(self.config.callback_host, 0, self.app)
        except OSError as e:
            logger.error(f"Could not bind callback listener: {e}")
            raise CallbackListenerError(f"failed to bind callback listener: {e}") from e

        self.port = self._server.server_address[1]
        logger.debug(f"Callback listener bound on port {self.port}")

    @property
    def callback_url(self) -> str:
        """URL handed to Telldus Live as oauth_callback."""
        return f"http://{self.config.callback_host}:{self.port}{self.config.callback_path}"

    def _deliver(self, result: AuthorizationResult) -> None:
        if self._delivered:
            return
        self._delivered = True
        self._channel.put_nowait(result)

    def _handle_callback(self) -> Response:
        """Handle the OAuth redirect from Telldus Live."""
        logger.info("Received OAuth callback")

        problem = request.args.get("oauth_problem")
        if problem:
            logger.error(f"OAuth callback reported problem: {problem}")
            self._deliver(
                AuthorizationResult(
                    success=False,
                    error=problem,
                    error_description="Telldus Live reported a problem with the authorization",
                )
            )
            return self._page(
                "Authorization Failed", f"Telldus Live reported: {escape(problem)}", 400
            )

        verifier = request.args.get("oauth_verifier", "")
        if not verifier:
            logger.error("No oauth_verifier in callback")
            self._deliver(
                AuthorizationResult(
                    success=False,
                    error="missing_verifier",
                    error_description="No oauth_verifier received in callback",
                )
            )
            return self._page(
                "Authorization Failed", "No verification code received from Telldus Live.", 400
            )

        logger.info("Verifier received successfully")
        self._deliver(AuthorizationResult(success=True, verifier=verifier))
        return self._page(
            "Authorization Successful",
            "telltales has been authorized to access your Telldus Live account.",
            200,
        )

    def _handle_unknown_path(self, error) -> Response:
        logger.error(f"Unexpected callback path: {request.path}")
        self._deliver(
            AuthorizationResult(
                success=False,
                error="unexpected_path",
                error_description=f"Callback arrived on unexpected path {request.path}",
            )
        )
        return self._page("Authorization Failed", "Unexpected callback address.", 400)

    @staticmethod
    def _page(title: str, message: str, status: int) -> Response:
        color = "#4caf50" if status == 200 else "#d32f2f"
        return Response(
            _PAGE.format(title=title, message=message, color=color),
            status=status,
            content_type="text/html",
        )

    def _serve_once(self) -> None:
        try:
            self._server.handle_request()
        except Exception as e:
            logger.error(f"Callback listener error: {e}")
            self._deliver(
                AuthorizationResult(
                    success=False, error="listener_error", error_description=str(e)
                )
            )
        finally:
            self._server.server_close()

        # handle_request() swallows handler crashes; make sure the waiter hears back
        self._deliver(
            AuthorizationResult(
                success=False,
                error="listener_error",
                error_description="Callback listener stopped without a result",
            )
        )

    def start(self) -> None:
        """Start serving the single callback request on a daemon thread."""
        logger.info(f"Starting OAuth callback listener on {self.callback_url}")
        self.thread = threading.Thread(
            target=self._serve_once, name="telltales-oauth-callback", daemon=True
        )
        self.thread.start()

    def wait_for_callback(self, timeout: float = 300) -> AuthorizationResult:
        """
        Wait for the OAuth redirect.

        Args:
            timeout: Maximum seconds to wait (default: 300 = 5 minutes)

        Returns:
            AuthorizationResult with verifier, error, or error="timeout"
        """
        logger.info(f"Waiting for OAuth callback (timeout: {timeout}s)")

        try:
            return self._channel.get(timeout=timeout)
        except queue.Empty:
            logger.warning(f"Timeout waiting for callback after {timeout}s")
            return AuthorizationResult(
                success=False,
                error="timeout",
                error_description=f"No callback received within {timeout} seconds.",
            )


def run_authorization_flow(
    server: OAuthCallbackServer,
    authorize_url: str,
    prompt: Optional[Callable[[], str]] = None,
    open_browser: bool = False,
    timeout: float = 300,
) -> str:
    """
    Obtain the verifier for one handshake.

    This function:
    1. Displays the authorization URL and both ways of completing it
    2. Optionally opens the browser
    3. Waits for the callback listener
    4. Falls back to manual entry when the wait times out

    Args:
        server: Started callback server whose URL was sent as oauth_callback
        authorize_url: Consent page for the current request token
        prompt: Returns the user's manual input (default: click prompt)
        open_browser: Whether to open the browser automatically
        timeout: Seconds to wait for the redirect before prompting

    Returns:
        The oauth_verifier

    Raises:
        CallbackListenerError: If the listener reported an error
        MissingVerifierError: If the manual input was empty
        VerifierNotFoundError: If a pasted URL had no oauth_verifier
    """
    prompt = prompt or prompt_for_verifier

    print(
        "Open the following URL in your browser, authorize access, "
        "and press the “Confirm” button:"
    )
    print(authorize_url)
    print(
        "After you confirm, your browser is redirected back to this program and "
        "authorization completes automatically."
    )
    print(
        f"If that does not happen within {int(timeout)} seconds, you will be asked to paste "
        "either the verification code Telldus shows or the full redirect URL."
    )

    if open_browser:
        try:
            webbrowser.open(authorize_url)
        except webbrowser.Error as e:
            logger.warning(f"Could not open browser automatically: {e}")

    result = server.wait_for_callback(timeout)

    if result.success:
        print("Authorization received from browser.")
        return result.verifier

    if result.error == "timeout":
        print("No browser redirect received; falling back to manual entry.")
        return extract_verifier(prompt())

    logger.error(f"Authorization callback failed: {result.error} - {result.error_description}")
    raise CallbackListenerError(
        f"callback listener failed: {result.error} ({result.error_description})"
    )
