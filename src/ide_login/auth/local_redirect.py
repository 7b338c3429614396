"""
Local redirect listener for ide-login.

Starts a minimal HTTP server that Google redirects to after the user grants
access, and hands the verification code back to the waiting caller.
"""

import asyncio
import html
import logging
import socket
import threading
import time
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from ..utils.errors import format_error

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/oauth2callback"


def _create_page(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>{title}</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                display: flex;
                justify-content: center;
                align-items: center;
                min-height: 100vh;
                margin: 0;
            }}
            .container {{
                padding: 40px;
                text-align: center;
                max-width: 400px;
            }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>{title}</h1>
            {body}
        </div>
    </body>
    </html>
    """


def _create_success_html() -> str:
    return _create_page(
        "Sign-in Successful",
        "<p>You can close this window and return to your application.</p>",
    )


def _create_error_html(error_message: str) -> str:
    return _create_page(
        "Sign-in Failed",
        f"<p>{html.escape(error_message)}</p><p>Please return to your application and try again.</p>",
    )


class LocalRedirectReceiver:
    """
    Receives one OAuth redirect on a local port.

    The server runs in a background daemon thread; the caller blocks in
    wait_for_code() until the redirect arrives or the timeout passes.
    """

    def __init__(self, host: str = "localhost", port: int = 0) -> None:
        self.host = host
        self.port = port or self._find_free_port(host)
        self.app = FastAPI()
        self.server: Optional[uvicorn.Server] = None
        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False

        self._code: Optional[str] = None
        self._error: Optional[str] = None
        self._received = threading.Event()

        self._setup_callback_route()

    @staticmethod
    def _find_free_port(host: str) -> int:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            return s.getsockname()[1]

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.port}{CALLBACK_PATH}"

    @property
    def error(self) -> Optional[str]:
        """The error Google redirected with, if any."""
        return self._error

    def _setup_callback_route(self) -> None:
        """Setup the OAuth callback route."""

        @self.app.get(CALLBACK_PATH)
        async def oauth_callback(request: Request) -> HTMLResponse:
            """Handle the redirect from Google."""
            code = request.query_params.get("code")
            error = request.query_params.get("error")

            if error:
                self._error = error
                self._received.set()
                logger.error(f"Google returned an error: {error}")
                return HTMLResponse(
                    content=_create_error_html(f"Google returned an error: {error}"),
                    status_code=400,
                )

            if not code:
                # Stray request (e.g. favicon probe); keep waiting
                return HTMLResponse(
                    content=_create_error_html("No authorization code received from Google"),
                    status_code=400,
                )

            self._code = code
            self._received.set()
            logger.info("OAuth redirect: received verification code")
            return HTMLResponse(content=_create_success_html())

    def start(self) -> Tuple[bool, str]:
        """
        Start the redirect listener.

        Returns:
            Tuple of (success: bool, error_message: str)
        """
        if self.is_running:
            return True, ""

        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind((self.host, self.port))
        except OSError:
            error_msg = f"Port {self.port} is already in use"
            logger.error(error_msg)
            return False, error_msg

        def run_server() -> None:
            try:
                config = uvicorn.Config(
                    self.app,
                    host=self.host,
                    port=self.port,
                    log_level="warning",
                    access_log=False,
                )
                self.server = uvicorn.Server(config)
                asyncio.run(self.server.serve())
            except Exception as e:
                logger.error(format_error("Redirect listener", e), exc_info=True)
                self.is_running = False

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()

        max_wait = 3.0
        start_time = time.time()
        while time.time() - start_time < max_wait:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                if s.connect_ex((self.host, self.port)) == 0:
                    self.is_running = True
                    logger.info(f"Redirect listener started on {self.host}:{self.port}")
                    return True, ""
            time.sleep(0.1)

        error_msg = f"Failed to start redirect listener on {self.host}:{self.port}"
        logger.error(error_msg)
        return False, error_msg

    def wait_for_code(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Block until the redirect arrives.

        Returns:
            The verification code, or None on timeout or if Google
            redirected with an error.
        """
        if not self._received.wait(timeout):
            logger.warning("Timed out waiting for the OAuth redirect")
            return None
        return self._code

    def stop(self) -> None:
        """Stop the redirect listener, including one that never finished starting."""
        if self.server is not None:
            self.server.should_exit = True
        if self.server_thread and self.server_thread.is_alive():
            self.server_thread.join(timeout=3.0)

        if self.is_running:
            self.is_running = False
            logger.info("Redirect listener stopped")

    def __enter__(self) -> "LocalRedirectReceiver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
