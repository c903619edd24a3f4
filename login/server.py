from __future__ import annotations

import asyncio
import socket

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from ims.constants import LOGGER
from ims.models import TokenResponse

from .callback import CallbackHandler
from .channel import OutcomeChannel, Receiver
from .handler import LoginHandler
from .outcome import LoginError
from .redirect import RedirectHandler
from .result import ResultPublisher
from .route import Router
from .session import LoginSession

DEFAULT_SHUTDOWN_TIMEOUT = 5.0


class LoginServer:
    """Local HTTP server running one interactive IMS login.

    Pointing a browser at the server starts the authorization code flow. The
    outcome of the flow is published once, on either ``result`` or ``error``.
    """

    def __init__(
        self,
        *,
        client,
        client_id: str,
        scopes: list[str] | tuple[str, ...],
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        on_success: LoginHandler | None = None,
        on_error: LoginHandler | None = None,
        use_pkce: bool = False,
    ) -> None:
        if client is None:
            raise ValueError("missing IMS client")

        self.session = LoginSession.create(
            client_id=client_id,
            scopes=scopes,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            use_pkce=use_pkce,
        )

        self._results: OutcomeChannel[TokenResponse] = OutcomeChannel()
        self._errors: OutcomeChannel[Exception] = OutcomeChannel()

        publisher = ResultPublisher(
            results=self._results,
            errors=self._errors,
            on_success=on_success,
            on_error=on_error,
        )
        self._router = Router(
            redirect=RedirectHandler(client=client, session=self.session, next_handler=publisher),
            callback=CallbackHandler(client=client, session=self.session, next_handler=publisher),
        )
        self.app = Starlette(routes=[Route("/{path:path}", self._endpoint)])

        self._server: uvicorn.Server | None = None
        self._serving_done = asyncio.Event()
        self._shut_down = False

    async def _endpoint(self, request: Request) -> Response:
        return await self._router.handle(request)

    @property
    def result(self) -> Receiver[TokenResponse]:
        return self._results.receiver()

    @property
    def error(self) -> Receiver[Exception]:
        return self._errors.receiver()

    async def serve(self, sock: socket.socket) -> None:
        """Serve requests on an already bound socket until :meth:`shutdown`."""
        if self._shut_down:
            raise RuntimeError("login server is shut down")
        if self._server is not None:
            raise RuntimeError("login server is already serving")

        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=DEFAULT_SHUTDOWN_TIMEOUT,
        )
        self._server = uvicorn.Server(config)
        LOGGER.info("Login server listening on %s", sock.getsockname())
        try:
            await self._server.serve(sockets=[sock])
        finally:
            self._serving_done.set()

    async def shutdown(self, timeout: float | None = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        """Stop serving, then close the result and error channels.

        In-flight requests get ``timeout`` seconds to finish before they are
        cancelled. Must be called once.
        """
        if self._shut_down:
            raise RuntimeError("login server already shut down")
        self._shut_down = True

        try:
            if self._server is not None:
                self._server.config.timeout_graceful_shutdown = timeout
                self._server.should_exit = True
                await self._serving_done.wait()
        finally:
            self._results.close()
            self._errors.close()
            LOGGER.info("Login server shut down")

    async def wait(self, timeout: float | None = None) -> TokenResponse:
        """Wait for the login outcome.

        Returns the token, raises the delivered error, or raises
        ``TimeoutError`` when nothing arrives within ``timeout`` seconds.
        """
        result_task = asyncio.ensure_future(self._results.receive())
        error_task = asyncio.ensure_future(self._errors.receive())
        try:
            await asyncio.wait(
                {result_task, error_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (result_task, error_task):
                if not task.done():
                    task.cancel()
            await asyncio.wait({result_task, error_task})

        token = None if result_task.cancelled() else result_task.result()
        if token is not None:
            return token
        error = None if error_task.cancelled() else error_task.result()
        if error is not None:
            raise error
        if self._results.closed and self._errors.closed:
            raise LoginError("login server shut down before the login completed")
        raise TimeoutError("timed out waiting for the login to complete")
