from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from ims.constants import LOGGER

from .handler import LoginHandler
from .outcome import Outcome, Success, failure
from .session import LoginSession


class CallbackHandler(LoginHandler):
    """Check the redirect back from IMS and exchange the authorization code.

    ``client`` must provide an async ``token(...)`` as :class:`ims.IMSClient`
    does. The resulting outcome always goes to ``next_handler``.
    """

    def __init__(self, *, client, session: LoginSession, next_handler: LoginHandler) -> None:
        self._client = client
        self._session = session
        self._next = next_handler

    async def handle(self, request: Request, outcome: Outcome | None = None) -> Response:
        return await self._next.handle(request, await self._resolve(request))

    async def _resolve(self, request: Request) -> Outcome:
        params = request.query_params

        backend_error = params.get("error")
        if backend_error:
            LOGGER.warning("IMS redirected back with error=%s", backend_error)
            return failure(f"backend error: {backend_error}")

        state = params.get("state")
        if not state:
            return failure("missing state parameter")
        if state != self._session.state:
            LOGGER.warning("Rejected login callback with mismatched state")
            return failure("invalid state parameter")

        code = params.get("code")
        if not code:
            return failure("missing code parameter")

        try:
            token = await self._client.token(
                code=code,
                client_id=self._session.client_id,
                client_secret=self._session.client_secret,
                scopes=list(self._session.scopes),
                code_verifier=self._session.code_verifier,
            )
        except Exception as error:
            return failure(f"obtaining access token: {error}", error)

        LOGGER.info("Obtained access token for client_id=%s", self._session.client_id)
        return Success(token)
