from __future__ import annotations

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from .handler import LoginHandler
from .outcome import Outcome, failure
from .session import LoginSession


class RedirectHandler(LoginHandler):
    """Send the browser to the IMS authorization page.

    ``client`` must provide ``authorize_url(...)`` as :class:`ims.IMSClient`
    does. When the URL cannot be built the failure is passed on to
    ``next_handler`` instead of redirecting.
    """

    def __init__(self, *, client, session: LoginSession, next_handler: LoginHandler) -> None:
        self._client = client
        self._session = session
        self._next = next_handler

    async def handle(self, request: Request, outcome: Outcome | None = None) -> Response:
        try:
            url = self._client.authorize_url(
                client_id=self._session.client_id,
                scopes=list(self._session.scopes),
                redirect_uri=self._session.redirect_uri,
                state=self._session.state,
                code_verifier=self._session.code_verifier,
            )
        except Exception as error:
            return await self._next.handle(
                request, failure(f"generate authorization URL: {error}", error)
            )

        return RedirectResponse(url=url, status_code=302)
