from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from .handler import LoginHandler
from .outcome import Outcome


class Router(LoginHandler):
    def __init__(self, *, redirect: LoginHandler, callback: LoginHandler) -> None:
        self._redirect = redirect
        self._callback = callback

    async def handle(self, request: Request, outcome: Outcome | None = None) -> Response:
        params = request.query_params
        if params.get("code") or params.get("error"):
            return await self._callback.handle(request)
        return await self._redirect.handle(request)
