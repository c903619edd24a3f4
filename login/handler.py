from __future__ import annotations

import html
from abc import ABC, abstractmethod

from starlette.requests import Request
from starlette.responses import Response

from .outcome import Failure, Outcome


class LoginHandler(ABC):
    """One stage of the login request pipeline.

    Stages either answer the browser themselves or pass the request, together
    with the outcome they produced, to the next stage.
    """

    @abstractmethod
    async def handle(self, request: Request, outcome: Outcome | None = None) -> Response:
        raise NotImplementedError


class PageHandler(LoginHandler):
    """Serve a fixed page; ``{error}`` in the body is replaced on failures."""

    def __init__(
        self,
        body: str,
        *,
        media_type: str = "text/html",
        status_code: int = 200,
    ) -> None:
        self.body = body
        self.media_type = media_type
        self.status_code = status_code

    async def handle(self, request: Request, outcome: Outcome | None = None) -> Response:
        body = self.body
        if isinstance(outcome, Failure):
            message = str(outcome.error)
            if self.media_type == "text/html":
                message = html.escape(message)
            body = body.replace("{error}", message)
        return Response(body, status_code=self.status_code, media_type=self.media_type)
