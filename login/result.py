from __future__ import annotations

from starlette.background import BackgroundTask, BackgroundTasks
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from ims.constants import LOGGER
from ims.models import TokenResponse

from .channel import OutcomeChannel
from .handler import LoginHandler
from .outcome import Failure, Outcome, Success, failure


def _after_response(response: Response, task: BackgroundTask) -> Response:
    if response.background is None:
        response.background = task
    else:
        response.background = BackgroundTasks([response.background, task])
    return response


async def _deliver(channel: OutcomeChannel, item, kind: str) -> None:
    if channel.send(item):
        LOGGER.info("Login %s delivered", kind)
    elif channel.closed:
        LOGGER.warning("Login %s dropped; the login server is shut down", kind)
    else:
        LOGGER.warning("Login %s dropped; an earlier %s is still unread", kind, kind)


class ResultPublisher(LoginHandler):
    """Answer the browser and hand the outcome to the owning program.

    The outcome is published only after the response has been sent, so a
    slow or absent reader never holds back the browser.
    """

    def __init__(
        self,
        *,
        results: OutcomeChannel[TokenResponse],
        errors: OutcomeChannel[Exception],
        on_success: LoginHandler | None = None,
        on_error: LoginHandler | None = None,
    ) -> None:
        self._results = results
        self._errors = errors
        self._on_success = on_success
        self._on_error = on_error

    async def handle(self, request: Request, outcome: Outcome | None = None) -> Response:
        if isinstance(outcome, Success):
            if self._on_success is not None:
                response = await self._on_success.handle(request, outcome)
            else:
                response = PlainTextResponse("Success!")
            return _after_response(
                response, BackgroundTask(_deliver, self._results, outcome.token, "result")
            )

        if not isinstance(outcome, Failure):
            outcome = failure("neither error nor result returned")

        if self._on_error is not None:
            response = await self._on_error.handle(request, outcome)
        else:
            response = PlainTextResponse(f"Error: {outcome.error}")
        return _after_response(
            response, BackgroundTask(_deliver, self._errors, outcome.error, "error")
        )
