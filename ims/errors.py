from __future__ import annotations

import json

from .models import Response


class IMSError(RuntimeError):
    """Error response returned by the IMS API."""

    def __init__(self, response: Response, error_code: str = "", error_message: str = "") -> None:
        self.response = response
        self.error_code = error_code
        self.error_message = error_message
        super().__init__(
            f"error response: statusCode={response.status_code}, "
            f"errorCode='{error_code}', errorMessage='{error_message}', "
            f"x-debug-id='{response.x_debug_id}'"
        )

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def body(self) -> bytes:
        return self.response.body

    @property
    def x_debug_id(self) -> str:
        return self.response.x_debug_id

    @property
    def retry_after(self) -> str:
        return self.response.retry_after


def is_error(error: BaseException | None) -> IMSError | None:
    """Return the IMSError in ``error``'s cause chain, if there is one."""
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, IMSError):
            return error
        seen.add(id(error))
        error = error.__cause__
    return None


def error_response(response: Response) -> IMSError:
    # An empty or malformed body still yields an IMSError; the raw body is
    # kept on the response for callers that want to inspect it.
    error_code = ""
    error_message = ""
    try:
        payload = json.loads(response.body)
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        if isinstance(payload.get("error"), str):
            error_code = payload["error"]
        if isinstance(payload.get("error_description"), str):
            error_message = payload["error_description"]

    return IMSError(response, error_code=error_code, error_message=error_message)
