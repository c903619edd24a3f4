import pytest
from starlette.responses import PlainTextResponse

from login.handler import LoginHandler
from login.route import Router

from tests.login_helpers import build_request


class NamedHandler(LoginHandler):
    def __init__(self, name: str) -> None:
        self.name = name

    async def handle(self, request, outcome=None):
        return PlainTextResponse(self.name)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("params", "path", "expected"),
    [
        ({}, "/", b"redirect"),
        ({}, "/any/path", b"redirect"),
        ({"state": "s"}, "/", b"redirect"),
        ({"code": ""}, "/", b"redirect"),
        ({"code": "c"}, "/", b"callback"),
        ({"error": "access_denied"}, "/", b"callback"),
        ({"code": "c", "state": "s"}, "/callback", b"callback"),
    ],
)
async def test_routes_on_query_parameters(params, path, expected) -> None:
    router = Router(redirect=NamedHandler("redirect"), callback=NamedHandler("callback"))

    response = await router.handle(build_request(params, path))

    assert response.body == expected
