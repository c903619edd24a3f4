import pytest

from ims import IMSError, TokenType


@pytest.mark.asyncio
async def test_validate_token_valid(httpx_mock, ims_client) -> None:
    httpx_mock.add_response(method="GET", json={"valid": True})

    response = await ims_client.validate_token(
        token="access-token",
        token_type=TokenType.ACCESS_TOKEN,
        client_id="client-id",
    )

    assert response.valid is True
    request = httpx_mock.get_request()
    assert request.url.path == "/ims/validate_token/v1"
    assert dict(request.url.params) == {
        "type": "access_token",
        "client_id": "client-id",
        "token": "access-token",
    }
    assert request.headers["x-ims-clientid"] == "client-id"


@pytest.mark.asyncio
async def test_validate_token_accepts_string_type(httpx_mock, ims_client) -> None:
    httpx_mock.add_response(method="GET", json={"valid": False})

    response = await ims_client.validate_token(
        token="code", token_type="authorization_code", client_id="id"
    )

    assert response.valid is False


@pytest.mark.asyncio
@pytest.mark.parametrize("token_type", ["service_token", "bogus", ""])
async def test_validate_token_invalid_type(ims_client, token_type) -> None:
    with pytest.raises(ValueError, match="invalid token type"):
        await ims_client.validate_token(token="t", token_type=token_type, client_id="id")


@pytest.mark.asyncio
async def test_validate_token_error(httpx_mock, ims_client) -> None:
    httpx_mock.add_response(method="GET", status_code=400, json={"error": "invalid_client"})

    with pytest.raises(IMSError, match="invalid_client"):
        await ims_client.validate_token(token="t", token_type="access_token", client_id="id")
