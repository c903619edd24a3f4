from __future__ import annotations

import json
import urllib.parse
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .authorize import GrantType, build_authorization_url
from .constants import (
    CLIENT_ID_HEADER,
    DEBUG_ID_HEADER,
    DEFAULT_ORGANIZATIONS_VERSION,
    DEFAULT_PROFILE_VERSION,
    DEFAULT_USERINFO_VERSION,
    LOGGER,
    RETRY_AFTER_HEADER,
)
from .errors import error_response
from .http import RetryTransport
from .models import (
    ClusterExchangeResponse,
    ExchangeJWTResponse,
    RefreshTokenResponse,
    Response,
    TokenResponse,
    TokenType,
    ValidateTokenResponse,
)

TOKEN_PATH = "/ims/token/v2"
CLUSTER_TOKEN_PATH = "/ims/token/v3"
EXCHANGE_JWT_PATH = "/ims/exchange/v1/jwt"
VALIDATE_TOKEN_PATH = "/ims/validate_token/v1"
INVALIDATE_TOKEN_PATH = "/ims/invalidate_token/v2"


class MetaScope(Enum):
    """Deprecated meta-scopes for JWT exchange; prefer explicit claims."""

    CLOUD_MANAGER = "ent_cloudmgr_sdk"
    ADOBE_IO = "ent_adobeio_sdk"
    ANALYTICS_BULK_INGEST = "ent_analytics_bulk_ingest_sdk"


_VALIDATABLE_TYPES = {
    TokenType.ACCESS_TOKEN,
    TokenType.REFRESH_TOKEN,
    TokenType.DEVICE_TOKEN,
    TokenType.AUTHORIZATION_CODE,
}

_INVALIDATABLE_TYPES = {
    TokenType.ACCESS_TOKEN,
    TokenType.REFRESH_TOKEN,
    TokenType.DEVICE_TOKEN,
    TokenType.SERVICE_TOKEN,
}


def normalize_base_url(url: str) -> str:
    try:
        parsed = urllib.parse.urlsplit(url)
        hostname = parsed.hostname
        port = parsed.port
    except ValueError as error:
        raise ValueError("malformed URL") from error

    if not parsed.scheme:
        raise ValueError("missing URL scheme")
    if not hostname:
        raise ValueError("missing URL host")

    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None:
        host = f"{host}:{port}"

    # Credentials, query and fragment never reach the API.
    return urllib.parse.urlunsplit((parsed.scheme, host, parsed.path.rstrip("/"), "", ""))


def _parse_token_type(token_type: TokenType | str, allowed: set[TokenType]) -> TokenType:
    try:
        parsed = TokenType(token_type)
    except ValueError:
        raise ValueError(f"invalid token type: {token_type}") from None
    if parsed not in allowed:
        raise ValueError(f"invalid token type: {parsed.value}")
    return parsed


def _decode(response: Response) -> dict[str, Any]:
    try:
        payload = json.loads(response.body)
    except ValueError as error:
        raise RuntimeError(f"decode response: {error}") from error
    if not isinstance(payload, dict):
        raise RuntimeError("decode response: expected a JSON object")
    return payload


def _int_field(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RuntimeError(f"decode response: {key} must be an integer")
    return value


def _str_field(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key, "")
    if not isinstance(value, str):
        raise RuntimeError(f"decode response: {key} must be a string")
    return value


def _load_rsa_key(private_key: bytes | str) -> rsa.RSAPrivateKey:
    if isinstance(private_key, str):
        private_key = private_key.encode("utf-8")
    try:
        key = serialization.load_pem_private_key(private_key, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as error:
        raise ValueError(f"parse key: {error}") from error
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ValueError("parse key: not an RSA private key")
    return key


class IMSClient:
    """Async client for the IMS REST API."""

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        max_retries: int = 2,
        timeout: float = 30.0,
    ) -> None:
        self.url = normalize_base_url(url)
        self._own_client = client is None
        self._http = client or httpx.AsyncClient(
            transport=RetryTransport(httpx.AsyncHTTPTransport(), max_retries=max_retries),
            timeout=timeout,
        )

    async def __aenter__(self) -> "IMSClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._own_client:
            await self._http.aclose()

    async def _do(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Response:
        LOGGER.info("IMS request %s %s", method, path)
        try:
            response = await self._http.request(
                method,
                f"{self.url}{path}",
                params=params,
                data=data,
                headers=headers,
            )
        except httpx.HTTPError as error:
            raise RuntimeError(f"perform request: {error}") from error

        result = Response(
            status_code=response.status_code,
            body=response.content,
            x_debug_id=response.headers.get(DEBUG_ID_HEADER, ""),
            retry_after=response.headers.get(RETRY_AFTER_HEADER, ""),
        )
        LOGGER.info(
            "IMS response %s %s status=%s x-debug-id=%s",
            method,
            path,
            result.status_code,
            result.x_debug_id,
        )
        if result.status_code != 200:
            raise error_response(result)
        return result

    # -- authorization -----------------------------------------------------------

    def authorize_url(
        self,
        *,
        client_id: str,
        scopes: list[str] | tuple[str, ...],
        grant_type: GrantType = GrantType.DEFAULT,
        redirect_uri: str | None = None,
        state: str | None = None,
        code_verifier: str | None = None,
    ) -> str:
        url = build_authorization_url(
            self.url,
            client_id=client_id,
            scopes=scopes,
            grant_type=grant_type,
            redirect_uri=redirect_uri,
            state=state,
            code_verifier=code_verifier,
        )
        LOGGER.info("Built authorization URL for client_id=%s", client_id)
        return url

    # -- tokens ------------------------------------------------------------------

    async def token(
        self,
        *,
        code: str,
        client_id: str,
        client_secret: str | None = None,
        scopes: list[str] | tuple[str, ...] | None = None,
        code_verifier: str | None = None,
    ) -> TokenResponse:
        """Exchange an authorization code for an access token.

        The client secret may be omitted by public clients that prove
        possession of the PKCE code verifier instead.
        """
        if not code:
            raise ValueError("missing code")
        if not client_id:
            raise ValueError("missing client ID")
        if not client_secret and not code_verifier:
            raise ValueError("missing client secret")

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": client_id,
        }
        if client_secret:
            data["client_secret"] = client_secret
        if scopes:
            data["scope"] = ",".join(scopes)
        if code_verifier:
            data["code_verifier"] = code_verifier

        response = await self._do("POST", TOKEN_PATH, data=data)
        payload = _decode(response)

        return TokenResponse(
            status_code=response.status_code,
            body=response.body,
            x_debug_id=response.x_debug_id,
            retry_after=response.retry_after,
            access_token=_str_field(payload, "access_token"),
            refresh_token=_str_field(payload, "refresh_token"),
            expires_in=timedelta(seconds=_int_field(payload, "expires_in")),
            user_id=_str_field(payload, "userId"),
        )

    async def refresh_token(
        self,
        *,
        refresh_token: str,
        client_id: str,
        client_secret: str,
        scopes: list[str] | tuple[str, ...] | None = None,
    ) -> RefreshTokenResponse:
        if not refresh_token:
            raise ValueError("missing refresh token")
        if not client_id:
            raise ValueError("missing client ID")
        if not client_secret:
            raise ValueError("missing client secret")

        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        if scopes:
            data["scope"] = ",".join(scopes)

        response = await self._do("POST", TOKEN_PATH, data=data)
        payload = _decode(response)

        return RefreshTokenResponse(
            status_code=response.status_code,
            body=response.body,
            x_debug_id=response.x_debug_id,
            retry_after=response.retry_after,
            access_token=_str_field(payload, "access_token"),
            refresh_token=_str_field(payload, "refresh_token"),
            expires_in=timedelta(seconds=_int_field(payload, "expires_in")),
        )

    async def exchange_jwt(
        self,
        *,
        private_key: bytes | str,
        expiration: datetime,
        issuer: str,
        subject: str,
        client_id: str,
        client_secret: str,
        meta_scopes: list[MetaScope] | tuple[MetaScope, ...] = (),
        claims: dict[str, Any] | None = None,
    ) -> ExchangeJWTResponse:
        key = _load_rsa_key(private_key)

        jwt_claims: dict[str, Any] = {
            "exp": int(expiration.timestamp()),
            "iss": issuer,
            "sub": subject,
            "aud": f"{self.url}/c/{client_id}",
        }
        for meta_scope in meta_scopes:
            if not isinstance(meta_scope, MetaScope):
                raise ValueError(f"invalid meta-scope: {meta_scope}")
            jwt_claims[f"{self.url}/s/{meta_scope.value}"] = True
        jwt_claims.update(claims or {})

        signed = jwt.encode(jwt_claims, key, algorithm="RS256")

        response = await self._do(
            "POST",
            EXCHANGE_JWT_PATH,
            data={
                "client_id": client_id,
                "client_secret": client_secret,
                "jwt_token": signed,
            },
        )
        payload = _decode(response)

        # This endpoint reports the lifetime in milliseconds.
        return ExchangeJWTResponse(
            status_code=response.status_code,
            body=response.body,
            x_debug_id=response.x_debug_id,
            retry_after=response.retry_after,
            access_token=_str_field(payload, "access_token"),
            expires_in=timedelta(milliseconds=_int_field(payload, "expires_in")),
        )

    async def cluster_exchange(
        self,
        *,
        client_id: str,
        client_secret: str,
        user_token: str,
        scopes: list[str] | tuple[str, ...] = (),
        user_id: str | None = None,
        org_id: str | None = None,
    ) -> ClusterExchangeResponse:
        """Exchange a user token through the IMS ``cluster_at_exchange`` grant."""
        data = {
            "grant_type": "cluster_at_exchange",
            "client_secret": client_secret,
            "user_token": user_token,
        }
        if user_id:
            if org_id:
                raise ValueError("user ID and org ID defined at the same time")
            data["user_id"] = user_id
        elif org_id:
            data["owning_org_id"] = org_id
        else:
            raise ValueError("no user ID or org ID parameters to perform the request")
        data["scope"] = ",".join(scopes)

        response = await self._do(
            "POST",
            CLUSTER_TOKEN_PATH,
            params={"client_id": client_id},
            data=data,
        )
        payload = _decode(response)

        return ClusterExchangeResponse(
            status_code=response.status_code,
            body=response.body,
            x_debug_id=response.x_debug_id,
            retry_after=response.retry_after,
            access_token=_str_field(payload, "access_token"),
            expires_in=timedelta(milliseconds=_int_field(payload, "expires_in")),
        )

    async def validate_token(
        self,
        *,
        token: str,
        token_type: TokenType | str,
        client_id: str,
    ) -> ValidateTokenResponse:
        parsed_type = _parse_token_type(token_type, _VALIDATABLE_TYPES)

        response = await self._do(
            "GET",
            VALIDATE_TOKEN_PATH,
            params={
                "type": parsed_type.value,
                "client_id": client_id,
                "token": token,
            },
            headers={CLIENT_ID_HEADER: client_id},
        )
        payload = _decode(response)

        return ValidateTokenResponse(
            status_code=response.status_code,
            body=response.body,
            x_debug_id=response.x_debug_id,
            retry_after=response.retry_after,
            valid=payload.get("valid") is True,
        )

    async def invalidate_token(
        self,
        *,
        token: str,
        token_type: TokenType | str,
        client_id: str,
        client_secret: str | None = None,
        cascading: bool = False,
    ) -> None:
        if not client_id:
            raise ValueError("missing client ID parameter")
        if not token_type:
            raise ValueError("missing token type parameter")
        if not token:
            raise ValueError("missing token parameter")

        parsed_type = _parse_token_type(token_type, _INVALIDATABLE_TYPES)
        if parsed_type is TokenType.SERVICE_TOKEN and not client_secret:
            raise ValueError("service token invalidation needs client secret parameter")

        data = {
            "token_type": parsed_type.value,
            "token": token,
        }
        if cascading:
            data["cascading"] = "all"
        data["client_id"] = client_id
        data["client_secret"] = client_secret or ""

        await self._do(
            "POST",
            INVALIDATE_TOKEN_PATH,
            data=data,
            headers={CLIENT_ID_HEADER: client_id},
        )

    # -- profile -----------------------------------------------------------------

    async def _bearer_get(self, path: str, access_token: str) -> Response:
        return await self._do("GET", path, headers={"Authorization": f"Bearer {access_token}"})

    async def get_profile(
        self, *, access_token: str, api_version: str = DEFAULT_PROFILE_VERSION
    ) -> Response:
        return await self._bearer_get(f"/ims/profile/{api_version}", access_token)

    async def get_organizations(
        self, *, access_token: str, api_version: str = DEFAULT_ORGANIZATIONS_VERSION
    ) -> Response:
        return await self._bearer_get(f"/ims/organizations/{api_version}", access_token)

    async def get_userinfo(
        self, *, access_token: str, api_version: str = DEFAULT_USERINFO_VERSION
    ) -> Response:
        return await self._bearer_get(f"/ims/userinfo/{api_version}", access_token)

    async def _admin_post(
        self,
        path: str,
        *,
        guid: str,
        auth_src: str,
        service_token: str,
        client_id: str,
    ) -> Response:
        if not guid:
            raise ValueError("missing guid")
        if not auth_src:
            raise ValueError("missing auth_src")
        if not service_token:
            raise ValueError("missing service token")
        if not client_id:
            raise ValueError("missing client ID")

        return await self._do(
            "POST",
            path,
            data={"guid": guid, "auth_src": auth_src},
            headers={
                "Authorization": f"Bearer {service_token}",
                CLIENT_ID_HEADER: client_id,
            },
        )

    async def get_admin_profile(
        self,
        *,
        guid: str,
        auth_src: str,
        service_token: str,
        client_id: str,
        api_version: str = DEFAULT_PROFILE_VERSION,
    ) -> Response:
        return await self._admin_post(
            f"/ims/admin_profile/{api_version}",
            guid=guid,
            auth_src=auth_src,
            service_token=service_token,
            client_id=client_id,
        )

    async def get_admin_organizations(
        self,
        *,
        guid: str,
        auth_src: str,
        service_token: str,
        client_id: str,
        api_version: str = DEFAULT_ORGANIZATIONS_VERSION,
    ) -> Response:
        return await self._admin_post(
            f"/ims/admin_organizations/{api_version}",
            guid=guid,
            auth_src=auth_src,
            service_token=service_token,
            client_id=client_id,
        )
