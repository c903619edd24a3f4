from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum


class TokenType(str, Enum):
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"
    SERVICE_TOKEN = "service_token"
    DEVICE_TOKEN = "device_token"
    AUTHORIZATION_CODE = "authorization_code"


@dataclass
class Response:
    """HTTP details shared by every IMS API response."""

    status_code: int = 0
    body: bytes = field(default=b"", repr=False)
    x_debug_id: str = ""
    retry_after: str = ""

    def json(self):
        return json.loads(self.body)


@dataclass
class TokenResponse(Response):
    access_token: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)
    expires_in: timedelta = timedelta(0)
    user_id: str = ""


@dataclass
class RefreshTokenResponse(Response):
    access_token: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)
    expires_in: timedelta = timedelta(0)


@dataclass
class ExchangeJWTResponse(Response):
    access_token: str = field(default="", repr=False)
    expires_in: timedelta = timedelta(0)


@dataclass
class ClusterExchangeResponse(Response):
    access_token: str = field(default="", repr=False)
    expires_in: timedelta = timedelta(0)


@dataclass
class ValidateTokenResponse(Response):
    valid: bool = False
