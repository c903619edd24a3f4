from .authorize import GrantType, build_authorization_url, generate_code_challenge
from .client import IMSClient, MetaScope
from .errors import IMSError, error_response, is_error
from .models import (
    ClusterExchangeResponse,
    ExchangeJWTResponse,
    RefreshTokenResponse,
    Response,
    TokenResponse,
    TokenType,
    ValidateTokenResponse,
)

__all__ = [
    "ClusterExchangeResponse",
    "ExchangeJWTResponse",
    "GrantType",
    "IMSClient",
    "IMSError",
    "MetaScope",
    "RefreshTokenResponse",
    "Response",
    "TokenResponse",
    "TokenType",
    "ValidateTokenResponse",
    "build_authorization_url",
    "error_response",
    "generate_code_challenge",
    "is_error",
]
