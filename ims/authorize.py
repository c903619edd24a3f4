from __future__ import annotations

import base64
import hashlib
import urllib.parse
from enum import Enum

AUTHORIZE_PATH = "/ims/authorize/v1"


class GrantType(Enum):
    DEFAULT = "default"
    CODE = "code"
    IMPLICIT = "implicit"
    DEVICE = "device"


_RESPONSE_TYPES = {
    GrantType.CODE: "code",
    GrantType.IMPLICIT: "token",
    GrantType.DEVICE: "device",
}


def generate_code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def build_authorization_url(
    base_url: str,
    *,
    client_id: str,
    scopes: list[str] | tuple[str, ...],
    grant_type: GrantType = GrantType.DEFAULT,
    redirect_uri: str | None = None,
    state: str | None = None,
    code_verifier: str | None = None,
) -> str:
    if not client_id:
        raise ValueError("missing client ID")
    if not scopes:
        raise ValueError("missing scope")

    query = {
        "client_id": client_id,
        "scope": ",".join(scopes),
        # The authorization code grant is the historical default.
        "response_type": _RESPONSE_TYPES.get(grant_type, "code"),
    }
    if redirect_uri:
        query["redirect_uri"] = redirect_uri
    if state:
        query["state"] = state
    if code_verifier:
        query["code_challenge"] = generate_code_challenge(code_verifier)
        query["code_challenge_method"] = "S256"

    return f"{base_url}{AUTHORIZE_PATH}?{urllib.parse.urlencode(query)}"
