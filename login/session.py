from __future__ import annotations

import secrets
from dataclasses import dataclass, field

STATE_BYTES = 32
CODE_VERIFIER_BYTES = 32


def generate_state() -> str:
    try:
        return secrets.token_urlsafe(STATE_BYTES)
    except OSError as error:
        raise RuntimeError(f"generate random state: {error}") from error


def generate_code_verifier() -> str:
    # 32 random bytes encode to 43 characters, the RFC 7636 minimum.
    try:
        return secrets.token_urlsafe(CODE_VERIFIER_BYTES)
    except OSError as error:
        raise RuntimeError(f"generate random code verifier: {error}") from error


@dataclass(frozen=True)
class LoginSession:
    """Correlation secrets and client settings for a single login flow."""

    client_id: str
    scopes: tuple[str, ...]
    state: str = field(repr=False)
    code_verifier: str | None = field(default=None, repr=False)
    client_secret: str | None = field(default=None, repr=False)
    redirect_uri: str | None = None

    @classmethod
    def create(
        cls,
        *,
        client_id: str,
        scopes: list[str] | tuple[str, ...],
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        use_pkce: bool = False,
    ) -> "LoginSession":
        state = generate_state()
        code_verifier = generate_code_verifier() if use_pkce else None
        return cls(
            client_id=client_id,
            scopes=tuple(scopes),
            state=state,
            code_verifier=code_verifier,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
        )
