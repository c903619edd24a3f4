from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from .constants import LOGGER

DEFAULT_SCOPES = "openid"


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv_env(key: str, default: str = "") -> list[str]:
    raw = os.getenv(key, default)
    if not raw.strip():
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a number.")


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=True)


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("IMS_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    # httpx logs full request URLs at INFO, query-string tokens included.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return debug_enabled


@dataclass
class LoginSettings:
    ims_url: str
    client_id: str
    client_secret: str | None
    scopes: list[str]
    redirect_uri: str | None
    use_pkce: bool
    host: str
    port: int
    timeout: float
    max_retries: int

    @classmethod
    def from_env(cls) -> "LoginSettings":
        required = ("IMS_URL", "IMS_CLIENT_ID")
        missing = [key for key in required if not os.getenv(key, "").strip()]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

        ims_url = os.getenv("IMS_URL", "").strip()
        parsed_url = urlparse(ims_url)
        if parsed_url.scheme not in {"http", "https"} or not parsed_url.netloc:
            raise RuntimeError(
                "IMS_URL must be a valid HTTP(S) URL (for example: https://ims.example.com)."
            )

        scopes = parse_csv_env("IMS_SCOPES", DEFAULT_SCOPES)
        if not scopes:
            raise RuntimeError("IMS_SCOPES must list at least one scope.")

        client_secret = os.getenv("IMS_CLIENT_SECRET", "").strip() or None
        use_pkce = is_truthy(os.getenv("IMS_USE_PKCE"))
        if client_secret is None and not use_pkce:
            LOGGER.warning(
                "IMS_CLIENT_SECRET is empty and IMS_USE_PKCE is off; the token exchange will fail."
            )

        return cls(
            ims_url=ims_url,
            client_id=os.getenv("IMS_CLIENT_ID", "").strip(),
            client_secret=client_secret,
            scopes=scopes,
            redirect_uri=os.getenv("IMS_REDIRECT_URI", "").strip() or None,
            use_pkce=use_pkce,
            host=os.getenv("IMS_LOGIN_HOST", "127.0.0.1").strip() or "127.0.0.1",
            port=_get_env_int("IMS_LOGIN_PORT", 8000),
            timeout=_get_env_float("IMS_LOGIN_TIMEOUT", 300.0),
            max_retries=_get_env_int("IMS_MAX_RETRIES", 2),
        )
