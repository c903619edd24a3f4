from __future__ import annotations

import asyncio
import json
import socket
import webbrowser

from ims import IMSClient, TokenResponse
from ims.constants import LOGGER
from ims.env import LoginSettings, load_env, setup_logging
from login import LoginServer, PageHandler

SUCCESS_PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Login successful</title>
  </head>
  <body>
    <div style="max-width: 640px; margin: 80px auto; font-family: system-ui, sans-serif;">
      <h1>Login successful</h1>
      <p>You can now close this window and return to the terminal.</p>
    </div>
  </body>
</html>
"""

ERROR_PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Login failed</title>
  </head>
  <body>
    <div style="max-width: 640px; margin: 80px auto; font-family: system-ui, sans-serif;">
      <h1>Login failed</h1>
      <p>{error}</p>
    </div>
  </body>
</html>
"""


def token_summary(token: TokenResponse) -> dict:
    return {
        "access_token": token.access_token,
        "refresh_token": token.refresh_token,
        "expires_in": int(token.expires_in.total_seconds()),
        "user_id": token.user_id,
    }


async def run_login(
    settings: LoginSettings,
    *,
    client: IMSClient | None = None,
    open_browser=webbrowser.open,
) -> TokenResponse:
    ims_client = client or IMSClient(settings.ims_url, max_retries=settings.max_retries)
    try:
        login = LoginServer(
            client=ims_client,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            scopes=settings.scopes,
            redirect_uri=settings.redirect_uri,
            use_pkce=settings.use_pkce,
            on_success=PageHandler(SUCCESS_PAGE),
            on_error=PageHandler(ERROR_PAGE, status_code=400),
        )

        sock = socket.create_server((settings.host, settings.port))
        host, port = sock.getsockname()[:2]
        serve_task = asyncio.create_task(login.serve(sock))
        wait_task = asyncio.create_task(login.wait(timeout=settings.timeout))

        try:
            login_url = f"http://{host}:{port}/"
            LOGGER.info("Opening %s to start the IMS login", login_url)
            open_browser(login_url)

            await asyncio.wait({serve_task, wait_task}, return_when=asyncio.FIRST_COMPLETED)
            if not wait_task.done():
                serve_task.result()
                raise RuntimeError("login server stopped before the login completed")
            return wait_task.result()
        finally:
            if not wait_task.done():
                wait_task.cancel()
                await asyncio.wait({wait_task})
            await login.shutdown()
            await asyncio.wait({serve_task})
            if not serve_task.cancelled() and serve_task.exception() is not None:
                LOGGER.warning("Login server stopped with error: %s", serve_task.exception())
    finally:
        if client is None:
            await ims_client.aclose()


def main() -> None:
    load_env()
    setup_logging()
    settings = LoginSettings.from_env()
    token = asyncio.run(run_login(settings))
    print(json.dumps(token_summary(token), indent=2))


if __name__ == "__main__":
    main()
