from __future__ import annotations

import logging

LOGGER = logging.getLogger("ims")

CLIENT_ID_HEADER = "X-IMS-ClientId"
DEBUG_ID_HEADER = "x-debug-id"
RETRY_AFTER_HEADER = "retry-after"

DEFAULT_PROFILE_VERSION = "v1"
DEFAULT_ORGANIZATIONS_VERSION = "v5"
DEFAULT_USERINFO_VERSION = "v1"
