from .channel import OutcomeChannel, Receiver
from .handler import LoginHandler, PageHandler
from .outcome import Failure, LoginError, Outcome, Success
from .server import LoginServer
from .session import LoginSession

__all__ = [
    "Failure",
    "LoginError",
    "LoginHandler",
    "LoginServer",
    "LoginSession",
    "Outcome",
    "OutcomeChannel",
    "PageHandler",
    "Receiver",
    "Success",
]
