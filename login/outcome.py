from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ims.models import TokenResponse


class LoginError(RuntimeError):
    pass


@dataclass(frozen=True)
class Success:
    token: TokenResponse


@dataclass(frozen=True)
class Failure:
    error: Exception


Outcome = Union[Success, Failure]


def failure(message: str, cause: BaseException | None = None) -> Failure:
    error = LoginError(message)
    error.__cause__ = cause
    return Failure(error)
