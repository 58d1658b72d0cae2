from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(eq=False)
class PodError(Exception):
    code: str
    message: str
    details: dict[str, Any] | None = None

    status_code: ClassVar[int] = 500

    def __str__(self) -> str:
        return self.message


class FetchError(PodError):
    status_code = 502


class NotFound(PodError):
    status_code = 404


class NoAppFolder(NotFound):
    status_code = 409


class NoValidFolder(PodError):
    status_code = 409


class WriteError(PodError):
    status_code = 502


class ValidationError(PodError):
    status_code = 400
