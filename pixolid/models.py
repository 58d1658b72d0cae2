from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable


@dataclass(frozen=True)
class Person:
    web_id: str
    name: str
    image: str


@dataclass(frozen=True)
class Image:
    url: str
    image: str
    description: str
    creator: str
    created_at: datetime


@dataclass(frozen=True)
class Like:
    url: str
    object: str
    creator: str
    created_at: datetime


@dataclass(frozen=True)
class Comment:
    url: str
    content: str
    in_reply_to: str
    creator: str
    created_at: datetime


@dataclass(frozen=True)
class Skipped:
    uri: str
    reason: str


class Collected(list):
    # Compares equal to a plain list of its items.
    def __init__(self, items: Iterable = (), skipped: Iterable[Skipped] = ()) -> None:
        super().__init__(items)
        self.skipped: list[Skipped] = list(skipped)


class FolderState(str, Enum):
    UNKNOWN = "unknown"
    RESOLVING = "resolving"
    VALID = "valid"
    MISSING = "missing"
    INVALID = "invalid"
    FETCH_FAILED = "fetch_failed"

    @property
    def needs_setup(self) -> bool:
        return self in {FolderState.MISSING, FolderState.INVALID, FolderState.FETCH_FAILED}


@dataclass(frozen=True)
class FolderResolution:
    state: FolderState
    folder: str | None = None
