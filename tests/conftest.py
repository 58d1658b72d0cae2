"""
Shared fixtures: an in-memory pod standing in for the remote document client.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from pixolid.backend import PodBackend
from pixolid.client import Subscription
from pixolid.store import GraphStore

FIXTURES = Path(__file__).parent / "fixtures"

BOB = "http://bob.example.org/profile/card#me"
TOM = "http://tom.example.org/profile/card#me"
ALICE = "http://alice.example.org/profile/card#me"
CAROL = "http://carol.example.org/profile/card#me"
BOB_FOLDER = "http://bob.example.org/public/pixolid/"
TOM_FOLDER = "http://tom.example.org/public/pixolid/"
ALICE_FOLDER = "http://alice.example.org/public/pixolid/"
TOM_IMAGE = "http://tom.example.org/public/pixolid/images/12345.ttl"
ALICE_IMAGE = "http://alice.example.org/public/pixolid/images/12345.ttl"
BOB_COMMENT = "http://bob.example.org/public/pixolid/comments/56789.ttl"
ALICE_LIKE = "http://alice.example.org/public/pixolid/likes/56789.ttl"

FIXED_NOW = datetime(2019, 1, 1, 20, 30, 30, 123456, tzinfo=timezone.utc)


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakePod:
    """Serves Turtle documents from a dict and records every call."""

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self.documents: dict[str, Any] = dict(documents or {})
        self.calls: list[tuple[str, str]] = []
        self.created: dict[str, tuple[Any, str | None]] = {}
        self.collections: list[str] = []
        self.patches: list[tuple[str, str]] = []
        self.subscribed: list[str] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.locations: dict[str, str] = {}

    def fail(self, operation: str, uri: str, exc: Exception | None = None) -> None:
        self.failures[(operation, uri)] = exc or RuntimeError(f"{operation} {uri} failed")

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    def _record(self, operation: str, uri: str) -> None:
        self.calls.append((operation, uri))
        failure = self.failures.get((operation, uri))
        if failure is not None:
            raise failure

    async def load(self, uri: str) -> str:
        self._record("load", uri)
        if uri not in self.documents:
            raise RuntimeError(f"404 {uri}")
        return self.documents[uri]

    async def create(self, uri: str, content: Any, content_type: str | None = None) -> str:
        self._record("create", uri)
        self.created[uri] = (content, content_type)
        self.documents[uri] = content
        return self.locations.get(uri, uri)

    async def write(self, uri: str, content: Any, content_type: str | None = None) -> str:
        self._record("write", uri)
        self.created[uri] = (content, content_type)
        self.documents[uri] = content
        return self.locations.get(uri, uri)

    async def create_collection(self, uri: str) -> str:
        self._record("create_collection", uri)
        self.collections.append(uri)
        return uri

    async def patch(self, uri: str, update: str) -> None:
        self._record("patch", uri)
        self.patches.append((uri, update))

    def subscribe(self, uri: str, callback) -> Subscription:
        self.subscribed.append(uri)
        return Subscription(uri)


def social_documents() -> dict[str, str]:
    return {
        "http://bob.example.org/profile/card": load_fixture("bobProfile.ttl"),
        "http://tom.example.org/profile/card": load_fixture("tomProfile.ttl"),
        "http://alice.example.org/profile/card": load_fixture("aliceProfile.ttl"),
        "http://carol.example.org/profile/card": load_fixture("carolProfile.ttl"),
        BOB_FOLDER: load_fixture("validAppFolder.ttl"),
        TOM_FOLDER: load_fixture("validAppFolder.ttl"),
        ALICE_FOLDER: load_fixture("validAppFolder.ttl"),
        f"{TOM_FOLDER}images/": load_fixture("imagesFolder.ttl"),
        f"{ALICE_FOLDER}images/": load_fixture("imagesFolder.ttl"),
        TOM_IMAGE: load_fixture("tomImage.ttl"),
        ALICE_IMAGE: load_fixture("aliceImage.ttl"),
        BOB_COMMENT: load_fixture("bobComment.ttl"),
        ALICE_LIKE: load_fixture("aliceLike.ttl"),
    }


@pytest.fixture
def pod() -> FakePod:
    return FakePod(social_documents())


@pytest.fixture
def backend(pod: FakePod) -> PodBackend:
    ids = iter(f"id{n}" for n in range(1, 100))
    return PodBackend(pod, GraphStore(), id_factory=lambda: next(ids), clock=lambda: FIXED_NOW)
