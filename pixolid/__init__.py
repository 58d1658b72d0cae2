from __future__ import annotations

from pixolid.backend import PodBackend
from pixolid.client import DocumentClient, HttpDocumentClient, Subscription
from pixolid.errors import (
    FetchError,
    NoAppFolder,
    NotFound,
    NoValidFolder,
    PodError,
    ValidationError,
    WriteError,
)
from pixolid.models import Collected, Comment, FolderResolution, FolderState, Image, Like, Person, Skipped
from pixolid.store import GraphStore

__all__ = [
    "Collected",
    "Comment",
    "DocumentClient",
    "FetchError",
    "FolderResolution",
    "FolderState",
    "GraphStore",
    "HttpDocumentClient",
    "Image",
    "Like",
    "NoAppFolder",
    "NoValidFolder",
    "NotFound",
    "Person",
    "PodBackend",
    "PodError",
    "Skipped",
    "Subscription",
    "ValidationError",
    "WriteError",
]
