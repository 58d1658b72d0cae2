from __future__ import annotations

import re
from urllib.parse import urlsplit

from pyoxigraph import NamedNode

from pixolid.errors import ValidationError
from pixolid.namespaces import LDP, RDF
from pixolid.store import GraphStore

REQUIRED_COLLECTIONS = ("images", "comments", "likes")
CONTAINER_TYPES = (LDP.Container, LDP.BasicContainer)
_FOLDER_PATH = re.compile(r"^/(?:[A-Za-z0-9_~.-]+/)+$")


def last_segment(url: str) -> str:
    path = urlsplit(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1]


def parent_url(url: str) -> str:
    trimmed = url.rstrip("/")
    return trimmed.rsplit("/", 1)[0] + "/"


def base_url(web_id: str) -> str:
    parts = urlsplit(web_id)
    return f"{parts.scheme}://{parts.netloc}/"


def child_collections(store: GraphStore, folder_url: str) -> set[str]:
    folder = NamedNode(folder_url)
    candidates = {
        term.value for term in store.each(folder, LDP.contains, None, folder_url) if term.value.endswith("/")
    }
    for container_type in CONTAINER_TYPES:
        candidates.update(term.value for term in store.each(None, RDF.type, container_type, folder_url))
    return {
        child
        for child in candidates
        if child.rstrip("/") != folder_url.rstrip("/") and parent_url(child) == folder_url
    }


def has_required_collections(children: set[str]) -> bool:
    names = {last_segment(child) for child in children}
    return len(names.intersection(REQUIRED_COLLECTIONS)) == len(REQUIRED_COLLECTIONS)


def normalize_folder_path(raw: str) -> str:
    folder = raw.strip().strip("/")
    path = f"/{folder}/"
    segments = folder.split("/")
    if not folder or not _FOLDER_PATH.match(path) or any(s in {".", ".."} for s in segments):
        raise ValidationError("invalid_folder", "Enter a valid folder path.", {"folder": raw})
    return path


def folder_url(web_id: str, raw: str) -> str:
    value = raw.strip()
    if value.startswith(("http://", "https://")):
        parts = urlsplit(value)
        return f"{parts.scheme}://{parts.netloc}{normalize_folder_path(parts.path)}"
    return base_url(web_id) + normalize_folder_path(value).lstrip("/")
