from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pyoxigraph import Literal, NamedNode, Quad

from pixolid import settings
from pixolid.errors import NotFound
from pixolid.models import Comment, Image, Like, Person
from pixolid.namespaces import AS, COMMENT, DATETIME, DCT, FOAF, LIKE, POST, RDF, VCARD
from pixolid.store import GraphStore, document


def new_identifier() -> str:
    return uuid.uuid4().hex


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _timestamp(value: datetime) -> Literal:
    return Literal(format_timestamp(value), datatype=DATETIME)


def build_image_statements(
    image_file_url: str,
    image_url: str,
    description: str,
    creator: str,
    created_at: datetime,
) -> list[Quad]:
    subject = NamedNode(image_file_url)
    doc = NamedNode(document(image_file_url))
    return [
        Quad(subject, RDF.type, POST, doc),
        Quad(subject, FOAF.depiction, NamedNode(image_url), doc),
        Quad(subject, DCT.description, Literal(description), doc),
        Quad(subject, DCT.creator, NamedNode(creator), doc),
        Quad(subject, DCT.created, _timestamp(created_at), doc),
    ]


def build_like_statements(like_url: str, target: str, creator: str, published: datetime) -> list[Quad]:
    subject = NamedNode(like_url)
    doc = NamedNode(document(like_url))
    return [
        Quad(subject, AS.type, LIKE, doc),
        Quad(subject, AS.actor, NamedNode(creator), doc),
        Quad(subject, AS.object, NamedNode(target), doc),
        Quad(subject, AS.published, _timestamp(published), doc),
    ]


def build_comment_statements(
    comment_url: str,
    content: str,
    in_reply_to: str,
    creator: str,
    published: datetime,
) -> list[Quad]:
    subject = NamedNode(comment_url)
    doc = NamedNode(document(comment_url))
    return [
        Quad(subject, AS.type, COMMENT, doc),
        Quad(subject, AS.content, Literal(content), doc),
        Quad(subject, AS.actor, NamedNode(creator), doc),
        Quad(subject, AS.inReplyTo, NamedNode(in_reply_to), doc),
        Quad(subject, AS.published, _timestamp(published), doc),
    ]


def build_activity_record(activity_url: str, target: str, kind: NamedNode) -> list[Quad]:
    return [Quad(NamedNode(activity_url), AS.type, kind, NamedNode(document(target)))]


def _require_type(store: GraphStore, subject: NamedNode, predicate: NamedNode, kind: NamedNode, doc: str, label: str) -> None:
    if not store.holds(subject, predicate, kind, doc):
        raise NotFound(
            f"{label}_not_found",
            f"{label.capitalize()} not found.",
            {"uri": subject.value},
        )


def _required(store: GraphStore, subject: NamedNode, predicate: NamedNode, doc: str, label: str) -> Any:
    term = store.any(subject, predicate, None, doc)
    if term is None:
        raise NotFound(
            f"{label}_incomplete",
            f"{label.capitalize()} is missing `{predicate.value}`.",
            {"uri": subject.value, "predicate": predicate.value},
        )
    return term


def _created_at(term: Any, subject: NamedNode, label: str) -> datetime:
    try:
        return parse_timestamp(term.value)
    except ValueError as exc:
        raise NotFound(
            f"{label}_incomplete",
            f"{label.capitalize()} has an unreadable timestamp.",
            {"uri": subject.value, "value": term.value},
        ) from exc


def parse_image(store: GraphStore, url: str) -> Image:
    subject = NamedNode(url)
    doc = document(url)
    _require_type(store, subject, RDF.type, POST, doc, "image")
    depiction = _required(store, subject, FOAF.depiction, doc, "image")
    description = store.any(subject, DCT.description, None, doc)
    creator = _required(store, subject, DCT.creator, doc, "image")
    created = _required(store, subject, DCT.created, doc, "image")
    return Image(
        url=url,
        image=depiction.value,
        description=description.value if description is not None else "",
        creator=creator.value,
        created_at=_created_at(created, subject, "image"),
    )


def parse_like(store: GraphStore, url: str) -> Like:
    subject = NamedNode(url)
    doc = document(url)
    _require_type(store, subject, AS.type, LIKE, doc, "like")
    target = _required(store, subject, AS.object, doc, "like")
    creator = _required(store, subject, AS.actor, doc, "like")
    published = _required(store, subject, AS.published, doc, "like")
    return Like(
        url=url,
        object=target.value,
        creator=creator.value,
        created_at=_created_at(published, subject, "like"),
    )


def parse_comment(store: GraphStore, url: str) -> Comment:
    subject = NamedNode(url)
    doc = document(url)
    _require_type(store, subject, AS.type, COMMENT, doc, "comment")
    content = _required(store, subject, AS.content, doc, "comment")
    in_reply_to = _required(store, subject, AS.inReplyTo, doc, "comment")
    creator = _required(store, subject, AS.actor, doc, "comment")
    published = _required(store, subject, AS.published, doc, "comment")
    return Comment(
        url=url,
        content=content.value,
        in_reply_to=in_reply_to.value,
        creator=creator.value,
        created_at=_created_at(published, subject, "comment"),
    )


def parse_person(store: GraphStore, web_id: str) -> Person:
    user = NamedNode(web_id)
    profile = document(web_id)
    name = store.any(user, FOAF.name, None, profile)
    if name is None:
        name = store.any(user, VCARD.fn, None, profile)
    image = store.any(user, FOAF.img, None, profile)
    if image is None:
        image = store.any(user, VCARD.hasPhoto, None, profile)
    return Person(
        web_id=web_id,
        name=name.value if name is not None else "",
        image=image.value if image is not None else settings.PLACEHOLDER_IMAGE,
    )
