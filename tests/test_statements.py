from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pyoxigraph import Literal, NamedNode, Quad

from pixolid.errors import NotFound
from pixolid.models import Comment, Image, Like, Person
from pixolid.namespaces import AS, DATETIME, DCT, FOAF, LIKE, RDF, SIOC
from pixolid.statements import (
    build_activity_record,
    build_comment_statements,
    build_image_statements,
    build_like_statements,
    format_timestamp,
    new_identifier,
    parse_comment,
    parse_image,
    parse_like,
    parse_person,
    parse_timestamp,
)
from pixolid.store import GraphStore

USER = "http://bob.example.org/profile/card#me"
PUBLISHED = datetime(2019, 2, 5, 15, 35, 30, tzinfo=timezone.utc)
IMAGE_URL = "http://tom.example.org/pixolid/images/56789.ttl"


def test_activity_record_lives_in_target_document():
    like_url = "http://bob.example.org/pixolid/likes/12345.ttl"

    record = build_activity_record(like_url, IMAGE_URL, LIKE)

    assert record == [Quad(NamedNode(like_url), AS.type, LIKE, NamedNode(IMAGE_URL))]


def test_comment_statements_order():
    comment_url = "http://bob.example.org/pixolid/comments/12345.ttl"

    statements = build_comment_statements(comment_url, "What an amazing picture!", IMAGE_URL, USER, PUBLISHED)

    doc = NamedNode(comment_url)
    assert statements == [
        Quad(doc, AS.type, AS.Note, doc),
        Quad(doc, AS.content, Literal("What an amazing picture!"), doc),
        Quad(doc, AS.actor, NamedNode(USER), doc),
        Quad(doc, AS.inReplyTo, NamedNode(IMAGE_URL), doc),
        Quad(doc, AS.published, Literal("2019-02-05T15:35:30.000Z", datatype=DATETIME), doc),
    ]


def test_like_statements_order():
    like_url = "http://bob.example.org/pixolid/likes/12345.ttl"

    statements = build_like_statements(like_url, IMAGE_URL, USER, PUBLISHED)

    doc = NamedNode(like_url)
    assert statements == [
        Quad(doc, AS.type, AS.Like, doc),
        Quad(doc, AS.actor, NamedNode(USER), doc),
        Quad(doc, AS.object, NamedNode(IMAGE_URL), doc),
        Quad(doc, AS.published, Literal("2019-02-05T15:35:30.000Z", datatype=DATETIME), doc),
    ]


def test_image_statements_order():
    file_url = "http://bob.example.org/pixolid/images/12345.ttl"
    image_url = "http://bob.example.org/pixolid/images/12345.jpeg"

    statements = build_image_statements(file_url, image_url, "Check out the stunning view.", USER, PUBLISHED)

    doc = NamedNode(file_url)
    assert statements == [
        Quad(doc, RDF.type, SIOC.Post, doc),
        Quad(doc, FOAF.depiction, NamedNode(image_url), doc),
        Quad(doc, DCT.description, Literal("Check out the stunning view."), doc),
        Quad(doc, DCT.creator, NamedNode(USER), doc),
        Quad(doc, DCT.created, Literal("2019-02-05T15:35:30.000Z", datatype=DATETIME), doc),
    ]


def test_image_round_trip():
    store = GraphStore()
    created = datetime(2019, 3, 23, 15, 55, 55, 346000, tzinfo=timezone.utc)
    file_url = "http://bob.example.org/pixolid/images/abc.ttl"
    store.add_all(build_image_statements(file_url, "http://bob.example.org/pixolid/images/abc.png", "Sunset", USER, created))

    assert parse_image(store, file_url) == Image(
        file_url, "http://bob.example.org/pixolid/images/abc.png", "Sunset", USER, created
    )


def test_like_and_comment_round_trip():
    store = GraphStore()
    like_url = "http://bob.example.org/pixolid/likes/abc.ttl"
    comment_url = "http://bob.example.org/pixolid/comments/abc.ttl"
    store.add_all(build_like_statements(like_url, IMAGE_URL, USER, PUBLISHED))
    store.add_all(build_comment_statements(comment_url, "Stunning!", IMAGE_URL, USER, PUBLISHED))

    assert parse_like(store, like_url) == Like(like_url, IMAGE_URL, USER, PUBLISHED)
    assert parse_comment(store, comment_url) == Comment(comment_url, "Stunning!", IMAGE_URL, USER, PUBLISHED)


def test_parser_requires_type_marker():
    store = GraphStore()
    like_url = "http://bob.example.org/pixolid/likes/abc.ttl"
    store.add_all(build_like_statements(like_url, IMAGE_URL, USER, PUBLISHED)[1:])

    with pytest.raises(NotFound) as info:
        parse_like(store, like_url)
    assert info.value.code == "like_not_found"

    with pytest.raises(NotFound):
        parse_image(store, like_url)


def test_parser_requires_fields():
    store = GraphStore()
    comment_url = "http://bob.example.org/pixolid/comments/abc.ttl"
    statements = build_comment_statements(comment_url, "Hi", IMAGE_URL, USER, PUBLISHED)
    store.add_all(statements[:-1])

    with pytest.raises(NotFound) as info:
        parse_comment(store, comment_url)
    assert info.value.code == "comment_incomplete"


def test_unreadable_timestamp_is_not_found():
    store = GraphStore()
    like_url = "http://bob.example.org/pixolid/likes/abc.ttl"
    doc = NamedNode(like_url)
    statements = build_like_statements(like_url, IMAGE_URL, USER, PUBLISHED)[:-1]
    statements.append(Quad(doc, AS.published, Literal("yesterday"), doc))
    store.add_all(statements)

    with pytest.raises(NotFound):
        parse_like(store, like_url)


def test_person_falls_back_to_placeholder(monkeypatch):
    monkeypatch.setattr("pixolid.settings.PLACEHOLDER_IMAGE", "/img/none.svg")
    store = GraphStore()

    assert parse_person(store, USER) == Person(USER, "", "/img/none.svg")


def test_person_prefers_foaf_then_vcard():
    store = GraphStore()
    profile = NamedNode("http://bob.example.org/profile/card")
    me = NamedNode(USER)
    store.add(Quad(me, NamedNode("http://www.w3.org/2006/vcard/ns#fn"), Literal("Robert"), profile))
    store.add(Quad(me, NamedNode("http://www.w3.org/2006/vcard/ns#hasPhoto"), NamedNode("http://bob.example.org/b.jpg"), profile))

    assert parse_person(store, USER) == Person(USER, "Robert", "http://bob.example.org/b.jpg")


def test_timestamps_are_iso_with_milliseconds():
    assert format_timestamp(datetime(2019, 3, 23, 15, 55, 55, 346999, tzinfo=timezone.utc)) == "2019-03-23T15:55:55.346Z"
    assert format_timestamp(datetime(2019, 3, 23, 15, 55, 55)) == "2019-03-23T15:55:55.000Z"
    assert parse_timestamp("2019-03-23T15:55:55.346Z") == datetime(2019, 3, 23, 15, 55, 55, 346000, tzinfo=timezone.utc)
    assert parse_timestamp("2019-03-23T15:55:55") == datetime(2019, 3, 23, 15, 55, 55, tzinfo=timezone.utc)


def test_identifiers_are_unique():
    assert len({new_identifier() for _ in range(50)}) == 50
