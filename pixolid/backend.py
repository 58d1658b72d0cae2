from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable

from pyoxigraph import NamedNode, Quad

from pixolid import acl, settings
from pixolid.acl import access_list_url, create_file_access_list, create_folder_access_list
from pixolid.client import DocumentClient, Subscription
from pixolid.errors import FetchError, NoAppFolder, NoValidFolder, PodError, ValidationError, WriteError
from pixolid.folders import child_collections, has_required_collections
from pixolid.models import Collected, Comment, FolderResolution, FolderState, Image, Like, Person, Skipped
from pixolid.namespaces import APPEND, AS, COMMENT, FOAF, LDP, LIKE, READ, SOLID
from pixolid.statements import (
    build_activity_record,
    build_comment_statements,
    build_image_statements,
    build_like_statements,
    new_identifier,
    parse_comment,
    parse_image,
    parse_like,
    parse_person,
)
from pixolid.store import GraphStore, document, parse_turtle, sparql_update, to_ordered_turtle

logger = logging.getLogger(__name__)


def _as_folder(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"


def _extension(content_type: str) -> str:
    subtype = content_type.split(";", 1)[0].strip().rsplit("/", 1)[-1]
    return subtype.split("+", 1)[0] or "bin"


def _newest_first(collected: Collected) -> Collected:
    return Collected(sorted(collected, key=lambda e: e.created_at, reverse=True), collected.skipped)


def _oldest_first(collected: Collected) -> Collected:
    return Collected(sorted(collected, key=lambda e: e.created_at), collected.skipped)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PodBackend:
    create_access_statement = staticmethod(acl.create_access_statement)
    create_access_list = staticmethod(acl.create_access_list)
    create_folder_access_list = staticmethod(acl.create_folder_access_list)
    create_file_access_list = staticmethod(acl.create_file_access_list)

    def __init__(
        self,
        client: DocumentClient,
        store: GraphStore | None = None,
        *,
        id_factory: Callable[[], str] = new_identifier,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.store = store if store is not None else GraphStore()
        self._id_factory = id_factory
        self._clock = clock
        self._loaded: set[str] = set()
        self._subscriptions: dict[str, Subscription] = {}

    async def load(self, uri: str, *, force: bool = False) -> None:
        doc = document(uri)
        if doc in self._loaded and not force:
            return
        try:
            text = await self.client.load(doc)
            quads = parse_turtle(text, doc)
        except Exception as exc:
            raise FetchError(
                "fetch_failed",
                "Could not fetch the document.",
                {"uri": doc, "cause": str(exc)},
            ) from exc
        if force:
            self.store.replace_document(doc, quads)
        else:
            self.store.add_all(quads)
        self._loaded.add(doc)

    async def update_resource(self, uri: str, insertions: list[Quad], deletions: list[Quad]) -> None:
        doc = document(uri)
        await self.load(doc)
        try:
            await self.client.patch(doc, sparql_update(deletions, insertions))
        except Exception as exc:
            raise WriteError(
                "update_failed",
                "Could not update the document.",
                {"uri": doc, "cause": str(exc)},
            ) from exc
        self.store.apply_diff(deletions, insertions)

    async def _create(self, uri: str, content: str | bytes, content_type: str = settings.TURTLE) -> str:
        try:
            created = await self.client.create(uri, content, content_type)
        except Exception as exc:
            raise WriteError(
                "create_failed",
                "Could not create the document.",
                {"uri": uri, "cause": str(exc)},
            ) from exc
        logger.info("created %s", created)
        return created

    def register_changes(self, uri: str) -> Subscription:
        doc = document(uri)
        existing = self._subscriptions.get(doc)
        if existing is not None and existing.active:
            return existing
        subscription = self.client.subscribe(doc, self._on_remote_change)
        self._subscriptions[doc] = subscription
        return subscription

    def unsubscribe(self, uri: str) -> None:
        subscription = self._subscriptions.pop(document(uri), None)
        if subscription is not None:
            subscription.cancel()

    @property
    def subscriptions(self) -> dict[str, Subscription]:
        return dict(self._subscriptions)

    async def _on_remote_change(self, doc: str) -> None:
        logger.info("remote change on %s, reloading", doc)
        await self.load(doc, force=True)

    async def close(self) -> None:
        for subscription in self._subscriptions.values():
            subscription.cancel()
        self._subscriptions.clear()
        aclose = getattr(self.client, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _collect(self, uris: Iterable[str], fetch: Callable[[str], Awaitable[Any]]) -> Collected:
        items = []
        skipped = []
        for uri in uris:
            try:
                items.append(await fetch(uri))
            except PodError as exc:
                logger.warning("skipping %s: %s", uri, exc)
                skipped.append(Skipped(uri, exc.code))
        return Collected(items, skipped)

    async def get_app_folder(self, web_id: str) -> str:
        user = NamedNode(web_id)
        profile = document(web_id)
        await self.load(profile)
        folder = self.store.any(user, SOLID.timeline, None, profile)
        if folder is None:
            raise NoAppFolder("no_app_folder", "No application folder.", {"webid": web_id})
        return folder.value

    async def is_valid_app_folder(self, folder_url: str) -> bool:
        folder = _as_folder(document(folder_url))
        await self.load(folder)
        valid = has_required_collections(child_collections(self.store, folder))
        self.register_changes(folder)
        return valid

    async def get_valid_app_folder(self, web_id: str) -> str:
        folder = await self.get_app_folder(web_id)
        if await self.is_valid_app_folder(folder):
            return folder
        raise NoValidFolder("no_valid_folder", "No valid application folder.", {"webid": web_id, "folder": folder})

    async def resolve_app_folder(self, web_id: str) -> FolderResolution:
        try:
            folder = await self.get_valid_app_folder(web_id)
        except NoAppFolder:
            return FolderResolution(FolderState.MISSING)
        except NoValidFolder as exc:
            return FolderResolution(FolderState.INVALID, (exc.details or {}).get("folder"))
        except FetchError:
            return FolderResolution(FolderState.FETCH_FAILED)
        return FolderResolution(FolderState.VALID, folder)

    async def create_app_folders(self, web_id: str, folder_url: str) -> bool:
        folder = _as_folder(folder_url)
        try:
            for url in (folder, f"{folder}images/", f"{folder}comments/", f"{folder}likes/"):
                created = await self.client.create_collection(url)
                logger.info("created folder %s", created)
            access = create_folder_access_list(web_id, folder, [READ], True)
            await self.client.write(access_list_url(folder), to_ordered_turtle(access), settings.TURTLE)
        except Exception as exc:
            logger.warning("could not create application folders under %s: %s", folder, exc)
            return False
        return await self.update_app_folder(web_id, folder)

    async def update_app_folder(self, web_id: str, folder_url: str) -> bool:
        user = NamedNode(web_id)
        profile = document(web_id)
        try:
            await self.load(profile)
        except FetchError:
            logger.warning("could not load the profile document %s", profile)
            return False
        insertions = [Quad(user, SOLID.timeline, NamedNode(_as_folder(folder_url)), NamedNode(profile))]
        deletions = self.store.match(user, SOLID.timeline, None, profile)
        try:
            await self.update_resource(profile, insertions, deletions)
        except PodError as exc:
            logger.warning("could not update the application folder of %s: %s", web_id, exc)
            return False
        self.register_changes(profile)
        return True

    async def get_images(self, web_id: str, folder_url: str | None = None) -> Collected:
        folder = folder_url
        if not folder:
            try:
                folder = await self.get_valid_app_folder(web_id)
            except PodError as exc:
                logger.warning("no images for %s: %s", web_id, exc)
                return Collected()
        images = f"{_as_folder(folder)}images/"
        await self.load(images)
        files = sorted(term.value for term in self.store.each(NamedNode(images), LDP.contains, None, images))
        collected = await self._collect((f for f in files if f.endswith(".ttl")), self.get_image)
        self.register_changes(images)
        return _newest_first(collected)

    async def get_image(self, url: str) -> Image:
        await self.load(url)
        return parse_image(self.store, url)

    async def upload_image(
        self,
        data: bytes,
        description: str,
        web_id: str,
        folder_url: str,
        is_public: bool,
        allowed_users: list[str] | None = None,
        *,
        content_type: str = "image/jpeg",
    ) -> Image:
        # Steps are not rolled back; a failure can leave earlier documents behind.
        name = f"{_as_folder(folder_url)}images/{self._id_factory()}"
        created_at = self._now()
        image_url = await self._create(f"{name}.{_extension(content_type)}", data, content_type)
        # Documents name themselves, so they stay at the requested URI.
        image_file_url = f"{name}.ttl"
        statements = build_image_statements(image_file_url, image_url, description, web_id, created_at)
        await self._create(image_file_url, to_ordered_turtle(statements))
        image_access = create_file_access_list(web_id, image_url, [READ], is_public, allowed_users)
        await self._create(access_list_url(image_url), to_ordered_turtle(image_access))
        file_access = create_file_access_list(web_id, image_file_url, [APPEND, READ], is_public, allowed_users)
        await self._create(access_list_url(image_file_url), to_ordered_turtle(file_access))
        return Image(image_file_url, image_url, description, web_id, created_at)

    def _now(self) -> datetime:
        now = self._clock()
        return now.replace(microsecond=now.microsecond // 1000 * 1000)

    async def get_friends_web_ids(self, web_id: str) -> list[str]:
        user = NamedNode(web_id)
        profile = document(web_id)
        await self.load(profile)
        return sorted(term.value for term in self.store.each(user, FOAF.knows, None, profile))

    async def get_person(self, web_id: str) -> Person:
        await self.load(web_id)
        return parse_person(self.store, web_id)

    async def get_persons(self, web_ids: Iterable[str]) -> Collected:
        return await self._collect(web_ids, self.get_person)

    async def get_friends(self, web_id: str) -> Collected:
        return await self.get_persons(await self.get_friends_web_ids(web_id))

    async def get_friends_images(self, web_id: str) -> Collected:
        friends = await self.get_friends_web_ids(web_id)
        results = await asyncio.gather(*(self.get_images(friend) for friend in friends), return_exceptions=True)
        items: list[Image] = []
        skipped: list[Skipped] = []
        for friend, result in zip(friends, results):
            if isinstance(result, PodError):
                logger.warning("no images for friend %s: %s", friend, result)
                skipped.append(Skipped(friend, result.code))
            elif isinstance(result, Exception):
                logger.warning("no images for friend %s: %r", friend, result)
                skipped.append(Skipped(friend, type(result).__name__))
            elif isinstance(result, BaseException):
                raise result
            else:
                items.extend(result)
                skipped.extend(result.skipped)
        return _newest_first(Collected(items, skipped))

    async def _append_record(self, target: str, record: list[Quad]) -> None:
        await self.load(target)
        missing = [q for q in record if not self.store.holds(q.subject, q.predicate, q.object, q.graph_name)]
        if missing:
            await self.update_resource(target, missing, [])

    async def _activities(self, target: str, kind: NamedNode, fetch: Callable[[str], Awaitable[Any]]) -> Collected:
        doc = document(target)
        await self.load(doc)
        records = sorted(term.value for term in self.store.each(None, AS.type, kind, doc))
        collected = await self._collect(records, fetch)
        self.register_changes(doc)
        return _oldest_first(collected)

    async def upload_like(self, web_id: str, folder_url: str, target: str) -> Like:
        likes = await self.get_likes(target)
        if any(like.creator == web_id for like in likes):
            raise ValidationError("already_liked", "Cannot like twice.", {"webid": web_id, "object": target})
        published = self._now()
        like_url = f"{_as_folder(folder_url)}likes/{self._id_factory()}.ttl"
        await self._create(like_url, to_ordered_turtle(build_like_statements(like_url, target, web_id, published)))
        await self._append_record(target, build_activity_record(like_url, target, LIKE))
        return Like(like_url, target, web_id, published)

    async def get_likes(self, target: str) -> Collected:
        return await self._activities(target, LIKE, self.get_like)

    async def get_like(self, url: str) -> Like:
        await self.load(url)
        return parse_like(self.store, url)

    async def upload_comment(self, web_id: str, folder_url: str, in_reply_to: str, content: str) -> Comment:
        if not content.strip():
            raise ValidationError("empty_comment", "Type a comment.", {"webid": web_id, "object": in_reply_to})
        published = self._now()
        comment_url = f"{_as_folder(folder_url)}comments/{self._id_factory()}.ttl"
        statements = build_comment_statements(comment_url, content, in_reply_to, web_id, published)
        await self._create(comment_url, to_ordered_turtle(statements))
        await self._append_record(in_reply_to, build_activity_record(comment_url, in_reply_to, COMMENT))
        return Comment(comment_url, content, in_reply_to, web_id, published)

    async def get_comments(self, target: str) -> Collected:
        return await self._activities(target, COMMENT, self.get_comment)

    async def get_comment(self, url: str) -> Comment:
        await self.load(url)
        return parse_comment(self.store, url)
