from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol

import httpx

from pixolid import settings
from pixolid.errors import PodError

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], Awaitable[None]]

LDP_CONTAINER_LINK = '<http://www.w3.org/ns/ldp#BasicContainer>; rel="type"'
SPARQL_UPDATE = "application/sparql-update"


@dataclass
class Subscription:
    uri: str
    task: asyncio.Task | None = field(default=None, repr=False)
    cancelled: bool = False

    @property
    def active(self) -> bool:
        if self.cancelled:
            return False
        return self.task is None or not self.task.done()

    def cancel(self) -> None:
        self.cancelled = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class DocumentClient(Protocol):
    async def load(self, uri: str) -> str: ...

    async def create(self, uri: str, content: str | bytes, content_type: str | None = None) -> str: ...

    async def write(self, uri: str, content: str | bytes, content_type: str | None = None) -> str: ...

    async def create_collection(self, uri: str) -> str: ...

    async def patch(self, uri: str, update: str) -> None: ...

    def subscribe(self, uri: str, callback: ChangeCallback) -> Subscription: ...


class HttpDocumentClient:
    def __init__(
        self,
        *,
        timeout: float = settings.REQUEST_TIMEOUT,
        token: str | None = settings.ACCESS_TOKEN,
        poll_interval: float = settings.CHANGE_POLL_INTERVAL,
        subscriptions: bool = settings.SUBSCRIPTIONS_ENABLED,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )
        self._poll_interval = poll_interval
        self._subscriptions = subscriptions
        self._etags: dict[str, str | None] = {}

    async def aclose(self) -> None:
        await self._http.aclose()

    async def load(self, uri: str) -> str:
        res = await self._http.get(uri, headers={"Accept": settings.TURTLE})
        res.raise_for_status()
        self._etags[uri] = res.headers.get("etag")
        return res.text

    async def _put(self, uri: str, content: str | bytes, headers: dict[str, str]) -> str:
        res = await self._http.put(uri, content=content, headers=headers)
        res.raise_for_status()
        location = res.headers.get("location")
        return str(res.url.join(location)) if location else uri

    async def create(self, uri: str, content: str | bytes, content_type: str | None = None) -> str:
        actual = await self._put(uri, content, {"Content-Type": content_type or settings.TURTLE})
        logger.info("created %s", actual)
        return actual

    async def write(self, uri: str, content: str | bytes, content_type: str | None = None) -> str:
        actual = await self._put(uri, content, {"Content-Type": content_type or settings.TURTLE})
        logger.info("wrote %s", actual)
        return actual

    async def create_collection(self, uri: str) -> str:
        if not uri.endswith("/"):
            uri = f"{uri}/"
        actual = await self._put(uri, b"", {"Content-Type": settings.TURTLE, "Link": LDP_CONTAINER_LINK})
        logger.info("created collection %s", actual)
        return actual

    async def patch(self, uri: str, update: str) -> None:
        res = await self._http.patch(uri, content=update, headers={"Content-Type": SPARQL_UPDATE})
        res.raise_for_status()
        logger.info("patched %s", uri)

    def subscribe(self, uri: str, callback: ChangeCallback) -> Subscription:
        if not self._subscriptions:
            return Subscription(uri)
        task = asyncio.get_running_loop().create_task(self._poll(uri, callback))
        return Subscription(uri, task)

    async def _poll(self, uri: str, callback: ChangeCallback) -> None:
        # Baseline is the ETag of the last load.
        etag = self._etags.get(uri)
        while True:
            await asyncio.sleep(self._poll_interval)
            headers = {"Accept": settings.TURTLE}
            if etag:
                headers["If-None-Match"] = etag
            try:
                res = await self._http.head(uri, headers=headers)
                if res.status_code == 304:
                    continue
                res.raise_for_status()
                current = res.headers.get("etag")
                if etag is not None and current != etag:
                    await callback(uri)
                etag = current
            except (httpx.HTTPError, PodError) as exc:
                logger.warning("change poll for %s failed: %s", uri, exc)
