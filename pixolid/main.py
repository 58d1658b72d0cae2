from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import Response

from pixolid import settings
from pixolid.backend import PodBackend
from pixolid.client import HttpDocumentClient
from pixolid.errors import PodError, ValidationError
from pixolid.folders import folder_url
from pixolid.statements import format_timestamp

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if is_dataclass(value):
        return {k: _jsonable(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _pretty_json_response(content: Any, status_code: int = 200, media_type: str = "application/json") -> Response:
    return Response(
        content=json.dumps(_jsonable(content), indent=2, ensure_ascii=False),
        status_code=status_code,
        media_type=f"{media_type}; charset=utf-8",
    )


def _collection_response(collected: Any) -> Response:
    return _pretty_json_response(
        {
            "items": list(collected),
            "skipped": getattr(collected, "skipped", []),
        }
    )


def _serialize_error(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> Response:
    return _pretty_json_response(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            }
        },
    )


async def _json_or_empty(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except Exception:
        return {}
    return payload if isinstance(payload, dict) else {}


def _require(payload: dict[str, Any], *keys: str) -> list[Any]:
    missing = [k for k in keys if not payload.get(k)]
    if missing:
        raise ValidationError(
            "invalid_payload",
            f"Payload requires {', '.join(f'`{k}`' for k in keys)}",
            {"missing": missing},
        )
    return [payload[k] for k in keys]


def _backend(request: Request) -> PodBackend:
    return request.app.state.backend


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)
    owned = getattr(app.state, "backend", None) is None
    if owned:
        app.state.backend = PodBackend(HttpDocumentClient())
    try:
        yield
    finally:
        if owned:
            await app.state.backend.close()
            app.state.backend = None


app = FastAPI(title="pixolid", version="0.1.0", lifespan=lifespan)


@app.exception_handler(PodError)
async def pod_error_handler(request: Request, exc: PodError):
    return _serialize_error(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    return _serialize_error(
        status_code=500,
        code="internal_error",
        message="Unexpected server error",
        details={"cause": str(exc)},
    )


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/folders")
async def get_folder(request: Request, webid: str = Query(...)):
    resolution = await _backend(request).resolve_app_folder(webid)
    return _pretty_json_response(
        {
            "webid": webid,
            "state": resolution.state.value,
            "folder": resolution.folder,
            "needs_setup": resolution.state.needs_setup,
        }
    )


@app.post("/folders")
async def post_folder(request: Request):
    webid, folder = _require(await _json_or_empty(request), "webid", "folder")
    url = folder_url(webid, folder)
    created = await _backend(request).create_app_folders(webid, url)
    if not created:
        return _serialize_error(
            status_code=502,
            code="folder_create_failed",
            message="Error creating app folders, try again.",
            details={"folder": url},
        )
    return _pretty_json_response({"webid": webid, "folder": url, "created": True}, status_code=201)


@app.put("/folders")
async def put_folder(request: Request):
    webid, folder = _require(await _json_or_empty(request), "webid", "folder")
    url = folder_url(webid, folder)
    backend = _backend(request)
    if not await backend.is_valid_app_folder(url):
        raise ValidationError("invalid_folder", "Folder lacks the images, comments and likes collections.", {"folder": url})
    if not await backend.update_app_folder(webid, url):
        return _serialize_error(
            status_code=502,
            code="folder_update_failed",
            message="Could not update the application folder, try again.",
            details={"folder": url},
        )
    return _pretty_json_response({"webid": webid, "folder": url, "updated": True})


@app.get("/images")
async def get_images(request: Request, webid: str = Query(...), folder: str | None = Query(None)):
    return _collection_response(await _backend(request).get_images(webid, folder))


@app.get("/image")
async def get_image(request: Request, uri: str = Query(...)):
    return _pretty_json_response(await _backend(request).get_image(uri))


@app.post("/images")
async def post_image(
    request: Request,
    webid: str = Query(...),
    folder: str = Query(...),
    description: str = Query(""),
    public: bool = Query(True),
    allowed: list[str] = Query(default=[]),
):
    data = await request.body()
    if not data:
        raise ValidationError("invalid_payload", "Request body must contain the image")
    content_type = request.headers.get("content-type") or "image/jpeg"
    image = await _backend(request).upload_image(
        data,
        description,
        webid,
        folder,
        public,
        allowed,
        content_type=content_type,
    )
    return _pretty_json_response(image, status_code=201)


@app.get("/friends")
async def get_friends(request: Request, webid: str = Query(...)):
    return _collection_response(await _backend(request).get_friends(webid))


@app.get("/friends/images")
async def get_friends_images(request: Request, webid: str = Query(...)):
    return _collection_response(await _backend(request).get_friends_images(webid))


@app.get("/likes")
async def get_likes(request: Request, uri: str = Query(...)):
    return _collection_response(await _backend(request).get_likes(uri))


@app.post("/likes")
async def post_like(request: Request):
    webid, folder, uri = _require(await _json_or_empty(request), "webid", "folder", "uri")
    like = await _backend(request).upload_like(webid, folder, uri)
    return _pretty_json_response(like, status_code=201)


@app.get("/comments")
async def get_comments(request: Request, uri: str = Query(...)):
    return _collection_response(await _backend(request).get_comments(uri))


@app.post("/comments")
async def post_comment(request: Request):
    payload = await _json_or_empty(request)
    webid, folder, uri = _require(payload, "webid", "folder", "uri")
    comment = await _backend(request).upload_comment(webid, folder, uri, payload.get("content") or "")
    return _pretty_json_response(comment, status_code=201)
