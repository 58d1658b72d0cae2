#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Callable

from pixolid import settings
from pixolid.backend import PodBackend
from pixolid.client import HttpDocumentClient
from pixolid.errors import PodError
from pixolid.statements import build_image_statements
from pixolid.store import to_turtle


def images_turtle(images: list) -> str:
    quads = []
    for image in images:
        quads.extend(
            build_image_statements(image.url, image.image, image.description, image.creator, image.created_at)
        )
    return to_turtle(quads)


async def export_images(backend: PodBackend, web_id: str, folder: str | None, output: Path, friends: bool) -> tuple[int, int]:
    if friends:
        images = await backend.get_friends_images(web_id)
    else:
        if not folder:
            folder = await backend.get_valid_app_folder(web_id)
        images = await backend.get_images(web_id, folder)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(images_turtle(images), encoding="utf-8")
    return len(images), len(images.skipped)


def main(argv: list[str] | None = None, backend_factory: Callable[[], PodBackend] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Export the image metadata of a pod's application folder to a Turtle file."
    )
    parser.add_argument("webid", help="WebID of the pod owner")
    parser.add_argument(
        "--folder",
        default=None,
        help="Application folder URL (default: the folder named in the profile)",
    )
    parser.add_argument(
        "--output",
        default="images.ttl",
        help="Path of the Turtle file to write (default: ./images.ttl)",
    )
    parser.add_argument(
        "--friends",
        action="store_true",
        help="Export the images of the user's friends instead of their own",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL)

    async def run() -> int:
        backend = backend_factory() if backend_factory else PodBackend(HttpDocumentClient(subscriptions=False))
        try:
            written, skipped = await export_images(backend, args.webid, args.folder, Path(args.output), args.friends)
        except PodError as exc:
            print(f"{args.webid}: {exc.message}")
            return 1
        finally:
            await backend.close()
        print(f"done: {written} image(s) written to {args.output}, {skipped} skipped")
        return 0

    return asyncio.run(run())


if __name__ == "__main__":
    raise SystemExit(main())
