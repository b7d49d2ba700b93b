"""Input loading – parse the posts backup JSON into Post records."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import InputError

logger = logging.getLogger("harvester.posts")


@dataclass(frozen=True)
class Post:
    """A titled post and the image URLs it references."""

    title: str
    images: tuple[str, ...] = field(default_factory=tuple)


def parse_posts(data: Any) -> list[Post]:
    """Validate decoded JSON and convert it into Post records.

    Expects an array of objects carrying a string ``title`` and an array of
    string ``images``.  Extra keys are ignored.
    """
    if not isinstance(data, list):
        raise InputError(f"expected a JSON array of posts, got {type(data).__name__}")

    posts: list[Post] = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise InputError(f"post #{idx} is not an object")
        title = item.get("title")
        images = item.get("images")
        if not isinstance(title, str):
            raise InputError(f"post #{idx} has no string 'title'")
        if not isinstance(images, list) or not all(isinstance(u, str) for u in images):
            raise InputError(f"post #{idx} ({title!r}) has no 'images' array of strings")
        for text in (title, *images):
            try:
                text.encode("utf-8")
            except UnicodeEncodeError:
                raise InputError(f"post #{idx} contains a string that is not valid Unicode: {text!r}") from None
        posts.append(Post(title=title, images=tuple(images)))
    return posts


def load_posts(path: Path) -> list[Post]:
    """Read and parse the posts file.  Any problem is fatal."""
    try:
        with open(path, "rb") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise InputError(f"input file not found: {path}") from None
    except OSError as exc:
        raise InputError(f"cannot read input file {path}: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InputError(f"malformed JSON in {path}: {exc}") from exc

    posts = parse_posts(data)
    logger.debug(
        "Loaded %d posts (%d image URLs) from %s",
        len(posts), sum(len(p.images) for p in posts), path,
    )
    return posts
