from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence


@dataclass(frozen=True)
class Post:
    """A parsed blog post: front-matter fields plus the raw markdown body."""

    source: str
    title: str
    date: datetime
    permalink: str
    slug: str

    description: str | None = None
    layout: str | None = None
    comments: bool | None = None
    tags: Sequence[str] = ()
    body: str = ""


@dataclass(frozen=True)
class TagGroup:
    """One entry of the tag index: a tag and the posts carrying it."""

    name: str
    anchor: str
    posts: Sequence[Post] = ()
