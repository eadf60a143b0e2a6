from __future__ import annotations

import re
from datetime import date, datetime, time
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

import frontmatter
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config_schema import AppConfig, ContentConfig
from .errors import ContentError
from .post import Post
from .slugs import path_segment, slugify

_DATED_NAME_RE = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<title>.+)$")

_DATE_STRING_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


class PostMetadata(BaseModel):
    """Recognised front-matter keys. Anything else is tolerated and ignored."""

    model_config = ConfigDict(extra="allow", frozen=True)

    title: str | None = None
    date: Any = None
    permalink: str | None = None
    description: str | None = None
    layout: str | None = None
    comments: bool | None = None
    tags: list[str] = Field(default_factory=list)
    published: bool = True

    @field_validator("title", "permalink", "description", "layout", mode="before")
    @classmethod
    def _scalar_to_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float, date)):
            return str(v)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return v.split()
        if isinstance(v, (list, tuple)):
            return [str(item) if isinstance(item, (int, float)) else item for item in v]
        return v

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: list[str]) -> list[str]:
        out: list[str] = []
        seen: set[str] = set()
        for item in v:
            tag = (item or "").strip()
            if not tag or tag in seen:
                continue
            seen.add(tag)
            out.append(tag)
        return out


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """
    Split a post file into its YAML front-matter mapping and markdown body.

    Text without a front-matter block yields an empty mapping.
    """
    parsed = frontmatter.loads(text.lstrip("\ufeff"))
    return dict(parsed.metadata), parsed.content


def parse_post_date(value: Any) -> datetime | None:
    """
    Coerce a front-matter date into a datetime.

    Accepts YAML dates/datetimes and strings in ISO form or the common
    "YYYY-MM-DD HH:MM[:SS] [+ZZZZ]" blog layout. Returns None when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass

    for fmt in _DATE_STRING_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def split_file_name(stem: str) -> tuple[datetime | None, str]:
    """Return (date prefix, title part) of a "YYYY-MM-DD-title" file stem."""
    m = _DATED_NAME_RE.match(stem)
    if not m:
        return None, stem
    return parse_post_date(m.group("date")), m.group("title")


def expand_permalink(pattern: str, *, when: datetime, title: str) -> str:
    values = {
        "year": f"{when.year:04d}",
        "month": f"{when.month:02d}",
        "day": f"{when.day:02d}",
        "title": path_segment(title),
        "slug": slugify(title),
    }
    # Longest names first so ":title" is never read as a prefix of another key.
    out = pattern
    for key in sorted(values, key=len, reverse=True):
        out = out.replace(f":{key}", values[key])
    return _normalize_permalink(out)


def _normalize_permalink(value: str) -> str:
    p = (value or "").strip()
    if not p.startswith("/"):
        p = "/" + p
    return re.sub(r"/{2,}", "/", p)


def unsafe_permalink_reason(permalink: str) -> str | None:
    """Why a permalink cannot map to a file inside the output dir, or None."""
    if "\\" in permalink:
        return "contains a backslash"
    if any(part in (".", "..") for part in permalink.split("/")):
        return "contains a '.' or '..' segment"
    return None


def post_from_text(
    text: str,
    *,
    source: str,
    content: ContentConfig,
) -> tuple[Post | None, list[str]]:
    """
    Build a Post from file text.

    Returns (post, problems). The post is None when the file is malformed or
    unpublished; problems is empty for the unpublished case.
    """
    try:
        raw_meta, body = split_front_matter(text)
    except (yaml.YAMLError, TypeError, ValueError) as e:
        return None, [f"{source}: invalid front-matter: {e}"]

    try:
        meta = PostMetadata.model_validate(raw_meta)
    except ValidationError as e:
        errs: list[str] = []
        for item in e.errors():
            loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
            errs.append(f"{source}: {loc}: {item.get('msg', 'invalid value')}")
        return None, errs

    if not meta.published and not content.include_unpublished:
        return None, []

    problems: list[str] = []

    title = (meta.title or "").strip()
    if not title:
        problems.append(f"{source}: missing title")

    stem = Path(source).stem
    name_date, name_title = split_file_name(stem)

    when: datetime | None
    if meta.date is not None:
        when = parse_post_date(meta.date)
        if when is None:
            problems.append(f"{source}: unparseable date: {meta.date!r}")
    else:
        when = name_date
        if when is None:
            problems.append(f"{source}: no date in front-matter or file name")

    if problems or when is None:
        return None, problems

    if meta.permalink and meta.permalink.strip():
        permalink = _normalize_permalink(meta.permalink)
    else:
        permalink = expand_permalink(content.permalink, when=when, title=name_title)

    unsafe = unsafe_permalink_reason(permalink)
    if unsafe:
        return None, [f"{source}: permalink {permalink}: {unsafe}"]

    description = (meta.description or "").strip() or None

    post = Post(
        source=source,
        title=title,
        date=when,
        permalink=permalink,
        slug=slugify(name_title),
        description=description,
        layout=meta.layout,
        comments=meta.comments,
        tags=tuple(meta.tags),
        body=body,
    )
    return post, []


def _natural_order_key(post: Post) -> tuple[float, str]:
    # Wall-clock ordering; offsets are ignored so naive and aware dates compare.
    return (-_epoch_seconds(post.date.replace(tzinfo=None)), post.source)


def _epoch_seconds(when: datetime) -> float:
    return (when - datetime(1970, 1, 1)).total_seconds()


def find_post_files(posts_root: Path, extensions: list[str]) -> list[Path]:
    if not posts_root.is_dir():
        return []
    exts = set(extensions)
    return sorted(
        p for p in posts_root.rglob("*") if p.is_file() and p.suffix.lower() in exts
    )


def load_posts(source_dir: str | Path, config: AppConfig) -> list[Post]:
    """
    Load every post under the configured posts directory, newest first.

    All problems across all files are collected and raised together as one
    ContentError. A missing posts directory yields no posts.
    """
    root = Path(source_dir)
    posts_root = root / config.content.posts_dir

    posts: list[Post] = []
    problems: list[str] = []

    for path in find_post_files(posts_root, config.content.extensions):
        source = path.relative_to(root).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            problems.append(f"{source}: unreadable: {e}")
            continue

        post, post_problems = post_from_text(text, source=source, content=config.content)
        problems.extend(post_problems)
        if post is not None:
            posts.append(post)

    problems.extend(_permalink_conflicts(posts, reserved={config.tags.path: "tag index"}))

    if problems:
        raise ContentError(f"{len(problems)} problem(s) in {posts_root}", problems)

    posts.sort(key=_natural_order_key)
    return posts


def _permalink_conflicts(posts: list[Post], *, reserved: Mapping[str, str]) -> list[str]:
    owners: dict[str, str] = {output_relpath(k): v for k, v in reserved.items()}
    out: list[str] = []
    for post in posts:
        key = output_relpath(post.permalink)
        if key in owners:
            out.append(f"{post.source}: permalink {post.permalink} already used by {owners[key]}")
            continue
        owners[key] = post.source
    return out


def output_relpath(permalink: str) -> str:
    """
    Map a site path to a file under the output dir.

    "/tags/" -> "tags/index.html", "/tags.html" -> "tags.html",
    "/about" -> "about/index.html".
    """
    raw = (permalink or "").strip()
    p = PurePosixPath("/" + raw.lstrip("/"))
    if str(p) == "/":
        return "index.html"
    if raw.endswith("/") or not p.suffix:
        return (p / "index.html").as_posix().lstrip("/")
    return p.as_posix().lstrip("/")
