from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PLACEHOLDER_RE = re.compile(r":([a-z_]+)")
_PERMALINK_PLACEHOLDERS = frozenset({"year", "month", "day", "title", "slug"})


def _normalize_extension_list(values: list[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()

    for item in values:
        ext = (item or "").strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        if ext in seen:
            continue
        seen.add(ext)
        out.append(ext)

    if not out:
        raise ValueError("must contain at least one file extension")
    return out


def _validate_site_path(value: str) -> str:
    path = (value or "").strip()
    if not path:
        raise ValueError("must not be empty")
    if "\\" in path or any(part in (".", "..") for part in path.split("/")):
        raise ValueError("must not contain backslashes or '.' or '..' segments")
    if "://" in path:
        raise ValueError("must be a site-relative path, not a URL")
    if not path.startswith("/"):
        path = "/" + path
    return path


NonNegativeInt = Annotated[int, Field(ge=0)]


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str = "Blog"
    base_url: str = ""
    description: str = ""

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")


class ContentConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    posts_dir: str = "_posts"
    extensions: list[str] = Field(default_factory=lambda: [".md", ".markdown"])
    permalink: str = "/:year/:month/:day/:title/"
    include_unpublished: bool = False

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, v: list[str]) -> list[str]:
        return _normalize_extension_list(v)

    @field_validator("permalink")
    @classmethod
    def _permalink_placeholders_known(cls, v: str) -> str:
        pattern = _validate_site_path(v)
        unknown = sorted(
            {m.group(1) for m in _PLACEHOLDER_RE.finditer(pattern)} - _PERMALINK_PLACEHOLDERS
        )
        if unknown:
            raise ValueError(f"unknown permalink placeholders: {', '.join(unknown)}")
        return pattern


class TagsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = "/tags/"
    title: str = "Tags"
    sort: Literal["lexicographic", "casefold"] = "lexicographic"
    heading_level: int = Field(2, ge=1, le=6)
    date_format: str = "%b %d, %Y"
    write_json: bool = False

    @field_validator("path")
    @classmethod
    def _path_must_be_site_relative(cls, v: str) -> str:
        return _validate_site_path(v)

    @field_validator("date_format")
    @classmethod
    def _date_format_not_blank(cls, v: str) -> str:
        if not (v or "").strip():
            raise ValueError("must not be empty")
        return v


class BuildConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    render_posts: bool = True
    markdown_extensions: list[str] = Field(
        default_factory=lambda: ["fenced_code", "tables", "codehilite"]
    )


class ChecksConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_description_chars: NonNegativeInt = 300  # 0 disables the limit


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    site: SiteConfig = Field(default_factory=SiteConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    tags: TagsConfig = Field(default_factory=TagsConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
