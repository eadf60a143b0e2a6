from __future__ import annotations

from .config import config_sha256, load_config
from .config_schema import AppConfig
from .content import load_posts
from .errors import BuildError, ConfigError, ContentError, RenderError
from .post import Post, TagGroup
from .render import render_tag_index
from .site import BuildResult, build_site
from .tags import build_tag_index

__all__ = [
    "AppConfig",
    "BuildError",
    "BuildResult",
    "ConfigError",
    "ContentError",
    "Post",
    "RenderError",
    "TagGroup",
    "build_site",
    "build_tag_index",
    "config_sha256",
    "load_config",
    "load_posts",
    "render_tag_index",
]
