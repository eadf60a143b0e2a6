from __future__ import annotations

from datetime import datetime
from urllib.parse import quote
from typing import Mapping, Sequence

import markdown
from jinja2 import Environment, TemplateError
from markupsafe import Markup

from .config_schema import AppConfig
from .errors import RenderError
from .post import Post, TagGroup

_jinja_env = Environment(
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

TAG_INDEX_TEMPLATE = _jinja_env.from_string("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ page_title }} | {{ site.title }}</title>
</head>
<body>
<nav><a href="{{ home_url }}">{{ site.title }}</a></nav>
<h1>{{ page_title }}</h1>
{% if index %}
<p class="tag-list">
{% for group in index %}
<a href="#{{ group.anchor }}">{{ group.name }}</a> <span class="count">({{ group.posts|length }})</span>
{% endfor %}
</p>
{% endif %}
{% for group in index %}
<h{{ level }} id="{{ group.anchor }}">{{ group.name }}</h{{ level }}>
<ul>
{% for item in group.entries %}
<li><a href="{{ item.url }}">{{ item.title }}</a> <time datetime="{{ item.iso }}">{{ item.display }}</time></li>
{% endfor %}
</ul>
{% endfor %}
</body>
</html>
""")

POST_TEMPLATE = _jinja_env.from_string("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ post.title }} | {{ site.title }}</title>
{% if post.description %}
<meta name="description" content="{{ post.description }}">
{% endif %}
</head>
<body>
<nav><a href="{{ home_url }}">{{ site.title }}</a> <a href="{{ tags_url }}">{{ tags_title }}</a></nav>
<article>
<h1>{{ post.title }}</h1>
<time datetime="{{ iso }}">{{ display }}</time>
{% if tag_links %}
<ul class="tags">
{% for tag, href in tag_links %}
<li><a href="{{ href }}">{{ tag }}</a></li>
{% endfor %}
</ul>
{% endif %}
{{ body_html }}
</article>
</body>
</html>
""")


def post_url(post: Post, base_url: str = "") -> str:
    return (base_url or "").rstrip("/") + quote(post.permalink, safe="/")


def site_url(path: str, base_url: str = "") -> str:
    return (base_url or "").rstrip("/") + path


def format_post_date(when: datetime, fmt: str) -> str:
    return when.strftime(fmt)


def render_markdown(text: str, *, extensions: Sequence[str]) -> str:
    try:
        return markdown.markdown(text or "", extensions=list(extensions), output_format="html")
    except (ImportError, AttributeError, TypeError, ValueError) as e:
        raise RenderError(f"Markdown rendering failed: {e}") from e


def render_tag_index(index: Sequence[TagGroup], config: AppConfig) -> str:
    """
    Render the tag index page: one heading and list per tag, in index order.

    Output depends only on the index and config, so unchanged input renders
    byte-identical HTML.
    """
    base = config.site.base_url
    fmt = config.tags.date_format

    groups = [
        {
            "name": group.name,
            "anchor": group.anchor,
            "posts": group.posts,
            "entries": [
                {
                    "title": post.title,
                    "url": post_url(post, base),
                    "iso": post.date.isoformat(),
                    "display": format_post_date(post.date, fmt),
                }
                for post in group.posts
            ],
        }
        for group in index
    ]

    try:
        return TAG_INDEX_TEMPLATE.render(
            site=config.site,
            page_title=config.tags.title,
            home_url=site_url("/", base),
            level=int(config.tags.heading_level),
            index=groups,
        )
    except TemplateError as e:
        raise RenderError(f"Failed to render tag index: {e}") from e


def render_post_page(
    post: Post,
    config: AppConfig,
    *,
    anchors: Mapping[str, str] | None = None,
) -> str:
    base = config.site.base_url
    tags_url = site_url(config.tags.path, base)
    anchors = anchors or {}

    tag_links = [
        (tag, f"{tags_url}#{anchors[tag]}" if tag in anchors else tags_url)
        for tag in post.tags
    ]

    body_html = render_markdown(post.body, extensions=config.build.markdown_extensions)

    try:
        return POST_TEMPLATE.render(
            site=config.site,
            post=post,
            home_url=site_url("/", base),
            tags_url=tags_url,
            tags_title=config.tags.title,
            iso=post.date.isoformat(),
            display=format_post_date(post.date, config.tags.date_format),
            tag_links=tag_links,
            body_html=Markup(body_html),
        )
    except TemplateError as e:
        raise RenderError(f"Failed to render {post.source}: {e}") from e


def render_tag_index_text(index: Sequence[TagGroup], *, date_format: str, base_url: str = "") -> str:
    """Plain-text listing for terminals."""
    lines: list[str] = []
    for group in index:
        lines.append(f"{group.name} ({len(group.posts)})")
        for post in group.posts:
            lines.append(
                f"  {format_post_date(post.date, date_format)}  {post.title}  {post_url(post, base_url)}"
            )
    return "\n".join(lines)
