from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Sequence

from .checks import check_post
from .config import config_sha256
from .config_schema import AppConfig
from .content import load_posts, output_relpath
from .errors import BuildError
from .post import Post, TagGroup
from .render import render_post_page, render_tag_index
from .run_log import RunLogger
from .tags import build_tag_index, tag_anchors, tag_index_to_dict


@dataclass(frozen=True)
class BuildResult:
    posts: int
    tags: int
    pages: Sequence[str]
    tag_index_path: str


def _write_text(out_dir: Path, relpath: str, text: str) -> Path:
    target = (out_dir / relpath).resolve()
    root = out_dir.resolve()
    if root != target and root not in target.parents:
        raise BuildError(f"Refusing to write outside the output directory: {relpath}")

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="\n") as fp:
            fp.write(text)
    except OSError as e:
        raise BuildError(f"Failed to write {target}: {e}") from e
    return target


def write_site(
    posts: Sequence[Post],
    index: Sequence[TagGroup],
    config: AppConfig,
    out_dir: str | Path,
    *,
    logger: RunLogger | None = None,
) -> list[str]:
    """Render and write every page; returns the written paths relative to out_dir."""
    log = logger or RunLogger()
    out = Path(out_dir)
    written: list[str] = []

    tag_rel = output_relpath(config.tags.path)
    _write_text(out, tag_rel, render_tag_index(index, config))
    written.append(tag_rel)
    log.info("page_written", path=tag_rel, kind="tag_index", tags=len(index))

    if config.tags.write_json:
        json_rel = (PurePosixPath(tag_rel).parent / "tags.json").as_posix()
        payload = tag_index_to_dict(
            index,
            base_url=config.site.base_url,
            date_format=config.tags.date_format,
        )
        text = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"
        _write_text(out, json_rel, text)
        written.append(json_rel)
        log.info("page_written", path=json_rel, kind="tag_index_json")

    if config.build.render_posts:
        anchors = tag_anchors(index)
        for post in posts:
            rel = output_relpath(post.permalink)
            _write_text(out, rel, render_post_page(post, config, anchors=anchors))
            written.append(rel)
            log.info("page_written", path=rel, kind="post", source=post.source)

    return written


def build_site(
    config: AppConfig,
    source_dir: str | Path,
    out_dir: str | Path,
    *,
    logger: RunLogger | None = None,
) -> BuildResult:
    """
    Load posts, build the tag index, and write the rendered pages.

    Content problems abort before anything is written.
    """
    log = logger or RunLogger()

    log.info(
        "build_started",
        source_dir=str(source_dir),
        out_dir=str(out_dir),
        config_sha256=config_sha256(config),
    )

    posts = load_posts(source_dir, config)
    log.info("posts_loaded", count=len(posts))

    for post in posts:
        findings = check_post(post, checks=config.checks)
        if not findings.passed:
            log.warning("post_check_warning", path=post.source, reasons=list(findings.reasons))

    index = build_tag_index(posts, sort=config.tags.sort)
    log.info(
        "tag_index_built",
        tags=len(index),
        tagged_posts=sum(1 for p in posts if p.tags),
        untagged_posts=sum(1 for p in posts if not p.tags),
    )

    pages = write_site(posts, index, config, out_dir, logger=log)

    result = BuildResult(
        posts=len(posts),
        tags=len(index),
        pages=tuple(pages),
        tag_index_path=pages[0],
    )
    log.info("build_completed", posts=result.posts, tags=result.tags, pages=len(result.pages))
    return result
