from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .checks import check_post
from .config import config_sha256, load_config, resolve_source_dir
from .content import load_posts
from .errors import BuildError, ConfigError, ContentError, RenderError
from .render import render_tag_index_text
from .run_log import RunLogger
from .site import build_site
from .tags import build_tag_index, tag_index_to_dict

DEFAULT_LOG_RELPATH = Path(".blog_index") / "build.log"


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--config",
        required=True,
        help="Path to YAML config file.",
    )
    p.add_argument(
        "--source",
        default=None,
        help="Content root holding the posts directory (default: the config file's directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blog_index")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser(
        "build",
        help="Render the tag index and post pages into an output directory.",
    )
    _add_source_args(build)
    build.add_argument(
        "--out",
        required=True,
        help="Output directory for the rendered site.",
    )
    build.add_argument(
        "--log",
        default=None,
        help="Build log path (default: <source>/.blog_index/build.log).",
    )
    build.set_defaults(_handler=_cmd_build)

    tags = subparsers.add_parser(
        "tags",
        help="Print the tag index.",
    )
    _add_source_args(tags)
    tags.add_argument(
        "--json",
        action="store_true",
        help="Print the index as JSON.",
    )
    tags.set_defaults(_handler=_cmd_tags)

    check = subparsers.add_parser(
        "check",
        help="Load every post and report advisory findings.",
    )
    _add_source_args(check)
    check.set_defaults(_handler=_cmd_check)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _log_path(args: argparse.Namespace) -> Path:
    if args.log:
        return Path(args.log)
    # Default log lives under a content root that already exists.
    return resolve_source_dir(args.config, args.source) / DEFAULT_LOG_RELPATH


def _cmd_build(args: argparse.Namespace) -> int:
    out_dir = Path(args.out)
    log_path = _log_path(args)

    with RunLogger.open(log_path, overwrite=True) as log:
        log.info(
            "build_command_started",
            config_path=str(args.config),
            out_dir=str(out_dir),
        )

        try:
            cfg = load_config(args.config)
            source_dir = resolve_source_dir(args.config, args.source)

            log.info(
                "config_loaded",
                config_path=str(args.config),
                config_sha256=config_sha256(cfg),
                source_dir=str(source_dir),
            )

            result = build_site(cfg, source_dir, out_dir, logger=log)

            print(f"posts={result.posts}")
            print(f"tags={result.tags}")
            print(f"pages={len(result.pages)}")
            print(f"warnings={log.counts['WARN']}")
            print(f"tag_index={out_dir / result.tag_index_path}")
            print(f"build_log={log_path}")

            return 0
        except Exception as e:
            log.exception("build_command_failed", exc=e)
            raise


def _cmd_tags(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    source_dir = resolve_source_dir(args.config, args.source)

    posts = load_posts(source_dir, cfg)
    index = build_tag_index(posts, sort=cfg.tags.sort)

    if bool(getattr(args, "json", False)):
        payload = tag_index_to_dict(
            index,
            base_url=cfg.site.base_url,
            date_format=cfg.tags.date_format,
        )
        print(json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True))
        return 0

    text = render_tag_index_text(
        index,
        date_format=cfg.tags.date_format,
        base_url=cfg.site.base_url,
    )
    if text:
        print(text)
    print(f"tags={len(index)}")
    print(f"posts={len(posts)}")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    source_dir = resolve_source_dir(args.config, args.source)

    posts = load_posts(source_dir, cfg)

    flagged = 0
    for post in posts:
        result = check_post(post, checks=cfg.checks)
        if result.passed:
            continue
        flagged += 1
        print(f"{post.source}: {', '.join(result.reasons)}")

    print(f"posts={len(posts)}")
    print(f"flagged={flagged}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (ContentError, RenderError, BuildError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
