from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .config_schema import ChecksConfig
from .post import Post


@dataclass(frozen=True)
class CheckResult:
    passed: bool
    reasons: Sequence[str]


def check_post(post: Post, *, checks: ChecksConfig) -> CheckResult:
    """
    Advisory lint for a loaded post.

    Findings never block a build; they surface in `check` output and as
    warnings in the build log.
    """
    reasons: list[str] = []

    description = (post.description or "").strip()
    if not description:
        reasons.append("missing_description")
    elif checks.max_description_chars > 0 and len(description) > checks.max_description_chars:
        reasons.append("description_too_long")

    if not post.tags:
        reasons.append("no_tags")

    if not (post.body or "").strip():
        reasons.append("empty_body")

    return CheckResult(passed=not reasons, reasons=reasons)
