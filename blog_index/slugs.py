from __future__ import annotations

import re
import unicodedata
from typing import Iterable

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_UNSAFE_SEGMENT_RE = re.compile(r"[^A-Za-z0-9._-]+")


def slugify(text: str, *, default: str = "post") -> str:
    """Lowercase ASCII slug: runs of anything else collapse to a single '-'."""
    value = unicodedata.normalize("NFKD", str(text or ""))
    value = value.encode("ascii", "ignore").decode("ascii").lower()
    value = _NON_ALNUM_RE.sub("-", value).strip("-")
    return value or default


def unique_slugs(names: Iterable[str], *, default: str = "tag") -> list[str]:
    """
    Slug each name in order, suffixing -2, -3, ... when a slug is already taken.
    """
    out: list[str] = []
    taken: set[str] = set()

    for name in names:
        base = slugify(name, default=default)
        slug = base
        n = 2
        while slug in taken:
            slug = f"{base}-{n}"
            n += 1
        taken.add(slug)
        out.append(slug)

    return out


def path_segment(text: str, *, default: str = "post") -> str:
    """Case-preserving URL path segment: unsafe runs become '-', no leading/trailing '.' or '-'."""
    value = unicodedata.normalize("NFKD", str(text or ""))
    value = value.encode("ascii", "ignore").decode("ascii")
    value = _UNSAFE_SEGMENT_RE.sub("-", value).strip(".-")
    return value or default
