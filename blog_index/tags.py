from __future__ import annotations

from typing import Any, Callable, Iterable, Literal, Sequence

from .post import Post, TagGroup
from .render import format_post_date, post_url
from .slugs import unique_slugs

TagSort = Literal["lexicographic", "casefold"]


def _sort_key(mode: TagSort) -> Callable[[str], Any]:
    if mode == "lexicographic":
        return lambda name: name
    if mode == "casefold":
        # The raw name breaks casefold ties so the order stays strict.
        return lambda name: (name.casefold(), name)
    raise ValueError(f"Unknown tag sort mode: {mode!r}")


def group_posts_by_tag(posts: Iterable[Post]) -> dict[str, list[Post]]:
    """
    Map each tag to the posts carrying it, in the order the posts are given.

    A post lists under each of its tags exactly once, even if the tag repeats.
    """
    groups: dict[str, list[Post]] = {}
    for post in posts:
        seen: set[str] = set()
        for tag in post.tags:
            if tag in seen:
                continue
            seen.add(tag)
            groups.setdefault(tag, []).append(post)
    return groups


def build_tag_index(
    posts: Iterable[Post],
    *,
    sort: TagSort = "lexicographic",
) -> list[TagGroup]:
    """
    Build the tag index: tags ascending, each with its posts in input order.

    Pure function of the input sequence. Untagged posts contribute nothing and
    an empty input gives an empty index.
    """
    groups = group_posts_by_tag(posts)
    names = sorted(groups, key=_sort_key(sort))
    anchors = unique_slugs(names, default="tag")

    return [
        TagGroup(name=name, anchor=anchor, posts=tuple(groups[name]))
        for name, anchor in zip(names, anchors)
    ]


def tag_anchors(index: Sequence[TagGroup]) -> dict[str, str]:
    return {group.name: group.anchor for group in index}


def tag_index_to_dict(
    index: Sequence[TagGroup],
    *,
    base_url: str = "",
    date_format: str = "%b %d, %Y",
) -> dict[str, Any]:
    """JSON-ready view of the index, in index order."""
    return {
        "tags": [
            {
                "name": group.name,
                "anchor": group.anchor,
                "count": len(group.posts),
                "posts": [
                    {
                        "title": post.title,
                        "url": post_url(post, base_url),
                        "date": post.date.isoformat(),
                        "date_display": format_post_date(post.date, date_format),
                        "source": post.source,
                    }
                    for post in group.posts
                ],
            }
            for group in index
        ]
    }
