from __future__ import annotations

import unittest
from datetime import datetime

from blog_index.post import Post
from blog_index.tags import build_tag_index, group_posts_by_tag, tag_index_to_dict


def _post(title: str, tags: tuple[str, ...], *, day: int = 1) -> Post:
    return Post(
        source=f"_posts/2024-01-{day:02d}-{title.lower()}.md",
        title=title,
        date=datetime(2024, 1, day),
        permalink=f"/2024/01/{day:02d}/{title.lower()}/",
        slug=title.lower(),
        tags=tags,
    )


def _shape(index) -> list[tuple[str, list[str]]]:
    return [(g.name, [p.title for p in g.posts]) for g in index]


class TestBuildTagIndex(unittest.TestCase):
    def test_groups_and_sorts(self) -> None:
        a = _post("A", ("x", "y"), day=2)
        b = _post("B", ("y",), day=1)

        index = build_tag_index([a, b])
        self.assertEqual(_shape(index), [("x", ["A"]), ("y", ["A", "B"])])

    def test_empty_input(self) -> None:
        self.assertEqual(build_tag_index([]), [])

    def test_untagged_post_joins_no_group(self) -> None:
        a = _post("A", ("x",), day=3)
        b = _post("B", (), day=2)
        c = _post("C", ("x",), day=1)

        with_b = build_tag_index([a, b, c])
        without_b = build_tag_index([a, c])
        self.assertEqual(_shape(with_b), _shape(without_b))
        self.assertEqual(_shape(with_b), [("x", ["A", "C"])])

    def test_posts_keep_input_order(self) -> None:
        older = _post("Old", ("t",), day=1)
        newer = _post("New", ("t",), day=9)

        index = build_tag_index([older, newer])
        self.assertEqual(_shape(index), [("t", ["Old", "New"])])

    def test_each_post_once_per_tag(self) -> None:
        a = _post("A", ("x", "x", "y"))
        index = build_tag_index([a])
        self.assertEqual(_shape(index), [("x", ["A"]), ("y", ["A"])])

    def test_membership_matches_tags(self) -> None:
        posts = [
            _post("A", ("dotnet", "csharp"), day=5),
            _post("B", ("csharp",), day=4),
            _post("C", ("expressions", "dotnet"), day=3),
            _post("D", (), day=2),
        ]
        index = build_tag_index(posts)

        for post in posts:
            groups_with_post = [g.name for g in index if post in g.posts]
            self.assertEqual(sorted(groups_with_post), sorted(post.tags))
            for g in index:
                self.assertLessEqual(list(g.posts).count(post), 1)

    def test_lexicographic_is_case_sensitive(self) -> None:
        posts = [_post("A", ("b", "B", "a"))]
        names = [g.name for g in build_tag_index(posts)]
        self.assertEqual(names, ["B", "a", "b"])

    def test_casefold_sort(self) -> None:
        posts = [_post("A", ("b", "B", "a"))]
        names = [g.name for g in build_tag_index(posts, sort="casefold")]
        self.assertEqual(names, ["a", "B", "b"])

    def test_tags_strictly_ascending(self) -> None:
        posts = [
            _post("A", ("zeta", "alpha", "Mu"), day=3),
            _post("B", ("alpha", "beta"), day=2),
            _post("C", ("Mu",), day=1),
        ]
        names = [g.name for g in build_tag_index(posts)]
        for left, right in zip(names, names[1:]):
            self.assertLess(left, right)

    def test_unknown_sort_mode(self) -> None:
        with self.assertRaises(ValueError):
            build_tag_index([_post("A", ("x",))], sort="random")  # type: ignore[arg-type]

    def test_anchors_are_unique(self) -> None:
        index = build_tag_index([_post("A", ("C#", "C", "Expression Trees"))])
        anchors = {g.name: g.anchor for g in index}
        self.assertEqual(anchors["C"], "c")
        self.assertEqual(anchors["C#"], "c-2")
        self.assertEqual(anchors["Expression Trees"], "expression-trees")

    def test_does_not_mutate_input(self) -> None:
        posts = [_post("B", ("y",), day=1), _post("A", ("x",), day=2)]
        before = list(posts)
        build_tag_index(posts)
        self.assertEqual(posts, before)

    def test_accepts_generators(self) -> None:
        posts = [_post("A", ("x",)), _post("B", ("x",), day=2)]
        index = build_tag_index(p for p in posts)
        self.assertEqual(_shape(index), [("x", ["A", "B"])])


class TestGroupAndExport(unittest.TestCase):
    def test_group_posts_by_tag(self) -> None:
        a = _post("A", ("x", "y"))
        groups = group_posts_by_tag([a])
        self.assertEqual(set(groups), {"x", "y"})

    def test_tag_index_to_dict(self) -> None:
        a = _post("A", ("x",), day=2)
        index = build_tag_index([a])

        data = tag_index_to_dict(index, base_url="https://example.com", date_format="%Y/%m/%d")
        self.assertEqual(len(data["tags"]), 1)
        tag = data["tags"][0]
        self.assertEqual(tag["name"], "x")
        self.assertEqual(tag["count"], 1)
        self.assertEqual(tag["posts"][0]["url"], "https://example.com/2024/01/02/a/")
        self.assertEqual(tag["posts"][0]["date_display"], "2024/01/02")

    def test_tag_index_to_dict_empty(self) -> None:
        self.assertEqual(tag_index_to_dict([]), {"tags": []})


if __name__ == "__main__":
    unittest.main()
