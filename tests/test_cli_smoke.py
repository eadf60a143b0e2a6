from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


def _run_cli(repo_root: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    existing_pp = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = (
        f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
    )

    return subprocess.run(
        [sys.executable, "-m", "blog_index", *args],
        cwd=repo_root,
        env=env,
        capture_output=True,
        text=True,
    )


def _seed(site: Path) -> Path:
    posts = site / "_posts"
    posts.mkdir(parents=True, exist_ok=True)
    (posts / "2019-03-05-expression-trees.md").write_text(
        "---\ntitle: Expression trees\ntags: [csharp, dotnet]\n---\nBody.\n",
        encoding="utf-8",
    )
    (posts / "2019-04-01-object-factory.md").write_text(
        "---\ntitle: Object factory\ntags: [csharp]\n---\nBody.\n",
        encoding="utf-8",
    )
    cfg_path = site / "config.yaml"
    cfg_path.write_text("tags:\n  date_format: '%Y-%m-%d'\n", encoding="utf-8")
    return cfg_path


class TestCLISmoke(unittest.TestCase):
    def test_tags_json(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            cfg_path = _seed(Path(td))

            proc = _run_cli(repo_root, "tags", "--config", str(cfg_path), "--json")

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            data = json.loads(proc.stdout)
            self.assertEqual([t["name"] for t in data["tags"]], ["csharp", "dotnet"])
            self.assertEqual(
                [p["title"] for p in data["tags"][0]["posts"]],
                ["Object factory", "Expression trees"],
            )

    def test_tags_text(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            cfg_path = _seed(Path(td))

            proc = _run_cli(repo_root, "tags", "--config", str(cfg_path))

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn("csharp (2)", proc.stdout)
            self.assertIn("tags=2", proc.stdout)
            self.assertIn("posts=2", proc.stdout)

    def test_build(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            cfg_path = _seed(Path(td) / "site")
            out_dir = Path(td) / "public"

            proc = _run_cli(
                repo_root,
                "build",
                "--config",
                str(cfg_path),
                "--out",
                str(out_dir),
            )

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn("posts=2", proc.stdout)
            self.assertIn("tags=2", proc.stdout)
            self.assertIn("warnings=2", proc.stdout)
            self.assertTrue((out_dir / "tags" / "index.html").exists())
            self.assertTrue((Path(td) / "site" / ".blog_index" / "build.log").exists())
            self.assertFalse((out_dir / "build.log").exists())

    def test_check(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            cfg_path = _seed(Path(td))

            proc = _run_cli(repo_root, "check", "--config", str(cfg_path))

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn("missing_description", proc.stdout)
            self.assertIn("flagged=2", proc.stdout)

    def test_content_error_exit_code(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            cfg_path = _seed(Path(td))
            (Path(td) / "_posts" / "2019-05-01-broken.md").write_text(
                "---\ntags: [x]\n---\n", encoding="utf-8"
            )

            proc = _run_cli(repo_root, "tags", "--config", str(cfg_path))

            self.assertEqual(proc.returncode, 3)
            self.assertIn("missing title", proc.stderr)


if __name__ == "__main__":
    unittest.main()
