"""Shared pytest fixtures: a small portfolio site on disk."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from sitecontent.markdown_processing import MarkdownRenderer


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def renderer():
    with MarkdownRenderer() as r:
        yield r


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Public dir with two projects, a blog post, a page and a commit cache."""
    root = tmp_path / "public"
    content = root / "content"

    write(
        content / "projects" / "alpha" / "index.md",
        """
        ---
        title: Alpha
        tagline: First project
        status: active
        order: 2
        tech: [python, yaml]
        ---

        # Alpha

        ![shot](./shot.png)
        """,
    )
    write(
        content / "projects" / "alpha" / "config.yaml",
        """
        repo: octo/alpha
        commitsLimit: 5
        hiddenCommits: [c3]
        """,
    )
    write(
        content / "projects" / "alpha" / "posts" / "2024-02-10-launch.md",
        """
        ---
        title: Launch
        ---

        We **launched**.
        """,
    )
    write(
        content / "projects" / "beta" / "index.md",
        """
        ---
        title: Beta
        order: 1
        ---

        Beta body.
        """,
    )
    # no index.md: not a project
    (content / "projects" / "draft").mkdir(parents=True)

    write(
        content / "blog" / "2024-05-01-hello.md",
        """
        ---
        title: Hello
        tags: [intro]
        ---

        Hello world.
        """,
    )
    write(content / "blog" / "notes.txt", "not markdown\n")
    write(
        content / "pages" / "about.md",
        """
        ---
        title: About me
        layout: wide
        ---

        About.
        """,
    )
    write(
        content / "site.yaml",
        """
        site:
          title: Jane's Portfolio
        header:
          title: Jane
        """,
    )
    write(
        root / "_data" / "commits-cache.json",
        json.dumps(
            {
                "alpha": {
                    "repo": "octo/alpha",
                    "lastFetched": "2024-03-02T00:00:00Z",
                    "latestSha": "c2",
                    "commits": [
                        {"sha": "c2", "message": "second", "date": "2024-03-01T12:00:00Z", "hidden": False},
                        {"sha": "c1", "message": "first", "date": "2024-01-01T12:00:00Z", "hidden": True},
                    ],
                }
            }
        ),
    )
    return root
