#!/usr/bin/env python3
"""
Content pipeline for the portfolio site.

Build steps (run from the repo root, in this order):

- `sitecontent manifest`       content/ tree -> content/manifest.json
- `sitecontent fetch-commits`  GitHub -> _data/commits-cache.json (incremental)
- `sitecontent fetch-readmes`  GitHub README -> project index.md bodies
- `sitecontent bundle`         everything raw -> content-bundle.json
- `sitecontent build`          load + render -> _data/content.json

Authoring: new-project, new-post, new-project-post, new-page, delete-*,
hide-commit / unhide-commit. All of them keep manifest.json in sync.

Set GITHUB_TOKEN (or GH_TOKEN) for private repos and higher rate limits.
"""

from __future__ import annotations

import asyncio
import pathlib
import sys
from typing import Annotated, List, Optional

import typer

from . import authoring
from .bundle import bundle_content, write_bundle
from .config import (
    CONTENT_GRAPH_NAME,
    DATA_DIR_NAME,
    PUBLIC_DIR,
    bundle_file,
    content_dir,
    manifest_file,
)
from .content import load_site_content
from .github import GitHubClient, token_from_env
from .manifest import write_manifest
from .sync import refresh_commits_cache, sync_readmes
from .utils import log, warn, write_json

app = typer.Typer(
    name="sitecontent",
    help="Portfolio content pipeline: manifest, GitHub sync, bundle, authoring.",
    add_completion=False,
)

RootOpt = Annotated[
    pathlib.Path,
    typer.Option("--root", help="Public directory holding content/ and _data/."),
]
TokenOpt = Annotated[
    Optional[str],
    typer.Option("--token", envvar="GITHUB_TOKEN", help="GitHub token."),
]


def _fail_unless(ok) -> None:
    if not ok:
        raise typer.Exit(1)


# ---------- Build steps


@app.command("manifest")
def manifest_cmd(root: RootOpt = PUBLIC_DIR) -> None:
    """Regenerate manifest.json from the content directory layout."""
    write_manifest(content_dir(root), manifest_file(root))


@app.command("fetch-commits")
def fetch_commits_cmd(root: RootOpt = PUBLIC_DIR, token: TokenOpt = None) -> None:
    """Fetch new commits for every project with a repo and merge them into the cache."""
    token = token or token_from_env()
    if not token:
        warn("no GitHub token found, private repos will fail")

    async def run():
        async with GitHubClient(token=token) as gh:
            await refresh_commits_cache(gh, root)

    asyncio.run(run())


@app.command("fetch-readmes")
def fetch_readmes_cmd(root: RootOpt = PUBLIC_DIR, token: TokenOpt = None) -> None:
    """Replace project index.md bodies with their GitHub READMEs."""
    token = token or token_from_env()
    if not token:
        warn("no GitHub token found, private repos will fail")

    async def run():
        async with GitHubClient(token=token) as gh:
            await sync_readmes(gh, root)

    asyncio.run(run())


@app.command("bundle")
def bundle_cmd(root: RootOpt = PUBLIC_DIR) -> None:
    """Bundle all raw content into content-bundle.json."""
    bundle = bundle_content(root)
    if bundle is None:
        warn("manifest.json not found, run `sitecontent manifest` first")
        raise typer.Exit(1)
    write_bundle(bundle_file(root), bundle)


@app.command("build")
def build_cmd(
    root: RootOpt = PUBLIC_DIR,
    out: Annotated[
        Optional[pathlib.Path],
        typer.Option("--out", help="Where to write the content graph JSON."),
    ] = None,
) -> None:
    """Load and render all content into one JSON graph."""
    out = out or root / DATA_DIR_NAME / CONTENT_GRAPH_NAME
    content = load_site_content(root)
    write_json(out, content.to_dict())
    log(
        f"✓ {len(content.projects)} projects, {len(content.blog_posts)} blog posts, "
        f"{len(content.pages)} pages -> {out}"
    )


# ---------- Authoring


@app.command("new-project")
def new_project_cmd(
    title: str,
    root: RootOpt = PUBLIC_DIR,
    tagline: str = "",
    status: str = "concept",
    tech: Annotated[Optional[List[str]], typer.Option("--tech")] = None,
    repo: Optional[str] = None,
    private: bool = False,
    slug: Optional[str] = None,
) -> None:
    """Create a project folder with index.md and config.yaml."""
    _fail_unless(
        authoring.create_project(
            root, title, tagline, status, tech or [], repo, private, slug
        )
    )


@app.command("new-post")
def new_post_cmd(
    title: str,
    root: RootOpt = PUBLIC_DIR,
    date: Optional[str] = None,
    tag: Annotated[Optional[List[str]], typer.Option("--tag")] = None,
    project: Annotated[
        Optional[str], typer.Option(help="Slug of a project this post relates to.")
    ] = None,
) -> None:
    """Create a blog post (blog/YYYY-MM-DD-slug.md)."""
    _fail_unless(authoring.create_blog_post(root, title, date, tag or [], project))


@app.command("new-project-post")
def new_project_post_cmd(
    project: str,
    title: str,
    root: RootOpt = PUBLIC_DIR,
    date: Optional[str] = None,
    tag: Annotated[Optional[List[str]], typer.Option("--tag")] = None,
) -> None:
    """Create a post inside a project's posts/ folder."""
    _fail_unless(authoring.create_project_post(root, project, title, date, tag or []))


@app.command("new-page")
def new_page_cmd(
    title: str, root: RootOpt = PUBLIC_DIR, slug: Optional[str] = None
) -> None:
    """Create a static page (pages/slug.md)."""
    _fail_unless(authoring.create_page(root, title, slug))


@app.command("delete-project")
def delete_project_cmd(slug: str, root: RootOpt = PUBLIC_DIR) -> None:
    """Delete a project folder, its manifest entry and cached commits."""
    _fail_unless(authoring.delete_project(root, slug))


@app.command("delete-post")
def delete_post_cmd(
    path: str,
    root: RootOpt = PUBLIC_DIR,
    project: Annotated[
        Optional[str], typer.Option(help="Owning project for project posts.")
    ] = None,
) -> None:
    """Delete a blog post (or a project post with --project) by manifest path."""
    if project:
        _fail_unless(authoring.delete_project_post(root, project, path))
    else:
        _fail_unless(authoring.delete_blog_post(root, path))


@app.command("delete-page")
def delete_page_cmd(path: str, root: RootOpt = PUBLIC_DIR) -> None:
    """Delete a page by manifest path."""
    _fail_unless(authoring.delete_page(root, path))


@app.command("hide-commit")
def hide_commit_cmd(slug: str, sha: str, root: RootOpt = PUBLIC_DIR) -> None:
    """Hide a commit from the site."""
    _fail_unless(authoring.set_hidden(root, slug, sha, True))


@app.command("unhide-commit")
def unhide_commit_cmd(slug: str, sha: str, root: RootOpt = PUBLIC_DIR) -> None:
    """Show a previously hidden commit again."""
    _fail_unless(authoring.set_hidden(root, slug, sha, False))


def main():
    try:
        app()
    except Exception as e:
        warn(f"error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
