from __future__ import annotations

import pathlib
import shutil
from datetime import date
from typing import Any, Dict, Iterable, Optional

from . import frontmatter
from .commits import load_commits_cache, save_commits_cache, set_commit_hidden
from .config import (
    BLOG_DIR,
    CONTENT_PREFIX,
    PAGES_DIR,
    POSTS_DIR,
    PROJECT_CONFIG,
    PROJECT_INDEX,
    PROJECTS_DIR,
    commits_cache_file,
    manifest_file,
    project_dir,
    virtual_file,
)
from .github import parse_repo
from .manifest import Manifest, ManifestStore, ProjectEntry
from .site_config import ProjectConfig, load_project_config
from .utils import dump_yaml, log, read_text, slugify, warn, write_text_atomic


# ---------- Templates


def project_index_template(
    title: str,
    tagline: str = "",
    status: str = "concept",
    tech: Iterable[str] = (),
    repo_url: Optional[str] = None,
    private: bool = False,
) -> str:
    header: Dict[str, Any] = {
        "title": title,
        "tagline": tagline,
        "status": status,
        "featured": False,
        "order": 99,
    }
    tech = list(tech)
    if tech:
        header["tech"] = tech
    if private:
        header["private"] = True
    if repo_url:
        header["links"] = {"repo": repo_url}
    body = (
        f"## Overview\n\n{tagline}\n\n"
        "## Features\n\n- Feature 1\n- Feature 2\n- Feature 3\n\n"
        "## Getting Started\n\nAdd installation and usage instructions here.\n"
    )
    return frontmatter.encode(header, body)


def project_config_template(repo_url: Optional[str] = None) -> str:
    repo = None
    if repo_url:
        parsed = parse_repo(repo_url)
        repo = "/".join(parsed) if parsed else repo_url
    cfg = ProjectConfig(repo=repo, commits_limit=20)
    text = "# Project configuration\n"
    if not repo:
        text += "# repo: owner/repo-name\n"
    return text + dump_yaml(cfg.to_dict())


def blog_post_template(
    title: str,
    post_date: str,
    tags: Iterable[str] = (),
    project: Optional[str] = None,
) -> str:
    header: Dict[str, Any] = {"title": title, "date": post_date}
    tags = list(tags)
    if tags:
        header["tags"] = tags
    if project:
        header["project"] = project
    return frontmatter.encode(header, "Write your blog post content here.\n")


def page_template(title: str) -> str:
    return frontmatter.encode(
        {"title": title}, f"# {title}\n\nAdd your page content here.\n"
    )


# ---------- Helpers


def _manifest_store(public_dir: pathlib.Path) -> ManifestStore:
    """Open the manifest, creating an empty one for a fresh site."""
    store = ManifestStore(manifest_file(public_dir))
    if not store.path.exists():
        store.save(Manifest())
    return store


def _write_new(path: pathlib.Path, text: str) -> bool:
    if path.exists():
        warn(f"{path} already exists")
        return False
    write_text_atomic(path, text)
    return True


# ---------- Create


def create_project(
    public_dir: pathlib.Path,
    title: str,
    tagline: str = "",
    status: str = "concept",
    tech: Iterable[str] = (),
    repo_url: Optional[str] = None,
    private: bool = False,
    slug: Optional[str] = None,
) -> Optional[str]:
    slug = slug or slugify(title)
    if not slug:
        warn(f"cannot derive a slug from title {title!r}")
        return None

    store = _manifest_store(public_dir)
    manifest = store.load()
    if manifest is None:
        return None
    target = project_dir(public_dir, slug)
    if manifest.project(slug) is not None or target.exists():
        warn(f"project already exists: {slug}")
        return None

    base = f"{CONTENT_PREFIX}/{PROJECTS_DIR}/{slug}"
    write_text_atomic(
        target / PROJECT_INDEX,
        project_index_template(title, tagline, status, tech, repo_url, private),
    )
    write_text_atomic(target / PROJECT_CONFIG, project_config_template(repo_url))
    (target / POSTS_DIR).mkdir(exist_ok=True)

    entry = ProjectEntry(
        slug=slug,
        index_path=f"{base}/{PROJECT_INDEX}",
        config_path=f"{base}/{PROJECT_CONFIG}",
    )
    if not store.add_project(entry):
        shutil.rmtree(target, ignore_errors=True)
        return None
    log(f"✓ created project {slug}")
    return slug


def create_blog_post(
    public_dir: pathlib.Path,
    title: str,
    post_date: Optional[str] = None,
    tags: Iterable[str] = (),
    project: Optional[str] = None,
) -> Optional[str]:
    post_date = post_date or date.today().isoformat()
    slug = slugify(title)
    if not slug:
        warn(f"cannot derive a slug from title {title!r}")
        return None

    path = f"{CONTENT_PREFIX}/{BLOG_DIR}/{post_date}-{slug}.md"
    store = _manifest_store(public_dir)
    if not _write_new(virtual_file(public_dir, path), blog_post_template(title, post_date, tags, project)):
        return None
    if not store.add_blog_post(path):
        virtual_file(public_dir, path).unlink(missing_ok=True)
        return None
    log(f"✓ created blog post {path}")
    return path


def create_project_post(
    public_dir: pathlib.Path,
    project: str,
    title: str,
    post_date: Optional[str] = None,
    tags: Iterable[str] = (),
) -> Optional[str]:
    post_date = post_date or date.today().isoformat()
    slug = slugify(title)
    if not slug:
        warn(f"cannot derive a slug from title {title!r}")
        return None

    store = _manifest_store(public_dir)
    manifest = store.load()
    if manifest is None or manifest.project(project) is None:
        warn(f"project not found: {project}")
        return None

    path = f"{CONTENT_PREFIX}/{PROJECTS_DIR}/{project}/{POSTS_DIR}/{post_date}-{slug}.md"
    if not _write_new(virtual_file(public_dir, path), blog_post_template(title, post_date, tags)):
        return None
    if not store.add_project_post(project, path):
        virtual_file(public_dir, path).unlink(missing_ok=True)
        return None
    log(f"✓ created post {path}")
    return path


def create_page(
    public_dir: pathlib.Path, title: str, slug: Optional[str] = None
) -> Optional[str]:
    slug = slug or slugify(title)
    if not slug:
        warn(f"cannot derive a slug from title {title!r}")
        return None

    path = f"{CONTENT_PREFIX}/{PAGES_DIR}/{slug}.md"
    store = _manifest_store(public_dir)
    if not _write_new(virtual_file(public_dir, path), page_template(title)):
        return None
    if not store.add_page(path):
        virtual_file(public_dir, path).unlink(missing_ok=True)
        return None
    log(f"✓ created page {path}")
    return path


# ---------- Delete


def delete_project(public_dir: pathlib.Path, slug: str) -> bool:
    store = ManifestStore(manifest_file(public_dir))
    if not store.remove_project(slug):
        return False
    shutil.rmtree(project_dir(public_dir, slug), ignore_errors=True)

    cache_path = commits_cache_file(public_dir)
    cache = load_commits_cache(cache_path)
    if cache.pop(slug, None) is not None:
        save_commits_cache(cache_path, cache)
    log(f"✓ deleted project {slug}")
    return True


def _delete_file_entry(public_dir: pathlib.Path, path: str, remove) -> bool:
    if not remove(path):
        return False
    virtual_file(public_dir, path).unlink(missing_ok=True)
    log(f"✓ deleted {path}")
    return True


def delete_blog_post(public_dir: pathlib.Path, path: str) -> bool:
    store = ManifestStore(manifest_file(public_dir))
    return _delete_file_entry(public_dir, path, store.remove_blog_post)


def delete_page(public_dir: pathlib.Path, path: str) -> bool:
    store = ManifestStore(manifest_file(public_dir))
    return _delete_file_entry(public_dir, path, store.remove_page)


def delete_project_post(public_dir: pathlib.Path, project: str, path: str) -> bool:
    store = ManifestStore(manifest_file(public_dir))
    return _delete_file_entry(
        public_dir, path, lambda p: store.remove_project_post(project, p)
    )


# ---------- Curation


def set_hidden(public_dir: pathlib.Path, slug: str, sha: str, hidden: bool) -> bool:
    """
    Hide or show one commit. config.yaml's hiddenCommits is updated first
    (it is the source of truth), then the cached flag so the site reflects
    the change without a refetch.
    """
    target = project_dir(public_dir, slug)
    if not target.is_dir():
        warn(f"project not found: {slug}")
        return False

    config_path = target / PROJECT_CONFIG
    config = load_project_config(read_text(config_path), source=str(config_path))
    shas = [s for s in config.hidden_commits if s != sha]
    if hidden:
        shas.append(sha)
    config.hidden_commits = shas
    created = not config_path.exists()
    write_text_atomic(config_path, dump_yaml(config.to_dict()))
    if created:
        ManifestStore(manifest_file(public_dir)).set_config_path(
            slug, f"{CONTENT_PREFIX}/{PROJECTS_DIR}/{slug}/{PROJECT_CONFIG}"
        )

    cache_path = commits_cache_file(public_dir)
    cache = load_commits_cache(cache_path)
    record = cache.get(slug)
    if record is not None and set_commit_hidden(record, sha, hidden):
        save_commits_cache(cache_path, cache)

    log(f"✓ {slug}: commit {sha[:7]} {'hidden' if hidden else 'shown'}")
    return True