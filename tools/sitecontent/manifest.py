"""
Content manifest: the authoritative list of content files.

    {"projects": [{"slug": "x", "indexPath": "/content/projects/x/index.md",
                   "configPath": "/content/projects/x/config.yaml",
                   "posts": [{"path": "/content/projects/x/posts/a.md"}]}],
     "blog":  [{"path": "/content/blog/2024-05-01-hello.md"}],
     "pages": [{"path": "/content/pages/about.md"}]}

`scan` derives a manifest from the directory layout at build time;
`ManifestStore` keeps a hand-maintained one up to date for authoring. Every
store mutation is a full load-modify-save and reports conflicts by returning
False. There is no locking: concurrent writers race and the last save wins.
"""

from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .config import (
    BLOG_DIR,
    CONTENT_PREFIX,
    MARKDOWN_SUFFIX,
    PAGES_DIR,
    POSTS_DIR,
    PROJECT_CONFIG,
    PROJECT_INDEX,
    PROJECTS_DIR,
)
from .utils import log, read_json, warn, write_json


@dataclass
class PathEntry:
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path}


@dataclass
class ProjectEntry:
    slug: str
    index_path: str
    config_path: Optional[str] = None
    posts: List[PathEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectEntry":
        return cls(
            slug=data["slug"],
            index_path=data["indexPath"],
            config_path=data.get("configPath"),
            posts=_path_entries(_section(data, "posts")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"slug": self.slug, "indexPath": self.index_path}
        if self.config_path:
            out["configPath"] = self.config_path
        if self.posts:
            out["posts"] = [p.to_dict() for p in self.posts]
        return out


@dataclass
class Manifest:
    projects: List[ProjectEntry] = field(default_factory=list)
    blog: List[PathEntry] = field(default_factory=list)
    pages: List[PathEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        projects = []
        for p in _section(data, "projects"):
            if not isinstance(p, dict) or not p.get("slug") or not p.get("indexPath"):
                warn(f"skipping malformed manifest project entry: {p!r}")
                continue
            projects.append(ProjectEntry.from_dict(p))
        return cls(
            projects=projects,
            blog=_path_entries(_section(data, "blog")),
            pages=_path_entries(_section(data, "pages")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "blog": [b.to_dict() for b in self.blog],
            "pages": [p.to_dict() for p in self.pages],
        }

    def project(self, slug: str) -> Optional[ProjectEntry]:
        for p in self.projects:
            if p.slug == slug:
                return p
        return None


def _section(data: Dict[str, Any], key: str) -> List[Any]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        warn(f"manifest section '{key}' is not a list, ignoring it")
        return []
    return raw


def _path_entries(raw: Any) -> List[PathEntry]:
    out: List[PathEntry] = []
    for item in raw or []:
        if isinstance(item, dict) and item.get("path"):
            out.append(PathEntry(str(item["path"])))
        else:
            warn(f"skipping malformed manifest entry: {item!r}")
    return out


# ---------- Directory scan


def _markdown_files(d: pathlib.Path) -> List[str]:
    if not d.is_dir():
        return []
    return sorted(
        p.name for p in d.iterdir() if p.is_file() and p.name.endswith(MARKDOWN_SUFFIX)
    )


def _directories(d: pathlib.Path) -> List[str]:
    if not d.is_dir():
        return []
    return sorted(p.name for p in d.iterdir() if p.is_dir())


def scan(content_dir: pathlib.Path, prefix: str = CONTENT_PREFIX) -> Manifest:
    content_dir = pathlib.Path(content_dir)
    projects: List[ProjectEntry] = []

    projects_dir = content_dir / PROJECTS_DIR
    for slug in _directories(projects_dir):
        project_dir = projects_dir / slug
        if not (project_dir / PROJECT_INDEX).is_file():
            continue
        base = f"{prefix}/{PROJECTS_DIR}/{slug}"
        entry = ProjectEntry(slug=slug, index_path=f"{base}/{PROJECT_INDEX}")
        if (project_dir / PROJECT_CONFIG).is_file():
            entry.config_path = f"{base}/{PROJECT_CONFIG}"
        entry.posts = [
            PathEntry(f"{base}/{POSTS_DIR}/{name}")
            for name in _markdown_files(project_dir / POSTS_DIR)
        ]
        projects.append(entry)

    return Manifest(
        projects=projects,
        blog=[
            PathEntry(f"{prefix}/{BLOG_DIR}/{name}")
            for name in _markdown_files(content_dir / BLOG_DIR)
        ],
        pages=[
            PathEntry(f"{prefix}/{PAGES_DIR}/{name}")
            for name in _markdown_files(content_dir / PAGES_DIR)
        ],
    )


def write_manifest(content_dir: pathlib.Path, manifest_path: pathlib.Path) -> Manifest:
    manifest = scan(content_dir)
    write_json(manifest_path, manifest.to_dict())
    log(f"✓ generated {manifest_path.name}")
    log(f"  - {len(manifest.projects)} projects")
    log(f"  - {len(manifest.blog)} blog posts")
    log(f"  - {len(manifest.pages)} pages")
    return manifest


# ---------- Authoring-time store


class ManifestStore:
    def __init__(self, path: pathlib.Path) -> None:
        self.path = pathlib.Path(path)

    def load(self) -> Optional[Manifest]:
        data = read_json(self.path)
        if data is None:
            if not self.path.exists():
                warn(f"manifest not found: {self.path}")
            return None
        if not isinstance(data, dict):
            warn(f"manifest {self.path} is not an object")
            return None
        return Manifest.from_dict(data)

    def save(self, manifest: Manifest) -> bool:
        try:
            write_json(self.path, manifest.to_dict())
        except OSError as e:
            warn(f"failed to save manifest {self.path}: {e}")
            return False
        return True

    def _update(self, change: Callable[[Manifest], bool]) -> bool:
        manifest = self.load()
        if manifest is None:
            return False
        if not change(manifest):
            return False
        return self.save(manifest)

    def add_project(self, entry: ProjectEntry) -> bool:
        def change(m: Manifest) -> bool:
            if m.project(entry.slug) is not None:
                warn(f"project already exists: {entry.slug}")
                return False
            m.projects.append(entry)
            return True

        return self._update(change)

    def remove_project(self, slug: str) -> bool:
        def change(m: Manifest) -> bool:
            if m.project(slug) is None:
                warn(f"project not found: {slug}")
                return False
            m.projects = [p for p in m.projects if p.slug != slug]
            return True

        return self._update(change)

    def set_config_path(self, slug: str, path: str) -> bool:
        def change(m: Manifest) -> bool:
            project = m.project(slug)
            if project is None:
                warn(f"project not found: {slug}")
                return False
            if project.config_path == path:
                return False
            project.config_path = path
            return True

        return self._update(change)

    def add_project_post(self, slug: str, path: str) -> bool:
        def change(m: Manifest) -> bool:
            project = m.project(slug)
            if project is None:
                warn(f"project not found: {slug}")
                return False
            if any(p.path == path for p in project.posts):
                warn(f"post already exists: {path}")
                return False
            project.posts.append(PathEntry(path))
            return True

        return self._update(change)

    def remove_project_post(self, slug: str, path: str) -> bool:
        def change(m: Manifest) -> bool:
            project = m.project(slug)
            if project is None or not any(p.path == path for p in project.posts):
                warn(f"post not found: {path}")
                return False
            project.posts = [p for p in project.posts if p.path != path]
            return True

        return self._update(change)

    def _add_path(self, attr: str, kind: str, path: str) -> bool:
        def change(m: Manifest) -> bool:
            entries: List[PathEntry] = getattr(m, attr)
            if any(e.path == path for e in entries):
                warn(f"{kind} already exists: {path}")
                return False
            entries.append(PathEntry(path))
            return True

        return self._update(change)

    def _remove_path(self, attr: str, kind: str, path: str) -> bool:
        def change(m: Manifest) -> bool:
            entries: List[PathEntry] = getattr(m, attr)
            if not any(e.path == path for e in entries):
                warn(f"{kind} not found: {path}")
                return False
            setattr(m, attr, [e for e in entries if e.path != path])
            return True

        return self._update(change)

    def add_blog_post(self, path: str) -> bool:
        return self._add_path("blog", "blog post", path)

    def remove_blog_post(self, path: str) -> bool:
        return self._remove_path("blog", "blog post", path)

    def add_page(self, path: str) -> bool:
        return self._add_path("pages", "page", path)

    def remove_page(self, path: str) -> bool:
        return self._remove_path("pages", "page", path)
