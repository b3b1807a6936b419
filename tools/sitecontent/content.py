"""
Content loading: manifest -> documents -> content graph.

Every file listed in the manifest is read through a DocumentStore, split into
frontmatter and body, rendered, and joined with the commit cache:

- Projects: index.md (+ optional config.yaml and posts/*.md), commits from
  the cache, ``lastUpdated`` from the newest commit or post.
  Sorted by ``order`` (missing -> 999).
- Blog posts / project posts: slug and fallback date from the filename
  (``YYYY-MM-DD-slug.md``). Sorted newest first.
- Pages: slug from the filename, manifest order.

Nothing here raises for missing or broken content. A document that cannot
be read is dropped (a project whose index.md is missing disappears), a
broken config falls back to defaults, and a missing manifest yields empty
collections.
"""

from __future__ import annotations

import asyncio
import json
import pathlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional

from . import frontmatter
from .commits import apply_hidden, commits_cache_from_dict, commits_cache_to_dict
from .config import (
    COMMITS_CACHE_NAME,
    CONTENT_PREFIX,
    DATA_DIR_NAME,
    DEFAULT_PROJECT_STATUS,
    MANIFEST_NAME,
    ORDER_FALLBACK,
    PROJECT_STATUSES,
    SITE_CONFIG_NAME,
)
from .manifest import Manifest, ProjectEntry
from .markdown_processing import MarkdownRenderer, extract_excerpt
from .models import CommitsCache, Page, Post, Project
from .site_config import SiteConfig, load_project_config, load_site_config
from .store import DocumentStore, FileDocumentStore
from .utils import (
    date_from_filename,
    filename_of,
    format_iso,
    iso_string,
    now_iso,
    parse_iso,
    slug_from_filename,
    warn,
)

MANIFEST_PATH = f"{CONTENT_PREFIX}/{MANIFEST_NAME}"
SITE_CONFIG_PATH = f"{CONTENT_PREFIX}/{SITE_CONFIG_NAME}"
COMMITS_CACHE_PATH = f"/{DATA_DIR_NAME}/{COMMITS_CACHE_NAME}"
_NO_DATE = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class SiteContent:
    projects: List[Project] = field(default_factory=list)
    blog_posts: List[Post] = field(default_factory=list)
    pages: List[Page] = field(default_factory=list)
    commits_cache: CommitsCache = field(default_factory=dict)
    site_config: SiteConfig = field(default_factory=SiteConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "blogPosts": [p.to_dict() for p in self.blog_posts],
            "pages": [p.to_dict() for p in self.pages],
            "commitsCache": commits_cache_to_dict(self.commits_cache),
            "siteConfig": self.site_config.to_dict(),
        }


def _str_list(v: Any) -> Optional[List[str]]:
    if v is None:
        return None
    if isinstance(v, (list, tuple)):
        return [str(x) for x in v]
    return [str(v)]


def _order(v: Any) -> Optional[float]:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    return v


def project_sort_key(project: Project) -> float:
    return project.order if project.order is not None else ORDER_FALLBACK


def sort_posts(posts: List[Post]) -> List[Post]:
    return sorted(posts, key=lambda p: parse_iso(p.date), reverse=True)


def last_updated(project: Project) -> Optional[str]:
    dates = [parse_iso(c.date) for c in project.commits]
    dates += [parse_iso(p.date) for p in project.posts]
    # parse_iso maps unparseable values to the oldest instant
    dates = [d for d in dates if d != _NO_DATE]
    if not dates:
        return None
    return format_iso(max(dates))


async def _settle(jobs: List[Awaitable[Any]], what: str) -> List[Any]:
    """Run *jobs* together; drop the ones that failed or came back empty."""
    results = await asyncio.gather(*jobs, return_exceptions=True)
    out = []
    for result in results:
        if isinstance(result, BaseException):
            warn(f"failed to load {what}: {result}")
            continue
        if result is not None:
            out.append(result)
    return out


class ContentAssembler:
    def __init__(
        self,
        store: DocumentStore,
        renderer: MarkdownRenderer,
        manifest_path: str = MANIFEST_PATH,
        site_config_path: str = SITE_CONFIG_PATH,
        commits_cache_path: str = COMMITS_CACHE_PATH,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.manifest_path = manifest_path
        self.site_config_path = site_config_path
        self.commits_cache_path = commits_cache_path

    # ---------- Shared files

    async def load_manifest(self) -> Optional[Manifest]:
        text = await self.store.read(self.manifest_path)
        if text is None:
            warn(f"content manifest not found: {self.manifest_path}")
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            warn(f"failed to parse content manifest: {e}")
            return None
        if not isinstance(data, dict):
            warn("content manifest is not an object")
            return None
        return Manifest.from_dict(data)

    async def load_commits_cache(self) -> CommitsCache:
        text = await self.store.read(self.commits_cache_path)
        if text is None:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            warn(f"failed to parse commit cache: {e}")
            return {}
        return commits_cache_from_dict(data, source=self.commits_cache_path)

    async def load_site_config(self) -> SiteConfig:
        text = await self.store.read(self.site_config_path)
        return load_site_config(text, source=self.site_config_path)

    # ---------- Documents

    async def load_post(self, path: str) -> Optional[Post]:
        raw = await self.store.read(path)
        if raw is None:
            return None

        filename = filename_of(path)
        slug = slug_from_filename(filename)
        fm, body = frontmatter.decode(raw)

        date = iso_string(fm.get("date")) or date_from_filename(filename) or now_iso()
        project = fm.get("project")
        return Post(
            slug=slug,
            title=str(fm.get("title") or slug),
            date=str(date),
            tags=_str_list(fm.get("tags")),
            project=str(project) if project else None,
            excerpt=str(fm.get("excerpt") or extract_excerpt(body)),
            content=self.renderer.render(body),
            raw_content=body,
        )

    async def load_posts(self, paths: List[str]) -> List[Post]:
        posts = await _settle([self.load_post(p) for p in paths], "post")
        return sort_posts(posts)

    async def load_page(self, path: str) -> Optional[Page]:
        raw = await self.store.read(path)
        if raw is None:
            return None

        slug = slug_from_filename(filename_of(path))
        fm, body = frontmatter.decode(raw)
        layout = fm.get("layout")
        return Page(
            slug=slug,
            title=str(fm.get("title") or slug),
            layout=str(layout) if layout else None,
            content=self.renderer.render(body),
            raw_content=body,
        )

    async def _load_config(self, path: Optional[str]):
        if not path:
            return load_project_config(None)
        try:
            text = await self.store.read(path)
        except Exception as e:
            warn(f"failed to read config {path}: {e}")
            text = None
        return load_project_config(text, source=path)

    async def load_project(
        self, entry: ProjectEntry, commits_cache: CommitsCache
    ) -> Optional[Project]:
        raw = await self.store.read(entry.index_path)
        if raw is None:
            warn(f"skipping project {entry.slug}: {entry.index_path} not found")
            return None

        base_path = entry.index_path.rsplit("/", 1)[0]
        fm, body = frontmatter.decode(raw)

        async def render():
            return self.renderer.render(body, base_path=base_path)

        content, config, posts = await asyncio.gather(
            render(),
            self._load_config(entry.config_path),
            self.load_posts([p.path for p in entry.posts]),
        )

        status = fm.get("status") or DEFAULT_PROJECT_STATUS
        if status not in PROJECT_STATUSES:
            warn(f"{entry.slug}: unknown project status '{status}'")

        record = commits_cache.get(entry.slug)
        links = fm.get("links")
        private = fm.get("private")
        project = Project(
            slug=entry.slug,
            title=str(fm.get("title") or entry.slug),
            tagline=fm.get("tagline"),
            status=str(status),
            featured=bool(fm.get("featured", False)),
            order=_order(fm.get("order")),
            tech=_str_list(fm.get("tech")),
            private=bool(private) if private is not None else None,
            links=links if isinstance(links, dict) else None,
            content=content,
            raw_content=body,
            config=config,
            posts=posts,
            commits=apply_hidden(list(record.commits), config.hidden_commits)
            if record
            else [],
        )
        project.last_updated = last_updated(project)
        return project

    # ---------- Collections

    async def load_projects(
        self, manifest: Manifest, commits_cache: CommitsCache
    ) -> List[Project]:
        projects = await _settle(
            [self.load_project(e, commits_cache) for e in manifest.projects],
            "project",
        )
        return sorted(projects, key=project_sort_key)

    async def load_blog_posts(self, manifest: Manifest) -> List[Post]:
        return await self.load_posts([b.path for b in manifest.blog])

    async def load_pages(self, manifest: Manifest) -> List[Page]:
        return await _settle([self.load_page(p.path) for p in manifest.pages], "page")

    async def load_all(self) -> SiteContent:
        commits_cache, site_config, manifest = await asyncio.gather(
            self.load_commits_cache(),
            self.load_site_config(),
            self.load_manifest(),
        )
        if manifest is None:
            return SiteContent(commits_cache=commits_cache, site_config=site_config)

        projects, blog_posts, pages = await asyncio.gather(
            self.load_projects(manifest, commits_cache),
            self.load_blog_posts(manifest),
            self.load_pages(manifest),
        )
        return SiteContent(
            projects=projects,
            blog_posts=blog_posts,
            pages=pages,
            commits_cache=commits_cache,
            site_config=site_config,
        )


def load_site_content(public_dir: pathlib.Path) -> SiteContent:
    with MarkdownRenderer() as renderer:
        assembler = ContentAssembler(FileDocumentStore(public_dir), renderer)
        return asyncio.run(assembler.load_all())
