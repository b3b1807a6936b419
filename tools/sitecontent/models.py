"""Content graph records.

Field names follow Python conventions; ``to_dict``/``from_dict`` translate to
the camelCase keys used by the JSON files and the site front end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .site_config import ProjectConfig


@dataclass
class Commit:
    sha: str
    message: str
    date: str
    author: Optional[str] = None
    url: Optional[str] = None
    hidden: bool = False
    # Set when the source gave no date and ``date`` is the fetch time.
    synthetic_date: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        return cls(
            sha=str(data["sha"]),
            message=data.get("message") or "",
            date=data.get("date") or "",
            author=data.get("author"),
            url=data.get("url"),
            hidden=bool(data.get("hidden", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sha": self.sha,
            "message": self.message,
            "date": self.date,
        }
        if self.author is not None:
            out["author"] = self.author
        if self.url is not None:
            out["url"] = self.url
        out["hidden"] = self.hidden
        return out


@dataclass
class ProjectCommitRecord:
    repo: str
    last_fetched: str
    latest_sha: Optional[str] = None
    commits: List[Commit] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectCommitRecord":
        return cls(
            repo=data.get("repo") or "",
            last_fetched=data.get("lastFetched") or "",
            latest_sha=data.get("latestSha"),
            commits=[
                Commit.from_dict(c)
                for c in data.get("commits") or []
                if isinstance(c, dict) and c.get("sha")
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "repo": self.repo,
            "lastFetched": self.last_fetched,
        }
        if self.latest_sha is not None:
            out["latestSha"] = self.latest_sha
        out["commits"] = [c.to_dict() for c in self.commits]
        return out


CommitsCache = Dict[str, ProjectCommitRecord]


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass
class Post:
    slug: str
    title: str
    date: str
    content: str
    raw_content: str
    tags: Optional[List[str]] = None
    project: Optional[str] = None
    excerpt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "slug": self.slug,
            "title": self.title,
            "date": self.date,
            "tags": self.tags,
            "project": self.project,
            "excerpt": self.excerpt,
            "content": self.content,
            "rawContent": self.raw_content,
        })


@dataclass
class Page:
    slug: str
    title: str
    content: str
    raw_content: str
    layout: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "slug": self.slug,
            "title": self.title,
            "layout": self.layout,
            "content": self.content,
            "rawContent": self.raw_content,
        })


@dataclass
class Project:
    slug: str
    title: str
    status: str
    content: str
    raw_content: str
    config: ProjectConfig = field(default_factory=ProjectConfig)
    posts: List[Post] = field(default_factory=list)
    commits: List[Commit] = field(default_factory=list)
    tagline: Optional[str] = None
    featured: bool = False
    order: Optional[float] = None
    tech: Optional[List[str]] = None
    private: Optional[bool] = None
    links: Optional[Dict[str, str]] = None
    last_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "slug": self.slug,
            "title": self.title,
            "tagline": self.tagline,
            "status": self.status,
            "featured": self.featured,
            "order": self.order,
            "tech": self.tech,
            "private": self.private,
            "links": self.links,
            "content": self.content,
            "rawContent": self.raw_content,
            "config": self.config.to_dict(),
            "posts": [p.to_dict() for p in self.posts],
            "commits": [c.to_dict() for c in self.commits],
            "lastUpdated": self.last_updated,
        })
