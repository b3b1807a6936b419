"""
Commit history cache: merge, curation overlay and the fetch/merge/persist
flow shared by every command that touches commits-cache.json.

Cache layout (keyed by project slug):

    {"my-project": {"repo": "owner/name", "lastFetched": "...",
                    "latestSha": "abc", "commits": [{sha, message, date,
                    author?, url?, hidden}, ...]}}

``hiddenCommits`` in a project's config.yaml is the authoritative curation
list; the cached ``hidden`` flag is kept across merges and re-forced from
config on every refresh.
"""

from __future__ import annotations

import asyncio
import pathlib
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .config import DEFAULT_COMMITS_LIMIT
from .github import parse_repo
from .models import Commit, CommitsCache, ProjectCommitRecord
from .site_config import ProjectConfig
from .utils import log, now_iso, parse_iso, read_json, warn, write_json


class CommitSource(Protocol):
    async def fetch_commits(
        self,
        owner: str,
        repo: str,
        since: Optional[str] = None,
        per_page: int = DEFAULT_COMMITS_LIMIT,
    ) -> List[Commit]: ...


# ---------- Merge


def sort_commits(commits: Iterable[Commit]) -> List[Commit]:
    # sorted() is stable: equal timestamps keep their merge order.
    return sorted(commits, key=lambda c: parse_iso(c.date), reverse=True)


def merge_commits(
    existing: Optional[List[Commit]], fetched: List[Commit]
) -> List[Commit]:
    by_sha: Dict[str, Commit] = {c.sha: c for c in existing or []}
    merged: List[Commit] = []

    for commit in fetched:
        old = by_sha.pop(commit.sha, None)
        if old is not None:
            merged.append(replace(commit, hidden=old.hidden))
        else:
            merged.append(replace(commit))

    # Older than the fetch window; keep them.
    merged.extend(replace(c) for c in by_sha.values())
    return sort_commits(merged)


def apply_hidden(commits: List[Commit], hidden_shas: Iterable[str]) -> List[Commit]:
    hidden = set(hidden_shas or ())
    if not hidden:
        return commits
    return [
        replace(c, hidden=True) if c.sha in hidden and not c.hidden else c
        for c in commits
    ]


def set_commit_hidden(record: ProjectCommitRecord, sha: str, hidden: bool) -> bool:
    for i, commit in enumerate(record.commits):
        if commit.sha == sha:
            record.commits[i] = replace(commit, hidden=hidden)
            return True
    return False


# ---------- Cache file


def load_commits_cache(path: pathlib.Path) -> CommitsCache:
    data = read_json(path)
    if data is None:
        return {}
    return commits_cache_from_dict(data, source=str(path))


def commits_cache_from_dict(data, source: str = "commit cache") -> CommitsCache:
    if not isinstance(data, dict):
        warn(f"{source} is not an object, starting fresh")
        return {}
    cache: CommitsCache = {}
    for slug, record in data.items():
        if not isinstance(record, dict):
            warn(f"skipping malformed commit cache entry '{slug}'")
            continue
        cache[slug] = ProjectCommitRecord.from_dict(record)
    return cache


def commits_cache_to_dict(cache: CommitsCache) -> Dict[str, dict]:
    return {slug: record.to_dict() for slug, record in cache.items()}


def save_commits_cache(path: pathlib.Path, cache: CommitsCache) -> bool:
    try:
        write_json(path, commits_cache_to_dict(cache))
    except OSError as e:
        warn(f"failed to save commit cache {path}: {e}")
        return False
    return True


# ---------- Fetch -> merge -> record


def since_for(record: Optional[ProjectCommitRecord]) -> Optional[str]:
    if record is None or not record.latest_sha:
        return None
    for commit in record.commits:
        if commit.sha == record.latest_sha:
            return commit.date
    return None


def build_record(
    repo: str,
    existing: Optional[ProjectCommitRecord],
    fetched: List[Commit],
    hidden_shas: Iterable[str] = (),
) -> ProjectCommitRecord:
    merged = merge_commits(existing.commits if existing else None, fetched)
    merged = apply_hidden(merged, hidden_shas)
    return ProjectCommitRecord(
        repo=repo,
        last_fetched=now_iso(),
        latest_sha=merged[0].sha if merged else None,
        commits=merged,
    )


async def refresh_project(
    source: CommitSource,
    slug: str,
    config: ProjectConfig,
    existing: Optional[ProjectCommitRecord],
) -> Optional[ProjectCommitRecord]:
    if not config.repo:
        return None
    parsed = parse_repo(config.repo)
    if parsed is None:
        warn(f"{slug}: could not parse repo '{config.repo}'")
        return None
    owner, repo = parsed

    log(f"- {slug}: fetching commits from {owner}/{repo}")
    fetched = await source.fetch_commits(
        owner,
        repo,
        since=since_for(existing),
        per_page=config.commits_limit or DEFAULT_COMMITS_LIMIT,
    )
    record = build_record(config.repo, existing, fetched, config.hidden_commits)
    log(f"✓ {slug}: {len(fetched)} fetched, {len(record.commits)} total")
    return record


async def refresh_all(
    source: CommitSource,
    projects: List[Tuple[str, ProjectConfig]],
    cache: CommitsCache,
) -> CommitsCache:
    """Refresh every (slug, config) pair concurrently; failures keep the old record."""
    results = await asyncio.gather(
        *(
            refresh_project(source, slug, config, cache.get(slug))
            for slug, config in projects
        ),
        return_exceptions=True,
    )
    updated = dict(cache)
    for (slug, _), result in zip(projects, results):
        if isinstance(result, BaseException):
            warn(f"{slug}: commit refresh failed: {result}")
            continue
        if result is not None:
            updated[slug] = result
    return updated
