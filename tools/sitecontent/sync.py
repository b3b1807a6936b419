from __future__ import annotations

import asyncio
import pathlib
from typing import List, Optional, Protocol, Tuple

from . import frontmatter
from .commits import CommitSource, load_commits_cache, refresh_all, save_commits_cache
from .config import (
    PROJECT_INDEX,
    commits_cache_file,
    content_dir,
    manifest_file,
    project_dir,
    virtual_file,
)
from .github import parse_repo
from .manifest import ManifestStore, scan
from .models import CommitsCache
from .site_config import ProjectConfig, load_project_config
from .utils import log, read_text, warn, write_text_atomic


class ReadmeSource(Protocol):
    async def get_readme(self, owner: str, repo: str) -> Optional[str]: ...


def project_configs(public_dir: pathlib.Path) -> List[Tuple[str, ProjectConfig]]:
    """(slug, config) for every listed project whose config names a repo."""
    manifest = ManifestStore(manifest_file(public_dir)).load()
    if manifest is None:
        manifest = scan(content_dir(public_dir))

    out: List[Tuple[str, ProjectConfig]] = []
    for entry in manifest.projects:
        if not entry.config_path:
            log(f"- {entry.slug}: no config listed")
            continue
        config_path = virtual_file(public_dir, entry.config_path)
        config = load_project_config(read_text(config_path), source=str(config_path))
        if config.repo:
            out.append((entry.slug, config))
        else:
            log(f"- {entry.slug}: no repo configured")
    return out


async def refresh_commits_cache(
    source: CommitSource, public_dir: pathlib.Path
) -> CommitsCache:
    cache_path = commits_cache_file(public_dir)
    projects = project_configs(public_dir)
    if not projects:
        log("- no projects with GitHub repos found")
        return load_commits_cache(cache_path)

    cache = await refresh_all(source, projects, load_commits_cache(cache_path))
    if save_commits_cache(cache_path, cache):
        log(f"✓ commit cache saved to {cache_path}")
    return cache


async def sync_readme(
    source: ReadmeSource, public_dir: pathlib.Path, slug: str, repo: str
) -> bool:
    """Replace a project's index.md body with its README, keeping frontmatter."""
    parsed = parse_repo(repo)
    if parsed is None:
        warn(f"{slug}: could not parse repo '{repo}'")
        return False
    index_path = project_dir(public_dir, slug) / PROJECT_INDEX
    existing = read_text(index_path)
    if existing is None:
        warn(f"{slug}: {index_path} not found")
        return False

    readme = await source.get_readme(*parsed)
    if readme is None:
        warn(f"{slug}: no README found, skipping")
        return False

    write_text_atomic(index_path, frontmatter.update_body(existing, readme))
    log(f"✓ {slug}: updated {PROJECT_INDEX} from {'/'.join(parsed)}")
    return True


async def sync_readmes(source: ReadmeSource, public_dir: pathlib.Path) -> Tuple[int, int]:
    projects = project_configs(public_dir)
    results = await asyncio.gather(
        *(sync_readme(source, public_dir, slug, cfg.repo) for slug, cfg in projects),
        return_exceptions=True,
    )
    updated = 0
    for (slug, _), result in zip(projects, results):
        if isinstance(result, BaseException):
            warn(f"{slug}: README sync failed: {result}")
        elif result:
            updated += 1
    skipped = len(projects) - updated
    log(f"✓ done: {updated} updated, {skipped} skipped")
    return updated, skipped
