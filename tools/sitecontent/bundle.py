"""
Single-file content bundle: every raw document the manifest lists, plus the
site config and commit cache, so the front end can load content with one
request instead of one per file.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict, List, Optional

from .commits import commits_cache_to_dict, load_commits_cache
from .config import (
    commits_cache_file,
    manifest_file,
    site_config_file,
    virtual_file,
)
from .manifest import ManifestStore
from .utils import filename_of, log, read_text, warn, write_json


def _read_virtual(public_dir: pathlib.Path, path: str) -> Optional[str]:
    text = read_text(virtual_file(public_dir, path))
    if text is None:
        warn(f"{path} not found")
    return text


def _files(public_dir: pathlib.Path, paths: List[str]) -> List[Dict[str, str]]:
    out = []
    for path in paths:
        raw = _read_virtual(public_dir, path)
        if raw is not None:
            out.append({"filename": filename_of(path), "raw": raw})
    return out


def bundle_content(public_dir: pathlib.Path) -> Optional[Dict[str, Any]]:
    manifest = ManifestStore(manifest_file(public_dir)).load()
    if manifest is None:
        return None

    projects = []
    for entry in manifest.projects:
        index_raw = _read_virtual(public_dir, entry.index_path)
        if index_raw is None:
            continue
        bundled: Dict[str, Any] = {"slug": entry.slug, "indexRaw": index_raw}
        if entry.config_path:
            config_raw = _read_virtual(public_dir, entry.config_path)
            if config_raw is not None:
                bundled["configRaw"] = config_raw
        bundled["posts"] = _files(public_dir, [p.path for p in entry.posts])
        projects.append(bundled)

    cache = load_commits_cache(commits_cache_file(public_dir))
    return {
        "siteConfig": read_text(site_config_file(public_dir)) or "",
        "commitsCache": commits_cache_to_dict(cache),
        "projects": projects,
        "blog": _files(public_dir, [b.path for b in manifest.blog]),
        "pages": _files(public_dir, [p.path for p in manifest.pages]),
    }


def write_bundle(path: pathlib.Path, bundle: Dict[str, Any]) -> None:
    write_json(path, bundle, indent=None)
    size_kb = path.stat().st_size / 1024
    log(f"✓ generated {path.name} ({size_kb:.1f} KB)")
    log(f"  - {len(bundle['projects'])} projects")
    log(f"  - {len(bundle['blog'])} blog posts")
    log(f"  - {len(bundle['pages'])} pages")
    log(f"  - commits cache: {len(bundle['commitsCache'])} repos")
