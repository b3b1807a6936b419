#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re

# ---------- Paths

# This assumes config.py sits in tools/sitecontent/ at the repo root.
ROOT = pathlib.Path(__file__).resolve().parents[2]
PUBLIC_DIR = ROOT / "app" / "public"

CONTENT_DIR_NAME = "content"
DATA_DIR_NAME = "_data"
CONTENT_PREFIX = f"/{CONTENT_DIR_NAME}"

MANIFEST_NAME = "manifest.json"
SITE_CONFIG_NAME = "site.yaml"
COMMITS_CACHE_NAME = "commits-cache.json"
BUNDLE_NAME = "content-bundle.json"
CONTENT_GRAPH_NAME = "content.json"

PROJECTS_DIR = "projects"
BLOG_DIR = "blog"
PAGES_DIR = "pages"
POSTS_DIR = "posts"
PROJECT_INDEX = "index.md"
PROJECT_CONFIG = "config.yaml"

# ---------- Config

MARKDOWN_SUFFIX = ".md"
DEFAULT_COMMITS_LIMIT = 30
ORDER_FALLBACK = 999
EXCERPT_LENGTH = 200
PROJECT_STATUSES = ("active", "maintained", "paused", "archived", "concept")
DEFAULT_PROJECT_STATUS = "concept"

GITHUB_API = "https://api.github.com"
GITHUB_TOKEN_ENV = ("GITHUB_TOKEN", "GH_TOKEN")
USER_AGENT = "sitecontent"

# Some shared regexes

FRONTMATTER_DELIMITER = "---"
DATE_PREFIX = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-")
MARKDOWN_EXT = re.compile(r"\.(md|markdown)$", re.IGNORECASE)
URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
SLUG_RE = re.compile(r"[^a-z0-9-]+")

REPO_HTTPS = re.compile(r"github\.com/(?P<owner>[^/]+)/(?P<repo>[^/.]+)")
REPO_SSH = re.compile(r"git@github\.com:(?P<owner>[^/]+)/(?P<repo>[^.]+)")
REPO_SHORT = re.compile(r"^(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+)$")

# Markdown-ish formatting stripped when deriving excerpts.
MD_HEADER_MARK = re.compile(r"#{1,6}\s+")
MD_BOLD = re.compile(r"\*\*([^*]+)\*\*")
MD_ITALIC = re.compile(r"\*([^*]+)\*")
MD_INLINE_CODE = re.compile(r"`([^`]+)`")
MD_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
MD_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
NEWLINES = re.compile(r"\n+")


def content_dir(public_dir: pathlib.Path) -> pathlib.Path:
    return public_dir / CONTENT_DIR_NAME


def manifest_file(public_dir: pathlib.Path) -> pathlib.Path:
    return content_dir(public_dir) / MANIFEST_NAME


def site_config_file(public_dir: pathlib.Path) -> pathlib.Path:
    return content_dir(public_dir) / SITE_CONFIG_NAME


def commits_cache_file(public_dir: pathlib.Path) -> pathlib.Path:
    return public_dir / DATA_DIR_NAME / COMMITS_CACHE_NAME


def bundle_file(public_dir: pathlib.Path) -> pathlib.Path:
    return public_dir / BUNDLE_NAME


def project_dir(public_dir: pathlib.Path, slug: str) -> pathlib.Path:
    return content_dir(public_dir) / PROJECTS_DIR / slug


def virtual_file(public_dir: pathlib.Path, path: str) -> pathlib.Path:
    """Map a manifest path like /content/blog/a.md onto the public directory."""
    return public_dir.joinpath(*path.lstrip("/").split("/"))
