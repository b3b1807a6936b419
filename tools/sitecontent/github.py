from __future__ import annotations

import os
from types import TracebackType
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .config import (
    DEFAULT_COMMITS_LIMIT,
    GITHUB_API,
    GITHUB_TOKEN_ENV,
    REPO_HTTPS,
    REPO_SHORT,
    REPO_SSH,
    USER_AGENT,
)
from .models import Commit
from .utils import now_iso, warn


def parse_repo(value: str) -> Optional[Tuple[str, str]]:
    """
    Accepts https://github.com/owner/repo, git@github.com:owner/repo.git
    and plain owner/repo. Returns (owner, repo) or None.
    """
    value = (value or "").strip()
    for pattern in (REPO_HTTPS, REPO_SSH, REPO_SHORT):
        m = pattern.search(value)
        if m:
            repo = m.group("repo")
            if repo.endswith(".git"):
                repo = repo[: -len(".git")]
            return m.group("owner"), repo
    return None


def commit_from_api(raw: Dict[str, Any]) -> Commit:
    detail = raw.get("commit") or {}
    git_author = detail.get("author") or {}
    account = raw.get("author") or {}

    date = git_author.get("date")
    synthetic = not date
    return Commit(
        sha=raw["sha"],
        message=detail.get("message") or "",
        date=date or now_iso(),
        author=account.get("login") or git_author.get("name"),
        url=raw.get("html_url"),
        hidden=False,
        synthetic_date=synthetic,
    )


def token_from_env() -> Optional[str]:
    for name in GITHUB_TOKEN_ENV:
        if os.environ.get(name):
            return os.environ[name]
    return None


class GitHubClient:
    """Commit and README source backed by the GitHub REST API.

    Usage:
        async with GitHubClient() as gh:
            commits = await gh.fetch_commits("owner", "repo", per_page=20)

    Failures never raise: a broken request is reported through ``warn`` and
    comes back as an empty commit list or a ``None`` README.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.token = token or token_from_env()
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        self._client = client or httpx.AsyncClient(
            base_url=base_url, headers=self.headers, follow_redirects=True
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def list_commits(
        self,
        owner: str,
        repo: str,
        since: Optional[str] = None,
        per_page: int = DEFAULT_COMMITS_LIMIT,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"per_page": per_page}
        if since:
            params["since"] = since
        try:
            response = await self._client.get(
                f"/repos/{owner}/{repo}/commits", params=params
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            warn(f"failed to fetch commits for {owner}/{repo}: {e}")
            return []
        if not isinstance(data, list):
            warn(f"unexpected commits payload for {owner}/{repo}")
            return []
        return data

    async def fetch_commits(
        self,
        owner: str,
        repo: str,
        since: Optional[str] = None,
        per_page: int = DEFAULT_COMMITS_LIMIT,
    ) -> List[Commit]:
        raw = await self.list_commits(owner, repo, since=since, per_page=per_page)
        return [commit_from_api(c) for c in raw if isinstance(c, dict) and c.get("sha")]

    async def get_readme(self, owner: str, repo: str) -> Optional[str]:
        try:
            response = await self._client.get(
                f"/repos/{owner}/{repo}/readme",
                headers={"Accept": "application/vnd.github.raw+json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            warn(f"failed to fetch README for {owner}/{repo}: {e}")
            return None
        return response.text
