from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from sitecontent.github import GitHubClient, commit_from_api, parse_repo, token_from_env

API = "https://api.github.com"


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://github.com/octo/alpha", ("octo", "alpha")),
        ("https://github.com/octo/alpha.git", ("octo", "alpha")),
        ("https://github.com/octo/alpha/tree/main", ("octo", "alpha")),
        ("git@github.com:octo/alpha.git", ("octo", "alpha")),
        ("octo/alpha", ("octo", "alpha")),
        ("octo/alpha.git", ("octo", "alpha")),
        ("  octo/alpha  ", ("octo", "alpha")),
        ("alpha", None),
        ("", None),
        ("https://gitlab.com/octo/alpha/x", None),
    ],
)
def test_parse_repo(value, expected) -> None:
    assert parse_repo(value) == expected


def test_commit_from_api() -> None:
    commit = commit_from_api(
        {
            "sha": "abc",
            "html_url": "https://github.com/o/r/commit/abc",
            "commit": {
                "message": "Fix things",
                "author": {"name": "Jane", "date": "2024-01-01T00:00:00Z"},
            },
            "author": {"login": "jane"},
        }
    )
    assert commit.sha == "abc"
    assert commit.message == "Fix things"
    assert commit.date == "2024-01-01T00:00:00Z"
    assert commit.author == "jane"
    assert commit.url == "https://github.com/o/r/commit/abc"
    assert commit.hidden is False
    assert commit.synthetic_date is False


def test_commit_from_api_fallbacks() -> None:
    commit = commit_from_api(
        {"sha": "abc", "commit": {"author": {"name": "Jane"}}, "author": None}
    )
    assert commit.author == "Jane"
    assert commit.message == ""
    assert commit.url is None
    assert commit.synthetic_date is True
    assert commit.date.endswith("Z")


def test_token_from_env(monkeypatch) -> None:
    assert token_from_env() is None
    monkeypatch.setenv("GH_TOKEN", "gh")
    assert token_from_env() == "gh"
    monkeypatch.setenv("GITHUB_TOKEN", "primary")
    assert token_from_env() == "primary"


def test_auth_header_only_with_token() -> None:
    assert "Authorization" not in GitHubClient().headers
    assert GitHubClient(token="t").headers["Authorization"] == "Bearer t"


def _api_commit(sha: str, date: str) -> dict:
    return {
        "sha": sha,
        "html_url": f"https://github.com/octo/alpha/commit/{sha}",
        "commit": {"message": sha, "author": {"name": "J", "date": date}},
        "author": {"login": "j"},
    }


@respx.mock
def test_fetch_commits_sends_paging_and_since() -> None:
    route = respx.get(f"{API}/repos/octo/alpha/commits").mock(
        return_value=httpx.Response(
            200, json=[_api_commit("b", "2024-02-01T00:00:00Z"), {"no": "sha"}]
        )
    )

    async def run():
        async with GitHubClient(token="t") as gh:
            return await gh.fetch_commits(
                "octo", "alpha", since="2024-01-01T00:00:00Z", per_page=5
            )

    commits = asyncio.run(run())
    assert [c.sha for c in commits] == ["b"]
    request = route.calls.last.request
    assert request.url.params["per_page"] == "5"
    assert request.url.params["since"] == "2024-01-01T00:00:00Z"
    assert request.headers["Authorization"] == "Bearer t"


@respx.mock
def test_fetch_commits_without_since() -> None:
    route = respx.get(f"{API}/repos/octo/alpha/commits").mock(
        return_value=httpx.Response(200, json=[])
    )

    async def run():
        async with GitHubClient() as gh:
            return await gh.fetch_commits("octo", "alpha")

    assert asyncio.run(run()) == []
    assert "since" not in route.calls.last.request.url.params
    assert route.calls.last.request.url.params["per_page"] == "30"


@respx.mock
def test_fetch_commits_http_error_is_empty(capsys) -> None:
    respx.get(f"{API}/repos/octo/private/commits").mock(
        return_value=httpx.Response(404, json={"message": "Not Found"})
    )

    async def run():
        async with GitHubClient() as gh:
            return await gh.fetch_commits("octo", "private")

    assert asyncio.run(run()) == []
    assert "failed to fetch commits for octo/private" in capsys.readouterr().err


@respx.mock
def test_fetch_commits_connect_error_is_empty(capsys) -> None:
    respx.get(f"{API}/repos/octo/alpha/commits").mock(side_effect=httpx.ConnectError)

    async def run():
        async with GitHubClient() as gh:
            return await gh.fetch_commits("octo", "alpha")

    assert asyncio.run(run()) == []
    assert "failed to fetch commits" in capsys.readouterr().err


@respx.mock
def test_fetch_commits_unexpected_payload(capsys) -> None:
    respx.get(f"{API}/repos/octo/alpha/commits").mock(
        return_value=httpx.Response(200, json={"message": "weird"})
    )

    async def run():
        async with GitHubClient() as gh:
            return await gh.fetch_commits("octo", "alpha")

    assert asyncio.run(run()) == []
    assert "unexpected commits payload" in capsys.readouterr().err


@respx.mock
def test_get_readme() -> None:
    route = respx.get(f"{API}/repos/octo/alpha/readme").mock(
        return_value=httpx.Response(200, text="# Alpha\n\nReadme body.\n")
    )

    async def run():
        async with GitHubClient() as gh:
            return await gh.get_readme("octo", "alpha")

    assert asyncio.run(run()) == "# Alpha\n\nReadme body.\n"
    assert route.calls.last.request.headers["Accept"] == "application/vnd.github.raw+json"


@respx.mock
def test_get_readme_missing_is_none(capsys) -> None:
    respx.get(f"{API}/repos/octo/alpha/readme").mock(return_value=httpx.Response(404))

    async def run():
        async with GitHubClient() as gh:
            return await gh.get_readme("octo", "alpha")

    assert asyncio.run(run()) is None
    assert "failed to fetch README for octo/alpha" in capsys.readouterr().err
