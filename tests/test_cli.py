from __future__ import annotations

import json

import httpx
import pytest
import respx
from typer.testing import CliRunner

from sitecontent.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


def invoke(root, *args):
    return runner.invoke(app, [*args, "--root", str(root)])


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_manifest_command(site) -> None:
    result = invoke(site, "manifest")
    assert result.exit_code == 0, result.output
    data = read_json(site / "content" / "manifest.json")
    assert [p["slug"] for p in data["projects"]] == ["alpha", "beta"]


def test_build_command(site, tmp_path) -> None:
    assert invoke(site, "manifest").exit_code == 0
    out = tmp_path / "graph.json"
    result = invoke(site, "build", "--out", str(out))
    assert result.exit_code == 0, result.output
    data = read_json(out)
    assert [p["slug"] for p in data["projects"]] == ["beta", "alpha"]
    assert data["siteConfig"]["header"]["title"] == "Jane"


def test_build_default_output(site) -> None:
    invoke(site, "manifest")
    assert invoke(site, "build").exit_code == 0
    assert (site / "_data" / "content.json").is_file()


def test_bundle_command(site) -> None:
    assert invoke(site, "bundle").exit_code == 1
    invoke(site, "manifest")
    assert invoke(site, "bundle").exit_code == 0
    assert len(read_json(site / "content-bundle.json")["projects"]) == 2


def test_new_and_delete_commands(site) -> None:
    invoke(site, "manifest")

    result = invoke(site, "new-project", "Gamma", "--tech", "rust", "--tech", "wasm", "--repo", "octo/gamma")
    assert result.exit_code == 0, result.output
    assert (site / "content" / "projects" / "gamma" / "index.md").is_file()
    assert invoke(site, "new-project", "Gamma").exit_code == 1

    assert invoke(site, "new-post", "Hi There", "--date", "2024-08-01", "--tag", "a").exit_code == 0
    assert (site / "content" / "blog" / "2024-08-01-hi-there.md").is_file()

    assert invoke(site, "new-project-post", "gamma", "Kickoff", "--date", "2024-08-02").exit_code == 0
    assert (site / "content" / "projects" / "gamma" / "posts" / "2024-08-02-kickoff.md").is_file()

    assert invoke(site, "new-page", "Uses").exit_code == 0
    assert (site / "content" / "pages" / "uses.md").is_file()

    assert invoke(site, "delete-post", "/content/blog/2024-08-01-hi-there.md").exit_code == 0
    assert invoke(
        site, "delete-post", "/content/projects/gamma/posts/2024-08-02-kickoff.md", "--project", "gamma"
    ).exit_code == 0
    assert invoke(site, "delete-page", "/content/pages/uses.md").exit_code == 0
    assert invoke(site, "delete-project", "gamma").exit_code == 0
    assert invoke(site, "delete-project", "gamma").exit_code == 1

    data = read_json(site / "content" / "manifest.json")
    assert [p["slug"] for p in data["projects"]] == ["alpha", "beta"]
    assert [b["path"] for b in data["blog"]] == ["/content/blog/2024-05-01-hello.md"]
    assert [p["path"] for p in data["pages"]] == ["/content/pages/about.md"]


def test_hide_and_unhide_commit(site) -> None:
    assert invoke(site, "hide-commit", "alpha", "c2").exit_code == 0
    cache = read_json(site / "_data" / "commits-cache.json")
    assert cache["alpha"]["commits"][0]["hidden"] is True

    assert invoke(site, "unhide-commit", "alpha", "c2").exit_code == 0
    cache = read_json(site / "_data" / "commits-cache.json")
    assert cache["alpha"]["commits"][0]["hidden"] is False

    assert invoke(site, "hide-commit", "ghost", "c2").exit_code == 1


@respx.mock
def test_fetch_commits_command(site) -> None:
    invoke(site, "manifest")
    route = respx.get("https://api.github.com/repos/octo/alpha/commits").mock(
        return_value=httpx.Response(
            200,
            json=[
                {
                    "sha": "c4",
                    "html_url": "https://github.com/octo/alpha/commit/c4",
                    "commit": {"message": "fourth", "author": {"name": "J", "date": "2024-05-01T00:00:00Z"}},
                    "author": {"login": "j"},
                }
            ],
        )
    )

    result = invoke(site, "fetch-commits", "--token", "t")
    assert result.exit_code == 0, result.output
    assert route.called
    assert route.calls.last.request.headers["Authorization"] == "Bearer t"

    cache = read_json(site / "_data" / "commits-cache.json")
    assert [c["sha"] for c in cache["alpha"]["commits"]] == ["c4", "c2", "c1"]
    assert cache["alpha"]["latestSha"] == "c4"


@respx.mock
def test_fetch_readmes_command(site) -> None:
    invoke(site, "manifest")
    respx.get("https://api.github.com/repos/octo/alpha/readme").mock(
        return_value=httpx.Response(200, text="# Alpha README\n")
    )

    assert invoke(site, "fetch-readmes").exit_code == 0
    index = (site / "content" / "projects" / "alpha" / "index.md").read_text(encoding="utf-8")
    assert index.startswith("---\ntitle: Alpha\n")
    assert index.endswith("# Alpha README\n")
