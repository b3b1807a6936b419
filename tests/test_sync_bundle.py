from __future__ import annotations

import asyncio
import json

import pytest

from sitecontent import frontmatter
from sitecontent.bundle import bundle_content, write_bundle
from sitecontent.commits import load_commits_cache
from sitecontent.manifest import write_manifest
from sitecontent.models import Commit
from sitecontent.sync import project_configs, refresh_commits_cache, sync_readme, sync_readmes


class FakeGitHub:
    def __init__(self, commits=None, readmes=None):
        self.commits = commits or {}
        self.readmes = readmes or {}
        self.commit_calls = []

    async def fetch_commits(self, owner, repo, since=None, per_page=30):
        self.commit_calls.append((f"{owner}/{repo}", since, per_page))
        return list(self.commits.get(f"{owner}/{repo}", []))

    async def get_readme(self, owner, repo):
        return self.readmes.get(f"{owner}/{repo}")


@pytest.fixture
def built(site):
    write_manifest(site / "content", site / "content" / "manifest.json")
    return site


# ---------------------------------------------------------------------------
# commits
# ---------------------------------------------------------------------------


def test_project_configs_lists_projects_with_repos(built) -> None:
    configs = project_configs(built)
    assert [(slug, cfg.repo) for slug, cfg in configs] == [("alpha", "octo/alpha")]


def test_project_configs_without_manifest_scans(site) -> None:
    assert [slug for slug, _ in project_configs(site)] == ["alpha"]


def _edit_manifest(root, **changes) -> None:
    path = root / "content" / "manifest.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    for entry in data["projects"]:
        entry.update(changes.get(entry["slug"], {}))
        if entry.get("configPath") is None:
            entry.pop("configPath", None)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_project_configs_skips_entries_without_config_path(built) -> None:
    _edit_manifest(built, alpha={"configPath": None})
    assert project_configs(built) == []


def test_project_configs_reads_listed_config_path(built) -> None:
    settings = built / "content" / "projects" / "alpha" / "settings.yaml"
    settings.write_text("repo: octo/other\n", encoding="utf-8")
    _edit_manifest(built, alpha={"configPath": "/content/projects/alpha/settings.yaml"})
    assert [(slug, cfg.repo) for slug, cfg in project_configs(built)] == [("alpha", "octo/other")]


def test_refresh_commits_cache(built) -> None:
    gh = FakeGitHub(
        {
            "octo/alpha": [
                Commit("c3", "third", "2024-04-01T00:00:00Z"),
                Commit("c2", "second (amended)", "2024-03-01T12:00:00Z"),
            ]
        }
    )
    asyncio.run(refresh_commits_cache(gh, built))

    assert gh.commit_calls == [("octo/alpha", "2024-03-01T12:00:00Z", 5)]
    record = load_commits_cache(built / "_data" / "commits-cache.json")["alpha"]
    assert [(c.sha, c.hidden) for c in record.commits] == [
        ("c3", True),
        ("c2", False),
        ("c1", True),
    ]
    assert record.commits[1].message == "second (amended)"
    assert record.latest_sha == "c3"


def test_refresh_twice_is_stable(built) -> None:
    gh = FakeGitHub({"octo/alpha": [Commit("c3", "third", "2024-04-01T00:00:00Z")]})
    first = asyncio.run(refresh_commits_cache(gh, built))
    second = asyncio.run(refresh_commits_cache(gh, built))
    assert second["alpha"].commits == first["alpha"].commits


def test_refresh_without_repos_leaves_cache(tmp_path) -> None:
    cache = asyncio.run(refresh_commits_cache(FakeGitHub(), tmp_path))
    assert cache == {}
    assert not (tmp_path / "_data" / "commits-cache.json").exists()


# ---------------------------------------------------------------------------
# readmes
# ---------------------------------------------------------------------------


def test_sync_readme_keeps_frontmatter(built) -> None:
    gh = FakeGitHub(readmes={"octo/alpha": "# From GitHub\n"})
    assert asyncio.run(sync_readme(gh, built, "alpha", "octo/alpha")) is True

    raw = (built / "content" / "projects" / "alpha" / "index.md").read_text(encoding="utf-8")
    header, body = frontmatter.decode(raw)
    assert header["title"] == "Alpha"
    assert header["order"] == 2
    assert body == "# From GitHub\n"


def test_sync_readme_missing_readme(built, capsys) -> None:
    index = built / "content" / "projects" / "alpha" / "index.md"
    before = index.read_text(encoding="utf-8")
    assert asyncio.run(sync_readme(FakeGitHub(), built, "alpha", "octo/alpha")) is False
    assert index.read_text(encoding="utf-8") == before
    assert "no README found" in capsys.readouterr().err


def test_sync_readme_bad_repo_or_project(built) -> None:
    gh = FakeGitHub(readmes={"octo/x": "x"})
    assert asyncio.run(sync_readme(gh, built, "alpha", "nonsense")) is False
    assert asyncio.run(sync_readme(gh, built, "ghost", "octo/x")) is False


def test_sync_readmes_counts(built) -> None:
    gh = FakeGitHub(readmes={"octo/alpha": "readme"})
    assert asyncio.run(sync_readmes(gh, built)) == (1, 0)
    assert asyncio.run(sync_readmes(FakeGitHub(), built)) == (0, 1)


# ---------------------------------------------------------------------------
# bundle
# ---------------------------------------------------------------------------


def test_bundle_content(built) -> None:
    bundle = bundle_content(built)
    assert set(bundle) == {"siteConfig", "commitsCache", "projects", "blog", "pages"}
    assert bundle["siteConfig"].startswith("site:\n")
    assert bundle["commitsCache"]["alpha"]["latestSha"] == "c2"

    alpha, beta = bundle["projects"]
    assert alpha["slug"] == "alpha"
    assert alpha["indexRaw"].startswith("---\ntitle: Alpha")
    assert alpha["configRaw"].startswith("repo: octo/alpha")
    assert [p["filename"] for p in alpha["posts"]] == ["2024-02-10-launch.md"]
    assert "configRaw" not in beta
    assert beta["posts"] == []

    assert bundle["blog"] == [
        {"filename": "2024-05-01-hello.md", "raw": bundle["blog"][0]["raw"]}
    ]
    assert [p["filename"] for p in bundle["pages"]] == ["about.md"]


def test_bundle_skips_missing_files(built, capsys) -> None:
    (built / "content" / "blog" / "2024-05-01-hello.md").unlink()
    (built / "content" / "projects" / "beta" / "index.md").unlink()
    bundle = bundle_content(built)
    assert bundle["blog"] == []
    assert [p["slug"] for p in bundle["projects"]] == ["alpha"]
    assert "2024-05-01-hello.md not found" in capsys.readouterr().err


def test_bundle_without_manifest(site) -> None:
    assert bundle_content(site) is None


def test_write_bundle_is_compact_json(built) -> None:
    path = built / "content-bundle.json"
    bundle = bundle_content(built)
    write_bundle(path, bundle)
    text = path.read_text(encoding="utf-8")
    assert "\n" not in text.strip()
    assert json.loads(text) == bundle
