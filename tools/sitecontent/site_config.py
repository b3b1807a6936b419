"""Site and project configuration.

site.yaml is merged onto the defaults below one top-level section at a time:
a section present in the file replaces the default keys it names and keeps
the rest, so a partial file like

    header:
      title: Jane Doe

still yields the default nav, footer and homepage.

Per-project config.yaml (``repo``, ``commitsLimit``, ``hiddenCommits``) is
read into ``ProjectConfig``; anything unreadable becomes an empty config.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional

from .utils import parse_yaml_mapping, warn


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


@dataclass
class ProjectConfig:
    repo: Optional[str] = None
    commits_limit: Optional[int] = None
    hidden_commits: List[str] = field(default_factory=list)
    # Keys we do not model are carried through untouched on rewrite.
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectConfig":
        data = dict(data or {})
        repo = data.pop("repo", None)
        limit = data.pop("commitsLimit", None)
        hidden = data.pop("hiddenCommits", None) or []
        if limit is not None and not isinstance(limit, int):
            warn(f"ignoring non-integer commitsLimit: {limit!r}")
            limit = None
        if not isinstance(hidden, list):
            warn(f"ignoring non-list hiddenCommits: {hidden!r}")
            hidden = []
        return cls(
            repo=str(repo) if repo else None,
            commits_limit=limit,
            hidden_commits=[str(sha) for sha in hidden],
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.repo:
            out["repo"] = self.repo
        if self.commits_limit is not None:
            out["commitsLimit"] = self.commits_limit
        out["hiddenCommits"] = list(self.hidden_commits)
        out.update(self.extra)
        return out


def load_project_config(text: Optional[str], source: str = "config.yaml") -> ProjectConfig:
    if not text:
        return ProjectConfig()
    return ProjectConfig.from_dict(parse_yaml_mapping(text, source=source))


# ---------------------------------------------------------------------------
# Site config
# ---------------------------------------------------------------------------


@dataclass
class NavLink:
    label: str
    path: str


@dataclass
class SocialLink:
    label: str
    url: str


@dataclass
class HeroButton:
    label: str
    path: str
    style: str = "primary"


@dataclass
class SiteSection:
    title: str = "My Portfolio"
    description: Optional[str] = "Developer portfolio"


@dataclass
class HeaderSection:
    title: str = "My Name"
    logo: Optional[str] = None
    nav: List[NavLink] = field(
        default_factory=lambda: [
            NavLink("Projects", "/projects"),
            NavLink("Blog", "/blog"),
            NavLink("About", "/about"),
        ]
    )


@dataclass
class FooterSection:
    copyright: str = field(
        default_factory=lambda: f"{datetime.now().year} My Name"
    )
    github: Optional[str] = "https://github.com/username"
    socialLinks: Optional[List[SocialLink]] = None


@dataclass
class HeroSection:
    title: str = "Hi, I'm [Name]"
    subtitle: Optional[List[str]] = field(
        default_factory=lambda: ["Software Developer"]
    )
    buttons: Optional[List[HeroButton]] = field(
        default_factory=lambda: [
            HeroButton("View Projects", "/projects", "primary"),
            HeroButton("About Me", "/about", "outline"),
        ]
    )


@dataclass
class HomepageSection:
    hero: HeroSection = field(default_factory=HeroSection)
    showFeaturedProjects: Optional[bool] = True
    showRecentPosts: Optional[bool] = True
    projectsLimit: Optional[int] = 4
    postsLimit: Optional[int] = 3


@dataclass
class SiteConfig:
    site: SiteSection = field(default_factory=SiteSection)
    header: HeaderSection = field(default_factory=HeaderSection)
    footer: FooterSection = field(default_factory=FooterSection)
    homepage: HomepageSection = field(default_factory=HomepageSection)

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)


def _to_plain(obj: Any) -> Any:
    if hasattr(obj, "__dataclass_fields__"):
        return {
            f.name: _to_plain(getattr(obj, f.name))
            for f in fields(obj)
            if getattr(obj, f.name) is not None
        }
    if isinstance(obj, list):
        return [_to_plain(v) for v in obj]
    return obj


def _links(raw: Any, kind, keys) -> Optional[list]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        warn(f"expected a list of {kind.__name__}, got {type(raw).__name__}")
        return None
    out = []
    for item in raw:
        if not isinstance(item, dict) or not all(item.get(k) for k in keys):
            warn(f"skipping malformed {kind.__name__}: {item!r}")
            continue
        out.append(kind(**{k: item[k] for k in item if k in kind.__dataclass_fields__}))
    return out


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        warn(f"site config section '{name}' is not a mapping, using defaults")
        return {}
    return value


def _overlay(default, values: Dict[str, Any], converters=None):
    """Shallow merge: known keys in *values* replace the default's."""
    converters = converters or {}
    known = {f.name for f in fields(default)}
    for key, value in values.items():
        if key not in known:
            warn(f"unknown site config key '{key}' ignored")
            continue
        if key in converters:
            value = converters[key](value)
            if value is None:
                continue
        setattr(default, key, value)
    return default


def merge_site_config(raw: Optional[Dict[str, Any]]) -> SiteConfig:
    raw = raw or {}
    cfg = SiteConfig()

    _overlay(cfg.site, _section(raw, "site"))
    _overlay(
        cfg.header,
        _section(raw, "header"),
        {"nav": lambda v: _links(v, NavLink, ("label", "path"))},
    )
    _overlay(
        cfg.footer,
        _section(raw, "footer"),
        {"socialLinks": lambda v: _links(v, SocialLink, ("label", "url"))},
    )

    homepage = dict(_section(raw, "homepage"))
    hero_raw = homepage.pop("hero", None)
    _overlay(cfg.homepage, homepage)
    if hero_raw is not None:
        # hero replaces the default hero wholesale, like any other key
        # inside the homepage section.
        if isinstance(hero_raw, dict):
            hero = _overlay(
                HeroSection(subtitle=None, buttons=None),
                hero_raw,
                {"buttons": lambda v: _links(v, HeroButton, ("label", "path"))},
            )
            if isinstance(hero.subtitle, str):
                hero.subtitle = [hero.subtitle]
            cfg.homepage.hero = hero
        else:
            warn("site config 'homepage.hero' is not a mapping, using defaults")

    return cfg


def load_site_config(text: Optional[str], source: str = "site.yaml") -> SiteConfig:
    if not text:
        return SiteConfig()
    return merge_site_config(parse_yaml_mapping(text, source=source))
