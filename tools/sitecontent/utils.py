from __future__ import annotations

import json
import os
import pathlib
import re
import sys
import tempfile
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

import yaml

from .config import (
    DATE_PREFIX,
    MARKDOWN_EXT,
    SLUG_RE,
)


def log(msg: str) -> None:
    print(msg)


def warn(msg: str) -> None:
    print(f"! {msg}", file=sys.stderr)


def slugify(s: str) -> str:
    s = re.sub(r"[\s_]+", "-", s.strip().lower())
    return re.sub(r"-{2,}", "-", SLUG_RE.sub("", s)).strip("-")


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def filename_of(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def slug_from_filename(filename: str) -> str:
    return MARKDOWN_EXT.sub("", DATE_PREFIX.sub("", filename, count=1))


def date_from_filename(filename: str) -> Optional[str]:
    m = DATE_PREFIX.match(filename)
    return m.group("date") if m else None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def now_iso() -> str:
    return format_iso(utc_now())


def iso_string(v: Any) -> Any:
    """YAML hands back date/datetime objects; the content graph wants strings."""
    if isinstance(v, datetime):
        return v.isoformat()
    if isinstance(v, date):
        return v.isoformat()
    return v


def parse_iso(value: Any) -> datetime:
    """Parse an ISO-8601 date or timestamp into an aware datetime.

    Unparseable values sort as the oldest possible instant.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        s = str(value or "").strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return datetime.min.replace(tzinfo=timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def read_text(path: pathlib.Path) -> Optional[str]:
    if not path.is_file():
        return None
    return _norm_text(path.read_text(encoding="utf-8"))


def read_yaml(path: pathlib.Path) -> Dict[str, Any]:
    text = read_text(path)
    if text is None:
        return {}
    return parse_yaml_mapping(text, source=str(path))


def parse_yaml_mapping(text: str, source: str = "<string>") -> Dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        warn(f"failed to parse YAML in {source}: {e}")
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        warn(f"expected a mapping in {source}, got {type(data).__name__}")
        return {}
    return data


def dump_yaml(data: Dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def read_json(path: pathlib.Path) -> Optional[Any]:
    text = read_text(path)
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        warn(f"failed to parse JSON in {path}: {e}")
        return None


def write_text_atomic(path: pathlib.Path, text: str) -> None:
    """Write via a sibling temp file so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp, path)
    except BaseException:
        pathlib.Path(tmp).unlink(missing_ok=True)
        raise


def write_json(path: pathlib.Path, data: Any, indent: Optional[int] = 2) -> None:
    if indent is None:
        text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    else:
        text = json.dumps(data, ensure_ascii=False, indent=indent) + "\n"
    write_text_atomic(path, text)
