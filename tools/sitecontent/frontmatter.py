"""
YAML frontmatter split/join for markdown documents.

    ---
    title: Hello
    tags: [a, b]
    ---

    Body text...

`decode` never raises: a document without a complete header block, or with a
header that is not a YAML mapping, comes back as ``({}, raw)``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Tuple

import yaml

from .config import FRONTMATTER_DELIMITER
from .utils import warn


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\r\n") == FRONTMATTER_DELIMITER


def _strip_separator(body: str) -> str:
    # `encode` puts one blank line between the closing delimiter and the body.
    if body.startswith("\r\n"):
        return body[2:]
    if body.startswith("\n"):
        return body[1:]
    return body


def decode(raw: str) -> Tuple[Dict[str, Any], str]:
    if not raw.startswith(FRONTMATTER_DELIMITER):
        return {}, raw

    lines = raw.splitlines(keepends=True)
    if not _is_delimiter(lines[0]):
        return {}, raw

    for i in range(1, len(lines)):
        if not _is_delimiter(lines[i]):
            continue
        header_text = "".join(lines[1:i])
        body = _strip_separator("".join(lines[i + 1 :]))
        try:
            header = yaml.safe_load(header_text)
        except yaml.YAMLError as e:
            warn(f"failed to parse frontmatter: {e}")
            return {}, raw
        if header is None:
            return {}, body
        if not isinstance(header, dict):
            warn(
                "frontmatter is not a mapping "
                f"({type(header).__name__}), treating document as body"
            )
            return {}, raw
        return header, body

    return {}, raw


def _fmt(v):
    if isinstance(v, datetime):
        return v.isoformat()
    if isinstance(v, date):
        return v.isoformat()
    return v


def frontmatter_block(header: Dict[str, Any]) -> str:
    data = {k: _fmt(v) for k, v in header.items()}
    dumped = yaml.safe_dump(
        data, sort_keys=False, allow_unicode=True
    ).rstrip()
    return f"{FRONTMATTER_DELIMITER}\n{dumped}\n{FRONTMATTER_DELIMITER}\n\n"


def encode(header: Dict[str, Any], body: str) -> str:
    if not header:
        return body
    return frontmatter_block(header) + body


def update_body(raw: str, body: str) -> str:
    """Swap the body of a document, keeping whatever header it had."""
    header, _ = decode(raw)
    return encode(header, body)
