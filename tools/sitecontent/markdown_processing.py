from __future__ import annotations

import re
from typing import Dict, Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .config import (
    EXCERPT_LENGTH,
    MD_BOLD,
    MD_HEADER_MARK,
    MD_IMAGE,
    MD_INLINE_CODE,
    MD_ITALIC,
    MD_LINK,
    NEWLINES,
    URL_SCHEME,
)


def is_relative_local(url: str) -> bool:
    if not url:
        return False
    if URL_SCHEME.match(url):
        return False
    if url.startswith(("#", "/")):
        return False
    return True


def rebase_url(url: str, base_path: Optional[str]) -> str:
    if not base_path or not is_relative_local(url):
        return url
    if url.startswith("./"):
        url = url[2:]
    return f"{base_path.rstrip('/')}/{url}"


def slugify_heading(text: str) -> str:
    s = text.strip().lower()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^\w\-]", "", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s or "section"


def _render_image(self, tokens, idx, options, env):
    token = tokens[idx]
    src = token.attrGet("src")
    if isinstance(src, str):
        token.attrSet("src", rebase_url(src, env.get("base_path")))
    return self.image(tokens, idx, options, env)


def _heading_ids(state: StateCore) -> None:
    """Give every heading a unique id and a leading `#` permalink."""
    used: Dict[str, int] = {}
    tokens = state.tokens
    for i, token in enumerate(tokens):
        if token.type != "heading_open" or i + 1 >= len(tokens):
            continue
        inline = tokens[i + 1]
        text = "".join(
            t.content for t in inline.children or [] if t.type in ("text", "code_inline")
        )
        base = slugify_heading(text)
        n = used.get(base, 0)
        used[base] = n + 1
        hid = base if n == 0 else f"{base}-{n}"
        token.attrSet("id", hid)

        anchor = Token("html_inline", "", 0)
        anchor.content = (
            f'<a class="header-anchor" href="#{hid}" aria-hidden="true">#</a> '
        )
        inline.children = [anchor] + list(inline.children or [])


class MarkdownRenderer:
    """
    Markdown -> HTML with Pygments code highlighting, heading anchors and
    relative image paths rebased onto the document's directory.

    One instance is created per process (or per request) by whoever runs the
    content load, and passed down; call ``close`` (or use it as a context
    manager) when done.
    """

    def __init__(self, style: str = "monokai") -> None:
        self.style = style
        self._formatter = HtmlFormatter(nowrap=True)
        md = MarkdownIt(
            "commonmark",
            {"html": True, "typographer": True, "highlight": self._highlight},
        )
        md.enable(["table", "strikethrough", "replacements", "smartquotes"])
        md.add_render_rule("image", _render_image)
        md.core.ruler.push("heading_ids", _heading_ids)
        self._md: Optional[MarkdownIt] = md

    def _highlight(self, code: str, lang: str, attrs: str) -> str:
        if not lang:
            return ""
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            return ""
        body = highlight(code, lexer, self._formatter)
        return (
            f'<pre class="highlight"><code class="language-{escapeHtml(lang)}">'
            f"{body}</code></pre>\n"
        )

    def render(self, text: str, base_path: Optional[str] = None) -> str:
        if self._md is None:
            raise RuntimeError("renderer has been closed")
        return self._md.render(text, {"base_path": base_path})

    def stylesheet(self, selector: str = ".highlight") -> str:
        return HtmlFormatter(style=self.style).get_style_defs(selector)

    def close(self) -> None:
        self._md = None

    def __enter__(self) -> "MarkdownRenderer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def extract_excerpt(text: str, max_length: int = EXCERPT_LENGTH) -> str:
    plain = MD_HEADER_MARK.sub("", text)
    plain = MD_BOLD.sub(r"\1", plain)
    plain = MD_ITALIC.sub(r"\1", plain)
    plain = MD_INLINE_CODE.sub(r"\1", plain)
    plain = MD_IMAGE.sub("", plain)
    plain = MD_LINK.sub(r"\1", plain)
    plain = NEWLINES.sub(" ", plain).strip()

    if len(plain) <= max_length:
        return plain
    return plain[:max_length].strip() + "..."
