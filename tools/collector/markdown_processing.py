from __future__ import annotations

import html
import re
from typing import Any, Dict, List, Tuple

from nbconvert.filters.markdown_mistune import markdown2html_mistune

from .config import (
    BLOCK_MATH,
    FENCE,
    INLINE_MATH,
    MAX_TOC_DEPTH,
    MD_HEADING,
    SETEXT_RE,
    WORD_RE,
)

_ANCHOR_LINK = re.compile(r"<a class=\"anchor-link\"[^>]*>.*?</a>", re.DOTALL)
_HEADING_ID = re.compile(r"<h[1-6][^>]*\sid=\"([^\"]*)\"")
_INLINE_LINK = re.compile(r'!?\[([^\]]*)\]\([^)]*\)')
_HTML_TAG = re.compile(r'<[^>]+>')


def map_noncode(md: str, fn):
    parts, last = [], 0
    for m in FENCE.finditer(md):
        pre = md[last : m.start()]
        parts.append(fn(pre))
        parts.append(md[m.start() : m.end()])
        last = m.end()
    parts.append(fn(md[last:]))
    return "".join(parts)


def map_noncode_nonmath(md: str, fn):
    def _strip_math(s):
        spans, tokens = [], []

        def _hold(regex, text):
            def repl(m):
                token = f"@@M{len(spans)}@@"
                spans.append(m.group(0))
                tokens.append(token)
                return token

            return regex.sub(repl, text)

        t = _hold(BLOCK_MATH, s)
        t = _hold(INLINE_MATH, t)
        t = fn(t)
        for token, span in zip(tokens, spans):
            t = t.replace(token, span, 1)
        return t

    return map_noncode(md, _strip_math)


def render_heading(text: str) -> Tuple[str, str]:
    """(plain text, anchor id) of a heading as the HTML renderer emits it."""
    rendered = _ANCHOR_LINK.sub("", markdown2html_mistune(f"# {text}"))
    plain = " ".join(html.unescape(_HTML_TAG.sub("", rendered)).split())
    m = _HEADING_ID.search(rendered)
    anchor = html.unescape(m.group(1)) if m else plain.replace(" ", "-")
    return plain, anchor


def collect_toc(md_text: str, max_depth: int = MAX_TOC_DEPTH) -> List[Dict[str, Any]]:
    """Collect ``{level, text, id}`` items for ATX and Setext headings.

    Fenced code is skipped so ``# comments`` inside code blocks never show up.
    """
    toc: List[Dict[str, Any]] = []

    def _scan(s: str) -> str:
        found = []
        for m in SETEXT_RE.finditer(s):
            level = 1 if m.group("underline").startswith("=") else 2
            found.append((m.start(), level, m.group("text").strip()))
        for m in MD_HEADING.finditer(s):
            found.append((m.start(), len(m.group("hash")), m.group("text").strip()))
        for _, level, text in sorted(found):
            if level > max_depth:
                continue
            plain, anchor = render_heading(text)
            toc.append({"level": level, "text": plain, "id": anchor})
        return s

    map_noncode(md_text, _scan)
    return toc


def count_words(md_text: str) -> int:
    total = 0

    def _count(s: str) -> str:
        nonlocal total
        s = _INLINE_LINK.sub(r"\1", s)
        s = _HTML_TAG.sub(" ", s)
        total += len(WORD_RE.findall(s))
        return s

    map_noncode_nonmath(md_text, _count)
    return total
