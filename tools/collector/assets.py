from __future__ import annotations

import pathlib
import posixpath
from dataclasses import dataclass
from typing import Dict, List, Optional, Set
from urllib.parse import unquote

from .config import (
    ABSOLUTE_URL,
    ASSET_SOURCE_DIR_CANDIDATES,
    HTML_SRC_OR_HREF,
    MD_LINK_IMG,
)
from .markdown_processing import map_noncode
from .models import Article
from .utils import bytes_hash, content_hash, ensure_dir


@dataclass(frozen=True)
class AssetRef:
    rel: str                       # path below the article's asset directory
    url: str                       # public URL under the asset base
    source: Optional[pathlib.Path] = None
    data: Optional[bytes] = None   # generated assets carry their bytes


def is_relative_local(url: str) -> bool:
    if not url:
        return False
    if ABSOLUTE_URL.match(url):
        return False
    if url.startswith(("data:", "#", "/", "mailto:", "tel:")):
        return False
    return True


def article_asset_prefix(asset_base: str, slug: str) -> str:
    return f"{asset_base.rstrip('/')}/{slug}"


def _clean_rel(url: str) -> Optional[str]:
    rel = posixpath.normpath(unquote(url.split("#", 1)[0].split("?", 1)[0]))
    if rel in (".", "") or rel.startswith("../") or rel == "..":
        return None
    return rel


def resolve_asset_url(url: Optional[str], asset_base: str, slug: str) -> Optional[str]:
    """Join a front-matter/body asset reference with the article's asset base.

    Absolute URLs and root-relative paths pass through unchanged.
    """
    if not url:
        return None
    if not is_relative_local(url):
        return url
    rel = posixpath.normpath(url)
    if rel.startswith("../") or rel == "..":
        return url
    return f"{article_asset_prefix(asset_base, slug)}/{rel}"


def resolve_asset_candidate(
    base_dir: pathlib.Path, rel: str
) -> Optional[pathlib.Path]:
    cand = (base_dir / rel).resolve()
    if cand.exists() and cand.is_file():
        return cand
    for adir in ASSET_SOURCE_DIR_CANDIDATES:
        cand2 = (base_dir / adir / rel).resolve()
        if cand2.exists() and cand2.is_file():
            return cand2
    return None


def rewrite_relative_urls(
    text: str, prefix: str, known: Optional[Set[str]] = None
) -> str:
    """
    Rewrite markdown/HTML URLs that are local relative paths to
    "<prefix>/<path>", leaving fenced code untouched. With `known`, only
    references to those asset paths are rewritten.
    """

    def _final_url(url: str) -> str:
        rel = _clean_rel(url)
        if rel is None or (known is not None and rel not in known):
            return url
        rel = posixpath.normpath(url)
        return f"{prefix.rstrip('/')}/{rel}"

    def _md_repl(m):
        bang = m.group(1)
        alt = m.group("alt")
        url = m.group("url")
        if is_relative_local(url):
            return f"{bang}[{alt}]({_final_url(url)})"
        return m.group(0)

    def _html_repl(m):
        attr = m.group("attr")
        url = m.group("url")
        if is_relative_local(url):
            return f'{attr}="{_final_url(url)}"'
        return m.group(0)

    def _rewrite(s: str) -> str:
        s = MD_LINK_IMG.sub(_md_repl, s)
        return HTML_SRC_OR_HREF.sub(_html_repl, s)

    return map_noncode(text, _rewrite)


def _body_references(body: str) -> List[str]:
    refs: List[str] = []

    def _collect(s: str) -> str:
        refs.extend(m.group("url") for m in MD_LINK_IMG.finditer(s))
        refs.extend(m.group("url") for m in HTML_SRC_OR_HREF.finditer(s))
        return s

    map_noncode(body, _collect)
    return refs


def article_assets(article: Article, asset_base: str) -> List[AssetRef]:
    """Every local file an article needs published next to it.

    Covers the cover image, relative links/images in the body and generated
    notebook outputs. References to files that do not exist (e.g. links to
    other pages) are left out.
    """
    prefix = article_asset_prefix(asset_base, article.slug)
    base_dir = article.source_path.parent
    refs: Dict[str, AssetRef] = {}

    for name, data in article.attachments:
        refs[name] = AssetRef(rel=name, url=f"{prefix}/{name}", data=data)

    candidates = []
    if article.cover_image and is_relative_local(article.cover_image):
        candidates.append(article.cover_image)
    candidates.extend(u for u in _body_references(article.body) if is_relative_local(u))

    for url in candidates:
        rel = _clean_rel(url)
        if rel is None or rel in refs:
            continue
        src = resolve_asset_candidate(base_dir, rel)
        if src is None or src == article.source_path.resolve():
            continue
        refs[rel] = AssetRef(rel=rel, url=f"{prefix}/{rel}", source=src)

    return list(refs.values())


def missing_cover_image(article: Article) -> bool:
    if not article.cover_image or not is_relative_local(article.cover_image):
        return False
    rel = _clean_rel(article.cover_image)
    return rel is None or resolve_asset_candidate(article.source_path.parent, rel) is None


def copy_article_assets(
    article: Article, out_dir: pathlib.Path, asset_base: str
) -> List[pathlib.Path]:
    dest_root = pathlib.Path(out_dir) / asset_base.strip("/") / article.slug
    written: List[pathlib.Path] = []

    if missing_cover_image(article):
        print(f"! cover image {article.cover_image} not found for {article.slug}")

    for ref in article_assets(article, asset_base):
        dest = dest_root / ref.rel
        ensure_dir(dest.parent)
        if ref.data is not None:
            new_hash = bytes_hash(ref.data)
        else:
            new_hash = content_hash(ref.source)
        if dest.exists() and content_hash(dest) == new_hash:
            continue
        dest.write_bytes(ref.data if ref.data is not None else ref.source.read_bytes())
        written.append(dest)
    return written
