"""
Article view-models for the presentation layer.

- listing: the fields an index/tag page needs (no body)
- page: listing fields plus rendered HTML, table of contents, SEO data and
  prev/next links

Markdown to HTML is nbconvert's mistune filter; everything here is field
mapping and asset URL resolution.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, Optional

from nbconvert.filters.markdown_mistune import markdown2html_mistune

from .assets import (
    article_asset_prefix,
    article_assets,
    resolve_asset_url,
    rewrite_relative_urls,
)
from .collection import Collection
from .config import SiteConfig
from .markdown_processing import collect_toc, count_words
from .models import Article

LISTING = "listing"
PAGE = "page"
TARGETS = (LISTING, PAGE)


def format_date(d: date, fmt: str = "%d %B %Y") -> str:
    return d.strftime(fmt)


def reading_time(body: str, words_per_minute: int = 200) -> Dict[str, Any]:
    words = count_words(body)
    minutes = max(1, math.ceil(words / words_per_minute))
    return {"minutes": minutes, "words": words, "text": f"{minutes} min read"}


def article_url(article: Article, config: SiteConfig) -> str:
    return article_asset_prefix(config.asset_base, article.slug)


def _absolute(url: Optional[str], config: SiteConfig) -> Optional[str]:
    if url and url.startswith("/") and config.site_url:
        return config.site_url.rstrip("/") + url
    return url


def _summary(article: Optional[Article], config: SiteConfig) -> Optional[Dict[str, str]]:
    if article is None:
        return None
    return {
        "slug": article.slug,
        "title": article.title,
        "url": article_url(article, config),
    }


def render_body(article: Article, config: SiteConfig) -> str:
    known = {ref.rel for ref in article_assets(article, config.asset_base)}
    body = rewrite_relative_urls(
        article.body,
        article_asset_prefix(config.asset_base, article.slug),
        known=known,
    )
    return markdown2html_mistune(body)


def render_article(
    article: Article,
    target: str,
    config: SiteConfig,
    collection: Optional[Collection] = None,
) -> Dict[str, Any]:
    if target not in TARGETS:
        raise ValueError(f"unknown render target {target!r}, expected one of {TARGETS}")

    cover = resolve_asset_url(article.cover_image, config.asset_base, article.slug)
    view: Dict[str, Any] = {
        "slug": article.slug,
        "url": article_url(article, config),
        "title": article.title,
        "description": article.description,
        "tags": sorted(article.tags),
        "published_at": article.published_at.isoformat(),
        "date": format_date(article.published_at, config.display_date_format),
        "cover_image": cover,
        "cover_image_author": article.cover_image_author,
        "cover_image_link": article.cover_image_link,
        "canonical_url": article.canonical_url,
        "reading_time": reading_time(article.body, config.words_per_minute),
    }
    if target == LISTING:
        return view

    view["html"] = render_body(article, config)
    view["toc"] = collect_toc(article.body)
    view["seo"] = {
        "title": article.title,
        "description": article.description,
        "canonical": article.canonical_url
        or _absolute(view["url"], config),
        "image": _absolute(cover, config),
    }
    if collection is not None:
        newer, older = collection.surround(article.slug)
        view["prev"] = _summary(newer, config)
        view["next"] = _summary(older, config)
    return view
