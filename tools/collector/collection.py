from __future__ import annotations

import pathlib
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .documents import discover, load_article
from .errors import BuildFailed, ContentError, DuplicateSlug, NotFound
from .models import Article


def find_duplicate_slugs(articles: Iterable[Article]) -> List[DuplicateSlug]:
    paths: Dict[str, List[pathlib.Path]] = defaultdict(list)
    for a in articles:
        paths[a.slug].append(a.source_path)
    return [
        DuplicateSlug(slug, sorted(ps))
        for slug, ps in sorted(paths.items())
        if len(ps) > 1
    ]


class Collection:
    """Read-only index over the articles of one build.

    Ordering everywhere is newest first, ties broken by slug.
    """

    def __init__(self, articles: Iterable[Article]):
        articles = list(articles)
        duplicates = find_duplicate_slugs(articles)
        if duplicates:
            raise duplicates[0]
        self._ordered: Tuple[Article, ...] = tuple(
            sorted(articles, key=lambda a: a.sort_key)
        )
        self._by_slug: Dict[str, Article] = {a.slug: a for a in self._ordered}
        self._position: Dict[str, int] = {
            a.slug: i for i, a in enumerate(self._ordered)
        }

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[Article]:
        return iter(self._ordered)

    def __contains__(self, slug) -> bool:
        return slug in self._by_slug

    def __repr__(self) -> str:
        return f"<Collection {len(self)} articles>"

    def all(self) -> Tuple[Article, ...]:
        return self._ordered

    def by_tag(self, tag: str) -> Iterator[Article]:
        return (a for a in self._ordered if tag in a.tags)

    def by_slug(self, slug: str) -> Article:
        try:
            return self._by_slug[slug]
        except KeyError:
            raise NotFound(slug) from None

    def tags(self) -> Dict[str, int]:
        counts: Dict[str, int] = defaultdict(int)
        for a in self._ordered:
            for t in a.tags:
                counts[t] += 1
        return dict(sorted(counts.items()))

    def surround(self, slug: str) -> Tuple[Optional[Article], Optional[Article]]:
        """(newer, older) neighbours of ``slug`` in ``all()`` order."""
        if slug not in self._position:
            raise NotFound(slug)
        i = self._position[slug]
        newer = self._ordered[i - 1] if i > 0 else None
        older = self._ordered[i + 1] if i + 1 < len(self._ordered) else None
        return newer, older

    def search(self, query: str) -> List[Article]:
        terms = query.lower().split()
        if not terms:
            return []

        def _haystack(a: Article) -> str:
            return "\n".join(
                [a.title, a.description, " ".join(sorted(a.tags)), a.body]
            ).lower()

        hits = []
        for a in self._ordered:
            hay = _haystack(a)
            if all(t in hay for t in terms):
                hits.append(a)
        return hits


def build_collection(
    content_dir: pathlib.Path, date_format: str = "%Y-%m-%d"
) -> Collection:
    """Load every document under ``content_dir`` into a new Collection.

    A bad document never stops the others from loading; all failures are
    raised together as BuildFailed once every file has been read.
    """
    articles: List[Article] = []
    errors: List[ContentError] = []

    for path in discover(content_dir):
        try:
            articles.append(load_article(path, date_format=date_format))
        except ContentError as exc:
            errors.append(exc)

    errors.extend(find_duplicate_slugs(articles))
    if errors:
        raise BuildFailed(errors)

    collection = Collection(articles)
    print(f"✓ loaded {len(collection)} articles from {content_dir}")
    return collection
