from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class ArticleMeta:
    title: str
    published_at: date
    description: str = ""
    tags: FrozenSet[str] = frozenset()
    cover_image: Optional[str] = None
    cover_image_author: Optional[str] = None
    cover_image_link: Optional[str] = None
    canonical_url: Optional[str] = None

    def to_frontmatter(self) -> Dict[str, Any]:
        fm: Dict[str, Any] = {
            "title": self.title,
            "published_at": self.published_at,
            "description": self.description,
        }
        if self.tags:
            fm["tags"] = sorted(self.tags)
        for key in (
            "cover_image",
            "cover_image_author",
            "cover_image_link",
            "canonical_url",
        ):
            value = getattr(self, key)
            if value is not None:
                fm[key] = value
        return fm


@dataclass(frozen=True)
class Article:
    slug: str
    title: str
    published_at: date
    body: str
    source_path: pathlib.Path
    description: str = ""
    tags: FrozenSet[str] = frozenset()
    cover_image: Optional[str] = None
    cover_image_author: Optional[str] = None
    cover_image_link: Optional[str] = None
    canonical_url: Optional[str] = None
    # Generated files (notebook outputs) as (name, bytes) pairs
    attachments: Tuple[Tuple[str, bytes], ...] = field(
        default=(), compare=False, repr=False
    )

    @classmethod
    def from_meta(
        cls,
        slug: str,
        meta: ArticleMeta,
        body: str,
        source_path: pathlib.Path,
        attachments: Tuple[Tuple[str, bytes], ...] = (),
    ) -> "Article":
        return cls(
            slug=slug,
            title=meta.title,
            published_at=meta.published_at,
            body=body,
            source_path=source_path,
            description=meta.description,
            tags=meta.tags,
            cover_image=meta.cover_image,
            cover_image_author=meta.cover_image_author,
            cover_image_link=meta.cover_image_link,
            canonical_url=meta.canonical_url,
            attachments=attachments,
        )

    @property
    def meta(self) -> ArticleMeta:
        return ArticleMeta(
            title=self.title,
            published_at=self.published_at,
            description=self.description,
            tags=self.tags,
            cover_image=self.cover_image,
            cover_image_author=self.cover_image_author,
            cover_image_link=self.cover_image_link,
            canonical_url=self.canonical_url,
        )

    @property
    def sort_key(self):
        return (-self.published_at.toordinal(), self.slug)
