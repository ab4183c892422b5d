from __future__ import annotations

import json
import pathlib
import shutil
from typing import Any, Dict, Iterable

from .assets import copy_article_assets
from .collection import Collection, build_collection
from .config import CONTENT_DIR_NAME, SiteConfig
from .render import LISTING, PAGE, render_article
from .utils import bytes_hash, ensure_dir, slugify


def write_json(path: pathlib.Path, data: Any) -> None:
    ensure_dir(path.parent)
    path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8"
    )


def tag_slugs(tags: Iterable[str]) -> Dict[str, str]:
    """File-safe slug per tag. Tags that slugify alike get a hash suffix."""
    slugs: Dict[str, str] = {}
    taken = set()
    for tag in sorted(tags):
        slug = slugify(tag) or "tag"
        if slug in taken:
            slug = f"{slug}-{bytes_hash(tag.encode('utf-8'))[:6]}"
        taken.add(slug)
        slugs[tag] = slug
    return slugs


def write_content(collection: Collection, config: SiteConfig) -> pathlib.Path:
    """Write every view-model under ``<output>/_content``.

    The directory is rendered to a staging sibling first and then moved into
    place, so a failed render leaves the previous output untouched.
    """
    out = config.output_path
    final = out / CONTENT_DIR_NAME
    staging = out / f".{CONTENT_DIR_NAME}.tmp"
    if staging.exists():
        shutil.rmtree(staging)

    listing = [render_article(a, LISTING, config) for a in collection.all()]
    write_json(staging / "articles.json", listing)

    for article in collection.all():
        page = render_article(article, PAGE, config, collection=collection)
        write_json(staging / "articles" / f"{article.slug}.json", page)

    tags = collection.tags()
    slugs = tag_slugs(tags)
    write_json(
        staging / "tags.json",
        [{"tag": t, "slug": slugs[t], "count": n} for t, n in tags.items()],
    )
    for tag in tags:
        write_json(
            staging / "tags" / f"{slugs[tag]}.json",
            {
                "tag": tag,
                "articles": [
                    render_article(a, LISTING, config)
                    for a in collection.by_tag(tag)
                ],
            },
        )

    if final.exists():
        shutil.rmtree(final)
    staging.rename(final)
    return final


def generate(config: SiteConfig) -> Collection:
    collection = build_collection(config.content_path, date_format=config.date_format)
    ensure_dir(config.output_path)

    final = write_content(collection, config)
    print(f"✓ wrote {len(collection)} articles to {final}")

    copied = 0
    for article in collection.all():
        copied += len(copy_article_assets(article, config.output_path, config.asset_base))
    if copied:
        print(f"✓ copied {copied} assets")
    else:
        print("= assets unchanged")
    return collection
