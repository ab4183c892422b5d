import pathlib
import textwrap
from datetime import date

import pytest

from collector.config import SiteConfig
from collector.models import Article


@pytest.fixture
def content_dir(tmp_path):
    d = tmp_path / "content" / "articles"
    d.mkdir(parents=True)
    return d


@pytest.fixture
def write_doc(content_dir):
    """Write a document under the content dir and return its path."""

    def _write(name: str, text: str) -> pathlib.Path:
        path = content_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def site_config(tmp_path, content_dir):
    return SiteConfig(
        root=tmp_path,
        content_dir="content/articles",
        output_dir="dist",
        asset_base="/articles",
        site_url="https://blog.example.com",
    )


def make_article(slug, published_at, tags=(), body="", **kwargs):
    if isinstance(published_at, str):
        published_at = date.fromisoformat(published_at)
    kwargs.setdefault("title", slug.replace("-", " ").title())
    return Article(
        slug=slug,
        published_at=published_at,
        tags=frozenset(tags),
        body=body,
        source_path=kwargs.pop("source_path", pathlib.Path(f"/content/{slug}.md")),
        **kwargs,
    )
