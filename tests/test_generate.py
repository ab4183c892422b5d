import json

import pytest

from collector.errors import BuildFailed
from collector.generate import generate, tag_slugs

POST = """
---
title: {title}
published_at: {date}
tags: {tags}
cover_image: cover.png
---

# {title}

Text.
"""


@pytest.fixture
def site(site_config, write_doc, content_dir):
    (content_dir / "cover.png").write_bytes(b"png")
    write_doc("first.md", POST.format(title="First", date="2021-01-01", tags="python"))
    write_doc("second.md", POST.format(title="Second", date="2021-02-01", tags="python, Web Dev"))
    return site_config


class TestGenerate:
    def test_writes_content_tree(self, site):
        generate(site)
        root = site.output_path / "_content"
        listing = json.loads((root / "articles.json").read_text(encoding="utf-8"))
        assert [a["slug"] for a in listing] == ["second", "first"]
        assert "html" not in listing[0]

        page = json.loads((root / "articles" / "first.json").read_text(encoding="utf-8"))
        assert page["prev"]["slug"] == "second"
        assert page["next"] is None
        assert "<h1" in page["html"]

        tags = json.loads((root / "tags.json").read_text(encoding="utf-8"))
        assert tags == [
            {"tag": "Web Dev", "slug": "web-dev", "count": 1},
            {"tag": "python", "slug": "python", "count": 2},
        ]
        web = json.loads((root / "tags" / "web-dev.json").read_text(encoding="utf-8"))
        assert [a["slug"] for a in web["articles"]] == ["second"]

    def test_copies_assets(self, site):
        generate(site)
        assert (site.output_path / "articles" / "first" / "cover.png").read_bytes() == b"png"

    def test_rebuild_drops_removed_articles(self, site, content_dir):
        generate(site)
        (content_dir / "first.md").unlink()
        generate(site)
        root = site.output_path / "_content"
        assert not (root / "articles" / "first.json").exists()
        assert not list(site.output_path.glob(".*.tmp"))

    def test_failed_build_keeps_previous_output(self, site, write_doc):
        generate(site)
        write_doc("broken.md", "---\ntitle: broken\n")
        with pytest.raises(BuildFailed):
            generate(site)
        assert (site.output_path / "_content" / "articles" / "first.json").exists()

    def test_tags_with_same_slug_get_separate_files(self, site, write_doc):
        write_doc("langs.md", POST.format(title="Langs", date="2021-03-01", tags="[C, C++]"))
        generate(site)
        root = site.output_path / "_content"
        tags = json.loads((root / "tags.json").read_text(encoding="utf-8"))
        by_tag = {t["tag"]: t["slug"] for t in tags}
        assert by_tag["C"] == "c"
        assert by_tag["C++"] != "c"
        assert len(set(by_tag.values())) == len(by_tag)
        for tag, slug in by_tag.items():
            view = json.loads((root / "tags" / f"{slug}.json").read_text(encoding="utf-8"))
            assert view["tag"] == tag


class TestTagSlugs:
    def test_plain_tags(self):
        assert tag_slugs(["Web Dev", "python"]) == {"Web Dev": "web-dev", "python": "python"}

    def test_collisions_are_disambiguated(self):
        slugs = tag_slugs(["C++", "C", "C#"])
        assert slugs["C"] == "c"
        assert len(set(slugs.values())) == 3
        assert all(s.startswith("c-") for t, s in slugs.items() if t != "C")

    def test_stable_across_input_order(self):
        assert tag_slugs(["C", "C++"]) == tag_slugs(["C++", "C"])

    def test_unsluggable_tag(self):
        assert tag_slugs(["+++"]) == {"+++": "tag"}
