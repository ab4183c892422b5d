from datetime import date

import pytest

from collector.errors import InvalidDate, MalformedDocument
from collector.frontmatter import frontmatter_block, parse_frontmatter, split_document
from collector.validation import validate_metadata


DOC = """---
title: "Hello"
published_at: 2021-02-01
---

Body text.
"""


# ── split_document ────────────────────────────────────────────

class TestSplitDocument:
    def test_splits_block_and_body(self):
        meta, body = split_document(DOC)
        assert meta == 'title: "Hello"\npublished_at: 2021-02-01\n'
        assert body == "Body text.\n"

    def test_leading_blank_lines_allowed(self):
        meta, body = split_document("\n\n" + DOC)
        assert "title" in meta
        assert body == "Body text.\n"

    def test_crlf_and_bom_normalized(self):
        meta, body = split_document("\ufeff" + DOC.replace("\n", "\r\n"))
        assert meta.startswith("title")
        assert "\r" not in body

    def test_missing_opening_marker_required(self):
        with pytest.raises(MalformedDocument, match="opening"):
            split_document("title: x\n\nBody", path="post.md")

    def test_missing_opening_marker_optional(self):
        meta, body = split_document("Just a body\n", required=False)
        assert meta is None
        assert body == "Just a body\n"

    def test_missing_closing_marker_names_file(self):
        with pytest.raises(MalformedDocument) as exc:
            split_document("---\ntitle: x\n\nBody\n", path="broken.md")
        assert "closing" in str(exc.value)
        assert "broken.md" in str(exc.value)
        assert exc.value.path == "broken.md"

    def test_horizontal_rule_in_body_kept(self):
        _, body = split_document(DOC + "\n---\n\nMore.\n")
        assert "---" in body
        assert body.endswith("More.\n")

    def test_indented_marker_does_not_close(self):
        with pytest.raises(MalformedDocument, match="closing"):
            split_document("---\ntitle: x\n  ---\nBody\n", path="indented.md")

    def test_trailing_spaces_after_closing_marker(self):
        meta, body = split_document("---\ntitle: x\n---   \nBody\n")
        assert meta == "title: x\n"
        assert body == "Body\n"


# ── parse_frontmatter ─────────────────────────────────────────

class TestParseFrontmatter:
    def test_yaml_dates_become_date_objects(self):
        fm, _ = parse_frontmatter(DOC)
        assert fm == {"title": "Hello", "published_at": date(2021, 2, 1)}

    def test_empty_block(self):
        fm, body = parse_frontmatter("---\n---\nBody\n")
        assert fm == {}
        assert body == "Body\n"

    def test_invalid_yaml(self):
        with pytest.raises(MalformedDocument, match="YAML"):
            parse_frontmatter("---\ntitle: [unclosed\n---\n")

    def test_non_mapping_block(self):
        with pytest.raises(MalformedDocument, match="mapping"):
            parse_frontmatter("---\n- a\n- b\n---\n")

    def test_impossible_date_kept_as_text(self):
        fm, _ = parse_frontmatter("---\ntitle: T\npublished_at: 2021-02-30\n---\n")
        assert fm["published_at"] == "2021-02-30"

    def test_impossible_date_is_invalid_date(self):
        fm, _ = parse_frontmatter("---\ntitle: T\npublished_at: 2021-02-30\n---\n")
        with pytest.raises(InvalidDate) as exc:
            validate_metadata(fm, path="leap.md")
        assert exc.value.path == "leap.md"


# ── frontmatter_block round trip ──────────────────────────────

class TestRoundTrip:
    @pytest.mark.parametrize(
        "raw",
        [
            {"title": "Hello", "published_at": "2021-02-01"},
            {
                "title": "Tagged: a post",
                "published_at": date(2020, 12, 31),
                "description": "With a colon: and 'quotes'",
                "tags": "python, web, python",
            },
            {"title": "Ünïcode", "published_at": "2019-01-05", "tags": ["é", "b"]},
        ],
    )
    def test_known_fields_survive_reserialization(self, raw):
        meta = validate_metadata(raw)
        again, _ = parse_frontmatter(frontmatter_block(meta.to_frontmatter()) + "Body")
        assert validate_metadata(again) == meta

    def test_dates_dumped_as_plain_scalars(self):
        block = frontmatter_block({"published_at": date(2021, 3, 1)})
        assert "published_at: 2021-03-01\n" in block
        assert block.startswith("---\n") and block.endswith("---\n\n")
