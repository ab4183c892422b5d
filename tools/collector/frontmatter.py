from __future__ import annotations

import pathlib
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import MalformedDocument
from .utils import _norm_text

DELIMITER = "---"


class FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps calendar-impossible dates (2021-02-30) as strings."""


def _lenient_timestamp(loader, node):
    try:
        return loader.construct_yaml_timestamp(node)
    except ValueError:
        return loader.construct_scalar(node)


FrontMatterLoader.add_constructor("tag:yaml.org,2002:timestamp", _lenient_timestamp)


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\n").rstrip() == DELIMITER


def split_document(
    text: str,
    path: Optional[pathlib.Path] = None,
    required: bool = True,
) -> Tuple[Optional[str], str]:
    """Split ``text`` into the raw metadata block and the body.

    The block opens with a ``---`` line at the start of the document and
    closes at the next ``---`` line. Without an opening marker the whole
    text is body, which is only acceptable when ``required`` is false.
    """
    text = _norm_text(text)
    lines = text.splitlines(keepends=True)

    start = 0
    while start < len(lines) and lines[start].strip() == "":
        start += 1
    if start >= len(lines) or not _is_delimiter(lines[start]):
        if required:
            raise MalformedDocument(
                f"missing opening '{DELIMITER}' metadata marker", path
            )
        return None, text

    for i in range(start + 1, len(lines)):
        if _is_delimiter(lines[i]):
            meta_text = "".join(lines[start + 1 : i])
            body = "".join(lines[i + 1 :])
            return meta_text, body.lstrip("\n")

    raise MalformedDocument(
        f"missing closing '{DELIMITER}' metadata marker", path
    )


def parse_frontmatter(
    text: str,
    path: Optional[pathlib.Path] = None,
    required: bool = True,
) -> Tuple[Optional[Dict[str, Any]], str]:
    meta_text, body = split_document(text, path=path, required=required)
    if meta_text is None:
        return None, body
    try:
        fm = yaml.load(meta_text, Loader=FrontMatterLoader)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise MalformedDocument(f"metadata is not valid YAML: {exc}", path) from exc
    if fm is None:
        return {}, body
    if not isinstance(fm, dict):
        raise MalformedDocument(
            f"metadata must be a mapping, got {type(fm).__name__}", path
        )
    return fm, body


def frontmatter_block(data: Dict[str, Any]) -> str:
    def _fmt(v):
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, (set, frozenset)):
            return sorted(v)
        return v

    # PyYAML dumps date objects as plain YYYY-MM-DD scalars
    dumped = yaml.safe_dump(
        {k: _fmt(v) for k, v in data.items()},
        sort_keys=False,
        allow_unicode=True,
    ).rstrip()
    return f"{DELIMITER}\n{dumped}\n{DELIMITER}\n\n"
