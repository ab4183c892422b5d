from __future__ import annotations

import pathlib
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, List, Optional
from urllib.parse import urlparse

from .config import REQUIRED_FIELDS
from .errors import InvalidDate, InvalidField, MissingField
from .models import ArticleMeta


def _is_blank(v) -> bool:
    return v is None or (isinstance(v, str) and v.strip() == "")


def parse_date(value, date_format: str, path: Optional[pathlib.Path] = None) -> date:
    # YAML already turns unquoted ISO dates into date/datetime objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip().strip('"').strip("'")
        try:
            return datetime.strptime(s, date_format).date()
        except ValueError:
            pass
    raise InvalidDate(value, date_format, path)


def parse_tags(value, path: Optional[pathlib.Path] = None) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: List[Any] = value.split(",")
        if value.strip() == "":
            return frozenset()
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise InvalidField(
            "tags", "expected a comma-separated string or a list", path
        )

    tags = set()
    for item in items:
        if not isinstance(item, str):
            raise InvalidField("tags", f"tag {item!r} is not a string", path)
        tag = item.strip()
        if not tag:
            raise InvalidField("tags", "tags must not be empty strings", path)
        tags.add(tag)
    return frozenset(tags)


def _optional_str(raw: Dict[str, Any], key: str, path) -> Optional[str]:
    value = raw.get(key)
    if _is_blank(value):
        return None
    if not isinstance(value, str):
        raise InvalidField(key, f"expected a string, got {type(value).__name__}", path)
    return value.strip()


def _check_absolute_url(key: str, value: Optional[str], path) -> Optional[str]:
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidField(key, f"{value!r} is not an absolute http(s) URL", path)
    return value


def validate_metadata(
    raw: Dict[str, Any],
    date_format: str = "%Y-%m-%d",
    path: Optional[pathlib.Path] = None,
) -> ArticleMeta:
    """Map a loosely-typed front-matter mapping onto ``ArticleMeta``.

    Every absent required key is reported in a single MissingField.
    Unknown keys are ignored.
    """
    missing = [k for k in REQUIRED_FIELDS if _is_blank(raw.get(k))]
    if missing:
        raise MissingField(missing, path)

    title = raw["title"]
    if not isinstance(title, str):
        raise InvalidField("title", f"expected a string, got {type(title).__name__}", path)

    description = raw.get("description")
    if description is None:
        description = ""
    elif not isinstance(description, str):
        raise InvalidField(
            "description", f"expected a string, got {type(description).__name__}", path
        )

    return ArticleMeta(
        title=title.strip(),
        published_at=parse_date(raw["published_at"], date_format, path),
        description=description.strip(),
        tags=parse_tags(raw.get("tags"), path),
        cover_image=_optional_str(raw, "cover_image", path),
        cover_image_author=_optional_str(raw, "cover_image_author", path),
        cover_image_link=_check_absolute_url(
            "cover_image_link", _optional_str(raw, "cover_image_link", path), path
        ),
        canonical_url=_check_absolute_url(
            "canonical_url", _optional_str(raw, "canonical_url", path), path
        ),
    )
