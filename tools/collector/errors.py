from __future__ import annotations

import pathlib
from typing import Iterable, List, Optional, Sequence


class ContentError(Exception):
    """Base class for everything the content pipeline raises."""

    def __init__(self, message: str, path: Optional[pathlib.Path] = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class ConfigError(ContentError):
    pass


class MalformedDocument(ContentError):
    """The front-matter block is missing, unterminated or not YAML."""


class MissingField(ContentError):
    """One or more required metadata keys are absent.

    All missing keys of a document are reported together in ``fields``.
    """

    def __init__(self, fields: Sequence[str], path: Optional[pathlib.Path] = None):
        self.fields = tuple(fields)
        noun = "field" if len(self.fields) == 1 else "fields"
        super().__init__(
            f"missing required {noun}: {', '.join(self.fields)}", path
        )


class InvalidField(ContentError):
    def __init__(self, field: str, reason: str, path: Optional[pathlib.Path] = None):
        self.field = field
        super().__init__(f"{field}: {reason}", path)


class InvalidDate(InvalidField):
    def __init__(self, value, date_format: str, path: Optional[pathlib.Path] = None):
        self.value = value
        self.date_format = date_format
        super().__init__(
            "published_at",
            f"{value!r} does not match date format {date_format!r}",
            path,
        )


class DuplicateSlug(ContentError):
    def __init__(self, slug: str, paths: Iterable[pathlib.Path]):
        self.slug = slug
        self.paths = tuple(paths)
        joined = ", ".join(str(p) for p in self.paths)
        super().__init__(f"duplicate slug {slug!r} used by {joined}")


class NotFound(ContentError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"no article with slug {slug!r}")


class BuildFailed(ContentError):
    """Raised once per build with every per-document error collected."""

    def __init__(self, errors: Sequence[ContentError]):
        self.errors: List[ContentError] = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        super().__init__(f"content build failed with {len(self.errors)} {noun}")

    def diagnostics(self) -> List[str]:
        return [str(e) for e in self.errors]
