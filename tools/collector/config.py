#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

# ---------- Paths

# This assumes config.py sits in tools/collector/ at the repo root.
ROOT = pathlib.Path(__file__).resolve().parents[2]
CONFIG_FILE_NAME = "blog.config.yml"

# ---------- Config

DOCUMENT_SUFFIXES = (".md", ".ipynb")
ASSET_SOURCE_DIR_CANDIDATES = ("assets", "_assets")
CONTENT_DIR_NAME = "_content"
MAX_TOC_DEPTH = 3
REQUIRED_FIELDS = ("title", "published_at")

# Some shared regexes

MD_LINK_IMG = re.compile(
    r'(!?)\[(?P<alt>[^\]]*)\]\((?P<url>[^)\s]+)(?:\s+"[^"]*")?\)'
)
HTML_SRC_OR_HREF = re.compile(
    r'(?P<attr>\bsrc\b|\bhref\b)\s*=\s*([\'"])(?P<url>[^\'"]+)\2'
)
MD_HEADING = re.compile(r"^(?P<hash>#{1,6})[ \t]+(?P<text>.+?)(?:[ \t]+#+)?[ \t]*$",
                        re.MULTILINE)
SETEXT_RE = re.compile(
    r'^(?P<text>[^\s#>\-=*].*?)\n(?P<underline>=+|-+)[ \t]*$', re.MULTILINE
)
FENCE = re.compile(r"(^(?:```|~~~).*?$)(.*?)(^(?:```|~~~)\s*$)",
                   re.MULTILINE | re.DOTALL)
INLINE_MATH = re.compile(r'(?<!\\)\$(.+?)(?<!\\)\$')
BLOCK_MATH = re.compile(
    r'(^\$\$.*?^\$\$)', re.MULTILINE | re.DOTALL
)
SLUG_RE = re.compile(r"[^a-z0-9-]+")
WORD_RE = re.compile(r"[\w'’-]+")
ABSOLUTE_URL = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


@dataclass(frozen=True)
class SiteConfig:
    root: pathlib.Path = ROOT
    content_dir: str = "content/articles"
    output_dir: str = "dist"
    asset_base: str = "/articles"
    date_format: str = "%Y-%m-%d"
    display_date_format: str = "%d %B %Y"
    words_per_minute: int = 200
    site_url: str = ""
    port: int = 3000

    @property
    def content_path(self) -> pathlib.Path:
        return (self.root / self.content_dir).resolve()

    @property
    def output_path(self) -> pathlib.Path:
        return (self.root / self.output_dir).resolve()

    @classmethod
    def from_mapping(
        cls, data: Dict[str, Any], root: pathlib.Path = ROOT
    ) -> "SiteConfig":
        """Build a config from a parsed YAML mapping.

        Unknown keys are ignored; values of the wrong type raise ConfigError.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILE_NAME} must hold a mapping")
        kwargs: Dict[str, Any] = {"root": root}
        for f in fields(cls):
            if f.name == "root" or f.name not in data:
                continue
            value = data[f.name]
            expected = int if f.name in ("words_per_minute", "port") else str
            if isinstance(value, bool) or not isinstance(value, expected):
                raise ConfigError(
                    f"{f.name}: expected {expected.__name__}, "
                    f"got {type(value).__name__}"
                )
            kwargs[f.name] = value
        if kwargs.get("words_per_minute", 1) <= 0:
            raise ConfigError("words_per_minute must be positive")
        return cls(**kwargs)


def load_config(root: Optional[pathlib.Path] = None) -> SiteConfig:
    root = pathlib.Path(root or ROOT).resolve()
    path = root / CONFIG_FILE_NAME
    if not path.exists():
        return SiteConfig(root=root)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    return SiteConfig.from_mapping(data, root=root)
