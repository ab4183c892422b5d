from __future__ import annotations

import hashlib
import pathlib
from typing import Any, Dict, List, Tuple

import nbformat
from nbconvert import MarkdownExporter
from nbformat.reader import NotJSONError

from .config import DOCUMENT_SUFFIXES
from .errors import MalformedDocument
from .frontmatter import parse_frontmatter
from .models import Article
from .utils import _norm_text, natural_key, slugify
from .validation import validate_metadata
from .visibility import apply_visibility


def _is_hidden(rel: pathlib.Path) -> bool:
    return any(part.startswith((".", "_")) for part in rel.parts)


def discover(content_dir: pathlib.Path) -> List[pathlib.Path]:
    content_dir = pathlib.Path(content_dir)
    if not content_dir.is_dir():
        print(f"- no content directory at {content_dir}")
        return []
    found = []
    for p in content_dir.rglob("*"):
        if not p.is_file() or p.suffix.lower() not in DOCUMENT_SUFFIXES:
            continue
        if _is_hidden(p.relative_to(content_dir)):
            continue
        found.append(p)
    found.sort(key=lambda p: natural_key(p.relative_to(content_dir).as_posix()))
    return found


def slug_for(path: pathlib.Path) -> str:
    return slugify(pathlib.Path(path).stem) or "article"


def _read_text(path: pathlib.Path) -> str:
    try:
        return _norm_text(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"not valid UTF-8: {exc}", path) from exc
    except OSError as exc:
        raise MalformedDocument(f"cannot read file: {exc}", path) from exc


def read_markdown(path: pathlib.Path) -> Tuple[Dict[str, Any], str, tuple]:
    fm, body = parse_frontmatter(_read_text(path), path=path, required=True)
    return fm, body, ()


def read_notebook(path: pathlib.Path) -> Tuple[Dict[str, Any], str, tuple]:
    """Load a notebook as (metadata, markdown body, output attachments).

    Metadata comes from a leading raw cell holding a ``---`` block, or from
    the notebook metadata when there is none. Anything in that raw cell
    after the block is kept as body text.
    """
    try:
        nb = nbformat.read(str(path), as_version=4)
        nbformat.validate(nb)
    except (NotJSONError, nbformat.ValidationError, UnicodeDecodeError) as exc:
        raise MalformedDocument(f"invalid notebook: {exc}", path) from exc
    except OSError as exc:
        raise MalformedDocument(f"cannot read file: {exc}", path) from exc

    fm: Dict[str, Any]
    cells = nb.cells
    if cells and cells[0].get("cell_type") == "raw":
        first = _norm_text(cells[0].get("source", ""))
        if first.lstrip().startswith("---"):
            fm, rest = parse_frontmatter(first, path=path, required=True)
            if rest.strip():
                # text after the closing marker stays in the body
                cells[0].source = rest
            else:
                nb.cells = cells[1:]
        else:
            fm = dict(nb.metadata)
    else:
        fm = dict(nb.metadata)

    apply_visibility(nb)

    body, resources = MarkdownExporter().from_notebook_node(nb)

    # deterministic, content-addressed names for output blobs
    attachments = []
    for name, data in sorted((resources.get("outputs") or {}).items()):
        p = pathlib.Path(name)
        h = hashlib.sha256(data).hexdigest()[:8]
        new_name = f"{slugify(p.stem) or 'output'}.{h}{p.suffix}"
        if new_name != name:
            body = body.replace(name, new_name)
        attachments.append((new_name, data))

    return fm, _norm_text(body), tuple(attachments)


READERS = {
    ".md": read_markdown,
    ".ipynb": read_notebook,
}


def load_article(path: pathlib.Path, date_format: str = "%Y-%m-%d") -> Article:
    path = pathlib.Path(path)
    reader = READERS.get(path.suffix.lower())
    if reader is None:
        raise MalformedDocument(f"unsupported document type {path.suffix!r}", path)
    fm, body, attachments = reader(path)
    meta = validate_metadata(fm, date_format=date_format, path=path)
    return Article.from_meta(
        slug_for(path), meta, body, source_path=path, attachments=attachments
    )
