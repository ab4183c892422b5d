from __future__ import annotations

import copy
from typing import Optional

from nbformat import NotebookNode

from .utils import _norm_text

REMOVE_CELL_TAGS = {"remove-cell", "hide-cell", "remove_cell", "hide_cell"}
HIDE_INPUT_TAGS = {"hide-input", "remove-input", "hide_input", "remove_input"}
HIDE_OUTPUT_TAGS = {"hide-output", "remove-output", "hide_output", "remove_output"}


def cell_tags(cell: NotebookNode) -> set:
    md = cell.get("metadata") or {}
    return set(md.get("tags") or [])


def _is_empty(cell: NotebookNode) -> bool:
    src = _norm_text(cell.get("source", "")).strip()
    if cell.get("cell_type") == "code":
        return src == "" and not cell.get("outputs")
    if cell.get("cell_type") == "markdown":
        return src == "" and not cell.get("attachments")
    return src == ""


def visible_cell(cell: NotebookNode) -> Optional[NotebookNode]:
    """Return the cell as it should be published, or None to drop it.

    Honours cell tags and the ``jupyter.source_hidden`` /
    ``jupyter.outputs_hidden`` flags Jupyter writes when a cell is collapsed.
    The input cell is never mutated.
    """
    tags = cell_tags(cell)
    if tags & REMOVE_CELL_TAGS:
        return None

    md = cell.get("metadata") or {}
    jup = md.get("jupyter") if isinstance(md.get("jupyter"), dict) else {}
    kind = cell.get("cell_type")

    source_hidden = bool(jup.get("source_hidden")) or bool(tags & HIDE_INPUT_TAGS)
    outputs_hidden = bool(jup.get("outputs_hidden")) or bool(tags & HIDE_OUTPUT_TAGS)

    if source_hidden and kind == "markdown":
        return None

    out = copy.deepcopy(cell)
    if source_hidden and kind == "code":
        out["source"] = ""
    if outputs_hidden and kind == "code":
        out["outputs"] = []
        out["execution_count"] = None

    if _is_empty(out):
        return None
    return out


def apply_visibility(nb: NotebookNode) -> NotebookNode:
    nb.cells = [c for c in (visible_cell(cell) for cell in nb.cells) if c is not None]
    return nb
