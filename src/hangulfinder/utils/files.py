"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Sequence


def iter_document_paths(inputs: Iterable[Path], extensions: Sequence[str] = (".md",)) -> Iterator[Path]:
    """Yield document paths from input paths, descending into directories."""
    suffixes = {ext.lower() for ext in extensions}
    for item in inputs:
        if item.is_dir():
            children = sorted(child for child in item.rglob("*") if child.is_file())
            yield from iter_document_paths(children, extensions)
        elif item.is_file() and item.suffix.lower() in suffixes:
            yield item


def is_hidden(path: Path, root: Path) -> bool:
    """True when any component below ``root`` starts with a dot."""
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part.startswith(".") for part in parts)
