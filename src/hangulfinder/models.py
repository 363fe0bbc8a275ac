"""Core HangulFinder data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class DocumentRef:
    """What the document provider knows about a file without reading it."""

    path: str
    display_name: str
    size: int
    mtime: float


@dataclass(slots=True)
class DocumentRecord:
    """Indexed state of one document, keyed by ``path``."""

    path: str
    display: str
    jamo: str
    size: int
    mtime: float
    content: str = ""
    content_jamo: str = ""
    content_loaded: bool = False


@dataclass(slots=True)
class SearchHit:
    path: str
    display: str
    score: float
    match_score: float
    strategy: str
    size: int
    mtime: float
    content: str = ""
    ranges: Optional[List[Tuple[int, int]]] = None


class ChangeKind(str, Enum):
    CREATED = "created"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A change notification from the host; ``old_path`` is set for renames."""

    kind: ChangeKind
    ref: Optional[DocumentRef] = None
    path: Optional[str] = None
    old_path: Optional[str] = None
