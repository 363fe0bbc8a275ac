"""Shared fixtures for HangulFinder tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Set, Tuple

import pytest

from hangulfinder.config import AppConfig
from hangulfinder.index.engine import HangulSearchEngine
from hangulfinder.models import DocumentRef

NOW = 1_700_000_000.0
DAY = 60 * 60 * 24


class FakeProvider:
    """In-memory document provider that records reads."""

    def __init__(self) -> None:
        self.docs: Dict[str, Tuple[DocumentRef, str]] = {}
        self.reads: List[str] = []
        self.failing: Set[str] = set()

    def put(
        self,
        path: str,
        content: str = "",
        *,
        size: int = 5000,
        mtime: float = NOW - 30 * DAY,
    ) -> DocumentRef:
        ref = DocumentRef(path=path, display_name=Path(path).stem, size=size, mtime=mtime)
        self.docs[path] = (ref, content)
        return ref

    def drop(self, path: str) -> None:
        del self.docs[path]

    def list_all(self) -> List[DocumentRef]:
        return [ref for ref, _ in self.docs.values()]

    def read_content(self, ref: DocumentRef) -> str:
        self.reads.append(ref.path)
        if ref.path in self.failing:
            raise OSError(f"cannot read {ref.path}")
        return self.docs[ref.path][1]


@pytest.fixture
def provider() -> FakeProvider:
    fake = FakeProvider()
    fake.put("가-note.md", "가 노트 첫 줄\n둘째 줄\n셋째 줄\n넷째 줄")
    fake.put("나-note.md", "나 노트")
    fake.put("other.md", "something else")
    return fake


@pytest.fixture
def engine(provider: FakeProvider) -> HangulSearchEngine:
    return HangulSearchEngine(provider, AppConfig(), clock=lambda: NOW)
