"""Filesystem change notifications for a markdown vault."""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import List, Optional

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from hangulfinder.index.engine import HangulSearchEngine
from hangulfinder.ingestion.markdown_loader import MarkdownVaultProvider
from hangulfinder.models import ChangeEvent, ChangeKind, DocumentRef

LOGGER = logging.getLogger(__name__)


def _as_str(path: str | bytes) -> str:
    if isinstance(path, str):
        return path
    return bytes(path).decode("utf-8", errors="replace")


class VaultEventHandler(FileSystemEventHandler):
    """Turns watchdog events into ``ChangeEvent``s on a thread-safe queue.

    Runs on the observer thread and never touches the engine; the writer
    drains ``events`` on its own thread.
    """

    def __init__(self, provider: MarkdownVaultProvider, events: "queue.Queue[ChangeEvent]") -> None:
        super().__init__()
        self.provider = provider
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        change = self.to_change(event)
        if change is not None:
            LOGGER.debug("Queued %s for %s", change.kind.value, change.path)
            self.events.put(change)

    def to_change(self, event: FileSystemEvent) -> Optional[ChangeEvent]:
        src = Path(_as_str(event.src_path))

        if isinstance(event, FileMovedEvent):
            dest = Path(_as_str(event.dest_path))
            src_ok = self.provider.accepts(src)
            dest_ok = self.provider.accepts(dest)
            if src_ok and dest_ok:
                ref = self._ref(dest)
                if ref is None:
                    return None
                return ChangeEvent(
                    ChangeKind.RENAMED, ref=ref, path=ref.path, old_path=self.provider.relative_path(src)
                )
            if src_ok:
                return ChangeEvent(ChangeKind.DELETED, path=self.provider.relative_path(src))
            if dest_ok:
                return self._upsert(ChangeKind.CREATED, dest)
            return None

        if not self.provider.accepts(src):
            return None

        if isinstance(event, FileDeletedEvent):
            return ChangeEvent(ChangeKind.DELETED, path=self.provider.relative_path(src))
        if isinstance(event, FileCreatedEvent):
            return self._upsert(ChangeKind.CREATED, src)
        if isinstance(event, FileModifiedEvent):
            return self._upsert(ChangeKind.MODIFIED, src)
        return None

    def _upsert(self, kind: ChangeKind, path: Path) -> Optional[ChangeEvent]:
        ref = self._ref(path)
        if ref is None:
            return None
        return ChangeEvent(kind, ref=ref, path=ref.path)

    def _ref(self, path: Path) -> Optional[DocumentRef]:
        try:
            return self.provider.ref_for(path)
        except OSError as exc:
            # Gone again before we could stat it; a delete event follows.
            LOGGER.debug("Skipping %s: %s", path, exc)
            return None


class VaultWatcher:
    """Watches a vault directory and feeds changes to a search engine."""

    def __init__(self, provider: MarkdownVaultProvider) -> None:
        self.provider = provider
        self.events: "queue.Queue[ChangeEvent]" = queue.Queue()
        self._handler = VaultEventHandler(provider, self.events)
        self._observer: Observer | None = None  # type: ignore[valid-type]

    @property
    def handler(self) -> VaultEventHandler:
        return self._handler

    def start(self) -> None:
        root = self.provider.root
        if not root.is_dir():
            raise ValueError(f"Vault path is not a directory: {root}")

        observer = Observer()
        observer.schedule(self._handler, str(root), recursive=True)
        observer.start()
        self._observer = observer
        LOGGER.info("Watching %s for changes", root)

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None
            LOGGER.info("Stopped watching %s", self.provider.root)

    def drain(self, engine: HangulSearchEngine) -> List[ChangeEvent]:
        """Apply every queued change to ``engine``; call from the writer thread."""
        applied = []
        while True:
            try:
                change = self.events.get_nowait()
            except queue.Empty:
                break
            engine.apply(change)
            applied.append(change)
        if applied:
            LOGGER.info("Applied %d vault changes", len(applied))
        return applied
