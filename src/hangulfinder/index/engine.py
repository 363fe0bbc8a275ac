"""Hangul-aware search over a live document collection.

Every query runs up to four strategies against the indexed documents and keeps
the best relevance per path:

* direct - the raw query against display names and content previews
* decomposed - the jamo form of the query against the jamo fields
* initial-consonant - ``ㅎㄱ`` finds ``한글`` by leading consonants
* partial-syllable - ``한ㄱ`` finds ``한글`` by decomposed containment

Builds and content hydration process documents in batches and yield to the
event loop between batches. All mutation happens on the caller's thread.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from hangulfinder.config import AppConfig
from hangulfinder.hangul.codec import decompose_to_string, initial_consonants, range_search
from hangulfinder.index.weighted import ConfigurationError, FieldKey, IndexHit, WeightedIndex
from hangulfinder.ingestion.markdown_loader import DocumentProvider
from hangulfinder.models import ChangeEvent, ChangeKind, DocumentRecord, DocumentRef, SearchHit
from hangulfinder.utils.text import make_preview

LOGGER = logging.getLogger(__name__)


class Strategy(str, Enum):
    DIRECT = "direct"
    DECOMPOSED = "decomposed"
    INITIAL_CONSONANT = "initial-consonant"
    PARTIAL_SYLLABLE = "partial-syllable"


STRATEGY_BONUS: Dict[Strategy, float] = {
    Strategy.DIRECT: 5.0,
    Strategy.INITIAL_CONSONANT: 3.0,
    Strategy.PARTIAL_SYLLABLE: 2.0,
    Strategy.DECOMPOSED: 1.0,
}

# Fixed matcher scores for the strategies that do not go through the index.
INITIAL_CONSONANT_SCORE = 0.3
PARTIAL_SYLLABLE_SCORE = 0.2

EXACT_NAME_BONUS = 10.0
NAME_CONTAINS_BONUS = 5.0
CONTENT_CONTAINS_BONUS = 2.0
RECENT_BONUS = 1.0
SMALL_FILE_BONUS = 0.5

SECONDS_PER_DAY = 60 * 60 * 24

INDEXED_FIELDS = ("display", "content", "jamo", "content_jamo")

_INITIALS_ONLY_RE = re.compile(r"^[ㄱ-ㅎ]+$")
_COMPLETE_RE = re.compile(r"[가-힣]")
_CONSONANT_RE = re.compile(r"[ㄱ-ㅎ]")


def _record_path(record: DocumentRecord) -> str:
    return record.path


def is_initial_consonant_query(query: str) -> bool:
    """``ㅎㄱ``: nothing but consonant jamo."""
    return bool(_INITIALS_ONLY_RE.match(query))


def is_partial_syllable_query(query: str) -> bool:
    """``한ㄱ``: complete syllables mixed with bare consonants."""
    return bool(_COMPLETE_RE.search(query)) and bool(_CONSONANT_RE.search(query))


class HangulSearchEngine:
    """Owns the document collection and answers Hangul-aware queries."""

    def __init__(
        self,
        provider: DocumentProvider,
        config: AppConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.provider = provider
        self.config = config or AppConfig()
        self.clock = clock
        self._records: List[DocumentRecord] = []
        self._by_path: Dict[str, DocumentRecord] = {}
        # path -> (mtime, size, preview)
        self._content_cache: Dict[str, Tuple[float, int, str]] = {}
        # Insertion-ordered set of paths waiting for content.
        self._pending: Dict[str, None] = {}
        self._hydration_task: Optional[asyncio.Task] = None
        self._rebuild_indexes()

    # ------------------------------------------------------------------
    # Collection lifecycle

    async def build(self) -> int:
        """Re-index every document the provider lists, metadata only."""
        refs = self.provider.list_all()
        batch_size = max(1, self.config.build_batch_size)
        records: Dict[str, DocumentRecord] = {}

        for start in range(0, len(refs), batch_size):
            for ref in refs[start : start + batch_size]:
                records[ref.path] = self._make_record(ref)
            if start + batch_size < len(refs):
                await asyncio.sleep(0)

        self._records = list(records.values())
        self._by_path = records
        self._pending.clear()
        self._rebuild_indexes()
        LOGGER.info("Indexed %d documents", len(self._records))
        return len(self._records)

    def add_document(self, ref: DocumentRef) -> None:
        if ref.path in self._by_path:
            self.update_document(ref)
            return

        record = self._make_record(ref)
        self._records.append(record)
        self._by_path[record.path] = record
        self._direct.add(record)
        self._decomposed.add(record)
        LOGGER.debug("Added %s", ref.path)

    def remove_document(self, path: str) -> bool:
        record = self._by_path.pop(path, None)
        if record is None:
            return False

        idx = self._position(record)
        del self._records[idx]
        self._direct.remove_at(idx)
        self._decomposed.remove_at(idx)
        self._content_cache.pop(path, None)
        self._pending.pop(path, None)
        LOGGER.debug("Removed %s", path)
        return True

    def update_document(self, ref: DocumentRef) -> None:
        existing = self._by_path.get(ref.path)
        if existing is None:
            self.add_document(ref)
            return

        self._content_cache.pop(ref.path, None)
        record = self._make_record(ref)
        idx = self._position(existing)
        self._records[idx] = record
        self._by_path[record.path] = record
        self._direct.replace_at(idx, record)
        self._decomposed.replace_at(idx, record)
        LOGGER.debug("Updated %s", ref.path)

    def rename_document(self, old_path: str, ref: DocumentRef) -> None:
        cached = self._content_cache.pop(old_path, None)
        self.remove_document(old_path)
        if cached is not None:
            self._content_cache[ref.path] = cached
        self.add_document(ref)
        LOGGER.debug("Renamed %s -> %s", old_path, ref.path)

    def apply(self, event: ChangeEvent) -> None:
        """Route a change notification to the matching lifecycle operation."""
        if event.kind is ChangeKind.DELETED:
            path = event.path or (event.ref.path if event.ref else None)
            if path:
                self.remove_document(path)
            return

        if event.ref is None:
            LOGGER.warning("Ignoring %s event without a document", event.kind.value)
            return

        if event.kind is ChangeKind.CREATED:
            self.add_document(event.ref)
        elif event.kind is ChangeKind.MODIFIED:
            self.update_document(event.ref)
        elif event.kind is ChangeKind.RENAMED:
            self.rename_document(event.old_path or event.ref.path, event.ref)

    def set_threshold(self, value: float) -> None:
        if not 0 <= value <= 1:
            raise ValueError(f"Threshold must be between 0 and 1, got {value}")
        self.config.threshold = value
        self._rebuild_indexes()

    def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records = []
        self._by_path = {}
        self._content_cache.clear()
        self._pending.clear()
        self._rebuild_indexes()

    def get(self, path: str) -> Optional[DocumentRecord]:
        return self._by_path.get(path)

    @property
    def records(self) -> List[DocumentRecord]:
        return list(self._records)

    # ------------------------------------------------------------------
    # Search

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        query = query.strip() if query else ""
        if not query:
            return []
        if limit is None:
            limit = self.config.max_results

        results: Dict[str, SearchHit] = {}
        self._search_index(self._direct, query, query, Strategy.DIRECT, results)

        decomposed = decompose_to_string(query)
        if decomposed != query:
            LOGGER.debug("Decomposed query %r -> %r", query, decomposed)
            self._search_index(self._decomposed, decomposed, query, Strategy.DECOMPOSED, results)

        if is_initial_consonant_query(query):
            self._search_initials(query, results)

        if is_partial_syllable_query(query):
            self._search_partial(query, results)

        # Ties break on path so the answer does not depend on collection order.
        hits = sorted(results.values(), key=lambda hit: (-hit.score, hit.path))[: max(limit, 0)]
        LOGGER.debug("Query %r matched %d documents", query, len(results))

        self._schedule_hydration(hit.path for hit in hits[: self.config.hydrate_top_k])
        return hits

    def _search_index(
        self,
        index: WeightedIndex,
        term: str,
        query: str,
        strategy: Strategy,
        results: Dict[str, SearchHit],
    ) -> None:
        index_hits = index.search(term, limit=self.config.strategy_limit)
        LOGGER.debug("Strategy %s found %d results for %r", strategy.value, len(index_hits), term)
        for index_hit in index_hits:
            record: DocumentRecord = index_hit.item
            ranges = None
            if self.config.include_matches:
                ranges = self._index_ranges(index_hit, record, query, strategy)
            self._merge(record, query, index_hit.score, strategy, results, ranges)

    def _search_initials(self, query: str, results: Dict[str, SearchHit]) -> None:
        for record in self._records:
            initials = initial_consonants(record.display)
            offset = initials.find(query)
            if offset > -1:
                ranges = [(offset, offset + len(query) - 1)] if self.config.include_matches else None
                self._merge(
                    record, query, INITIAL_CONSONANT_SCORE, Strategy.INITIAL_CONSONANT, results, ranges
                )

    def _search_partial(self, query: str, results: Dict[str, SearchHit]) -> None:
        pattern = decompose_to_string(query)
        for record in self._records:
            if pattern in record.jamo:
                ranges = range_search(record.display, query) if self.config.include_matches else None
                self._merge(
                    record, query, PARTIAL_SYLLABLE_SCORE, Strategy.PARTIAL_SYLLABLE, results, ranges
                )

    def _index_ranges(
        self, index_hit: IndexHit, record: DocumentRecord, query: str, strategy: Strategy
    ) -> Optional[List[Tuple[int, int]]]:
        if strategy is Strategy.DIRECT:
            for match in index_hit.matches:
                if match.key.name == "display" and match.indices:
                    return list(match.indices)
            return None
        return range_search(record.display, query) or None

    def _merge(
        self,
        record: DocumentRecord,
        query: str,
        match_score: float,
        strategy: Strategy,
        results: Dict[str, SearchHit],
        ranges: Optional[List[Tuple[int, int]]] = None,
    ) -> None:
        score = self.relevance(record, query, match_score, strategy)
        current = results.get(record.path)
        if current is not None and current.score >= score:
            return
        results[record.path] = SearchHit(
            path=record.path,
            display=record.display,
            score=score,
            match_score=match_score,
            strategy=strategy.value,
            size=record.size,
            mtime=record.mtime,
            content=record.content,
            ranges=ranges,
        )

    def relevance(
        self, record: DocumentRecord, query: str, match_score: float, strategy: Strategy
    ) -> float:
        """Higher is better: inverted matcher score plus strategy and document boosts."""
        score = 1 - match_score + STRATEGY_BONUS[strategy]

        query_lower = query.lower()
        display_lower = record.display.lower()
        if display_lower == query_lower:
            score += EXACT_NAME_BONUS
        elif query_lower in display_lower:
            score += NAME_CONTAINS_BONUS

        if record.content and query_lower in record.content.lower():
            score += CONTENT_CONTAINS_BONUS

        days_since_modified = (self.clock() - record.mtime) / SECONDS_PER_DAY
        if days_since_modified < self.config.recent_days:
            score += RECENT_BONUS

        if record.size < self.config.small_file_bytes:
            score += SMALL_FILE_BONUS

        return score

    # ------------------------------------------------------------------
    # Content hydration

    def _schedule_hydration(self, paths: Iterable[str]) -> None:
        if not self.config.index_content:
            return

        for path in paths:
            record = self._by_path.get(path)
            if record is not None and not record.content_loaded:
                self._pending[path] = None
        if not self._pending:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the queue is drained by the next hydrate_pending().
            return
        task = self._hydration_task
        if task is None or task.done() or task.get_loop() is not loop:
            self._hydration_task = loop.create_task(self.hydrate_pending())

    @property
    def pending_hydration(self) -> List[str]:
        return list(self._pending)

    async def hydrate(self, paths: Iterable[str]) -> int:
        for path in paths:
            if path in self._by_path:
                self._pending[path] = None
        return await self.hydrate_pending()

    async def hydrate_pending(self) -> int:
        """Load content previews for queued paths, one small batch at a time."""
        batch_size = max(1, self.config.hydrate_batch_size)
        hydrated = 0
        while self._pending:
            batch = list(self._pending)[:batch_size]
            for path in batch:
                self._pending.pop(path, None)
                if self._hydrate_one(path):
                    hydrated += 1
            await asyncio.sleep(0)
        if hydrated:
            LOGGER.debug("Hydrated content for %d documents", hydrated)
        return hydrated

    async def wait_for_hydration(self) -> int:
        task = self._hydration_task
        hydrated = 0
        if task is not None and not task.done() and task.get_loop() is asyncio.get_running_loop():
            hydrated += await task
        hydrated += await self.hydrate_pending()
        return hydrated

    def _hydrate_one(self, path: str) -> bool:
        record = self._by_path.get(path)
        if record is None or record.content_loaded:
            return False

        preview = self._cached_preview(record)
        if preview is None:
            ref = DocumentRef(path, record.display, record.size, record.mtime)
            try:
                text = self.provider.read_content(ref)
            except Exception as exc:
                LOGGER.warning("Failed to read content for %s: %s", path, exc)
                preview = ""
            else:
                preview = make_preview(
                    text, max_lines=self.config.preview_lines, max_chars=self.config.preview_chars
                )
                self._content_cache[path] = (record.mtime, record.size, preview)

        self._fill_content(record, preview)
        idx = self._position(record)
        self._direct.replace_at(idx, record)
        self._decomposed.replace_at(idx, record)
        return True

    def _cached_preview(self, record: DocumentRecord) -> Optional[str]:
        cached = self._content_cache.get(record.path)
        if cached is None:
            return None
        mtime, size, preview = cached
        if mtime != record.mtime or size != record.size:
            return None
        return preview

    @staticmethod
    def _fill_content(record: DocumentRecord, preview: str) -> None:
        record.content = preview
        record.content_jamo = decompose_to_string(preview)
        record.content_loaded = True

    # ------------------------------------------------------------------
    # Internals

    def _make_record(self, ref: DocumentRef) -> DocumentRecord:
        record = DocumentRecord(
            path=ref.path,
            display=ref.display_name,
            jamo=decompose_to_string(ref.display_name),
            size=ref.size,
            mtime=ref.mtime,
        )
        if self.config.index_content:
            preview = self._cached_preview(record)
            if preview is not None:
                self._fill_content(record, preview)
        return record

    def _position(self, record: DocumentRecord) -> int:
        for idx, candidate in enumerate(self._records):
            if candidate is record:
                return idx
        raise KeyError(record.path)

    def _rebuild_indexes(self) -> None:
        config = self.config
        weights = config.field_weights
        options = config.match_options()

        missing = [name for name in INDEXED_FIELDS if name not in weights]
        if missing:
            raise ConfigurationError(f"Missing field weights for: {', '.join(missing)}")

        def make_index(names: Tuple[str, str]) -> WeightedIndex:
            return WeightedIndex(
                self._records,
                [FieldKey(name, weights[name]) for name in names],
                options,
                field_norm_weight=config.field_norm_weight,
                ignore_field_norm=config.ignore_field_norm,
                use_extended_search=config.use_extended_search,
                sort_key=_record_path,
            )

        self._direct = make_index(("display", "content"))
        self._decomposed = make_index(("jamo", "content_jamo"))
        LOGGER.debug(
            "Search indexes rebuilt with threshold %s, entries: %d", config.threshold, len(self._records)
        )
