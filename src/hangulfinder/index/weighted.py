"""Weighted multi-field fuzzy index with field-length normalization."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from hangulfinder.match.bitap import MatchOptions
from hangulfinder.match.grammar import create_matcher

LOGGER = logging.getLogger(__name__)

EPSILON = sys.float_info.epsilon
TOKEN_RE = re.compile(r"[^ ]+")


class ConfigurationError(ValueError):
    """Raised for malformed index key descriptors."""


@dataclass(slots=True)
class FieldKey:
    name: str
    weight: float = 1.0
    getter: Optional[Callable[[Any], Any]] = field(default=None, repr=False, compare=False)

    @property
    def path(self) -> List[str]:
        return self.name.split(".")


KeySpec = Union[str, Sequence[str], FieldKey, Mapping[str, Any]]


def create_key(spec: KeySpec) -> FieldKey:
    """Normalize a key descriptor into a ``FieldKey``."""
    if isinstance(spec, FieldKey):
        key = FieldKey(spec.name, spec.weight, spec.getter)
    elif isinstance(spec, str):
        key = FieldKey(spec)
    elif isinstance(spec, Mapping):
        if "name" not in spec:
            raise ConfigurationError("Missing 'name' property in key")
        key = FieldKey(
            _join_path(spec["name"]),
            spec.get("weight", 1.0),
            spec.get("getter"),
        )
    elif isinstance(spec, Sequence):
        key = FieldKey(_join_path(spec))
    else:
        raise ConfigurationError(f"Unsupported key descriptor: {spec!r}")

    if not key.name:
        raise ConfigurationError("Key name cannot be empty")
    if key.weight <= 0:
        raise ConfigurationError(f"Property 'weight' in key '{key.name}' must be a positive number")
    return key


def _join_path(name: Union[str, Sequence[str]]) -> str:
    return name if isinstance(name, str) else ".".join(name)


class KeyStore:
    """Ordered field keys with weights normalized to sum to one."""

    def __init__(self, keys: Iterable[KeySpec]) -> None:
        self._keys = [create_key(spec) for spec in keys]
        self._by_name = {key.name: key for key in self._keys}

        total = sum(key.weight for key in self._keys)
        for key in self._keys:
            key.weight /= total

    def get(self, name: str) -> FieldKey:
        return self._by_name[name]

    def keys(self) -> List[FieldKey]:
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._keys)


class FieldNorm:
    """Memoized ``1 / tokens ** (0.5 * weight)``, rounded to ``mantissa`` digits."""

    def __init__(self, weight: float = 1.0, mantissa: int = 3) -> None:
        self.weight = weight
        self.mantissa = mantissa
        self._cache: Dict[int, float] = {}

    def get(self, value: str) -> float:
        num_tokens = len(TOKEN_RE.findall(value))
        cached = self._cache.get(num_tokens)
        if cached is not None:
            return cached

        norm = round(1 / num_tokens ** (0.5 * self.weight), self.mantissa)
        self._cache[num_tokens] = norm
        return norm

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


@dataclass(slots=True)
class FieldValue:
    text: str
    norm: float
    # Position inside a list-valued field; -1 for scalar fields.
    position: int = -1


@dataclass(slots=True)
class IndexRecord:
    index: int
    fields: Dict[int, Union[FieldValue, List[FieldValue]]] = field(default_factory=dict)


def get_value(obj: Any, path: Sequence[str]) -> Any:
    """Read a dotted path from mappings or attributes, flattening lists."""
    found: List[Any] = []
    is_list = False

    def walk(value: Any, depth: int) -> None:
        nonlocal is_list
        if value is None:
            return
        if depth == len(path):
            if isinstance(value, (list, tuple)):
                is_list = True
                found.extend(value)
            else:
                found.append(value)
            return

        segment = path[depth]
        if isinstance(value, Mapping):
            child = value.get(segment)
        else:
            child = getattr(value, segment, None)
        if child is None:
            return

        if isinstance(child, (list, tuple)) and depth + 1 < len(path):
            is_list = True
            for item in child:
                walk(item, depth + 1)
        else:
            walk(child, depth + 1)

    walk(obj, 0)
    if is_list:
        return found
    return found[0] if found else None


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


class FieldIndex:
    """Per-document field records with cached length norms."""

    def __init__(self, keys: Sequence[FieldKey], *, field_norm_weight: float = 1.0) -> None:
        self.keys = list(keys)
        self.norm = FieldNorm(field_norm_weight, 3)
        self.records: List[IndexRecord] = []

    def create(self, docs: Sequence[Any]) -> None:
        self.records = [self._make_record(doc, idx) for idx, doc in enumerate(docs)]
        self.norm.clear()

    def add(self, doc: Any) -> None:
        self.records.append(self._make_record(doc, len(self.records)))

    def replace_at(self, idx: int, doc: Any) -> None:
        self.records[idx] = self._make_record(doc, idx)

    def remove_at(self, idx: int) -> None:
        del self.records[idx]
        for record in self.records[idx:]:
            record.index -= 1

    def size(self) -> int:
        return len(self.records)

    def _make_record(self, doc: Any, doc_index: int) -> IndexRecord:
        record = IndexRecord(index=doc_index)
        for key_index, key in enumerate(self.keys):
            value = key.getter(doc) if key.getter else get_value(doc, key.path)
            if value is None:
                continue

            if isinstance(value, (list, tuple)):
                record.fields[key_index] = self._sub_values(value)
            elif isinstance(value, str) and not _is_blank(value):
                record.fields[key_index] = FieldValue(value, self.norm.get(value))
        return record

    def _sub_values(self, values: Sequence[Any]) -> List[FieldValue]:
        sub_values: List[FieldValue] = []
        stack = [(-1, values)]
        while stack:
            position, value = stack.pop()
            if value is None:
                continue
            if isinstance(value, str):
                if not _is_blank(value):
                    sub_values.append(FieldValue(value, self.norm.get(value), position))
            elif isinstance(value, (list, tuple)):
                stack.extend(enumerate(value))
        return sub_values


@dataclass(slots=True)
class FieldMatch:
    key: FieldKey
    value: str
    score: float
    norm: float
    position: int = -1
    indices: Optional[List[tuple[int, int]]] = None


@dataclass(slots=True)
class IndexHit:
    item: Any
    ref_index: int
    score: float
    matches: List[FieldMatch] = field(default_factory=list)


class WeightedIndex:
    """Fuzzy search over weighted fields of a document collection."""

    def __init__(
        self,
        docs: Sequence[Any],
        keys: Iterable[KeySpec],
        options: MatchOptions | None = None,
        *,
        field_norm_weight: float = 1.0,
        ignore_field_norm: bool = False,
        use_extended_search: bool = False,
        sort_key: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        self.options = options or MatchOptions()
        self.sort_key = sort_key
        self.ignore_field_norm = ignore_field_norm
        self.use_extended_search = use_extended_search
        self.key_store = KeyStore(keys)
        self._field_norm_weight = field_norm_weight
        self.set_collection(docs)

    def set_collection(self, docs: Sequence[Any]) -> None:
        self._docs = list(docs)
        self._index = FieldIndex(self.key_store.keys(), field_norm_weight=self._field_norm_weight)
        self._index.create(self._docs)

    @property
    def docs(self) -> List[Any]:
        return self._docs

    @property
    def records(self) -> List[IndexRecord]:
        return self._index.records

    def size(self) -> int:
        return self._index.size()

    def add(self, doc: Any) -> None:
        if doc is None:
            return
        self._docs.append(doc)
        self._index.add(doc)

    def replace_at(self, idx: int, doc: Any) -> None:
        self._docs[idx] = doc
        self._index.replace_at(idx, doc)

    def remove_at(self, idx: int) -> None:
        del self._docs[idx]
        self._index.remove_at(idx)

    def remove(self, predicate: Callable[[Any, int], bool]) -> List[Any]:
        removed = []
        idx = 0
        while idx < len(self._docs):
            doc = self._docs[idx]
            if predicate(doc, idx):
                self.remove_at(idx)
                removed.append(doc)
            else:
                idx += 1
        return removed

    def search(self, query: str, *, limit: Optional[int] = None) -> List[IndexHit]:
        matcher = create_matcher(query, self.options, use_extended_search=self.use_extended_search)
        keys = self._index.keys
        hits: List[IndexHit] = []

        for record in self._index.records:
            matches: List[FieldMatch] = []
            for key_index, key in enumerate(keys):
                value = record.fields.get(key_index)
                if value is None:
                    continue
                values = value if isinstance(value, list) else [value]
                for sub_value in values:
                    result = matcher.search_in(sub_value.text)
                    if result.is_match:
                        matches.append(
                            FieldMatch(
                                key=key,
                                value=sub_value.text,
                                score=result.score,
                                norm=sub_value.norm,
                                position=sub_value.position,
                                indices=result.indices,
                            )
                        )
            if matches:
                hits.append(
                    IndexHit(
                        item=self._docs[record.index],
                        ref_index=record.index,
                        score=self._combine(matches),
                        matches=matches,
                    )
                )

        if self.sort_key is not None:
            sort_key = self.sort_key
            hits.sort(key=lambda hit: (hit.score, sort_key(hit.item)))
        else:
            hits.sort(key=lambda hit: (hit.score, hit.ref_index))
        if limit is not None and limit > -1:
            hits = hits[:limit]
        LOGGER.debug("Weighted search %r matched %d of %d records", query, len(hits), self.size())
        return hits

    def _combine(self, matches: Sequence[FieldMatch]) -> float:
        total = 1.0
        for match in matches:
            weight = match.key.weight
            score = EPSILON if match.score == 0 and weight else match.score
            norm = 1.0 if self.ignore_field_norm else match.norm
            total *= score ** ((weight or 1) * norm)
        return total
