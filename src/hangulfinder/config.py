"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from hangulfinder.match.bitap import MatchOptions


def _default_field_weights() -> Dict[str, float]:
    return {"jamo": 0.4, "display": 0.3, "content_jamo": 0.2, "content": 0.1}


@dataclass(slots=True)
class AppConfig:
    vault_path: Path | None = None
    extensions: tuple[str, ...] = (".md",)

    # Matching
    threshold: float = 0.4
    distance: int = 100
    location: int = 0
    ignore_location: bool = True
    min_match_char_length: int = 1
    is_case_sensitive: bool = False
    include_matches: bool = False
    find_all_matches: bool = False
    field_norm_weight: float = 1.0
    ignore_field_norm: bool = False
    use_extended_search: bool = False
    field_weights: Dict[str, float] = field(default_factory=_default_field_weights)

    # Results
    max_results: int = 50
    strategy_limit: int = 50

    # Indexing
    index_content: bool = True
    build_batch_size: int = 100
    hydrate_top_k: int = 20
    hydrate_batch_size: int = 5
    preview_lines: int = 3
    preview_chars: int = 200

    # Secondary boosts
    recent_days: float = 7.0
    small_file_bytes: int = 1000

    def __post_init__(self) -> None:
        if self.vault_path is None:
            self.vault_path = Path(".")

    def resolve_vault_path(self, base_dir: Path | None = None) -> Path:
        if self.vault_path is None:
            self.vault_path = Path(".")
        if Path(self.vault_path).is_absolute() or base_dir is None:
            return Path(self.vault_path)
        return base_dir / self.vault_path

    def match_options(self) -> MatchOptions:
        return MatchOptions(
            location=self.location,
            threshold=self.threshold,
            distance=self.distance,
            include_matches=self.include_matches,
            find_all_matches=self.find_all_matches,
            min_match_char_length=self.min_match_char_length,
            is_case_sensitive=self.is_case_sensitive,
            ignore_location=self.ignore_location,
        )
