"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_CORPUS_PATH = Path(__file__).resolve().parent / "data" / "chunked-index.json"


@dataclass(slots=True)
class AppConfig:
    corpus_path: Path | None = None
    default_limit: int = 5
    category_limit: int = 10
    snippet_max_length: int = 260
    min_score_ratio: float = 0.4

    def __post_init__(self) -> None:
        if self.corpus_path is None:
            self.corpus_path = DEFAULT_CORPUS_PATH

    def resolve_corpus_path(self, base_dir: Path | None = None) -> Path:
        if self.corpus_path is None:
            self.corpus_path = DEFAULT_CORPUS_PATH
        if Path(self.corpus_path).is_absolute() or base_dir is None:
            return Path(self.corpus_path)
        return base_dir / self.corpus_path
