from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

BUNDLED_WORDS = Path(__file__).parent / "data" / "words.json"


def normalize(word: str) -> str:
    return " ".join((word or "").strip().lower().split())


class WordBank:
    """category -> set of normalised words."""

    def __init__(self, words: Dict[str, Iterable[str]]) -> None:
        self._words: Dict[str, Set[str]] = {}
        for category, items in words.items():
            cleaned = {normalize(w) for w in items}
            cleaned.discard("")
            self._words[category.strip().lower()] = cleaned

    @classmethod
    def from_json(cls, path: Optional[str] = None) -> "WordBank":
        source = Path(path) if path else BUNDLED_WORDS
        with source.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Word list {source} must be a JSON object of category -> words")
        bank = cls(data)
        logger.info("Loaded %d words across %d categories from %s", bank.size(), len(bank.categories()), source)
        return bank

    def categories(self) -> List[str]:
        return sorted(self._words)

    def contains(self, category: str, word: str) -> bool:
        return normalize(word) in self._words.get(category, ())

    def count_starting_with(self, category: str, letter: str) -> int:
        prefix = letter.lower()
        return sum(1 for w in self._words.get(category, ()) if w.startswith(prefix))

    def size(self) -> int:
        return sum(len(ws) for ws in self._words.values())
