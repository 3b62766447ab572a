from __future__ import annotations

import logging
import string
import time
from typing import Callable, Dict, List, Optional, Sequence

from wordrace.words.bank import WordBank

logger = logging.getLogger(__name__)


class LetterCategoryOracle:
    """
    Answers "which of these categories have enough words for this letter".
    Counts are precomputed per letter and rebuilt once older than ttl_sec.
    """

    def __init__(
        self,
        bank: WordBank,
        *,
        min_words: int = 1,
        ttl_sec: int = 86400,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.bank = bank
        self.min_words = max(1, min_words)
        self.ttl_sec = ttl_sec
        self._clock = clock or time.monotonic
        self._counts: Dict[str, Dict[str, int]] = {}
        self._built_at: Optional[float] = None

    def refresh(self) -> None:
        counts: Dict[str, Dict[str, int]] = {}
        for letter in string.ascii_uppercase:
            counts[letter] = {c: self.bank.count_starting_with(c, letter) for c in self.bank.categories()}
        self._counts = counts
        self._built_at = self._clock()
        logger.info("Letter/category availability rebuilt for %d categories", len(self.bank.categories()))

    def _ensure_fresh(self) -> None:
        if self._built_at is None or self._clock() - self._built_at > self.ttl_sec:
            self.refresh()

    def count(self, letter: str, category: str) -> int:
        self._ensure_fresh()
        return self._counts.get(letter.upper(), {}).get(category, 0)

    def valid_categories(self, letter: str, supported: Sequence[str], min_categories: int = 3) -> List[str]:
        self._ensure_fresh()
        per_letter = self._counts.get(letter.upper(), {})
        valid = [c for c in supported if per_letter.get(c, 0) >= self.min_words]
        if len(valid) < min_categories:
            return []
        return valid
