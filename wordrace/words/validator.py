from __future__ import annotations

import logging
from typing import List, Sequence

from pydantic import BaseModel

from wordrace.words.bank import WordBank, normalize

logger = logging.getLogger(__name__)

BASE_SCORE = 10
MAX_SPEED_BONUS = 10


class AnswerInput(BaseModel):
    letter: str
    word: str
    category: str
    time_left: float = 0.0


class ValidationResult(BaseModel):
    valid: bool
    word_score: int
    word_bonus: int
    total_score: int
    word: str
    category: str
    letter: str
    comment: str = ""


def speed_bonus(time_left: float) -> int:
    return round(MAX_SPEED_BONUS * min(max(time_left, 0.0), 1.0))


class AnswerValidator:
    def __init__(self, bank: WordBank) -> None:
        self.bank = bank

    def _check(self, a: AnswerInput) -> ValidationResult:
        word = normalize(a.word)
        letter = (a.letter or "").strip().upper()

        comment = ""
        if not word:
            comment = "No answer"
        elif not word.upper().startswith(letter):
            comment = f"Does not start with {letter}"
        elif not self.bank.contains(a.category, word):
            comment = f"Not a known {a.category}"

        if comment:
            return ValidationResult(
                valid=False,
                word_score=0,
                word_bonus=0,
                total_score=0,
                word=word,
                category=a.category,
                letter=letter,
                comment=comment,
            )

        bonus = speed_bonus(a.time_left)
        return ValidationResult(
            valid=True,
            word_score=BASE_SCORE,
            word_bonus=bonus,
            total_score=BASE_SCORE + bonus,
            word=word,
            category=a.category,
            letter=letter,
            comment="Fast answer!" if bonus >= 8 else "Correct",
        )

    async def validate(self, batch: Sequence[AnswerInput]) -> List[ValidationResult]:
        """Results come back in the same order as the batch."""
        results = [self._check(a) for a in batch]
        logger.debug("Validated %d answers, %d valid", len(results), sum(1 for r in results if r.valid))
        return results
