from __future__ import annotations

from .bank import WordBank
from .oracle import LetterCategoryOracle
from .validator import AnswerInput, AnswerValidator, ValidationResult

__all__ = [
    "WordBank",
    "LetterCategoryOracle",
    "AnswerInput",
    "AnswerValidator",
    "ValidationResult",
]
