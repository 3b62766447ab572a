from __future__ import annotations

import logging
import random
import string
from typing import Dict, List, Optional

from wordrace.store.models import CategorySpec, RoomConfig, RoundStore

logger = logging.getLogger(__name__)

MIN_CATEGORIES_PER_ROUND = 3
MAX_CATEGORIES_PER_ROUND = 5
DEFAULT_TIME_LIMIT_SEC = 30

CATEGORY_DISPLAY_NAMES: Dict[str, str] = {
    "name": "Name",
    "animal": "Animal",
    "place": "Place",
    "city": "City",
    "company": "Company",
    "food": "Food",
    "country": "Country",
    "color": "Color",
    "app": "App",
    "language": "Language",
    "disease": "Disease",
    "currency": "Currency",
    "bible": "Bible",
    "car": "Car",
}


def display_name(category: str) -> str:
    return CATEGORY_DISPLAY_NAMES.get(category) or category[:1].upper() + category[1:]


def generate_rounds(config: RoomConfig, oracle, *, rng: Optional[random.Random] = None) -> List[RoundStore]:
    """
    Pick `rounds_count` distinct letters that each have enough playable
    categories, then draw 3-5 of those categories per letter.

    Every non-excluded letter is tried once in random order; the result is
    shorter than requested when the alphabet runs out. Callers decide what a
    short result means.
    """
    rng = rng or random.Random()
    excluded = {ch.upper() for ch in config.excluded_letters}
    candidates = [ch for ch in string.ascii_uppercase if ch not in excluded]
    rng.shuffle(candidates)

    picked: List[tuple] = []
    for letter in candidates:
        if len(picked) >= config.rounds_count:
            break
        valid = oracle.valid_categories(letter, config.supported_categories, MIN_CATEGORIES_PER_ROUND)
        if len(valid) < MIN_CATEGORIES_PER_ROUND:
            continue
        picked.append((letter, valid))

    rounds: List[RoundStore] = []
    for i, (letter, valid) in enumerate(picked, start=1):
        count = min(rng.randint(MIN_CATEGORIES_PER_ROUND, MAX_CATEGORIES_PER_ROUND), len(valid))
        chosen = rng.sample(valid, count)
        rounds.append(
            RoundStore(
                round_number=i,
                letter=letter,
                categories=[
                    CategorySpec(name=c, display_name=display_name(c), time_limit=DEFAULT_TIME_LIMIT_SEC)
                    for c in chosen
                ],
            )
        )

    if len(rounds) < config.rounds_count:
        logger.warning(
            "Only %d of %d rounds could be generated for categories %s",
            len(rounds),
            config.rounds_count,
            config.supported_categories,
        )
    return rounds
