import json

import pytest

from wordrace.words import AnswerInput, AnswerValidator, LetterCategoryOracle, WordBank


def _bank():
    return WordBank(
        {
            "food": ["Apple", " avocado ", "banana"],
            "animal": ["ant", "bear"],
            "name": ["alice", "bob"],
            "place": ["bank"],
        }
    )


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_bank_normalises_words():
    bank = _bank()
    assert bank.contains("food", "APPLE")
    assert bank.contains("food", "avocado")
    assert bank.count_starting_with("food", "a") == 2
    assert bank.categories() == ["animal", "food", "name", "place"]


def test_bundled_word_list_loads():
    bank = WordBank.from_json()
    assert "food" in bank.categories()
    assert bank.size() > 100


def test_from_json_path(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps({"color": ["red", "rose"]}), encoding="utf-8")
    bank = WordBank.from_json(str(path))
    assert bank.count_starting_with("color", "R") == 2


def test_oracle_threshold_and_order():
    oracle = LetterCategoryOracle(_bank())

    assert oracle.valid_categories("A", ["name", "food", "animal", "place"]) == ["name", "food", "animal"]
    # B has all four, but only three were asked for
    assert oracle.valid_categories("b", ["place", "food", "name"]) == ["place", "food", "name"]
    assert oracle.valid_categories("A", ["food", "animal"]) == []
    assert oracle.valid_categories("Z", ["food", "animal", "name"]) == []


def test_oracle_min_words():
    oracle = LetterCategoryOracle(_bank(), min_words=2)
    assert oracle.count("A", "food") == 2
    assert oracle.valid_categories("A", ["food"], min_categories=1) == ["food"]
    assert oracle.valid_categories("A", ["animal"], min_categories=1) == []


def test_oracle_refreshes_after_ttl():
    clock = Clock()
    bank = _bank()
    oracle = LetterCategoryOracle(bank, ttl_sec=60, clock=clock)
    assert oracle.count("C", "food") == 0

    bank._words["food"].add("cherry")
    clock.now = 30
    assert oracle.count("C", "food") == 0
    clock.now = 61
    assert oracle.count("C", "food") == 1


@pytest.mark.asyncio
async def test_validator_scores_and_keeps_order():
    validator = AnswerValidator(_bank())
    batch = [
        AnswerInput(letter="A", word="Apple", category="food", time_left=1.0),
        AnswerInput(letter="A", word="banana", category="food", time_left=1.0),
        AnswerInput(letter="A", word="ant", category="animal", time_left=0.34),
        AnswerInput(letter="A", word="", category="name", time_left=0.9),
        AnswerInput(letter="A", word="avocado", category="food", time_left=7.0),
    ]

    results = await validator.validate(batch)

    assert [r.word for r in results] == ["apple", "banana", "ant", "", "avocado"]
    assert [r.valid for r in results] == [True, False, True, False, True]
    assert [r.total_score for r in results] == [20, 0, 13, 0, 20]
    assert results[2].word_score == 10 and results[2].word_bonus == 3
    assert results[1].comment == "Does not start with A"
