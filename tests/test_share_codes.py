from __future__ import annotations

import random

import pytest

from contact_api.domain.errors import InvalidArgumentError
from contact_api.domain.share_codes import (
    CONSONANTS,
    TOTAL_CODES,
    VOWELS,
    ShareCodeGenerator,
    code_statistics,
    is_valid_code,
)


def test_generated_codes_follow_grammar():
    gen = ShareCodeGenerator(random.Random(7))
    for _ in range(500):
        code = gen.generate()
        assert len(code) == 5
        assert code[0] in CONSONANTS and code[2] in CONSONANTS and code[4] in CONSONANTS
        assert code[1] in VOWELS and code[3] in VOWELS
        assert is_valid_code(code)


def test_same_seed_gives_same_sequence():
    first = ShareCodeGenerator(random.Random(42))
    second = ShareCodeGenerator(random.Random(42))
    assert [first.generate() for _ in range(10)] == [second.generate() for _ in range(10)]


@pytest.mark.parametrize(
    "code, expected",
    [
        ("BAFEK", True),
        ("tigol", True),
        ("BaFeK", True),
        ("AAAAA", False),
        ("BAFE", False),
        ("BAFEKO", False),
        ("", False),
        (None, False),
        ("B4FEK", False),
        ("BAFEY", True),
    ],
)
def test_is_valid_code(code, expected):
    assert is_valid_code(code) is expected


def test_total_space():
    assert TOTAL_CODES == 231_525
    stats = code_statistics()
    assert stats["total_possible_codes"] == 231_525
    assert stats["consonant_count"] == 21
    assert stats["vowel_count"] == 5
    assert stats["pattern"] == "CVCVC"


def test_prefix_keeps_three_generated_characters():
    gen = ShareCodeGenerator(random.Random(1))
    code = gen.generate_with_prefix("ab")
    assert code.startswith("AB")
    assert len(code) == 5
    assert code[2] in CONSONANTS and code[3] in VOWELS and code[4] in CONSONANTS


def test_prefix_too_long_is_rejected():
    gen = ShareCodeGenerator(random.Random(1))
    with pytest.raises(InvalidArgumentError):
        gen.generate_with_prefix("ABC")


def test_empty_prefix_behaves_like_alternating_code():
    gen = ShareCodeGenerator(random.Random(3))
    code = gen.generate_with_prefix("")
    assert is_valid_code(code)


def test_generate_pattern_keeps_literals():
    gen = ShareCodeGenerator(random.Random(5))
    code = gen.generate_pattern("X-CV")
    assert code[:2] == "X-"
    assert code[2] in CONSONANTS and code[3] in VOWELS


def test_batch_is_distinct_and_valid():
    gen = ShareCodeGenerator(random.Random(11))
    batch = gen.generate_batch(1000)
    assert len(batch) == 1000
    assert all(is_valid_code(code) for code in batch)


def test_batch_bounds():
    gen = ShareCodeGenerator(random.Random(11))
    assert gen.generate_batch(0) == set()
    with pytest.raises(InvalidArgumentError):
        gen.generate_batch(-1)
    with pytest.raises(InvalidArgumentError):
        gen.generate_batch(TOTAL_CODES + 1)


def test_large_batch_samples_without_replacement():
    gen = ShareCodeGenerator(random.Random(13))
    batch = gen.generate_batch(TOTAL_CODES // 2 + 1)
    assert len(batch) == TOTAL_CODES // 2 + 1
    assert all(is_valid_code(code) for code in list(batch)[:1000])
