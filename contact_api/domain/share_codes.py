"""
Share code grammar and generation.

A share code is five characters following a consonant/vowel pattern
(``CVCVC``) such as ``BAFEK`` or ``TIGOL``. The generator is pure: it never
touches storage, uniqueness is enforced by the sharing service against the
database.
"""
from __future__ import annotations

import random
from typing import Optional

from .errors import InvalidArgumentError

CONSONANTS = "BCDFGHJKLMNPQRSTVWXYZ"
VOWELS = "AEIOU"
PATTERN = "CVCVC"
CODE_LENGTH = len(PATTERN)
MAX_PREFIX_LENGTH = 2

# 21**3 * 5**2 == 231_525; the hard ceiling on concurrently assigned codes.
TOTAL_CODES = len(CONSONANTS) ** PATTERN.count("C") * len(VOWELS) ** PATTERN.count("V")

_ALPHABETS = {"C": CONSONANTS, "V": VOWELS}


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def is_valid_code(code: str | None) -> bool:
    """Structural check: length 5 and every position drawn from its alphabet."""
    if not code or len(code) != CODE_LENGTH:
        return False
    upper = code.upper()
    return all(char in _ALPHABETS[slot] for char, slot in zip(upper, PATTERN))


def code_statistics() -> dict:
    return {
        "total_possible_codes": TOTAL_CODES,
        "consonant_count": len(CONSONANTS),
        "vowel_count": len(VOWELS),
        "pattern": PATTERN,
        "code_length": CODE_LENGTH,
    }


def _code_from_index(index: int) -> str:
    """Map an integer in ``[0, TOTAL_CODES)`` onto a unique code (mixed radix)."""
    chars = []
    for slot in reversed(PATTERN):
        alphabet = _ALPHABETS[slot]
        index, offset = divmod(index, len(alphabet))
        chars.append(alphabet[offset])
    return "".join(reversed(chars))


class ShareCodeGenerator:
    """Draws codes from an injected pseudo-random source."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.SystemRandom()

    def _draw(self, slot: str) -> str:
        alphabet = _ALPHABETS[slot]
        return alphabet[self.rng.randrange(len(alphabet))]

    def generate(self) -> str:
        return "".join(self._draw(slot) for slot in PATTERN)

    def generate_pattern(self, pattern: str = PATTERN) -> str:
        """Fill ``C``/``V`` placeholders; any other character is kept verbatim."""
        out = []
        for char in (pattern or "").upper():
            out.append(self._draw(char) if char in _ALPHABETS else char)
        return "".join(out)

    def generate_with_prefix(self, prefix: str) -> str:
        """Seed the code with ``prefix`` and alternate consonant/vowel after it.

        At least three generated characters must remain, so the prefix may be
        at most two characters long. The prefix itself is not validated against
        the grammar, so the result may not pass :func:`is_valid_code`.
        """
        prefix_value = (prefix or "").upper()
        remaining = CODE_LENGTH - len(prefix_value)
        if remaining < CODE_LENGTH - MAX_PREFIX_LENGTH:
            raise InvalidArgumentError(
                f"Prefix too long: at most {MAX_PREFIX_LENGTH} characters, got {len(prefix_value)}"
            )
        tail = "".join(self._draw("C" if i % 2 == 0 else "V") for i in range(remaining))
        return prefix_value + tail

    def generate_batch(self, count: int) -> set[str]:
        """Return ``count`` distinct codes.

        Rejection sampling gets slow as ``count`` approaches TOTAL_CODES (the
        expected number of draws grows like the coupon collector problem), so
        past half of the space codes are sampled without replacement from the
        index space instead.
        """
        if count < 0:
            raise InvalidArgumentError("Batch size must be non-negative")
        if count > TOTAL_CODES:
            raise InvalidArgumentError(f"Batch size exceeds the {TOTAL_CODES} available codes")
        if count > TOTAL_CODES // 2:
            return {_code_from_index(i) for i in self.rng.sample(range(TOTAL_CODES), count)}
        codes: set[str] = set()
        while len(codes) < count:
            codes.add(self.generate())
        return codes
