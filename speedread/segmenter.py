"""
segmenter.py

Turns raw input text into the ordered word units shown one at a time by
the pacer. Whitespace splitting only; each unit carries its focus index
(ORP) and whether it ends a sentence or clause.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import List, Tuple

from .errors import InvalidRateError

WHITESPACE_RE = re.compile(r"\s+")

# Trailing characters that earn a word a longer dwell.
CLAUSE_END_CHARS = frozenset(".!?,")

# (max token length, focus index); anything longer falls through to 4.
FOCUS_BANDS: Tuple[Tuple[int, int], ...] = (
    (1, 0),
    (5, 1),
    (9, 2),
    (13, 3),
)
LONG_WORD_FOCUS = 4


@dataclass(frozen=True)
class WordUnit:
    text: str
    focus_index: int
    ends_sentence_or_clause: bool


def compute_focus_index(word: str) -> int:
    length = len(word)
    for max_len, idx in FOCUS_BANDS:
        if length <= max_len:
            return idx
    return LONG_WORD_FOCUS


def ends_sentence_or_clause(word: str) -> bool:
    return bool(word) and word[-1] in CLAUSE_END_CHARS


def split_tokens(raw_text: str) -> List[str]:
    if not raw_text:
        return []
    clean = WHITESPACE_RE.sub(" ", raw_text.strip())
    return [tok for tok in clean.split(" ") if tok]


def segment(raw_text: str) -> List[WordUnit]:
    """Split ``raw_text`` into word units.

    Empty or all-whitespace input yields an empty list; callers must
    reject that before loading it into a pacer.
    """
    return [
        WordUnit(
            text=tok,
            focus_index=compute_focus_index(tok),
            ends_sentence_or_clause=ends_sentence_or_clause(tok),
        )
        for tok in split_tokens(raw_text)
    ]


def split_focus(word: WordUnit) -> Tuple[str, str, str]:
    idx = word.focus_index
    return word.text[:idx], word.text[idx:idx + 1], word.text[idx + 1:]


# -------------------------------
# Reading stats
# -------------------------------

def word_count(raw_text: str) -> int:
    return len(split_tokens(raw_text))


def estimated_minutes(raw_text: str, rate: int) -> int:
    validate_rate(rate)
    count = word_count(raw_text)
    if count == 0:
        return 0
    return math.ceil(count / rate)


def validate_rate(rate: object) -> int:
    if isinstance(rate, bool) or not isinstance(rate, int) or rate <= 0:
        raise InvalidRateError(rate)
    return rate
