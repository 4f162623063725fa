from __future__ import annotations

import re
from typing import List

from uniflash.models.flashcard import ClozeExtraction

CLOZE_PATTERN = re.compile(r"\{\{c(\d+)::([^}]+)\}\}")
BLANK = "[...]"


def parse_cloze(source_text: str) -> List[ClozeExtraction]:
    """Return the ``{{cN::word}}`` deletions in the order they appear."""
    return [
        ClozeExtraction(number=int(match.group(1)), word=match.group(2))
        for match in CLOZE_PATTERN.finditer(source_text)
    ]


def cloze_numbers(extractions: List[ClozeExtraction]) -> List[int]:
    seen: List[int] = []
    for item in extractions:
        if item.number not in seen:
            seen.append(item.number)
    return sorted(seen)


def render_cloze(source_text: str, cloze_number: int, reveal: bool = False) -> str:
    def _replace(match: re.Match) -> str:
        if int(match.group(1)) == cloze_number and not reveal:
            return BLANK
        return match.group(2)

    return CLOZE_PATTERN.sub(_replace, source_text)


def target_word(extractions: List[ClozeExtraction], cloze_number: int) -> str:
    words = [item.word for item in extractions if item.number == cloze_number]
    return ", ".join(words)
