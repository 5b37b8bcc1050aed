"""
Working-memory load of a piece of learning content.

A text heuristic: sentence length and long words drive verbal load; tables,
lists, numbers and formulas drive visual load; structural complexity drives
executive load. All loads are on a 0-10 scale.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

_VOWELS = set("aeiouy")

_TABLE_RE = re.compile(r"\|[-+|]+\|")
_LIST_RE = re.compile(r"(\*|-|\d+\.)\s+[^\n]+")
_NUMBER_RE = re.compile(r"\d+")
_FORMULA_RE = re.compile(r"[a-z0-9]+[+\-*/=^][a-z0-9]+", re.IGNORECASE)

HIGH_LOAD = 7.0


@dataclass
class ContentLoad:
    overall_load: float
    visual_load: float
    verbal_load: float
    executive_load: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "overall_load": self.overall_load,
            "visual_load": self.visual_load,
            "verbal_load": self.verbal_load,
            "executive_load": self.executive_load,
            "recommendations": list(self.recommendations),
        }


def count_syllables(word: str) -> int:
    """Vowel-group syllable estimate; a trailing silent 'e' does not count."""
    word = re.sub(r"[^a-z]", "", word.lower())
    count = 0
    prev_vowel = False
    for ch in word:
        is_vowel = ch in _VOWELS
        if is_vowel and not prev_vowel:
            count += 1
        prev_vowel = is_vowel

    if len(word) > 2 and word.endswith("e") and word[-2] not in _VOWELS:
        count -= 1

    return max(1, count)


def assess_content_load(content: str) -> ContentLoad:
    """
    Estimate the working-memory load of ``content``.

    Empty content carries no load.

    Example:
        >>> assess_content_load("Short text.").overall_load < 7
        True
    """
    words = content.split()
    if not words:
        return ContentLoad(0.0, 0.0, 0.0, 0.0)

    sentences = [s for s in re.split(r"[.!?]+", content) if s.strip()]
    paragraphs = [p for p in re.split(r"\n\s*\n", content) if p.strip()]

    avg_sentence_length = len(words) / max(1, len(sentences))
    complex_ratio = sum(1 for w in words if count_syllables(w) >= 3) / len(words)

    numbers = len(_NUMBER_RE.findall(content))
    formulas = len(_FORMULA_RE.findall(content))
    tables = len(_TABLE_RE.findall(content))
    lists = len(_LIST_RE.findall(content))

    verbal = min(
        10.0,
        (avg_sentence_length / 20) * 5 + complex_ratio * 10 + (2 if len(words) > 500 else 0),
    )
    visual = min(10.0, tables * 2 + lists + numbers / 10 + formulas * 2)
    executive = min(
        10.0,
        float(
            (2 if len(paragraphs) > 5 else 0)
            + (2 if avg_sentence_length > 15 else 0)
            + (2 if complex_ratio > 0.2 else 0)
            + (2 if tables > 0 else 0)
            + (2 if formulas > 0 else 0)
        ),
    )
    overall = min(10.0, verbal * 0.4 + visual * 0.3 + executive * 0.3)

    recommendations = []
    if verbal > HIGH_LOAD:
        recommendations += [
            "Simplify language and shorten sentences",
            "Break content into smaller chunks",
        ]
    if visual > HIGH_LOAD:
        recommendations += [
            "Reduce visual complexity by simplifying tables and diagrams",
            "Present numerical information in smaller groups",
        ]
    if executive > HIGH_LOAD:
        recommendations += [
            "Provide clear structure with headings and subheadings",
            "Add summary points at the beginning or end of sections",
        ]
    if overall > HIGH_LOAD:
        recommendations += [
            "Consider splitting content into multiple pages or sections",
            "Add interactive elements to engage working memory actively",
        ]

    return ContentLoad(
        overall_load=round(overall, 2),
        visual_load=round(visual, 2),
        verbal_load=round(verbal, 2),
        executive_load=round(executive, 2),
        recommendations=recommendations,
    )
