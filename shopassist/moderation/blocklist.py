"""Deterministic block-list of regional-discrimination terms.

Runs before any classifier.  A match is final: no later stage can turn it
into a pass.
"""

from __future__ import annotations

import unicodedata
from typing import Iterable, Optional

from shopassist.moderation.models import REGIONAL_REASON, Verdict

DEFAULT_TERMS: tuple[str, ...] = (
    "backy",
    "bắc kỳ",
    "namky",
    "nam kỳ",
    "trungky",
    "trung kỳ",
)


class BlockList:
    """Case-insensitive substring matcher over a fixed set of terms."""

    def __init__(self, extra_terms: Iterable[str] = (), reason: str = REGIONAL_REASON) -> None:
        terms: list[str] = []
        for term in (*DEFAULT_TERMS, *extra_terms):
            term = _normalize(term.strip())
            if term and term not in terms:
                terms.append(term)
        self._terms = tuple(terms)
        self.reason = reason

    @property
    def terms(self) -> tuple[str, ...]:
        return self._terms

    def match(self, text: str) -> Optional[str]:
        """Return the first term contained in *text*, or *None*."""
        lowered = _normalize(text)
        for term in self._terms:
            if term in lowered:
                return term
        return None

    def check(self, text: str) -> Optional[Verdict]:
        """Return a blocking verdict when *text* contains a listed term."""
        if self.match(text) is None:
            return None
        return Verdict.block(self.reason)


def _normalize(text: str) -> str:
    # NFC, so "Bắc" typed with combining marks matches the stored term.
    return unicodedata.normalize("NFC", text).lower()
