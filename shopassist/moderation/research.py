"""External research step: one web search, snippets joined into one blob."""

from __future__ import annotations

import logging

from shopassist.moderation.models import RESEARCH_UNAVAILABLE
from shopassist.search import SearchCapability

logger = logging.getLogger(__name__)

MAX_RESULTS_CAP = 5


class ResearchStep:
    """Runs a single search and never raises.

    Research is advisory: on any search failure, or when no result carries
    text, the placeholder :data:`RESEARCH_UNAVAILABLE` is returned so the
    final classifier can still produce a verdict.
    """

    def __init__(self, search: SearchCapability, max_results: int = MAX_RESULTS_CAP) -> None:
        self._search = search
        self.max_results = max(1, min(max_results, MAX_RESULTS_CAP))

    async def gather(self, query: str) -> str:
        try:
            results = await self._search.search(query, max_results=self.max_results)
        except Exception:
            logger.warning("Search failed for %r, continuing without research", query, exc_info=True)
            return RESEARCH_UNAVAILABLE

        snippets = [r.content.strip() for r in results[: self.max_results] if r.content and r.content.strip()]
        if not snippets:
            logger.info("Search for %r returned no usable text", query)
            return RESEARCH_UNAVAILABLE
        return "\n\n".join(snippets)
