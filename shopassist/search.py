"""Web-search capability used by the moderation research step.

:class:`TavilySearch` is the production adapter; anything with a matching
async ``search(query, max_results)`` method satisfies
:class:`SearchCapability`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from tavily import AsyncTavilyClient

from shopassist.errors import SearchError

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """A single web-search hit."""

    content: str
    title: str = ""
    url: str = ""


class SearchCapability(Protocol):
    async def search(self, query: str, max_results: int = 5) -> list[SearchResult]:
        ...


class TavilySearch:
    """Async Tavily client returning :class:`SearchResult` objects.

    Parameters
    ----------
    api_key : str | None
        Tavily API key.  Falls back to ``TAVILY_API_KEY`` when *None*.
    search_depth : str
        ``"basic"`` or ``"advanced"``.
    """

    def __init__(self, api_key: Optional[str] = None, search_depth: str = "advanced") -> None:
        self.api_key = api_key or os.environ.get("TAVILY_API_KEY", "")
        self.search_depth = search_depth
        self._client = AsyncTavilyClient(api_key=self.api_key) if self.api_key else None

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def search(self, query: str, max_results: int = 5) -> list[SearchResult]:
        if self._client is None:
            raise SearchError("Web search not configured. Set TAVILY_API_KEY.")
        try:
            response: dict[str, Any] = await self._client.search(
                query=query,
                max_results=max_results,
                search_depth=self.search_depth,
            )
        except Exception as exc:
            raise SearchError(f"Tavily search failed: {exc}") from exc

        results = []
        for item in response.get("results", [])[:max_results]:
            results.append(
                SearchResult(
                    content=item.get("content") or item.get("snippet") or "",
                    title=item.get("title", ""),
                    url=item.get("url", ""),
                )
            )
        logger.debug("Tavily returned %d result(s) for %r", len(results), query)
        return results
