"""Process-wide service wiring.

A :class:`ServiceContext` is built once at startup and handed to whoever
needs the pipeline, the dispatcher or the assistant.  Nothing here is a
module-level singleton; tests build their own context from fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from shopassist.chat.assistant import ProductAssistant
from shopassist.chat.catalog import ProductCatalog
from shopassist.config import Settings
from shopassist.feedback import FeedbackClient
from shopassist.llm.client import LLMClient
from shopassist.llm.usage_tracker import UsageTracker
from shopassist.moderation.blocklist import BlockList
from shopassist.moderation.dispatcher import ModerationDispatcher
from shopassist.moderation.pipeline import ModerationPipeline
from shopassist.moderation.research import ResearchStep
from shopassist.search import TavilySearch

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Everything the API and CLI need, constructed once."""

    settings: Settings
    llm: LLMClient
    pipeline: ModerationPipeline
    dispatcher: ModerationDispatcher
    assistant: ProductAssistant
    tracker: Optional[UsageTracker] = None

    @property
    def blocklist(self) -> BlockList:
        return self.pipeline.blocklist

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContext":
        llm = LLMClient(model=settings.model, api_key=settings.anthropic_api_key or None)
        tracker = UsageTracker(settings.usage_path)

        if not llm.configured:
            logger.warning("ANTHROPIC_API_KEY is not set; moderation and chat are disabled")

        search = TavilySearch(api_key=settings.tavily_api_key or None, search_depth=settings.search_depth)
        if not search.configured:
            logger.warning("TAVILY_API_KEY is not set; research will use the placeholder text")

        pipeline = ModerationPipeline(
            llm=llm,
            research=ResearchStep(search, max_results=settings.search_max_results),
            blocklist=BlockList(settings.extra_blocklist_terms),
            tracker=tracker,
            temperature=settings.temperature,
        )
        feedback = FeedbackClient(settings.feedback_api_url, timeout=settings.feedback_timeout)

        catalog = (
            ProductCatalog.from_json(settings.catalog_path)
            if settings.catalog_path
            else ProductCatalog()
        )
        assistant = ProductAssistant(llm, catalog, tracker=tracker)

        return cls(
            settings=settings,
            llm=llm,
            pipeline=pipeline,
            dispatcher=ModerationDispatcher(pipeline, feedback),
            assistant=assistant,
            tracker=tracker,
        )
