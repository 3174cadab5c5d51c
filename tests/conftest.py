"""Shared fakes for the moderation, chat and API tests."""

from __future__ import annotations

import json
from typing import Optional, Union

import httpx
import pytest

from shopassist.chat.assistant import ProductAssistant
from shopassist.chat.catalog import Product, ProductCatalog
from shopassist.config import Settings
from shopassist.context import ServiceContext
from shopassist.feedback import FeedbackClient
from shopassist.llm.client import LLMResponse
from shopassist.llm.usage_tracker import UsageTracker
from shopassist.moderation.blocklist import BlockList
from shopassist.moderation.dispatcher import ModerationDispatcher
from shopassist.moderation.pipeline import ModerationPipeline
from shopassist.moderation.research import ResearchStep
from shopassist.search import SearchResult


class ScriptedLLM:
    """Returns queued completions in order and records every prompt."""

    def __init__(self, *responses: Union[str, Exception], configured: bool = True) -> None:
        self._responses = list(responses)
        self.configured = configured
        self.model = "fake-model"
        self.prompts: list[str] = []
        self.system_prompts: list[Optional[str]] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def acomplete(self, prompt, system_prompt=None, max_tokens=4096, temperature=0.3):
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt)
        if not self._responses:
            raise AssertionError("Unexpected LLM call")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return LLMResponse(
            content=item,
            model=self.model,
            input_tokens=100,
            output_tokens=10,
            total_tokens=110,
            cost_estimate=0.0005,
        )


class FakeSearch:
    """Search capability that returns canned results or raises."""

    def __init__(self, results: Optional[list[SearchResult]] = None, error: Optional[Exception] = None) -> None:
        self.results = results or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def search(self, query: str, max_results: int = 5) -> list[SearchResult]:
        self.calls.append((query, max_results))
        if self.error is not None:
            raise self.error
        return self.results[:max_results]


class FeedbackRecorder:
    """``httpx.MockTransport`` handler that records feedback updates."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> FeedbackClient:
        return FeedbackClient("https://store.test", transport=httpx.MockTransport(self))


@pytest.fixture
def make_pipeline():
    """Factory: ``make_pipeline(*llm_responses, search=None)``."""

    def _make(*responses, search: Optional[FakeSearch] = None, configured: bool = True, tracker=None):
        llm = ScriptedLLM(*responses, configured=configured)
        search = search or FakeSearch([SearchResult(content="neutral slang explanation")])
        pipeline = ModerationPipeline(llm, ResearchStep(search), BlockList(), tracker=tracker)
        return pipeline, llm, search

    return _make


@pytest.fixture
def catalog() -> ProductCatalog:
    return ProductCatalog(
        [
            Product(id=1, name="Áo thun cotton basic", price=199000, category="áo",
                    description="Áo thun cổ tròn chất cotton thoáng mát", source="catalog.json"),
            Product(id=2, name="Quần jean slim fit", price=459000, sale_price=399000,
                    category="quần", description="Quần jean co giãn màu xanh đậm", source="catalog.json"),
            Product(id=3, name="Váy maxi hoa nhí", price=529000, category="váy",
                    description="Váy dài đi biển họa tiết hoa", source="summer.pdf", page=2),
        ]
    )


@pytest.fixture
def make_context(tmp_path, catalog):
    """Factory building a :class:`ServiceContext` around fakes."""

    def _make(*responses, search: Optional[FakeSearch] = None, configured: bool = True,
              recorder: Optional[FeedbackRecorder] = None):
        llm = ScriptedLLM(*responses, configured=configured)
        search = search or FakeSearch([SearchResult(content="neutral slang explanation")])
        tracker = UsageTracker(tmp_path / "usage")
        pipeline = ModerationPipeline(llm, ResearchStep(search), BlockList(), tracker=tracker)
        recorder = recorder or FeedbackRecorder()
        ctx = ServiceContext(
            settings=Settings(),
            llm=llm,  # type: ignore[arg-type]
            pipeline=pipeline,
            dispatcher=ModerationDispatcher(pipeline, recorder.client()),
            assistant=ProductAssistant(llm, catalog, tracker=tracker),  # type: ignore[arg-type]
            tracker=tracker,
        )
        return ctx, llm, search, recorder

    return _make
