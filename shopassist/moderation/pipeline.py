"""Multi-stage comment moderation pipeline.

Stages run strictly in order, each one only after the previous one has
produced its output::

    blocklist --match--> verdict (blocked)
        |
      triage --SAFE/TOXIC--> verdict
        |  NEEDS_RESEARCH or unrecognised output
    research_query -> research -> final_verdict -> parse -> verdict

The block-list and triage decisions are final.  Research runs at most once
per comment, and search failures degrade to a placeholder instead of
aborting.  Errors from the language model propagate to the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from shopassist.errors import ModerationError
from shopassist.llm.client import LLMClient, LLMResponse
from shopassist.llm.prompts import FINAL_VERDICT_PROMPT, RESEARCH_QUERY_PROMPT, TRIAGE_PROMPT
from shopassist.llm.usage_tracker import UsageTracker
from shopassist.moderation.blocklist import BlockList
from shopassist.moderation.models import (
    TOXIC_REASON,
    ModerationState,
    TriageLabel,
    Verdict,
)
from shopassist.moderation.parser import parse_verdict
from shopassist.moderation.research import ResearchStep

logger = logging.getLogger(__name__)

# Stage names recorded in ModerationState.trace
STAGE_BLOCKLIST = "blocklist"
STAGE_TRIAGE = "triage"
STAGE_RESEARCH_QUERY = "research_query"
STAGE_RESEARCH = "research"
STAGE_FINAL_VERDICT = "final_verdict"


class ModerationPipeline:
    """Classifies a single comment into a :class:`Verdict`.

    Parameters
    ----------
    llm : LLMClient
        Text-classification/generation capability.
    research : ResearchStep
        Web-search research step.
    blocklist : BlockList | None
        Deterministic pre-filter.  Defaults to the built-in term list.
    tracker : UsageTracker | None
        When given, every LLM call is recorded under a ``moderation.*``
        purpose.
    temperature : float
        Sampling temperature for all moderation prompts.
    """

    def __init__(
        self,
        llm: LLMClient,
        research: ResearchStep,
        blocklist: Optional[BlockList] = None,
        tracker: Optional[UsageTracker] = None,
        temperature: float = 0.1,
    ) -> None:
        self._llm = llm
        self._research = research
        self._blocklist = blocklist or BlockList()
        self._tracker = tracker
        self._temperature = temperature

    @property
    def blocklist(self) -> BlockList:
        return self._blocklist

    # -- public API ----------------------------------------------------------

    async def moderate(self, comment: str) -> Verdict:
        """Return the verdict for *comment*."""
        state = await self.run(comment)
        if state.final_result is None:
            raise ModerationError(f"Pipeline ended without a verdict (stages: {state.trace})")
        return state.final_result

    async def run(self, comment: str) -> ModerationState:
        """Execute every applicable stage and return the terminal state."""
        state = ModerationState(comment=comment)

        # 1. Block-list
        state.enter(STAGE_BLOCKLIST)
        verdict = self._blocklist.check(comment)
        if verdict is not None:
            logger.info("Block-list match, skipping classifiers")
            state.mark_toxic()
            state.finish(verdict)
            return state

        self._require_llm()

        # 2. Triage
        state.enter(STAGE_TRIAGE)
        label = await self.triage(comment)
        state.triage_label = label
        if label is TriageLabel.SAFE:
            state.finish(Verdict.allow())
            return state
        if label is TriageLabel.TOXIC:
            state.mark_toxic()
            state.finish(Verdict.block(TOXIC_REASON))
            return state
        if label is TriageLabel.UNRECOGNIZED:
            logger.warning("Unrecognised triage output, routing to research")
        state.mark_needs_research()

        # 3. Research query
        state.enter(STAGE_RESEARCH_QUERY)
        state.research_query = await self._generate_query(comment)

        # 4. Research (once)
        state.enter(STAGE_RESEARCH)
        state.research_calls += 1
        state.research_results = await self._research.gather(state.research_query)

        # 5. Final verdict + parse
        state.enter(STAGE_FINAL_VERDICT)
        raw = await self._final_verdict(comment, state.research_results)
        state.finish(parse_verdict(raw))
        logger.info("Final verdict: pass=%s", state.final_result.passed)
        return state

    async def triage(self, comment: str) -> TriageLabel:
        """Run the triage classifier alone."""
        resp = await self._ask(TRIAGE_PROMPT.format(comment=comment), "moderation.triage")
        label = TriageLabel.parse(resp.content)
        logger.info("Triage result: %s (raw=%r)", label.value, resp.content.strip()[:40])
        return label

    # -- stages --------------------------------------------------------------

    async def _generate_query(self, comment: str) -> str:
        resp = await self._ask(
            RESEARCH_QUERY_PROMPT.format(comment=comment), "moderation.research_query"
        )
        query = _first_line(resp.content)
        if not query:
            raise ModerationError("Research query generator returned an empty query")
        logger.info("Research query: %s", query)
        return query

    async def _final_verdict(self, comment: str, research_results: str) -> str:
        prompt = FINAL_VERDICT_PROMPT.format(comment=comment, research_results=research_results)
        resp = await self._ask(prompt, "moderation.final_verdict")
        return resp.content

    # -- helpers -------------------------------------------------------------

    def _require_llm(self) -> None:
        if not getattr(self._llm, "configured", False):
            raise ModerationError("LLM not configured. Set ANTHROPIC_API_KEY.")

    async def _ask(self, prompt: str, purpose: str) -> LLMResponse:
        resp = await self._llm.acomplete(prompt, max_tokens=1024, temperature=self._temperature)
        if self._tracker is not None:
            self._tracker.record_response(resp, purpose)
        return resp


def _first_line(text: str) -> str:
    for line in (text or "").splitlines():
        line = line.strip().strip('"').strip()
        if line:
            return line
    return ""
