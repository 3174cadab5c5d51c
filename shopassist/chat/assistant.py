"""Retrieval-augmented product assistant.

Each chat turn retrieves catalog entries for the message, asks the LLM for a
structured :class:`ChatbotResponse`, and falls back to a fixed ``no_info``
answer when the model output cannot be parsed.  Conversation history is kept
in memory per session.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from shopassist.chat.catalog import ProductCatalog
from shopassist.chat.response import extract_json_from_message, fallback_response
from shopassist.chat.schema import ChatMeta, ChatReply
from shopassist.llm.client import LLMClient
from shopassist.llm.prompts import CHAT_SYSTEM_PROMPT, CHAT_USER_PROMPT
from shopassist.llm.usage_tracker import UsageTracker

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default-user"


@dataclass
class ConversationThread:
    """Message history for one session."""

    thread_id: str
    turns: list[tuple[str, str]] = field(default_factory=list)

    def render(self) -> str:
        if not self.turns:
            return "(chưa có)"
        return "\n".join(f"{role}: {text}" for role, text in self.turns)


class ProductAssistant:
    """Answers product questions grounded in a :class:`ProductCatalog`."""

    def __init__(
        self,
        llm: LLMClient,
        catalog: ProductCatalog,
        tracker: Optional[UsageTracker] = None,
        history_turns: int = 10,
        retrieve_k: int = 6,
        max_sessions: int = 1000,
    ) -> None:
        self._llm = llm
        self._catalog = catalog
        self._tracker = tracker
        self._history_turns = history_turns
        self._retrieve_k = retrieve_k
        self._max_sessions = max(1, max_sessions)
        self._threads: OrderedDict[str, ConversationThread] = OrderedDict()

    def thread_for(self, session_id: str) -> ConversationThread:
        """Return (creating on first use) the thread for *session_id*.

        At most *max_sessions* threads are kept; the least recently used one
        is forgotten when a new session would exceed the limit.
        """
        thread = self._threads.get(session_id)
        if thread is not None:
            self._threads.move_to_end(session_id)
            return thread
        thread_id = f"thread-{int(time.time() * 1000)}-{session_id}"
        thread = self._threads[session_id] = ConversationThread(thread_id=thread_id)
        while len(self._threads) > self._max_sessions:
            evicted, _ = self._threads.popitem(last=False)
            logger.debug("Dropped conversation history for session %r", evicted)
        return thread

    async def reply(self, message: str, session_id: Optional[str] = None) -> ChatReply:
        """Produce the assistant's answer to *message*."""
        session_id = session_id or DEFAULT_SESSION
        thread = self.thread_for(session_id)
        logger.info("Chat message from %r: %r", session_id, message[:80])

        start = time.monotonic()
        products = self._catalog.search(message, k=self._retrieve_k)
        tools_used = ["retrieve"] if products else None

        prompt = CHAT_USER_PROMPT.format(
            history=thread.render(),
            product_context=ProductCatalog.format_results(message, products),
            message=message,
        )
        resp = await self._llm.acomplete(prompt, system_prompt=CHAT_SYSTEM_PROMPT, temperature=0.0)
        if self._tracker is not None:
            self._tracker.record_response(resp, "chat")

        parsed = extract_json_from_message(resp.content)
        if parsed is None:
            logger.error("Could not parse assistant output, sending fallback answer")
            parsed = fallback_response()

        thread.turns.append(("Khách hàng", message))
        thread.turns.append(("Trợ lý", parsed.answer))
        del thread.turns[: -self._history_turns * 2]

        processing_ms = int((time.monotonic() - start) * 1000)
        logger.info("Chat reply for %r in %dms (%s)", session_id, processing_ms, parsed.response_type)
        return ChatReply(
            **parsed.model_dump(),
            meta=ChatMeta(
                session_id=session_id,
                processing_time=processing_ms,
                tools_used=tools_used,
                status="retrieving" if tools_used else "complete",
            ),
        )
