"""Async Anthropic client used by moderation and the product assistant.

Every completion is returned as an :class:`LLMResponse` carrying token
counts, latency and an estimated USD cost.  Without an API key the client
stays usable: :meth:`LLMClient.acomplete` answers with a fixed stub so the
API can start and report itself as unconfigured.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any, NamedTuple

import anthropic


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


class ModelPrice(NamedTuple):
    """USD per million tokens."""

    input: float
    output: float


MODEL_PRICING: dict[str, ModelPrice] = {
    "claude-sonnet-4-5-20250929": ModelPrice(3.0, 15.0),
    "claude-sonnet-4-20250514": ModelPrice(3.0, 15.0),
    "claude-haiku-4-5-20251001": ModelPrice(1.0, 5.0),
    "claude-opus-4-20250514": ModelPrice(15.0, 75.0),
}

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

NOT_CONFIGURED_MSG = "LLM not configured. Set ANTHROPIC_API_KEY."


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Estimated USD cost; unknown models are priced like :data:`DEFAULT_MODEL`."""
    price = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_MODEL])
    cost = (input_tokens * price.input + output_tokens * price.output) / 1_000_000
    return round(cost, 6)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """One completion and what it cost."""

    content: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    latency_ms: int = 0
    cost_estimate: float = 0.0

    @classmethod
    def from_message(cls, message: Any, model: str, latency_ms: int) -> "LLMResponse":
        """Build from an SDK ``Message``; only text blocks are kept."""
        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        usage = message.usage
        return cls(
            content=text,
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_tokens=usage.input_tokens + usage.output_tokens,
            latency_ms=latency_ms,
            cost_estimate=estimate_cost(model, usage.input_tokens, usage.output_tokens),
        )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class LLMClient:
    """Single-turn completions over ``anthropic.AsyncAnthropic``.

    Parameters
    ----------
    model : str
        Model identifier for every request.
    api_key : str | None
        Anthropic API key.  Falls back to ``ANTHROPIC_API_KEY`` when *None*.
    max_retries : int
        Passed to the SDK, which retries connection errors and 429/5xx.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_retries: int = 2,
    ) -> None:
        self.model = model
        key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self._client = (
            anthropic.AsyncAnthropic(api_key=key, max_retries=max_retries) if key else None
        )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def acomplete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
    ) -> LLMResponse:
        """Send *prompt* as a single user turn.

        SDK errors (``anthropic.APIError`` and subclasses) propagate.
        """
        if self._client is None:
            return LLMResponse(content=NOT_CONFIGURED_MSG, model=self.model)

        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            request["system"] = system_prompt

        started = time.monotonic()
        message = await self._client.messages.create(**request)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return LLMResponse.from_message(message, self.model, elapsed_ms)
