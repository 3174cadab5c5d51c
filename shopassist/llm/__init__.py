"""shopassist LLM integration module.

Provides a thin wrapper around the Anthropic API with usage tracking and the
prompt templates used by moderation and the product assistant.
"""

from shopassist.llm.client import LLMClient, LLMResponse
from shopassist.llm.usage_tracker import UsageRecord, UsageTracker

__all__ = [
    "LLMClient",
    "LLMResponse",
    "UsageTracker",
    "UsageRecord",
]
