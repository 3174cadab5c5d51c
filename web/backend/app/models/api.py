"""Pydantic models for API request/response serialization.

Field names on the wire follow the store frontend's conventions (``pass``,
``sessionId``); Python attribute names stay snake_case via aliases.
"""

from __future__ import annotations

import math
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator


# ---------------------------------------------------------------------------
# Moderation models
# ---------------------------------------------------------------------------


class ModerationSubmitRequest(BaseModel):
    """A product review submitted for background moderation."""

    id: StrictInt = Field(..., gt=0, description="Feedback record identifier")
    comment: StrictStr = Field(..., min_length=1, description="Review text")
    rating: Optional[Union[StrictInt, StrictFloat]] = Field(None, description="Star rating")

    @field_validator("rating")
    @classmethod
    def rating_is_finite(cls, value):
        if value is not None and not math.isfinite(value):
            raise ValueError("rating must be a finite number")
        return value


class ModerationAckResponse(BaseModel):
    """Immediate acknowledgement; the verdict is never part of it."""

    success: bool = True
    message: str


class ModerationCheckRequest(BaseModel):
    """A comment to moderate inline."""

    comment: StrictStr = Field(..., min_length=1)


class VerdictResponse(BaseModel):
    """Mirrors shopassist.moderation.models.Verdict."""

    model_config = ConfigDict(populate_by_name=True)

    passed: bool = Field(alias="pass")
    reason: Optional[str] = None


class BlocklistResponse(BaseModel):
    terms: list[str] = Field(default_factory=list)
    reason: str = ""


# ---------------------------------------------------------------------------
# Chat models
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A message to the product assistant."""

    model_config = ConfigDict(populate_by_name=True)

    message: StrictStr = Field(..., min_length=1)
    session_id: Optional[str] = Field(None, alias="sessionId")


# ---------------------------------------------------------------------------
# LLM status / usage models
# ---------------------------------------------------------------------------


class LLMStatusResponse(BaseModel):
    configured: bool = False
    model: str = ""
    message: str = ""


class UsageRecordResponse(BaseModel):
    """Mirrors shopassist.llm.usage_tracker.UsageRecord."""

    id: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    purpose: str = ""
    cost_estimate: float = 0.0
    latency_ms: int = 0
    timestamp: str = ""


class UsageSummaryResponse(BaseModel):
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost: float = 0.0
    record_count: int = 0
    records: list[UsageRecordResponse] = Field(default_factory=list)
