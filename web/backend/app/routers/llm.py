"""LLM status and usage router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from shopassist.context import ServiceContext
from shopassist.llm.client import NOT_CONFIGURED_MSG
from shopassist.llm.usage_tracker import Period, UsageSummary
from web.backend.app.middleware.auth import get_context
from web.backend.app.models.api import (
    LLMStatusResponse,
    UsageRecordResponse,
    UsageSummaryResponse,
)

router = APIRouter(prefix="/api/llm", tags=["llm"])


@router.get("/status", response_model=LLMStatusResponse)
async def get_status(ctx: ServiceContext = Depends(get_context)):
    """Report whether completions are available and with which model."""
    configured = ctx.llm.configured
    return LLMStatusResponse(
        configured=configured,
        model=ctx.llm.model,
        message="LLM is configured and ready." if configured else NOT_CONFIGURED_MSG,
    )


@router.get("/usage", response_model=UsageSummaryResponse)
async def get_usage(
    period: Period = Query("month"),
    purpose: Optional[str] = Query(None, description="e.g. 'moderation' or 'moderation.triage'"),
    ctx: ServiceContext = Depends(get_context),
):
    """Token and cost totals for *period*, plus the matching records."""
    if ctx.tracker is None:
        return UsageSummaryResponse()

    records = ctx.tracker.get_usage(period=period, purpose=purpose)
    summary = UsageSummary.of(records)
    return UsageSummaryResponse(
        total_input_tokens=summary.input_tokens,
        total_output_tokens=summary.output_tokens,
        total_cost=summary.cost,
        record_count=summary.count,
        records=[UsageRecordResponse(**vars(r)) for r in records],
    )
