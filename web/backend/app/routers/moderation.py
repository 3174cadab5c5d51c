"""Comment moderation router.

``POST /api/moderate`` acknowledges a review immediately and moderates it in
a background task that later updates the store's feedback record.
``POST /api/moderate/sync`` runs the same pipeline inline and returns the
verdict.
"""

from __future__ import annotations

import logging

import anthropic
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from shopassist.context import ServiceContext
from shopassist.errors import ModerationError
from shopassist.moderation.models import ModerationRequest
from web.backend.app.middleware.auth import get_context, require_authorization
from web.backend.app.models.api import (
    BlocklistResponse,
    ModerationAckResponse,
    ModerationCheckRequest,
    ModerationSubmitRequest,
    VerdictResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/moderate", tags=["moderation"])

ACK_MESSAGE = (
    "Cảm ơn rất nhiều vì bạn đã gửi đánh giá. "
    "Chúng tôi sẽ sớm kiểm duyệt đánh giá của bạn"
)
NOT_READY_MESSAGE = "Dịch vụ kiểm duyệt chưa sẵn sàng, vui lòng thử lại sau"


@router.post(
    "",
    response_model=ModerationAckResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a review for background moderation",
)
async def submit_for_moderation(
    req: ModerationSubmitRequest,
    background_tasks: BackgroundTasks,
    authorization: str = Depends(require_authorization),
    ctx: ServiceContext = Depends(get_context),
):
    """Acknowledge the review and schedule moderation.

    The verdict is delivered later to the feedback API, authenticated with
    the caller's own ``Authorization`` header.
    """
    if not ctx.llm.configured:
        logger.error("Moderation requested but LLM is not configured")
        raise HTTPException(status_code=503, detail=NOT_READY_MESSAGE)

    request = ModerationRequest(
        feedback_id=req.id,
        comment=req.comment,
        rating=req.rating,
        authorization=authorization,
    )
    background_tasks.add_task(ctx.dispatcher.dispatch, request)
    logger.info("Accepted feedback %s for moderation", req.id)
    return ModerationAckResponse(success=True, message=ACK_MESSAGE)


@router.post(
    "/sync",
    response_model=VerdictResponse,
    summary="Moderate a comment and return the verdict",
)
async def moderate_now(
    req: ModerationCheckRequest,
    ctx: ServiceContext = Depends(get_context),
):
    """Run the full pipeline inline.  Slow: several model and search calls."""
    try:
        verdict = await ctx.pipeline.moderate(req.comment)
    except ModerationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except anthropic.APIError as exc:
        logger.error("Classifier call failed: %s", exc)
        raise HTTPException(status_code=502, detail="Classifier unavailable") from exc
    return VerdictResponse(passed=verdict.passed, reason=verdict.reason)


@router.get("/blocklist", response_model=BlocklistResponse)
async def get_blocklist(ctx: ServiceContext = Depends(get_context)):
    """List the active block-list terms."""
    return BlocklistResponse(terms=list(ctx.blocklist.terms), reason=ctx.blocklist.reason)
