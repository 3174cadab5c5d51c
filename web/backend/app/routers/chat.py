"""Product assistant router."""

from __future__ import annotations

import logging

import anthropic
from fastapi import APIRouter, Depends, HTTPException

from shopassist.chat.schema import ChatReply
from shopassist.context import ServiceContext
from web.backend.app.middleware.auth import get_context
from web.backend.app.models.api import ChatRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatReply, response_model_exclude_none=True)
async def chat(req: ChatRequest, ctx: ServiceContext = Depends(get_context)):
    """Answer a product question for the given session."""
    if not ctx.llm.configured:
        raise HTTPException(
            status_code=503,
            detail="LLM not configured. Set the ANTHROPIC_API_KEY environment variable.",
        )
    try:
        return await ctx.assistant.reply(req.message, session_id=req.session_id)
    except anthropic.APIError as exc:
        logger.error("Chat completion failed: %s", exc)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Không thể xử lý tin nhắn của bạn",
                "errorMessage": str(exc) or "Đã xảy ra lỗi không xác định",
                "suggestion": "Vui lòng thử lại sau hoặc liên hệ hỗ trợ",
            },
        ) from exc
