"""Structured response contract of the product assistant."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ResponseType = Literal[
    "product_detail",
    "product_list",
    "general_info",
    "no_info",
    "greeting",
    "clarification",
    "order_support",
    "technical_support",
]


class ProductInfo(BaseModel):
    """A product mentioned in an answer; ``id`` must come from the catalog."""

    id: int = Field(..., gt=0)
    name: str
    price: Optional[float] = None
    sale_price: Optional[float] = None
    description: Optional[str] = None


class SuggestedAction(BaseModel):
    type: Literal["link", "quick_reply"]
    text: str
    value: str


class ResponseMetadata(BaseModel):
    confidence_score: Optional[float] = Field(None, ge=0, le=1)
    search_keywords: Optional[list[str]] = None
    category: Optional[str] = None


class ChatbotResponse(BaseModel):
    """What the LLM is asked to return for every chat turn."""

    answer: str
    response_type: ResponseType
    related_products: Optional[list[ProductInfo]] = None
    followup_questions: Optional[list[str]] = None
    suggested_actions: Optional[list[SuggestedAction]] = None
    escalate_to_human: Optional[bool] = None
    metadata: Optional[ResponseMetadata] = None


class ChatMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    processing_time: int = Field(alias="processingTime")
    tools_used: Optional[list[str]] = Field(None, alias="toolsUsed")
    status: str = "complete"


class ChatReply(ChatbotResponse):
    """A :class:`ChatbotResponse` plus request metadata under ``_meta``."""

    model_config = ConfigDict(populate_by_name=True)

    meta: ChatMeta = Field(alias="_meta")
