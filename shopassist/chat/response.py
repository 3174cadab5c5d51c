"""Extraction of the assistant's JSON answer from raw model text."""

from __future__ import annotations

import json
import logging
import re
from typing import Optional

from pydantic import ValidationError

from shopassist.chat.schema import ChatbotResponse

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")

FALLBACK_ANSWER = (
    "Oh oh, tôi đói bụng quá nên lỡ ăn mất câu trả lời rồi. Bạn hỏi lại được hông!"
)


def fallback_response() -> ChatbotResponse:
    return ChatbotResponse(answer=FALLBACK_ANSWER, response_type="no_info")


def extract_json_from_message(content: str) -> Optional[ChatbotResponse]:
    """Parse *content* into a :class:`ChatbotResponse`.

    A fenced ```json block wins over the surrounding text.  Returns *None*
    when the text is not JSON, lacks ``response_type``, or does not match
    the schema.
    """
    if not content or not isinstance(content, str):
        return None

    match = _FENCED_JSON.search(content)
    json_string = match.group(1) if match else content.strip()

    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse assistant output as JSON: %s", exc)
        return None

    if not isinstance(data, dict) or not data.get("response_type"):
        logger.error("Assistant JSON is missing required 'response_type'")
        return None

    try:
        return ChatbotResponse.model_validate(data)
    except ValidationError as exc:
        logger.warning("Assistant JSON does not match schema: %s", exc.errors())
        return None
