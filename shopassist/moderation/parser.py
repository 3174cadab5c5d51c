"""Verdict parsing for the final classifier's free-text output.

The classifier is asked for ``{"pass": bool, "reason": str | null}`` but may
wrap it in prose or markdown fences.  The outermost ``{...}`` span is used as
a pre-filter, then the object is validated strictly.  Anything that does not
survive both steps becomes a blocking ``analysis error`` verdict.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError

from shopassist.moderation.models import ANALYSIS_ERROR_REASON, DEFAULT_BLOCK_REASON, Verdict

logger = logging.getLogger(__name__)

_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


class VerdictPayload(BaseModel):
    """Schema the final classifier must satisfy."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    passed: StrictBool = Field(alias="pass")
    reason: Optional[StrictStr] = None


def extract_json_object(text: str) -> Optional[str]:
    """Return the substring from the first ``{`` to the last ``}``."""
    match = _OBJECT_SPAN.search(text or "")
    return match.group(0) if match else None


def parse_verdict(raw: str) -> Verdict:
    """Turn raw classifier output into a :class:`Verdict`, failing closed."""
    candidate = extract_json_object(raw)
    if candidate is None:
        logger.warning("No JSON object in final classifier output")
        return Verdict.block(ANALYSIS_ERROR_REASON)

    try:
        payload = VerdictPayload.model_validate(json.loads(candidate))
    except json.JSONDecodeError as exc:
        logger.warning("Final classifier output is not valid JSON: %s", exc)
        return Verdict.block(ANALYSIS_ERROR_REASON)
    except ValidationError as exc:
        logger.warning("Final classifier verdict failed validation: %s", exc.errors())
        return Verdict.block(ANALYSIS_ERROR_REASON)

    if payload.passed:
        return Verdict.allow()
    reason = (payload.reason or "").strip()
    return Verdict.block(reason or DEFAULT_BLOCK_REASON)
