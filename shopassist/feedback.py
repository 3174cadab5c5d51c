"""Client for the store backend's feedback records.

The only durable effect of moderation is a ``PUT`` to
``/feedback/update/{id}`` carrying the verdict.  The caller's original
``Authorization`` header is forwarded unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from shopassist.errors import FeedbackUpdateError
from shopassist.moderation.models import ModerationRequest, Verdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedbackUpdate:
    """Body of the feedback update call."""

    comment: str
    rating: Optional[float]
    is_blocked: bool
    block_reason: Optional[str]

    @classmethod
    def from_verdict(cls, request: ModerationRequest, verdict: Verdict) -> "FeedbackUpdate":
        return cls(
            comment=request.comment,
            rating=request.rating,
            is_blocked=not verdict.passed,
            block_reason=verdict.reason,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "comment": self.comment,
            "rating": self.rating,
            "isBlocked": self.is_blocked,
            "blockReason": self.block_reason,
        }


class FeedbackClient:
    """Async HTTP client for feedback updates.

    Parameters
    ----------
    base_url : str
        Root URL of the store backend.
    timeout : float
        Per-request timeout in seconds.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def update_url(self, feedback_id: int) -> str:
        return f"{self.base_url}/feedback/update/{feedback_id}"

    async def update(
        self,
        feedback_id: int,
        update: FeedbackUpdate,
        authorization: str,
    ) -> httpx.Response:
        """Send the update; raise :class:`FeedbackUpdateError` on any failure."""
        url = self.update_url(feedback_id)
        headers = {
            "Authorization": authorization,
            "Content-Type": "application/json",
        }
        logger.info("PUT %s (isBlocked=%s)", url, update.is_blocked)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.put(url, json=update.to_json(), headers=headers)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FeedbackUpdateError(
                f"Feedback API returned {exc.response.status_code} for id {feedback_id}",
                status_code=exc.response.status_code,
                response_body=exc.response.text[:2000],
            ) from exc
        except httpx.RequestError as exc:
            raise FeedbackUpdateError(
                f"Could not reach feedback API for id {feedback_id}: {exc}"
            ) from exc
        except ValueError as exc:
            # Unencodable body (NaN rating) or non-ASCII header value
            raise FeedbackUpdateError(
                f"Could not build feedback update for id {feedback_id}: {exc}"
            ) from exc
        return resp
