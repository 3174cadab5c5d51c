"""Background dispatch of moderation requests.

:meth:`ModerationDispatcher.dispatch` is scheduled after the HTTP handler has
already acknowledged the submission, so nothing it raises could reach the
submitter.  It is therefore its own error boundary: failures are logged and
swallowed, with no retry.
"""

from __future__ import annotations

import logging
from typing import Optional

from shopassist.errors import FeedbackUpdateError
from shopassist.feedback import FeedbackClient, FeedbackUpdate
from shopassist.moderation.models import ModerationRequest, Verdict
from shopassist.moderation.pipeline import ModerationPipeline

logger = logging.getLogger(__name__)


class ModerationDispatcher:
    """Runs the pipeline for a request and pushes the verdict upstream."""

    def __init__(self, pipeline: ModerationPipeline, feedback: FeedbackClient) -> None:
        self._pipeline = pipeline
        self._feedback = feedback

    async def dispatch(self, request: ModerationRequest) -> Optional[Verdict]:
        """Moderate *request* and update its feedback record.

        Returns the verdict, or *None* when the pipeline failed before one
        existed (in which case no update is attempted).
        """
        logger.info("Moderating feedback %s", request.feedback_id)
        try:
            verdict = await self._pipeline.moderate(request.comment)
        except Exception:
            logger.exception("Moderation failed for feedback %s", request.feedback_id)
            return None

        logger.info("Feedback %s verdict: pass=%s", request.feedback_id, verdict.passed)

        update = FeedbackUpdate.from_verdict(request, verdict)
        try:
            await self._feedback.update(request.feedback_id, update, request.authorization)
        except FeedbackUpdateError as exc:
            logger.error("Feedback update failed for %s: %s", request.feedback_id, exc)
            if exc.response_body:
                logger.error("Feedback API response: %s", exc.response_body)
        except Exception:
            logger.exception("Feedback update failed for %s", request.feedback_id)
        else:
            logger.info("Feedback %s updated", request.feedback_id)
        return verdict
