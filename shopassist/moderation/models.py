"""Data models for the comment moderation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from shopassist.errors import VerdictAlreadySetError

# ---------------------------------------------------------------------------
# Fixed reasons
# ---------------------------------------------------------------------------

REGIONAL_REASON = "Bình luận có sử dụng từ ngữ mang tính phân biệt vùng miền"
TOXIC_REASON = "Bình luận chứa nội dung rõ ràng độc hại, toxic hoặc tiêu cực"
DEFAULT_BLOCK_REASON = "Bình luận không đạt tiêu chuẩn kiểm duyệt"
ANALYSIS_ERROR_REASON = "analysis error"

# Research text handed to the final classifier when search is unavailable.
RESEARCH_UNAVAILABLE = "no additional information available"


@dataclass(frozen=True)
class Verdict:
    """Terminal pass/fail judgment for a comment.

    ``reason`` is ``None`` for passing comments and set for blocked ones.
    """

    passed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(passed=True, reason=None)

    @classmethod
    def block(cls, reason: str) -> "Verdict":
        return cls(passed=False, reason=reason)

    @property
    def is_blocked(self) -> bool:
        return not self.passed

    def to_dict(self) -> dict[str, Any]:
        """Render with the wire field names (``pass``, ``reason``)."""
        return {"pass": self.passed, "reason": self.reason}


class TriageLabel(str, Enum):
    """Output of the triage classifier."""

    TOXIC = "TOXIC"
    NEEDS_RESEARCH = "NEEDS_RESEARCH"
    SAFE = "SAFE"
    UNRECOGNIZED = "UNRECOGNIZED"

    @classmethod
    def parse(cls, text: str) -> "TriageLabel":
        """Map raw classifier output to a label.

        Only the three literal tokens (after trimming whitespace) are
        recognised; anything else is ``UNRECOGNIZED``.
        """
        token = (text or "").strip()
        for label in (cls.TOXIC, cls.NEEDS_RESEARCH, cls.SAFE):
            if token == label.value:
                return label
        return cls.UNRECOGNIZED


@dataclass(frozen=True)
class ModerationRequest:
    """A review accepted at the API boundary, queued for moderation."""

    feedback_id: int
    comment: str
    authorization: str
    rating: Optional[float] = None


@dataclass
class ModerationState:
    """Working record threaded through one pipeline execution.

    Never shared between requests.  Once ``final_result`` is set the state
    is terminal and :meth:`finish` refuses to overwrite it.
    """

    comment: str
    is_obviously_toxic: bool = False
    needs_research: bool = False
    research_results: str = ""
    final_result: Optional[Verdict] = None
    triage_label: Optional[TriageLabel] = None
    research_query: str = ""
    research_calls: int = 0
    trace: list[str] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.final_result is not None

    def enter(self, stage: str) -> None:
        if self.is_terminal:
            raise VerdictAlreadySetError(
                f"Cannot enter stage '{stage}': verdict already produced"
            )
        self.trace.append(stage)

    def mark_toxic(self) -> None:
        self.is_obviously_toxic = True
        self.needs_research = False

    def mark_needs_research(self) -> None:
        self.needs_research = True
        self.is_obviously_toxic = False

    def finish(self, verdict: Verdict) -> Verdict:
        if self.final_result is not None:
            raise VerdictAlreadySetError("Verdict already produced for this comment")
        self.final_result = verdict
        return verdict
