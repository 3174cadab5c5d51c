"""Append-only log of LLM calls.

Each completion is written as one JSON line to ``<base_dir>/YYYY-MM.jsonl``.
Purposes are dotted (``moderation.triage``, ``moderation.final_verdict``,
``chat``) so a query for ``moderation`` covers every pipeline stage.
"""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, Literal

from shopassist.llm.client import LLMResponse

Period = Literal["today", "week", "month", "all"]


@dataclass
class UsageRecord:
    """One logged completion."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    purpose: str = ""
    cost_estimate: float = 0.0
    latency_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def matches(self, purpose: str | None) -> bool:
        if not purpose:
            return True
        stem = purpose.rstrip(".")
        return self.purpose == stem or self.purpose.startswith(stem + ".")


@dataclass
class UsageSummary:
    """Totals over a set of records."""

    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    count: int = 0

    @classmethod
    def of(cls, records: list[UsageRecord]) -> "UsageSummary":
        return cls(
            input_tokens=sum(r.input_tokens for r in records),
            output_tokens=sum(r.output_tokens for r in records),
            cost=round(sum(r.cost_estimate for r in records), 6),
            count=len(records),
        )


def period_start(period: Period, now: datetime | None = None) -> datetime | None:
    """UTC start of *period*, or *None* for ``"all"``."""
    now = now or datetime.now(timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "today":
        return midnight
    if period == "week":
        return midnight - timedelta(days=midnight.weekday())
    if period == "month":
        return midnight.replace(day=1)
    return None


class UsageTracker:
    """Writes and queries the monthly usage files under *base_dir*."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else Path.home() / ".shopassist" / "llm_usage"
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.Lock()

    # -- writing -------------------------------------------------------------

    def record_usage(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        purpose: str,
        cost_estimate: float,
        latency_ms: int = 0,
    ) -> UsageRecord:
        record = UsageRecord(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            purpose=purpose,
            cost_estimate=cost_estimate,
            latency_ms=latency_ms,
        )
        month_file = self.base_dir / f"{record.timestamp[:7]}.jsonl"
        with self._write_lock, month_file.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(record), ensure_ascii=False) + "\n")
        return record

    def record_response(self, response: LLMResponse, purpose: str) -> UsageRecord:
        return self.record_usage(
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            purpose=purpose,
            cost_estimate=response.cost_estimate,
            latency_ms=response.latency_ms,
        )

    # -- reading -------------------------------------------------------------

    def _iter_records(self, since: datetime | None) -> Iterator[UsageRecord]:
        first_month = since.strftime("%Y-%m") if since else ""
        for path in sorted(self.base_dir.glob("*.jsonl")):
            if path.stem < first_month:
                continue
            for line in path.read_text(encoding="utf-8").splitlines():
                if not line.strip():
                    continue
                try:
                    yield UsageRecord(**json.loads(line))
                except (json.JSONDecodeError, TypeError):
                    continue

    def get_usage(self, period: Period = "all", purpose: str | None = None) -> list[UsageRecord]:
        """Records in *period* whose purpose is *purpose* or nested under it, newest first."""
        since = period_start(period)
        cutoff = since.isoformat() if since else ""
        records = [
            r for r in self._iter_records(since) if r.timestamp >= cutoff and r.matches(purpose)
        ]
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records

    def summarize(self, period: Period = "all", purpose: str | None = None) -> UsageSummary:
        return UsageSummary.of(self.get_usage(period, purpose))
