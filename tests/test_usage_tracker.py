"""Tests for the LLM usage tracker."""

import json

from shopassist.llm.client import LLMResponse
from shopassist.llm.usage_tracker import UsageTracker


def test_record_and_read_back(tmp_path):
    tracker = UsageTracker(tmp_path)
    record = tracker.record_usage(
        model="claude-sonnet-4-5-20250929",
        input_tokens=1200,
        output_tokens=40,
        purpose="moderation.triage",
        cost_estimate=0.0042,
        latency_ms=350,
    )
    assert record.id
    assert record.timestamp

    files = list(tmp_path.glob("*.jsonl"))
    assert len(files) == 1
    stored = json.loads(files[0].read_text(encoding="utf-8").strip())
    assert stored["purpose"] == "moderation.triage"
    assert stored["latency_ms"] == 350

    [loaded] = tracker.get_usage(period="today")
    assert loaded.id == record.id


def test_record_response(tmp_path):
    tracker = UsageTracker(tmp_path)
    resp = LLMResponse(content="SAFE", model="m", input_tokens=10, output_tokens=1, latency_ms=12)
    record = tracker.record_response(resp, "moderation.triage")
    assert record.model == "m"
    assert record.latency_ms == 12


def test_purpose_prefix_filter(tmp_path):
    tracker = UsageTracker(tmp_path)
    for purpose in ("moderation.triage", "moderation.final_verdict", "chat", "moderationx"):
        tracker.record_usage("m", 1, 1, purpose, 0.001)

    assert len(tracker.get_usage(purpose="moderation")) == 2
    assert len(tracker.get_usage(purpose="moderation.")) == 2
    assert len(tracker.get_usage(purpose="chat")) == 1
    assert len(tracker.get_usage(period="week")) == 4


def test_totals(tmp_path):
    tracker = UsageTracker(tmp_path)
    tracker.record_usage("m", 100, 10, "chat", 0.25)
    tracker.record_usage("m", 50, 5, "moderation.triage", 0.5)

    total = tracker.summarize()
    assert total.cost == 0.75
    assert total.count == 2
    assert tracker.summarize(purpose="chat").cost == 0.25
    month = tracker.summarize(period="month")
    assert (month.input_tokens, month.output_tokens) == (150, 15)


def test_corrupt_lines_are_skipped(tmp_path):
    tracker = UsageTracker(tmp_path)
    tracker.record_usage("m", 1, 1, "chat", 0.0)
    with next(tmp_path.glob("*.jsonl")).open("a", encoding="utf-8") as fh:
        fh.write("not json\n")
        fh.write('{"unexpected": 1}\n')
    assert len(tracker.get_usage()) == 1
