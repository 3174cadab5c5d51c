"""Tests for the moderation pipeline state machine."""

import asyncio

import pytest

from shopassist.errors import ModerationError
from shopassist.llm.usage_tracker import UsageTracker
from shopassist.moderation.models import (
    ANALYSIS_ERROR_REASON,
    ModerationState,
    REGIONAL_REASON,
    RESEARCH_UNAVAILABLE,
    TOXIC_REASON,
    TriageLabel,
    Verdict,
)
from shopassist.search import SearchResult

from conftest import FakeSearch


def _run(pipeline, comment):
    return asyncio.run(pipeline.run(comment))


# --- Block-list short circuit ---


def test_blocklist_match_skips_all_capabilities(make_pipeline):
    pipeline, llm, search = make_pipeline()
    state = _run(pipeline, "backy nay cũng bán quần áo nữa hả")

    assert state.final_result == Verdict.block(REGIONAL_REASON)
    assert state.is_obviously_toxic
    assert state.trace == ["blocklist"]
    assert llm.calls == 0
    assert search.calls == []


def test_blocklist_works_without_llm_configured(make_pipeline):
    pipeline, llm, _ = make_pipeline(configured=False)
    verdict = asyncio.run(pipeline.moderate("Thời trang này chắc chỉ dành cho dân BACKY thôi"))
    assert verdict.to_dict() == {"pass": False, "reason": REGIONAL_REASON}


# --- Triage branches ---


def test_triage_toxic(make_pipeline):
    pipeline, llm, search = make_pipeline("TOXIC")
    state = _run(pipeline, "Đồ rác vcl, shop lừa đảo")

    assert state.final_result.to_dict() == {"pass": False, "reason": TOXIC_REASON}
    assert state.triage_label is TriageLabel.TOXIC
    assert state.is_obviously_toxic and not state.needs_research
    assert llm.calls == 1
    assert search.calls == []
    assert "Đồ rác vcl, shop lừa đảo" in llm.prompts[0]


def test_triage_safe(make_pipeline):
    pipeline, llm, search = make_pipeline("  SAFE\n")
    verdict = asyncio.run(pipeline.moderate("Sản phẩm này rất tốt, tôi khuyên mọi người nên mua"))

    assert verdict.to_dict() == {"pass": True, "reason": None}
    assert llm.calls == 1
    assert search.calls == []


def test_needs_research_full_path(make_pipeline):
    pipeline, llm, search = make_pipeline(
        "NEEDS_RESEARCH",
        "vcl là gì trong tiếng lóng Việt Nam",
        '{"pass": true, "reason": null}',
    )
    state = _run(pipeline, "Hàng oke, ship nhanh vcl")

    assert state.final_result.to_dict() == {"pass": True, "reason": None}
    assert state.trace == ["blocklist", "triage", "research_query", "research", "final_verdict"]
    assert state.research_query == "vcl là gì trong tiếng lóng Việt Nam"
    assert search.calls == [("vcl là gì trong tiếng lóng Việt Nam", 5)]
    assert state.research_results == "neutral slang explanation"
    # The final prompt carries both the comment and the research text
    assert "Hàng oke, ship nhanh vcl" in llm.prompts[2]
    assert "neutral slang explanation" in llm.prompts[2]


def test_unrecognized_triage_routes_to_research(make_pipeline):
    pipeline, llm, search = make_pipeline(
        "Tôi nghĩ bình luận này cần xem xét thêm",
        "query",
        '{"pass": false, "reason": "mỉa mai"}',
    )
    state = _run(pipeline, "Em này xinh thế nhưng chắc não toàn nước")

    assert state.triage_label is TriageLabel.UNRECOGNIZED
    assert state.needs_research
    assert len(search.calls) == 1
    assert state.final_result == Verdict.block("mỉa mai")


def test_research_runs_once_with_many_ambiguous_terms(make_pipeline):
    pipeline, llm, search = make_pipeline(
        "NEEDS_RESEARCH",
        "vcl vkl đc ko là gì\nthêm dòng thứ hai",
        '{"pass": true, "reason": null}',
    )
    state = _run(pipeline, "vcl vkl đc ko, hàng xịn")

    assert len(search.calls) == 1
    assert state.research_calls == 1
    assert state.research_query == "vcl vkl đc ko là gì"
    assert llm.calls == 3


# --- Degradation and failures ---


def test_search_failure_uses_placeholder(make_pipeline):
    failing = FakeSearch(error=RuntimeError("quota exceeded"))
    pipeline, llm, _ = make_pipeline(
        "NEEDS_RESEARCH", "query", '{"pass": false, "reason": "không rõ"}', search=failing
    )
    state = _run(pipeline, "ảo thật đấy")

    assert state.research_results == RESEARCH_UNAVAILABLE
    assert RESEARCH_UNAVAILABLE in llm.prompts[2]
    assert state.final_result == Verdict.block("không rõ")


def test_unparseable_final_output_fails_closed(make_pipeline):
    pipeline, _, _ = make_pipeline("NEEDS_RESEARCH", "query", "Bình luận này ổn.")
    verdict = asyncio.run(pipeline.moderate("hàng xịn xò"))
    assert verdict.to_dict() == {"pass": False, "reason": ANALYSIS_ERROR_REASON}


def test_capability_error_propagates(make_pipeline):
    pipeline, _, search = make_pipeline(ConnectionError("model unreachable"))
    with pytest.raises(ConnectionError):
        asyncio.run(pipeline.moderate("hàng đẹp"))
    assert search.calls == []


def test_query_generator_error_propagates(make_pipeline):
    pipeline, _, search = make_pipeline("NEEDS_RESEARCH", TimeoutError("slow"))
    with pytest.raises(TimeoutError):
        asyncio.run(pipeline.moderate("hàng đẹp vl"))
    assert search.calls == []


def test_empty_research_query_is_an_error(make_pipeline):
    pipeline, _, search = make_pipeline("NEEDS_RESEARCH", "   \n  ")
    with pytest.raises(ModerationError):
        asyncio.run(pipeline.moderate("hàng đẹp vl"))
    assert search.calls == []


def test_unconfigured_llm_raises_for_non_blocklisted(make_pipeline):
    pipeline, llm, _ = make_pipeline(configured=False)
    with pytest.raises(ModerationError):
        asyncio.run(pipeline.moderate("hàng đẹp"))
    assert llm.calls == 0


# --- Idempotence and usage tracking ---


def test_triage_decision_is_stable(make_pipeline):
    pipeline, _, _ = make_pipeline("TOXIC", "TOXIC")
    first = asyncio.run(pipeline.moderate("Đồ rác vcl, shop lừa đảo"))
    second = asyncio.run(pipeline.moderate("Đồ rác vcl, shop lừa đảo"))
    assert first == second


def test_llm_calls_recorded_per_stage(make_pipeline, tmp_path):
    tracker = UsageTracker(tmp_path)
    pipeline, _, _ = make_pipeline(
        "NEEDS_RESEARCH", "query", '{"pass": true, "reason": null}', tracker=tracker
    )
    asyncio.run(pipeline.moderate("hàng ngon vl"))

    purposes = sorted(r.purpose for r in tracker.get_usage())
    assert purposes == [
        "moderation.final_verdict",
        "moderation.research_query",
        "moderation.triage",
    ]
    assert len(tracker.get_usage(purpose="moderation")) == 3


def test_research_results_capped(make_pipeline):
    many = FakeSearch([SearchResult(content=f"snippet {i}") for i in range(8)])
    pipeline, _, _ = make_pipeline(
        "NEEDS_RESEARCH", "query", '{"pass": true, "reason": null}', search=many
    )
    state = _run(pipeline, "hàng ngon vl")
    assert state.research_results.count("snippet") == 5


def test_moderate_without_terminal_verdict_raises(make_pipeline, monkeypatch):
    pipeline, _, _ = make_pipeline()

    async def _unfinished(comment):
        state = ModerationState(comment=comment)
        state.enter("triage")
        return state

    monkeypatch.setattr(pipeline, "run", _unfinished)
    with pytest.raises(ModerationError, match="without a verdict"):
        asyncio.run(pipeline.moderate("hàng đẹp"))
