"""Tests for the product assistant, its catalog and output parsing."""

import asyncio
import json
import unicodedata

from shopassist.chat.assistant import DEFAULT_SESSION, ProductAssistant
from shopassist.chat.catalog import NO_RESULTS_MESSAGE, ProductCatalog
from shopassist.chat.response import FALLBACK_ANSWER, extract_json_from_message

from conftest import ScriptedLLM


def _answer(**overrides):
    data = {"answer": "Xin chào! Tôi có thể giúp gì cho bạn?", "response_type": "greeting"}
    data.update(overrides)
    return json.dumps(data, ensure_ascii=False)


# --- Output parsing ---


def test_extract_plain_json():
    parsed = extract_json_from_message(_answer())
    assert parsed.response_type == "greeting"


def test_extract_prefers_fenced_block():
    content = f"Đây là câu trả lời:\n```json\n{_answer(response_type='general_info')}\n```"
    parsed = extract_json_from_message(content)
    assert parsed.response_type == "general_info"


def test_extract_requires_response_type():
    assert extract_json_from_message('{"answer": "hi"}') is None


def test_extract_rejects_unknown_response_type():
    assert extract_json_from_message(_answer(response_type="weather")) is None


def test_extract_rejects_non_json():
    assert extract_json_from_message("Xin chào bạn") is None
    assert extract_json_from_message("") is None


def test_extract_rejects_bad_product_id():
    content = _answer(response_type="product_list", related_products=[{"id": 0, "name": "x"}])
    assert extract_json_from_message(content) is None


# --- Catalog ---


def test_catalog_search_ranks_by_relevance(catalog):
    results = catalog.search("quần jean màu xanh")
    assert [p.id for p in results] == [2]

    results = catalog.search("váy hoa cotton")
    assert [p.id for p in results] == [3, 1]


def test_catalog_search_respects_k(catalog):
    assert len(catalog.search("áo quần váy", k=2)) == 2
    assert catalog.search("áo quần váy", k=0) == []


def test_catalog_search_ignores_query_syntax(catalog):
    results = catalog.search('name:JEAN AND ("slim*')
    assert [p.id for p in results] == [2]


def test_catalog_search_matches_decomposed_input(catalog):
    decomposed = unicodedata.normalize("NFD", "Váy đi biển")
    assert [p.id for p in catalog.search(decomposed)] == [3]


def test_catalog_search_empty_catalog():
    assert ProductCatalog().search("áo") == []


def test_catalog_search_empty_query(catalog):
    assert catalog.search("   ") == []


def test_format_results_groups_by_source(catalog):
    text = ProductCatalog.format_results("váy áo", [catalog.get(1), catalog.get(3)])
    assert text.startswith('Found 2 relevant sections from 2 sources for query: "váy áo".')
    assert "Source: catalog.json" in text
    assert "Source: summer.pdf (Page 2)" in text
    assert "Tên: Váy maxi hoa nhí" in text


def test_format_results_empty():
    assert ProductCatalog.format_results("x", []) == NO_RESULTS_MESSAGE


def test_catalog_from_json(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(
        json.dumps(
            {
                "products": [
                    {"id": 10, "name": "Áo khoác gió", "price": 350000, "color": "đen"},
                    {"name": "missing id"},
                ]
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    catalog = ProductCatalog.from_json(path)
    assert len(catalog) == 1
    product = catalog.get(10)
    assert product.source == "products.json"
    assert product.extra == {"color": "đen"}
    assert "color: đen" in product.render()


# --- Assistant ---


def test_reply_with_products(catalog):
    llm = ScriptedLLM(_answer(answer="Có ạ", response_type="product_detail"))
    assistant = ProductAssistant(llm, catalog)

    reply = asyncio.run(assistant.reply("váy đi biển", session_id="s1"))

    assert reply.answer == "Có ạ"
    assert reply.meta.session_id == "s1"
    assert reply.meta.tools_used == ["retrieve"]
    assert reply.meta.status == "retrieving"
    assert "Váy maxi hoa nhí" in llm.prompts[0]


def test_reply_falls_back_on_bad_output(catalog):
    llm = ScriptedLLM("Xin lỗi, tôi không chắc.")
    reply = asyncio.run(ProductAssistant(llm, catalog).reply("xyz"))

    assert reply.answer == FALLBACK_ANSWER
    assert reply.response_type == "no_info"
    assert reply.meta.session_id == DEFAULT_SESSION
    assert reply.meta.tools_used is None
    assert reply.meta.status == "complete"


def test_history_is_kept_per_session(catalog):
    llm = ScriptedLLM(_answer(answer="Chào bạn"), _answer(answer="Lần hai"), _answer())
    assistant = ProductAssistant(llm, catalog)

    asyncio.run(assistant.reply("xin chào", session_id="a"))
    asyncio.run(assistant.reply("còn áo không", session_id="a"))
    asyncio.run(assistant.reply("xin chào", session_id="b"))

    assert "Khách hàng: xin chào" in llm.prompts[1]
    assert "Trợ lý: Chào bạn" in llm.prompts[1]
    assert "Chào bạn" not in llm.prompts[2]


def test_history_is_trimmed(catalog):
    llm = ScriptedLLM(*[_answer(answer=f"a{i}") for i in range(4)])
    assistant = ProductAssistant(llm, catalog, history_turns=1)
    for i in range(4):
        asyncio.run(assistant.reply(f"m{i}", session_id="s"))

    assert assistant.thread_for("s").turns == [("Khách hàng", "m3"), ("Trợ lý", "a3")]


def test_least_recent_session_is_forgotten(catalog):
    llm = ScriptedLLM(*[_answer(answer=f"a{i}") for i in range(4)])
    assistant = ProductAssistant(llm, catalog, max_sessions=2)
    asyncio.run(assistant.reply("m0", session_id="s1"))
    asyncio.run(assistant.reply("m1", session_id="s2"))
    asyncio.run(assistant.reply("m2", session_id="s1"))
    asyncio.run(assistant.reply("m3", session_id="s3"))

    assert assistant.thread_for("s1").turns[0] == ("Khách hàng", "m0")
    assert assistant.thread_for("s3").turns[0] == ("Khách hàng", "m3")
    assert assistant.thread_for("s2").turns == []


def test_chat_usage_recorded(catalog, tmp_path):
    from shopassist.llm.usage_tracker import UsageTracker

    tracker = UsageTracker(tmp_path)
    assistant = ProductAssistant(ScriptedLLM(_answer()), catalog, tracker=tracker)
    asyncio.run(assistant.reply("xin chào"))
    assert [r.purpose for r in tracker.get_usage()] == ["chat"]
