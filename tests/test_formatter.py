import json

import pytest

from kubeprism.core.config import PrismConfig
from kubeprism.formatting.formatter import (
    FALLBACK_ACTION, FALLBACK_WARNING, OutputFormatter, format_output,
)
from kubeprism.formatting.schema import ListData, OutputType, TableData, TextData

TRUNCATION_MARKER = "[Content truncated for display. Original size: {} characters]"


@pytest.fixture
def formatter():
    return OutputFormatter()


@pytest.mark.parametrize("raw", [
    "",
    None,
    b"\xff\xfe\x00garbage",
    "{not json",
    "[1, 2",
    "\x00\x01\x02",
    "a" * 10_000_000,
    json.dumps(list(range(1000))),
])
def test_fallback_is_total(formatter, raw):
    """TOTALITY TEST: any input yields a valid fallback shape, never an exception."""
    output = formatter.format(raw, "kubectl_logs")

    assert output.warnings[0] == FALLBACK_WARNING
    assert output.actionable_items == [FALLBACK_ACTION]
    assert output.title == "kubectl_logs Output"
    assert output.summary == "Raw output from kubectl_logs. AI formatting was not available."
    assert output.metadata.tool_name == "kubectl_logs"


def test_fallback_array_becomes_list(formatter):
    output = formatter.format_simple('["pod-a", {"name": "pod-b"}, 3]', "kubectl_get")

    assert output.type is OutputType.LIST
    assert isinstance(output.data, ListData)
    assert [item.text for item in output.data.items] == ["pod-a", '{"name":"pod-b"}', "3"]
    assert [item.metadata for item in output.data.items] == ["Item 1", "Item 2", "Item 3"]
    assert {item.status for item in output.data.items} == {"normal"}
    assert output.metadata.data_points == 3


def test_fallback_list_is_capped(formatter):
    output = formatter.format_simple(json.dumps(list(range(250))), "t")
    assert len(output.data.items) == 100
    assert output.data.items[-1].metadata == "Item 100"


def test_fallback_list_cap_follows_config():
    output = OutputFormatter(PrismConfig(max_list_items=5)).format_simple(json.dumps(list(range(20))), "t")
    assert len(output.data.items) == 5


def test_fallback_object_becomes_pretty_json(formatter):
    output = formatter.format_simple('{"b": 1, "a": [1, 2]}', "describe")

    assert output.type is OutputType.TEXT
    assert output.data.language == "json"
    assert output.data.content == json.dumps({"b": 1, "a": [1, 2]}, indent=2)


def test_fallback_truncates_long_text(formatter):
    raw = "x" * 6000
    output = formatter.format_simple(raw, "t")

    assert output.data.language == "text"
    assert output.data.content.startswith("x" * 5000)
    assert output.data.content.endswith(TRUNCATION_MARKER.format(6000))
    assert output.data.content[5000:] == "\n\n" + TRUNCATION_MARKER.format(6000)
    assert output.warnings == [FALLBACK_WARNING, "Content truncated from 6000 to 5000 characters"]
    assert output.metadata.response_size == 6000


def test_fallback_short_text_is_untouched(formatter):
    output = formatter.format_simple("pod/web restarted", "t")
    assert output.data.content == "pod/web restarted"
    assert output.warnings == [FALLBACK_WARNING]


def test_fallback_marks_documentation_as_markdown(formatter):
    output = formatter.format_simple("# Title\n\nSome text", "fetch_docs")
    assert output.data.language == "markdown"


def test_fallback_decodes_bytes(formatter):
    output = formatter.format_simple("héllo".encode("utf-8"), "t")
    assert output.data.content == "héllo"


def test_primary_path_uses_ai_response(formatter):
    ai_response = (
        "Here you go:\n```json\n"
        + json.dumps({
            "type": "table",
            "title": "Pods",
            "summary": "Two pods",
            "data": {"headers": ["name"], "rows": [["a"], ["b"]]},
            "metadata": {"dataPoints": 50},
        })
        + "\n```"
    )
    output = formatter.format("raw kubectl text", "kubectl_get", ai_response=ai_response)

    assert output.type is OutputType.TABLE
    assert isinstance(output.data, TableData)
    assert output.title == "Pods"
    assert output.warnings == []
    assert output.metadata.data_points == 2
    assert output.metadata.response_size == len("raw kubectl text")


def test_primary_path_without_fence(formatter):
    ai_response = 'Sure! {"type": "text", "data": {"content": "ok"}} Hope this helps.'
    output = formatter.format("raw", "t", ai_response=ai_response)
    assert output.data == TextData(content="ok")
    assert output.summary == "Analysis completed"


@pytest.mark.parametrize("ai_response", [
    "I could not format this output.",
    '{"type": "table", "data": {"headers": ["a"]}}',
    '```json\n{"type": "unknown"}\n```',
    "{ broken",
])
def test_rejected_ai_response_falls_back(formatter, ai_response):
    output = formatter.format("raw text", "t", ai_response=ai_response)
    assert output.warnings[0] == FALLBACK_WARNING
    assert output.data.content == "raw text"


def test_format_output_wrapper():
    output = format_output('{"a": 1}', "t")
    assert output.data.language == "json"
