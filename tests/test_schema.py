import pytest

from kubeprism.core.models import ErrorKind
from kubeprism.formatting.schema import (
    FormattedOutput, ListData, ListItem, MetricsData, OutputType, RawData, TableData, TextData,
    build_formatted_output, estimate_data_points,
)


@pytest.mark.parametrize("data, expected", [
    (None, 0),
    ([1, 2, 3], 3),
    ({"headers": ["a"], "rows": [[1], [2]]}, 2),
    ({"items": [{"text": "a"}]}, 1),
    ({"primary": [{}, {}], "secondary": [{}]}, 3),
    ({"primary": [{}]}, 1),
    ({"content": "x", "language": "text"}, 2),
    ("scalar", 1),
    (7, 1),
])
def test_estimate_data_points(data, expected):
    assert estimate_data_points(data) == expected


def test_table_payload():
    built = build_formatted_output({
        "type": "table",
        "title": "Pods",
        "summary": "2 pods",
        "data": {"headers": ["name", "status"], "rows": [["a", "Running"], ["b", "Pending"]],
                 "sortBy": "name", "highlightRows": [1]},
        "insights": ["One pod is pending"],
    }, tool_name="kubectl_get")

    assert built.ok
    output = built.value
    assert output.type is OutputType.TABLE
    assert isinstance(output.data, TableData)
    assert output.data.highlight_rows == [1]
    assert output.warnings == []
    assert output.actionable_items == []
    assert output.metadata.tool_name == "kubectl_get"
    assert output.metadata.data_points == 2


def test_defaults_for_missing_fields():
    built = build_formatted_output({"data": {"content": "hello"}}, tool_name="echo")
    assert built.ok
    assert built.value.type is OutputType.TEXT
    assert built.value.title == "echo Output"
    assert built.value.summary == "Analysis completed"
    assert built.value.insights == []


def test_upstream_data_points_are_recomputed():
    built = build_formatted_output({
        "type": "list",
        "data": {"items": ["a", {"text": "b", "status": "warning"}]},
        "metadata": {"dataPoints": 999, "toolName": "upstream"},
    }, tool_name="local")

    assert built.value.metadata.data_points == 2
    assert built.value.metadata.tool_name == "upstream"
    assert built.value.data.items[0] == ListItem(text="a")
    assert built.value.data.items[1].status == "warning"


def test_metrics_payload():
    built = build_formatted_output({
        "type": "metrics",
        "data": {"primary": [{"label": "CPU", "value": "80%", "status": "warning"}],
                 "secondary": [{"label": "Pods", "value": 12}]},
    }, tool_name="top")

    assert isinstance(built.value.data, MetricsData)
    assert built.value.data.secondary[0].status == "normal"
    assert built.value.metadata.data_points == 2


def test_raw_payload_needs_no_data():
    built = build_formatted_output({"type": "raw"}, tool_name="x")
    assert built.ok
    assert built.value.data == RawData(None)
    assert built.value.metadata.data_points == 0


@pytest.mark.parametrize("payload", [
    "not an object",
    [1, 2],
    {"type": "hologram", "data": {}},
    {"type": "table"},
    {"type": "table", "data": {"headers": ["a"]}},
    {"type": "table", "data": {"headers": ["a"], "rows": ["not-a-row"]}},
    {"type": "list", "data": {"items": [{"status": "error"}]}},
    {"type": "text", "data": {"content": 5}},
    {"type": "error", "data": {"details": "no message"}},
    {"type": "graph", "data": {"datasets": []}},
    {"type": "metrics", "data": {"primary": [{"label": "no value"}]}},
    {"type": "text", "data": {"content": "x"}, "title": {"nested": True}},
])
def test_schema_violations(payload):
    built = build_formatted_output(payload, tool_name="t")
    assert not built.ok
    assert built.error is ErrorKind.SCHEMA_VIOLATION


def test_formatted_output_rejects_mismatched_data():
    with pytest.raises(ValueError):
        FormattedOutput(type=OutputType.TABLE, title="t", summary="s", data=TextData(content="x"))


def test_formatted_output_accepts_string_type():
    output = FormattedOutput(type="list", title="t", summary="s", data=ListData(items=[]))
    assert output.type is OutputType.LIST


def test_wire_shape():
    built = build_formatted_output({
        "type": "table",
        "data": {"headers": ["h"], "rows": [["v"]], "sortBy": "h"},
    }, tool_name="kubectl_get", response_size=10)

    wire = built.value.to_dict()
    assert wire["type"] == "table"
    assert wire["data"] == {"headers": ["h"], "rows": [["v"]], "sortBy": "h"}
    assert wire["metadata"]["toolName"] == "kubectl_get"
    assert wire["metadata"]["responseSize"] == 10
    assert wire["metadata"]["dataPoints"] == 1
    assert "actionable_items" in wire
