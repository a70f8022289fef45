import json

import pytest

from kubeprism.formatting.exporter import export_output
from kubeprism.formatting.schema import FormattedOutput, OutputType, TextData, build_formatted_output


@pytest.fixture
def table_output():
    return build_formatted_output({
        "type": "table",
        "title": "Pods",
        "summary": "2 pods",
        "data": {"headers": ["name", "ready"], "rows": [["web", "1/1"], ["db, primary", None]]},
    }, tool_name="kubectl_get").value


def test_csv_export_quotes_every_cell(table_output):
    artifact = export_output(table_output, "csv")

    assert artifact.filename == "kubectl_get.csv"
    assert artifact.mime_type == "text/csv"
    assert artifact.content == 'name,ready\n"web","1/1"\n"db, primary",""'


def test_json_export_is_pretty_data(table_output):
    artifact = export_output(table_output, "JSON")

    assert artifact.filename == "kubectl_get.json"
    assert json.loads(artifact.content) == table_output.data.to_dict()
    assert artifact.content.startswith("{\n  ")


def test_txt_export_prefers_raw(table_output):
    assert export_output(table_output, "txt", raw="NAME READY").content == "NAME READY"


def test_txt_export_without_raw(table_output):
    content = export_output(table_output, "txt").content
    assert json.loads(content)["title"] == "Pods"


def test_csv_export_of_non_table_is_json():
    output = FormattedOutput(type=OutputType.TEXT, title="t", summary="s", data=TextData(content="hi"))
    artifact = export_output(output, "csv")

    assert artifact.filename == "mcp-output.csv"
    assert json.loads(artifact.content) == {"content": "hi"}


def test_unknown_export_format(table_output):
    with pytest.raises(ValueError):
        export_output(table_output, "xlsx")
