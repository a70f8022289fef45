import pytest

from kubeprism.core.models import ErrorKind
from kubeprism.extraction.fences import extract_fenced_blocks
from kubeprism.extraction.scanner import extract_json_object, load_json, scan_json_object
from kubeprism.extraction.splitter import scan_manifest_blocks, split_documents, trimmed_fragment


# --- Balanced-brace scanner --------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ('{"a": 1}', '{"a": 1}'),
    ('prefix {"a": {"b": 2}} trailing {"c": 3}', '{"a": {"b": 2}}'),
    ('LOGS_BUTTON:{"data": {"logs": "x"}}extra', '{"data": {"logs": "x"}}'),
    ('{"a": "closing } inside"}', '{"a": "closing } inside"}'),
    ('{"a": "escaped \\" quote }"}', '{"a": "escaped \\" quote }"}'),
])
def test_scan_finds_first_complete_object(text, expected):
    scanned = scan_json_object(text)
    assert scanned.ok
    assert scanned.value.text == expected
    assert text[scanned.value.start:scanned.value.end] == expected


def test_scan_reports_missing_object():
    scanned = scan_json_object("no braces here")
    assert not scanned.ok
    assert scanned.error is ErrorKind.NO_JSON_FOUND


def test_scan_reports_unterminated_object():
    scanned = scan_json_object('{"apiVersion": {"nested": 1}')
    assert not scanned.ok
    assert scanned.error is ErrorKind.INVALID_JSON


def test_scan_respects_start_offset():
    text = '{"a": 1} {"b": 2}'
    scanned = scan_json_object(text, start=1)
    assert scanned.value.text == '{"b": 2}'


def test_extract_json_object_parses_payload():
    extracted = extract_json_object('see: {"kind": "Pod", "n": [1, 2]} done')
    assert extracted.ok
    assert extracted.value == {"kind": "Pod", "n": [1, 2]}


def test_extract_json_object_rejects_non_json_braces():
    extracted = extract_json_object("{not: json}")
    assert not extracted.ok
    assert extracted.error is ErrorKind.INVALID_JSON


@pytest.mark.parametrize("text", ["", "{", "nope", "[1,"])
def test_load_json_never_raises(text):
    loaded = load_json(text)
    assert not loaded.ok
    assert loaded.error is ErrorKind.INVALID_JSON


# --- Fenced blocks -----------------------------------------------------------

def test_fenced_block_spans_and_language():
    text = "text\n```yaml\nkey: v\n```\nmore"
    blocks = extract_fenced_blocks(text)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.language == "yaml"
    assert block.is_yaml
    assert text[block.start:block.end] == "```yaml\nkey: v\n```"
    assert block.body.text == "key: v"
    assert text[block.body.start:block.body.end] == "key: v"


def test_tilde_fences_and_untagged_blocks():
    text = "~~~\nfirst\n~~~\n\n```JSON\n{}\n```"
    blocks = extract_fenced_blocks(text)
    assert [b.language for b in blocks] == ["", "json"]
    assert [b.body.text for b in blocks] == ["first", "{}"]


def test_shorter_closing_fence_does_not_close():
    text = "````\na\n```\n````"
    blocks = extract_fenced_blocks(text)
    assert len(blocks) == 1
    assert blocks[0].body.text == "a\n```"


def test_unclosed_fence_is_ignored():
    assert extract_fenced_blocks("```yaml\napiVersion: v1\n") == []


def test_empty_fence_has_no_body():
    blocks = extract_fenced_blocks("```\n```")
    assert len(blocks) == 1
    assert blocks[0].body is None


def test_fence_body_keeps_first_line_indentation():
    text = "```\n\n  a: 1\n  b: 2\n```"
    body = extract_fenced_blocks(text)[0].body
    assert body.text == "  a: 1\n  b: 2"


def test_fence_offsets_are_shifted():
    blocks = extract_fenced_blocks("```\nx\n```", offset=10)
    assert blocks[0].start == 10
    assert blocks[0].body.start == 14


# --- Splitter ----------------------------------------------------------------

def test_split_documents_on_separator_lines():
    text = "a: 1\n---\nb: 2"
    documents = split_documents(text)
    assert [d.text for d in documents] == ["a: 1", "b: 2"]
    assert [text[d.start:d.end] for d in documents] == ["a: 1", "b: 2"]


def test_split_documents_offsets_are_shifted():
    documents = split_documents("a: 1\n---\nb: 2", offset=100)
    assert [(d.start, d.end) for d in documents] == [(100, 104), (109, 113)]


def test_split_documents_drops_empty_parts():
    assert [d.text for d in split_documents("---\na: 1\n---\n\n---\n")] == ["a: 1"]


def test_split_documents_ignores_inline_dashes():
    assert len(split_documents("a: x---y\nb: --- not a separator")) == 1


def test_trimmed_fragment_drops_blank_lines_only():
    fragment = trimmed_fragment("\n\n   x: 1\n   y: 2  \n\n", 0, 22)
    assert fragment.text == "   x: 1\n   y: 2"
    assert trimmed_fragment("  \n \n", 0, 5) is None


def test_scan_manifest_blocks_line_scan():
    text = (
        "Try this:\n"
        "apiVersion: v1\n"
        "kind: Pod\n"
        "\n"
        "and this one:\n"
        "    apiVersion: v1\n"
        "    kind: Service\n"
    )
    blocks = scan_manifest_blocks(text)

    assert [b.text for b in blocks] == [
        "apiVersion: v1\nkind: Pod",
        "    apiVersion: v1\n    kind: Service",
    ]
    for block in blocks:
        assert text[block.start:block.end] == block.text


def test_scan_manifest_blocks_without_manifest():
    assert scan_manifest_blocks("just some prose\nwith lines") == []
