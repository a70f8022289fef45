#!/usr/bin/env python3
"""
KUBEPRISM EXPORTER - Download Artifacts
---------------------------------------
Builds the file payloads the rendering layer offers for download from a
formatted output: the data as JSON, tables as CSV, or the raw text.

Author: KubePrism Team
Date: 2026-10-17
"""

import csv
import io
import json
from dataclasses import dataclass
from typing import Optional

from kubeprism.formatting.schema import FormattedOutput, TableData

EXPORT_FORMATS = {
    "json": "application/json",
    "csv": "text/csv",
    "txt": "text/plain",
}


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    mime_type: str
    content: str


def _table_to_csv(table: TableData) -> str:
    stream = io.StringIO()
    csv.writer(stream, lineterminator="\n").writerow(table.headers)
    # Cells are always quoted, headers only when needed
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in table.rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return stream.getvalue().rstrip("\n")


def export_output(output: FormattedOutput, fmt: str, raw: Optional[str] = None) -> ExportArtifact:
    """
    `raw` is the original envelope text; the txt export prefers it over a
    re-serialization of the output.
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'")

    tool_name = output.metadata.tool_name if output.metadata and output.metadata.tool_name else "mcp-output"
    pretty_data = json.dumps(output.data.to_dict(), indent=2, ensure_ascii=False)

    if fmt == "json":
        content = pretty_data
    elif fmt == "csv":
        content = _table_to_csv(output.data) if isinstance(output.data, TableData) else pretty_data
    else:
        content = raw if raw is not None else json.dumps(output.to_dict(), indent=2, ensure_ascii=False)

    return ExportArtifact(filename=f"{tool_name}.{fmt}", mime_type=EXPORT_FORMATS[fmt], content=content)
