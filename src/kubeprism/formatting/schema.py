#!/usr/bin/env python3
"""
KUBEPRISM OUTPUT SCHEMA
-----------------------
The FormattedOutput tagged union. `type` fully determines the record held
in `data`; external payloads are only turned into FormattedOutput through
`build_formatted_output`, which validates every field and never raises.

Wire field names (sortBy, highlightRows, chartType, actionable_items,
toolName, ...) are kept exactly for interop with existing producers.

Author: KubePrism Team
Date: 2026-10-17
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from kubeprism.core.models import ErrorKind, ParseResult

logger = logging.getLogger("kubeprism.schema")


class OutputType(str, Enum):
    TABLE = "table"
    METRICS = "metrics"
    LIST = "list"
    GRAPH = "graph"
    TEXT = "text"
    ERROR = "error"
    RAW = "raw"


class SchemaViolation(ValueError):
    """Internal signal used while validating a payload; converted to a ParseResult."""


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


# --- Per-type payloads -------------------------------------------------------

@dataclass(frozen=True)
class TableData:
    headers: List[str]
    rows: List[List[Any]]
    sort_by: Optional[str] = None
    highlight_rows: Optional[List[int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "headers": list(self.headers),
            "rows": [list(row) for row in self.rows],
            "sortBy": self.sort_by,
            "highlightRows": list(self.highlight_rows) if self.highlight_rows is not None else None,
        })


@dataclass(frozen=True)
class MetricEntry:
    label: str
    value: Any
    status: str = "normal"

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value, "status": self.status}


@dataclass(frozen=True)
class MetricsData:
    primary: Optional[List[MetricEntry]] = None
    secondary: Optional[List[MetricEntry]] = None
    trends: Optional[List[MetricEntry]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            name: [entry.to_dict() for entry in entries] if entries is not None else None
            for name, entries in (("primary", self.primary), ("secondary", self.secondary), ("trends", self.trends))
        })


@dataclass(frozen=True)
class ListItem:
    text: str
    status: str = "normal"
    metadata: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({"text": self.text, "status": self.status, "metadata": self.metadata})


@dataclass(frozen=True)
class ListData:
    items: List[ListItem]
    grouped: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({"items": [item.to_dict() for item in self.items], "grouped": self.grouped})


@dataclass(frozen=True)
class GraphData:
    chart_type: str
    datasets: List[Any] = field(default_factory=list)
    labels: List[Any] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chartType": self.chart_type,
            "datasets": list(self.datasets),
            "labels": list(self.labels),
            "description": self.description,
        }


@dataclass(frozen=True)
class TextData:
    content: str
    language: Optional[str] = None
    highlights: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({"content": self.content, "language": self.language, "highlights": self.highlights})


@dataclass(frozen=True)
class ErrorData:
    message: str
    details: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({"message": self.message, "details": self.details, "suggestions": self.suggestions})


@dataclass(frozen=True)
class RawData:
    value: Any = None

    def pretty(self) -> str:
        return json.dumps(self.value, indent=2, ensure_ascii=False)

    def to_dict(self) -> Any:
        return self.value


OutputData = Union[TableData, MetricsData, ListData, GraphData, TextData, ErrorData, RawData]

DATA_TYPES = {
    OutputType.TABLE: TableData,
    OutputType.METRICS: MetricsData,
    OutputType.LIST: ListData,
    OutputType.GRAPH: GraphData,
    OutputType.TEXT: TextData,
    OutputType.ERROR: ErrorData,
    OutputType.RAW: RawData,
}


@dataclass(frozen=True)
class OutputMetadata:
    tool_name: str
    response_size: int = 0
    processing_time: float = 0
    data_points: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "toolName": self.tool_name,
            "responseSize": self.response_size,
            "processingTime": self.processing_time,
            "dataPoints": self.data_points,
        })


@dataclass(frozen=True)
class FormattedOutput:
    type: OutputType
    title: str
    summary: str
    data: OutputData
    insights: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    actionable_items: List[str] = field(default_factory=list)
    metadata: Optional[OutputMetadata] = None

    def __post_init__(self):
        object.__setattr__(self, "type", OutputType(self.type))
        expected = DATA_TYPES[self.type]
        if not isinstance(self.data, expected):
            raise ValueError(f"'{self.type.value}' output requires {expected.__name__}, got {type(self.data).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "type": self.type.value,
            "title": self.title,
            "summary": self.summary,
            "data": self.data.to_dict(),
            "insights": list(self.insights),
            "warnings": list(self.warnings),
            "actionable_items": list(self.actionable_items),
        }
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        return payload


# --- Data points -------------------------------------------------------------

def estimate_data_points(data: Any) -> int:
    """
    Counts the data points of a wire-shaped payload. Computed locally, never
    trusted from upstream.
    """
    if data is None:
        return 0
    if isinstance(data, list):
        return len(data)
    if isinstance(data, dict):
        if isinstance(data.get("rows"), list):
            return len(data["rows"])
        if isinstance(data.get("items"), list):
            return len(data["items"])
        if isinstance(data.get("primary"), list):
            secondary = data.get("secondary")
            return len(data["primary"]) + (len(secondary) if isinstance(secondary, list) else 0)
        return len(data)
    return 1


# --- Validation --------------------------------------------------------------

def _require_dict(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaViolation(f"{where} must be an object")
    return value


def _optional_list(value: Any, where: str) -> Optional[List[Any]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise SchemaViolation(f"{where} must be an array")
    return value


def _string_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise SchemaViolation(f"{where} must be an array of strings")
    return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value]


def _optional_str(value: Any, where: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise SchemaViolation(f"{where} must be a string")
    return str(value)


def _parse_table(data: Any) -> TableData:
    data = _require_dict(data, "table data")
    headers = _optional_list(data.get("headers"), "table headers")
    rows = _optional_list(data.get("rows"), "table rows")
    if headers is None or rows is None:
        raise SchemaViolation("table data requires 'headers' and 'rows'")
    if any(not isinstance(row, list) for row in rows):
        raise SchemaViolation("every table row must be an array")

    highlight = _optional_list(data.get("highlightRows"), "highlightRows")
    if highlight is not None and any(isinstance(i, bool) or not isinstance(i, int) for i in highlight):
        raise SchemaViolation("highlightRows must hold row indices")

    return TableData(
        headers=[str(h) for h in headers],
        rows=rows,
        sort_by=_optional_str(data.get("sortBy"), "sortBy"),
        highlight_rows=highlight,
    )


def _parse_metric_entries(value: Any, where: str) -> Optional[List[MetricEntry]]:
    entries = _optional_list(value, where)
    if entries is None:
        return None
    parsed = []
    for entry in entries:
        entry = _require_dict(entry, f"{where} entry")
        if "label" not in entry or "value" not in entry:
            raise SchemaViolation(f"{where} entries require 'label' and 'value'")
        parsed.append(MetricEntry(
            label=str(entry["label"]),
            value=entry["value"],
            status=str(entry.get("status") or "normal"),
        ))
    return parsed


def _parse_metrics(data: Any) -> MetricsData:
    data = _require_dict(data, "metrics data")
    return MetricsData(
        primary=_parse_metric_entries(data.get("primary"), "primary"),
        secondary=_parse_metric_entries(data.get("secondary"), "secondary"),
        trends=_parse_metric_entries(data.get("trends"), "trends"),
    )


def _parse_list(data: Any) -> ListData:
    data = _require_dict(data, "list data")
    items = _optional_list(data.get("items"), "list items")
    if items is None:
        raise SchemaViolation("list data requires 'items'")

    parsed = []
    for item in items:
        if isinstance(item, str):
            parsed.append(ListItem(text=item))
            continue
        item = _require_dict(item, "list item")
        if "text" not in item:
            raise SchemaViolation("list items require 'text'")
        parsed.append(ListItem(
            text=str(item["text"]),
            status=str(item.get("status") or "normal"),
            metadata=item.get("metadata"),
        ))

    grouped = data.get("grouped")
    return ListData(items=parsed, grouped=grouped if isinstance(grouped, bool) else None)


def _parse_graph(data: Any) -> GraphData:
    data = _require_dict(data, "graph data")
    if not data.get("chartType"):
        raise SchemaViolation("graph data requires 'chartType'")
    return GraphData(
        chart_type=str(data["chartType"]),
        datasets=_optional_list(data.get("datasets"), "datasets") or [],
        labels=_optional_list(data.get("labels"), "labels") or [],
        description=_optional_str(data.get("description"), "description") or "",
    )


def _parse_text(data: Any) -> TextData:
    data = _require_dict(data, "text data")
    if not isinstance(data.get("content"), str):
        raise SchemaViolation("text data requires a string 'content'")
    highlights = data.get("highlights")
    return TextData(
        content=data["content"],
        language=_optional_str(data.get("language"), "language"),
        highlights=_string_list(highlights, "highlights") if highlights is not None else None,
    )


def _parse_error(data: Any) -> ErrorData:
    data = _require_dict(data, "error data")
    if not data.get("message"):
        raise SchemaViolation("error data requires 'message'")
    suggestions = data.get("suggestions")
    return ErrorData(
        message=str(data["message"]),
        details=_optional_str(data.get("details"), "details"),
        suggestions=_string_list(suggestions, "suggestions") if suggestions is not None else None,
    )


_PARSERS = {
    OutputType.TABLE: _parse_table,
    OutputType.METRICS: _parse_metrics,
    OutputType.LIST: _parse_list,
    OutputType.GRAPH: _parse_graph,
    OutputType.TEXT: _parse_text,
    OutputType.ERROR: _parse_error,
    OutputType.RAW: RawData,
}


def build_formatted_output(payload: Any, tool_name: str, response_size: int = 0,
                           processing_time: float = 0) -> ParseResult[FormattedOutput]:
    """
    Validating factory for upstream payloads.

    Missing `insights`/`warnings`/`actionable_items` default to empty lists,
    a missing `type` defaults to text, and `metadata.dataPoints` is always
    recomputed from the payload's data.
    """
    try:
        payload = _require_dict(payload, "formatted output")

        raw_type = payload.get("type") or OutputType.TEXT.value
        try:
            output_type = OutputType(raw_type)
        except ValueError:
            raise SchemaViolation(f"Unknown output type '{raw_type}'")

        if "data" not in payload and output_type is not OutputType.RAW:
            raise SchemaViolation(f"'{output_type.value}' output requires 'data'")
        data = _PARSERS[output_type](payload.get("data"))

        upstream_meta = payload.get("metadata") if isinstance(payload.get("metadata"), dict) else {}
        metadata = OutputMetadata(
            tool_name=str(upstream_meta.get("toolName") or tool_name),
            response_size=response_size or _as_number(upstream_meta.get("responseSize"), int),
            processing_time=processing_time or _as_number(upstream_meta.get("processingTime"), float),
            data_points=estimate_data_points(payload.get("data")),
        )

        return ParseResult.success(FormattedOutput(
            type=output_type,
            title=_optional_str(payload.get("title"), "title") or f"{tool_name} Output",
            summary=_optional_str(payload.get("summary"), "summary") or "Analysis completed",
            data=data,
            insights=_string_list(payload.get("insights"), "insights"),
            warnings=_string_list(payload.get("warnings"), "warnings"),
            actionable_items=_string_list(payload.get("actionable_items"), "actionable_items"),
            metadata=metadata,
        ))
    except SchemaViolation as e:
        logger.debug(f"Formatted output rejected: {str(e)}")
        return ParseResult.failure(ErrorKind.SCHEMA_VIOLATION, str(e))


def _as_number(value: Any, kind):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return kind(0)
    return kind(value)
