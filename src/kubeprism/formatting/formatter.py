#!/usr/bin/env python3
"""
KUBEPRISM OUTPUT FORMATTER
--------------------------
Maps raw tool output into a FormattedOutput. When the upstream AI response
is available it is validated and used; otherwise (or when it is malformed)
a deterministic fallback shape is built from the raw output itself.

The formatter never raises: the fallback is a designed recovery state,
tagged with an explicit warning so the rendering layer can tell
AI-formatted output from raw output.

Author: KubePrism Team
Date: 2026-10-17
"""

import json
import time
import logging
from typing import Any, Optional, Union

from kubeprism.core.config import PrismConfig
from kubeprism.core.models import ErrorKind, ParseResult
from kubeprism.extraction.fences import extract_fenced_blocks
from kubeprism.extraction.scanner import extract_json_object, load_json
from kubeprism.formatting.analysis import is_documentation_content
from kubeprism.formatting.schema import (
    FormattedOutput, ListData, ListItem, OutputMetadata, OutputType, TextData,
    build_formatted_output, estimate_data_points,
)

logger = logging.getLogger("kubeprism.formatter")

FALLBACK_WARNING = "AI formatting failed - showing raw output"
FALLBACK_ACTION = "Consider checking the AI service connection"
JSON_FENCE_LANGUAGES = ("json", "")


class OutputFormatter:
    """
    Entry point for tool output formatting. Stateless apart from its
    configuration, so one instance can serve concurrent callers.
    """

    def __init__(self, config: Optional[PrismConfig] = None):
        self.config = config or PrismConfig()

    def format(self, raw_tool_output: Union[str, bytes, None], tool_name: str,
               ai_response: Optional[str] = None, processing_time: float = 0) -> FormattedOutput:
        """
        Primary path when `ai_response` is given, fallback shape otherwise.
        Any failure along the primary path degrades to the fallback.
        """
        started = time.monotonic()
        raw = self._coerce_text(raw_tool_output)
        tool_name = tool_name or "unknown"

        if ai_response is not None:
            try:
                parsed = self.parse_ai_response(ai_response, tool_name, len(raw), processing_time)
                if parsed.ok:
                    return parsed.value
                logger.warning(f"AI response for {tool_name} rejected ({parsed.error.value}): {parsed.detail}")
            except Exception as e:
                logger.error(f"Unexpected failure validating AI response for {tool_name}: {str(e)}")

        elapsed = processing_time or (time.monotonic() - started) * 1000
        return self.create_fallback(raw, tool_name, elapsed)

    def format_simple(self, raw_tool_output: Union[str, bytes, None], tool_name: str) -> FormattedOutput:
        """Quick format without any AI processing."""
        return self.create_fallback(self._coerce_text(raw_tool_output), tool_name or "unknown", 0)

    # --- Primary path --------------------------------------------------------

    def _locate_json(self, ai_response: str) -> ParseResult[Any]:
        """Finds the JSON payload, which may be wrapped in a markdown fence."""
        for block in extract_fenced_blocks(ai_response):
            if block.language in JSON_FENCE_LANGUAGES and block.body is not None:
                loaded = load_json(block.body.text)
                if loaded.ok:
                    return loaded
        return extract_json_object(ai_response)

    def parse_ai_response(self, ai_response: str, tool_name: str, response_size: int = 0,
                          processing_time: float = 0) -> ParseResult[FormattedOutput]:
        located = self._locate_json(ai_response)
        if not located.ok:
            return located
        return build_formatted_output(
            located.value,
            tool_name=tool_name,
            response_size=response_size,
            processing_time=processing_time,
        )

    # --- Fallback shape ------------------------------------------------------

    def _coerce_text(self, raw: Union[str, bytes, None]) -> str:
        if raw is None:
            return ""
        if isinstance(raw, (bytes, bytearray)):
            return bytes(raw).decode("utf-8", errors="replace")
        return str(raw)

    def create_fallback(self, raw: str, tool_name: str, processing_time: float = 0) -> FormattedOutput:
        try:
            return self._build_fallback(raw, tool_name, processing_time)
        except Exception as e:
            # Last line of defence: a plain text shape with no inspection at all
            logger.error(f"Fallback formatting failed for {tool_name}: {str(e)}")
            content = raw[:self.config.max_fallback_chars]
            return self._fallback_output(
                OutputType.TEXT, TextData(content=content, language="text"),
                [FALLBACK_WARNING], raw, tool_name, processing_time,
            )

    def _build_fallback(self, raw: str, tool_name: str, processing_time: float) -> FormattedOutput:
        warnings = [FALLBACK_WARNING]
        stripped = raw.strip()
        parsed = load_json(stripped) if stripped[:1] in ("[", "{") else ParseResult.failure(ErrorKind.INVALID_JSON)

        if parsed.ok and isinstance(parsed.value, list):
            items = [
                ListItem(
                    text=item if isinstance(item, str) else json.dumps(item, ensure_ascii=False, separators=(",", ":")),
                    status="normal",
                    metadata=f"Item {index + 1}",
                )
                for index, item in enumerate(parsed.value[:self.config.max_list_items])
            ]
            return self._fallback_output(OutputType.LIST, ListData(items=items), warnings, raw, tool_name, processing_time)

        if parsed.ok and isinstance(parsed.value, dict):
            data = TextData(content=json.dumps(parsed.value, indent=2, ensure_ascii=False), language="json")
            return self._fallback_output(OutputType.TEXT, data, warnings, raw, tool_name, processing_time)

        language = "markdown" if is_documentation_content(raw, tool_name) else "text"
        limit = self.config.max_fallback_chars
        content = raw
        if len(raw) > limit:
            warnings.append(f"Content truncated from {len(raw)} to {limit} characters")
            content = (raw[:limit] + f"\n\n[Content truncated for display. Original size: {len(raw)} characters]")

        data = TextData(content=content, language=language)
        return self._fallback_output(OutputType.TEXT, data, warnings, raw, tool_name, processing_time)

    def _fallback_output(self, output_type: OutputType, data, warnings, raw: str,
                         tool_name: str, processing_time: float) -> FormattedOutput:
        return FormattedOutput(
            type=output_type,
            title=f"{tool_name} Output",
            summary=f"Raw output from {tool_name}. AI formatting was not available.",
            data=data,
            insights=[],
            warnings=warnings,
            actionable_items=[FALLBACK_ACTION],
            metadata=OutputMetadata(
                tool_name=tool_name,
                response_size=len(raw),
                processing_time=processing_time,
                data_points=estimate_data_points(data.to_dict()),
            ),
        )


def format_output(raw_tool_output: Union[str, bytes, None], tool_name: str,
                  ai_response: Optional[str] = None) -> FormattedOutput:
    """Module-level convenience wrapper around OutputFormatter.format."""
    return OutputFormatter().format(raw_tool_output, tool_name, ai_response=ai_response)
