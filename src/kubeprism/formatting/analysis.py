#!/usr/bin/env python3
"""
KUBEPRISM ANALYSIS - Prompt Construction & Content Heuristics
-------------------------------------------------------------
Builds the instructions handed to the external AI formatter and the cheap
structural heuristics used around it (error detection, documentation
detection, boundary-aware truncation). The AI call itself happens outside
this package.

Author: KubePrism Team
Date: 2026-10-17
"""

import re
from dataclasses import dataclass
from typing import Optional

from kubeprism.core.config import PrismConfig
from kubeprism.extraction.scanner import load_json

SYSTEM_PROMPT = """You are an expert data analyst specializing in Kubernetes debugging and system monitoring data. Your task is to analyze raw tool outputs and format them in a user-friendly way.

CRITICAL INSTRUCTIONS:
1. ALWAYS respond with valid JSON in the exact schema provided
2. Analyze the raw data to identify patterns, anomalies, and key insights
3. Format data appropriately based on its type (tables for structured data, metrics for numbers, etc.)
4. Provide actionable insights and recommendations
5. Highlight any security issues, performance problems, or anomalies
6. Keep summaries concise but informative
7. If data contains sensitive information, sanitize it appropriately

RESPONSE SCHEMA:
{
  "type": "table" | "metrics" | "list" | "graph" | "text" | "error" | "raw",
  "title": "Clear, descriptive title",
  "summary": "Brief summary of what the data shows",
  "data": "Formatted data structure (varies by type)",
  "insights": ["Key insights from the data"],
  "warnings": ["Any security or performance warnings"],
  "actionable_items": ["Specific actions the user should consider"]
}

DATA SHAPES:
- table: {"headers": [...], "rows": [[...], ...], "sortBy": "column", "highlightRows": [indices]}
- metrics: {"primary": [{"label", "value", "status"}], "secondary": [...], "trends": [...]}
- list: {"items": [{"text", "status": "normal|warning|error", "metadata"}]}
- graph: {"chartType": "line|bar|pie|scatter", "datasets": [...], "labels": [...], "description": "..."}
- text: {"content": "...", "language": "json|yaml|shell|text|markdown", "highlights": [...]}
- error: {"message": "...", "details": "...", "suggestions": [...]}

Remember: Focus on making complex data accessible and actionable for Kubernetes operators and developers."""

DOC_TOOL_PATTERNS = (
    "documentation", "docs", "fetch", "microsoft", "azure",
    "guide", "tutorial", "manual", "readme",
)

DOC_CONTENT_PATTERNS = (
    re.compile(r"^#{1,6}\s+", re.MULTILINE),       # headers
    re.compile(r"```[\s\S]*?```"),                 # code blocks
    re.compile(r"\[.*?\]\(.*?\)"),                 # links
    re.compile(r"^[ \t]*[-*+]\s+", re.MULTILINE),   # bullet lists
    re.compile(r"^[ \t]*\d+\.\s+", re.MULTILINE),   # numbered lists
    re.compile(r"^[ \t]*>\s+", re.MULTILINE),       # blockquotes
    re.compile(r"\*\*[^*]+\*\*"),                  # bold
    re.compile(r"\*[^*]+\*"),                      # italic
    re.compile(r"`[^`]+`"),                        # inline code
)

DOC_KEYWORDS = (
    "prerequisites", "installation", "configuration", "getting started",
    "tutorial", "example", "usage", "overview", "introduction",
    "documentation", "azure", "microsoft", "learn.microsoft.com",
)

ERROR_WORDS = ("error", "failed", "exception", "schema mismatch")

# Pattern scans only look at this prefix; the size rule still sees the full length
DOC_SCAN_LIMIT = 50000


@dataclass(frozen=True)
class AnalysisOptions:
    format_style: str = "detailed"    # detailed | compact | minimal
    include_insights: bool = True
    include_actionable_items: bool = True


def truncate_if_needed(output: str, max_length: int, boundary_ratio: float = 0.8) -> str:
    """
    Cuts `output` to at most `max_length` characters, preferring the last
    line break, '}' or ']' that still lies above `boundary_ratio` of the
    limit. A bracket boundary is kept, so a cut JSON value still ends on its
    closing character; a line break boundary is dropped. This is one
    character longer than a plain prefix cut at the bracket.
    """
    if len(output) <= max_length:
        return output

    window = output[:max_length]
    newline = window.rfind("\n")
    bracket = max(window.rfind("}"), window.rfind("]"))

    # Prefer the boundary nearest the limit
    if bracket > newline:
        cut = bracket + 1
        position = bracket
    else:
        cut = newline
        position = newline

    if position > max_length * boundary_ratio:
        return output[:cut]
    return window


def detect_error(raw_output: str) -> bool:
    loaded = load_json(raw_output)
    parsed = loaded.value if loaded.ok else None

    if isinstance(parsed, dict):
        error = parsed.get("error")
        return (
            parsed.get("success") is False
            or error is True
            or (isinstance(error, str) and len(error) > 0)
            or "schema mismatch" in raw_output.lower()
        )
    if parsed is not None:
        return "schema mismatch" in raw_output.lower()

    lower = raw_output.lower()
    return any(word in lower for word in ERROR_WORDS)


def is_documentation_content(raw_output: str, tool_name: str) -> bool:
    """
    Documentation if the tool name says so, if several markdown patterns
    co-occur with documentation keywords, or if a very large payload shows
    some markdown structure.
    """
    tool = (tool_name or "").lower()
    if any(pattern in tool for pattern in DOC_TOOL_PATTERNS):
        return True

    sample = raw_output[:DOC_SCAN_LIMIT]
    content_matches = sum(1 for pattern in DOC_CONTENT_PATTERNS if pattern.search(sample))
    lower = sample.lower()
    keyword_matches = sum(1 for keyword in DOC_KEYWORDS if keyword in lower)

    return (
        (content_matches >= 3 and keyword_matches >= 2)
        or (len(raw_output) > 20000 and content_matches >= 2)
    )


def build_analysis_prompt(raw_output: str, tool_name: str,
                          options: Optional[AnalysisOptions] = None,
                          config: Optional[PrismConfig] = None) -> str:
    """Human message paired with SYSTEM_PROMPT for the upstream formatter."""
    options = options or AnalysisOptions()
    config = config or PrismConfig()

    is_documentation = is_documentation_content(raw_output, tool_name)
    max_length = config.documentation_analysis_limit if is_documentation else config.analysis_limit
    truncated = truncate_if_needed(raw_output, max_length, config.boundary_ratio)

    hints = []
    if detect_error(raw_output):
        hints.append('IMPORTANT: This appears to be an error response. Use "error" type and '
                     'provide helpful troubleshooting guidance.')
    if is_documentation:
        hints.append('IMPORTANT: This appears to be documentation content. Use "text" type with '
                     'language="markdown" to enable proper markdown rendering.')

    sections = [
        f"Analyze and format this {tool_name} tool output:",
        "",
        f"TOOL: {tool_name}",
        "RAW OUTPUT:",
        truncated,
        "",
        f"FORMAT STYLE: {options.format_style}",
        f"INCLUDE INSIGHTS: {str(options.include_insights).lower()}",
        f"INCLUDE ACTIONABLE ITEMS: {str(options.include_actionable_items).lower()}",
        "",
        "Please analyze this data and respond with properly formatted JSON following the schema.",
        "Pay special attention to:",
        '1. Identifying the most appropriate visualization type (or "error" if this is an error)',
        "2. For errors: Provide clear, actionable troubleshooting steps",
        "3. For data: Extract key metrics and patterns",
        "4. For documentation: Use markdown formatting and preserve structure",
        "5. Highlighting any security or performance issues",
        "6. Providing actionable recommendations",
    ]
    if hints:
        sections += [""] + hints
    if len(truncated) < len(raw_output):
        sections += ["", f"[Note: Output was truncated from {len(raw_output)} to {len(truncated)} characters "
                         f"for analysis. Original content size: {len(raw_output)} characters]"]
    return "\n".join(sections)
