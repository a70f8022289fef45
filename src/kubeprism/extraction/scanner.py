#!/usr/bin/env python3
"""
KUBEPRISM SCANNER - Balanced-Brace JSON Extraction
--------------------------------------------------
Locates the textual end of a JSON object embedded in a larger string by
tracking brace depth character by character. A regex cannot do this for
nested objects. The scan is quote-aware so braces inside string literals
do not affect the depth.

Author: KubePrism Team
Date: 2026-10-17
"""

import json
import logging
from typing import Any, Dict

from kubeprism.core.models import ErrorKind, Fragment, ParseResult

logger = logging.getLogger("kubeprism.scanner")


def load_json(text: str) -> ParseResult[Any]:
    """Total JSON parse: never raises, reports InvalidJson instead."""
    try:
        return ParseResult.success(json.loads(text))
    except (ValueError, TypeError, RecursionError) as e:
        return ParseResult.failure(ErrorKind.INVALID_JSON, f"Invalid JSON: {str(e)}")


def scan_json_object(text: str, start: int = 0) -> ParseResult[Fragment]:
    """
    Returns the fragment spanning the first complete {...} at or after `start`.

    Characters before the first '{' are skipped. Accumulation stops the
    instant the depth returns to zero, so anything after the closing brace
    is ignored.
    """
    begin = text.find("{", start)
    if begin == -1:
        return ParseResult.failure(ErrorKind.NO_JSON_FOUND, f"No JSON object found after offset {start}")

    depth = 0
    in_string = escaped = False
    for i in range(begin, len(text)):
        char = text[i]
        if in_string:
            if escaped: escaped = False
            elif char == "\\": escaped = True
            elif char == '"': in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return ParseResult.success(Fragment(text=text[begin:i + 1], start=begin, end=i + 1))

    return ParseResult.failure(ErrorKind.INVALID_JSON, "Unterminated JSON object")


def extract_json_object(text: str, start: int = 0) -> ParseResult[Dict[str, Any]]:
    """Scans for an embedded object and parses it."""
    scanned = scan_json_object(text, start)
    if not scanned.ok:
        return scanned

    parsed = load_json(scanned.value.text)
    if not parsed.ok:
        logger.debug(f"Brace-matched object at {scanned.value.start} failed to parse: {parsed.detail}")
        return parsed
    if not isinstance(parsed.value, dict):
        return ParseResult.failure(ErrorKind.INVALID_JSON, "Extracted value is not a JSON object")
    return parsed
