#!/usr/bin/env python3
"""
KUBEPRISM DISPATCHER - The Classifier
-------------------------------------
Top-level decision function. Given raw assistant output it walks a single
ordered rule table and returns the rendering intents for the first rule
that matches:

1. structured_output  - trusted pre-formatted envelope
2. json_envelope      - {"error"|"success": true, "content": ...}
3. kubernetes_json    - whole content is a JSON Kubernetes resource
4. raw_json           - any other JSON object/array
5. log_directive      - LOGS_BUTTON:{...}
6. fragments          - per-fence / per-document / line-scan Kubernetes
                        detection, with everything else left as Markdown

The order is load-bearing: content can satisfy several weak predicates at
once (a JSON resource is also valid generic JSON).

Author: KubePrism Team
Date: 2026-10-17
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Any, List, Optional, Tuple

from kubeprism.core.config import PrismConfig
from kubeprism.core.models import (
    KubernetesDescriptor, KubernetesYaml, Markdown, ParseResult, RawJson,
    RenderingIntent, StructuredOutput, ErrorKind,
)
from kubeprism.detection.detectors import (
    ClassificationContext, detect_json_envelope, detect_kubernetes, detect_kubernetes_json,
    detect_kubernetes_yaml, detect_log_directive, detect_raw_json, detect_structured_output_envelope,
)
from kubeprism.extraction.fences import FencedBlock, extract_fenced_blocks
from kubeprism.extraction.splitter import SEPARATOR_PATTERN, scan_manifest_blocks, split_documents, trimmed_fragment
from kubeprism.formatting.formatter import OutputFormatter
from kubeprism.formatting.schema import OutputType, build_formatted_output

logger = logging.getLogger("kubeprism.dispatcher")

# Fence tags whose body may hold a manifest; other languages stay as code
MANIFEST_FENCE_LANGUAGES = ("", "yaml", "yml", "json", "k8s", "kubernetes")

# Top-level keys a bare manifest can open with
MANIFEST_KEYS = ("apiVersion", "kind", "metadata", "spec", "data", "stringData", "status", "items", "type")

# (start, end, intent) of a recognized region of the source
Piece = Tuple[int, int, RenderingIntent]


@dataclass
class DispatchContext(ClassificationContext):
    """ClassificationContext plus the hooks and limits a single pass needs."""
    config: PrismConfig = field(default_factory=PrismConfig)
    on_retry: Optional[Callable[[str, Dict[str, Any]], None]] = None


@dataclass(frozen=True)
class Rule:
    name: str
    apply: Callable[[DispatchContext], ParseResult]


# --- Whole-content rules -----------------------------------------------------

def _structured_output_rule(ctx: DispatchContext) -> ParseResult[List[RenderingIntent]]:
    detected = detect_structured_output_envelope(ctx)
    if not detected.ok:
        return detected

    envelope = detected.value
    payload = envelope["mcpOutput"]
    upstream_meta = payload.get("metadata") if isinstance(payload, dict) else None
    tool_name = (isinstance(upstream_meta, dict) and upstream_meta.get("toolName")) or envelope.get("toolName")
    tool_name = str(tool_name) if tool_name else None

    built = build_formatted_output(payload, tool_name=tool_name or "unknown")
    if built.ok:
        output = built.value
    else:
        # Trusted envelopes are never reinterpreted; a broken payload degrades to the fallback shape
        logger.warning(f"Formatted envelope failed validation: {built.detail}")
        output = OutputFormatter(ctx.config).format_simple(json.dumps(payload, ensure_ascii=False), tool_name or "unknown")

    original_args = envelope.get("originalArgs")
    raw = envelope.get("raw")
    return ParseResult.success([StructuredOutput(
        output=output,
        raw=raw if isinstance(raw, str) else None,
        is_error=envelope.get("isError") is True or output.type is OutputType.ERROR,
        tool_name=tool_name,
        original_args=original_args if isinstance(original_args, dict) else None,
        on_retry=ctx.on_retry,
    )])


def _json_envelope_rule(ctx: DispatchContext) -> ParseResult[List[RenderingIntent]]:
    detected = detect_json_envelope(ctx)
    return ParseResult.success([detected.value]) if detected.ok else detected


def _kubernetes_json_rule(ctx: DispatchContext) -> ParseResult[List[RenderingIntent]]:
    detected = detect_kubernetes_json(ctx.raw_text, ctx.default_namespace)
    if not detected.ok:
        return detected
    start = len(ctx.raw_text) - len(ctx.raw_text.lstrip())
    span = (start, start + len(ctx.stripped))
    return ParseResult.success([KubernetesYaml(yaml=detected.value.yaml, descriptor=detected.value.descriptor, span=span)])


def _raw_json_rule(ctx: DispatchContext) -> ParseResult[List[RenderingIntent]]:
    detected = detect_raw_json(ctx)
    return ParseResult.success([RawJson(value=detected.value)]) if detected.ok else detected


def _log_directive_rule(ctx: DispatchContext) -> ParseResult[List[RenderingIntent]]:
    detected = detect_log_directive(ctx)
    return ParseResult.success([detected.value]) if detected.ok else detected


# --- Fragment rule -----------------------------------------------------------

def _kubernetes_piece(match, start: int, end: int) -> Piece:
    return start, end, KubernetesYaml(yaml=match.yaml, descriptor=match.descriptor, span=(start, end))


def _opens_like_manifest(text: str) -> bool:
    """Keeps a prose lead-in such as "Try this:" out of a whole-segment match."""
    first = text.lstrip().split("\n", 1)[0]
    return first.startswith("{") or first.split(":", 1)[0].strip() in MANIFEST_KEYS


def _classify_prose(text: str, start: int, end: int, ctx: DispatchContext) -> List[Piece]:
    """
    A prose segment is first tried as one manifest, then line-scanned for
    manifests pasted without separators or fences.
    """
    whole = trimmed_fragment(text, start, end)
    if whole is None:
        return []

    if _opens_like_manifest(whole.text):
        match = detect_kubernetes(whole, ctx.default_namespace)
        if match.ok:
            return [_kubernetes_piece(match.value, whole.start, whole.end)]

    pieces = []
    for block in scan_manifest_blocks(whole.text, offset=whole.start):
        match = detect_kubernetes_yaml(block, ctx.default_namespace)
        if match.ok:
            pieces.append(_kubernetes_piece(match.value, block.start, block.end))
    return pieces


def _classify_segment(text: str, start: int, end: int, ctx: DispatchContext) -> List[Piece]:
    """Text outside fences, cut on separator lines."""
    pieces = []
    for document in split_documents(text[start:end], offset=start):
        pieces.extend(_classify_prose(text, document.start, document.end, ctx))
    return pieces


def _classify_fence(block: FencedBlock, ctx: DispatchContext) -> List[Piece]:
    """
    A manifest fence may hold several `---` separated documents, each one
    its own piece. Documents that are not manifests stay fenced code. The
    fence lines belong to the outermost pieces.
    """
    if block.body is None or block.language not in MANIFEST_FENCE_LANGUAGES:
        return []

    documents = split_documents(block.body.text, offset=block.body.start)
    matches = [detect_kubernetes(document, ctx.default_namespace) for document in documents]
    if not any(match.ok for match in matches):
        return []

    pieces = []
    last = len(documents) - 1
    for index, (document, match) in enumerate(zip(documents, matches)):
        start = block.start if index == 0 else document.start
        end = block.end if index == last else document.end
        if match.ok:
            pieces.append(_kubernetes_piece(match.value, start, end))
        else:
            pieces.append((start, end, Markdown(text=f"```{block.language}\n{document.text}\n```")))
    return pieces


def _markdown_gap(text: str) -> Optional[Markdown]:
    """Text between recognized pieces, minus the document separators that bound it."""
    body = text.strip()
    while body:
        lines = body.split("\n")
        if SEPARATOR_PATTERN.match(lines[0]):
            body = "\n".join(lines[1:]).strip()
        elif SEPARATOR_PATTERN.match(lines[-1]):
            body = "\n".join(lines[:-1]).strip()
        else:
            break
    return Markdown(text=body) if body else None


def _fragment_rule(ctx: DispatchContext) -> ParseResult[List[RenderingIntent]]:
    text = ctx.raw_text
    pieces = []
    cursor = 0
    # Fences are found first so a separator inside one never cuts it open
    for block in extract_fenced_blocks(text):
        pieces.extend(_classify_segment(text, cursor, block.start, ctx))
        pieces.extend(_classify_fence(block, ctx))
        cursor = block.end
    pieces.extend(_classify_segment(text, cursor, len(text), ctx))

    if not pieces:
        return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "No Kubernetes fragments found")

    intents = []
    cursor = 0
    for start, end, intent in sorted(pieces, key=lambda piece: piece[0]):
        _append_merged(intents, _markdown_gap(text[cursor:start]))
        _append_merged(intents, intent)
        cursor = end
    _append_merged(intents, _markdown_gap(text[cursor:]))
    return ParseResult.success(intents)


def _append_merged(intents: List[RenderingIntent], intent: Optional[RenderingIntent]):
    if intent is None:
        return
    if isinstance(intent, Markdown) and intents and isinstance(intents[-1], Markdown):
        intents[-1] = Markdown(text=f"{intents[-1].text}\n\n{intent.text}")
    else:
        intents.append(intent)


PRECEDENCE: Tuple[Rule, ...] = (
    Rule("structured_output", _structured_output_rule),
    Rule("json_envelope", _json_envelope_rule),
    Rule("kubernetes_json", _kubernetes_json_rule),
    Rule("raw_json", _raw_json_rule),
    Rule("log_directive", _log_directive_rule),
    Rule("fragments", _fragment_rule),
)


class ContentClassifier:
    """
    Applies the precedence table to one piece of content. Stateless between
    calls; every pass builds its own DispatchContext.
    """

    def __init__(self, config: Optional[PrismConfig] = None, rules: Tuple[Rule, ...] = PRECEDENCE):
        self.config = config or PrismConfig()
        self.rules = rules

    def classify(self, content, on_detected: Optional[Callable[[KubernetesDescriptor], None]] = None,
                 on_retry: Optional[Callable[[str, Dict[str, Any]], None]] = None) -> List[RenderingIntent]:
        """
        Returns the rendering intents for `content` in source order. When no
        rule matches, the content is returned verbatim as Markdown.
        """
        if isinstance(content, (bytes, bytearray)):
            content = bytes(content).decode("utf-8", errors="replace")
        text = "" if content is None else str(content)

        ctx = DispatchContext(
            raw_text=text,
            default_namespace=self.config.default_namespace,
            log_marker=self.config.log_marker,
            config=self.config,
            on_retry=on_retry,
        )

        intents = None
        for rule in self.rules:
            try:
                result = rule.apply(ctx)
            except Exception as e:
                logger.error(f"Rule '{rule.name}' failed unexpectedly: {str(e)}")
                continue
            if result.ok:
                logger.debug(f"Content classified by rule '{rule.name}'")
                intents = result.value
                break
            logger.debug(f"Rule '{rule.name}' fell through ({result.error.value}): {result.detail}")

        if intents is None:
            intents = [Markdown(text=text)]

        if on_detected:
            for intent in intents:
                if isinstance(intent, KubernetesYaml):
                    on_detected(intent.descriptor)
        return intents


def classify_content(content, on_detected: Optional[Callable[[KubernetesDescriptor], None]] = None,
                     on_retry: Optional[Callable[[str, Dict[str, Any]], None]] = None,
                     config: Optional[PrismConfig] = None) -> List[RenderingIntent]:
    """Module-level convenience wrapper around ContentClassifier.classify."""
    return ContentClassifier(config).classify(content, on_detected=on_detected, on_retry=on_retry)
