#!/usr/bin/env python3
"""
KUBEPRISM DETECTORS - Format Predicates
---------------------------------------
Total predicates that classify content or a fragment of it. Every detector
returns a ParseResult carrying the typed payload it recognized, so the
dispatcher can fall through on failure without any exception handling.

Whole-content detectors work on a ClassificationContext, which caches the
single JSON parse they all share.

Author: KubePrism Team
Date: 2026-10-17
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from kubeprism.core.models import (
    ErrorKind, Fragment, JsonEnvelope, KubernetesDescriptor, LogViewer, ParseResult,
)
from kubeprism.extraction.scanner import extract_json_object, load_json
from kubeprism.normalize.normalizer import (
    describe_kubernetes_object, json_to_yaml, normalize_yaml, parse_kubernetes,
)

logger = logging.getLogger("kubeprism.detectors")

LOG_MARKER = "LOGS_BUTTON:"


@dataclass
class ClassificationContext:
    """
    Per-pass record of the content under classification. Built by the
    dispatcher and read by the whole-content detectors.
    """
    raw_text: str
    default_namespace: str = "default"
    log_marker: str = LOG_MARKER
    _json: Optional[ParseResult] = field(default=None, init=False, repr=False)

    @property
    def stripped(self) -> str:
        return self.raw_text.strip()

    @property
    def json(self) -> ParseResult[Any]:
        """Whole-content JSON parse, computed once."""
        if self._json is None:
            text = self.stripped
            if text[:1] in ("{", "["):
                self._json = load_json(text)
            else:
                self._json = ParseResult.failure(ErrorKind.INVALID_JSON, "Content does not start with a JSON container")
        return self._json

    def json_object(self) -> ParseResult[Dict[str, Any]]:
        parsed = self.json
        if not parsed.ok:
            return parsed
        if not isinstance(parsed.value, dict):
            return ParseResult.failure(ErrorKind.SCHEMA_VIOLATION, "Content is not a JSON object")
        return parsed


@dataclass(frozen=True)
class KubernetesMatch:
    """A recognized Kubernetes fragment: display YAML plus its identity."""
    yaml: str
    descriptor: KubernetesDescriptor


def _as_context(content) -> ClassificationContext:
    return content if isinstance(content, ClassificationContext) else ClassificationContext(raw_text=content)


# --- Kubernetes --------------------------------------------------------------

def detect_kubernetes_yaml(fragment, default_namespace: str = "default") -> ParseResult[KubernetesMatch]:
    text = fragment.text if isinstance(fragment, Fragment) else fragment
    normalized = normalize_yaml(text)
    if not normalized:
        return ParseResult.failure(ErrorKind.INVALID_YAML, "Empty fragment")

    described = parse_kubernetes(normalized, default_namespace)
    if not described.ok:
        return described
    return ParseResult.success(KubernetesMatch(yaml=normalized, descriptor=described.value))


def detect_kubernetes_json(fragment, default_namespace: str = "default") -> ParseResult[KubernetesMatch]:
    """
    Structural check first (outer braces), semantic check second, so an
    arbitrary JSON object is never mistaken for a resource.
    """
    text = (fragment.text if isinstance(fragment, Fragment) else fragment).strip()
    if not (text.startswith("{") and text.endswith("}")):
        return ParseResult.failure(ErrorKind.NO_JSON_FOUND, "Not enclosed in braces")

    parsed = load_json(text)
    if not parsed.ok:
        return parsed

    described = describe_kubernetes_object(parsed.value, default_namespace)
    if not described.ok:
        return described
    return ParseResult.success(KubernetesMatch(yaml=json_to_yaml(parsed.value), descriptor=described.value))


def detect_kubernetes(fragment, default_namespace: str = "default") -> ParseResult[KubernetesMatch]:
    """JSON first: a JSON object is also valid YAML flow syntax."""
    as_json = detect_kubernetes_json(fragment, default_namespace)
    if as_json.ok:
        return as_json
    return detect_kubernetes_yaml(fragment, default_namespace)


# --- Envelopes ---------------------------------------------------------------

def detect_structured_output_envelope(content) -> ParseResult[Dict[str, Any]]:
    ctx = _as_context(content)
    parsed = ctx.json_object()
    if not parsed.ok:
        return parsed

    envelope = parsed.value
    if envelope.get("formatted") is not True or "mcpOutput" not in envelope:
        return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "Not a formatted output envelope")
    return ParseResult.success(envelope)


def detect_json_envelope(content) -> ParseResult[JsonEnvelope]:
    ctx = _as_context(content)
    parsed = ctx.json_object()
    if not parsed.ok:
        return parsed

    envelope = parsed.value
    message = envelope.get("content")
    if not isinstance(message, str) or not message:
        return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "Envelope has no string 'content'")
    if envelope.get("error") is True:
        return ParseResult.success(JsonEnvelope(kind="error", message=message))
    if envelope.get("success") is True:
        return ParseResult.success(JsonEnvelope(kind="success", message=message))
    return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "Neither 'error' nor 'success' is true")


def detect_raw_json(content) -> ParseResult[Any]:
    """Any JSON object or array that no stronger detector claimed."""
    ctx = _as_context(content)
    parsed = ctx.json
    if not parsed.ok:
        return parsed
    if isinstance(parsed.value, dict) and describe_kubernetes_object(parsed.value).ok:
        return ParseResult.failure(ErrorKind.SCHEMA_VIOLATION, "Kubernetes resource, not raw JSON")
    return parsed


# --- Log directive -----------------------------------------------------------

def detect_log_directive(content) -> ParseResult[LogViewer]:
    ctx = _as_context(content)
    index = ctx.raw_text.find(ctx.log_marker)
    if index == -1:
        return ParseResult.failure(ErrorKind.NO_JSON_FOUND, f"No {ctx.log_marker} marker")

    extracted = extract_json_object(ctx.raw_text, index + len(ctx.log_marker))
    if not extracted.ok:
        logger.debug(f"Log directive payload unusable: {extracted.detail}")
        return extracted

    data = extracted.value.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("logs"), str) or not data["logs"]:
        return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "Invalid logs data structure: missing required fields")

    container = data.get("containerName")
    return ParseResult.success(LogViewer(
        logs=data["logs"],
        resource_name=str(data.get("resourceName") or ""),
        resource_type=str(data.get("resourceType") or ""),
        namespace=str(data.get("namespace") or ctx.default_namespace),
        container_name=str(container) if container else None,
    ))


# --- Boolean helpers ---------------------------------------------------------

def is_kubernetes_yaml(fragment) -> bool:
    return detect_kubernetes_yaml(fragment).ok


def is_kubernetes_json(fragment) -> bool:
    return detect_kubernetes_json(fragment).ok


def is_structured_output_envelope(content: str) -> bool:
    return detect_structured_output_envelope(content).ok


def is_json_envelope(content: str) -> bool:
    return detect_json_envelope(content).ok


def is_log_directive(content: str) -> bool:
    return detect_log_directive(content).ok
