#!/usr/bin/env python3
"""
KUBEPRISM NORMALIZER - YAML Cleanup & Canonical Export
------------------------------------------------------
Prepares YAML fragments for structural parsing and turns JSON Kubernetes
objects into canonical YAML text.

Normalization steps:
1. Drop surrounding blank lines and trailing whitespace.
2. Drop standalone box-drawing rule lines (───).
3. Drop the leading and trailing `---` marker lines.
4. Dedent every line by the common left margin.

Author: KubePrism Team
Date: 2026-10-17
"""

import io
import re
import sys
import logging
from typing import Any, List

from ruamel.yaml import YAML, YAMLError
from ruamel.yaml.comments import CommentedMap, CommentedSeq

from kubeprism.core.models import ErrorKind, KubernetesDescriptor, ParseResult

logger = logging.getLogger("kubeprism.normalizer")

DOC_MARKER = re.compile(r"^\s*-{3,}\s*$")
RULE_LINE = re.compile(r"^\s*─{3,}\s*$")


def _strip_blank_edges(lines: List[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def normalize_yaml(yaml_text: str) -> str:
    """
    Cleans a YAML fragment. Idempotent: normalizing twice gives the same text.
    A fragment that was valid YAML apart from a shifted margin comes out valid.
    """
    lines = [line.rstrip() for line in yaml_text.replace("\r\n", "\n").split("\n")]
    lines = _strip_blank_edges([line for line in lines if not RULE_LINE.match(line)])

    # Edge markers only; separators between documents are left alone
    while lines and DOC_MARKER.match(lines[0]):
        lines = _strip_blank_edges(lines[1:])
    while lines and DOC_MARKER.match(lines[-1]):
        lines = _strip_blank_edges(lines[:-1])

    if not lines:
        return ""

    margin = min(len(line) - len(line.lstrip()) for line in lines if line.strip())
    return "\n".join(line[margin:] if line.strip() else "" for line in lines)


class KubeYamlCodec:
    """
    Thin wrapper around ruamel.yaml: a safe loader for detection and a
    round-trip dumper for JSON -> YAML conversion. A fresh YAML instance is
    built per call so one codec can be shared between threads.
    """

    def _loader(self) -> YAML:
        loader = YAML(typ="safe", pure=True)
        loader.allow_duplicate_keys = True
        return loader

    def _dumper(self) -> YAML:
        dumper = YAML(typ="rt")
        # Standard K8s: 2 spaces, sequences indented 4 with offset 2
        dumper.indent(mapping=2, sequence=4, offset=2)
        # Unbounded width: wrapped scalars are not guaranteed to round-trip
        dumper.width = sys.maxsize
        return dumper

    def load(self, yaml_text: str) -> ParseResult[Any]:
        try:
            return ParseResult.success(self._loader().load(yaml_text))
        except (YAMLError, ValueError, TypeError, RecursionError) as e:
            return ParseResult.failure(ErrorKind.INVALID_YAML, f"Invalid YAML: {str(e)}")

    def _to_commented(self, data: Any) -> Any:
        """Rebuilds plain containers as ruamel nodes, keeping insertion order."""
        if isinstance(data, dict):
            node = CommentedMap()
            for key, value in data.items():
                node[key] = self._to_commented(value)
            return node
        if isinstance(data, list):
            return CommentedSeq(self._to_commented(item) for item in data)
        return data

    def dump(self, data: Any) -> str:
        stream = io.StringIO()
        self._dumper().dump(self._to_commented(data), stream)
        return stream.getvalue()


_codec = KubeYamlCodec()


def describe_kubernetes_object(doc: Any, default_namespace: str = "default") -> ParseResult[KubernetesDescriptor]:
    """
    Reads the resource identity of an already-parsed object (from YAML or
    JSON). Both apiVersion and kind must be present and non-empty.
    """
    if not isinstance(doc, dict):
        return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "Document is not a mapping")
    if not doc.get("apiVersion") or not doc.get("kind"):
        return ParseResult.failure(ErrorKind.MISSING_REQUIRED_FIELDS, "apiVersion/kind missing")

    metadata = doc.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    name = metadata.get("name")
    namespace = metadata.get("namespace") or default_namespace

    return ParseResult.success(KubernetesDescriptor(
        resource_type=str(doc["kind"]),
        name=str(name) if name is not None else None,
        namespace=str(namespace),
    ))


def load_yaml(yaml_text: str) -> ParseResult[Any]:
    return _codec.load(yaml_text)


def parse_kubernetes(yaml_text: str, default_namespace: str = "default") -> ParseResult[KubernetesDescriptor]:
    """Parses YAML text and reads the resource identity out of it."""
    loaded = _codec.load(yaml_text)
    if not loaded.ok:
        logger.debug(f"YAML candidate rejected: {loaded.detail}")
        return loaded
    return describe_kubernetes_object(loaded.value, default_namespace)


def json_to_yaml(obj: Any) -> str:
    """Converts a parsed JSON object to YAML, preserving key order."""
    return _codec.dump(obj)
