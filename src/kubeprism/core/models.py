#!/usr/bin/env python3
"""
KUBEPRISM CORE MODELS
---------------------
Defines the fundamental data structures shared by the extractors, detectors
and the classification dispatcher. Every model is immutable and built fresh
for a single classification pass.

Author: KubePrism Team
Date: 2026-10-17
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from kubeprism.formatting.schema import FormattedOutput

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Locally recovered failure taxonomy. Never propagated as an exception."""
    NO_JSON_FOUND = "NoJsonFound"
    INVALID_JSON = "InvalidJson"
    INVALID_YAML = "InvalidYaml"
    MISSING_REQUIRED_FIELDS = "MissingRequiredFields"
    SCHEMA_VIOLATION = "SchemaViolation"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Outcome of a fallible operation.

    Detectors and extractors return this instead of raising so that a
    failure at one precedence level simply falls through to the next.
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str = "") -> "ParseResult[Any]":
        return cls(ok=False, error=error, detail=detail)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class Fragment:
    """
    A contiguous slice of the source believed to be one self-contained
    document. `start`/`end` index into the original RawContent.
    """
    text: str
    start: int
    end: int

    def __post_init__(self):
        if not (0 <= self.start < self.end):
            raise ValueError(f"Invalid fragment span ({self.start}, {self.end})")

    @property
    def span(self):
        return self.start, self.end


@dataclass(frozen=True)
class KubernetesDescriptor:
    """Identity of a Kubernetes resource found in a YAML or JSON fragment."""
    resource_type: str
    name: Optional[str] = None
    namespace: str = "default"   # display only, never injected into the YAML

    @property
    def title(self) -> str:
        return f"{self.resource_type} - {self.name}" if self.name else self.resource_type

    def to_dict(self) -> Dict[str, Any]:
        return {"resourceType": self.resource_type, "name": self.name, "namespace": self.namespace}


# --- Rendering intents -------------------------------------------------------

@dataclass(frozen=True)
class KubernetesYaml:
    yaml: str
    descriptor: KubernetesDescriptor
    span: Optional[tuple] = None
    intent: str = field(default="kubernetes_yaml", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "yaml": self.yaml, "descriptor": self.descriptor.to_dict()}


@dataclass(frozen=True)
class LogViewer:
    logs: str
    resource_name: str
    resource_type: str
    namespace: str
    container_name: Optional[str] = None
    intent: str = field(default="log_viewer", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "logs": self.logs,
            "resourceName": self.resource_name,
            "resourceType": self.resource_type,
            "namespace": self.namespace,
            "containerName": self.container_name,
        }


@dataclass(frozen=True)
class StructuredOutput:
    """
    A trusted, pre-formatted envelope. Error variants may carry the original
    tool arguments so the rendering layer can offer a retry.
    """
    output: "FormattedOutput"
    raw: Optional[str] = None
    is_error: bool = False
    tool_name: Optional[str] = None
    original_args: Optional[Dict[str, Any]] = None
    on_retry: Optional[Callable[[str, Dict[str, Any]], None]] = field(default=None, compare=False, repr=False)
    intent: str = field(default="structured_output", init=False)

    @property
    def can_retry(self) -> bool:
        return bool(self.on_retry and self.tool_name and self.original_args is not None)

    def retry(self) -> bool:
        """Hands the original call back to the caller's retry hook."""
        if not self.can_retry:
            return False
        self.on_retry(self.tool_name, self.original_args)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "output": self.output.to_dict(),
            "isError": self.is_error,
            "toolName": self.tool_name,
            "originalArgs": self.original_args,
        }


@dataclass(frozen=True)
class JsonEnvelope:
    kind: str      # "error" | "success"
    message: str
    intent: str = field(default="json_envelope", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class RawJson:
    value: Any
    intent: str = field(default="raw_json", init=False)

    def pretty(self) -> str:
        return json.dumps(self.value, indent=2, ensure_ascii=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "value": self.value}


@dataclass(frozen=True)
class Markdown:
    text: str
    intent: str = field(default="markdown", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "text": self.text}


RenderingIntent = Union[KubernetesYaml, LogViewer, StructuredOutput, JsonEnvelope, RawJson, Markdown]
