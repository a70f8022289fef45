#!/usr/bin/env python3
"""
KUBEPRISM CONFIGURATION
-----------------------
Every tunable limit used by the formatter and the dispatcher lives here,
passed explicitly to the components that need it instead of being read
from module globals.

Author: KubePrism Team
Date: 2026-10-17
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

from ruamel.yaml import YAML, YAMLError

logger = logging.getLogger("kubeprism.config")


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be loaded or is invalid."""


@dataclass(frozen=True)
class PrismConfig:
    max_list_items: int = 100                 # fallback list cap
    max_fallback_chars: int = 5000            # fallback text cap
    analysis_limit: int = 10000               # prompt budget for regular output
    documentation_analysis_limit: int = 25000
    boundary_ratio: float = 0.8               # soft-cut boundary must sit above this share of the limit
    default_namespace: str = "default"
    log_marker: str = "LOGS_BUTTON:"

    def __post_init__(self):
        for name in ("max_list_items", "max_fallback_chars", "analysis_limit", "documentation_analysis_limit"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"'{name}' must be a positive integer")
        if not 0 < self.boundary_ratio <= 1:
            raise ConfigError("'boundary_ratio' must be within (0, 1]")
        if not self.log_marker:
            raise ConfigError("'log_marker' must not be empty")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PrismConfig":
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = {}
        for key, value in raw.items():
            expected = type(known[key].default)
            # bool is an int subclass; keep it out of numeric fields
            if isinstance(value, bool) or not isinstance(value, (expected, int) if expected is float else expected):
                raise ConfigError(f"'{key}' must be of type {expected.__name__}")
            values[key] = expected(value)
        return cls(**values)


def load_config(path: Union[str, Path]) -> PrismConfig:
    """
    Loads a PrismConfig from a YAML (or JSON, which is valid YAML) file.
    An empty file yields the defaults.
    """
    config_path = Path(path)
    try:
        raw = YAML(typ="safe").load(config_path.read_text(encoding="utf-8-sig"))
    except (OSError, YAMLError) as e:
        logger.error(f"Unable to load configuration from {config_path}")
        raise ConfigError(f"Failed to load config: {str(e)}")

    if raw is None:
        return PrismConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration root in {config_path} must be a mapping")

    return PrismConfig.from_dict(raw)
