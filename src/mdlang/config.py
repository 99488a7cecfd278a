"""
Interpreter configuration.

Settings come from keyword arguments or a YAML file with the same keys:

    entry: main
    tail_calls: true
    max_call_depth: 1000
    encoding: utf-8
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict

import yaml


@dataclass(frozen=True)
class InterpreterConfig:
    """
    Properties:
        entry: Function a run starts in
        tail_calls: Dispatch calls in tail position through the trampoline.
            When off, every call nests and deep recursion hits
            `max_call_depth`.
        max_call_depth: Most frames allowed on the call stack at once
        encoding: Encoding used to read program files
    """

    entry: str = "main"
    tail_calls: bool = True
    max_call_depth: int = 1000
    encoding: str = "utf-8"

    def with_overrides(self, **overrides: Any) -> InterpreterConfig:
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def config_from_dict(d: Dict[str, Any] | None) -> InterpreterConfig:
    """
    Build a config from a mapping.

    Raises:
        ValueError: On unknown keys or a non-positive call depth
    """
    d = d or {}
    known = {f.name for f in fields(InterpreterConfig)}
    unknown = set(d) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    config = InterpreterConfig(**d)
    if config.max_call_depth < 1:
        raise ValueError(f"max_call_depth must be positive, got {config.max_call_depth}")
    return config


def load_config(filepath: str) -> InterpreterConfig:
    """
    Read a YAML config file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: On unknown keys or a top level that is not a mapping
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file not found: {filepath}")

    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {filepath}")
    return config_from_dict(data)
