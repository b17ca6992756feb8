"""
braceqa/config.py
═════════════════

Analysis configuration.

All thresholds are plain constructor parameters so that several rule
instances with different ceilings can coexist (the text scanner and the
tree rules use separate complexity limits).

A configuration file is a JSON object whose keys are the field names of
:class:`AnalysisConfig`::

    {
        "max_function_lines": 60,
        "max_file_lines": 1200,
        "source_suffixes": [".swift"],
        "disabled_rules": ["unresolved_tag_ast"],
        "language": "en"
    }
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from braceqa.diagnostics import resolve_language
from braceqa.errors import ConfigError

_log = logging.getLogger(__name__)

DEFAULT_SENSITIVE_KEYWORDS = ("password", "secret", "key")

_POSITIVE_INT_FIELDS = (
    "max_function_lines",
    "text_max_complexity",
    "tree_max_complexity",
    "max_file_lines",
    "max_average_function_length",
)

_STRING_TUPLE_FIELDS = ("source_suffixes", "sensitive_keywords", "disabled_rules")


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Thresholds and options for one analysis run.

    Attributes
    ----------
    max_function_lines          : body length above which a function is "long"
    text_max_complexity         : complexity ceiling of the text scanner
    tree_max_complexity         : complexity ceiling of the tree rule
    max_file_lines              : total lines above which a file is "long"
    max_average_function_length : average body length probed by scoring
    source_suffixes             : file suffixes picked up by discovery
    declaration_keyword         : keyword introducing a function declaration
    comment_marker              : line-comment marker
    sensitive_keywords          : identifier words reported as security issues
    disabled_rules              : tree rule identifiers to disable
    workers                     : thread pool size (None → CPU count)
    language                    : default output language
    """
    max_function_lines: int = 50
    text_max_complexity: int = 12
    tree_max_complexity: int = 15
    max_file_lines: int = 600
    max_average_function_length: int = 40
    source_suffixes: Tuple[str, ...] = (".swift",)
    declaration_keyword: str = "func"
    comment_marker: str = "//"
    sensitive_keywords: Tuple[str, ...] = DEFAULT_SENSITIVE_KEYWORDS
    disabled_rules: Tuple[str, ...] = ()
    workers: Optional[int] = None
    language: str = "ko"

    def __post_init__(self) -> None:
        for name in _POSITIVE_INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in _STRING_TUPLE_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, (tuple, list)) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{name} must be a list of strings, got {value!r}")
            object.__setattr__(self, name, tuple(value))
        for suffix in self.source_suffixes:
            if not suffix.startswith("."):
                raise ConfigError(f"source suffix must start with '.', got {suffix!r}")
        for name in ("declaration_keyword", "comment_marker"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{name} must be a non-empty string, got {value!r}")
        if self.workers is not None and (
            isinstance(self.workers, bool)
            or not isinstance(self.workers, int)
            or self.workers < 1
        ):
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}")
        try:
            resolve_language(self.language)
        except ValueError as exc:
            raise ConfigError(str(exc), cause=exc) from exc

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AnalysisConfig":
        """Build a configuration from a mapping of field names.

        Raises
        ------
        ConfigError
            On unknown keys or invalid values.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")
        kwargs: Dict[str, Any] = dict(data)
        for name in _STRING_TUPLE_FIELDS:
            if name in kwargs and isinstance(kwargs[name], list):
                kwargs[name] = tuple(kwargs[name])
        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "AnalysisConfig":
        """Copy with the non-``None`` *overrides* applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return self.from_mapping({**self.to_dict(), **changes})

    def to_dict(self) -> Dict[str, Any]:
        result = dataclasses.asdict(self)
        for name in _STRING_TUPLE_FIELDS:
            result[name] = list(result[name])
        return result


def load_config(path: Union[str, Path]) -> AnalysisConfig:
    """Read an :class:`AnalysisConfig` from a JSON file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError("cannot read configuration file", path=str(path), cause=exc) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON: {exc}", path=str(path), cause=exc) from exc
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a JSON object", path=str(path))
    try:
        config = AnalysisConfig.from_mapping(data)
    except ConfigError as exc:
        raise ConfigError(exc.message, path=str(path), cause=exc.cause) from exc
    _log.debug("Loaded configuration from %s", path)
    return config


__all__ = ["AnalysisConfig", "DEFAULT_SENSITIVE_KEYWORDS", "load_config"]
