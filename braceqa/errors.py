"""
braceqa/errors.py
═════════════════

Exception hierarchy for the analysis engine.

Errors are raised where they arise (reading a file, asking the tree
producer for a syntax tree, parsing a declaration header, validating
configuration) and are only downgraded to diagnostics at the per-file
boundary of :class:`braceqa.engine.AnalysisEngine` or per rule inside
:class:`braceqa.rules.RuleRegistry`.

    BraceQAError
    ├── ConfigError
    ├── SourceReadError
    ├── TreeUnavailableError
    ├── SignatureParseError
    └── AnalysisCancelled
"""

from __future__ import annotations

from typing import Optional


class BraceQAError(Exception):
    """Base exception for all braceqa errors."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ConfigError(BraceQAError):
    """Invalid configuration key or value."""


class SourceReadError(BraceQAError):
    """A source file could not be read."""


class TreeUnavailableError(BraceQAError):
    """The external tree producer could not supply a syntax tree."""


class SignatureParseError(BraceQAError):
    """A declaration header did not match the signature grammar."""


class AnalysisCancelled(BraceQAError):
    """The run was cancelled before this file was analysed."""


__all__ = [
    "BraceQAError",
    "ConfigError",
    "SourceReadError",
    "TreeUnavailableError",
    "SignatureParseError",
    "AnalysisCancelled",
]
