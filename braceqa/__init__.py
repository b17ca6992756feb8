"""
braceqa: code-quality analysis for brace-delimited source trees
================================================================

Scans source files of a curly-brace, statically typed language and emits
bilingual diagnostics (oversized functions, branching complexity, unused
bindings, duplicate declarations, naming, sensitive keywords, work tags),
then aggregates them into per-file scores and a project grade.

Two analysis paths exist per file:

tree
    A syntax tree from an external producer (SourceKitten, or pre-computed
    JSON) is evaluated by the rules in :mod:`braceqa.rules`.
text
    Without a tree, :mod:`braceqa.text_scan` approximates the same metrics
    line by line.

Quick start
-----------
>>> from braceqa import AnalysisEngine, AnalysisConfig
>>> engine = AnalysisEngine(AnalysisConfig(max_file_lines=1200))
>>> dashboard = engine.analyze_project("Sources")      # doctest: +SKIP
>>> print(dashboard.summary("en"))                      # doctest: +SKIP

Package layout
--------------
::

    braceqa/
    ├── __init__.py      ← this file
    ├── errors.py        exception hierarchy
    ├── diagnostics.py   Diagnostic, severities, kinds, message catalog
    ├── lines.py         line classification, byte offset ↔ line
    ├── signature.py     declaration header grammar (parsimonious)
    ├── syntax.py        SyntaxNode, FunctionRecord
    ├── source.py        SourceFile
    ├── complexity.py    cyclomatic complexity from the tree
    ├── rules.py         tree rules and RuleRegistry
    ├── text_scan.py     text-path function and binding scan
    ├── text_checks.py   style, security, long-file, work-tag checks
    ├── scoring.py       QualityScorer
    ├── providers.py     tree providers
    ├── config.py        AnalysisConfig
    ├── engine.py        AnalysisEngine, results, dashboard
    └── cli.py           command line
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import List

__version__ = "0.4.0"
__all__: List[str] = ["__version__"]

_log = logging.getLogger(__name__)

# (module, names re-exported at package level)
_CORE_MODULES = {
    "errors": [
        "BraceQAError",
        "ConfigError",
        "SourceReadError",
        "TreeUnavailableError",
        "SignatureParseError",
        "AnalysisCancelled",
    ],
    "diagnostics": [
        "Diagnostic",
        "DiagnosticKind",
        "Severity",
        "Language",
        "LocalizedText",
        "set_language",
        "get_language",
        "language",
    ],
    "syntax": [
        "SyntaxNode",
        "NodeKind",
        "FunctionRecord",
    ],
    "source": [
        "SourceFile",
    ],
    "rules": [
        "Rule",
        "RuleRegistry",
        "LongFunctionRule",
        "UnresolvedTagRule",
        "DuplicateSignatureRule",
        "HighComplexityRule",
        "default_registry",
    ],
    "scoring": [
        "QualityScorer",
        "ScoringPolicy",
    ],
    "providers": [
        "TreeProvider",
        "JsonTreeProvider",
        "SourceKittenProvider",
        "StaticTreeProvider",
    ],
    "config": [
        "AnalysisConfig",
        "load_config",
    ],
    "engine": [
        "AnalysisEngine",
        "AnalysisDashboard",
        "FileAnalysisResult",
        "AnalysisMode",
        "discover_sources",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    mod = importlib.import_module(f"{__name__}.{module_rel_name}")
    current_module = sys.modules[__name__]
    for name in names:
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)
    setattr(current_module, module_rel_name, mod)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names
