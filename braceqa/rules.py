"""
braceqa/rules.py
════════════════

Tree-based rule engine.

Each rule consults node kinds and byte ranges of the syntax tree instead
of matching line text.  Rules are independent: they never see each
other's output and must not depend on evaluation order.

    ┌──────────────────────────────────────────────────────┐
    │                    RuleRegistry                      │
    │  long_function_ast   unresolved_tag_ast              │
    │  duplicate_function_ast                              │
    │  high_cyclomatic_complexity_ast                      │
    └───────────────┬──────────────────────────────────────┘
                    │ evaluate(tree, source)
                    ▼
          Diagnostic list (registration order)

A rule that raises is isolated by the registry: the failure is logged and
reported as a single ``analysis-failure`` diagnostic, and the remaining
rules still run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import ClassVar, Dict, Iterator, List, Optional, Set, Tuple

from braceqa.config import AnalysisConfig
from braceqa.complexity import function_complexities
from braceqa.diagnostics import Diagnostic, DiagnosticKind, Severity, make_diagnostic
from braceqa.source import SourceFile
from braceqa.syntax import FunctionRecord, NodeKind, SyntaxNode, walk

_log = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1: RULE CONTRACT
# ═════════════════════════════════════════════════════════════════════════

class Rule(ABC):
    """
    Base class of all tree rules.

    Subclasses set ``identifier`` and ``description`` and implement
    :meth:`evaluate`.
    """

    identifier: ClassVar[str] = "base_rule"
    description: ClassVar[str] = ""

    @abstractmethod
    def evaluate(self, tree: SyntaxNode, source: SourceFile) -> List[Diagnostic]:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.identifier}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2: SUPPLIED RULES
# ═════════════════════════════════════════════════════════════════════════

class LongFunctionRule(Rule):
    identifier = "long_function_ast"
    description = "Function body longer than the allowed number of code lines"

    def __init__(self, max_lines: int = 50) -> None:
        self.max_lines = max_lines

    def evaluate(self, tree: SyntaxNode, source: SourceFile) -> List[Diagnostic]:
        out: List[Diagnostic] = []
        for func in source.functions(tree):
            size = func.size
            if size <= self.max_lines:
                continue
            out.append(make_diagnostic(
                DiagnosticKind.LONG_FUNCTION, Severity.MEDIUM, source.path,
                "long_function",
                line=func.declaration_line,
                byte_offset=func.offset,
                byte_length=func.length,
                rule=self.identifier,
                name=func.name, lines=size, limit=self.max_lines,
            ))
        return out


class UnresolvedTagRule(Rule):
    identifier = "unresolved_tag_ast"
    description = "Comment containing a TODO: or FIXME: work tag"

    TAGS: ClassVar[Tuple[str, ...]] = ("TODO:", "FIXME:")

    def evaluate(self, tree: SyntaxNode, source: SourceFile) -> List[Diagnostic]:
        out: List[Diagnostic] = []
        for node in walk(tree):
            if node.kind is not NodeKind.COMMENT or not node.has_range:
                continue
            text = source.index.slice_text(node.offset, node.length)
            tag = next((t for t in self.TAGS if t in text), None)
            if tag is None:
                continue
            out.append(make_diagnostic(
                DiagnosticKind.UNRESOLVED_TAG, Severity.MEDIUM, source.path,
                "unresolved_tag",
                line=source.index.line_of(node.offset),
                byte_offset=node.offset,
                byte_length=node.length,
                rule=self.identifier,
                tag=tag.rstrip(":"),
            ))
        return out


class DuplicateSignatureRule(Rule):
    identifier = "duplicate_function_ast"
    description = "Functions declared more than once with the same signature"

    def evaluate(self, tree: SyntaxNode, source: SourceFile) -> List[Diagnostic]:
        groups: Dict[str, List[FunctionRecord]] = OrderedDict()
        for func in source.functions(tree):
            groups.setdefault(func.signature, []).append(func)

        out: List[Diagnostic] = []
        for signature, members in groups.items():
            if len(members) < 2:
                continue
            for func in sorted(members, key=lambda f: f.offset):
                out.append(make_diagnostic(
                    DiagnosticKind.DUPLICATE_FUNCTION_NAME, Severity.MEDIUM, source.path,
                    "duplicate_signature",
                    line=func.declaration_line,
                    byte_offset=func.offset,
                    byte_length=func.length,
                    rule=self.identifier,
                    signature=signature,
                ))
        return out


class HighComplexityRule(Rule):
    identifier = "high_cyclomatic_complexity_ast"
    description = "Function whose cyclomatic complexity exceeds the allowed maximum"

    def __init__(self, max_complexity: int = 10) -> None:
        self.max_complexity = max_complexity

    def evaluate(self, tree: SyntaxNode, source: SourceFile) -> List[Diagnostic]:
        functions = source.functions(tree)
        complexities = function_complexities(tree, functions)
        out: List[Diagnostic] = []
        for func in functions:
            complexity = complexities.get(func.byte_range)
            if complexity is None or complexity <= self.max_complexity:
                continue
            out.append(make_diagnostic(
                DiagnosticKind.HIGH_COMPLEXITY, Severity.MEDIUM, source.path,
                "high_complexity",
                line=func.declaration_line,
                byte_offset=func.offset,
                byte_length=func.length,
                rule=self.identifier,
                name=func.name, complexity=complexity, limit=self.max_complexity,
            ))
        return out


# ═════════════════════════════════════════════════════════════════════════
#  PART 3: REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class RuleRegistry:
    """
    Ordered, mutable collection of rule instances.

    Usage
    -----
    >>> registry = RuleRegistry()
    >>> registry.register(LongFunctionRule(max_lines=80))
    >>> registry.disable("long_function_ast")
    >>> diagnostics = registry.evaluate(tree, source)
    """

    def __init__(self) -> None:
        self._rules: "OrderedDict[str, Rule]" = OrderedDict()
        self._disabled: Set[str] = set()

    def register(self, rule: Rule) -> None:
        """Add *rule*; an existing rule with the same identifier is replaced."""
        self._rules[rule.identifier] = rule

    def unregister(self, identifier: str) -> Optional[Rule]:
        self._disabled.discard(identifier)
        return self._rules.pop(identifier, None)

    def disable(self, identifier: str) -> None:
        self._disabled.add(identifier)

    def enable(self, identifier: str) -> None:
        self._disabled.discard(identifier)

    def is_enabled(self, identifier: str) -> bool:
        return identifier in self._rules and identifier not in self._disabled

    def get(self, identifier: str) -> Optional[Rule]:
        return self._rules.get(identifier)

    def get_all(self) -> List[Rule]:
        return list(self._rules.values())

    def get_enabled(self) -> List[Rule]:
        return [r for ident, r in self._rules.items() if ident not in self._disabled]

    @property
    def identifiers(self) -> List[str]:
        return list(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.get_enabled())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._rules

    def evaluate(self, tree: SyntaxNode, source: SourceFile) -> List[Diagnostic]:
        """Concatenate the output of every enabled rule, in registration order."""
        out: List[Diagnostic] = []
        for rule in self.get_enabled():
            try:
                out.extend(rule.evaluate(tree, source))
            except Exception as exc:
                _log.warning("Rule %s failed on %s: %s", rule.identifier, source.path, exc)
                out.append(make_diagnostic(
                    DiagnosticKind.ANALYSIS_FAILURE, Severity.INFO, source.path,
                    "rule_failure",
                    rule=rule.identifier,
                    error=exc,
                ))
        return out


def default_registry(config: Optional[AnalysisConfig] = None) -> RuleRegistry:
    """The four supplied rules with thresholds taken from *config*."""
    config = config or AnalysisConfig()
    registry = RuleRegistry()
    registry.register(LongFunctionRule(max_lines=config.max_function_lines))
    registry.register(UnresolvedTagRule())
    registry.register(DuplicateSignatureRule())
    registry.register(HighComplexityRule(max_complexity=config.tree_max_complexity))
    for identifier in config.disabled_rules:
        if identifier not in registry:
            _log.warning("Cannot disable unknown rule %s", identifier)
        registry.disable(identifier)
    return registry


__all__ = [
    "Rule",
    "LongFunctionRule",
    "UnresolvedTagRule",
    "DuplicateSignatureRule",
    "HighComplexityRule",
    "RuleRegistry",
    "default_registry",
]
