"""
braceqa/text_scan.py
════════════════════

Line-oriented metrics extractor used when no syntax tree is available.

The scan is a single left-to-right pass over the lines of one file.  All
state lives in a :class:`_ScanState` accumulator threaded through the
loop; nothing is kept between calls.

Function boundaries
───────────────────
    func name(          opens a function (closing the previous one)
    }  (line start)     closes the current function, after counting the line

Within an open function
───────────────────────
    • every line adds 1 to the length
    • a non-comment line containing a branch marker adds 1 to complexity
    • ``let x`` / ``var x`` records a local; ``_`` is ignored
    • a later line mentioning a recorded local (whole word) marks it used

The heuristic cannot see nested function scopes, and keywords inside
string literals are counted.  It is the degraded path, not a parser.
"""

from __future__ import annotations

import logging
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Sequence, Set, Tuple

from braceqa.diagnostics import Diagnostic, DiagnosticKind, Severity, make_diagnostic
from braceqa.lines import LINE_COMMENT, LineIndex, is_comment_line, strip_line_comment
from braceqa.syntax import FunctionRecord, NodeKind

_log = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_IDENT_RE = re.compile(rf"^{_IDENT}$|^`[^`]+`$|^[-+*/%=<>!&|^~?.]+$")

BRANCH_MARKER_RE = re.compile(r"\b(?:if|guard|while|for|case|catch)\b")
LOCAL_BINDING_RE = re.compile(rf"\b(?:let|var)\s+({_IDENT})")

_MODIFIERS = (
    r"(?:(?:@\w+(?:\([^)]*\))?|public|private|fileprivate|internal|open|"
    r"final|static|lazy|weak|unowned|indirect|nonisolated)\s+)*"
)
_TYPE_SCOPE_RE = re.compile(
    rf"^{_MODIFIERS}(?:class|struct|enum|extension|protocol|actor)\s+"
    r"(?!(?:func|var|let|subscript|init|deinit)\b)[A-Za-z_`]"
)
_FILE_LEVEL_DECL_RE = re.compile(rf"^{_MODIFIERS}(?:let|var)\s+({_IDENT})")


def declaration_pattern(keyword: str = "func") -> Pattern[str]:
    """Regex for ``keyword name(``; group 1 is the raw name text."""
    return re.compile(rf"(?<![\w.]){re.escape(keyword)}\s+([^(]*?)\s*\(")


def extract_function_name(raw: str) -> Optional[str]:
    """Clean the text between keyword and ``(``; ``None`` if not a name."""
    name = raw.strip()
    generic = name.find("<")
    if generic > 0 and _IDENT_RE.match(name[:generic].strip()):
        name = name[:generic].strip()
    return name if _IDENT_RE.match(name) else None


def _word_re(name: str) -> Pattern[str]:
    return re.compile(rf"(?<![A-Za-z0-9_]){re.escape(name)}(?![A-Za-z0-9_])")


# ═════════════════════════════════════════════════════════════════════════
#  PART 1: ACCUMULATOR
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class _Local:
    name: str
    line: int


@dataclass
class _OpenFunction:
    name: Optional[str]
    line: int
    length: int = 1
    complexity: int = 1
    locals: List[_Local] = field(default_factory=list)
    used: Set[str] = field(default_factory=set)

    @property
    def display_name(self) -> str:
        return self.name or "unknown"


@dataclass
class _ClosedFunction:
    name: Optional[str]
    line: int
    end_line: int
    length: int
    complexity: int


@dataclass
class _ScanState:
    path: str
    max_complexity: int
    current: Optional[_OpenFunction] = None
    closed: List[_ClosedFunction] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    first_seen: "OrderedDict[str, int]" = field(default_factory=OrderedDict)
    name_counts: Dict[str, int] = field(default_factory=dict)

    def open(self, name: Optional[str], line: int) -> None:
        self.current = _OpenFunction(name=name, line=line)
        if name is None:
            _log.debug("%s:%d: declaration without a usable name", self.path, line)
            return
        self.name_counts[name] = self.name_counts.get(name, 0) + 1
        self.first_seen.setdefault(name, line)

    def close(self, end_line: int) -> None:
        func = self.current
        if func is None:
            return
        self.current = None
        self.closed.append(_ClosedFunction(
            name=func.name,
            line=func.line,
            end_line=end_line,
            length=func.length,
            complexity=func.complexity,
        ))
        if func.complexity > self.max_complexity:
            self.diagnostics.append(make_diagnostic(
                DiagnosticKind.HIGH_COMPLEXITY, Severity.HIGH, self.path,
                "high_complexity",
                line=func.line,
                rule="high_complexity_text",
                name=func.display_name,
                complexity=func.complexity,
                limit=self.max_complexity,
            ))
        for local in func.locals:
            if local.name in func.used:
                continue
            self.diagnostics.append(make_diagnostic(
                DiagnosticKind.UNUSED_VARIABLE, Severity.LOW, self.path,
                "unused_local",
                line=local.line,
                rule="unused_local_text",
                name=local.name,
                function=func.display_name,
            ))


# ═════════════════════════════════════════════════════════════════════════
#  PART 2: FUNCTION SCAN
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TextScanResult:
    functions: Tuple[FunctionRecord, ...]
    lengths: Tuple[int, ...]
    complexities: Tuple[int, ...]
    diagnostics: Tuple[Diagnostic, ...]

    @property
    def function_count(self) -> int:
        return len(self.lengths)

    @property
    def average_length(self) -> float:
        if not self.lengths:
            return 0.0
        return sum(self.lengths) / len(self.lengths)

    @property
    def max_length(self) -> int:
        return max(self.lengths, default=0)


def _scan_body_line(func: _OpenFunction, line: str, lineno: int, marker: str) -> None:
    if is_comment_line(line, marker):
        return
    code = strip_line_comment(line, marker)
    if BRANCH_MARKER_RE.search(code):
        func.complexity += 1
    for local in func.locals:
        if local.name not in func.used and _word_re(local.name).search(code):
            func.used.add(local.name)
    for match in LOCAL_BINDING_RE.finditer(code):
        name = match.group(1)
        if name != "_":
            func.locals.append(_Local(name, lineno))


def scan_functions(
    lines: Sequence[str],
    path: str,
    *,
    keyword: str = "func",
    max_complexity: int = 12,
    max_function_lines: int = 50,
    comment_marker: str = LINE_COMMENT,
    index: Optional[LineIndex] = None,
) -> TextScanResult:
    """Run the function pass over *lines*.

    *index*, when given, is used to attach byte ranges to the
    :class:`FunctionRecord` values; otherwise ranges are ``(0, 0)``.
    """
    decl_re = declaration_pattern(keyword)
    state = _ScanState(path=path, max_complexity=max_complexity)

    for lineno, line in enumerate(lines, start=1):
        trimmed = line.strip()
        match = None
        if not trimmed.startswith(comment_marker):
            match = decl_re.search(strip_line_comment(trimmed, comment_marker))
        if match is not None:
            state.close(lineno - 1)
            state.open(extract_function_name(match.group(1)), lineno)
            continue
        func = state.current
        if func is None:
            continue
        func.length += 1
        if trimmed.startswith("}"):
            state.close(lineno)
            continue
        _scan_body_line(func, line, lineno, comment_marker)
    state.close(len(lines))

    diagnostics = list(state.diagnostics)
    for func in state.closed:
        if func.length > max_function_lines:
            diagnostics.append(make_diagnostic(
                DiagnosticKind.LONG_FUNCTION, Severity.MEDIUM, path,
                "long_function",
                line=func.line,
                rule="long_function_text",
                name=func.name or "unknown",
                lines=func.length,
                limit=max_function_lines,
            ))
    for name, first_line in state.first_seen.items():
        count = state.name_counts[name]
        if count < 2:
            continue
        for occurrence in range(1, count + 1):
            diagnostics.append(make_diagnostic(
                DiagnosticKind.DUPLICATE_FUNCTION_NAME, Severity.MEDIUM, path,
                "duplicate_name",
                line=first_line,
                rule="duplicate_function_text",
                name=name, count=count, index=occurrence,
            ))

    records = []
    for func in state.closed:
        if index is not None:
            byte_range = (index.line_start(func.line), index.line_range(func.end_line)[1])
        else:
            byte_range = (0, 0)
        records.append(FunctionRecord(
            name=func.name or "unknown",
            kind=NodeKind.FUNCTION,
            declaration_line=func.line,
            byte_range=byte_range,
            body_line_count=func.length,
        ))
    return TextScanResult(
        functions=tuple(records),
        lengths=tuple(f.length for f in state.closed),
        complexities=tuple(f.complexity for f in state.closed),
        diagnostics=tuple(diagnostics),
    )


# ═════════════════════════════════════════════════════════════════════════
#  PART 3: FILE-SCOPE BINDINGS
# ═════════════════════════════════════════════════════════════════════════

def _code_braces(code: str) -> str:
    """The ``{`` and ``}`` of *code* that are outside string literals."""
    out = []
    in_string = escaped = False
    for ch in code:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{}":
            out.append(ch)
    return "".join(out)


def _file_level_declarations(
    lines: Sequence[str],
    marker: str,
) -> List[Tuple[str, int]]:
    # Each open type scope is [base depth, opened?].
    scopes: List[List] = []
    depth = 0
    found: List[Tuple[str, int]] = []
    for lineno, line in enumerate(lines, start=1):
        if is_comment_line(line, marker):
            continue
        code = strip_line_comment(line, marker).strip()
        if _TYPE_SCOPE_RE.match(code):
            scopes.append([depth, False])
        elif not scopes and depth == 0:
            match = _FILE_LEVEL_DECL_RE.match(code)
            if match and match.group(1) != "_":
                found.append((match.group(1), lineno))
        for brace in _code_braces(code):
            if brace == "{":
                depth += 1
                if scopes and not scopes[-1][1] and depth == scopes[-1][0] + 1:
                    scopes[-1][1] = True
            else:
                depth = max(0, depth - 1)
                if scopes and scopes[-1][1] and depth == scopes[-1][0]:
                    scopes.pop()
    return found


def find_unused_file_level_variables(
    lines: Sequence[str],
    path: str,
    comment_marker: str = LINE_COMMENT,
) -> List[Diagnostic]:
    """Report file-scope ``let``/``var`` bindings never mentioned elsewhere.

    A binding is file level only outside every type body and at brace
    depth 0.  Comment lines are ignored and a line that re-declares the
    same name is not a use.
    """
    code_lines = [
        None if is_comment_line(line, comment_marker)
        else strip_line_comment(line, comment_marker)
        for line in lines
    ]
    diagnostics: List[Diagnostic] = []
    for name, decl_line in _file_level_declarations(lines, comment_marker):
        word = _word_re(name)
        redeclaration = re.compile(rf"\b(?:let|var)\s+{re.escape(name)}(?![A-Za-z0-9_])")
        used = False
        for lineno, code in enumerate(code_lines, start=1):
            if lineno == decl_line or code is None:
                continue
            if word.search(code) and not redeclaration.search(code):
                used = True
                break
        if not used:
            diagnostics.append(make_diagnostic(
                DiagnosticKind.UNUSED_VARIABLE, Severity.LOW, path,
                "unused_file_level",
                line=decl_line,
                rule="unused_file_level",
                name=name,
            ))
    return diagnostics


__all__ = [
    "BRANCH_MARKER_RE",
    "LOCAL_BINDING_RE",
    "declaration_pattern",
    "extract_function_name",
    "TextScanResult",
    "scan_functions",
    "find_unused_file_level_variables",
]
