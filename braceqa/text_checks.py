"""
braceqa/text_checks.py
══════════════════════

Line-oriented checks that run on both analysis paths.

    check                   kind                       severity
    ─────────────────────   ────────────────────────   ────────
    trailing whitespace     style-violation            low
    doubled space           style-violation            low
    type naming             style-violation            low
    function naming         style-violation            low
    sensitive keyword       security-issue             high
    public var              improper-access-control    medium
    long file               long-file                  medium
    TODO / FIXME            unresolved-tag             info

The TODO / FIXME check is only used on the text path; with a syntax tree
the comment-node rule reports work tags instead.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from braceqa.diagnostics import Diagnostic, DiagnosticKind, Severity, make_diagnostic
from braceqa.lines import LINE_COMMENT, is_comment_line, strip_line_comment

_DOUBLE_SPACE_RE = re.compile(r"\b(?:var|let) {2,}")
_TYPE_DECL_RE = re.compile(
    r"^(?:(?:@\w+(?:\([^)]*\))?|public|private|fileprivate|internal|open|final|indirect)\s+)*"
    r"(?:class|struct|enum|protocol)\s+"
    r"(?!(?:func|var|let|subscript|init|deinit)\b)([A-Za-z_][A-Za-z0-9_]*)"
)
_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_CAMEL_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_PUBLIC_RE = re.compile(r"\bpublic\b")
_VAR_RE = re.compile(r"\bvar\b")
_WORK_TAG_RE = re.compile(r"\b(?:TODO|FIXME)\b")


def identifier_words(text: str) -> List[str]:
    """Lower-cased words of every identifier in *text*.

    ``apiKey`` and ``api_key`` both give ``["api", "key"]``.
    """
    words: List[str] = []
    for ident in _IDENTIFIER_RE.findall(text):
        for part in ident.split("_"):
            words.extend(w.lower() for w in _CAMEL_WORD_RE.findall(part))
    return words


def _style(kind_key: str, path: str, lineno: int, **params) -> Diagnostic:
    return make_diagnostic(
        DiagnosticKind.STYLE_VIOLATION, Severity.LOW, path, kind_key,
        line=lineno, rule="style", **params
    )


def check_style(
    lines: Sequence[str],
    path: str,
    keyword: str = "func",
    comment_marker: str = LINE_COMMENT,
) -> List[Diagnostic]:
    func_re = re.compile(rf"(?<![\w.]){re.escape(keyword)}\s+([A-Za-z_][A-Za-z0-9_]*)")
    out: List[Diagnostic] = []
    for lineno, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if trimmed and line != line.rstrip():
            out.append(_style("trailing_whitespace", path, lineno, text=trimmed))
        if not trimmed or trimmed.startswith(comment_marker):
            continue
        code = strip_line_comment(trimmed, comment_marker)
        if _DOUBLE_SPACE_RE.search(code):
            out.append(_style("double_space", path, lineno, text=trimmed))
        match = _TYPE_DECL_RE.match(code)
        if match and not match.group(1)[0].isupper():
            out.append(_style("type_naming", path, lineno, name=match.group(1)))
        match = func_re.search(code)
        if match and "_" in match.group(1):
            out.append(_style("function_naming", path, lineno, name=match.group(1)))
    return out


def check_security(
    lines: Sequence[str],
    path: str,
    keywords: Iterable[str] = ("password", "secret", "key"),
    comment_marker: str = LINE_COMMENT,
) -> List[Diagnostic]:
    wanted = {k.lower() for k in keywords}
    out: List[Diagnostic] = []
    for lineno, line in enumerate(lines, start=1):
        if is_comment_line(line, comment_marker):
            continue
        code = strip_line_comment(line, comment_marker)
        trimmed = line.strip()
        if wanted and wanted.intersection(identifier_words(code)):
            out.append(make_diagnostic(
                DiagnosticKind.SECURITY_ISSUE, Severity.HIGH, path,
                "sensitive_keyword",
                line=lineno, rule="sensitive_keyword", text=trimmed,
            ))
        if _PUBLIC_RE.search(code) and _VAR_RE.search(code) and "{ get" not in code:
            out.append(make_diagnostic(
                DiagnosticKind.IMPROPER_ACCESS_CONTROL, Severity.MEDIUM, path,
                "public_var",
                line=lineno, rule="public_var", text=trimmed,
            ))
    return out


def check_file_length(total_lines: int, path: str, max_file_lines: int = 600) -> List[Diagnostic]:
    if total_lines <= max_file_lines:
        return []
    return [make_diagnostic(
        DiagnosticKind.LONG_FILE, Severity.MEDIUM, path,
        "long_file",
        rule="long_file", lines=total_lines, limit=max_file_lines,
    )]


def check_work_tags(lines: Sequence[str], path: str) -> List[Diagnostic]:
    out: List[Diagnostic] = []
    for lineno, line in enumerate(lines, start=1):
        if _WORK_TAG_RE.search(line):
            out.append(make_diagnostic(
                DiagnosticKind.UNRESOLVED_TAG, Severity.INFO, path,
                "unresolved_tag_line",
                line=lineno, rule="unresolved_tag_text", text=line.strip(),
            ))
    return out


__all__ = [
    "identifier_words",
    "check_style",
    "check_security",
    "check_file_length",
    "check_work_tags",
]
