"""
braceqa/diagnostics.py
══════════════════════

Diagnostic model shared by the text-scanning path and the tree-based
rules, plus the bilingual message catalog.

Every diagnostic carries its message and suggestion in both supported
languages.  Which variant is surfaced is decided at presentation time by
a process-wide language selector; analysis never looks at it.

    ┌──────────────┐   localize()   ┌──────────────┐
    │ MESSAGES     │ ─────────────▶ │ LocalizedText│──┐
    └──────────────┘                └──────────────┘  │
                                                      ▼
                  Severity ── DiagnosticKind ──▶ Diagnostic ──▶ to_dict()
                                                              to_gcc_format()

Languages
─────────
    ko    primary language (default)
    en    alternate language
    both  primary and alternate, concatenated

``"primary"``, ``"alt"`` and ``"alternate"`` are accepted as aliases.
"""

from __future__ import annotations

import contextlib
import enum
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple, Union


# ═════════════════════════════════════════════════════════════════════════
#  PART 1: LANGUAGE SELECTION
# ═════════════════════════════════════════════════════════════════════════

class Language(enum.Enum):
    KO = "ko"
    EN = "en"
    BOTH = "both"


PRIMARY_LANGUAGE = Language.KO
ALTERNATE_LANGUAGE = Language.EN

_current_language: Language = PRIMARY_LANGUAGE


def resolve_language(value: Union[Language, str]) -> Language:
    """Map a user-facing language name onto :class:`Language`.

    Raises ``ValueError`` for names that match no language.
    """
    if isinstance(value, Language):
        return value
    key = str(value).strip().lower()
    if key in ("both", "all"):
        return Language.BOTH
    if key in ("alt", "alternate") or key.startswith("en"):
        return ALTERNATE_LANGUAGE
    if key == "primary" or key.startswith("ko"):
        return PRIMARY_LANGUAGE
    raise ValueError(f"unknown language: {value!r}")


def set_language(value: Union[Language, str]) -> Language:
    """Set the process-wide language selector and return it."""
    global _current_language
    _current_language = resolve_language(value)
    return _current_language


def get_language() -> Language:
    return _current_language


@contextlib.contextmanager
def language(value: Union[Language, str]) -> Iterator[Language]:
    """Temporarily switch the process-wide language selector."""
    previous = get_language()
    selected = set_language(value)
    try:
        yield selected
    finally:
        set_language(previous)


@dataclass(frozen=True)
class LocalizedText:
    """A string stored in both the primary and the alternate language."""
    primary: str
    alternate: str = ""

    def get(self, lang: Union[Language, str, None] = None) -> str:
        selected = get_language() if lang is None else resolve_language(lang)
        if selected is ALTERNATE_LANGUAGE:
            return self.alternate
        if selected is Language.BOTH and self.alternate:
            return f"{self.primary} / {self.alternate}"
        return self.primary

    def to_dict(self) -> Dict[str, str]:
        return {
            PRIMARY_LANGUAGE.value: self.primary,
            ALTERNATE_LANGUAGE.value: self.alternate,
        }

    def __str__(self) -> str:
        return self.get()


# ═════════════════════════════════════════════════════════════════════════
#  PART 2: SEVERITY AND KIND
# ═════════════════════════════════════════════════════════════════════════

class Severity(enum.IntEnum):
    """Ordered risk level: INFO < LOW < MEDIUM < HIGH < CRITICAL."""
    INFO = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def display_name(self) -> LocalizedText:
        return _SEVERITY_NAMES[self]


_SEVERITY_NAMES = {
    Severity.INFO: LocalizedText("정보", "info"),
    Severity.LOW: LocalizedText("낮음", "low"),
    Severity.MEDIUM: LocalizedText("중간", "medium"),
    Severity.HIGH: LocalizedText("높음", "high"),
    Severity.CRITICAL: LocalizedText("심각", "critical"),
}


class DiagnosticKind(enum.Enum):
    LONG_FUNCTION = "long-function"
    HIGH_COMPLEXITY = "high-complexity"
    UNUSED_VARIABLE = "unused-variable"
    STYLE_VIOLATION = "style-violation"
    SECURITY_ISSUE = "security-issue"
    DUPLICATE_FUNCTION_NAME = "duplicate-function-name"
    LONG_FILE = "long-file"
    UNRESOLVED_TAG = "unresolved-tag"
    IMPROPER_ACCESS_CONTROL = "improper-access-control"
    ANALYSIS_FAILURE = "analysis-failure"

    @property
    def display_name(self) -> LocalizedText:
        return _KIND_NAMES[self]


_KIND_NAMES = {
    DiagnosticKind.LONG_FUNCTION: LocalizedText("긴 함수", "Long function"),
    DiagnosticKind.HIGH_COMPLEXITY: LocalizedText("높은 복잡도", "High complexity"),
    DiagnosticKind.UNUSED_VARIABLE: LocalizedText("미사용 변수", "Unused variable"),
    DiagnosticKind.STYLE_VIOLATION: LocalizedText("코드 스타일 위반", "Style violation"),
    DiagnosticKind.SECURITY_ISSUE: LocalizedText("보안 관련 경고", "Security issue"),
    DiagnosticKind.DUPLICATE_FUNCTION_NAME: LocalizedText("중복 함수명", "Duplicate function name"),
    DiagnosticKind.LONG_FILE: LocalizedText("긴 파일", "Long file"),
    DiagnosticKind.UNRESOLVED_TAG: LocalizedText("미해결 태그 (TODO, FIXME)", "Unresolved tag (TODO, FIXME)"),
    DiagnosticKind.IMPROPER_ACCESS_CONTROL: LocalizedText("부적절한 접근 제어", "Improper access control"),
    DiagnosticKind.ANALYSIS_FAILURE: LocalizedText("분석 실패", "Analysis failure"),
}


# ═════════════════════════════════════════════════════════════════════════
#  PART 3: DIAGNOSTIC
# ═════════════════════════════════════════════════════════════════════════

def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, eq=False)
class Diagnostic:
    """
    A single finding.

    Attributes
    ----------
    kind        : DiagnosticKind
    severity    : Severity
    file_path   : path of the analysed file (relative to the project root)
    message     : LocalizedText describing the finding
    suggestion  : optional LocalizedText with a remedy
    line        : 1-based line, when known
    byte_offset : byte offset in the file (tree-derived diagnostics only)
    byte_length : byte length of the anchored node
    rule        : identifier of the rule or pass that produced it
    id          : unique per emission; equality and hashing use it alone
    """
    kind: DiagnosticKind
    severity: Severity
    file_path: str
    message: LocalizedText
    suggestion: Optional[LocalizedText] = None
    line: Optional[int] = None
    byte_offset: Optional[int] = None
    byte_length: Optional[int] = None
    rule: str = ""
    id: str = field(default_factory=_new_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Diagnostic):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def text(self, lang: Union[Language, str, None] = None) -> str:
        return self.message.get(lang)

    def suggestion_text(self, lang: Union[Language, str, None] = None) -> str:
        return self.suggestion.get(lang) if self.suggestion else ""

    @property
    def location(self) -> str:
        if self.line is not None:
            return f"{self.file_path}:{self.line}"
        return self.file_path

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "file": self.file_path,
            "line": self.line,
            "kind": self.kind.value,
            "severity": self.severity.label,
            "rule": self.rule,
            "message": self.message.to_dict(),
            "suggestion": self.suggestion.to_dict() if self.suggestion else None,
        }
        if self.byte_offset is not None:
            result["offset"] = self.byte_offset
            result["length"] = self.byte_length
        return result

    def to_json_str(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_gcc_format(self, lang: Union[Language, str, None] = None) -> str:
        """GCC-style line: ``file:line: severity: message [kind]``."""
        return (
            f"{self.location}: {self.severity.label}: "
            f"{self.text(lang)} [{self.kind.value}]"
        )

    def __repr__(self) -> str:
        return (
            f"<Diagnostic {self.kind.value}/{self.severity.label} "
            f"{self.location}>"
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 4: MESSAGE CATALOG
# ═════════════════════════════════════════════════════════════════════════

# key → (primary template, alternate template)
MESSAGES: Dict[str, Tuple[str, str]] = {
    "long_function": (
        "함수 '{name}'의 본문 길이가 {lines}줄로 최대치({limit}줄)를 초과합니다.",
        "Function '{name}' body is too long ({lines} lines, max: {limit}).",
    ),
    "long_function.fix": (
        "함수를 더 작은 단위로 분리하세요.",
        "Consider splitting the function into smaller units.",
    ),
    "high_complexity": (
        "함수 '{name}'의 순환 복잡도가 {complexity}로 최대치({limit})를 초과합니다.",
        "Function '{name}' has a cyclomatic complexity of {complexity}, "
        "exceeding max of {limit}.",
    ),
    "high_complexity.fix": (
        "함수를 분리하거나 로직을 단순화해 복잡도를 낮추세요.",
        "Consider refactoring or simplifying the function to reduce complexity.",
    ),
    "unused_local": (
        "함수 '{function}' 내 지역 변수/상수 '{name}'가 사용되지 않았습니다.",
        "Local variable/constant '{name}' in function '{function}' is never used.",
    ),
    "unused_local.fix": (
        "불필요하면 제거하세요.",
        "Remove it if it is not needed.",
    ),
    "unused_file_level": (
        "파일 레벨 변수/상수 '{name}'가 사용되지 않았습니다.",
        "File-level variable/constant '{name}' is never used.",
    ),
    "unused_file_level.fix": (
        "불필요하다면 삭제하세요.",
        "Delete it if it is not needed.",
    ),
    "duplicate_name": (
        "함수명 '{name}'이(가) 파일 내에서 {count}번 중복 정의되었습니다 ({index}번째 선언).",
        "Function name '{name}' is defined {count} times in this file "
        "(occurrence {index}).",
    ),
    "duplicate_name.fix": (
        "함수명을 다르게 하거나, 오버로딩이 올바르게 되었는지 확인하세요.",
        "Rename the function or check that the overloads are intended.",
    ),
    "duplicate_signature": (
        "중복 함수 선언: {signature}",
        "Duplicate function declaration: {signature}",
    ),
    "duplicate_signature.fix": (
        "중복 함수를 제거/통합하거나 시그니처 차별화 필요.",
        "Remove/merge duplicates or differentiate signature.",
    ),
    "unresolved_tag": (
        "주석에 미해결 태그({tag})가 남아 있습니다.",
        "Unresolved tag ({tag}) found in comment.",
    ),
    "unresolved_tag.fix": (
        "TODO/FIXME 처리 또는 삭제 권장.",
        "Address or remove TODO/FIXME tags.",
    ),
    "unresolved_tag_line": (
        "미해결 태그 발견: '{text}'",
        "Unresolved tag found: '{text}'",
    ),
    "unresolved_tag_line.fix": (
        "작업이 끝났으면 태그를 제거하세요.",
        "Remove the tag once the work is done.",
    ),
    "trailing_whitespace": (
        "불필요한 공백이 포함됨: '{text}'",
        "Trailing whitespace: '{text}'",
    ),
    "trailing_whitespace.fix": (
        "줄 끝 공백을 제거하세요.",
        "Remove the trailing whitespace.",
    ),
    "double_space": (
        "중복 공백이 포함됨: '{text}'",
        "Repeated spaces in declaration: '{text}'",
    ),
    "double_space.fix": (
        "공백을 하나로 줄이세요.",
        "Use a single space.",
    ),
    "type_naming": (
        "타입명 네이밍 규칙 위반: {name}",
        "Type name violates naming convention: {name}",
    ),
    "type_naming.fix": (
        "UpperCamelCase 사용 권장",
        "Use UpperCamelCase.",
    ),
    "function_naming": (
        "함수명 네이밍 규칙 위반: {name}",
        "Function name violates naming convention: {name}",
    ),
    "function_naming.fix": (
        "camelCase 사용 권장",
        "Use lowerCamelCase.",
    ),
    "sensitive_keyword": (
        "보안 관련 키워드 노출 감지: '{text}'",
        "Sensitive keyword exposed: '{text}'",
    ),
    "sensitive_keyword.fix": (
        "민감정보 노출 주의",
        "Be careful not to expose sensitive information.",
    ),
    "public_var": (
        "public var의 과도 노출 가능성: '{text}'",
        "public var may be overexposed: '{text}'",
    ),
    "public_var.fix": (
        "접근제어자를 검토하세요.",
        "Review the access modifier.",
    ),
    "long_file": (
        "파일이 너무 깁니다 ({lines}줄, {limit}줄 초과)",
        "File is too long ({lines} lines, over {limit})",
    ),
    "long_file.fix": (
        "파일을 분할하는 것을 고려하세요.",
        "Consider splitting the file.",
    ),
    "read_failure": (
        "파일을 읽을 수 없습니다: {error}",
        "File could not be read: {error}",
    ),
    "read_failure.fix": (
        "파일 권한과 인코딩을 확인하세요.",
        "Check the file's permissions and encoding.",
    ),
    "tree_unavailable": (
        "구문 트리를 가져오지 못해 텍스트 스캔으로 분석했습니다: {error}",
        "Syntax tree unavailable, analysed with the text scanner: {error}",
    ),
    "rule_failure": (
        "규칙 '{rule}' 실행 실패: {error}",
        "Rule '{rule}' failed: {error}",
    ),
    "analysis_failure": (
        "분석 중 오류가 발생했습니다: {error}",
        "Analysis failed: {error}",
    ),
    "quality_score": (
        "품질점수: {score:.1f}/100 ({grade})",
        "Quality score: {score:.1f}/100 ({grade})",
    ),
    "comment_low": (
        "주석률 낮음({rate:.1f}%)",
        "Low comment ratio ({rate:.1f}%)",
    ),
    "comment_ok": (
        "주석 적정({rate:.1f}%)",
        "Comment ratio OK ({rate:.1f}%)",
    ),
    "no_warnings": (
        "특이 경고 없음.",
        "No warnings.",
    ),
    "summary.files": (
        "완료: {count}개 파일 분석됨.",
        "Done: {count} file(s) analysed.",
    ),
    "summary.lines": (
        "전체 줄수: {total} / 코드: {code} / 주석: {comment} / 공백: {blank}",
        "Total lines: {total} / code: {code} / comment: {comment} / blank: {blank}",
    ),
    "summary.functions": (
        "함수: {count}, 평균 함수길이: {average:.1f}",
        "Functions: {count}, average function length: {average:.1f}",
    ),
    "summary.comment_rate": (
        "주석률: {rate:.1f}%",
        "Comment ratio: {rate:.1f}%",
    ),
    "summary.findings": (
        "감지 건수: {count}",
        "Findings: {count}",
    ),
    "summary.warnings": (
        "경고:",
        "Warnings:",
    ),
}


def localize(key: str, **params: Any) -> LocalizedText:
    """Format catalog entry *key* in both languages.

    Raises ``KeyError`` for an unknown key.
    """
    primary, alternate = MESSAGES[key]
    return LocalizedText(
        primary.format(**params),
        alternate.format(**params),
    )


def make_diagnostic(
    kind: DiagnosticKind,
    severity: Severity,
    file_path: str,
    message_key: str,
    *,
    line: Optional[int] = None,
    byte_offset: Optional[int] = None,
    byte_length: Optional[int] = None,
    rule: str = "",
    **params: Any,
) -> Diagnostic:
    """Build a :class:`Diagnostic` from a catalog entry.

    The suggestion is taken from ``<message_key>.fix`` when the catalog
    has one.  Templates may refer to ``{rule}`` as well as to *params*.
    """
    params["rule"] = rule
    fix_key = f"{message_key}.fix"
    suggestion = localize(fix_key, **params) if fix_key in MESSAGES else None
    return Diagnostic(
        kind=kind,
        severity=severity,
        file_path=file_path,
        message=localize(message_key, **params),
        suggestion=suggestion,
        line=line,
        byte_offset=byte_offset,
        byte_length=byte_length,
        rule=rule,
    )


__all__ = [
    "Language",
    "PRIMARY_LANGUAGE",
    "ALTERNATE_LANGUAGE",
    "resolve_language",
    "set_language",
    "get_language",
    "language",
    "LocalizedText",
    "Severity",
    "DiagnosticKind",
    "Diagnostic",
    "MESSAGES",
    "localize",
    "make_diagnostic",
]
