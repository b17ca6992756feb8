"""
braceqa/scoring.py
══════════════════

Quality score of a file (0–100) and letter grade of a project.

Per file
────────
    100
    − severity penalty for every diagnostic that is not a size finding
          critical 5 · high 3 · medium 2 · low 1 · info 0
    − size penalty
          long-function fired:  max(5, file_length + average_length)
          otherwise:            file_length + average_length
      where file_length    = 5 if total lines > max_file_lines
            average_length = 5 if average function length > 40
    clamped to [0, 100]

Long-function and long-file diagnostics are scored only through the size
penalty, so several long functions cost 5 once and never stack on top of
the file-length and average-length probes.  Adding a diagnostic can only
lower the score or leave it unchanged.

Project
───────
Mean of the file scores (0 with no files), mapped to a grade:

    ≥95 A+   ≥90 A   ≥80 B   ≥70 C   ≥60 D   else F
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from braceqa.diagnostics import Diagnostic, DiagnosticKind, LocalizedText, Severity

SEVERITY_PENALTIES: Dict[Severity, float] = {
    Severity.CRITICAL: 5.0,
    Severity.HIGH: 3.0,
    Severity.MEDIUM: 2.0,
    Severity.LOW: 1.0,
    Severity.INFO: 0.0,
}

SIZE_KINDS = frozenset({DiagnosticKind.LONG_FUNCTION, DiagnosticKind.LONG_FILE})

GRADE_THRESHOLDS = (
    (95.0, "A+"),
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)


def _clamp(val: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, val))


def grade_for(score: float) -> str:
    for threshold, letter in GRADE_THRESHOLDS:
        if score >= threshold:
            return letter
    return "F"


@dataclass(frozen=True)
class ScoringPolicy:
    """Penalty constants and size thresholds."""
    long_function_penalty: float = 5.0
    file_length_penalty: float = 5.0
    average_length_penalty: float = 5.0
    max_file_lines: int = 600
    max_average_function_length: float = 40.0

    @classmethod
    def from_config(cls, config: Any) -> "ScoringPolicy":
        return cls(
            max_file_lines=config.max_file_lines,
            max_average_function_length=float(config.max_average_function_length),
        )


@dataclass(frozen=True)
class ScoreItem:
    """One deduction.  ``diagnostic`` is set for severity penalties."""
    reason: LocalizedText
    points: float
    diagnostic: Optional[Diagnostic] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reason": self.reason.to_dict(),
            "points": self.points,
            "diagnostic": self.diagnostic.id if self.diagnostic else None,
        }


class QualityScorer:
    """
    Usage::

        scorer = QualityScorer(ScoringPolicy(max_file_lines=1200))
        score = scorer.score(result.diagnostics, result.total_lines,
                             result.average_function_length)
        grade = scorer.grade(scorer.project_score([score]))
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None) -> None:
        self.policy = policy or ScoringPolicy()

    def explain(
        self,
        diagnostics: Iterable[Diagnostic],
        total_lines: int,
        average_function_length: float,
    ) -> List[ScoreItem]:
        """Itemized deductions, in the order they are applied."""
        items: List[ScoreItem] = []
        has_long_function = False
        for diag in diagnostics:
            if diag.kind is DiagnosticKind.LONG_FUNCTION:
                has_long_function = True
            if diag.kind in SIZE_KINDS:
                continue
            points = SEVERITY_PENALTIES[diag.severity]
            if points:
                items.append(ScoreItem(
                    reason=LocalizedText(
                        f"{diag.kind.display_name.primary} ({diag.severity.display_name.primary})",
                        f"{diag.kind.display_name.alternate} ({diag.severity.display_name.alternate})",
                    ),
                    points=points,
                    diagnostic=diag,
                ))

        policy = self.policy
        probes: List[ScoreItem] = []
        if total_lines > policy.max_file_lines:
            probes.append(ScoreItem(
                LocalizedText(
                    f"파일 길이 {total_lines}줄 > {policy.max_file_lines}줄",
                    f"file length {total_lines} > {policy.max_file_lines} lines",
                ),
                policy.file_length_penalty,
            ))
        if average_function_length > policy.max_average_function_length:
            probes.append(ScoreItem(
                LocalizedText(
                    f"평균 함수 길이 {average_function_length:.1f} > "
                    f"{policy.max_average_function_length:g}",
                    f"average function length {average_function_length:.1f} > "
                    f"{policy.max_average_function_length:g}",
                ),
                policy.average_length_penalty,
            ))

        probe_total = sum(p.points for p in probes)
        if has_long_function and policy.long_function_penalty >= probe_total:
            items.append(ScoreItem(
                LocalizedText("긴 함수", "long function"),
                policy.long_function_penalty,
            ))
        else:
            items.extend(probes)
        return items

    def score(
        self,
        diagnostics: Iterable[Diagnostic],
        total_lines: int,
        average_function_length: float,
    ) -> float:
        deductions = self.explain(diagnostics, total_lines, average_function_length)
        return _clamp(100.0 - sum(item.points for item in deductions))

    def score_result(self, result: Any) -> float:
        """Score anything carrying ``diagnostics``, ``total_lines`` and
        ``average_function_length`` (a ``FileAnalysisResult``)."""
        return self.score(
            result.diagnostics, result.total_lines, result.average_function_length
        )

    @staticmethod
    def project_score(file_scores: Sequence[float]) -> float:
        if not file_scores:
            return 0.0
        return sum(file_scores) / len(file_scores)

    @staticmethod
    def grade(score: float) -> str:
        return grade_for(score)


__all__ = [
    "SEVERITY_PENALTIES",
    "SIZE_KINDS",
    "GRADE_THRESHOLDS",
    "grade_for",
    "ScoringPolicy",
    "ScoreItem",
    "QualityScorer",
]
