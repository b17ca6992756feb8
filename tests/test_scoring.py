# tests/test_scoring.py
"""
Tests for the per-file quality score and the project grade.
"""

import itertools

import pytest

from braceqa.diagnostics import DiagnosticKind, Severity, make_diagnostic
from braceqa.scoring import QualityScorer, ScoringPolicy, grade_for


def _diag(kind=DiagnosticKind.STYLE_VIOLATION, severity=Severity.LOW):
    return make_diagnostic(kind, severity, "F.swift", "no_warnings")


def _long_function():
    return _diag(DiagnosticKind.LONG_FUNCTION, Severity.MEDIUM)


def _long_file():
    return _diag(DiagnosticKind.LONG_FILE, Severity.MEDIUM)


@pytest.fixture
def scorer():
    return QualityScorer()


class TestFileScore:

    def test_clean_file(self, scorer):
        assert scorer.score([], 100, 10.0) == 100.0

    @pytest.mark.parametrize("severity, expected", [
        (Severity.CRITICAL, 95.0),
        (Severity.HIGH, 97.0),
        (Severity.MEDIUM, 98.0),
        (Severity.LOW, 99.0),
        (Severity.INFO, 100.0),
    ])
    def test_severity_penalties(self, scorer, severity, expected):
        assert scorer.score([_diag(severity=severity)], 10, 5.0) == expected

    def test_long_file_only(self, scorer):
        # 700 lines, no functions, a single long-file diagnostic.
        assert scorer.score([_long_file()], 700, 0.0) == 95.0

    def test_long_average_only(self, scorer):
        assert scorer.score([], 100, 41.0) == 95.0

    def test_both_probes(self, scorer):
        assert scorer.score([_long_file()], 700, 41.0) == 90.0

    def test_long_functions_counted_once(self, scorer):
        diags = [_long_function() for _ in range(4)]
        assert scorer.score(diags, 100, 10.0) == 95.0

    def test_long_function_does_not_stack_on_probes(self, scorer):
        assert scorer.score([_long_function(), _long_file()], 700, 10.0) == 95.0
        assert scorer.score([_long_function(), _long_file()], 700, 41.0) == 90.0

    def test_clamped_at_zero(self, scorer):
        diags = [_diag(severity=Severity.CRITICAL) for _ in range(30)]
        assert scorer.score(diags, 10, 1.0) == 0.0

    def test_custom_policy(self):
        scorer = QualityScorer(ScoringPolicy(max_file_lines=1000))
        assert scorer.score([], 700, 0.0) == 100.0

    def test_explain_items(self, scorer):
        items = scorer.explain([_diag(severity=Severity.HIGH), _long_file()], 700, 0.0)
        assert [item.points for item in items] == [3.0, 5.0]
        assert items[0].diagnostic is not None
        assert items[1].diagnostic is None
        assert "700" in items[1].reason.get("en")
        assert items[0].to_dict()["points"] == 3.0


class TestScoreProperties:

    SEVERITIES = list(Severity)
    KINDS = [k for k in DiagnosticKind]

    def _lists(self):
        pool = [
            _diag(kind, severity)
            for kind, severity in itertools.product(self.KINDS, self.SEVERITIES)
        ]
        for size in (0, 1, 3, 10, len(pool)):
            yield pool[:size]
        yield pool * 3

    def test_always_clamped(self, scorer):
        for diags in self._lists():
            for lines, avg in ((10, 1.0), (5000, 100.0)):
                assert 0.0 <= scorer.score(diags, lines, avg) <= 100.0

    def test_idempotent(self, scorer):
        diags = [_diag(severity=Severity.HIGH), _long_function(), _long_file()]
        assert scorer.score(diags, 700, 45.0) == scorer.score(diags, 700, 45.0)

    def test_monotone_in_diagnostics(self, scorer):
        added = []
        previous = scorer.score(added, 700, 45.0)
        for kind, severity in itertools.product(self.KINDS, self.SEVERITIES):
            added.append(_diag(kind, severity))
            current = scorer.score(added, 700, 45.0)
            assert current <= previous
            previous = current

    def test_score_result_uses_result_fields(self, scorer):
        class _Result:
            diagnostics = (_diag(severity=Severity.MEDIUM),)
            total_lines = 10
            average_function_length = 2.0

        assert scorer.score_result(_Result()) == 98.0


class TestProjectGrade:

    def test_project_score_is_mean(self):
        assert QualityScorer.project_score([100.0, 90.0, 80.0]) == 90.0

    def test_no_files(self):
        assert QualityScorer.project_score([]) == 0.0
        assert QualityScorer.grade(0.0) == "F"

    @pytest.mark.parametrize("score, grade", [
        (100.0, "A+"), (95.0, "A+"), (94.9, "A"), (90.0, "A"),
        (89.99, "B"), (80.0, "B"), (70.0, "C"), (60.0, "D"), (59.9, "F"),
    ])
    def test_grades(self, score, grade):
        assert grade_for(score) == grade
