# tests/test_engine.py
"""
End-to-end tests of AnalysisEngine: both analysis paths, failure
isolation, cancellation and the dashboard.
"""

import logging

import pytest

from braceqa.complexity import cyclomatic_complexity
from braceqa.config import AnalysisConfig
from braceqa.diagnostics import DiagnosticKind, Severity, make_diagnostic
from braceqa.engine import (
    AnalysisDashboard,
    AnalysisEngine,
    AnalysisMode,
    FileAnalysisResult,
    discover_sources,
    display_path,
)
from braceqa.errors import SourceReadError
from braceqa.providers import StaticTreeProvider
from braceqa.rules import Rule, RuleRegistry
from braceqa.source import SourceFile

PROCESS = (
    "func process(items: [Int]) -> Int {\n"
    "    var total = 0\n"
    "    for item in items {\n"
    "        if item > 0 {\n"
    "            total += item\n"
    "        }\n"
    "    }\n"
    "    return total\n"
    "}\n"
)


def _write(directory, name, text):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _of_kind(result, kind):
    return [d for d in result.diagnostics if d.kind is kind]


@pytest.fixture
def process_tree(node, function_node):
    func = function_node(PROCESS, "func process", name="process(items:)", children=[
        function_node(PROCESS, "for item", kind="source.lang.swift.stmt.foreach", children=[
            function_node(PROCESS, "if item", kind="source.lang.swift.stmt.if"),
        ]),
    ])
    return node("root", 0, len(PROCESS), func)


# ═════════════════════════════════════════════════════════════════════════
#  Scenarios
# ═════════════════════════════════════════════════════════════════════════

class TestScenarios:

    def test_one_if_one_for_under_threshold(self, tmp_path, process_tree):
        func = process_tree.children[0]
        assert cyclomatic_complexity(process_tree, func.body_offset, func.body_length) == 3

        path = _write(tmp_path, "Process.swift", PROCESS)
        engine = AnalysisEngine(provider=StaticTreeProvider({"Process.swift": process_tree}))
        result = engine.analyze_file(path, tmp_path)

        assert result.mode is AnalysisMode.TREE
        assert result.file_path == "Process.swift"
        assert _of_kind(result, DiagnosticKind.HIGH_COMPLEXITY) == []
        assert result.diagnostics == ()
        assert result.function_count == 1
        assert result.average_function_length == 7.0
        assert result.score == 100.0

    def test_long_file_only(self, tmp_path):
        path = _write(tmp_path, "Long.swift", "call()\n" * 700)
        result = AnalysisEngine(AnalysisConfig(max_file_lines=600)).analyze_file(path, tmp_path)
        assert result.mode is AnalysisMode.TEXT
        assert result.total_lines == 700
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].kind is DiagnosticKind.LONG_FILE
        assert result.score == 95.0

    def test_unused_file_scope_binding(self, tmp_path):
        text = (
            "import Foundation\n"
            "\n"
            "let unusedFlag = true\n"
            "struct Settings {\n"
            "    let unusedFlag = false\n"
            "}\n"
        )
        path = _write(tmp_path, "Settings.swift", text)
        result = AnalysisEngine().analyze_file(path, tmp_path)
        assert len(result.diagnostics) == 1
        diag = result.diagnostics[0]
        assert diag.kind is DiagnosticKind.UNUSED_VARIABLE
        assert diag.line == 3
        assert diag.severity is Severity.LOW


# ═════════════════════════════════════════════════════════════════════════
#  Single file
# ═════════════════════════════════════════════════════════════════════════

class TestAnalyzeSource:

    def test_text_mode_metrics(self):
        text = "// Greeting\nfunc hello() {\n    print(1)\n}\n\n"
        result = AnalysisEngine().analyze_source(SourceFile.from_text("Hello.swift", text))
        assert result.mode is AnalysisMode.TEXT
        assert (result.total_lines, result.code_lines, result.comment_lines, result.blank_lines) \
            == (5, 3, 1, 1)
        assert result.function_count == 1
        assert result.max_function_length == 3

    def test_text_mode_reports_work_tags(self):
        result = AnalysisEngine().analyze_source(
            SourceFile.from_text("T.swift", "// TODO: later\n")
        )
        tags = _of_kind(result, DiagnosticKind.UNRESOLVED_TAG)
        assert [d.severity for d in tags] == [Severity.INFO]

    def test_tree_mode_skips_line_work_tags(self, node):
        text = "// TODO: later\n"
        tree = node("root", 0, len(text))
        engine = AnalysisEngine(provider=StaticTreeProvider({"T.swift": tree}))
        result = engine.analyze_source(SourceFile.from_text("T.swift", text))
        assert result.mode is AnalysisMode.TREE
        assert _of_kind(result, DiagnosticKind.UNRESOLVED_TAG) == []

    def test_missing_tree_falls_back_to_text(self, caplog):
        engine = AnalysisEngine(provider=StaticTreeProvider())
        with caplog.at_level(logging.INFO, logger="braceqa.engine"):
            result = engine.analyze_source(SourceFile.from_text("P.swift", PROCESS))
        assert result.mode is AnalysisMode.TEXT
        failures = _of_kind(result, DiagnosticKind.ANALYSIS_FAILURE)
        assert len(failures) == 1
        assert failures[0].severity is Severity.INFO
        assert "text scan" in caplog.text
        # INFO findings cost nothing.
        assert result.score == 100.0

    def test_failing_rule_keeps_tree_mode(self, process_tree):
        class Broken(Rule):
            identifier = "broken"

            def evaluate(self, tree, source):
                raise ValueError("bad tree")

        registry = RuleRegistry()
        registry.register(Broken())
        engine = AnalysisEngine(
            provider=StaticTreeProvider({"P.swift": process_tree}), registry=registry,
        )
        result = engine.analyze_source(SourceFile.from_text("P.swift", PROCESS))
        assert result.mode is AnalysisMode.TREE
        assert [d.rule for d in result.diagnostics] == ["broken"]


# ═════════════════════════════════════════════════════════════════════════
#  Many files
# ═════════════════════════════════════════════════════════════════════════

class TestAnalyzePaths:

    def test_unreadable_file_is_isolated(self, tmp_path):
        good = _write(tmp_path, "A.swift", "let a = 1\nprint(a)\n")
        missing = tmp_path / "Missing.swift"
        other = _write(tmp_path, "B.swift", "let b = 2\nprint(b)\n")

        results = AnalysisEngine(AnalysisConfig(workers=2)).analyze_paths(
            [good, missing, other], tmp_path
        )
        assert [r.file_path for r in results] == ["A.swift", "Missing.swift", "B.swift"]
        assert [r.mode for r in results] == [
            AnalysisMode.TEXT, AnalysisMode.FAILED, AnalysisMode.TEXT,
        ]
        failure = results[1].diagnostics[0]
        assert failure.kind is DiagnosticKind.ANALYSIS_FAILURE
        assert failure.severity is Severity.HIGH
        assert results[1].score == 97.0

    def test_unexpected_exception_is_isolated(self, tmp_path, monkeypatch):
        paths = [_write(tmp_path, name, "let x = 1\nprint(x)\n") for name in ("A.swift", "Bad.swift")]
        engine = AnalysisEngine()
        original = engine.analyze_source

        def flaky(source, disk_path=None):
            if source.path == "Bad.swift":
                raise RuntimeError("kaboom")
            return original(source, disk_path)

        monkeypatch.setattr(engine, "analyze_source", flaky)
        results = engine.analyze_paths(paths, tmp_path)
        assert [r.mode for r in results] == [AnalysisMode.TEXT, AnalysisMode.FAILED]
        assert "kaboom" in results[1].diagnostics[0].text("en")

    def test_cancel_skips_pending_files(self, tmp_path, monkeypatch):
        paths = [_write(tmp_path, f"F{i}.swift", "x()\n") for i in range(3)]
        engine = AnalysisEngine(AnalysisConfig(workers=1))
        original = engine.analyze_source

        def cancel_after_first(source, disk_path=None):
            engine.cancel()
            return original(source, disk_path)

        monkeypatch.setattr(engine, "analyze_source", cancel_after_first)
        results = engine.analyze_paths(paths, tmp_path)
        assert [r.file_path for r in results] == ["F0.swift"]
        assert engine.cancelled

    def test_cancel_does_not_outlive_its_run(self, tmp_path):
        paths = [_write(tmp_path, f"F{i}.swift", "x()\n") for i in range(3)]
        engine = AnalysisEngine()
        engine.cancel()
        assert len(engine.analyze_paths(paths, tmp_path)) == 3
        assert not engine.cancelled
        assert len(engine.analyze_paths(paths, tmp_path)) == 3

    def test_no_paths(self):
        assert AnalysisEngine().analyze_paths([]) == []


class TestAnalyzeProject:

    def test_project(self, tmp_path):
        _write(tmp_path, "Sources/App/Main.swift", "func main() {\n    run()\n}\n")
        _write(tmp_path, "Sources/Util.swift", "let password = load()\nprint(password)\n")
        _write(tmp_path, ".build/Generated.swift", "x()\n")
        _write(tmp_path, "README.md", "# readme\n")

        dashboard = AnalysisEngine().analyze_project(tmp_path)
        assert [f.file_path for f in dashboard.files] == [
            "Sources/App/Main.swift", "Sources/Util.swift",
        ]
        # Util.swift: two high-severity sensitive-keyword lines.
        assert [f.score for f in dashboard.files] == [100.0, 94.0]
        assert dashboard.score == pytest.approx(97.0)
        assert dashboard.grade == "A+"

    def test_missing_root(self, tmp_path):
        with pytest.raises(SourceReadError):
            AnalysisEngine().analyze_project(tmp_path / "nowhere")

    def test_empty_project(self, tmp_path):
        dashboard = AnalysisEngine().analyze_project(tmp_path)
        assert dashboard.files == ()
        assert dashboard.score == 0.0
        assert dashboard.grade == "F"


class TestDiscovery:

    def test_discover_sources(self, tmp_path):
        _write(tmp_path, "b.swift", "")
        _write(tmp_path, "a/z.swift", "")
        _write(tmp_path, "a/notes.txt", "")
        _write(tmp_path, ".hidden/c.swift", "")
        found = discover_sources(tmp_path)
        assert [p.relative_to(tmp_path).as_posix() for p in found] == ["a/z.swift", "b.swift"]

    def test_custom_suffixes(self, tmp_path):
        _write(tmp_path, "a.kt", "")
        _write(tmp_path, "b.swift", "")
        assert [p.name for p in discover_sources(tmp_path, (".kt",))] == ["a.kt"]

    def test_display_path(self, tmp_path):
        assert display_path(tmp_path / "x" / "y.swift", tmp_path) == "x/y.swift"
        assert display_path("rel/y.swift") == "rel/y.swift"


# ═════════════════════════════════════════════════════════════════════════
#  Dashboard
# ═════════════════════════════════════════════════════════════════════════

def _result(path, total, code, comment, blank, functions, average, diagnostics=(), score=100.0):
    return FileAnalysisResult(
        file_path=path,
        total_lines=total,
        code_lines=code,
        comment_lines=comment,
        blank_lines=blank,
        function_count=functions,
        average_function_length=average,
        max_function_length=int(average),
        diagnostics=tuple(diagnostics),
        mode=AnalysisMode.TEXT,
        score=score,
    )


class TestDashboard:

    @pytest.fixture
    def dashboard(self):
        diag = make_diagnostic(
            DiagnosticKind.LONG_FUNCTION, Severity.MEDIUM, "b.swift", "long_function",
            line=4, name="big", lines=70, limit=50,
        )
        files = [
            _result("a.swift", 10, 8, 1, 1, 2, 3.0, score=100.0),
            _result("b.swift", 20, 10, 0, 10, 1, 6.0, diagnostics=[diag], score=85.0),
        ]
        return AnalysisEngine().build_dashboard(files)

    def test_totals(self, dashboard):
        assert isinstance(dashboard, AnalysisDashboard)
        assert dashboard.total_lines == 30
        assert dashboard.total_code_lines == 18
        assert dashboard.total_functions == 3
        assert dashboard.average_function_length == 4.0
        assert dashboard.comment_rate == pytest.approx(100 / 18)
        assert dashboard.score == 92.5
        assert dashboard.grade == "A"

    def test_summary_alternate_language(self, dashboard):
        summary = dashboard.summary("en")
        lines = summary.splitlines()
        assert lines[0] == "Done: 2 file(s) analysed."
        assert "Functions: 3, average function length: 4.0" in lines
        assert "Quality score: 92.5/100 (A) / Low comment ratio (5.6%)" in lines
        assert lines[-1].startswith("(b.swift) (line 4): [Long function] Function 'big'")

    def test_summary_follows_selector(self, dashboard):
        assert dashboard.summary().startswith("완료: 2개 파일 분석됨.")
        assert dashboard.summary_text.get("en") == dashboard.summary("en")

    def test_no_warnings_line(self):
        dashboard = AnalysisEngine().build_dashboard([_result("a.swift", 1, 1, 0, 0, 0, 0.0)])
        assert dashboard.summary("en").splitlines()[-1] == "No warnings."

    def test_to_dict(self, dashboard):
        data = dashboard.to_dict()
        assert data["grade"] == "A"
        assert data["totals"]["files"] == 2
        assert data["files"][1]["diagnostics"][0]["kind"] == "long-function"
        assert set(data["quality_message"]) == {"ko", "en"}
