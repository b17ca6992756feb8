"""
braceqa/engine.py
═════════════════

Per-file orchestration and the project dashboard.

    ┌───────────────┐      ┌──────────────┐
    │ read_source() │─────▶│ classify()   │  line counts, always
    └───────┬───────┘      └──────────────┘
            │
            ▼  provider.parse()
    ┌───────────────┐ tree  ┌────────────────────────────┐
    │ TreeProvider  │──────▶│ RuleRegistry.evaluate()    │  tree mode
    └───────┬───────┘       └────────────────────────────┘
            │ TreeUnavailableError / no provider
            ▼
    ┌──────────────────────────────┐
    │ scan_functions()             │                        text mode
    └──────────────────────────────┘
            │
            ▼  both modes
    file-scope bindings · style · security · long file
            │
            ▼
    QualityScorer ──▶ FileAnalysisResult ──▶ AnalysisDashboard

Files are analysed independently on a thread pool.  A failure in one file
never stops the others: an unreadable file becomes a ``failed`` result
with one high-severity diagnostic, and an unexpected exception inside the
task is converted the same way.
"""

from __future__ import annotations

import enum
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from braceqa.config import AnalysisConfig
from braceqa.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    Language,
    LocalizedText,
    PRIMARY_LANGUAGE,
    ALTERNATE_LANGUAGE,
    Severity,
    get_language,
    localize,
    make_diagnostic,
    resolve_language,
)
from braceqa.errors import AnalysisCancelled, SourceReadError, TreeUnavailableError
from braceqa.lines import classify
from braceqa.providers import TreeProvider
from braceqa.rules import RuleRegistry, default_registry
from braceqa.scoring import QualityScorer, ScoringPolicy
from braceqa.source import SourceFile, read_source
from braceqa.text_checks import check_file_length, check_security, check_style, check_work_tags
from braceqa.text_scan import find_unused_file_level_variables, scan_functions

_log = logging.getLogger(__name__)

LOW_COMMENT_RATE = 7.0

PathLike = Union[str, Path]


def discover_sources(root: PathLike, suffixes: Iterable[str] = (".swift",)) -> List[Path]:
    """Source files below *root*, sorted; hidden directories are skipped."""
    root = Path(root)
    wanted = tuple(suffixes)
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in filenames:
            if name.endswith(wanted):
                found.append(Path(dirpath) / name)
    return sorted(found)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1: RESULTS
# ═════════════════════════════════════════════════════════════════════════

class AnalysisMode(enum.Enum):
    TREE = "tree"
    TEXT = "text"
    FAILED = "failed"


@dataclass(frozen=True)
class FileAnalysisResult:
    file_path: str
    total_lines: int
    code_lines: int
    comment_lines: int
    blank_lines: int
    function_count: int
    average_function_length: float
    max_function_length: int
    diagnostics: Tuple[Diagnostic, ...]
    mode: AnalysisMode
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file_path,
            "mode": self.mode.value,
            "lines": {
                "total": self.total_lines,
                "code": self.code_lines,
                "comment": self.comment_lines,
                "blank": self.blank_lines,
            },
            "functions": {
                "count": self.function_count,
                "average_length": round(self.average_function_length, 2),
                "max_length": self.max_function_length,
            },
            "score": round(self.score, 2),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass(frozen=True)
class AnalysisDashboard:
    """Aggregate of one run.  Totals are derived from ``files``."""
    files: Tuple[FileAnalysisResult, ...]
    score: float
    grade: str

    @property
    def total_lines(self) -> int:
        return sum(f.total_lines for f in self.files)

    @property
    def total_code_lines(self) -> int:
        return sum(f.code_lines for f in self.files)

    @property
    def total_comment_lines(self) -> int:
        return sum(f.comment_lines for f in self.files)

    @property
    def total_blank_lines(self) -> int:
        return sum(f.blank_lines for f in self.files)

    @property
    def total_functions(self) -> int:
        return sum(f.function_count for f in self.files)

    @property
    def average_function_length(self) -> float:
        total = self.total_functions
        if not total:
            return 0.0
        return sum(f.average_function_length * f.function_count for f in self.files) / total

    @property
    def comment_rate(self) -> float:
        code = self.total_code_lines
        if not code:
            return 0.0
        return self.total_comment_lines / code * 100

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]

    @property
    def quality_message(self) -> LocalizedText:
        score = localize("quality_score", score=self.score, grade=self.grade)
        key = "comment_low" if self.comment_rate < LOW_COMMENT_RATE else "comment_ok"
        comment = localize(key, rate=self.comment_rate)
        return LocalizedText(
            f"{score.primary} / {comment.primary}",
            f"{score.alternate} / {comment.alternate}",
        )

    @property
    def summary_text(self) -> LocalizedText:
        return LocalizedText(self.summary(PRIMARY_LANGUAGE), self.summary(ALTERNATE_LANGUAGE))

    def summary(self, lang: Union[Language, str, None] = None) -> str:
        """Multi-line plain-text summary in *lang* (default: current)."""
        selected = get_language() if lang is None else resolve_language(lang)

        def text(key: str, **params: Any) -> str:
            return localize(key, **params).get(selected)

        diagnostics = self.diagnostics
        out = [
            text("summary.files", count=len(self.files)),
            text(
                "summary.lines",
                total=self.total_lines,
                code=self.total_code_lines,
                comment=self.total_comment_lines,
                blank=self.total_blank_lines,
            ),
            text("summary.functions", count=self.total_functions,
                 average=self.average_function_length),
            text("summary.comment_rate", rate=self.comment_rate),
            self.quality_message.get(selected),
            text("summary.findings", count=len(diagnostics)),
            text("summary.warnings"),
        ]
        if not diagnostics:
            out.append(text("no_warnings"))
        for diag in diagnostics:
            line_part = f" (line {diag.line})" if diag.line is not None else ""
            out.append(
                f"({diag.file_path}){line_part}: "
                f"[{diag.kind.display_name.get(selected)}] {diag.text(selected)}"
            )
        return "\n".join(out)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": round(self.score, 2),
            "grade": self.grade,
            "totals": {
                "files": len(self.files),
                "lines": self.total_lines,
                "code": self.total_code_lines,
                "comment": self.total_comment_lines,
                "blank": self.total_blank_lines,
                "functions": self.total_functions,
            },
            "comment_rate": round(self.comment_rate, 2),
            "quality_message": self.quality_message.to_dict(),
            "files": [f.to_dict() for f in self.files],
        }


# ═════════════════════════════════════════════════════════════════════════
#  PART 2: ENGINE
# ═════════════════════════════════════════════════════════════════════════

class AnalysisEngine:
    """
    Runs every pass over a set of files.

    Usage::

        engine = AnalysisEngine(AnalysisConfig(max_file_lines=1200),
                                provider=JsonTreeProvider("build/structure", "."))
        dashboard = engine.analyze_project("Sources")
        print(dashboard.summary("en"))
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        provider: Optional[TreeProvider] = None,
        registry: Optional[RuleRegistry] = None,
        scorer: Optional[QualityScorer] = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.provider = provider
        self.registry = registry if registry is not None else default_registry(self.config)
        self.scorer = scorer or QualityScorer(ScoringPolicy.from_config(self.config))
        self._cancelled = threading.Event()

    # ── cancellation ─────────────────────────────────────────────────

    def cancel(self) -> None:
        """Skip every file of the current run whose analysis has not started.

        Each :meth:`analyze_paths` call starts uncancelled.
        """
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def reset(self) -> None:
        self._cancelled.clear()

    # ── single file ──────────────────────────────────────────────────

    def analyze_source(
        self,
        source: SourceFile,
        disk_path: Optional[PathLike] = None,
    ) -> FileAnalysisResult:
        cfg = self.config
        counts = classify(source.text, cfg.comment_marker)
        lines = source.lines
        diagnostics: List[Diagnostic] = []

        tree = None
        if self.provider is not None:
            try:
                tree = self.provider.parse(Path(disk_path or source.path), source.data)
            except TreeUnavailableError as exc:
                _log.info("No syntax tree for %s, using text scan: %s", source.path, exc.message)
                diagnostics.append(make_diagnostic(
                    DiagnosticKind.ANALYSIS_FAILURE, Severity.INFO, source.path,
                    "tree_unavailable",
                    rule="tree_provider", error=exc.message,
                ))

        if tree is not None:
            mode = AnalysisMode.TREE
            diagnostics.extend(self.registry.evaluate(tree, source))
            lengths = [f.size for f in source.functions(tree)]
        else:
            mode = AnalysisMode.TEXT
            scan = scan_functions(
                lines, source.path,
                keyword=cfg.declaration_keyword,
                max_complexity=cfg.text_max_complexity,
                max_function_lines=cfg.max_function_lines,
                comment_marker=cfg.comment_marker,
                index=source.index,
            )
            diagnostics.extend(scan.diagnostics)
            lengths = list(scan.lengths)

        diagnostics.extend(find_unused_file_level_variables(lines, source.path, cfg.comment_marker))
        diagnostics.extend(check_style(lines, source.path, cfg.declaration_keyword, cfg.comment_marker))
        diagnostics.extend(check_security(lines, source.path, cfg.sensitive_keywords, cfg.comment_marker))
        diagnostics.extend(check_file_length(len(lines), source.path, cfg.max_file_lines))
        if mode is AnalysisMode.TEXT:
            diagnostics.extend(check_work_tags(lines, source.path))

        average = sum(lengths) / len(lengths) if lengths else 0.0
        score = self.scorer.score(diagnostics, len(lines), average)
        _log.debug(
            "%s: %s mode, %d function(s), %d diagnostic(s), score %.1f",
            source.path, mode.value, len(lengths), len(diagnostics), score,
        )
        return FileAnalysisResult(
            file_path=source.path,
            total_lines=len(lines),
            code_lines=counts.code,
            comment_lines=counts.comment,
            blank_lines=counts.blank,
            function_count=len(lengths),
            average_function_length=average,
            max_function_length=max(lengths, default=0),
            diagnostics=tuple(diagnostics),
            mode=mode,
            score=score,
        )

    def analyze_file(self, path: PathLike, root: Optional[PathLike] = None) -> FileAnalysisResult:
        path = Path(path)
        shown = display_path(path, root)
        try:
            source = read_source(path, shown, self.config.declaration_keyword)
        except SourceReadError as exc:
            _log.warning("Cannot read %s: %s", path, exc.message)
            return self._failed(shown, make_diagnostic(
                DiagnosticKind.ANALYSIS_FAILURE, Severity.HIGH, shown,
                "read_failure",
                rule="source_reader", error=exc.message,
            ))
        return self.analyze_source(source, path)

    def _failed(self, shown: str, diagnostic: Diagnostic) -> FileAnalysisResult:
        return FileAnalysisResult(
            file_path=shown,
            total_lines=0,
            code_lines=0,
            comment_lines=0,
            blank_lines=0,
            function_count=0,
            average_function_length=0.0,
            max_function_length=0,
            diagnostics=(diagnostic,),
            mode=AnalysisMode.FAILED,
            score=self.scorer.score((diagnostic,), 0, 0.0),
        )

    def _run_task(self, path: Path, root: Optional[PathLike]) -> FileAnalysisResult:
        if self._cancelled.is_set():
            raise AnalysisCancelled("analysis cancelled", path=str(path))
        try:
            return self.analyze_file(path, root)
        except Exception as exc:
            _log.exception("Analysis of %s failed", path)
            shown = display_path(path, root)
            return self._failed(shown, make_diagnostic(
                DiagnosticKind.ANALYSIS_FAILURE, Severity.HIGH, shown,
                "analysis_failure",
                rule="engine", error=exc,
            ))

    # ── many files ───────────────────────────────────────────────────

    def analyze_paths(
        self,
        paths: Sequence[PathLike],
        root: Optional[PathLike] = None,
    ) -> List[FileAnalysisResult]:
        """Analyse *paths* in parallel; results keep the order of *paths*."""
        paths = [Path(p) for p in paths]
        self._cancelled.clear()
        if not paths:
            return []
        workers = self.config.workers or os.cpu_count() or 1
        results: List[FileAnalysisResult] = []
        with ThreadPoolExecutor(max_workers=min(workers, len(paths))) as executor:
            futures = [executor.submit(self._run_task, p, root) for p in paths]
            for path, future in zip(paths, futures):
                try:
                    results.append(future.result())
                except AnalysisCancelled:
                    _log.info("Skipped %s: analysis cancelled", path)
        return results

    def build_dashboard(self, results: Sequence[FileAnalysisResult]) -> AnalysisDashboard:
        score = self.scorer.project_score([r.score for r in results])
        return AnalysisDashboard(
            files=tuple(results),
            score=score,
            grade=self.scorer.grade(score),
        )

    def analyze_project(self, root: PathLike) -> AnalysisDashboard:
        """Discover, analyse and aggregate every source file below *root*."""
        root = Path(root)
        if not root.is_dir():
            raise SourceReadError("not a directory", path=str(root))
        paths = discover_sources(root, self.config.source_suffixes)
        _log.info("Analysing %d file(s) under %s", len(paths), root)
        return self.build_dashboard(self.analyze_paths(paths, root))


def display_path(path: PathLike, root: Optional[PathLike] = None) -> str:
    """*path* relative to *root* in POSIX form, or unchanged outside it."""
    path = Path(path)
    if root is not None:
        try:
            return path.resolve().relative_to(Path(root).resolve()).as_posix()
        except ValueError:
            pass
    return path.as_posix()


__all__ = [
    "AnalysisMode",
    "FileAnalysisResult",
    "AnalysisDashboard",
    "AnalysisEngine",
    "discover_sources",
    "display_path",
]
