"""
braceqa/cli.py
==============

Command-line front end.

Usage
-----
    braceqa analyze ROOT [options]
    braceqa rules [--config FILE]

Exit codes
----------
    0   analysis finished (and the score reached ``--fail-under``)
    1   project score below ``--fail-under``
    2   infrastructure failure: missing root, bad configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Optional, Sequence, TextIO

from braceqa import __version__
from braceqa.config import AnalysisConfig, load_config
from braceqa.diagnostics import language, resolve_language
from braceqa.engine import AnalysisDashboard, AnalysisEngine
from braceqa.errors import BraceQAError, ConfigError
from braceqa.providers import JsonTreeProvider, SourceKittenProvider, TreeProvider
from braceqa.rules import default_registry

_log = logging.getLogger("braceqa")

EXIT_OK: int = 0
EXIT_BELOW_THRESHOLD: int = 1
EXIT_INFRA: int = 2


def _configure_logging(verbosity: int) -> None:
    """Set up the ``braceqa`` logger.

    0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("braceqa")
    root.setLevel(level)
    root.handlers = [handler]


def _load_config(args: argparse.Namespace) -> AnalysisConfig:
    config = load_config(args.config) if args.config else AnalysisConfig()
    return config.with_overrides(
        max_file_lines=getattr(args, "max_file_lines", None),
        workers=getattr(args, "jobs", None),
        language=getattr(args, "lang", None),
    )


def _make_provider(args: argparse.Namespace, root: Path) -> Optional[TreeProvider]:
    if args.structure_dir:
        return JsonTreeProvider(args.structure_dir, root)
    if args.sourcekitten:
        return SourceKittenProvider(args.sourcekitten_path, timeout=args.timeout)
    return None


def _emit(dashboard: AnalysisDashboard, fmt: str, out: TextIO) -> None:
    if fmt == "json":
        json.dump(dashboard.to_dict(), out, ensure_ascii=False, indent=2)
        out.write("\n")
    elif fmt == "jsonl":
        for diag in dashboard.diagnostics:
            out.write(diag.to_json_str() + "\n")
    elif fmt == "gcc":
        for diag in dashboard.diagnostics:
            out.write(diag.to_gcc_format() + "\n")
    else:
        out.write(dashboard.summary() + "\n")


def cmd_analyze(args: argparse.Namespace) -> int:
    root = Path(args.root).expanduser()
    if not root.is_dir():
        _log.error("Root directory not found: %s", root)
        return EXIT_INFRA
    try:
        config = _load_config(args)
    except ConfigError as exc:
        _log.error("Invalid configuration: %s", exc)
        return EXIT_INFRA

    engine = AnalysisEngine(config, provider=_make_provider(args, root))
    try:
        dashboard = engine.analyze_project(root)
    except BraceQAError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    with language(config.language):
        _emit(dashboard, args.format, sys.stdout)

    if args.fail_under is not None and dashboard.score < args.fail_under:
        _log.warning(
            "Project score %.1f is below the required %.1f", dashboard.score, args.fail_under
        )
        return EXIT_BELOW_THRESHOLD
    return EXIT_OK


def cmd_rules(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except ConfigError as exc:
        _log.error("Invalid configuration: %s", exc)
        return EXIT_INFRA
    registry = default_registry(config)
    for rule in registry.get_all():
        state = "enabled" if registry.is_enabled(rule.identifier) else "disabled"
        sys.stdout.write(f"{rule.identifier:34s} {state:8s} {rule.description}\n")
    return EXIT_OK


def _language_arg(value: str) -> str:
    try:
        return resolve_language(value).value
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="braceqa",
        description="Code-quality analysis for brace-delimited source trees.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              braceqa analyze Sources
              braceqa analyze Sources --structure-dir build/structure --format json
              braceqa analyze . --sourcekitten --lang en --fail-under 80
              braceqa rules
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")

    p_analyze = subparsers.add_parser("analyze", help="Analyse every source file below ROOT.")
    p_analyze.add_argument("root", help="Project root directory.")
    p_analyze.add_argument("--config", help="JSON configuration file.")
    trees = p_analyze.add_mutually_exclusive_group()
    trees.add_argument(
        "--structure-dir",
        help="Directory of pre-computed syntax trees (<relative path>.json).",
    )
    trees.add_argument(
        "--sourcekitten",
        action="store_true",
        help="Obtain syntax trees by running sourcekitten.",
    )
    p_analyze.add_argument(
        "--sourcekitten-path", default="sourcekitten", help=argparse.SUPPRESS,
    )
    p_analyze.add_argument(
        "--timeout", type=float, default=30.0,
        help="Seconds allowed per sourcekitten call (default: 30).",
    )
    p_analyze.add_argument(
        "--format",
        choices=("summary", "json", "jsonl", "gcc"),
        default="summary",
        help="Output format (default: summary).",
    )
    p_analyze.add_argument("--lang", type=_language_arg, help="Output language: ko, en or both.")
    p_analyze.add_argument("-j", "--jobs", type=int, help="Worker threads (default: CPU count).")
    p_analyze.add_argument("--max-file-lines", type=int, help="Long-file threshold.")
    p_analyze.add_argument(
        "--fail-under", type=float,
        help="Exit with status 1 when the project score is lower.",
    )
    p_analyze.set_defaults(func=cmd_analyze)

    p_rules = subparsers.add_parser("rules", help="List the tree rules of the default registry.")
    p_rules.add_argument("--config", help="JSON configuration file.")
    p_rules.set_defaults(func=cmd_rules)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130


__all__ = ["main", "EXIT_OK", "EXIT_BELOW_THRESHOLD", "EXIT_INFRA"]
