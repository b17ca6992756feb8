"""
braceqa/providers.py
════════════════════

Acquisition of syntax trees from the external tree producer.

Every provider implements ``parse(path, data) -> SyntaxNode`` and raises
:class:`~braceqa.errors.TreeUnavailableError` when no tree can be
obtained.  The engine catches that error and falls back to the text
scanner.

    JsonTreeProvider      sidecar ``<relative path>.json`` files written by
                          a previous run of the producer
    SourceKittenProvider  ``sourcekitten structure --file <path>``
    StaticTreeProvider    trees held in memory (embedding, tests)
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from braceqa.errors import TreeUnavailableError
from braceqa.syntax import SyntaxNode

_log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def tree_from_json(payload: Any, data_length: int = 0) -> SyntaxNode:
    """Build the root node from decoded producer output.

    A bare list of nodes is wrapped in a root spanning the whole file.
    """
    if isinstance(payload, list):
        payload = {"kind": "root", "offset": 0, "length": data_length, "children": payload}
    if not isinstance(payload, Mapping):
        raise TreeUnavailableError(
            f"tree payload must be an object or a list, got {type(payload).__name__}"
        )
    return SyntaxNode.from_mapping(payload)


class TreeProvider(ABC):
    """Source of syntax trees for single files."""

    name = "tree-provider"

    @abstractmethod
    def parse(self, path: Path, data: bytes) -> SyntaxNode:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class JsonTreeProvider(TreeProvider):
    """
    Reads trees from a directory mirroring the source tree.

    ``<root>/Sources/App.swift`` → ``<structure_dir>/Sources/App.swift.json``
    """

    name = "json"

    def __init__(self, structure_dir: PathLike, source_root: Optional[PathLike] = None) -> None:
        self.structure_dir = Path(structure_dir)
        self.source_root = Path(source_root) if source_root is not None else None

    def sidecar_path(self, path: Path) -> Path:
        rel = Path(path)
        if self.source_root is not None:
            try:
                rel = Path(os.path.relpath(path, self.source_root))
            except ValueError:
                rel = Path(Path(path).name)
        if rel.is_absolute():
            rel = Path(rel.name)
        return self.structure_dir / f"{rel}.json"

    def parse(self, path: Path, data: bytes) -> SyntaxNode:
        sidecar = self.sidecar_path(path)
        try:
            text = sidecar.read_text(encoding="utf-8")
        except OSError as exc:
            raise TreeUnavailableError(
                f"no tree file {sidecar}", path=str(path), cause=exc
            ) from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TreeUnavailableError(
                f"invalid tree JSON in {sidecar}: {exc}", path=str(path), cause=exc
            ) from exc
        return tree_from_json(payload, len(data))

    def __repr__(self) -> str:
        return f"<JsonTreeProvider {self.structure_dir}>"


class SourceKittenProvider(TreeProvider):
    """Runs ``sourcekitten structure`` on each file."""

    name = "sourcekitten"

    def __init__(self, executable: str = "sourcekitten", timeout: float = 30.0) -> None:
        self.executable = executable
        self.timeout = timeout

    def command(self, path: Path) -> list:
        return [self.executable, "structure", "--file", str(path)]

    def parse(self, path: Path, data: bytes) -> SyntaxNode:
        cmd = self.command(path)
        _log.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise TreeUnavailableError(
                f"{self.executable} not found in PATH", path=str(path), cause=exc
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise TreeUnavailableError(
                f"{self.executable} timed out after {self.timeout:g}s",
                path=str(path), cause=exc,
            ) from exc
        if result.returncode != 0:
            detail = (result.stderr or "").strip().splitlines()
            raise TreeUnavailableError(
                f"{self.executable} exited with {result.returncode}"
                + (f": {detail[-1]}" if detail else ""),
                path=str(path),
            )
        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise TreeUnavailableError(
                f"unparseable {self.executable} output: {exc}", path=str(path), cause=exc
            ) from exc
        return tree_from_json(payload, len(data))


class StaticTreeProvider(TreeProvider):
    """Trees supplied up front, keyed by path (or by file name)."""

    name = "static"

    def __init__(self, trees: Optional[Mapping[str, Union[SyntaxNode, Mapping]]] = None) -> None:
        self._trees: Dict[str, SyntaxNode] = {}
        for key, tree in (trees or {}).items():
            self.add(key, tree)

    def add(self, key: PathLike, tree: Union[SyntaxNode, Mapping]) -> None:
        if not isinstance(tree, SyntaxNode):
            tree = SyntaxNode.from_mapping(tree)
        self._trees[str(key)] = tree

    def parse(self, path: Path, data: bytes) -> SyntaxNode:
        for key in (str(path), Path(path).as_posix(), Path(path).name):
            if key in self._trees:
                return self._trees[key]
        raise TreeUnavailableError("no tree registered", path=str(path))


__all__ = [
    "TreeProvider",
    "JsonTreeProvider",
    "SourceKittenProvider",
    "StaticTreeProvider",
    "tree_from_json",
]
