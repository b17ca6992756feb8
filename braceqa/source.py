"""
braceqa/source.py
═════════════════

One source file as handed to the analysis passes: the raw bytes (tree
ranges index into these), the decoded text and the line index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Dict, List, Optional, Union

from braceqa.errors import SourceReadError
from braceqa.lines import LineIndex, split_lines
from braceqa.syntax import FunctionRecord, SyntaxNode, extract_functions

_log = logging.getLogger(__name__)


@dataclass
class SourceFile:
    """
    Attributes
    ----------
    path     : display path used in diagnostics
    data     : raw bytes
    text     : decoded text (invalid UTF-8 replaced)
    index    : byte offset ↔ line translation over ``data``
    keyword  : function declaration keyword
    """
    path: str
    data: bytes
    text: str
    index: LineIndex
    keyword: str = "func"
    _functions: Dict[int, List[FunctionRecord]] = field(
        default_factory=dict, repr=False, compare=False
    )

    @classmethod
    def from_bytes(cls, path: str, data: bytes, keyword: str = "func") -> "SourceFile":
        return cls(
            path=path,
            data=data,
            text=data.decode("utf-8", errors="replace"),
            index=LineIndex(data),
            keyword=keyword,
        )

    @classmethod
    def from_text(cls, path: str, text: str, keyword: str = "func") -> "SourceFile":
        return cls.from_bytes(path, text.encode("utf-8"), keyword)

    @cached_property
    def lines(self) -> List[str]:
        return split_lines(self.text)

    def functions(self, tree: SyntaxNode) -> List[FunctionRecord]:
        """Function records of *tree*, extracted once per tree."""
        key = id(tree)
        if key not in self._functions:
            self._functions[key] = extract_functions(tree, self.index, self.keyword)
        return self._functions[key]


def read_source(
    path: Union[str, Path],
    display_path: Optional[str] = None,
    keyword: str = "func",
) -> SourceFile:
    """Read *path* from disk.

    Raises
    ------
    SourceReadError
        If the file cannot be opened or read.
    """
    path = Path(path)
    shown = display_path or str(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise SourceReadError(exc.strerror or str(exc), path=shown, cause=exc) from exc
    _log.debug("Read %d bytes from %s", len(data), path)
    return SourceFile.from_bytes(shown, data, keyword)


__all__ = ["SourceFile", "read_source"]
