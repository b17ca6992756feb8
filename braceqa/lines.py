"""
braceqa/lines.py
════════════════

Line classification and byte-offset ↔ line translation.

The external tree producer reports byte ranges into the raw UTF-8 file
contents, so every offset → line conversion in the package goes through
:class:`LineIndex`, which works on the byte sequence and never on
decoded character indices.

Line classification is deliberately shallow: a line is blank, a ``//``
comment, or code.  Block comments are counted as code.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import List, Sequence, Tuple

LINE_COMMENT = "//"

# Prefixes that mark a body line as non-code when counting function size.
_NON_CODE_PREFIXES = ("//", "#", "/*", "*", "*/")


def split_lines(text: str) -> List[str]:
    """Split *text* on newlines.

    A single trailing newline does not produce an extra empty line and
    carriage returns are dropped, so ``"a\\nb\\n"`` has two lines.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]


@dataclass(frozen=True)
class LineCounts:
    code: int = 0
    comment: int = 0
    blank: int = 0

    @property
    def total(self) -> int:
        return self.code + self.comment + self.blank


def is_comment_line(line: str, marker: str = LINE_COMMENT) -> bool:
    return line.strip().startswith(marker)


def classify(text: str, marker: str = LINE_COMMENT) -> LineCounts:
    """Count code, comment and blank lines in *text*."""
    code = comment = blank = 0
    for line in split_lines(text):
        trimmed = line.strip()
        if not trimmed:
            blank += 1
        elif trimmed.startswith(marker):
            comment += 1
        else:
            code += 1
    return LineCounts(code=code, comment=comment, blank=blank)


def strip_line_comment(line: str, marker: str = LINE_COMMENT) -> str:
    """Drop a trailing line comment that is not inside a string literal."""
    in_string = False
    escaped = False
    i = 0
    while i < len(line):
        ch = line[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif line.startswith(marker, i):
            return line[:i]
        i += 1
    return line


def count_code_lines(lines: Sequence[str]) -> int:
    """Count lines that are neither blank nor comment-like."""
    count = 0
    for line in lines:
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(_NON_CODE_PREFIXES):
            continue
        count += 1
    return count


class LineIndex:
    """
    Canonical byte offset → (line, column) translation for one file.

    Lines and columns are 1-based; the column is a byte column.  Line
    numbering agrees with :func:`split_lines`: a trailing newline does not
    open another line, and offsets at or past the end of the data map onto
    the last line.
    """

    def __init__(self, data: bytes) -> None:
        self.data = data
        self._starts: List[int] = [0]
        pos = data.find(b"\n")
        while pos != -1:
            self._starts.append(pos + 1)
            pos = data.find(b"\n", pos + 1)
        if len(self._starts) > 1 and self._starts[-1] == len(data):
            self._starts.pop()

    @classmethod
    def from_text(cls, text: str) -> "LineIndex":
        return cls(text.encode("utf-8"))

    @property
    def line_count(self) -> int:
        return len(self._starts) if self.data else 0

    def line_of(self, offset: int) -> int:
        return self.position(offset)[0]

    def position(self, offset: int) -> Tuple[int, int]:
        offset = max(0, min(offset, len(self.data)))
        idx = bisect.bisect_right(self._starts, offset) - 1
        return idx + 1, offset - self._starts[idx] + 1

    def line_start(self, line: int) -> int:
        """Byte offset of the first byte of 1-based *line*."""
        line = max(1, min(line, len(self._starts)))
        return self._starts[line - 1]

    def line_range(self, line: int) -> Tuple[int, int]:
        """Half-open byte range ``[start, end)`` of *line*, newline excluded."""
        start = self.line_start(line)
        if line < len(self._starts):
            end = self._starts[line] - 1
        else:
            end = len(self.data)
            if self.data.endswith(b"\n") and end > start:
                end -= 1
        return start, end

    def slice_text(self, offset: int, length: int) -> str:
        """Decode ``data[offset:offset+length]``; invalid UTF-8 is replaced."""
        if offset < 0 or length <= 0 or offset >= len(self.data):
            return ""
        return self.data[offset:offset + length].decode("utf-8", errors="replace")


def body_line_counts(index: LineIndex, offset: int, length: int) -> Tuple[int, int]:
    """Return ``(all_lines, code_lines)`` for the byte range of a body.

    Returns ``(0, 0)`` for empty ranges or ranges that do not fit in the
    file.
    """
    if length <= 0 or offset < 0 or offset + length > len(index.data):
        return 0, 0
    text = index.slice_text(offset, length)
    lines = text.replace("\r", "").split("\n")
    return len(lines), count_code_lines(lines)


__all__ = [
    "LINE_COMMENT",
    "LineCounts",
    "LineIndex",
    "split_lines",
    "classify",
    "is_comment_line",
    "strip_line_comment",
    "count_code_lines",
    "body_line_counts",
]
