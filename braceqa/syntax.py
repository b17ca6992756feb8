"""
braceqa/syntax.py
═════════════════

Read-only model of the syntax tree supplied by the external tree producer,
plus the extraction of :class:`FunctionRecord` values from it.

Node mapping keys
─────────────────
Trees arrive as nested mappings.  Two key spellings are understood:

    generic           SourceKitten-style
    ───────────────   ──────────────────
    kind              key.kind
    name              key.name
    offset            key.offset
    length            key.length
    bodyOffset        key.bodyoffset
    bodyLength        key.bodylength
    typeName          key.typename
    children          key.substructure

Kind vocabulary
───────────────
Raw kind tags are kept on the node (``raw_kind``) and normalized into
:class:`NodeKind`, which is what the rules and the complexity calculator
consult.  Both the plain tags (``"if"``, ``"for-each"``, ``"function"``…)
and the SourceKit tags (``source.lang.swift.stmt.if``…) map onto it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from braceqa.lines import LineIndex, body_line_counts
from braceqa.signature import format_signature, selector_labels, try_parse_header


# ═════════════════════════════════════════════════════════════════════════
#  PART 1: KINDS
# ═════════════════════════════════════════════════════════════════════════

class NodeKind(enum.Enum):
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    DESTRUCTOR = "destructor"
    PARAMETER = "parameter"
    COMMENT = "comment"
    IF = "if"
    FOR_EACH = "for-each"
    WHILE = "while"
    REPEAT_WHILE = "repeat-while"
    CATCH = "catch"
    GUARD = "guard"
    CASE = "case"
    OTHER = "other"


FUNCTION_KINDS = frozenset({NodeKind.FUNCTION, NodeKind.CONSTRUCTOR, NodeKind.DESTRUCTOR})

BRANCH_KINDS = frozenset({
    NodeKind.IF,
    NodeKind.FOR_EACH,
    NodeKind.WHILE,
    NodeKind.REPEAT_WHILE,
    NodeKind.CATCH,
    NodeKind.GUARD,
    NodeKind.CASE,
})

_SOURCEKIT_PREFIX = "source.lang.swift."
_FUNCTION_PREFIX = "decl.function."

_PLAIN_KINDS: Dict[str, NodeKind] = {k.value: k for k in NodeKind}
_PLAIN_KINDS.update({
    "forEach": NodeKind.FOR_EACH,
    "foreach": NodeKind.FOR_EACH,
    "repeatWhile": NodeKind.REPEAT_WHILE,
    "init": NodeKind.CONSTRUCTOR,
    "deinit": NodeKind.DESTRUCTOR,
})

_SOURCEKIT_KINDS: Dict[str, NodeKind] = {
    "stmt.if": NodeKind.IF,
    "stmt.foreach": NodeKind.FOR_EACH,
    "stmt.while": NodeKind.WHILE,
    "stmt.repeatwhile": NodeKind.REPEAT_WHILE,
    "stmt.catch": NodeKind.CATCH,
    "stmt.guard": NodeKind.GUARD,
    "stmt.case": NodeKind.CASE,
    "decl.function.constructor": NodeKind.CONSTRUCTOR,
    "decl.function.destructor": NodeKind.DESTRUCTOR,
    "decl.var.parameter": NodeKind.PARAMETER,
}


def normalize_kind(raw: Optional[str]) -> NodeKind:
    """Map a raw kind tag onto the :class:`NodeKind` vocabulary."""
    if not raw:
        return NodeKind.OTHER
    if raw in _PLAIN_KINDS:
        return _PLAIN_KINDS[raw]
    if raw.startswith(_SOURCEKIT_PREFIX):
        tail = raw[len(_SOURCEKIT_PREFIX):]
        mapped = _SOURCEKIT_KINDS.get(tail.lower())
        if mapped is not None:
            return mapped
        if tail.startswith(_FUNCTION_PREFIX):
            return NodeKind.FUNCTION
    if ".comment" in raw or ".doccomment" in raw:
        return NodeKind.COMMENT
    return NodeKind.OTHER


# ═════════════════════════════════════════════════════════════════════════
#  PART 2: NODES
# ═════════════════════════════════════════════════════════════════════════

_KEYS = {
    "kind": ("kind", "key.kind"),
    "name": ("name", "key.name"),
    "offset": ("offset", "key.offset"),
    "length": ("length", "key.length"),
    "body_offset": ("bodyOffset", "body_offset", "key.bodyoffset"),
    "body_length": ("bodyLength", "body_length", "key.bodylength"),
    "type_name": ("typeName", "type_name", "key.typename"),
    "children": ("children", "key.substructure"),
}


def _lookup(data: Mapping[str, Any], field_name: str) -> Any:
    for key in _KEYS[field_name]:
        if key in data:
            return data[key]
    return None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class SyntaxNode:
    """One node of an externally produced syntax tree (byte ranges)."""
    raw_kind: str = ""
    name: Optional[str] = None
    offset: Optional[int] = None
    length: Optional[int] = None
    body_offset: Optional[int] = None
    body_length: Optional[int] = None
    type_name: Optional[str] = None
    children: Tuple["SyntaxNode", ...] = ()

    @property
    def kind(self) -> NodeKind:
        return normalize_kind(self.raw_kind)

    @property
    def has_range(self) -> bool:
        return self.offset is not None and self.length is not None

    @property
    def end(self) -> Optional[int]:
        if not self.has_range:
            return None
        return self.offset + self.length

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SyntaxNode":
        """Build a node (recursively) from a generic or SourceKitten mapping."""
        raw_children = _lookup(data, "children") or []
        children = tuple(
            cls.from_mapping(child)
            for child in raw_children
            if isinstance(child, Mapping)
        )
        name = _lookup(data, "name")
        type_name = _lookup(data, "type_name")
        return cls(
            raw_kind=str(_lookup(data, "kind") or ""),
            name=str(name) if name is not None else None,
            offset=_as_int(_lookup(data, "offset")),
            length=_as_int(_lookup(data, "length")),
            body_offset=_as_int(_lookup(data, "body_offset")),
            body_length=_as_int(_lookup(data, "body_length")),
            type_name=str(type_name) if type_name is not None else None,
            children=children,
        )

    def to_mapping(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.raw_kind}
        for attr, key in (
            ("name", "name"),
            ("offset", "offset"),
            ("length", "length"),
            ("body_offset", "bodyOffset"),
            ("body_length", "bodyLength"),
            ("type_name", "typeName"),
        ):
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        result["children"] = [c.to_mapping() for c in self.children]
        return result


def walk(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Depth-first pre-order traversal over ``children``."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_kind(node: SyntaxNode, kind: NodeKind) -> Iterator[SyntaxNode]:
    return (n for n in walk(node) if n.kind is kind)


# ═════════════════════════════════════════════════════════════════════════
#  PART 3: FUNCTION RECORDS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FunctionRecord:
    """
    A function, constructor or destructor detected in one file.

    ``byte_range`` and ``body_byte_range`` are half-open ``(start, end)``
    pairs.  Text-scanned records have no body range and no parameter
    types.
    """
    name: str
    kind: NodeKind
    declaration_line: int
    byte_range: Tuple[int, int]
    body_byte_range: Optional[Tuple[int, int]] = None
    body_line_count: Optional[int] = None
    body_code_line_count: Optional[int] = None
    parameter_types: Tuple[str, ...] = ()
    argument_labels: Tuple[str, ...] = ()

    @property
    def offset(self) -> int:
        return self.byte_range[0]

    @property
    def length(self) -> int:
        return self.byte_range[1] - self.byte_range[0]

    @property
    def signature(self) -> str:
        return format_signature(self.name, self.argument_labels, self.parameter_types)

    @property
    def size(self) -> int:
        """Body size used for length metrics: code lines, else all lines."""
        if self.body_code_line_count is not None:
            return self.body_code_line_count
        return self.body_line_count or 0


def _default_name(kind: NodeKind) -> str:
    if kind is NodeKind.CONSTRUCTOR:
        return "init"
    if kind is NodeKind.DESTRUCTOR:
        return "deinit"
    return "unknown"


def _short_name(name: str) -> str:
    """``"foo(a:b:)"`` → ``"foo"``; plain names pass through."""
    paren = name.find("(")
    return name[:paren] if paren > 0 else name


def _parameters(
    node: SyntaxNode,
    index: LineIndex,
    keyword: str,
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Parameter types and argument labels of a function node.

    Labels come from a selector-style name (``move(to:)``) when the tree
    reports one, else from the header text.  Parameter children give the
    types; without them the header text does.
    """
    labels = selector_labels(node.name) if node.name else None
    params = [c for c in node.children if c.kind is NodeKind.PARAMETER]
    if params and labels is not None:
        return tuple(p.type_name or p.name or "Any" for p in params), labels

    end = node.body_offset if node.body_offset is not None else node.end
    header = index.slice_text(node.offset, (end or node.offset) - node.offset)
    signature = try_parse_header(header, keyword)
    if params:
        types = tuple(p.type_name or p.name or "Any" for p in params)
    else:
        types = signature.parameter_types if signature else ()
    if labels is None:
        labels = signature.argument_labels if signature else ()
    return types, labels

def extract_functions(
    tree: SyntaxNode,
    index: LineIndex,
    keyword: str = "func",
) -> List[FunctionRecord]:
    """Collect a :class:`FunctionRecord` for every ranged function node."""
    records: List[FunctionRecord] = []
    for node in walk(tree):
        kind = node.kind
        if kind not in FUNCTION_KINDS or not node.has_range:
            continue
        body_range = None
        body_lines = code_lines = None
        if node.body_offset is not None and node.body_length is not None:
            body_range = (node.body_offset, node.body_offset + node.body_length)
            if node.body_length > 0:
                counts = body_line_counts(index, node.body_offset, node.body_length)
                if counts != (0, 0):
                    body_lines, code_lines = counts
        types, labels = _parameters(node, index, keyword)
        records.append(FunctionRecord(
            name=_short_name(node.name) if node.name else _default_name(kind),
            kind=kind,
            declaration_line=index.line_of(node.offset),
            byte_range=(node.offset, node.offset + node.length),
            body_byte_range=body_range,
            body_line_count=body_lines,
            body_code_line_count=code_lines,
            parameter_types=types,
            argument_labels=labels,
        ))
    return records


__all__ = [
    "NodeKind",
    "FUNCTION_KINDS",
    "BRANCH_KINDS",
    "normalize_kind",
    "SyntaxNode",
    "walk",
    "iter_kind",
    "FunctionRecord",
    "extract_functions",
]
