"""
braceqa/signature.py
════════════════════

PEG grammar (parsimonious) for function declaration headers.

The grammar starts at the function *name* and stops at the closing
parenthesis of the parameter list; whatever follows (return type,
``throws``, the opening brace) is ignored because only a prefix match is
requested.

    name<Generic: Constraint>(label name: Type = default, _ other: [Int])
    ──── ──────────────────── ─────────────────────────────────────────
    name generics             params → parameter types ("Type", "[Int]")

Used by the tree path to recover a parameter-type list when the tree
producer reports a function without parameter children.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import zip_longest
from typing import Iterator, List, Optional, Sequence, Tuple

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node

from braceqa.errors import SignatureParseError

_log = logging.getLogger(__name__)


SIGNATURE_GRAMMAR = Grammar(r'''
    signature     = ws name ws generics? ws "(" ws params? ws ")"

    name          = ~r"[A-Za-z_][A-Za-z0-9_]*" / ~r"`[^`]+`" / ~r"[-+*/%=<>!&|^~?.]+"
    generics      = "<" generic_part* ">"
    generic_part  = generics / ~r"[^<>]+"

    params        = param (ws "," ws param)* (ws ",")?
    param         = labels ws ":" ws type default?
    labels        = label (ws1 label)?
    label         = ~r"[A-Za-z_][A-Za-z0-9_]*" / ~r"`[^`]+`"

    type          = type_part+
    type_part     = arrow / group / ~r"(?:[^,()\[\]<>=\-]|-(?!>))+"
    default       = ws "=" ws default_part+
    default_part  = group / ~r"[^,()\[\]<>]+"

    group         = paren_group / bracket_group / angle_group
    paren_group   = "(" inner* ")"
    bracket_group = "[" inner* "]"
    angle_group   = "<" inner* ">"
    inner         = arrow / group / ~r"(?:[^()\[\]<>\-]|-(?!>))+"
    arrow         = "->"

    ws            = ~r"\s*"
    ws1           = ~r"\s+"
''')


@dataclass(frozen=True)
class Signature:
    """
    A parsed header.  ``argument_labels`` are the labels callers write
    (``"_"`` when suppressed); ``parameter_names`` are the names used
    inside the body.
    """
    name: str
    parameter_types: Tuple[str, ...] = ()
    argument_labels: Tuple[str, ...] = ()
    parameter_names: Tuple[str, ...] = ()

    @property
    def selector(self) -> str:
        """``add(_:to:)``, the name a call site resolves against."""
        return selector_of(self.name, self.argument_labels)

    @property
    def key(self) -> str:
        return format_signature(self.name, self.argument_labels, self.parameter_types)


def selector_of(name: str, labels: Sequence[str]) -> str:
    return f"{name}({''.join(label + ':' for label in labels)})"


def selector_labels(selector: str) -> Optional[Tuple[str, ...]]:
    """``"move(to:by:)"`` → ``("to", "by")``; ``None`` without parentheses."""
    paren = selector.find("(")
    if paren <= 0 or not selector.endswith(")"):
        return None
    inner = selector[paren + 1:-1]
    return tuple(inner.split(":")[:-1]) if inner else ()


def format_signature(
    name: str,
    labels: Sequence[str],
    types: Sequence[str],
) -> str:
    """Overload identity: name, argument labels and parameter types.

    ``move(to: Int)`` and ``move(by: Int)`` are distinct.  Without labels
    the types alone are listed, as in ``greet(String)``.
    """
    if not labels:
        return f"{name}({','.join(types)})"
    pairs = zip_longest(labels, types, fillvalue=None)
    return "{}({})".format(name, ", ".join(
        f"{label or '_'}: {type_ or 'Any'}" for label, type_ in pairs
    ))


def _descendants(node: Node, expr_name: str) -> Iterator[Node]:
    """Yield nodes named *expr_name* below *node*, not descending into hits."""
    for child in node.children:
        if child.expr_name == expr_name:
            yield child
        else:
            yield from _descendants(child, expr_name)


def _first(node: Node, expr_name: str) -> Optional[Node]:
    return next(_descendants(node, expr_name), None)


def parse_signature(text: str) -> Signature:
    """Parse a declaration header beginning at the function name.

    Raises
    ------
    SignatureParseError
        If *text* does not start with a well-formed header.
    """
    try:
        tree = SIGNATURE_GRAMMAR.match(text)
    except ParseError as exc:
        raise SignatureParseError(
            f"not a function header: {text[:60]!r}", cause=exc
        ) from exc

    name_node = _first(tree, "name")
    if name_node is None:
        raise SignatureParseError(f"missing function name: {text[:60]!r}")

    types: List[str] = []
    labels: List[str] = []
    names: List[str] = []
    for param in _descendants(tree, "param"):
        type_node = _first(param, "type")
        label_nodes = list(_descendants(param, "label"))
        types.append(" ".join(type_node.text.split()) if type_node else "Any")
        labels.append(label_nodes[0].text if label_nodes else "_")
        names.append(label_nodes[-1].text if label_nodes else "_")
    return Signature(
        name=name_node.text,
        parameter_types=tuple(types),
        argument_labels=tuple(labels),
        parameter_names=tuple(names),
    )


def header_after_keyword(header: str, keyword: str) -> Optional[str]:
    """Return the part of *header* that follows the declaration keyword."""
    idx = header.find(keyword)
    while idx != -1:
        before_ok = idx == 0 or not (header[idx - 1].isalnum() or header[idx - 1] == "_")
        end = idx + len(keyword)
        after_ok = end < len(header) and header[end].isspace()
        if before_ok and after_ok:
            return header[end:].lstrip()
        idx = header.find(keyword, end)
    return None


def try_parse_header(header: str, keyword: str = "func") -> Optional[Signature]:
    """Best-effort signature of a full declaration header.

    Constructor-style headers (``init(...)``) are parsed from the start.
    Returns ``None`` when nothing usable is found.
    """
    rest = header_after_keyword(header, keyword)
    candidate = rest if rest is not None else header.lstrip()
    try:
        return parse_signature(candidate)
    except SignatureParseError as exc:
        _log.debug("Signature grammar rejected header: %s", exc)
        return None


__all__ = [
    "SIGNATURE_GRAMMAR",
    "Signature",
    "format_signature",
    "selector_labels",
    "selector_of",
    "parse_signature",
    "header_after_keyword",
    "try_parse_header",
]
