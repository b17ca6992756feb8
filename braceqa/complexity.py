"""
braceqa/complexity.py
═════════════════════

Cyclomatic complexity of a function body, computed from the syntax tree.

    complexity = 1 + number of branch nodes strictly inside the body range

Only nodes whose whole ``[offset, offset+length)`` range lies inside the
body range count.  Nodes entirely outside the range are pruned with their
subtree; partially overlapping nodes are not counted but their children
are still visited.  Nodes without a range are recursed into.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from braceqa.syntax import BRANCH_KINDS, FunctionRecord, SyntaxNode


def cyclomatic_complexity(tree: SyntaxNode, body_offset: int, body_length: int) -> int:
    body_end = body_offset + body_length
    complexity = 1
    stack: List[SyntaxNode] = [tree]
    while stack:
        node = stack.pop()
        if node.has_range:
            start, end = node.offset, node.offset + node.length
            if end <= body_offset or start >= body_end:
                continue
            if start >= body_offset and end <= body_end and node.kind in BRANCH_KINDS:
                complexity += 1
        stack.extend(node.children)
    return complexity


def function_complexities(
    tree: SyntaxNode,
    functions: Iterable[FunctionRecord],
) -> Dict[Tuple[int, int], int]:
    """Complexity per function, keyed by the function's ``byte_range``.

    Functions without a body, or with an empty one, are left out.
    """
    result: Dict[Tuple[int, int], int] = {}
    for func in functions:
        if func.body_byte_range is None:
            continue
        start, end = func.body_byte_range
        if end <= start:
            continue
        result[func.byte_range] = cyclomatic_complexity(tree, start, end - start)
    return result


__all__ = ["cyclomatic_complexity", "function_complexities"]
