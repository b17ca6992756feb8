# tests/conftest.py
"""
Shared fixtures: syntax-node builders and byte-range helpers.

Test sources are ASCII unless a test says otherwise, so character and
byte offsets coincide.
"""

import logging

import pytest

from braceqa.diagnostics import PRIMARY_LANGUAGE, set_language
from braceqa.syntax import SyntaxNode


def _node(kind, offset=None, length=None, *children, **extra):
    return SyntaxNode(
        raw_kind=kind,
        offset=offset,
        length=length,
        children=tuple(children),
        **extra,
    )


def _span(text, fragment, occurrence=1):
    """(offset, length) of the n-th occurrence of *fragment* in *text*."""
    pos = -1
    for _ in range(occurrence):
        pos = text.index(fragment, pos + 1)
    return pos, len(fragment)


def _function(text, header, name=None, kind="function", children=(), occurrence=1):
    """
    Function node for the declaration starting at *header*.

    The node spans the header up to the matching closing brace; the body
    range excludes both braces (the way SourceKitten reports it).
    """
    start, _ = _span(text, header, occurrence)
    open_brace = text.index("{", start)
    depth = 0
    for pos in range(open_brace, len(text)):
        if text[pos] == "{":
            depth += 1
        elif text[pos] == "}":
            depth -= 1
            if depth == 0:
                close_brace = pos
                break
    else:
        raise ValueError("unbalanced braces")
    return SyntaxNode(
        raw_kind=kind,
        name=name,
        offset=start,
        length=close_brace + 1 - start,
        body_offset=open_brace + 1,
        body_length=close_brace - open_brace - 1,
        children=tuple(children),
    )


@pytest.fixture
def node():
    return _node


@pytest.fixture
def span():
    return _span


@pytest.fixture
def function_node():
    return _function


@pytest.fixture(autouse=True)
def _primary_language():
    set_language(PRIMARY_LANGUAGE)
    yield
    set_language(PRIMARY_LANGUAGE)


@pytest.fixture(autouse=True)
def _propagate_braceqa_logs():
    # The CLI replaces the handlers of the "braceqa" logger; keep caplog working.
    logger = logging.getLogger("braceqa")
    handlers = list(logger.handlers)
    yield
    logger.handlers = handlers
    logger.setLevel(logging.NOTSET)
