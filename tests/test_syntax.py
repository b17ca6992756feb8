# tests/test_syntax.py
"""
Tests for the syntax-node model and function-record extraction.
"""

import pytest

from braceqa.lines import LineIndex
from braceqa.syntax import (
    NodeKind,
    SyntaxNode,
    extract_functions,
    iter_kind,
    normalize_kind,
    walk,
)


class TestNormalizeKind:

    @pytest.mark.parametrize("raw, kind", [
        ("if", NodeKind.IF),
        ("for-each", NodeKind.FOR_EACH),
        ("repeat-while", NodeKind.REPEAT_WHILE),
        ("function", NodeKind.FUNCTION),
        ("source.lang.swift.stmt.if", NodeKind.IF),
        ("source.lang.swift.stmt.foreach", NodeKind.FOR_EACH),
        ("source.lang.swift.stmt.repeatwhile", NodeKind.REPEAT_WHILE),
        ("source.lang.swift.stmt.guard", NodeKind.GUARD),
        ("source.lang.swift.stmt.case", NodeKind.CASE),
        ("source.lang.swift.decl.function.method.instance", NodeKind.FUNCTION),
        ("source.lang.swift.decl.function.free", NodeKind.FUNCTION),
        ("source.lang.swift.decl.function.constructor", NodeKind.CONSTRUCTOR),
        ("source.lang.swift.decl.function.destructor", NodeKind.DESTRUCTOR),
        ("source.lang.swift.decl.var.parameter", NodeKind.PARAMETER),
        ("source.lang.swift.syntaxtype.comment", NodeKind.COMMENT),
        ("source.lang.swift.syntaxtype.doccomment", NodeKind.COMMENT),
        ("source.lang.swift.stmt.switch", NodeKind.OTHER),
        ("source.lang.swift.decl.class", NodeKind.OTHER),
        ("", NodeKind.OTHER),
        (None, NodeKind.OTHER),
    ])
    def test_mapping(self, raw, kind):
        assert normalize_kind(raw) is kind


class TestFromMapping:

    def test_generic_keys(self):
        tree = SyntaxNode.from_mapping({
            "kind": "function",
            "name": "run",
            "offset": 0,
            "length": 20,
            "bodyOffset": 10,
            "bodyLength": 9,
            "children": [{"kind": "if", "offset": 11, "length": 5}],
        })
        assert tree.kind is NodeKind.FUNCTION
        assert (tree.offset, tree.length, tree.body_offset, tree.body_length) == (0, 20, 10, 9)
        assert len(tree.children) == 1
        assert tree.children[0].kind is NodeKind.IF
        assert tree.children[0].children == ()

    def test_sourcekitten_keys(self):
        tree = SyntaxNode.from_mapping({
            "key.offset": 0,
            "key.length": 40,
            "key.substructure": [{
                "key.kind": "source.lang.swift.decl.function.free",
                "key.name": "run(x:)",
                "key.offset": 0,
                "key.length": 40,
                "key.bodyoffset": 20,
                "key.bodylength": 18,
                "key.substructure": [{
                    "key.kind": "source.lang.swift.decl.var.parameter",
                    "key.name": "x",
                    "key.typename": "Int",
                    "key.offset": 9,
                    "key.length": 6,
                }],
            }],
        })
        assert tree.raw_kind == ""
        func = tree.children[0]
        assert func.kind is NodeKind.FUNCTION
        assert func.name == "run(x:)"
        assert func.body_offset == 20
        assert func.children[0].type_name == "Int"

    def test_missing_range_and_bad_values(self):
        tree = SyntaxNode.from_mapping({"kind": "if", "offset": "x", "children": [1, "a"]})
        assert tree.offset is None
        assert not tree.has_range
        assert tree.end is None
        assert tree.children == ()

    def test_to_mapping_round_trip(self):
        data = {
            "kind": "function",
            "name": "f",
            "offset": 1,
            "length": 9,
            "bodyOffset": 5,
            "bodyLength": 4,
            "children": [{"kind": "if", "offset": 6, "length": 2, "children": []}],
        }
        assert SyntaxNode.from_mapping(data).to_mapping() == data


class TestWalk:

    def test_preorder(self, node):
        tree = node("root", 0, 10,
                    node("a", 0, 5, node("a1", 0, 2), node("a2", 2, 2)),
                    node("b", 5, 5))
        assert [n.raw_kind for n in walk(tree)] == ["root", "a", "a1", "a2", "b"]

    def test_iter_kind(self, node):
        tree = node("root", None, None, node("if"), node("other", None, None, node("if")))
        assert len(list(iter_kind(tree, NodeKind.IF))) == 2


SOURCE = (
    "struct Greeter {\n"
    "    func greet(name: String) -> String {\n"
    "        // say hi\n"
    "        return name\n"
    "    }\n"
    "    init() {\n"
    "    }\n"
    "}\n"
)


class TestExtractFunctions:

    def test_records(self, node, function_node):
        index = LineIndex.from_text(SOURCE)
        greet = function_node(
            SOURCE, "func greet", name="greet(name:)",
            children=[SyntaxNode(raw_kind="parameter", name="name", type_name="String",
                                 offset=SOURCE.index("name:"), length=12)],
        )
        ctor = function_node(SOURCE, "init()", kind="constructor")
        tree = node("root", 0, len(SOURCE), node("struct", 0, len(SOURCE), greet, ctor))

        records = extract_functions(tree, index)
        assert [r.name for r in records] == ["greet", "init"]

        first = records[0]
        assert first.kind is NodeKind.FUNCTION
        assert first.declaration_line == 2
        assert first.parameter_types == ("String",)
        assert first.argument_labels == ("name",)
        assert first.signature == "greet(name: String)"
        assert first.body_line_count == 4
        assert first.body_code_line_count == 1
        assert first.size == 1
        assert first.byte_range == (greet.offset, greet.offset + greet.length)

        second = records[1]
        assert second.kind is NodeKind.CONSTRUCTOR
        assert second.declaration_line == 6
        assert second.parameter_types == ()

    def test_parameter_types_from_header_text(self, function_node):
        greet = function_node(SOURCE, "func greet")
        records = extract_functions(greet, LineIndex.from_text(SOURCE))
        assert records[0].name == "unknown"
        assert records[0].parameter_types == ("String",)
        assert records[0].argument_labels == ("name",)

    def test_parameter_fallbacks(self, node):
        func = node(
            "function", 0, 10,
            node("parameter", 1, 1, name="flag"),
            node("parameter", 2, 1),
            name="f",
        )
        records = extract_functions(func, LineIndex.from_text("x" * 10))
        assert records[0].parameter_types == ("flag", "Any")

    def test_unnamed_destructor(self, node):
        func = node("source.lang.swift.decl.function.destructor", 0, 8)
        records = extract_functions(func, LineIndex.from_text("deinit{}"))
        assert records[0].name == "deinit"
        assert records[0].body_byte_range is None
        assert records[0].size == 0

    def test_nodes_without_range_are_skipped(self, node):
        tree = node("root", None, None, node("function", None, None, name="ghost"))
        assert extract_functions(tree, LineIndex.from_text("")) == []
