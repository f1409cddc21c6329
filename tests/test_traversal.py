"""Tests for the traversal engine (IterationScan)."""

from pathlib import Path

import pytest

from iterlint.context import context_from_source
from iterlint.errors import CancelledError, MalformedTreeError
from iterlint.findings.models import ConstructKind
from iterlint.syntax import SyntaxNode, node
from iterlint.traversal import CancelToken, IterationScan


def _scan(source: str, cancel: CancelToken | None = None) -> IterationScan:
    ctx = context_from_source(source.encode(), path=Path("test.js"))
    return IterationScan(ctx.root, ctx.path, cancel=cancel)


def _call_without_callback() -> SyntaxNode:
    callee = node(
        "member_expression",
        "items.map",
        field="function",
        children=[
            node("identifier", "items", field="object"),
            node("property_identifier", "map", field="property"),
        ],
    )
    call = node(
        "call_expression",
        "items.map()",
        line=3,
        column=5,
        children=[callee, node("arguments", "()", field="arguments")],
    )
    return node("program", children=[node("expression_statement", children=[call])])


class TestDiscovery:
    def test_finds_every_construct_kind(self):
        source = """
for (let i = 0; i < xs.length; i++) { xs[i].save(); }
xs.forEach(x => x.save());
const a = xs.map(x => x.id);
const b = xs.filter(x => x.ok);
const c = xs.reduce((acc, x) => acc + x, 0);
"""
        kinds = [n.kind for n in _scan(source)]
        assert kinds == [
            ConstructKind.INDEXED_LOOP,
            ConstructKind.FOR_EACH,
            ConstructKind.MAP,
            ConstructKind.FILTER,
            ConstructKind.REDUCE,
        ]

    def test_ignores_other_calls_and_loops(self):
        source = """
for (;;) { break; }
for (const x of xs) { x.save(); }
xs.some(x => x.ok);
map(xs, f);
"""
        assert list(_scan(source)) == []

    def test_tagged_template_is_not_an_iteration_call(self):
        assert list(_scan("const html = xs.map`<li>${item}</li>`;")) == []

    def test_pre_order_outer_before_nested(self):
        source = """xs.forEach(x => {
  x.items.map(i => i.save());
});

const total = ys.filter(f).map(g).reduce(h, 0);
"""
        nodes = list(_scan(source))
        assert [n.kind.value for n in nodes] == ["forEach", "map", "reduce", "map", "filter"]
        assert [n.depth for n in nodes] == [0, 1, 0, 1, 2]
        assert [n.location.line for n in nodes] == [1, 2, 5, 5, 5]

    def test_scan_is_restartable_and_deterministic(self):
        scan = _scan("xs.map(f);\nys.forEach(g);\n")
        first = [(n.kind, n.location.line, n.location.column) for n in scan]
        second = [(n.kind, n.location.line, n.location.column) for n in scan]
        assert first == second
        assert len(first) == 2

    def test_scan_is_lazy(self):
        scan = _scan("xs.forEach(f);\nys.map();\n")
        it = iter(scan)
        assert next(it).kind is ConstructKind.FOR_EACH
        with pytest.raises(MalformedTreeError):
            next(it)


class TestAttributes:
    def test_callback_body_and_params(self):
        [it] = _scan("xs.forEach(function (x, i) { log(x); save(x); });")
        assert it.callback is not None
        assert it.params == ("x", "i")
        assert [s.kind for s in it.body] == ["expression_statement", "expression_statement"]

    def test_expression_bodied_arrow(self):
        [it] = _scan("xs.forEach(x => out.push(x.name));")
        assert it.params == ("x",)
        assert len(it.body) == 1
        assert it.body[0].kind == "call_expression"

    def test_reference_callback_has_no_body(self):
        [it] = _scan("xs.forEach(save);")
        assert it.callback.text == "save"
        assert it.body == ()

    @pytest.mark.parametrize(
        "source, used",
        [
            ("xs.map(f);", False),
            ("(xs.map(f));", False),
            ("void xs.map(f);", False),
            ("const ys = xs.map(f);", True),
            ("send(xs.map(f));", True),
            ("function g() { return xs.map(f); }", True),
        ],
    )
    def test_result_used(self, source, used):
        [it] = [n for n in _scan(source) if n.kind is ConstructKind.MAP]
        assert it.result_used is used

    def test_chained_on_filter(self):
        nodes = list(_scan("xs.filter(ok).forEach(save);"))
        assert nodes[0].kind is ConstructKind.FOR_EACH
        assert nodes[0].chained_on is ConstructKind.FILTER
        assert nodes[1].chained_on is None

    def test_callback_index_parameter(self):
        [used] = _scan("xs.forEach((x, i) => log(i, x));")
        [unused] = _scan("xs.forEach((x, i) => log(x));")
        assert used.index_referenced is True
        assert unused.index_referenced is False

    def test_guarded_side_effect(self):
        [guarded] = _scan("xs.forEach(x => { if (x.ok) { save(x); } });")
        [with_else] = _scan("xs.forEach(x => { if (x.ok) { save(x); } else { drop(x); } });")
        assert guarded.guarded_side_effect is True
        assert with_else.guarded_side_effect is False

    def test_preceding_statement(self):
        nodes = list(_scan("let sum = 0;\nxs.forEach(x => { sum += x; });\n"))
        assert nodes[0].statement.kind == "expression_statement"
        assert nodes[0].preceding.kind == "lexical_declaration"

    def test_nested_call_in_expression_arrow_has_no_statement(self):
        nodes = list(_scan("let n = 0;\nxs.forEach(x => x.ys.forEach(y => n += y));\n"))
        inner = nodes[1]
        assert inner.depth == 1
        assert inner.statement is None
        assert inner.preceding is None


class TestIndexedLoop:
    def test_index_only_subscripts_iterated_collection(self):
        [loop] = _scan("for (let i = 0; i < employees.length; i++) { employees[i].save(); }")
        assert loop.index_name == "i"
        assert loop.iterated_name == "employees"
        assert loop.element_reads == 1
        assert loop.index_referenced is False

    def test_index_used_for_other_purposes(self):
        [loop] = _scan("for (let i = 0; i < xs.length; i++) { log(i, xs[i]); }")
        assert loop.element_reads == 1
        assert loop.index_referenced is True

    def test_element_write_counts_as_index_use(self):
        [loop] = _scan("for (let i = 0; i < xs.length; i++) { xs[i] = xs[i] * 2; }")
        assert loop.index_referenced is True

    def test_other_collection_subscript_counts_as_index_use(self):
        [loop] = _scan("for (let i = 0; i < xs.length; i++) { log(xs[i], ys[i]); }")
        assert loop.index_referenced is True

    def test_iterated_collection_inferred_without_length(self):
        [loop] = _scan("for (var i = 0; i < n; i++) { xs[i].save(); }")
        assert loop.iterated_name == "xs"
        assert loop.index_referenced is False

    @pytest.mark.parametrize(
        "header",
        [
            "let i = 0; i < xs.length; i++",
            "let i = 0; i < xs.length; ++i",
            "let i = 0; i < xs.length; i += 1",
            "i = 0; i < xs.length; i++",
        ],
    )
    def test_forward_unit_step(self, header):
        [loop] = _scan(f"for ({header}) {{ xs[i].save(); }}")
        assert loop.forward_unit_step is True

    @pytest.mark.parametrize(
        "header",
        [
            "let i = 0; i < xs.length; i += 2",
            "let i = xs.length - 1; i >= 0; i--",
            "let i = 1; i < xs.length; i++",
            "let i = 0; i <= xs.length; i++",
            "let i = 0; i < n; i++",
            "let i = 0; i < xs.length; j++",
        ],
    )
    def test_not_forward_unit_step(self, header):
        [loop] = _scan(f"for ({header}) {{ xs[i].save(); }}")
        assert loop.forward_unit_step is False


class TestErrors:
    def test_call_without_callback_is_malformed(self):
        with pytest.raises(MalformedTreeError) as excinfo:
            list(IterationScan(_call_without_callback(), Path("app.js")))
        assert excinfo.value.line == 3
        assert excinfo.value.column == 5
        assert excinfo.value.path == Path("app.js")
        assert "no callback" in str(excinfo.value)

    def test_parsed_call_without_callback_is_malformed(self):
        with pytest.raises(MalformedTreeError):
            list(_scan("items.map();"))

    def test_loop_without_body_is_malformed(self):
        loop = node(
            "for_statement",
            "for (let i = 0; i < n; i++)",
            children=[
                node(
                    "lexical_declaration",
                    "let i = 0",
                    field="initializer",
                    children=[
                        node(
                            "variable_declarator",
                            "i = 0",
                            children=[
                                node("identifier", "i", field="name"),
                                node("number", "0", field="value"),
                            ],
                        )
                    ],
                )
            ],
        )
        with pytest.raises(MalformedTreeError, match="no body"):
            list(IterationScan(node("program", children=[loop])))


class TestCancellation:
    def test_cancelled_before_first_top_level_node(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(CancelledError):
            list(_scan("xs.map(f);", cancel=token))

    def test_cancellation_checked_between_top_level_nodes(self):
        token = CancelToken()
        it = iter(_scan("xs.forEach(x => x.ys.map(g));\nzs.map(h);\n", cancel=token))
        assert next(it).kind is ConstructKind.FOR_EACH
        token.cancel()
        # nested construct of the current top-level node is still produced
        assert next(it).kind is ConstructKind.MAP
        with pytest.raises(CancelledError):
            next(it)
