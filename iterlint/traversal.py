"""
Traversal engine: walk a syntax tree and produce IterationNode records.

An IterationScan is a lazy, finite and restartable sequence: every call to
iter() starts a fresh pre-order walk, so outer constructs are produced
before the constructs nested inside them (including the receivers of a
method chain: in `xs.filter(f).map(g)` the map call comes first).

Recognised constructs:
    - call_expression whose callee is `<expr>.forEach|map|filter|reduce`
      (tagged templates such as xs.map`...` are not calls to the method)
    - for_statement whose initializer introduces a loop index

Typical usage:
    scan = IterationScan(ctx.root, ctx.path, cancel=token)
    for it in scan:
        ...
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterator, Optional

from iterlint.context import FUNCTION_KINDS
from iterlint.errors import CancelledError, MalformedTreeError
from iterlint.findings.models import ConstructKind, IterationNode, Location
from iterlint.syntax import SyntaxNode

logger = logging.getLogger(__name__)

ITERATION_METHODS: dict[str, ConstructKind] = {
    "forEach": ConstructKind.FOR_EACH,
    "map": ConstructKind.MAP,
    "filter": ConstructKind.FILTER,
    "reduce": ConstructKind.REDUCE,
}

# Containers whose named children are statements.
STATEMENT_CONTAINERS = frozenset(
    {"program", "statement_block", "switch_case", "switch_default", "class_static_block"}
)

# Parents that make a call's value observable only for its side effects.
_DISCARDING_PARENTS = frozenset({"expression_statement"})

_WRITE_PARENTS = frozenset({"assignment_expression", "augmented_assignment_expression"})

UNKNOWN_PATH = Path("<tree>")


class CancelToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def strip_parens(n: Optional[SyntaxNode]) -> Optional[SyntaxNode]:
    """Return the expression inside any number of parenthesized_expression wrappers."""
    while n is not None and n.kind == "parenthesized_expression":
        inner = n.named_children()
        n = inner[0] if inner else None
    return n


def method_kind(n: Optional[SyntaxNode]) -> Optional[ConstructKind]:
    """ConstructKind for `<expr>.forEach(...)`-style calls, else None."""
    if n is None or n.kind != "call_expression":
        return None
    callee = n.child_by_field("function")
    if callee is None or callee.kind != "member_expression":
        return None
    prop = callee.child_by_field("property")
    if prop is None:
        return None
    args = n.child_by_field("arguments")
    if args is not None and args.kind != "arguments":
        # Tagged template (xs.map`...`): the template is not a callback.
        return None
    return ITERATION_METHODS.get(prop.text)


def loop_index(n: SyntaxNode) -> Optional[tuple[str, Optional[SyntaxNode]]]:
    """
    (name, initial value) of the index introduced by a for_statement initializer.

    Handles `let i = 0` / `var i = 0` (first declarator wins) and `i = 0`.
    Returns None for loops without an initializer, e.g. `for (;;)`.
    """
    init = n.child_by_field("initializer")
    if init is None:
        return None
    for sub in init.walk():
        if sub.kind == "variable_declarator":
            name = sub.child_by_field("name")
            if name is not None and name.kind == "identifier":
                return name.text, strip_parens(sub.child_by_field("value"))
            return None
        if sub.kind == "assignment_expression":
            left = sub.child_by_field("left")
            if left is not None and left.kind == "identifier":
                return left.text, strip_parens(sub.child_by_field("right"))
            return None
    return None


def _loop_clause(loop: SyntaxNode, field_name: str) -> Optional[SyntaxNode]:
    """Expression of a for-loop clause; older grammars wrap it in an expression_statement."""
    clause = loop.child_by_field(field_name)
    if clause is not None and clause.kind == "expression_statement":
        inner = clause.named_children()
        clause = inner[0] if inner else None
    return strip_parens(clause)


def _is_identifier(n: Optional[SyntaxNode], name: str) -> bool:
    return n is not None and n.kind == "identifier" and n.text == name


def _is_forward_unit_step(
    loop: SyntaxNode,
    index: str,
    start: Optional[SyntaxNode],
    iterated: Optional[str],
) -> bool:
    """
    True for `for (i = 0; i < xs.length; i++)`: every element of xs, once, in order.

    `++i` and `i += 1` are accepted as the update. Anything else (other
    start values, `<=`, reversed or stepped loops) visits a different
    sequence than forEach/map would.
    """
    if iterated is None or start is None or start.kind != "number" or start.text != "0":
        return False

    condition = _loop_clause(loop, "condition")
    if condition is None or condition.kind != "binary_expression" or condition.operator() != "<":
        return False
    bound = strip_parens(condition.child_by_field("right"))
    if not _is_identifier(strip_parens(condition.child_by_field("left")), index):
        return False
    if bound is None or bound.kind != "member_expression":
        return False
    prop = bound.child_by_field("property")
    obj = bound.child_by_field("object")
    if prop is None or prop.text != "length" or obj is None or obj.text != iterated:
        return False

    update = _loop_clause(loop, "increment")
    if update is None:
        return False
    if update.kind == "update_expression":
        return update.operator() == "++" and _is_identifier(update.child_by_field("argument"), index)
    if update.kind == "augmented_assignment_expression":
        step = strip_parens(update.child_by_field("right"))
        return (
            update.operator() == "+="
            and _is_identifier(update.child_by_field("left"), index)
            and step is not None
            and step.kind == "number"
            and step.text == "1"
        )
    return False


def construct_kind(n: SyntaxNode) -> Optional[ConstructKind]:
    if n.kind == "for_statement":
        return ConstructKind.INDEXED_LOOP if loop_index(n) is not None else None
    return method_kind(n)


def block_statements(body: SyntaxNode) -> tuple[SyntaxNode, ...]:
    """Statements of a block body; a lone statement or expression body is its own list."""
    if body.kind == "statement_block":
        return tuple(body.named_children())
    return (body,)


def enclosing_statement(n: SyntaxNode) -> Optional[SyntaxNode]:
    """
    The statement that contains n directly inside a block or program.

    Stops at function boundaries: a call inside an expression-bodied arrow
    has no enclosing statement of its own.
    """
    current = n
    while current.parent is not None:
        if current.parent.kind in STATEMENT_CONTAINERS:
            return current
        if current.parent.kind in FUNCTION_KINDS:
            return None
        current = current.parent
    return None


def _result_used(call: SyntaxNode) -> bool:
    current = call
    parent = call.parent
    while parent is not None and parent.kind == "parenthesized_expression":
        current, parent = parent, parent.parent
    if parent is None or parent.kind in _DISCARDING_PARENTS:
        return False
    if parent.kind == "unary_expression" and parent.text.startswith("void"):
        return False
    if parent.kind == "sequence_expression":
        # Every operand but the last of `a, b` is discarded.
        operands = parent.named_children()
        if operands and operands[-1] is not current:
            return False
    return True


def _parameter_names(fn: SyntaxNode) -> tuple[str, ...]:
    single = fn.child_by_field("parameter")
    if single is not None:
        return (single.text,)
    params = fn.child_by_field("parameters")
    if params is None:
        return ()
    names: list[str] = []
    for p in params.named_children():
        if p.kind == "assignment_pattern":
            left = p.child_by_field("left")
            names.append(left.text if left is not None else p.text)
        else:
            names.append(p.text)
    return tuple(names)


def _is_element_write(subscript: SyntaxNode) -> bool:
    parent = subscript.parent
    if parent is None:
        return False
    if parent.kind in _WRITE_PARENTS and subscript.field_name == "left":
        return True
    return parent.kind == "update_expression"


def _index_usage(
    body: tuple[SyntaxNode, ...],
    index: str,
    iterated: Optional[str],
) -> tuple[bool, int, Optional[str]]:
    """
    Classify every reference to `index` inside body.

    Returns (referenced_otherwise, element_reads, iterated_name). A reference
    counts as an element read only when it is the subscript of a read of
    the iterated collection. When the iterated collection is unknown and
    all subscripts hit a single collection, that collection is adopted.
    """
    other = False
    reads = 0
    objects: set[str] = set()
    for stmt in body:
        for n in stmt.walk():
            if n.kind != "identifier" or n.text != index:
                continue
            parent = n.parent
            if (
                parent is not None
                and parent.kind == "subscript_expression"
                and n.field_name == "index"
                and not _is_element_write(parent)
            ):
                obj = parent.child_by_field("object")
                objects.add(obj.text if obj is not None else "")
                reads += 1
                continue
            other = True
    if iterated is None and len(objects) == 1:
        iterated = next(iter(objects))
    if iterated is not None and objects - {iterated}:
        other = True
    return other, reads, iterated


def _iterated_collection(loop: SyntaxNode) -> Optional[str]:
    """Object of the first `<expr>.length` in the loop condition, if any."""
    condition = loop.child_by_field("condition")
    if condition is None:
        return None
    for n in condition.walk():
        if n.kind == "member_expression":
            prop = n.child_by_field("property")
            obj = n.child_by_field("object")
            if prop is not None and prop.text == "length" and obj is not None:
                return obj.text
    return None


def _is_guarded(body: tuple[SyntaxNode, ...]) -> bool:
    if len(body) != 1 or body[0].kind != "if_statement":
        return False
    return body[0].child_by_field("alternative") is None


class IterationScan:
    """
    Lazy, restartable sequence of IterationNode for one syntax tree.

    Raises MalformedTreeError (while iterating) when a node claims an
    iteration kind but lacks its argument shape, and CancelledError when the
    cancel token is set before a top-level construct is produced.
    """

    def __init__(
        self,
        root: SyntaxNode,
        path: Optional[Path] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.root = root
        self.path = path if path is not None else UNKNOWN_PATH
        self.cancel = cancel

    def __iter__(self) -> Iterator[IterationNode]:
        stack: list[tuple[SyntaxNode, int]] = [(self.root, 0)]
        while stack:
            current, depth = stack.pop()
            kind = construct_kind(current)
            child_depth = depth
            if kind is not None:
                if depth == 0 and self.cancel is not None and self.cancel.cancelled:
                    logger.info("Scan of %s cancelled at line %d", self.path, current.line)
                    raise CancelledError(f"scan of {self.path} cancelled")
                yield self._build(current, kind, depth)
                child_depth = depth + 1
            stack.extend((child, child_depth) for child in reversed(current.children))

    def _location(self, n: SyntaxNode) -> Location:
        return Location(
            path=self.path,
            line=n.line,
            column=n.column,
            end_line=n.end_line,
            end_column=n.end_column,
            snippet=n.text.splitlines()[0] if n.text else None,
        )

    def _malformed(self, n: SyntaxNode, message: str) -> MalformedTreeError:
        return MalformedTreeError(message, path=self.path, line=n.line, column=n.column)

    def _build(self, n: SyntaxNode, kind: ConstructKind, depth: int) -> IterationNode:
        if kind is ConstructKind.INDEXED_LOOP:
            return self._build_loop(n, depth)
        return self._build_call(n, kind, depth)

    def _build_loop(self, n: SyntaxNode, depth: int) -> IterationNode:
        loop_body = n.child_by_field("body")
        if loop_body is None:
            raise self._malformed(n, "indexed loop has no body")
        body = block_statements(loop_body)
        declared = loop_index(n)
        if declared is None:
            raise self._malformed(n, "indexed loop has no index variable")
        index, start = declared
        referenced, reads, iterated = _index_usage(body, index, _iterated_collection(n))
        statement = enclosing_statement(n)
        return IterationNode(
            kind=ConstructKind.INDEXED_LOOP,
            location=self._location(n),
            syntax=n,
            body=body,
            index_name=index,
            iterated_name=iterated,
            index_referenced=referenced,
            element_reads=reads,
            forward_unit_step=_is_forward_unit_step(n, index, start, iterated),
            guarded_side_effect=_is_guarded(body),
            statement=statement,
            preceding=statement.previous_sibling() if statement is not None else None,
            depth=depth,
        )

    def _build_call(self, n: SyntaxNode, kind: ConstructKind, depth: int) -> IterationNode:
        args = n.child_by_field("arguments")
        if args is None:
            raise self._malformed(n, f"'{kind.value}' call has no argument list")
        arguments = args.named_children()
        if not arguments:
            raise self._malformed(n, f"'{kind.value}' call has no callback argument")

        callback = arguments[0]
        body: tuple[SyntaxNode, ...] = ()
        params: tuple[str, ...] = ()
        if callback.kind in FUNCTION_KINDS:
            fn_body = callback.child_by_field("body")
            if fn_body is None:
                raise self._malformed(callback, f"'{kind.value}' callback has no body")
            body = block_statements(fn_body)
            params = _parameter_names(callback)

        # reduce passes (accumulator, element, index); the others (element, index).
        index_position = 2 if kind is ConstructKind.REDUCE else 1
        index_param = params[index_position] if len(params) > index_position else None
        referenced = index_param is not None and any(
            sub.kind == "identifier" and sub.text == index_param
            for stmt in body
            for sub in stmt.walk()
        )

        callee = n.child_by_field("function")
        receiver = callee.child_by_field("object") if callee is not None else None
        statement = enclosing_statement(n)
        return IterationNode(
            kind=kind,
            location=self._location(n),
            syntax=n,
            callback=callback,
            body=body,
            params=params,
            result_used=_result_used(n),
            index_referenced=referenced,
            guarded_side_effect=_is_guarded(body),
            chained_on=method_kind(strip_parens(receiver)),
            statement=statement,
            preceding=statement.previous_sibling() if statement is not None else None,
            depth=depth,
        )
