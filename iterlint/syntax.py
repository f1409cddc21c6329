"""
Generic expression tree consumed by the traversal engine.

The engine never touches tree-sitter objects directly. Parsed JavaScript is
converted into SyntaxNode trees (see from_tree_sitter), and tests or other
front-ends can build the same shape by hand with node():

    tree = node("program", children=[
        node("expression_statement", children=[call]),
    ])

Node kinds follow the tree-sitter JavaScript grammar names
(call_expression, member_expression, arrow_function, for_statement, ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from tree_sitter import Node as TSNode

# Nodes dropped during conversion: they never carry program structure.
SKIPPED_KINDS = frozenset({"comment", "html_comment"})

_OPERATOR_RE = re.compile(r"^\s*([-+*/%&|^<>=!?]+|instanceof|in)")


@dataclass(eq=False)
class SyntaxNode:
    """
    One node of the generic tree.

    children holds named children plus anonymous tokens that fill a grammar
    field (operators such as "+=" or the "let" keyword). named marks which is
    which. parent is wired automatically and is not part of repr.
    """

    kind: str
    text: str = ""
    line: int = 1
    column: int = 1
    end_line: int = 1
    end_column: int = 1
    children: list[SyntaxNode] = field(default_factory=list)
    field_name: Optional[str] = None
    named: bool = True
    parent: Optional[SyntaxNode] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    def child_by_field(self, name: str) -> Optional[SyntaxNode]:
        for child in self.children:
            if child.field_name == name:
                return child
        return None

    def named_children(self) -> list[SyntaxNode]:
        return [c for c in self.children if c.named]

    def walk(self) -> Iterator[SyntaxNode]:
        """Yield this node and every descendant in pre-order (document order)."""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def previous_sibling(self) -> Optional[SyntaxNode]:
        """Previous named sibling, or None for the first child / a root."""
        if self.parent is None:
            return None
        siblings = self.parent.named_children()
        for i, sibling in enumerate(siblings):
            if sibling is self:
                return siblings[i - 1] if i > 0 else None
        return None

    def next_sibling(self) -> Optional[SyntaxNode]:
        if self.parent is None:
            return None
        siblings = self.parent.named_children()
        for i, sibling in enumerate(siblings):
            if sibling is self:
                return siblings[i + 1] if i + 1 < len(siblings) else None
        return None

    def operator(self) -> Optional[str]:
        """
        Operator token of a binary/assignment/update expression.

        Uses the "operator" field when the grammar provides one and falls
        back to the text that follows the left operand.
        """
        op = self.child_by_field("operator")
        if op is not None:
            return op.text
        left = self.child_by_field("left")
        if left is None or not self.text.startswith(left.text):
            return None
        m = _OPERATOR_RE.match(self.text[len(left.text):])
        return m.group(1) if m else None


def node(
    kind: str,
    text: str = "",
    *,
    field: Optional[str] = None,
    children: Iterable[SyntaxNode] = (),
    line: int = 1,
    column: int = 1,
    named: bool = True,
) -> SyntaxNode:
    """Build a SyntaxNode by hand (tests, alternative front-ends)."""
    return SyntaxNode(
        kind=kind,
        text=text,
        line=line,
        column=column,
        end_line=line,
        end_column=column + len(text),
        children=list(children),
        field_name=field,
        named=named,
    )


def _kept_children(ts_node: TSNode) -> Iterator[tuple[TSNode, Optional[str]]]:
    """Named children and field-filling tokens, comments excluded."""
    cursor = ts_node.walk()
    if not cursor.goto_first_child():
        return
    while True:
        child = cursor.node
        child_field = cursor.field_name
        if child is not None and child.type not in SKIPPED_KINDS:
            if child.is_named or child_field is not None:
                yield child, child_field
        if not cursor.goto_next_sibling():
            break


def from_tree_sitter(
    ts_node: TSNode,
    source: bytes,
    field_name: Optional[str] = None,
) -> SyntaxNode:
    """
    Convert a tree-sitter node (and its subtree) into a SyntaxNode.

    Comments are dropped so that statement siblings reflect code only.
    Positions are converted to 1-based line and column. Conversion runs
    over an explicit work list, so arbitrarily deep trees (long `a + b + ...`
    chains, deeply nested callbacks) never hit the recursion limit.
    """
    # Breadth-first: parents precede their children and siblings stay
    # contiguous, in document order.
    pending: list[tuple[TSNode, Optional[str], int]] = [(ts_node, field_name, -1)]
    i = 0
    while i < len(pending):
        for child, child_field in _kept_children(pending[i][0]):
            pending.append((child, child_field, i))
        i += 1

    # Bottom-up, so every node's children exist before the node itself.
    children: list[list[SyntaxNode]] = [[] for _ in pending]
    converted: list[SyntaxNode] = []
    for idx in range(len(pending) - 1, -1, -1):
        current, current_field, parent_idx = pending[idx]
        kids = children[idx]
        kids.reverse()
        start_row, start_col = current.start_point
        end_row, end_col = current.end_point
        built = SyntaxNode(
            kind=current.type,
            text=source[current.start_byte : current.end_byte].decode("utf-8", errors="replace"),
            line=start_row + 1,
            column=start_col + 1,
            end_line=end_row + 1,
            end_column=end_col + 1,
            children=kids,
            field_name=current_field,
            named=current.is_named,
        )
        if parent_idx >= 0:
            children[parent_idx].append(built)
        converted.append(built)
    return converted[-1]
