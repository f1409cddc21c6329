# Structural helpers shared by the matchers: statement unwrapping, push calls,
# declarations right before a construct, and accumulator updates.

from __future__ import annotations

from typing import Optional

from iterlint.findings.models import ConstructKind, IterationNode
from iterlint.syntax import SyntaxNode
from iterlint.traversal import block_statements, strip_parens

DECLARATION_KINDS = frozenset({"lexical_declaration", "variable_declaration"})

# Expression kinds that do something when used as a statement.
SIDE_EFFECT_KINDS = frozenset(
    {
        "call_expression",
        "assignment_expression",
        "augmented_assignment_expression",
        "update_expression",
        "await_expression",
        "new_expression",
    }
)

# Associative operators usable to fold a sequence with reduce().
ASSOCIATIVE_OPERATORS = frozenset({"+", "*", "|", "&", "^", "&&", "||"})
ASSOCIATIVE_UPDATES = frozenset({op + "=" for op in ASSOCIATIVE_OPERATORS})

SEED_KINDS = frozenset({"number", "array", "object", "string", "template_string"})


def unwrap(stmt: SyntaxNode) -> Optional[SyntaxNode]:
    """Expression carried by an expression statement (or an expression body)."""
    if stmt.kind == "expression_statement":
        inner = stmt.named_children()
        return strip_parens(inner[0]) if inner else None
    return strip_parens(stmt)


def branch_statements(stmt: SyntaxNode) -> tuple[SyntaxNode, ...]:
    """Statements guarded by a single `if` (its consequence)."""
    consequence = stmt.child_by_field("consequence")
    if consequence is None:
        return ()
    return block_statements(consequence)


def push_call(expr: Optional[SyntaxNode]) -> Optional[tuple[str, list[SyntaxNode]]]:
    """(collection, arguments) for `collection.push(...)`, else None."""
    if expr is None or expr.kind != "call_expression":
        return None
    callee = expr.child_by_field("function")
    if callee is None or callee.kind != "member_expression":
        return None
    prop = callee.child_by_field("property")
    obj = callee.child_by_field("object")
    if prop is None or obj is None or prop.text != "push":
        return None
    args = expr.child_by_field("arguments")
    return obj.text, args.named_children() if args is not None else []


def is_side_effect(stmt: SyntaxNode) -> bool:
    expr = unwrap(stmt)
    return expr is not None and expr.kind in SIDE_EFFECT_KINDS


def declared_binding(stmt: Optional[SyntaxNode]) -> Optional[tuple[str, SyntaxNode]]:
    """(name, initial value) for a declaration of exactly one initialised variable."""
    if stmt is None or stmt.kind not in DECLARATION_KINDS:
        return None
    declarators = [c for c in stmt.named_children() if c.kind == "variable_declarator"]
    if len(declarators) != 1:
        return None
    name = declarators[0].child_by_field("name")
    value = declarators[0].child_by_field("value")
    if name is None or name.kind != "identifier" or value is None:
        return None
    return name.text, strip_parens(value) or value


def is_empty_array(n: SyntaxNode) -> bool:
    return n.kind == "array" and not n.named_children()


def is_accumulator_seed(n: SyntaxNode) -> bool:
    """Numeric or collection literal (including `-1`) usable as a fold's initial value."""
    if n.kind == "unary_expression":
        operand = n.child_by_field("argument")
        return operand is not None and operand.kind == "number"
    return n.kind in SEED_KINDS


def accumulator_target(expr: Optional[SyntaxNode]) -> Optional[str]:
    """
    Variable updated by an associative fold step, else None.

    Recognises `acc += x` (and the other associative compound operators),
    `acc = acc <op> x`, `acc = x <op> acc` and `acc = acc.concat(x)`.
    """
    if expr is None:
        return None
    left = expr.child_by_field("left")
    if left is None or left.kind != "identifier":
        return None
    name = left.text
    if expr.kind == "augmented_assignment_expression":
        return name if expr.operator() in ASSOCIATIVE_UPDATES else None
    if expr.kind != "assignment_expression":
        return None

    right = strip_parens(expr.child_by_field("right"))
    if right is None:
        return None
    if right.kind == "binary_expression" and right.operator() in ASSOCIATIVE_OPERATORS:
        operands = [strip_parens(right.child_by_field(f)) for f in ("left", "right")]
        if any(o is not None and o.kind == "identifier" and o.text == name for o in operands):
            return name
        return None
    if right.kind == "call_expression":
        callee = right.child_by_field("function")
        if callee is not None and callee.kind == "member_expression":
            obj = callee.child_by_field("object")
            prop = callee.child_by_field("property")
            if obj is not None and prop is not None and obj.text == name and prop.text == "concat":
                return name
    return None


def manual_accumulator(node: IterationNode) -> Optional[str]:
    """
    Name of the accumulator folded by hand inside a forEach, else None.

    The accumulator must be declared with a seed literal in the statement
    right before the forEach, and the callback's only effect (optionally
    under a single `if`) must be one associative update of it.
    """
    if node.kind is not ConstructKind.FOR_EACH or not node.body:
        return None
    binding = declared_binding(node.preceding)
    if binding is None or not is_accumulator_seed(binding[1]):
        return None

    stmts = branch_statements(node.body[0]) if node.guarded_side_effect else node.body
    if len(stmts) != 1:
        return None
    target = accumulator_target(unwrap(stmts[0]))
    return target if target == binding[0] else None
