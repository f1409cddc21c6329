# forEach with a filtering conditional: the callback is a single `if` with no
# `else` that guards the whole side effect.

from __future__ import annotations

from typing import Optional

from iterlint.findings.models import ConstructKind, IterationNode, MisuseFinding
from iterlint.rules.base import Matcher
from iterlint.rules.shapes import (
    branch_statements,
    is_side_effect,
    manual_accumulator,
    push_call,
    unwrap,
)


class ForEachWithFilterConditionalMatcher(Matcher):
    """
    Flags `xs.forEach(x => { if (cond(x)) { effect(x); } })`.

    Every statement of the guarded branch must be a side effect (call,
    push, assignment, update). A guarded manual accumulator update belongs
    to AccumulatorPatternManual and is left alone here.
    """

    category = "ForEachWithFilterConditional"
    name = "forEach with filtering conditional"
    description = "forEach whose body is a single if-without-else guarding the side effect."

    def match(self, node: IterationNode) -> Optional[MisuseFinding]:
        if node.kind is not ConstructKind.FOR_EACH or not node.guarded_side_effect:
            return None
        branch = branch_statements(node.body[0])
        if not branch or not all(is_side_effect(s) for s in branch):
            return None
        if manual_accumulator(node) is not None:
            return None

        pushes = len(branch) == 1 and push_call(unwrap(branch[0])) is not None
        fix = "filter + map" if pushes else "filter + forEach"
        return self.finding(
            node,
            f"forEach body only acts when its condition holds; split it into {fix}.",
            fix,
        )
