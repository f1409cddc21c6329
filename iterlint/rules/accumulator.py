# Manual accumulator: `let sum = 0; xs.filter(p).forEach(x => { sum += x.v; });`

from __future__ import annotations

from typing import Optional

from iterlint.findings.models import ConstructKind, IterationNode, MisuseFinding
from iterlint.rules.base import Matcher
from iterlint.rules.shapes import manual_accumulator


class AccumulatorPatternManualMatcher(Matcher):
    """
    Flags a forEach that folds values into an accumulator declared just
    before it (numeric, array or object seed) with an associative update.
    The forEach may be chained on filter or guard its update with an `if`.
    """

    category = "AccumulatorPatternManual"
    name = "Manual accumulator pattern"
    description = "forEach that updates a pre-declared accumulator instead of using reduce."

    def match(self, node: IterationNode) -> Optional[MisuseFinding]:
        name = manual_accumulator(node)
        if name is None:
            return None
        if node.chained_on is ConstructKind.FILTER:
            message = (
                f"Accumulator '{name}' is updated by hand inside forEach after filter; "
                f"keep the filter and fold with map + reduce."
            )
        elif node.guarded_side_effect:
            message = (
                f"Accumulator '{name}' is updated by hand under an if inside forEach; "
                f"move the condition into filter and fold with map + reduce."
            )
        else:
            message = (
                f"Accumulator '{name}' is updated by hand inside forEach; express it "
                f"with filter + map + reduce."
            )
        return self.finding(node, message, "filter + map + reduce")
