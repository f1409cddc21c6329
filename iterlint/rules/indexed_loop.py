# Indexed loop without index use: `for (let i = 0; i < xs.length; i++)` whose
# body only reads `xs[i]`.

from __future__ import annotations

from typing import Optional

from iterlint.findings.models import ConstructKind, IterationNode, MisuseFinding
from iterlint.rules.base import Matcher
from iterlint.rules.shapes import push_call, unwrap


class IndexedLoopWithoutIndexUseMatcher(Matcher):
    """
    Flags indexed loops whose index only serves to fetch the current element.

    Only loops that walk the whole collection forward one element at a
    time (`i = 0; i < xs.length; i++`) qualify: reversed, stepped or offset
    loops visit a different sequence than forEach/map. The index must be
    read at least once as `xs[i]` on the iterated collection and never used
    any other way (arithmetic, comparisons, element writes, passing it
    along). The suggested construct is `map` when the body ends by pushing
    into a collection, `forEach` otherwise.
    """

    category = "IndexedLoopWithoutIndexUse"
    name = "Indexed loop without index use"
    description = "Indexed for-loop that only uses the index to read the current element."

    def match(self, node: IterationNode) -> Optional[MisuseFinding]:
        if node.kind is not ConstructKind.INDEXED_LOOP:
            return None
        if not node.forward_unit_step or not node.body:
            return None
        if node.index_referenced or node.element_reads == 0:
            return None

        fix = "map" if push_call(unwrap(node.body[-1])) is not None else "forEach"
        collection = node.iterated_name or "the collection"
        return self.finding(
            node,
            f"Loop index '{node.index_name}' is only used to read elements of "
            f"{collection}; use {fix} instead of an indexed loop.",
            fix,
        )
