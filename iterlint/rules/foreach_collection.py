# forEach building a collection: `const out = []; xs.forEach(x => out.push(f(x)));`

from __future__ import annotations

from typing import Optional

from iterlint.findings.models import ConstructKind, IterationNode, MisuseFinding
from iterlint.rules.base import Matcher
from iterlint.rules.shapes import declared_binding, is_empty_array, push_call, unwrap


class ForEachBuildingCollectionMatcher(Matcher):
    """
    Flags a forEach whose whole callback is one unconditional push of a
    computed value into an empty array declared in the statement right
    before the forEach.
    """

    category = "ForEachBuildingCollection"
    name = "forEach building a collection"
    description = "forEach that pushes each computed value into a freshly declared array."

    def match(self, node: IterationNode) -> Optional[MisuseFinding]:
        if node.kind is not ConstructKind.FOR_EACH or len(node.body) != 1:
            return None
        push = push_call(unwrap(node.body[0]))
        if push is None or len(push[1]) != 1:
            return None
        binding = declared_binding(node.preceding)
        if binding is None or binding[0] != push[0] or not is_empty_array(binding[1]):
            return None
        return self.finding(
            node,
            f"forEach only pushes computed values into '{push[0]}', declared just "
            f"before; build it with map instead.",
            "map",
        )
