# map used for side effects only: the array returned by map() is thrown away.

from __future__ import annotations

from typing import Optional

from iterlint.findings.models import ConstructKind, IterationNode, MisuseFinding
from iterlint.rules.base import Matcher


class MapForSideEffectOnlyMatcher(Matcher):
    """Flags `xs.map(f);` statements whose result is never assigned, passed, returned or chained."""

    category = "MapForSideEffectOnly"
    name = "map for side effect only"
    description = "map() whose returned array is discarded."

    def match(self, node: IterationNode) -> Optional[MisuseFinding]:
        if node.kind is not ConstructKind.MAP or node.result_used:
            return None
        return self.finding(
            node,
            "The array returned by map is discarded; use forEach when only the "
            "callback's side effects matter.",
            "forEach",
        )
