# Matcher interface (abstract base class): the contract every misuse matcher implements.
# Concrete matchers (indexed_loop, map_side_effect, ...) subclass Matcher and implement match().

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from iterlint.findings.models import IterationNode, MisuseFinding


class Matcher(ABC):
    """
    Abstract base class for all misuse matchers.

    Subclasses must define:
    - category: str — one of config.CATEGORIES (e.g. "MapForSideEffectOnly")
    - name: str — human-readable name
    - description: str — one-line explanation shown by `iterlint rules`
    - match(node) -> MisuseFinding | None

    Matchers are pure: they look at one IterationNode, never mutate it, and
    keep no state between calls, so one instance may serve parallel scans.
    """

    category: str
    name: str
    description: str

    @abstractmethod
    def match(self, node: IterationNode) -> Optional[MisuseFinding]:
        """Return a finding if node shows this misuse, else None."""
        ...

    def finding(self, node: IterationNode, message: str, suggested_fix: str) -> MisuseFinding:
        return MisuseFinding(
            category=self.category,
            message=message,
            suggested_fix=suggested_fix,
            location=node.location,
            node=node,
        )
