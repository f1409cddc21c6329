# Rule registry: holds matchers in fixed priority order and applies the enabled
# ones to each IterationNode (first match wins).

from __future__ import annotations

import logging
from typing import Optional, Sequence

from iterlint.config import CATEGORIES, RuleConfig, get_default_config
from iterlint.errors import ConfigError
from iterlint.findings.models import IterationNode, MisuseFinding
from iterlint.rules.accumulator import AccumulatorPatternManualMatcher
from iterlint.rules.base import Matcher
from iterlint.rules.foreach_collection import ForEachBuildingCollectionMatcher
from iterlint.rules.foreach_filter import ForEachWithFilterConditionalMatcher
from iterlint.rules.indexed_loop import IndexedLoopWithoutIndexUseMatcher
from iterlint.rules.map_side_effect import MapForSideEffectOnlyMatcher

logger = logging.getLogger(__name__)

# Priority order: earlier matchers win when several could apply to one node.
DEFAULT_MATCHERS: tuple[type[Matcher], ...] = (
    IndexedLoopWithoutIndexUseMatcher,
    MapForSideEffectOnlyMatcher,
    ForEachBuildingCollectionMatcher,
    ForEachWithFilterConditionalMatcher,
    AccumulatorPatternManualMatcher,
)


class RuleRegistry:
    """
    Enabled matchers plus the configuration that stamps their severity.

    The registry is immutable after construction; one instance can be shared
    by scans running in parallel.
    """

    def __init__(
        self,
        config: Optional[RuleConfig] = None,
        matchers: Optional[Sequence[Matcher]] = None,
    ) -> None:
        self.config = config if config is not None else get_default_config()
        if matchers is None:
            matchers = [cls() for cls in DEFAULT_MATCHERS]
        for matcher in matchers:
            if matcher.category not in CATEGORIES:
                raise ConfigError(
                    f"Matcher {type(matcher).__name__} has unknown category '{matcher.category}'"
                )
        self._matchers: tuple[Matcher, ...] = tuple(matchers)
        logger.debug(
            "Registry ready: %s",
            ", ".join(m.category for m in self.enabled_matchers()) or "(no enabled matchers)",
        )

    @property
    def matchers(self) -> tuple[Matcher, ...]:
        return self._matchers

    def enabled_matchers(self) -> list[Matcher]:
        return [m for m in self._matchers if self.config.is_enabled(m.category)]

    def evaluate(self, node: IterationNode) -> Optional[MisuseFinding]:
        """First finding produced by an enabled matcher, stamped with its configured severity."""
        for matcher in self._matchers:
            if not self.config.is_enabled(matcher.category):
                continue
            finding = matcher.match(node)
            if finding is not None:
                severity = self.config.severity_for(matcher.category)
                return finding.model_copy(update={"severity": severity.value})
        return None
