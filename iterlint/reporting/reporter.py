# Diagnostic reporter: collects findings in traversal order and renders them
# as flat records (file, line, column, category, message, suggestedFix).

from __future__ import annotations

import json
from typing import Any, Iterable, Iterator, Optional

from iterlint.config import Severity
from iterlint.findings.models import MisuseFinding


class DiagnosticReporter:
    """
    Ordered, append-only sequence of findings.

    Purely observational: rendering never touches the syntax tree.
    """

    def __init__(self, findings: Optional[Iterable[MisuseFinding]] = None) -> None:
        self._findings: list[MisuseFinding] = list(findings or ())

    def add(self, finding: MisuseFinding) -> None:
        self._findings.append(finding)

    def extend(self, findings: Iterable[MisuseFinding]) -> None:
        self._findings.extend(findings)

    def __iter__(self) -> Iterator[MisuseFinding]:
        return iter(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    @property
    def findings(self) -> tuple[MisuseFinding, ...]:
        return tuple(self._findings)

    def at_or_above(self, threshold: Severity) -> list[MisuseFinding]:
        """Findings whose severity is at least threshold."""
        return [f for f in self._findings if Severity.parse(f.severity).rank >= threshold.rank]

    def render(self) -> list[dict[str, Any]]:
        return [f.to_record() for f in self._findings]

    def to_json(self, pretty: bool = True) -> str:
        return json.dumps(self.render(), indent=2 if pretty else None, ensure_ascii=False)
