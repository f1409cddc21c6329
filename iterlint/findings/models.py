# Data models: source Location, IterationNode (one iteration construct found by
# the traversal engine) and MisuseFinding (pydantic, immutable once created).

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from iterlint.syntax import SyntaxNode


class Location(BaseModel):
    """Where in the source a construct or finding starts (file, line, column)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    snippet: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True, "frozen": True}


class ConstructKind(str, Enum):
    """The iteration constructs the engine recognises."""

    INDEXED_LOOP = "indexed-loop"
    FOR_EACH = "forEach"
    MAP = "map"
    FILTER = "filter"
    REDUCE = "reduce"


@dataclass(frozen=True, eq=False)
class IterationNode:
    """
    One call to an iteration construct, scoped to a single traversal pass.

    body holds the callback (or loop) body statements. An expression-bodied
    arrow function contributes its expression as the only element.
    index_referenced is True when the loop index (or the callback's index
    parameter) is used for anything other than reading the iterated
    collection's current element. forward_unit_step is True for loops that
    visit every element once, first to last: the index starts at 0, the
    condition is `i < xs.length` and the update is `i++`, `++i` or `i += 1`.
    chained_on names the iteration call the method is invoked on, e.g. filter
    in `xs.filter(f).forEach(g)`.
    """

    kind: ConstructKind
    location: Location
    syntax: SyntaxNode
    callback: Optional[SyntaxNode] = None
    body: tuple[SyntaxNode, ...] = ()
    params: tuple[str, ...] = ()
    result_used: bool = False
    index_name: Optional[str] = None
    iterated_name: Optional[str] = None
    index_referenced: bool = False
    element_reads: int = 0
    forward_unit_step: bool = False
    guarded_side_effect: bool = False
    chained_on: Optional[ConstructKind] = None
    statement: Optional[SyntaxNode] = None
    preceding: Optional[SyntaxNode] = None
    depth: int = 0


class MisuseFinding(BaseModel):
    """A single detected misuse of an iteration construct."""

    category: str
    message: str
    suggested_fix: str
    location: Location
    severity: str = Field(default="warning", description="info, warning or error")
    node: Any = Field(default=None, exclude=True, repr=False)

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    def to_record(self) -> dict[str, Any]:
        """Flat, serialisable form: file, line, column, category, message, suggestedFix."""
        return {
            "file": str(self.location.path),
            "line": self.location.line,
            "column": self.location.column,
            "category": self.category,
            "message": self.message,
            "suggestedFix": self.suggested_fix,
            "severity": self.severity,
        }
