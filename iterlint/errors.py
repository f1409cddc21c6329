# Error taxonomy shared by the traversal engine, configuration and CLI.

from __future__ import annotations

from pathlib import Path
from typing import Optional


class IterLintError(Exception):
    """Base class for all iterlint errors."""


class MalformedTreeError(IterLintError):
    """
    Raised when a node claims an iteration-construct kind but lacks the
    argument shape that kind requires (e.g. `items.map()` with no callback).

    Aborts the scan of the current file only.
    """

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.path = path
        self.line = line
        self.column = column
        where = ""
        if path is not None or line is not None:
            where = f"{path if path is not None else '<tree>'}:{line or 0}:{column or 0}: "
        super().__init__(f"{where}{message}")


class ConfigError(IterLintError):
    """Raised when the rule configuration is missing or invalid (fatal for the run)."""


class CancelledError(IterLintError):
    """
    Raised inside a traversal when cooperative cancellation is observed.

    Never reaches callers of engine.scan_context(); it is turned into a
    ScanResult with cancelled=True and the findings collected so far.
    """
