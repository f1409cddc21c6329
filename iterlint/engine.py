"""
Scan orchestration: run traversal + registry over files and collect results.

Each scan owns its traversal and finding list; nothing is shared between
scans except the (immutable) registry, so files can be scanned in parallel.

    registry = RuleRegistry(load_config("iterlint.yaml"))
    results = scan_paths(find_js_files(Path("src")), registry, jobs=4)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from iterlint.context import STDIN_PATH, FileContext, context_from_source, create_context
from iterlint.errors import CancelledError, MalformedTreeError
from iterlint.findings.models import MisuseFinding
from iterlint.registry import RuleRegistry
from iterlint.reporting.reporter import DiagnosticReporter
from iterlint.traversal import CancelToken, IterationScan

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of scanning one file. error is set when the scan was aborted."""

    path: Path
    findings: list[MisuseFinding] = field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def scan_context(
    ctx: FileContext,
    registry: RuleRegistry,
    cancel: Optional[CancelToken] = None,
) -> ScanResult:
    """
    Traverse one file's tree and evaluate every iteration construct.

    Cancellation returns the findings gathered so far with cancelled=True.
    MalformedTreeError and matcher exceptions propagate to the caller.
    """
    reporter = DiagnosticReporter()
    try:
        for node in IterationScan(ctx.root, ctx.path, cancel=cancel):
            finding = registry.evaluate(node)
            if finding is not None:
                reporter.add(finding)
    except CancelledError:
        logger.info("Scan of %s cancelled after %d finding(s)", ctx.path, len(reporter))
        return ScanResult(path=ctx.path, findings=list(reporter), cancelled=True)

    logger.debug("Scanned %s: %d finding(s)", ctx.path, len(reporter))
    return ScanResult(path=ctx.path, findings=list(reporter))


def _scan_guarded(
    path: Path,
    load: Callable[[], Optional[FileContext]],
    registry: RuleRegistry,
    cancel: Optional[CancelToken],
) -> ScanResult:
    """
    Build one file's context and scan it, containing every failure to that file.

    Unreadable files, malformed trees and unexpected errors (matcher bugs,
    trees too deep to handle) are logged and reported through
    ScanResult.error instead of being raised.
    """
    try:
        ctx = load()
        if ctx is None:
            # Error already logged in create_context
            return ScanResult(path=path, error="file could not be read")
        return scan_context(ctx, registry, cancel=cancel)
    except MalformedTreeError as exc:
        logger.error("Malformed tree, aborting scan of %s: %s", path, exc)
        return ScanResult(path=path, error=str(exc))
    except Exception as exc:
        logger.exception("Scan of %s failed: %s", path, exc)
        return ScanResult(path=path, error=f"internal error: {exc}")


def scan_source(
    source: bytes,
    registry: RuleRegistry,
    path: Path = STDIN_PATH,
    cancel: Optional[CancelToken] = None,
) -> ScanResult:
    """Scan in-memory JavaScript source (stdin); failures land in ScanResult.error."""
    return _scan_guarded(path, lambda: context_from_source(source, path=path), registry, cancel)


def scan_file(
    path: Path,
    registry: RuleRegistry,
    cancel: Optional[CancelToken] = None,
) -> ScanResult:
    """Read, parse and scan one file; failures land in ScanResult.error."""
    if cancel is not None and cancel.cancelled:
        return ScanResult(path=path, cancelled=True)
    return _scan_guarded(path, lambda: create_context(path), registry, cancel)


def scan_paths(
    paths: Sequence[Path],
    registry: RuleRegistry,
    jobs: int = 1,
    cancel: Optional[CancelToken] = None,
) -> list[ScanResult]:
    """
    Scan several files; results come back in the order of paths.

    jobs > 1 scans files on a thread pool.
    """
    if jobs <= 1 or len(paths) <= 1:
        return [scan_file(p, registry, cancel=cancel) for p in paths]

    logger.info("Scanning %d file(s) with %d workers", len(paths), jobs)
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(lambda p: scan_file(p, registry, cancel=cancel), paths))
