"""
Typer CLI entry point and orchestration of the lint run.

    iterlint lint src/ --disable map-for-side-effect-only --severity error
    cat app.js | iterlint lint - --format json
    iterlint rules --config iterlint.yaml

`lint` exits with 0 when no finding reaches the --severity threshold, 1 when
at least one does, and 2 on configuration errors.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from iterlint.config import RuleConfig, Severity, get_default_config, load_config
from iterlint.context import STDIN_PATH
from iterlint.engine import ScanResult, scan_paths, scan_source
from iterlint.errors import ConfigError
from iterlint.files import find_js_files, is_js_file
from iterlint.registry import RuleRegistry
from iterlint.reporting.console import print_findings, print_rules
from iterlint.reporting.reporter import DiagnosticReporter

logger = logging.getLogger(__name__)

app = typer.Typer(help="iterlint - flag misused array-iteration constructs in JavaScript.")


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_rule_config(config_path: Optional[Path], disable: Optional[str]) -> RuleConfig:
    """Config file (or defaults) with --disable applied. Exits with code 2 on ConfigError."""
    try:
        config = load_config(config_path) if config_path is not None else get_default_config()
        if disable:
            config = config.with_disabled(c for c in disable.split(",") if c.strip())
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    return config


def _collect_js_files(target: Path) -> List[Path]:
    """
    Resolve a target path into the list of files to lint.

    - A JavaScript file is linted on its own
    - A directory is searched with files.find_js_files()
    """
    if target.is_file():
        if not is_js_file(target):
            raise typer.BadParameter(f"Target file is not a JavaScript source: {target}")
        return [target]

    if target.is_dir():
        files = find_js_files(target)
        if not files:
            logger.warning("No JavaScript files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path does not exist: {target}")


@app.callback()
def cli() -> None:
    """Lint JavaScript iteration constructs (indexed loops, forEach, map, filter, reduce)."""


@app.command()
def lint(
    target: str = typer.Argument(
        ...,
        help="JavaScript file or directory to lint, or '-' to read source from stdin.",
    ),
    disable: Optional[str] = typer.Option(
        None,
        "--disable",
        help="Comma-separated categories to disable (CamelCase or kebab-case).",
    ),
    severity: Severity = typer.Option(
        Severity.WARNING,
        "--severity",
        case_sensitive=False,
        help="Exit with 1 only for findings at or above this severity.",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        dir_okay=False,
        help="YAML file mapping categories to enabled/severity.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        case_sensitive=False,
        help="Output format.",
    ),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Files to scan in parallel."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and rewrite hints."),
) -> None:
    """Lint a JavaScript file, a directory tree, or stdin."""
    _configure_logging(verbose)
    registry = RuleRegistry(_load_rule_config(config_path, disable))

    results: List[ScanResult]
    if target == "-":
        source = typer.get_binary_stream("stdin").read()
        results = [scan_source(source, registry, path=STDIN_PATH)]
    else:
        results = scan_paths(_collect_js_files(Path(target)), registry, jobs=jobs)

    reporter = DiagnosticReporter()
    for result in results:
        if result.error is not None:
            typer.echo(f"{result.path}: scan aborted: {result.error}", err=True)
        reporter.extend(result.findings)

    if output_format is OutputFormat.JSON:
        typer.echo(reporter.to_json())
    else:
        print_findings(reporter.findings, verbose=verbose)

    raise typer.Exit(code=1 if reporter.at_or_above(severity) else 0)


@app.command()
def rules(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        dir_okay=False,
        help="YAML file mapping categories to enabled/severity.",
    ),
) -> None:
    """List misuse categories in priority order with their configuration."""
    config = _load_rule_config(config_path, None)
    registry = RuleRegistry(config)
    print_rules(registry.matchers, config)


def main() -> None:
    """Entry point for `python -m iterlint.main` and the `iterlint` script."""
    app()


if __name__ == "__main__":
    main()
