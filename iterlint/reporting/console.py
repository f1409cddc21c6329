# Rich console output: format findings and the rule list for terminal display.

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from iterlint.config import CATEGORIES, RuleConfig
from iterlint.findings.models import MisuseFinding
from iterlint.rules.base import Matcher

# Rewrite hints per category (shown with --verbose)
CATEGORY_REMEDIATIONS: dict[str, str] = {
    "IndexedLoopWithoutIndexUse": (
        "for (let i = 0; i < xs.length; i++) { xs[i].save(); } -> xs.forEach(x => x.save());"
    ),
    "MapForSideEffectOnly": "xs.map(x => x.save()); -> xs.forEach(x => x.save());",
    "ForEachBuildingCollection": (
        "const names = []; xs.forEach(x => names.push(x.name)); -> "
        "const names = xs.map(x => x.name);"
    ),
    "ForEachWithFilterConditional": (
        "xs.forEach(x => { if (ok(x)) out.push(x.name); }) -> "
        "xs.filter(ok).map(x => x.name)"
    ),
    "AccumulatorPatternManual": (
        "let sum = 0; xs.forEach(x => { sum += x.v; }); -> "
        "const sum = xs.map(x => x.v).reduce((a, b) => a + b, 0);"
    ),
}

# Severity -> Rich style
SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
    "info": "bold blue",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def _display_path(path: str | Path) -> str:
    """Path relative to the working directory when possible."""
    p = Path(path)
    try:
        return str(p.relative_to(Path.cwd()))
    except ValueError:
        return str(p)


def print_findings(
    findings: Sequence[MisuseFinding],
    console: Optional[Console] = None,
    verbose: bool = False,
) -> None:
    """
    Print findings grouped by file, in the order they were reported,
    colored by severity. With verbose, also print a rewrite hint for each
    category that appears in a file.
    """
    console = console or Console()

    if not findings:
        console.print(
            Panel(
                "[green]No iteration misuses found.[/green]",
                title="iterlint",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    by_file: dict[str, list[MisuseFinding]] = {}
    for f in findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path, file_findings in by_file.items():
        console.print()
        console.print(
            Panel(
                f"[bold cyan]{_display_path(path)}[/bold cyan]",
                box=box.SIMPLE_HEAD,
                border_style="blue",
                padding=(0, 1),
            )
        )

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Severity", width=8)
        table.add_column("Category", width=30)
        table.add_column("Message", style="white")
        table.add_column("Fix", style="green")

        for f in file_findings:
            table.add_row(
                str(f.location.line),
                str(f.location.column),
                Text(f.severity.upper(), style=_severity_style(f.severity)),
                Text(f.category, style="dim"),
                f.message,
                f.suggested_fix,
            )
        console.print(table)

        if verbose:
            seen: set[str] = set()
            for f in file_findings:
                if f.category in seen:
                    continue
                seen.add(f.category)
                hint = CATEGORY_REMEDIATIONS.get(f.category)
                if hint:
                    console.print(Text.assemble(("  [Fix] ", "dim"), f"[{f.category}] {hint}"))
            console.print()

    _print_summary(findings, console)


def _print_summary(findings: Sequence[MisuseFinding], console: Console) -> None:
    by_severity: dict[str, int] = {}
    for f in findings:
        s = f.severity.lower()
        by_severity[s] = by_severity.get(s, 0) + 1

    total = len(findings)
    parts = [f"[bold]{total} finding{'s' if total != 1 else ''}[/bold]"]
    for sev in ("error", "warning", "info"):
        if sev in by_severity:
            parts.append(f"[{_severity_style(sev)}]{by_severity[sev]} {sev}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(parts),
            title="Summary",
            border_style="yellow",
            box=box.ROUNDED,
        )
    )


def print_rules(matchers: Sequence[Matcher], config: RuleConfig, console: Optional[Console] = None) -> None:
    """Table of categories in priority order with their enabled state and severity."""
    console = console or Console()
    descriptions = {m.category: m.description for m in matchers}

    table = Table(title="Rules", header_style="bold cyan", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Category")
    table.add_column("Enabled")
    table.add_column("Severity")
    table.add_column("Description", style="white")

    for priority, category in enumerate(CATEGORIES, start=1):
        setting = config.setting(category)
        table.add_row(
            str(priority),
            category,
            Text("yes", style="green") if setting.enabled else Text("no", style="dim"),
            Text(setting.severity.value, style=_severity_style(setting.severity.value)),
            descriptions.get(category, ""),
        )
    console.print(table)
