"""Link inspection and repair commands."""

import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..vault.backlinks import analyze_backlinks
from ..vault.broken_links import find_broken_links
from ..vault.notes import link_notes


def run_broken_links(vault_path: Path, output_json: bool = False) -> int:
    """Report unresolvable links with repair suggestions.

    Returns:
        Exit code (0 = no broken links, 1 = broken links found)
    """
    report = find_broken_links(vault_path)

    if output_json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return 1 if report.total_count else 0

    console = Console(stderr=True)
    if report.scan_errors:
        console.print(f"{report.scan_errors} unreadable file(s) skipped", style="dim")

    if not report.broken_links:
        console.print("✓ No broken links found.", style="bold green")
        return 0

    table = Table(title=f"Broken links ({report.total_count})")
    table.add_column("Source", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Target", style="red")
    table.add_column("Suggestions", style="green")
    for broken in report.broken_links:
        table.add_row(
            escape(broken.source),
            str(broken.line),
            escape(broken.target),
            escape(", ".join(broken.suggestions)) or "-",
        )
    console.print(table)
    return 1


def run_backlinks(vault_path: Path, target_note: str, output_json: bool = False) -> int:
    """Show the notes linking to `target_note` and its link metrics."""
    report = analyze_backlinks(vault_path, target_note)

    if output_json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return 0

    console = Console(stderr=True)
    if not report.backlinks:
        console.print(f"No backlinks to {escape(target_note)!r}.", style="yellow")
    else:
        table = Table(title=f"Backlinks to {escape(target_note)}")
        table.add_column("Source", style="cyan")
        table.add_column("Line", justify="right")
        table.add_column("Type")
        table.add_column("Context", style="dim")
        for backlink in report.backlinks:
            table.add_row(escape(backlink.source), str(backlink.line), backlink.kind, escape(backlink.context))
        console.print(table)

    console.print(
        f"Related notes: {len(report.related_notes)}  "
        f"Popularity: {report.popularity}  "
        f"Centrality: {report.centrality:.3f}",
        style="bold",
    )
    return 0


def run_link_notes(
    vault_path: Path,
    source_note: str,
    target_note: str,
    link_text: str | None = None,
    position: str | int = "end",
) -> int:
    """Insert a wiki link from one note to another."""
    console = Console(stderr=True)
    message = link_notes(vault_path, source_note, target_note, link_text, position)
    style = "yellow" if message.startswith("Warning") else "bold green"
    console.print(escape(message), style=style)
    return 0
