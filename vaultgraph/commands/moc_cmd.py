"""Map of contents generation command."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..vault.moc import create_moc


def run_moc(
    vault_path: Path,
    title: str,
    target_path: str,
    source_pattern: str | None = None,
    group_by: str = "none",
    include_description: bool = False,
) -> int:
    """Write a map of contents note and summarize its groups."""
    console = Console(stderr=True)

    result = create_moc(
        vault_path,
        title,
        target_path,
        source_pattern=source_pattern,
        group_by=group_by,
        include_description=include_description,
    )

    if group_by != "none":
        for group, notes in result.groups.items():
            console.print(f"  {escape(group)}: {len(notes)}", style="dim")
    console.print(escape(result.message), style="bold green")
    return 0
