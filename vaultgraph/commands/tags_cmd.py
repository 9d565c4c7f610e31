"""Tag listing and renaming commands."""

import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..vault.tags import rename_tag, tag_index


def run_list_tags(vault_path: Path, output_json: bool = False) -> int:
    """Print every tag in the vault with the number of notes carrying it."""
    index = tag_index(vault_path)

    if output_json:
        print(json.dumps(list(index), indent=2, ensure_ascii=False))
        return 0

    console = Console(stderr=True)
    if not index:
        console.print("No tags found.", style="yellow")
        return 0

    table = Table(title=f"Tags ({len(index)})")
    table.add_column("Tag", style="cyan")
    table.add_column("Notes", justify="right")
    for tag, notes in index.items():
        table.add_row(escape(tag), str(len(notes)))
    console.print(table)
    return 0


def run_rename_tag(vault_path: Path, old_tag: str, new_tag: str) -> int:
    """Rename a tag across the vault and report the touched files."""
    console = Console(stderr=True)

    result = rename_tag(vault_path, old_tag, new_tag)
    for path in result.modified:
        console.print(f"  updated {escape(path)}", style="dim")

    style = "bold green" if result.modified_count else "yellow"
    console.print(escape(result.message), style=style)
    return 0
