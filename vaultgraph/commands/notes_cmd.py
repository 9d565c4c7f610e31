"""Single-note, template, and search commands."""

import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..vault.notes import create_note_from_template, read_note, search_files, update_note
from ..vault.templates import TemplateEngine


def run_read_note(vault_path: Path, note_path: str) -> int:
    # Raw note text goes to stdout untouched
    print(read_note(vault_path, note_path), end="")
    return 0


def run_update_note(vault_path: Path, note_path: str, content: str) -> int:
    console = Console(stderr=True)
    console.print(escape(update_note(vault_path, note_path, content)), style="bold green")
    return 0


def run_create_note(
    vault_path: Path,
    templates_path: Path,
    template_name: str,
    output_path: str,
    variables: dict[str, str],
    overwrite: bool = False,
) -> int:
    """Create a note from a template."""
    console = Console(stderr=True)
    engine = TemplateEngine(templates_path)
    message = create_note_from_template(
        vault_path,
        engine,
        template_name,
        variables,
        output_path,
        overwrite=overwrite,
    )
    console.print(escape(message), style="bold green")
    return 0


def run_list_templates(templates_path: Path, output_json: bool = False) -> int:
    templates = TemplateEngine(templates_path).list_templates()

    if output_json:
        print(json.dumps([t.to_dict() for t in templates], indent=2, ensure_ascii=False))
        return 0

    console = Console(stderr=True)
    if not templates:
        console.print(f"No templates in {templates_path}", style="yellow")
        return 0

    table = Table(title="Templates")
    table.add_column("Name", style="cyan")
    table.add_column("Variables")
    table.add_column("Description", style="dim")
    for t in templates:
        table.add_row(escape(t.name), escape(", ".join(t.variables)) or "-", escape(t.description))
    console.print(table)
    return 0


def run_search(vault_path: Path, search_path: str = "", pattern: str = "", output_json: bool = False) -> int:
    """List matching files and folders, folders first."""
    hits = search_files(vault_path, search_path, pattern)

    if output_json:
        print(json.dumps([h.to_dict() for h in hits], indent=2, ensure_ascii=False))
        return 0

    console = Console(stderr=True)
    if not hits:
        console.print("No matches.", style="yellow")
        return 0
    for hit in hits:
        style = "bold blue" if hit.type == "directory" else None
        suffix = "/" if hit.type == "directory" else ""
        console.print(f"{escape(hit.path)}{suffix}", style=style, highlight=False)
    return 0
