"""CLI entrypoint for vaultgraph."""

import sys
from pathlib import Path

import click

from . import __version__
from .config import DEFAULT_TEMPLATE_DIR, TEMPLATE_DIR_ENV, VAULT_ENV, VaultConfig
from .errors import VaultError


def _auto_detect_vault(start: Path) -> Path | None:
    """Find an Obsidian vault (a folder holding .obsidian) by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / ".obsidian").is_dir():
            return p
    return None


def _exit_with(func, *args, **kwargs) -> None:
    """Run a command implementation and exit with its code.

    Vault errors become a single generic CLI failure carrying their message.
    """
    try:
        exit_code = func(*args, **kwargs)
    except VaultError as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


def _config(ctx: click.Context) -> VaultConfig:
    return ctx.obj["config"]


@click.group()
@click.version_option(__version__, prog_name="vaultgraph")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    envvar=VAULT_ENV,
    help=f"Path to the vault root (env {VAULT_ENV}; defaults to the enclosing Obsidian vault)",
)
@click.option(
    "--template-dir",
    default=DEFAULT_TEMPLATE_DIR,
    show_default=True,
    envvar=TEMPLATE_DIR_ENV,
    help="Template folder, relative to the vault root",
)
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, template_dir: str) -> None:
    """vaultgraph - link and tag graph tooling for Markdown vaults.

    Find broken links, analyze backlinks, manage tags, and generate
    maps of contents.
    """
    ctx.ensure_object(dict)
    if vault is None:
        detected = _auto_detect_vault(Path.cwd())
        if detected is None:
            raise click.ClickException(
                f"Vault not found. Pass --vault /path/to/vault, set {VAULT_ENV}, or run from inside a vault."
            )
        vault = detected

    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    ctx.obj["config"] = VaultConfig(vault_path=vault.resolve(), template_dir=template_dir)


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------


@cli.group()
def tags() -> None:
    """Tag listing and renaming."""
    pass


@tags.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output tags as JSON")
@click.pass_context
def tags_list(ctx: click.Context, output_json: bool) -> None:
    """List every tag in the vault, sorted."""
    from .commands.tags_cmd import run_list_tags

    _exit_with(run_list_tags, _config(ctx).vault_path, output_json)


@tags.command("rename")
@click.argument("old_tag")
@click.argument("new_tag")
@click.pass_context
def tags_rename(ctx: click.Context, old_tag: str, new_tag: str) -> None:
    """Rename OLD_TAG to NEW_TAG in every note ('#' optional).

    Examples:

        vaultgraph tags rename proj project
    """
    from .commands.tags_cmd import run_rename_tag

    _exit_with(run_rename_tag, _config(ctx).vault_path, old_tag, new_tag)


# -----------------------------------------------------------------------------
# Links
# -----------------------------------------------------------------------------


@cli.group()
def links() -> None:
    """Link inspection and repair."""
    pass


@links.command("broken")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def links_broken(ctx: click.Context, output_json: bool) -> None:
    """Find links that resolve to no note, with repair suggestions.

    Exits with status 1 when broken links are found.
    """
    from .commands.links_cmd import run_broken_links

    _exit_with(run_broken_links, _config(ctx).vault_path, output_json)


@links.command("backlinks")
@click.argument("note")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def links_backlinks(ctx: click.Context, note: str, output_json: bool) -> None:
    """Show notes linking to NOTE, with popularity and centrality."""
    from .commands.links_cmd import run_backlinks

    _exit_with(run_backlinks, _config(ctx).vault_path, note, output_json)


@links.command("add")
@click.argument("source")
@click.argument("target")
@click.option("--text", "link_text", default=None, help="Display text (defaults to the target's name)")
@click.option(
    "--position",
    default="end",
    show_default=True,
    help="Where to insert: 'end', 'cursor', or a 0-based line index",
)
@click.pass_context
def links_add(ctx: click.Context, source: str, target: str, link_text: str | None, position: str) -> None:
    """Add a [[TARGET]] link to SOURCE unless one already exists."""
    from .commands.links_cmd import run_link_notes

    _exit_with(run_link_notes, _config(ctx).vault_path, source, target, link_text, position)


# -----------------------------------------------------------------------------
# Maps of contents
# -----------------------------------------------------------------------------


@cli.command()
@click.argument("title")
@click.argument("target")
@click.option("--pattern", "source_pattern", default=None, help="Only include notes whose path contains this")
@click.option(
    "--group-by",
    type=click.Choice(["none", "folder", "tag"]),
    default="none",
    show_default=True,
    help="How to group the entries",
)
@click.option("--describe", "include_description", is_flag=True, help="Add a one-line description per note")
@click.pass_context
def moc(
    ctx: click.Context,
    title: str,
    target: str,
    source_pattern: str | None,
    group_by: str,
    include_description: bool,
) -> None:
    """Generate a map of contents titled TITLE at TARGET.

    Examples:

        vaultgraph moc "Projects" MOCs/projects.md --pattern projects/ --group-by tag
    """
    from .commands.moc_cmd import run_moc

    _exit_with(
        run_moc,
        _config(ctx).vault_path,
        title,
        target,
        source_pattern=source_pattern,
        group_by=group_by,
        include_description=include_description,
    )


# -----------------------------------------------------------------------------
# Notes, templates, search
# -----------------------------------------------------------------------------


@cli.command()
@click.argument("search_path", required=False, default="")
@click.option("--pattern", default="", help="Substring the file or folder name must contain")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def search(ctx: click.Context, search_path: str, pattern: str, output_json: bool) -> None:
    """List files and folders under SEARCH_PATH."""
    from .commands.notes_cmd import run_search

    _exit_with(run_search, _config(ctx).vault_path, search_path, pattern, output_json)


@cli.group()
def note() -> None:
    """Read, update, and create single notes."""
    pass


@note.command("read")
@click.argument("path")
@click.pass_context
def note_read(ctx: click.Context, path: str) -> None:
    """Print the content of the note at PATH."""
    from .commands.notes_cmd import run_read_note

    _exit_with(run_read_note, _config(ctx).vault_path, path)


@note.command("update")
@click.argument("path")
@click.option("--content", default=None, help="New note content")
@click.option(
    "--file",
    "source_file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Read new content from this file ('-' for stdin)",
)
@click.pass_context
def note_update(ctx: click.Context, path: str, content: str | None, source_file) -> None:
    """Replace the content of the note at PATH."""
    from .commands.notes_cmd import run_update_note

    if (content is None) == (source_file is None):
        raise click.UsageError("Pass exactly one of --content or --file")
    if source_file is not None:
        content = source_file.read()

    _exit_with(run_update_note, _config(ctx).vault_path, path, content)


def _parse_vars(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    variables = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{item}'", ctx=ctx, param=param)
        variables[key] = value
    return variables


@note.command("create")
@click.argument("template")
@click.argument("output")
@click.option("--var", "variables", multiple=True, callback=_parse_vars, help="Template variable KEY=VALUE (repeatable)")
@click.option("--overwrite", is_flag=True, help="Replace the note if it already exists")
@click.pass_context
def note_create(ctx: click.Context, template: str, output: str, variables: dict[str, str], overwrite: bool) -> None:
    """Create OUTPUT from TEMPLATE.

    Examples:

        vaultgraph note create meeting notes/2024-05-01.md --var topic=Roadmap
    """
    from .commands.notes_cmd import run_create_note

    config = _config(ctx)
    _exit_with(
        run_create_note,
        config.vault_path,
        config.templates_path,
        template,
        output,
        variables,
        overwrite=overwrite,
    )


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output templates as JSON")
@click.pass_context
def templates(ctx: click.Context, output_json: bool) -> None:
    """List available note templates and their variables."""
    from .commands.notes_cmd import run_list_templates

    _exit_with(run_list_templates, _config(ctx).templates_path, output_json)


# -----------------------------------------------------------------------------
# MCP server
# -----------------------------------------------------------------------------


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Serve vault tools over MCP (JSON-RPC on stdio)."""
    from .mcp.server import serve_stdio

    sys.exit(serve_stdio(_config(ctx)))


if __name__ == "__main__":
    cli()
