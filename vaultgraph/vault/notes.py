"""Single-note operations: read, update, create from template, link, search."""

import logging
import re
from pathlib import Path, PurePosixPath

from ..errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from ..models import SearchHit, strip_md
from .paths import resolve_in_vault
from .templates import TemplateEngine

logger = logging.getLogger(__name__)


def read_note(root: Path, note_path: str) -> str:
    """Return the raw text of a note.

    Raises:
        InvalidPathError: if the path resolves outside the vault
        NotFoundError: if the note does not exist
    """
    path = resolve_in_vault(root, note_path, what="note path")
    if not path.is_file():
        raise NotFoundError(f"Note '{note_path}' not found")
    return path.read_text(encoding="utf-8")


def update_note(root: Path, note_path: str, content: str) -> str:
    """Overwrite a note with `content`, creating parent folders as needed."""
    path = resolve_in_vault(root, note_path, what="note path")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Updated note %s", note_path)
    return f"Updated note '{note_path}'"


def create_note_from_template(
    root: Path,
    engine: TemplateEngine,
    template_name: str,
    variables: dict,
    output_path: str,
    overwrite: bool = False,
) -> str:
    """Render a template into a new note.

    Raises:
        InvalidPathError: if output_path resolves outside the vault
        NotFoundError: if the template does not exist
        AlreadyExistsError: if the note exists and overwrite is False
    """
    path = resolve_in_vault(root, output_path, what="output path")
    content = engine.render(template_name, variables)

    if path.exists() and not overwrite:
        raise AlreadyExistsError(f"Note '{output_path}' already exists")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Created note %s from template %s", output_path, template_name)
    return f"Created note '{output_path}'"


def search_files(root: Path, search_path: str = "", pattern: str = "") -> list[SearchHit]:
    """List files and folders below `search_path` whose name contains `pattern`.

    Results are sorted folders first, then by path. Unreadable folders
    are skipped.
    """
    base = resolve_in_vault(root, search_path or ".", what="search path")
    hits: list[SearchHit] = []

    def walk(directory: Path, rel: PurePosixPath) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            return

        for entry in entries:
            entry_rel = rel / entry.name
            matched = not pattern or pattern in entry.name
            if entry.is_dir():
                if matched:
                    hits.append(SearchHit(path=entry_rel.as_posix(), type="directory"))
                if not entry.is_symlink():
                    walk(entry, entry_rel)
            elif entry.is_file() and matched:
                hits.append(SearchHit(path=entry_rel.as_posix(), type="file"))

    walk(base, PurePosixPath(search_path.strip("/")) if search_path else PurePosixPath())
    hits.sort(key=lambda h: (h.type != "directory", h.path))
    return hits


def _insert_line(content: str, position: int, line: str) -> str:
    lines = content.split("\n")
    if position < 0 or position > len(lines):
        raise InvalidArgumentError(
            f"Invalid insert position {position} (note has {len(lines)} lines)"
        )
    lines.insert(position, line)
    return "\n".join(lines)


def link_notes(
    root: Path,
    source_note: str,
    target_note: str,
    link_text: str | None = None,
    position: str | int = "end",
) -> str:
    """Add a [[target|text]] link to the source note.

    `position` is "end", "cursor" (same as "end"), or a 0-based line
    index to insert before. Nothing is written if the source already
    links to the target.

    Raises:
        InvalidPathError: if either path resolves outside the vault
        NotFoundError: if either note does not exist
        InvalidArgumentError: for an out-of-range or unknown position
    """
    source = resolve_in_vault(root, source_note, what="source note path")
    target = resolve_in_vault(root, target_note, what="target note path")
    if not source.is_file():
        raise NotFoundError(f"Source note '{source_note}' not found")
    if not target.is_file():
        raise NotFoundError(f"Target note '{target_note}' not found")

    content = source.read_text(encoding="utf-8")
    target_ref = strip_md(PurePosixPath(target_note).as_posix())
    display = link_text or strip_md(PurePosixPath(target_note).name)
    wiki_link = f"[[{target_ref}|{display}]]"

    existing = re.compile(r"\[\[" + re.escape(target_ref) + r"(\|[^\]]+)?\]\]")
    if existing.search(content):
        return f"Warning: '{source_note}' already links to '{target_note}'; no link added"

    if isinstance(position, str) and position.lstrip("-").isdigit():
        position = int(position)

    if isinstance(position, int):
        updated = _insert_line(content, position, wiki_link)
    elif position in ("end", "cursor"):
        updated = f"{content}\n{wiki_link}"
    else:
        raise InvalidArgumentError(f"Invalid insert position '{position}'")

    source.write_text(updated, encoding="utf-8")
    logger.info("Linked %s -> %s", source_note, target_note)
    return f"Added link to '{target_note}' in '{source_note}'"
