"""Backlink discovery and popularity/centrality metrics."""

from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from ..errors import NotFoundError
from ..models import MARKDOWN_SUFFIX, Backlink, BacklinkReport, Document, Link, strip_md
from .parser import extract_links
from .paths import relative_posix, resolve_in_vault
from .scanner import scan_vault

CONTEXT_WIDTH = 50
ELLIPSIS = "..."


def extract_context(line: str, width: int = CONTEXT_WIDTH) -> str:
    """A window of `width` characters centred on `line`.

    Ellipses mark the edges where the line was cut; lines shorter than
    the window come back whole. The result is trimmed.
    """
    start = max(0, (len(line) - width) // 2)
    end = min(len(line), start + width)

    context = line[start:end]
    if start > 0:
        context = ELLIPSIS + context
    if end < len(line):
        context = context + ELLIPSIS
    return context.strip()


def _resolve_target(root: Path, target_note: str) -> Path:
    target = resolve_in_vault(root, target_note, what="target note path")
    if target.is_file():
        return target
    if not target_note.endswith(MARKDOWN_SUFFIX):
        with_suffix = resolve_in_vault(root, f"{target_note}{MARKDOWN_SUFFIX}", what="target note path")
        if with_suffix.is_file():
            return with_suffix
    raise NotFoundError(f"Target note '{target_note}' not found")


def links_to(document: Document, link: Link, target: Path, target_rel: str) -> bool:
    """True if `link` (found in `document`) refers to the note at `target`."""
    path = unquote(link.path) if link.kind == "markdown" else link.path
    if not path:
        return False

    if path == target_rel or strip_md(path) == strip_md(target_rel):
        return True
    if strip_md(PurePosixPath(path).name) == strip_md(PurePosixPath(target_rel).name):
        return True

    if link.kind == "markdown":
        base = document.abs_path.parent / path
        for candidate in (base, base.with_name(base.name + MARKDOWN_SUFFIX)):
            try:
                if candidate.resolve() == target:
                    return True
            except (OSError, RuntimeError):
                continue
    return False


def analyze_backlinks(root: Path, target_note: str) -> BacklinkReport:
    """Find every reference to `target_note` from other documents.

    Args:
        root: Vault root directory
        target_note: Vault-relative path of the note to analyze

    Returns:
        BacklinkReport with one record per matching link, the distinct
        referencing notes, and popularity/centrality metrics

    Raises:
        InvalidPathError: if the target resolves outside the vault
        NotFoundError: if the target does not exist
    """
    root = root.resolve()
    target = _resolve_target(root, target_note)
    target_rel = relative_posix(root, target)

    scan = scan_vault(root)
    report = BacklinkReport(target=target_note, total_documents=len(scan))

    for document in scan.documents:
        if document.abs_path.resolve() == target:
            continue

        lines = document.content.split("\n")
        for link in extract_links(document.content):
            if not links_to(document, link, target, target_rel):
                continue
            report.backlinks.append(
                Backlink(
                    source=document.path,
                    context=extract_context(lines[link.line - 1]),
                    kind=link.kind,
                    line=link.line,
                )
            )
            if document.path not in report.related_notes:
                report.related_notes.append(document.path)

    return report
