"""Recursive vault scanning."""

import logging
from pathlib import Path
from typing import Iterator

from ..models import MARKDOWN_SUFFIX, Document, ScanResult

logger = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def iter_markdown_files(root: Path, result: ScanResult | None = None) -> Iterator[Path]:
    """Yield Markdown files under `root` depth-first, in name order.

    Hidden entries and symlinked directories are not descended into.
    Unreadable directories are skipped; when `result` is given the
    skip is counted in `result.errors`.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            entries = sorted(current.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            if result is not None:
                result.errors += 1
            continue

        subdirs = []
        for entry in entries:
            if _is_hidden(entry):
                continue
            try:
                if entry.is_dir():
                    if not entry.is_symlink():
                        subdirs.append(entry)
                elif entry.is_file() and entry.name.endswith(MARKDOWN_SUFFIX):
                    yield entry
            except OSError as e:
                logger.debug("Skipping %s: %s", entry, e)
                if result is not None:
                    result.errors += 1

        # Reverse so the first subdirectory is visited first
        stack.extend(reversed(subdirs))


def load_document(path: Path, root: Path) -> Document:
    """Read one Markdown file into a Document."""
    content = path.read_text(encoding="utf-8")
    rel = path.relative_to(root).as_posix()
    return Document(path=rel, abs_path=path, content=content)


def scan_vault(root: Path) -> ScanResult:
    """Read every Markdown document in the vault.

    Read failures never abort the scan: the failing file or directory is
    skipped and counted in `ScanResult.errors`.

    Args:
        root: Vault root directory

    Returns:
        ScanResult with documents in traversal order
    """
    result = ScanResult(root=root)

    for md_file in iter_markdown_files(root, result):
        try:
            result.documents.append(load_document(md_file, root))
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping unreadable file %s: %s", md_file, e)
            result.errors += 1

    if result.errors:
        logger.info("Scanned %s: %d documents, %d entries skipped", root, len(result), result.errors)
    return result
