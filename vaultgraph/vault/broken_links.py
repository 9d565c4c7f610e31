"""Broken link detection with repair suggestions."""

from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from ..models import (
    MARKDOWN_SUFFIX,
    BrokenLink,
    BrokenLinkReport,
    Document,
    Link,
    strip_md,
)
from .parser import extract_links
from .paths import is_within
from .scanner import scan_vault
from .similarity import suggest


def candidate_paths(root: Path, document: Document, link: Link) -> list[Path]:
    """The two on-disk paths a link may refer to.

    Wiki links resolve from the vault root; markdown links resolve from
    the source document's folder.
    """
    if link.kind == "wiki":
        base = root
        target = link.path
        return [base / f"{target}{MARKDOWN_SUFFIX}", base / target]

    base = document.abs_path.parent
    target = unquote(link.path)
    return [base / target, base / f"{target}{MARKDOWN_SUFFIX}"]


def link_exists(root: Path, document: Document, link: Link) -> bool:
    """True if either candidate path exists inside the vault (file or folder)."""
    for candidate in candidate_paths(root, document, link):
        try:
            if is_within(root, candidate) and candidate.exists():
                return True
        except (OSError, RuntimeError):
            # Unresolvable names (too long, symlink loops) count as missing
            continue
    return False


def known_names(documents: list[Document]) -> list[str]:
    """Distinct document base names, first-seen order."""
    seen: dict[str, None] = {}
    for doc in documents:
        seen.setdefault(doc.name, None)
    return list(seen)


def check_document(root: Path, document: Document, names: list[str]) -> list[BrokenLink]:
    """Broken links of a single document."""
    results = []
    for link in extract_links(document.content):
        if link_exists(root, document, link):
            continue

        broken_name = strip_md(PurePosixPath(unquote(link.path)).name)
        results.append(
            BrokenLink(
                source=document.path,
                link_text=link.label,
                target=link.target,
                line=link.line,
                kind=link.kind,
                suggestions=suggest(broken_name, names),
            )
        )
    return results


def find_broken_links(root: Path) -> BrokenLinkReport:
    """Scan the vault and report every unresolvable reference.

    Args:
        root: Vault root directory

    Returns:
        BrokenLinkReport in scan order, each record carrying up to five
        similarly named notes as repair suggestions
    """
    root = root.resolve()
    scan = scan_vault(root)
    names = known_names(scan.documents)

    report = BrokenLinkReport(scan_errors=scan.errors)
    for document in scan.documents:
        report.broken_links.extend(check_document(root, document, names))
    return report
