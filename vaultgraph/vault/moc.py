"""Map of contents (index note) generation."""

import logging
from datetime import date
from pathlib import Path, PurePosixPath

from ..errors import InvalidArgumentError
from ..models import Document, GroupBy, MocResult, strip_md
from .parser import extract_tags, read_metadata
from .paths import resolve_in_vault
from .scanner import scan_vault

logger = logging.getLogger(__name__)

GROUP_BY_CHOICES = ("none", "folder", "tag")

DEFAULT_GROUP = "Contents"
ROOT_GROUP = "Root"
UNTAGGED_GROUP = "Untagged"

DESCRIPTION_LIMIT = 100


def collect_documents(documents: list[Document], source_pattern: str | None = None) -> list[Document]:
    """Documents whose relative path or file name contains `source_pattern`."""
    if not source_pattern:
        return list(documents)
    return [
        doc
        for doc in documents
        if source_pattern in doc.path or source_pattern in PurePosixPath(doc.path).name
    ]


def group_documents(documents: list[Document], group_by: GroupBy) -> dict[str, list[Document]]:
    """Group documents by folder or tag; groups keep first-seen order.

    With "tag", a document appears once under each tag it carries.
    """
    if group_by == "none":
        return {DEFAULT_GROUP: list(documents)}

    groups: dict[str, list[Document]] = {}
    for doc in documents:
        if group_by == "folder":
            keys = [doc.folder or ROOT_GROUP]
        else:
            keys = extract_tags(doc.content) or [UNTAGGED_GROUP]

        for key in keys:
            groups.setdefault(key, []).append(doc)
    return groups


def extract_description(content: str) -> str:
    """One-line description of a note.

    Prefers the `description` metadata field, else the first body line
    that is neither a heading nor a '---' rule, shortened to 100 chars.
    """
    metadata, body = read_metadata(content)
    description = metadata.get("description")
    if description:
        return str(description).strip()

    for line in body.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or stripped.startswith("---"):
            continue
        if len(stripped) > DESCRIPTION_LIMIT:
            return stripped[: DESCRIPTION_LIMIT - 3] + "..."
        return stripped
    return ""


def _entry(doc: Document, include_description: bool) -> str:
    line = f"- [[{strip_md(doc.path)}|{doc.name}]]"
    if include_description:
        description = extract_description(doc.content)
        if description:
            line += f" - {description}"
    return line


def render_moc(
    title: str,
    groups: dict[str, list[Document]],
    *,
    include_description: bool = False,
    generated_on: date | None = None,
) -> str:
    """Render grouped documents as a Markdown index note."""
    generated_on = generated_on or date.today()
    lines = [
        f"# {title}",
        "",
        f"*This map of contents was generated automatically - {generated_on.isoformat()}*",
        "",
    ]
    for group, docs in groups.items():
        lines.append(f"## {group}")
        lines.append("")
        lines.extend(_entry(doc, include_description) for doc in docs)
        lines.append("")
    return "\n".join(lines)


def create_moc(
    root: Path,
    title: str,
    target_path: str,
    source_pattern: str | None = None,
    group_by: GroupBy = "none",
    include_description: bool = False,
    *,
    generated_on: date | None = None,
) -> MocResult:
    """Generate a map of contents note and write it into the vault.

    Args:
        root: Vault root directory
        title: Heading of the generated note
        target_path: Vault-relative output path
        source_pattern: Only include notes whose path or name contains this
        group_by: "none", "folder", or "tag"
        include_description: Append a one-line description per entry
        generated_on: Date stamped in the note (defaults to today)

    Returns:
        MocResult with the number of notes included

    Raises:
        InvalidPathError: if target_path resolves outside the vault
        InvalidArgumentError: for an unknown grouping mode
    """
    if group_by not in GROUP_BY_CHOICES:
        raise InvalidArgumentError(
            f"Invalid group_by '{group_by}' (expected one of {', '.join(GROUP_BY_CHOICES)})"
        )

    root = root.resolve()
    output = resolve_in_vault(root, target_path, what="output path")

    scan = scan_vault(root)
    documents = [d for d in scan.documents if d.abs_path.resolve() != output]
    documents = collect_documents(documents, source_pattern)
    groups = group_documents(documents, group_by)

    content = render_moc(
        title,
        groups,
        include_description=include_description,
        generated_on=generated_on,
    )

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    logger.info("Wrote map of contents %s (%d notes)", target_path, len(documents))

    return MocResult(
        title=title,
        path=target_path,
        document_count=len(documents),
        group_by=group_by,
        groups={name: [d.path for d in docs] for name, docs in groups.items()},
    )
