"""Vault-wide tag listing and renaming."""

import logging
import re
from pathlib import Path

from ..errors import InvalidArgumentError
from ..models import TagRenameResult
from .parser import FRONTMATTER_PATTERN, extract_tags, normalize_tag
from .scanner import scan_vault

logger = logging.getLogger(__name__)

# One entry of a comma-separated tag list, keeping its whitespace and quoting
_ENTRY_PATTERN = re.compile(r"(\s*)(['\"]?)(#?)(.*?)\2(\s*)", re.DOTALL)

# Block list item under `tags:`
_ITEM_PATTERN = re.compile(r"^(\s*-\s*)(['\"]?)(#?)(.*?)\2(\s*)$")

_TAGS_KEY_PATTERN = re.compile(r"^tags:([ \t]*)(.*)$")


def tag_index(root: Path) -> dict[str, list[str]]:
    """Map each tag to the documents carrying it, tags sorted."""
    index: dict[str, list[str]] = {}
    for document in scan_vault(root.resolve()).documents:
        for tag in extract_tags(document.content):
            index.setdefault(tag, []).append(document.path)
    return dict(sorted(index.items()))


def list_tags(root: Path) -> list[str]:
    """Distinct tags across the vault, sorted lexicographically."""
    return list(tag_index(root))


def _prefixed(tag: str) -> str:
    tag = tag.strip()
    return tag if tag.startswith("#") else f"#{tag}"


def _rewrite_entries(entries: str, old_bare: str, new_bare: str) -> str:
    """Rename matching entries of a comma-separated list, preserving quotes."""
    parts = []
    for entry in entries.split(","):
        m = _ENTRY_PATTERN.fullmatch(entry)
        if m and m.group(4) == old_bare:
            lead, quote, hash_, _, trail = m.groups()
            entry = f"{lead}{quote}{hash_}{new_bare}{quote}{trail}"
        parts.append(entry)
    return ",".join(parts)


def _rewrite_metadata_tags(block: str, old_bare: str, new_bare: str) -> str:
    """Rename a tag inside the `tags` field of a metadata block."""
    lines = block.split("\n")
    in_block_list = False

    for i, line in enumerate(lines):
        if in_block_list:
            item = _ITEM_PATTERN.match(line)
            if item:
                lead, quote, hash_, value, trail = item.groups()
                if value == old_bare:
                    lines[i] = f"{lead}{quote}{hash_}{new_bare}{quote}{trail}"
                continue
            if line.strip() and not line[:1].isspace():
                in_block_list = False

        key = _TAGS_KEY_PATTERN.match(line)
        if not key:
            continue

        spacing, value = key.groups()
        stripped = value.strip()
        if not stripped:
            in_block_list = True
        elif stripped.startswith("[") and stripped.endswith("]"):
            open_at = value.index("[")
            close_at = value.rindex("]")
            inner = _rewrite_entries(value[open_at + 1 : close_at], old_bare, new_bare)
            lines[i] = f"tags:{spacing}{value[: open_at + 1]}{inner}{value[close_at:]}"
        else:
            lines[i] = f"tags:{spacing}{_rewrite_entries(value, old_bare, new_bare)}"

    return "\n".join(lines)


def rename_tag_in_content(content: str, old_tag: str, new_tag: str) -> str:
    """Return `content` with `old_tag` renamed to `new_tag`.

    Inline tags are only replaced as whole tokens: the old tag must be
    followed by whitespace or the end of the text.
    """
    old_tag = _prefixed(old_tag)
    new_tag = _prefixed(new_tag)

    inline = re.compile(re.escape(old_tag) + r"(?=\s|$)")
    updated = inline.sub(lambda _: new_tag, content)

    match = FRONTMATTER_PATTERN.match(updated)
    if match:
        block = match.group(1)
        rewritten = _rewrite_metadata_tags(block, old_tag[1:], new_tag[1:])
        if rewritten != block:
            updated = updated[: match.start(1)] + rewritten + updated[match.end(1) :]

    return updated


def rename_tag(root: Path, old_tag: str, new_tag: str) -> TagRenameResult:
    """Rename a tag in every document of the vault.

    Only documents that actually change are written back.

    Args:
        root: Vault root directory
        old_tag: Tag to replace ('#' optional)
        new_tag: Replacement tag ('#' optional)

    Returns:
        TagRenameResult listing the modified documents
    """
    old_normalized = normalize_tag(old_tag)
    new_normalized = normalize_tag(new_tag)
    if not old_normalized or not new_normalized:
        raise InvalidArgumentError("Both the old and the new tag must be non-empty")
    old_tag, new_tag = old_normalized, new_normalized
    result = TagRenameResult(old_tag=old_tag, new_tag=new_tag)

    for document in scan_vault(root.resolve()).documents:
        updated = rename_tag_in_content(document.content, old_tag, new_tag)
        if updated == document.content:
            continue
        document.abs_path.write_text(updated, encoding="utf-8")
        result.modified.append(document.path)
        logger.info("Renamed %s -> %s in %s", old_tag, new_tag, document.path)

    return result
