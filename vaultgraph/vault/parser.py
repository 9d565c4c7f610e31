"""Pattern-based Markdown parsing for tags, links, and metadata blocks."""

import re

import frontmatter
import yaml

from ..models import MARKDOWN_SUFFIX, Link, ParsedNote

# Inline hash tags: #tag, #nested/tag, #multi-word_tag
TAG_PATTERN = re.compile(r"#[\w\-/]+")

# Match [[target]] and [[target|display]]
WIKILINK_PATTERN = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")

# Match [label](target)
MDLINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

# Leading metadata block delimited by --- lines
FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

# Single-line flow list: tags: [a, "b", 'c']
TAGS_FLOW_PATTERN = re.compile(r"^tags:[ \t]*\[(.*?)\][ \t]*$", re.MULTILINE)

DESCRIPTION_PATTERN = re.compile(r"^description:[ \t]*[\"']?([^\"'\n]+)[\"']?", re.MULTILINE)


def normalize_tag(raw: str) -> str | None:
    """Normalize a tag to its '#'-prefixed form.

    Quote characters are removed; empty entries yield None.
    """
    tag = raw.strip().replace('"', "").replace("'", "").strip()
    if not tag or tag == "#":
        return None
    return tag if tag.startswith("#") else f"#{tag}"


def split_frontmatter(content: str) -> tuple[str | None, str]:
    """Split content into (metadata block text, remainder).

    The block text is None when the document has no leading '---' block.
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return None, content
    return match.group(1), content[match.end() :]


def _scan_metadata_block(block: str) -> dict:
    """Line-pattern reading of the fields we need, for blocks that are not valid YAML."""
    metadata: dict = {}
    tags_match = TAGS_FLOW_PATTERN.search(block)
    if tags_match:
        metadata["tags"] = tags_match.group(1).split(",")
    desc_match = DESCRIPTION_PATTERN.search(block)
    if desc_match:
        metadata["description"] = desc_match.group(1).strip()
    return metadata


def read_metadata(content: str) -> tuple[dict, str]:
    """Parse the leading metadata block.

    Returns:
        (metadata dict, body after the block). Invalid YAML or bad values fall
        back to line patterns for `tags` and `description`; it never raises.
    """
    block, body = split_frontmatter(content)
    if block is None:
        return {}, content

    try:
        metadata, _ = frontmatter.parse(content)
    except (yaml.YAMLError, ValueError):
        # Impossible dates such as 2024-13-45 raise a plain ValueError
        return _scan_metadata_block(block), body
    return dict(metadata), body


def metadata_tags(metadata: dict) -> list[str]:
    """Normalized tags from a parsed `tags` field (list or comma-separated string)."""
    raw = metadata.get("tags")
    if not raw:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    elif not isinstance(raw, (list, tuple)):
        raw = [raw]

    tags = []
    for entry in raw:
        if entry is None:
            continue
        tag = normalize_tag(str(entry))
        if tag:
            tags.append(tag)
    return tags


def extract_tags(content: str, metadata: dict | None = None) -> list[str]:
    """Extract the distinct, sorted, '#'-prefixed tags of one document.

    Unions inline #tags found anywhere in the text with the entries of
    the metadata `tags` field.
    """
    if metadata is None:
        metadata, _ = read_metadata(content)

    tags = set(TAG_PATTERN.findall(content))
    tags.update(metadata_tags(metadata))
    return sorted(tags)


def _is_internal(target: str) -> bool:
    return target.endswith(MARKDOWN_SUFFIX) or "://" not in target


def extract_links(content: str) -> list[Link]:
    """Extract wiki and internal markdown links with 1-based line numbers.

    Same-document anchors like [[#section]] or (#section) point nowhere
    else and are skipped.
    """
    links = []
    for index, line in enumerate(content.split("\n"), start=1):
        for match in WIKILINK_PATTERN.finditer(line):
            target = match.group(1).strip()
            if not target:
                continue
            label = (match.group(2) or target).strip()
            link = Link(kind="wiki", target=target, label=label, line=index)
            if not link.path:
                continue
            links.append(link)

        for match in MDLINK_PATTERN.finditer(line):
            label = match.group(1)
            target = match.group(2).strip().strip("<>")
            if not _is_internal(target):
                continue
            link = Link(kind="markdown", target=target, label=label, line=index)
            if not link.path:
                continue
            links.append(link)
    return links


def parse_note(content: str) -> ParsedNote:
    """Derive tags, links, and metadata from one document's text."""
    metadata, body = read_metadata(content)
    return ParsedNote(
        tags=extract_tags(content, metadata),
        links=extract_links(content),
        metadata=metadata,
        body=body,
    )
