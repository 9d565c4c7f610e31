"""Data models for vault documents and graph analysis results."""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Literal

# Link syntaxes recognized by the parser
LinkKind = Literal["wiki", "markdown"]

# MOC grouping modes
GroupBy = Literal["none", "folder", "tag"]

MARKDOWN_SUFFIX = ".md"


def strip_md(path: str) -> str:
    """Drop a trailing .md extension, if any."""
    return path[: -len(MARKDOWN_SUFFIX)] if path.endswith(MARKDOWN_SUFFIX) else path


@dataclass
class Document:
    """A Markdown document read from the vault."""

    path: str  # relative to vault root, POSIX separators
    abs_path: Path
    content: str  # raw text, read fresh on every scan

    @property
    def name(self) -> str:
        """Base name without extension."""
        return strip_md(PurePosixPath(self.path).name)

    @property
    def folder(self) -> str:
        """Containing directory relative to the vault root ("" at root)."""
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent


@dataclass
class ScanResult:
    """Documents collected by a vault scan plus the number of entries skipped."""

    root: Path
    documents: list[Document] = field(default_factory=list)
    errors: int = 0  # unreadable files/directories skipped

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self):
        return iter(self.documents)


@dataclass(frozen=True)
class Link:
    """One outbound reference on one line of a document."""

    kind: LinkKind
    target: str  # raw target text
    label: str
    line: int  # 1-based

    @property
    def path(self) -> str:
        """Target with any #heading / #^block anchor removed."""
        return self.target.split("#", 1)[0].strip()

    @property
    def name(self) -> str:
        """Base name of the target path without extension."""
        return strip_md(PurePosixPath(self.path).name) if self.path else ""


@dataclass
class ParsedNote:
    """Everything the pattern-based parser derives from one document."""

    tags: list[str] = field(default_factory=list)  # sorted, '#'-prefixed, distinct
    links: list[Link] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)  # leading '---' block
    body: str = ""  # content after the metadata block


@dataclass(frozen=True)
class SimilarityCandidate:
    name: str
    score: float


@dataclass
class BrokenLink:
    """A reference that resolves to no existing document."""

    source: str
    link_text: str
    target: str
    line: int
    kind: LinkKind = "wiki"
    suggestions: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.source}:{self.line} - broken {self.kind} link to '{self.target}'"

    def to_dict(self) -> dict:
        return {
            "sourceFile": self.source,
            "linkText": self.link_text,
            "targetPath": self.target,
            "lineNumber": self.line,
            "linkType": self.kind,
            "suggestions": list(self.suggestions),
        }


@dataclass
class BrokenLinkReport:
    broken_links: list[BrokenLink] = field(default_factory=list)
    scan_errors: int = 0

    @property
    def total_count(self) -> int:
        return len(self.broken_links)

    def to_dict(self) -> dict:
        return {
            "brokenLinks": [b.to_dict() for b in self.broken_links],
            "totalCount": self.total_count,
        }


@dataclass(frozen=True)
class Backlink:
    """One inbound reference to an analyzed target."""

    source: str
    context: str
    kind: LinkKind
    line: int

    def to_dict(self) -> dict:
        return {
            "sourceFile": self.source,
            "context": self.context,
            "linkType": self.kind,
            "lineNumber": self.line,
        }


@dataclass
class BacklinkReport:
    target: str
    backlinks: list[Backlink] = field(default_factory=list)
    related_notes: list[str] = field(default_factory=list)
    total_documents: int = 0

    @property
    def popularity(self) -> int:
        return len(self.backlinks)

    @property
    def centrality(self) -> float:
        return self.popularity / self.total_documents if self.total_documents > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "targetNote": self.target,
            "backlinks": [b.to_dict() for b in self.backlinks],
            "relatedNotes": list(self.related_notes),
            "metrics": {"popularity": self.popularity, "centrality": self.centrality},
        }


@dataclass
class MocResult:
    title: str
    path: str
    document_count: int
    group_by: str = "none"
    groups: dict[str, list[str]] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return (
            f"Map of contents '{self.title}' written to '{self.path}' "
            f"({self.document_count} notes)"
        )


@dataclass
class TagRenameResult:
    old_tag: str
    new_tag: str
    modified: list[str] = field(default_factory=list)

    @property
    def modified_count(self) -> int:
        return len(self.modified)

    @property
    def message(self) -> str:
        return (
            f"Renamed tag '{self.old_tag}' to '{self.new_tag}'. "
            f"Updated {self.modified_count} file(s)."
        )


@dataclass(frozen=True)
class SearchHit:
    path: str
    type: Literal["file", "directory"]

    def to_dict(self) -> dict:
        return {"path": self.path, "type": self.type}


@dataclass
class TemplateInfo:
    name: str
    path: Path
    variables: list[str] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": str(self.path),
            "variables": [{"name": v, "required": True} for v in self.variables],
            "description": self.description,
        }
