"""Vault scanning, parsing, and link/tag graph analysis."""

from .backlinks import analyze_backlinks
from .broken_links import find_broken_links
from .moc import create_moc
from .notes import create_note_from_template, link_notes, read_note, search_files, update_note
from .parser import extract_links, extract_tags, parse_note
from .scanner import scan_vault
from .similarity import similarity
from .tags import list_tags, rename_tag
from .templates import TemplateEngine

__all__ = [
    "analyze_backlinks",
    "create_moc",
    "create_note_from_template",
    "extract_links",
    "extract_tags",
    "find_broken_links",
    "link_notes",
    "list_tags",
    "parse_note",
    "read_note",
    "rename_tag",
    "scan_vault",
    "search_files",
    "similarity",
    "TemplateEngine",
    "update_note",
]
