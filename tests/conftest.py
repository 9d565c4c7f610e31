"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest


def write_note(vault: Path, rel_path: str, content: str) -> Path:
    """Write a note into the vault, creating folders as needed."""
    path = vault / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """An empty vault root."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def linked_vault(vault: Path) -> Path:
    """a.md links to the existing b.md and to a missing note."""
    write_note(vault, "a.md", "See [[b]] and [[missing]]")
    write_note(vault, "b.md", "# B\n\nJust b.\n")
    return vault
