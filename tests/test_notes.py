from pathlib import Path

import pytest

from vaultgraph.errors import AlreadyExistsError, InvalidArgumentError, InvalidPathError, NotFoundError
from vaultgraph.vault.notes import (
    create_note_from_template,
    link_notes,
    read_note,
    search_files,
    update_note,
)
from vaultgraph.vault.templates import TemplateEngine

from conftest import write_note


def test_read_note(linked_vault: Path):
    assert read_note(linked_vault, "b.md") == "# B\n\nJust b.\n"


def test_read_missing_note(vault: Path):
    with pytest.raises(NotFoundError):
        read_note(vault, "nope.md")


def test_read_outside_vault(vault: Path, tmp_path: Path):
    (tmp_path / "secret.md").write_text("secret", encoding="utf-8")
    with pytest.raises(InvalidPathError):
        read_note(vault, "../secret.md")


def test_update_note_creates_folders(vault: Path):
    message = update_note(vault, "deep/new/note.md", "hello")
    assert message == "Updated note 'deep/new/note.md'"
    assert (vault / "deep" / "new" / "note.md").read_text(encoding="utf-8") == "hello"


def test_update_outside_vault(vault: Path):
    with pytest.raises(InvalidPathError):
        update_note(vault, "../escape.md", "x")


class TestCreateFromTemplate:
    @pytest.fixture
    def engine(self, vault: Path) -> TemplateEngine:
        write_note(vault, "TEMPLATE/idea.md", "# {{title}}\n{{date}} {{missing}}\n")
        return TemplateEngine(vault / "TEMPLATE")

    def test_creates_rendered_note(self, vault: Path, engine: TemplateEngine):
        message = create_note_from_template(vault, engine, "idea", {"title": "Plan"}, "ideas/plan.md")

        assert message == "Created note 'ideas/plan.md'"
        text = (vault / "ideas" / "plan.md").read_text(encoding="utf-8")
        assert text.startswith("# Plan\n")
        assert "{{date}}" not in text
        assert "{{missing}}" in text

    def test_refuses_to_overwrite(self, vault: Path, engine: TemplateEngine):
        write_note(vault, "plan.md", "keep me")
        with pytest.raises(AlreadyExistsError):
            create_note_from_template(vault, engine, "idea", {"title": "Plan"}, "plan.md")
        assert (vault / "plan.md").read_text(encoding="utf-8") == "keep me"

    def test_overwrite(self, vault: Path, engine: TemplateEngine):
        write_note(vault, "plan.md", "old")
        create_note_from_template(vault, engine, "idea", {"title": "New"}, "plan.md", overwrite=True)
        assert (vault / "plan.md").read_text(encoding="utf-8").startswith("# New\n")

    def test_missing_template(self, vault: Path, engine: TemplateEngine):
        with pytest.raises(NotFoundError):
            create_note_from_template(vault, engine, "absent", {}, "x.md")


class TestSearchFiles:
    @pytest.fixture
    def tree(self, vault: Path) -> Path:
        write_note(vault, "a.md", "a")
        write_note(vault, "docs/guide.md", "g")
        (vault / "docs" / "img").mkdir()
        (vault / "docs" / "img" / "x.png").write_bytes(b"\x89PNG")
        return vault

    def test_lists_folders_first(self, tree: Path):
        hits = search_files(tree)
        assert [(h.path, h.type) for h in hits] == [
            ("docs", "directory"),
            ("docs/img", "directory"),
            ("a.md", "file"),
            ("docs/guide.md", "file"),
            ("docs/img/x.png", "file"),
        ]

    def test_pattern_filters_names(self, tree: Path):
        assert [h.path for h in search_files(tree, pattern="guide")] == ["docs/guide.md"]

    def test_search_below_folder(self, tree: Path):
        assert [h.path for h in search_files(tree, "docs")] == [
            "docs/img",
            "docs/guide.md",
            "docs/img/x.png",
        ]

    def test_search_outside_vault(self, tree: Path):
        with pytest.raises(InvalidPathError):
            search_files(tree, "..")


class TestLinkNotes:
    @pytest.fixture
    def pair(self, vault: Path) -> Path:
        write_note(vault, "a.md", "line1\nline2")
        write_note(vault, "sub/b.md", "# B")
        return vault

    def test_appends_link_at_end(self, pair: Path):
        message = link_notes(pair, "a.md", "sub/b.md")

        assert message == "Added link to 'sub/b.md' in 'a.md'"
        assert (pair / "a.md").read_text(encoding="utf-8") == "line1\nline2\n[[sub/b|b]]"

    def test_custom_text_and_line_position(self, pair: Path):
        link_notes(pair, "a.md", "sub/b.md", link_text="Bee", position="1")
        assert (pair / "a.md").read_text(encoding="utf-8") == "line1\n[[sub/b|Bee]]\nline2"

    def test_cursor_behaves_like_end(self, pair: Path):
        link_notes(pair, "a.md", "sub/b.md", position="cursor")
        assert (pair / "a.md").read_text(encoding="utf-8").endswith("\n[[sub/b|b]]")

    def test_existing_link_is_not_duplicated(self, pair: Path):
        link_notes(pair, "a.md", "sub/b.md")
        before = (pair / "a.md").read_text(encoding="utf-8")

        message = link_notes(pair, "a.md", "sub/b.md", link_text="Other")

        assert message.startswith("Warning:")
        assert (pair / "a.md").read_text(encoding="utf-8") == before

    @pytest.mark.parametrize("position", [5, "-1", "middle"])
    def test_invalid_position(self, pair: Path, position):
        with pytest.raises(InvalidArgumentError):
            link_notes(pair, "a.md", "sub/b.md", position=position)
        assert (pair / "a.md").read_text(encoding="utf-8") == "line1\nline2"

    def test_missing_notes(self, pair: Path):
        with pytest.raises(NotFoundError):
            link_notes(pair, "a.md", "nope.md")
        with pytest.raises(NotFoundError):
            link_notes(pair, "nope.md", "a.md")
