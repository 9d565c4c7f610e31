from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from vaultgraph.cli import cli

from conftest import write_note


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, vault: Path, *args: str):
    return runner.invoke(cli, ["--vault", str(vault), *args], env={"OBSIDIAN_VAULT_PATH": None})


def test_broken_links_exit_code(runner: CliRunner, linked_vault: Path) -> None:
    result = _invoke(runner, linked_vault, "links", "broken", "--json")
    assert result.exit_code == 1
    assert json.loads(result.output)["totalCount"] == 1


def test_tags_list(runner: CliRunner, vault: Path) -> None:
    write_note(vault, "a.md", "#b #a")
    result = _invoke(runner, vault, "tags", "list", "--json")
    assert result.exit_code == 0
    assert json.loads(result.output) == ["#a", "#b"]


def test_vault_error_becomes_cli_error(runner: CliRunner, linked_vault: Path) -> None:
    result = _invoke(runner, linked_vault, "note", "read", "../outside.md")
    assert result.exit_code == 1
    assert "resolves outside the vault" in result.output


def test_missing_vault_directory(runner: CliRunner, tmp_path: Path) -> None:
    result = _invoke(runner, tmp_path / "absent", "tags", "list")
    assert result.exit_code == 2


def test_vault_from_environment(runner: CliRunner, linked_vault: Path) -> None:
    result = runner.invoke(
        cli,
        ["note", "read", "b.md"],
        env={"OBSIDIAN_VAULT_PATH": str(linked_vault)},
    )
    assert result.exit_code == 0
    assert result.output == "# B\n\nJust b.\n"


def test_vault_auto_detected(runner: CliRunner, linked_vault: Path, monkeypatch) -> None:
    (linked_vault / ".obsidian").mkdir()
    (linked_vault / "sub").mkdir()
    monkeypatch.chdir(linked_vault / "sub")

    result = runner.invoke(cli, ["note", "read", "b.md"], env={"OBSIDIAN_VAULT_PATH": None})
    assert result.exit_code == 0
    assert "Just b." in result.output


def test_note_update_requires_one_source(runner: CliRunner, vault: Path) -> None:
    result = _invoke(runner, vault, "note", "update", "x.md")
    assert result.exit_code == 2


def test_note_create_with_vars(runner: CliRunner, vault: Path) -> None:
    write_note(vault, "TEMPLATE/greet.md", "Hi {{who}}")

    result = _invoke(runner, vault, "note", "create", "greet", "out.md", "--var", "who=there")

    assert result.exit_code == 0
    assert (vault / "out.md").read_text(encoding="utf-8") == "Hi there"


def test_note_create_rejects_malformed_var(runner: CliRunner, vault: Path) -> None:
    write_note(vault, "TEMPLATE/greet.md", "Hi {{who}}")
    result = _invoke(runner, vault, "note", "create", "greet", "out.md", "--var", "nokey")
    assert result.exit_code == 2
    assert not (vault / "out.md").exists()


def test_links_add_at_line(runner: CliRunner, linked_vault: Path) -> None:
    write_note(linked_vault, "c.md", "first\nsecond")

    result = _invoke(runner, linked_vault, "links", "add", "c.md", "b.md", "--position", "1", "--text", "Bee")

    assert result.exit_code == 0
    assert (linked_vault / "c.md").read_text(encoding="utf-8") == "first\n[[b|Bee]]\nsecond"


def test_config_from_environment(tmp_path: Path, monkeypatch) -> None:
    from vaultgraph.config import VaultConfig

    monkeypatch.setenv("OBSIDIAN_VAULT_PATH", str(tmp_path))
    monkeypatch.setenv("OBSIDIAN_TEMPLATE_DIR", "tpl")

    config = VaultConfig.from_env()

    assert config.vault_path == tmp_path.resolve()
    assert config.templates_path == tmp_path.resolve() / "tpl"
