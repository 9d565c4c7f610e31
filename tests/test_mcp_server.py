from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from vaultgraph.config import VaultConfig
from vaultgraph.mcp.server import serve

from conftest import write_note

INITIALIZE = {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2024-11-05"}}


def _call(request_id: int, name: str, arguments: dict | None = None) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    }


def _run_lines(config: VaultConfig, *messages) -> list[dict]:
    raw = b"".join(
        (m if isinstance(m, bytes) else json.dumps(m).encode("utf-8")) + b"\n" for m in messages
    )
    out = io.BytesIO()
    assert serve(config, io.BytesIO(raw), out) == 0
    return [json.loads(line) for line in out.getvalue().splitlines() if line.strip()]


def _frame(message: dict) -> bytes:
    body = json.dumps(message).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


def _read_frames(data: bytes) -> list[dict]:
    messages = []
    while data:
        header, _, rest = data.partition(b"\r\n\r\n")
        length = int(header.split(b":", 1)[1])
        messages.append(json.loads(rest[:length]))
        data = rest[length:]
    return messages


@pytest.fixture
def config(linked_vault: Path) -> VaultConfig:
    write_note(linked_vault, "TEMPLATE/daily.md", "# {{title}}\n")
    return VaultConfig(vault_path=linked_vault.resolve())


def _text(response: dict) -> str:
    return response["result"]["content"][0]["text"]


def test_initialize_and_list_tools(config: VaultConfig) -> None:
    init, listed = _run_lines(config, INITIALIZE, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

    assert init["result"]["protocolVersion"] == "2024-11-05"
    assert init["result"]["serverInfo"]["name"] == "vaultgraph"
    names = {tool["name"] for tool in listed["result"]["tools"]}
    assert names == {
        "create_note_from_template",
        "list_templates",
        "read_note",
        "update_note",
        "list_tags",
        "rename_tag",
        "search_files",
        "link_notes",
        "find_broken_links",
        "analyze_backlinks",
        "create_moc",
    }


def test_tool_calls(config: VaultConfig) -> None:
    responses = _run_lines(
        config,
        INITIALIZE,
        _call(2, "read_note", {"notePath": "b.md"}),
        _call(3, "find_broken_links"),
        _call(4, "analyze_backlinks", {"targetNote": "b.md"}),
        _call(5, "create_note_from_template", {"templateName": "daily", "variables": {"title": "T"}, "outputPath": "d.md"}),
        _call(6, "link_notes", {"sourceNote": "d.md", "targetNote": "b.md", "insertPosition": 0}),
    )

    by_id = {r["id"]: r for r in responses}
    assert _text(by_id[2]) == "# B\n\nJust b.\n"
    assert json.loads(_text(by_id[3]))["totalCount"] == 1
    assert json.loads(_text(by_id[4]))["metrics"]["popularity"] == 1
    assert _text(by_id[5]) == "Created note 'd.md'"
    assert _text(by_id[6]) == "Added link to 'b.md' in 'd.md'"
    assert (config.vault_path / "d.md").read_text(encoding="utf-8") == "[[b|b]]\n# T\n"


def test_vault_errors_are_invalid_params(config: VaultConfig) -> None:
    _, escaped, missing_arg = _run_lines(
        config,
        INITIALIZE,
        _call(2, "read_note", {"notePath": "../secret.md"}),
        _call(3, "rename_tag", {"oldTag": "a"}),
    )

    assert escaped["error"]["code"] == -32602
    assert "outside the vault" in escaped["error"]["message"]
    assert missing_arg["error"] == {"code": -32602, "message": "Missing required argument: newTag"}


def test_tools_call_requires_initialize(config: VaultConfig) -> None:
    (response,) = _run_lines(config, _call(1, "list_tags"))
    assert response["error"]["code"] == -32602


def test_unknown_method_and_parse_error(config: VaultConfig) -> None:
    unknown, bad_json = _run_lines(config, {"jsonrpc": "2.0", "id": 7, "method": "nope"}, b"{not json")

    assert unknown["error"]["code"] == -32601
    assert bad_json["id"] is None
    assert bad_json["error"]["code"] == -32700


def test_notifications_get_no_response_and_exit_stops(config: VaultConfig) -> None:
    responses = _run_lines(
        config,
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "method": "exit"},
        {"jsonrpc": "2.0", "id": 2, "method": "ping"},
    )
    assert responses == [{"jsonrpc": "2.0", "id": 1, "result": {}}]


def test_content_length_framing_is_mirrored(config: VaultConfig) -> None:
    raw = _frame(INITIALIZE) + _frame(_call(2, "list_tags"))
    out = io.BytesIO()

    assert serve(config, io.BytesIO(raw), out) == 0

    data = out.getvalue()
    assert data.startswith(b"Content-Length: ")
    init, tags = _read_frames(data)
    assert init["id"] == 1
    assert json.loads(_text(tags)) == []


def test_body_that_is_not_utf8_is_a_parse_error(config: VaultConfig) -> None:
    bad = b"\x80\x81{}"
    raw = b"Content-Length: %d\r\n\r\n" % len(bad) + bad + _frame({"jsonrpc": "2.0", "id": 2, "method": "ping"})
    out = io.BytesIO()

    assert serve(config, io.BytesIO(raw), out) == 0

    parse_error, pong = _read_frames(out.getvalue())
    assert parse_error["id"] is None
    assert parse_error["error"]["code"] == -32700
    assert pong == {"jsonrpc": "2.0", "id": 2, "result": {}}


def test_non_object_message_is_an_invalid_request(config: VaultConfig) -> None:
    (response,) = _run_lines(config, b"[1, 2]")
    assert response["error"]["code"] == -32600
