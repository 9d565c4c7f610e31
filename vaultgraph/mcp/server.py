"""MCP server exposing vault tools over stdio.

Implements a minimal MCP-over-stdio JSON-RPC loop. Framing (LSP-style
Content-Length headers or newline-delimited JSON) is detected from the
first message and mirrored in responses.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from .. import __version__
from ..config import DEFAULT_TEMPLATE_DIR, DEFAULT_VAULT, TEMPLATE_DIR_ENV, VAULT_ENV, VaultConfig
from ..errors import InvalidArgumentError
from ..vault.backlinks import analyze_backlinks
from ..vault.broken_links import find_broken_links
from ..vault.moc import GROUP_BY_CHOICES, create_moc
from ..vault.notes import create_note_from_template, link_notes, read_note, search_files, update_note
from ..vault.tags import list_tags, rename_tag
from ..vault.templates import TemplateEngine

logger = logging.getLogger(__name__)

_DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class MethodNotFound(Exception):
    """The request names a method this server does not implement."""


def _jsonrpc_error(code: int, message: str, *, request_id: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _jsonrpc_result(result: Any, *, request_id: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


class StdioFraming:
    """Message transport over a pair of byte streams.

    A client whose first message carries a Content-Length header gets
    header-framed replies; otherwise every message is one line of JSON.
    """

    HEADER = b"content-length:"

    def __init__(self, stdin: Any, stdout: Any):
        self.stdin = stdin
        self.stdout = stdout
        self.headers_mode: bool | None = None

    def _next_nonblank_line(self) -> bytes:
        line = self.stdin.readline()
        while line and not line.strip():
            line = self.stdin.readline()
        return line

    def _content_length(self, first: bytes) -> int:
        """Consume a header block starting at `first`; 0 if no usable length."""
        length = 0
        line = first
        while line.strip():
            name, sep, value = line.partition(b":")
            if sep and name.strip().lower() == b"content-length":
                try:
                    length = int(value.strip())
                except ValueError:
                    length = 0
            line = self.stdin.readline()
        return length

    def read(self) -> bytes | None:
        """Raw payload of the next message; None at end of input."""
        first = self._next_nonblank_line()
        if not first:
            return None

        if first.lower().startswith(self.HEADER):
            if self.headers_mode is None:
                self.headers_mode = True
            length = self._content_length(first)
            return self.stdin.read(length) if length > 0 else None

        if self.headers_mode is None:
            self.headers_mode = False
        return first

    def write(self, message: dict[str, Any]) -> None:
        payload = json.dumps(message, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        if self.headers_mode is False:
            self.stdout.write(payload + b"\n")
        else:
            # Header framing until the client has shown otherwise
            self.stdout.write(b"Content-Length: %d\r\n\r\n" % len(payload) + payload)
        self.stdout.flush()


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return {"name": name, "description": description, "inputSchema": schema}


def _tool_defs() -> list[dict[str, Any]]:
    note_path = {"type": "string", "description": "Note path relative to the vault root"}
    return [
        _tool(
            "create_note_from_template",
            "Create a note from a template in the template folder.",
            {
                "templateName": {"type": "string", "description": "Template name without .md"},
                "variables": {"type": "object", "description": "Values for {{variable}} placeholders"},
                "outputPath": note_path,
                "overwrite": {"type": "boolean", "default": False},
            },
            ["templateName", "variables", "outputPath"],
        ),
        _tool("list_templates", "List available templates and their variables.", {}),
        _tool("read_note", "Read the content of a note.", {"notePath": note_path}, ["notePath"]),
        _tool(
            "update_note",
            "Replace the content of a note.",
            {"notePath": note_path, "content": {"type": "string"}},
            ["notePath", "content"],
        ),
        _tool("list_tags", "List every tag in the vault.", {}),
        _tool(
            "rename_tag",
            "Rename a tag in every note of the vault.",
            {"oldTag": {"type": "string"}, "newTag": {"type": "string"}},
            ["oldTag", "newTag"],
        ),
        _tool(
            "search_files",
            "Search files and folders by name.",
            {
                "searchPath": {"type": "string", "default": ""},
                "pattern": {"type": "string", "default": ""},
            },
        ),
        _tool(
            "link_notes",
            "Add a wiki link from one note to another.",
            {
                "sourceNote": note_path,
                "targetNote": note_path,
                "linkText": {"type": "string"},
                "insertPosition": {
                    "oneOf": [
                        {"type": "string", "enum": ["end", "cursor"]},
                        {"type": "integer", "minimum": 0},
                    ],
                    "default": "end",
                },
            },
            ["sourceNote", "targetNote"],
        ),
        _tool("find_broken_links", "Find broken links and suggest repairs.", {}),
        _tool(
            "analyze_backlinks",
            "List notes linking to a note, with popularity and centrality.",
            {"targetNote": note_path},
            ["targetNote"],
        ),
        _tool(
            "create_moc",
            "Generate a map of contents note.",
            {
                "title": {"type": "string"},
                "targetPath": note_path,
                "sourcePattern": {"type": "string"},
                "groupBy": {"type": "string", "enum": list(GROUP_BY_CHOICES), "default": "none"},
                "includeDescription": {"type": "boolean", "default": False},
            },
            ["title", "targetPath"],
        ),
    ]


def _as_text(text: str) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def _as_tool_text(obj: Any) -> dict[str, Any]:
    return _as_text(json.dumps(obj, ensure_ascii=False, indent=2))


def _require_str(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"Missing required argument: {key}")
    return value


def _optional_str(arguments: dict[str, Any], key: str, default: str | None = None) -> str | None:
    value = arguments.get(key, default)
    if value is not None and not isinstance(value, str):
        raise InvalidArgumentError(f"{key} must be a string")
    return value


def _handle_tool_call(config: VaultConfig, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    root = config.vault_path

    if name == "create_note_from_template":
        variables = arguments.get("variables") or {}
        if not isinstance(variables, dict):
            raise InvalidArgumentError("variables must be an object")
        message = create_note_from_template(
            root,
            TemplateEngine(config.templates_path),
            _require_str(arguments, "templateName"),
            variables,
            _require_str(arguments, "outputPath"),
            overwrite=bool(arguments.get("overwrite", False)),
        )
        return _as_text(message)

    if name == "list_templates":
        templates = TemplateEngine(config.templates_path).list_templates()
        return _as_tool_text([t.to_dict() for t in templates])

    if name == "read_note":
        return _as_text(read_note(root, _require_str(arguments, "notePath")))

    if name == "update_note":
        content = arguments.get("content")
        if not isinstance(content, str):
            raise InvalidArgumentError("content must be a string")
        return _as_text(update_note(root, _require_str(arguments, "notePath"), content))

    if name == "list_tags":
        return _as_tool_text(list_tags(root))

    if name == "rename_tag":
        result = rename_tag(root, _require_str(arguments, "oldTag"), _require_str(arguments, "newTag"))
        return _as_text(result.message)

    if name == "search_files":
        hits = search_files(
            root,
            _optional_str(arguments, "searchPath", "") or "",
            _optional_str(arguments, "pattern", "") or "",
        )
        return _as_tool_text([h.to_dict() for h in hits])

    if name == "link_notes":
        position = arguments.get("insertPosition", "end")
        if not isinstance(position, (str, int)) or isinstance(position, bool):
            raise InvalidArgumentError("insertPosition must be 'end', 'cursor', or a line number")
        message = link_notes(
            root,
            _require_str(arguments, "sourceNote"),
            _require_str(arguments, "targetNote"),
            _optional_str(arguments, "linkText"),
            position,
        )
        return _as_text(message)

    if name == "find_broken_links":
        return _as_tool_text(find_broken_links(root).to_dict())

    if name == "analyze_backlinks":
        return _as_tool_text(analyze_backlinks(root, _require_str(arguments, "targetNote")).to_dict())

    if name == "create_moc":
        result = create_moc(
            root,
            _require_str(arguments, "title"),
            _require_str(arguments, "targetPath"),
            source_pattern=_optional_str(arguments, "sourcePattern"),
            group_by=_optional_str(arguments, "groupBy", "none") or "none",
            include_description=bool(arguments.get("includeDescription", False)),
        )
        return _as_text(result.message)

    raise InvalidArgumentError(f"Unknown tool: {name}")


def _server_info() -> dict[str, Any]:
    return {"name": "vaultgraph", "version": __version__}


def _dispatch(config: VaultConfig, method: str | None, params: Any, state: dict[str, bool]) -> Any:
    """Result payload for one request; raises ValueError for bad requests."""
    if method == "initialize":
        state["initialized"] = True
        requested_version = params.get("protocolVersion") if isinstance(params, dict) else None
        protocol_version = (
            requested_version.strip()
            if isinstance(requested_version, str) and requested_version.strip()
            else _DEFAULT_PROTOCOL_VERSION
        )
        return {
            "protocolVersion": protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": _server_info(),
        }
    if method == "shutdown":
        return None
    if method == "ping":
        return {}
    if method == "tools/list":
        return {"tools": _tool_defs()}
    if method == "tools/call":
        if not state.get("initialized"):
            raise ValueError("Server not initialized")
        if not isinstance(params, dict):
            raise ValueError("params must be an object")
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(tool_name, str):
            raise ValueError("tools/call requires name")
        if not isinstance(arguments, dict):
            raise ValueError("tools/call arguments must be an object")
        return _handle_tool_call(config, tool_name, arguments)
    raise MethodNotFound(f"Method not found: {method}")


def serve(config: VaultConfig, stdin: Any, stdout: Any) -> int:
    """Answer JSON-RPC requests from `stdin` until end of input or `exit`."""
    framing = StdioFraming(stdin, stdout)
    state = {"initialized": False}

    while True:
        payload = framing.read()
        if payload is None:
            return 0
        try:
            msg = json.loads(payload)
        except ValueError as e:
            # Malformed JSON or a body that is not UTF-8
            framing.write(_jsonrpc_error(-32700, f"Parse error: {e}", request_id=None))
            continue
        if not isinstance(msg, dict):
            framing.write(_jsonrpc_error(-32600, "Invalid request", request_id=None))
            continue

        request_id = msg.get("id")
        method = msg.get("method")
        params = msg.get("params") or {}

        # Notifications (no id) must not receive responses
        if request_id is None:
            if method == "exit":
                return 0
            continue

        try:
            result = _dispatch(config, method, params, state)
            framing.write(_jsonrpc_result(result, request_id=request_id))
        except MethodNotFound as e:
            framing.write(_jsonrpc_error(-32601, str(e), request_id=request_id))
        except ValueError as e:
            framing.write(_jsonrpc_error(-32602, str(e), request_id=request_id))
        except Exception as e:
            logger.exception("Tool call %s failed", method)
            framing.write(_jsonrpc_error(-32603, str(e), request_id=request_id))


def serve_stdio(config: VaultConfig) -> int:
    # stdout carries protocol frames only; logs go to stderr
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)
    return serve(config, sys.stdin.buffer, sys.stdout.buffer)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="MCP server for Markdown vault link and tag tools")
    parser.add_argument("--vault", default=os.getenv(VAULT_ENV, DEFAULT_VAULT), help=f"Vault root (env {VAULT_ENV})")
    parser.add_argument(
        "--template-dir",
        default=os.getenv(TEMPLATE_DIR_ENV, DEFAULT_TEMPLATE_DIR),
        help=f"Template folder relative to the vault (env {TEMPLATE_DIR_ENV})",
    )
    args = parser.parse_args(argv)

    vault = Path(args.vault).resolve()
    if not vault.is_dir():
        print(f"Vault directory '{vault}' does not exist.", file=sys.stderr)
        return 2

    return serve_stdio(VaultConfig(vault_path=vault, template_dir=args.template_dir))


if __name__ == "__main__":
    raise SystemExit(main())
