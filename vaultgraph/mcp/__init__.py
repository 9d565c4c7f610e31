"""MCP server for vault tools."""
