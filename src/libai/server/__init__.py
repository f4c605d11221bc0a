"""MCP server exposing the local library."""

from libai.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
