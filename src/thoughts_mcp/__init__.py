"""MCP server exposing thoughts and todos as tools."""
