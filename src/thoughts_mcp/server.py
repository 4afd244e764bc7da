"""
MCP Server for thoughts.

Exposes thought capture and the todo matrix as tools for MCP clients.
Tool failures come back as "Error: ..." text rather than exceptions.
"""

import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from thoughts.display import format_matrix, format_thoughts, format_todo, format_todos
from thoughts.errors import ThoughtsError
from thoughts.matrix import (
    PRIORITIES,
    URGENCIES,
    create_todo,
    delete_todo,
    generate_display_id,
    get_todo,
    search_todos,
    toggle_todo,
    update_todo,
)
from thoughts.notes import capture_thought, search_thoughts
from thoughts.store import TodoStore

logger = logging.getLogger(__name__)

# Create MCP server
server = Server("thoughts")

TODO_ID_PROPERTY = {
    "type": "string",
    "description": "Todo ID: the full ID or a short ID like A1, B2 (short IDs shift as todos change)",
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="thoughts_capture",
            description="Capture a thought as a new markdown note.",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {"type": "string", "description": "The thought to capture"},
                    "title": {"type": "string", "description": "Optional title"},
                },
                "required": ["text"],
            },
        ),
        Tool(
            name="thoughts_search",
            description="Search thought notes by text. Returns matching notes.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query"},
                    "limit": {
                        "type": "integer",
                        "description": "Maximum results to return (default: 10)",
                        "default": 10,
                    },
                    "fuzzy": {
                        "type": "boolean",
                        "description": "Approximate matching, tolerant of typos (default: false)",
                        "default": False,
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="todo_add",
            description="Add a todo to the Eisenhower matrix.",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Todo title"},
                    "description": {"type": "string", "description": "Longer description"},
                    "priority": {"type": "string", "enum": list(PRIORITIES), "default": "low"},
                    "urgency": {"type": "string", "enum": list(URGENCIES), "default": "not-urgent"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "links": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["title"],
            },
        ),
        Tool(
            name="todo_list",
            description="List todos grouped by quadrant, optionally filtered.",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {"type": "string", "description": "Substring of title or description"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "completed": {"type": "boolean"},
                    "priority": {"type": "string", "enum": list(PRIORITIES)},
                    "urgency": {"type": "string", "enum": list(URGENCIES)},
                },
            },
        ),
        Tool(
            name="todo_toggle",
            description="Toggle a todo between completed and active.",
            inputSchema={
                "type": "object",
                "properties": {"todo_id": TODO_ID_PROPERTY},
                "required": ["todo_id"],
            },
        ),
        Tool(
            name="todo_update",
            description="Update fields of a todo. Changing priority or urgency moves it to another quadrant.",
            inputSchema={
                "type": "object",
                "properties": {
                    "todo_id": TODO_ID_PROPERTY,
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "priority": {"type": "string", "enum": list(PRIORITIES)},
                    "urgency": {"type": "string", "enum": list(URGENCIES)},
                    "completed": {"type": "boolean"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "links": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["todo_id"],
            },
        ),
        Tool(
            name="todo_delete",
            description="Delete a todo.",
            inputSchema={
                "type": "object",
                "properties": {"todo_id": TODO_ID_PROPERTY},
                "required": ["todo_id"],
            },
        ),
        Tool(
            name="todo_view",
            description="Show every field of a single todo.",
            inputSchema={
                "type": "object",
                "properties": {"todo_id": TODO_ID_PROPERTY},
                "required": ["todo_id"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        return await handler(arguments or {})
    except ThoughtsError as e:
        return [TextContent(type="text", text=f"Error: {e}")]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=f"Error: {e}")]


def _text(message: str) -> list[TextContent]:
    return [TextContent(type="text", text=message)]


async def tool_capture(args: dict) -> list[TextContent]:
    """Capture a thought."""
    path = capture_thought(args.get("text", ""), title=args.get("title") or None)
    return _text(f"Captured: {path}")


async def tool_search(args: dict) -> list[TextContent]:
    """Search thoughts."""
    query = args.get("query", "").strip()
    if not query:
        return _text("Error: Empty query")

    thoughts = search_thoughts(query, limit=args.get("limit", 10), fuzzy=bool(args.get("fuzzy")))
    return _text(format_thoughts(thoughts, query))


async def tool_todo_add(args: dict) -> list[TextContent]:
    """Add a todo."""
    todo = create_todo(
        args.get("title", ""),
        description=args.get("description", ""),
        priority=args.get("priority"),
        urgency=args.get("urgency"),
        tags=args.get("tags", []),
        links=args.get("links", []),
    )
    matrix = TodoStore().add(todo)
    return _text(f"Added: [{generate_display_id(matrix, todo)}] {todo.title} ({todo.id})")


async def tool_todo_list(args: dict) -> list[TextContent]:
    """List todos."""
    criteria = {
        key: args[key]
        for key in ("text", "tags", "completed", "priority", "urgency")
        if args.get(key) is not None
    }
    matrix = TodoStore().load()
    if not criteria:
        return _text(format_matrix(matrix))
    return _text(format_todos(matrix, search_todos(matrix, **criteria), tip=False))


async def tool_todo_toggle(args: dict) -> list[TextContent]:
    """Toggle a todo."""
    with TodoStore().transaction() as matrix:
        todo = toggle_todo(matrix, args.get("todo_id", ""))
    state = "completed" if todo.completed else "active"
    return _text(f"{generate_display_id(matrix, todo)} {todo.title} is now {state}")


async def tool_todo_update(args: dict) -> list[TextContent]:
    """Update a todo."""
    patch = {key: value for key, value in args.items() if key != "todo_id"}
    if not patch:
        return _text("Error: Nothing to update")

    with TodoStore().transaction() as matrix:
        todo = update_todo(matrix, args.get("todo_id", ""), patch)
    return _text(f"Updated: [{generate_display_id(matrix, todo)}] {todo.title}")


async def tool_todo_delete(args: dict) -> list[TextContent]:
    """Delete a todo."""
    with TodoStore().transaction() as matrix:
        todo = delete_todo(matrix, args.get("todo_id", ""))
    return _text(f"Deleted: {todo.title}")


async def tool_todo_view(args: dict) -> list[TextContent]:
    """View a todo."""
    matrix = TodoStore().load()
    return _text(format_todo(matrix, get_todo(matrix, args.get("todo_id", ""))))


TOOL_HANDLERS = {
    "thoughts_capture": tool_capture,
    "thoughts_search": tool_search,
    "todo_add": tool_todo_add,
    "todo_list": tool_todo_list,
    "todo_toggle": tool_todo_toggle,
    "todo_update": tool_todo_update,
    "todo_delete": tool_todo_delete,
    "todo_view": tool_todo_view,
}


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run() -> None:
    """Console script entry point."""
    import asyncio
    import os

    # Tool output is read by a model, not a terminal
    os.environ.setdefault("NO_COLOR", "1")
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
