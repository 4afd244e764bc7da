"""Tests for the MCP tool handlers."""

import asyncio

from thoughts.store import TodoStore
from thoughts_mcp.server import TOOL_HANDLERS, call_tool, list_tools


def call(name, **arguments):
    result = asyncio.run(call_tool(name, arguments))
    assert len(result) == 1
    return result[0].text


class TestTools:
    """Test cases for tool listing and dispatch."""

    def test_every_listed_tool_has_a_handler(self):
        names = [tool.name for tool in asyncio.run(list_tools())]
        assert sorted(names) == sorted(TOOL_HANDLERS)

    def test_unknown_tool(self, thoughts_dir):
        assert call("nope") == "Unknown tool: nope"

    def test_capture_and_search(self, thoughts_dir):
        assert call("thoughts_capture", text="Kafka retention idea").startswith("Captured: ")

        assert "Kafka retention idea" in call("thoughts_search", query="kafka")
        assert call("thoughts_search", query="  ") == "Error: Empty query"

    def test_fuzzy_search(self, thoughts_dir):
        call("thoughts_capture", text="Kafka retention idea")

        assert "No thoughts found" in call("thoughts_search", query="retnetion")
        assert "Kafka retention idea" in call("thoughts_search", query="retnetion", fuzzy=True)


class TestTodoTools:
    """Test cases for the todo tools."""

    def test_add_and_list(self, thoughts_dir):
        text = call("todo_add", title="Renew passport", priority="high", urgency="urgent", tags=["admin"])

        assert text.startswith("Added: [A1] Renew passport (")
        listing = call("todo_list")
        assert "A1: [☐] Renew passport" in listing
        assert "\033[" not in listing

    def test_filtered_list_has_no_tip(self, thoughts_dir):
        call("todo_add", title="Renew passport", tags=["admin"])
        call("todo_add", title="Buy milk")

        listing = call("todo_list", tags=["admin"])

        assert "Renew passport" in listing
        assert "Buy milk" not in listing
        assert "Tip:" not in listing

    def test_toggle_update_delete(self, thoughts_dir):
        call("todo_add", title="Write report")

        assert call("todo_toggle", todo_id="D1") == "D1 Write report is now completed"
        assert call("todo_update", todo_id="D1", priority="high") == "Updated: [B1] Write report"
        assert TodoStore().get("B1").completed is True
        assert call("todo_delete", todo_id="B1") == "Deleted: Write report"
        assert TodoStore().load().stats.total == 0

    def test_view(self, thoughts_dir):
        call("todo_add", title="Read book", description="Dune")
        view = call("todo_view", todo_id="D1")
        assert "Read book" in view
        assert "Description:\nDune" in view

    def test_errors_come_back_as_text(self, thoughts_dir):
        assert call("todo_add", title="  ") == "Error: Title is required"
        assert call("todo_toggle", todo_id="A9") == "Error: Todo with ID A9 not found"
        assert call("todo_update", todo_id="A9") == "Error: Nothing to update"
        assert call("todo_update", todo_id="A9", title="x") == "Error: Todo with ID A9 not found"
