"""
Terminal output for thoughts.

Plain text with optional ANSI color. Set NO_COLOR to disable color.
"""

import os
from datetime import datetime

from thoughts.matrix import (
    QUADRANT_NAMES,
    QUADRANTS,
    TodoItem,
    TodoMatrix,
    generate_display_id,
)
from thoughts.notes import Thought


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"

    BRIGHT_BLACK = "\033[90m"  # Gray

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        if os.environ.get("NO_COLOR"):
            return False
        return True


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


QUADRANT_COLORS = {
    "important_urgent": Colors.RED,
    "important_not_urgent": Colors.BLUE,
    "not_important_urgent": Colors.YELLOW,
    "not_important_not_urgent": Colors.GREEN,
}

USAGE_TIP = """Tip: use the short IDs (A1, B2, ...) with commands:
  thoughts todo toggle A1
  thoughts todo edit B2 --priority low
  thoughts todo view C3"""


def checkbox(todo: TodoItem) -> str:
    return "✓" if todo.completed else "☐"


def preview(text: str, width: int = 50) -> str:
    """Single-line preview, truncated with an ellipsis."""
    text = " ".join(text.split())
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


def format_time(timestamp: str | None) -> str:
    if not timestamp:
        return ""
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return timestamp


def format_todo_line(matrix: TodoMatrix, todo: TodoItem) -> list[str]:
    """One todo as it appears in a listing."""
    display_id = generate_display_id(matrix, todo)
    title = c(todo.title, Colors.BRIGHT_BLACK) if todo.completed else todo.title
    lines = [f"{c(display_id, Colors.BOLD)}: [{checkbox(todo)}] {title}"]
    if todo.tags:
        lines.append(f"   Tags: {', '.join(todo.tags)}")
    if todo.description:
        lines.append(f"   {c(preview(todo.description), Colors.BRIGHT_BLACK)}")
    return lines


def format_todos(matrix: TodoMatrix, todos: list[TodoItem], tip: bool = True) -> str:
    """
    Group todos by quadrant and render them.

    Display ids always come from the full matrix, so a filtered listing
    shows the ids that commands will actually resolve.
    """
    if not todos:
        return c("No todos match the specified filters.", Colors.YELLOW)

    by_quadrant: dict[str, list[TodoItem]] = {key: [] for key in QUADRANTS}
    for todo in todos:
        by_quadrant[todo.quadrant].append(todo)

    lines: list[str] = []
    for key in QUADRANTS:
        group = by_quadrant[key]
        if not group:
            continue
        color = QUADRANT_COLORS[key]
        header = f"{QUADRANT_NAMES[key]} ({len(group)}):"
        lines.append("")
        lines.append(c(header, color, Colors.BOLD))
        lines.append(c("-" * len(header), color))
        for todo in group:
            lines.extend(format_todo_line(matrix, todo))

    if tip:
        lines.append("")
        lines.append(c(USAGE_TIP, Colors.BLUE))
    return "\n".join(lines)


def format_matrix(matrix: TodoMatrix) -> str:
    """Render the whole matrix with its stats line."""
    todos = list(matrix.iter_todos())
    if not todos:
        return c("No todos yet. Add one with: thoughts todo add \"Title\"", Colors.YELLOW)

    stats = matrix.refresh_stats()
    summary = f"{stats.total} todos, {stats.active} active, {stats.completed} completed"
    return format_todos(matrix, todos) + "\n\n" + c(summary, Colors.DIM)


def format_todo(matrix: TodoMatrix, todo: TodoItem) -> str:
    """Detail view of a single todo."""
    key = todo.quadrant
    color = QUADRANT_COLORS[key]
    display_id = generate_display_id(matrix, todo)

    lines = [
        c(todo.title, color, Colors.BOLD),
        c("-" * (len(todo.title) + 10), color),
        f"ID: {c(display_id, Colors.BOLD)} (internal: {todo.id})",
        f"Status: {'✓ Completed' if todo.completed else '☐ Active'}",
        f"Quadrant: {QUADRANT_NAMES[key]}",
        f"Priority: {'High' if todo.priority == 'high' else 'Low'}",
        f"Urgency: {'Urgent' if todo.urgency == 'urgent' else 'Not Urgent'}",
    ]
    if todo.completed_at:
        lines.append(f"Completed: {format_time(todo.completed_at)}")
    lines.append(f"Created: {format_time(todo.created_at)}")

    if todo.tags:
        lines.append(f"Tags: {', '.join(todo.tags)}")

    if todo.description:
        lines.extend(["", "Description:", todo.description])

    if todo.links:
        lines.extend(["", "Links:"])
        for i, link in enumerate(todo.links, 1):
            lines.append(f"{i}. {link}")

    return "\n".join(lines)


def format_thoughts(thoughts: list[Thought], query: str | None = None) -> str:
    """Numbered listing of thoughts."""
    if not thoughts:
        if query:
            return c(f"No thoughts found matching \"{query}\".", Colors.YELLOW)
        return c("No thoughts found.", Colors.YELLOW)

    lines = [c(f"Found {len(thoughts)} thought(s):", Colors.BOLD), ""]
    for i, thought in enumerate(thoughts, 1):
        when = thought.date.strftime("%Y-%m-%d %H:%M")
        line = f"{i}. {c(thought.title, Colors.GREEN)} ({c(when, Colors.BLUE)})"
        if thought.score is not None:
            line += c(f" [match {thought.score:.0%}]", Colors.DIM)
        lines.append(line)
        lines.append(f"   {c(str(thought.path), Colors.BRIGHT_BLACK)}")
    return "\n".join(lines)
