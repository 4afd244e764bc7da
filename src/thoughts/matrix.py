"""
Eisenhower todo matrix for thoughts.

Todos live in exactly one of four quadrants, picked from (priority, urgency).
Everything in this module is pure: functions take a TodoMatrix, mutate or
query it in memory, and never touch the disk. Persistence lives in
thoughts.store.

Display ids ("A1", "b3") are positional. They are recomputed from the current
sequence order every time, so the same display id can point at a different
todo after any add, delete or reclassification. Resolve them against the
matrix you are about to mutate, never against an older copy.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Iterator, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from thoughts.errors import NotFoundError, ValidationError

Priority = Literal["high", "low"]
Urgency = Literal["urgent", "not-urgent"]

PRIORITIES = ("high", "low")
URGENCIES = ("urgent", "not-urgent")

# Traversal order for listings and search results
QUADRANTS = (
    "important_urgent",
    "important_not_urgent",
    "not_important_urgent",
    "not_important_not_urgent",
)

QUADRANT_LETTERS = {
    "important_urgent": "A",
    "important_not_urgent": "B",
    "not_important_urgent": "C",
    "not_important_not_urgent": "D",
}

LETTER_QUADRANTS = {letter: key for key, letter in QUADRANT_LETTERS.items()}

QUADRANT_NAMES = {
    "important_urgent": "Important & Urgent",
    "important_not_urgent": "Important, Not Urgent",
    "not_important_urgent": "Urgent, Not Important",
    "not_important_not_urgent": "Neither Urgent nor Important",
}

DISPLAY_ID_PATTERN = re.compile(r"^([A-D])(\d+)$", re.IGNORECASE)

# Fields a patch may touch. id and created_at are immutable.
PATCHABLE_FIELDS = frozenset({
    "title",
    "description",
    "priority",
    "urgency",
    "completed",
    "tags",
    "links",
    "metadata",
})


def utc_now() -> str:
    """Current time as an ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def generate_todo_id() -> str:
    """Generate a stable todo id (uuid4)."""
    return str(uuid.uuid4())


def quadrant_of(priority: str, urgency: str) -> str:
    """Map (priority, urgency) to its quadrant key."""
    important = priority == "high"
    urgent = urgency == "urgent"

    if important and urgent:
        return "important_urgent"
    if important:
        return "important_not_urgent"
    if urgent:
        return "not_important_urgent"
    return "not_important_not_urgent"


class TodoItem(BaseModel):
    """A single todo. Serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    priority: Priority = "low"
    urgency: Urgency = "not-urgent"
    completed: bool = False
    created_at: str = Field(alias="createdAt")
    completed_at: str | None = Field(default=None, alias="completedAt")
    tags: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def quadrant(self) -> str:
        return quadrant_of(self.priority, self.urgency)


class MatrixStats(BaseModel):
    """Aggregate counts. Derived on save, never trusted from disk."""

    total: int = 0
    completed: int = 0
    active: int = 0


class TodoMatrix(BaseModel):
    """The four quadrant sequences plus derived stats."""

    model_config = ConfigDict(populate_by_name=True)

    important_urgent: list[TodoItem] = Field(default_factory=list)
    important_not_urgent: list[TodoItem] = Field(default_factory=list)
    not_important_urgent: list[TodoItem] = Field(default_factory=list)
    not_important_not_urgent: list[TodoItem] = Field(default_factory=list)
    stats: MatrixStats = Field(default_factory=MatrixStats)
    last_updated: str = Field(default_factory=utc_now, alias="lastUpdated")

    def quadrant(self, key: str) -> list[TodoItem]:
        """Return the (mutable) sequence for a quadrant key."""
        if key not in QUADRANTS:
            raise KeyError(key)
        return getattr(self, key)

    def iter_todos(self) -> Iterator[TodoItem]:
        """Yield every todo in quadrant order, then sequence order."""
        for key in QUADRANTS:
            yield from self.quadrant(key)

    def refresh_stats(self) -> MatrixStats:
        todos = list(self.iter_todos())
        completed = sum(1 for todo in todos if todo.completed)
        self.stats = MatrixStats(
            total=len(todos),
            completed=completed,
            active=len(todos) - completed,
        )
        return self.stats

    def to_json(self) -> str:
        """Serialize to the on-disk document shape."""
        return self.model_dump_json(by_alias=True, indent=2)


def create_todo(title: str, **options: Any) -> TodoItem:
    """
    Build a new TodoItem. Does not insert it anywhere.

    Options mirror TodoItem fields (description, priority, urgency,
    completed, created_at, completed_at, tags, links, metadata, id).

    Raises:
        ValidationError: empty title or invalid priority/urgency.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")

    unknown = set(options) - PATCHABLE_FIELDS - {"id", "created_at", "completed_at"}
    if unknown:
        raise ValidationError(f"Unknown todo fields: {', '.join(sorted(unknown))}")

    now = utc_now()
    data: dict[str, Any] = {
        "id": options.get("id") or generate_todo_id(),
        "title": title,
        "description": options.get("description") or "",
        "priority": options.get("priority") or "low",
        "urgency": options.get("urgency") or "not-urgent",
        "completed": bool(options.get("completed", False)),
        "created_at": options.get("created_at") or now,
        "completed_at": options.get("completed_at"),
        "tags": list(options.get("tags") or []),
        "links": list(options.get("links") or []),
        "metadata": dict(options.get("metadata") or {}),
    }
    if data["completed"] and not data["completed_at"]:
        data["completed_at"] = now

    try:
        return TodoItem.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e


def _describe(error: pydantic.ValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"])
        parts.append(f"{field}: {item['msg']}")
    return "; ".join(parts)


def find_todo(matrix: TodoMatrix, todo_id: str) -> tuple[str, int] | None:
    """Locate a todo by stable id. Returns (quadrant, index) or None."""
    for key in QUADRANTS:
        for index, todo in enumerate(matrix.quadrant(key)):
            if todo.id == todo_id:
                return key, index
    return None


def add_todo(matrix: TodoMatrix, todo: TodoItem) -> TodoMatrix:
    """Append a todo to the end of its quadrant."""
    if find_todo(matrix, todo.id) is not None:
        raise ValidationError(f"Todo with ID {todo.id} already exists")
    matrix.quadrant(todo.quadrant).append(todo)
    return matrix


def repair_matrix(matrix: TodoMatrix) -> list[str]:
    """
    Restore the matrix invariants on a document read from disk.

    Later copies of a duplicated id are dropped. A todo filed under the wrong
    quadrant is moved to the end of the quadrant its own fields select.
    Returns a description of each repair; empty if nothing was wrong.
    """
    problems: list[str] = []
    seen: set[str] = set()
    kept: dict[str, list[TodoItem]] = {key: [] for key in QUADRANTS}
    misplaced: list[TodoItem] = []

    for key in QUADRANTS:
        for todo in matrix.quadrant(key):
            if todo.id in seen:
                problems.append(f"dropped duplicate todo {todo.id} from {key}")
                continue
            seen.add(todo.id)
            if todo.quadrant != key:
                problems.append(f"moved todo {todo.id} from {key} to {todo.quadrant}")
                misplaced.append(todo)
            else:
                kept[key].append(todo)

    for todo in misplaced:
        kept[todo.quadrant].append(todo)
    for key in QUADRANTS:
        setattr(matrix, key, kept[key])
    return problems


def get_todo(matrix: TodoMatrix, todo_id: str) -> TodoItem:
    """Return a todo by stable or display id."""
    todo_id = resolve_id(matrix, todo_id)
    location = find_todo(matrix, todo_id)
    if location is None:
        raise NotFoundError(todo_id)
    key, index = location
    return matrix.quadrant(key)[index]


def update_todo(matrix: TodoMatrix, todo_id: str, patch: dict[str, Any]) -> TodoItem:
    """
    Merge a patch onto a todo and reclassify it if needed.

    If the new (priority, urgency) lands in a different quadrant, the todo
    moves to the end of that quadrant and every todo after it in the old one
    shifts up a position.

    Returns the updated todo.
    """
    illegal = set(patch) - PATCHABLE_FIELDS
    if illegal:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(illegal))}")

    todo_id = resolve_id(matrix, todo_id)
    location = find_todo(matrix, todo_id)
    if location is None:
        raise NotFoundError(todo_id)
    old_quadrant, index = location
    old = matrix.quadrant(old_quadrant)[index]

    merged = {**old.model_dump(), **patch}
    if "title" in patch:
        merged["title"] = (patch["title"] or "").strip()
        if not merged["title"]:
            raise ValidationError("Title is required")

    if patch.get("completed") is True and not old.completed:
        merged["completed_at"] = utc_now()
    elif "completed" in patch and patch["completed"] is False:
        merged["completed_at"] = None

    try:
        updated = TodoItem.model_validate(merged)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e

    new_quadrant = updated.quadrant
    if new_quadrant != old_quadrant:
        del matrix.quadrant(old_quadrant)[index]
        matrix.quadrant(new_quadrant).append(updated)
    else:
        matrix.quadrant(old_quadrant)[index] = updated
    return updated


def toggle_todo(matrix: TodoMatrix, todo_id: str) -> TodoItem:
    """Flip completion. Never moves the todo."""
    todo = get_todo(matrix, todo_id)
    todo.completed = not todo.completed
    todo.completed_at = utc_now() if todo.completed else None
    return todo


def delete_todo(matrix: TodoMatrix, todo_id: str) -> TodoItem:
    """Remove a todo from whichever quadrant holds it. Returns it."""
    todo_id = resolve_id(matrix, todo_id)
    location = find_todo(matrix, todo_id)
    if location is None:
        raise NotFoundError(todo_id)
    key, index = location
    return matrix.quadrant(key).pop(index)


def active_todos(matrix: TodoMatrix) -> list[TodoItem]:
    """All non-completed todos in traversal order."""
    return [todo for todo in matrix.iter_todos() if not todo.completed]


def search_todos(
    matrix: TodoMatrix,
    text: str | None = None,
    tags: list[str] | None = None,
    completed: bool | None = None,
    priority: str | None = None,
    urgency: str | None = None,
) -> list[TodoItem]:
    """
    Filter todos. Every criterion is optional; given criteria are ANDed.

    - text: case-insensitive substring of title or description
    - tags: todo has at least one of these tags
    - completed / priority / urgency: exact match
    """
    needle = text.lower() if text else None
    wanted_tags = set(tags) if tags else None

    results = []
    for todo in matrix.iter_todos():
        if needle and needle not in todo.title.lower() and needle not in todo.description.lower():
            continue
        if wanted_tags and not wanted_tags.intersection(todo.tags):
            continue
        if completed is not None and todo.completed != completed:
            continue
        if priority and todo.priority != priority:
            continue
        if urgency and todo.urgency != urgency:
            continue
        results.append(todo)
    return results


def is_display_id(value: str) -> bool:
    """True for strings shaped like a display id (A1, b12, ...)."""
    return bool(DISPLAY_ID_PATTERN.match(value or ""))


def generate_display_id(matrix: TodoMatrix, todo: TodoItem) -> str:
    """
    Return "<letter><position>" for a todo's current slot.

    Falls back to the first 8 characters of the id if the todo is not in
    the quadrant its own fields point at.
    """
    key = todo.quadrant
    for index, candidate in enumerate(matrix.quadrant(key)):
        if candidate.id == todo.id:
            return f"{QUADRANT_LETTERS[key]}{index + 1}"
    return todo.id[:8]


def resolve_display_id(matrix: TodoMatrix, display_id: str) -> str | None:
    """Map a display id to the stable id currently at that position."""
    match = DISPLAY_ID_PATTERN.match((display_id or "").strip())
    if not match:
        return None

    key = LETTER_QUADRANTS.get(match.group(1).upper())
    if key is None:
        return None

    position = int(match.group(2))
    todos = matrix.quadrant(key)
    if position < 1 or position > len(todos):
        return None
    return todos[position - 1].id


def resolve_id(matrix: TodoMatrix, todo_id: str) -> str:
    """
    Turn a stable id or display id into a stable id.

    Raises:
        NotFoundError: display id does not point at any todo.
    """
    todo_id = (todo_id or "").strip()
    if is_display_id(todo_id):
        resolved = resolve_display_id(matrix, todo_id)
        if resolved is None:
            raise NotFoundError(todo_id)
        return resolved
    return todo_id
