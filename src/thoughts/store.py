"""
Storage module for the thoughts todo matrix.

One JSON document per thoughts directory (.todos/todo-matrix.json).
Every operation is a full load-mutate-save cycle against a fresh copy, so
display ids are always resolved against the state being written.

There is no locking: two processes writing at once means last writer wins.
Writes go through a temp file and os.replace, so a crash mid-write leaves
the previous document intact rather than a truncated one.
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import pydantic

from thoughts.config import TODO_MATRIX_FILENAME, get_thoughts_dir, get_todos_dir
from thoughts.errors import StorageReadError, StorageWriteError
from thoughts.matrix import (
    TodoItem,
    TodoMatrix,
    active_todos,
    add_todo,
    delete_todo,
    get_todo,
    repair_matrix,
    search_todos,
    toggle_todo,
    update_todo,
    utc_now,
)

logger = logging.getLogger(__name__)


class TodoStore:
    """File-backed wrapper around a TodoMatrix."""

    def __init__(self, thoughts_dir: Path | None = None):
        self.thoughts_dir = Path(thoughts_dir) if thoughts_dir else get_thoughts_dir()
        self.todos_dir = get_todos_dir(self.thoughts_dir)
        self.path = self.todos_dir / TODO_MATRIX_FILENAME

    def _read(self) -> TodoMatrix:
        """Read and validate the document. Raises StorageReadError."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StorageReadError(f"{self.path} does not exist") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Cannot read {self.path}: {e}") from e

        try:
            matrix = TodoMatrix.model_validate(json.loads(raw))
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            raise StorageReadError(f"Malformed todo matrix at {self.path}: {e}") from e

        for problem in repair_matrix(matrix):
            logger.warning("Repaired todo matrix at %s: %s", self.path, problem)
        return matrix

    def load(self) -> TodoMatrix:
        """
        Load the matrix.

        A missing document is created empty on the spot. A malformed one is
        logged and replaced in memory by an empty matrix; the bad file is only
        overwritten by the next mutation.
        """
        if not self.path.exists():
            matrix = TodoMatrix()
            self.save(matrix)
            return matrix

        try:
            return self._read()
        except StorageReadError as e:
            logger.warning("Error loading todo matrix, starting fresh: %s", e)
            return TodoMatrix()

    def save(self, matrix: TodoMatrix) -> TodoMatrix:
        """Recompute stats and atomically overwrite the document."""
        matrix.refresh_stats()
        matrix.last_updated = utc_now()
        payload = matrix.to_json()

        tmp_path = None
        try:
            self.todos_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=".todo-matrix-", suffix=".tmp", dir=self.todos_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, self._file_mode())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageWriteError(f"Cannot write {self.path}: {e}") from e

        logger.debug(
            "Saved todo matrix (%d total, %d completed)",
            matrix.stats.total,
            matrix.stats.completed,
        )
        return matrix

    def _file_mode(self) -> int:
        """Keep the existing document's mode, else 0666 minus the umask."""
        try:
            return self.path.stat().st_mode & 0o777
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    @contextmanager
    def transaction(self) -> Iterator[TodoMatrix]:
        """
        Load a fresh matrix, yield it for mutation, save on clean exit.

        If the block raises, nothing is written and the on-disk document is
        whatever it was before.
        """
        matrix = self.load()
        yield matrix
        self.save(matrix)

    def add(self, todo: TodoItem) -> TodoMatrix:
        """Insert a todo into its quadrant and persist."""
        with self.transaction() as matrix:
            add_todo(matrix, todo)
        return matrix

    def update(self, todo_id: str, patch: dict[str, Any]) -> TodoMatrix:
        """Patch a todo (stable or display id) and persist."""
        with self.transaction() as matrix:
            update_todo(matrix, todo_id, patch)
        return matrix

    def toggle(self, todo_id: str) -> TodoMatrix:
        """Flip a todo's completion and persist."""
        with self.transaction() as matrix:
            toggle_todo(matrix, todo_id)
        return matrix

    def delete(self, todo_id: str) -> TodoMatrix:
        """Remove a todo and persist."""
        with self.transaction() as matrix:
            delete_todo(matrix, todo_id)
        return matrix

    def get(self, todo_id: str) -> TodoItem:
        """Get a single todo by stable or display id."""
        return get_todo(self.load(), todo_id)

    def active(self) -> list[TodoItem]:
        """All open todos."""
        return active_todos(self.load())

    def search(self, **criteria: Any) -> list[TodoItem]:
        """Search todos. See thoughts.matrix.search_todos for criteria."""
        return search_todos(self.load(), **criteria)
