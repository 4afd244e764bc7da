"""
Exceptions raised by thoughts.

Everything the CLI reports as a clean `Error: ...` line derives from
ThoughtsError. Anything else is a bug and gets a traceback.
"""


class ThoughtsError(Exception):
    """Base class for expected, user-facing failures."""


class ValidationError(ThoughtsError):
    """A required field is missing or a value is out of range."""


class NotFoundError(ThoughtsError):
    """An id or display id does not resolve to any todo."""

    def __init__(self, todo_id: str):
        self.todo_id = todo_id
        super().__init__(f"Todo with ID {todo_id} not found")


class StorageReadError(ThoughtsError):
    """The persisted todo matrix is missing or unparsable."""


class StorageWriteError(ThoughtsError):
    """The todo matrix could not be written to disk."""


class FetchError(ThoughtsError):
    """A web page could not be retrieved."""
