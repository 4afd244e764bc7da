"""
CLI for thoughts.

Minimal CLI using stdlib for fast startup on the capture path.
Subcommands are imported lazily to avoid startup overhead.

Usage:
    thoughts "your thought here"    # Capture (primary interface)
    thoughts todo list              # Eisenhower matrix
    thoughts --help                 # Show help
"""

import logging
import os
import sys

from thoughts.errors import ThoughtsError, ValidationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def print_help() -> None:
    """Print help message."""
    print("""thoughts - capture and search your thoughts, manage todos

Usage:
    thoughts "your thought here"  Capture a thought

Commands:
    thoughts list [--limit N] [--oldest]
                                  List thoughts
    thoughts find <query> [--date D] [--before D] [--after D] [--limit N] [--oldest]
                  [--fuzzy] [--threshold 0..1]
                                  Search thoughts (dates are YYYY-MM-DD)
    thoughts open <n>             Open the nth thought from list in $EDITOR
    thoughts save-url <url> [--summarize] [--force]
                                  Save a web page as a thought
    thoughts todo <command>       Eisenhower matrix todos (see below)

Todo commands (<id> is a full ID or a short ID like A1, B2):
    thoughts todo add <title> [--priority high|low] [--urgency urgent|not-urgent]
                      [--tags a,b] [--description text] [--link url]...
    thoughts todo list [--priority P] [--urgency U] [--completed | --active]
                       [--search text] [--tag T]...
    thoughts todo toggle <id>
    thoughts todo edit <id> [--title T] [--priority P] [--urgency U]
                       [--completed | --active] [--tags a,b] [--description D]
    thoughts todo delete <id>
    thoughts todo view <id>
    thoughts todo search <text> [--tag T]...
    thoughts todo convert <id>    Write a todo out as a thought
    thoughts todo from-thought <path>
                                  Create a todo from a thought file

Quadrants:
    A  Important & Urgent          (--priority high --urgency urgent)
    B  Important, Not Urgent       (--priority high --urgency not-urgent)
    C  Urgent, Not Important       (--priority low --urgency urgent)
    D  Neither Urgent nor Important

Short IDs are positions: they shift when todos are added, moved or deleted.

Options:
    thoughts --help, -h           Show this help
    thoughts --version, -v        Show version""")


def print_version() -> None:
    """Print version."""
    from thoughts import __version__
    print(f"thoughts {__version__}")


def setup_logging() -> None:
    """Configure logging. THOUGHTS_LOG_LEVEL overrides the WARNING default."""
    level = os.environ.get("THOUGHTS_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(format=LOG_FORMAT, level=getattr(logging, level, logging.WARNING))


def parse_args(
    args: list[str],
    values: dict[str, str] | None = None,
    flags: dict[str, str] | None = None,
    multi: dict[str, str] | None = None,
) -> tuple[list[str], dict]:
    """
    Split args into positionals and options.

    Each mapping goes from an option spelling ("--priority", "-p") to the
    key it is stored under. `values` take one argument, `flags` are booleans
    and `multi` options may repeat and collect into a list.
    """
    values = values or {}
    flags = flags or {}
    multi = multi or {}

    positionals: list[str] = []
    options: dict = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in flags:
            options[flags[arg]] = True
            i += 1
        elif arg in values or arg in multi:
            if i + 1 >= len(args):
                raise ValidationError(f"Option {arg} needs a value")
            if arg in values:
                options[values[arg]] = args[i + 1]
            else:
                options.setdefault(multi[arg], []).append(args[i + 1])
            i += 2
        elif arg.startswith("--"):
            raise ValidationError(f"Unknown option: {arg}")
        else:
            positionals.append(arg)
            i += 1
    return positionals, options


def _positive_int(value: str | None, name: str) -> int | None:
    if value is None:
        return None
    try:
        number = int(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be a number: {value}") from e
    if number < 1:
        raise ValidationError(f"{name} must be positive: {value}")
    return number


def _choice(value: str | None, choices: tuple[str, ...], name: str) -> str | None:
    if value is None:
        return None
    value = value.lower()
    if value not in choices:
        raise ValidationError(f"{name} must be one of: {', '.join(choices)}")
    return value


def _threshold(value: str | None) -> float:
    from thoughts.notes import DEFAULT_FUZZY_THRESHOLD

    if value is None:
        return DEFAULT_FUZZY_THRESHOLD
    try:
        number = float(value)
    except ValueError as e:
        raise ValidationError(f"threshold must be a number: {value}") from e
    if not 0.0 <= number <= 1.0:
        raise ValidationError(f"threshold must be between 0 and 1: {value}")
    return number


def _split_tags(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def capture(text: str) -> str:
    """Capture a thought. Returns the path of the new file."""
    from thoughts.notes import capture_thought

    return str(capture_thought(text))


def cmd_list(args: list[str]) -> int:
    """List thoughts, newest first."""
    from thoughts.display import format_thoughts
    from thoughts.notes import list_thoughts

    _, opts = parse_args(
        args,
        values={"--limit": "limit", "-l": "limit"},
        flags={"--oldest": "oldest", "-o": "oldest"},
    )
    thoughts = list_thoughts(
        limit=_positive_int(opts.get("limit"), "limit"),
        oldest=opts.get("oldest", False),
    )
    print(format_thoughts(thoughts))
    return 0


def cmd_find(args: list[str]) -> int:
    """Search thoughts."""
    from thoughts.display import format_thoughts
    from thoughts.notes import search_thoughts

    positionals, opts = parse_args(
        args,
        values={
            "--date": "on", "-d": "on",
            "--before": "before", "-b": "before",
            "--after": "after", "-a": "after",
            "--limit": "limit", "-l": "limit",
            "--threshold": "threshold", "-t": "threshold",
        },
        flags={
            "--oldest": "oldest", "-o": "oldest",
            "--fuzzy": "fuzzy", "-f": "fuzzy",
        },
    )
    query = " ".join(positionals) or None
    if not query and not any(k in opts for k in ("on", "before", "after")):
        print("Usage: thoughts find <query> [--date D] [--before D] [--after D]", file=sys.stderr)
        return 1

    thoughts = search_thoughts(
        query,
        on=opts.get("on"),
        before=opts.get("before"),
        after=opts.get("after"),
        limit=_positive_int(opts.get("limit"), "limit"),
        oldest=opts.get("oldest", False),
        fuzzy=opts.get("fuzzy", False) or "threshold" in opts,
        threshold=_threshold(opts.get("threshold")),
    )
    print(format_thoughts(thoughts, query))
    return 0


def cmd_open(args: list[str]) -> int:
    """Open the Nth thought from `thoughts list` in $EDITOR."""
    import shlex
    import subprocess

    from thoughts.notes import list_thoughts

    positionals, _ = parse_args(args)
    if len(positionals) != 1:
        raise ValidationError("Usage: thoughts open <number>")

    thoughts = list_thoughts()
    if not thoughts:
        raise ValidationError("No thoughts yet")
    try:
        index = int(positionals[0])
    except ValueError:
        index = 0
    if not 1 <= index <= len(thoughts):
        raise ValidationError(f"Invalid index. Use a number between 1 and {len(thoughts)}")

    editor = shlex.split(os.environ.get("EDITOR") or "vi")
    try:
        result = subprocess.run([*editor, str(thoughts[index - 1].path)])
    except OSError as e:
        raise ValidationError(f"Cannot start editor {editor[0]}: {e}") from e
    return result.returncode


def cmd_save_url(args: list[str]) -> int:
    """Save a web page as a thought."""
    from thoughts.web import save_url

    positionals, opts = parse_args(
        args,
        flags={
            "--summarize": "summarize", "-s": "summarize",
            "--force": "force", "-f": "force",
        },
    )
    if len(positionals) != 1:
        print("Usage: thoughts save-url <url> [--summarize] [--force]", file=sys.stderr)
        return 1

    result = save_url(
        positionals[0],
        summarize=opts.get("summarize", False),
        force=opts.get("force", False),
    )
    if not result.created:
        print(f"Already saved: {result.path} (use --force to save again)")
    elif opts.get("summarize") and not result.summarized:
        print(f"Saved without summary: {result.path}")
    else:
        print(f"Saved: {result.path}")
    return 0


PRIORITY_OPTS = {"--priority": "priority", "-p": "priority"}
URGENCY_OPTS = {"--urgency": "urgency", "-u": "urgency"}
STATUS_FLAGS = {"--completed": "completed", "--active": "active"}


def _completed_filter(opts: dict) -> bool | None:
    if opts.get("completed") and opts.get("active"):
        raise ValidationError("Use either --completed or --active, not both")
    if opts.get("completed"):
        return True
    if opts.get("active"):
        return False
    return None


def _single_id(positionals: list[str], usage: str) -> str:
    if len(positionals) != 1:
        raise ValidationError(f"Usage: thoughts todo {usage}")
    return positionals[0]


def cmd_todo_add(args: list[str]) -> int:
    """Add a todo."""
    from thoughts.matrix import PRIORITIES, URGENCIES, create_todo, generate_display_id
    from thoughts.store import TodoStore

    positionals, opts = parse_args(
        args,
        values={
            **PRIORITY_OPTS,
            **URGENCY_OPTS,
            "--tags": "tags", "-t": "tags",
            "--description": "description", "-d": "description",
        },
        multi={"--link": "links", "-l": "links"},
    )
    todo = create_todo(
        " ".join(positionals),
        priority=_choice(opts.get("priority"), PRIORITIES, "priority"),
        urgency=_choice(opts.get("urgency"), URGENCIES, "urgency"),
        tags=_split_tags(opts.get("tags", "")),
        description=opts.get("description", ""),
        links=opts.get("links", []),
    )

    matrix = TodoStore().add(todo)
    print(f"Todo added: [{generate_display_id(matrix, todo)}] {todo.title}")
    return 0


def cmd_todo_list(args: list[str]) -> int:
    """List todos by quadrant."""
    from thoughts.display import format_matrix, format_todos
    from thoughts.matrix import PRIORITIES, URGENCIES, search_todos
    from thoughts.store import TodoStore

    _, opts = parse_args(
        args,
        values={**PRIORITY_OPTS, **URGENCY_OPTS, "--search": "text", "-s": "text"},
        flags=STATUS_FLAGS,
        multi={"--tag": "tags"},
    )
    criteria = {
        "text": opts.get("text"),
        "tags": opts.get("tags"),
        "completed": _completed_filter(opts),
        "priority": _choice(opts.get("priority"), PRIORITIES, "priority"),
        "urgency": _choice(opts.get("urgency"), URGENCIES, "urgency"),
    }

    matrix = TodoStore().load()
    if all(value is None for value in criteria.values()):
        print(format_matrix(matrix))
    else:
        print(format_todos(matrix, search_todos(matrix, **criteria)))
    return 0


def cmd_todo_toggle(args: list[str]) -> int:
    """Toggle a todo's completion."""
    from thoughts.matrix import generate_display_id, toggle_todo
    from thoughts.store import TodoStore

    positionals, _ = parse_args(args)
    todo_id = _single_id(positionals, "toggle <id>")

    with TodoStore().transaction() as matrix:
        todo = toggle_todo(matrix, todo_id)

    mark = "✓" if todo.completed else "☐"
    print(f"Todo status updated: {generate_display_id(matrix, todo)} [{mark}] {todo.title}")
    return 0


def cmd_todo_edit(args: list[str]) -> int:
    """Edit a todo's fields."""
    from thoughts.matrix import PRIORITIES, URGENCIES, generate_display_id, update_todo
    from thoughts.store import TodoStore

    positionals, opts = parse_args(
        args,
        values={
            **PRIORITY_OPTS,
            **URGENCY_OPTS,
            "--title": "title",
            "--tags": "tags", "-t": "tags",
            "--description": "description", "-d": "description",
        },
        flags=STATUS_FLAGS,
        multi={"--link": "links", "-l": "links"},
    )
    todo_id = _single_id(positionals, "edit <id> [options]")

    patch: dict = {}
    if "title" in opts:
        patch["title"] = opts["title"]
    if "priority" in opts:
        patch["priority"] = _choice(opts["priority"], PRIORITIES, "priority")
    if "urgency" in opts:
        patch["urgency"] = _choice(opts["urgency"], URGENCIES, "urgency")
    if "tags" in opts:
        patch["tags"] = _split_tags(opts["tags"])
    if "description" in opts:
        patch["description"] = opts["description"]
    if "links" in opts:
        patch["links"] = opts["links"]
    completed = _completed_filter(opts)
    if completed is not None:
        patch["completed"] = completed

    if not patch:
        raise ValidationError("Nothing to update. See: thoughts todo --help")

    with TodoStore().transaction() as matrix:
        todo = update_todo(matrix, todo_id, patch)

    print(f"Todo updated: [{generate_display_id(matrix, todo)}] {todo.title}")
    return 0


def cmd_todo_delete(args: list[str]) -> int:
    """Delete a todo."""
    from thoughts.matrix import delete_todo
    from thoughts.store import TodoStore

    positionals, _ = parse_args(args)
    todo_id = _single_id(positionals, "delete <id>")

    with TodoStore().transaction() as matrix:
        todo = delete_todo(matrix, todo_id)

    print(f"Todo deleted: {todo.title}")
    return 0


def cmd_todo_view(args: list[str]) -> int:
    """Show one todo in full."""
    from thoughts.display import format_todo
    from thoughts.matrix import get_todo
    from thoughts.store import TodoStore

    positionals, _ = parse_args(args)
    todo_id = _single_id(positionals, "view <id>")

    matrix = TodoStore().load()
    print(format_todo(matrix, get_todo(matrix, todo_id)))
    return 0


def cmd_todo_search(args: list[str]) -> int:
    """Search todos by text and tags."""
    from thoughts.display import format_todos
    from thoughts.matrix import search_todos
    from thoughts.store import TodoStore

    positionals, opts = parse_args(args, multi={"--tag": "tags"})
    text = " ".join(positionals) or None
    if not text and not opts.get("tags"):
        raise ValidationError("Usage: thoughts todo search <text> [--tag T]...")

    matrix = TodoStore().load()
    results = search_todos(matrix, text=text, tags=opts.get("tags"))
    if not results:
        print(f"No todos found matching \"{text or ', '.join(opts['tags'])}\".")
        return 0

    print(f"Search results ({len(results)}):")
    print(format_todos(matrix, results))
    return 0


def cmd_todo_convert(args: list[str]) -> int:
    """Write a todo out as a thought."""
    from thoughts.notes import todo_to_thought

    positionals, _ = parse_args(args)
    todo_id = _single_id(positionals, "convert <id>")

    path = todo_to_thought(todo_id)
    print(f"Created thought from todo: {path}")
    return 0


def cmd_todo_from_thought(args: list[str]) -> int:
    """Create a todo from a thought file."""
    from pathlib import Path

    from thoughts.config import get_thoughts_dir
    from thoughts.matrix import generate_display_id
    from thoughts.notes import thought_to_todo
    from thoughts.store import TodoStore

    positionals, _ = parse_args(args)
    raw_path = _single_id(positionals, "from-thought <path>")

    path = Path(raw_path).expanduser()
    if not path.is_absolute() and not path.exists():
        path = get_thoughts_dir() / path
    if not path.is_file():
        raise ValidationError(f"Thought file not found: {path}")

    store = TodoStore()
    todo = thought_to_todo(path, store)
    display_id = generate_display_id(store.load(), todo)
    print(f"Created todo from thought: [{display_id}] {todo.title}")
    return 0


TODO_COMMANDS = {
    "add": cmd_todo_add,
    "list": cmd_todo_list,
    "toggle": cmd_todo_toggle,
    "edit": cmd_todo_edit,
    "delete": cmd_todo_delete,
    "view": cmd_todo_view,
    "search": cmd_todo_search,
    "convert": cmd_todo_convert,
    "from-thought": cmd_todo_from_thought,
}


def cmd_todo(args: list[str]) -> int:
    """Dispatch todo subcommands. No subcommand lists the matrix."""
    if not args:
        return cmd_todo_list([])

    if args[0] in ("--help", "-h", "help"):
        print_help()
        return 0

    command = TODO_COMMANDS.get(args[0])
    if command is None:
        print(f"Unknown todo command: {args[0]}", file=sys.stderr)
        print(f"Available: {', '.join(TODO_COMMANDS)}", file=sys.stderr)
        return 1
    return command(args[1:])


def dispatch(args: list[str]) -> int:
    """Route argv to a command."""
    # No args - check for piped input
    if not args:
        if not sys.stdin.isatty():
            text = sys.stdin.read().strip()
            if text:
                print(capture(text))
                return 0
        print_help()
        return 0

    first_arg = args[0]

    if first_arg in ("--help", "-h", "help"):
        print_help()
        return 0

    if first_arg in ("--version", "-v", "version"):
        print_version()
        return 0

    if first_arg == "list":
        return cmd_list(args[1:])

    if first_arg == "find":
        return cmd_find(args[1:])

    if first_arg == "open":
        return cmd_open(args[1:])

    if first_arg == "save-url":
        return cmd_save_url(args[1:])

    if first_arg == "todo":
        return cmd_todo(args[1:])

    # Everything else is a thought to capture
    # Join all args (allows: thoughts Remember to email Sarah)
    text = " ".join(args)

    if not text.strip():
        print("Error: Empty thought", file=sys.stderr)
        return 1

    print(capture(text))
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Expected failures (bad input, unknown ids, write errors) print a
    one-line error and exit 1.
    """
    setup_logging()
    args = sys.argv[1:] if argv is None else argv

    try:
        return dispatch(args)
    except ThoughtsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
