"""
Thought files for thoughts.

A thought is a markdown file sitting directly in the thoughts directory,
named <UTC timestamp>-<slug>.md and starting with a "# Title" heading.
This module writes, lists and searches them, and converts between thoughts
and todos. The conversion is best-effort text extraction, not a lossless
round trip.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from rapidfuzz import fuzz

from thoughts.config import get_thoughts_dir
from thoughts.errors import ValidationError
from thoughts.matrix import TodoItem, create_todo
from thoughts.store import TodoStore

logger = logging.getLogger(__name__)

FILENAME_TIMESTAMP = "%Y-%m-%dT%H-%M-%S"
FILENAME_DATE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:T(\d{2})-(\d{2})-(\d{2}))?")

HEADING_PATTERN = re.compile(r"^#\s+(.*)")
PRIORITY_PATTERN = re.compile(r"^>?\s*Priority:\s*(.*)$", re.IGNORECASE | re.MULTILINE)
URGENCY_PATTERN = re.compile(r"^>?\s*Urgency:\s*(.*)$", re.IGNORECASE | re.MULTILINE)
TAGS_PATTERN = re.compile(r"^>?\s*Tags:\s*(.*)$", re.IGNORECASE | re.MULTILINE)
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
BARE_URL_PATTERN = re.compile(r"(?<!\()(https?://[^\s)>\]]+)")

# 0 only accepts exact matches, 1 accepts anything
DEFAULT_FUZZY_THRESHOLD = 0.4


@dataclass
class Thought:
    """A thought file on disk."""

    path: Path
    title: str
    date: datetime
    content: str
    score: float | None = None  # fuzzy match similarity, 0..1

    @property
    def filename(self) -> str:
        return self.path.name


def slugify(title: str, max_length: int = 50) -> str:
    """Lowercase, alphanumerics and single dashes only."""
    slug = "".join(c if c.isalnum() else "-" for c in title.lower())[:max_length]
    slug = "-".join(filter(None, slug.split("-")))  # Remove consecutive dashes
    return slug or "untitled"


def new_thought_path(title: str, thoughts_dir: Path | None = None) -> Path:
    """Pick a fresh <timestamp>-<slug>.md path that does not exist yet."""
    thoughts_dir = thoughts_dir or get_thoughts_dir()
    timestamp = datetime.now(timezone.utc).strftime(FILENAME_TIMESTAMP)
    stem = f"{timestamp}-{slugify(title)}"

    path = thoughts_dir / f"{stem}.md"
    counter = 2
    while path.exists():
        path = thoughts_dir / f"{stem}-{counter}.md"
        counter += 1
    return path


def write_thought(title: str, content: str, thoughts_dir: Path | None = None) -> Path:
    """Write a complete thought document to a new file."""
    thoughts_dir = thoughts_dir or get_thoughts_dir()
    thoughts_dir.mkdir(parents=True, exist_ok=True)

    path = new_thought_path(title, thoughts_dir)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    logger.info("Wrote thought %s", path.name)
    return path


def capture_thought(text: str, title: str | None = None, thoughts_dir: Path | None = None) -> Path:
    """
    Capture free text as a new thought.

    The title defaults to the first line of the text.
    """
    text = (text or "").strip()
    if not text:
        raise ValidationError("Empty thought")

    first_line, _, rest = text.partition("\n")
    if title:
        body = text
    else:
        title = first_line.lstrip("# ").strip()[:100]
        body = rest.strip()

    content = f"# {title}\n\n"
    if body:
        content += f"{body}\n"
    return write_thought(title, content, thoughts_dir)


def _thought_date(path: Path) -> datetime:
    """Date from the filename timestamp, or the file's mtime."""
    match = FILENAME_DATE_PATTERN.match(path.name)
    if match:
        day, hour, minute, second = match.groups()
        try:
            parsed = datetime.fromisoformat(day)
            if hour is not None:
                parsed = parsed.replace(hour=int(hour), minute=int(minute), second=int(second))
            return parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def read_thought(path: Path) -> Thought:
    """Parse a thought file."""
    # Undecodable bytes become U+FFFD rather than hiding the file
    content = path.read_text(encoding="utf-8", errors="replace")
    first_line = content.split("\n", 1)[0]

    heading = HEADING_PATTERN.match(first_line)
    if heading:
        title = heading.group(1).strip()
    else:
        stem = FILENAME_DATE_PATTERN.sub("", path.stem).lstrip("-")
        title = stem.replace("_", " ").replace("-", " ").strip() or path.stem

    return Thought(path=path, title=title, date=_thought_date(path), content=content)


def list_thoughts(
    thoughts_dir: Path | None = None,
    limit: int | None = None,
    oldest: bool = False,
) -> list[Thought]:
    """All thoughts, newest first unless oldest=True."""
    thoughts_dir = thoughts_dir or get_thoughts_dir()
    if not thoughts_dir.exists():
        return []

    thoughts = [read_thought(path) for path in thoughts_dir.glob("*.md") if path.is_file()]
    thoughts.sort(key=lambda t: (t.date, t.path.name), reverse=not oldest)

    if limit and limit > 0:
        thoughts = thoughts[:limit]
    return thoughts


def _parse_day(value: date | str | None, name: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name} date (expected YYYY-MM-DD): {value}") from e


def fuzzy_score(query: str, thought: Thought) -> float:
    """Best partial similarity of query against title or content, 0..1."""
    needle = query.lower()
    return max(
        fuzz.partial_ratio(needle, thought.title.lower()),
        fuzz.partial_ratio(needle, thought.content.lower()),
    ) / 100.0


def search_thoughts(
    query: str | None = None,
    thoughts_dir: Path | None = None,
    on: date | str | None = None,
    before: date | str | None = None,
    after: date | str | None = None,
    limit: int | None = None,
    oldest: bool = False,
    fuzzy: bool = False,
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> list[Thought]:
    """
    Search thoughts by text and date.

    Text matching is a case-insensitive substring over title and content.
    With fuzzy=True it is approximate instead: a thought matches when its
    similarity is at least 1 - threshold, and results are ordered best match
    first. Date bounds are inclusive.
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValidationError(f"Threshold must be between 0 and 1: {threshold}")
    on = _parse_day(on, "date")
    before = _parse_day(before, "before")
    after = _parse_day(after, "after")
    needle = query.lower() if query else None

    results = []
    for thought in list_thoughts(thoughts_dir, oldest=oldest):
        day = thought.date.date()
        if on and day != on:
            continue
        if before and day > before:
            continue
        if after and day < after:
            continue
        if needle and fuzzy:
            thought.score = fuzzy_score(needle, thought)
            if thought.score < 1.0 - threshold:
                continue
        elif needle and needle not in thought.title.lower() and needle not in thought.content.lower():
            continue
        results.append(thought)

    if needle and fuzzy:
        # Stable sort keeps date order among equal scores
        results.sort(key=lambda t: t.score, reverse=True)
    if limit and limit > 0:
        results = results[:limit]
    return results


def render_todo_note(todo: TodoItem) -> str:
    """Render a todo as a thought document."""
    lines = [f"# {todo.title}", ""]
    lines.append(f"> Priority: {'High' if todo.priority == 'high' else 'Low'}")
    lines.append(f"> Urgency: {'Urgent' if todo.urgency == 'urgent' else 'Not Urgent'}")
    if todo.tags:
        lines.append(f"> Tags: {', '.join(todo.tags)}")
    lines.append(f"> Created: {_human_time(todo.created_at)}")
    lines.append("")

    if todo.description:
        lines.append(todo.description)
        lines.append("")

    if todo.links:
        lines.append("## Links & References")
        lines.append("")
        for link in todo.links:
            lines.append(f"- {link}")
        lines.append("")

    return "\n".join(lines)


def _human_time(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return timestamp


def todo_to_thought(todo_id: str, store: TodoStore | None = None) -> Path:
    """
    Write a todo out as a new thought. The todo itself is left alone.

    Accepts a stable id or a display id.
    """
    store = store or TodoStore()
    todo = store.get(todo_id)
    return write_thought(todo.title, render_todo_note(todo), store.thoughts_dir)


def extract_description(content: str) -> str:
    """Text between the metadata block and the next heading."""
    lines = content.split("\n")
    start = 1 if lines and HEADING_PATTERN.match(lines[0]) else 0

    meta_end = None
    for i in range(start, len(lines)):
        if lines[i].startswith(">"):
            meta_end = i
        elif meta_end is not None:
            break
    if meta_end is not None:
        start = meta_end + 1

    end = len(lines)
    for i in range(start, len(lines)):
        if lines[i].startswith("#"):
            end = i
            break

    return "\n".join(lines[start:end]).strip()


def extract_links(content: str) -> list[str]:
    """Markdown links as "text: url", then bare URLs not already covered."""
    links = [f"{text}: {url}" for text, url in MARKDOWN_LINK_PATTERN.findall(content)]

    for url in BARE_URL_PATTERN.findall(content):
        if not any(url in link for link in links):
            links.append(url)
    return links


def parse_thought(content: str, fallback_title: str = "Untitled") -> dict[str, Any]:
    """Pull todo fields out of a thought document."""
    first_line = content.split("\n", 1)[0]
    heading = HEADING_PATTERN.match(first_line)
    title = heading.group(1).strip() if heading else fallback_title

    priority = "low"
    if match := PRIORITY_PATTERN.search(content):
        if "high" in match.group(1).lower():
            priority = "high"

    urgency = "not-urgent"
    if match := URGENCY_PATTERN.search(content):
        value = match.group(1).lower()
        if "urgent" in value and "not" not in value:
            urgency = "urgent"

    tags: list[str] = []
    if match := TAGS_PATTERN.search(content):
        tags = [tag.strip() for tag in match.group(1).split(",") if tag.strip()]

    return {
        "title": title,
        "priority": priority,
        "urgency": urgency,
        "tags": tags,
        "description": extract_description(content),
        "links": extract_links(content),
    }


def thought_to_todo(path: Path, store: TodoStore | None = None, **options: Any) -> TodoItem:
    """
    Create a todo from a thought file and add it to the matrix.

    Fields parsed from the note win over the same keys in options.
    """
    store = store or TodoStore()
    content = Path(path).read_text(encoding="utf-8")

    fields = parse_thought(content, fallback_title=Path(path).stem)
    title = fields.pop("title")

    todo = create_todo(title, **{**options, **fields})
    store.add(todo)
    return todo
