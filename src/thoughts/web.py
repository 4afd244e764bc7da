"""
Web saver for thoughts.

Fetches a page, reduces it to readable text and stores it as a thought.
An optional LLM summary is added on top; if summarizing fails the page is
still saved without one.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
from bs4 import BeautifulSoup

from thoughts.config import get_thoughts_dir, load_config
from thoughts.errors import FetchError, ValidationError
from thoughts.notes import list_thoughts, write_thought
from thoughts.summarizer import Summarizer, Summary

logger = logging.getLogger(__name__)

SOURCE_PATTERN = re.compile(r"^>\s*Source:\s*(\S+)\s*$", re.MULTILINE)

# Elements that never carry article text
STRIP_TAGS = ["script", "style", "noscript", "head", "nav", "footer", "aside", "form", "svg"]


@dataclass
class Page:
    """A fetched page reduced to text."""

    url: str
    title: str
    text: str


@dataclass
class SavedPage:
    """Result of save_url."""

    path: Path
    created: bool
    summarized: bool = False


def fetch_page(
    url: str,
    config: dict[str, Any] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """GET a URL and return its body. Raises FetchError."""
    if not url.startswith(("http://", "https://")):
        raise ValidationError(f"Not an http(s) URL: {url}")

    if config is None:
        config = load_config()
    web_config = config.get("web", {})
    headers = {"User-Agent": web_config.get("user_agent", "thoughts")}

    try:
        with httpx.Client(
            timeout=web_config.get("timeout", 20.0),
            follow_redirects=True,
            headers=headers,
            transport=transport,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.text
    except httpx.HTTPStatusError as e:
        raise FetchError(f"{url} returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise FetchError(f"Could not fetch {url}: {e}") from e


def extract_page(html: str, url: str) -> Page:
    """Pull the title and readable text out of an HTML document."""
    soup = BeautifulSoup(html or "", "html.parser")

    title = ""
    if soup.title and soup.title.string:
        title = soup.title.string.strip()
    if not title and (h1 := soup.find("h1")):
        title = h1.get_text(" ", strip=True)
    title = re.sub(r"\s+", " ", title) or url

    for tag in soup(STRIP_TAGS):
        tag.decompose()

    root = soup.find("article") or soup.find("main") or soup.body or soup
    text = root.get_text(separator="\n")

    # Collapse whitespace: strip each line, at most one blank line in a row
    lines = [line.strip() for line in text.splitlines()]
    text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()

    return Page(url=url, title=title, text=text)


def find_saved_url(url: str, thoughts_dir: Path | None = None) -> Path | None:
    """Return the thought already holding this URL, if any."""
    for thought in list_thoughts(thoughts_dir):
        for source in SOURCE_PATTERN.findall(thought.content):
            if source == url:
                return thought.path
    return None


def render_web_note(page: Page, summary: Summary | None = None) -> str:
    """Render a fetched page as a thought document."""
    saved = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")
    lines = [f"# {page.title}", "", f"> Source: {page.url}", f"> Saved: {saved}"]
    if summary and summary.tags:
        lines.append(f"> Tags: {', '.join(summary.tags)}")
    lines.append("")

    if summary:
        lines.extend(["## Summary", "", summary.summary.strip(), ""])
        if summary.key_points:
            lines.extend(["### Key Points", ""])
            lines.extend(f"- {point}" for point in summary.key_points)
            lines.append("")

    lines.extend(["## Content", "", page.text, ""])
    return "\n".join(lines)


def save_url(
    url: str,
    summarize: bool = False,
    force: bool = False,
    thoughts_dir: Path | None = None,
    summarizer: Summarizer | None = None,
    transport: httpx.BaseTransport | None = None,
) -> SavedPage:
    """
    Save a web page as a thought.

    Already-saved URLs are not fetched again unless force=True.
    """
    url = url.strip()
    thoughts_dir = thoughts_dir or get_thoughts_dir()

    if not force:
        existing = find_saved_url(url, thoughts_dir)
        if existing:
            logger.info("%s already saved at %s", url, existing.name)
            return SavedPage(path=existing, created=False)

    page = extract_page(fetch_page(url, transport=transport), url)

    summary = None
    if summarize:
        try:
            summarizer = summarizer or Summarizer()
        except ValueError as e:
            logger.warning("Skipping summary: %s", e)
        else:
            summary = summarizer.summarize(page.title, page.text)

    path = write_thought(page.title, render_web_note(page, summary), thoughts_dir)
    return SavedPage(path=path, created=True, summarized=summary is not None)
