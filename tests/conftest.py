"""Shared fixtures for the thoughts test suite."""

import pytest

from thoughts.matrix import TodoMatrix, add_todo, create_todo
from thoughts.store import TodoStore


@pytest.fixture
def thoughts_dir(tmp_path, monkeypatch):
    """An isolated thoughts directory with no user config or API keys."""
    directory = tmp_path / "thoughts"
    directory.mkdir()
    monkeypatch.setenv("THOUGHTS_DIR", str(directory))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return directory


@pytest.fixture
def store(thoughts_dir):
    return TodoStore(thoughts_dir)


@pytest.fixture
def matrix():
    """A matrix with one todo per quadrant plus two extra in B."""
    m = TodoMatrix()
    for title, priority, urgency in [
        ("Ship the release", "high", "urgent"),
        ("Plan Q3 roadmap", "high", "not-urgent"),
        ("Write design doc", "high", "not-urgent"),
        ("Read paper", "high", "not-urgent"),
        ("Answer recruiter", "low", "urgent"),
        ("Sort photos", "low", "not-urgent"),
    ]:
        add_todo(m, create_todo(title, priority=priority, urgency=urgency))
    return m
