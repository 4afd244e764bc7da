"""
Configuration management for thoughts.

Uses XDG base directories:
- Config: ~/.config/thoughts/config.toml
- Data: ~/thoughts/ (the notes themselves, plus .todos/)
"""

from pathlib import Path
from typing import Any
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_THOUGHTS_DIR = Path.home() / "thoughts"

TODOS_DIRNAME = ".todos"
TODO_MATRIX_FILENAME = "todo-matrix.json"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/thoughts)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "thoughts"


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_thoughts_dir() -> Path:
    """Get the thoughts directory (THOUGHTS_DIR, config, or ~/thoughts)."""
    if env_dir := os.environ.get("THOUGHTS_DIR"):
        return Path(env_dir).expanduser()
    configured = load_config().get("thoughts", {}).get("dir")
    if configured:
        return Path(configured).expanduser()
    return DEFAULT_THOUGHTS_DIR


def get_todos_dir(thoughts_dir: Path | None = None) -> Path:
    """Get the directory holding the todo matrix."""
    return (thoughts_dir or get_thoughts_dir()) / TODOS_DIRNAME


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Missing sections fall back to the defaults.
    """
    config = get_default_config()
    config_path = get_config_path()

    if not config_path.exists():
        return config

    # Lazy import tomli only when needed
    import tomli

    with open(config_path, "rb") as f:
        user_config = tomli.load(f)

    for section, values in user_config.items():
        if isinstance(values, dict):
            config.setdefault(section, {}).update(values)
        else:
            config[section] = values
    return config


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "thoughts": {
            "dir": None,
        },
        "llm": {
            "provider": "anthropic",
            "model": "claude-haiku-4-5-20251001",
            "max_tokens": 1024,
        },
        "web": {
            "timeout": 20.0,
            "user_agent": "thoughts/0.1 (+https://github.com/)",
        },
    }
