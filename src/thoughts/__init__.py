"""
thoughts: capture and search your thoughts from the terminal.

- Zero-friction capture into a flat directory of markdown notes
- An Eisenhower-matrix todo list with short, positional IDs (A1, B2, ...)
- Web pages saved as notes, optionally summarized by an LLM
"""

__version__ = "0.1.0"
