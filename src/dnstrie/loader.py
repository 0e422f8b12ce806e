"""Reading match files.

A match file holds one pattern per line:

    # comment
    *.google.com
    www.google.org

Lines are whitespace-trimmed. Blank lines and lines starting with "#" are
dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


def read_patterns(lines: Iterable[str]) -> list[str]:
    """Extract patterns from an iterable of raw lines."""
    patterns: list[str] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def load_patterns(path: str | Path) -> list[str]:
    """Load patterns from a match file.

    Args:
        path: Path to a UTF-8 text file with one pattern per line.

    Returns:
        Patterns in file order.

    Raises:
        FileNotFoundError: If the match file doesn't exist
        ValueError: If the match file is not valid UTF-8
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Match file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Match file encoding error in {path}: {e}") from e

    return read_patterns(content.splitlines())
