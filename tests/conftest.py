"""Shared fixtures for dnstrie tests."""

from __future__ import annotations

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration made by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def match_file(tmp_path):
    """Write a match file and return its path."""

    def _write(*lines: str):
        path = tmp_path / "matches.txt"
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
