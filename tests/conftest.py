"""Pytest configuration for spellcaster tests."""
import os
import sys
from pathlib import Path

import pytest

# Add src to path for the tests - conftest is in tests/, so parent.parent is project root
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"

# Insert at the very beginning to override any other paths
sys.path.insert(0, str(src_path))


class ProjectTree:
    """Small helper for building fake project layouts on disk."""

    def __init__(self, root: Path):
        self.root = root

    def write(self, rel: str, content: str) -> Path:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        return path

    def write_lines(self, rel: str, lines) -> Path:
        return self.write(rel, "\n".join(lines))

    def read(self, rel: str) -> str:
        with open(self.root / rel, "r", encoding="utf-8", newline="") as f:
            return f.read()

    def mkdir(self, rel: str) -> Path:
        path = self.root / rel
        path.mkdir(parents=True, exist_ok=True)
        return path

    def exists(self, rel: str) -> bool:
        return (self.root / rel).exists()


@pytest.fixture
def project(tmp_path):
    """Empty project root."""
    return ProjectTree(tmp_path.resolve())


@pytest.fixture(autouse=True)
def _clean_spellcaster_env(monkeypatch):
    """Keep SPELLCASTER_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("SPELLCASTER_"):
            monkeypatch.delenv(key, raising=False)
