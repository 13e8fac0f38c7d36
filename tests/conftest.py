from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture  # type: ignore[misc]
def write_program(tmp_path: Path) -> Callable[[str], Path]:
    """Writes program text to a file under tmp_path and returns its path."""

    def _write(text: str, name: str = "program.txt") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
