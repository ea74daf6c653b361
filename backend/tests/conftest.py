import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from gemini_mcp.core.config import ExecutionConfig

STUB_HEADER = "import json, os, sys, time\n"


@pytest.fixture
def make_stub(tmp_path: Path) -> Callable[..., str]:
    """Write an executable Python script that stands in for the gemini CLI."""

    def _make(body: str, name: str = "gemini-stub") -> str:
        path = tmp_path / name
        path.write_text(
            f"#!{sys.executable}\n{STUB_HEADER}{textwrap.dedent(body)}",
            encoding="utf-8",
        )
        path.chmod(0o755)
        return str(path)

    return _make


@pytest.fixture
def make_config() -> Callable[..., ExecutionConfig]:
    def _make(binary_path: str, **overrides) -> ExecutionConfig:
        values = {
            "binary_path": binary_path,
            "timeout_secs": 10.0,
            "context_file": None,
        }
        values.update(overrides)
        return ExecutionConfig(**values)

    return _make
