import json
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from gemini_mcp.core import config as config_module
from gemini_mcp.core.config import (
    DEFAULT_TIMEOUT_SECS,
    MAX_TIMEOUT_SECS,
    ExecutionConfig,
    clamp_timeout,
    clean_args,
    load_execution_config,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, DEFAULT_TIMEOUT_SECS),
        (0, DEFAULT_TIMEOUT_SECS),
        (-5, DEFAULT_TIMEOUT_SECS),
        ("30", DEFAULT_TIMEOUT_SECS),
        (True, DEFAULT_TIMEOUT_SECS),
        (120, 120.0),
        (3600, MAX_TIMEOUT_SECS),
        (86400, MAX_TIMEOUT_SECS),
    ],
)
def test_clamp_timeout(value, expected) -> None:
    assert clamp_timeout(value) == expected


def test_clean_args_trims_and_drops_empty_entries() -> None:
    assert clean_args([" --yolo ", "", "   ", "--model", 7, "gemini-2.5-pro"]) == (
        "--yolo",
        "--model",
        "gemini-2.5-pro",
    )
    assert clean_args("--yolo") == ()


def test_load_config_from_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "gemini-mcp.config.json"
    path.write_text(
        json.dumps(
            {
                "additional_args": ["--model", " gemini-3-pro-preview ", ""],
                "timeout_secs": 99999,
                "context_file": None,
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("GEMINI_MCP_CONFIG_PATH", str(path))
    monkeypatch.setenv("GEMINI_BIN", "/opt/gemini/bin/gemini")

    config = load_execution_config()

    assert config.binary_path == "/opt/gemini/bin/gemini"
    assert config.additional_args == ("--model", "gemini-3-pro-preview")
    assert config.timeout_secs == MAX_TIMEOUT_SECS
    assert config.context_file is None


def test_missing_config_file_uses_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("GEMINI_MCP_CONFIG_PATH", raising=False)
    monkeypatch.setenv("GEMINI_BIN", "gemini")
    monkeypatch.chdir(tmp_path)

    config = load_execution_config()

    assert config.additional_args == ()
    assert config.timeout_secs == DEFAULT_TIMEOUT_SECS
    assert config.context_file == "GEMINI.md"


def test_malformed_config_file_falls_back_to_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")

    config = load_execution_config(str(path))

    assert config.additional_args == ()
    assert config.timeout_secs == DEFAULT_TIMEOUT_SECS
    assert "failed to read config" in caplog.text


def test_non_object_config_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text('["--yolo"]', encoding="utf-8")

    assert load_execution_config(str(path)).additional_args == ()


def test_binary_path_falls_back_to_path_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_BIN", raising=False)
    monkeypatch.setattr(config_module.shutil, "which", lambda name: f"/usr/local/bin/{name}")
    assert config_module.resolve_binary_path() == "/usr/local/bin/gemini"

    monkeypatch.setattr(config_module.shutil, "which", lambda name: None)
    assert config_module.resolve_binary_path() == "gemini"


def test_execution_config_is_immutable() -> None:
    config = ExecutionConfig(binary_path="gemini")
    with pytest.raises(PydanticValidationError):
        config.timeout_secs = 1


@pytest.mark.parametrize(
    "value, expected",
    [(7200, MAX_TIMEOUT_SECS), (0, DEFAULT_TIMEOUT_SECS), (-1, DEFAULT_TIMEOUT_SECS), (45, 45.0)],
)
def test_execution_config_clamps_timeout_when_built_directly(value, expected) -> None:
    assert ExecutionConfig(binary_path="gemini", timeout_secs=value).timeout_secs == expected
