import json
import logging
import os
import shutil
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

GEMINI_MCP_TOKEN = os.environ.get("GEMINI_MCP_TOKEN", "")
GEMINI_MCP_PORT = int(os.environ.get("GEMINI_MCP_PORT", "49672"))
LOG_LEVEL = os.environ.get("GEMINI_MCP_LOG_LEVEL", "INFO")

CONFIG_FILE_NAME = "gemini-mcp.config.json"
DEFAULT_BINARY = "gemini"
DEFAULT_CONTEXT_FILE = "GEMINI.md"
DEFAULT_TIMEOUT_SECS = 600.0
MAX_TIMEOUT_SECS = 3600.0
MAX_STDERR_BYTES = 100_000
MAX_CONTEXT_BYTES = 100_000
MAX_MESSAGES = 10_000
MAX_NON_JSON_LINES = 1_000


class ExecutionConfig(BaseModel):
    """Process-wide settings for launching the Gemini CLI.

    Built once at startup and passed explicitly into every invocation.
    """

    model_config = ConfigDict(frozen=True)

    binary_path: str = DEFAULT_BINARY
    additional_args: Tuple[str, ...] = ()
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    context_file: Optional[str] = DEFAULT_CONTEXT_FILE
    max_stderr_bytes: int = Field(default=MAX_STDERR_BYTES, gt=0)

    @field_validator("timeout_secs", mode="before")
    @classmethod
    def _clamp_timeout(cls, value: Any) -> float:
        return clamp_timeout(value)


def clamp_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_TIMEOUT_SECS
    if value <= 0:
        return DEFAULT_TIMEOUT_SECS
    return float(min(value, MAX_TIMEOUT_SECS))


def clean_args(values: Any) -> Tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    cleaned = []
    for value in values:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if value:
            cleaned.append(value)
    return tuple(cleaned)


def resolve_binary_path() -> str:
    env_path = os.environ.get("GEMINI_BIN", "").strip()
    if env_path:
        return env_path
    return shutil.which(DEFAULT_BINARY) or DEFAULT_BINARY


def resolve_config_path() -> str:
    env_path = os.environ.get("GEMINI_MCP_CONFIG_PATH", "").strip()
    if env_path:
        return env_path
    return os.path.join(os.getcwd(), CONFIG_FILE_NAME)


def read_config_file(path: str) -> Dict[str, Any]:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("failed to read config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: expected a JSON object", path)
        return {}
    return data


def load_execution_config(path: Optional[str] = None) -> ExecutionConfig:
    config_path = path or resolve_config_path()
    data = read_config_file(config_path)
    context_file = data.get("context_file", DEFAULT_CONTEXT_FILE)
    if context_file is not None and not isinstance(context_file, str):
        logger.warning("ignoring non-string context_file in %s", config_path)
        context_file = DEFAULT_CONTEXT_FILE
    config = ExecutionConfig(
        binary_path=resolve_binary_path(),
        additional_args=clean_args(data.get("additional_args")),
        timeout_secs=clamp_timeout(data.get("timeout_secs")),
        context_file=context_file or None,
    )
    logger.info(
        "gemini config loaded binary=%s args=%d timeout=%ss",
        config.binary_path,
        len(config.additional_args),
        int(config.timeout_secs),
    )
    return config
