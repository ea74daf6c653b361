import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from gemini_mcp.core.config import ExecutionConfig

active_invocations = 0
completed_invocations = 0
started_at = time.time()


@asynccontextmanager
async def track_invocation() -> AsyncIterator[None]:
    global active_invocations, completed_invocations
    active_invocations += 1
    try:
        yield
    finally:
        active_invocations -= 1
        completed_invocations += 1


def status_snapshot(config: ExecutionConfig) -> Dict[str, Any]:
    return {
        "uptime_sec": int(time.time() - started_at),
        "invocations": {
            "active": active_invocations,
            "completed": completed_invocations,
        },
        "gemini": {
            "binary": config.binary_path,
            "additional_args": len(config.additional_args),
            "timeout_secs": config.timeout_secs,
        },
    }
