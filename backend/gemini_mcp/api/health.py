import os
import shutil
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from gemini_mcp.api.deps import verify_token
from gemini_mcp.core.config import ExecutionConfig
from gemini_mcp.utils.time import utc_now

router = APIRouter()


def binary_available(config: ExecutionConfig) -> bool:
    if os.path.isfile(config.binary_path):
        return os.access(config.binary_path, os.X_OK)
    return shutil.which(config.binary_path) is not None


@router.get("/health")
async def health(request: Request, _: None = Depends(verify_token)) -> Dict[str, Any]:
    config: Optional[ExecutionConfig] = getattr(request.app.state, "config", None)
    if config is None:
        return {"status": "starting", "time": utc_now(), "gemini_binary": None}
    return {
        "status": "ok" if binary_available(config) else "degraded",
        "time": utc_now(),
        "gemini_binary": config.binary_path,
    }
