from typing import Any, Dict

from fastapi import APIRouter, Depends

from gemini_mcp.api.deps import get_config, verify_token
from gemini_mcp.core.config import ExecutionConfig
from gemini_mcp.services.invocations import status_snapshot

router = APIRouter()


@router.get("/status")
async def status(
    config: ExecutionConfig = Depends(get_config), _: None = Depends(verify_token)
) -> Dict[str, Any]:
    return status_snapshot(config)
