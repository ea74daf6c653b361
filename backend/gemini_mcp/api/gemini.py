from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from gemini_mcp.api.deps import get_config, verify_token
from gemini_mcp.core.config import ExecutionConfig
from gemini_mcp.core.logging import logger
from gemini_mcp.services import gateway
from gemini_mcp.services.invocations import track_invocation

router = APIRouter()


@router.post("/gemini")
async def run_gemini(
    payload: Dict[str, Any] = Body(...),
    config: ExecutionConfig = Depends(get_config),
    _: None = Depends(verify_token),
) -> Dict[str, Any]:
    async with track_invocation():
        response = await gateway.handle(payload, config)
    logger.info("http gemini call finished success=%s", response["success"])
    return response
