from fastapi import HTTPException, Request

from gemini_mcp.core.config import GEMINI_MCP_TOKEN, ExecutionConfig


async def verify_token(request: Request) -> None:
    if GEMINI_MCP_TOKEN and request.headers.get("X-Gemini-MCP-Token") != GEMINI_MCP_TOKEN:
        raise HTTPException(status_code=401, detail="unauthorized")


def get_config(request: Request) -> ExecutionConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(status_code=503, detail="server not initialized")
    return config
