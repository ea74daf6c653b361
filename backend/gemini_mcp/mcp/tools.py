"""MCP tool implementations, independent of the server wiring."""

from typing import Any, Dict, Optional

from gemini_mcp.core.config import ExecutionConfig
from gemini_mcp.services import gateway


async def gemini(
    config: ExecutionConfig,
    PROMPT: str,
    SESSION_ID: Optional[str] = None,
    sandbox: Optional[bool] = None,
    return_all_messages: bool = False,
    model: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run one Gemini CLI turn and return the reduced result.

    Args:
        config: Process-wide execution settings
        PROMPT: Instruction for the task to send to gemini
        SESSION_ID: Session to resume; omit to start a new conversation
        sandbox: Run gemini in sandbox mode (None keeps the CLI default)
        return_all_messages: Join every assistant message and include raw events
        model: Model override forwarded to the CLI

    Returns:
        Dict with:
        - success: Whether the run completed without error
        - SESSION_ID: Session identifier to pass back for a follow-up turn
        - message: Assistant response text
        - error: Failure description when success is false
    """
    raw: Dict[str, Any] = {
        "PROMPT": PROMPT,
        "return_all_messages": return_all_messages,
    }
    if SESSION_ID is not None:
        raw["SESSION_ID"] = SESSION_ID
    if sandbox is not None:
        raw["sandbox"] = sandbox
    if model is not None:
        raw["model"] = model
    return await gateway.handle(raw, config)


TOOLS = {
    "gemini": gemini,
}
