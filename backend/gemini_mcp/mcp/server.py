"""MCP server exposing the Gemini CLI as a tool using FastMCP."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import Context, FastMCP

from gemini_mcp.core.config import ExecutionConfig, load_execution_config
from gemini_mcp.core.logging import configure_logging
from gemini_mcp.mcp import tools

logger = logging.getLogger(__name__)

TOOL_DESCRIPTION = (
    "Invokes the Gemini CLI to execute AI-driven tasks, returning the "
    "assistant response and a session identifier for conversation continuity."
)


@dataclass(frozen=True)
class ServerContext:
    config: ExecutionConfig


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[ServerContext]:
    config = load_execution_config()
    logger.info("gemini-mcp server ready")
    yield ServerContext(config=config)


mcp = FastMCP(
    "gemini-mcp",
    instructions="""
# Gemini MCP

This server provides a `gemini` tool that runs the Gemini CLI for AI-driven
tasks such as code analysis, reviews, and research.

## Multi-turn conversations

Every successful call returns a `SESSION_ID`. Pass it back unchanged as the
`SESSION_ID` argument of the next call to continue the same conversation.
Omit it entirely (do not send an empty string) to start a new one.

## Return structure

- **success**: whether the run completed
- **SESSION_ID**: identifier for resuming this conversation
- **message**: the assistant's response text
- **error**: failure description when `success` is false
""",
    lifespan=lifespan,
)


@mcp.tool(name="gemini", description=TOOL_DESCRIPTION)
async def gemini_tool(
    ctx: Context,
    PROMPT: str,
    SESSION_ID: Optional[str] = None,
    sandbox: Optional[bool] = None,
    return_all_messages: bool = False,
    model: Optional[str] = None,
) -> dict:
    """
    Run the Gemini CLI on a prompt.

    Args:
        PROMPT: Instruction for the task to send to gemini
        SESSION_ID: Resume this session; omit to start a new conversation
        sandbox: Run gemini in sandbox mode
        return_all_messages: Return every assistant message and the raw events
        model: Gemini model to use for this call
    """
    server_context: ServerContext = ctx.request_context.lifespan_context
    return await tools.gemini(
        server_context.config,
        PROMPT=PROMPT,
        SESSION_ID=SESSION_ID,
        sandbox=sandbox,
        return_all_messages=return_all_messages,
        model=model,
    )


def run_server() -> None:
    """Run the MCP server with stdio transport."""
    configure_logging()
    logger.info("Starting gemini-mcp server...")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
