import logging
import sys

from gemini_mcp.core.config import LOG_LEVEL

logger = logging.getLogger("gemini-mcp")


def configure_logging(level: str = LOG_LEVEL) -> None:
    # stdout carries the MCP stdio protocol, so logs always go to stderr.
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
        force=True,
    )
