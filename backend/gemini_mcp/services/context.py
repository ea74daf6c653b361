import logging
import os
from typing import Optional

from gemini_mcp.core.config import MAX_CONTEXT_BYTES

logger = logging.getLogger(__name__)


def read_context_file(
    path: str, max_bytes: int = MAX_CONTEXT_BYTES
) -> Optional[str]:
    """Return the project context file verbatim, or None when unusable.

    A missing file is silent. Oversized, blank or unreadable files are
    skipped with a warning.
    """
    try:
        size = os.path.getsize(path)
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("cannot access context file %s: %s", path, exc)
        return None

    if size > max_bytes:
        logger.warning(
            "context file %s is too large (%d bytes, max %d); ignoring it",
            path,
            size,
            max_bytes,
        )
        return None

    try:
        with open(path, "r", encoding="utf-8") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("failed to read context file %s: %s", path, exc)
        return None

    if not content.strip():
        logger.warning("context file %s is empty; ignoring it", path)
        return None
    return content


def prepare_prompt(prompt: str, context_file: Optional[str]) -> str:
    if not context_file:
        return prompt
    content = read_context_file(context_file)
    if content is None:
        return prompt
    return f"{content}\n\n{prompt}"
