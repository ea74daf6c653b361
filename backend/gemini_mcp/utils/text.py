import re

ANSI_ESCAPE_RE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*[@-~]|\][^\x07\x1b]*(?:\x07|\x1b\\)|[@-Z\\-_])")
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")
TRUNCATED_MARKER = "... (truncated)"


def truncate(text: str, limit: int, marker: str = TRUNCATED_MARKER) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}\n{marker}"


def sanitize_output(text: str, limit: int = 100_000) -> str:
    """Strip terminal escape sequences and control characters, then bound length.

    Newlines and tabs survive; everything else below 0x20 (and C1 controls)
    is removed so subprocess diagnostics cannot inject sequences into a
    caller's terminal or log viewer.
    """
    cleaned = ANSI_ESCAPE_RE.sub("", text)
    cleaned = CONTROL_CHARS_RE.sub("", cleaned.replace("\r\n", "\n"))
    return truncate(cleaned, limit)
