"""Command-line rendering for platforms that spawn from a single string.

POSIX processes receive an argument vector, so nothing here is needed
there. On Windows a child parses its own command line with the MSVCRT
rules, and batch shims (``gemini.cmd`` from npm) are run by ``cmd.exe``,
which interprets its metacharacters before the shim ever sees them.
"""

import os
import re
import sys
from typing import List, Sequence

WINDOWS_SPECIAL_CHARS = frozenset(' \t\n\v"')
CMD_METACHARS_RE = re.compile(r'([()%!^"<>&|])')
BATCH_SUFFIXES = (".cmd", ".bat")


def quote_windows_arg(arg: str) -> str:
    """Quote one argument so CommandLineToArgvW yields it back unchanged."""
    if arg and not any(ch in WINDOWS_SPECIAL_CHARS for ch in arg):
        return arg
    parts: List[str] = ['"']
    backslashes = 0
    for ch in arg:
        if ch == "\\":
            backslashes += 1
            continue
        if ch == '"':
            # Backslashes before a quote are doubled, plus one for the quote.
            parts.append("\\" * (backslashes * 2 + 1))
            parts.append('"')
        else:
            parts.append("\\" * backslashes)
            parts.append(ch)
        backslashes = 0
    # Trailing backslashes precede the closing quote.
    parts.append("\\" * (backslashes * 2))
    parts.append('"')
    return "".join(parts)


def escape_cmd_metachars(text: str) -> str:
    return CMD_METACHARS_RE.sub(r"^\1", text)


def is_batch_file(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in BATCH_SUFFIXES


def to_command_line(argv: Sequence[str], through_cmd: bool = False) -> str:
    if not argv:
        return ""
    rendered = [quote_windows_arg(argv[0])]
    for arg in argv[1:]:
        quoted = quote_windows_arg(arg)
        rendered.append(escape_cmd_metachars(quoted) if through_cmd else quoted)
    return " ".join(rendered)


def needs_shell_command_line(binary_path: str, platform: str = sys.platform) -> bool:
    return platform == "win32" and is_batch_file(binary_path)
