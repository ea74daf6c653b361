import json
import os


def emit_line(payload: dict) -> str:
    """Stub-script source for one stream-json event line."""
    return f"print({json.dumps(json.dumps(payload))}, flush=True)\n"


def process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True
