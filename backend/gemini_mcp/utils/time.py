import time


def utc_now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
