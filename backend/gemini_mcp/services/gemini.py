import asyncio
import logging
import os
import signal
import sys
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from gemini_mcp.core.config import ExecutionConfig
from gemini_mcp.core.errors import SpawnError, Timeout
from gemini_mcp.schemas.gemini import ExecutionOutcome
from gemini_mcp.services.context import prepare_prompt
from gemini_mcp.services.events import StreamReducer
from gemini_mcp.utils.cmdline import needs_shell_command_line, to_command_line
from gemini_mcp.utils.time import elapsed_ms

logger = logging.getLogger(__name__)

STREAM_FLAGS = ("-o", "stream-json")
RESUME_FLAG = "--resume"
MODEL_FLAG = "--model"
SANDBOX_ON = "--sandbox"
SANDBOX_OFF = "--no-sandbox"
# Single events (a whole file read back by a tool) can be large.
STREAM_LINE_LIMIT = 16 * 1024 * 1024
STDERR_CHUNK = 4096


def build_command(
    config: ExecutionConfig,
    prompt: str,
    session_id: Optional[str] = None,
    sandbox: Optional[bool] = None,
    model: Optional[str] = None,
) -> List[str]:
    argv = [config.binary_path, *STREAM_FLAGS]
    argv.extend(config.additional_args)
    if session_id:
        argv.extend([RESUME_FLAG, session_id])
    if sandbox is not None:
        argv.append(SANDBOX_ON if sandbox else SANDBOX_OFF)
    if model:
        argv.extend([MODEL_FLAG, model])
    # Always a single argv entry, never spliced into a shell string.
    argv.append(prompt)
    return argv


async def spawn_command(argv: Sequence[str]) -> asyncio.subprocess.Process:
    options: Dict[str, Any] = {
        "stdin": asyncio.subprocess.DEVNULL,
        "stdout": asyncio.subprocess.PIPE,
        "stderr": asyncio.subprocess.PIPE,
        "limit": STREAM_LINE_LIMIT,
        "env": os.environ.copy(),
    }
    if needs_shell_command_line(argv[0]):
        return await asyncio.create_subprocess_shell(
            to_command_line(argv, through_cmd=True), **options
        )
    if sys.platform != "win32":
        # Own process group so a kill also reaches the CLI's children.
        options["start_new_session"] = True
    return await asyncio.create_subprocess_exec(*argv, **options)


async def terminate_process(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            if sys.platform == "win32":
                await _taskkill(process.pid)
            else:
                os.killpg(process.pid, signal.SIGKILL)
        except OSError as exc:
            logger.debug("process group kill failed pid=%s: %s", process.pid, exc)
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


async def _taskkill(pid: int) -> None:
    killer = await asyncio.create_subprocess_exec(
        "taskkill",
        "/F",
        "/T",
        "/PID",
        str(pid),
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    await killer.wait()


async def read_stdout_events(
    stream: asyncio.StreamReader, reducer: StreamReducer
) -> None:
    while True:
        try:
            line = await stream.readline()
        except ValueError:
            logger.warning(
                "gemini output line exceeded %d bytes; skipping it", STREAM_LINE_LIMIT
            )
            reducer.record_non_json(f"<line longer than {STREAM_LINE_LIMIT} bytes>")
            continue
        if not line:
            break
        reducer.feed_line(line.decode(errors="replace"))


async def read_stderr_bounded(stream: asyncio.StreamReader, limit: int) -> str:
    collected = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(STDERR_CHUNK)
        if not chunk:
            break
        remaining = limit - len(collected)
        if len(chunk) > remaining:
            truncated = True
        if remaining > 0:
            collected.extend(chunk[:remaining])
    text = collected.decode(errors="replace")
    if truncated:
        text += "\n... (stderr truncated)"
    return text


async def run_process(
    argv: Sequence[str], reducer: StreamReducer, max_stderr_bytes: int
) -> Tuple[int, str]:
    try:
        process = await spawn_command(argv)
    except OSError as exc:
        raise SpawnError(f"failed to spawn gemini ({argv[0]}): {exc}") from exc

    logger.info("gemini started pid=%s", process.pid)
    stdout_task = asyncio.create_task(read_stdout_events(process.stdout, reducer))
    stderr_task = asyncio.create_task(
        read_stderr_bounded(process.stderr, max_stderr_bytes)
    )
    finished = False
    try:
        await asyncio.gather(stdout_task, stderr_task)
        exit_code = await process.wait()
        finished = True
    finally:
        if not finished:
            # Timeout or caller cancellation: never leave the CLI running.
            await terminate_process(process)
            stdout_task.cancel()
            stderr_task.cancel()
            await asyncio.gather(stdout_task, stderr_task, return_exceptions=True)
            logger.info("gemini pid=%s terminated", process.pid)
    return exit_code, stderr_task.result()


async def execute(
    config: ExecutionConfig,
    prompt: str,
    session_id: Optional[str] = None,
    sandbox: Optional[bool] = None,
    model: Optional[str] = None,
    return_all_messages: bool = False,
) -> ExecutionOutcome:
    """Run the Gemini CLI once and reduce its event stream.

    Raises ``SpawnError`` when the binary cannot be launched and ``Timeout``
    when the deadline passes first; every other failure is reported in the
    returned outcome. Caller cancellation kills the subprocess and
    propagates.
    """
    argv = build_command(
        config,
        prepare_prompt(prompt, config.context_file),
        session_id=session_id,
        sandbox=sandbox,
        model=model,
    )
    reducer = StreamReducer(return_all_messages=return_all_messages)
    started = time.monotonic()
    logger.info(
        "spawning gemini binary=%s resume=%s", config.binary_path, bool(session_id)
    )

    try:
        exit_code, stderr = await asyncio.wait_for(
            run_process(argv, reducer, config.max_stderr_bytes),
            timeout=config.timeout_secs,
        )
    except asyncio.TimeoutError:
        logger.warning("gemini timed out after %ss", config.timeout_secs)
        raise Timeout(f"gemini timed out after {config.timeout_secs:g} seconds")

    outcome = reducer.finish(exit_code, stderr, config.max_stderr_bytes)
    logger.info(
        "gemini finished exit_code=%s success=%s duration_ms=%d",
        exit_code,
        outcome.success,
        elapsed_ms(started),
    )
    return outcome
