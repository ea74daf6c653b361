"""Gemini CLI ``stream-json`` events and the reducer that folds them.

Each stdout line of ``gemini -o stream-json`` is one JSON object tagged by
``type``. Known tags become typed events; anything else is kept as an
``UnrecognizedEvent`` so newer CLI versions never break a stream.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from gemini_mcp.core.config import MAX_MESSAGES, MAX_NON_JSON_LINES, MAX_STDERR_BYTES
from gemini_mcp.core.errors import ErrorKind, StreamError
from gemini_mcp.schemas.gemini import ExecutionOutcome
from gemini_mcp.utils.text import sanitize_output

logger = logging.getLogger(__name__)

PROMPT_DEPRECATION_WARNING = "The --prompt (-p) flag has been deprecated"
ROLE_ASSISTANT = "assistant"


class StreamEvent(BaseModel):
    type: str = ""
    session_id: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class SessionStarted(StreamEvent):
    model: Optional[str] = None


class AgentMessage(StreamEvent):
    role: str = ""
    content: str = ""
    delta: bool = False


class ToolCall(StreamEvent):
    tool_name: str = ""
    tool_id: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(StreamEvent):
    tool_id: str = ""
    status: str = ""
    output: Optional[str] = None


class ErrorEvent(StreamEvent):
    message: str = ""
    severity: str = "error"


class ResultEvent(StreamEvent):
    status: str = ""
    stats: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class UnrecognizedEvent(StreamEvent):
    pass


def _text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _error_message(data: Dict[str, Any]) -> Optional[str]:
    error = data.get("error")
    if isinstance(error, dict):
        message = _text(error, "message")
        if message:
            return message
    if isinstance(error, str) and error:
        return error
    return _text(data, "message")


def parse_event(data: Any) -> StreamEvent:
    if not isinstance(data, dict):
        return UnrecognizedEvent(raw={"value": data})

    event_type = _text(data, "type") or ""
    session_id = _text(data, "session_id") or None
    common: Dict[str, Any] = {"type": event_type, "session_id": session_id, "raw": data}
    lowered = event_type.lower()

    if lowered == "init":
        return SessionStarted(model=_text(data, "model"), **common)
    if lowered == "message":
        return AgentMessage(
            role=_text(data, "role") or "",
            content=_text(data, "content") or "",
            delta=data.get("delta") is True,
            **common,
        )
    if lowered == "tool_use":
        return ToolCall(
            tool_name=_text(data, "tool_name") or "",
            tool_id=_text(data, "tool_id") or "",
            parameters=_mapping(data, "parameters"),
            **common,
        )
    if lowered == "tool_result":
        return ToolResult(
            tool_id=_text(data, "tool_id") or "",
            status=_text(data, "status") or "",
            output=_text(data, "output"),
            **common,
        )
    if lowered == "result":
        return ResultEvent(
            status=_text(data, "status") or "",
            stats=_mapping(data, "stats"),
            error=_error_message(data) if data.get("status") == "error" else None,
            **common,
        )
    if "error" in lowered or "fail" in lowered:
        return ErrorEvent(
            message=_error_message(data) or event_type,
            severity=(_text(data, "severity") or "error").lower(),
            **common,
        )
    return UnrecognizedEvent(**common)


def parse_line(line: str) -> Optional[StreamEvent]:
    text = line.strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise StreamError(f"invalid JSON line: {exc}") from exc
    return parse_event(data)


class StreamReducer:
    """Folds one invocation's event stream into an ``ExecutionOutcome``."""

    def __init__(self, return_all_messages: bool = False) -> None:
        self.return_all_messages = return_all_messages
        self.session_id: Optional[str] = None
        self.messages: List[str] = []
        self.error: Optional[str] = None
        self.non_json_lines: List[str] = []
        self.valid_json_seen = False
        self.all_messages: List[Dict[str, Any]] = []
        self._delta_open = False

    def feed_line(self, line: str) -> Optional[StreamEvent]:
        try:
            event = parse_line(line)
        except StreamError as exc:
            logger.debug("skipping non-JSON output line: %s", exc.message)
            self.record_non_json(line.strip())
            return None
        if event is None:
            return None
        self.valid_json_seen = True
        self.apply(event)
        return event

    def record_non_json(self, text: str) -> None:
        if len(self.non_json_lines) < MAX_NON_JSON_LINES:
            self.non_json_lines.append(text)

    def apply(self, event: StreamEvent) -> None:
        if self.return_all_messages and len(self.all_messages) < MAX_MESSAGES:
            self.all_messages.append(event.raw)

        if event.session_id:
            if self.session_id and self.session_id != event.session_id:
                logger.warning(
                    "gemini session id changed mid-stream %s -> %s",
                    self.session_id,
                    event.session_id,
                )
            self.session_id = event.session_id

        if isinstance(event, AgentMessage):
            self._apply_message(event)
            return
        self._delta_open = False

        if isinstance(event, ErrorEvent):
            if event.severity == "warning":
                logger.warning("gemini warning: %s", event.message)
                return
            self._record_error(event.message)
        elif isinstance(event, ResultEvent) and event.status == "error":
            self._record_error(event.error or "gemini reported an error result")

    def _apply_message(self, event: AgentMessage) -> None:
        if event.role != ROLE_ASSISTANT:
            self._delta_open = False
            return
        # The CLI's own notice about --prompt is not part of the answer.
        if not event.content or PROMPT_DEPRECATION_WARNING in event.content:
            return
        if event.delta and self._delta_open and self.messages:
            self.messages[-1] += event.content
        else:
            self.messages.append(event.content)
        self._delta_open = event.delta

    def _record_error(self, message: str) -> None:
        text = f"gemini error: {message}"
        if self.error is None:
            self.error = text
        else:
            logger.info("additional %s", text)

    @property
    def message(self) -> str:
        if not self.messages:
            return ""
        if self.return_all_messages:
            return "\n".join(self.messages)
        return self.messages[-1]

    def finish(
        self,
        exit_code: Optional[int],
        stderr: str = "",
        max_stderr_bytes: int = MAX_STDERR_BYTES,
    ) -> ExecutionOutcome:
        diagnostics: List[str] = []
        if stderr.strip():
            diagnostics.append(f"Stderr: {stderr.strip()}")
        if self.non_json_lines:
            diagnostics.append("Non-JSON output: " + "\n".join(self.non_json_lines))

        if exit_code != 0:
            if self.error:
                return self._failure(
                    "\n".join([self.error] + diagnostics),
                    ErrorKind.EXPLICIT,
                    exit_code,
                    max_stderr_bytes,
                )
            return self._failure(
                "\n".join([f"gemini exited with code {exit_code}"] + diagnostics),
                ErrorKind.SUBPROCESS,
                exit_code,
                max_stderr_bytes,
            )
        if self.error:
            return self._failure(self.error, ErrorKind.EXPLICIT, exit_code, max_stderr_bytes)
        if self.non_json_lines and not self.valid_json_seen:
            return self._failure(
                "No valid JSON output received from gemini CLI.\nOutput: "
                + "\n".join(self.non_json_lines),
                ErrorKind.STREAM,
                exit_code,
                max_stderr_bytes,
            )
        return ExecutionOutcome(
            success=True,
            session_id=self.session_id,
            message=self.message,
            exit_code=exit_code,
            all_messages=self.all_messages,
        )

    def _failure(
        self, error: str, kind: ErrorKind, exit_code: Optional[int], limit: int
    ) -> ExecutionOutcome:
        return ExecutionOutcome(
            success=False,
            session_id=self.session_id,
            error=sanitize_output(error, limit),
            error_kind=kind,
            exit_code=exit_code,
        )
