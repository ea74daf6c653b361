import logging
from typing import Any, Dict, Mapping, Tuple

from pydantic import ValidationError as PydanticValidationError

from gemini_mcp.core.config import ExecutionConfig
from gemini_mcp.core.errors import GeminiMCPError, ValidationError
from gemini_mcp.schemas.gemini import (
    ExecutionOutcome,
    GeminiFailureResponse,
    GeminiSuccessResponse,
    InvocationRequest,
)
from gemini_mcp.services import gemini
from gemini_mcp.utils.text import sanitize_output

logger = logging.getLogger(__name__)

PROMPT_KEYS = ("prompt", "PROMPT")
SESSION_KEYS = ("session_id", "SESSION_ID")


def _first_present(raw: Mapping[str, Any], keys: Tuple[str, ...]) -> Tuple[bool, Any]:
    for key in keys:
        if key in raw:
            return True, raw[key]
    return False, None


def validate_request(raw: Any) -> InvocationRequest:
    if not isinstance(raw, Mapping):
        raise ValidationError("prompt required")

    _, prompt = _first_present(raw, PROMPT_KEYS)
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("prompt required")

    has_session, session_id = _first_present(raw, SESSION_KEYS)
    if has_session and session_id == "":
        raise ValidationError("session_id must be omitted, not empty")

    try:
        return InvocationRequest.model_validate(dict(raw))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "request"
        raise ValidationError(f"invalid {field}: {first.get('msg', 'invalid value')}")


def build_response(
    outcome: ExecutionOutcome, include_all_messages: bool = False
) -> Dict[str, Any]:
    if not outcome.success:
        return failure_response(outcome.error or "Unknown error")
    response = GeminiSuccessResponse(
        SESSION_ID=outcome.session_id,
        message=outcome.message,
        all_messages=outcome.all_messages if include_all_messages else None,
    )
    return response.model_dump(exclude_none=True)


def failure_response(error: str) -> Dict[str, Any]:
    return GeminiFailureResponse(error=sanitize_output(error)).model_dump()


async def handle(raw: Any, config: ExecutionConfig) -> Dict[str, Any]:
    """Validate one tool call, run gemini, and shape the outward response."""
    try:
        request = validate_request(raw)
    except ValidationError as exc:
        logger.info("rejected gemini request: %s", exc.message)
        return failure_response(exc.message)

    try:
        outcome = await gemini.execute(
            config,
            request.prompt,
            session_id=request.session_id,
            sandbox=request.sandbox,
            model=request.model,
            return_all_messages=bool(request.return_all_messages),
        )
    except GeminiMCPError as exc:
        logger.error("gemini %s failure: %s", exc.kind.value, exc.message)
        return failure_response(exc.message)

    if not outcome.success:
        logger.error(
            "gemini %s failure (exit_code=%s)",
            outcome.error_kind.value if outcome.error_kind else "unknown",
            outcome.exit_code,
        )
    return build_response(outcome, include_all_messages=bool(request.return_all_messages))
