from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from gemini_mcp.core.errors import ErrorKind


class InvocationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    prompt: str = Field(..., validation_alias=AliasChoices("prompt", "PROMPT"))
    session_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("session_id", "SESSION_ID")
    )
    sandbox: Optional[bool] = None
    return_all_messages: Optional[bool] = None
    model: Optional[str] = None


class ExecutionOutcome(BaseModel):
    success: bool
    session_id: Optional[str] = None
    message: str = ""
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    exit_code: Optional[int] = None
    all_messages: List[Dict[str, Any]] = Field(default_factory=list)


class GeminiSuccessResponse(BaseModel):
    success: bool = True
    SESSION_ID: Optional[str] = None
    message: str
    all_messages: Optional[List[Dict[str, Any]]] = None


class GeminiFailureResponse(BaseModel):
    success: bool = False
    error: str
