from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    SPAWN = "spawn"
    TIMEOUT = "timeout"
    SUBPROCESS = "subprocess"
    STREAM = "stream"
    EXPLICIT = "explicit"


class GeminiMCPError(Exception):
    """Base class for every failure reported back to a caller."""

    kind = ErrorKind.SUBPROCESS

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GeminiMCPError):
    kind = ErrorKind.VALIDATION


class SpawnError(GeminiMCPError):
    kind = ErrorKind.SPAWN


class Timeout(GeminiMCPError):
    kind = ErrorKind.TIMEOUT


class SubprocessFailure(GeminiMCPError):
    kind = ErrorKind.SUBPROCESS


class StreamError(GeminiMCPError):
    kind = ErrorKind.STREAM


class ExplicitError(GeminiMCPError):
    kind = ErrorKind.EXPLICIT
