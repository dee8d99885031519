"""Shared error codes and exceptions for the splitter core and its front-ends."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    IO_ERROR = "IO_ERROR"
    STATE_ERROR = "STATE_ERROR"
    CANCELLED = "CANCELLED"


class BackendError(RuntimeError):
    """Exception carrying a structured error code for CLI/GUI callers."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class StreamReadError(BackendError):
    """Raised when the byte source fails mid-read; aborts the whole run."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.IO_ERROR, message, context=context)


class RunCancelledError(BackendError):
    """Raised when the caller aborts a run between two chunk reads."""

    def __init__(self, message: str = "run cancelled", *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.CANCELLED, message, context=context)
