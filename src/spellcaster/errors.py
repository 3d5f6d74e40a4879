"""Error taxonomy for the spell engine."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from spellcaster.models import RunResult


class SpellError(Exception):
    """Base exception for spell engine operations."""
    pass


class ConfigError(SpellError):
    """Raised when configuration values are invalid."""
    pass


class ConflictError(SpellError):
    """Raised when the requested target list is structurally invalid."""

    def __init__(self, message: str, target: Optional[str] = None):
        self.target = target
        super().__init__(message)


class NotFoundError(SpellError):
    """Raised when a custom target directory does not exist."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class FileProcessingError(SpellError):
    """Base class for per-file I/O failures."""

    action = "process"

    def __init__(self, path: Path, cause: BaseException):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to {self.action} {self.path}: {cause}")


class FileReadError(FileProcessingError):
    """Raised when a file cannot be read."""

    action = "read"


class FileWriteError(FileProcessingError):
    """Raised when a file cannot be written or deleted."""

    action = "write"


class DirectiveEvaluationError(SpellError):
    """Raised (and logged, never propagated) when the evaluator fails on a line."""

    def __init__(self, path: str, line_index: int, cause: BaseException):
        self.path = path
        self.line_index = line_index
        self.cause = cause
        super().__init__(
            f"Directive evaluation failed in {path} at line {line_index + 1}: {cause}"
        )


class RunAbortedError(SpellError):
    """Raised when stop_on_error aborts a run; carries the partial result."""

    def __init__(self, cause: SpellError, result: "RunResult"):
        self.cause = cause
        self.result = result
        super().__init__(
            f"Run aborted after {len(result.processed_files)} processed files: {cause}"
        )
